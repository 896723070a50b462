from typing import Any, Dict
from fastapi import APIRouter, Body, Depends, HTTPException, status
from pydantic import ValidationError as PydanticValidationError

from app.api.deps import get_sync_service
from app.models.ledger import Ledger
from app.schemas.sync import PushResponse, SyncResponse
from app.services.sync_service import SyncService

router = APIRouter()


@router.get("/data", response_model=Ledger)
async def get_remote_data(sync: SyncService = Depends(get_sync_service)):
    """Ledger stored in the user's gist, or an empty one"""
    return await sync.pull()


@router.post("/data", response_model=PushResponse)
async def save_remote_data(
    payload: Dict[str, Any] = Body(...),
    sync: SyncService = Depends(get_sync_service)
):
    """Overwrite the user's gist with the given ledger (creating it on first use)"""
    if "movements" not in payload or "debts" not in payload:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid data: movements and debts are required"
        )
    try:
        ledger = Ledger.from_document(payload)
    except PydanticValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid data: {exc.error_count()} invalid field(s)"
        )

    pushed = await sync.push(ledger)
    return PushResponse(gist_id=pushed.gist_id, url=pushed.url)


@router.post("/sync", response_model=SyncResponse)
async def sync_data(sync: SyncService = Depends(get_sync_service)):
    """Push the local ledger, pull it back and keep the pulled copy locally.

    409 when another sync is running or the local ledger changed meanwhile.
    """
    result = await sync.sync()
    return SyncResponse(data=result.ledger, synced_at=result.synced_at)
