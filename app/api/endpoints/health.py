from typing import Optional
from fastapi import APIRouter, Depends

from app.core.auth import get_optional_session
from app.core.config import settings
from app.models.session import Session
from app.utils.dates import utcnow

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness check"""
    return {
        "status": "OK",
        "timestamp": utcnow().isoformat(),
        "version": settings.PROJECT_VERSION
    }


@router.get("/limits")
async def limits(session: Optional[Session] = Depends(get_optional_session)):
    """Advertised request limits"""
    return {
        "githubApi": {
            "requestsPerHour": settings.GITHUB_REQUESTS_PER_HOUR,
            "authenticated": session is not None
        },
        "app": {
            "requestsPer15Min": settings.APP_REQUESTS_PER_15_MIN
        }
    }
