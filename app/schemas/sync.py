from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.models.ledger import Ledger


class PushResponse(BaseModel):
    """Response of POST /api/data."""
    success: bool = True
    gist_id: str = Field(alias="gistId")
    url: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class SyncResponse(BaseModel):
    """Response of POST /api/sync."""
    success: bool = True
    data: Ledger
    synced_at: datetime

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
