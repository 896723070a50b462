from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Optional


class Account(BaseModel):
    """GitHub account bound to its remote gist."""
    github_id: str = Field(alias="_id")
    username: str
    gist_id: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(populate_by_name=True)


class Session(BaseModel):
    """Server-side login session."""
    id: str = Field(alias="_id")
    github_id: str
    username: str
    access_token: str
    created_at: datetime

    model_config = ConfigDict(populate_by_name=True)
