from pydantic import BaseModel
from typing import Optional


class AuthUser(BaseModel):
    """GitHub identity shown to the client"""
    id: str
    username: str


class AuthStatus(BaseModel):
    """Schema for GET /api/auth/status"""
    authenticated: bool
    user: Optional[AuthUser] = None


class MessageResponse(BaseModel):
    message: str
