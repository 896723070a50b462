from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.core.config import settings
from app.core.errors import AuthenticationError
from app.db.mongo import get_db
from app.repositories.session_repo import SessionRepository
from app.models.session import Session

security = HTTPBearer(auto_error=False)

def create_session_token(session_id: str, expires_delta: timedelta | None = None) -> str:
    """Create the JWT that points at a server-side session."""
    if expires_delta is None:
        expires_delta = timedelta(days=settings.SESSION_EXPIRE_DAYS)

    now = datetime.now(timezone.utc)
    expire = now + expires_delta

    payload = {
        "sub": session_id,
        "exp": int(expire.timestamp()),
        "iat": int(now.timestamp())
    }

    return jwt.encode(
        payload,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )

def decode_session_token(token: str) -> str:
    """Return the session id of a valid token."""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError as e:
        raise AuthenticationError("Invalid or expired session") from e

    session_id: Optional[str] = payload.get("sub")
    if session_id is None:
        raise AuthenticationError("Invalid session token")
    return session_id

def _extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    # Bearer header wins over the browser cookie
    if credentials is not None:
        return credentials.credentials
    return request.cookies.get(settings.SESSION_COOKIE_NAME)

async def get_optional_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db = Depends(get_db)
) -> Optional[Session]:
    """Current session, or None when the caller is anonymous or the token is stale."""
    token = _extract_token(request, credentials)
    if not token:
        return None
    try:
        session_id = decode_session_token(token)
    except AuthenticationError:
        return None
    return await SessionRepository(db).get_session(session_id)

async def get_current_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db = Depends(get_db)
) -> Session:
    """Current session; raises AuthenticationError so the client prompts a new login."""
    token = _extract_token(request, credentials)
    if not token:
        raise AuthenticationError("Not authenticated")

    session_id = decode_session_token(token)
    session = await SessionRepository(db).get_session(session_id)
    if session is None:
        raise AuthenticationError("Session expired, please log in again")
    return session
