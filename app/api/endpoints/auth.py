import secrets
from typing import Optional
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import RedirectResponse

from app.api.deps import get_oauth_client
from app.core.auth import create_session_token, get_current_session, get_optional_session
from app.core.config import settings
from app.core.errors import AuthenticationError
from app.core.logging import get_logger
from app.db.mongo import get_db
from app.models.session import Session
from app.repositories.session_repo import AccountRepository, SessionRepository
from app.schemas.auth import AuthStatus, AuthUser, MessageResponse
from app.services.github_oauth import GitHubOAuthClient

# Browser-facing OAuth redirects live outside the /api prefix
oauth_router = APIRouter(prefix="/auth/github", tags=["authentication"])
router = APIRouter()
logger = get_logger("auth")

OAUTH_STATE_MAX_AGE = 10 * 60


def _failure_redirect() -> RedirectResponse:
    return RedirectResponse(
        f"{settings.FRONTEND_URL}/login?error=oauth_failed",
        status_code=status.HTTP_302_FOUND
    )


@oauth_router.get("")
async def github_login(oauth: GitHubOAuthClient = Depends(get_oauth_client)):
    """Start the GitHub OAuth handshake"""
    state = secrets.token_urlsafe(24)
    response = RedirectResponse(oauth.authorize_url(state), status_code=status.HTTP_302_FOUND)
    response.set_cookie(
        settings.OAUTH_STATE_COOKIE_NAME,
        state,
        max_age=OAUTH_STATE_MAX_AGE,
        httponly=True,
        secure=settings.is_production,
        samesite="lax"
    )
    return response


@oauth_router.get("/callback")
async def github_callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    oauth: GitHubOAuthClient = Depends(get_oauth_client),
    db = Depends(get_db)
):
    """Finish the handshake: create the server-side session and hand out its token"""
    expected_state = request.cookies.get(settings.OAUTH_STATE_COOKIE_NAME)
    if not code or not state or not expected_state or not secrets.compare_digest(state, expected_state):
        logger.warning("OAuth callback rejected: missing code or state mismatch")
        return _failure_redirect()

    try:
        access_token = await oauth.exchange_code(code)
        profile = await oauth.fetch_user(access_token)
    except AuthenticationError as exc:
        logger.warning("OAuth callback failed: %s", exc.message)
        return _failure_redirect()

    github_id = str(profile["id"])
    username = profile.get("login", "")

    await AccountRepository(db).upsert_account(github_id, username)
    session = await SessionRepository(db).create_session(github_id, username, access_token)
    logger.info("GitHub user %s logged in", username)

    response = RedirectResponse(
        f"{settings.FRONTEND_URL}/?auth=success",
        status_code=status.HTTP_302_FOUND
    )
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        create_session_token(session.id),
        max_age=settings.SESSION_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="lax"
    )
    response.delete_cookie(settings.OAUTH_STATE_COOKIE_NAME)
    return response


@router.get("/auth/status", response_model=AuthStatus)
async def auth_status(session: Optional[Session] = Depends(get_optional_session)):
    """Tell the client whether it holds a live session"""
    if session is None:
        return AuthStatus(authenticated=False)
    return AuthStatus(
        authenticated=True,
        user=AuthUser(id=session.github_id, username=session.username)
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    session: Session = Depends(get_current_session),
    db = Depends(get_db)
):
    """Destroy the server-side session and clear the cookie"""
    await SessionRepository(db).delete_session(session.id)
    logger.info("GitHub user %s logged out", session.username)

    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return MessageResponse(message="Session closed")
