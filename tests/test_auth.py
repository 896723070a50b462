"""
Test authentication endpoints
"""
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from app.main import app
from app.api.deps import get_oauth_client
from app.core.auth import create_session_token
from app.core.config import settings
from app.repositories.session_repo import AccountRepository
from app.services.github_oauth import GitHubOAuthClient


async def _start_login(client):
    response = await client.get("/auth/github")
    assert response.status_code == 302
    location = urlparse(response.headers["location"])
    return location, parse_qs(location.query)


@pytest.mark.asyncio
async def test_login_redirects_to_github(client):
    """Test the OAuth handshake starts with a state cookie"""
    location, query = await _start_login(client)

    assert location.netloc == "github.com"
    assert location.path == "/login/oauth/authorize"
    assert query["client_id"] == ["client-id"]
    assert query["scope"] == ["gist"]
    assert client.cookies.get(settings.OAUTH_STATE_COOKIE_NAME) == query["state"][0]


@pytest.mark.asyncio
async def test_callback_creates_session(client, fake_db):
    """Test a successful callback logs the user in"""
    _, query = await _start_login(client)

    response = await client.get(
        "/auth/github/callback",
        params={"code": "abc", "state": query["state"][0]},
    )

    assert response.status_code == 302
    assert response.headers["location"] == f"{settings.FRONTEND_URL}/?auth=success"
    assert client.cookies.get(settings.SESSION_COOKIE_NAME)

    account = await AccountRepository(fake_db).get_account("42")
    assert account.username == "juan"
    assert len(fake_db["sessions"].docs) == 1

    status_response = await client.get("/api/auth/status")
    assert status_response.json() == {
        "authenticated": True,
        "user": {"id": "42", "username": "juan"},
    }


@pytest.mark.asyncio
async def test_callback_state_mismatch(client, fake_db):
    """Test a forged state never reaches GitHub"""
    await _start_login(client)

    response = await client.get(
        "/auth/github/callback",
        params={"code": "abc", "state": "forged"},
    )

    assert response.status_code == 302
    assert response.headers["location"].endswith("/login?error=oauth_failed")
    assert fake_db["sessions"].docs == {}


@pytest.mark.asyncio
async def test_callback_bad_code(client, fake_db):
    """Test GitHub refusing the code redirects with an error"""
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, json={"error": "bad_verification_code"})
    )
    app.dependency_overrides[get_oauth_client] = lambda: GitHubOAuthClient(
        "client-id", "client-secret", transport=transport
    )
    _, query = await _start_login(client)

    response = await client.get(
        "/auth/github/callback",
        params={"code": "stale", "state": query["state"][0]},
    )

    assert response.headers["location"].endswith("/login?error=oauth_failed")
    assert fake_db["sessions"].docs == {}


@pytest.mark.asyncio
async def test_status_anonymous(client):
    """Test status without a session"""
    response = await client.get("/api/auth/status")

    assert response.status_code == 200
    assert response.json() == {"authenticated": False, "user": None}


@pytest.mark.asyncio
async def test_status_with_stale_token(client):
    """Test a token whose session was never stored"""
    token = create_session_token("does-not-exist")

    response = await client.get("/api/auth/status", headers={"Authorization": f"Bearer {token}"})

    assert response.json()["authenticated"] is False


@pytest.mark.asyncio
async def test_logout(client, auth_headers):
    """Test logout destroys the session"""
    response = await client.post("/api/logout", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"message": "Session closed"}

    response = await client.get("/api/auth/status", headers=auth_headers)
    assert response.json()["authenticated"] is False


@pytest.mark.asyncio
async def test_logout_requires_session(client):
    """Test remote actions without a session are 401"""
    response = await client.post("/api/logout")

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_invalid_token(client):
    """Test a tampered token is rejected"""
    response = await client.get("/api/data", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401
