"""GitHub OAuth web flow: authorize redirect, code exchange, user lookup."""
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from app.core.config import settings
from app.core.errors import AuthenticationError


class GitHubOAuthClient:
    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        *,
        callback_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id if client_id is not None else settings.GITHUB_CLIENT_ID
        self.client_secret = client_secret if client_secret is not None else settings.GITHUB_CLIENT_SECRET
        self.callback_url = callback_url or settings.GITHUB_CALLBACK_URL
        self.transport = transport

    def authorize_url(self, state: str) -> str:
        query = urlencode({
            "client_id": self.client_id,
            "redirect_uri": self.callback_url,
            "scope": settings.GITHUB_SCOPE,
            "state": state,
        })
        return f"{settings.GITHUB_OAUTH_URL}/authorize?{query}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=settings.GITHUB_TIMEOUT_SECONDS,
            transport=self.transport,
            headers={"Accept": "application/json"},
        )

    async def exchange_code(self, code: str) -> str:
        """Trade the callback code for an access token."""
        try:
            async with self._client() as client:
                response = await client.post(
                    f"{settings.GITHUB_OAUTH_URL}/access_token",
                    data={
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "code": code,
                        "redirect_uri": self.callback_url,
                    },
                )
        except httpx.HTTPError as exc:
            raise AuthenticationError(f"GitHub token exchange failed: {exc}") from exc

        payload = response.json() if response.status_code == 200 else {}
        access_token = payload.get("access_token")
        if not access_token:
            # GitHub answers 200 with {"error": ...} for bad or reused codes
            raise AuthenticationError(payload.get("error_description") or "GitHub token exchange failed")
        return access_token

    async def fetch_user(self, access_token: str) -> Dict[str, Any]:
        """Return the authenticated user's profile ({"id", "login", ...})."""
        try:
            async with self._client() as client:
                response = await client.get(
                    f"{settings.GITHUB_API_URL}/user",
                    headers={"Authorization": f"token {access_token}"},
                )
        except httpx.HTTPError as exc:
            raise AuthenticationError(f"GitHub user lookup failed: {exc}") from exc

        if response.status_code != 200:
            raise AuthenticationError(f"GitHub user lookup failed (HTTP {response.status_code})")
        return response.json()
