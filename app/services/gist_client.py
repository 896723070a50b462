"""GitHub Gist API client used as the remote ledger store."""
import json
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings
from app.core.errors import AuthenticationError, SyncError
from app.core.logging import get_logger
from app.models.ledger import Ledger

logger = get_logger("gist")


class GistClient:
    """
    Thin async wrapper over the three Gist endpoints the sync needs.

    Every HTTP or transport failure is raised as SyncError, except a 401 from
    GitHub which means the OAuth token was revoked (AuthenticationError).
    """

    def __init__(
        self,
        access_token: str,
        *,
        base_url: Optional[str] = None,
        filename: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.access_token = access_token
        self.base_url = base_url or settings.GITHUB_API_URL
        self.filename = filename or settings.GIST_FILENAME
        self.timeout = timeout if timeout is not None else settings.GITHUB_TIMEOUT_SECONDS
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"token {self.access_token}",
                "Accept": "application/vnd.github.v3+json",
            },
            timeout=self.timeout,
            transport=self.transport,
        )

    def _files_payload(self, ledger: Ledger) -> Dict[str, Any]:
        return {
            self.filename: {
                "content": json.dumps(ledger.to_document(), indent=2, ensure_ascii=False)
            }
        }

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            async with self._client() as client:
                response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise SyncError(f"GitHub request timed out: {method} {url}") from exc
        except httpx.HTTPError as exc:
            raise SyncError(f"GitHub request failed: {exc}") from exc

        if response.status_code == 401:
            raise AuthenticationError("GitHub rejected the access token, please log in again")
        return response

    async def create_gist(self, ledger: Ledger) -> Dict[str, Any]:
        """Create a private gist holding the ledger file."""
        response = await self._request(
            "POST",
            "/gists",
            json={
                "description": settings.GIST_DESCRIPTION,
                "public": False,
                "files": self._files_payload(ledger),
            },
        )
        if response.status_code != 201:
            raise SyncError(f"Could not create gist (HTTP {response.status_code})")
        gist = response.json()
        logger.info("Created gist %s", gist.get("id"))
        return gist

    async def update_gist(self, gist_id: str, ledger: Ledger) -> Optional[Dict[str, Any]]:
        """Overwrite the ledger file of an existing gist; None if it was deleted."""
        response = await self._request(
            "PATCH",
            f"/gists/{gist_id}",
            json={"files": self._files_payload(ledger)},
        )
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise SyncError(f"Could not update gist {gist_id} (HTTP {response.status_code})")
        return response.json()

    async def get_gist(self, gist_id: str) -> Optional[Dict[str, Any]]:
        """Fetch a gist; None when it no longer exists."""
        response = await self._request("GET", f"/gists/{gist_id}")
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise SyncError(f"Could not fetch gist {gist_id} (HTTP {response.status_code})")
        return response.json()

    def read_ledger(self, gist: Optional[Dict[str, Any]]) -> Optional[Ledger]:
        """
        Extract the ledger from a gist payload.

        Returns None when the gist or its file is missing or blank ("no data
        yet"). Unparseable content is a SyncError so it never replaces local
        data with an empty ledger.
        """
        if not gist:
            return None
        file = (gist.get("files") or {}).get(self.filename)
        if not file:
            return None
        content = file.get("content")
        if not content or not content.strip():
            return None
        try:
            return Ledger.from_document(json.loads(content))
        except ValueError as exc:
            raise SyncError(f"Remote ledger file {self.filename} is not valid") from exc
