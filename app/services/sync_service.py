"""
Remote sync of the ledger document through a private GitHub gist.

State machine per attempt:
    idle -> pushing -> pulling -> idle        (success)
    idle -> pushing|pulling -> failed -> idle (error surfaced)

Rules:
- push always completes before pull starts
- at most one sync per account is in flight; a second one is rejected
- the whole attempt is bounded by SYNC_TIMEOUT_SECONDS
- the local document is only replaced after both steps succeeded, and only
  if nobody wrote to it meanwhile (SyncConflictError otherwise)
- no merge: the pushed copy is what comes back (last writer wins)
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from app.core.config import settings
from app.core.errors import FinanceError, SyncConflictError, SyncInProgressError, SyncTimeoutError
from app.core.logging import get_logger
from app.models.ledger import Ledger
from app.repositories.ledger_repo import LedgerRepository
from app.repositories.session_repo import AccountRepository
from app.services.gist_client import GistClient
from app.utils.dates import utcnow

logger = get_logger("sync")


class SyncState(str, Enum):
    IDLE = "idle"
    PUSHING = "pushing"
    PULLING = "pulling"
    FAILED = "failed"


@dataclass
class PushResult:
    gist_id: str
    url: Optional[str]


@dataclass
class SyncResult:
    ledger: Ledger
    gist_id: str
    synced_at: datetime


class SyncCoordinator:
    """Process-wide single-flight guard and state tracker, keyed by account.

    Entries exist only while a sync for that account is in flight.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._states: Dict[str, SyncState] = {}

    def state(self, key: str) -> SyncState:
        return self._states.get(key, SyncState.IDLE)

    def set_state(self, key: str, state: SyncState) -> None:
        logger.info("Sync %s: %s -> %s", key, self.state(key).value, state.value)
        self._states[key] = state

    def is_busy(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def single_flight(self, key: str):
        lock = self._locks.setdefault(key, asyncio.Lock())
        if lock.locked():
            raise SyncInProgressError("A sync is already in progress")
        try:
            async with lock:
                yield
        finally:
            if self._locks.get(key) is lock and not lock.locked():
                del self._locks[key]
                self._states.pop(key, None)


sync_coordinator = SyncCoordinator()


class SyncService:
    def __init__(
        self,
        gist_client: GistClient,
        accounts: AccountRepository,
        account_id: str,
        *,
        ledgers: Optional[LedgerRepository] = None,
        coordinator: Optional[SyncCoordinator] = None,
        timeout: Optional[float] = None,
    ):
        self.gist_client = gist_client
        self.accounts = accounts
        self.account_id = account_id
        self.ledgers = ledgers
        self.coordinator = coordinator or sync_coordinator
        self.timeout = timeout if timeout is not None else settings.SYNC_TIMEOUT_SECONDS

    async def remote_id(self) -> Optional[str]:
        account = await self.accounts.get_account(self.account_id)
        return account.gist_id if account else None

    async def push(self, ledger: Ledger) -> PushResult:
        """Create the gist on first push, overwrite it afterwards."""
        gist_id = await self.remote_id()
        gist = None
        if gist_id:
            gist = await self.gist_client.update_gist(gist_id, ledger)
            if gist is None:
                logger.warning("Gist %s disappeared, creating a new one", gist_id)

        if gist is None:
            gist = await self.gist_client.create_gist(ledger)
            await self.accounts.set_gist_id(self.account_id, gist["id"])

        return PushResult(gist_id=gist["id"], url=gist.get("html_url"))

    async def pull(self, gist_id: Optional[str] = None) -> Ledger:
        """Fetch the remote ledger; missing gist or file yields an empty ledger."""
        gist_id = gist_id or await self.remote_id()
        if not gist_id:
            return Ledger.empty()
        gist = await self.gist_client.get_gist(gist_id)
        return self.gist_client.read_ledger(gist) or Ledger.empty()

    async def sync(self, ledger: Optional[Ledger] = None) -> SyncResult:
        """
        Push then pull, one attempt per account at a time.

        ``ledger`` defaults to the stored local document; when a ledger
        repository is configured the pulled copy replaces it on success.
        """
        key = self.account_id
        async with self.coordinator.single_flight(key):
            try:
                result = await asyncio.wait_for(self._run(ledger), timeout=self.timeout)
            except asyncio.TimeoutError as exc:
                self.coordinator.set_state(key, SyncState.FAILED)
                logger.error("Sync for %s timed out after %.1fs", key, self.timeout)
                raise SyncTimeoutError("Sync timed out") from exc
            except FinanceError as exc:
                self.coordinator.set_state(key, SyncState.FAILED)
                logger.warning("Sync for %s failed: %s", key, exc.message)
                raise
            finally:
                self.coordinator.set_state(key, SyncState.IDLE)
        return result

    async def _run(self, ledger: Optional[Ledger]) -> SyncResult:
        key = self.account_id
        snapshot = await self._load_local()
        if ledger is None:
            ledger = snapshot.model_copy(deep=True)

        self.coordinator.set_state(key, SyncState.PUSHING)
        pushed = await self.push(ledger)

        self.coordinator.set_state(key, SyncState.PULLING)
        pulled = await self.pull(pushed.gist_id)

        if self.ledgers:
            async with self.ledgers.lock():
                current = await self.ledgers.load()
                if current != snapshot:
                    raise SyncConflictError(
                        "Local ledger changed during sync; it was kept, sync again"
                    )
                await self.ledgers.save(pulled)
        return SyncResult(ledger=pulled, gist_id=pushed.gist_id, synced_at=utcnow())

    async def _load_local(self) -> Ledger:
        if not self.ledgers:
            return Ledger.empty()
        async with self.ledgers.lock():
            return await self.ledgers.load()
