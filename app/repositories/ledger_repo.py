"""
LedgerRepository - stores the single finance document.

The whole ledger lives in one MongoDB document whose _id is the well-known
storage key (settings.LEDGER_STORAGE_KEY). It is read in full and written in
full; there are no partial updates.

Every load -> change -> save cycle must run under ``repo.lock()`` so two
requests never interleave on the shared document.
"""

import asyncio
import weakref
from datetime import datetime, timezone
from typing import Dict
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.config import settings
from app.models.ledger import Ledger

# One lock per storage key and event loop
_document_locks: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, Dict[str, asyncio.Lock]]" = (
    weakref.WeakKeyDictionary()
)


class LedgerRepository:
    """Repository for the local ledger document."""

    def __init__(self, db: AsyncIOMotorDatabase, storage_key: str | None = None):
        self.db = db
        self.collection = db["documents"]
        self.storage_key = storage_key or settings.LEDGER_STORAGE_KEY

    def lock(self) -> asyncio.Lock:
        """Process-wide lock guarding this document."""
        locks = _document_locks.setdefault(asyncio.get_running_loop(), {})
        return locks.setdefault(self.storage_key, asyncio.Lock())

    async def load(self) -> Ledger:
        """Load the stored ledger, or an empty one if nothing was saved yet."""
        doc = await self.collection.find_one({"_id": self.storage_key})
        if not doc or not doc.get("data"):
            return Ledger.empty()
        return Ledger.from_document(doc["data"])

    async def save(self, ledger: Ledger) -> Ledger:
        """Write the whole ledger back (upsert)."""
        await self.collection.replace_one(
            {"_id": self.storage_key},
            {
                "_id": self.storage_key,
                "data": ledger.to_document(),
                "updated_at": datetime.now(timezone.utc),
            },
            upsert=True
        )
        return ledger

    async def clear(self) -> None:
        async with self.lock():
            await self.collection.delete_one({"_id": self.storage_key})
