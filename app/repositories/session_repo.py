"""
Account and session storage.

- accounts: one per GitHub user, holds the gist id once the first push
  created it so later sessions keep syncing into the same gist
- sessions: server-side login sessions, referenced by the JWT "sub" claim
"""

import secrets
from datetime import datetime, timezone
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.session import Account, Session


class AccountRepository:
    """GitHub account records."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["accounts"]

    async def upsert_account(self, github_id: str, username: str) -> Account:
        """Create the account on first login, refresh the username otherwise."""
        now = datetime.now(timezone.utc)
        await self.collection.update_one(
            {"_id": github_id},
            {
                "$set": {"username": username, "updated_at": now},
                "$setOnInsert": {"gist_id": None, "created_at": now},
            },
            upsert=True
        )
        return await self.get_account(github_id)

    async def get_account(self, github_id: str) -> Account | None:
        doc = await self.collection.find_one({"_id": github_id})
        if doc:
            return Account(**doc)
        return None

    async def set_gist_id(self, github_id: str, gist_id: str) -> None:
        await self.collection.update_one(
            {"_id": github_id},
            {"$set": {"gist_id": gist_id, "updated_at": datetime.now(timezone.utc)}}
        )


class SessionRepository:
    """Server-side sessions."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["sessions"]

    async def create_session(self, github_id: str, username: str, access_token: str) -> Session:
        session_dict = {
            "_id": secrets.token_urlsafe(32),
            "github_id": github_id,
            "username": username,
            "access_token": access_token,
            "created_at": datetime.now(timezone.utc),
        }
        await self.collection.insert_one(session_dict)
        return Session(**session_dict)

    async def get_session(self, session_id: str) -> Session | None:
        doc = await self.collection.find_one({"_id": session_id})
        if doc:
            return Session(**doc)
        return None

    async def delete_session(self, session_id: str) -> bool:
        result = await self.collection.delete_one({"_id": session_id})
        return result.deleted_count > 0
