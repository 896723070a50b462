import asyncio
import copy
import json
import datetime as dt
import httpx
import pytest
import pytest_asyncio
from fastapi import Depends
from httpx import AsyncClient, ASGITransport

from app.main import app
from app.api.deps import get_gist_client, get_oauth_client
from app.core import rate_limit
from app.core.auth import create_session_token, get_current_session
from app.db.mongo import get_db
from app.models.ledger import Debt, DebtType, Ledger, Movement, MovementType
from app.models.session import Session
from app.repositories.session_repo import AccountRepository, SessionRepository
from app.services.gist_client import GistClient
from app.services.github_oauth import GitHubOAuthClient


# ===== IN-MEMORY MONGO =====

class _Result:
    def __init__(self, inserted_id=None, deleted_count=0, modified_count=0):
        self.inserted_id = inserted_id
        self.deleted_count = deleted_count
        self.modified_count = modified_count


class FakeCollection:
    """Just enough of a motor collection for the repositories."""

    def __init__(self):
        self.docs = {}

    def _match(self, doc, query):
        return all(doc.get(key) == value for key, value in query.items())

    def _find(self, query):
        for doc in self.docs.values():
            if self._match(doc, query):
                return doc
        return None

    async def find_one(self, query):
        doc = self._find(query)
        found = copy.deepcopy(doc) if doc else None
        # hand control back like a real round trip would
        await asyncio.sleep(0)
        return found

    async def insert_one(self, doc):
        self.docs[doc["_id"]] = copy.deepcopy(doc)
        return _Result(inserted_id=doc["_id"])

    async def replace_one(self, query, doc, upsert=False):
        existing = self._find(query)
        if existing is None and not upsert:
            return _Result()
        self.docs[doc["_id"]] = copy.deepcopy(doc)
        return _Result(modified_count=1)

    async def update_one(self, query, update, upsert=False):
        doc = self._find(query)
        if doc is None:
            if not upsert:
                return _Result()
            doc = dict(query)
            doc.update(copy.deepcopy(update.get("$setOnInsert", {})))
            self.docs[doc["_id"]] = doc
        doc.update(copy.deepcopy(update.get("$set", {})))
        return _Result(modified_count=1)

    async def delete_one(self, query):
        doc = self._find(query)
        if doc is None:
            return _Result()
        del self.docs[doc["_id"]]
        return _Result(deleted_count=1)


class FakeDatabase:
    def __init__(self):
        self.collections = {}

    def __getitem__(self, name):
        return self.collections.setdefault(name, FakeCollection())


@pytest.fixture
def fake_db():
    return FakeDatabase()


# ===== FAKE GITHUB =====

class FakeGitHub:
    """Serves the OAuth and Gist endpoints the app calls."""

    def __init__(self):
        self.gists = {}
        self.requests = []
        self.fail_with = None
        self._counter = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append((request.method, path))

        if request.method == "POST" and path == "/login/oauth/access_token":
            return httpx.Response(200, json={"access_token": "gho_test", "token_type": "bearer"})
        if request.method == "GET" and path == "/user":
            return httpx.Response(200, json={"id": 42, "login": "juan"})

        if self.fail_with:
            return httpx.Response(self.fail_with, json={"message": "Server Error"})

        if request.method == "POST" and path == "/gists":
            body = json.loads(request.content)
            self._counter += 1
            gist_id = f"gist{self._counter}"
            gist = {
                "id": gist_id,
                "html_url": f"https://gist.github.com/{gist_id}",
                "public": body["public"],
                "description": body["description"],
                "files": {
                    name: {"filename": name, "content": f["content"]}
                    for name, f in body["files"].items()
                },
            }
            self.gists[gist_id] = gist
            return httpx.Response(201, json=gist)

        if path.startswith("/gists/"):
            gist = self.gists.get(path.rsplit("/", 1)[-1])
            if gist is None:
                return httpx.Response(404, json={"message": "Not Found"})
            if request.method == "PATCH":
                body = json.loads(request.content)
                for name, f in body["files"].items():
                    gist["files"][name] = {"filename": name, "content": f["content"]}
            return httpx.Response(200, json=gist)

        return httpx.Response(404, json={"message": "Not Found"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def gist_count(self, method: str) -> int:
        return sum(1 for m, p in self.requests if m == method and p.startswith("/gists"))


@pytest.fixture
def github():
    return FakeGitHub()


# ===== SAMPLE DATA =====

@pytest.fixture
def sample_ledger():
    """Two movements and one debt in each bucket."""
    return Ledger(
        movements=[
            Movement(
                id="m1",
                type=MovementType.INCOME,
                amount=200000,
                description="Salario",
                date=dt.date(2024, 3, 1),
                timestamp=dt.datetime(2024, 3, 1, 9, 0, tzinfo=dt.timezone.utc),
            ),
            Movement(
                id="m2",
                type=MovementType.EXPENSE,
                amount=45000,
                description="Mercado",
                date=dt.date(2024, 3, 2),
                timestamp=dt.datetime(2024, 3, 2, 18, 30, tzinfo=dt.timezone.utc),
            ),
        ],
        debts={
            "owed-by-me": [
                Debt(
                    id="d1",
                    type=DebtType.OWED_BY_ME,
                    person="Ana",
                    amount=100000,
                    description="Préstamo",
                    due_date=dt.date(2099, 1, 1),
                    created_at=dt.datetime(2024, 3, 1, tzinfo=dt.timezone.utc),
                )
            ],
            "owed-to-me": [
                Debt(
                    id="d2",
                    type=DebtType.OWED_TO_ME,
                    person="Luis",
                    amount=50000,
                    due_date=dt.date(2099, 6, 1),
                    created_at=dt.datetime(2024, 3, 1, tzinfo=dt.timezone.utc),
                )
            ],
        },
    )


# ===== API CLIENT =====

@pytest_asyncio.fixture
async def client(fake_db, github):
    """API client over the in-memory database and fake GitHub."""

    def _gist_client(session: Session = Depends(get_current_session)):
        return GistClient(session.access_token, transport=github.transport())

    app.dependency_overrides[get_db] = lambda: fake_db
    app.dependency_overrides[get_gist_client] = _gist_client
    app.dependency_overrides[get_oauth_client] = lambda: GitHubOAuthClient(
        "client-id", "client-secret", transport=github.transport()
    )
    rate_limit.storage.reset()
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def user_session(fake_db):
    """Logged-in GitHub user with a live session."""
    await AccountRepository(fake_db).upsert_account("42", "juan")
    return await SessionRepository(fake_db).create_session("42", "juan", "gho_test")


@pytest_asyncio.fixture
async def auth_headers(user_session):
    return {"Authorization": f"Bearer {create_session_token(user_session.id)}"}
