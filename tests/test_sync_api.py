"""
Tests for the remote data endpoints (/api/data, /api/sync) and service info.
"""
import pytest

from app.models.ledger import Ledger
from app.repositories.ledger_repo import LedgerRepository
from app.repositories.session_repo import AccountRepository


@pytest.mark.asyncio
async def test_get_data_without_gist(client, auth_headers):
    response = await client.get("/api/data", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"movements": [], "debts": {"owed-by-me": [], "owed-to-me": []}}


@pytest.mark.asyncio
async def test_get_data_requires_session(client):
    response = await client.get("/api/data")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_post_then_get_data(client, auth_headers, fake_db, sample_ledger):
    payload = sample_ledger.to_document()

    response = await client.post("/api/data", json=payload, headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["gistId"] == "gist1"
    assert body["url"] == "https://gist.github.com/gist1"
    assert (await AccountRepository(fake_db).get_account("42")).gist_id == "gist1"

    response = await client.get("/api/data", headers=auth_headers)
    assert Ledger.from_document(response.json()) == sample_ledger


@pytest.mark.asyncio
async def test_post_data_accepts_legacy_keys(client, auth_headers):
    payload = {"movements": [], "debts": {"debo": [], "meDeben": []}}

    response = await client.post("/api/data", json=payload, headers=auth_headers)

    assert response.status_code == 200


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {"movements": []},
    {"debts": {}},
    {"movements": [{"type": "gift"}], "debts": {}},
])
async def test_post_data_rejects_invalid_payload(client, auth_headers, github, payload):
    response = await client.post("/api/data", json=payload, headers=auth_headers)

    assert response.status_code == 400
    assert github.gist_count("POST") == 0


@pytest.mark.asyncio
async def test_post_data_remote_failure(client, auth_headers, github):
    github.fail_with = 500

    response = await client.post("/api/data", json=Ledger.empty().to_document(), headers=auth_headers)

    assert response.status_code == 502


@pytest.mark.asyncio
async def test_sync_round_trip(client, auth_headers, fake_db, sample_ledger, github):
    await LedgerRepository(fake_db).save(sample_ledger)

    response = await client.post("/api/sync", headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert "syncedAt" in body
    assert Ledger.from_document(body["data"]) == sample_ledger
    assert github.gist_count("POST") == 1
    assert github.gist_count("GET") == 1


@pytest.mark.asyncio
async def test_sync_failure_keeps_local(client, auth_headers, fake_db, sample_ledger, github):
    await LedgerRepository(fake_db).save(sample_ledger)
    github.fail_with = 503

    response = await client.post("/api/sync", headers=auth_headers)

    assert response.status_code == 502
    assert await LedgerRepository(fake_db).load() == sample_ledger


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "OK"
    assert data["version"] == "1.0.0"
    assert "timestamp" in data


@pytest.mark.asyncio
async def test_limits(client, auth_headers):
    response = await client.get("/api/limits")
    assert response.json()["githubApi"]["authenticated"] is False

    response = await client.get("/api/limits", headers=auth_headers)
    data = response.json()
    assert data["githubApi"] == {"requestsPerHour": 5000, "authenticated": True}
    assert data["app"] == {"requestsPer15Min": 100}


@pytest.mark.asyncio
async def test_root(client):
    response = await client.get("/")

    assert response.json() == {"message": "Welcome to Finanzas API"}
