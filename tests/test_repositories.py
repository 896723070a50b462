"""Tests for ledger, account and session repositories."""
import pytest

from app.models.ledger import Ledger
from app.repositories.ledger_repo import LedgerRepository
from app.repositories.session_repo import AccountRepository, SessionRepository


@pytest.mark.asyncio
class TestLedgerRepository:
    """Load/save of the single ledger document."""

    async def test_load_without_document_is_empty(self, fake_db):
        ledger = await LedgerRepository(fake_db).load()

        assert ledger == Ledger.empty()

    async def test_save_then_load(self, fake_db, sample_ledger):
        repo = LedgerRepository(fake_db)

        await repo.save(sample_ledger)

        assert await repo.load() == sample_ledger
        stored = fake_db["documents"].docs["financeAppData"]
        assert set(stored["data"]["debts"]) == {"owed-by-me", "owed-to-me"}

    async def test_save_overwrites_whole_document(self, fake_db, sample_ledger):
        repo = LedgerRepository(fake_db)
        await repo.save(sample_ledger)

        await repo.save(Ledger.empty())

        assert await repo.load() == Ledger.empty()
        assert len(fake_db["documents"].docs) == 1

    async def test_storage_key_is_configurable(self, fake_db, sample_ledger):
        await LedgerRepository(fake_db, storage_key="other").save(sample_ledger)

        assert await LedgerRepository(fake_db).load() == Ledger.empty()
        assert await LedgerRepository(fake_db, storage_key="other").load() == sample_ledger

    async def test_clear(self, fake_db, sample_ledger):
        repo = LedgerRepository(fake_db)
        await repo.save(sample_ledger)

        await repo.clear()

        assert await repo.load() == Ledger.empty()

    async def test_lock_is_shared_per_document(self, fake_db):
        first = LedgerRepository(fake_db)
        second = LedgerRepository(fake_db)

        assert first.lock() is second.lock()
        assert first.lock() is not LedgerRepository(fake_db, storage_key="other").lock()


@pytest.mark.asyncio
class TestAccountRepository:

    async def test_upsert_creates_account_without_gist(self, fake_db):
        account = await AccountRepository(fake_db).upsert_account("42", "juan")

        assert account.github_id == "42"
        assert account.username == "juan"
        assert account.gist_id is None

    async def test_upsert_keeps_gist_id(self, fake_db):
        repo = AccountRepository(fake_db)
        await repo.upsert_account("42", "juan")
        await repo.set_gist_id("42", "abc")

        account = await repo.upsert_account("42", "juan-renamed")

        assert account.gist_id == "abc"
        assert account.username == "juan-renamed"

    async def test_get_missing_account(self, fake_db):
        assert await AccountRepository(fake_db).get_account("nobody") is None


@pytest.mark.asyncio
class TestSessionRepository:

    async def test_create_and_get(self, fake_db):
        repo = SessionRepository(fake_db)

        session = await repo.create_session("42", "juan", "gho_test")
        found = await repo.get_session(session.id)

        assert found == session
        assert found.access_token == "gho_test"

    async def test_session_ids_are_unique(self, fake_db):
        repo = SessionRepository(fake_db)

        first = await repo.create_session("42", "juan", "t1")
        second = await repo.create_session("42", "juan", "t2")

        assert first.id != second.id

    async def test_delete(self, fake_db):
        repo = SessionRepository(fake_db)
        session = await repo.create_session("42", "juan", "gho_test")

        assert await repo.delete_session(session.id) is True
        assert await repo.get_session(session.id) is None
        assert await repo.delete_session(session.id) is False
