"""Shared FastAPI dependencies."""
from fastapi import Depends

from app.core.auth import get_current_session
from app.db.mongo import get_db
from app.models.session import Session
from app.repositories.ledger_repo import LedgerRepository
from app.repositories.session_repo import AccountRepository
from app.services.gist_client import GistClient
from app.services.github_oauth import GitHubOAuthClient
from app.services.ledger_service import LedgerService
from app.services.sync_service import SyncService


def get_ledger_repository(db = Depends(get_db)) -> LedgerRepository:
    return LedgerRepository(db)


def get_ledger_service(repository: LedgerRepository = Depends(get_ledger_repository)) -> LedgerService:
    return LedgerService(repository)


def get_oauth_client() -> GitHubOAuthClient:
    return GitHubOAuthClient()


def get_gist_client(session: Session = Depends(get_current_session)) -> GistClient:
    return GistClient(session.access_token)


def get_sync_service(
    session: Session = Depends(get_current_session),
    gist_client: GistClient = Depends(get_gist_client),
    ledgers: LedgerRepository = Depends(get_ledger_repository),
    db = Depends(get_db)
) -> SyncService:
    return SyncService(
        gist_client,
        AccountRepository(db),
        session.github_id,
        ledgers=ledgers,
    )
