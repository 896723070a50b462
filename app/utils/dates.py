"""Ledger-local calendar helpers."""
import datetime as dt
from zoneinfo import ZoneInfo

from app.core.config import settings


def local_today(tz_name: str | None = None) -> dt.date:
    """Today's calendar day in the ledger's timezone, not the server's."""
    tz = ZoneInfo(tz_name or settings.TIMEZONE)
    return dt.datetime.now(tz).date()


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)
