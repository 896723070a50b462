"""
Ledger model - the whole persisted finance document.

Design principles:
- One document holds every movement and both debt buckets
- Replaced wholesale on load/save/sync, never diffed
- Movements are immutable once created
- A debt lives only while paid_amount < amount; settlement deletes it
- All amounts are integer pesos (no minor units)

JSON shape (camelCase fields, same as the browser client):
{
    "movements": [{"id", "type", "amount", "description", "date", "timestamp"}],
    "debts": {
        "owed-by-me": [{"id", "person", "amount", "description", "dueDate",
                        "paidAmount", "createdAt", "type"}],
        "owed-to-me": [...]
    }
}
Documents written with the legacy bucket names ("debo"/"meDeben") load too.
"""

import datetime as dt
import math
import uuid
from enum import Enum
from typing import Annotated, Any, Dict, List

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


_LEGACY_DEBT_TYPES = {"debo": "owed-by-me", "meDeben": "owed-to-me"}


def new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _truncate_amount(value: Any) -> Any:
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError("amount must be a finite number")
        return int(value)
    return value


# Older documents stored parseFloat() results
Amount = Annotated[int, BeforeValidator(_truncate_amount)]


class MovementType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class DebtType(str, Enum):
    OWED_BY_ME = "owed-by-me"
    OWED_TO_ME = "owed-to-me"

    @classmethod
    def _missing_(cls, value):
        legacy = _LEGACY_DEBT_TYPES.get(value)
        return cls(legacy) if legacy else None


class LedgerModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Movement(LedgerModel):
    """A single income or expense on a calendar day."""
    id: str = Field(default_factory=new_id)
    type: MovementType
    amount: Amount = Field(..., ge=0)
    description: str = ""
    date: dt.date
    timestamp: dt.datetime = Field(default_factory=_utcnow)

    @property
    def signed_amount(self) -> int:
        return self.amount if self.type == MovementType.INCOME else -self.amount


class Debt(LedgerModel):
    """
    Tracked obligation with cumulative payments.

    Invariants (while the debt is stored):
    - amount > 0
    - 0 <= paid_amount < amount
    """
    id: str = Field(default_factory=new_id)
    person: str
    amount: Amount = Field(..., gt=0)
    description: str = ""
    due_date: dt.date
    paid_amount: Amount = Field(default=0, ge=0)
    created_at: dt.datetime = Field(default_factory=_utcnow)
    type: DebtType

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> Any:
        return _LEGACY_DEBT_TYPES.get(value, value)

    def remaining(self) -> int:
        """How much is still outstanding."""
        return self.amount - self.paid_amount

    def progress(self) -> float:
        """Percentage paid, 0-100."""
        if self.amount <= 0:
            return 0.0
        return min(self.paid_amount / self.amount * 100, 100.0)

    def is_settled(self) -> bool:
        return self.paid_amount >= self.amount

    def is_overdue(self, today: dt.date) -> bool:
        return self.due_date < today and self.remaining() > 0


class DebtBuckets(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    owed_by_me: List[Debt] = Field(
        default_factory=list,
        validation_alias=AliasChoices("owed-by-me", "debo", "owed_by_me"),
        serialization_alias="owed-by-me",
    )
    owed_to_me: List[Debt] = Field(
        default_factory=list,
        validation_alias=AliasChoices("owed-to-me", "meDeben", "owed_to_me"),
        serialization_alias="owed-to-me",
    )

    def bucket(self, debt_type: DebtType) -> List[Debt]:
        if debt_type == DebtType.OWED_BY_ME:
            return self.owed_by_me
        if debt_type == DebtType.OWED_TO_ME:
            return self.owed_to_me
        raise ValueError(f"Unknown debt type: {debt_type!r}")

    def find(self, debt_type: DebtType, debt_id: str) -> Debt | None:
        for debt in self.bucket(debt_type):
            if debt.id == debt_id:
                return debt
        return None


class Ledger(BaseModel):
    """Root aggregate: all movements plus both debt buckets."""
    movements: List[Movement] = Field(default_factory=list)
    debts: DebtBuckets = Field(default_factory=DebtBuckets)

    @classmethod
    def empty(cls) -> "Ledger":
        return cls()

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Ledger":
        return cls.model_validate(document)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
