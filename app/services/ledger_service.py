"""
Ledger transitions and read models.

Every mutating function works on a deep copy of the ledger and returns
``(new_ledger, result)``: callers see either all of a transition's changes
or, when it raises, none of them. ``LedgerService`` wraps the functions with
the load -> transition -> save cycle against ``LedgerRepository``.
"""

import calendar
import datetime as dt
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from app.core.config import settings
from app.core.errors import NotFoundError, ValidationError
from app.core.logging import get_logger
from app.models.ledger import Debt, DebtType, Ledger, Movement, MovementType
from app.repositories.ledger_repo import LedgerRepository
from app.utils.dates import local_today

logger = get_logger("ledger")

NO_DESCRIPTION = "Sin descripción"


@dataclass
class PaymentResult:
    movement: Movement
    final_movement: Optional[Movement]
    debt_removed: bool
    debt: Debt


@dataclass
class SettlementResult:
    movement: Optional[Movement]
    debt_removed: bool
    debt: Debt


@dataclass
class LedgerSummary:
    balance: int
    last_movement: Optional[Movement]


@dataclass
class CalendarDay:
    date: dt.date
    income: int
    expense: int
    movement_count: int

    @property
    def has_movements(self) -> bool:
        return self.movement_count > 0

    @property
    def has_expenses(self) -> bool:
        # A day is flagged when it spent more than it earned
        return self.expense > self.income


# ===== MOVEMENT GENERATION =====

def movement_type_for(debt_type: DebtType) -> MovementType:
    """Paying my debt is an expense; being paid back is income."""
    if debt_type == DebtType.OWED_BY_ME:
        return MovementType.EXPENSE
    if debt_type == DebtType.OWED_TO_ME:
        return MovementType.INCOME
    raise ValueError(f"Unknown debt type: {debt_type!r}")


def payment_description(debt: Debt, debt_type: DebtType) -> str:
    detail = debt.description or NO_DESCRIPTION
    if debt_type == DebtType.OWED_BY_ME:
        return f'Abono a "{debt.person}" - {detail}'
    if debt_type == DebtType.OWED_TO_ME:
        return f'Me abono "{debt.person}" - {detail}'
    raise ValueError(f"Unknown debt type: {debt_type!r}")


def settlement_description(debt: Debt, debt_type: DebtType) -> str:
    detail = debt.description or NO_DESCRIPTION
    if debt_type == DebtType.OWED_BY_ME:
        return f'Pago final deuda "{debt.person}" - {detail}'
    if debt_type == DebtType.OWED_TO_ME:
        return f'Me paga "{debt.person}" - {detail}'
    raise ValueError(f"Unknown debt type: {debt_type!r}")


def _debt_movement(debt_type: DebtType, amount: int, description: str, today: dt.date) -> Movement:
    return Movement(
        type=movement_type_for(debt_type),
        amount=amount,
        description=description,
        date=today,
    )


def _require_debt(ledger: Ledger, debt_type: DebtType, debt_id: str) -> Debt:
    debt = ledger.debts.find(debt_type, debt_id)
    if debt is None:
        raise NotFoundError(f"Debt {debt_id} not found in {debt_type.value}")
    return debt


def _remove_debt(ledger: Ledger, debt_type: DebtType, debt_id: str) -> None:
    bucket = ledger.debts.bucket(debt_type)
    bucket[:] = [d for d in bucket if d.id != debt_id]


# ===== TRANSITIONS =====

def add_movement(
    ledger: Ledger,
    movement_type: MovementType,
    amount: int,
    description: str,
    date: dt.date,
) -> Tuple[Ledger, Movement]:
    if amount <= 0:
        raise ValidationError("Movement amount must be greater than zero")

    movement = Movement(type=movement_type, amount=amount, description=description, date=date)
    updated = ledger.model_copy(deep=True)
    updated.movements.append(movement)
    return updated, movement


def add_debt(
    ledger: Ledger,
    debt_type: DebtType,
    person: str,
    amount: int,
    description: str,
    due_date: dt.date,
) -> Tuple[Ledger, Debt]:
    if amount <= 0:
        raise ValidationError("Debt amount must be greater than zero")
    if not person or not person.strip():
        raise ValidationError("Debt person is required")

    debt = Debt(
        type=debt_type,
        person=person.strip(),
        amount=amount,
        description=description,
        due_date=due_date,
        paid_amount=0,
    )
    updated = ledger.model_copy(deep=True)
    updated.debts.bucket(debt_type).append(debt)
    return updated, debt


def apply_payment(
    ledger: Ledger,
    debt_id: str,
    debt_type: DebtType,
    payment_amount: int,
    new_due_date: Optional[dt.date] = None,
    today: Optional[dt.date] = None,
    legacy_double_settlement: Optional[bool] = None,
) -> Tuple[Ledger, PaymentResult]:
    """
    Record a payment against a debt.

    Algorithm:
    1. Find the debt in its bucket (NotFoundError otherwise)
    2. Add the payment to paid_amount (no clamp) and move the due date if asked
    3. Emit one movement for the payment, dated today
    4. If paid_amount reached amount, drop the debt

    With ``legacy_double_settlement`` a settling payment also emits a second
    movement of ``amount - previous_paid``, which double-counts the overlap
    with the payment movement. It is off unless enabled in settings.
    """
    if payment_amount <= 0:
        raise ValidationError("Payment amount must be greater than zero")
    if legacy_double_settlement is None:
        legacy_double_settlement = settings.LEGACY_DOUBLE_SETTLEMENT
    today = today or local_today()

    updated = ledger.model_copy(deep=True)
    debt = _require_debt(updated, debt_type, debt_id)

    previous_paid = debt.paid_amount
    debt.paid_amount += payment_amount
    if new_due_date is not None:
        debt.due_date = new_due_date

    movement = _debt_movement(debt_type, payment_amount, payment_description(debt, debt_type), today)
    updated.movements.append(movement)

    final_movement = None
    debt_removed = False
    if debt.is_settled():
        remaining = debt.amount - previous_paid
        if legacy_double_settlement and remaining > 0:
            final_movement = _debt_movement(debt_type, remaining, settlement_description(debt, debt_type), today)
            updated.movements.append(final_movement)
        _remove_debt(updated, debt_type, debt_id)
        debt_removed = True

    return updated, PaymentResult(
        movement=movement,
        final_movement=final_movement,
        debt_removed=debt_removed,
        debt=debt,
    )


def mark_fully_paid(
    ledger: Ledger,
    debt_id: str,
    debt_type: DebtType,
    today: Optional[dt.date] = None,
) -> Tuple[Ledger, SettlementResult]:
    """Settle the outstanding balance in one movement and drop the debt."""
    today = today or local_today()

    updated = ledger.model_copy(deep=True)
    debt = _require_debt(updated, debt_type, debt_id)

    remaining = debt.remaining()
    movement = None
    if remaining > 0:
        movement = _debt_movement(debt_type, remaining, settlement_description(debt, debt_type), today)
        updated.movements.append(movement)

    debt.paid_amount = debt.amount
    _remove_debt(updated, debt_type, debt_id)
    return updated, SettlementResult(movement=movement, debt_removed=True, debt=debt)


# ===== READ MODELS =====

def filter_movements(
    ledger: Ledger,
    min_amount: Optional[int] = None,
    max_amount: Optional[float] = None,
    description: str = "",
) -> List[Movement]:
    """Inclusive amount range plus case-insensitive description substring."""
    low = 0 if min_amount is None else min_amount
    high = math.inf if max_amount is None else max_amount
    needle = (description or "").casefold()

    return [
        m for m in ledger.movements
        if low <= m.amount <= high and (not needle or needle in m.description.casefold())
    ]


def movements_for_date(ledger: Ledger, day: dt.date) -> List[Movement]:
    return [m for m in ledger.movements if m.date == day]


def balance(ledger: Ledger) -> int:
    income = sum(m.amount for m in ledger.movements if m.type == MovementType.INCOME)
    expense = sum(m.amount for m in ledger.movements if m.type == MovementType.EXPENSE)
    return income - expense


def last_movement(ledger: Ledger) -> Optional[Movement]:
    """Latest by creation timestamp; the first inserted wins ties."""
    if not ledger.movements:
        return None
    return max(ledger.movements, key=lambda m: m.timestamp)


def summary(ledger: Ledger) -> LedgerSummary:
    return LedgerSummary(balance=balance(ledger), last_movement=last_movement(ledger))


def sorted_movements(movements: List[Movement]) -> List[Movement]:
    """Most recent date first; equal dates keep insertion order."""
    return sorted(movements, key=lambda m: m.date, reverse=True)


def sorted_debts(debts: List[Debt]) -> List[Debt]:
    """Soonest due first; equal dates keep insertion order."""
    return sorted(debts, key=lambda d: d.due_date)


def active_debts(ledger: Ledger, debt_type: DebtType) -> List[Debt]:
    return sorted_debts([d for d in ledger.debts.bucket(debt_type) if not d.is_settled()])


def month_calendar(ledger: Ledger, year: int, month: int) -> List[CalendarDay]:
    """Per-day totals for every day of a month."""
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid month: {month}")

    _, days_in_month = calendar.monthrange(year, month)
    days = []
    for day_number in range(1, days_in_month + 1):
        day = dt.date(year, month, day_number)
        movements = movements_for_date(ledger, day)
        days.append(CalendarDay(
            date=day,
            income=sum(m.amount for m in movements if m.type == MovementType.INCOME),
            expense=sum(m.amount for m in movements if m.type == MovementType.EXPENSE),
            movement_count=len(movements),
        ))
    return days


def enforce_future_due_date(due_date: dt.date, today: Optional[dt.date] = None) -> None:
    """New debts cannot start out overdue."""
    today = today or local_today()
    if due_date < today:
        raise ValidationError(f"Due date {due_date.isoformat()} is in the past")


# ===== PERSISTENT SERVICE =====

class LedgerService:
    """Runs each transition against the stored document and saves it back."""

    def __init__(self, repository: LedgerRepository):
        self.repository = repository

    async def get_ledger(self) -> Ledger:
        return await self.repository.load()

    async def _commit(self, transition, *args):
        """Run one transition with the document locked from load to save."""
        async with self.repository.lock():
            ledger = await self.repository.load()
            ledger, result = transition(ledger, *args)
            await self.repository.save(ledger)
        return result

    async def add_movement(
        self,
        movement_type: MovementType,
        amount: int,
        description: str,
        date: dt.date,
    ) -> Movement:
        movement = await self._commit(add_movement, movement_type, amount, description, date)
        logger.info("Added %s movement %s (%d)", movement.type.value, movement.id, movement.amount)
        return movement

    async def add_debt(
        self,
        debt_type: DebtType,
        person: str,
        amount: int,
        description: str,
        due_date: dt.date,
    ) -> Debt:
        enforce_future_due_date(due_date)
        debt = await self._commit(add_debt, debt_type, person, amount, description, due_date)
        logger.info("Added %s debt %s (%d)", debt.type.value, debt.id, debt.amount)
        return debt

    async def apply_payment(
        self,
        debt_id: str,
        debt_type: DebtType,
        payment_amount: int,
        new_due_date: Optional[dt.date] = None,
    ) -> PaymentResult:
        result = await self._commit(apply_payment, debt_id, debt_type, payment_amount, new_due_date)
        logger.info(
            "Payment of %d on %s debt %s (removed=%s)",
            payment_amount, debt_type.value, debt_id, result.debt_removed,
        )
        return result

    async def mark_fully_paid(self, debt_id: str, debt_type: DebtType) -> SettlementResult:
        result = await self._commit(mark_fully_paid, debt_id, debt_type)
        logger.info("Marked %s debt %s as paid", debt_type.value, debt_id)
        return result

    async def summary(self) -> LedgerSummary:
        return summary(await self.repository.load())
