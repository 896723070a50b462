import datetime as dt
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_ledger_service
from app.models.ledger import Debt, DebtType, Ledger, Movement
from app.schemas.ledger import (
    CalendarDayResponse,
    DebtCreate,
    DebtListResponse,
    DebtResponse,
    MovementCreate,
    PaymentCreate,
    PaymentResponse,
    SettlementResponse,
    SummaryResponse,
)
from app.services import ledger_service as ledger_ops
from app.services.ledger_service import LedgerService
from app.utils.currency import parse_amount
from app.utils.dates import local_today

router = APIRouter()


def _optional_amount(raw: Optional[str], field: str) -> Optional[int]:
    if raw is None or not raw.strip():
        return None
    return parse_amount(raw, field, minimum=0)


@router.get("", response_model=Ledger)
async def get_ledger(service: LedgerService = Depends(get_ledger_service)):
    """Return the whole local ledger document"""
    return await service.get_ledger()


@router.get("/summary", response_model=SummaryResponse)
async def get_summary(service: LedgerService = Depends(get_ledger_service)):
    """Balance and last recorded movement"""
    summary = await service.summary()
    return SummaryResponse.build(summary.balance, summary.last_movement)


@router.get("/movements", response_model=List[Movement])
async def list_movements(
    min_amount: Optional[str] = Query(None, alias="minAmount"),
    max_amount: Optional[str] = Query(None, alias="maxAmount"),
    description: str = Query(""),
    service: LedgerService = Depends(get_ledger_service)
):
    """List movements, most recent date first, optionally filtered"""
    ledger = await service.get_ledger()
    movements = ledger_ops.filter_movements(
        ledger,
        min_amount=_optional_amount(min_amount, "minAmount"),
        max_amount=_optional_amount(max_amount, "maxAmount"),
        description=description,
    )
    return ledger_ops.sorted_movements(movements)


@router.get("/movements/on/{day}", response_model=List[Movement])
async def list_movements_for_day(
    day: dt.date,
    service: LedgerService = Depends(get_ledger_service)
):
    """Movements recorded on one calendar day"""
    ledger = await service.get_ledger()
    return ledger_ops.movements_for_date(ledger, day)


@router.post("/movements", response_model=Movement, status_code=status.HTTP_201_CREATED)
async def create_movement(
    movement_in: MovementCreate,
    service: LedgerService = Depends(get_ledger_service)
):
    """Record an income or expense"""
    return await service.add_movement(
        movement_in.type,
        movement_in.amount,
        movement_in.description,
        movement_in.date,
    )


@router.get("/debts", response_model=DebtListResponse)
async def list_debts(service: LedgerService = Depends(get_ledger_service)):
    """Active debts per bucket, soonest due first"""
    ledger = await service.get_ledger()
    today = local_today()
    return DebtListResponse(
        owed_by_me=[
            DebtResponse.from_debt(d, today)
            for d in ledger_ops.active_debts(ledger, DebtType.OWED_BY_ME)
        ],
        owed_to_me=[
            DebtResponse.from_debt(d, today)
            for d in ledger_ops.active_debts(ledger, DebtType.OWED_TO_ME)
        ],
    )


@router.post("/debts", response_model=Debt, status_code=status.HTTP_201_CREATED)
async def create_debt(
    debt_in: DebtCreate,
    service: LedgerService = Depends(get_ledger_service)
):
    """Track a new debt (due date cannot be in the past)"""
    return await service.add_debt(
        debt_in.type,
        debt_in.person,
        debt_in.amount,
        debt_in.description,
        debt_in.due_date,
    )


@router.post("/debts/{debt_type}/{debt_id}/payments", response_model=PaymentResponse)
async def create_payment(
    debt_type: DebtType,
    debt_id: str,
    payment_in: PaymentCreate,
    service: LedgerService = Depends(get_ledger_service)
):
    """Record a partial (or settling) payment on a debt"""
    result = await service.apply_payment(
        debt_id,
        debt_type,
        payment_in.amount,
        payment_in.new_due_date,
    )
    return PaymentResponse(
        movement=result.movement,
        final_movement=result.final_movement,
        debt_removed=result.debt_removed,
        debt=None if result.debt_removed else DebtResponse.from_debt(result.debt, local_today()),
    )


@router.post("/debts/{debt_type}/{debt_id}/settle", response_model=SettlementResponse)
async def settle_debt(
    debt_type: DebtType,
    debt_id: str,
    service: LedgerService = Depends(get_ledger_service)
):
    """Mark a debt as fully paid"""
    result = await service.mark_fully_paid(debt_id, debt_type)
    return SettlementResponse(movement=result.movement, debt_removed=result.debt_removed)


@router.get("/calendar/{year}/{month}", response_model=List[CalendarDayResponse])
async def get_month_calendar(
    year: int,
    month: int,
    service: LedgerService = Depends(get_ledger_service)
):
    """Per-day income/expense totals for a month"""
    ledger = await service.get_ledger()
    return [
        CalendarDayResponse(
            date=day.date,
            income=day.income,
            expense=day.expense,
            movement_count=day.movement_count,
            has_movements=day.has_movements,
            has_expenses=day.has_expenses,
        )
        for day in ledger_ops.month_calendar(ledger, year, month)
    ]
