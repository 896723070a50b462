"""Request and response bodies for the ledger endpoints (camelCase on the wire)."""
import datetime as dt
from typing import Annotated, List, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.core.errors import ValidationError
from app.models.ledger import Debt, DebtType, Movement, MovementType
from app.utils.currency import format_amount, parse_amount


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _parse_amount_field(value: Union[int, str]) -> int:
    try:
        return parse_amount(value)
    except ValidationError as exc:
        raise ValueError(exc.message) from exc


# Accepts ints or formatted text ("1.500.000")
AmountField = Annotated[int, BeforeValidator(_parse_amount_field)]


class MovementCreate(CamelModel):
    type: MovementType
    amount: AmountField
    description: str = Field(default="", max_length=500)
    date: dt.date


class DebtCreate(CamelModel):
    type: DebtType
    person: str = Field(..., min_length=1, max_length=100)
    amount: AmountField
    description: str = Field(default="", max_length=500)
    due_date: dt.date


class PaymentCreate(CamelModel):
    amount: AmountField
    new_due_date: Optional[dt.date] = None


class DebtResponse(Debt):
    """Stored debt plus the derived values the debt list shows."""
    remaining_amount: int
    progress_percent: float
    overdue: bool

    @classmethod
    def from_debt(cls, debt: Debt, today: dt.date) -> "DebtResponse":
        return cls(
            **debt.model_dump(),
            remaining_amount=debt.remaining(),
            progress_percent=round(debt.progress(), 2),
            overdue=debt.is_overdue(today),
        )


class DebtListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    owed_by_me: List[DebtResponse] = Field(alias="owed-by-me")
    owed_to_me: List[DebtResponse] = Field(alias="owed-to-me")


class PaymentResponse(CamelModel):
    movement: Movement
    final_movement: Optional[Movement] = None
    debt_removed: bool
    debt: Optional[DebtResponse] = None


class SettlementResponse(CamelModel):
    movement: Optional[Movement] = None
    debt_removed: bool = True


class SummaryResponse(CamelModel):
    balance: int
    balance_formatted: str
    last_movement: Optional[Movement] = None

    @classmethod
    def build(cls, balance: int, last_movement: Optional[Movement]) -> "SummaryResponse":
        return cls(
            balance=balance,
            balance_formatted=format_amount(balance),
            last_movement=last_movement,
        )


class CalendarDayResponse(CamelModel):
    date: dt.date
    income: int
    expense: int
    movement_count: int
    has_movements: bool
    has_expenses: bool
