"""Peso amount formatting and parsing (es-CO: '.' groups thousands, no decimals)."""
import math
from typing import Union

from app.core.errors import ValidationError

# Largest integer MongoDB stores natively (int64)
MAX_AMOUNT = 2**63 - 1


def format_amount(amount: Union[int, float]) -> str:
    """Format an amount as a truncated integer with '.' thousands separators.

    >>> format_amount(1234567.9)
    '1.234.567'
    """
    value = int(amount)
    grouped = f"{abs(value):,}".replace(",", ".")
    return f"-{grouped}" if value < 0 else grouped


def parse_amount(raw: Union[str, int, float], field: str = "amount", minimum: int = 1) -> int:
    """
    Parse a user-entered amount into a positive integer.

    Rules:
    - '$', spaces and '.' grouping separators are stripped
    - anything after a ',' decimal separator is dropped
    - the rest must be digits and the value must be >= minimum (default 1)
    - numeric input must be finite and the result fit in MAX_AMOUNT
    """
    if isinstance(raw, bool):
        raise ValidationError(f"Invalid {field}: {raw!r}")

    if isinstance(raw, float) and not math.isfinite(raw):
        raise ValidationError(f"Invalid {field}: {raw!r} is not a finite number")

    if isinstance(raw, (int, float)):
        value = int(raw)
    else:
        text = str(raw).strip().replace("$", "").replace(" ", "").replace(".", "")
        text = text.split(",", 1)[0]
        if not text.isdigit():
            raise ValidationError(f"Invalid {field}: {raw!r} is not a number")
        if len(text) > len(str(MAX_AMOUNT)):
            raise ValidationError(f"Invalid {field}: too large")
        value = int(text)

    if value > MAX_AMOUNT:
        raise ValidationError(f"Invalid {field}: too large")
    if value < minimum:
        raise ValidationError(f"Invalid {field}: must be at least {minimum}")
    return value
