"""Conversions between rupee amounts and integer paise."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Union

PAISE_PER_RUPEE = 100

AmountInput = Union[Decimal, int, float, str, None]


class AmountFormatError(ValueError):
    """Raised when a rupee amount cannot be expressed as positive whole paise."""

    def __init__(self, message: str = "Invalid amount") -> None:
        super().__init__(message)


def to_paise(value: AmountInput) -> int:
    """Convert a rupee amount from a request body into positive integer paise.

    Floats are converted through their ``repr`` so ``10.1`` becomes ``1010``
    rather than the binary approximation. More than two decimal places,
    non-finite values and anything not strictly positive raise ``AmountFormatError``.
    """
    if value is None or isinstance(value, bool):
        raise AmountFormatError()
    try:
        amount = Decimal(repr(value)) if isinstance(value, float) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise AmountFormatError() from exc

    if not amount.is_finite() or amount <= 0:
        raise AmountFormatError()
    paise = amount * PAISE_PER_RUPEE
    if paise != paise.to_integral_value():
        raise AmountFormatError("Amount cannot have more than two decimal places")
    return int(paise)


def to_rupees(paise: int) -> Decimal:
    return (Decimal(paise) / PAISE_PER_RUPEE).quantize(Decimal("0.01"))


def format_inr(paise: int) -> str:
    """Render paise as a display string, e.g. ``₹1,234.50``."""
    sign = "-" if paise < 0 else ""
    return f"{sign}₹{to_rupees(abs(paise)):,.2f}"


__all__ = ["PAISE_PER_RUPEE", "AmountFormatError", "to_paise", "to_rupees", "format_inr"]
