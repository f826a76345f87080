"""Utilities for working with monetary values in fintrans."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

CENT = Decimal("0.01")

AmountLike = Union[Decimal, int, float, str]


def exact_decimal(value: AmountLike) -> Decimal:
    """Convert ``value`` to a finite :class:`~decimal.Decimal` without rounding."""

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise TypeError(f"Unsupported amount type: {type(value)!r}")
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        result = Decimal(value)
    else:
        raise TypeError(f"Unsupported amount type: {type(value)!r}")

    if not result.is_finite():
        raise ValueError(f"Amount must be a finite number, got {value!r}.")
    return result


def to_decimal(value: AmountLike) -> Decimal:
    """Convert ``value`` to a :class:`~decimal.Decimal` with two decimal places."""

    return exact_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def parse_amount(raw: str | None) -> Decimal:
    """Parse free-form user input such as ``" 12.5 "`` into a cent amount.

    Raises :class:`ValueError` for blank, unparsable or non-finite input.
    """

    text = (raw or "").strip()
    if not text:
        raise ValueError("Amount is required.")
    try:
        return to_decimal(text)
    except InvalidOperation as exc:
        raise ValueError(f"Not a number: {raw!r}") from exc


def require_positive(amount: Decimal, *, allow_zero: bool = False) -> Decimal:
    """Ensure ``amount`` is positive (or non-negative when ``allow_zero`` is true)."""

    if allow_zero:
        if amount < Decimal("0"):
            raise ValueError("Amount must be zero or greater.")
    else:
        if amount <= Decimal("0"):
            raise ValueError("Amount must be greater than zero.")
    return amount


def format_currency(amount: Decimal) -> str:
    """Return ``amount`` as a currency formatted string (e.g. ``$12.34``)."""

    return f"${amount.quantize(CENT, rounding=ROUND_HALF_UP):,.2f}"
