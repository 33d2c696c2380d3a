# Overview: Conversion between decimal amounts on the wire and integer cents in storage.

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

_CENT = Decimal("0.01")


def to_cents(value) -> int:
    """
    Convert a JSON amount (int, float or numeric string) to integer cents.

    Rounds half-up to the nearest cent. Raises ValueError on anything that is
    not a finite number (booleans included) or too large to quantize.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError("amount must be a number")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError("amount must be a number")
    if not amount.is_finite():
        raise ValueError("amount must be a finite number")
    try:
        cents = amount.quantize(_CENT, rounding=ROUND_HALF_UP) * 100
    except InvalidOperation:
        # More digits than the decimal context can hold (e.g. 1e30)
        raise ValueError("amount is out of range")
    return int(cents.to_integral_value())


def from_cents(cents: int | None) -> float | None:
    """Integer cents -> JSON amount with two decimal places."""
    if cents is None:
        return None
    return float(Decimal(int(cents)) / 100)


def format_amount(cents: int | None, symbol: str = "$") -> str:
    """Human-readable amount for CSV/HTML exports: 1234 -> "$12.34"."""
    value = Decimal(int(cents or 0)) / 100
    return f"{symbol}{value:.2f}"
