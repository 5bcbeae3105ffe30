"""
Studio Money - Integer Minor-Unit Arithmetic
==============================================
Every percentage, total and remainder in the engine is computed here.

RULES (NON-NEGOTIABLE):
- Amounts are integer cents. No floats, no Decimal round-tripping.
- Percentages round half-up on the exact rational value.
- Negative components are rejected, never silently summed.
- Results must fit signed 64-bit storage (MAX_CENTS).
"""

from __future__ import annotations

from typing import Iterable

from core.commands.errors import ValidationError

MAX_CENTS = 2 ** 63 - 1


def _require_cents(value: int, name: str) -> int:
    # bool is an int subclass; True is not one cent.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            f"{name} must be an integer amount of cents, "
            f"got {type(value).__name__}."
        )
    if value < 0:
        raise ValidationError(f"{name} must be >= 0, got {value}.")
    if value > MAX_CENTS:
        raise ValidationError(f"{name} exceeds the maximum storable amount.")
    return value


def _require_percent(percent: int) -> int:
    if isinstance(percent, bool) or not isinstance(percent, int):
        raise ValidationError("percent must be an integer.")
    if percent < 0 or percent > 100:
        raise ValidationError(f"percent must be between 0 and 100, got {percent}.")
    return percent


def percent_of(total_cents: int, percent: int) -> int:
    """
    Round-half-up share of a total.

    percent_of(10000, 30) == 3000
    percent_of(5, 50) == 3       (2.5 rounds up)
    """
    _require_cents(total_cents, "total_cents")
    _require_percent(percent)
    return (total_cents * percent + 50) // 100


def percent_off_floor(unit_cents: int, percent: int) -> int:
    """
    Price after a percentage discount, rounded down.

    percent_off_floor(999, 10) == 899
    """
    _require_cents(unit_cents, "unit_cents")
    _require_percent(percent)
    return unit_cents * (100 - percent) // 100


def add_cents(a: int, b: int) -> int:
    """a + b, both non-negative, bounded by MAX_CENTS."""
    _require_cents(a, "a")
    _require_cents(b, "b")
    result = a + b
    if result > MAX_CENTS:
        raise ValidationError("sum exceeds the maximum storable amount.")
    return result


def subtract_clamped(a: int, b: int) -> int:
    """max(0, a - b)."""
    return max(0, a - b)


def sum_cents(values: Iterable[int]) -> int:
    total = 0
    for index, value in enumerate(values):
        _require_cents(value, f"component[{index}]")
        total += value
        if total > MAX_CENTS:
            raise ValidationError("sum exceeds the maximum storable amount.")
    return total


def multiply(unit_cents: int, quantity: int) -> int:
    """Line total for `quantity` units at `unit_cents` each."""
    _require_cents(unit_cents, "unit_cents")
    _require_cents(quantity, "quantity")
    result = unit_cents * quantity
    if result > MAX_CENTS:
        raise ValidationError("line total exceeds the maximum storable amount.")
    return result


def split_deposit(total_cents: int, deposit_percent: int) -> tuple[int, int]:
    """Return (deposit_cents, balance_cents) for a total."""
    deposit = percent_of(total_cents, deposit_percent)
    return deposit, total_cents - deposit


def clamp_percent(percent: int) -> int:
    return max(0, min(100, percent))
