"""
Studio Money - Public API
===========================
All money math goes through this package.
"""

from core.money.arithmetic import (
    MAX_CENTS,
    add_cents,
    clamp_percent,
    multiply,
    percent_of,
    percent_off_floor,
    split_deposit,
    subtract_clamped,
    sum_cents,
)
from core.money.parsing import parse_amount_to_cents

__all__ = [
    "MAX_CENTS",
    "add_cents",
    "clamp_percent",
    "multiply",
    "parse_amount_to_cents",
    "percent_of",
    "percent_off_floor",
    "split_deposit",
    "subtract_clamped",
    "sum_cents",
]
