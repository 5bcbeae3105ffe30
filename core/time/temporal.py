"""
Studio Core Time - Temporal Helpers
=====================================
Pure functions for deadlines.
All functions take explicit datetime arguments - no hidden clock access.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional


def add_days(dt: datetime, days: int) -> datetime:
    return dt + timedelta(days=days)


def has_passed(deadline: Optional[datetime], now: datetime) -> bool:
    """
    True once `now` reaches `deadline` (inclusive).
    A missing deadline never passes.
    """
    if deadline is None:
        return False
    return deadline <= now
