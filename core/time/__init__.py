"""
Studio Core Time - Public API
===============================
Explicit clock protocol and temporal helpers.
Doctrine: NO datetime.now() in engine logic.
"""

from core.time.clock import (
    Clock,
    FixedClock,
    SystemClock,
)
from core.time.temporal import (
    add_days,
    has_passed,
)

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "add_days",
    "has_passed",
]
