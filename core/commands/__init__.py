"""
Studio Command Layer - Public API
===================================
Every state change begins as a Command.
Policies explain refusals with a RejectionReason.
Services surface refusals as one of the EngineError kinds.
"""

from core.commands.base import (
    NOT_SET,
    Command,
    build_command,
)
from core.commands.errors import (
    AuthorizationError,
    ConflictError,
    EngineError,
    InvalidTransitionError,
    NotFoundError,
    PreconditionError,
    ValidationError,
    raise_if_rejected,
)
from core.commands.rejection import (
    ReasonCode,
    RejectionReason,
)

__all__ = [
    # ── Base ──────────────────────────────────────────────────
    "Command",
    "NOT_SET",
    "build_command",
    # ── Rejection ─────────────────────────────────────────────
    "RejectionReason",
    "ReasonCode",
    # ── Errors ────────────────────────────────────────────────
    "EngineError",
    "ValidationError",
    "AuthorizationError",
    "NotFoundError",
    "InvalidTransitionError",
    "ConflictError",
    "PreconditionError",
    "raise_if_rejected",
]
