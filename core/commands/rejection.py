"""
Studio Command Layer - Rejection Model
========================================
Structured rejection reasons produced by engine policies.

A policy never raises. It returns a RejectionReason (or None) and
the owning service decides which error kind the rejection becomes.

Every rejection must be:
- Deterministic (same state + command → same rejection)
- Machine-readable (code)
- Human-readable (message)
- Traceable to the policy that produced it (policy_name)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


# ══════════════════════════════════════════════════════════════
# REJECTION REASON (frozen explanation structure)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RejectionReason:
    """
    Structured reason for command rejection.

    Fields:
        code:        Machine-readable rejection code (e.g. 'QUOTE_NOT_SIGNED').
        message:     Human-readable explanation.
        policy_name: Name of the policy that caused rejection.
        details:     Diagnostic values (current/attempted state, ids).
    """

    code: str
    message: str
    policy_name: str
    details: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ValueError("code must be a non-empty string.")

        if not self.message or not isinstance(self.message, str):
            raise ValueError("message must be a non-empty string.")

        if not self.policy_name or not isinstance(self.policy_name, str):
            raise ValueError("policy_name must be a non-empty string.")

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "policy_name": self.policy_name,
            "details": dict(self.details),
        }


# ══════════════════════════════════════════════════════════════
# STANDARD REJECTION CODES
# ══════════════════════════════════════════════════════════════

class ReasonCode:
    """
    Known rejection codes. Extensible by engines.

    Convention: SCREAMING_SNAKE_CASE.
    """

    # ── Authorization ─────────────────────────────────────────
    PERMISSION_DENIED = "PERMISSION_DENIED"
    UNKNOWN_OPERATION = "UNKNOWN_OPERATION"

    # ── Lookup ────────────────────────────────────────────────
    PROJECT_NOT_FOUND = "PROJECT_NOT_FOUND"
    PROJECT_SERVICE_NOT_FOUND = "PROJECT_SERVICE_NOT_FOUND"
    QUOTE_NOT_FOUND = "QUOTE_NOT_FOUND"
    INVOICE_NOT_FOUND = "INVOICE_NOT_FOUND"

    # ── State machine ─────────────────────────────────────────
    INVALID_TRANSITION = "INVALID_TRANSITION"

    # ── Preconditions ─────────────────────────────────────────
    PROJECT_ARCHIVED = "PROJECT_ARCHIVED"
    PROJECT_NOT_ARCHIVED = "PROJECT_NOT_ARCHIVED"
    PROJECT_NOT_STARTABLE = "PROJECT_NOT_STARTABLE"
    QUOTE_NOT_SIGNED = "QUOTE_NOT_SIGNED"
    QUOTE_NOT_DRAFT = "QUOTE_NOT_DRAFT"
    QUOTE_PROJECT_MISMATCH = "QUOTE_PROJECT_MISMATCH"
    QUOTE_NOT_BILLING_REFERENCE = "QUOTE_NOT_BILLING_REFERENCE"
    QUOTE_NOT_EXPIRED = "QUOTE_NOT_EXPIRED"
    INVOICE_ALREADY_EXISTS = "INVOICE_ALREADY_EXISTS"
    INVOICE_NOT_PAYABLE = "INVOICE_NOT_PAYABLE"
    NOTHING_TO_INVOICE = "NOTHING_TO_INVOICE"
    AMOUNT_EXCEEDS_REMAINING = "AMOUNT_EXCEEDS_REMAINING"

    # ── Conflicts ─────────────────────────────────────────────
    QUOTE_IN_USE = "QUOTE_IN_USE"
    VERSION_CONFLICT = "VERSION_CONFLICT"

    # ── General ───────────────────────────────────────────────
    INVALID_INPUT = "INVALID_INPUT"
