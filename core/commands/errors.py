"""
Studio Command Layer - Error Kinds
====================================
Every failure an engine reports to its caller is one of these.

    ValidationError         malformed or out-of-range input
    AuthorizationError      actor role / permission insufficient
    NotFoundError           entity missing or outside the business scope
    InvalidTransitionError  state machine rejected the transition
    ConflictError           optimistic version check failed
    PreconditionError       domain rule not met for the command

Mutations are all-or-nothing: when one of these is raised inside a
unit of work, nothing the command wrote is visible afterwards.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from core.commands.rejection import ReasonCode, RejectionReason


class EngineError(Exception):
    """Base class for every caller-visible engine error."""

    code = "ENGINE_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        reason: Optional[RejectionReason] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.reason = reason

    @classmethod
    def from_rejection(cls, reason: RejectionReason) -> "EngineError":
        return cls(reason.message, code=reason.code, reason=reason)

    @property
    def details(self) -> Dict[str, Any]:
        if self.reason is None:
            return {}
        return dict(self.reason.details)

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(EngineError, ValueError):
    code = ReasonCode.INVALID_INPUT


class AuthorizationError(EngineError):
    code = ReasonCode.PERMISSION_DENIED


class NotFoundError(EngineError):
    code = "NOT_FOUND"


class ConflictError(EngineError):
    code = ReasonCode.VERSION_CONFLICT


class PreconditionError(EngineError):
    code = "PRECONDITION_FAILED"


class InvalidTransitionError(EngineError):
    """Carries the entity kind plus current and attempted states."""

    code = ReasonCode.INVALID_TRANSITION

    def __init__(
        self,
        message: str,
        *,
        entity: str,
        current: str,
        attempted: str,
        code: Optional[str] = None,
        reason: Optional[RejectionReason] = None,
    ) -> None:
        super().__init__(message, code=code, reason=reason)
        self.entity = entity
        self.current = current
        self.attempted = attempted

    @classmethod
    def from_rejection(cls, reason: RejectionReason) -> "InvalidTransitionError":
        return cls(
            reason.message,
            entity=str(reason.details.get("entity", "")),
            current=str(reason.details.get("current", "")),
            attempted=str(reason.details.get("attempted", "")),
            code=reason.code,
            reason=reason,
        )

    @property
    def details(self) -> Dict[str, Any]:
        details = super().details
        details.update(
            entity=self.entity,
            current=self.current,
            attempted=self.attempted,
        )
        return details


def raise_if_rejected(
    rejection: Optional[RejectionReason],
    error_cls: type = PreconditionError,
) -> None:
    """Turn a policy rejection into the given error kind."""
    if rejection is not None:
        raise error_cls.from_rejection(rejection)
