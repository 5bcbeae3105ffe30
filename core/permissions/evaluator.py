"""
Studio Permissions - Authorization Gate
========================================
Deterministic role/flag check against the capability table.

Evaluated before any state is read: a denied actor never
observes or mutates data.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.commands.errors import AuthorizationError
from core.commands.rejection import ReasonCode, RejectionReason
from core.context.actor_context import ActorContext
from core.permissions.constants import role_at_least
from core.permissions.registry import resolve_capability


@dataclass(frozen=True)
class AuthorizationResult:
    allowed: bool
    rejection_code: Optional[str] = None
    message: str = ""


class AuthorizationGate:
    @staticmethod
    def _allow() -> AuthorizationResult:
        return AuthorizationResult(allowed=True)

    @staticmethod
    def _deny(code: str, message: str) -> AuthorizationResult:
        return AuthorizationResult(
            allowed=False,
            rejection_code=code,
            message=message,
        )

    @staticmethod
    def authorize(actor: ActorContext | None, operation: str) -> AuthorizationResult:
        """
        Allowed when the actor's role meets the operation's minimum
        OR the actor holds the operation's permission flag.
        """
        if actor is None:
            return AuthorizationGate._deny(
                ReasonCode.PERMISSION_DENIED,
                "Authorization requires an actor context.",
            )

        capability = resolve_capability(operation)
        if capability is None:
            return AuthorizationGate._deny(
                ReasonCode.UNKNOWN_OPERATION,
                f"No capability declared for operation '{operation}'.",
            )

        if role_at_least(actor.role, capability.min_role):
            return AuthorizationGate._allow()

        if capability.permission and capability.permission in actor.permissions:
            return AuthorizationGate._allow()

        return AuthorizationGate._deny(
            ReasonCode.PERMISSION_DENIED,
            (
                f"Actor '{actor.actor_id}' with role {actor.role} cannot "
                f"perform '{operation}' (requires {capability.min_role}"
                + (
                    f" or permission {capability.permission})."
                    if capability.permission
                    else ")."
                )
            ),
        )

    @staticmethod
    def require(actor: ActorContext | None, operation: str) -> None:
        """Raise AuthorizationError unless authorize() allows."""
        result = AuthorizationGate.authorize(actor, operation)
        if result.allowed:
            return
        raise AuthorizationError(
            result.message,
            code=result.rejection_code,
            reason=RejectionReason(
                code=result.rejection_code,
                message=result.message,
                policy_name="authorization_gate",
                details={"operation": operation},
            ),
        )
