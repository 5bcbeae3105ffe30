"""
Studio Permissions - Public API
================================
"""

from core.permissions.constants import (
    PERMISSION_FINANCE_EDIT,
    PERMISSION_TEAM_EDIT,
    ROLE_ADMIN,
    ROLE_HIERARCHY,
    ROLE_MEMBER,
    ROLE_OWNER,
    ROLE_VIEWER,
    VALID_PERMISSIONS,
    VALID_ROLES,
    role_at_least,
)
from core.permissions.registry import (
    Capability,
    resolve_capability,
    resolve_operation,
)


def __getattr__(name: str):
    if name in {"AuthorizationGate", "AuthorizationResult"}:
        from core.permissions.evaluator import (
            AuthorizationGate,
            AuthorizationResult,
        )

        if name == "AuthorizationGate":
            return AuthorizationGate
        return AuthorizationResult
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")

__all__ = [
    "ROLE_VIEWER",
    "ROLE_MEMBER",
    "ROLE_ADMIN",
    "ROLE_OWNER",
    "ROLE_HIERARCHY",
    "VALID_ROLES",
    "PERMISSION_TEAM_EDIT",
    "PERMISSION_FINANCE_EDIT",
    "VALID_PERMISSIONS",
    "Capability",
    "AuthorizationGate",
    "AuthorizationResult",
    "role_at_least",
    "resolve_capability",
    "resolve_operation",
]
