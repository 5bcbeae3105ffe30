"""
Studio Context - ActorContext
=============================
Immutable actor identity supplied by the caller for every command.
The engine never authenticates; it only authorizes this context.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from core.permissions.constants import VALID_PERMISSIONS, VALID_ROLES


@dataclass(frozen=True)
class ActorContext:
    """
    Canonical actor identity context.

    role is one of VIEWER / MEMBER / ADMIN / OWNER.
    permissions are flags granted independently of role.
    """

    actor_id: str
    role: str
    permissions: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self):
        if not self.actor_id or not isinstance(self.actor_id, str):
            raise ValueError("actor_id must be a non-empty string.")

        if self.role not in VALID_ROLES:
            raise ValueError(
                f"role '{self.role}' not valid. "
                f"Must be one of: {sorted(VALID_ROLES)}"
            )

        if not isinstance(self.permissions, frozenset):
            object.__setattr__(self, "permissions", frozenset(self.permissions))

        unknown = self.permissions - VALID_PERMISSIONS
        if unknown:
            raise ValueError(f"Unknown permission flags: {sorted(unknown)}")

    def to_dict(self) -> dict:
        return {
            "actor_id": self.actor_id,
            "role": self.role,
            "permissions": sorted(self.permissions),
        }
