"""
Studio Permissions - Role and Flag Constants
=============================================
"""

from __future__ import annotations

ROLE_VIEWER = "VIEWER"
ROLE_MEMBER = "MEMBER"
ROLE_ADMIN = "ADMIN"
ROLE_OWNER = "OWNER"

# Strict total order, lowest first.
ROLE_HIERARCHY = (ROLE_VIEWER, ROLE_MEMBER, ROLE_ADMIN, ROLE_OWNER)
ROLE_RANK = {role: rank for rank, role in enumerate(ROLE_HIERARCHY)}
VALID_ROLES = frozenset(ROLE_HIERARCHY)

PERMISSION_TEAM_EDIT = "TEAM_EDIT"
PERMISSION_FINANCE_EDIT = "FINANCE_EDIT"

VALID_PERMISSIONS = frozenset({PERMISSION_TEAM_EDIT, PERMISSION_FINANCE_EDIT})


def role_at_least(role: str, minimum: str) -> bool:
    """VIEWER < MEMBER < ADMIN < OWNER."""
    if role not in ROLE_RANK or minimum not in ROLE_RANK:
        return False
    return ROLE_RANK[role] >= ROLE_RANK[minimum]
