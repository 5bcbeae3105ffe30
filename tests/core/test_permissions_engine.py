from __future__ import annotations

import pytest

from core.commands.errors import AuthorizationError
from core.context.actor_context import ActorContext
from core.permissions import (
    PERMISSION_FINANCE_EDIT,
    PERMISSION_TEAM_EDIT,
    ROLE_ADMIN,
    ROLE_MEMBER,
    ROLE_OWNER,
    ROLE_VIEWER,
    AuthorizationGate,
    resolve_operation,
    role_at_least,
)
from core.permissions.registry import COMMAND_OPERATION_MAP, OPERATION_CAPABILITIES


def _actor(role, *permissions):
    return ActorContext(actor_id="user-1", role=role, permissions=frozenset(permissions))


class TestActorContext:
    def test_unknown_role_rejected(self):
        with pytest.raises(ValueError, match="role"):
            ActorContext(actor_id="user-1", role="SUPERUSER")

    def test_unknown_permission_rejected(self):
        with pytest.raises(ValueError, match="Unknown permission"):
            ActorContext(actor_id="user-1", role=ROLE_MEMBER, permissions={"ROOT"})

    def test_permissions_normalized_to_frozenset(self):
        actor = ActorContext(actor_id="user-1", role=ROLE_MEMBER,
                             permissions={PERMISSION_TEAM_EDIT})
        assert actor.permissions == frozenset({PERMISSION_TEAM_EDIT})
        assert actor.to_dict()["permissions"] == [PERMISSION_TEAM_EDIT]


class TestRoleOrder:
    def test_total_order(self):
        assert role_at_least(ROLE_OWNER, ROLE_ADMIN)
        assert role_at_least(ROLE_ADMIN, ROLE_ADMIN)
        assert not role_at_least(ROLE_MEMBER, ROLE_ADMIN)
        assert role_at_least(ROLE_VIEWER, ROLE_VIEWER)

    def test_unknown_role_never_qualifies(self):
        assert not role_at_least("GUEST", ROLE_VIEWER)


class TestCapabilityTable:
    def test_every_command_maps_to_a_declared_operation(self):
        for command_type, operation in COMMAND_OPERATION_MAP.items():
            assert operation in OPERATION_CAPABILITIES, command_type

    def test_resolve_operation(self):
        assert resolve_operation("quote.document.transition.request") == "quote.transition"
        assert resolve_operation("quote.document.unknown.request") is None


class TestAuthorizationGate:
    def test_viewer_can_read(self):
        assert AuthorizationGate.authorize(_actor(ROLE_VIEWER), "billing.summary.read").allowed

    def test_member_cannot_transition_quote(self):
        result = AuthorizationGate.authorize(_actor(ROLE_MEMBER), "quote.transition")
        assert not result.allowed
        assert result.rejection_code == "PERMISSION_DENIED"
        with pytest.raises(AuthorizationError, match="requires ADMIN"):
            AuthorizationGate.require(_actor(ROLE_MEMBER), "quote.transition")

    def test_admin_can_transition_quote(self):
        AuthorizationGate.require(_actor(ROLE_ADMIN), "quote.transition")

    def test_member_with_team_edit_can_edit_services(self):
        AuthorizationGate.require(
            _actor(ROLE_MEMBER, PERMISSION_TEAM_EDIT), "project.service.add"
        )

    def test_team_edit_does_not_grant_payments(self):
        with pytest.raises(AuthorizationError, match="FINANCE_EDIT"):
            AuthorizationGate.require(
                _actor(ROLE_MEMBER, PERMISSION_TEAM_EDIT), "invoice.payment.apply"
            )

    def test_finance_edit_grants_payments(self):
        AuthorizationGate.require(
            _actor(ROLE_VIEWER, PERMISSION_FINANCE_EDIT), "invoice.payment.apply"
        )

    def test_only_owner_deletes_projects(self):
        AuthorizationGate.require(_actor(ROLE_OWNER), "project.delete")
        with pytest.raises(AuthorizationError):
            AuthorizationGate.require(_actor(ROLE_ADMIN), "project.delete")

    def test_missing_actor_denied(self):
        with pytest.raises(AuthorizationError, match="actor context"):
            AuthorizationGate.require(None, "project.read")

    def test_unknown_operation_denied(self):
        result = AuthorizationGate.authorize(_actor(ROLE_OWNER), "project.teleport")
        assert not result.allowed
        assert result.rejection_code == "UNKNOWN_OPERATION"
