"""
Studio Command Layer - Tests
==============================
Command contract, rejection reasons and the error kinds that
services raise from them.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

import pytest

from core.commands.base import NOT_SET, Command, build_command
from core.commands.errors import (
    ConflictError,
    EngineError,
    InvalidTransitionError,
    NotFoundError,
    PreconditionError,
    ValidationError,
    raise_if_rejected,
)
from core.commands.rejection import ReasonCode, RejectionReason
from core.context.actor_context import ActorContext

BIZ = uuid.uuid4()
NOW = datetime(2026, 2, 21, 9, 0, 0, tzinfo=timezone.utc)
ACTOR = ActorContext(actor_id="owner-1", role="OWNER")


def _command(**overrides) -> Command:
    fields = dict(
        command_id=uuid.uuid4(),
        command_type="quote.document.create.request",
        business_id=BIZ,
        actor=ACTOR,
        payload={"project_id": "p-1"},
        issued_at=NOW,
        correlation_id=uuid.uuid4(),
        source_engine="quote",
    )
    fields.update(overrides)
    return Command(**fields)


# ══════════════════════════════════════════════════════════════
# COMMAND CONTRACT
# ══════════════════════════════════════════════════════════════

class TestCommandContract:
    def test_valid_command(self):
        cmd = _command()
        assert cmd.command_type == "quote.document.create.request"
        assert cmd.actor.role == "OWNER"

    def test_frozen(self):
        cmd = _command()
        with pytest.raises(AttributeError):
            cmd.payload = {}

    def test_must_end_with_request(self):
        with pytest.raises(ValueError, match="must end with"):
            _command(command_type="quote.document.create")

    def test_minimum_four_segments(self):
        with pytest.raises(ValueError, match="minimum 4 segments"):
            _command(command_type="quote.create.request")

    def test_namespace_must_match_source_engine(self):
        with pytest.raises(ValueError, match="does not match"):
            _command(source_engine="invoice")

    def test_naive_issued_at_rejected(self):
        with pytest.raises(ValueError, match="timezone-aware"):
            _command(issued_at=datetime(2026, 2, 21, 9, 0, 0))

    def test_business_id_must_be_uuid(self):
        with pytest.raises(ValueError, match="business_id"):
            _command(business_id=str(BIZ))

    def test_payload_must_be_dict(self):
        with pytest.raises(TypeError, match="payload"):
            _command(payload=["project_id"])

    def test_actor_required(self):
        with pytest.raises(ValueError, match="ActorContext"):
            _command(actor=None)


class TestBuildCommand:
    def test_source_engine_derived_from_type(self):
        cmd = build_command(
            "invoice.payment.apply.request",
            {"invoice_id": "i-1", "amount_cents": 100},
            business_id=BIZ,
            actor=ACTOR,
            issued_at=NOW,
        )
        assert cmd.source_engine == "invoice"
        assert isinstance(cmd.command_id, uuid.UUID)
        assert isinstance(cmd.correlation_id, uuid.UUID)

    def test_explicit_ids_kept(self):
        command_id, correlation_id = uuid.uuid4(), uuid.uuid4()
        cmd = build_command(
            "project.lifecycle.start.request",
            {"project_id": "p-1"},
            business_id=BIZ,
            actor=ACTOR,
            issued_at=NOW,
            command_id=command_id,
            correlation_id=correlation_id,
        )
        assert cmd.command_id == command_id
        assert cmd.correlation_id == correlation_id


class TestNotSet:
    def test_singleton_and_falsy(self):
        assert NOT_SET is type(NOT_SET)()
        assert not NOT_SET
        assert repr(NOT_SET) == "NOT_SET"


# ══════════════════════════════════════════════════════════════
# REJECTIONS AND ERRORS
# ══════════════════════════════════════════════════════════════

class TestRejectionReason:
    def test_requires_code_message_policy(self):
        with pytest.raises(ValueError, match="code"):
            RejectionReason(code="", message="x", policy_name="p")
        with pytest.raises(ValueError, match="message"):
            RejectionReason(code="X", message="", policy_name="p")
        with pytest.raises(ValueError, match="policy_name"):
            RejectionReason(code="X", message="x", policy_name="")

    def test_to_dict(self):
        reason = RejectionReason(
            code=ReasonCode.QUOTE_NOT_SIGNED,
            message="Quote is DRAFT.",
            policy_name="quote_must_be_signed_policy",
            details={"quote_id": "q-1"},
        )
        assert reason.to_dict() == {
            "code": "QUOTE_NOT_SIGNED",
            "message": "Quote is DRAFT.",
            "policy_name": "quote_must_be_signed_policy",
            "details": {"quote_id": "q-1"},
        }


class TestErrorKinds:
    def test_default_codes(self):
        assert ValidationError("bad").code == ReasonCode.INVALID_INPUT
        assert ConflictError("stale").code == ReasonCode.VERSION_CONFLICT
        assert NotFoundError("gone").code == "NOT_FOUND"
        assert PreconditionError("no").code == "PRECONDITION_FAILED"

    def test_validation_error_is_value_error(self):
        assert isinstance(ValidationError("bad"), ValueError)

    def test_explicit_code_overrides_default(self):
        exc = NotFoundError("gone", code=ReasonCode.QUOTE_NOT_FOUND)
        assert exc.code == "QUOTE_NOT_FOUND"
        assert exc.to_dict() == {
            "code": "QUOTE_NOT_FOUND",
            "message": "gone",
            "details": {},
        }

    def test_invalid_transition_carries_states(self):
        reason = RejectionReason(
            code=ReasonCode.INVALID_TRANSITION,
            message="quote is SIGNED (terminal); cannot transition to SENT.",
            policy_name="quote_transition_policy",
            details={"entity": "quote", "current": "SIGNED", "attempted": "SENT"},
        )
        exc = InvalidTransitionError.from_rejection(reason)
        assert exc.entity == "quote"
        assert exc.current == "SIGNED"
        assert exc.attempted == "SENT"
        assert exc.details["attempted"] == "SENT"


class TestRaiseIfRejected:
    REASON = RejectionReason(
        code=ReasonCode.PROJECT_ARCHIVED,
        message="Project 'p-1' is archived.",
        policy_name="project_must_not_be_archived_policy",
        details={"project_id": "p-1"},
    )

    def test_none_passes(self):
        raise_if_rejected(None)

    def test_defaults_to_precondition(self):
        with pytest.raises(PreconditionError) as excinfo:
            raise_if_rejected(self.REASON)
        assert excinfo.value.code == "PROJECT_ARCHIVED"
        assert excinfo.value.details == {"project_id": "p-1"}

    def test_error_kind_selectable(self):
        with pytest.raises(NotFoundError):
            raise_if_rejected(self.REASON, NotFoundError)

    def test_every_kind_is_engine_error(self):
        with pytest.raises(EngineError):
            raise_if_rejected(self.REASON, ConflictError)
