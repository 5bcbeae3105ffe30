"""Studio Quotes Engine - request commands."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from core.commands.base import Command, build_command
from core.commands.errors import ValidationError
from core.context.actor_context import ActorContext
from core.primitives.document import QuoteStatus

QUOTE_CREATE_REQUEST = "quote.document.create.request"
QUOTE_TRANSITION_REQUEST = "quote.document.transition.request"
QUOTE_ITEMS_REPLACE_REQUEST = "quote.items.replace.request"
QUOTE_DELETE_REQUEST = "quote.document.delete.request"

QUOTE_COMMAND_TYPES = frozenset({
    QUOTE_CREATE_REQUEST,
    QUOTE_TRANSITION_REQUEST,
    QUOTE_ITEMS_REPLACE_REQUEST,
    QUOTE_DELETE_REQUEST,
})

VALID_QUOTE_STATUSES = frozenset(s.value for s in QuoteStatus)
TRANSITION_TARGETS = frozenset({
    QuoteStatus.SENT.value,
    QuoteStatus.SIGNED.value,
    QuoteStatus.CANCELLED.value,
    QuoteStatus.EXPIRED.value,
})
MAX_CANCEL_REASON_LENGTH = 1000
MAX_LABEL_LENGTH = 200


def _require_id(value, name: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} must be non-empty.")


def _require_aware(value, name: str) -> None:
    if value is None:
        return
    if not isinstance(value, datetime) or value.tzinfo is None:
        raise ValidationError(f"{name} must be a timezone-aware datetime.")


def _require_int(value, name: str, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ValidationError(f"{name} must be integer >= {minimum}.")


class _QuoteRequest:
    command_type = ""

    def payload(self) -> dict:
        raise NotImplementedError

    def to_command(self, *, business_id: uuid.UUID, actor: ActorContext,
                   issued_at: datetime, command_id=None,
                   correlation_id=None) -> Command:
        return build_command(
            self.command_type,
            self.payload(),
            business_id=business_id,
            actor=actor,
            issued_at=issued_at,
            command_id=command_id,
            correlation_id=correlation_id,
        )


@dataclass(frozen=True)
class QuoteCreateRequest(_QuoteRequest):
    """deposit_percent=None uses the business default."""

    project_id: str
    deposit_percent: Optional[int] = None
    expires_at: Optional[datetime] = None
    note: Optional[str] = None

    command_type = QUOTE_CREATE_REQUEST

    def __post_init__(self):
        _require_id(self.project_id, "project_id")
        if self.deposit_percent is not None:
            _require_int(self.deposit_percent, "deposit_percent", 0)
            if self.deposit_percent > 100:
                raise ValidationError("deposit_percent must be between 0 and 100.")
        _require_aware(self.expires_at, "expires_at")

    def payload(self) -> dict:
        return {
            "project_id": self.project_id,
            "deposit_percent": self.deposit_percent,
            "expires_at": self.expires_at,
            "note": self.note,
        }


@dataclass(frozen=True)
class QuoteTransitionRequest(_QuoteRequest):
    quote_id: str
    target_status: str
    cancel_reason: Optional[str] = None
    signed_at: Optional[datetime] = None

    command_type = QUOTE_TRANSITION_REQUEST

    def __post_init__(self):
        _require_id(self.quote_id, "quote_id")
        if (not isinstance(self.target_status, str)
                or self.target_status not in VALID_QUOTE_STATUSES):
            raise ValidationError(f"target_status '{self.target_status}' is not valid.")
        if self.target_status not in TRANSITION_TARGETS:
            raise ValidationError(
                f"target_status must be one of {sorted(TRANSITION_TARGETS)}."
            )
        if self.target_status == QuoteStatus.CANCELLED.value:
            if not isinstance(self.cancel_reason, str) or not self.cancel_reason.strip():
                raise ValidationError("cancel_reason is required to cancel a quote.")
            if len(self.cancel_reason) > MAX_CANCEL_REASON_LENGTH:
                raise ValidationError(
                    f"cancel_reason must be at most {MAX_CANCEL_REASON_LENGTH} characters."
                )
        elif self.cancel_reason is not None:
            raise ValidationError("cancel_reason is only accepted when cancelling.")
        if self.signed_at is not None:
            if self.target_status != QuoteStatus.SIGNED.value:
                raise ValidationError("signed_at is only accepted when signing.")
            _require_aware(self.signed_at, "signed_at")

    def payload(self) -> dict:
        return {
            "quote_id": self.quote_id,
            "target_status": self.target_status,
            "cancel_reason": self.cancel_reason.strip() if self.cancel_reason else None,
            "signed_at": self.signed_at,
        }


@dataclass(frozen=True)
class QuoteLineInput:
    label: str
    quantity: int
    unit_price_cents: int
    service_id: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.label, str) or not self.label.strip():
            raise ValidationError("item label must be non-empty.")
        if len(self.label) > MAX_LABEL_LENGTH:
            raise ValidationError(
                f"item label must be at most {MAX_LABEL_LENGTH} characters."
            )
        _require_int(self.quantity, "item quantity", 1)
        _require_int(self.unit_price_cents, "item unit_price_cents", 0)

    def to_dict(self) -> dict:
        return {
            "label": self.label.strip(),
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "service_id": self.service_id,
            "description": self.description,
        }


@dataclass(frozen=True)
class QuoteItemsReplaceRequest(_QuoteRequest):
    quote_id: str
    items: Tuple[QuoteLineInput, ...]

    command_type = QUOTE_ITEMS_REPLACE_REQUEST

    def __post_init__(self):
        _require_id(self.quote_id, "quote_id")
        if not self.items:
            raise ValidationError("items must be non-empty.")
        for item in self.items:
            if not isinstance(item, QuoteLineInput):
                raise ValidationError("items must be QuoteLineInput values.")

    def payload(self) -> dict:
        return {
            "quote_id": self.quote_id,
            "items": tuple(item.to_dict() for item in self.items),
        }


@dataclass(frozen=True)
class QuoteDeleteRequest(_QuoteRequest):
    quote_id: str

    command_type = QUOTE_DELETE_REQUEST

    def __post_init__(self):
        _require_id(self.quote_id, "quote_id")

    def payload(self) -> dict:
        return {"quote_id": self.quote_id}
