"""Studio Quotes Engine - event types and payload builders."""

from __future__ import annotations

from core.commands.base import Command
from core.primitives.document import Quote

QUOTE_CREATED_V1 = "quote.document.created.v1"
QUOTE_SENT_V1 = "quote.document.sent.v1"
QUOTE_SIGNED_V1 = "quote.document.signed.v1"
QUOTE_CANCELLED_V1 = "quote.document.cancelled.v1"
QUOTE_EXPIRED_V1 = "quote.document.expired.v1"
QUOTE_ITEMS_REPLACED_V1 = "quote.items.replaced.v1"
QUOTE_DELETED_V1 = "quote.document.deleted.v1"

QUOTE_EVENT_TYPES = (
    QUOTE_CREATED_V1,
    QUOTE_SENT_V1,
    QUOTE_SIGNED_V1,
    QUOTE_CANCELLED_V1,
    QUOTE_EXPIRED_V1,
    QUOTE_ITEMS_REPLACED_V1,
    QUOTE_DELETED_V1,
)


def _base_payload(command: Command) -> dict:
    return {
        "business_id": command.business_id,
        "actor_id": command.actor.actor_id,
        "actor_role": command.actor.role,
        "correlation_id": command.correlation_id,
        "command_id": command.command_id,
    }


def build_quote_payload(command: Command, quote: Quote) -> dict:
    payload = _base_payload(command)
    payload.update({
        "quote_id": quote.quote_id,
        "project_id": quote.project_id,
        "status": quote.status.value,
        "number": quote.number,
        "currency": quote.currency,
        "total_cents": quote.total_cents,
        "deposit_cents": quote.deposit_cents,
        "balance_cents": quote.balance_cents,
    })
    return payload


def build_quote_signed_payload(command: Command, quote: Quote) -> dict:
    payload = build_quote_payload(command, quote)
    payload.update({
        "signed_at": quote.signed_at,
        "billing_quote_bound": True,
    })
    return payload


def build_quote_cancelled_payload(command: Command, quote: Quote) -> dict:
    payload = build_quote_payload(command, quote)
    payload.update({
        "cancelled_at": quote.cancelled_at,
        "cancel_reason": quote.cancel_reason,
    })
    return payload


def build_quote_deleted_payload(command: Command, quote: Quote) -> dict:
    payload = _base_payload(command)
    payload.update({
        "quote_id": quote.quote_id,
        "project_id": quote.project_id,
        "status": quote.status.value,
    })
    return payload
