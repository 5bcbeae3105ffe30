"""
Studio Command Layer - Command Base Contract
==============================================
Every state change in Studio begins as a Command.

A Command is a frozen, auditable declaration of business intent.
It carries identity, actor context, and payload - nothing else.

Rules:
- Immutable once created (frozen dataclass)
- No business logic inside
- No store interaction
- command_type must end with '.request'
- command_type follows engine.domain.action.request format
- issued_at is timezone-aware and is the "now" of the command
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime

from core.context.actor_context import ActorContext


class _NotSet:
    """Marks a request field the caller did not supply."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_SET"

    def __bool__(self) -> bool:
        return False


NOT_SET = _NotSet()


# ══════════════════════════════════════════════════════════════
# CANONICAL COMMAND
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Command:
    """
    Canonical Studio Command - declaration of business intent.

    Fields:
        command_id:     Unique identifier (UUID).
        command_type:   Namespaced type ending in '.request'
                        (e.g. 'quote.document.transition.request').
        business_id:    Tenant boundary (UUID).
        actor:          Who is asking (id, role, permission flags).
        payload:        Business intent data (dict).
        issued_at:      When the command was issued.
        correlation_id: Groups related commands/events in a story.
        source_engine:  Engine that owns this command.
    """

    command_id: uuid.UUID
    command_type: str
    business_id: uuid.UUID
    actor: ActorContext
    payload: dict
    issued_at: datetime
    correlation_id: uuid.UUID
    source_engine: str

    def __post_init__(self):
        # ── command_id must be UUID ───────────────────────────
        if not isinstance(self.command_id, uuid.UUID):
            raise ValueError(
                f"command_id must be UUID, got {type(self.command_id).__name__}"
            )

        # ── command_type must end with .request ───────────────
        if not self.command_type or not isinstance(self.command_type, str):
            raise ValueError("command_type must be a non-empty string.")

        if not self.command_type.endswith(".request"):
            raise ValueError(
                f"command_type '{self.command_type}' must end with "
                f"'.request' (e.g. 'quote.document.create.request')."
            )

        # ── command_type minimum 4 segments ───────────────────
        parts = self.command_type.split(".")
        if len(parts) < 4:
            raise ValueError(
                f"command_type '{self.command_type}' must follow "
                f"engine.domain.action.request format (minimum 4 segments)."
            )

        # ── source_engine must match first segment ────────────
        if parts[0] != self.source_engine:
            raise ValueError(
                f"command_type namespace '{parts[0]}' does not match "
                f"source_engine '{self.source_engine}'."
            )

        # ── business_id must be UUID ──────────────────────────
        if not isinstance(self.business_id, uuid.UUID):
            raise ValueError("business_id must be UUID.")

        # ── actor must be an ActorContext ─────────────────────
        if not isinstance(self.actor, ActorContext):
            raise ValueError("actor must be an ActorContext.")

        # ── payload must be dict ──────────────────────────────
        if not isinstance(self.payload, dict):
            raise TypeError("payload must be a dict.")

        # ── issued_at must be timezone-aware ──────────────────
        if not isinstance(self.issued_at, datetime) or self.issued_at.tzinfo is None:
            raise ValueError("issued_at must be a timezone-aware datetime.")

        # ── correlation_id must be UUID ───────────────────────
        if not isinstance(self.correlation_id, uuid.UUID):
            raise ValueError("correlation_id must be UUID.")


def build_command(
    command_type: str,
    payload: dict,
    *,
    business_id: uuid.UUID,
    actor: ActorContext,
    issued_at: datetime,
    command_id: uuid.UUID | None = None,
    correlation_id: uuid.UUID | None = None,
) -> Command:
    """Shared `to_command` body for every engine's request dataclasses."""
    return Command(
        command_id=command_id or uuid.uuid4(),
        command_type=command_type,
        business_id=business_id,
        actor=actor,
        payload=payload,
        issued_at=issued_at,
        correlation_id=correlation_id or uuid.uuid4(),
        source_engine=command_type.split(".")[0],
    )
