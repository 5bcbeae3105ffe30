"""Studio Quotes Engine - application service."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import List, Optional, Tuple

from core.commands.base import Command
from core.commands.errors import ConflictError, NotFoundError, raise_if_rejected
from core.context.actor_context import ActorContext
from core.engines.service import EngineService, build_event
from core.primitives.document import Quote, QuoteStatus
from core.primitives.project import Project
from engines.pricing.services import snapshot_for_project
from engines.projects import lifecycle as project_lifecycle
from engines.projects.commands import PROJECT_BILLING_QUOTE_BIND_REQUEST
from engines.projects.events import PROJECT_BILLING_QUOTE_BOUND_V1, build_project_payload
from engines.projects.policies import project_must_not_be_archived_policy
from engines.projects.services import load_project
from engines.quotes import lifecycle
from engines.quotes.commands import (
    QUOTE_CREATE_REQUEST,
    QUOTE_DELETE_REQUEST,
    QUOTE_ITEMS_REPLACE_REQUEST,
    QUOTE_TRANSITION_REQUEST,
)
from engines.quotes.events import (
    QUOTE_CANCELLED_V1,
    QUOTE_CREATED_V1,
    QUOTE_DELETED_V1,
    QUOTE_EXPIRED_V1,
    QUOTE_ITEMS_REPLACED_V1,
    QUOTE_SENT_V1,
    QUOTE_SIGNED_V1,
    build_quote_cancelled_payload,
    build_quote_deleted_payload,
    build_quote_payload,
    build_quote_signed_payload,
)
from engines.quotes.policies import (
    quote_must_be_deletable_policy,
    quote_must_exist_policy,
    quote_must_not_be_invoiced_policy,
)


@dataclass(frozen=True)
class QuoteExecutionResult:
    quote: Quote
    events: Tuple[dict, ...]
    project: Optional[Project] = None

    @property
    def entity_id(self) -> str:
        return self.quote.quote_id


@dataclass(frozen=True)
class QuoteView:
    """A stored quote plus its status as of the read."""

    quote: Quote
    effective_status: QuoteStatus

    @property
    def is_expired(self) -> bool:
        return self.effective_status == QuoteStatus.EXPIRED

    def to_dict(self) -> dict:
        data = self.quote.to_dict()
        data["effective_status"] = self.effective_status.value
        return data


def load_quote(uow, business_id: uuid.UUID, quote_id: str) -> Quote:
    quote = uow.get_quote(business_id, quote_id)
    raise_if_rejected(quote_must_exist_policy(quote, quote_id), NotFoundError)
    return quote


class QuoteLifecycleService(EngineService):
    engine_name = "quote"
    logger = logging.getLogger("studio.quotes")

    HANDLERS = {
        QUOTE_CREATE_REQUEST: "_create",
        QUOTE_TRANSITION_REQUEST: "_transition",
        QUOTE_ITEMS_REPLACE_REQUEST: "_replace_items",
        QUOTE_DELETE_REQUEST: "_delete",
    }

    # ── reads ─────────────────────────────────────────────────

    def get_quote(self, *, business_id: uuid.UUID, quote_id: str,
                  actor: ActorContext) -> QuoteView:
        self._authorize(actor, "quote.read")
        now = self.now()
        with self._store.unit_of_work() as uow:
            quote = load_quote(uow, business_id, quote_id)
        return QuoteView(quote=quote, effective_status=lifecycle.effective_status(quote, now))

    def list_quotes(self, *, business_id: uuid.UUID, project_id: str,
                    actor: ActorContext) -> List[QuoteView]:
        self._authorize(actor, "quote.read")
        now = self.now()
        with self._store.unit_of_work() as uow:
            load_project(uow, business_id, project_id)
            quotes = uow.list_quotes(business_id, project_id)
        return [
            QuoteView(quote=q, effective_status=lifecycle.effective_status(q, now))
            for q in quotes
        ]

    # ── commands ──────────────────────────────────────────────

    def _create(self, command: Command) -> QuoteExecutionResult:
        payload = command.payload
        with self._store.unit_of_work() as uow:
            project = load_project(uow, command.business_id, payload["project_id"])
            raise_if_rejected(project_must_not_be_archived_policy(project))
            snapshot = snapshot_for_project(
                uow, project, deposit_percent=payload.get("deposit_percent")
            )
            quote = lifecycle.build_quote(
                self._new_id(),
                project,
                snapshot,
                command.issued_at,
                expires_at=payload.get("expires_at"),
                note=payload.get("note"),
            )
            uow.add(quote)
            uow.commit()
            stored = uow.latest(quote)
        if snapshot.missing_price_services:
            self.logger.info(
                "Quote %s created with %d unpriced service(s)",
                stored.quote_id,
                len(snapshot.missing_price_services),
            )
        return QuoteExecutionResult(
            quote=stored,
            events=(build_event(command, QUOTE_CREATED_V1,
                                build_quote_payload(command, stored)),),
        )

    def _transition(self, command: Command) -> QuoteExecutionResult:
        target = QuoteStatus(command.payload["target_status"])
        if target == QuoteStatus.SIGNED:
            return self._sign(command)

        now = command.issued_at
        with self._store.unit_of_work() as uow:
            quote = load_quote(uow, command.business_id, command.payload["quote_id"])
            if target == QuoteStatus.SENT:
                updated, advanced = lifecycle.send_quote(
                    quote, uow.get_settings(quote.business_id), now
                )
                if advanced is not None:
                    uow.save(advanced)
                event_type, builder = QUOTE_SENT_V1, build_quote_payload
            elif target == QuoteStatus.CANCELLED:
                updated = lifecycle.cancel_quote(quote, now, command.payload["cancel_reason"])
                event_type, builder = QUOTE_CANCELLED_V1, build_quote_cancelled_payload
            else:
                updated = lifecycle.expire_quote(quote, now)
                event_type, builder = QUOTE_EXPIRED_V1, build_quote_payload
            uow.save(updated)
            uow.commit()
            stored = uow.latest(updated)
        return QuoteExecutionResult(
            quote=stored,
            events=(build_event(command, event_type, builder(command, stored)),),
        )

    def _sign(self, command: Command) -> QuoteExecutionResult:
        """SENT → SIGNED, binding the project to this quote in the same unit of work."""
        now = command.issued_at
        with self._store.unit_of_work() as uow:
            quote = load_quote(uow, command.business_id, command.payload["quote_id"])
            signed = lifecycle.sign_quote(quote, now, command.payload.get("signed_at"))
            project = load_project(uow, quote.business_id, quote.project_id)
            raise_if_rejected(project_must_not_be_archived_policy(project))
            bound = project_lifecycle.bind_billing_quote(project, signed, now)
            project_lifecycle.check_side_effects(
                PROJECT_BILLING_QUOTE_BIND_REQUEST, project, bound
            )
            uow.save(signed)
            uow.save(bound)
            uow.commit()
            stored_quote = uow.latest(signed)
            stored_project = uow.latest(bound)
        return QuoteExecutionResult(
            quote=stored_quote,
            project=stored_project,
            events=(
                build_event(command, QUOTE_SIGNED_V1,
                            build_quote_signed_payload(command, stored_quote)),
                build_event(command, PROJECT_BILLING_QUOTE_BOUND_V1,
                            build_project_payload(command, stored_project)),
            ),
        )

    def _replace_items(self, command: Command) -> QuoteExecutionResult:
        items = lifecycle.build_line_items(command.payload["items"])
        with self._store.unit_of_work() as uow:
            quote = load_quote(uow, command.business_id, command.payload["quote_id"])
            updated = lifecycle.replace_items(quote, items, command.issued_at)
            uow.save(updated)
            uow.commit()
            stored = uow.latest(updated)
        return QuoteExecutionResult(
            quote=stored,
            events=(build_event(command, QUOTE_ITEMS_REPLACED_V1,
                                build_quote_payload(command, stored)),),
        )

    def _delete(self, command: Command) -> QuoteExecutionResult:
        with self._store.unit_of_work() as uow:
            quote = load_quote(uow, command.business_id, command.payload["quote_id"])
            raise_if_rejected(quote_must_be_deletable_policy(quote), ConflictError)
            raise_if_rejected(
                quote_must_not_be_invoiced_policy(
                    quote, uow.list_invoices_for_quote(quote.business_id, quote.quote_id)
                ),
                ConflictError,
            )
            uow.delete(quote)
            uow.commit()
        return QuoteExecutionResult(
            quote=quote,
            events=(build_event(command, QUOTE_DELETED_V1,
                                build_quote_deleted_payload(command, quote)),),
        )
