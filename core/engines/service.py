"""
Studio Engine Services - Shared Command Execution Skeleton
============================================================
Every engine service follows the same path for a command:

    1. Resolve the handler for command_type (unknown → ValidationError)
    2. Authorize the actor against the capability table (fail fast,
       before any state is read)
    3. Run the handler inside one unit of work (policies, pure
       transitions, buffered writes, commit)
    4. Publish the emitted events, after commit only; a sink failure
       is logged and does not fail the committed command
    5. Log accepted commands at INFO, refusals at WARNING

Every EngineError is logged and re-raised.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, ClassVar, Dict, Iterable, Optional, Protocol

from core.commands.base import Command
from core.commands.errors import AuthorizationError, EngineError, ValidationError
from core.context.actor_context import ActorContext
from core.permissions.evaluator import AuthorizationGate
from core.permissions.registry import resolve_operation
from core.store.protocol import BillingStore
from core.time.clock import Clock, SystemClock

command_logger = logging.getLogger("studio.commands")


class EventSinkProtocol(Protocol):
    def __call__(self, event: dict) -> Any: ...


def build_event(command: Command, event_type: str, payload: dict) -> dict:
    return {
        "event_id": str(uuid.uuid4()),
        "event_type": event_type,
        "business_id": command.business_id,
        "correlation_id": command.correlation_id,
        "causation_id": command.command_id,
        "occurred_at": command.issued_at,
        "payload": payload,
    }


def default_id_factory() -> str:
    return str(uuid.uuid4())


class EngineService:
    """
    Subclasses declare `engine_name`, a logger, and `HANDLERS`
    mapping command_type → method name.
    """

    engine_name: ClassVar[str] = ""
    HANDLERS: ClassVar[Dict[str, str]] = {}
    logger: ClassVar[logging.Logger] = command_logger

    def __init__(
        self,
        *,
        store: BillingStore,
        clock: Optional[Clock] = None,
        id_factory: Optional[Callable[[], str]] = None,
        event_sink: Optional[EventSinkProtocol] = None,
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._id_factory = id_factory or default_id_factory
        self._event_sink = event_sink

    @property
    def store(self) -> BillingStore:
        return self._store

    def now(self):
        return self._clock.now_utc()

    def _new_id(self) -> str:
        return self._id_factory()

    # ── authorization ─────────────────────────────────────────

    def _authorize(self, actor: Optional[ActorContext], operation: str) -> None:
        try:
            AuthorizationGate.require(actor, operation)
        except AuthorizationError as exc:
            self.logger.warning(
                "Denied %s for actor %s: %s",
                operation,
                getattr(actor, "actor_id", None),
                exc.message,
            )
            raise

    # ── command execution ─────────────────────────────────────

    def execute(self, command: Command):
        handler_name = self.HANDLERS.get(command.command_type)
        if handler_name is None:
            raise ValidationError(
                f"Unsupported {self.engine_name} command type: {command.command_type}"
            )
        operation = resolve_operation(command.command_type)
        if operation is None:
            raise ValidationError(
                f"No operation mapping for command type: {command.command_type}"
            )

        self._authorize(command.actor, operation)
        try:
            result = getattr(self, handler_name)(command)
        except EngineError as exc:
            self.logger.warning(
                "Rejected %s (%s): %s",
                command.command_type,
                exc.code,
                exc.message,
            )
            raise

        self._publish(result.events)
        self.logger.info(
            "Accepted %s for %s",
            command.command_type,
            getattr(result, "entity_id", None),
        )
        return result

    def _publish(self, events: Iterable[dict]) -> None:
        """
        Hand committed events to the sink, one at a time.

        State is already committed here, so a failing sink cannot undo
        the command: the failure is logged and the next event is still
        delivered.
        """
        if self._event_sink is None:
            return
        for event in events:
            try:
                self._event_sink(event)
            except Exception as exc:
                self.logger.error(
                    "Post-commit publish failed for event %s (%s): %s",
                    event.get("event_id"),
                    event.get("event_type"),
                    exc,
                    exc_info=True,
                )
