"""
Studio Projects Engine - Pure Lifecycle Transitions
=====================================================
A project moves along three orthogonal axes (status, quote_status,
deposit_status) plus two one-way flags (started_at, archived_at).

Every function here is pure: (project, inputs, now) → new project.
Each state-changing command declares in PROJECT_SIDE_EFFECTS exactly
which fields it may touch; services verify every transition against
that table before saving.
"""

from __future__ import annotations

from dataclasses import fields, replace
from datetime import datetime
from typing import FrozenSet, Tuple

from core.commands.base import NOT_SET
from core.commands.errors import PreconditionError, ValidationError
from core.primitives.document import Quote
from core.primitives.project import (
    DepositStatus,
    Project,
    ProjectQuoteStatus,
    ProjectStatus,
)
from engines.projects.commands import (
    PROJECT_ARCHIVE_REQUEST,
    PROJECT_BILLING_QUOTE_BIND_REQUEST,
    PROJECT_DEPOSIT_STATUS_SET_REQUEST,
    PROJECT_QUOTE_STATUS_SET_REQUEST,
    PROJECT_START_REQUEST,
    PROJECT_STATUS_SET_REQUEST,
    PROJECT_UNARCHIVE_REQUEST,
)

STARTABLE_QUOTE_STATUSES = frozenset({
    ProjectQuoteStatus.SIGNED,
    ProjectQuoteStatus.ACCEPTED,
})
STARTABLE_DEPOSIT_STATUSES = frozenset({
    DepositStatus.PAID,
    DepositStatus.NOT_REQUIRED,
})


# ══════════════════════════════════════════════════════════════
# SIDE-EFFECT TABLE
# ══════════════════════════════════════════════════════════════

PROJECT_SIDE_EFFECTS = {
    PROJECT_QUOTE_STATUS_SET_REQUEST: frozenset({"quote_status", "updated_at"}),
    PROJECT_DEPOSIT_STATUS_SET_REQUEST: frozenset({
        "deposit_status", "deposit_paid_at", "updated_at",
    }),
    PROJECT_STATUS_SET_REQUEST: frozenset({"status", "updated_at"}),
    PROJECT_BILLING_QUOTE_BIND_REQUEST: frozenset({
        "billing_quote_id", "quote_status", "updated_at",
    }),
    PROJECT_START_REQUEST: frozenset({"started_at", "status", "updated_at"}),
    PROJECT_ARCHIVE_REQUEST: frozenset({"archived_at", "updated_at"}),
    PROJECT_UNARCHIVE_REQUEST: frozenset({"archived_at", "updated_at"}),
}


def changed_fields(before: Project, after: Project) -> FrozenSet[str]:
    return frozenset(
        f.name for f in fields(Project)
        if getattr(before, f.name) != getattr(after, f.name)
    )


def check_side_effects(command_type: str, before: Project, after: Project) -> None:
    """Raise when a transition touched a field its command does not declare."""
    allowed = PROJECT_SIDE_EFFECTS.get(command_type, frozenset())
    undeclared = changed_fields(before, after) - allowed
    if undeclared:
        raise RuntimeError(
            f"{command_type} changed undeclared project fields: {sorted(undeclared)}"
        )


# ══════════════════════════════════════════════════════════════
# START PREDICATE
# ══════════════════════════════════════════════════════════════

def start_blockers(project: Project) -> Tuple[str, ...]:
    """Human-readable reasons `project` cannot start (empty when it can)."""
    blockers = []
    if project.started_at is not None:
        blockers.append("project already started")
    if project.archived_at is not None:
        blockers.append("project is archived")
    if project.quote_status not in STARTABLE_QUOTE_STATUSES:
        blockers.append(f"quote status is {project.quote_status.value}")
    if project.deposit_status not in STARTABLE_DEPOSIT_STATUSES:
        blockers.append(f"deposit status is {project.deposit_status.value}")
    return tuple(blockers)


def can_start(project: Project) -> bool:
    """
    startedAt == null AND archivedAt == null
    AND quote_status ∈ {SIGNED, ACCEPTED}
    AND deposit_status ∈ {PAID, NOT_REQUIRED}
    """
    return not start_blockers(project)


# ══════════════════════════════════════════════════════════════
# TRANSITIONS
# ══════════════════════════════════════════════════════════════

def deposit_paid_at_for(
    current: Project,
    status: DepositStatus,
    now: datetime,
    explicit=NOT_SET,
):
    """
    The single rule tying deposit_paid_at to deposit_status.

    PAID with no explicit value keeps an existing timestamp or uses now;
    an explicit value must be non-null. Any other status clears it.
    """
    if status != DepositStatus.PAID:
        if explicit is not NOT_SET and explicit is not None:
            raise ValidationError(
                "deposit_paid_at can only be set when deposit_status is PAID."
            )
        return None
    if explicit is NOT_SET:
        return current.deposit_paid_at or now
    if explicit is None:
        raise ValidationError("deposit_paid_at cannot be null when deposit_status is PAID.")
    return explicit


def set_deposit_status(project: Project, status: DepositStatus, now: datetime,
                       explicit_paid_at=NOT_SET) -> Project:
    return replace(
        project,
        deposit_status=status,
        deposit_paid_at=deposit_paid_at_for(project, status, now, explicit_paid_at),
        updated_at=now,
    )


def set_quote_status(project: Project, status: ProjectQuoteStatus, now: datetime) -> Project:
    if project.billing_quote_id is not None and status != ProjectQuoteStatus.SIGNED:
        raise PreconditionError(
            "quote_status must stay SIGNED while a billing quote is bound."
        )
    return replace(project, quote_status=status, updated_at=now)


def set_status(project: Project, status: ProjectStatus, now: datetime) -> Project:
    return replace(project, status=status, updated_at=now)


def bind_billing_quote(project: Project, quote: Quote, now: datetime) -> Project:
    """Caller has checked the quote belongs to the project and is SIGNED."""
    return replace(
        project,
        billing_quote_id=quote.quote_id,
        quote_status=ProjectQuoteStatus.SIGNED,
        updated_at=now,
    )


def start(project: Project, now: datetime) -> Project:
    return replace(
        project,
        started_at=now,
        status=ProjectStatus.ACTIVE,
        updated_at=now,
    )


def archive(project: Project, now: datetime) -> Project:
    return replace(project, archived_at=now, updated_at=now)


def unarchive(project: Project, now: datetime) -> Project:
    return replace(project, archived_at=None, updated_at=now)
