"""
Studio Permissions - Capability Table
======================================
Single source of truth for who may run what.

Each operation declares a minimum role and, optionally, a permission
flag that grants the operation independently of role.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.permissions.constants import (
    PERMISSION_FINANCE_EDIT,
    PERMISSION_TEAM_EDIT,
    ROLE_ADMIN,
    ROLE_OWNER,
    ROLE_VIEWER,
)


@dataclass(frozen=True)
class Capability:
    min_role: str
    permission: Optional[str] = None


_READ = Capability(ROLE_VIEWER)
_ADMIN = Capability(ROLE_ADMIN)
_TEAM = Capability(ROLE_ADMIN, PERMISSION_TEAM_EDIT)
_FINANCE = Capability(ROLE_ADMIN, PERMISSION_FINANCE_EDIT)

OPERATION_CAPABILITIES = {
    # ── Reads ─────────────────────────────────────────────────
    "project.read": _READ,
    "project.pricing.read": _READ,
    "billing.summary.read": _READ,
    "quote.read": _READ,
    "invoice.read": _READ,
    # ── Project services ──────────────────────────────────────
    "project.service.add": _TEAM,
    "project.service.update": _TEAM,
    "project.service.remove": _TEAM,
    "project.service.reorder": _TEAM,
    # ── Project lifecycle ─────────────────────────────────────
    "project.create": _ADMIN,
    "project.quote_status.set": _ADMIN,
    "project.deposit_status.set": _ADMIN,
    "project.status.set": _ADMIN,
    "project.billing_quote.bind": _ADMIN,
    "project.start": _ADMIN,
    "project.archive": _ADMIN,
    "project.unarchive": _ADMIN,
    "project.delete": Capability(ROLE_OWNER),
    # ── Quotes ────────────────────────────────────────────────
    "quote.create": _ADMIN,
    "quote.transition": _ADMIN,
    "quote.items.replace": _ADMIN,
    "quote.delete": _ADMIN,
    # ── Invoices ──────────────────────────────────────────────
    "invoice.create": _ADMIN,
    "invoice.create_staged": _ADMIN,
    "invoice.transition": _ADMIN,
    "invoice.cancel": _ADMIN,
    "invoice.payment.apply": _FINANCE,
    "invoice.mark_paid": _FINANCE,
}

COMMAND_OPERATION_MAP = {
    "project.lifecycle.create.request": "project.create",
    "project.quote_status.set.request": "project.quote_status.set",
    "project.deposit_status.set.request": "project.deposit_status.set",
    "project.status.set.request": "project.status.set",
    "project.billing_quote.bind.request": "project.billing_quote.bind",
    "project.lifecycle.start.request": "project.start",
    "project.lifecycle.archive.request": "project.archive",
    "project.lifecycle.unarchive.request": "project.unarchive",
    "project.lifecycle.delete.request": "project.delete",
    "project.service.add.request": "project.service.add",
    "project.service.update.request": "project.service.update",
    "project.service.remove.request": "project.service.remove",
    "project.service.reorder.request": "project.service.reorder",
    "quote.document.create.request": "quote.create",
    "quote.document.transition.request": "quote.transition",
    "quote.items.replace.request": "quote.items.replace",
    "quote.document.delete.request": "quote.delete",
    "invoice.document.create_from_quote.request": "invoice.create",
    "invoice.document.create_staged.request": "invoice.create_staged",
    "invoice.document.send.request": "invoice.transition",
    "invoice.document.cancel.request": "invoice.cancel",
    "invoice.payment.apply.request": "invoice.payment.apply",
    "invoice.document.mark_paid.request": "invoice.mark_paid",
}


def resolve_capability(operation: str) -> Capability | None:
    return OPERATION_CAPABILITIES.get(operation)


def resolve_operation(command_type: str) -> str | None:
    """Resolve the capability-table operation for a command type."""
    return COMMAND_OPERATION_MAP.get(command_type)
