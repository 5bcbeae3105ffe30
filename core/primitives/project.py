"""
Studio Project Primitive - Projects, Sold Services and Tasks
==============================================================
A Project carries three orthogonal status axes (status,
quote_status, deposit_status) and two one-way flags
(started_at, archived_at).

RULES (NON-NEGOTIABLE):
- deposit_paid_at is set iff deposit_status == PAID
- billing_quote_id set implies quote_status == SIGNED
- started_at is set at most once and never cleared
- Quantities are positive integers; prices are integer cents
- Multi-tenant: every record scoped to business_id

This file contains NO persistence logic.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional, Tuple


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class ProjectStatus(Enum):
    PLANNED = "PLANNED"
    ACTIVE = "ACTIVE"
    ON_HOLD = "ON_HOLD"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ProjectQuoteStatus(Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    ACCEPTED = "ACCEPTED"
    SIGNED = "SIGNED"


class DepositStatus(Enum):
    NOT_REQUIRED = "NOT_REQUIRED"
    PENDING = "PENDING"
    PAID = "PAID"


class DiscountType(Enum):
    NONE = "NONE"
    PERCENT = "PERCENT"
    AMOUNT = "AMOUNT"


class TaskPhase(Enum):
    """Declaration order is the order tasks are generated in."""
    CADRAGE = "CADRAGE"
    UX = "UX"
    DESIGN = "DESIGN"
    DEV = "DEV"
    SEO = "SEO"
    LAUNCH = "LAUNCH"
    FOLLOW_UP = "FOLLOW_UP"


class TaskStatus(Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


# ══════════════════════════════════════════════════════════════
# PROJECT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Project:
    project_id: str
    business_id: uuid.UUID
    name: str
    created_at: datetime
    updated_at: datetime
    client_id: Optional[str] = None
    status: ProjectStatus = ProjectStatus.PLANNED
    quote_status: ProjectQuoteStatus = ProjectQuoteStatus.DRAFT
    deposit_status: DepositStatus = DepositStatus.PENDING
    deposit_paid_at: Optional[datetime] = None
    billing_quote_id: Optional[str] = None
    started_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    category_reference_id: Optional[str] = None
    tag_reference_ids: Tuple[str, ...] = ()
    version: int = 0

    def __post_init__(self):
        if not self.project_id or not isinstance(self.project_id, str):
            raise ValueError("project_id must be non-empty string.")
        if not isinstance(self.business_id, uuid.UUID):
            raise ValueError("business_id must be UUID.")
        if not self.name or not isinstance(self.name, str):
            raise ValueError("name must be non-empty string.")
        if not isinstance(self.status, ProjectStatus):
            raise ValueError("status must be ProjectStatus enum.")
        if not isinstance(self.quote_status, ProjectQuoteStatus):
            raise ValueError("quote_status must be ProjectQuoteStatus enum.")
        if not isinstance(self.deposit_status, DepositStatus):
            raise ValueError("deposit_status must be DepositStatus enum.")
        if (self.deposit_paid_at is None) == (self.deposit_status == DepositStatus.PAID):
            raise ValueError("deposit_paid_at must be set iff deposit_status is PAID.")
        if (self.billing_quote_id is not None
                and self.quote_status != ProjectQuoteStatus.SIGNED):
            raise ValueError("billing_quote_id requires quote_status SIGNED.")
        if (self.start_date is not None and self.end_date is not None
                and self.end_date < self.start_date):
            raise ValueError("end_date must not precede start_date.")

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    @property
    def is_started(self) -> bool:
        return self.started_at is not None

    def to_dict(self) -> dict:
        return {
            "project_id": self.project_id,
            "business_id": str(self.business_id),
            "name": self.name,
            "client_id": self.client_id,
            "status": self.status.value,
            "quote_status": self.quote_status.value,
            "deposit_status": self.deposit_status.value,
            "deposit_paid_at": _iso(self.deposit_paid_at),
            "billing_quote_id": self.billing_quote_id,
            "started_at": _iso(self.started_at),
            "archived_at": _iso(self.archived_at),
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
            "category_reference_id": self.category_reference_id,
            "tag_reference_ids": list(self.tag_reference_ids),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "version": self.version,
        }


# ══════════════════════════════════════════════════════════════
# PROJECT SERVICE (a sold service line on a project)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ProjectService:
    """
    price_cents_override falls back to the catalog price when None.
    discount_value is a percent (0..100) for PERCENT, cents for AMOUNT.
    """
    project_service_id: str
    business_id: uuid.UUID
    project_id: str
    service_id: str
    quantity: int = 1
    price_cents_override: Optional[int] = None
    title_override: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    discount_type: DiscountType = DiscountType.NONE
    discount_value: Optional[int] = None
    position: int = 0
    version: int = 0

    def __post_init__(self):
        if not self.project_service_id:
            raise ValueError("project_service_id must be non-empty.")
        if not self.project_id or not self.service_id:
            raise ValueError("project_id and service_id must be non-empty.")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise ValueError("quantity must be an integer.")
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1.")
        if self.price_cents_override is not None and self.price_cents_override < 0:
            raise ValueError("price_cents_override cannot be negative.")
        if not isinstance(self.discount_type, DiscountType):
            raise ValueError("discount_type must be DiscountType enum.")
        if self.discount_type == DiscountType.NONE:
            if self.discount_value is not None:
                raise ValueError("discount_value requires a discount_type.")
        else:
            if self.discount_value is None or self.discount_value < 0:
                raise ValueError("discount_value must be >= 0.")
            if self.discount_type == DiscountType.PERCENT and self.discount_value > 100:
                raise ValueError("PERCENT discount_value must be <= 100.")
        if self.position < 0:
            raise ValueError("position must be >= 0.")

    def to_dict(self) -> dict:
        return {
            "project_service_id": self.project_service_id,
            "project_id": self.project_id,
            "service_id": self.service_id,
            "quantity": self.quantity,
            "price_cents_override": self.price_cents_override,
            "title_override": self.title_override,
            "description": self.description,
            "notes": self.notes,
            "discount_type": self.discount_type.value,
            "discount_value": self.discount_value,
            "position": self.position,
            "version": self.version,
        }


# ══════════════════════════════════════════════════════════════
# CATALOG (read-only input owned by the catalog service)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CatalogService:
    """Prices are optional; a missing price is not an error."""
    service_id: str
    business_id: uuid.UUID
    name: str
    code: Optional[str] = None
    default_price_cents: Optional[int] = None
    daily_rate_cents: Optional[int] = None
    version: int = 0

    def __post_init__(self):
        if not self.service_id:
            raise ValueError("service_id must be non-empty.")
        for name in ("default_price_cents", "daily_rate_cents"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} cannot be negative.")


@dataclass(frozen=True)
class TaskTemplate:
    template_id: str
    business_id: uuid.UUID
    service_id: str
    title: str
    phase: Optional[TaskPhase] = None
    position: int = 0
    default_due_offset_days: Optional[int] = None
    version: int = 0

    def __post_init__(self):
        if not self.template_id or not self.service_id:
            raise ValueError("template_id and service_id must be non-empty.")
        if not self.title or not self.title.strip():
            raise ValueError("title must be non-empty.")
        if self.phase is not None and not isinstance(self.phase, TaskPhase):
            raise ValueError("phase must be TaskPhase enum.")


# ══════════════════════════════════════════════════════════════
# TASK
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Task:
    task_id: str
    business_id: uuid.UUID
    project_id: str
    title: str
    created_at: datetime
    project_service_id: Optional[str] = None
    phase: Optional[TaskPhase] = None
    status: TaskStatus = TaskStatus.TODO
    due_date: Optional[datetime] = None
    version: int = 0

    def dedup_key(self) -> tuple:
        return (self.project_service_id, self.title, self.phase)

    def to_dict(self) -> dict:
        return {
            "task_id": self.task_id,
            "project_id": self.project_id,
            "project_service_id": self.project_service_id,
            "title": self.title,
            "phase": self.phase.value if self.phase else None,
            "status": self.status.value,
            "due_date": _iso(self.due_date),
            "created_at": _iso(self.created_at),
        }
