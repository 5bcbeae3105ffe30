"""Studio Projects Engine - request commands."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple

from core.commands.base import NOT_SET, Command, build_command
from core.commands.errors import ValidationError
from core.context.actor_context import ActorContext
from core.primitives.project import (
    DepositStatus,
    DiscountType,
    ProjectQuoteStatus,
    ProjectStatus,
)

PROJECT_CREATE_REQUEST = "project.lifecycle.create.request"
PROJECT_QUOTE_STATUS_SET_REQUEST = "project.quote_status.set.request"
PROJECT_DEPOSIT_STATUS_SET_REQUEST = "project.deposit_status.set.request"
PROJECT_STATUS_SET_REQUEST = "project.status.set.request"
PROJECT_BILLING_QUOTE_BIND_REQUEST = "project.billing_quote.bind.request"
PROJECT_START_REQUEST = "project.lifecycle.start.request"
PROJECT_ARCHIVE_REQUEST = "project.lifecycle.archive.request"
PROJECT_UNARCHIVE_REQUEST = "project.lifecycle.unarchive.request"
PROJECT_DELETE_REQUEST = "project.lifecycle.delete.request"
PROJECT_SERVICE_ADD_REQUEST = "project.service.add.request"
PROJECT_SERVICE_UPDATE_REQUEST = "project.service.update.request"
PROJECT_SERVICE_REMOVE_REQUEST = "project.service.remove.request"
PROJECT_SERVICE_REORDER_REQUEST = "project.service.reorder.request"

PROJECT_COMMAND_TYPES = frozenset({
    PROJECT_CREATE_REQUEST,
    PROJECT_QUOTE_STATUS_SET_REQUEST,
    PROJECT_DEPOSIT_STATUS_SET_REQUEST,
    PROJECT_STATUS_SET_REQUEST,
    PROJECT_BILLING_QUOTE_BIND_REQUEST,
    PROJECT_START_REQUEST,
    PROJECT_ARCHIVE_REQUEST,
    PROJECT_UNARCHIVE_REQUEST,
    PROJECT_DELETE_REQUEST,
    PROJECT_SERVICE_ADD_REQUEST,
    PROJECT_SERVICE_UPDATE_REQUEST,
    PROJECT_SERVICE_REMOVE_REQUEST,
    PROJECT_SERVICE_REORDER_REQUEST,
})

VALID_PROJECT_STATUSES = frozenset(s.value for s in ProjectStatus)
VALID_PROJECT_QUOTE_STATUSES = frozenset(s.value for s in ProjectQuoteStatus)
VALID_DEPOSIT_STATUSES = frozenset(s.value for s in DepositStatus)
VALID_DISCOUNT_TYPES = frozenset(d.value for d in DiscountType)

SERVICE_UPDATE_FIELDS = (
    "quantity",
    "price_cents_override",
    "title_override",
    "description",
    "notes",
    "discount_type",
    "discount_value",
)


def _require_id(value, name: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} must be non-empty.")


def _require_optional_id(value, name: str) -> None:
    if value is not None:
        _require_id(value, name)


def _require_quantity(value) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError("quantity must be integer >= 1.")


def _require_optional_cents(value, name: str) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{name} must be integer >= 0 or null.")


def _require_discount(discount_type, discount_value) -> None:
    if not isinstance(discount_type, str) or discount_type not in VALID_DISCOUNT_TYPES:
        raise ValidationError(f"discount_type '{discount_type}' is not valid.")
    if discount_type == DiscountType.NONE.value:
        return
    _require_optional_cents(discount_value, "discount_value")
    if discount_value is None:
        raise ValidationError("discount_value is required with a discount.")
    if discount_type == DiscountType.PERCENT.value and discount_value > 100:
        raise ValidationError("PERCENT discount_value must be between 0 and 100.")


class _ProjectRequest:
    """Shared to_command for requests addressed to one project."""

    command_type = ""

    def payload(self) -> dict:
        return {"project_id": self.project_id}

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


# ══════════════════════════════════════════════════════════════
# PROJECT LIFECYCLE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ProjectCreateRequest(_ProjectRequest):
    name: str
    client_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    category_reference_id: Optional[str] = None
    tag_reference_ids: Tuple[str, ...] = ()

    command_type = PROJECT_CREATE_REQUEST

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValidationError("name must be non-empty.")
        if len(self.name.strip()) > 200:
            raise ValidationError("name must be at most 200 characters.")
        _require_optional_id(self.client_id, "client_id")
        _require_optional_id(self.category_reference_id, "category_reference_id")
        for tag_id in self.tag_reference_ids:
            _require_id(tag_id, "tag_reference_ids item")
        if (self.start_date is not None and self.end_date is not None
                and self.end_date < self.start_date):
            raise ValidationError("end_date must not precede start_date.")

    def payload(self) -> dict:
        return {
            "name": self.name.strip(),
            "client_id": self.client_id,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "category_reference_id": self.category_reference_id,
            "tag_reference_ids": tuple(self.tag_reference_ids),
        }


@dataclass(frozen=True)
class ProjectQuoteStatusSetRequest(_ProjectRequest):
    project_id: str
    quote_status: str

    command_type = PROJECT_QUOTE_STATUS_SET_REQUEST

    def __post_init__(self):
        _require_id(self.project_id, "project_id")
        if (not isinstance(self.quote_status, str)
                or self.quote_status not in VALID_PROJECT_QUOTE_STATUSES):
            raise ValidationError(f"quote_status '{self.quote_status}' is not valid.")

    def payload(self) -> dict:
        return {"project_id": self.project_id, "quote_status": self.quote_status}


@dataclass(frozen=True)
class ProjectDepositStatusSetRequest(_ProjectRequest):
    """deposit_paid_at is only sent when explicitly supplied."""

    project_id: str
    deposit_status: str
    deposit_paid_at: object = NOT_SET

    command_type = PROJECT_DEPOSIT_STATUS_SET_REQUEST

    def __post_init__(self):
        _require_id(self.project_id, "project_id")
        if (not isinstance(self.deposit_status, str)
                or self.deposit_status not in VALID_DEPOSIT_STATUSES):
            raise ValidationError(f"deposit_status '{self.deposit_status}' is not valid.")
        if self.deposit_paid_at is NOT_SET or self.deposit_paid_at is None:
            return
        if not isinstance(self.deposit_paid_at, datetime) or self.deposit_paid_at.tzinfo is None:
            raise ValidationError("deposit_paid_at must be a timezone-aware datetime.")

    def payload(self) -> dict:
        payload = {"project_id": self.project_id, "deposit_status": self.deposit_status}
        if self.deposit_paid_at is not NOT_SET:
            payload["deposit_paid_at"] = self.deposit_paid_at
        return payload


@dataclass(frozen=True)
class ProjectStatusSetRequest(_ProjectRequest):
    project_id: str
    status: str

    command_type = PROJECT_STATUS_SET_REQUEST

    def __post_init__(self):
        _require_id(self.project_id, "project_id")
        if not isinstance(self.status, str) or self.status not in VALID_PROJECT_STATUSES:
            raise ValidationError(f"status '{self.status}' is not valid.")

    def payload(self) -> dict:
        return {"project_id": self.project_id, "status": self.status}


@dataclass(frozen=True)
class ProjectBillingQuoteBindRequest(_ProjectRequest):
    project_id: str
    quote_id: str

    command_type = PROJECT_BILLING_QUOTE_BIND_REQUEST

    def __post_init__(self):
        _require_id(self.project_id, "project_id")
        _require_id(self.quote_id, "quote_id")

    def payload(self) -> dict:
        return {"project_id": self.project_id, "quote_id": self.quote_id}


@dataclass(frozen=True)
class ProjectStartRequest(_ProjectRequest):
    project_id: str

    command_type = PROJECT_START_REQUEST

    def __post_init__(self):
        _require_id(self.project_id, "project_id")


@dataclass(frozen=True)
class ProjectArchiveRequest(_ProjectRequest):
    project_id: str

    command_type = PROJECT_ARCHIVE_REQUEST

    def __post_init__(self):
        _require_id(self.project_id, "project_id")


@dataclass(frozen=True)
class ProjectUnarchiveRequest(_ProjectRequest):
    project_id: str

    command_type = PROJECT_UNARCHIVE_REQUEST

    def __post_init__(self):
        _require_id(self.project_id, "project_id")


@dataclass(frozen=True)
class ProjectDeleteRequest(_ProjectRequest):
    project_id: str

    command_type = PROJECT_DELETE_REQUEST

    def __post_init__(self):
        _require_id(self.project_id, "project_id")


# ══════════════════════════════════════════════════════════════
# PROJECT SERVICES
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ProjectServiceAddRequest(_ProjectRequest):
    project_id: str
    service_id: str
    quantity: int = 1
    price_cents_override: Optional[int] = None
    title_override: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    discount_type: str = DiscountType.NONE.value
    discount_value: Optional[int] = None

    command_type = PROJECT_SERVICE_ADD_REQUEST

    def __post_init__(self):
        _require_id(self.project_id, "project_id")
        _require_id(self.service_id, "service_id")
        _require_quantity(self.quantity)
        _require_optional_cents(self.price_cents_override, "price_cents_override")
        _require_discount(self.discount_type, self.discount_value)

    def payload(self) -> dict:
        return {
            "project_id": self.project_id,
            "service_id": self.service_id,
            "quantity": self.quantity,
            "price_cents_override": self.price_cents_override,
            "title_override": self.title_override,
            "description": self.description,
            "notes": self.notes,
            "discount_type": self.discount_type,
            "discount_value": self.discount_value,
        }


@dataclass(frozen=True)
class ProjectServiceUpdateRequest(_ProjectRequest):
    """Only supplied fields change; None clears a nullable field."""

    project_service_id: str
    quantity: object = NOT_SET
    price_cents_override: object = NOT_SET
    title_override: object = NOT_SET
    description: object = NOT_SET
    notes: object = NOT_SET
    discount_type: object = NOT_SET
    discount_value: object = NOT_SET

    command_type = PROJECT_SERVICE_UPDATE_REQUEST

    def __post_init__(self):
        _require_id(self.project_service_id, "project_service_id")
        if self.quantity is not NOT_SET:
            _require_quantity(self.quantity)
        if self.price_cents_override is not NOT_SET:
            _require_optional_cents(self.price_cents_override, "price_cents_override")
        if self.discount_type is not NOT_SET:
            _require_discount(
                self.discount_type,
                None if self.discount_value is NOT_SET else self.discount_value,
            )
        elif self.discount_value is not NOT_SET:
            _require_optional_cents(self.discount_value, "discount_value")
        if not self.changes():
            raise ValidationError("At least one field must be updated.")

    def changes(self) -> dict:
        return {
            name: getattr(self, name)
            for name in SERVICE_UPDATE_FIELDS
            if getattr(self, name) is not NOT_SET
        }

    def payload(self) -> dict:
        return {"project_service_id": self.project_service_id, "changes": self.changes()}


@dataclass(frozen=True)
class ProjectServiceRemoveRequest(_ProjectRequest):
    project_service_id: str

    command_type = PROJECT_SERVICE_REMOVE_REQUEST

    def __post_init__(self):
        _require_id(self.project_service_id, "project_service_id")

    def payload(self) -> dict:
        return {"project_service_id": self.project_service_id}


@dataclass(frozen=True)
class ProjectServiceReorderRequest(_ProjectRequest):
    project_id: str
    ordered_ids: Tuple[str, ...]

    command_type = PROJECT_SERVICE_REORDER_REQUEST

    def __post_init__(self):
        _require_id(self.project_id, "project_id")
        if not self.ordered_ids:
            raise ValidationError("ordered_ids must be non-empty.")
        for item_id in self.ordered_ids:
            _require_id(item_id, "ordered_ids item")
        if len(set(self.ordered_ids)) != len(self.ordered_ids):
            raise ValidationError("ordered_ids must not contain duplicates.")

    def payload(self) -> dict:
        return {"project_id": self.project_id, "ordered_ids": tuple(self.ordered_ids)}
