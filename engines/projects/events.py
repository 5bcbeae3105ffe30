"""Studio Projects Engine - event types and payload builders."""

from __future__ import annotations

from core.commands.base import Command
from core.primitives.project import Project, ProjectService

PROJECT_CREATED_V1 = "project.lifecycle.created.v1"
PROJECT_QUOTE_STATUS_SET_V1 = "project.quote_status.set.v1"
PROJECT_DEPOSIT_STATUS_SET_V1 = "project.deposit_status.set.v1"
PROJECT_STATUS_SET_V1 = "project.status.set.v1"
PROJECT_BILLING_QUOTE_BOUND_V1 = "project.billing_quote.bound.v1"
PROJECT_STARTED_V1 = "project.lifecycle.started.v1"
PROJECT_ARCHIVED_V1 = "project.lifecycle.archived.v1"
PROJECT_UNARCHIVED_V1 = "project.lifecycle.unarchived.v1"
PROJECT_DELETED_V1 = "project.lifecycle.deleted.v1"
PROJECT_SERVICE_ADDED_V1 = "project.service.added.v1"
PROJECT_SERVICE_UPDATED_V1 = "project.service.updated.v1"
PROJECT_SERVICE_REMOVED_V1 = "project.service.removed.v1"
PROJECT_SERVICES_REORDERED_V1 = "project.service.reordered.v1"

PROJECT_EVENT_TYPES = (
    PROJECT_CREATED_V1,
    PROJECT_QUOTE_STATUS_SET_V1,
    PROJECT_DEPOSIT_STATUS_SET_V1,
    PROJECT_STATUS_SET_V1,
    PROJECT_BILLING_QUOTE_BOUND_V1,
    PROJECT_STARTED_V1,
    PROJECT_ARCHIVED_V1,
    PROJECT_UNARCHIVED_V1,
    PROJECT_DELETED_V1,
    PROJECT_SERVICE_ADDED_V1,
    PROJECT_SERVICE_UPDATED_V1,
    PROJECT_SERVICE_REMOVED_V1,
    PROJECT_SERVICES_REORDERED_V1,
)


def _base_payload(command: Command) -> dict:
    return {
        "business_id": command.business_id,
        "actor_id": command.actor.actor_id,
        "actor_role": command.actor.role,
        "correlation_id": command.correlation_id,
        "command_id": command.command_id,
    }


def build_project_payload(command: Command, project: Project) -> dict:
    payload = _base_payload(command)
    payload.update({
        "project_id": project.project_id,
        "status": project.status.value,
        "quote_status": project.quote_status.value,
        "deposit_status": project.deposit_status.value,
        "deposit_paid_at": project.deposit_paid_at,
        "billing_quote_id": project.billing_quote_id,
        "archived_at": project.archived_at,
    })
    return payload


def build_project_started_payload(command: Command, project: Project, tasks_created: int) -> dict:
    payload = _base_payload(command)
    payload.update({
        "project_id": project.project_id,
        "started_at": project.started_at,
        "tasks_created": tasks_created,
    })
    return payload


def build_project_deleted_payload(command: Command, project: Project,
                                  services_removed: int, tasks_removed: int) -> dict:
    payload = _base_payload(command)
    payload.update({
        "project_id": project.project_id,
        "services_removed": services_removed,
        "tasks_removed": tasks_removed,
        "deleted_at": command.issued_at,
    })
    return payload


def build_project_service_payload(command: Command, project_service: ProjectService) -> dict:
    payload = _base_payload(command)
    payload.update({
        "project_id": project_service.project_id,
        "project_service_id": project_service.project_service_id,
        "service_id": project_service.service_id,
        "quantity": project_service.quantity,
        "price_cents_override": project_service.price_cents_override,
        "position": project_service.position,
    })
    return payload


def build_services_reordered_payload(command: Command, project_id: str, ordered_ids) -> dict:
    payload = _base_payload(command)
    payload.update({
        "project_id": project_id,
        "ordered_ids": list(ordered_ids),
    })
    return payload
