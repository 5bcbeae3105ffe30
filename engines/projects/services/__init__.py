"""Studio Projects Engine - application service."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, Optional, Tuple

from core.commands.base import NOT_SET, Command
from core.commands.errors import (
    NotFoundError,
    PreconditionError,
    ValidationError,
    raise_if_rejected,
)
from core.context.actor_context import ActorContext
from core.engines.service import EngineService, build_event
from core.primitives.project import (
    DepositStatus,
    DiscountType,
    Project,
    ProjectQuoteStatus,
    ProjectService,
    ProjectStatus,
    Task,
)
from engines.projects import lifecycle
from engines.projects.commands import (
    PROJECT_ARCHIVE_REQUEST,
    PROJECT_BILLING_QUOTE_BIND_REQUEST,
    PROJECT_CREATE_REQUEST,
    PROJECT_DELETE_REQUEST,
    PROJECT_DEPOSIT_STATUS_SET_REQUEST,
    PROJECT_QUOTE_STATUS_SET_REQUEST,
    PROJECT_SERVICE_ADD_REQUEST,
    PROJECT_SERVICE_REMOVE_REQUEST,
    PROJECT_SERVICE_REORDER_REQUEST,
    PROJECT_SERVICE_UPDATE_REQUEST,
    PROJECT_START_REQUEST,
    PROJECT_STATUS_SET_REQUEST,
    PROJECT_UNARCHIVE_REQUEST,
)
from engines.projects.events import (
    PROJECT_ARCHIVED_V1,
    PROJECT_BILLING_QUOTE_BOUND_V1,
    PROJECT_CREATED_V1,
    PROJECT_DELETED_V1,
    PROJECT_DEPOSIT_STATUS_SET_V1,
    PROJECT_QUOTE_STATUS_SET_V1,
    PROJECT_SERVICE_ADDED_V1,
    PROJECT_SERVICE_REMOVED_V1,
    PROJECT_SERVICE_UPDATED_V1,
    PROJECT_SERVICES_REORDERED_V1,
    PROJECT_STARTED_V1,
    PROJECT_STATUS_SET_V1,
    PROJECT_UNARCHIVED_V1,
    build_project_deleted_payload,
    build_project_payload,
    build_project_service_payload,
    build_project_started_payload,
    build_services_reordered_payload,
)
from engines.projects.policies import (
    project_must_be_archived_policy,
    project_must_be_startable_policy,
    project_must_exist_policy,
    project_must_not_be_archived_policy,
    project_service_must_exist_policy,
    quote_must_be_signed_policy,
    quote_must_belong_to_project_policy,
    quote_must_exist_policy,
    reorder_must_cover_services_policy,
)
from engines.projects.tasks import generate_tasks


@dataclass(frozen=True)
class ProjectExecutionResult:
    project: Project
    events: Tuple[dict, ...]
    project_service: Optional[ProjectService] = None
    tasks: Tuple[Task, ...] = ()

    @property
    def entity_id(self) -> str:
        if self.project_service is not None:
            return self.project_service.project_service_id
        return self.project.project_id

    @property
    def started_at(self) -> Optional[datetime]:
        return self.project.started_at

    @property
    def tasks_created(self) -> int:
        return len(self.tasks)


def load_project(uow, business_id: uuid.UUID, project_id: str) -> Project:
    project = uow.get_project(business_id, project_id)
    raise_if_rejected(project_must_exist_policy(project, project_id), NotFoundError)
    return project


class ProjectLifecycleService(EngineService):
    engine_name = "project"
    logger = logging.getLogger("studio.projects")

    HANDLERS = {
        PROJECT_CREATE_REQUEST: "_create",
        PROJECT_QUOTE_STATUS_SET_REQUEST: "_set_quote_status",
        PROJECT_DEPOSIT_STATUS_SET_REQUEST: "_set_deposit_status",
        PROJECT_STATUS_SET_REQUEST: "_set_status",
        PROJECT_BILLING_QUOTE_BIND_REQUEST: "_bind_billing_quote",
        PROJECT_START_REQUEST: "_start",
        PROJECT_ARCHIVE_REQUEST: "_archive",
        PROJECT_UNARCHIVE_REQUEST: "_unarchive",
        PROJECT_DELETE_REQUEST: "_delete",
        PROJECT_SERVICE_ADD_REQUEST: "_add_service",
        PROJECT_SERVICE_UPDATE_REQUEST: "_update_service",
        PROJECT_SERVICE_REMOVE_REQUEST: "_remove_service",
        PROJECT_SERVICE_REORDER_REQUEST: "_reorder_services",
    }

    # ── reads ─────────────────────────────────────────────────

    def get_project(self, *, business_id: uuid.UUID, project_id: str,
                    actor: ActorContext) -> Project:
        self._authorize(actor, "project.read")
        with self._store.unit_of_work() as uow:
            return load_project(uow, business_id, project_id)

    def can_start(self, *, business_id: uuid.UUID, project_id: str,
                  actor: ActorContext) -> bool:
        return lifecycle.can_start(
            self.get_project(business_id=business_id, project_id=project_id, actor=actor)
        )

    # ── helpers ───────────────────────────────────────────────

    def _transition(
        self,
        command: Command,
        event_type: str,
        transform: Callable[[Project, datetime], Project],
        *,
        guards: Tuple[Callable, ...] = (project_must_not_be_archived_policy,),
    ) -> ProjectExecutionResult:
        with self._store.unit_of_work() as uow:
            project = load_project(uow, command.business_id, command.payload["project_id"])
            for guard in guards:
                raise_if_rejected(guard(project))
            updated = transform(project, command.issued_at)
            lifecycle.check_side_effects(command.command_type, project, updated)
            uow.save(updated)
            uow.commit()
            stored = uow.latest(updated)
        return ProjectExecutionResult(
            project=stored,
            events=(build_event(command, event_type, build_project_payload(command, stored)),),
        )

    # ── project lifecycle ─────────────────────────────────────

    def _create(self, command: Command) -> ProjectExecutionResult:
        payload = command.payload
        project = Project(
            project_id=self._new_id(),
            business_id=command.business_id,
            name=payload["name"],
            client_id=payload.get("client_id"),
            start_date=payload.get("start_date"),
            end_date=payload.get("end_date"),
            category_reference_id=payload.get("category_reference_id"),
            tag_reference_ids=tuple(payload.get("tag_reference_ids", ())),
            created_at=command.issued_at,
            updated_at=command.issued_at,
        )
        with self._store.unit_of_work() as uow:
            uow.add(project)
            uow.commit()
            stored = uow.latest(project)
        return ProjectExecutionResult(
            project=stored,
            events=(build_event(command, PROJECT_CREATED_V1,
                                build_project_payload(command, stored)),),
        )

    def _set_quote_status(self, command: Command) -> ProjectExecutionResult:
        status = ProjectQuoteStatus(command.payload["quote_status"])
        return self._transition(
            command,
            PROJECT_QUOTE_STATUS_SET_V1,
            lambda project, now: lifecycle.set_quote_status(project, status, now),
        )

    def _set_deposit_status(self, command: Command) -> ProjectExecutionResult:
        status = DepositStatus(command.payload["deposit_status"])
        explicit = command.payload.get("deposit_paid_at", NOT_SET)
        return self._transition(
            command,
            PROJECT_DEPOSIT_STATUS_SET_V1,
            lambda project, now: lifecycle.set_deposit_status(project, status, now, explicit),
        )

    def _set_status(self, command: Command) -> ProjectExecutionResult:
        status = ProjectStatus(command.payload["status"])
        return self._transition(
            command,
            PROJECT_STATUS_SET_V1,
            lambda project, now: lifecycle.set_status(project, status, now),
        )

    def _bind_billing_quote(self, command: Command) -> ProjectExecutionResult:
        quote_id = command.payload["quote_id"]
        with self._store.unit_of_work() as uow:
            project = load_project(uow, command.business_id, command.payload["project_id"])
            raise_if_rejected(project_must_not_be_archived_policy(project))
            quote = uow.get_quote(command.business_id, quote_id)
            raise_if_rejected(quote_must_exist_policy(quote, quote_id), NotFoundError)
            raise_if_rejected(quote_must_belong_to_project_policy(quote, project))
            raise_if_rejected(quote_must_be_signed_policy(quote))
            updated = lifecycle.bind_billing_quote(project, quote, command.issued_at)
            lifecycle.check_side_effects(command.command_type, project, updated)
            uow.save(updated)
            uow.commit()
            stored = uow.latest(updated)
        return ProjectExecutionResult(
            project=stored,
            events=(build_event(command, PROJECT_BILLING_QUOTE_BOUND_V1,
                                build_project_payload(command, stored)),),
        )

    def _start(self, command: Command) -> ProjectExecutionResult:
        now = command.issued_at
        with self._store.unit_of_work() as uow:
            project = load_project(uow, command.business_id, command.payload["project_id"])
            raise_if_rejected(project_must_be_startable_policy(project))

            services = uow.list_project_services(project.business_id, project.project_id)
            templates = uow.list_task_templates(
                project.business_id, {ps.service_id for ps in services}
            )
            tasks = generate_tasks(
                project,
                services,
                templates,
                uow.list_tasks(project.business_id, project.project_id),
                now=now,
                id_factory=self._new_id,
            )
            updated = lifecycle.start(project, now)
            lifecycle.check_side_effects(command.command_type, project, updated)
            uow.save(updated)
            for task in tasks:
                uow.add(task)
            uow.commit()
            stored = uow.latest(updated)
            stored_tasks = tuple(uow.latest(task) for task in tasks)
        return ProjectExecutionResult(
            project=stored,
            tasks=stored_tasks,
            events=(build_event(
                command,
                PROJECT_STARTED_V1,
                build_project_started_payload(command, stored, len(stored_tasks)),
            ),),
        )

    def _archive(self, command: Command) -> ProjectExecutionResult:
        return self._transition(command, PROJECT_ARCHIVED_V1, lifecycle.archive)

    def _unarchive(self, command: Command) -> ProjectExecutionResult:
        return self._transition(
            command,
            PROJECT_UNARCHIVED_V1,
            lifecycle.unarchive,
            guards=(project_must_be_archived_policy,),
        )

    def _delete(self, command: Command) -> ProjectExecutionResult:
        """Removes services and tasks; quotes, invoices and finance lines stay."""
        with self._store.unit_of_work() as uow:
            project = load_project(uow, command.business_id, command.payload["project_id"])
            services = uow.list_project_services(project.business_id, project.project_id)
            tasks = uow.list_tasks(project.business_id, project.project_id)
            for record in (*services, *tasks, project):
                uow.delete(record)
            uow.commit()
        return ProjectExecutionResult(
            project=project,
            events=(build_event(
                command,
                PROJECT_DELETED_V1,
                build_project_deleted_payload(command, project, len(services), len(tasks)),
            ),),
        )

    # ── project services ──────────────────────────────────────

    def _add_service(self, command: Command) -> ProjectExecutionResult:
        payload = command.payload
        with self._store.unit_of_work() as uow:
            project = load_project(uow, command.business_id, payload["project_id"])
            raise_if_rejected(project_must_not_be_archived_policy(project))
            existing = uow.list_project_services(project.business_id, project.project_id)
            discount_type = DiscountType(payload["discount_type"])
            project_service = ProjectService(
                project_service_id=self._new_id(),
                business_id=project.business_id,
                project_id=project.project_id,
                service_id=payload["service_id"],
                quantity=payload["quantity"],
                price_cents_override=payload["price_cents_override"],
                title_override=payload["title_override"],
                description=payload["description"],
                notes=payload["notes"],
                discount_type=discount_type,
                discount_value=(
                    payload["discount_value"] if discount_type != DiscountType.NONE else None
                ),
                position=max((ps.position for ps in existing), default=-1) + 1,
            )
            uow.add(project_service)
            uow.commit()
            stored = uow.latest(project_service)
        return ProjectExecutionResult(
            project=project,
            project_service=stored,
            events=(build_event(command, PROJECT_SERVICE_ADDED_V1,
                                build_project_service_payload(command, stored)),),
        )

    def _load_service_for_write(self, uow, command: Command):
        project_service_id = command.payload["project_service_id"]
        project_service = uow.get_project_service(command.business_id, project_service_id)
        raise_if_rejected(
            project_service_must_exist_policy(project_service, project_service_id),
            NotFoundError,
        )
        project = load_project(uow, command.business_id, project_service.project_id)
        raise_if_rejected(project_must_not_be_archived_policy(project))
        return project, project_service

    def _update_service(self, command: Command) -> ProjectExecutionResult:
        changes = dict(command.payload["changes"])
        if "discount_type" in changes:
            changes["discount_type"] = DiscountType(changes["discount_type"])
            if changes["discount_type"] == DiscountType.NONE:
                changes["discount_value"] = None
        with self._store.unit_of_work() as uow:
            project, project_service = self._load_service_for_write(uow, command)
            try:
                updated = replace(project_service, **changes)
            except ValueError as exc:
                raise ValidationError(str(exc)) from exc
            uow.save(updated)
            uow.commit()
            stored = uow.latest(updated)
        return ProjectExecutionResult(
            project=project,
            project_service=stored,
            events=(build_event(command, PROJECT_SERVICE_UPDATED_V1,
                                build_project_service_payload(command, stored)),),
        )

    def _remove_service(self, command: Command) -> ProjectExecutionResult:
        with self._store.unit_of_work() as uow:
            project, project_service = self._load_service_for_write(uow, command)
            uow.delete(project_service)
            uow.commit()
        return ProjectExecutionResult(
            project=project,
            project_service=project_service,
            events=(build_event(command, PROJECT_SERVICE_REMOVED_V1,
                                build_project_service_payload(command, project_service)),),
        )

    def _reorder_services(self, command: Command) -> ProjectExecutionResult:
        ordered_ids = command.payload["ordered_ids"]
        with self._store.unit_of_work() as uow:
            project = load_project(uow, command.business_id, command.payload["project_id"])
            raise_if_rejected(project_must_not_be_archived_policy(project))
            services = uow.list_project_services(project.business_id, project.project_id)
            rejection = reorder_must_cover_services_policy(services, ordered_ids)
            raise_if_rejected(rejection, ValidationError)
            by_id = {ps.project_service_id: ps for ps in services}
            for position, project_service_id in enumerate(ordered_ids):
                current = by_id[project_service_id]
                if current.position != position:
                    uow.save(replace(current, position=position))
            uow.commit()
        return ProjectExecutionResult(
            project=project,
            events=(build_event(
                command,
                PROJECT_SERVICES_REORDERED_V1,
                build_services_reordered_payload(command, project.project_id, ordered_ids),
            ),),
        )
