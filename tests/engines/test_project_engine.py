"""Studio Projects Engine tests (lifecycle, services, start and tasks)."""

import itertools
import uuid
from datetime import datetime, timedelta, timezone

import pytest

BIZ = uuid.uuid4()
NOW = datetime(2026, 2, 21, 9, 0, 0, tzinfo=timezone.utc)


def _project(**overrides):
    from core.primitives import Project

    fields = dict(
        project_id="p-1",
        business_id=BIZ,
        name="Website",
        created_at=NOW,
        updated_at=NOW,
    )
    fields.update(overrides)
    return Project(**fields)


def _make_startable(deps, run, owner, project_id):
    from engines.projects.commands import (
        ProjectDepositStatusSetRequest,
        ProjectQuoteStatusSetRequest,
    )

    run(deps.projects, ProjectQuoteStatusSetRequest(project_id=project_id, quote_status="SIGNED"), owner)
    run(deps.projects, ProjectDepositStatusSetRequest(project_id=project_id, deposit_status="PAID"), owner)


def _signed_quote(deps, run, owner, project_id):
    from engines.quotes.commands import QuoteCreateRequest, QuoteTransitionRequest

    quote_id = run(deps.quotes, QuoteCreateRequest(project_id=project_id), owner).quote.quote_id
    run(deps.quotes, QuoteTransitionRequest(quote_id=quote_id, target_status="SENT"), owner)
    run(deps.quotes, QuoteTransitionRequest(quote_id=quote_id, target_status="SIGNED"), owner)
    return quote_id


# ══════════════════════════════════════════════════════════════
# REQUESTS
# ══════════════════════════════════════════════════════════════

class TestProjectRequests:
    def test_create_request_to_command(self):
        from core.context.actor_context import ActorContext
        from engines.projects.commands import ProjectCreateRequest

        cmd = ProjectCreateRequest(name="  Website  ").to_command(
            business_id=BIZ,
            actor=ActorContext(actor_id="owner-1", role="OWNER"),
            issued_at=NOW,
        )
        assert cmd.command_type == "project.lifecycle.create.request"
        assert cmd.source_engine == "project"
        assert cmd.payload["name"] == "Website"

    def test_blank_name_rejected(self):
        from core.commands.errors import ValidationError
        from engines.projects.commands import ProjectCreateRequest

        with pytest.raises(ValidationError, match="name"):
            ProjectCreateRequest(name="   ")

    def test_unknown_deposit_status_rejected(self):
        from core.commands.errors import ValidationError
        from engines.projects.commands import ProjectDepositStatusSetRequest

        with pytest.raises(ValidationError, match="not valid"):
            ProjectDepositStatusSetRequest(project_id="p-1", deposit_status="WAIVED")

    def test_deposit_paid_at_only_sent_when_supplied(self):
        from engines.projects.commands import ProjectDepositStatusSetRequest

        assert "deposit_paid_at" not in ProjectDepositStatusSetRequest(
            project_id="p-1", deposit_status="PAID"
        ).payload()
        assert ProjectDepositStatusSetRequest(
            project_id="p-1", deposit_status="PAID", deposit_paid_at=NOW
        ).payload()["deposit_paid_at"] == NOW

    def test_percent_discount_requires_value(self):
        from core.commands.errors import ValidationError
        from engines.projects.commands import ProjectServiceAddRequest

        with pytest.raises(ValidationError, match="discount_value is required"):
            ProjectServiceAddRequest(project_id="p-1", service_id="svc", discount_type="PERCENT")

    def test_update_requires_a_change(self):
        from core.commands.errors import ValidationError
        from engines.projects.commands import ProjectServiceUpdateRequest

        with pytest.raises(ValidationError, match="At least one field"):
            ProjectServiceUpdateRequest(project_service_id="ps-1")

    def test_update_can_clear_override(self):
        from engines.projects.commands import ProjectServiceUpdateRequest

        request = ProjectServiceUpdateRequest(project_service_id="ps-1", price_cents_override=None)
        assert request.changes() == {"price_cents_override": None}

    def test_reorder_rejects_duplicates(self):
        from core.commands.errors import ValidationError
        from engines.projects.commands import ProjectServiceReorderRequest

        with pytest.raises(ValidationError, match="duplicates"):
            ProjectServiceReorderRequest(project_id="p-1", ordered_ids=("a", "a"))


# ══════════════════════════════════════════════════════════════
# PURE LIFECYCLE
# ══════════════════════════════════════════════════════════════

class TestCanStart:
    @pytest.mark.parametrize("quote_status, deposit_status, expected", [
        ("SIGNED", "PAID", True),
        ("ACCEPTED", "NOT_REQUIRED", True),
        ("SIGNED", "PENDING", False),
        ("SENT", "PAID", False),
        ("DRAFT", "NOT_REQUIRED", False),
    ])
    def test_status_combinations(self, quote_status, deposit_status, expected):
        from core.primitives import DepositStatus, ProjectQuoteStatus
        from engines.projects.lifecycle import can_start

        project = _project(
            quote_status=ProjectQuoteStatus(quote_status),
            deposit_status=DepositStatus(deposit_status),
            deposit_paid_at=NOW if deposit_status == "PAID" else None,
        )
        assert can_start(project) is expected

    def test_started_or_archived_cannot_start(self):
        from core.primitives import DepositStatus, ProjectQuoteStatus
        from engines.projects.lifecycle import can_start, start_blockers

        ready = dict(
            quote_status=ProjectQuoteStatus.SIGNED,
            deposit_status=DepositStatus.NOT_REQUIRED,
        )
        assert not can_start(_project(started_at=NOW, **ready))
        assert not can_start(_project(archived_at=NOW, **ready))
        assert start_blockers(_project(archived_at=NOW, started_at=NOW, **ready)) == (
            "project already started",
            "project is archived",
        )

    def test_pure(self):
        from engines.projects.lifecycle import can_start

        project = _project()
        assert can_start(project) == can_start(project) is False


class TestDepositRule:
    def test_paid_without_timestamp_uses_now(self):
        from core.primitives import DepositStatus
        from engines.projects.lifecycle import set_deposit_status

        project = set_deposit_status(_project(), DepositStatus.PAID, NOW)
        assert project.deposit_paid_at == NOW

    def test_explicit_timestamp_kept(self):
        from core.primitives import DepositStatus
        from engines.projects.lifecycle import set_deposit_status

        earlier = NOW - timedelta(days=3)
        project = set_deposit_status(_project(), DepositStatus.PAID, NOW, earlier)
        assert project.deposit_paid_at == earlier

    def test_explicit_null_for_paid_rejected(self):
        from core.commands.errors import ValidationError
        from core.primitives import DepositStatus
        from engines.projects.lifecycle import set_deposit_status

        with pytest.raises(ValidationError, match="cannot be null"):
            set_deposit_status(_project(), DepositStatus.PAID, NOW, None)

    def test_timestamp_for_unpaid_rejected(self):
        from core.commands.errors import ValidationError
        from core.primitives import DepositStatus
        from engines.projects.lifecycle import set_deposit_status

        with pytest.raises(ValidationError, match="only be set"):
            set_deposit_status(_project(), DepositStatus.PENDING, NOW, NOW)


class TestSideEffects:
    def test_undeclared_field_change_detected(self):
        from dataclasses import replace

        from engines.projects.commands import PROJECT_ARCHIVE_REQUEST
        from engines.projects.lifecycle import check_side_effects

        before = _project()
        with pytest.raises(RuntimeError, match="name"):
            check_side_effects(PROJECT_ARCHIVE_REQUEST, before, replace(before, name="x", archived_at=NOW))

    def test_declared_changes_pass(self):
        from engines.projects.commands import PROJECT_START_REQUEST
        from engines.projects.lifecycle import check_side_effects, start

        before = _project()
        check_side_effects(PROJECT_START_REQUEST, before, start(before, NOW))


# ══════════════════════════════════════════════════════════════
# TASK GENERATOR
# ══════════════════════════════════════════════════════════════

class TestTaskGenerator:
    def _inputs(self):
        from core.primitives import ProjectService, TaskPhase, TaskTemplate

        services = [
            ProjectService(project_service_id="ps-1", business_id=BIZ, project_id="p-1",
                           service_id="svc-design", position=0),
            ProjectService(project_service_id="ps-2", business_id=BIZ, project_id="p-1",
                           service_id="svc-dev", position=1),
        ]
        templates = [
            TaskTemplate(template_id="t-1", business_id=BIZ, service_id="svc-design",
                         title="Moodboard", phase=TaskPhase.DESIGN, default_due_offset_days=5),
            TaskTemplate(template_id="t-2", business_id=BIZ, service_id="svc-design",
                         title="Kickoff call", phase=TaskPhase.CADRAGE, position=1),
            TaskTemplate(template_id="t-3", business_id=BIZ, service_id="svc-dev",
                         title="Follow-up"),
            TaskTemplate(template_id="t-4", business_id=BIZ, service_id="svc-dev",
                         title="Build pages", phase=TaskPhase.DEV),
            TaskTemplate(template_id="t-5", business_id=BIZ, service_id="svc-unused",
                         title="Never", phase=TaskPhase.SEO),
        ]
        return services, templates

    def _ids(self):
        counter = itertools.count(1)
        return lambda: f"task-{next(counter)}"

    def test_order_and_due_dates(self):
        from engines.projects.tasks import generate_tasks

        services, templates = self._inputs()
        tasks = generate_tasks(_project(), services, templates, [], now=NOW, id_factory=self._ids())
        assert [t.title for t in tasks] == ["Kickoff call", "Moodboard", "Build pages", "Follow-up"]
        assert tasks[1].due_date == NOW + timedelta(days=5)
        assert tasks[0].due_date is None
        assert tasks[2].project_service_id == "ps-2"

    def test_existing_tasks_not_duplicated(self):
        from engines.projects.tasks import generate_tasks

        services, templates = self._inputs()
        first = generate_tasks(_project(), services, templates, [], now=NOW, id_factory=self._ids())
        again = generate_tasks(_project(), services, templates, first, now=NOW, id_factory=self._ids())
        assert again == []

    def test_no_templates_is_fine(self):
        from engines.projects.tasks import generate_tasks

        services, _ = self._inputs()
        assert generate_tasks(_project(), services, [], [], now=NOW, id_factory=self._ids()) == []


# ══════════════════════════════════════════════════════════════
# SERVICE - LIFECYCLE
# ══════════════════════════════════════════════════════════════

class TestProjectLifecycleService:
    def test_create(self, deps, run, owner):
        from engines.projects.commands import ProjectCreateRequest

        result = run(deps.projects, ProjectCreateRequest(name="Website", client_id="c-1"), owner)
        project = result.project
        assert project.project_id == "id-0001"
        assert project.status.value == "PLANNED"
        assert project.quote_status.value == "DRAFT"
        assert project.deposit_status.value == "PENDING"
        assert project.version == 1
        assert result.events[0]["event_type"] == "project.lifecycle.created.v1"
        assert result.events[0]["payload"]["actor_id"] == "owner-1"

    def test_member_cannot_create(self, deps, run, member):
        from core.commands.errors import AuthorizationError
        from engines.projects.commands import ProjectCreateRequest

        with pytest.raises(AuthorizationError):
            run(deps.projects, ProjectCreateRequest(name="Website"), member)

    def test_deposit_paid_then_pending(self, deps, run, owner, clock, make_project):
        from engines.projects.commands import ProjectDepositStatusSetRequest

        project_id = make_project()
        paid = run(deps.projects, ProjectDepositStatusSetRequest(
            project_id=project_id, deposit_status="PAID"), owner).project
        assert paid.deposit_paid_at == clock.now_utc()

        pending = run(deps.projects, ProjectDepositStatusSetRequest(
            project_id=project_id, deposit_status="PENDING"), owner).project
        assert pending.deposit_status.value == "PENDING"
        assert pending.deposit_paid_at is None

    def test_repeating_paid_keeps_timestamp(self, deps, run, owner, clock, make_project):
        from engines.projects.commands import ProjectDepositStatusSetRequest

        project_id = make_project()
        first = run(deps.projects, ProjectDepositStatusSetRequest(
            project_id=project_id, deposit_status="PAID"), owner).project
        clock.advance(days=1)
        second = run(deps.projects, ProjectDepositStatusSetRequest(
            project_id=project_id, deposit_status="PAID"), owner).project
        assert second.deposit_paid_at == first.deposit_paid_at
        assert second.updated_at == clock.now_utc()

    def test_status_set(self, deps, run, owner, make_project):
        from engines.projects.commands import ProjectStatusSetRequest

        project_id = make_project()
        result = run(deps.projects, ProjectStatusSetRequest(project_id=project_id, status="ON_HOLD"), owner)
        assert result.project.status.value == "ON_HOLD"
        assert result.events[0]["event_type"] == "project.status.set.v1"

    def test_unknown_project(self, deps, run, owner):
        from core.commands.errors import NotFoundError
        from engines.projects.commands import ProjectStatusSetRequest

        with pytest.raises(NotFoundError) as excinfo:
            run(deps.projects, ProjectStatusSetRequest(project_id="missing", status="ACTIVE"), owner)
        assert excinfo.value.code == "PROJECT_NOT_FOUND"

    def test_start_generates_tasks(self, deps, run, owner, clock, business_id,
                                   seed_catalog, priced_project):
        from core.primitives import TaskPhase
        from engines.projects.commands import ProjectStartRequest

        seed_catalog("svc-design", "Design", templates=(
            ("Moodboard", TaskPhase.DESIGN, 5),
            ("Kickoff call", TaskPhase.CADRAGE),
        ))
        seed_catalog("svc-dev", "Development", templates=(("Build pages", TaskPhase.DEV),))
        _make_startable(deps, run, owner, priced_project)
        assert deps.projects.can_start(business_id=business_id, project_id=priced_project, actor=owner)

        result = run(deps.projects, ProjectStartRequest(project_id=priced_project), owner)
        assert result.started_at == clock.now_utc()
        assert result.project.status.value == "ACTIVE"
        assert result.tasks_created == 3
        assert [t.title for t in result.tasks] == ["Kickoff call", "Moodboard", "Build pages"]
        assert result.events[0]["payload"]["tasks_created"] == 3

        with deps.store.unit_of_work() as uow:
            assert len(uow.list_tasks(business_id, priced_project)) == 3
        assert not deps.projects.can_start(
            business_id=business_id, project_id=priced_project, actor=owner
        )

    def test_start_without_templates(self, deps, run, owner, priced_project):
        from engines.projects.commands import ProjectStartRequest

        _make_startable(deps, run, owner, priced_project)
        result = run(deps.projects, ProjectStartRequest(project_id=priced_project), owner)
        assert result.tasks_created == 0
        assert result.project.started_at is not None

    def test_start_when_not_startable(self, deps, run, owner, business_id, make_project):
        from core.commands.errors import PreconditionError
        from engines.projects.commands import ProjectStartRequest

        project_id = make_project()
        with pytest.raises(PreconditionError) as excinfo:
            run(deps.projects, ProjectStartRequest(project_id=project_id), owner)
        assert excinfo.value.code == "PROJECT_NOT_STARTABLE"
        assert "quote status is DRAFT" in excinfo.value.details["blockers"]

        project = deps.projects.get_project(business_id=business_id, project_id=project_id, actor=owner)
        assert project.started_at is None
        assert project.version == 1

    def test_start_twice_rejected(self, deps, run, owner, priced_project):
        from core.commands.errors import PreconditionError
        from engines.projects.commands import ProjectStartRequest

        _make_startable(deps, run, owner, priced_project)
        run(deps.projects, ProjectStartRequest(project_id=priced_project), owner)
        with pytest.raises(PreconditionError, match="already started"):
            run(deps.projects, ProjectStartRequest(project_id=priced_project), owner)

    def test_archive_and_unarchive(self, deps, run, owner, make_project):
        from core.commands.errors import PreconditionError
        from engines.projects.commands import (
            ProjectArchiveRequest,
            ProjectServiceAddRequest,
            ProjectUnarchiveRequest,
        )

        project_id = make_project()
        archived = run(deps.projects, ProjectArchiveRequest(project_id=project_id), owner).project
        assert archived.archived_at is not None

        with pytest.raises(PreconditionError) as excinfo:
            run(deps.projects, ProjectServiceAddRequest(project_id=project_id, service_id="svc"), owner)
        assert excinfo.value.code == "PROJECT_ARCHIVED"
        with pytest.raises(PreconditionError):
            run(deps.projects, ProjectArchiveRequest(project_id=project_id), owner)

        restored = run(deps.projects, ProjectUnarchiveRequest(project_id=project_id), owner).project
        assert restored.archived_at is None
        with pytest.raises(PreconditionError) as excinfo:
            run(deps.projects, ProjectUnarchiveRequest(project_id=project_id), owner)
        assert excinfo.value.code == "PROJECT_NOT_ARCHIVED"

    def test_delete_cascades_services_and_tasks(self, deps, run, owner, business_id,
                                                seed_catalog, priced_project):
        from core.commands.errors import NotFoundError
        from core.primitives import TaskPhase
        from engines.projects.commands import ProjectDeleteRequest, ProjectStartRequest

        seed_catalog("svc-dev", "Development", templates=(("Build pages", TaskPhase.DEV),))
        _make_startable(deps, run, owner, priced_project)
        run(deps.projects, ProjectStartRequest(project_id=priced_project), owner)

        result = run(deps.projects, ProjectDeleteRequest(project_id=priced_project), owner)
        payload = result.events[0]["payload"]
        assert payload["services_removed"] == 2
        assert payload["tasks_removed"] == 1

        with deps.store.unit_of_work() as uow:
            assert uow.list_project_services(business_id, priced_project) == []
            assert uow.list_tasks(business_id, priced_project) == []
        with pytest.raises(NotFoundError):
            deps.projects.get_project(business_id=business_id, project_id=priced_project, actor=owner)

    def test_only_owner_deletes(self, deps, run, admin, make_project):
        from core.commands.errors import AuthorizationError
        from engines.projects.commands import ProjectDeleteRequest

        project_id = make_project()
        with pytest.raises(AuthorizationError):
            run(deps.projects, ProjectDeleteRequest(project_id=project_id), admin)


# ══════════════════════════════════════════════════════════════
# SERVICE - BILLING QUOTE
# ══════════════════════════════════════════════════════════════

class TestBillingQuoteBinding:
    def test_signing_binds_project(self, deps, run, owner, business_id, priced_project):
        quote_id = _signed_quote(deps, run, owner, priced_project)
        project = deps.projects.get_project(
            business_id=business_id, project_id=priced_project, actor=owner
        )
        assert project.billing_quote_id == quote_id
        assert project.quote_status.value == "SIGNED"

    def test_explicit_rebind(self, deps, run, owner, priced_project):
        from engines.projects.commands import ProjectBillingQuoteBindRequest

        first = _signed_quote(deps, run, owner, priced_project)
        second = _signed_quote(deps, run, owner, priced_project)
        result = run(deps.projects, ProjectBillingQuoteBindRequest(
            project_id=priced_project, quote_id=first), owner)
        assert result.project.billing_quote_id == first != second
        assert result.events[0]["event_type"] == "project.billing_quote.bound.v1"

    def test_unsigned_quote_rejected(self, deps, run, owner, priced_project):
        from core.commands.errors import PreconditionError
        from engines.projects.commands import ProjectBillingQuoteBindRequest
        from engines.quotes.commands import QuoteCreateRequest

        quote_id = run(deps.quotes, QuoteCreateRequest(project_id=priced_project), owner).quote.quote_id
        with pytest.raises(PreconditionError) as excinfo:
            run(deps.projects, ProjectBillingQuoteBindRequest(
                project_id=priced_project, quote_id=quote_id), owner)
        assert excinfo.value.code == "QUOTE_NOT_SIGNED"

    def test_quote_of_other_project_rejected(self, deps, run, owner, make_project, priced_project):
        from core.commands.errors import PreconditionError
        from engines.projects.commands import ProjectBillingQuoteBindRequest

        quote_id = _signed_quote(deps, run, owner, priced_project)
        other = make_project("Other")
        with pytest.raises(PreconditionError) as excinfo:
            run(deps.projects, ProjectBillingQuoteBindRequest(project_id=other, quote_id=quote_id), owner)
        assert excinfo.value.code == "QUOTE_PROJECT_MISMATCH"

    def test_missing_quote(self, deps, run, owner, priced_project):
        from core.commands.errors import NotFoundError
        from engines.projects.commands import ProjectBillingQuoteBindRequest

        with pytest.raises(NotFoundError):
            run(deps.projects, ProjectBillingQuoteBindRequest(
                project_id=priced_project, quote_id="missing"), owner)

    def test_quote_status_locked_while_bound(self, deps, run, owner, priced_project):
        from core.commands.errors import PreconditionError
        from engines.projects.commands import ProjectQuoteStatusSetRequest

        _signed_quote(deps, run, owner, priced_project)
        with pytest.raises(PreconditionError, match="stay SIGNED"):
            run(deps.projects, ProjectQuoteStatusSetRequest(
                project_id=priced_project, quote_status="SENT"), owner)


# ══════════════════════════════════════════════════════════════
# SERVICE - PROJECT SERVICES
# ══════════════════════════════════════════════════════════════

class TestProjectServices:
    def test_add_appends_position(self, deps, run, owner, priced_project):
        from engines.projects.commands import ProjectServiceAddRequest

        result = run(deps.projects, ProjectServiceAddRequest(
            project_id=priced_project, service_id="svc-seo", quantity=3), owner)
        assert result.project_service.position == 2
        assert result.entity_id == result.project_service.project_service_id
        assert result.events[0]["event_type"] == "project.service.added.v1"

    def test_team_edit_flag_grants_service_edits(self, deps, run, member, make_project):
        from core.context.actor_context import ActorContext
        from core.commands.errors import AuthorizationError
        from engines.projects.commands import ProjectServiceAddRequest

        project_id = make_project()
        with pytest.raises(AuthorizationError):
            run(deps.projects, ProjectServiceAddRequest(project_id=project_id, service_id="svc"), member)
        editor = ActorContext(actor_id="member-2", role="MEMBER", permissions={"TEAM_EDIT"})
        result = run(deps.projects, ProjectServiceAddRequest(project_id=project_id, service_id="svc"), editor)
        assert result.project_service.service_id == "svc"

    def test_update_changes_pricing(self, deps, run, owner, business_id, priced_project):
        from engines.projects.commands import ProjectServiceUpdateRequest

        with deps.store.unit_of_work() as uow:
            design = uow.list_project_services(business_id, priced_project)[0]
        run(deps.projects, ProjectServiceUpdateRequest(
            project_service_id=design.project_service_id,
            discount_type="PERCENT",
            discount_value=50,
        ), owner)
        snapshot = deps.pricing.get_pricing(
            business_id=business_id, project_id=priced_project, actor=owner
        )
        assert snapshot.total_cents == 8000

    def test_update_discount_value_without_type(self, deps, run, owner, business_id, priced_project):
        from core.commands.errors import ValidationError
        from engines.projects.commands import ProjectServiceUpdateRequest

        with deps.store.unit_of_work() as uow:
            design = uow.list_project_services(business_id, priced_project)[0]
        with pytest.raises(ValidationError, match="discount_type"):
            run(deps.projects, ProjectServiceUpdateRequest(
                project_service_id=design.project_service_id, discount_value=10), owner)

    def test_update_missing_service(self, deps, run, owner):
        from core.commands.errors import NotFoundError
        from engines.projects.commands import ProjectServiceUpdateRequest

        with pytest.raises(NotFoundError) as excinfo:
            run(deps.projects, ProjectServiceUpdateRequest(project_service_id="nope", quantity=2), owner)
        assert excinfo.value.code == "PROJECT_SERVICE_NOT_FOUND"

    def test_remove(self, deps, run, owner, business_id, priced_project):
        from engines.projects.commands import ProjectServiceRemoveRequest

        with deps.store.unit_of_work() as uow:
            design = uow.list_project_services(business_id, priced_project)[0]
        run(deps.projects, ProjectServiceRemoveRequest(
            project_service_id=design.project_service_id), owner)
        with deps.store.unit_of_work() as uow:
            remaining = uow.list_project_services(business_id, priced_project)
        assert [ps.service_id for ps in remaining] == ["svc-dev"]

    def test_reorder(self, deps, run, owner, business_id, priced_project):
        from engines.projects.commands import ProjectServiceReorderRequest

        with deps.store.unit_of_work() as uow:
            ids = [ps.project_service_id for ps in uow.list_project_services(business_id, priced_project)]
        run(deps.projects, ProjectServiceReorderRequest(
            project_id=priced_project, ordered_ids=tuple(reversed(ids))), owner)
        with deps.store.unit_of_work() as uow:
            reordered = uow.list_project_services(business_id, priced_project)
        assert [ps.project_service_id for ps in reordered] == list(reversed(ids))
        assert [ps.position for ps in reordered] == [0, 1]

    def test_reorder_must_cover_every_service(self, deps, run, owner, business_id, priced_project):
        from core.commands.errors import ValidationError
        from engines.projects.commands import ProjectServiceReorderRequest

        with deps.store.unit_of_work() as uow:
            first = uow.list_project_services(business_id, priced_project)[0]
        with pytest.raises(ValidationError, match="every service"):
            run(deps.projects, ProjectServiceReorderRequest(
                project_id=priced_project, ordered_ids=(first.project_service_id,)), owner)


class TestEventPublishing:
    def test_failing_sink_does_not_fail_committed_command(self, store, clock, id_factory,
                                                          run, owner, viewer, business_id,
                                                          caplog):
        import logging

        from engines.projects.commands import ProjectCreateRequest
        from engines.projects.services import ProjectLifecycleService

        delivered = []

        def sink(event):
            delivered.append(event["event_type"])
            raise RuntimeError("sink unavailable")

        service = ProjectLifecycleService(
            store=store, clock=clock, id_factory=id_factory, event_sink=sink
        )
        with caplog.at_level(logging.ERROR, logger="studio.projects"):
            result = run(service, ProjectCreateRequest(name="Website"), owner)

        assert delivered == ["project.lifecycle.created.v1"]
        assert "Post-commit publish failed" in caplog.text
        stored = service.get_project(
            business_id=business_id, project_id=result.project.project_id, actor=viewer
        )
        assert stored.name == "Website"
