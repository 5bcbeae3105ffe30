"""
Shared fixtures for the Studio engine tests.

- one in-memory store per test, a fixed clock and sequential ids
- actors for each role
- helpers to seed the catalog and build a priced project
"""

import itertools
import uuid
from datetime import datetime, timezone

import pytest

from adapters.django_api.wiring import create_dependencies
from core.context.actor_context import ActorContext
from core.permissions import ROLE_ADMIN, ROLE_MEMBER, ROLE_OWNER, ROLE_VIEWER
from core.primitives import CatalogService, TaskTemplate
from core.store import InMemoryBillingStore
from core.time.clock import FixedClock

BUSINESS_ID = uuid.uuid5(uuid.NAMESPACE_URL, "studio-test-business")
NOW = datetime(2026, 2, 21, 9, 0, 0, tzinfo=timezone.utc)


def _actor(role, *permissions):
    return ActorContext(
        actor_id=f"{role.lower()}-1",
        role=role,
        permissions=frozenset(permissions),
    )


# =============================================================================
# Infrastructure
# =============================================================================

@pytest.fixture
def business_id():
    return BUSINESS_ID


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def store():
    return InMemoryBillingStore()


@pytest.fixture
def id_factory():
    counter = itertools.count(1)
    return lambda: f"id-{next(counter):04d}"


@pytest.fixture
def deps(store, clock, id_factory):
    """Every engine service sharing one store, clock and id sequence."""
    return create_dependencies(store=store, clock=clock, id_factory=id_factory)


# =============================================================================
# Actors
# =============================================================================

@pytest.fixture
def owner():
    return _actor(ROLE_OWNER)


@pytest.fixture
def admin():
    return _actor(ROLE_ADMIN)


@pytest.fixture
def member():
    return _actor(ROLE_MEMBER)


@pytest.fixture
def viewer():
    return _actor(ROLE_VIEWER)


# =============================================================================
# Helpers
# =============================================================================

@pytest.fixture
def run(clock, business_id):
    """Build the command for `request` at the clock's now and execute it."""
    def _run(service, request, actor):
        command = request.to_command(
            business_id=business_id,
            actor=actor,
            issued_at=clock.now_utc(),
        )
        return service.execute(command)
    return _run


@pytest.fixture
def seed_catalog(store, business_id):
    """
    Seed one catalog service and its task templates.

    templates: iterable of (title, phase) or (title, phase, due_offset_days).
    """
    def _seed(service_id, name, *, default_price_cents=None,
              daily_rate_cents=None, templates=()):
        records = [CatalogService(
            service_id=service_id,
            business_id=business_id,
            name=name,
            default_price_cents=default_price_cents,
            daily_rate_cents=daily_rate_cents,
        )]
        for position, entry in enumerate(templates):
            title, phase = entry[0], entry[1]
            offset = entry[2] if len(entry) > 2 else None
            records.append(TaskTemplate(
                template_id=f"{service_id}-tpl-{position}",
                business_id=business_id,
                service_id=service_id,
                title=title,
                phase=phase,
                position=position,
                default_due_offset_days=offset,
            ))
        store.seed(*records)
    return _seed


@pytest.fixture
def make_project(deps, run, owner):
    """
    Create a project through the engine and add the given services.

    services: iterable of dicts passed to ProjectServiceAddRequest.
    Returns the project id.
    """
    from engines.projects.commands import ProjectCreateRequest, ProjectServiceAddRequest

    def _make(name="Website redesign", *, client_id="client-1", services=()):
        created = run(deps.projects, ProjectCreateRequest(name=name, client_id=client_id), owner)
        project_id = created.project.project_id
        for fields in services:
            run(deps.projects, ProjectServiceAddRequest(project_id=project_id, **fields), owner)
        return project_id
    return _make


@pytest.fixture
def priced_project(make_project):
    """A project whose services total 10000 cents."""
    return make_project(services=(
        {"service_id": "svc-design", "price_cents_override": 4000},
        {"service_id": "svc-dev", "quantity": 2, "price_cents_override": 3000},
    ))
