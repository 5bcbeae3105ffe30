"""Studio Pricing Engine - read service."""

from __future__ import annotations

import logging
import uuid

from core.context.actor_context import ActorContext
from core.engines.service import EngineService
from engines.pricing.calculator import PricingSnapshot, compute_pricing
from engines.projects.services import load_project


def snapshot_for_project(uow, project, *, deposit_percent=None) -> PricingSnapshot:
    """Price `project` from the services and catalog visible in `uow`."""
    settings = uow.get_settings(project.business_id)
    services = uow.list_project_services(project.business_id, project.project_id)
    catalog = uow.get_catalog_services(
        project.business_id, {ps.service_id for ps in services}
    )
    return compute_pricing(
        project,
        services,
        catalog,
        deposit_percent=(
            settings.default_deposit_percent
            if deposit_percent is None else deposit_percent
        ),
        currency=settings.currency,
    )


class PricingService(EngineService):
    engine_name = "pricing"
    logger = logging.getLogger("studio.pricing")

    def get_pricing(
        self,
        *,
        business_id: uuid.UUID,
        project_id: str,
        actor: ActorContext,
    ) -> PricingSnapshot:
        self._authorize(actor, "project.pricing.read")
        with self._store.unit_of_work() as uow:
            project = load_project(uow, business_id, project_id)
            return snapshot_for_project(uow, project)
