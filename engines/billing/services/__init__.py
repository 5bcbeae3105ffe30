"""Studio Billing Engine - summary read service."""

from __future__ import annotations

import logging
import uuid

from core.context.actor_context import ActorContext
from core.engines.service import EngineService
from core.primitives.project import Project
from engines.billing.aggregator import BillingSummary, summarize
from engines.pricing.services import snapshot_for_project
from engines.projects.services import load_project


def summary_for_project(uow, project: Project) -> BillingSummary:
    """Summarize `project` from the records visible in `uow`."""
    return summarize(
        project,
        uow.list_quotes(project.business_id, project.project_id),
        uow.list_invoices(project.business_id, project.project_id),
        uow.list_finance_lines(project.business_id, project.project_id),
        pricing_snapshot=snapshot_for_project(uow, project),
    )


class BillingSummaryService(EngineService):
    engine_name = "billing"
    logger = logging.getLogger("studio.billing")

    def get_billing_summary(
        self,
        *,
        business_id: uuid.UUID,
        project_id: str,
        actor: ActorContext,
    ) -> BillingSummary:
        self._authorize(actor, "billing.summary.read")
        with self._store.unit_of_work() as uow:
            project = load_project(uow, business_id, project_id)
            summary = summary_for_project(uow, project)
        self.logger.debug(
            "Summarized project %s from %s", project_id, summary.source.value
        )
        return summary
