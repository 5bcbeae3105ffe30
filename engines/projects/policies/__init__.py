"""Studio Projects Engine - policies."""

from __future__ import annotations

from typing import Iterable, Optional

from core.commands.rejection import ReasonCode, RejectionReason
from core.primitives.document import Quote, QuoteStatus
from core.primitives.project import Project, ProjectService
from engines.projects.lifecycle import start_blockers


def project_must_exist_policy(project: Optional[Project], project_id: str) -> RejectionReason | None:
    if project is None:
        return RejectionReason(
            code=ReasonCode.PROJECT_NOT_FOUND,
            message=f"Project '{project_id}' not found.",
            policy_name="project_must_exist_policy",
            details={"project_id": project_id},
        )
    return None


def project_must_not_be_archived_policy(project: Project) -> RejectionReason | None:
    if project.archived_at is not None:
        return RejectionReason(
            code=ReasonCode.PROJECT_ARCHIVED,
            message=f"Project '{project.project_id}' is archived.",
            policy_name="project_must_not_be_archived_policy",
            details={"project_id": project.project_id},
        )
    return None


def project_must_be_archived_policy(project: Project) -> RejectionReason | None:
    if project.archived_at is None:
        return RejectionReason(
            code=ReasonCode.PROJECT_NOT_ARCHIVED,
            message=f"Project '{project.project_id}' is not archived.",
            policy_name="project_must_be_archived_policy",
            details={"project_id": project.project_id},
        )
    return None


def project_must_be_startable_policy(project: Project) -> RejectionReason | None:
    blockers = start_blockers(project)
    if blockers:
        return RejectionReason(
            code=ReasonCode.PROJECT_NOT_STARTABLE,
            message=f"Project '{project.project_id}' cannot start: {'; '.join(blockers)}.",
            policy_name="project_must_be_startable_policy",
            details={"project_id": project.project_id, "blockers": list(blockers)},
        )
    return None


def project_service_must_exist_policy(
    project_service: Optional[ProjectService],
    project_service_id: str,
) -> RejectionReason | None:
    if project_service is None:
        return RejectionReason(
            code=ReasonCode.PROJECT_SERVICE_NOT_FOUND,
            message=f"Project service '{project_service_id}' not found.",
            policy_name="project_service_must_exist_policy",
            details={"project_service_id": project_service_id},
        )
    return None


def reorder_must_cover_services_policy(
    services: Iterable[ProjectService],
    ordered_ids,
) -> RejectionReason | None:
    current = {ps.project_service_id for ps in services}
    if current != set(ordered_ids):
        return RejectionReason(
            code=ReasonCode.INVALID_INPUT,
            message="ordered_ids must list every service of the project exactly once.",
            policy_name="reorder_must_cover_services_policy",
        )
    return None


def quote_must_exist_policy(quote: Optional[Quote], quote_id: str) -> RejectionReason | None:
    if quote is None:
        return RejectionReason(
            code=ReasonCode.QUOTE_NOT_FOUND,
            message=f"Quote '{quote_id}' not found.",
            policy_name="quote_must_exist_policy",
            details={"quote_id": quote_id},
        )
    return None


def quote_must_belong_to_project_policy(quote: Quote, project: Project) -> RejectionReason | None:
    if quote.project_id != project.project_id or quote.business_id != project.business_id:
        return RejectionReason(
            code=ReasonCode.QUOTE_PROJECT_MISMATCH,
            message=(
                f"Quote '{quote.quote_id}' does not belong to "
                f"project '{project.project_id}'."
            ),
            policy_name="quote_must_belong_to_project_policy",
            details={"quote_id": quote.quote_id, "project_id": project.project_id},
        )
    return None


def quote_must_be_signed_policy(quote: Quote) -> RejectionReason | None:
    if quote.status != QuoteStatus.SIGNED:
        return RejectionReason(
            code=ReasonCode.QUOTE_NOT_SIGNED,
            message=f"Quote '{quote.quote_id}' is {quote.status.value}, not SIGNED.",
            policy_name="quote_must_be_signed_policy",
            details={"quote_id": quote.quote_id, "status": quote.status.value},
        )
    return None
