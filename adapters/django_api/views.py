"""
Studio Django Adapter Views
===========================
Pass-through HTTP views over the engine services.

Every view: parse → build request dataclass → service call → JSON.
Actor identity comes from the X-Actor-Id / X-Actor-Role /
X-Actor-Permissions headers supplied by the upstream gateway.
"""

from __future__ import annotations

import json
import uuid
from typing import Any, Callable

from django.http import HttpRequest, JsonResponse
from django.utils.dateparse import parse_date, parse_datetime
from django.views.decorators.csrf import csrf_exempt

from adapters.django_api.errors import (
    engine_error_response,
    error_response,
    success_response,
)
from adapters.django_api.wiring import build_dependencies
from core.commands.base import NOT_SET
from core.commands.errors import AuthorizationError, EngineError
from core.context.actor_context import ActorContext
from core.money import parse_amount_to_cents
from engines.invoices.commands import (
    InvoiceCancelRequest,
    InvoiceCreateFromQuoteRequest,
    InvoiceCreateStagedRequest,
    InvoiceMarkPaidRequest,
    InvoicePaymentApplyRequest,
    InvoiceSendRequest,
)
from engines.projects.commands import (
    SERVICE_UPDATE_FIELDS,
    ProjectArchiveRequest,
    ProjectBillingQuoteBindRequest,
    ProjectCreateRequest,
    ProjectDeleteRequest,
    ProjectDepositStatusSetRequest,
    ProjectQuoteStatusSetRequest,
    ProjectServiceAddRequest,
    ProjectServiceRemoveRequest,
    ProjectServiceReorderRequest,
    ProjectServiceUpdateRequest,
    ProjectStartRequest,
    ProjectStatusSetRequest,
    ProjectUnarchiveRequest,
)
from engines.projects.lifecycle import can_start
from engines.quotes.commands import (
    QuoteCreateRequest,
    QuoteDeleteRequest,
    QuoteItemsReplaceRequest,
    QuoteLineInput,
    QuoteTransitionRequest,
)


# ══════════════════════════════════════════════════════════════
# PARSING
# ══════════════════════════════════════════════════════════════

def _json_error(code: str, message: str, status: int = 400) -> JsonResponse:
    return JsonResponse(
        error_response(code=code, message=message, details={}),
        status=status,
    )


def _method_not_allowed() -> JsonResponse:
    return _json_error(
        "METHOD_NOT_ALLOWED",
        "Method not allowed for this endpoint.",
        status=405,
    )


def _parse_json_body(request: HttpRequest) -> dict[str, Any]:
    if not request.body:
        return {}
    try:
        parsed = json.loads(request.body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValueError("Request body must be valid JSON.") from exc
    if not isinstance(parsed, dict):
        raise ValueError("Request body must be a JSON object.")
    return parsed


def _parse_actor(request: HttpRequest) -> ActorContext:
    actor_id = request.headers.get("X-Actor-Id")
    role = request.headers.get("X-Actor-Role")
    if not actor_id or not role:
        raise AuthorizationError("X-Actor-Id and X-Actor-Role headers are required.")
    raw_permissions = request.headers.get("X-Actor-Permissions", "")
    permissions = frozenset(
        flag.strip().upper() for flag in raw_permissions.split(",") if flag.strip()
    )
    return ActorContext(actor_id=actor_id, role=role.strip().upper(), permissions=permissions)


def _parse_datetime(value: Any, field_name: str):
    if value is None:
        return None
    parsed = parse_datetime(str(value))
    if parsed is None or parsed.tzinfo is None:
        raise ValueError(f"{field_name} must be an ISO-8601 datetime with offset.")
    return parsed


def _parse_date(value: Any, field_name: str):
    if value is None:
        return None
    parsed = parse_date(str(value))
    if parsed is None:
        raise ValueError(f"{field_name} must be an ISO-8601 date.")
    return parsed


def _parse_list(value: Any, field_name: str) -> tuple[Any, ...]:
    if isinstance(value, tuple):
        return value
    if isinstance(value, list):
        return tuple(value)
    raise ValueError(f"{field_name} must be a list.")


def _parse_object(value: Any, field_name: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{field_name} must be an object.")
    return value


def _parse_cents(body: dict[str, Any], cents_key: str, amount_key: str) -> int:
    """Accept integer cents under `cents_key` or a decimal string under `amount_key`."""
    if cents_key in body:
        return body[cents_key]
    if amount_key in body:
        return parse_amount_to_cents(body[amount_key])
    raise KeyError(cents_key)


# ══════════════════════════════════════════════════════════════
# DISPATCH
# ══════════════════════════════════════════════════════════════

def _run(request: HttpRequest, call: Callable[[ActorContext, dict[str, Any]], Any],
         *, status: int = 200) -> JsonResponse:
    try:
        actor = _parse_actor(request)
        body = _parse_json_body(request)
    except EngineError as exc:
        return engine_error_response(exc)
    except ValueError as exc:
        return _json_error("INVALID_REQUEST", str(exc), status=400)

    try:
        data = call(actor, body)
    except EngineError as exc:
        return engine_error_response(exc)
    except (ValueError, KeyError) as exc:
        message = f"{exc.args[0]} is required." if isinstance(exc, KeyError) else str(exc)
        return _json_error("INVALID_REQUEST", message, status=400)
    return JsonResponse(success_response(data), status=status)


def _execute(service, request_obj, business_id: uuid.UUID, actor: ActorContext):
    command = request_obj.to_command(
        business_id=business_id,
        actor=actor,
        issued_at=service.now(),
    )
    return service.execute(command)


def _project_result(result) -> dict[str, Any]:
    data = {"project": result.project.to_dict()}
    if result.project_service is not None:
        data["project_service"] = result.project_service.to_dict()
    if result.tasks:
        data["tasks"] = [task.to_dict() for task in result.tasks]
    return data


def _quote_result(result) -> dict[str, Any]:
    data = {"quote": result.quote.to_dict()}
    if result.project is not None:
        data["project"] = result.project.to_dict()
    return data


def _invoice_result(result) -> dict[str, Any]:
    data = {"invoice": result.invoice.to_dict()}
    if result.applied_cents is not None:
        data["applied_cents"] = result.applied_cents
    if result.finance_line is not None:
        data["finance_line"] = result.finance_line.to_dict()
    return data


# ══════════════════════════════════════════════════════════════
# PROJECTS
# ══════════════════════════════════════════════════════════════

def _deposit_status_request(body, project_id):
    paid_at = body.get("deposit_paid_at", NOT_SET)
    if paid_at is not NOT_SET:
        paid_at = _parse_datetime(paid_at, "deposit_paid_at")
    return ProjectDepositStatusSetRequest(
        project_id=project_id,
        deposit_status=body["deposit_status"],
        deposit_paid_at=paid_at,
    )


_PROJECT_ACTIONS = {
    "quote-status": lambda body, project_id: ProjectQuoteStatusSetRequest(
        project_id=project_id, quote_status=body["quote_status"]
    ),
    "deposit-status": _deposit_status_request,
    "status": lambda body, project_id: ProjectStatusSetRequest(
        project_id=project_id, status=body["status"]
    ),
    "billing-quote": lambda body, project_id: ProjectBillingQuoteBindRequest(
        project_id=project_id, quote_id=body["quote_id"]
    ),
    "start": lambda body, project_id: ProjectStartRequest(project_id=project_id),
    "archive": lambda body, project_id: ProjectArchiveRequest(project_id=project_id),
    "unarchive": lambda body, project_id: ProjectUnarchiveRequest(project_id=project_id),
}


@csrf_exempt
def projects_view(request: HttpRequest, business_id: uuid.UUID) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed()

    def call(actor, body):
        request_obj = ProjectCreateRequest(
            name=body["name"],
            client_id=body.get("client_id"),
            start_date=_parse_date(body.get("start_date"), "start_date"),
            end_date=_parse_date(body.get("end_date"), "end_date"),
            category_reference_id=body.get("category_reference_id"),
            tag_reference_ids=_parse_list(
                body.get("tag_reference_ids", ()), "tag_reference_ids"
            ),
        )
        deps = build_dependencies()
        return _project_result(_execute(deps.projects, request_obj, business_id, actor))

    return _run(request, call, status=201)


@csrf_exempt
def project_detail_view(request: HttpRequest, business_id: uuid.UUID,
                        project_id: str) -> JsonResponse:
    deps = build_dependencies()
    if request.method == "GET":
        def call(actor, body):
            project = deps.projects.get_project(
                business_id=business_id, project_id=project_id, actor=actor
            )
            data = project.to_dict()
            data["can_start"] = can_start(project)
            return data
        return _run(request, call)
    if request.method == "DELETE":
        return _run(request, lambda actor, body: {
            "deleted": _execute(
                deps.projects, ProjectDeleteRequest(project_id=project_id),
                business_id, actor,
            ).project.project_id,
        })
    return _method_not_allowed()


@csrf_exempt
def project_action_view(request: HttpRequest, business_id: uuid.UUID,
                        project_id: str, action: str) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed()
    factory = _PROJECT_ACTIONS[action]

    def call(actor, body):
        result = _execute(
            build_dependencies().projects, factory(body, project_id), business_id, actor
        )
        data = _project_result(result)
        if action == "start":
            data["tasks_created"] = result.tasks_created
            data["started_at"] = result.started_at.isoformat()
        return data

    return _run(request, call)


@csrf_exempt
def project_pricing_view(request: HttpRequest, business_id: uuid.UUID,
                         project_id: str) -> JsonResponse:
    if request.method != "GET":
        return _method_not_allowed()
    return _run(request, lambda actor, body: build_dependencies().pricing.get_pricing(
        business_id=business_id, project_id=project_id, actor=actor
    ).to_dict())


@csrf_exempt
def billing_summary_view(request: HttpRequest, business_id: uuid.UUID,
                         project_id: str) -> JsonResponse:
    if request.method != "GET":
        return _method_not_allowed()
    return _run(request, lambda actor, body: build_dependencies().billing.get_billing_summary(
        business_id=business_id, project_id=project_id, actor=actor
    ).to_dict())


# ══════════════════════════════════════════════════════════════
# PROJECT SERVICES
# ══════════════════════════════════════════════════════════════

@csrf_exempt
def project_services_view(request: HttpRequest, business_id: uuid.UUID,
                          project_id: str) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed()

    def call(actor, body):
        request_obj = ProjectServiceAddRequest(
            project_id=project_id,
            service_id=body["service_id"],
            quantity=body.get("quantity", 1),
            price_cents_override=body.get("price_cents_override"),
            title_override=body.get("title_override"),
            description=body.get("description"),
            notes=body.get("notes"),
            discount_type=body.get("discount_type", "NONE"),
            discount_value=body.get("discount_value"),
        )
        return _project_result(
            _execute(build_dependencies().projects, request_obj, business_id, actor)
        )

    return _run(request, call, status=201)


@csrf_exempt
def project_services_reorder_view(request: HttpRequest, business_id: uuid.UUID,
                                  project_id: str) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed()

    def call(actor, body):
        request_obj = ProjectServiceReorderRequest(
            project_id=project_id,
            ordered_ids=_parse_list(body["ordered_ids"], "ordered_ids"),
        )
        _execute(build_dependencies().projects, request_obj, business_id, actor)
        return {"ordered_ids": list(request_obj.ordered_ids)}

    return _run(request, call)


@csrf_exempt
def project_service_detail_view(request: HttpRequest, business_id: uuid.UUID,
                                project_service_id: str) -> JsonResponse:
    deps = build_dependencies()
    if request.method == "PATCH":
        def call(actor, body):
            changes = {name: body[name] for name in SERVICE_UPDATE_FIELDS if name in body}
            request_obj = ProjectServiceUpdateRequest(
                project_service_id=project_service_id, **changes
            )
            return _project_result(_execute(deps.projects, request_obj, business_id, actor))
        return _run(request, call)
    if request.method == "DELETE":
        return _run(request, lambda actor, body: _project_result(_execute(
            deps.projects,
            ProjectServiceRemoveRequest(project_service_id=project_service_id),
            business_id,
            actor,
        )))
    return _method_not_allowed()


# ══════════════════════════════════════════════════════════════
# QUOTES
# ══════════════════════════════════════════════════════════════

@csrf_exempt
def project_quotes_view(request: HttpRequest, business_id: uuid.UUID,
                        project_id: str) -> JsonResponse:
    deps = build_dependencies()
    if request.method == "GET":
        return _run(request, lambda actor, body: [
            view.to_dict()
            for view in deps.quotes.list_quotes(
                business_id=business_id, project_id=project_id, actor=actor
            )
        ])
    if request.method == "POST":
        def call(actor, body):
            request_obj = QuoteCreateRequest(
                project_id=project_id,
                deposit_percent=body.get("deposit_percent"),
                expires_at=_parse_datetime(body.get("expires_at"), "expires_at"),
                note=body.get("note"),
            )
            return _quote_result(_execute(deps.quotes, request_obj, business_id, actor))
        return _run(request, call, status=201)
    return _method_not_allowed()


@csrf_exempt
def quote_detail_view(request: HttpRequest, business_id: uuid.UUID,
                      quote_id: str) -> JsonResponse:
    deps = build_dependencies()
    if request.method == "GET":
        return _run(request, lambda actor, body: deps.quotes.get_quote(
            business_id=business_id, quote_id=quote_id, actor=actor
        ).to_dict())
    if request.method == "DELETE":
        return _run(request, lambda actor, body: {
            "deleted": _execute(
                deps.quotes, QuoteDeleteRequest(quote_id=quote_id), business_id, actor
            ).quote.quote_id,
        })
    return _method_not_allowed()


@csrf_exempt
def quote_transition_view(request: HttpRequest, business_id: uuid.UUID,
                          quote_id: str) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed()

    def call(actor, body):
        request_obj = QuoteTransitionRequest(
            quote_id=quote_id,
            target_status=body["status"],
            cancel_reason=body.get("cancel_reason"),
            signed_at=_parse_datetime(body.get("signed_at"), "signed_at"),
        )
        return _quote_result(
            _execute(build_dependencies().quotes, request_obj, business_id, actor)
        )

    return _run(request, call)


def _quote_line(item: dict[str, Any]) -> QuoteLineInput:
    return QuoteLineInput(
        label=item["label"],
        quantity=item.get("quantity", 1),
        unit_price_cents=_parse_cents(item, "unit_price_cents", "unit_price"),
        service_id=item.get("service_id"),
        description=item.get("description"),
    )


@csrf_exempt
def quote_items_view(request: HttpRequest, business_id: uuid.UUID,
                     quote_id: str) -> JsonResponse:
    if request.method != "PUT":
        return _method_not_allowed()

    def call(actor, body):
        items = tuple(
            _quote_line(_parse_object(item, "items entry"))
            for item in _parse_list(body["items"], "items")
        )
        request_obj = QuoteItemsReplaceRequest(quote_id=quote_id, items=items)
        return _quote_result(
            _execute(build_dependencies().quotes, request_obj, business_id, actor)
        )

    return _run(request, call)


# ══════════════════════════════════════════════════════════════
# INVOICES
# ══════════════════════════════════════════════════════════════

@csrf_exempt
def quote_invoices_view(request: HttpRequest, business_id: uuid.UUID,
                        quote_id: str) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed()
    return _run(request, lambda actor, body: _invoice_result(_execute(
        build_dependencies().invoices,
        InvoiceCreateFromQuoteRequest(quote_id=quote_id),
        business_id,
        actor,
    )), status=201)


@csrf_exempt
def project_invoices_view(request: HttpRequest, business_id: uuid.UUID,
                          project_id: str) -> JsonResponse:
    deps = build_dependencies()
    if request.method == "GET":
        return _run(request, lambda actor, body: [
            invoice.to_dict()
            for invoice in deps.invoices.list_invoices(
                business_id=business_id, project_id=project_id, actor=actor
            )
        ])
    if request.method == "POST":
        def call(actor, body):
            request_obj = InvoiceCreateStagedRequest(
                project_id=project_id,
                mode=body["mode"],
                value=body.get("value"),
                note=body.get("note"),
            )
            return _invoice_result(_execute(deps.invoices, request_obj, business_id, actor))
        return _run(request, call, status=201)
    return _method_not_allowed()


@csrf_exempt
def invoice_detail_view(request: HttpRequest, business_id: uuid.UUID,
                        invoice_id: str) -> JsonResponse:
    if request.method != "GET":
        return _method_not_allowed()
    return _run(request, lambda actor, body: build_dependencies().invoices.get_invoice(
        business_id=business_id, invoice_id=invoice_id, actor=actor
    ).to_dict())


_INVOICE_ACTIONS = {
    "send": lambda body, invoice_id: InvoiceSendRequest(
        invoice_id=invoice_id, due_at=_parse_datetime(body.get("due_at"), "due_at")
    ),
    "payments": lambda body, invoice_id: InvoicePaymentApplyRequest(
        invoice_id=invoice_id, amount_cents=_parse_cents(body, "amount_cents", "amount")
    ),
    "mark-paid": lambda body, invoice_id: InvoiceMarkPaidRequest(invoice_id=invoice_id),
    "cancel": lambda body, invoice_id: InvoiceCancelRequest(
        invoice_id=invoice_id, reason=body.get("reason")
    ),
}


@csrf_exempt
def invoice_action_view(request: HttpRequest, business_id: uuid.UUID,
                        invoice_id: str, action: str) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed()
    factory = _INVOICE_ACTIONS[action]
    return _run(request, lambda actor, body: _invoice_result(_execute(
        build_dependencies().invoices, factory(body, invoice_id), business_id, actor
    )))
