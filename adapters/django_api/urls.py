"""
Studio Django adapter URL routing.
"""

from django.urls import path

from adapters.django_api import views

_BIZ = "businesses/<uuid:business_id>"
_PROJECT = f"{_BIZ}/projects/<str:project_id>"
_QUOTE = f"{_BIZ}/quotes/<str:quote_id>"
_INVOICE = f"{_BIZ}/invoices/<str:invoice_id>"


urlpatterns = [
    path(f"{_BIZ}/projects", views.projects_view),
    path(_PROJECT, views.project_detail_view),
    path(f"{_PROJECT}/pricing", views.project_pricing_view),
    path(f"{_PROJECT}/billing-summary", views.billing_summary_view),
    path(f"{_PROJECT}/services", views.project_services_view),
    path(f"{_PROJECT}/services/reorder", views.project_services_reorder_view),
    path(f"{_PROJECT}/quotes", views.project_quotes_view),
    path(f"{_PROJECT}/invoices", views.project_invoices_view),
    path(
        f"{_BIZ}/project-services/<str:project_service_id>",
        views.project_service_detail_view,
    ),
    path(_QUOTE, views.quote_detail_view),
    path(f"{_QUOTE}/transition", views.quote_transition_view),
    path(f"{_QUOTE}/items", views.quote_items_view),
    path(f"{_QUOTE}/invoices", views.quote_invoices_view),
    path(_INVOICE, views.invoice_detail_view),
]

urlpatterns += [
    path(f"{_PROJECT}/{segment}", views.project_action_view, {"action": segment})
    for segment in ("quote-status", "deposit-status", "status", "billing-quote",
                    "start", "archive", "unarchive")
]

urlpatterns += [
    path(f"{_INVOICE}/{segment}", views.invoice_action_view, {"action": segment})
    for segment in ("send", "payments", "mark-paid", "cancel")
]
