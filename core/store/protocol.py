"""
Studio Store - Data-Access Protocol
=====================================
Every engine operation runs inside one unit of work:

    with store.unit_of_work() as uow:
        quote = uow.get_quote(business_id, quote_id)
        ...
        uow.save(new_quote)
        uow.commit()

Reads are business-scoped: a record belonging to another business
is reported as missing. Writes are buffered until commit(), which
raises ConflictError when anything the unit of work wrote, read or
listed has changed since it was read. Leaving the block without
commit() discards the buffer.
"""

from __future__ import annotations

import uuid
from typing import ContextManager, Dict, Iterable, List, Optional, Protocol

from core.config.rules import BillingSettings
from core.primitives.document import Invoice, Quote
from core.primitives.ledger import FinanceLine
from core.primitives.project import (
    CatalogService,
    Project,
    ProjectService,
    Task,
    TaskTemplate,
)


class UnitOfWork(Protocol):
    # ── Single-record reads ───────────────────────────────────
    def get_project(self, business_id: uuid.UUID, project_id: str) -> Optional[Project]:
        ...  # pragma: no cover

    def get_project_service(
        self, business_id: uuid.UUID, project_service_id: str
    ) -> Optional[ProjectService]:
        ...  # pragma: no cover

    def get_quote(self, business_id: uuid.UUID, quote_id: str) -> Optional[Quote]:
        ...  # pragma: no cover

    def get_invoice(self, business_id: uuid.UUID, invoice_id: str) -> Optional[Invoice]:
        ...  # pragma: no cover

    def get_settings(self, business_id: uuid.UUID) -> BillingSettings:
        """Stored settings, or defaults when the business has none."""
        ...  # pragma: no cover

    # ── Collection reads ──────────────────────────────────────
    def list_project_services(
        self, business_id: uuid.UUID, project_id: str
    ) -> List[ProjectService]:
        ...  # pragma: no cover

    def list_quotes(self, business_id: uuid.UUID, project_id: str) -> List[Quote]:
        ...  # pragma: no cover

    def list_invoices(self, business_id: uuid.UUID, project_id: str) -> List[Invoice]:
        ...  # pragma: no cover

    def list_invoices_for_quote(
        self, business_id: uuid.UUID, quote_id: str
    ) -> List[Invoice]:
        ...  # pragma: no cover

    def list_finance_lines(
        self, business_id: uuid.UUID, project_id: str
    ) -> List[FinanceLine]:
        ...  # pragma: no cover

    def list_tasks(self, business_id: uuid.UUID, project_id: str) -> List[Task]:
        ...  # pragma: no cover

    def get_catalog_services(
        self, business_id: uuid.UUID, service_ids: Iterable[str]
    ) -> Dict[str, CatalogService]:
        """Missing catalog entries are simply absent from the result."""
        ...  # pragma: no cover

    def list_task_templates(
        self, business_id: uuid.UUID, service_ids: Iterable[str]
    ) -> List[TaskTemplate]:
        ...  # pragma: no cover

    # ── Writes (buffered) ─────────────────────────────────────
    def add(self, record) -> None:
        ...  # pragma: no cover

    def save(self, record) -> None:
        ...  # pragma: no cover

    def delete(self, record) -> None:
        ...  # pragma: no cover

    def commit(self) -> None:
        ...  # pragma: no cover

    def latest(self, record):
        """The stored form of `record` after commit (version advanced)."""
        ...  # pragma: no cover


class BillingStore(Protocol):
    def unit_of_work(self) -> ContextManager[UnitOfWork]:
        ...  # pragma: no cover
