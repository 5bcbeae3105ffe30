"""
Studio Store - In-Memory Implementation
=========================================
Thread-safe, process-local store with optimistic versioning.

Every stored record carries `version`. A unit of work reads committed
records, buffers its writes, and on commit re-checks, under the
store lock:

- each written record still has the version it was read at
- each record it read still has that version (or is still absent)
- each collection it listed still holds the same records at the
  same versions, so a concurrent insert into a scanned set is caught

Any mismatch raises ConflictError and nothing is applied.
"""

from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import replace
from typing import Callable, Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple

from core.commands.errors import ConflictError
from core.config.rules import BillingSettings, default_settings
from core.primitives.document import Invoice, Quote
from core.primitives.ledger import FinanceLine
from core.primitives.project import (
    CatalogService,
    Project,
    ProjectService,
    Task,
    TaskTemplate,
)

logger = logging.getLogger("studio.store")

_ID_FIELDS = {
    Project: "project_id",
    ProjectService: "project_service_id",
    Quote: "quote_id",
    Invoice: "invoice_id",
    FinanceLine: "finance_line_id",
    Task: "task_id",
    CatalogService: "service_id",
    TaskTemplate: "template_id",
    BillingSettings: "business_id",
}

_ADD = "add"
_SAVE = "save"
_DELETE = "delete"

RecordKey = Tuple[str, uuid.UUID, object]


class Scan(NamedTuple):
    """A collection read: which records matched, at which versions."""

    kind_name: str
    business_id: uuid.UUID
    predicate: Callable[[object], bool]
    seen: Dict[RecordKey, int]


def record_key(record) -> RecordKey:
    id_field = _ID_FIELDS.get(type(record))
    if id_field is None:
        raise TypeError(f"{type(record).__name__} is not a storable record.")
    return (type(record).__name__, record.business_id, getattr(record, id_field))


# ══════════════════════════════════════════════════════════════
# STORE
# ══════════════════════════════════════════════════════════════

class InMemoryBillingStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: Dict[RecordKey, object] = {}

    def seed(self, *records) -> None:
        """Insert records directly, outside any unit of work."""
        with self._lock:
            for record in records:
                self._records[record_key(record)] = replace(
                    record, version=record.version + 1
                )

    @contextmanager
    def unit_of_work(self) -> Iterator["InMemoryUnitOfWork"]:
        uow = InMemoryUnitOfWork(self)
        try:
            yield uow
        finally:
            uow._close()

    # ── internal ──────────────────────────────────────────────

    def _get(self, key: RecordKey):
        with self._lock:
            return self._records.get(key)

    def _select(self, kind: type, business_id: uuid.UUID) -> List[object]:
        name = kind.__name__
        with self._lock:
            return [
                record
                for (record_kind, record_business, _), record in self._records.items()
                if record_kind == name and record_business == business_id
            ]

    def _apply(
        self,
        ops: Dict[RecordKey, Tuple[str, object]],
        reads: Optional[Dict[RecordKey, Optional[int]]] = None,
        scans: Iterable[Scan] = (),
    ) -> Dict[RecordKey, object]:
        with self._lock:
            self._check_writes(ops)
            self._check_reads(reads or {}, ops)
            self._check_scans(scans)

            stored: Dict[RecordKey, object] = {}
            for key, (op, record) in ops.items():
                if op == _DELETE:
                    del self._records[key]
                    continue
                new_record = replace(record, version=record.version + 1)
                self._records[key] = new_record
                stored[key] = new_record
            return stored

    # Checks below run with self._lock held.

    def _check_writes(self, ops: Dict[RecordKey, Tuple[str, object]]) -> None:
        for key, (op, record) in ops.items():
            current = self._records.get(key)
            if op == _ADD:
                if current is not None:
                    raise ConflictError(
                        f"{key[0]} '{key[2]}' already exists."
                    )
                continue
            current_version = current.version if current is not None else 0
            if op == _DELETE and current is None:
                raise ConflictError(
                    f"{key[0]} '{key[2]}' was deleted concurrently."
                )
            if current_version != record.version:
                raise ConflictError(
                    f"{key[0]} '{key[2]}' changed concurrently "
                    f"(read version {record.version}, stored {current_version}). "
                    f"Reload and retry."
                )

    def _check_reads(
        self,
        reads: Dict[RecordKey, Optional[int]],
        ops: Dict[RecordKey, Tuple[str, object]],
    ) -> None:
        for key, read_version in reads.items():
            if key in ops:
                continue
            current = self._records.get(key)
            current_version = current.version if current is not None else None
            if current_version != read_version:
                raise ConflictError(
                    f"{key[0]} '{key[2]}' changed concurrently "
                    f"(read version {read_version}, stored {current_version}). "
                    f"Reload and retry."
                )

    def _check_scans(self, scans: Iterable[Scan]) -> None:
        for scan in scans:
            current = {
                key: record.version
                for key, record in self._records.items()
                if key[0] == scan.kind_name
                and key[1] == scan.business_id
                and scan.predicate(record)
            }
            if current != scan.seen:
                raise ConflictError(
                    f"{scan.kind_name} records of business {scan.business_id} "
                    f"changed concurrently. Reload and retry."
                )


# ══════════════════════════════════════════════════════════════
# UNIT OF WORK
# ══════════════════════════════════════════════════════════════

class InMemoryUnitOfWork:
    def __init__(self, store: InMemoryBillingStore) -> None:
        self._store = store
        self._ops: Dict[RecordKey, Tuple[str, object]] = {}
        self._stored: Dict[RecordKey, object] = {}
        self._reads: Dict[RecordKey, Optional[int]] = {}
        self._scans: List[Scan] = []
        self._committed = False
        self._closed = False

    # ── reads ─────────────────────────────────────────────────

    def _get(self, kind: type, business_id: uuid.UUID, record_id) -> Optional[object]:
        key = (kind.__name__, business_id, record_id)
        if key in self._ops:
            op, record = self._ops[key]
            return None if op == _DELETE else record
        record = self._store._get(key)
        self._reads.setdefault(key, record.version if record is not None else None)
        return record

    def _list(
        self,
        kind: type,
        business_id: uuid.UUID,
        predicate: Callable[[object], bool],
    ) -> List[object]:
        committed = self._store._select(kind, business_id)
        self._scans.append(Scan(
            kind.__name__,
            business_id,
            predicate,
            {record_key(r): r.version for r in committed if predicate(r)},
        ))
        merged = {record_key(r): r for r in committed}
        for key, (op, record) in self._ops.items():
            if key[0] != kind.__name__ or key[1] != business_id:
                continue
            if op == _DELETE:
                merged.pop(key, None)
            else:
                merged[key] = record
        return [record for record in merged.values() if predicate(record)]

    def get_project(self, business_id, project_id):
        return self._get(Project, business_id, project_id)

    def get_project_service(self, business_id, project_service_id):
        return self._get(ProjectService, business_id, project_service_id)

    def get_quote(self, business_id, quote_id):
        return self._get(Quote, business_id, quote_id)

    def get_invoice(self, business_id, invoice_id):
        return self._get(Invoice, business_id, invoice_id)

    def get_settings(self, business_id) -> BillingSettings:
        settings = self._get(BillingSettings, business_id, business_id)
        return settings if settings is not None else default_settings(business_id)

    def list_project_services(self, business_id, project_id):
        services = self._list(
            ProjectService, business_id, lambda s: s.project_id == project_id
        )
        return sorted(services, key=lambda s: (s.position, s.project_service_id))

    def list_quotes(self, business_id, project_id):
        quotes = self._list(Quote, business_id, lambda q: q.project_id == project_id)
        return sorted(quotes, key=lambda q: (q.created_at, q.quote_id))

    def list_invoices(self, business_id, project_id):
        invoices = self._list(
            Invoice, business_id, lambda i: i.project_id == project_id
        )
        return sorted(invoices, key=lambda i: (i.created_at, i.invoice_id))

    def list_invoices_for_quote(self, business_id, quote_id):
        invoices = self._list(Invoice, business_id, lambda i: i.quote_id == quote_id)
        return sorted(invoices, key=lambda i: (i.created_at, i.invoice_id))

    def list_finance_lines(self, business_id, project_id):
        lines = self._list(
            FinanceLine, business_id, lambda f: f.project_id == project_id
        )
        return sorted(lines, key=lambda f: (f.date, f.finance_line_id))

    def list_tasks(self, business_id, project_id):
        tasks = self._list(Task, business_id, lambda t: t.project_id == project_id)
        return sorted(tasks, key=lambda t: (t.created_at, t.task_id))

    def get_catalog_services(self, business_id, service_ids: Iterable[str]):
        wanted = set(service_ids)
        return {
            s.service_id: s
            for s in self._list(
                CatalogService, business_id, lambda s: s.service_id in wanted
            )
        }

    def list_task_templates(self, business_id, service_ids: Iterable[str]):
        wanted = set(service_ids)
        templates = self._list(
            TaskTemplate, business_id, lambda t: t.service_id in wanted
        )
        return sorted(templates, key=lambda t: (t.position, t.template_id))

    # ── writes ────────────────────────────────────────────────

    def _check_open(self) -> None:
        if self._committed or self._closed:
            raise RuntimeError("Unit of work is no longer open.")

    def add(self, record) -> None:
        self._check_open()
        key = record_key(record)
        if key in self._ops and self._ops[key][0] != _DELETE:
            raise ConflictError(f"{key[0]} '{key[2]}' already added in this unit of work.")
        self._ops[key] = (_ADD, record)

    def save(self, record) -> None:
        self._check_open()
        key = record_key(record)
        if key in self._ops and self._ops[key][0] == _ADD:
            self._ops[key] = (_ADD, record)
            return
        self._ops[key] = (_SAVE, record)

    def delete(self, record) -> None:
        self._check_open()
        key = record_key(record)
        if key in self._ops and self._ops[key][0] == _ADD:
            del self._ops[key]
            return
        self._ops[key] = (_DELETE, record)

    def commit(self) -> None:
        self._check_open()
        try:
            self._stored = self._store._apply(self._ops, self._reads, self._scans)
        except ConflictError as exc:
            logger.warning("Commit rejected: %s", exc.message)
            raise
        logger.debug("Committed %d write(s).", len(self._ops))
        self._ops = {}
        self._committed = True

    def latest(self, record):
        return self._stored.get(record_key(record), record)

    def _close(self) -> None:
        if not self._committed and self._ops:
            logger.debug("Discarding %d uncommitted write(s).", len(self._ops))
        self._ops = {}
        self._closed = True
