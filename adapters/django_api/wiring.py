"""
Studio Django Adapter Wiring
============================
Builds the engine services for local/staging runs.

This module is adapter-only glue:
- one in-memory store shared by every service
- system clock, uuid4 ids
- no engine logic
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional

from core.store import BillingStore, InMemoryBillingStore
from core.time.clock import Clock, SystemClock
from engines.billing.services import BillingSummaryService
from engines.invoices.services import InvoiceLifecycleService
from engines.pricing.services import PricingService
from engines.projects.services import ProjectLifecycleService
from engines.quotes.services import QuoteLifecycleService

event_logger = logging.getLogger("studio.events")

_DEPENDENCIES_LOCK = threading.Lock()
_DEPENDENCIES: Optional["ServiceDependencies"] = None


@dataclass(frozen=True)
class ServiceDependencies:
    store: BillingStore
    clock: Clock
    projects: ProjectLifecycleService
    quotes: QuoteLifecycleService
    invoices: InvoiceLifecycleService
    pricing: PricingService
    billing: BillingSummaryService


def _log_event(event: dict) -> None:
    event_logger.info(
        "%s business=%s causation=%s",
        event["event_type"],
        event["business_id"],
        event["causation_id"],
    )


def create_dependencies(
    *,
    store: Optional[BillingStore] = None,
    clock: Optional[Clock] = None,
    id_factory=None,
) -> ServiceDependencies:
    store = store or InMemoryBillingStore()
    clock = clock or SystemClock()
    shared = {
        "store": store,
        "clock": clock,
        "id_factory": id_factory,
        "event_sink": _log_event,
    }
    return ServiceDependencies(
        store=store,
        clock=clock,
        projects=ProjectLifecycleService(**shared),
        quotes=QuoteLifecycleService(**shared),
        invoices=InvoiceLifecycleService(**shared),
        pricing=PricingService(**shared),
        billing=BillingSummaryService(**shared),
    )


def build_dependencies() -> ServiceDependencies:
    """
    Lazy singleton wiring for adapter runtime.
    """
    global _DEPENDENCIES
    with _DEPENDENCIES_LOCK:
        if _DEPENDENCIES is None:
            _DEPENDENCIES = create_dependencies()
        return _DEPENDENCIES


def install_dependencies(dependencies: Optional[ServiceDependencies]) -> None:
    """Replace the adapter singleton; None resets it to lazy construction."""
    global _DEPENDENCIES
    with _DEPENDENCIES_LOCK:
        _DEPENDENCIES = dependencies
