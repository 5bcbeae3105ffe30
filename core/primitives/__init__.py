"""
Studio Core Primitives - Entity Records
=========================================
Pure, immutable records shared by every engine:

    project   - Project, ProjectService, CatalogService, TaskTemplate, Task
    document  - Quote, Invoice, LineItem
    ledger    - FinanceLine
    workflow  - generic state machine definition

No Django dependency, no persistence logic.
"""

from core.primitives.document import (
    Invoice,
    InvoiceStatus,
    LineItem,
    PaymentState,
    Quote,
    QuoteStatus,
    payment_state_for,
)
from core.primitives.ledger import CATEGORY_PAYMENT, FinanceLine, FinanceType
from core.primitives.project import (
    CatalogService,
    DepositStatus,
    DiscountType,
    Project,
    ProjectQuoteStatus,
    ProjectService,
    ProjectStatus,
    Task,
    TaskPhase,
    TaskStatus,
    TaskTemplate,
)
from core.primitives.workflow import WorkflowDefinition

__all__ = [
    "CATEGORY_PAYMENT",
    "CatalogService",
    "DepositStatus",
    "DiscountType",
    "FinanceLine",
    "FinanceType",
    "Invoice",
    "InvoiceStatus",
    "LineItem",
    "PaymentState",
    "Project",
    "ProjectQuoteStatus",
    "ProjectService",
    "ProjectStatus",
    "Quote",
    "QuoteStatus",
    "Task",
    "TaskPhase",
    "TaskStatus",
    "TaskTemplate",
    "WorkflowDefinition",
    "payment_state_for",
]
