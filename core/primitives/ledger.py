"""
Studio Ledger Primitive - Finance Lines
=========================================
Single-sided income/expense lines attached to a project and,
optionally, an invoice. The billing summary reads them; the invoice
engine writes exactly one INCOME/PAYMENT line when an invoice is paid.

RULES (NON-NEGOTIABLE):
- Amounts are positive integer cents; type carries the direction
- Multi-tenant: every line scoped to business_id

This file contains NO persistence logic.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class FinanceType(Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


CATEGORY_PAYMENT = "PAYMENT"


@dataclass(frozen=True)
class FinanceLine:
    finance_line_id: str
    business_id: uuid.UUID
    type: FinanceType
    amount_cents: int
    category: str
    date: datetime
    project_id: Optional[str] = None
    invoice_id: Optional[str] = None
    note: Optional[str] = None
    version: int = 0

    def __post_init__(self):
        if not self.finance_line_id:
            raise ValueError("finance_line_id must be non-empty.")
        if not isinstance(self.type, FinanceType):
            raise ValueError("type must be FinanceType enum.")
        if isinstance(self.amount_cents, bool) or not isinstance(self.amount_cents, int):
            raise TypeError("amount_cents must be int (minor units).")
        if self.amount_cents < 0:
            raise ValueError("amount_cents cannot be negative.")
        if not self.category:
            raise ValueError("category must be non-empty.")

    def to_dict(self) -> dict:
        return {
            "finance_line_id": self.finance_line_id,
            "type": self.type.value,
            "amount_cents": self.amount_cents,
            "category": self.category,
            "date": self.date.isoformat(),
            "project_id": self.project_id,
            "invoice_id": self.invoice_id,
            "note": self.note,
        }
