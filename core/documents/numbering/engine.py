"""
Studio Documents - Numbering Engine
=====================================
Deterministic document number allocation from BillingSettings.

Doctrine:
- Stateless: returns the number AND the advanced settings; the caller
  saves both in one unit of work so a number is never handed out twice.
- Time is passed explicitly - never read from system clock here.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Tuple

from core.config.rules import BillingSettings
from core.documents.numbering.models import (
    DOC_TYPE_INVOICE,
    DOC_TYPE_QUOTE,
    NumberingPolicy,
)


def policy_for(settings: BillingSettings, doc_type: str) -> NumberingPolicy:
    if doc_type == DOC_TYPE_QUOTE:
        return NumberingPolicy(doc_type=doc_type, prefix=settings.quote_prefix)
    return NumberingPolicy(doc_type=doc_type, prefix=settings.invoice_prefix)


def allocate_document_number(
    settings: BillingSettings,
    doc_type: str,
    issued_at: datetime,
) -> Tuple[str, BillingSettings]:
    """
    Return (document_number, settings_with_counter_advanced).

    The year component comes from issued_at in UTC.
    """
    policy = policy_for(settings, doc_type)
    if issued_at.tzinfo is not None:
        issued_at = issued_at.astimezone(timezone.utc)

    if doc_type == DOC_TYPE_INVOICE:
        sequence = settings.next_invoice_number
        advanced = replace(settings, next_invoice_number=sequence + 1)
    else:
        sequence = settings.next_quote_number
        advanced = replace(settings, next_quote_number=sequence + 1)

    return policy.format_number(sequence, issued_at.year), advanced
