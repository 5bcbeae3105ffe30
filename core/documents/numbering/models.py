"""
Studio Documents - Numbering Models
=====================================
Defines the NumberingPolicy dataclass: how a document type is numbered.

Doctrine:
- Same policy + sequence position + issue year → same number.
- Sequence state lives in BillingSettings, never in this module.
- No random() or current time inside number generation logic.
"""

from __future__ import annotations

from dataclasses import dataclass

DOC_TYPE_QUOTE = "QUOTE"
DOC_TYPE_INVOICE = "INVOICE"

VALID_DOC_TYPES = frozenset({DOC_TYPE_QUOTE, DOC_TYPE_INVOICE})


@dataclass(frozen=True)
class NumberingPolicy:
    """
    Fields:
        doc_type: QUOTE or INVOICE
        prefix:   e.g. "SF-DEV" (a trailing '-' is optional)
        padding:  minimum digit width for the sequence (4 → "0001")
    """
    doc_type: str
    prefix: str
    padding: int = 4

    def __post_init__(self):
        if self.doc_type not in VALID_DOC_TYPES:
            raise ValueError(
                f"doc_type '{self.doc_type}' is not valid. "
                f"Must be one of: {sorted(VALID_DOC_TYPES)}"
            )
        if not self.prefix or not isinstance(self.prefix, str):
            raise ValueError("prefix must be a non-empty string.")
        if not isinstance(self.padding, int) or self.padding < 1:
            raise ValueError("padding must be int >= 1.")

    def format_number(self, sequence: int, year: int) -> str:
        """
        Format a document number.

            NumberingPolicy("QUOTE", "SF-DEV").format_number(7, 2026)
            → "SF-DEV-2026-0007"
        """
        if not isinstance(sequence, int) or sequence < 1:
            raise ValueError("sequence must be int >= 1.")
        prefix = self.prefix if self.prefix.endswith("-") else f"{self.prefix}-"
        return f"{prefix}{year}-{str(sequence).zfill(self.padding)}"
