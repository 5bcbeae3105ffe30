"""
Studio Documents - Numbering Public API
=========================================
"""

from core.documents.numbering.engine import (
    allocate_document_number,
    policy_for,
)
from core.documents.numbering.models import (
    DOC_TYPE_INVOICE,
    DOC_TYPE_QUOTE,
    VALID_DOC_TYPES,
    NumberingPolicy,
)

__all__ = [
    "NumberingPolicy",
    "DOC_TYPE_QUOTE",
    "DOC_TYPE_INVOICE",
    "VALID_DOC_TYPES",
    "allocate_document_number",
    "policy_for",
]
