"""
Tax Return Module (``tax_modules.tax_return``).

Responsibility
--------------
Return assembly from recorded income, supporting-document checks, and the
draft -> review -> filed -> accepted/rejected lifecycle.
"""

from tax_modules.tax_return.documents import (
    CATEGORIES,
    DocumentationCheck,
    categorize_documents,
    validate_documentation,
)
from tax_modules.tax_return.models import Document, TaxReturn, TaxReturnStatus
from tax_modules.tax_return.service import TaxReturnAssembler
from tax_modules.tax_return.workflows import TAX_RETURN_WORKFLOW

__all__ = [
    "CATEGORIES",
    "DocumentationCheck",
    "categorize_documents",
    "validate_documentation",
    "Document",
    "TaxReturn",
    "TaxReturnStatus",
    "TaxReturnAssembler",
    "TAX_RETURN_WORKFLOW",
]
