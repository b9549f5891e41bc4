"""Models Package.

Data models for expense extraction:
- Extraction scope (ExtractionRequest)
- ERP result rows (HeaderRecord, LineItemRecord)
- Remote query (RemoteQuerySpec, SelectionCriterion)
- Canonical output (Expense)
"""

from models.controlling import (
    EXPENSE_TYPE_ACTUAL,
    ExtractionRequest,
    HeaderRecord,
    LineItemRecord,
    ControllingDocumentSet,
    CriterionField,
    CriterionOption,
    SelectionCriterion,
    RemoteQuerySpec,
    Expense,
)

__all__ = [
    "EXPENSE_TYPE_ACTUAL",
    "ExtractionRequest",
    "HeaderRecord",
    "LineItemRecord",
    "ControllingDocumentSet",
    "CriterionField",
    "CriterionOption",
    "SelectionCriterion",
    "RemoteQuerySpec",
    "Expense",
]
