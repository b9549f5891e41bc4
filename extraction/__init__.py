"""Expense extraction pipeline.

Scope validation, query building, header/line reconciliation and field
normalization, orchestrated by ErpExpenseExtractor.
"""

from extraction.errors import (
    ExtractionError,
    ConfigurationError,
    ScopeNotFoundError,
    NoLineItemsError,
    RemoteExecutionError,
)
from extraction.scope import ScopeDecision, validate_scope
from extraction.query import build_request
from extraction.reconcile import HeaderLookup, ReconciliationResult, reconcile
from extraction.normalize import normalize, strip_leading_zeros
from extraction.pipeline import ErpExpenseExtractor, ExtractionResult, ExtractionStatus

__all__ = [
    # Errors
    "ExtractionError",
    "ConfigurationError",
    "ScopeNotFoundError",
    "NoLineItemsError",
    "RemoteExecutionError",
    # Stages
    "ScopeDecision",
    "validate_scope",
    "build_request",
    "HeaderLookup",
    "ReconciliationResult",
    "reconcile",
    "normalize",
    "strip_leading_zeros",
    # Pipeline
    "ErpExpenseExtractor",
    "ExtractionResult",
    "ExtractionStatus",
]
