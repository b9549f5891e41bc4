"""Workflow definitions module."""

from workflows.expense_workflow import (
    ExpenseExtractionWorkflow,
    ExpenseExtractionInput,
    TASK_QUEUE_ERP,
)

__all__ = ["ExpenseExtractionWorkflow", "ExpenseExtractionInput", "TASK_QUEUE_ERP"]
