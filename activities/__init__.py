"""Activity definitions module."""

from activities.extract_expenses import (
    ExpenseActivities,
    ExtractExpensesInput,
    ExtractExpensesOutput,
    expense_to_dict,
)

__all__ = [
    "ExpenseActivities",
    "ExtractExpensesInput",
    "ExtractExpensesOutput",
    "expense_to_dict",
]
