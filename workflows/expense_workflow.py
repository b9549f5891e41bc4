"""Expense Extraction Workflow.

Runs one ERP expense extraction on the ERP task queue. The extraction is not
retried by the workflow: a failed remote query or an empty line item table is
reported to the caller as is.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import List, Optional

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from activities.extract_expenses import (
        ExpenseActivities,
        ExtractExpensesInput,
        ExtractExpensesOutput,
    )


TASK_QUEUE_ERP = "erp-expenses"


@dataclass
class ExpenseExtractionInput:
    """Input for Expense Extraction Workflow.

    Attributes:
        controlling_area: Controlling area to extract
        from_date: Inclusive start date (ISO or YYYYMMDD)
        to_date: Inclusive end date (ISO or YYYYMMDD)
        cost_centers: Requested cost centers
        period: Optional fiscal period
        timeout_minutes: Start-to-close timeout of the extraction activity
    """
    controlling_area: str
    from_date: str
    to_date: str
    cost_centers: List[str]
    period: Optional[int] = None
    timeout_minutes: int = 10


@workflow.defn
class ExpenseExtractionWorkflow:
    """Workflow wrapping a single extract_expenses activity."""

    @workflow.run
    async def run(self, input: ExpenseExtractionInput) -> ExtractExpensesOutput:
        workflow.logger.info(
            f"Starting expense extraction for controlling area {input.controlling_area} "
            f"({input.from_date}..{input.to_date})"
        )

        result = await workflow.execute_activity_method(
            ExpenseActivities.extract_expenses,
            ExtractExpensesInput(
                controlling_area=input.controlling_area,
                from_date=input.from_date,
                to_date=input.to_date,
                cost_centers=input.cost_centers,
                period=input.period,
                extraction_id=workflow.info().workflow_id,
            ),
            task_queue=TASK_QUEUE_ERP,
            start_to_close_timeout=timedelta(minutes=input.timeout_minutes),
            retry_policy=RetryPolicy(maximum_attempts=1),
        )

        workflow.logger.info(
            f"Expense extraction {result.status}: {len(result.expenses)} expenses, "
            f"{result.orphan_count} orphan line items"
        )
        return result
