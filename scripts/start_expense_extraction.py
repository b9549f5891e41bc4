"""Start Expense Extraction workflow on Temporal.

Connects to Temporal, starts an ExpenseExtractionWorkflow for the scope in
the environment (see extraction.config), waits and prints a summary. A worker
(workers/worker.py) must be polling the erp-expenses queue.
"""

import argparse
import asyncio
import json
import uuid

from core.observability.logging import configure_logging, get_logger
from extraction.config import load_extraction_request
from temporal_client import get_temporal_client
from workflows.expense_workflow import (
    ExpenseExtractionInput,
    ExpenseExtractionWorkflow,
    TASK_QUEUE_ERP,
)


logger = get_logger(__name__)


async def start_expense_extraction(timeout_minutes: int = 10):
    """Start the workflow and return its ExtractExpensesOutput."""
    request = load_extraction_request()
    workflow_id = f"exp-{request.controlling_area}-{uuid.uuid4().hex[:8]}"

    client = await get_temporal_client()
    logger.info(f"Connected to Temporal: {client.namespace}")

    handle = await client.start_workflow(
        ExpenseExtractionWorkflow.run,
        ExpenseExtractionInput(
            controlling_area=request.controlling_area,
            from_date=request.from_date.isoformat(),
            to_date=request.to_date.isoformat(),
            cost_centers=list(request.cost_centers),
            period=request.period,
            timeout_minutes=timeout_minutes,
        ),
        id=workflow_id,
        task_queue=TASK_QUEUE_ERP,
    )
    logger.info(f"Workflow started: {handle.id}")
    return await handle.result()


def main():
    """Entry point."""
    parser = argparse.ArgumentParser(description="Start Expense Extraction workflow")
    parser.add_argument("--timeout", type=int, default=10, help="Activity timeout in minutes (default: 10)")
    parser.add_argument("--print-expenses", action="store_true", help="Print the expenses as JSON lines")
    args = parser.parse_args()

    configure_logging()
    result = asyncio.run(start_expense_extraction(timeout_minutes=args.timeout))

    print(f"\n=== EXPENSE EXTRACTION {result.extraction_id} ===")
    print(f"  status:        {result.status}")
    print(f"  cost centers:  {', '.join(result.present_cost_centers) or '-'}")
    if result.missing_cost_centers:
        print(f"  missing:       {', '.join(result.missing_cost_centers)}")
    print(f"  line items:    {result.line_item_count}")
    print(f"  orphans:       {result.orphan_count}")
    print(f"  expenses:      {len(result.expenses)}")
    print("==============================\n")

    if args.print_expenses:
        for expense in result.expenses:
            print(json.dumps(expense))


if __name__ == "__main__":
    main()
