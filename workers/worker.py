"""Worker for ERP expense extraction.

Polls the erp-expenses task queue and runs ExpenseExtractionWorkflow plus
the extract_expenses activity against the configured ERP connector.

The RFC transport comes from ERP_RFC_TRANSPORT ("package.module:factory").
The factory is called once per activity execution, so concurrent extractions
never share a connection. Run with --replay <file> to serve recorded BAPI
responses instead (local development).
"""

import argparse
import asyncio
from functools import partial
from pathlib import Path
from typing import Optional

from temporalio.worker import Worker

from activities.extract_expenses import ExpenseActivities, SourceFactory
from core.observability.logging import configure_logging, get_logger
from extraction.config import build_source, load_env_file, load_erp_config
from temporal_client import get_temporal_client
from workflows.expense_workflow import ExpenseExtractionWorkflow, TASK_QUEUE_ERP


logger = get_logger(__name__)


def make_source_factory(replay_file: Optional[Path] = None) -> SourceFactory:
    """Source factory for the activity: a new connector and transport per call."""
    config = load_erp_config()
    return partial(build_source, config, replay_file=replay_file)


async def run_worker(source_factory: SourceFactory, task_queue: str = TASK_QUEUE_ERP):
    """Start a worker on the expense extraction queue.

    Args:
        source_factory: Creates the controlling document source of one activity execution
        task_queue: Queue to poll (default: erp-expenses)

    Raises:
        Exception: If connection to Temporal fails
    """
    try:
        client = await get_temporal_client()
        logger.info(f"Connected to Temporal: {client.namespace}")

        activities = ExpenseActivities(source_factory)
        worker = Worker(
            client,
            task_queue=task_queue,
            workflows=[ExpenseExtractionWorkflow],
            activities=[activities.extract_expenses],
        )
        logger.info(f"Worker created for queue '{task_queue}'")

        logger.info("Worker running... (Ctrl+C to stop)")
        await worker.run()

    except KeyboardInterrupt:
        logger.info("Worker interrupted by user")
    except Exception as e:
        logger.error(f"Worker error: {e}", exc_info=True)
        raise
    finally:
        logger.info("Worker stopped")


def main(argv: Optional[list] = None):
    """Entry point for worker with CLI args."""
    parser = argparse.ArgumentParser(description="ERP Expense Extraction Temporal Worker")
    parser.add_argument(
        "--queue", "-q",
        default=TASK_QUEUE_ERP,
        help=f"Task queue to poll (default: {TASK_QUEUE_ERP})",
    )
    parser.add_argument(
        "--replay",
        type=Path,
        help="Serve recorded BAPI responses from this JSON file",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit JSON log lines",
    )
    args = parser.parse_args(argv)

    configure_logging(json_format=args.json_logs)
    load_env_file()
    asyncio.run(run_worker(make_source_factory(args.replay), task_queue=args.queue))


if __name__ == "__main__":
    main()
