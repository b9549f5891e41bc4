"""Command line expense extraction.

Runs one extraction in-process and prints the expenses as JSON lines on
stdout; logs and events go to stderr.

Settings come from the environment (see extraction.config); command line
options override them:

    erp-expenses --replay dump.json --controlling-area 1000 \\
        --from 2024-01-01 --to 2024-01-31 --cost-center 0010 --cost-center 0020

Exit codes:
    0  success
    1  configuration error
    2  none of the requested cost centers exist
    3  the ERP returned no line items
    4  a remote call failed
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

from core.observability.logging import configure_logging, get_logger
from extraction.config import build_source, load_env_file, load_erp_config, load_extraction_request
from extraction.errors import ConfigurationError, NoLineItemsError, RemoteExecutionError
from extraction.pipeline import ErpExpenseExtractor, ExtractionResult


logger = get_logger(__name__)

EXIT_OK = 0
EXIT_CONFIGURATION = 1
EXIT_SCOPE_NOT_FOUND = 2
EXIT_NO_LINE_ITEMS = 3
EXIT_REMOTE_FAILURE = 4


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="erp-expenses",
        description="Extract actual expenses from ERP controlling documents",
    )
    parser.add_argument("--replay", type=Path, help="Serve recorded BAPI responses from this JSON file")
    parser.add_argument("--controlling-area", help="Controlling area (overrides ERP_CONTROLLING_AREA)")
    parser.add_argument("--from", dest="from_date", help="Inclusive start date (overrides ERP_FROM_DATE)")
    parser.add_argument("--to", dest="to_date", help="Inclusive end date (overrides ERP_TO_DATE)")
    parser.add_argument("--period", type=int, help="Fiscal period 1-16 (overrides ERP_PERIOD)")
    parser.add_argument(
        "--cost-center",
        dest="cost_centers",
        action="append",
        default=[],
        help="Cost center to extract; repeat for several (overrides ERP_COST_CENTERS)",
    )
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log debug events")
    return parser


def _settings(args: argparse.Namespace) -> Dict[str, str]:
    """Environment with command line overrides applied."""
    env = dict(os.environ)
    overrides = {
        "ERP_CONTROLLING_AREA": args.controlling_area,
        "ERP_FROM_DATE": args.from_date,
        "ERP_TO_DATE": args.to_date,
        "ERP_PERIOD": str(args.period) if args.period is not None else None,
        "ERP_COST_CENTERS": ",".join(args.cost_centers) if args.cost_centers else None,
    }
    env.update({k: v for k, v in overrides.items() if v is not None})
    return env


def write_expenses(result: ExtractionResult, out=None) -> None:
    out = out or sys.stdout
    for expense in result.expenses:
        out.write(expense.model_dump_json() + "\n")
    out.flush()


async def run(args: argparse.Namespace) -> int:
    env = _settings(args)
    try:
        request = load_extraction_request(env=env)
        source = build_source(load_erp_config(env=env), env=env, replay_file=args.replay)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIGURATION
    except RemoteExecutionError as e:
        logger.error(f"Cannot reach the ERP: {e}")
        return EXIT_REMOTE_FAILURE

    try:
        result = await ErpExpenseExtractor(source).extract(request)
    except NoLineItemsError as e:
        logger.error(str(e))
        return EXIT_NO_LINE_ITEMS
    except RemoteExecutionError as e:
        logger.error(f"Extraction failed: {e}")
        return EXIT_REMOTE_FAILURE
    finally:
        await source.close()

    if result.scope_not_found:
        return EXIT_SCOPE_NOT_FOUND

    write_expenses(result)
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(level=logging.DEBUG if args.verbose else logging.INFO, json_format=args.json_logs, force=True)
    load_env_file()
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
