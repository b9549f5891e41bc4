"""Expense extraction activities.

Temporal activity that runs one ERP expense extraction:
- extract_expenses: scope check, query, reconcile, normalize

ExpenseActivities is built with a source factory, so the worker decides which
connector (and RFC transport) is used. Every activity execution gets its own
source, closed when the execution ends; concurrent executions share nothing.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from temporalio import activity
from temporalio.exceptions import ApplicationError

from connectors.erp_base import ControllingDocumentSource
from core.observability.events import EventSink, LoggingEventSink
from core.observability.logging import with_correlation
from core.observability.metrics import MetricsCollector, get_metrics
from extraction.errors import ConfigurationError, NoLineItemsError, RemoteExecutionError
from extraction.pipeline import ErpExpenseExtractor, ExtractionStatus
from models.controlling import Expense, ExtractionRequest


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class ExtractExpensesInput:
    """Input for extract_expenses activity.

    Attributes:
        controlling_area: Controlling area to extract
        from_date: Inclusive start date (ISO or YYYYMMDD)
        to_date: Inclusive end date (ISO or YYYYMMDD)
        cost_centers: Requested cost centers
        period: Optional fiscal period
        extraction_id: Correlation ID (defaults to the workflow ID)
    """
    controlling_area: str
    from_date: str
    to_date: str
    cost_centers: List[str]
    period: Optional[int] = None
    extraction_id: Optional[str] = None

    def to_request(self) -> ExtractionRequest:
        return ExtractionRequest(
            controlling_area=self.controlling_area,
            from_date=self.from_date,
            to_date=self.to_date,
            period=self.period,
            cost_centers=self.cost_centers,
        )


@dataclass
class ExtractExpensesOutput:
    """Output from extract_expenses activity.

    Attributes:
        extraction_id: Correlation ID of the run
        status: COMPLETED or SCOPE_NOT_FOUND
        expenses: Expenses serialized as JSON-safe dicts
        present_cost_centers: Requested cost centers found in the ERP
        missing_cost_centers: Requested cost centers not found in the ERP
        line_item_count: Line items returned by the ERP
        orphan_count: Line items skipped for lack of a header
    """
    extraction_id: str
    status: str
    expenses: List[Dict[str, Any]] = field(default_factory=list)
    present_cost_centers: List[str] = field(default_factory=list)
    missing_cost_centers: List[str] = field(default_factory=list)
    line_item_count: int = 0
    orphan_count: int = 0


SourceFactory = Callable[[], ControllingDocumentSource]


def expense_to_dict(expense: Expense) -> Dict[str, Any]:
    """Serialize an Expense for workflow payloads (amount kept as a string)."""
    return expense.model_dump(mode="json")


# =============================================================================
# Activity Definition
# =============================================================================

class ExpenseActivities:
    """Activities creating one controlling document source per execution.

    Usage:
        activities = ExpenseActivities(lambda: build_source(load_erp_config()))
        Worker(client, task_queue=TASK_QUEUE_ERP, activities=[activities.extract_expenses], ...)
    """

    def __init__(
        self,
        source_factory: SourceFactory,
        events: Optional[EventSink] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.source_factory = source_factory
        self.events = events or LoggingEventSink()
        self.metrics = metrics or get_metrics()

    @activity.defn(name="extract_expenses")
    async def extract_expenses(self, input: ExtractExpensesInput) -> ExtractExpensesOutput:
        """Extract expenses for one controlling area and date range.

        Domain failures are raised as non-retryable ApplicationErrors whose
        type is the error class name (NoLineItemsError, RemoteExecutionError,
        ConfigurationError); the core never retries a remote query.
        """
        info = activity.info()
        extraction_id = input.extraction_id or info.workflow_id
        started = time.perf_counter()

        try:
            request = input.to_request()
        except ValueError as e:
            raise ApplicationError(
                f"Invalid extraction input: {e}", type="ConfigurationError", non_retryable=True
            ) from e

        self.metrics.record_extraction_started(request.controlling_area)
        activity.logger.info(
            f"Extracting expenses for controlling area {request.controlling_area} "
            f"({len(request.cost_centers)} cost centers)"
        )

        try:
            source = self.source_factory()
        except (ConfigurationError, RemoteExecutionError) as e:
            self.metrics.record_extraction_failed(request.controlling_area, type(e).__name__)
            activity.logger.error(f"Cannot create ERP source: {e}")
            raise ApplicationError(str(e), type=type(e).__name__, non_retryable=True) from e

        extractor = ErpExpenseExtractor(source, events=self.events)
        with with_correlation(
            workflow_id=info.workflow_id,
            workflow_run_id=info.workflow_run_id,
            activity_id=info.activity_id,
            activity_name=info.activity_type,
            task_queue=info.task_queue,
        ):
            try:
                result = await extractor.extract(request, extraction_id=extraction_id)
            except (NoLineItemsError, RemoteExecutionError) as e:
                self.metrics.record_extraction_failed(request.controlling_area, type(e).__name__)
                activity.logger.error(f"Extraction failed: {e}")
                raise ApplicationError(str(e), type=type(e).__name__, non_retryable=True) from e
            finally:
                await source.close()

        for stage, duration_ms in result.stage_timings.items():
            self.metrics.record_processing_time(stage, duration_ms)

        if result.status == ExtractionStatus.SCOPE_NOT_FOUND:
            self.metrics.record_scope_not_found(request.controlling_area)
        else:
            self.metrics.record_extraction_completed(
                request.controlling_area,
                expenses=len(result.expenses),
                line_items=result.line_item_count,
                orphans=result.orphan_count,
                duration_ms=(time.perf_counter() - started) * 1000,
            )

        return ExtractExpensesOutput(
            extraction_id=result.extraction_id,
            status=result.status.value,
            expenses=[expense_to_dict(e) for e in result.expenses],
            present_cost_centers=list(result.present_cost_centers),
            missing_cost_centers=list(result.missing_cost_centers),
            line_item_count=result.line_item_count,
            orphan_count=result.orphan_count,
        )
