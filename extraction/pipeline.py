"""Expense extraction pipeline.

Exposes:
- ErpExpenseExtractor(source, events).extract(request) -> ExtractionResult
- ErpExpenseExtractor.get_expenses(request) -> List[Expense]

Flow: known cost centers -> scope validation -> query -> remote execution ->
header/line reconciliation -> field normalization. One extraction issues at
most one document query and never retries it.
"""

import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from connectors.erp_base import ControllingDocumentSource
from core.observability.events import EventSink, ExtractionEventType, LoggingEventSink
from core.observability.logging import with_correlation
from extraction.errors import NoLineItemsError, RemoteExecutionError, ScopeNotFoundError
from extraction.normalize import normalize
from extraction.query import build_request
from extraction.reconcile import reconcile
from extraction.scope import validate_scope
from models.controlling import Expense, ExtractionRequest, RemoteQuerySpec


class ExtractionStatus(str, Enum):
    """Outcome of an extraction that did not raise."""
    COMPLETED = "COMPLETED"
    SCOPE_NOT_FOUND = "SCOPE_NOT_FOUND"


@dataclass
class ExtractionResult:
    """Expenses of one extraction run plus what happened on the way."""
    status: ExtractionStatus
    extraction_id: str
    requested_cost_centers: Tuple[str, ...]
    present_cost_centers: Tuple[str, ...] = ()
    missing_cost_centers: Tuple[str, ...] = ()
    expenses: List[Expense] = field(default_factory=list)
    header_count: int = 0
    line_item_count: int = 0
    orphan_count: int = 0
    duplicate_header_count: int = 0
    query: Optional[RemoteQuerySpec] = None
    duration_ms: float = 0.0
    stage_timings: Dict[str, float] = field(default_factory=dict)

    @property
    def scope_not_found(self) -> bool:
        return self.status == ExtractionStatus.SCOPE_NOT_FOUND


@contextmanager
def _timed_stage(timings: Dict[str, float], stage: str):
    """Run a pipeline stage under its correlation tag and record its duration in ms."""
    started = time.perf_counter()
    with with_correlation(stage=stage):
        try:
            yield
        finally:
            timings[stage] = (time.perf_counter() - started) * 1000


class ErpExpenseExtractor:
    """Extracts canonical expenses from a controlling document source.

    The source and the event sink are injected. The extractor keeps no state
    between runs: the known cost centers and the header lookup are rebuilt for
    every call, so concurrent runs on separate instances share nothing.

    Usage:
        extractor = ErpExpenseExtractor(SapControllingConnector(config, rfc_call=conn.call))
        result = await extractor.extract(request)
    """

    def __init__(self, source: ControllingDocumentSource, events: Optional[EventSink] = None):
        self.source = source
        self.events = events or LoggingEventSink()

    async def extract(
        self,
        request: ExtractionRequest,
        extraction_id: Optional[str] = None,
    ) -> ExtractionResult:
        """Run one extraction.

        Returns:
            ExtractionResult with status COMPLETED, or SCOPE_NOT_FOUND when none
            of the requested cost centers exist (no document query is issued).

        Raises:
            RemoteExecutionError: A remote call failed (carries the attempted query)
            NoLineItemsError: The document query returned no line items
        """
        extraction_id = extraction_id or f"ext-{uuid.uuid4().hex[:12]}"
        started = time.perf_counter()
        timings: Dict[str, float] = {}

        with with_correlation(extraction_id=extraction_id, controlling_area=request.controlling_area):
            self.events.info(
                ExtractionEventType.EXTRACTION_STARTED,
                f"Extracting expenses from {request.from_date.isoformat()} to {request.to_date.isoformat()}",
                cost_centers=list(request.cost_centers),
                period=request.period,
            )

            with _timed_stage(timings, "scope"):
                known = await self._fetch_known_cost_centers(request)
                decision = validate_scope(request.cost_centers, known)

            result = ExtractionResult(
                status=ExtractionStatus.COMPLETED,
                extraction_id=extraction_id,
                requested_cost_centers=request.cost_centers,
                present_cost_centers=decision.present,
                missing_cost_centers=decision.missing,
                stage_timings=timings,
            )

            if not decision.proceed:
                self.events.error(
                    ExtractionEventType.SCOPE_NOT_FOUND,
                    f"None of these cost centers exist in the ERP: {list(request.cost_centers)}",
                    requested=list(request.cost_centers),
                )
                result.status = ExtractionStatus.SCOPE_NOT_FOUND
                result.duration_ms = (time.perf_counter() - started) * 1000
                return result

            if decision.is_partial:
                self.events.warning(
                    ExtractionEventType.SCOPE_PARTIAL,
                    f"Cost centers not found in the ERP, continuing without them: {list(decision.missing)}",
                    missing=list(decision.missing),
                    present=list(decision.present),
                )
            self.events.info(
                ExtractionEventType.SCOPE_RESOLVED,
                f"Will read data from ERP for cost centers {list(decision.present)}",
                present=list(decision.present),
            )

            query = build_request(request, decision.present)
            result.query = query
            self.events.debug(ExtractionEventType.QUERY_BUILT, query.describe())

            with _timed_stage(timings, "query"):
                documents = await self._find_documents(query)

            result.header_count = len(documents.headers)
            result.line_item_count = len(documents.line_items)
            self.events.info(
                ExtractionEventType.QUERY_EXECUTED,
                f"Found {result.line_item_count} line items in the ERP",
                header_count=result.header_count,
                line_item_count=result.line_item_count,
            )

            if not documents.line_items:
                self.events.error(
                    ExtractionEventType.NO_LINE_ITEMS,
                    "No line items!",
                    header_count=result.header_count,
                )
                raise NoLineItemsError(query, header_count=result.header_count)

            with _timed_stage(timings, "reconcile"):
                joined = reconcile(documents.headers, documents.line_items, events=self.events)

            with _timed_stage(timings, "normalize"):
                for pair in joined.pairs:
                    expense = normalize(pair)
                    result.expenses.append(expense)
                    self.events.debug(
                        ExtractionEventType.EXPENSE_BUILT,
                        f"Got expense: {expense.document_number}",
                        document_number=expense.document_number,
                    )

            result.orphan_count = joined.orphan_count
            result.duplicate_header_count = len(joined.duplicate_headers)
            result.duration_ms = (time.perf_counter() - started) * 1000

            self.events.info(
                ExtractionEventType.EXTRACTION_COMPLETED,
                f"Extracted {len(result.expenses)} expenses",
                expense_count=len(result.expenses),
                orphan_count=result.orphan_count,
                duration_ms=round(result.duration_ms, 1),
            )
            return result

    async def get_expenses(self, request: ExtractionRequest, strict: bool = False) -> List[Expense]:
        """Return only the expenses of an extraction.

        Args:
            request: Extraction scope
            strict: Raise ScopeNotFoundError instead of returning [] when no
                requested cost center exists

        Raises:
            ScopeNotFoundError, NoLineItemsError, RemoteExecutionError
        """
        result = await self.extract(request)
        if result.scope_not_found and strict:
            raise ScopeNotFoundError(request.controlling_area, request.cost_centers)
        return result.expenses

    async def _fetch_known_cost_centers(self, request: ExtractionRequest):
        try:
            return await self.source.fetch_cost_centers(request.controlling_area)
        except RemoteExecutionError as e:
            self.events.error(
                ExtractionEventType.REMOTE_EXECUTION_FAILED,
                f"Could not read cost centers from the ERP: {e}",
                function_name=e.function_name,
            )
            raise

    async def _find_documents(self, query: RemoteQuerySpec):
        try:
            return await self.source.find_documents(query)
        except RemoteExecutionError as e:
            self.events.error(
                ExtractionEventType.REMOTE_EXECUTION_FAILED,
                "There was a problem downloading data from the ERP! Please check the connection settings.",
                function_name=e.function_name,
                query=query.describe(),
                error=str(e),
            )
            raise RemoteExecutionError(
                f"{e} [query: {query.describe()}]",
                function_name=e.function_name,
                query=query,
            ) from e
