"""
Observability Validation Test

This test validates the observability stack:
1. Metrics collection works (extraction outcomes, row volumes, timings)
2. Structured logging with correlation IDs works
3. Extraction events carry the correlation context and reach the logger
"""

import json
import logging

import pytest


def test_observability_imports():
    """Verify all observability modules import correctly."""
    from core.observability import (
        MetricsCollector, get_metrics,
        get_logger, configure_logging, CorrelationContext, with_correlation,
        ExtractionEvent, ExtractionEventType, EventSink, LoggingEventSink, MemoryEventSink,
    )
    assert MetricsCollector is not None
    assert get_metrics is not None
    assert CorrelationContext is not None
    assert EventSink is not None


class TestMetricsCollector:
    """Test the metrics collection system."""

    def test_singleton_instance(self):
        """MetricsCollector returns same instance."""
        from core.observability.metrics import MetricsCollector, get_metrics
        m1 = MetricsCollector.instance()
        m2 = get_metrics()
        assert m1 is m2

    def test_extraction_outcome_tracking(self):
        """Track extraction started/completed/scope-not-found/failed counts."""
        from core.observability.metrics import MetricsCollector
        mc = MetricsCollector()

        for _ in range(4):
            mc.record_extraction_started("1000")
        mc.record_extraction_completed("1000", expenses=10, line_items=12, orphans=2, duration_ms=40)
        mc.record_scope_not_found("1000")
        mc.record_extraction_failed("1000", "NoLineItemsError")

        summary = mc.get_summary()
        assert summary["extractions"]["started"] == 4
        assert summary["extractions"]["completed"] == 1
        assert summary["extractions"]["scope_not_found"] == 1
        assert summary["extractions"]["failed"] == 1
        assert summary["extractions"]["in_progress"] == 1
        assert summary["extractions"]["failed_by_reason"] == {"NoLineItemsError": 1}
        assert summary["volumes"] == {
            "line_items": 12,
            "orphan_line_items": 2,
            "expenses": 10,
            "expenses_by_area": {"1000": 10},
        }
        assert summary["timings"]["by_stage"]["extraction"]["average_ms"] == 40

    def test_timing_percentile_calculation(self):
        """P95 timing calculation is accurate."""
        from core.observability.metrics import MetricsCollector
        mc = MetricsCollector()

        for i in range(1, 101):
            mc.record_processing_time("reconcile", float(i))

        stats = mc.get_timing_stats("reconcile")
        assert stats["sample_count"] == 100
        assert 49 <= stats["average_ms"] <= 52
        assert 93 <= stats["p95_ms"] <= 97

    def test_empty_stage(self):
        from core.observability.metrics import MetricsCollector
        stats = MetricsCollector().get_timing_stats("query")
        assert stats == {"average_ms": 0.0, "p95_ms": 0.0, "sample_count": 0}


class TestCorrelatedLogging:
    """Test structured logging with correlation IDs."""

    def test_correlation_context_creation(self):
        """Create correlation context with all fields."""
        from core.observability.logging import CorrelationContext

        ctx = CorrelationContext(
            extraction_id="ext-001",
            controlling_area="1000",
            workflow_id="wf-abc",
            workflow_run_id="run-123",
            activity_name="extract_expenses",
        )

        assert ctx.extraction_id == "ext-001"
        assert ctx.to_dict() == {
            "extraction_id": "ext-001",
            "controlling_area": "1000",
            "workflow_id": "wf-abc",
            "workflow_run_id": "run-123",
            "activity_name": "extract_expenses",
        }

    def test_context_var_isolation(self):
        """with_correlation nests and restores the previous context."""
        from core.observability.logging import get_correlation_context, with_correlation

        assert get_correlation_context().extraction_id is None

        with with_correlation(extraction_id="ext-TEST", controlling_area="1000"):
            with with_correlation(stage="reconcile"):
                inner_ctx = get_correlation_context()
                assert inner_ctx.extraction_id == "ext-TEST"
                assert inner_ctx.stage == "reconcile"
            assert get_correlation_context().stage is None

        assert get_correlation_context().extraction_id is None

    def test_structured_formatter_json_output(self):
        """StructuredFormatter outputs valid JSON."""
        from core.observability.logging import StructuredFormatter, with_correlation

        formatter = StructuredFormatter()

        with with_correlation(extraction_id="ext-001"):
            record = logging.LogRecord(
                name="test",
                level=logging.INFO,
                pathname="test.py",
                lineno=10,
                msg="Test message",
                args=(),
                exc_info=None,
            )
            record.extra_fields = {"orphan_count": 2}

            output = formatter.format(record)
            data = json.loads(output)

            assert data["message"] == "Test message"
            assert data["extraction_id"] == "ext-001"
            assert data["orphan_count"] == 2

    def test_human_readable_formatter(self):
        from core.observability.logging import HumanReadableFormatter, with_correlation

        record = logging.LogRecord("extraction.pipeline", logging.WARNING, "x.py", 1, "Skipped 2", (), None)
        with with_correlation(extraction_id="ext-001", controlling_area="1000"):
            line = HumanReadableFormatter().format(record)

        assert "[ext-001/1000]" in line
        assert line.endswith("extraction.pipeline [ext-001/1000]: Skipped 2")


class TestExtractionEvents:
    """Test structured extraction events."""

    def test_memory_sink_records_correlation(self):
        from core.observability.events import EventSeverity, ExtractionEventType, MemoryEventSink
        from core.observability.logging import with_correlation

        sink = MemoryEventSink()
        with with_correlation(extraction_id="ext-001"):
            event = sink.warning(ExtractionEventType.ORPHANS_SKIPPED, "Skipped 1", orphan_count=1)

        assert sink.events == [event]
        assert event.severity == EventSeverity.WARN
        assert event.details == {"orphan_count": 1}
        assert event.correlation == {"extraction_id": "ext-001"}
        assert sink.of_type(ExtractionEventType.ORPHANS_SKIPPED) == [event]

        sink.clear()
        assert sink.events == []

    def test_events_are_immutable(self):
        from core.observability.events import ExtractionEventType, MemoryEventSink

        event = MemoryEventSink().info(ExtractionEventType.QUERY_EXECUTED, "done")
        with pytest.raises(Exception):
            event.message = "changed"

    def test_logging_sink_uses_event_severity(self, caplog):
        from core.observability.events import ExtractionEventType, LoggingEventSink, MemoryEventSink

        sink = MemoryEventSink(forward_to=LoggingEventSink())
        with caplog.at_level(logging.DEBUG, logger="extraction.events"):
            sink.error(ExtractionEventType.NO_LINE_ITEMS, "No line items!", header_count=3)
            sink.debug(ExtractionEventType.EXPENSE_BUILT, "Got expense: D1")

        assert [(r.levelno, r.getMessage()) for r in caplog.records] == [
            (logging.ERROR, "No line items!"),
            (logging.DEBUG, "Got expense: D1"),
        ]
        assert caplog.records[0].extra_fields == {"event_type": "NO_LINE_ITEMS", "header_count": 3}
        assert len(sink.events) == 2
