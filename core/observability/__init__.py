"""
Observability Module for expense extraction

Provides:
- Structured logging with correlation IDs
- Structured extraction events delivered to an injected sink
- Metrics collection (extraction outcomes, row volumes, processing times)
"""

from core.observability.logging import (
    get_logger,
    configure_logging,
    CorrelationContext,
    with_correlation,
)

from core.observability.events import (
    ExtractionEvent,
    ExtractionEventType,
    EventSeverity,
    EventSink,
    LoggingEventSink,
    MemoryEventSink,
)

from core.observability.metrics import (
    MetricsCollector,
    get_metrics,
)

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "CorrelationContext",
    "with_correlation",
    # Events
    "ExtractionEvent",
    "ExtractionEventType",
    "EventSeverity",
    "EventSink",
    "LoggingEventSink",
    "MemoryEventSink",
    # Metrics
    "MetricsCollector",
    "get_metrics",
]
