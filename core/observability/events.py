"""Structured extraction events.

The extraction pipeline reports what happened (scope checks, orphan line items,
empty result tables, ...) through an injected EventSink instead of writing to a
logger directly. Production code uses LoggingEventSink; tests and replays use
MemoryEventSink and assert on the recorded events.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.observability.logging import CorrelatedLogger, get_correlation_context, get_logger


class ExtractionEventType(str, Enum):
    """Standard extraction event types."""
    EXTRACTION_STARTED = "EXTRACTION_STARTED"
    EXTRACTION_COMPLETED = "EXTRACTION_COMPLETED"

    # Scope validation
    SCOPE_RESOLVED = "SCOPE_RESOLVED"
    SCOPE_PARTIAL = "SCOPE_PARTIAL"
    SCOPE_NOT_FOUND = "SCOPE_NOT_FOUND"

    # Remote query
    QUERY_BUILT = "QUERY_BUILT"
    QUERY_EXECUTED = "QUERY_EXECUTED"
    REMOTE_EXECUTION_FAILED = "REMOTE_EXECUTION_FAILED"

    # Result tables
    NO_DOC_HEADERS = "NO_DOC_HEADERS"
    NO_LINE_ITEMS = "NO_LINE_ITEMS"
    DUPLICATE_DOC_HEADER = "DUPLICATE_DOC_HEADER"
    ORPHAN_LINE_ITEM = "ORPHAN_LINE_ITEM"
    ORPHANS_SKIPPED = "ORPHANS_SKIPPED"

    EXPENSE_BUILT = "EXPENSE_BUILT"


class EventSeverity(str, Enum):
    """Severity levels for extraction events."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"

    @property
    def log_level(self) -> int:
        return {
            EventSeverity.DEBUG: logging.DEBUG,
            EventSeverity.INFO: logging.INFO,
            EventSeverity.WARN: logging.WARNING,
            EventSeverity.ERROR: logging.ERROR,
        }[self]


class ExtractionEvent(BaseModel):
    """A single structured event emitted during an extraction."""
    model_config = ConfigDict(frozen=True)

    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    event_type: ExtractionEventType
    severity: EventSeverity = EventSeverity.INFO
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)
    correlation: Dict[str, Any] = Field(default_factory=dict, description="Correlation IDs at emit time")


class EventSink(ABC):
    """Destination for extraction events."""

    @abstractmethod
    def handle(self, event: ExtractionEvent) -> None:
        """Deliver one event."""
        pass

    def emit(
        self,
        event_type: ExtractionEventType,
        message: str,
        severity: EventSeverity = EventSeverity.INFO,
        **details: Any,
    ) -> ExtractionEvent:
        """Build an event stamped with the current correlation context and deliver it."""
        event = ExtractionEvent(
            event_type=event_type,
            severity=severity,
            message=message,
            details=details,
            correlation=get_correlation_context().to_dict(),
        )
        self.handle(event)
        return event

    def debug(self, event_type: ExtractionEventType, message: str, **details: Any) -> ExtractionEvent:
        return self.emit(event_type, message, EventSeverity.DEBUG, **details)

    def info(self, event_type: ExtractionEventType, message: str, **details: Any) -> ExtractionEvent:
        return self.emit(event_type, message, EventSeverity.INFO, **details)

    def warning(self, event_type: ExtractionEventType, message: str, **details: Any) -> ExtractionEvent:
        return self.emit(event_type, message, EventSeverity.WARN, **details)

    def error(self, event_type: ExtractionEventType, message: str, **details: Any) -> ExtractionEvent:
        return self.emit(event_type, message, EventSeverity.ERROR, **details)


class LoggingEventSink(EventSink):
    """Writes events to a correlated logger at the event's severity."""

    def __init__(self, logger: Optional[CorrelatedLogger] = None):
        self._logger = logger or get_logger("extraction.events")

    def handle(self, event: ExtractionEvent) -> None:
        fields = {"event_type": event.event_type.value}
        fields.update(event.details)
        self._logger.log(event.severity.log_level, event.message, extra_fields=fields)


class MemoryEventSink(EventSink):
    """Keeps events in memory, optionally forwarding them to another sink."""

    def __init__(self, forward_to: Optional[EventSink] = None):
        self.events: List[ExtractionEvent] = []
        self._forward_to = forward_to

    def handle(self, event: ExtractionEvent) -> None:
        self.events.append(event)
        if self._forward_to is not None:
            self._forward_to.handle(event)

    def of_type(self, event_type: ExtractionEventType) -> List[ExtractionEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def types(self) -> List[ExtractionEventType]:
        return [e.event_type for e in self.events]

    def clear(self) -> None:
        self.events.clear()
