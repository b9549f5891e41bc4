"""
Metrics Collection for expense extraction

Collects and exposes metrics for:
- Extraction lifecycle (started, completed, failed by reason)
- Volumes (line items read, orphans skipped, expenses produced)
- Processing times per stage (average, p95)

Metrics are kept in memory only; they never hold pipeline state.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Dict, List, Optional
import statistics


# =============================================================================
# Metric Data Classes
# =============================================================================

@dataclass
class ExtractionCounters:
    """Counters for extraction runs."""
    started: int = 0
    completed: int = 0
    scope_not_found: int = 0
    failed: int = 0
    in_progress: int = 0

    # Failures by reason (error class name)
    failed_by_reason: Dict[str, int] = field(default_factory=lambda: defaultdict(int))


@dataclass
class VolumeCounters:
    """Row counts across all runs."""
    line_items: int = 0
    orphan_line_items: int = 0
    expenses: int = 0

    # Expenses by controlling area
    expenses_by_area: Dict[str, int] = field(default_factory=lambda: defaultdict(int))


@dataclass
class TimingMetrics:
    """Processing time metrics."""
    samples: List[float] = field(default_factory=list)
    max_samples: int = 1000

    by_stage: Dict[str, List[float]] = field(default_factory=lambda: defaultdict(list))

    def add_sample(self, duration_ms: float, stage: str = None):
        """Add a timing sample."""
        self.samples.append(duration_ms)
        if len(self.samples) > self.max_samples:
            self.samples = self.samples[-self.max_samples:]

        if stage:
            self.by_stage[stage].append(duration_ms)
            if len(self.by_stage[stage]) > self.max_samples:
                self.by_stage[stage] = self.by_stage[stage][-self.max_samples:]

    def get_average(self, stage: str = None) -> float:
        """Get average processing time."""
        samples = self.by_stage.get(stage, []) if stage else self.samples
        return statistics.mean(samples) if samples else 0.0

    def get_p95(self, stage: str = None) -> float:
        """Get 95th percentile processing time."""
        samples = self.by_stage.get(stage, []) if stage else self.samples
        if not samples:
            return 0.0
        sorted_samples = sorted(samples)
        idx = int(len(sorted_samples) * 0.95)
        return sorted_samples[min(idx, len(sorted_samples) - 1)]


# =============================================================================
# Metrics Collector (Singleton)
# =============================================================================

class MetricsCollector:
    """
    Thread-safe metrics collector for expense extraction.

    Usage:
        metrics = MetricsCollector.instance()
        metrics.record_extraction_started("1000")
        metrics.record_extraction_completed("1000", expenses=42, line_items=44, orphans=2)
    """

    _instance: Optional["MetricsCollector"] = None
    _lock = Lock()

    def __init__(self):
        self.extractions = ExtractionCounters()
        self.volumes = VolumeCounters()
        self.timings = TimingMetrics()
        self._lock = Lock()

    @classmethod
    def instance(cls) -> "MetricsCollector":
        """Get singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    # =========================================================================
    # Extraction Lifecycle
    # =========================================================================

    def record_extraction_started(self, controlling_area: str):
        with self._lock:
            self.extractions.started += 1
            self.extractions.in_progress += 1

    def record_extraction_completed(
        self,
        controlling_area: str,
        expenses: int = 0,
        line_items: int = 0,
        orphans: int = 0,
        duration_ms: float = None,
    ):
        """Record a successful extraction with its row counts."""
        with self._lock:
            self.extractions.completed += 1
            self.extractions.in_progress = max(0, self.extractions.in_progress - 1)
            self.volumes.line_items += line_items
            self.volumes.orphan_line_items += orphans
            self.volumes.expenses += expenses
            self.volumes.expenses_by_area[controlling_area] += expenses
            if duration_ms:
                self.timings.add_sample(duration_ms, "extraction")

    def record_scope_not_found(self, controlling_area: str):
        """Record an extraction aborted before querying the ERP."""
        with self._lock:
            self.extractions.scope_not_found += 1
            self.extractions.in_progress = max(0, self.extractions.in_progress - 1)

    def record_extraction_failed(self, controlling_area: str, reason: str):
        with self._lock:
            self.extractions.failed += 1
            self.extractions.in_progress = max(0, self.extractions.in_progress - 1)
            self.extractions.failed_by_reason[reason] += 1

    # =========================================================================
    # Timing Metrics
    # =========================================================================

    def record_processing_time(self, stage: str, duration_ms: float):
        """Record a processing time sample."""
        with self._lock:
            self.timings.add_sample(duration_ms, stage)

    def get_timing_stats(self, stage: str = None) -> Dict[str, float]:
        """Get timing statistics for a stage."""
        with self._lock:
            return {
                "average_ms": self.timings.get_average(stage),
                "p95_ms": self.timings.get_p95(stage),
                "sample_count": len(self.timings.by_stage.get(stage, []) if stage else self.timings.samples),
            }

    # =========================================================================
    # Summary
    # =========================================================================

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of all metrics."""
        with self._lock:
            return {
                "extractions": {
                    "started": self.extractions.started,
                    "completed": self.extractions.completed,
                    "scope_not_found": self.extractions.scope_not_found,
                    "failed": self.extractions.failed,
                    "in_progress": self.extractions.in_progress,
                    "failed_by_reason": dict(self.extractions.failed_by_reason),
                },
                "volumes": {
                    "line_items": self.volumes.line_items,
                    "orphan_line_items": self.volumes.orphan_line_items,
                    "expenses": self.volumes.expenses,
                    "expenses_by_area": dict(self.volumes.expenses_by_area),
                },
                "timings": {
                    "overall": {
                        "average_ms": self.timings.get_average(),
                        "p95_ms": self.timings.get_p95(),
                    },
                    "by_stage": {
                        stage: {
                            "average_ms": self.timings.get_average(stage),
                            "p95_ms": self.timings.get_p95(stage),
                        }
                        for stage in self.timings.by_stage.keys()
                    },
                },
            }


def get_metrics() -> MetricsCollector:
    """Get the global metrics collector."""
    return MetricsCollector.instance()
