"""
Metrics Collection for the DSS pipeline

Collects and exposes metrics for:
- Fusion runs (records seen, merged and dropped per event batch)
- Animals created and ambiguous identifier matches
- Scoring (animals scored, classifications, cull reasons)
- Processing times per stage (average, p95)

Metrics live in memory only. Historical runs are not persisted.
"""

import statistics
from collections import defaultdict
from dataclasses import dataclass, field
from threading import Lock
from typing import Dict, List, Optional, Any


# =============================================================================
# Metric Data Classes
# =============================================================================

@dataclass
class FusionMetrics:
    """Metrics for identity resolution and merging."""
    runs: int = 0
    records_seen: int = 0
    records_merged: int = 0
    records_dropped: int = 0
    animals_created: int = 0
    ambiguous_matches: int = 0

    by_batch: Dict[str, Dict[str, int]] = field(
        default_factory=lambda: defaultdict(lambda: {"seen": 0, "merged": 0, "dropped": 0, "created": 0})
    )


@dataclass
class ScoringMetrics:
    """Metrics for rubric evaluation."""
    runs: int = 0
    animals_scored: int = 0
    by_classification: Dict[str, int] = field(default_factory=lambda: defaultdict(int))
    cull_reasons: Dict[str, int] = field(default_factory=lambda: defaultdict(int))


@dataclass
class TimingMetrics:
    """Processing time metrics."""
    max_samples: int = 1000
    by_stage: Dict[str, List[float]] = field(default_factory=lambda: defaultdict(list))

    def add_sample(self, duration_ms: float, stage: str):
        """Add a timing sample."""
        samples = self.by_stage[stage]
        samples.append(duration_ms)
        if len(samples) > self.max_samples:
            self.by_stage[stage] = samples[-self.max_samples:]

    def get_average(self, stage: str) -> float:
        samples = self.by_stage.get(stage, [])
        return statistics.mean(samples) if samples else 0.0

    def get_p95(self, stage: str) -> float:
        samples = self.by_stage.get(stage, [])
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
    Thread-safe metrics collector for fusion and scoring.

    Usage:
        metrics = MetricsCollector.instance()
        metrics.record_batch("w1", seen=120, merged=118, dropped=2, created=5)
        metrics.record_animal_scored("Flock", cull_reason=None)
    """

    _instance: Optional["MetricsCollector"] = None
    _lock = Lock()

    def __init__(self):
        self.fusion = FusionMetrics()
        self.scoring = ScoringMetrics()
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

    def reset(self):
        """Clear all counters."""
        with self._lock:
            self.fusion = FusionMetrics()
            self.scoring = ScoringMetrics()
            self.timings = TimingMetrics()

    # =========================================================================
    # Fusion Metrics
    # =========================================================================

    def record_fusion_run(self):
        with self._lock:
            self.fusion.runs += 1

    def record_batch(
        self,
        batch: str,
        seen: int,
        merged: int,
        dropped: int,
        created: int = 0,
        ambiguous: int = 0,
    ):
        """Record the outcome of merging one event batch."""
        with self._lock:
            self.fusion.records_seen += seen
            self.fusion.records_merged += merged
            self.fusion.records_dropped += dropped
            self.fusion.animals_created += created
            self.fusion.ambiguous_matches += ambiguous

            stats = self.fusion.by_batch[batch]
            stats["seen"] += seen
            stats["merged"] += merged
            stats["dropped"] += dropped
            stats["created"] += created

    # =========================================================================
    # Scoring Metrics
    # =========================================================================

    def record_scoring_run(self):
        with self._lock:
            self.scoring.runs += 1

    def record_animal_scored(self, classification: str, cull_reason: Optional[str] = None):
        """Record one scored animal."""
        with self._lock:
            self.scoring.animals_scored += 1
            self.scoring.by_classification[classification] += 1
            if cull_reason:
                self.scoring.cull_reasons[cull_reason] += 1

    # =========================================================================
    # Timing Metrics
    # =========================================================================

    def record_processing_time(self, stage: str, duration_ms: float):
        """Record a processing time sample."""
        with self._lock:
            self.timings.add_sample(duration_ms, stage)

    def get_timing_stats(self, stage: str) -> Dict[str, float]:
        """Get timing statistics for a stage."""
        with self._lock:
            return {
                "average_ms": self.timings.get_average(stage),
                "p95_ms": self.timings.get_p95(stage),
                "sample_count": len(self.timings.by_stage.get(stage, [])),
            }

    # =========================================================================
    # Summary
    # =========================================================================

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of all metrics."""
        with self._lock:
            return {
                "fusion": {
                    "runs": self.fusion.runs,
                    "records_seen": self.fusion.records_seen,
                    "records_merged": self.fusion.records_merged,
                    "records_dropped": self.fusion.records_dropped,
                    "animals_created": self.fusion.animals_created,
                    "ambiguous_matches": self.fusion.ambiguous_matches,
                    "by_batch": {k: dict(v) for k, v in self.fusion.by_batch.items()},
                },
                "scoring": {
                    "runs": self.scoring.runs,
                    "animals_scored": self.scoring.animals_scored,
                    "by_classification": dict(self.scoring.by_classification),
                    "cull_reasons": dict(self.scoring.cull_reasons),
                },
                "timings": {
                    stage: {
                        "average_ms": self.timings.get_average(stage),
                        "p95_ms": self.timings.get_p95(stage),
                    }
                    for stage in self.timings.by_stage.keys()
                },
            }


# =============================================================================
# Module-level convenience functions
# =============================================================================

def get_metrics() -> MetricsCollector:
    """Get the global metrics collector."""
    return MetricsCollector.instance()


def record_fusion_run():
    get_metrics().record_fusion_run()


def record_batch(batch: str, seen: int, merged: int, dropped: int, created: int = 0, ambiguous: int = 0):
    """Record the outcome of merging one event batch."""
    get_metrics().record_batch(batch, seen, merged, dropped, created, ambiguous)


def record_scoring_run():
    get_metrics().record_scoring_run()


def record_animal_scored(classification: str, cull_reason: Optional[str] = None):
    get_metrics().record_animal_scored(classification, cull_reason)


def record_processing_time(stage: str, duration_ms: float):
    """Record a processing time sample."""
    get_metrics().record_processing_time(stage, duration_ms)
