"""
Observability Module for the DSS pipeline

Provides:
- Structured logging with correlation IDs
- Metrics collection (fusion batches, dropped records, scoring, timings)
"""

from core.observability.metrics import (
    MetricsCollector,
    get_metrics,
    record_fusion_run,
    record_batch,
    record_scoring_run,
    record_animal_scored,
    record_processing_time,
)

from core.observability.logging import (
    get_logger,
    configure_logging,
    CorrelationContext,
    with_correlation,
)

__all__ = [
    # Metrics
    "MetricsCollector",
    "get_metrics",
    "record_fusion_run",
    "record_batch",
    "record_scoring_run",
    "record_animal_scored",
    "record_processing_time",
    # Logging
    "get_logger",
    "configure_logging",
    "CorrelationContext",
    "with_correlation",
]
