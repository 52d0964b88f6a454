"""Animal Registry - identity resolution and event fusion.

This package turns heterogeneous per-event livestock rows into one
canonical record per animal:
- Identifier normalization (EID, VID, QR ID, barcode, tattoo)
- Exact-key matching through a key index (earliest animal wins)
- Ordered merge steps per event batch with fixed precedence rules
- Derived metrics (average daily gain, percent shorn off body weight)

Usage:
    from animal_registry import fuse_event_batches

    result = fuse_event_batches(event_data)
    for animal in result.animals:
        print(animal.id, animal.adg)

    if result.report.records_dropped:
        print(f"{result.report.records_dropped} rows had no identifier")
"""

from animal_registry.models import (
    Animal,
    AnimalKey,
    BatchReport,
    EventBatch,
    FusionReport,
    FusionResult,
    KeyType,
)
from animal_registry.normalize import (
    RecordIdentifiers,
    candidate_keys,
    derive_barcode,
    primary_key,
    record_identifiers,
    stored_keys,
)
from animal_registry.registry import AnimalRegistry, Resolution
from animal_registry.fusion import (
    EVENT_BATCH_ORDER,
    FusionEngine,
    apply_average_daily_gain,
    apply_batch,
    compute_average_daily_gain,
    fuse_event_batches,
)

__all__ = [
    # Models
    "Animal",
    "AnimalKey",
    "BatchReport",
    "EventBatch",
    "FusionReport",
    "FusionResult",
    "KeyType",
    # Normalization
    "RecordIdentifiers",
    "candidate_keys",
    "derive_barcode",
    "primary_key",
    "record_identifiers",
    "stored_keys",
    # Registry
    "AnimalRegistry",
    "Resolution",
    # Fusion
    "EVENT_BATCH_ORDER",
    "FusionEngine",
    "apply_average_daily_gain",
    "apply_batch",
    "compute_average_daily_gain",
    "fuse_event_batches",
]
