"""Event Fusion Pipeline.

Merges event batches into one canonical record per animal:
1. Resolve every record of a batch to an animal (find or create)
2. Apply the batch's merge step to that animal
3. After the second-weight batch, derive average daily gain

Batches are applied in the fixed order of `EVENT_BATCH_ORDER`; later
steps depend on state set by earlier ones (first-weight precedence,
percent shorn off needing final body weight). Each batch step works on a
copy of the registry and returns it, so every step can be exercised in
isolation.
"""

import time
import uuid
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from animal_registry.models import (
    Animal,
    BatchReport,
    EventBatch,
    FusionReport,
    FusionResult,
)
from animal_registry.normalize import coerce_date, coerce_float, coerce_text
from animal_registry.registry import AnimalRegistry
from core.config import DEFAULT_FIRST_WEIGH_PROCESS_ID, get_settings
from core.observability.logging import get_logger, with_correlation
from core.observability.metrics import (
    record_batch,
    record_fusion_run,
    record_processing_time,
)


logger = get_logger(__name__)

EventRecord = Mapping[str, Any]
EventData = Mapping[str, Sequence[EventRecord]]
MergeStep = Callable[[Animal, EventRecord], None]


# =============================================================================
# Merge Steps
# =============================================================================

def merge_registration(
    animal: Animal,
    record: EventRecord,
    first_weigh_process_id: str = DEFAULT_FIRST_WEIGH_PROCESS_ID,
) -> None:
    """Birth and grouping fields; a first-weigh registration also sets w1.

    Registration values replace whatever is stored when present.
    """
    birthdate = coerce_date(record.get("dob"))
    if birthdate is not None:
        animal.birthdate = birthdate

    for field_name, source in (
        ("birth_status", "birthStatus"),
        ("sex", "sex"),
        ("dam", "dam"),
        ("sire", "sire"),
        ("dss_reg_group", "dssRegGroup"),
        ("dss_m_group", "dssMGroup"),
    ):
        value = coerce_text(record.get(source))
        if value is not None:
            setattr(animal, field_name, value)

    weight = coerce_float(record.get("weight"))
    if coerce_text(record.get("processId")) == first_weigh_process_id and weight:
        animal.w1 = weight
        animal.w1_date = coerce_date(record.get("date"))


def merge_first_weight(animal: Animal, record: EventRecord) -> None:
    """w1 from the dedicated batch, only when registrations did not set it."""
    weight = coerce_float(record.get("w1"))
    if animal.w1 is None and weight is not None:
        animal.w1 = weight
        animal.w1_date = coerce_date(record.get("date"))


def merge_second_weight(animal: Animal, record: EventRecord) -> None:
    """w2 is also the final body weight. Last writer wins."""
    animal.w2 = coerce_float(record.get("w2"))
    animal.w2_date = coerce_date(record.get("date"))
    animal.final_body_weight = animal.w2


def compute_average_daily_gain(animal: Animal) -> Optional[float]:
    """(w2 - w1) / |days between weighings|, or None when undefined."""
    if animal.w1 is None or animal.w2 is None:
        return None
    if animal.w1_date is None or animal.w2_date is None:
        return None

    days = abs((animal.w2_date - animal.w1_date).days)
    if days == 0:
        return None
    return (animal.w2 - animal.w1) / days


def merge_fleece_weight(animal: Animal, record: EventRecord) -> None:
    animal.fleece_weight = coerce_float(record.get("fw"))
    animal.fleece_weight_date = coerce_date(record.get("date"))

    if animal.final_body_weight and animal.fleece_weight is not None:
        animal.percent_shorn_off = animal.fleece_weight / animal.final_body_weight * 100


def merge_wool_test_bureau(animal: Animal, record: EventRecord) -> None:
    """Wool testing bureau results; overwrite all fiber measurements."""
    animal.wool_micron = coerce_float(record.get("mfd"))
    animal.cv_difference = coerce_float(record.get("cvDifference"))
    animal.comfort_factor = coerce_float(record.get("comfortFactorPct"))
    animal.clean_yield = coerce_float(record.get("yieldPct"))
    animal.fiber_length = coerce_float(record.get("manualLength"))


def merge_wool_test_ofda(animal: Animal, record: EventRecord) -> None:
    """OFDA results; applied after the bureau batch, so they win outright."""
    animal.wool_micron = coerce_float(record.get("micAve"))
    animal.cv_difference = coerce_float(record.get("cvDifference"))
    animal.comfort_factor = coerce_float(record.get("cfPercent"))
    animal.clean_yield = coerce_float(record.get("yieldPercent"))
    animal.fiber_length = coerce_float(record.get("slMm"))


def merge_visual_scores(animal: Animal, record: EventRecord) -> None:
    animal.conformation_score = coerce_float(record.get("conformation"))
    animal.wool_score = coerce_float(record.get("woolMark"))
    animal.bcs = coerce_float(record.get("bcs"))


def merge_body_condition(animal: Animal, record: EventRecord) -> None:
    """Legacy BCS batch: fallback for animals without a visual-score BCS."""
    if animal.bcs is None:
        animal.bcs = coerce_float(record.get("bcs"))
        animal.bcs_date = coerce_date(record.get("date"))


def merge_reproduction(animal: Animal, record: EventRecord) -> None:
    dam = coerce_text(record.get("damId"))
    if dam is not None:
        animal.dam = dam
    animal.mother_repro = coerce_float(record.get("dssValue"))
    animal.mother_repro_group = coerce_text(record.get("group")) or coerce_text(record.get("dssGroup"))


# =============================================================================
# Batch Application
# =============================================================================

def apply_batch(
    registry: AnimalRegistry,
    batch: str,
    records: Sequence[EventRecord],
    merge: MergeStep,
) -> Tuple[AnimalRegistry, BatchReport]:
    """Resolve and merge one batch into a copy of `registry`.

    Unresolvable records are skipped and counted, never raised.

    Returns:
        (new registry, batch report)
    """
    result = registry.copy()
    report = BatchReport(batch=batch)

    for position, record in enumerate(records):
        report.seen += 1
        resolution = result.resolve(record)

        if resolution is None:
            report.dropped += 1
            logger.warning(
                "Dropped record without a recognised identifier",
                extra_fields={"row": position},
            )
            continue

        if resolution.created:
            report.created += 1
        if resolution.is_ambiguous:
            report.ambiguous += 1
            logger.debug(
                "Record identifiers match several animals; earliest wins",
                extra_fields={"row": position, "matches": resolution.match_count},
            )

        merge(result[resolution.index], record)
        report.merged += 1

    return result, report


def apply_average_daily_gain(registry: AnimalRegistry) -> AnimalRegistry:
    """Derive ADG for every animal with two dated weights."""
    result = registry.copy()
    for animal in result:
        adg = compute_average_daily_gain(animal)
        if adg is not None:
            animal.adg = adg
    return result


# =============================================================================
# Engine
# =============================================================================

class FusionEngine:
    """Builds the canonical animal list from a set of event batches.

    Each call to `fuse` starts from an empty registry, so re-running with
    unchanged input reproduces the same animals.

    Example:
        engine = FusionEngine()
        result = engine.fuse({
            "w1": [{"eid": "982000123456789", "w1": 30, "date": "2025-01-01"}],
            "w2": [{"eid": "982000123456789", "w2": 50, "date": "2025-02-20"}],
        })
        result.animals[0].adg  # 0.4
    """

    def __init__(self, first_weigh_process_id: Optional[str] = None):
        if first_weigh_process_id is None:
            first_weigh_process_id = get_settings().first_weigh_process_id
        self.first_weigh_process_id = first_weigh_process_id

    def steps(self) -> List[Tuple[EventBatch, MergeStep]]:
        """Merge steps in application order."""
        def registration(animal: Animal, record: EventRecord) -> None:
            merge_registration(animal, record, self.first_weigh_process_id)

        return [
            (EventBatch.REGISTRATIONS, registration),
            (EventBatch.FIRST_WEIGHT, merge_first_weight),
            (EventBatch.SECOND_WEIGHT, merge_second_weight),
            (EventBatch.FLEECE_WEIGHT, merge_fleece_weight),
            (EventBatch.WOOL_TEST_BUREAU, merge_wool_test_bureau),
            (EventBatch.WOOL_TEST_OFDA, merge_wool_test_ofda),
            (EventBatch.VISUAL_SCORES, merge_visual_scores),
            (EventBatch.BODY_CONDITION, merge_body_condition),
            (EventBatch.MOTHER_REPRO, merge_reproduction),
        ]

    def fuse(self, event_data: EventData, run_id: Optional[str] = None) -> FusionResult:
        """Run every batch through resolution and merging.

        Args:
            event_data: Batch name -> ordered records (unknown names are ignored)
            run_id: Optional correlation id for logs

        Returns:
            FusionResult with animals in creation order and the fusion report
        """
        run_id = run_id or f"run-{uuid.uuid4().hex[:8]}"
        start_time = time.time()
        known = {batch.value for batch in EventBatch}
        report = FusionReport(run_id=run_id)

        with with_correlation(run_id=run_id, stage="fusion"):
            for name in event_data:
                if name not in known:
                    report.ignored_batches.append(name)
                    logger.warning(f"Ignoring unknown event batch: {name}")

            registry = AnimalRegistry()

            for batch, merge in self.steps():
                records = event_data.get(batch.value)
                if records:
                    with with_correlation(event_batch=batch.value):
                        registry, batch_report = apply_batch(registry, batch.value, records, merge)
                        report.batches.append(batch_report)
                        record_batch(
                            batch.value,
                            seen=batch_report.seen,
                            merged=batch_report.merged,
                            dropped=batch_report.dropped,
                            created=batch_report.created,
                            ambiguous=batch_report.ambiguous,
                        )
                        logger.info(
                            "Batch merged",
                            extra_fields=batch_report.model_dump(exclude={"batch"}),
                        )

                if batch is EventBatch.SECOND_WEIGHT:
                    registry = apply_average_daily_gain(registry)

            report.animal_count = len(registry)
            duration_ms = (time.time() - start_time) * 1000
            record_fusion_run()
            record_processing_time("fusion", duration_ms)

            if report.records_dropped:
                logger.warning(
                    f"{report.records_dropped} record(s) dropped without a recognised identifier",
                )
            logger.info(
                f"Fusion complete: {report.animal_count} animals from {report.records_seen} records",
                extra_fields={"duration_ms": round(duration_ms, 2)},
            )

        return FusionResult(animals=registry.animals, report=report)


def fuse_event_batches(
    event_data: EventData,
    first_weigh_process_id: Optional[str] = None,
) -> FusionResult:
    """Convenience wrapper around `FusionEngine.fuse`."""
    return FusionEngine(first_weigh_process_id=first_weigh_process_id).fuse(event_data)


EVENT_BATCH_ORDER: Tuple[str, ...] = tuple(batch.value for batch in EventBatch)
