"""Animal Registry Data Models.

This module defines the models used during identity resolution and fusion:
- KeyType / AnimalKey: Typed identifier values used to match records
- EventBatch: The known event batch names, in merge order
- Animal: The canonical per-animal record built from all event batches
- BatchReport / FusionReport: Per-batch resolution counts (incl. dropped rows)
- FusionResult: Animals plus the report for one fusion run
"""

import math
from datetime import date
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class KeyType(str, Enum):
    """Identifier variants an animal can be matched on."""
    ELECTRONIC_ID = "EID"
    VISUAL_ID = "VID"
    QR_ID = "QRID"
    BARCODE = "BC"
    TATTOO = "TAT"


class AnimalKey(NamedTuple):
    """A tagged identifier value, e.g. AnimalKey(KeyType.ELECTRONIC_ID, "982000123456789")."""
    key_type: KeyType
    value: str

    def __str__(self) -> str:
        return f"{self.key_type.value}:{self.value}"


class EventBatch(str, Enum):
    """Event batch names accepted as fusion input.

    Declaration order is the merge order.
    """
    REGISTRATIONS = "registrations"
    FIRST_WEIGHT = "w1"
    SECOND_WEIGHT = "w2"
    FLEECE_WEIGHT = "fleeceWeight"
    WOOL_TEST_BUREAU = "wtb"
    WOOL_TEST_OFDA = "ofda"
    VISUAL_SCORES = "marks"
    BODY_CONDITION = "bcs"
    MOTHER_REPRO = "motherRepro"


class RegistryModel(BaseModel):
    """Base model: snake_case attributes, camelCase on the wire."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Animal(RegistryModel):
    """Canonical record for one animal.

    Built incrementally while event batches are merged; treated as read-only
    once handed to scoring.

    Attributes:
        index: Stable arena position (creation order)
        id: Tagged label of the identifier the animal was created from
        eid, vid, qrid, barcode, tattoo: Known identifiers
        w1, w2, adg: Growth measurements and the derived average daily gain
        percent_shorn_off: Fleece weight as a percentage of final body weight
    """
    index: int
    id: str

    # Identifiers
    eid: Optional[str] = None
    vid: Optional[str] = None
    qrid: Optional[str] = None
    barcode: Optional[str] = None
    tattoo: Optional[str] = None

    # Birth
    birthdate: Optional[date] = None
    birth_status: Optional[str] = None
    dam: Optional[str] = None
    sire: Optional[str] = None
    sex: Optional[str] = None

    # Growth
    w1: Optional[float] = None
    w1_date: Optional[date] = None
    w2: Optional[float] = None
    w2_date: Optional[date] = None
    adg: Optional[float] = None

    # Fiber
    fleece_weight: Optional[float] = None
    fleece_weight_date: Optional[date] = None
    final_body_weight: Optional[float] = None
    percent_shorn_off: Optional[float] = None
    clean_yield: Optional[float] = None
    wool_micron: Optional[float] = None
    cv_difference: Optional[float] = None
    comfort_factor: Optional[float] = None
    fiber_length: Optional[float] = None

    # Scores
    bcs: Optional[float] = None
    bcs_date: Optional[date] = None
    conformation_score: Optional[float] = None
    wool_score: Optional[float] = None

    # Reproduction
    mother_repro: Optional[float] = None
    mother_repro_group: Optional[str] = None

    # Grouping
    dss_reg_group: Optional[str] = None
    dss_m_group: Optional[str] = None
    test_group: Optional[str] = None
    wool_type: Optional[str] = None

    def metric(self, name: str) -> Any:
        """Read a field by wire name (``woolMicron``) or attribute name (``wool_micron``).

        Unknown names yield None.
        """
        field_name = _ALIAS_TO_FIELD.get(name, name)
        if field_name not in type(self).model_fields:
            return None
        return getattr(self, field_name)

    def numeric_metric(self, name: str) -> Optional[float]:
        """Like `metric`, but only returns finite numbers."""
        value = self.metric(name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        if math.isnan(value) or math.isinf(value):
            return None
        return float(value)


_ALIAS_TO_FIELD: Dict[str, str] = {
    to_camel(name): name for name in Animal.model_fields
}


# =============================================================================
# Fusion Reporting
# =============================================================================

class BatchReport(RegistryModel):
    """Resolution outcome for one event batch."""
    batch: str
    seen: int = 0
    merged: int = 0
    dropped: int = 0
    created: int = 0
    ambiguous: int = Field(default=0, description="Records whose keys hit more than one animal")


class FusionReport(RegistryModel):
    """Per-run resolution report.

    `dropped` counts records that carried no recognised identifier. They are
    skipped, never raised.
    """
    run_id: str
    batches: List[BatchReport] = Field(default_factory=list)
    ignored_batches: List[str] = Field(default_factory=list)
    animal_count: int = 0

    @property
    def records_seen(self) -> int:
        return sum(b.seen for b in self.batches)

    @property
    def records_dropped(self) -> int:
        return sum(b.dropped for b in self.batches)

    @property
    def ambiguous_matches(self) -> int:
        return sum(b.ambiguous for b in self.batches)

    def for_batch(self, batch: str) -> Optional[BatchReport]:
        for report in self.batches:
            if report.batch == batch:
                return report
        return None


class FusionResult(RegistryModel):
    """Animals in creation order plus the fusion report."""
    animals: List[Animal] = Field(default_factory=list)
    report: FusionReport
