"""Tests for the event fusion pipeline and its merge steps."""

from datetime import date

import pytest

from animal_registry import (
    EVENT_BATCH_ORDER,
    Animal,
    AnimalRegistry,
    FusionEngine,
    apply_average_daily_gain,
    apply_batch,
    compute_average_daily_gain,
    fuse_event_batches,
)
from animal_registry.fusion import (
    merge_body_condition,
    merge_first_weight,
    merge_fleece_weight,
    merge_registration,
    merge_reproduction,
    merge_second_weight,
    merge_visual_scores,
    merge_wool_test_bureau,
    merge_wool_test_ofda,
)


def make_animal(**fields) -> Animal:
    return Animal(index=0, id="EID:E1", eid="E1", **fields)


class TestMergeSteps:
    """Each merge rule in isolation."""

    def test_registration_fields(self):
        animal = make_animal()
        merge_registration(animal, {
            "dob": "2024-08-01", "birthStatus": "Twin", "sex": "M", "dam": "D1",
            "sire": "S1", "dssRegGroup": "R1", "dssMGroup": "M1",
        })
        assert animal.birthdate == date(2024, 8, 1)
        assert animal.birth_status == "Twin"
        assert animal.sex == "M"
        assert (animal.dam, animal.sire) == ("D1", "S1")
        assert (animal.dss_reg_group, animal.dss_m_group) == ("R1", "M1")

    def test_registration_overwrites_only_with_values(self):
        animal = make_animal(sex="M", dam="D1")
        merge_registration(animal, {"sex": "F", "dam": ""})
        assert animal.sex == "F"
        assert animal.dam == "D1"

    def test_registration_first_weigh_sets_w1(self):
        animal = make_animal()
        merge_registration(animal, {"processId": "BKB126", "weight": 31.5, "date": "2025-01-01"})
        assert animal.w1 == 31.5
        assert animal.w1_date == date(2025, 1, 1)

    def test_registration_other_process_ignores_weight(self):
        animal = make_animal()
        merge_registration(animal, {"processId": "BKB200", "weight": 31.5, "date": "2025-01-01"})
        assert animal.w1 is None

    def test_registration_custom_process_marker(self):
        animal = make_animal()
        merge_registration(animal, {"processId": "FW1", "weight": 29}, first_weigh_process_id="FW1")
        assert animal.w1 == 29

    def test_first_weight_only_when_unset(self):
        animal = make_animal(w1=30.0, w1_date=date(2025, 1, 1))
        merge_first_weight(animal, {"w1": 35, "date": "2025-01-10"})
        assert animal.w1 == 30.0
        assert animal.w1_date == date(2025, 1, 1)

        fresh = make_animal()
        merge_first_weight(fresh, {"w1": "35", "date": "2025-01-10"})
        assert fresh.w1 == 35.0
        assert fresh.w1_date == date(2025, 1, 10)

    def test_first_weight_non_numeric_left_unset(self):
        animal = make_animal()
        merge_first_weight(animal, {"w1": "abc", "date": "2025-01-10"})
        assert animal.w1 is None
        assert animal.w1_date is None

    def test_second_weight_sets_final_body_weight(self):
        animal = make_animal(w2=40.0)
        merge_second_weight(animal, {"w2": 52, "date": "2025-02-20"})
        assert animal.w2 == 52.0
        assert animal.final_body_weight == 52.0
        assert animal.w2_date == date(2025, 2, 20)

    def test_fleece_weight_percent_shorn_off(self):
        animal = make_animal(final_body_weight=50.0)
        merge_fleece_weight(animal, {"fw": 5, "date": "2025-03-01"})
        assert animal.fleece_weight == 5.0
        assert animal.percent_shorn_off == pytest.approx(10.0)
        assert animal.fleece_weight_date == date(2025, 3, 1)

    def test_fleece_weight_without_body_weight(self):
        animal = make_animal()
        merge_fleece_weight(animal, {"fw": 5})
        assert animal.fleece_weight == 5.0
        assert animal.percent_shorn_off is None

    def test_wool_test_bureau_fields(self):
        animal = make_animal()
        merge_wool_test_bureau(animal, {
            "mfd": 19.2, "cvDifference": 3, "comfortFactorPct": 98.5,
            "yieldPct": 70, "manualLength": 85,
        })
        assert animal.wool_micron == 19.2
        assert animal.cv_difference == 3.0
        assert animal.comfort_factor == 98.5
        assert animal.clean_yield == 70.0
        assert animal.fiber_length == 85.0

    def test_wool_test_ofda_overwrites_outright(self):
        animal = make_animal(wool_micron=19.2, fiber_length=85.0)
        merge_wool_test_ofda(animal, {"micAve": 18.1, "cfPercent": 99})
        assert animal.wool_micron == 18.1
        assert animal.comfort_factor == 99.0
        assert animal.fiber_length is None

    def test_visual_scores(self):
        animal = make_animal(bcs=2.0)
        merge_visual_scores(animal, {"conformation": 7, "woolMark": 8, "bcs": 3})
        assert (animal.conformation_score, animal.wool_score, animal.bcs) == (7.0, 8.0, 3.0)

    def test_body_condition_fallback(self):
        scored = make_animal(bcs=3.0)
        merge_body_condition(scored, {"bcs": 2.0, "date": "2025-03-02"})
        assert scored.bcs == 3.0
        assert scored.bcs_date is None

        unscored = make_animal()
        merge_body_condition(unscored, {"bcs": 2.0, "date": "2025-03-02"})
        assert unscored.bcs == 2.0
        assert unscored.bcs_date == date(2025, 3, 2)

    def test_reproduction_overrides_dam(self):
        animal = make_animal(dam="D1")
        merge_reproduction(animal, {"damId": "D2", "dssValue": "104.5", "group": "G7"})
        assert animal.dam == "D2"
        assert animal.mother_repro == 104.5
        assert animal.mother_repro_group == "G7"

    def test_reproduction_group_fallback(self):
        animal = make_animal(dam="D1")
        merge_reproduction(animal, {"dssValue": 99, "dssGroup": "G2"})
        assert animal.dam == "D1"
        assert animal.mother_repro_group == "G2"


class TestAverageDailyGain:

    def test_fifty_day_gain(self):
        animal = make_animal(w1=30.0, w1_date=date(2025, 1, 1), w2=50.0, w2_date=date(2025, 2, 20))
        assert compute_average_daily_gain(animal) == pytest.approx(0.4)

    def test_dates_in_reverse_order_use_absolute_days(self):
        animal = make_animal(w1=30.0, w1_date=date(2025, 2, 20), w2=50.0, w2_date=date(2025, 1, 1))
        assert compute_average_daily_gain(animal) == pytest.approx(0.4)

    def test_same_day_is_undefined(self):
        animal = make_animal(w1=30.0, w1_date=date(2025, 1, 1), w2=50.0, w2_date=date(2025, 1, 1))
        assert compute_average_daily_gain(animal) is None

    def test_missing_date_is_undefined(self):
        animal = make_animal(w1=30.0, w1_date=date(2025, 1, 1), w2=50.0)
        assert compute_average_daily_gain(animal) is None

    def test_apply_returns_new_registry(self):
        registry = AnimalRegistry()
        registry.resolve({"eid": "E1"})
        registry[0].w1, registry[0].w1_date = 30.0, date(2025, 1, 1)
        registry[0].w2, registry[0].w2_date = 50.0, date(2025, 2, 20)

        updated = apply_average_daily_gain(registry)
        assert updated[0].adg == pytest.approx(0.4)
        assert registry[0].adg is None


class TestApplyBatch:

    def test_counts_and_purity(self):
        registry = AnimalRegistry()
        records = [
            {"eid": "E1", "w1": 30},
            {"eid": "E1", "w1": 31},
            {"w1": 29},
            {"vid": "V2", "w1": 28},
        ]
        updated, report = apply_batch(registry, "w1", records, merge_first_weight)

        assert len(registry) == 0
        assert len(updated) == 2
        assert (report.seen, report.merged, report.dropped, report.created) == (4, 3, 1, 2)
        assert updated[0].w1 == 30.0


class TestFusionPipeline:

    def test_batch_order(self):
        assert EVENT_BATCH_ORDER == (
            "registrations", "w1", "w2", "fleeceWeight", "wtb", "ofda", "marks", "bcs", "motherRepro",
        )

    def test_sample_herd(self, sample_event_data):
        result = FusionEngine().fuse(sample_event_data)
        animals = result.animals

        assert [a.id for a in animals] == [
            "EID:982000000000001", "EID:982000000000002", "QRID:QR-3",
        ]
        first, second, third = animals

        # Registration-sourced w1 outranks the dedicated w1 batch
        assert first.w1 == 30.0
        assert first.w1_date == date(2025, 1, 1)
        assert first.adg == pytest.approx(0.4)
        assert first.percent_shorn_off == pytest.approx(10.0)
        # OFDA row matched through the EID-derived barcode
        assert first.wool_micron == 18.5
        assert first.bcs == 3.0
        assert first.dam == "D-11"
        assert first.mother_repro == 110.0
        assert first.mother_repro_group == "G1"

        assert second.w1 == 28.0
        assert second.adg == pytest.approx(0.24)
        assert second.wool_micron == 23.0

        assert third.fleece_weight == 4.2
        assert third.percent_shorn_off is None
        assert third.bcs == 2.5

        registrations = result.report.for_batch("registrations")
        assert registrations.dropped == 1
        assert registrations.created == 2
        assert result.report.records_dropped == 1
        assert result.report.animal_count == 3

    def test_electronic_id_and_qr_id_collapse_to_one_animal(self):
        result = fuse_event_batches({
            "w1": [{"eid": "E100", "w1": 30, "date": "2025-01-01"}],
            "fleeceWeight": [{"qrid": "E100", "eid": "E100", "fw": 4}],
        })
        assert len(result.animals) == 1
        assert result.animals[0].w1 == 30.0
        assert result.animals[0].fleece_weight == 4.0

    def test_percent_shorn_off_needs_prior_second_weight(self):
        # fleece batch runs after w2 regardless of mapping order
        result = fuse_event_batches({
            "fleeceWeight": [{"eid": "E1", "fw": 5}],
            "w2": [{"eid": "E1", "w2": 50, "date": "2025-02-20"}],
        })
        assert result.animals[0].percent_shorn_off == pytest.approx(10.0)

    def test_ofda_wins_over_bureau(self):
        result = fuse_event_batches({
            "ofda": [{"vid": "V1", "micAve": 18.0}],
            "wtb": [{"vid": "V1", "mfd": 21.0, "manualLength": 80}],
        })
        animal = result.animals[0]
        assert animal.wool_micron == 18.0
        assert animal.fiber_length is None

    def test_ambiguous_match_is_first_in_registry_order(self):
        result = fuse_event_batches({
            "registrations": [{"eid": "A1", "sex": "M"}, {"vid": "V2", "sex": "F"}],
            "w1": [{"eid": "A1", "vid": "V2", "w1": 30, "date": "2025-01-01"}],
            "w2": [{"vid": "V2", "w2": 50, "date": "2025-02-20"}],
        })
        first, second = result.animals
        assert first.w1 == 30.0
        assert first.w2 == 50.0
        assert second.w1 is None
        assert second.w2 is None
        assert result.report.ambiguous_matches == 1

    def test_unknown_batches_are_ignored(self):
        result = fuse_event_batches({
            "w1": [{"eid": "E1", "w1": 30}],
            "scanner": [{"eid": "E1"}],
        })
        assert len(result.animals) == 1
        assert result.report.ignored_batches == ["scanner"]

    def test_empty_input(self):
        result = fuse_event_batches({})
        assert result.animals == []
        assert result.report.batches == []

    def test_rerun_is_idempotent(self, sample_event_data):
        engine = FusionEngine()
        first = engine.fuse(sample_event_data)
        second = engine.fuse(sample_event_data)

        assert [a.model_dump() for a in first.animals] == [a.model_dump() for a in second.animals]
        assert first.report.run_id != second.report.run_id

    def test_process_marker_from_settings(self, monkeypatch):
        monkeypatch.setenv("DSS_FIRST_WEIGH_PROCESS_ID", "FW1")
        result = FusionEngine().fuse({
            "registrations": [{"eid": "E1", "processId": "FW1", "weight": 27, "date": "2025-01-01"}],
        })
        assert result.animals[0].w1 == 27.0
