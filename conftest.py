"""Shared fixtures for the DSS test suite."""

import pytest

from core.config import reset_settings


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    """Each test reads settings from a clean environment."""
    for name in ("DSS_LOG_LEVEL", "DSS_LOG_JSON", "DSS_FIRST_WEIGH_PROCESS_ID", "DSS_RUBRIC_PATH"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def sample_event_data():
    """A small herd touching every event batch.

    - E1: registered with a first-weigh weight, full measurements
    - E2: registered, weighed via the w1/w2 batches, fails the micron cull criterion
    - QR-3: only known by QR ID, has a fleece weight and legacy BCS
    - one registration row without any identifier
    """
    return {
        "registrations": [
            {"eid": "982000000000001", "vid": "V1", "dob": "2024-08-01", "sex": "M",
             "dam": "D-10", "sire": "S-20", "dssRegGroup": "R1", "dssMGroup": "M1",
             "processId": "BKB126", "weight": 30, "date": "2025-01-01"},
            {"eid": "982000000000002", "vid": "V2", "dob": "2024-08-03", "sex": "F"},
            {"sex": "F", "dob": "2024-08-05"},
        ],
        "w1": [
            {"eid": "982000000000001", "w1": 33, "date": "2025-01-05"},
            {"vid": "V2", "w1": 28, "date": "2025-01-01"},
        ],
        "w2": [
            {"eid": "982000000000001", "w2": 50, "date": "2025-02-20"},
            {"eid": "982000000000002", "w2": 40, "date": "2025-02-20"},
        ],
        "fleeceWeight": [
            {"eid": "982000000000001", "fw": 5, "date": "2025-03-01"},
            {"qr": "QR-3", "fw": 4.2, "date": "2025-03-01"},
        ],
        "ofda": [
            {"barcode": "000000000001", "micAve": 18.5, "cvDifference": 2,
             "cfPercent": 99, "yieldPercent": 72, "slMm": 90},
            {"vid": "V2", "micAve": 23.0, "cvDifference": 6,
             "cfPercent": 95, "yieldPercent": 65, "slMm": 70},
        ],
        "marks": [
            {"vid": "V1", "conformation": 7, "woolMark": 8, "bcs": 3},
        ],
        "bcs": [
            {"qrid": "QR-3", "bcs": 2.5, "date": "2025-03-02"},
        ],
        "motherRepro": [
            {"eid": "982000000000001", "damId": "D-11", "dssValue": 110, "dssGroup": "G1"},
        ],
    }
