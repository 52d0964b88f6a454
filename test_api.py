"""API tests using FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient

from api.server import create_app


@pytest.fixture
def client():
    return TestClient(create_app())


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_probes(self, client):
        assert client.get("/ready").json() == {"status": "ready"}
        assert client.get("/live").json() == {"status": "alive"}

    def test_metrics(self, client):
        body = client.get("/metrics").json()
        assert "fusion" in body
        assert "scoring" in body


class TestRubric:

    def test_default_rubric_is_camel_case(self, client):
        body = client.get("/rubric/default").json()
        assert body["classificationPoints"]["secondFlock"] == 4
        micron = next(c for c in body["criteria"] if c["id"] == "woolMicron")
        assert micron["upperLimit"] == 19
        assert micron["cullIfFailed"] is False

    def test_active_rubric(self, client):
        body = client.get("/rubric/active").json()
        assert len(body["criteria"]) == 14


class TestEvaluate:

    def test_evaluate_with_custom_rubric(self, client, sample_event_data):
        rubric = {
            "classificationPoints": {"stud": 3, "flock": 2, "secondFlock": 1, "cull": 0},
            "criteria": [
                {"id": "bcs", "name": "BCS", "operator": "between",
                 "lowerLimit2": 2, "lowerLimit": 2.5, "upperLimit": 3.5, "upperLimit2": 4},
                {"id": "woolMicron", "name": "Wool Micron", "operator": "less",
                 "upperLimit": 19, "upperLimit2": 21, "cullIfFailed": True},
            ],
        }
        response = client.post("/evaluate", json={"eventData": sample_event_data, "rubric": rubric})
        assert response.status_code == 200
        body = response.json()

        animals = body["animals"]
        assert [a["id"] for a in animals] == [
            "EID:982000000000001", "EID:982000000000002", "QRID:QR-3",
        ]
        first = animals[0]
        assert first["dssmark"] == 2.0
        assert first["classification"] == "Flock"
        assert first["w1Date"] == "2025-01-01"
        assert first["percentShornOff"] == pytest.approx(10.0)
        assert first["breakdown"][1] == {
            "criterion": "Wool Micron", "value": 18.5, "points": 1.0, "status": "optimal",
        }

        # QR-3 has no micron value: missing on a cull criterion
        third = animals[2]
        assert third["cullReason"] == "Failed cull criterion: Wool Micron"
        assert third["classification"] == "Cull"
        assert third["breakdown"][1]["value"] == "N/A"

        assert body["fusion"]["animalCount"] == 3
        registrations = next(b for b in body["fusion"]["batches"] if b["batch"] == "registrations")
        assert registrations["dropped"] == 1
        assert body["statistics"]["total"] == 3

    def test_evaluate_default_rubric(self, client):
        response = client.post("/evaluate", json={"eventData": {"w1": [{"eid": "E1", "w1": 30}]}})
        assert response.status_code == 200
        animal = response.json()["animals"][0]
        assert len(animal["breakdown"]) == 14

    def test_invalid_rubric_rejected(self, client):
        response = client.post("/evaluate", json={
            "eventData": {},
            "rubric": {"criteria": [{"id": "bcs", "name": "BCS", "operator": "around"}]},
        })
        assert response.status_code == 422

    def test_criteria_statistics(self, client, sample_event_data):
        evaluated = client.post("/evaluate", json={"eventData": sample_event_data}).json()
        response = client.post("/statistics/criteria", json={"animals": evaluated["animals"]})
        assert response.status_code == 200
        body = response.json()
        assert body["w1"]["count"] == 2
        assert body["w1"]["avg"] == pytest.approx(29.0)
