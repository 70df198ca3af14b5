"""
Tests for routes/grading.py — HTTP surface over the grading engine.
"""

import os
import sys

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from main import app
from conftest import CLASS_NAME, SUBJECTS

CONFIG = {
    "weights": {"exercises": 0, "cats": 0, "terminal": 100},
    "science_threshold": 100,
    "terminal_configs": {CLASS_NAME: {"section_a_max": 30, "section_b_max": 70}},
}


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def roster_payload():
    learners = [
        {
            "id": f"L{i + 1}",
            "name": f"Pupil {i + 1}",
            "current_class": CLASS_NAME,
            "score_details": {s: {"objective": 0, "theory": 90 - 10 * i} for s in SUBJECTS},
        }
        for i in range(6)
    ]
    return {"learners": learners, "subjects": SUBJECTS, "config": CONFIG}


class TestGradingRoutes:

    def test_health(self, client):
        assert client.get("/api/health").json()["status"] == "ok"

    def test_scale(self, client):
        body = client.get("/api/grading/scale").json()
        assert len(body["grade_scale"]) == 9
        assert body["policy"]["sentinel_aggregate"] == 54

    def test_statistics(self, client):
        body = client.post("/api/grading/statistics", json={"scores": [2, 4, 4, 4, 5, 5, 7, 9]}).json()
        assert body["mean"] == pytest.approx(5.0)
        assert body["std_dev"] == pytest.approx(2.0)

    def test_statistics_requires_scores(self, client):
        assert client.post("/api/grading/statistics", json={}).status_code == 400

    def test_resolve_grade(self, client):
        body = client.post("/api/grading/resolve-grade", json={
            "score": 85, "mean": 70, "std_dev": 10, "class_size": 40,
        }).json()
        assert body["grade"] == "B2"
        assert body["value"] == 2

    def test_resolve_grade_non_numeric(self, client):
        res = client.post("/api/grading/resolve-grade", json={
            "score": "abc", "mean": 70, "std_dev": 10, "class_size": 40,
        })
        assert res.status_code == 400

    def test_resolve_grade_non_integer_class_size(self, client):
        res = client.post("/api/grading/resolve-grade", json={
            "score": 85, "mean": 70, "std_dev": 10, "class_size": [40],
        })
        assert res.status_code == 400

    def test_weighted_score(self, client):
        body = client.post("/api/grading/weighted-score", json={
            "learner": {"id": "L1", "name": "Ama", "current_class": CLASS_NAME,
                        "score_details": {"French": {"objective": 20, "theory": 45}}},
            "subject": "French",
            "config": CONFIG,
        }).json()
        assert body["score"] == 65
        assert body["components"]["exercises"] == 0

    def test_process_roster(self, client, roster_payload):
        res = client.post("/api/grading/process-roster", json=roster_payload)
        assert res.status_code == 200
        learners = res.json()["learners"]
        assert learners[0]["learner_id"] == "L1"
        assert learners[0]["outcome"]["aggregate"] == 12
        assert learners[0]["outcome"]["rank"] == 1

    def test_process_roster_missing_data(self, client):
        assert client.post("/api/grading/process-roster", json={"subjects": SUBJECTS}).status_code == 400

    def test_process_roster_non_object_learner(self, client, roster_payload):
        roster_payload["learners"] = ["x"]
        res = client.post("/api/grading/process-roster", json=roster_payload)
        assert res.status_code == 422
        assert "Learner #1" in res.json()["detail"]

    def test_invalid_config(self, client, roster_payload):
        roster_payload["config"] = {**CONFIG, "grading_scale": []}
        assert client.post("/api/grading/process-roster", json=roster_payload).status_code == 422

    def test_unsatisfiable_subjects(self, client, roster_payload):
        roster_payload["subjects"] = ["French", "I.C.T"]
        assert client.post("/api/grading/process-roster", json=roster_payload).status_code == 422

    def test_facilitator_stats(self, client, roster_payload):
        body = client.post("/api/grading/facilitator-stats/Mathematics", json=roster_payload).json()
        assert body["total_pupils"] == 6
        assert body["grade"] == "C5"

    def test_facilitator_stats_unknown_subject(self, client, roster_payload):
        res = client.post("/api/grading/facilitator-stats/Music", json=roster_payload)
        assert res.status_code == 404

    def test_subject_summary(self, client, roster_payload):
        body = client.post("/api/grading/subject-summary", json=roster_payload).json()
        assert body["class_size"] == 6
        assert len(body["subjects"]) == len(SUBJECTS)


class TestEnvironmentSettings:

    def test_config_defaults(self, client, monkeypatch):
        monkeypatch.delenv("DISTRIBUTION_MODEL", raising=False)
        monkeypatch.delenv("SCIENCE_THRESHOLD", raising=False)
        body = client.get("/api/config").json()
        assert body["distribution_model"] == "Auto"
        assert body["science_threshold"] == 140

    def test_config_normalises_model_name(self, client, monkeypatch):
        monkeypatch.setenv("DISTRIBUTION_MODEL", "t-dist")
        assert client.get("/api/config").json()["distribution_model"] == "T-Dist"

    def test_bad_values_fall_back(self, client, monkeypatch, roster_payload):
        monkeypatch.setenv("DISTRIBUTION_MODEL", "Cauchy")
        monkeypatch.setenv("SCIENCE_THRESHOLD", "abc")
        body = client.get("/api/config").json()
        assert body["distribution_model"] == "Auto"
        assert body["science_threshold"] == 140
        assert client.get("/api/grading/scale").status_code == 200
        assert client.post("/api/grading/process-roster", json=roster_payload).status_code == 200
