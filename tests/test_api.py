"""
Tests for the proof checker HTTP API.
"""

import pytest
from fastapi.testclient import TestClient

from checker.config import CheckerConfig
from checker.worker import ValidationWorker
from interface.api import app as api

client = TestClient(api.app)


@pytest.fixture(autouse=True)
def in_process_worker():
    """Route validation through a worker built from default policies."""
    worker = ValidationWorker(CheckerConfig(worker_max_workers=1))
    api.app.dependency_overrides[api.get_worker] = lambda: worker
    yield worker
    api.app.dependency_overrides.clear()
    worker.shutdown()


MP_BODY = {
    "premises": ["A", "A->B"],
    "conclusion": "B",
    "lines": [
        {"lineNo": "1", "formula": "A", "rule": "Premise", "refs": [], "depth": 0},
        {"lineNo": "2", "formula": "A->B", "rule": "Premise", "refs": [], "depth": 0},
        {"lineNo": "3", "formula": "B", "rule": "Conditional Elim", "refs": ["1", "2"], "depth": 0},
    ],
}


class TestValidateEndpoint:
    def test_valid_proof(self):
        response = client.post("/api/proof/validate", json=MP_BODY)
        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["conclusionReached"] is True
        assert data["subproofs"] == []
        assert data["lines"][2] == {
            "lineNo": "3",
            "ok": True,
            "messages": [],
            "evidence": {"rule": "Conditional Elim", "refs": ["1", "2"]},
        }

    def test_invalid_line_reported(self):
        body = dict(MP_BODY, lines=MP_BODY["lines"][:2] + [
            {"lineNo": "3", "formula": "C", "rule": "Conditional Elim", "refs": ["1", "2"]},
        ])
        data = client.post("/api/proof/validate", json=body).json()
        assert data["ok"] is False
        assert data["lines"][2]["messages"] == [
            "References must be A and (A->B); conclusion must be B"
        ]

    def test_numeric_line_numbers_coerced(self):
        body = dict(MP_BODY, lines=[
            {"lineNo": 1, "formula": "A", "rule": "Premise"},
            {"lineNo": 2, "formula": "A", "rule": "Reiteration", "refs": [1]},
        ], conclusion="A")
        data = client.post("/api/proof/validate", json=body).json()
        assert data["ok"] is True
        assert data["lines"][1]["evidence"]["refs"] == ["1"]

    def test_subproofs_returned(self):
        body = {
            "premises": [],
            "conclusion": "A -> A",
            "lines": [
                {"lineNo": "1", "formula": "A", "rule": "Assumption", "depth": 1},
                {"lineNo": "2", "formula": "A -> A", "rule": "Conditional Intro",
                 "refs": ["1", "1"], "depth": 0},
            ],
        }
        data = client.post("/api/proof/validate", json=body).json()
        assert data["subproofs"] == [
            {"depth": 1, "startLineNo": "1", "endLineNo": "1", "assumptionFormula": "A"}
        ]
        assert data["ok"] is True
        assert data["lines"][1]["evidence"]["info"] == "Discharged @1"

    def test_rules_alias_selects_ruleset(self):
        body = {
            "premises": ["forallx(P(x))"],
            "conclusion": "P(a)",
            "rules": "fol_basic",
            "lines": [
                {"lineNo": "1", "formula": "forallx(P(x))", "rule": "Premise"},
                {"lineNo": "2", "formula": "P(a)", "rule": "Universal Elim", "refs": ["1"]},
            ],
        }
        data = client.post("/api/proof/validate", json=body).json()
        assert data["ok"] is True
        assert data["lines"][1]["evidence"]["approximate"] is True

    def test_unknown_ruleset_is_400(self):
        response = client.post("/api/proof/validate", json=dict(MP_BODY, ruleset="modal_s5"))
        assert response.status_code == 400
        assert "modal_s5" in response.json()["detail"]

    def test_negative_depth_is_422(self):
        body = dict(MP_BODY, lines=[{"lineNo": "1", "formula": "A", "depth": -1}])
        assert client.post("/api/proof/validate", json=body).status_code == 422

    def test_missing_line_number_is_422(self):
        body = dict(MP_BODY, lines=[{"formula": "A"}])
        assert client.post("/api/proof/validate", json=body).status_code == 422


class TestCatalogEndpoints:
    def test_rulesets(self):
        response = client.get("/api/rulesets")
        assert response.status_code == 200
        rulesets = response.json()["rulesets"]
        assert set(rulesets) == {"tfl_basic", "tfl_derived", "fol_basic", "fol_derived"}
        assert {"name": "Universal Elim", "refs": 1} in rulesets["fol_basic"]

    def test_health(self):
        assert client.get("/api/health").json() == {"status": "ok"}
