"""Tests for the Flask JSON API."""
from decimal import Decimal

import pytest

import financing_calc_web.app as web_app
from financing_calc.config import EngineSettings
from financing_calc.rates import ReferenceRateProvider


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setitem(web_app.app.config, "ENGINE_SETTINGS", EngineSettings())
    monkeypatch.setattr(web_app, "rate_provider", ReferenceRateProvider("", Decimal("4.02")))
    web_app.app.config["TESTING"] = True
    with web_app.app.test_client() as test_client:
        yield test_client


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}


def test_defaults(client):
    data = client.get("/api/defaults").get_json()
    assert data["rates"] == {"reference_rate": 4.02, "inflation_rate": 3.0}
    assert [s["id"] for s in data["scenarios"]] == ["1", "2", "3"]


def test_evaluate_scenario(client):
    response = client.post(
        "/api/evaluate",
        json={
            "scenario": {"id": "a", "amount": 120000, "periodMonths": 12, "commissionPercent": 1},
            "rates": {"inflationRate": 0},
        },
    )
    assert response.status_code == 200
    data = response.get_json()

    assert data["id"] == "a"
    assert len(data["schedule"]) == 12
    assert data["summary"]["total_cost_of_project"] == pytest.approx(121200.0)
    assert data["rates"]["inflation_rate"] == 0


def test_evaluate_without_schedule(client):
    response = client.post("/api/evaluate?schedule=0", json={"amount": 1000, "periodMonths": 12})
    assert response.status_code == 200
    assert "schedule" not in response.get_json()


def test_evaluate_misconfigured_returns_422(client):
    response = client.post("/api/evaluate", json={"scenario": {"id": "x", "periodMonths": 6, "graceMonths": 9}})
    assert response.status_code == 422
    assert response.get_json()["id"] == "x"
    assert "grace" in response.get_json()["error"].lower()


def test_evaluate_rejects_non_object(client):
    response = client.post("/api/evaluate", json=[1, 2, 3])
    assert response.status_code == 400


def test_compare_flags_broken_scenarios(client):
    payload = {
        "rates": {"referenceRate": 4.02, "inflationRate": 3.0},
        "scenarios": [
            {"id": "eu", "amount": 1_000_000, "periodMonths": 120, "fixedRate": 1, "grantType": "percent", "grantValue": 20},
            {"id": "broken", "amount": 1_000_000, "periodMonths": 12, "graceMonths": 12},
            {"id": "own", "financingMode": "own_funds", "amount": 1_000_000, "periodMonths": 120, "fixedRate": 3},
        ],
    }
    response = client.post("/api/compare", json=payload)
    assert response.status_code == 200
    data = response.get_json()

    assert data["best"] == "eu"
    assert data["worst"] == "own"
    assert data["savings"] == pytest.approx(493_499.71, abs=0.01)
    assert [entry["id"] for entry in data["results"]] == ["eu", "broken", "own"]
    assert "error" in data["results"][1]
    assert "schedule" not in data["results"][0]


def test_compare_all_broken(client):
    response = client.post("/api/compare", json=[{"periodMonths": 3, "graceMonths": 5}])
    data = response.get_json()
    assert response.status_code == 200
    assert data["best"] is None
    assert data["savings"] is None


def test_compare_rejects_bad_payload(client):
    assert client.post("/api/compare", json={"scenarios": "none"}).status_code == 400
    assert client.post("/api/compare", json=[]).status_code == 400


def test_compare_limits_scenario_count(client, monkeypatch):
    monkeypatch.setitem(web_app.app.config, "MAX_SCENARIOS", 2)
    response = client.post("/api/compare", json=[{"amount": 1}, {"amount": 2}, {"amount": 3}])
    assert response.status_code == 400


def test_evaluate_rate_too_small_for_annuity_factor(client):
    response = client.post(
        "/api/evaluate",
        json={"amount": 1000, "periodMonths": 12, "fixedRate": "1e-30", "installmentType": "equal"},
    )
    assert response.status_code == 200
    schedule = response.get_json()["schedule"]
    assert schedule[0]["installment"] == pytest.approx(1000 / 12)


def test_evaluate_rejects_oversized_term(client):
    response = client.post("/api/evaluate", json={"amount": 1000, "periodMonths": "1e12"})
    assert response.status_code == 422
    assert "limit" in response.get_json()["error"]


@pytest.mark.parametrize(
    "raw, expected",
    [(None, 20), ("5", 5), ("many", 20), ("0", 20), ("-3", 20)],
)
def test_max_scenarios_from_env(raw, expected):
    environ = {} if raw is None else {"FINCALC_MAX_SCENARIOS": raw}
    assert web_app.max_scenarios_from_env(environ) == expected
