import pytest
from fastapi.testclient import TestClient

import api.main as api_main
from api.main import app


@pytest.fixture
def client():
    return TestClient(app)


def test_meta_phases(client):
    resp = client.get("/meta/phases")
    assert resp.status_code == 200
    body = resp.json()
    assert [p["key"] for p in body["phases"]] == ["all", "phase1", "phase2", "phase3"]
    assert body["phases"][2] == {
        "key": "phase2",
        "name": "Phase 2",
        "period": "01-07-2021 to 09-01-2022",
        "start": 12,
        "end": 19,
    }
    assert len(body["months"]) == 20


def test_meta_series(client):
    body = client.get("/meta/series").json()
    assert body["series"]["secondary_provider"] == "Oummal & Areeba"


def test_arrivals_default(client):
    resp = client.post("/arrivals", json={})
    assert resp.status_code == 200
    body = resp.json()
    assert body["phase"]["key"] == "all"
    assert {c["key"] for c in body["cards"]} >= {"manifest", "estimated", "ul", "market_rate", "sayrafa_rate"}
    assert body["series"]["manifest"][0] is None


def test_arrivals_unknown_phase_falls_back(client):
    body = client.post("/arrivals", json={"selected_phase": "phase9"}).json()
    assert body["phase"]["key"] == "all"


def test_arrivals_selected_phase(client):
    body = client.post("/arrivals", json={"selected_phase": "phase1"}).json()
    cards = {c["key"]: c for c in body["cards"]}
    assert cards["sayrafa_rate"]["value"] is None
    assert cards["sayrafa_rate"]["display"] == "N/A"


def test_rates(client):
    body = client.post("/rates", json={"selected_phase": "phase3"}).json()
    cards = {c["key"]: c for c in body["cards"]}
    assert cards["best"]["value"] == cards["worst"]["value"] == 20938
    assert cards["devaluation"]["display"] == "0.0%"


def test_flow(client):
    body = client.get("/flow", params={"dark": True}).json()
    assert body["totals"]["debit"] == 295384
    assert body["charts"]["flow"]["config"]["background"] == "#111827"


def test_export_csv(client):
    resp = client.post("/export/rates", json={"selected_phase": "phase3"})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert resp.text.splitlines() == ["month,market_rate", "Feb-22,20938.0"]


def test_route_error_returns_json_500(client, monkeypatch):
    def _fail(*_args, **_kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(api_main, "compute_arrivals", _fail)
    resp = client.post("/arrivals", json={})
    assert resp.status_code == 500
    assert resp.json() == {"error": "boom", "type": "RuntimeError"}
