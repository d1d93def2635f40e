from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from cookie_recon import api_app
from cookie_recon.engine import build_unified_dataset
from cookie_recon.outputs import write_unified_json
from cookie_recon.settings import TrackerSettings

from .fixtures import BUILD_TIME


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(api_app, "_settings", TrackerSettings(output_dir=str(tmp_path), timezone="UTC"))
    return TestClient(api_app.app)


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "status": "running"}


def test_classify_status(client):
    resp = client.post("/classify/status", json={"status": "Needs Approval - Delivered"})
    assert resp.json() == {"status": "Needs Approval - Delivered", "class": "NEEDS_APPROVAL"}
    assert client.post("/classify/status", json={}).json()["class"] == "UNKNOWN"


def test_build_from_serialized_store(client, scenario):
    resp = client.post("/build", json=scenario.to_dict())
    assert resp.status_code == 200
    body = resp.json()
    assert body["troopTotals"]["inventory"] == 60
    assert body["scouts"]["101"]["totals"]["inventory"] == 50


def test_build_rejects_malformed_store(client):
    resp = client.post("/build", json={"orders": [{"scout": "Ann"}]})
    assert resp.status_code == 400


def test_status_and_unified(client, season, tmp_path):
    assert client.get("/unified").status_code == 404
    assert client.get("/status").json()["last_build"] is None

    write_unified_json(build_unified_dataset(season, build_time=BUILD_TIME), tmp_path / "unified.json")
    status = client.get("/status").json()
    assert status["last_build"]["unifiedBuildTime"] == BUILD_TIME
    assert status["settings"]["output_dir"] == str(tmp_path)
    assert client.get("/unified").json()["troopTotals"]["inventory"] == 148
