"""
Tests for the REST endpoints serving the camp dataset.

Run: python -m pytest tests/test_api.py -v
"""

from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

PLAIN = {
    "2026 FCPA Camps": {
        "camps": [{"title": "Art Studio", "fee": 55.0}],
        "metadata": {"totalCamps": 1, "enums": {}, "generatedAt": "2026-01-01T00:00:00+00:00"},
    },
    "Winter": {
        "camps": [],
        "metadata": {"totalCamps": 0, "enums": {}, "generatedAt": "2026-01-01T00:00:00+00:00"},
    },
}


@pytest.fixture
def data_paths(tmp_path, monkeypatch):
    from summer_camps.config import settings

    plain = tmp_path / "fcpa-camps.json"
    enriched = tmp_path / "fcpa-camps-enriched.json"
    monkeypatch.setattr(settings, "dataset_path", plain)
    monkeypatch.setattr(settings, "enriched_dataset_path", enriched)
    monkeypatch.setattr(settings, "default_sheet", None)
    return plain, enriched


@pytest.fixture
def client():
    from summer_camps.main import app

    with TestClient(app) as c:
        yield c


class TestHealth:
    def test_without_dataset(self, data_paths, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "dataset_loaded": False, "sheets": 0}

    def test_with_dataset(self, data_paths, client):
        plain, _ = data_paths
        plain.write_text(json.dumps(PLAIN), encoding="utf-8")
        assert client.get("/api/health").json()["sheets"] == 2


class TestCamps:
    def test_missing_dataset_is_404(self, data_paths, client):
        assert client.get("/api/camps").status_code == 404
        assert client.get("/api/sheets").status_code == 404

    def test_default_sheet_is_first(self, data_paths, client):
        plain, _ = data_paths
        plain.write_text(json.dumps(PLAIN), encoding="utf-8")

        assert client.get("/api/sheets").json() == ["2026 FCPA Camps", "Winter"]
        body = client.get("/api/camps").json()
        assert body["camps"][0]["title"] == "Art Studio"
        assert body["metadata"]["totalCamps"] == 1

    def test_configured_default_sheet(self, data_paths, client, monkeypatch):
        from summer_camps.config import settings

        plain, _ = data_paths
        plain.write_text(json.dumps(PLAIN), encoding="utf-8")
        monkeypatch.setattr(settings, "default_sheet", "Winter")
        assert client.get("/api/camps").json()["camps"] == []

        monkeypatch.setattr(settings, "default_sheet", "Spring")
        assert client.get("/api/camps").status_code == 404

    def test_enriched_dataset_preferred(self, data_paths, client):
        plain, enriched = data_paths
        plain.write_text(json.dumps(PLAIN), encoding="utf-8")
        with_description = json.loads(json.dumps(PLAIN))
        with_description["2026 FCPA Camps"]["camps"][0]["description"] = "Painting and clay."
        enriched.write_text(json.dumps(with_description), encoding="utf-8")

        camp = client.get("/api/camps/2026 FCPA Camps").json()["camps"][0]
        assert camp["description"] == "Painting and clay."

    def test_unknown_sheet(self, data_paths, client):
        plain, _ = data_paths
        plain.write_text(json.dumps(PLAIN), encoding="utf-8")
        resp = client.get("/api/camps/Nope")
        assert resp.status_code == 404
        assert "Nope" in resp.json()["detail"]
