"""HTTP surface tests: scan ingestion and the read-only query endpoints."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from unittest.mock import patch
from fastapi.testclient import TestClient
from app.database import get_db
from app.main import app
from app.services.ledger_errors import ScanContentionError, StorageUnavailableError


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def post_scan(client, building_id, direction, tag_key=None):
    return client.post("/api/v1/scans", json={"building_id": building_id, "direction": direction, "tag_key": tag_key})


class TestScanEndpoint:
    def test_visit_round_trip(self, client):
        resp = post_scan(client, "B5", "IN", "X1")
        assert resp.status_code == 200
        body = resp.json()
        assert body["outcome"] == "created"
        assert body["ok"] is True
        assert body["occupancy_count"] == 1

        assert client.get("/api/v1/buildings/B5").json()["occupancy_count"] == 1

        body = post_scan(client, "B5", "OUT", "X1").json()
        assert body["outcome"] == "closed"
        assert body["occupancy_count"] == 0

        body = post_scan(client, "B5", "OUT", "X1").json()
        assert body["outcome"] == "not_found"
        assert body["ok"] is False
        assert body["anomalies"] == ["no_open_session"]

    def test_bad_direction_is_accepted_and_dropped(self, client):
        resp = post_scan(client, "B1", "UP", "X1")
        assert resp.status_code == 200
        assert resp.json()["outcome"] == "unrecognized_direction"

        anomalies = client.get("/api/v1/anomalies", params={"anomaly_type": "unrecognized_direction"}).json()
        assert len(anomalies) == 1
        assert anomalies[0]["direction"] == "UP"

    def test_missing_building_id_is_rejected(self, client):
        resp = client.post("/api/v1/scans", json={"direction": "IN", "tag_key": "X1"})
        assert resp.status_code == 422

    def test_contention_is_retryable_conflict(self, client):
        with patch("app.routers.scans.record_scan", side_effect=ScanContentionError("Lock contention on building:B1")):
            resp = post_scan(client, "B1", "IN", "X1")
        assert resp.status_code == 409
        assert resp.json()["retryable"] is True

    def test_storage_failure_is_503(self, client):
        with patch("app.routers.scans.record_scan", side_effect=StorageUnavailableError("connection refused")):
            resp = post_scan(client, "B1", "IN", "X1")
        assert resp.status_code == 503
        assert resp.json()["retryable"] is False


class TestQueryEndpoints:
    def test_lists_seeded_buildings(self, client):
        buildings = client.get("/api/v1/buildings").json()
        assert len(buildings) == 18
        assert all(b["occupancy_count"] == 0 for b in buildings)

    def test_unknown_building_404(self, client):
        assert client.get("/api/v1/buildings/NOPE").status_code == 404

    def test_sessions_render_in_display_zone(self, client):
        post_scan(client, "B2", "IN", "T1")
        post_scan(client, "B2", "IN", "T2")
        post_scan(client, "B2", "OUT", "T1")

        sessions = client.get("/api/v1/sessions", params={"building_id": "B2"}).json()
        assert len(sessions) == 2
        assert sessions[0]["entry_time"].endswith("+05:30")

        open_only = client.get("/api/v1/sessions", params={"building_id": "B2", "open_only": True}).json()
        assert [s["tag_key"] for s in open_only] == ["T2"]
        assert open_only[0]["is_open"] is True

    def test_health(self, client):
        body = client.get("/api/v1/health").json()
        assert body["status"] == "ok"
        assert body["database"] == "ok"
        assert body["buildings"] == 18

    @pytest.mark.parametrize("path", ["/api/v1/sessions", "/api/v1/anomalies"])
    @pytest.mark.parametrize("limit", [-1, 0, 5000])
    def test_out_of_range_limit_is_rejected(self, client, path, limit):
        assert client.get(path, params={"limit": limit}).status_code == 422
