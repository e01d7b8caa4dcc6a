"""API tests for ingestion, read endpoints, health and API-key auth."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import base64
import pytest
from fastapi.testclient import TestClient
from conftest import seed_status
from machine_telemetry.config import Settings
from machine_telemetry.main import create_app

IMAGE_B64 = base64.b64encode(b"jpeg").decode()


@pytest.fixture
def direct_client():
    settings = Settings(_env_file=None, DATABASE_URL="sqlite://", HANDLER_MODE="direct")
    with TestClient(create_app(settings)) as client:
        yield client


@pytest.fixture
def archive_client(session_factory, inference_client, image_archive):
    settings = Settings(_env_file=None, HANDLER_MODE="archive")
    app = create_app(settings, session_factory=session_factory,
                     inference_client=inference_client, image_archive=image_archive)
    with TestClient(app) as client:
        yield client


class TestTelemetryIngestion:
    def test_batch_with_skip(self, direct_client):
        resp = direct_client.post("/api/v1/events/telemetry", json=[
            {"machine_id": "M1", "activate": "1"},
            {"machine_id": "M2"},
        ])

        assert resp.status_code == 200
        body = resp.json()
        assert (body["received"], body["processed"], body["skipped"], body["failed"]) == (2, 1, 1, 0)
        assert body["events"][1]["reason"] == "invalid_payload"

    def test_single_object_is_batch_of_one(self, direct_client):
        resp = direct_client.post("/api/v1/events/telemetry", json={"machine_id": "M1", "activate": "0"})
        assert resp.json()["processed"] == 1

    def test_invalid_json_still_200(self, direct_client):
        resp = direct_client.post("/api/v1/events/telemetry", content=b"{not json",
                                  headers={"Content-Type": "application/json"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "error"

    def test_empty_body_ignored(self, direct_client):
        resp = direct_client.post("/api/v1/events/telemetry", content=b"")
        assert resp.json() == {"status": "ignored", "reason": "empty body"}

    def test_archive_mode_end_to_end(self, archive_client, inference_stub, session_factory):
        seed_status(session_factory, "M1", "0")
        inference_stub.queue(200, {"predicted_class": "class1", "result": True})
        inference_stub.queue(500, {"error": "down"})

        resp = archive_client.post("/api/v1/events/telemetry", json=[
            {"machine_id": "M1", "image_base64": IMAGE_B64},
            {"machine_id": "M3", "image_base64": IMAGE_B64},
        ])

        body = resp.json()
        assert [e["status"] for e in body["events"]] == ["processed", "failed"]
        assert body["events"][0]["blob_path"].startswith("uploads/")
        assert body["events"][0]["blob_path"].split("/")[2] == "on"

        status = archive_client.get("/api/v1/machine-status/M1").json()
        assert status["activate"] == "1"
        logs = archive_client.get("/api/v1/operation-logs", params={"machine_id": "M1"}).json()
        assert [(l["machine_id"], l["activate"]) for l in logs] == [("M1", "1")]


class TestReadEndpoints:
    def test_operation_logs_newest_first(self, direct_client):
        direct_client.post("/api/v1/events/telemetry", json=[
            {"machine_id": "M1", "activate": "1"},
            {"machine_id": "M1", "activate": "0"},
        ])

        logs = direct_client.get("/api/v1/operation-logs").json()
        assert [l["activate"] for l in logs] == ["0", "1"]

    def test_unknown_machine_404(self, archive_client):
        resp = archive_client.get("/api/v1/machine-status/NOPE")
        assert resp.status_code == 404

    def test_all_status(self, archive_client, session_factory):
        seed_status(session_factory, "M2", "1")
        seed_status(session_factory, "M1", "0")

        rows = archive_client.get("/api/v1/machine-status").json()
        assert [r["machine_id"] for r in rows] == ["M1", "M2"]

    def test_health(self, direct_client):
        body = direct_client.get("/api/v1/health").json()
        assert body["status"] == "ok"
        assert body["database"] == "ok"
        assert body["handler_mode"] == "direct"
        assert body["inference_configured"] is False
        assert "inference_endpoint" not in body


class TestAPIKey:
    @pytest.fixture
    def client(self):
        settings = Settings(_env_file=None, DATABASE_URL="sqlite://", HANDLER_MODE="direct", API_KEY="secret")
        with TestClient(create_app(settings)) as client:
            yield client

    def test_read_endpoint_requires_key(self, client):
        assert client.get("/api/v1/operation-logs").status_code == 401
        assert client.get("/api/v1/operation-logs", headers={"X-API-Key": "secret"}).status_code == 200

    def test_ingestion_and_health_stay_open(self, client):
        assert client.post("/api/v1/events/telemetry", json={"machine_id": "M1", "activate": "1"}).status_code == 200
        assert client.get("/api/v1/health").status_code == 200
