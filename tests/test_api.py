"""Tests for the verification HTTP endpoints."""

import inspect

import pytest
from fastapi.testclient import TestClient

from conftest import DST_URL, SRC_URL
from driveverify.api.v1 import verification as verification_api
from driveverify.main import app

TREE = {"a.txt": b"alpha", "sub/b.txt": b"beta"}


@pytest.fixture
def client(orchestrator, stub_cli):
    stub_cli.trees = {"SRC_folder-1": TREE, "DST_folder-2": TREE}
    verification_api.set_orchestrator(orchestrator)
    yield TestClient(app)
    verification_api.set_orchestrator(None)


class TestVerifyEndpoints:

    def test_verify_returns_job_status(self, client) -> None:
        response = client.post(
            "/api/v1/gdrive/verify",
            json={"src_folder_url": SRC_URL, "dst_folder_url": DST_URL},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        # No dispatcher configured, so the job ran inline
        assert body["status"]["state"] == "success"

        job_id = body["status"]["id"]
        status = client.get(f"/api/v1/gdrive/verify/{job_id}").json()
        assert status["state"] == "success"
        assert status["diff_json"] == {"missing": [], "mismatch": []}

    def test_verify_with_malformed_url(self, client) -> None:
        response = client.post(
            "/api/v1/gdrive/verify",
            json={"src_folder_url": SRC_URL, "dst_folder_url": "??"},
        )
        body = response.json()
        assert body["success"] is False
        assert "Malformed Folder ID" in body["message"]

    def test_missing_fields_are_malformed(self, client) -> None:
        body = client.post("/api/v1/gdrive/verify", json={}).json()
        assert body["success"] is False

    def test_unknown_job_status(self, client) -> None:
        status = client.get("/api/v1/gdrive/verify/unknown").json()
        assert status["state"] is None
        assert status["id"] is None

    def test_uninitialized_service_returns_503(self) -> None:
        verification_api.set_orchestrator(None)
        response = TestClient(app).get("/api/v1/gdrive/verify/x")
        assert response.status_code == 503


class TestHealth:

    def test_healthy_when_gdrive_ready(self, client) -> None:
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["gdrive_ready"] is True

    def test_degraded_when_gdrive_unavailable(self, client, stub_cli) -> None:
        stub_cli.ready = False
        body = client.get("/api/v1/health").json()
        assert body["status"] == "degraded"
        assert body["gdrive_ready"] is False


def test_status_handler_runs_in_threadpool() -> None:
    # Redis reads block, so the status route must not be a coroutine
    assert not inspect.iscoroutinefunction(verification_api.verify_status)
