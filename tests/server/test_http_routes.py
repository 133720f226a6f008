from __future__ import annotations

import os
from pathlib import Path

import pytest
from starlette.testclient import TestClient

from hardhat_desk import __version__
from hardhat_desk.bridge import CommandBridge
from hardhat_desk.server import create_app
from tests.helpers import make_config, make_project


def _client(bridge: CommandBridge | None = None, **kw: object) -> TestClient:
    return TestClient(create_app(bridge or CommandBridge(make_config()), manage_lifecycle=True), **kw)  # type: ignore[arg-type]


def test_health_reports_version() -> None:
    with _client() as client:
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": __version__}


def test_command_listing() -> None:
    with _client() as client:
        response = client.get("/v1/commands")

    assert response.status_code == 200
    by_name = {item["name"]: item for item in response.json()}
    assert by_name["compile"]["project"] == "project"
    assert by_name["check_status"]["project"] == "optional"


def test_dispatch_returns_envelope(tmp_path: Path) -> None:
    project = make_project(tmp_path / "app")
    with _client() as client:
        response = client.post("/v1/commands/check_status", json={"project_path": str(project)})

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["data"]["project_detected"] is True
    assert response.headers["X-Request-ID"]


def test_command_failures_are_still_200(tmp_path: Path) -> None:
    with _client() as client:
        missing = client.post("/v1/commands/compile", json={"project_path": str(tmp_path)})
        unknown = client.post("/v1/commands/self_destruct")

    assert missing.status_code == 200
    assert missing.json()["error_kind"] == "project_not_found"
    assert unknown.status_code == 200
    assert unknown.json() == {
        "ok": False,
        "error_kind": "invalid_request",
        "message": "unknown command: self_destruct",
        "details": unknown.json()["details"],
    }


def test_body_without_params_is_accepted() -> None:
    with _client() as client:
        response = client.post("/v1/commands/recent_projects")

    assert response.json() == {"ok": True, "data": []}


def test_malformed_body_is_422_envelope() -> None:
    with _client() as client:
        response = client.post("/v1/commands/compile", json={"params": "not-a-mapping"})

    assert response.status_code == 422
    body = response.json()
    assert body["ok"] is False
    assert body["error_kind"] == "invalid_request"
    assert body["details"]["errors"]


def test_unexpected_route_errors_are_500_envelope(monkeypatch: pytest.MonkeyPatch) -> None:
    bridge = CommandBridge(make_config())

    async def broken(request):  # type: ignore[no-untyped-def]
        raise KeyError("boom")

    monkeypatch.setattr(bridge, "handle", broken)

    with _client(bridge, raise_server_exceptions=False) as client:
        response = client.post("/v1/commands/check_status", headers={"X-Request-ID": "req-1"})

    assert response.status_code == 500
    assert response.json()["error_kind"] == "internal"
    assert response.headers["X-Request-ID"] == "req-1"


def test_shutdown_stops_managed_networks(tmp_path: Path) -> None:
    project = make_project(tmp_path / "app")
    with _client() as client:
        started = client.post("/v1/commands/start_network", json={"project_path": str(project)}).json()
        assert started["ok"] is True
        pid = started["data"]["pid"]
        os.kill(pid, 0)

    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)
