from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from hardhat_desk import __version__
from hardhat_desk.bridge import BridgeRequest, Envelope
from hardhat_desk.cli.cmd.node import run_node
from hardhat_desk.cli.main import app
from hardhat_desk.core.config import CONFIG_ENV
from hardhat_desk.core.errors import ErrorKind
from tests.helpers import make_config, make_project

runner = CliRunner()


@pytest.fixture
def fake_toolchain(monkeypatch: pytest.MonkeyPatch) -> None:
    config = make_config()
    monkeypatch.setenv(CONFIG_ENV, json.dumps(config.model_dump(mode="json", exclude_none=True)))


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


@pytest.mark.usefixtures("fake_toolchain")
def test_status_renders_table(tmp_path: Path) -> None:
    project = make_project(tmp_path / "app")

    result = runner.invoke(app, ["status", "--project", str(project)])

    assert result.exit_code == 0, result.output
    assert "installed" in result.output
    assert "2.22.4" in result.output


@pytest.mark.usefixtures("fake_toolchain")
def test_json_output_prints_envelope(tmp_path: Path) -> None:
    project = make_project(tmp_path / "app")

    result = runner.invoke(app, ["--json", "status", "-p", str(project)])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["ok"] is True
    assert payload["data"]["project_path"] == str(project.resolve())


@pytest.mark.usefixtures("fake_toolchain")
def test_failed_compile_exits_non_zero(tmp_path: Path) -> None:
    project = make_project(tmp_path / "app", {"Broken.sol": "SYNTAX ERROR"})

    result = runner.invoke(app, ["compile", "-p", str(project)])

    assert result.exit_code == 1
    assert "exit code 1" in result.output


@pytest.mark.usefixtures("fake_toolchain")
def test_error_envelope_exits_non_zero(tmp_path: Path) -> None:
    result = runner.invoke(app, ["test", "-p", str(tmp_path)])

    assert result.exit_code == 1
    assert "project_not_found" in result.output


@pytest.mark.usefixtures("fake_toolchain")
def test_init_then_artifacts_use_active_project(tmp_path: Path) -> None:
    project = tmp_path / "fresh"

    created = runner.invoke(app, ["init", str(project)])
    listed = runner.invoke(app, ["artifacts"])
    compiled = runner.invoke(app, ["compile"])
    recent = runner.invoke(app, ["recent"])

    assert created.exit_code == 0, created.output
    assert (project / "hardhat.config.js").is_file()
    assert listed.exit_code == 0, listed.output
    assert "Lock" in listed.output
    assert compiled.exit_code == 0, compiled.output
    assert str(project.resolve()) in recent.output


@pytest.mark.usefixtures("fake_toolchain")
def test_task_passes_arguments(tmp_path: Path) -> None:
    project = make_project(tmp_path / "app")

    result = runner.invoke(app, ["task", "accounts", "alpha", "beta", "-p", str(project)])

    assert result.exit_code == 0, result.output
    assert '"argv": ["alpha", "beta"]' in result.output


def test_server_option_sends_requests_remotely(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[tuple[str, BridgeRequest]] = []

    async def fake_remote(url: str, request: BridgeRequest) -> Envelope:
        seen.append((url, request))
        return Envelope.failure(ErrorKind.ALREADY_RUNNING, "a network is already running for /other")

    monkeypatch.setattr("hardhat_desk.cli.main.remote", fake_remote)

    result = runner.invoke(app, ["--server", "http://127.0.0.1:4545", "node", "-p", "/work/app"])

    assert result.exit_code == 1
    assert "already_running" in result.output
    ((url, request),) = seen
    assert url == "http://127.0.0.1:4545"
    assert request.command == "start_network"
    assert request.project_path == "/work/app"


def test_verify_builds_params(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[BridgeRequest] = []

    async def fake_remote(url: str, request: BridgeRequest) -> Envelope:
        seen.append(request)
        return Envelope.success({"success": True, "stdout": "Verified", "stderr": "", "exit_code": 0, "duration_ms": 5})

    monkeypatch.setattr("hardhat_desk.cli.main.remote", fake_remote)

    result = runner.invoke(
        app,
        ["--server", "http://desk", "verify", "0xabc", "1", "two", "--contract", "contracts/Lock.sol:Lock"],
    )

    assert result.exit_code == 0, result.output
    assert "Verified" in result.output
    assert seen[0].params == {
        "address": "0xabc",
        "contract": "contracts/Lock.sol:Lock",
        "constructor_args": ["1", "two"],
    }


def test_node_command_exit_code_propagates(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("hardhat_desk.cli.cmd.node.node_command", lambda project_path: 1)

    result = runner.invoke(app, ["node"])

    assert result.exit_code == 1


def test_serve_delegates_with_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_serve_command(*, host: str, port: int, access_log: bool = True) -> None:
        captured.update(host=host, port=port)

    monkeypatch.setattr("hardhat_desk.cli.cmd.serve.serve_command", fake_serve_command)

    default = runner.invoke(app, ["serve"])
    explicit_port = captured.get("port")
    custom = runner.invoke(app, ["serve", "--host", "0.0.0.0", "--port", "5001"])

    assert default.exit_code == 0, default.output
    assert explicit_port == 4545
    assert custom.exit_code == 0, custom.output
    assert captured == {"host": "0.0.0.0", "port": 5001}


@pytest.mark.anyio
@pytest.mark.usefixtures("fake_toolchain")
async def test_run_node_reports_crash(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FAKE_NODE_CRASH_AFTER", "0.5")
    project = make_project(tmp_path / "app")

    assert await run_node(str(project)) == 1


@pytest.mark.anyio
@pytest.mark.usefixtures("fake_toolchain")
async def test_run_node_reports_start_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FAKE_NODE_FAIL", "1")
    project = make_project(tmp_path / "app")

    assert await run_node(str(project)) == 1
