from __future__ import annotations

import asyncio
import json
import socket
from pathlib import Path

import pytest

from hardhat_desk.core.config_schema import NetworkConfig, ToolchainConfig
from hardhat_desk.toolchain import EnvironmentProbe
from tests.helpers import free_port, make_config, make_project


def _probe(**overrides: object) -> EnvironmentProbe:
    config = make_config(overrides)  # type: ignore[arg-type]
    return EnvironmentProbe(config.toolchain, config.network)


@pytest.mark.anyio
async def test_installation_reports_version() -> None:
    result = await _probe().probe_installation()

    assert result.installed is True
    assert result.version == "2.22.4"


@pytest.mark.anyio
async def test_missing_binary_is_not_installed() -> None:
    probe = EnvironmentProbe(ToolchainConfig(command=["definitely-not-a-hardhat-binary"]), NetworkConfig())

    result = await probe.probe_installation()

    assert result.installed is False
    assert result.version is None


@pytest.mark.anyio
async def test_failing_version_query_is_not_installed() -> None:
    probe = _probe(toolchain={"command": ["false"]})

    assert (await probe.probe_installation()).installed is False


@pytest.mark.anyio
async def test_project_detection_prefers_javascript_config(tmp_path: Path) -> None:
    (tmp_path / "hardhat.config.ts").write_text("export default {};")
    (tmp_path / "hardhat.config.js").write_text("module.exports = {};")

    result = await _probe().probe_project(str(tmp_path))

    assert result.detected is True
    assert result.config_file == "hardhat.config.js"
    assert result.resolved_path == str(tmp_path.resolve())


@pytest.mark.anyio
async def test_project_detection_accepts_typescript(tmp_path: Path) -> None:
    (tmp_path / "hardhat.config.ts").write_text("export default {};")

    result = await _probe().probe_project(str(tmp_path))

    assert result.detected is True
    assert result.config_file == "hardhat.config.ts"


@pytest.mark.anyio
async def test_project_detection_misses(tmp_path: Path) -> None:
    result = await _probe().probe_project(str(tmp_path / "nowhere"))

    assert result.detected is False
    assert result.resolved_path is None


@pytest.mark.anyio
async def test_project_detection_defaults_to_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    make_project(tmp_path)
    monkeypatch.chdir(tmp_path)

    result = await _probe().probe_project()

    assert result.detected is True
    assert result.resolved_path == str(tmp_path.resolve())


@pytest.mark.anyio
async def test_network_probe_reachable_and_refused() -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server:
        server.bind(("127.0.0.1", 0))
        server.listen(1)
        port = server.getsockname()[1]
        probe = _probe(network={"port": port})

        reachable = await probe.probe_network()

    closed = await _probe().probe_network(f"http://127.0.0.1:{free_port()}")

    assert reachable.reachable is True
    assert reachable.endpoint == f"http://127.0.0.1:{port}"
    assert closed.reachable is False


async def _rpc_server(body: bytes) -> tuple[asyncio.AbstractServer, int]:
    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        head = await reader.readuntil(b"\r\n\r\n")
        length = 0
        for line in head.decode().split("\r\n"):
            if line.lower().startswith("content-length:"):
                length = int(line.split(":", 1)[1])
        await reader.readexactly(length)
        writer.write(
            b"HTTP/1.1 200 OK\r\nContent-Type: application/json\r\n"
            + f"Content-Length: {len(body)}\r\nConnection: close\r\n\r\n".encode()
            + body
        )
        await writer.drain()
        writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    return server, server.sockets[0].getsockname()[1]


@pytest.mark.anyio
async def test_rpc_probe_reads_client_version() -> None:
    server, port = await _rpc_server(json.dumps({"jsonrpc": "2.0", "id": 1, "result": "HardhatNetwork/2.22.4"}).encode())
    async with server:
        result = await _probe(network={"port": port}).probe_rpc()

    assert result.reachable is True
    assert result.client_version == "HardhatNetwork/2.22.4"


@pytest.mark.anyio
async def test_rpc_probe_never_raises_when_down() -> None:
    result = await _probe().probe_rpc()

    assert result.reachable is False
    assert result.client_version is None
