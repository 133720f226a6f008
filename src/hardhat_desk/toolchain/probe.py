"""Read-only environment checks.

None of the probes raise: a missing binary, an absent project or a refused
connection are all reported as ``False`` in the result.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit

import httpx
from pydantic import BaseModel

from ..core.config_schema import NetworkConfig, ToolchainConfig
from ..executor import CommandExecutor
from ..util.log import Log
from .commands import ToolchainCommands

log = Log.create({"service": "probe"})

PROJECT_CONFIG_FILES = (
    "hardhat.config.js",
    "hardhat.config.ts",
    "hardhat.config.cjs",
    "hardhat.config.mjs",
)


class InstallationProbe(BaseModel):
    installed: bool
    version: Optional[str] = None


class ProjectProbe(BaseModel):
    detected: bool
    resolved_path: Optional[str] = None
    config_file: Optional[str] = None


class NetworkProbe(BaseModel):
    reachable: bool
    endpoint: str


class RpcProbe(BaseModel):
    reachable: bool
    endpoint: str
    client_version: Optional[str] = None


class ToolchainStatus(BaseModel):
    """Snapshot assembled from the three probes; never persisted."""
    installed: bool
    version: Optional[str] = None
    project_detected: bool
    project_path: Optional[str] = None
    network_running: bool
    network_state: Optional[str] = None


def _address(endpoint: str) -> tuple[str, int]:
    parts = urlsplit(endpoint if "://" in endpoint else f"http://{endpoint}")
    return parts.hostname or "127.0.0.1", parts.port or 8545


class EnvironmentProbe:
    """Answers "is the toolchain here", "is this a project", "is the network up"."""

    def __init__(
        self,
        toolchain: ToolchainConfig,
        network: NetworkConfig,
        executor: Optional[CommandExecutor] = None,
        commands: Optional[ToolchainCommands] = None,
    ) -> None:
        self.network = network
        self.executor = executor or CommandExecutor(toolchain.command_timeout)
        self.commands = commands or ToolchainCommands(toolchain, network)

    async def probe_installation(self, project_path: Optional[str] = None) -> InstallationProbe:
        cwd = project_path if project_path and Path(project_path).is_dir() else None
        result = await self.executor.execute(self.commands.version(cwd))
        if not result.success:
            log.info("toolchain not available", {"error_kind": result.error_kind, "exit_code": result.exit_code})
            return InstallationProbe(installed=False)
        lines = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        return InstallationProbe(installed=True, version=lines[-1] if lines else None)

    async def probe_project(self, path: Optional[str] = None) -> ProjectProbe:
        root = Path(path or ".").expanduser()
        for name in PROJECT_CONFIG_FILES:
            candidate = root / name
            if candidate.is_file():
                return ProjectProbe(detected=True, resolved_path=str(root.resolve()), config_file=name)
        return ProjectProbe(detected=False)

    async def probe_network(self, endpoint: Optional[str] = None) -> NetworkProbe:
        endpoint = endpoint or self.network.endpoint
        host, port = _address(endpoint)
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port),
                timeout=self.network.probe_timeout,
            )
        except (OSError, asyncio.TimeoutError):
            return NetworkProbe(reachable=False, endpoint=endpoint)
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass
        return NetworkProbe(reachable=True, endpoint=endpoint)

    async def probe_rpc(self, endpoint: Optional[str] = None) -> RpcProbe:
        """JSON-RPC round trip asking the node for its client version."""
        endpoint = endpoint or self.network.endpoint
        payload = {"jsonrpc": "2.0", "id": 1, "method": "web3_clientVersion", "params": []}
        try:
            async with httpx.AsyncClient(timeout=self.network.probe_timeout) as client:
                response = await client.post(endpoint, json=payload)
                response.raise_for_status()
                body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            log.debug("rpc probe failed", {"endpoint": endpoint, "error": str(e)})
            return RpcProbe(reachable=False, endpoint=endpoint)
        version = body.get("result") if isinstance(body, dict) else None
        return RpcProbe(
            reachable=True,
            endpoint=endpoint,
            client_version=version if isinstance(version, str) else None,
        )
