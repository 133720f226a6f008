"""Shared test helpers."""

from __future__ import annotations

import asyncio
import socket
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional

from hardhat_desk.core.config_loader import deep_merge
from hardhat_desk.core.config_schema import Config

FAKE_HARDHAT = Path(__file__).parent / "fixtures" / "fake_hardhat.py"

HARDHAT_CONFIG = "module.exports = { solidity: \"0.8.24\" };\n"


def wrapped_toolchain() -> list[str]:
    """Toolchain command that runs the fake as a grandchild, like ``npx``."""
    return ["/bin/sh", "-c", f'"{sys.executable}" "{FAKE_HARDHAT}" "$@"; exit $?', "sh"]


def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def make_config(overrides: Optional[dict[str, Any]] = None) -> Config:
    """Config wired to the fake toolchain on a free port."""
    data: dict[str, Any] = {
        "toolchain": {
            "command": [sys.executable, str(FAKE_HARDHAT)],
            "install_command": [sys.executable, str(FAKE_HARDHAT), "--version"],
            "node_program": sys.executable,
            "init_args": [],
            "version_timeout": 20,
            "command_timeout": 30,
        },
        "network": {
            "port": free_port(),
            "probe_timeout": 0.5,
            "ready_grace": 10,
            "stop_timeout": 5,
        },
    }
    return Config.model_validate(deep_merge(data, overrides or {}))


def make_project(root: Path, contracts: Optional[dict[str, str]] = None) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    (root / "hardhat.config.js").write_text(HARDHAT_CONFIG)
    for relative, text in (contracts or {}).items():
        path = root / "contracts" / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
    return root


def spawn_count(project: Path) -> int:
    marker = project / ".fake-node-spawns"
    if not marker.exists():
        return 0
    return len([line for line in marker.read_text().splitlines() if line.strip()])


async def wait_until(predicate: Callable[[], bool], timeout: float = 10.0, interval: float = 0.05) -> bool:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        if predicate():
            return True
        await asyncio.sleep(interval)
    return predicate()
