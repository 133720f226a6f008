"""Serve command - expose the command bridge over HTTP."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from rich.console import Console

from ...bridge import CommandBridge
from ...server.server import Server
from ...util.log import Log

log = Log.create({"service": "cli.serve"})
console = Console()


async def _wait_forever() -> None:
    await asyncio.Future()


async def serve(
    *,
    host: str,
    port: int,
    access_log: bool = True,
    wait: Callable[[], Awaitable[None]] | None = None,
) -> None:
    bridge = await CommandBridge.create()
    info = await Server.start(bridge, host=host, port=port, access_log=access_log)
    console.print(f"[green]Hardhat Desk[/green] API running at {info.url}")
    log.info("api server started", {"host": host, "port": port})

    block = wait or _wait_forever
    try:
        await block()
    finally:
        await Server.stop()
        log.info("api server stopped", {"host": host, "port": port})


def serve_command(*, host: str, port: int, access_log: bool = True) -> None:
    try:
        asyncio.run(serve(host=host, port=port, access_log=access_log))
    except KeyboardInterrupt:
        console.print("\nStopping Hardhat Desk API...")
