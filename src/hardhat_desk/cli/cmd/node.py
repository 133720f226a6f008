"""Node command - run the local network in the foreground."""

from __future__ import annotations

import asyncio
from typing import Optional

from rich.console import Console

from ...bridge import BridgeRequest, CommandBridge
from ...network import NetworkState
from ...util.log import Log
from ..render import render_failure

log = Log.create({"service": "cli.node"})
console = Console()

FOLLOW_INTERVAL = 0.2


async def run_node(project_path: Optional[str]) -> int:
    """Start the network, stream its output and stop it on exit.

    Returns the process exit status for the CLI: 0 when the network stopped
    cleanly, 1 when it failed to start or crashed.
    """
    bridge = await CommandBridge.create()
    try:
        envelope = await bridge.handle(BridgeRequest(command="start_network", project_path=project_path))
        if not envelope.ok:
            render_failure(console, envelope)
            return 1

        summary = envelope.data
        path = summary["project_path"]
        console.print(
            f"[green]Local network[/green] at {summary['endpoint']} (pid {summary['pid']}), Ctrl-C to stop",
            highlight=False,
        )

        cursor = 0
        while True:
            state = bridge.manager.state(path)
            lines, cursor = bridge.manager.tail(path, cursor)
            for line in lines:
                console.out(line, highlight=False)
            if state is None:
                console.print("[yellow]Local network exited[/yellow]")
                return 0
            if state is NetworkState.CRASHED:
                console.print("[red]Local network crashed[/red]")
                return 1
            await asyncio.sleep(FOLLOW_INTERVAL)
    finally:
        await bridge.shutdown()


def node_command(project_path: Optional[str]) -> int:
    try:
        return asyncio.run(run_node(project_path))
    except KeyboardInterrupt:
        console.print("\nLocal network stopped")
        return 0
