"""Terminal rendering of bridge envelopes."""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.table import Table

from ..bridge import Envelope


def _kv_table(data: dict[str, Any]) -> Table:
    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column(style="bold cyan")
    table.add_column()
    for key, value in data.items():
        if value is None:
            value = "-"
        elif isinstance(value, bool):
            value = "[green]yes[/green]" if value else "[red]no[/red]"
        table.add_row(key, str(value))
    return table


def _artifacts_table(items: list[dict[str, Any]]) -> Table:
    table = Table(title="Contracts")
    table.add_column("Name", style="bold")
    table.add_column("Source")
    table.add_column("Compiled")
    table.add_column("Size", justify="right")
    for item in items:
        size = item.get("size_bytes")
        table.add_row(
            item["name"],
            item["source_path"],
            "[green]yes[/green]" if item["compiled"] else "[yellow]no[/yellow]",
            f"{size:,}" if size is not None else "-",
        )
    return table


def _result(console: Console, data: dict[str, Any]) -> None:
    stdout = (data.get("stdout") or "").rstrip()
    stderr = (data.get("stderr") or "").rstrip()
    if stdout:
        console.out(stdout, highlight=False)
    if stderr:
        console.print(stderr, style="dim", markup=False, highlight=False)
    duration = data.get("duration_ms", 0)
    if data.get("success"):
        console.print(f"[green]done[/green] in {duration} ms")
    else:
        console.print(f"[red]failed[/red] with exit code {data.get('exit_code')} after {duration} ms")


def _is_result(data: Any) -> bool:
    return isinstance(data, dict) and {"success", "stdout", "stderr"} <= data.keys()


def succeeded(envelope: Envelope) -> bool:
    """False for error envelopes and for commands that exited non-zero."""
    if not envelope.ok:
        return False
    if _is_result(envelope.data):
        return bool(envelope.data["success"])
    return True


def render_failure(console: Console, envelope: Envelope) -> None:
    kind = envelope.error_kind.value if envelope.error_kind else "internal"
    console.print(f"[red]Error[/red] ({kind}): {envelope.message}", highlight=False)
    details = envelope.details or {}
    for stream in ("stdout", "stderr"):
        text = details.get(stream)
        if isinstance(text, str) and text.strip():
            console.print(text.rstrip(), style="dim", markup=False, highlight=False)
    output = details.get("output")
    if isinstance(output, list) and output:
        console.print("\n".join(str(line) for line in output), style="dim", markup=False, highlight=False)


def render(console: Console, command: str, envelope: Envelope, *, json_output: bool = False) -> None:
    if json_output:
        console.out(json.dumps(envelope.payload(), indent=2, default=str), highlight=False)
        return
    if not envelope.ok:
        render_failure(console, envelope)
        return

    data = envelope.data
    if _is_result(data):
        _result(console, data)
    elif command == "list_artifacts":
        if data:
            console.print(_artifacts_table(data))
        else:
            console.print("[yellow]No contracts found[/yellow]")
    elif isinstance(data, dict):
        console.print(_kv_table(data))
    elif isinstance(data, list):
        for line in data:
            console.out(str(line), highlight=False)
    else:
        console.print(data)
