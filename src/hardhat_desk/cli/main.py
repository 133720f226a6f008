"""CLI entry point for Hardhat Desk.

Every subcommand except ``node`` and ``serve`` sends one request through the
command bridge, in-process or to a running server with ``--server``.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console

from .. import __version__
from ..bridge import BridgeRequest, CommandBridge, Envelope
from ..core.config import ConfigError
from ..runtime import bootstrap_logging
from .client import remote
from .render import render, succeeded

app = typer.Typer(
    name="hardhat-desk",
    help="Hardhat Desk - drive a local Hardhat workflow from the terminal",
    no_args_is_help=True,
    add_completion=False,
)

console = Console()


@dataclass
class CliOptions:
    json_output: bool = False
    server: Optional[str] = None
    log_level: Optional[str] = None


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        console.print(f"hardhat-desk {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print the raw response envelope as JSON",
    ),
    server: Optional[str] = typer.Option(
        None,
        "--server",
        envvar="HARDHAT_DESK_SERVER",
        help="Send commands to a running `hardhat-desk serve` at this URL",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Log level (DEBUG, INFO, WARN, ERROR)",
    ),
):
    """Hardhat Desk - drive a local Hardhat workflow from the terminal."""
    ctx.obj = CliOptions(json_output=json_output, server=server, log_level=log_level)


def _options(ctx: typer.Context) -> CliOptions:
    return ctx.obj if isinstance(ctx.obj, CliOptions) else CliOptions()


def _bootstrap(options: CliOptions, mode: str = "cli") -> None:
    try:
        bootstrap_logging(mode=mode, level=options.log_level)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}", highlight=False)
        raise typer.Exit(1)


async def _in_process(request: BridgeRequest) -> Envelope:
    bridge = await CommandBridge.create()
    try:
        return await bridge.handle(request)
    finally:
        await bridge.shutdown()


def _dispatch(
    ctx: typer.Context,
    command: str,
    project_path: Optional[str] = None,
    params: Optional[Dict[str, Any]] = None,
) -> None:
    options = _options(ctx)
    _bootstrap(options)
    request = BridgeRequest(command=command, project_path=project_path, params=params or {})
    if options.server:
        envelope = asyncio.run(remote(options.server, request))
    else:
        envelope = asyncio.run(_in_process(request))
    render(console, command, envelope, json_output=options.json_output)
    if not succeeded(envelope):
        raise typer.Exit(1)


def _project_option() -> Any:
    return typer.Option(
        None,
        "--project",
        "-p",
        help="Project directory (defaults to the active project)",
    )


@app.command()
def status(ctx: typer.Context, project: Optional[str] = _project_option()):
    """Show toolchain, project and network status."""
    _dispatch(ctx, "check_status", project)


@app.command()
def install(ctx: typer.Context):
    """Install the Hardhat toolchain globally."""
    _dispatch(ctx, "install_toolchain")


@app.command()
def init(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Directory for the new project"),
):
    """Create a project directory and initialize Hardhat in it."""
    _dispatch(ctx, "create_project", path)


@app.command()
def use(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Project directory"),
):
    """Make a directory the active project."""
    _dispatch(ctx, "select_project", path)


@app.command()
def recent(ctx: typer.Context):
    """List recently used projects."""
    _dispatch(ctx, "recent_projects")


@app.command()
def node(ctx: typer.Context, project: Optional[str] = _project_option()):
    """Run the local network in the foreground until Ctrl-C.

    With --server the network is started on the server and left running.
    """
    options = _options(ctx)
    if options.server:
        _dispatch(ctx, "start_network", project)
        return

    from .cmd.node import node_command

    _bootstrap(options, "node")
    code = node_command(project)
    if code:
        raise typer.Exit(code)


@app.command()
def stop(ctx: typer.Context, project: Optional[str] = _project_option()):
    """Stop the local network (meaningful with --server)."""
    _dispatch(ctx, "stop_network", project)


@app.command()
def logs(
    ctx: typer.Context,
    project: Optional[str] = _project_option(),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Number of lines"),
):
    """Print recent local network output (meaningful with --server)."""
    _dispatch(ctx, "network_logs", project, {"limit": limit} if limit else {})


@app.command()
def info(ctx: typer.Context):
    """Query the configured RPC endpoint."""
    _dispatch(ctx, "network_info")


@app.command()
def artifacts(ctx: typer.Context, project: Optional[str] = _project_option()):
    """List contracts and whether they are compiled."""
    _dispatch(ctx, "list_artifacts", project)


@app.command("compile")
def compile_contracts(ctx: typer.Context, project: Optional[str] = _project_option()):
    """Compile the project's contracts."""
    _dispatch(ctx, "compile", project)


@app.command("test")
def run_tests(ctx: typer.Context, project: Optional[str] = _project_option()):
    """Run the project's test suite."""
    _dispatch(ctx, "run_tests", project)


@app.command()
def deploy(
    ctx: typer.Context,
    project: Optional[str] = _project_option(),
    script: Optional[str] = typer.Option(None, "--script", "-s", help="Deployment script"),
):
    """Run a deployment script against the local network."""
    _dispatch(ctx, "deploy", project, {"script": script} if script else {})


@app.command("console")
def console_eval(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="Async function body, e.g. 'return await ethers.getSigners()'"),
    project: Optional[str] = _project_option(),
):
    """Evaluate a snippet with the Hardhat runtime environment."""
    _dispatch(ctx, "console_eval", project, {"source": source})


@app.command()
def task(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Task name"),
    arguments: Optional[List[str]] = typer.Argument(None, help="Task arguments"),
    project: Optional[str] = _project_option(),
):
    """Run an arbitrary Hardhat task."""
    _dispatch(ctx, "run_task", project, {"task": name, "arguments": arguments or []})


@app.command()
def verify(
    ctx: typer.Context,
    address: str = typer.Argument(..., help="Deployed contract address"),
    constructor_args: Optional[List[str]] = typer.Argument(None, help="Constructor arguments"),
    contract: Optional[str] = typer.Option(None, "--contract", help="Fully qualified contract name"),
    project: Optional[str] = _project_option(),
):
    """Verify a deployed contract."""
    _dispatch(
        ctx,
        "verify_contract",
        project,
        {"address": address, "contract": contract, "constructor_args": constructor_args or []},
    )


@app.command()
def serve(
    ctx: typer.Context,
    host: Optional[str] = typer.Option(None, "--host", help="Host to bind (defaults to config)"),
    port: Optional[int] = typer.Option(None, "--port", help="Port to listen on (defaults to config)"),
):
    """Serve the command bridge over HTTP."""
    from ..core.config import ConfigManager
    from .cmd.serve import serve_command

    options = _options(ctx)
    _bootstrap(options, "serve")
    cfg = asyncio.run(ConfigManager.get())
    serve_command(host=host or cfg.server.host, port=port or cfg.server.port)


if __name__ == "__main__":
    app()
