"""The single entry point for presentation code.

``CommandBridge.handle`` validates a named request, resolves its project,
dispatches to exactly one component and always returns an ``Envelope``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ValidationError

from ..artifacts import scan
from ..core.config import Config, ConfigManager
from ..core.errors import (
    DeskError,
    ErrorKind,
    InvalidRequestError,
    IoFailureError,
    ProjectNotFoundError,
    error_for,
)
from ..executor import CommandExecutor, CommandInvocation, CommandResult
from ..network import NetworkManager
from ..project import ProjectRegistry, ProjectSelection
from ..toolchain import EnvironmentProbe, ToolchainCommands, ToolchainStatus
from ..util.error import describe_error, format_unknown_error
from ..util.log import Log
from .schemas import (
    BridgeRequest,
    ConsoleParams,
    DeployParams,
    Envelope,
    LogsParams,
    NoParams,
    TaskParams,
    VerifyParams,
)

log = Log.create({"service": "bridge"})

# none: no project involved. optional: resolved if possible.
# path: a resolved path is required. project: the path must hold a project.
ProjectMode = Literal["none", "optional", "path", "project"]
Handler = Callable[..., Awaitable[Any]]


@dataclass(frozen=True)
class Command:
    name: str
    handler: Handler
    summary: str
    project: ProjectMode = "project"
    params: type[BaseModel] = NoParams


class CommandBridge:
    def __init__(
        self,
        config: Optional[Config] = None,
        *,
        registry: Optional[ProjectRegistry] = None,
        executor: Optional[CommandExecutor] = None,
        commands: Optional[ToolchainCommands] = None,
        probe: Optional[EnvironmentProbe] = None,
        manager: Optional[NetworkManager] = None,
    ) -> None:
        self.config = config or Config()
        toolchain, network = self.config.toolchain, self.config.network
        self.registry = registry or ProjectRegistry()
        self.executor = executor or CommandExecutor(toolchain.command_timeout)
        self.commands = commands or ToolchainCommands(toolchain, network)
        self.probe = probe or EnvironmentProbe(toolchain, network, self.executor, self.commands)
        self.manager = manager or NetworkManager(toolchain, network, self.probe, self.commands)

    @classmethod
    async def create(cls) -> "CommandBridge":
        """Build a bridge from the loaded configuration."""
        return cls(await ConfigManager.get())

    async def shutdown(self) -> None:
        await self.manager.shutdown()

    @classmethod
    def commands_info(cls) -> list[dict[str, str]]:
        return [
            {"name": entry.name, "project": entry.project, "summary": entry.summary}
            for entry in COMMANDS.values()
        ]

    async def handle(self, request: Union[BridgeRequest, Mapping[str, Any]]) -> Envelope:
        command = request.get("command") if isinstance(request, Mapping) else request.command
        try:
            if not isinstance(request, BridgeRequest):
                request = BridgeRequest.model_validate(request)
            entry = COMMANDS.get(request.command)
            if entry is None:
                raise InvalidRequestError(
                    f"unknown command: {request.command}",
                    {"commands": sorted(COMMANDS)},
                )
            params = entry.params.model_validate(request.params)
            project = await self._project(entry, request.project_path)
            with log.time("command", {"command": entry.name, "project": project}):
                data = await entry.handler(self, project, params)
            return Envelope.success(data)
        except ValidationError as e:
            log.warn("invalid request", {"command": command, "errors": e.error_count()})
            return Envelope.failure(
                ErrorKind.INVALID_REQUEST,
                "invalid request parameters",
                {"errors": e.errors(include_url=False, include_context=False, include_input=False)},
            )
        except DeskError as e:
            log.warn("command failed", {"command": command, "kind": e.kind, "message": e.message})
            return Envelope.failure(e.kind, e.message, e.details)
        except Exception as e:
            log.error(
                "unhandled error in command",
                {"command": command, "error": format_unknown_error(e)},
            )
            return Envelope.failure(ErrorKind.INTERNAL, describe_error(e))

    async def _project(self, entry: Command, explicit: Optional[str]) -> Optional[str]:
        if entry.project == "none":
            return None
        path = self.registry.resolve(explicit)
        if path is None:
            if entry.project == "optional":
                return None
            raise ProjectNotFoundError("no project path given and no active project selected")
        if entry.project == "project":
            detection = await self.probe.probe_project(path)
            if not detection.detected:
                raise ProjectNotFoundError(f"no Hardhat project found at {path}", {"project_path": path})
        return path

    async def _run(self, invocation: CommandInvocation) -> CommandResult:
        """Execute; invocation failures other than a non-zero exit become errors."""
        result = await self.executor.execute(invocation)
        if result.error_kind is not None and result.error_kind is not ErrorKind.NON_ZERO_EXIT:
            raise error_for(
                result.error_kind,
                result.stderr.strip().splitlines()[-1] if result.stderr.strip() else f"{invocation.command_name} failed",
                {
                    "command": invocation.command_name,
                    "exit_code": result.exit_code,
                    "stdout": result.stdout,
                    "stderr": result.stderr,
                },
            )
        return result

    # -- handlers ------------------------------------------------------

    async def _check_status(self, project: Optional[str], params: NoParams) -> ToolchainStatus:
        installation, detection, network = await asyncio.gather(
            self.probe.probe_installation(project),
            self.probe.probe_project(project),
            self.probe.probe_network(),
        )
        tracked = detection.resolved_path or project
        state = self.manager.state(tracked) if tracked else None
        return ToolchainStatus(
            installed=installation.installed,
            version=installation.version,
            project_detected=detection.detected,
            project_path=detection.resolved_path,
            network_running=network.reachable,
            network_state=state.value if state else None,
        )

    async def _install_toolchain(self, project: None, params: NoParams) -> CommandResult:
        return await self._run(self.commands.install())

    async def _create_project(self, project: str, params: NoParams) -> CommandResult:
        try:
            Path(project).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IoFailureError(
                f"cannot create project directory {project}: {e.strerror or e}",
                {"project_path": project},
            ) from e
        result = await self._run(self.commands.init(project))
        if result.success:
            self.registry.activate(project)
        return result

    async def _start_network(self, project: str, params: NoParams):
        return await self.manager.start(project)

    async def _stop_network(self, project: str, params: NoParams):
        return await self.manager.stop(project)

    async def _network_status(self, project: str, params: NoParams):
        return self.manager.summary(project)

    async def _network_logs(self, project: str, params: LogsParams) -> list[str]:
        return self.manager.logs(project, params.limit)

    async def _network_info(self, project: None, params: NoParams):
        return await self.probe.probe_rpc()

    async def _list_artifacts(self, project: str, params: NoParams):
        return await asyncio.to_thread(scan, project)

    async def _compile(self, project: str, params: NoParams) -> CommandResult:
        return await self._run(self.commands.compile(project))

    async def _run_tests(self, project: str, params: NoParams) -> CommandResult:
        return await self._run(self.commands.test(project))

    async def _deploy(self, project: str, params: DeployParams) -> CommandResult:
        return await self._run(self.commands.deploy(project, params.script))

    async def _console_eval(self, project: str, params: ConsoleParams) -> CommandResult:
        return await self._run(self.commands.console_eval(project, params.source))

    async def _run_task(self, project: str, params: TaskParams) -> CommandResult:
        return await self._run(self.commands.task(project, params.task, params.arguments))

    async def _verify_contract(self, project: str, params: VerifyParams) -> CommandResult:
        return await self._run(
            self.commands.verify(
                project,
                params.address,
                contract=params.contract,
                constructor_args=params.constructor_args,
            )
        )

    async def _select_project(self, project: str, params: NoParams) -> ProjectSelection:
        if not Path(project).is_dir():
            raise ProjectNotFoundError(f"project directory does not exist: {project}", {"project_path": project})
        detection = await self.probe.probe_project(project)
        path = self.registry.activate(project)
        return ProjectSelection(project_path=path, detected=detection.detected, config_file=detection.config_file)

    async def _recent_projects(self, project: None, params: NoParams) -> list[str]:
        return self.registry.recent()


COMMANDS: dict[str, Command] = {
    entry.name: entry
    for entry in (
        Command("check_status", CommandBridge._check_status, "Probe toolchain, project and network", "optional"),
        Command("install_toolchain", CommandBridge._install_toolchain, "Install the toolchain globally", "none"),
        Command("create_project", CommandBridge._create_project, "Create and initialize a project", "path"),
        Command("start_network", CommandBridge._start_network, "Start the local network"),
        Command("stop_network", CommandBridge._stop_network, "Stop the local network", "path"),
        Command("network_status", CommandBridge._network_status, "Local network state", "path"),
        Command("network_logs", CommandBridge._network_logs, "Recent local network output", "path", LogsParams),
        Command("network_info", CommandBridge._network_info, "Query the RPC endpoint", "none"),
        Command("list_artifacts", CommandBridge._list_artifacts, "List contracts and build artifacts"),
        Command("compile", CommandBridge._compile, "Compile contracts"),
        Command("run_tests", CommandBridge._run_tests, "Run the test suite"),
        Command("deploy", CommandBridge._deploy, "Run a deployment script", params=DeployParams),
        Command("console_eval", CommandBridge._console_eval, "Evaluate a snippet against the network", params=ConsoleParams),
        Command("run_task", CommandBridge._run_task, "Run an arbitrary task", params=TaskParams),
        Command("verify_contract", CommandBridge._verify_contract, "Verify a deployed contract", params=VerifyParams),
        Command("select_project", CommandBridge._select_project, "Make a path the active project", "path"),
        Command("recent_projects", CommandBridge._recent_projects, "Recently used projects", "none"),
    )
}
