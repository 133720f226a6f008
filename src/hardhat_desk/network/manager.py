"""Lifecycle of the long-running local network process.

The manager owns at most one ``hardhat node`` child per project path. Each
child gets a supervisor task that drains its output into a bounded buffer
and records the exit, so a crash shows up on the next status read.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from ..core.config_schema import NetworkConfig, ToolchainConfig
from ..core.errors import (
    AlreadyRunningError,
    NotInstalledError,
    ProjectNotFoundError,
    SpawnFailedError,
)
from ..toolchain import EnvironmentProbe, ToolchainCommands
from ..util.log import Log
from ..util.process import signal_tree, spawn_options, wait_exit
from .buffer import OutputBuffer

log = Log.create({"service": "network"})

# StreamReader line limit; longer lines are dropped with a marker.
OUTPUT_LIMIT = 1024 * 1024
POLL_INTERVAL = 0.2
SUPERVISOR_TIMEOUT = 5.0
FAILURE_TAIL = 20


class NetworkState(str, Enum):
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"
    CRASHED = "crashed"


LIVE_STATES = (NetworkState.STARTING, NetworkState.RUNNING)


class NetworkSummary(BaseModel):
    """Caller-facing snapshot of a managed network."""
    project_path: str
    state: NetworkState
    pid: Optional[int] = None
    started_at: Optional[datetime] = None
    exit_code: Optional[int] = None
    endpoint: str


@dataclass
class ManagedProcess:
    project_path: str
    process: asyncio.subprocess.Process
    started_at: datetime
    buffer: OutputBuffer
    state: NetworkState = NetworkState.STARTING
    exit_code: Optional[int] = None
    stop_requested: bool = False
    ready: asyncio.Event = field(default_factory=asyncio.Event)
    exited: asyncio.Event = field(default_factory=asyncio.Event)
    supervisor: Optional[asyncio.Task] = None

    @property
    def pid(self) -> int:
        return self.process.pid


class NetworkManager:
    """Starts, stops and tracks one network process per project path."""

    def __init__(
        self,
        toolchain: ToolchainConfig,
        network: NetworkConfig,
        probe: Optional[EnvironmentProbe] = None,
        commands: Optional[ToolchainCommands] = None,
    ) -> None:
        self.network = network
        self.commands = commands or ToolchainCommands(toolchain, network)
        self.probe = probe or EnvironmentProbe(toolchain, network, commands=self.commands)
        self._records: dict[str, ManagedProcess] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._ready_pattern = re.compile(network.ready_pattern) if network.ready_pattern else None

    @staticmethod
    def _key(project_path: str) -> str:
        return str(Path(project_path).expanduser().resolve())

    def _lock(self, key: str) -> asyncio.Lock:
        return self._locks.setdefault(key, asyncio.Lock())

    # -- reads ---------------------------------------------------------

    def state(self, project_path: str) -> Optional[NetworkState]:
        """State of the tracked record, ``None`` when nothing is tracked."""
        record = self._records.get(self._key(project_path))
        return record.state if record else None

    def status(self, project_path: str) -> NetworkState:
        return self.state(project_path) or NetworkState.STOPPED

    def summary(self, project_path: str) -> NetworkSummary:
        key = self._key(project_path)
        record = self._records.get(key)
        if record is None:
            return self._stopped(key)
        return self._summary(record)

    def summaries(self) -> list[NetworkSummary]:
        return [self._summary(record) for record in self._records.values()]

    def logs(self, project_path: str, limit: Optional[int] = None) -> list[str]:
        record = self._records.get(self._key(project_path))
        return record.buffer.lines(limit) if record else []

    def tail(self, project_path: str, cursor: int) -> tuple[list[str], int]:
        """Lines appended after ``cursor``; used to follow output."""
        record = self._records.get(self._key(project_path))
        if record is None:
            return [], cursor
        return record.buffer.since(cursor)

    def _summary(self, record: ManagedProcess) -> NetworkSummary:
        return NetworkSummary(
            project_path=record.project_path,
            state=record.state,
            pid=record.pid,
            started_at=record.started_at,
            exit_code=record.exit_code,
            endpoint=self.network.endpoint,
        )

    def _stopped(self, key: str, exit_code: Optional[int] = None) -> NetworkSummary:
        return NetworkSummary(
            project_path=key,
            state=NetworkState.STOPPED,
            exit_code=exit_code,
            endpoint=self.network.endpoint,
        )

    # -- start ---------------------------------------------------------

    async def start(self, project_path: str) -> NetworkSummary:
        key = self._key(project_path)
        async with self._lock(key):
            record = self._records.get(key)
            if record is not None and record.state in LIVE_STATES:
                log.info("network already tracked", {"project": key, "pid": record.pid})
                return self._summary(record)
            if record is not None:
                self._discard(record)

            for other, existing in self._records.items():
                if existing.state in LIVE_STATES:
                    raise AlreadyRunningError(
                        f"a network is already running for {other}",
                        {"project_path": other, "endpoint": self.network.endpoint},
                    )

            if not Path(key).is_dir():
                raise ProjectNotFoundError(f"project directory does not exist: {key}")

            endpoint = self.network.endpoint
            if (await self.probe.probe_network(endpoint)).reachable:
                raise SpawnFailedError(
                    f"{endpoint} is already in use by a process this application does not manage",
                    {"endpoint": endpoint},
                )

            record = await self._spawn(key)
            self._records[key] = record
            try:
                await self._await_ready(record)
            except asyncio.CancelledError:
                record.stop_requested = True
                await self._terminate(record)
                self._discard(record)
                raise
            return self._summary(record)

    async def _spawn(self, key: str) -> ManagedProcess:
        invocation = self.commands.node(key)
        log.info("starting network", {"project": key, "argv": invocation.argv})
        try:
            process = await asyncio.create_subprocess_exec(
                *invocation.argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=key,
                limit=OUTPUT_LIMIT,
                **spawn_options(),
            )
        except FileNotFoundError as e:
            raise NotInstalledError(
                f"toolchain program not found: {invocation.program}",
                {"program": invocation.program},
            ) from e
        except OSError as e:
            raise SpawnFailedError(f"failed to start network: {e}", {"argv": invocation.argv}) from e

        record = ManagedProcess(
            project_path=key,
            process=process,
            started_at=datetime.now(timezone.utc),
            buffer=OutputBuffer(self.network.buffer_lines),
        )
        record.supervisor = asyncio.create_task(self._supervise(record), name=f"network-supervisor:{process.pid}")
        return record

    async def _await_ready(self, record: ManagedProcess) -> None:
        """Wait for the first of: ready output, reachable endpoint, exit, grace."""
        poll = asyncio.ensure_future(self._poll_endpoint())
        waiters = {
            asyncio.ensure_future(record.ready.wait()),
            asyncio.ensure_future(record.exited.wait()),
            poll,
        }
        try:
            await asyncio.wait(waiters, timeout=self.network.ready_grace, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for waiter in waiters:
                waiter.cancel()

        if record.ready.is_set():
            log.info("network ready", {"project": record.project_path, "pid": record.pid})
            return
        if record.exited.is_set():
            self._discard(record)
            tail = record.buffer.lines(FAILURE_TAIL)
            log.error(
                "network exited during startup",
                {"project": record.project_path, "exit_code": record.exit_code},
            )
            raise SpawnFailedError(
                f"network exited during startup with code {record.exit_code}",
                {"exit_code": record.exit_code, "output": tail},
            )
        if poll.done() and not poll.cancelled():
            log.info("network endpoint reachable", {"project": record.project_path, "pid": record.pid})
        else:
            log.warn(
                "network silent after grace period, assuming running",
                {"project": record.project_path, "grace": self.network.ready_grace},
            )
        self._mark_ready(record)

    async def _poll_endpoint(self) -> None:
        while not (await self.probe.probe_network()).reachable:
            await asyncio.sleep(POLL_INTERVAL)

    def _mark_ready(self, record: ManagedProcess) -> None:
        if record.state is NetworkState.STARTING:
            record.state = NetworkState.RUNNING
        record.ready.set()

    def _is_ready_line(self, line: str) -> bool:
        if self._ready_pattern is not None:
            return self._ready_pattern.search(line) is not None
        return bool(line.strip())

    # -- supervision ---------------------------------------------------

    async def _supervise(self, record: ManagedProcess) -> None:
        process = record.process
        drains = asyncio.gather(
            self._drain(record, process.stdout, prefix="", signals_ready=True),
            self._drain(record, process.stderr, prefix="[stderr] ", signals_ready=False),
        )
        try:
            code = await wait_exit(process)
            record.exit_code = code
            if record.stop_requested:
                await drains
            else:
                # The node may be a grandchild (npx) that outlived the leader.
                signal_tree(process, force=True)
                try:
                    await asyncio.wait_for(drains, timeout=SUPERVISOR_TIMEOUT)
                except asyncio.TimeoutError:
                    log.warn("network output did not close", {"project": record.project_path})
        finally:
            drains.cancel()
        record.exited.set()

        if record.stop_requested or not record.ready.is_set():
            return
        if code == 0:
            log.info("network exited", {"project": record.project_path, "pid": record.pid})
            self._discard(record)
            return
        record.state = NetworkState.CRASHED
        record.buffer.append(f"[network exited with code {code}]")
        log.error("network crashed", {"project": record.project_path, "pid": record.pid, "exit_code": code})

    async def _drain(
        self,
        record: ManagedProcess,
        stream: Optional[asyncio.StreamReader],
        *,
        prefix: str,
        signals_ready: bool,
    ) -> None:
        if stream is None:
            return
        while True:
            try:
                raw = await stream.readline()
            except ValueError:
                record.buffer.append(f"{prefix}[line exceeded {OUTPUT_LIMIT} bytes, dropped]")
                continue
            if not raw:
                return
            line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            record.buffer.append(prefix + line)
            if signals_ready and record.state is NetworkState.STARTING and self._is_ready_line(line):
                self._mark_ready(record)

    # -- stop ----------------------------------------------------------

    async def stop(self, project_path: str) -> NetworkSummary:
        key = self._key(project_path)
        async with self._lock(key):
            record = self._records.get(key)
            if record is None:
                return self._stopped(key)
            if record.state is NetworkState.CRASHED or record.exited.is_set():
                self._discard(record)
                return self._stopped(key, record.exit_code)

            record.state = NetworkState.STOPPING
            record.stop_requested = True
            await self._terminate(record)
            self._discard(record)
            log.info("network stopped", {"project": key, "pid": record.pid, "exit_code": record.exit_code})
            return self._stopped(key, record.exit_code)

    async def _terminate(self, record: ManagedProcess) -> None:
        """SIGTERM the group, SIGKILL it after ``stop_timeout``.

        Done means the supervisor finished: the leader exited and every
        process holding its output pipes is gone.
        """
        process = record.process
        signal_tree(process)
        if not await self._settled(record, self.network.stop_timeout):
            log.warn("network ignored SIGTERM, killing", {"project": record.project_path, "pid": record.pid})
            signal_tree(process, force=True)
            if not await self._settled(record, SUPERVISOR_TIMEOUT):
                log.warn("network output did not close", {"project": record.project_path})
                if record.supervisor is not None:
                    record.supervisor.cancel()
        record.exit_code = process.returncode

    @staticmethod
    async def _settled(record: ManagedProcess, timeout: float) -> bool:
        if record.supervisor is None:
            return record.process.returncode is not None
        done, _ = await asyncio.wait({record.supervisor}, timeout=timeout)
        return bool(done)

    def _discard(self, record: ManagedProcess) -> None:
        if self._records.get(record.project_path) is record:
            del self._records[record.project_path]

    async def shutdown(self) -> None:
        """Stop every tracked network."""
        for summary in self.summaries():
            await self.stop(summary.project_path)
