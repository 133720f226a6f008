"""One-shot command execution.

Every toolchain invocation that runs to completion (install, init, compile,
test, deploy, tasks, console evaluation) goes through ``CommandExecutor``.
Invocations are independent of each other and of the long-running network
process, even when they run the same program against the same project.
"""

from __future__ import annotations

import asyncio
import os
import time
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.errors import ErrorKind
from ..util.log import Log
from ..util.process import signal_tree, spawn_options, wait_exit

log = Log.create({"service": "executor"})

DEFAULT_TIMEOUT = 5 * 60.0
# How long to wait for output once the command has exited or been killed.
DRAIN_TIMEOUT = 5.0
READ_CHUNK = 64 * 1024


class CommandInvocation(BaseModel):
    """A single one-shot subprocess request."""
    command_name: str
    program: str
    arguments: list[str] = Field(default_factory=list)
    project_path: Optional[str] = None
    env: dict[str, str] = Field(default_factory=dict)
    timeout: Optional[float] = Field(None, gt=0)

    model_config = ConfigDict(frozen=True)

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.arguments]


class CommandResult(BaseModel):
    """Outcome of a one-shot invocation.

    ``error_kind`` is ``non_zero_exit`` for an ordinary failing command and
    one of ``not_installed``, ``project_not_found``, ``spawn_failed`` or
    ``timeout`` when the invocation itself could not complete.
    """
    success: bool
    stdout: str = ""
    stderr: str = ""
    exit_code: Optional[int] = None
    error_kind: Optional[ErrorKind] = None
    duration_ms: int = 0

    model_config = ConfigDict(frozen=True)

    @property
    def output(self) -> str:
        """Combined stdout and stderr."""
        if self.stdout and self.stderr:
            return f"{self.stdout.rstrip()}\n{self.stderr}"
        return self.stdout or self.stderr


def _decode(data: bytes | None) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


class CommandExecutor:
    """Runs ``CommandInvocation``s with bounded duration and captured output."""

    def __init__(self, default_timeout: float = DEFAULT_TIMEOUT) -> None:
        self.default_timeout = default_timeout

    async def execute(self, invocation: CommandInvocation) -> CommandResult:
        timeout = invocation.timeout or self.default_timeout
        began = time.perf_counter()

        def elapsed() -> int:
            return int((time.perf_counter() - began) * 1000)

        cwd = invocation.project_path
        if cwd is not None and not Path(cwd).is_dir():
            log.warn("working directory missing", {"command": invocation.command_name, "cwd": cwd})
            return CommandResult(
                success=False,
                stderr=f"working directory does not exist: {cwd}",
                error_kind=ErrorKind.PROJECT_NOT_FOUND,
            )

        env = {**os.environ, **invocation.env} if invocation.env else None
        log.info(
            "executing command",
            {"command": invocation.command_name, "argv": invocation.argv, "cwd": cwd, "timeout": timeout},
        )

        try:
            proc = await asyncio.create_subprocess_exec(
                *invocation.argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                env=env,
                **spawn_options(),
            )
        except FileNotFoundError as e:
            log.warn("program not found", {"command": invocation.command_name, "program": invocation.program})
            return CommandResult(
                success=False,
                stderr=f"program not found: {invocation.program} ({e.strerror or e})",
                error_kind=ErrorKind.NOT_INSTALLED,
                duration_ms=elapsed(),
            )
        except OSError as e:
            log.error("command spawn failed", {"command": invocation.command_name, "error": e})
            return CommandResult(
                success=False,
                stderr=f"failed to start {invocation.program}: {e}",
                error_kind=ErrorKind.SPAWN_FAILED,
                duration_ms=elapsed(),
            )

        stdout: list[bytes] = []
        stderr: list[bytes] = []
        readers = asyncio.gather(_read(proc.stdout, stdout), _read(proc.stderr, stderr))
        try:
            code = await asyncio.wait_for(wait_exit(proc), timeout=timeout)
        except asyncio.TimeoutError:
            signal_tree(proc, force=True)
            await _drain(proc, readers, invocation.command_name)
            log.warn(
                "command timed out",
                {"command": invocation.command_name, "pid": proc.pid, "timeout": timeout},
            )
            return CommandResult(
                success=False,
                stdout=_decode(b"".join(stdout)),
                stderr=_decode(b"".join(stderr)) + f"\ncommand terminated after exceeding timeout of {timeout:g}s",
                exit_code=proc.returncode,
                error_kind=ErrorKind.TIMEOUT,
                duration_ms=elapsed(),
            )
        except asyncio.CancelledError:
            signal_tree(proc, force=True)
            readers.cancel()
            raise

        await _drain(proc, readers, invocation.command_name)
        log.info(
            "command finished",
            {"command": invocation.command_name, "exit_code": code, "duration": elapsed()},
        )
        return CommandResult(
            success=code == 0,
            stdout=_decode(b"".join(stdout)),
            stderr=_decode(b"".join(stderr)),
            exit_code=code,
            error_kind=None if code == 0 else ErrorKind.NON_ZERO_EXIT,
            duration_ms=elapsed(),
        )


async def _read(stream: Optional[asyncio.StreamReader], chunks: list[bytes]) -> None:
    if stream is None:
        return
    while True:
        chunk = await stream.read(READ_CHUNK)
        if not chunk:
            return
        chunks.append(chunk)


async def _drain(proc: asyncio.subprocess.Process, readers: asyncio.Future, command: str) -> None:
    """Collect remaining output; kill leftover grandchildren holding the pipes."""
    try:
        await asyncio.wait_for(asyncio.shield(readers), timeout=DRAIN_TIMEOUT)
    except asyncio.TimeoutError:
        log.warn("command output did not close, killing process group", {"command": command, "pid": proc.pid})
        signal_tree(proc, force=True)
        try:
            await asyncio.wait_for(readers, timeout=DRAIN_TIMEOUT)
        except asyncio.TimeoutError:
            log.warn("dropping unread command output", {"command": command, "pid": proc.pid})
    if proc.returncode is None:
        try:
            await asyncio.wait_for(wait_exit(proc), timeout=DRAIN_TIMEOUT)
        except asyncio.TimeoutError:
            log.warn("command did not exit after kill", {"command": command, "pid": proc.pid})
