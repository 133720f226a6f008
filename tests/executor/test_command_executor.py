from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

from hardhat_desk.core.errors import ErrorKind
from hardhat_desk.executor import CommandExecutor, CommandInvocation
from tests.helpers import FAKE_HARDHAT, wrapped_toolchain


def _hardhat(name: str, *arguments: str, project_path: str | None = None, **kw: object) -> CommandInvocation:
    return CommandInvocation(
        command_name=name,
        program=sys.executable,
        arguments=[str(FAKE_HARDHAT), *arguments],
        project_path=project_path,
        **kw,  # type: ignore[arg-type]
    )


@pytest.mark.anyio
async def test_successful_command_captures_stdout(tmp_path: Path) -> None:
    result = await CommandExecutor().execute(_hardhat("run", "run", "scripts/deploy.js", project_path=str(tmp_path)))

    assert result.success is True
    assert result.exit_code == 0
    assert result.error_kind is None
    payload = json.loads(result.stdout)
    assert payload["argv"] == ["scripts/deploy.js"]
    assert Path(payload["cwd"]).resolve() == tmp_path.resolve()
    assert result.duration_ms >= 0


@pytest.mark.anyio
async def test_non_zero_exit_is_data_not_error(tmp_path: Path) -> None:
    result = await CommandExecutor().execute(_hardhat("test", "test", project_path=str(tmp_path)))

    assert result.success is False
    assert result.exit_code == 2
    assert result.error_kind is ErrorKind.NON_ZERO_EXIT
    assert "1 passing" in result.stdout
    assert "1 failing" in result.stderr
    assert "1 failing" in result.output


@pytest.mark.anyio
async def test_timeout_kills_the_command() -> None:
    result = await CommandExecutor().execute(_hardhat("sleep", "sleep", "30", timeout=2.0))

    assert result.success is False
    assert result.error_kind is ErrorKind.TIMEOUT
    assert "timeout" in result.stderr
    assert "sleeping 30s" in result.stdout
    assert result.duration_ms < 10_000


@pytest.mark.anyio
async def test_timeout_kills_grandchildren_and_keeps_output() -> None:
    program, *prefix = wrapped_toolchain()
    invocation = CommandInvocation(
        command_name="sleep",
        program=program,
        arguments=[*prefix, "sleep", "30"],
        timeout=1.0,
    )

    result = await CommandExecutor().execute(invocation)

    assert result.error_kind is ErrorKind.TIMEOUT
    assert "sleeping 30s" in result.stdout
    assert result.duration_ms < 10_000


@pytest.mark.anyio
async def test_missing_program_is_not_installed() -> None:
    invocation = CommandInvocation(command_name="version", program="no-such-hardhat-binary", arguments=["--version"])

    result = await CommandExecutor().execute(invocation)

    assert result.success is False
    assert result.error_kind is ErrorKind.NOT_INSTALLED
    assert result.exit_code is None


@pytest.mark.anyio
async def test_missing_working_directory_is_project_not_found(tmp_path: Path) -> None:
    result = await CommandExecutor().execute(_hardhat("compile", "compile", project_path=str(tmp_path / "gone")))

    assert result.success is False
    assert result.error_kind is ErrorKind.PROJECT_NOT_FOUND


@pytest.mark.anyio
async def test_extra_environment_reaches_the_child() -> None:
    invocation = CommandInvocation(
        command_name="console",
        program=sys.executable,
        arguments=["-c", "import os; print(os.environ['HARDHAT_NETWORK'])"],
        env={"HARDHAT_NETWORK": "localhost"},
    )

    result = await CommandExecutor().execute(invocation)

    assert result.success is True
    assert result.stdout.strip() == "localhost"


def test_invocations_are_frozen() -> None:
    invocation = _hardhat("compile", "compile")

    with pytest.raises(ValidationError):
        invocation.program = "other"  # type: ignore[misc]
