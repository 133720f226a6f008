"""Error taxonomy shared by every component.

Probes never raise; a non-zero exit of a one-shot command is data, not an
exception. Everything else that can go wrong while serving a request is a
``DeskError`` carrying an ``ErrorKind``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    NOT_INSTALLED = "not_installed"
    PROJECT_NOT_FOUND = "project_not_found"
    ALREADY_RUNNING = "already_running"
    SPAWN_FAILED = "spawn_failed"
    TIMEOUT = "timeout"
    NON_ZERO_EXIT = "non_zero_exit"
    IO_FAILURE = "io_failure"
    INVALID_REQUEST = "invalid_request"
    INTERNAL = "internal"


class DeskError(Exception):
    """Base class for errors that map onto an error envelope."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotInstalledError(DeskError):
    kind = ErrorKind.NOT_INSTALLED


class ProjectNotFoundError(DeskError):
    kind = ErrorKind.PROJECT_NOT_FOUND


class AlreadyRunningError(DeskError):
    kind = ErrorKind.ALREADY_RUNNING


class SpawnFailedError(DeskError):
    kind = ErrorKind.SPAWN_FAILED


class CommandTimeoutError(DeskError):
    kind = ErrorKind.TIMEOUT


class IoFailureError(DeskError):
    kind = ErrorKind.IO_FAILURE


class InvalidRequestError(DeskError):
    kind = ErrorKind.INVALID_REQUEST


_BY_KIND: dict[ErrorKind, type[DeskError]] = {
    cls.kind: cls
    for cls in (
        NotInstalledError,
        ProjectNotFoundError,
        AlreadyRunningError,
        SpawnFailedError,
        CommandTimeoutError,
        IoFailureError,
        InvalidRequestError,
    )
}


def error_for(kind: ErrorKind, message: str, details: dict[str, Any] | None = None) -> DeskError:
    """Build the exception matching ``kind``."""
    cls = _BY_KIND.get(kind, DeskError)
    return cls(message, details)
