"""Toolchain detection and command construction."""

from .commands import ToolchainCommands
from .probe import (
    EnvironmentProbe,
    InstallationProbe,
    NetworkProbe,
    ProjectProbe,
    RpcProbe,
    ToolchainStatus,
)

__all__ = [
    "EnvironmentProbe",
    "InstallationProbe",
    "NetworkProbe",
    "ProjectProbe",
    "RpcProbe",
    "ToolchainCommands",
    "ToolchainStatus",
]
