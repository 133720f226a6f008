"""One-shot command execution."""

from .executor import CommandExecutor, CommandInvocation, CommandResult

__all__ = ["CommandExecutor", "CommandInvocation", "CommandResult"]
