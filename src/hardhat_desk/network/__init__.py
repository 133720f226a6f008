"""Local network process management."""

from .buffer import OutputBuffer
from .manager import ManagedProcess, NetworkManager, NetworkState, NetworkSummary

__all__ = [
    "ManagedProcess",
    "NetworkManager",
    "NetworkState",
    "NetworkSummary",
    "OutputBuffer",
]
