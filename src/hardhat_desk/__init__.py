"""Hardhat Desk - orchestration backend for a local Hardhat workflow.

Detects the toolchain, tracks the local network process per project and runs
one-shot toolchain commands behind a single request/response bridge.
"""

__version__ = "0.1.0"


def __getattr__(name: str):
    """Lazy import of the public entry points."""
    if name in ("CommandBridge", "BridgeRequest", "Envelope"):
        from . import bridge
        return getattr(bridge, name)
    if name in ("Config", "ConfigManager"):
        from .core import config
        return getattr(config, name)
    if name == "Log":
        from .util.log import Log
        return Log
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "__version__",
    "BridgeRequest",
    "CommandBridge",
    "Config",
    "ConfigManager",
    "Envelope",
    "Log",
]
