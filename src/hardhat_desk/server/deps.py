"""FastAPI dependencies shared across transport handlers."""

from __future__ import annotations

from fastapi import Request

from ..bridge import CommandBridge


def resolve_bridge(request: Request) -> CommandBridge:
    bridge = getattr(request.app.state, "bridge", None)
    if not isinstance(bridge, CommandBridge):
        raise RuntimeError("Command bridge is not initialized")
    return bridge
