"""Command bridge: the request/response surface."""

from .bridge import COMMANDS, Command, CommandBridge
from .schemas import BridgeRequest, Envelope

__all__ = ["COMMANDS", "BridgeRequest", "Command", "CommandBridge", "Envelope"]
