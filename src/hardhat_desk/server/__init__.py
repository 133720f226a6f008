"""HTTP transport for the command bridge."""

from .app import create_app
from .server import Server, ServerInfo

__all__ = ["Server", "ServerInfo", "create_app"]
