"""HTTP server for the command bridge.

Example:
    from hardhat_desk.server import Server

    info = await Server.start(bridge, port=4545)
    print(f"Server running at {info.url}")
    await Server.stop()
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

import uvicorn
from fastapi import FastAPI

from ..bridge import CommandBridge
from ..util.log import Log
from .app import create_app

log = Log.create({"service": "server"})

DEFAULT_PORT = 4545


@dataclass
class ServerInfo:
    """Information about a running server."""
    host: str
    port: int

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"


class Server:
    """Runs the FastAPI application under uvicorn in the current event loop."""

    _app: Optional[FastAPI] = None
    _server: Optional[uvicorn.Server] = None
    _task: Optional[asyncio.Task] = None
    _info: Optional[ServerInfo] = None

    @classmethod
    async def start(
        cls,
        bridge: CommandBridge,
        host: str = "127.0.0.1",
        port: int = DEFAULT_PORT,
        *,
        access_log: bool = True,
    ) -> ServerInfo:
        cls._app = create_app(bridge, manage_lifecycle=True, access_log=access_log)
        config = uvicorn.Config(
            cls._app,
            host=host,
            port=port,
            log_level="warning",
            access_log=False,
        )
        cls._server = uvicorn.Server(config)
        cls._info = ServerInfo(host=host, port=port)

        log.info("starting server", {"host": host, "port": port})
        cls._task = asyncio.create_task(cls._server.serve())

        while not cls._server.started:
            if cls._task.done():
                error = cls._task.exception()
                cls._server = None
                cls._info = None
                raise RuntimeError(f"server failed to start on {host}:{port}") from error
            await asyncio.sleep(0.1)

        log.info("server started", {"url": cls._info.url})
        return cls._info

    @classmethod
    async def stop(cls) -> None:
        """Stop the server and wait for its lifespan shutdown to finish."""
        if cls._server:
            log.info("stopping server")
            cls._server.should_exit = True
            if cls._task is not None:
                await cls._task
            cls._server = None
            cls._task = None
            cls._app = None
            cls._info = None
            log.info("server stopped")

    @classmethod
    def info(cls) -> Optional[ServerInfo]:
        return cls._info
