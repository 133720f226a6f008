"""FastAPI application factory."""

from __future__ import annotations

import secrets
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..bridge import CommandBridge
from ..util.log import Log
from .errors import register_error_handlers
from .routes import commands, system
from .schemas import EnvelopeResponse

access = Log.create({"service": "server.access"})


def create_app(
    bridge: CommandBridge,
    *,
    manage_lifecycle: bool = False,
    access_log: bool = True,
) -> FastAPI:
    """Create a FastAPI application serving ``bridge``.

    With ``manage_lifecycle`` the managed networks are stopped when the
    application shuts down.
    """

    @asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            yield
        finally:
            await bridge.shutdown()

    app = FastAPI(
        title="Hardhat Desk API",
        version=__version__,
        openapi_version="3.1.0",
        lifespan=_lifespan if manage_lifecycle else None,
        responses={
            422: {"model": EnvelopeResponse},
            500: {"model": EnvelopeResponse},
        },
    )
    app.state.bridge = bridge

    @app.middleware("http")
    async def _access_log(request: Request, call_next):
        rid = request.headers.get("x-request-id") or secrets.token_hex(8)
        request.state.request_id = rid
        begin = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            if access_log:
                access.error(
                    "request failed",
                    {
                        "request_id": rid,
                        "method": request.method,
                        "path": request.url.path,
                        "duration_ms": int((time.perf_counter() - begin) * 1000),
                        "error": str(e),
                    },
                )
            raise
        response.headers["X-Request-ID"] = rid
        if not access_log:
            return response
        access.info(
            "request",
            {
                "request_id": rid,
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "client_ip": request.client.host if request.client else None,
                "duration_ms": int((time.perf_counter() - begin) * 1000),
            },
        )
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    app.include_router(system.router)
    app.include_router(commands.router)
    return app
