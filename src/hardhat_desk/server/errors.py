"""Error handlers for the FastAPI transport layer.

Failures outside the bridge still answer with an error envelope so clients
parse one shape.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..bridge import Envelope
from ..core.errors import ErrorKind
from ..util.error import format_unknown_error
from ..util.log import Log

log = Log.create({"service": "server.errors"})


def _error_response(
    *,
    status_code: int,
    kind: ErrorKind,
    message: str,
    details: dict[str, object] | None = None,
    request_id: str | None = None,
) -> JSONResponse:
    payload = Envelope.failure(kind, message, details).payload()
    response = JSONResponse(jsonable_encoder(payload), status_code=status_code)
    if request_id:
        response.headers["X-Request-ID"] = request_id
    return response


def register_error_handlers(app: FastAPI) -> None:
    def request_id(request: Request) -> str | None:
        rid = getattr(request.state, "request_id", None)
        if isinstance(rid, str) and rid:
            return rid
        return None

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        return _error_response(
            status_code=422,
            kind=ErrorKind.INVALID_REQUEST,
            message="Request validation failed",
            details={"errors": jsonable_encoder(exc.errors())},
            request_id=request_id(request),
        )

    @app.exception_handler(Exception)
    async def exception_handler(request: Request, exc: Exception) -> JSONResponse:
        log.error(
            "route failed",
            {
                "request_id": request_id(request),
                "method": request.method,
                "path": request.url.path,
                "error_type": type(exc).__name__,
                "error": str(exc),
                "traceback": format_unknown_error(exc),
            },
        )
        return _error_response(
            status_code=500,
            kind=ErrorKind.INTERNAL,
            message="Internal server error",
            details={"error": str(exc)},
            request_id=request_id(request),
        )
