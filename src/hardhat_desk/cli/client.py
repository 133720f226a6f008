"""Send bridge requests to a running ``hardhat-desk serve``."""

from __future__ import annotations

import httpx

from ..bridge import BridgeRequest, Envelope
from ..core.errors import ErrorKind
from ..util.log import Log

log = Log.create({"service": "cli.client"})

REMOTE_TIMEOUT = 15 * 60.0


async def remote(url: str, request: BridgeRequest) -> Envelope:
    endpoint = f"{url.rstrip('/')}/v1/commands/{request.command}"
    body = {"project_path": request.project_path, "params": request.params}
    try:
        async with httpx.AsyncClient(timeout=REMOTE_TIMEOUT) as client:
            response = await client.post(endpoint, json=body)
        return Envelope.model_validate(response.json())
    except httpx.HTTPError as e:
        log.warn("server request failed", {"url": endpoint, "error": str(e)})
        return Envelope.failure(ErrorKind.IO_FAILURE, f"cannot reach server at {url}: {e}")
    except ValueError as e:
        return Envelope.failure(ErrorKind.INTERNAL, f"unexpected response from {endpoint}: {e}")
