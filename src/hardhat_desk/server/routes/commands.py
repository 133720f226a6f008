"""Bridge command transport routes."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from ...bridge import BridgeRequest, CommandBridge
from ..deps import resolve_bridge
from ..schemas import CommandBody, CommandInfo, EnvelopeResponse

router = APIRouter(prefix="/v1/commands", tags=["commands"])


@router.get("", response_model=list[CommandInfo])
async def list_commands() -> list[CommandInfo]:
    return [CommandInfo.model_validate(item) for item in CommandBridge.commands_info()]


@router.post("/{command}", response_model=EnvelopeResponse)
async def run_command(
    command: str,
    body: Optional[CommandBody] = None,
    bridge: CommandBridge = Depends(resolve_bridge),
) -> JSONResponse:
    body = body or CommandBody()
    envelope = await bridge.handle(
        BridgeRequest(command=command, project_path=body.project_path, params=body.params)
    )
    return JSONResponse(jsonable_encoder(envelope.payload()))
