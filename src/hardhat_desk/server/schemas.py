"""Pydantic schemas for the FastAPI transport layer."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.errors import ErrorKind


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str


class CommandInfo(BaseModel):
    name: str
    project: str
    summary: str


class CommandBody(BaseModel):
    project_path: Optional[str] = None
    params: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


class EnvelopeResponse(BaseModel):
    ok: bool
    data: Any = None
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None
    details: Optional[dict[str, Any]] = None
