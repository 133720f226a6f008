"""Request, response and parameter models for the command bridge."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.errors import ErrorKind


class BridgeRequest(BaseModel):
    command: str
    project_path: Optional[str] = None
    params: dict[str, Any] = Field(default_factory=dict)


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


class Envelope(BaseModel):
    """``{ok: true, data}`` or ``{ok: false, error_kind, message, details?}``."""
    ok: bool
    data: Any = None
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None
    details: Optional[dict[str, Any]] = None

    @classmethod
    def success(cls, data: Any) -> "Envelope":
        return cls(ok=True, data=_jsonable(data))

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ) -> "Envelope":
        return cls(ok=False, error_kind=kind, message=message, details=details)

    def payload(self) -> dict[str, Any]:
        """Wire form; only the keys belonging to the variant."""
        if self.ok:
            return {"ok": True, "data": self.data}
        out: dict[str, Any] = {
            "ok": False,
            "error_kind": self.error_kind.value if self.error_kind else ErrorKind.INTERNAL.value,
            "message": self.message or "",
        }
        if self.details:
            out["details"] = self.details
        return out


class Params(BaseModel):
    model_config = ConfigDict(extra="forbid")


class NoParams(Params):
    pass


class DeployParams(Params):
    script: Optional[str] = Field(None, min_length=1)


class ConsoleParams(Params):
    source: str = Field(min_length=1)


class TaskParams(Params):
    task: str = Field(pattern=r"^[A-Za-z0-9][\w:.-]*$")
    arguments: list[str] = Field(default_factory=list)


class VerifyParams(Params):
    address: str = Field(min_length=1)
    contract: Optional[str] = Field(None, min_length=1)
    constructor_args: list[str] = Field(default_factory=list)


class LogsParams(Params):
    limit: Optional[int] = Field(None, ge=1)
