"""Configuration schema - Pydantic models for hardhat-desk config files."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ToolchainConfig(BaseModel):
    """How the toolchain is invoked."""
    command: List[str] = Field(default_factory=lambda: ["npx", "hardhat"])
    install_command: List[str] = Field(
        default_factory=lambda: ["npm", "install", "-g", "hardhat"],
        alias="installCommand",
    )
    node_program: str = Field("node", alias="nodeProgram")
    init_args: List[str] = Field(default_factory=lambda: ["--yes"], alias="initArgs")
    deploy_script: str = Field("scripts/deploy.js", alias="deployScript")
    version_timeout: float = Field(10.0, gt=0, alias="versionTimeout")
    command_timeout: float = Field(300.0, gt=0, alias="commandTimeout")
    install_timeout: float = Field(600.0, gt=0, alias="installTimeout")

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @field_validator("command", "install_command")
    @classmethod
    def _non_empty(cls, value: List[str]) -> List[str]:
        if not value or not value[0].strip():
            raise ValueError("command must name a program")
        return value


class NetworkConfig(BaseModel):
    """Local network (``hardhat node``) settings."""
    host: str = "127.0.0.1"
    port: int = Field(8545, ge=1, le=65535)
    name: str = "localhost"
    probe_timeout: float = Field(2.0, gt=0, alias="probeTimeout")
    ready_grace: float = Field(10.0, gt=0, alias="readyGrace")
    ready_pattern: Optional[str] = Field(None, alias="readyPattern")
    stop_timeout: float = Field(5.0, gt=0, alias="stopTimeout")
    buffer_lines: int = Field(2000, ge=1, alias="bufferLines")

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @property
    def endpoint(self) -> str:
        return f"http://{self.host}:{self.port}"


class ServerConfig(BaseModel):
    """HTTP bridge configuration."""
    host: str = "127.0.0.1"
    port: int = Field(4545, ge=1, le=65535)

    model_config = ConfigDict(extra="forbid")


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: Optional[str] = None
    format: Optional[Literal["kv", "json", "pretty"]] = None
    console: Optional[bool] = None
    file: Optional[bool] = None
    access_log: Optional[bool] = Field(None, alias="accessLog")
    dev_file: Optional[bool] = Field(None, alias="devFile")

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class Config(BaseModel):
    """Main configuration schema."""
    schema_: Optional[str] = Field(None, alias="$schema")
    log_level: Optional[str] = Field(None, alias="logLevel")
    logging: Optional[LoggingConfig] = None

    toolchain: ToolchainConfig = Field(default_factory=ToolchainConfig)
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    model_config = ConfigDict(populate_by_name=True)
