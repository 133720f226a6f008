"""Runtime logging bootstrap helpers."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Literal, Optional

from ..core.config import ConfigManager
from ..util.log import Log, LogFormat, LogLevel

LogMode = Literal["cli", "node", "serve"]


@dataclass(frozen=True)
class LogSettings:
    level: LogLevel
    format: LogFormat
    console: bool
    file: bool
    access_log: bool
    dev_file: bool


def _mode_console(mode: LogMode) -> bool:
    return mode == "serve"


def _mode_access(mode: LogMode) -> bool:
    return mode == "serve"


async def _resolve(
    *,
    mode: LogMode,
    level: Optional[str],
    format: Optional[str],
    access_log: Optional[bool],
    console: Optional[bool],
    file: Optional[bool],
    dev_file: Optional[bool],
) -> LogSettings:
    cfg = await ConfigManager.get()
    log = cfg.logging

    lv = LogLevel.parse(level or (log.level if log else None) or cfg.log_level)
    fm = LogFormat.parse(format or (log.format if log else None))

    def pick(explicit: Optional[bool], configured: Optional[bool], default: bool) -> bool:
        if explicit is not None:
            return explicit
        if configured is not None:
            return configured
        return default

    return LogSettings(
        level=lv,
        format=fm,
        console=pick(console, log.console if log else None, _mode_console(mode)),
        file=pick(file, log.file if log else None, True),
        access_log=pick(access_log, log.access_log if log else None, _mode_access(mode)),
        dev_file=pick(dev_file, log.dev_file if log else None, False),
    )


def bootstrap_logging(
    *,
    mode: LogMode,
    level: Optional[str] = None,
    format: Optional[str] = None,
    access_log: Optional[bool] = None,
    console: Optional[bool] = None,
    file: Optional[bool] = None,
    dev_file: Optional[bool] = None,
) -> LogSettings:
    """Resolve config and initialize the process logger."""
    settings = asyncio.run(
        _resolve(
            mode=mode,
            level=level,
            format=format,
            access_log=access_log,
            console=console,
            file=file,
            dev_file=dev_file,
        )
    )
    Log.configure(
        level=settings.level,
        format=settings.format,
        console=settings.console,
        file=settings.file,
        dev=settings.dev_file,
    )
    return settings
