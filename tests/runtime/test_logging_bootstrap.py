from __future__ import annotations

from hardhat_desk.core.config import Config, LoggingConfig
from hardhat_desk.runtime.logging import bootstrap_logging
from hardhat_desk.util.log import LogFormat, LogLevel


def _capture(monkeypatch, config: Config) -> dict[str, object]:  # type: ignore[no-untyped-def]
    async def fake_get(cls):
        return config

    seen: dict[str, object] = {}

    def fake_configure(cls, *, level, format, console, file, dev) -> None:
        seen.update(level=level, format=format, console=console, file=file, dev=dev)

    monkeypatch.setattr("hardhat_desk.runtime.logging.ConfigManager.get", classmethod(fake_get))
    monkeypatch.setattr("hardhat_desk.runtime.logging.Log.configure", classmethod(fake_configure))
    return seen


def test_bootstrap_logging_serve_defaults(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    seen = _capture(monkeypatch, Config())

    settings = bootstrap_logging(mode="serve")

    assert settings.console is True
    assert settings.file is True
    assert settings.access_log is True
    assert seen["console"] is True
    assert seen["level"] is LogLevel.INFO


def test_bootstrap_logging_cli_is_quiet_on_console(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    seen = _capture(monkeypatch, Config())

    settings = bootstrap_logging(mode="cli")

    assert settings.console is False
    assert settings.access_log is False
    assert seen["file"] is True


def test_bootstrap_logging_prefers_logging_config(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    seen = _capture(
        monkeypatch,
        Config(
            log_level="warn",
            logging=LoggingConfig(level="debug", format="json", console=True, file=False, dev_file=True),
        ),
    )

    settings = bootstrap_logging(mode="node")

    assert settings.level is LogLevel.DEBUG
    assert settings.format is LogFormat.JSON
    assert seen["console"] is True
    assert seen["file"] is False
    assert seen["dev"] is True


def test_bootstrap_logging_explicit_flags_win(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    _capture(monkeypatch, Config(logging=LoggingConfig(console=True)))

    settings = bootstrap_logging(mode="serve", level="error", console=False, access_log=False)

    assert settings.level is LogLevel.ERROR
    assert settings.console is False
    assert settings.access_log is False
