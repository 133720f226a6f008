from collections.abc import Iterator
from pathlib import Path

import pytest

from hardhat_desk.core.config import CONFIG_ENV, ConfigManager
from hardhat_desk.core.global_paths import GlobalPath
from hardhat_desk.util.log import Log


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def isolated_paths(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    root = tmp_path_factory.mktemp("desk-home")
    monkeypatch.setenv("HARDHAT_DESK_DATA_DIR", str(root / "data"))
    monkeypatch.setattr(GlobalPath, "config", classmethod(lambda cls: str(root / "config")))
    monkeypatch.setattr(GlobalPath, "state", classmethod(lambda cls: str(root / "state")))
    monkeypatch.delenv(CONFIG_ENV, raising=False)
    monkeypatch.delenv("HARDHAT_DESK_SERVER", raising=False)
    ConfigManager.reset()
    try:
        yield root
    finally:
        ConfigManager.reset()
        monkeypatch.undo()
        Log.configure(console=False, file=False)
