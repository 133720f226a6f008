"""Per-user directories for Hardhat Desk.

Follows the platform conventions through platformdirs. Directories are
created on demand by the components that write to them.
"""

import os
from pathlib import Path

from platformdirs import user_config_dir, user_data_dir, user_state_dir

APP_NAME = "hardhat-desk"


class GlobalPath:
    """Global path management for Hardhat Desk directories."""

    @classmethod
    def data(cls) -> str:
        """Application data directory, overridable for tests."""
        return os.environ.get("HARDHAT_DESK_DATA_DIR") or user_data_dir(APP_NAME)

    @classmethod
    def log(cls) -> str:
        """Log file directory."""
        return str(Path(cls.data()) / "log")

    @classmethod
    def config(cls) -> str:
        """Configuration directory."""
        return user_config_dir(APP_NAME)

    @classmethod
    def state(cls) -> str:
        """State directory (active project, recent projects)."""
        return user_state_dir(APP_NAME)

    @classmethod
    def initialize(cls) -> None:
        """Create every directory Hardhat Desk writes to."""
        for path in (cls.data(), cls.config(), cls.state(), cls.log()):
            Path(path).mkdir(parents=True, exist_ok=True)
