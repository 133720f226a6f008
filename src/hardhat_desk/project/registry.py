"""Active and recent project paths.

Stores the selected project in the state directory so the CLI and the HTTP
server agree on which project a request without a path refers to.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel

from ..core.errors import IoFailureError
from ..core.global_paths import GlobalPath
from ..util.log import Log

log = Log.create({"service": "registry"})

RECENT_LIMIT = 10


class ProjectSelection(BaseModel):
    project_path: str
    detected: bool
    config_file: Optional[str] = None


def normalize(path: str) -> str:
    return str(Path(path).expanduser().resolve())


def _normalize_recent(recent: Any) -> list[str]:
    if not isinstance(recent, list):
        return []
    return [item for item in recent if isinstance(item, str) and item.strip()]


class ProjectRegistry:
    """Resolves request paths and remembers the active project."""

    def __init__(self, state_file: Optional[Path] = None, limit: int = RECENT_LIMIT) -> None:
        self._state_file = state_file
        self.limit = limit

    @property
    def state_file(self) -> Path:
        return self._state_file or Path(GlobalPath.state()) / "projects.json"

    def _load(self) -> dict[str, Any]:
        path = self.state_file
        if not path.exists():
            return {}
        try:
            value = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            log.warn("ignoring unreadable project state", {"path": str(path), "error": str(e)})
            return {}
        return value if isinstance(value, dict) else {}

    def _save(self, data: dict[str, Any]) -> None:
        path = self.state_file
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        except OSError as e:
            raise IoFailureError(f"cannot write project state: {e.strerror or e}", {"path": str(path)}) from e

    @property
    def active(self) -> Optional[str]:
        value = self._load().get("active")
        return value if isinstance(value, str) and value.strip() else None

    def recent(self) -> list[str]:
        return _normalize_recent(self._load().get("recent"))

    def resolve(self, project_path: Optional[str]) -> Optional[str]:
        """An explicit path wins; otherwise the active project, if any."""
        if project_path is not None and project_path.strip():
            return normalize(project_path)
        return self.active

    def activate(self, project_path: str) -> str:
        path = normalize(project_path)
        data = self._load()
        data["active"] = path
        data["recent"] = [path, *(p for p in _normalize_recent(data.get("recent")) if p != path)][: self.limit]
        self._save(data)
        log.info("activated project", {"project": path})
        return path
