"""Source unit / build output correlation.

Every scan reads the filesystem afresh, so a listing taken right after a
compile reflects the new artifacts.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from ..core.errors import IoFailureError, ProjectNotFoundError
from ..util.log import Log

log = Log.create({"service": "artifacts"})

SOURCE_DIR = "contracts"
BUILD_DIR = "artifacts"
SOURCE_SUFFIX = ".sol"
ARTIFACT_SUFFIX = ".json"
# Compiler inputs and debug sidecars live next to the real artifacts.
SKIPPED_DIRS = frozenset({"build-info"})
SKIPPED_SUFFIXES = (".dbg.json",)


class ArtifactInfo(BaseModel):
    name: str
    source_path: str
    compiled: bool
    size_bytes: Optional[int] = None


def _walk(root: Path) -> list[Path]:
    def fail(error: OSError) -> None:
        raise IoFailureError(
            f"cannot read {error.filename or root}: {error.strerror or error}",
            {"path": str(error.filename or root)},
        )

    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=fail):
        dirnames[:] = sorted(d for d in dirnames if d not in SKIPPED_DIRS)
        found.extend(Path(dirpath) / name for name in filenames)
    return found


def _artifacts(build_root: Path) -> dict[str, list[Path]]:
    by_stem: dict[str, list[Path]] = {}
    if not build_root.is_dir():
        return by_stem
    for path in _walk(build_root):
        name = path.name
        if not name.endswith(ARTIFACT_SUFFIX) or name.endswith(SKIPPED_SUFFIXES):
            continue
        by_stem.setdefault(name[: -len(ARTIFACT_SUFFIX)], []).append(path)
    return by_stem


def scan(project_path: str) -> list[ArtifactInfo]:
    """List every source unit with its compiled flag and artifact size."""
    root = Path(project_path)
    if not root.is_dir():
        raise ProjectNotFoundError(f"project directory does not exist: {project_path}")

    source_root = root / SOURCE_DIR
    build_root = root / BUILD_DIR
    sources = (
        sorted(p for p in _walk(source_root) if p.suffix == SOURCE_SUFFIX)
        if source_root.is_dir()
        else []
    )
    artifacts = _artifacts(build_root)

    result: list[ArtifactInfo] = []
    for source in sources:
        relative = source.relative_to(root)
        candidates = artifacts.get(source.stem, [])
        # Prefer artifacts/<source path>/<Name>.json when several units share a name.
        preferred = build_root / relative / f"{source.stem}{ARTIFACT_SUFFIX}"
        match = preferred if preferred in candidates else (candidates[0] if candidates else None)
        size = None
        if match is not None:
            try:
                size = match.stat().st_size
            except OSError as e:
                raise IoFailureError(f"cannot stat {match}: {e.strerror or e}", {"path": str(match)}) from e
        result.append(
            ArtifactInfo(
                name=source.stem,
                source_path=relative.as_posix(),
                compiled=match is not None,
                size_bytes=size,
            )
        )

    result.sort(key=lambda info: info.source_path)
    log.debug("scanned artifacts", {"project": str(root), "sources": len(result)})
    return result
