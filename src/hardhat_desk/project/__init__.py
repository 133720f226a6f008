"""Project selection."""

from .registry import ProjectRegistry, ProjectSelection, normalize

__all__ = ["ProjectRegistry", "ProjectSelection", "normalize"]
