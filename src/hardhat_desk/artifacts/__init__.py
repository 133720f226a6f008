"""Artifact inventory."""

from .scanner import ArtifactInfo, scan

__all__ = ["ArtifactInfo", "scan"]
