"""Utility modules."""

from .error import describe_error, format_unknown_error
from .log import Log

__all__ = ["Log", "describe_error", "format_unknown_error"]
