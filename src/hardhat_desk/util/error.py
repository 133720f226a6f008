"""Error formatting helpers."""

import traceback
from typing import Any


def format_unknown_error(error: Any) -> str:
    """Format any error into a string, including the traceback when present."""
    if isinstance(error, BaseException):
        if error.__traceback__:
            return "".join(traceback.format_exception(type(error), error, error.__traceback__))
        return f"{error.__class__.__name__}: {error}"
    return str(error)


def describe_error(error: BaseException) -> str:
    """One-line description suitable for an error envelope message."""
    text = str(error).strip()
    if not text:
        return error.__class__.__name__
    return f"{error.__class__.__name__}: {text.splitlines()[0]}"
