# =============================================================================
# core/paths.py  -  Dot-Notation Path Resolution
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Resolves paths like "users.0.name" against a parsed document.
#
#   - Arrays are indexed by segments that parse as non-negative integers.
#   - Objects are looked up by key.
#   - Anything else ends the walk with MISSING.
#
# WHY A SENTINEL INSTEAD OF None?
#   null is a legitimate JSON value.  MISSING lets the caller tell "the
#   path holds null" apart from "the path does not exist".
#
# KNOWN LIMITATION:
#   Keys that contain "." cannot be addressed; the path is always split
#   on every dot.
# =============================================================================

from typing import Any


class _Missing:
    """Marker for a path that did not resolve."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()

PATH_DELIMITER = "."


def split_path(path: str | None) -> list[str]:
    """Split a dot path into segments.  "" and None mean the root."""
    if not path:
        return []
    return path.split(PATH_DELIMITER)


def _as_index(segment: str) -> int | None:
    # "0", "12" -> int; "-1", "1.5", " 3", "x" -> None
    if segment.isascii() and segment.isdigit():
        return int(segment)
    return None


def resolve(value: Any, path: str | None) -> Any:
    """Resolve a dot path against a JSON value.

    Args:
        value: The parsed document (or any sub-value).
        path: Dot-delimited path; empty or None returns value unchanged.

    Returns:
        The addressed value, or MISSING if any segment fails to resolve.
        Never raises.
    """
    current = value
    for segment in split_path(path):
        if isinstance(current, list):
            index = _as_index(segment)
            if index is None or index >= len(current):
                return MISSING
            current = current[index]
        elif isinstance(current, dict):
            if segment not in current:
                return MISSING
            current = current[segment]
        else:
            # null, scalars, or MISSING itself: nothing left to descend into
            return MISSING
    return current
