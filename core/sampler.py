# =============================================================================
# core/sampler.py  -  Structural Summaries & Read-Time Projections
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Produces views of a document that are smaller than the document:
#
#   sample()        A "shape" summary: scalars become type names, arrays
#                   show their first 3 elements, deep levels collapse to a
#                   depth-limit marker.  Used by json_read(keys_only=True)
#                   and json_stats(include_sample=True).
#
#   limit_arrays()  Keeps the first N items of every array, no markers.
#   limit_keys()    Keeps the first N keys of every object.
#   limit_depth()   Collapses containers nested past a depth.
#
# IMPORTANT:
#   A sample is NOT a smaller copy of the document.  It injects marker
#   strings into arrays and sentinel keys into objects, so it is only
#   meant to be read, never fed back into another operation.
#
# DEPTH COUNTING:
#   The root is depth 0.  Entering an array element or an object value
#   adds 1.  Anything visited at depth > max_depth becomes the marker.
# =============================================================================

from typing import Any, Optional

DEPTH_LIMIT_MARKER = "[...depth limit reached...]"
ARRAY_SAMPLE_SIZE = 3


def json_type(value: Any) -> str:
    """Name the JSON type of a parsed value."""
    if value is None:
        return "null"
    # bool before int: True is an int in Python
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def sample(
    value: Any,
    max_depth: int = 3,
    max_keys: Optional[int] = None,
    current_depth: int = 0,
) -> Any:
    """Summarize the structure of a value.

    Args:
        value: Any JSON value.
        max_depth: Deepest level that is still expanded.
        max_keys: Keys shown per object (None shows all of them).
        current_depth: Depth of `value` itself; callers leave it at 0.

    Returns:
        A new value where scalars are replaced by their type name, arrays
        by up to 3 sampled elements plus a "[...N more items]" marker, and
        objects by their first max_keys entries plus a
        "[...N more keys]" sentinel entry.
    """
    if current_depth > max_depth:
        return DEPTH_LIMIT_MARKER

    if value is None:
        return None

    if isinstance(value, list):
        if not value:
            return []
        result = [
            sample(item, max_depth, max_keys, current_depth + 1)
            for item in value[:ARRAY_SAMPLE_SIZE]
        ]
        if len(value) > ARRAY_SAMPLE_SIZE:
            result.append(f"[...{len(value) - ARRAY_SAMPLE_SIZE} more items]")
        return result

    if isinstance(value, dict):
        keys = list(value)
        shown = keys if max_keys is None else keys[:max_keys]
        result = {
            key: sample(value[key], max_depth, max_keys, current_depth + 1)
            for key in shown
        }
        if len(keys) > len(shown):
            result[f"[...{len(keys) - len(shown)} more keys]"] = "..."
        return result

    return json_type(value)


def limit_arrays(value: Any, max_items: int) -> Any:
    """Keep only the first max_items elements of every array, recursively."""
    if isinstance(value, list):
        return [limit_arrays(item, max_items) for item in value[:max_items]]
    if isinstance(value, dict):
        return {key: limit_arrays(item, max_items) for key, item in value.items()}
    return value


def limit_keys(value: Any, max_keys: int) -> Any:
    """Keep the first max_keys keys of every object, with a "[...N more keys]" entry."""
    if isinstance(value, list):
        return [limit_keys(item, max_keys) for item in value]
    if isinstance(value, dict):
        keys = list(value)
        result = {key: limit_keys(value[key], max_keys) for key in keys[:max_keys]}
        if len(keys) > max_keys:
            result[f"[...{len(keys) - max_keys} more keys]"] = "..."
        return result
    return value


def limit_depth(value: Any, max_depth: int, current_depth: int = 0) -> Any:
    """Replace containers nested deeper than max_depth with the depth marker.

    Unlike sample(), scalars keep their real values; only the nesting is cut.
    """
    if isinstance(value, (list, dict)) and current_depth > max_depth:
        return DEPTH_LIMIT_MARKER
    if isinstance(value, list):
        return [limit_depth(item, max_depth, current_depth + 1) for item in value]
    if isinstance(value, dict):
        return {
            key: limit_depth(item, max_depth, current_depth + 1)
            for key, item in value.items()
        }
    return value
