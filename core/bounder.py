# =============================================================================
# core/bounder.py  -  Output Bounding (Context Budget Discipline)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Makes sure no tool response blows up the agent's context window.
#   bound() takes the FINAL result of a tool call and, if its serialized
#   form is longer than the budget, shrinks it:
#
#     - strings over 200 chars  -> first 200 chars + "...N more characters"
#     - arrays with 2+ items    -> [first item, ...N more items]
#     - objects over 200 keys   -> first 200 keys + ...N more properties: ...
#     - numbers, booleans, null -> unchanged
#
#   Types never change: an object stays an object, an array stays an array.
#   Only cardinality and string length shrink, and every cut leaves a
#   visible marker saying how much was removed.
#
# WHEN IS IT APPLIED?
#   Exactly once per tool call, on the payload about to be returned.
#   Search, filter and transform always run on the full document first.
#
# ONE PASS ONLY:
#   The limits are fixed.  A single pass can still exceed the budget (e.g.
#   150 keys each holding a 190-char string); such a value is returned as
#   the pass left it, so marker text and position never depend on size.
#
# MARKERS:
#   Markers are str subclasses.  They serialize as ordinary JSON strings
#   (so the bounded value is still plain data), and render() strips their
#   quotes so the text reads naturally:  "...4 more items"  ->  ...4 more items
#   A second bound() recognises markers and clipped strings and leaves them
#   alone, which makes bound(bound(x)) == bound(x).
# =============================================================================

import json
import logging
import re
from typing import Any, Optional

from core.settings import DEFAULT_MAX_OUTPUT_LENGTH

logger = logging.getLogger(__name__)

STRING_LIMIT = 200
KEY_LIMIT = 200

# Private-use character; tags marker text during render() only.
_RENDER_TAG = "\ue000"


class ElisionMarker(str):
    """Display text that stands in for removed items or properties."""

    def __new__(cls, text: str, count: int = 0):
        marker = super().__new__(cls, text)
        marker.count = count
        return marker


class ClippedString(str):
    """A string already cut to the string limit, elision note included."""


ELLIPSIS = ElisionMarker("...")


def items_marker(count: int) -> ElisionMarker:
    return ElisionMarker(f"...{count} more items", count)


def properties_marker(count: int) -> ElisionMarker:
    return ElisionMarker(f"...{count} more properties", count)


def to_json(value: Any, indent: Optional[int] = 2) -> str:
    """Serialize the way every tool response is serialized."""
    if indent is None:
        return json.dumps(value, ensure_ascii=False, default=str, separators=(",", ":"))
    return json.dumps(value, indent=indent, ensure_ascii=False, default=str)


def serialized_length(value: Any) -> int:
    return len(to_json(value))


def clip_string(text: str, string_limit: int = STRING_LIMIT) -> str:
    """Cut a string to string_limit characters plus an elision note."""
    if isinstance(text, (ElisionMarker, ClippedString)) or len(text) <= string_limit:
        return text
    elided = len(text) - string_limit
    return ClippedString(f"{text[:string_limit]}...{elided} more characters")


def _bound_node(value: Any, string_limit: int, key_limit: int) -> Any:
    if isinstance(value, str):
        return clip_string(value, string_limit)

    if isinstance(value, list):
        if len(value) <= 1:
            return [_bound_node(item, string_limit, key_limit) for item in value]
        first = _bound_node(value[0], string_limit, key_limit)
        if len(value) == 2 and isinstance(value[1], ElisionMarker):
            # Already [first, marker]
            return [first, value[1]]
        return [first, items_marker(len(value) - 1)]

    if isinstance(value, dict):
        real_keys = [key for key in value if not isinstance(key, ElisionMarker)]
        if len(real_keys) <= key_limit:
            return {
                key: item if isinstance(key, ElisionMarker)
                else _bound_node(item, string_limit, key_limit)
                for key, item in value.items()
            }
        previously_elided = sum(
            key.count for key in value if isinstance(key, ElisionMarker)
        )
        kept = real_keys[:key_limit]
        result = {key: _bound_node(value[key], string_limit, key_limit) for key in kept}
        elided = len(real_keys) - len(kept) + previously_elided
        result[properties_marker(elided)] = ELLIPSIS
        return result

    return value


def bound(value: Any, max_output_length: int = DEFAULT_MAX_OUTPUT_LENGTH) -> Any:
    """Shrink a value whose serialized form exceeds the budget.

    Args:
        value: The final payload of a tool call.
        max_output_length: Budget in characters of to_json() output.

    Returns:
        `value` itself when it already fits, otherwise a new value after one
        pass at the fixed 200-character / 200-key limits.  The pass is not
        repeated, so the result can still be longer than the budget.  The
        input is never mutated.
    """
    length = serialized_length(value)
    if length <= max_output_length:
        return value

    result = _bound_node(value, STRING_LIMIT, KEY_LIMIT)
    logger.debug("Bounded %d -> %d chars", length, serialized_length(result))
    return result


def _tag_markers(value: Any, tag: str) -> Any:
    if isinstance(value, ElisionMarker):
        return tag + value
    if isinstance(value, list):
        return [_tag_markers(item, tag) for item in value]
    if isinstance(value, dict):
        return {_tag_markers(key, tag): _tag_markers(item, tag) for key, item in value.items()}
    return value


def render(value: Any, indent: Optional[int] = 2) -> str:
    """Serialize a (possibly bounded) value for display.

    Elision markers lose their JSON quotes, so the result is JSON-like text
    meant for reading, not for parsing back.  indent=None gives one line.
    """
    plain = to_json(value, indent)
    # The tag must not occur anywhere in the data, or user strings would match
    tag = _RENDER_TAG
    while tag in plain:
        tag += _RENDER_TAG
    tagged = to_json(_tag_markers(value, tag), indent)
    return re.sub('"' + re.escape(tag) + '([^"]*)"', r"\1", tagged)
