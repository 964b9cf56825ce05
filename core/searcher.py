# =============================================================================
# core/searcher.py  -  Regex Search over Keys and Values
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Walks a whole document depth-first (pre-order) and records every object
#   key and/or scalar value that matches a regular expression.
#
# MATCHING RULES:
#   - Only object entries are tested.  Array indices never produce key hits;
#     arrays are simply descended into, with paths like "items[3]".
#   - Value hits: strings as-is, numbers as their JSON text, booleans as
#     "true"/"false".  null matches only when the pattern is exactly "null".
#   - A match never stops descent into the value below it.
#   - Case-insensitive unless case_sensitive=True.
#   - Patterns run on the `regex` package, whose matcher takes a timeout.
#     One deadline covers the whole search, so a backtracking pattern
#     fails with ExpressionError instead of hanging the server.
#
# RESULT CAP:
#   Traversal stops as soon as max_results hits exist.  The result then
#   says limit_reached=True: more matches MAY exist, but their number is
#   unknown and is never reported as exact.
#
#   The searcher always sees the full document.  Bounding happens later,
#   on the formatted result.
# =============================================================================

import json
import logging
import time
from typing import Any, Optional

import regex

from core.errors import ExpressionError, InvalidArgument
from core.models import SearchHit, SearchResult

logger = logging.getLogger(__name__)

SEARCH_TYPES = ("key", "value", "both")
DEFAULT_MAX_RESULTS = 100
DEFAULT_TIMEOUT = 5.0  # Seconds of matching per search


def compile_pattern(
    pattern: str,
    case_sensitive: bool = False,
    max_length: Optional[int] = None,
):
    """Compile a user-supplied regex, reporting failures as ExpressionError."""
    if max_length is not None and len(pattern) > max_length:
        raise ExpressionError(
            f"Search pattern is {len(pattern)} characters long; the limit is {max_length}"
        )
    flags = 0 if case_sensitive else regex.IGNORECASE
    try:
        return regex.compile(pattern, flags)
    except regex.error as e:
        raise ExpressionError(f"Invalid search pattern {pattern!r}: {e}") from e


def _scalar_text(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return json.dumps(value)
    if isinstance(value, str):
        return value
    return None


def search(
    value: Any,
    pattern: str,
    search_type: str = "both",
    max_results: Optional[int] = DEFAULT_MAX_RESULTS,
    case_sensitive: bool = False,
    max_pattern_length: Optional[int] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> SearchResult:
    """Find keys and/or values matching a regex.

    Args:
        value: The document (or resolved sub-value) to search.
        pattern: Regular expression, matched anywhere in the text (search, not match).
        search_type: "key", "value" or "both".
        max_results: Stop after this many hits; None searches everything.
        case_sensitive: Match case exactly.
        max_pattern_length: Refuse longer patterns.
        timeout: Wall-clock seconds the whole search may spend matching.

    Returns:
        A SearchResult with hits in document order.

    Raises:
        InvalidArgument: Unknown search_type or non-positive max_results.
        ExpressionError: The pattern does not compile, or matching ran
            past the timeout.
    """
    if search_type not in SEARCH_TYPES:
        raise InvalidArgument(
            f"search_type must be one of {', '.join(SEARCH_TYPES)}; got {search_type!r}"
        )
    if max_results is not None and max_results <= 0:
        raise InvalidArgument(f"max_results must be positive, got {max_results}")

    compiled = compile_pattern(pattern, case_sensitive, max_pattern_length)
    deadline = time.monotonic() + timeout
    match_keys = search_type in ("key", "both")
    match_values = search_type in ("value", "both")
    matches_null = pattern == "null"

    result = SearchResult()
    hits = result.hits

    def _full() -> bool:
        return max_results is not None and len(hits) >= max_results

    def _timed_out() -> ExpressionError:
        return ExpressionError(f"Search pattern {pattern!r} timed out after {timeout}s")

    def _matches(text: str) -> bool:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise _timed_out()
        try:
            return compiled.search(text, timeout=remaining) is not None
        except TimeoutError:
            raise _timed_out() from None

    def _visit_entry(key: str, item: Any, entry_path: str) -> None:
        if match_keys and not _full() and _matches(key):
            hits.append(SearchHit("key", entry_path, key, item))
        if match_values and not _full():
            if item is None:
                matched = matches_null
            else:
                text = _scalar_text(item)
                matched = text is not None and _matches(text)
            if matched:
                hits.append(SearchHit("value", entry_path, key, item))

    # Explicit stack instead of recursion: documents can nest deeper than
    # Python's recursion limit.  An object entry is tested when it is popped
    # and its value is pushed right after, so the whole subtree of one entry
    # is searched before the next entry is tested (pre-order).
    stack: list[tuple] = [(None, value, "")]
    while stack:
        if _full():
            break
        key, node, path = stack.pop()
        if key is not None:
            _visit_entry(key, node, path)

        if isinstance(node, list):
            stack.extend(
                (None, node[index], f"{path}[{index}]")
                for index in range(len(node) - 1, -1, -1)
            )
        elif isinstance(node, dict):
            entries = [
                (entry_key, item, f"{path}.{entry_key}" if path else entry_key)
                for entry_key, item in node.items()
            ]
            stack.extend(reversed(entries))

    result.limit_reached = _full()

    logger.debug(
        "Search %r (%s): %d hits, limit_reached=%s",
        pattern, search_type, len(hits), result.limit_reached,
    )
    return result
