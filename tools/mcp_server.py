# =============================================================================
# tools/mcp_server.py  -  FastMCP Tool Server (ALL tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Defines ALL MCP tools an agent can call to explore a JSON file.  Each
#   tool is a thin wrapper around core/ functions: it loads the file,
#   resolves the optional path, applies ONE operation, bounds the result
#   and formats it as text.
#
# HOW EVERY TOOL IS COMPOSED:
#   1. load the document            (core/loader.py)
#   2. resolve the optional path    (core/paths.py)   -> "✗ Path not found"
#   3. apply at most one operation  (filter | search | slice | transform)
#   4. sample, for overview reads   (core/sampler.py)
#   5. bound the final payload ONCE (core/bounder.py)
#   6. render / format as text      (tools/formatting.py)
#
#   Search and filter always see the full, unbounded document.
#
# TOOL NAMING CONVENTIONS:
#   Every tool is json_<verb>.  All of them are read-only: the file on disk
#   is never written, so every call is safe to retry.
#
# ERRORS:
#   core/ raises JsonToolError subclasses.  They are caught here, at the
#   tool boundary, and returned as "Error: ..." text.  Nothing escapes as a
#   transport-level fault.
#
# RUNNING THIS SERVER:
#   a) python main.py                 (loads .env, then serves over stdio)
#   b) python -m tools.mcp_server
# =============================================================================

import logging
import sys
from typing import Any, Literal, Optional

from fastmcp import FastMCP

# --- Import core logic ---
# The tools layer depends on core/ and nothing else.
from core.errors import InvalidArgument, JsonToolError
from core.inspection import compute_stats, validate_file
from core.loader import load_document
from core.models import LoadedDocument
from core.paths import MISSING, resolve
from core.sampler import json_type, limit_arrays, limit_depth, limit_keys, sample
from core.searcher import DEFAULT_MAX_RESULTS, search
from core.selectors import filter_value, select, transform
from core.settings import load_settings
from tools.formatting import (
    format_error,
    format_found,
    format_not_found,
    format_payload,
    format_search,
    format_stats,
    format_validation,
)

# =============================================================================
# Settings & Logging Setup
# =============================================================================
# Settings are read once, at import.  main.py has already loaded .env by then.
#
# We log to STDERR because the MCP server talks to the agent over STDOUT.
# Anything printed to stdout would corrupt the MCP JSON stream.
#
# ANSI COLOR CODES:
#     - CYAN for incoming requests (tool name + parameters)
#     - GREEN for responses
#     - YELLOW for intermediate status messages
#     - RED for errors
# =============================================================================

SETTINGS = load_settings()

_CYAN = "\033[36m"     # Requests (tool calls with params)
_GREEN = "\033[32m"    # Responses
_YELLOW = "\033[33m"   # Status/progress messages
_RED = "\033[31m"      # Error responses
_RESET = "\033[0m"     # Reset to default terminal color

logging.basicConfig(
    level=SETTINGS.log_level,
    format="%(asctime)s [MCP] %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)

logger = logging.getLogger(__name__)


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items() if v is not None)
    logger.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logger.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, text: str) -> str:
    """Log the size and first line of a response in GREEN, then return it."""
    first_line = text.split("\n", 1)[0][:80]
    logger.info(f"{_GREEN}  ← {tool_name} response: {len(text)} chars, {first_line!r}{_RESET}")
    return text


def _error_response(tool_name: str, error: Exception) -> str:
    """Turn an exception into an "Error: ..." response, logged in RED."""
    if isinstance(error, JsonToolError):
        message = str(error)
    else:
        # Not one of ours: keep the traceback in the log, still answer the agent
        logger.exception("%s failed unexpectedly", tool_name)
        message = f"Unexpected {type(error).__name__}: {error}"
    logger.info(f"{_RED}  ← {tool_name} error: {message}{_RESET}")
    return format_error(message)


def _load(file_path: str) -> LoadedDocument:
    document = load_document(file_path, SETTINGS.max_file_bytes)
    _log_status(f"Loaded {document.path} ({document.size_bytes} bytes, {json_type(document.data)})")
    return document


def _require_non_negative(**params: Optional[int]) -> None:
    for name, value in params.items():
        if value is not None and value < 0:
            raise InvalidArgument(f"{name} must be zero or greater, got {value}")


# =============================================================================
# Create the FastMCP server instance
# =============================================================================
mcp = FastMCP("json-tools")


# =============================================================================
# TOOL 1: json_read
# =============================================================================
# The exploration entry point.  keys_only=True gives the structural sample
# (type names instead of values); otherwise real data, optionally trimmed
# by depth, keys per object and items per array.
# =============================================================================
@mcp.tool()
def json_read(
    file_path: str,
    path: Optional[str] = None,
    max_depth: Optional[int] = None,
    max_keys: Optional[int] = None,
    sample_arrays: Optional[int] = None,
    keys_only: bool = False,
    include_types: bool = False,
    include_stats: bool = False,
) -> str:
    """Read a JSON file with optional depth, key and array limits.

    WHEN TO CALL THIS: To explore a JSON file or get an overview of its
    structure.  For very large files start with keys_only=True.

    Args:
        file_path: Path to the JSON file.
        path: Dot notation path to start from (e.g. "users.0"); default root.
        max_depth: Collapse containers nested deeper than this.  With
            keys_only the default is 2.
        max_keys: Show at most this many keys per object.
        sample_arrays: Show only the first N items of every array.
        keys_only: Return the structure (type names) instead of the values.
        include_types: Wrap the result as {"type": ..., "data": ...}.
        include_stats: Append a statistics section.

    Returns:
        Rendered JSON, shortened with "...N more items" style markers when it
        exceeds the output budget.
    """
    _log_request("json_read", file_path=file_path, path=path, max_depth=max_depth,
                 max_keys=max_keys, sample_arrays=sample_arrays, keys_only=keys_only,
                 include_types=include_types, include_stats=include_stats)
    try:
        _require_non_negative(max_depth=max_depth, max_keys=max_keys, sample_arrays=sample_arrays)
        document = _load(file_path)
        target = resolve(document.data, path)
        if target is MISSING:
            _log_status(f"Path not found: {path}")
            return _log_response("json_read", format_not_found(path))

        if keys_only:
            result = sample(target, max_depth if max_depth is not None else 2, max_keys)
        else:
            result = target
            if sample_arrays is not None:
                result = limit_arrays(result, sample_arrays)
            if max_keys is not None:
                result = limit_keys(result, max_keys)
            if max_depth is not None:
                result = limit_depth(result, max_depth)

        if include_types:
            result = {"type": json_type(target), "data": result}

        if not include_stats:
            return _log_response(
                "json_read", format_payload(result, SETTINGS.max_output_length)
            )

        # Payload and stats share one budget
        stats_text = "\n\n" + format_stats(compute_stats(document), SETTINGS.max_output_length)
        payload_budget = max(0, SETTINGS.max_output_length - len(stats_text))
        text = format_payload(result, payload_budget) + stats_text
        return _log_response("json_read", text)
    except Exception as e:
        return _error_response("json_read", e)


# =============================================================================
# TOOL 2: json_stats
# =============================================================================
@mcp.tool()
def json_stats(file_path: str, include_sample: bool = False) -> str:
    """Get file size, top-level structure and key/element types.

    WHEN TO CALL THIS: First, on any JSON file you know nothing about, to
    judge how big and how complex it is before reading it.

    Args:
        file_path: Path to the JSON file.
        include_sample: Add a one-level structural sample.

    Returns:
        A markdown report.
    """
    _log_request("json_stats", file_path=file_path, include_sample=include_sample)
    try:
        document = _load(file_path)
        stats = compute_stats(document, include_sample)
        return _log_response("json_stats", format_stats(stats, SETTINGS.max_output_length))
    except Exception as e:
        return _error_response("json_stats", e)


# =============================================================================
# TOOL 3: json_query
# =============================================================================
@mcp.tool()
def json_query(file_path: str, query_path: str, default_value: Any = None) -> str:
    """Extract one value by dot notation path, e.g. "users.0.name".

    WHEN TO CALL THIS: When you know exactly where the data is.

    Args:
        file_path: Path to the JSON file.
        query_path: Dot notation path; array indices are plain numbers.
        default_value: Returned (and labelled as a default) if the path
            does not exist.

    Returns:
        "✓ Found at path: ..." with the value, or "✗ Path not found: ..."
        with the default.
    """
    _log_request("json_query", file_path=file_path, query_path=query_path,
                 default_value=default_value)
    try:
        document = _load(file_path)
        value = resolve(document.data, query_path)
        if value is MISSING:
            _log_status(f"Path not found: {query_path}")
            return _log_response(
                "json_query",
                format_not_found(query_path, default_value, SETTINGS.max_output_length),
            )
        return _log_response(
            "json_query", format_found(query_path, value, SETTINGS.max_output_length)
        )
    except Exception as e:
        return _error_response("json_query", e)


# =============================================================================
# TOOL 4: json_extract
# =============================================================================
# One call that resolves a path and then applies whichever of filter,
# search or slice was asked for.  Precedence when several are given:
# condition, then pattern, then start/end/keys.
# =============================================================================
@mcp.tool()
def json_extract(
    file_path: str,
    path: Optional[str] = None,
    condition: Optional[str] = None,
    pattern: Optional[str] = None,
    search_type: Literal["key", "value", "both"] = "both",
    case_sensitive: bool = False,
    start: Optional[int] = None,
    end: Optional[int] = None,
    keys: Optional[list[str]] = None,
    default_value: Any = None,
) -> str:
    """Resolve a path, then optionally filter, search or slice what is there.

    WHEN TO CALL THIS: When you want one step from "somewhere in the file"
    to "just the part I need".  Only ONE of condition / pattern /
    (start, end, keys) is applied, in that order of precedence.

    Args:
        file_path: Path to the JSON file.
        path: Dot notation path to the target; default root.
        condition: Filter expression (see json_filter).
        pattern: Regex to search for (see json_search).
        search_type: "key", "value" or "both" (with pattern).
        case_sensitive: Case sensitive search (with pattern).
        start: Start index for arrays.
        end: End index (exclusive) for arrays.
        keys: Keys to keep from an object.
        default_value: Returned if the path does not exist.

    Returns:
        Rendered JSON (bounded), a search report, or a not-found message.
    """
    _log_request("json_extract", file_path=file_path, path=path, condition=condition,
                 pattern=pattern, search_type=search_type, start=start, end=end, keys=keys)
    try:
        document = _load(file_path)
        target = resolve(document.data, path)
        if target is MISSING:
            _log_status(f"Path not found: {path}")
            return _log_response(
                "json_extract",
                format_not_found(path, default_value, SETTINGS.max_output_length),
            )

        if condition:
            if pattern or start is not None or end is not None or keys is not None:
                _log_status("condition given; ignoring pattern/start/end/keys")
            result = filter_value(target, condition, SETTINGS.expression_step_limit)
        elif pattern:
            found = search(target, pattern, search_type, DEFAULT_MAX_RESULTS, case_sensitive,
                           SETTINGS.max_pattern_length, SETTINGS.search_timeout)
            _log_status(f"Found {len(found.hits)} matches")
            return _log_response(
                "json_extract",
                format_search(pattern, search_type, found, SETTINGS.max_output_length),
            )
        elif start is not None or end is not None or keys is not None:
            result = select(target, start, end, keys)
        else:
            result = target

        return _log_response(
            "json_extract", format_payload(result, SETTINGS.max_output_length)
        )
    except Exception as e:
        return _error_response("json_extract", e)


# =============================================================================
# TOOL 5: json_slice
# =============================================================================
@mcp.tool()
def json_slice(
    file_path: str,
    path: Optional[str] = None,
    start: Optional[int] = None,
    end: Optional[int] = None,
    keys: Optional[list[str]] = None,
) -> str:
    """Extract an array range or specific object keys.

    WHEN TO CALL THIS: To page through a large array (start/end) or pick
    a few fields out of a wide object (keys).

    Args:
        file_path: Path to the JSON file.
        path: Dot notation path to the target; default root.
        start: Start index for arrays (default 0).
        end: End index for arrays, exclusive (default: array length).
        keys: Keys to extract from an object; missing keys are skipped.

    Returns:
        Rendered JSON of the selected part.
    """
    _log_request("json_slice", file_path=file_path, path=path, start=start, end=end, keys=keys)
    try:
        document = _load(file_path)
        target = resolve(document.data, path)
        if target is MISSING:
            _log_status(f"Path not found: {path}")
            return _log_response("json_slice", format_not_found(path))

        result = select(target, start, end, keys)
        return _log_response("json_slice", format_payload(result, SETTINGS.max_output_length))
    except Exception as e:
        return _error_response("json_slice", e)


# =============================================================================
# TOOL 6: json_filter
# =============================================================================
@mcp.tool()
def json_filter(file_path: str, condition: str, path: Optional[str] = None) -> str:
    """Filter an array or object with a condition like 'item.age > 18'.

    WHEN TO CALL THIS: To keep only the elements that satisfy a condition.

    The condition is a Python-style expression.  Available names:
      - item / value: the array element or object value
      - key: the object key (null for arrays)
      - index: position of the element or entry
    Examples: 'item.age > 18', 'key.startswith("test")',
    '"admin" in item.roles', 'item.name.lower() == "bob"'.
    item.field on a missing field gives null.  Helpers: len, str, int,
    float, abs, min, max, sum, round, sorted, any, all, keys, values, typeof.

    Args:
        file_path: Path to the JSON file.
        condition: Expression evaluated for each element.
        path: Dot notation path to the array/object; default root.

    Returns:
        Rendered JSON of the kept elements.
    """
    _log_request("json_filter", file_path=file_path, condition=condition, path=path)
    try:
        document = _load(file_path)
        target = resolve(document.data, path)
        if target is MISSING:
            _log_status(f"Path not found: {path}")
            return _log_response("json_filter", format_not_found(path))

        result = filter_value(target, condition, SETTINGS.expression_step_limit)
        _log_status(f"Kept {len(result)} of {len(target)}")
        return _log_response("json_filter", format_payload(result, SETTINGS.max_output_length))
    except Exception as e:
        return _error_response("json_filter", e)


# =============================================================================
# TOOL 7: json_search
# =============================================================================
@mcp.tool()
def json_search(
    file_path: str,
    pattern: str,
    search_type: Literal["key", "value", "both"] = "both",
    case_sensitive: bool = False,
    max_results: int = DEFAULT_MAX_RESULTS,
    path: Optional[str] = None,
) -> str:
    """Find keys or values matching a regex anywhere in the file.

    WHEN TO CALL THIS: When you don't know where something is.  Returns
    the path of every match so you can follow up with json_query.

    Args:
        file_path: Path to the JSON file.
        pattern: Regular expression (e.g. "^user_", "@example\\.com$").
            Use "null" to find null values.
        search_type: "key", "value" or "both".
        case_sensitive: Case sensitive search (default false).
        max_results: Stop after this many matches (default 100).
        path: Only search under this dot notation path.

    Returns:
        A markdown list of matches: kind, path, key and value.
    """
    _log_request("json_search", file_path=file_path, pattern=pattern, search_type=search_type,
                 case_sensitive=case_sensitive, max_results=max_results, path=path)
    try:
        document = _load(file_path)
        target = resolve(document.data, path)
        if target is MISSING:
            _log_status(f"Path not found: {path}")
            return _log_response("json_search", format_not_found(path))

        found = search(target, pattern, search_type, max_results, case_sensitive,
                       SETTINGS.max_pattern_length, SETTINGS.search_timeout)
        _log_status(f"Found {len(found.hits)} matches (limit_reached={found.limit_reached})")
        return _log_response(
            "json_search",
            format_search(pattern, search_type, found, SETTINGS.max_output_length),
        )
    except Exception as e:
        return _error_response("json_search", e)


# =============================================================================
# TOOL 8: json_transform
# =============================================================================
@mcp.tool()
def json_transform(
    file_path: str,
    transform_type: Literal["map", "reduce", "sort"],
    expression: str,
    path: Optional[str] = None,
) -> str:
    """Map, reduce or sort an array with an expression.

    WHEN TO CALL THIS: To reshape or aggregate data instead of reading it
    all, e.g. pull one field out of every record.

    Expressions (Python-style, same helpers as json_filter):
      - map:    names item, index, array.       e.g. 'item.name'
      - reduce: names acc, item, index, array;  acc starts as {}.
                e.g. '{**acc, item.id: item.name}'
      - sort:   names a, b; return a negative, zero or positive number.
                e.g. 'a.price - b.price'
    map and sort need an array; reduce on a single value reduces it once.

    Args:
        file_path: Path to the JSON file.
        transform_type: "map", "reduce" or "sort".
        expression: The expression to apply.
        path: Dot notation path to the target; default root.

    Returns:
        Rendered JSON of the transformed result.
    """
    _log_request("json_transform", file_path=file_path, transform_type=transform_type,
                 expression=expression, path=path)
    try:
        document = _load(file_path)
        target = resolve(document.data, path)
        if target is MISSING:
            _log_status(f"Path not found: {path}")
            return _log_response("json_transform", format_not_found(path))

        result = transform(target, transform_type, expression, SETTINGS.expression_step_limit)
        return _log_response("json_transform", format_payload(result, SETTINGS.max_output_length))
    except Exception as e:
        return _error_response("json_transform", e)


# =============================================================================
# TOOL 9: json_validate
# =============================================================================
# Never answers with "Error: ...": a file that is missing or does not parse
# is reported as "✗ Invalid JSON" inside the validation report.
# =============================================================================
@mcp.tool()
def json_validate(
    file_path: str,
    check_duplicates: bool = False,
    check_empty: bool = False,
    max_depth_check: Optional[int] = None,
) -> str:
    """Check that a file is valid JSON and look for structural problems.

    WHEN TO CALL THIS: Before processing an unknown or hand-edited file.

    Args:
        file_path: Path to the JSON file.
        check_duplicates: Report keys that appear twice in one object.
        check_empty: Report empty arrays and objects.
        max_depth_check: Report values nested deeper than this.

    Returns:
        A markdown validation report (valid/invalid, max depth, issues).
    """
    _log_request("json_validate", file_path=file_path, check_duplicates=check_duplicates,
                 check_empty=check_empty, max_depth_check=max_depth_check)
    try:
        report = validate_file(
            file_path,
            SETTINGS.max_file_bytes,
            check_duplicates=check_duplicates,
            check_empty=check_empty,
            max_depth_check=max_depth_check,
        )
        _log_status(f"valid={report.valid}, issues={len(report.issues)}")
        return _log_response("json_validate", format_validation(report))
    except Exception as e:
        return _error_response("json_validate", e)


# =============================================================================
# Server entry point
# =============================================================================
if __name__ == "__main__":
    mcp.run()
