# =============================================================================
# core/inspection.py  -  Document Statistics & Validation
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Two "look before you leap" analyses an agent runs on an unknown file:
#
#   compute_stats()  -> DocumentStats: size, root type, top-level shape.
#                       Cheap; only looks at the root and its children.
#   validate_file()  -> ValidationReport: does it parse, how deep does it
#                       nest, are there empty containers or duplicate keys?
#
# VALIDATION NEVER RAISES:
#   A missing file or malformed JSON is exactly what validation exists to
#   report, so load/parse failures become a negative report instead of an
#   error response.
# =============================================================================

import json
import logging
from typing import Any, Optional

from core.errors import LoadError, ParseError
from core.loader import DuplicateKeyDict, load_document
from core.models import DocumentStats, LoadedDocument, ValidationReport
from core.sampler import json_type, sample

logger = logging.getLogger(__name__)

TOP_KEYS_SHOWN = 10
ARRAY_SAMPLE_ITEMS = 2


def compute_stats(document: LoadedDocument, include_sample: bool = False) -> DocumentStats:
    """Summarize the size and top-level shape of a loaded document."""
    data = document.data
    stats = DocumentStats(
        file_size_bytes=document.size_bytes,
        serialized_length=len(json.dumps(data, ensure_ascii=False, separators=(",", ":"))),
        root_type=json_type(data),
    )

    if isinstance(data, list):
        stats.length = len(data)
        # Unique types, in order of first appearance
        stats.element_types = list(dict.fromkeys(json_type(item) for item in data))
        if include_sample:
            stats.sample = data[:ARRAY_SAMPLE_ITEMS]

    elif isinstance(data, dict):
        keys = list(data)
        stats.key_count = len(keys)
        stats.top_keys = keys[:TOP_KEYS_SHOWN]
        stats.key_types = {key: json_type(data[key]) for key in stats.top_keys}
        if include_sample:
            stats.sample = sample(data, max_depth=1)

    return stats


def _walk_issues(
    data: Any,
    check_empty: bool,
    max_depth_check: Optional[int],
) -> tuple[int, list[str]]:
    issues: list[str] = []
    max_depth = 0

    # Pre-order over an explicit stack; children pushed in reverse so
    # issues come out in document order.
    stack: list[tuple[Any, int, str]] = [(data, 0, "root")]
    while stack:
        node, depth, path = stack.pop()
        max_depth = max(max_depth, depth)

        if max_depth_check and depth > max_depth_check:
            issues.append(f"Deep nesting detected at {path} (depth: {depth})")

        if isinstance(node, list):
            if check_empty and not node:
                issues.append(f"Empty array at {path}")
            stack.extend(
                (node[index], depth + 1, f"{path}[{index}]")
                for index in range(len(node) - 1, -1, -1)
            )

        elif isinstance(node, dict):
            if check_empty and not node:
                issues.append(f"Empty object at {path}")
            if isinstance(node, DuplicateKeyDict):
                issues.append(f"Duplicate keys at {path}: {', '.join(node.duplicate_keys)}")
            stack.extend(
                (value, depth + 1, f"{path}.{key}")
                for key, value in reversed(list(node.items()))
            )

    return max_depth, issues


def validate_file(
    file_path: str,
    max_bytes: int,
    check_duplicates: bool = False,
    check_empty: bool = False,
    max_depth_check: Optional[int] = None,
) -> ValidationReport:
    """Load a file and check it for structural problems.

    Args:
        file_path: The JSON file to validate.
        max_bytes: Loader size limit.
        check_duplicates: Report keys repeated inside one object.
        check_empty: Report empty arrays and objects.
        max_depth_check: Report every node nested deeper than this.

    Returns:
        A ValidationReport.  Load and parse failures give valid=False with
        the error message; this function does not raise for them.
    """
    try:
        document = load_document(file_path, max_bytes, track_duplicates=check_duplicates)
    except (LoadError, ParseError) as e:
        logger.debug("Validation failed for %s: %s", file_path, e)
        return ValidationReport(file_path=file_path, valid=False, error=str(e))

    max_depth, issues = _walk_issues(
        document.data, check_empty, max_depth_check
    )
    return ValidationReport(
        file_path=document.path,
        valid=True,
        file_size_bytes=document.size_bytes,
        max_depth=max_depth,
        issues=issues,
    )
