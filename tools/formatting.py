# =============================================================================
# tools/formatting.py  -  Turning Core Results into Tool Responses
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Every MCP tool returns TEXT.  This module builds that text from core/
#   results: plain rendered JSON for data, light markdown for reports.
#
# RESPONSE PREFIXES (the agent keys off these):
#   "Error: "                 the operation could not run
#   "✓ Found at path: "       json_query hit
#   "✗ Path not found: "      the path did not resolve (carries a default)
#
# BUDGET:
#   Data payloads go through bound() once, right here, just before they are
#   rendered.  Search hits are the exception: each hit's value is bounded on
#   its own with an equal share of the budget, so one huge subtree can't
#   push every other hit out of the response.  The search report as a
#   whole stops listing hits once the next one would pass the budget.
# =============================================================================

from typing import Any

from core.bounder import bound, clip_string, render
from core.models import DocumentStats, SearchResult, ValidationReport
from core.settings import DEFAULT_MAX_OUTPUT_LENGTH

MAX_LISTED_ISSUES = 100
MIN_HIT_BUDGET = 200


def format_error(message: str) -> str:
    return f"Error: {message}"


def format_payload(value: Any, max_output_length: int) -> str:
    """Bound and render a data payload."""
    return render(bound(value, max_output_length))


def format_found(path: str, value: Any, max_output_length: int) -> str:
    return f"✓ Found at path: {path}\n\nValue:\n{format_payload(value, max_output_length)}"


def format_not_found(
    path: str,
    default_value: Any = None,
    max_output_length: int = DEFAULT_MAX_OUTPUT_LENGTH,
) -> str:
    return f"✗ Path not found: {path}\n\nDefault: {format_payload(default_value, max_output_length)}"


def _kilobytes(size_bytes: int) -> str:
    return f"{size_bytes / 1024:.2f} KB"


def format_stats(stats: DocumentStats, max_output_length: int) -> str:
    """Markdown report for json_stats (and json_read's include_stats)."""
    lines = [
        "# JSON File Statistics",
        "",
        f"**File Size:** {_kilobytes(stats.file_size_bytes)}",
        f"**Serialized Length:** {stats.serialized_length:,} characters",
        f"**Type:** {stats.root_type}",
    ]
    if stats.root_type == "array":
        lines.append(f"**Length:** {stats.length}")
        lines.append(f"**Element Types:** {', '.join(stats.element_types) or 'none'}")
    elif stats.root_type == "object":
        lines.append(f"**Key Count:** {stats.key_count}")
        lines.append(f"**Top Keys:** {', '.join(stats.top_keys) or 'none'}")
        if stats.key_types:
            lines.append("")
            lines.append("## Key Types")
            lines.append("")
            lines.extend(f"- `{key}`: {kind}" for key, kind in stats.key_types.items())

    if stats.sample is not None:
        lines.append("")
        lines.append("## Sample Structure")
        lines.append("```json")
        lines.append(format_payload(stats.sample, max_output_length))
        lines.append("```")

    return "\n".join(lines) + "\n"


def format_search(
    pattern: str,
    search_type: str,
    result: SearchResult,
    max_output_length: int,
) -> str:
    """Markdown report for search hits, never longer than max_output_length.

    Hits are listed in order until the next one would not fit; the rest
    are counted in a closing note instead of being shown.
    """
    hits = result.hits
    header = "\n".join([
        "# Search Results",
        "",
        f"**Pattern:** `{clip_string(pattern)}`",
        f"**Matches Found:** {len(hits)}",
        f"**Search Type:** {search_type}",
        "",
        "",
    ])

    if not hits:
        return header + "*No matches found*\n"

    notes = []
    if result.limit_reached:
        notes.append(
            f"*Stopped at the result limit of {len(hits)}; more matches may exist. "
            "Narrow the pattern or raise max_results.*"
        )
    hidden_note_room = len(f"*...{len(hits)} more hits not shown; the output limit was reached.*\n\n")
    closing_room = hidden_note_room + sum(len(note) + 1 for note in notes)

    hit_budget = max(MIN_HIT_BUDGET, max_output_length // len(hits))
    text = header + "## Matches\n\n"
    shown = 0
    for number, hit in enumerate(hits, start=1):
        value_text = render(bound(hit.value, hit_budget), indent=None)
        entry = (
            f"{number}. **{hit.kind}** at `{clip_string(hit.path)}`\n"
            f"   - Key: `{clip_string(hit.key)}`\n"
            f"   - Value: `{value_text}`\n\n"
        )
        if len(text) + len(entry) + closing_room > max_output_length:
            break
        text += entry
        shown += 1

    hidden = len(hits) - shown
    if hidden:
        notes.insert(0, f"*...{hidden} more hits not shown; the output limit was reached.*")

    if notes:
        return text + "\n".join(notes) + "\n"
    return text.rstrip("\n") + "\n"


def format_validation(report: ValidationReport) -> str:
    """Markdown report for json_validate."""
    if not report.valid:
        return (
            "# JSON Validation Report\n\n"
            "✗ **Invalid JSON**\n\n"
            f"**Error:** {report.error}\n"
        )

    lines = [
        "# JSON Validation Report",
        "",
        "✓ **Valid JSON**",
        "",
        f"**File Size:** {_kilobytes(report.file_size_bytes)}",
        f"**Max Depth:** {report.max_depth}",
        f"**Issues Found:** {len(report.issues)}",
        "",
    ]

    if not report.issues:
        lines.append("✓ No issues found")
        return "\n".join(lines) + "\n"

    lines.append("## Issues")
    lines.append("")
    shown = report.issues[:MAX_LISTED_ISSUES]
    lines.extend(f"{number}. {issue}" for number, issue in enumerate(shown, start=1))
    hidden = len(report.issues) - len(shown)
    if hidden:
        lines.append("")
        lines.append(f"*...and {hidden} more issues*")

    return "\n".join(lines) + "\n"
