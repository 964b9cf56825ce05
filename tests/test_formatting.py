import re

from core.models import SearchHit, SearchResult
from tools.formatting import format_not_found, format_search


def _value_hits(count, value):
    return SearchResult(hits=[SearchHit("value", f"items[{i}].text", "text", value) for i in range(count)])


def test_single_hit_report():
    result = SearchResult(hits=[SearchHit("key", "a", "a", 1)])
    assert format_search("a", "key", result, 25000) == (
        "# Search Results\n"
        "\n"
        "**Pattern:** `a`\n"
        "**Matches Found:** 1\n"
        "**Search Type:** key\n"
        "\n"
        "## Matches\n"
        "\n"
        "1. **key** at `a`\n"
        "   - Key: `a`\n"
        "   - Value: `1`\n"
    )


def test_no_hits():
    text = format_search("zzz", "both", SearchResult(), 25000)
    assert text.endswith("**Search Type:** both\n\n*No matches found*\n")


def test_report_stays_within_budget_for_many_large_hits():
    text = format_search("x", "value", _value_hits(2000, "x" * 5000), 25000)
    assert len(text) <= 25000
    assert "**Matches Found:** 2000" in text
    shown = len(re.findall(r"^\d+\. \*\*value\*\*", text, flags=re.MULTILINE))
    assert 0 < shown < 2000
    assert f"*...{2000 - shown} more hits not shown; the output limit was reached.*" in text


def test_every_hit_listed_when_they_fit():
    text = format_search("x", "value", _value_hits(20, "x"), 25000)
    assert "more hits not shown" not in text
    assert "20. **value** at `items[19].text`" in text


def test_limit_note_survives_elision():
    result = _value_hits(500, "y" * 1000)
    result.limit_reached = True
    text = format_search("y", "value", result, 5000)
    assert len(text) <= 5000
    assert "more hits not shown" in text
    assert "Stopped at the result limit of 500" in text


def test_long_keys_and_paths_are_clipped():
    key = "k" * 1000
    result = SearchResult(hits=[SearchHit("key", key, key, None)])
    text = format_search("k", "key", result, 25000)
    assert "...800 more characters" in text
    assert key not in text


def test_not_found_default_is_bounded():
    text = format_not_found("x", list(range(10000)), 25000)
    assert text == "✗ Path not found: x\n\nDefault: [\n  0,\n  ...9999 more items\n]"


def test_not_found_small_default():
    assert format_not_found("z", "none") == '✗ Path not found: z\n\nDefault: "none"'
