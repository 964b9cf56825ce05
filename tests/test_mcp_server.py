import asyncio
import json

import pytest
from fastmcp import Client

from core.settings import Settings
from tools import mcp_server
from tools.mcp_server import SETTINGS, mcp

PEOPLE = {
    "users": [
        {"name": "Ada", "age": 36, "email": "ada@example.com", "roles": ["admin"]},
        {"name": "Bob", "age": 17, "email": "bob@example.org", "roles": []},
        {"name": "Cy", "age": 52, "email": None, "roles": ["dev"]},
    ],
    "meta": {"version": 2, "source": "test"},
}


def call(tool: str, **arguments) -> str:
    """Run one tool through an in-memory MCP client and return its text."""

    async def _run():
        async with Client(mcp) as client:
            result = await client.call_tool(tool, arguments)
            return result.content[0].text

    return asyncio.run(_run())


@pytest.fixture
def people_file(write_json):
    return write_json(PEOPLE)


def test_all_tools_are_registered():
    async def _names():
        async with Client(mcp) as client:
            return {tool.name for tool in await client.list_tools()}

    assert asyncio.run(_names()) == {
        "json_read",
        "json_stats",
        "json_query",
        "json_extract",
        "json_slice",
        "json_filter",
        "json_search",
        "json_transform",
        "json_validate",
    }


class TestRead:
    def test_small_file_is_returned_whole(self, people_file):
        assert json.loads(call("json_read", file_path=people_file)) == PEOPLE

    def test_large_file_is_bounded(self, write_json, large_document):
        text = call("json_read", file_path=write_json(large_document))
        assert len(text) < len(json.dumps(large_document, indent=2, ensure_ascii=False))
        assert "...99 more items" in text
        assert "...50 more properties: ..." in text
        assert "more characters" in text

    def test_stats_share_the_budget_with_the_payload(self, write_json, monkeypatch):
        monkeypatch.setattr(mcp_server, "SETTINGS", Settings(max_output_length=2000))
        path = write_json({"rows": ["r" * 20 for _ in range(68)]})
        text = call("json_read", file_path=path, include_stats=True)
        assert len(text) <= 2000
        assert "...67 more items" in text
        assert "# JSON File Statistics" in text

    def test_keys_only(self, people_file):
        text = call("json_read", file_path=people_file, path="meta", keys_only=True)
        assert json.loads(text) == {"version": "number", "source": "string"}

    def test_limits_and_types(self, people_file):
        text = call(
            "json_read",
            file_path=people_file,
            path="users",
            sample_arrays=1,
            max_depth=1,
            include_types=True,
        )
        assert json.loads(text) == {
            "type": "array",
            "data": [{
                "name": "Ada",
                "age": 36,
                "email": "ada@example.com",
                "roles": "[...depth limit reached...]",
            }],
        }

    def test_include_stats(self, people_file):
        text = call("json_read", file_path=people_file, path="meta", include_stats=True)
        assert "# JSON File Statistics" in text
        assert "**Top Keys:** users, meta" in text

    def test_missing_path(self, people_file):
        text = call("json_read", file_path=people_file, path="users.9")
        assert text.startswith("✗ Path not found: users.9")

    def test_missing_file(self, tmp_path):
        text = call("json_read", file_path=str(tmp_path / "absent.json"))
        assert text.startswith("Error: File not found")

    def test_negative_limit(self, people_file):
        text = call("json_read", file_path=people_file, max_depth=-1)
        assert text == "Error: max_depth must be zero or greater, got -1"


def test_stats(people_file):
    text = call("json_stats", file_path=people_file, include_sample=True)
    assert "**Type:** object" in text
    assert "**Key Count:** 2" in text
    assert "- `users`: array" in text
    assert "## Sample Structure" in text


class TestQuery:
    def test_found(self, people_file):
        text = call("json_query", file_path=people_file, query_path="users.0.name")
        assert text == '✓ Found at path: users.0.name\n\nValue:\n"Ada"'

    def test_null_is_found(self, people_file):
        text = call("json_query", file_path=people_file, query_path="users.2.email")
        assert text.startswith("✓ Found at path: users.2.email")
        assert text.endswith("null")

    def test_not_found_with_default(self, people_file):
        text = call(
            "json_query", file_path=people_file, query_path="users.0.phone", default_value="n/a"
        )
        assert text == '✗ Path not found: users.0.phone\n\nDefault: "n/a"'

    def test_invalid_json(self, write_text):
        text = call("json_query", file_path=write_text("{bad"), query_path="a")
        assert text.startswith("Error: Invalid JSON in file")


class TestExtract:
    def test_condition_wins_over_pattern(self, people_file):
        text = call(
            "json_extract",
            file_path=people_file,
            path="users",
            condition="item.age > 40",
            pattern="Ada",
        )
        assert [user["name"] for user in json.loads(text)] == ["Cy"]

    def test_pattern(self, people_file):
        text = call("json_extract", file_path=people_file, pattern="example\\.org", search_type="value")
        assert "**Matches Found:** 1" in text
        assert "`users[1].email`" in text

    def test_slice(self, people_file):
        text = call("json_extract", file_path=people_file, path="meta", keys=["source"])
        assert json.loads(text) == {"source": "test"}

    def test_default_for_missing_path(self, people_file):
        text = call("json_extract", file_path=people_file, path="nope", default_value=[])
        assert text == "✗ Path not found: nope\n\nDefault: []"


class TestSlice:
    def test_array_range(self, people_file):
        text = call("json_slice", file_path=people_file, path="users", start=1, end=2)
        assert [user["name"] for user in json.loads(text)] == ["Bob"]

    def test_scalar_target(self, people_file):
        text = call("json_slice", file_path=people_file, path="meta.version", start=0)
        assert text == "Error: Slice target must be an array or object, got number"

    def test_negative_start(self, people_file):
        text = call("json_slice", file_path=people_file, path="users", start=-1)
        assert text.startswith("Error: start must be a non-negative index")


class TestFilter:
    def test_array(self, people_file):
        text = call("json_filter", file_path=people_file, path="users", condition='"admin" in item.roles')
        assert [user["name"] for user in json.loads(text)] == ["Ada"]

    def test_object(self, people_file):
        text = call("json_filter", file_path=people_file, path="meta", condition='key == "source"')
        assert json.loads(text) == {"source": "test"}

    def test_bad_expression(self, people_file):
        text = call("json_filter", file_path=people_file, path="users", condition="os.system('x')")
        assert text == "Error: Unknown name: os"

    def test_scalar_target(self, people_file):
        text = call("json_filter", file_path=people_file, path="meta.source", condition="item")
        assert text.startswith("Error: Filter target must be an array or object")


class TestSearch:
    def test_finds_keys_and_values(self, people_file):
        text = call("json_search", file_path=people_file, pattern="^name$", search_type="key")
        assert "**Matches Found:** 3" in text
        assert "1. **key** at `users[0].name`" in text
        assert "   - Value: `\"Ada\"`" in text

    def test_null_search(self, people_file):
        text = call("json_search", file_path=people_file, pattern="null", search_type="value")
        assert "`users[2].email`" in text

    def test_result_limit(self, people_file):
        text = call("json_search", file_path=people_file, pattern="a", max_results=2)
        assert "**Matches Found:** 2" in text
        assert "Stopped at the result limit of 2" in text

    def test_no_matches(self, people_file):
        text = call("json_search", file_path=people_file, pattern="zzz")
        assert "*No matches found*" in text

    def test_scoped_to_path(self, people_file):
        text = call("json_search", file_path=people_file, pattern="test", path="meta")
        assert "`source`" in text

    def test_report_fits_the_budget_with_a_large_result_limit(self, write_json):
        path = write_json({"entries": {f"e{i}": "v" * 2000 for i in range(500)}})
        text = call("json_search", file_path=path, pattern="v", search_type="value", max_results=5000)
        assert len(text) <= SETTINGS.max_output_length
        assert "**Matches Found:** 500" in text
        assert "more hits not shown" in text

    def test_bad_regex(self, people_file):
        text = call("json_search", file_path=people_file, pattern="[")
        assert text.startswith("Error: Invalid search pattern")


class TestTransform:
    def test_map(self, people_file):
        text = call(
            "json_transform", file_path=people_file, path="users",
            transform_type="map", expression="item.name",
        )
        assert json.loads(text) == ["Ada", "Bob", "Cy"]

    def test_reduce(self, people_file):
        text = call(
            "json_transform", file_path=people_file, path="users",
            transform_type="reduce", expression="{**acc, item.name: item.age}",
        )
        assert json.loads(text) == {"Ada": 36, "Bob": 17, "Cy": 52}

    def test_sort(self, people_file):
        text = call(
            "json_transform", file_path=people_file, path="users",
            transform_type="sort", expression="b.age - a.age",
        )
        assert [user["name"] for user in json.loads(text)] == ["Cy", "Ada", "Bob"]

    def test_map_needs_an_array(self, people_file):
        text = call(
            "json_transform", file_path=people_file, path="meta",
            transform_type="map", expression="item",
        )
        assert text == "Error: Transform target must be an array for map operations, got object"


class TestValidate:
    def test_valid_with_issues(self, write_text):
        path = write_text('{"a": [], "a": {}, "b": {"c": {"d": 1}}}')
        text = call(
            "json_validate", file_path=path,
            check_duplicates=True, check_empty=True, max_depth_check=2,
        )
        assert "✓ **Valid JSON**" in text
        assert "**Max Depth:** 3" in text
        assert "**Issues Found:** 3" in text
        assert "1. Duplicate keys at root: a" in text
        assert "2. Empty object at root.a" in text
        assert "3. Deep nesting detected at root.b.c.d (depth: 3)" in text

    def test_clean(self, people_file):
        text = call("json_validate", file_path=people_file)
        assert "✓ No issues found" in text

    def test_invalid_is_not_an_error(self, write_text):
        text = call("json_validate", file_path=write_text("[1, 2"))
        assert text.startswith("# JSON Validation Report")
        assert "✗ **Invalid JSON**" in text
