import json
from pathlib import Path

import pytest


def build_large_document() -> dict:
    """A document that trips every bounding rule at least once.

    - a string over 200 characters
    - an array of 100 records
    - an object with 250 properties
    - a nested array of 50 items under three levels of objects
    """
    data = {
        "longString": (
            "This is a very long string that definitely exceeds 200 characters "
            "and should be truncated by the bounding pass. " * 10
        ),
        "largeArray": [],
        "manyProperties": {},
        "nested": {
            "level1": {
                "level2": {
                    "longText": "Another very long string that should be truncated. " * 20,
                    "items": [],
                }
            }
        },
    }

    for i in range(1, 101):
        data["largeArray"].append({
            "id": i,
            "name": f"Item {i}",
            "description": f"This is a description for item {i}. It has some content that makes it longer.",
            "tags": [f"tag{i}", f"category{i % 5}", f"type{i % 3}"],
            "metadata": {
                "created": "2024-01-01T00:00:00Z",
                "modified": "2024-06-01T00:00:00Z",
                "version": i,
            },
        })

    for i in range(1, 251):
        data["manyProperties"][f"property{i}"] = {
            "value": f"Value for property {i}",
            "type": "even" if i % 2 == 0 else "odd",
            "data": f"Some additional data for property {i}" * 3,
        }

    for i in range(1, 51):
        data["nested"]["level1"]["level2"]["items"].append({
            "itemId": i,
            "content": f"Content for nested item {i}. This has some text to make it longer." * 2,
        })

    return data


@pytest.fixture
def large_document() -> dict:
    return build_large_document()


@pytest.fixture
def write_json(tmp_path: Path):
    """Factory: write a value as a .json file and return its path as a string."""
    counter = {"n": 0}

    def _write(value, name: str = None) -> str:
        counter["n"] += 1
        path = tmp_path / (name or f"doc{counter['n']}.json")
        path.write_text(json.dumps(value, indent=2), encoding="utf-8")
        return str(path)

    return _write


@pytest.fixture
def write_text(tmp_path: Path):
    """Factory: write raw text (e.g. malformed JSON) and return its path."""

    def _write(text: str, name: str = "raw.json") -> str:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return str(path)

    return _write
