"""
Unit tests for the Memory data model and its serialized form.
"""

import json
import re

import pytest

from agent_memories.models import Memory, MemoryPage, MemorySource, ScoredMemory, iso_timestamp


TIMESTAMP_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


def test_new_memory_gets_unique_id_and_timestamp():
    first = Memory.new("Always use tabs for indentation", tags=["coding-style"])
    second = Memory.new("Always use tabs for indentation", tags=["coding-style"])

    assert first.id != second.id
    assert TIMESTAMP_PATTERN.match(first.created_at)
    assert first.source == MemorySource.USER
    assert first.tags == ["coding-style"]


def test_iso_timestamp_format():
    assert TIMESTAMP_PATTERN.match(iso_timestamp())


def test_to_dict_uses_camel_case_keys():
    memory = Memory(
        id="abc",
        content="Prefer pytest",
        tags=["testing"],
        source=MemorySource.AUTO,
        created_at="2025-01-31T12:00:00.000Z",
    )

    assert memory.to_dict() == {
        "id": "abc",
        "content": "Prefer pytest",
        "tags": ["testing"],
        "source": "auto",
        "createdAt": "2025-01-31T12:00:00.000Z",
    }


def test_to_json_is_pretty_printed():
    memory = Memory.new("Prefer pytest")
    text = memory.to_json()

    assert text.startswith("{\n  \"id\"")
    assert json.loads(text) == memory.to_dict()


def test_json_round_trip():
    memory = Memory.new("Never use semicolons", tags=["js", "style"], source=MemorySource.AUTO)
    assert Memory.from_json(memory.to_json()) == memory


@pytest.mark.parametrize("payload", [
    [],
    {"content": "x", "tags": [], "source": "user", "createdAt": "2025-01-31T12:00:00.000Z"},
    {"id": "a", "content": 5, "tags": [], "source": "user", "createdAt": "2025-01-31T12:00:00.000Z"},
    {"id": "a", "content": "x", "tags": "one,two", "source": "user", "createdAt": "2025-01-31T12:00:00.000Z"},
    {"id": "a", "content": "x", "tags": [1], "source": "user", "createdAt": "2025-01-31T12:00:00.000Z"},
    {"id": "a", "content": "x", "tags": [], "source": "robot", "createdAt": "2025-01-31T12:00:00.000Z"},
    {"id": "a", "content": "x", "tags": [], "source": "user"},
])
def test_from_dict_is_strict(payload):
    with pytest.raises(ValueError):
        Memory.from_dict(payload)


def test_from_json_rejects_non_json():
    with pytest.raises(ValueError):
        Memory.from_json("not json at all")


def test_scored_memory_to_dict_adds_score():
    memory = Memory.new("Use black for formatting")
    data = ScoredMemory(memory=memory, score=0.82).to_dict()

    assert data["score"] == 0.82
    assert data["id"] == memory.id
    assert data["createdAt"] == memory.created_at


def test_memory_page_to_dict():
    memory = Memory.new("Use black for formatting")
    page = MemoryPage(memories=[memory], cursor=None)

    assert page.to_dict() == {"memories": [memory.to_dict()], "cursor": None}
