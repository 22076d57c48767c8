"""Tests for the jq-style query focus."""

from __future__ import annotations

import pytest

from tiltshift.config import JqFocusConfig
from tiltshift.errors import FocusError
from tiltshift.focuses.jq import JqFocus, compile_query, run_query
from tiltshift.models import FileVersions


@pytest.mark.asyncio
async def test_jq_focus_reports_changed_section() -> None:
    versions = FileVersions(
        old_content='{"dependencies": {"a": "1"}, "name": "demo"}',
        new_content='{"dependencies": {"a": "2"}, "name": "demo"}',
    )

    result = await JqFocus().apply(versions, JqFocusConfig(query=".dependencies"), "package.json")

    assert result is not None
    assert result.left.artifact == '{\n  "a": "1"\n}'
    assert result.right.artifact == '{\n  "a": "2"\n}'
    assert "--- a/package.json" in result.diff_text
    assert '-  "a": "1"' in result.diff_text
    assert '+  "a": "2"' in result.diff_text


@pytest.mark.asyncio
async def test_jq_focus_ignores_changes_outside_the_query() -> None:
    versions = FileVersions(
        old_content='{"dependencies": {"a": "1"}, "version": "1.0.0"}',
        new_content='{"dependencies": {"a": "1"}, "version": "1.1.0"}',
    )

    assert await JqFocus().apply(versions, JqFocusConfig(query=".dependencies"), "package.json") is None


@pytest.mark.asyncio
async def test_jq_focus_treats_added_file_as_empty_left_side() -> None:
    versions = FileVersions(old_content=None, new_content='{"scripts": {"test": "pytest"}}')

    result = await JqFocus().apply(versions, JqFocusConfig(query=".scripts.test"), "package.json")

    assert result is not None
    assert result.left.artifact == ""
    assert result.right.artifact == '"pytest"'


@pytest.mark.asyncio
async def test_jq_focus_reads_yaml_documents() -> None:
    versions = FileVersions(
        old_content="services:\n  web:\n    image: app:1\n",
        new_content="services:\n  web:\n    image: app:2\n",
    )

    result = await JqFocus().apply(versions, JqFocusConfig(query=".services.web.image"), "docker-compose.yml")

    assert result is not None
    assert result.right.artifact == '"app:2"'


@pytest.mark.asyncio
async def test_jq_focus_raises_on_invalid_json() -> None:
    versions = FileVersions(old_content="{not json", new_content="{}")
    with pytest.raises(FocusError, match="package.json"):
        await JqFocus().apply(versions, JqFocusConfig(query="."), "package.json")


@pytest.mark.parametrize(
    ("query", "document", "expected"),
    [
        (".", {"a": 1}, [{"a": 1}]),
        (".a.b", {"a": {"b": 2}}, [2]),
        ('."a-b"', {"a-b": 3}, [3]),
        ('.["a"][1]', {"a": [1, 2]}, [2]),
        (".items[]", {"items": [1, 2]}, [1, 2]),
        (".items[] | .name", {"items": [{"name": "x"}, {"name": "y"}]}, ["x", "y"]),
        (".missing", {"a": 1}, [None]),
        (".[5]", [1], [None]),
        (".deps | keys", {"deps": {"b": 1, "a": 2}}, [["a", "b"]]),
        (".deps | length", {"deps": {"b": 1, "a": 2}}, [2]),
        (".[].name?", [{"name": "x"}, "plain"], ["x"]),
    ],
)
def test_run_query(query: str, document: object, expected: list) -> None:
    assert run_query(compile_query(query), document) == expected


@pytest.mark.parametrize("query", ["", "..", ".a.", ".a[", "foo", ".a b"])
def test_compile_query_rejects_invalid_queries(query: str) -> None:
    with pytest.raises(FocusError):
        compile_query(query)


def test_run_query_raises_on_type_errors() -> None:
    with pytest.raises(FocusError, match="Cannot index array"):
        run_query(compile_query(".a"), [1, 2])
