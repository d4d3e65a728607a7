"""Tests for the hashtag scanner."""

import pytest

from notefold.hashtags import scan_hashtags, tags_in_text
from notefold.models import Document

from .conftest import MemoryStore, note

DOC = Document(path="a.md", name="a")


def test_tags_in_text_reports_lines_and_items():
    text = note("tags: '#todo'", "plain #todo line\n- [ ] call Bob #TODO #later\nnothing here\n")
    matches = tags_in_text(DOC, text, ["#todo", "later"])

    assert [(m.line_index, m.tags) for m in matches] == [
        (3, ("#todo",)),
        (4, ("#todo", "#later")),
    ]
    assert matches[0].item is None
    assert matches[1].item.text == "call Bob #TODO #later"
    assert matches[1].item_id == "a.md:4"


def test_repeated_tag_is_reported_once():
    (match,) = tags_in_text(DOC, "#todo and #todo again", ["todo"])
    assert match.tags == ("#todo",)


def test_tags_in_code_blocks_are_ignored():
    text = "```\n#todo in code\n```\n#todo outside"
    assert [m.line_index for m in tags_in_text(DOC, text, ["#todo"])] == [3]


def test_no_tags_means_no_matches():
    assert tags_in_text(DOC, "#todo", []) == []


@pytest.mark.asyncio
async def test_scan_hashtags_in_path_order():
    store = MemoryStore({"b.md": "#todo b", "a.md": "#todo a", "c.md": "#todos c"})
    matches = await scan_hashtags(store, ["#todo"])
    assert [(m.document.path, m.text) for m in matches] == [("a.md", "#todo a"), ("b.md", "#todo b")]


@pytest.mark.asyncio
async def test_scan_hashtags_skips_unreadable():
    store = MemoryStore({"a.md": "#todo a", "b.md": "#todo b"})
    store.fail_reads.add("a.md")
    assert [m.document.path for m in await scan_hashtags(store, ["#todo"])] == ["b.md"]


@pytest.mark.asyncio
async def test_scan_hashtags_with_empty_tag_list():
    store = MemoryStore({"a.md": "#todo a"})
    assert await scan_hashtags(store, []) == []


def test_bare_hash_does_not_match_headings():
    assert tags_in_text(DOC, "# Heading\n## Sub", ["#"]) == []
    (match,) = tags_in_text(DOC, "# Heading\nsee #todo", ["#", "todo"])
    assert match.line_index == 1
