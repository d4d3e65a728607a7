"""Tests for corpus-wide property aggregation."""

import pytest

from notefold.models import Document, LinkRef, PropertyKind
from notefold.properties.aggregate import aggregate_headers, aggregate_properties

from .conftest import MemoryStore, note

A = Document(path="A.md", name="A")
B = Document(path="B.md", name="B")
C = Document(path="C.md", name="C")
D = Document(path="D.md", name="D")


def _summary(entries):
    return [(e.key, [d.path for d in e.sources]) for e in entries]


def test_scenario_three_documents():
    headers = [(A, {"tags": ["x"]}), (B, {"tags": "y"}), (C, {"status": "draft"})]
    result = aggregate_headers(headers)
    assert _summary(result["tags"]) == [("x", ["A.md"]), ("y", ["B.md"])]


def test_order_is_first_occurrence_and_repeats_append_sources():
    headers = [(A, {"tags": ["x"]}), (B, {"tags": "y"}), (D, {"tags": ["y", "x"]})]
    result = aggregate_headers(headers)
    assert _summary(result["tags"]) == [("x", ["A.md", "D.md"]), ("y", ["B.md", "D.md"])]


def test_repeated_value_in_one_document_counts_once():
    headers = [
        (A, {"tags": ["x", "x"]}),
        (B, {"tags": ["y", "x", "[[x]]"]}),
    ]
    result = aggregate_headers(headers)
    assert _summary(result["tags"]) == [("x", ["A.md", "B.md"]), ("y", ["B.md"])]


def test_sources_count_matches_documents_per_identity():
    headers = [
        (A, {"related": "[[Projects/Foo|Foo]]"}),
        (B, {"related": ["[[Projects/Foo]]", "[[Bar]]"]}),
        (C, {"related": LinkRef(path="Projects/Foo")}),
    ]
    entries = aggregate_headers(headers)["related"]
    by_key = {e.key: e for e in entries}
    assert len(by_key["Projects/Foo"].sources) == 3
    assert len(by_key["Bar"].sources) == 1
    assert all(e.kind is PropertyKind.LINK for e in entries)
    # First occurrence decides the display name
    assert by_key["Projects/Foo"].display_name == "Foo"


def test_excluded_and_reserved_keys_are_dropped():
    headers = [(A, {"aliases": ["a"], "position": {"start": 0}, "status": "x"})]
    result = aggregate_headers(headers, exclude_keys=["aliases"])
    assert list(result) == ["status"]


def test_keys_with_no_entries_are_dropped():
    headers = [(A, {"done": False, "empty": None}), (B, {"done": False})]
    assert aggregate_headers(headers) == {}


def test_checkbox_membership_is_per_document():
    headers = [(A, {"done": True}), (B, {"done": False}), (C, {"done": True})]
    entries = aggregate_headers(headers)["done"]
    assert [e.key for e in entries] == ["A.md", "C.md"]
    assert all(e.kind is PropertyKind.CHECKBOX for e in entries)


def test_one_string_flips_checkbox_key_to_text():
    headers = [(A, {"done": True}), (B, {"done": True}), (C, {"done": "soon"})]
    entries = aggregate_headers(headers)["done"]
    assert [e.key for e in entries] == ["true", "soon"]
    assert entries[0].sources == [A, B]


@pytest.mark.asyncio
async def test_aggregate_properties_scans_in_path_order():
    store = MemoryStore(
        {
            "b.md": note("tags: y"),
            "a.md": note("tags:\n- x"),
            "c.md": note(None, "no header here"),
        }
    )
    result = await aggregate_properties(store)
    assert _summary(result["tags"]) == [("x", ["a.md"]), ("y", ["b.md"])]


@pytest.mark.asyncio
async def test_aggregate_properties_is_deterministic():
    store = MemoryStore(
        {
            "a.md": note("tags: [x, y]\nowner: '[[Ann]]'"),
            "b.md": note("tags: [y, z]\nowner: '[[Bob]]'"),
        }
    )
    first = await aggregate_properties(store)
    second = await aggregate_properties(store)
    assert {k: [e.to_dict() for e in v] for k, v in first.items()} == {
        k: [e.to_dict() for e in v] for k, v in second.items()
    }
    assert list(first) == ["tags", "owner"]


@pytest.mark.asyncio
async def test_unreadable_document_is_skipped():
    store = MemoryStore({"a.md": note("tags: x"), "b.md": note("tags: y")})
    store.fail_reads.add("b.md")
    result = await aggregate_properties(store)
    assert _summary(result["tags"]) == [("x", ["a.md"])]


@pytest.mark.asyncio
async def test_declared_kind_comes_from_store():
    store = MemoryStore({"a.md": note("reviewed: 'yes'")}, declared={"reviewed": "checkbox"})
    result = await aggregate_properties(store)
    # Declared checkbox, but only a real True counts as checked
    assert result == {}


@pytest.mark.asyncio
async def test_excluded_paths_do_not_contribute():
    store = MemoryStore({"a.md": note("tags: x"), "hub.md": note("tags: [x, y]")})
    result = await aggregate_properties(store, exclude_paths=["hub.md"])
    assert _summary(result["tags"]) == [("x", ["a.md"])]
