"""Aggregate header properties across the corpus into deduplicated, sourced entries."""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from ..config import RESERVED_POSITION_KEY
from ..errors import DocumentReadError
from ..models import AggregatedEntry, Document, HeaderMap
from ..vault.store import DocumentStore
from .classify import classify_property
from .normalize import expand_values, normalize_value

logger = logging.getLogger(__name__)

Aggregated = dict[str, list[AggregatedEntry]]


def aggregate_headers(
    headers: list[tuple[Document, HeaderMap]],
    exclude_keys: Iterable[str] = (),
    declared_kind: Callable[[str], str | None] | None = None,
) -> Aggregated:
    """Aggregate already-loaded headers. `headers` must be in scan order.

    Keys come out in first-seen order; entries in first-occurrence order.
    """
    excluded = set(exclude_keys) | {RESERVED_POSITION_KEY}

    keys: list[str] = []
    seen_keys: set[str] = set()
    for _doc, header in headers:
        for key in header:
            if key not in excluded and key not in seen_keys:
                seen_keys.add(key)
                keys.append(key)

    result: Aggregated = {}
    maps = [header for _doc, header in headers]
    for key in keys:
        declared = declared_kind(key) if declared_kind else None
        kind = classify_property(key, maps, declared)

        entries: dict[str, AggregatedEntry] = {}
        for doc, header in headers:
            if key not in header:
                continue
            contributed: set[str] = set()
            for value in expand_values(header[key]):
                normalized = normalize_value(value, kind, doc)
                if normalized is None or normalized.key in contributed:
                    continue
                contributed.add(normalized.key)
                entry = entries.get(normalized.key)
                if entry is None:
                    entry = AggregatedEntry(
                        key=normalized.key,
                        display_name=normalized.display_name,
                        link_target=normalized.link_target,
                        kind=kind,
                    )
                    entries[normalized.key] = entry
                entry.sources.append(doc)

        if entries:
            result[key] = list(entries.values())

    return result


async def load_headers(
    store: DocumentStore,
    exclude_paths: Iterable[str] = (),
) -> list[tuple[Document, HeaderMap]]:
    """Read every document header in path order, skipping unreadable ones."""
    skipped = set(exclude_paths)
    documents = sorted(await store.list_documents(), key=lambda d: d.path)

    headers: list[tuple[Document, HeaderMap]] = []
    for doc in documents:
        if doc.path in skipped:
            continue
        try:
            header = await store.get_header(doc)
        except DocumentReadError as e:
            logger.warning(f"Skipping {doc.path}: {e.reason}")
            continue
        if header:
            headers.append((doc, header))
    return headers


async def aggregate_properties(
    store: DocumentStore,
    exclude_keys: Iterable[str] = (),
    exclude_paths: Iterable[str] = (),
) -> Aggregated:
    """Aggregate every header property in the store.

    Two passes over an unchanged corpus produce identical results.
    """
    headers = await load_headers(store, exclude_paths)
    aggregated = aggregate_headers(headers, exclude_keys, store.get_declared_property_kind)
    logger.debug(f"Aggregated {len(aggregated)} properties from {len(headers)} documents")
    return aggregated
