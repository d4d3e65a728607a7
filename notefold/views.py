"""Backlink and daily-note listings with truncated body previews."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from .errors import DocumentReadError
from .models import Document, HeaderMap
from .vault.parser import TIMESTAMP_TOKEN, extract_links, strip_header, truncate_content
from .vault.store import DocumentStore

logger = logging.getLogger(__name__)

BACKLINK_DEFAULTS: dict[str, Any] = {
    "target": None,
    "sort": "ctime",
    "limit": 20,
    "truncate": 400,
    "heading": "Backlinks",
}

DAILY_DEFAULTS: dict[str, Any] = {
    "date": None,
    "order": "desc",
    "size": "100%",
    "limit": None,
    "truncate": 800,
    "includeCurrent": False,
    "heading": "Daily notes",
}

DAILY_NAME_PATTERN = re.compile(r"^\d{8}-\d{4}(?:\.excalidraw)?\.md$")
EMPTY_PREVIEW = "(empty note)"


@dataclass
class NotePreview:
    document: Document
    title: str
    preview: str = ""
    embed: str | None = None  # set instead of a preview for drawings


@dataclass
class ListingView:
    heading: str
    entries: list[NotePreview] = field(default_factory=list)
    message: str | None = None  # shown instead of entries

    @property
    def title(self) -> str:
        return f"{self.heading} ({len(self.entries)})"


def _as_int(value: Any) -> int | None:
    if value is None or value is False or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def lookup_header_path(header: HeaderMap, dotted: str) -> Any:
    """Look up "a.b.c" in nested header mappings. None when any part is missing."""
    current: Any = header
    for part in dotted.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return None
        current = current[part]
    return current


async def _preview(store: DocumentStore, doc: Document, limit: int | None) -> str:
    try:
        text = await store.read_cached(doc)
    except DocumentReadError as e:
        logger.warning(f"Read failed for {doc.path}: {e.reason}")
        text = ""
    content = truncate_content(strip_header(text), limit)
    return content if content.strip() else EMPTY_PREVIEW


async def collect_backlinks(
    store: DocumentStore,
    options: Mapping[str, Any],
    source_path: str = "",
) -> ListingView:
    """Documents whose body links resolve to the target (default: the source document)."""
    heading = str(options.get("heading") or BACKLINK_DEFAULTS["heading"])
    documents = await store.list_documents()

    target_name = options.get("target")
    if target_name:
        target = store.resolve_link_target(str(target_name), source_path)
    else:
        target = store.get_document(source_path) if source_path else None
    if target is None:
        return ListingView(heading, message=f"Target note not found: {target_name or '(current file)'}")

    linking: list[Document] = []
    for doc in documents:
        if doc.path == target.path:
            continue
        try:
            text = await store.read_cached(doc)
        except DocumentReadError as e:
            logger.warning(f"Skipping {doc.path}: {e.reason}")
            continue
        for link in extract_links(strip_header(text)):
            resolved = store.resolve_link_target(link, doc.path)
            if resolved is not None and resolved.path == target.path:
                linking.append(doc)
                break

    if not linking:
        return ListingView(heading, message=f"No backlinks to {target.name}.")

    sort_key = str(options.get("sort") or "ctime").lower()
    if sort_key == "mtime":
        linking.sort(key=lambda d: d.mtime, reverse=True)
    else:
        linking.sort(key=lambda d: d.ctime, reverse=True)

    limit = _as_int(options.get("limit"))
    if limit:
        linking = linking[:limit]

    truncate = _as_int(options.get("truncate"))
    view = ListingView(heading)
    for doc in linking:
        view.entries.append(NotePreview(doc, doc.name, await _preview(store, doc, truncate)))
    return view


def daily_target_date(options: Mapping[str, Any], source_path: str) -> str:
    """YYYYMMDD from the date option, else the source path, else today."""
    target_date = re.sub(r"[^0-9]", "", str(options.get("date") or ""))
    if not target_date:
        match = TIMESTAMP_TOKEN.search(source_path)
        target_date = match.group(0)[:8] if match else datetime.now().strftime("%Y%m%d")
    return target_date[:8]


async def collect_daily_notes(
    store: DocumentStore,
    options: Mapping[str, Any],
    source_path: str = "",
) -> ListingView:
    """Timestamped notes (YYYYMMDD-HHMM) of one day, newest first by default."""
    heading = str(options.get("heading") or DAILY_DEFAULTS["heading"])
    target_date = daily_target_date(options, source_path)
    include_current = bool(options.get("includeCurrent"))

    files = [
        doc
        for doc in await store.list_documents()
        if DAILY_NAME_PATTERN.match(doc.basename)
        and (include_current or doc.path != source_path)
        and doc.basename.startswith(target_date)
    ]
    if not files:
        return ListingView(heading, message=f"No notes found for {target_date}.")

    descending = str(options.get("order") or "desc").lower() != "asc"
    files.sort(key=lambda d: d.basename, reverse=descending)

    limit = _as_int(options.get("limit"))
    if limit:
        files = files[:limit]

    truncate = _as_int(options.get("truncate"))
    size = options.get("size")
    view = ListingView(heading)
    for doc in files:
        if doc.name.endswith(".excalidraw"):
            embed = f"![[{doc.path}{'|' + str(size) if size else ''}]]"
            view.entries.append(NotePreview(doc, doc.name[: -len(".excalidraw")], embed=embed))
            continue
        view.entries.append(NotePreview(doc, doc.name, await _preview(store, doc, truncate)))
    return view
