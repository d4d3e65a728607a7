"""List-item scanning and the single-line status toggle."""

from __future__ import annotations

import asyncio
import logging
import re
from collections import Counter
from dataclasses import dataclass
from typing import Sequence

from .errors import DocumentReadError, DocumentWriteError
from .models import Document, ListItem
from .vault.parser import iter_body_lines, parse_list_item
from .vault.store import DocumentStore

logger = logging.getLogger(__name__)

# Only binary open/closed items are rewritten
TOGGLE_PATTERN = re.compile(r"^(\s*(?:[-*+]|\d+[.)])\s+\[)([ xX])(\])(?=\s|$)")


@dataclass(frozen=True)
class ScanOptions:
    include_completed: bool = True
    contains: str = ""  # case-insensitive substring filter on the item text


def items_in_text(document: Document, text: str) -> list[ListItem]:
    """Every list item in `text`, in line order. Pure."""
    items = []
    for idx, line in iter_body_lines(text.split("\n")):
        parsed = parse_list_item(line)
        if parsed is None:
            continue
        status, rest = parsed
        items.append(ListItem(document=document, line_index=idx, status_char=status, text=rest))
    return items


def item_matches(item: ListItem, options: ScanOptions) -> bool:
    if item.completed and not options.include_completed:
        return False
    needle = options.contains.strip().lower()
    if needle and needle not in item.text.lower():
        return False
    return True


async def scan_list_items(
    store: DocumentStore,
    options: ScanOptions | None = None,
    order: Sequence[Document] | None = None,
) -> list[ListItem]:
    """Scan the corpus for list items.

    Documents are visited in path order unless `order` is given, in which
    case it is used unchanged. Unreadable documents are skipped.
    """
    options = options or ScanOptions()
    if order is None:
        documents = sorted(await store.list_documents(), key=lambda d: d.path)
    else:
        documents = list(order)

    results: list[ListItem] = []
    for doc in documents:
        try:
            text = await store.read_cached(doc)
        except DocumentReadError as e:
            logger.warning(f"Skipping {doc.path}: {e.reason}")
            continue
        results.extend(item for item in items_in_text(doc, text) if item_matches(item, options))
    return results


def rewrite_status_line(line: str, completed: bool) -> str | None:
    """Return `line` with its status set to x or blank, or None if unchanged.

    Only the status character moves. Lines that are not binary list items
    (including cancelled ones) are never rewritten.
    """
    match = TOGGLE_PATTERN.match(line)
    if not match:
        return None
    current = match.group(2)
    if (current in ("x", "X")) == completed:
        return None
    status = "x" if completed else " "
    return line[: match.start(2)] + status + line[match.end(2):]


def toggle_text(text: str, line_index: int, completed: bool) -> str | None:
    """Apply the rewrite to one line of `text`. None when nothing changes."""
    lines = text.split("\n")
    if line_index < 0 or line_index >= len(lines):
        return None
    updated = rewrite_status_line(lines[line_index], completed)
    if updated is None:
        return None
    lines[line_index] = updated
    return "\n".join(lines)


class ItemToggler:
    """The one toggle path shared by every view that offers a checkbox.

    Each call re-reads the document fresh and writes only when the targeted
    line changed. Calls on the same document are serialized within this
    process so overlapping toggles cannot drop each other's edit.
    """

    def __init__(self, store: DocumentStore):
        self.store = store
        self._locks: dict[str, asyncio.Lock] = {}
        self._pending: Counter[str] = Counter()

    def is_pending(self, document: Document, line_index: int) -> bool:
        """True while a toggle for this line is running; views disable the control."""
        return self._pending[f"{document.path}:{line_index}"] > 0

    def _lock_for(self, document: Document) -> asyncio.Lock:
        lock = self._locks.get(document.path)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[document.path] = lock
        return lock

    async def toggle(self, document: Document, line_index: int, completed: bool) -> bool:
        """Set one item's status. Returns True when the document was written."""
        item_id = f"{document.path}:{line_index}"
        self._pending[item_id] += 1
        try:
            async with self._lock_for(document):
                return await self._toggle(document, line_index, completed)
        finally:
            self._pending[item_id] -= 1
            if not self._pending[item_id]:
                del self._pending[item_id]

    async def _toggle(self, document: Document, line_index: int, completed: bool) -> bool:
        try:
            text = await self.store.read_fresh(document)
        except DocumentReadError as e:
            logger.warning(f"Cannot toggle {document.path}:{line_index}: {e.reason}")
            return False

        updated = toggle_text(text, line_index, completed)
        if updated is None:
            return False

        try:
            await self.store.write_full(document, updated)
        except DocumentWriteError as e:
            logger.error(f"Toggle write failed: {e}")
            return False
        logger.debug(f"Set {document.path}:{line_index} to {'done' if completed else 'open'}")
        return True

    async def toggle_item(self, item: ListItem, completed: bool) -> bool:
        if not item.toggleable:
            return False
        return await self.toggle(item.document, item.line_index, completed)
