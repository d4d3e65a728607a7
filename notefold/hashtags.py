"""Find lines carrying configured hashtags."""

from __future__ import annotations

import logging
import re
from typing import Iterable

from .errors import DocumentReadError
from .models import Document, HashtagMatch, ListItem
from .vault.parser import build_tag_pattern, iter_body_lines, parse_list_item
from .vault.store import DocumentStore

logger = logging.getLogger(__name__)


def tags_in_text(document: Document, text: str, tags: Iterable[str]) -> list[HashtagMatch]:
    """Every body line of `text` mentioning one of `tags`. Pure."""
    pattern = build_tag_pattern(tags)
    if pattern is None:
        return []
    return _match_lines(document, text, pattern)


def _match_lines(document: Document, text: str, pattern: re.Pattern[str]) -> list[HashtagMatch]:
    matches = []
    for idx, line in iter_body_lines(text.split("\n")):
        found = [m.group(1).lower() for m in pattern.finditer(line)]
        if not found:
            continue
        item = None
        parsed = parse_list_item(line)
        if parsed is not None:
            item = ListItem(document=document, line_index=idx, status_char=parsed[0], text=parsed[1])
        matches.append(
            HashtagMatch(
                document=document,
                line_index=idx,
                text=line.strip(),
                tags=tuple(dict.fromkeys(found)),
                item=item,
            )
        )
    return matches


async def scan_hashtags(store: DocumentStore, tags: Iterable[str]) -> list[HashtagMatch]:
    """Scan the corpus in path order for lines tagged with any of `tags`."""
    pattern = build_tag_pattern(tags)
    if pattern is None:
        return []

    results: list[HashtagMatch] = []
    for doc in sorted(await store.list_documents(), key=lambda d: d.path):
        try:
            text = await store.read_cached(doc)
        except DocumentReadError as e:
            logger.warning(f"Skipping {doc.path}: {e.reason}")
            continue
        results.extend(_match_lines(doc, text, pattern))
    return results
