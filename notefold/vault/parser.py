"""Markdown parsing utilities for bracket-links, header blocks, list items and tags."""

from __future__ import annotations

import re
from typing import Iterable, Iterator

# Match [[target]], [[target|display]], [[target#section]], [[target#section|display]]
WIKILINK_PATTERN = re.compile(r"\[\[([^\]|#]+)(?:#[^\]|]*)?(?:\|([^\]]+))?\]\]")

# A whole header value that is exactly one bracket-link
BRACKET_LINK_VALUE = re.compile(r"^\s*\[\[([^\]|#]+)(?:#[^\]|]*)?(?:\|([^\]]+))?\]\]\s*$")

# Leading ---/--- header block. Group 1 is the YAML text.
HEADER_PATTERN = re.compile(r"\A---[ \t]*\r?\n(.*?)(?:\r?\n)?^---[ \t]*(?:\r?\n|\Z)", re.DOTALL | re.MULTILINE)

# Bullet ("-", "*", "+" or "1." / "1)") followed by a single bracketed status character
LIST_ITEM_PATTERN = re.compile(r"^(\s*(?:[-*+]|\d+[.)])\s+\[)(.)(\])(?=\s|$)(.*)$")

FENCE_PATTERN = re.compile(r"^\s*(```|~~~)")

TIMESTAMP_TOKEN = re.compile(r"\d{8}-\d{4}")

MORE_MARKER = "%% more %%"


def parse_bracket_link(text: str) -> tuple[str, str | None] | None:
    """Parse a value that is exactly one bracket-link.

    Returns (target, display) with display None when not given, or None
    when the text is not a bracket-link.
    """
    match = BRACKET_LINK_VALUE.match(text)
    if not match:
        return None
    target = match.group(1).strip()
    display = match.group(2).strip() if match.group(2) else None
    return target, display


def is_bracket_link(value: object) -> bool:
    return isinstance(value, str) and BRACKET_LINK_VALUE.match(value) is not None


def link_display_name(target: str) -> str:
    """Final path segment with its extension stripped."""
    segment = target.rstrip("/").rpartition("/")[2]
    stem, dot, ext = segment.rpartition(".")
    if dot and stem and ext and "/" not in ext and " " not in ext:
        return stem
    return segment


def format_bracket_link(target: str, display: str | None = None) -> str:
    """Render [[target]] or [[target|display]] when display differs from the default."""
    if display and display != link_display_name(target):
        return f"[[{target}|{display}]]"
    return f"[[{target}]]"


def extract_links(content: str) -> list[str]:
    """Extract all bracket-link targets from content, deduplicated in order."""
    seen = set()
    result = []
    for target, _display in WIKILINK_PATTERN.findall(content):
        target = target.strip()
        if target and target not in seen:
            seen.add(target)
            result.append(target)
    return result


def split_header(text: str) -> tuple[str | None, str]:
    """Split text into (header YAML, body). Header is None when absent.

    The body is returned byte-for-byte as it follows the closing delimiter.
    """
    match = HEADER_PATTERN.match(text)
    if not match:
        return None, text
    return match.group(1), text[match.end():]


def strip_header(text: str) -> str:
    return split_header(text)[1]


def header_line_count(lines: list[str]) -> int:
    """Number of leading lines occupied by a ---/--- header block (0 if none)."""
    if not lines or lines[0].rstrip("\r").rstrip() != "---":
        return 0
    for idx in range(1, len(lines)):
        if lines[idx].rstrip("\r").rstrip() == "---":
            return idx + 1
    return 0


def iter_body_lines(lines: list[str]) -> Iterator[tuple[int, str]]:
    """Yield (index, line) for body lines outside the header and fenced code.

    Indexes stay absolute so callers can address the original line.
    """
    fence: str | None = None
    for idx in range(header_line_count(lines), len(lines)):
        line = lines[idx]
        match = FENCE_PATTERN.match(line)
        if match:
            marker = match.group(1)
            if fence is None:
                fence = marker
            elif fence == marker:
                fence = None
            continue
        if fence is None:
            yield idx, line


def parse_list_item(line: str) -> tuple[str, str] | None:
    """Return (status_char, trailing text) for a list-item line, else None."""
    match = LIST_ITEM_PATTERN.match(line.rstrip("\r"))
    if not match:
        return None
    return match.group(2), match.group(4).strip()


def normalize_tag(tag: str) -> str:
    """"#name" form of a tag, or "" when there is no name after the #."""
    tag = tag.strip()
    if not tag.lstrip("#"):
        return ""
    return tag if tag.startswith("#") else f"#{tag}"


def build_tag_pattern(tags: Iterable[str]) -> re.Pattern[str] | None:
    """Case-insensitive alternation matching any tag as a whole token."""
    normalized = []
    for tag in tags:
        tag = normalize_tag(tag)
        if tag and tag not in normalized:
            normalized.append(tag)
    if not normalized:
        return None
    # Longest first so "#todo/work" wins over "#todo"
    normalized.sort(key=len, reverse=True)
    alternation = "|".join(re.escape(tag) for tag in normalized)
    return re.compile(rf"(?<![\w#/])({alternation})(?![\w/-])", re.IGNORECASE)


def truncate_content(text: str, limit: int | None) -> str:
    """Cut at the %% more %% marker, then at `limit` characters."""
    output = text
    more_index = output.find(MORE_MARKER)
    if more_index != -1:
        output = output[:more_index].strip() + "\n\n*Content truncated...*"

    if limit and len(output) > limit:
        output = output[:limit].rstrip() + "..."

    return output
