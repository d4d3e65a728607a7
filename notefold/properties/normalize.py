"""Turn raw header values into identity keys, display names and link targets."""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Any, Iterator

from ..models import Document, LinkRef, PropertyKind
from ..vault.parser import TIMESTAMP_TOKEN, link_display_name, parse_bracket_link


@dataclass(frozen=True)
class NormalizedValue:
    key: str
    display_name: str
    link_target: str | None = None


def expand_values(raw: Any) -> Iterator[Any]:
    """Yield the non-empty scalar elements of a raw header value."""
    if isinstance(raw, (list, tuple)):
        for element in raw:
            yield from expand_values(element)
        return
    if raw is None:
        return
    if isinstance(raw, str) and not raw.strip():
        return
    yield raw


def stringify(value: Any) -> str:
    """String form of a scalar header value as it reads in the header."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    if isinstance(value, LinkRef):
        return value.path
    return str(value).strip()


def checkbox_display_name(document: Document) -> str:
    """Timestamp token from names like 20240105-0930, else the full name."""
    match = TIMESTAMP_TOKEN.search(document.name)
    return match.group(0) if match else document.name


def normalize_value(value: Any, kind: PropertyKind, document: Document) -> NormalizedValue | None:
    """Normalize one scalar element of a property owned by `document`.

    Returns None when the value contributes nothing (an unchecked checkbox).
    """
    if kind is PropertyKind.CHECKBOX:
        # Membership is per document, not per value
        if value is not True:
            return None
        return NormalizedValue(
            key=document.path,
            display_name=checkbox_display_name(document),
            link_target=document.link_path,
        )

    if kind is PropertyKind.LINK:
        if isinstance(value, LinkRef):
            return NormalizedValue(
                key=value.path,
                display_name=value.display or link_display_name(value.path),
                link_target=value.path,
            )
        if isinstance(value, str):
            parsed = parse_bracket_link(value)
            if parsed:
                target, display = parsed
                return NormalizedValue(
                    key=target,
                    display_name=display or link_display_name(target),
                    link_target=target,
                )

    text = stringify(value)
    return NormalizedValue(key=text, display_name=text)
