"""Infer the semantic kind of a header property without a declared schema."""

from __future__ import annotations

from typing import Any, Iterable

from ..models import HeaderMap, LinkRef, PropertyKind
from ..vault.parser import is_bracket_link

DECLARED_CHECKBOX = "checkbox"


def _is_link_like(value: Any) -> bool:
    if isinstance(value, list):
        return any(_is_link_like(v) for v in value)
    return isinstance(value, LinkRef) or is_bracket_link(value)


def classify_property(
    key: str,
    headers: Iterable[HeaderMap],
    declared_kind: str | None = None,
) -> PropertyKind:
    """Classify one property key over the headers of the whole corpus.

    Checkbox when declared so, or when undeclared and every present value is
    exactly a bool. A single non-bool value anywhere rules Checkbox out.
    Otherwise Link if any value (or list element) is link-like, else PlainText.
    """
    present = [header[key] for header in headers if key in header]

    if declared_kind is not None and declared_kind.lower() == DECLARED_CHECKBOX:
        return PropertyKind.CHECKBOX
    if declared_kind is None and present and all(type(v) is bool for v in present):
        return PropertyKind.CHECKBOX

    if any(_is_link_like(v) for v in present):
        return PropertyKind.LINK
    return PropertyKind.PLAIN_TEXT
