"""Data models for documents, aggregated properties and list items."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

HeaderMap = Mapping[str, Any]


@dataclass(frozen=True)
class Document:
    """A document owned by the store. Identified by its vault-relative path."""

    path: str  # POSIX path relative to the vault root, e.g. "Projects/Foo.md"
    name: str  # filename without extension
    ctime: float = 0.0
    mtime: float = 0.0

    @property
    def folder(self) -> str:
        """Parent folder path, "" for the vault root."""
        head, _, _ = self.path.rpartition("/")
        return head

    @property
    def basename(self) -> str:
        """Filename including extension."""
        return self.path.rpartition("/")[2]

    @property
    def link_path(self) -> str:
        """Path as written inside a bracket-link (no .md extension)."""
        if self.path.lower().endswith(".md"):
            return self.path[:-3]
        return self.path


@dataclass(frozen=True)
class LinkRef:
    """A link-like header value produced by a store that resolves links itself."""

    path: str
    display: str | None = None


class PropertyKind(str, Enum):
    """Semantic kind of a header property, inferred once per aggregation pass."""

    CHECKBOX = "checkbox"
    LINK = "link"
    PLAIN_TEXT = "text"


@dataclass
class AggregatedEntry:
    """One deduplicated value of a property, with every document that holds it."""

    key: str  # identity: link target when present, else normalized string
    display_name: str
    link_target: str | None
    kind: PropertyKind
    sources: list[Document] = field(default_factory=list)  # first-occurrence order

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "key": self.key,
            "display_name": self.display_name,
            "link_target": self.link_target,
            "kind": self.kind.value,
            "sources": [doc.path for doc in self.sources],
        }


@dataclass(frozen=True)
class ListItem:
    """A bracket-status list item at an exact line of a document."""

    document: Document
    line_index: int
    status_char: str
    text: str

    @property
    def toggleable(self) -> bool:
        """True for binary open/closed items only."""
        return self.status_char in (" ", "x", "X")

    @property
    def completed(self) -> bool:
        """Done or cancelled. Cancelled items are completed but never toggleable."""
        return self.status_char in ("x", "X", "-")

    @property
    def item_id(self) -> str:
        """Stable identifier carried alongside any rendered representation."""
        return f"{self.document.path}:{self.line_index}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.item_id,
            "path": self.document.path,
            "line": self.line_index,
            "status": self.status_char,
            "text": self.text,
            "completed": self.completed,
            "toggleable": self.toggleable,
        }


@dataclass(frozen=True)
class HashtagMatch:
    """A line carrying one of the configured tags."""

    document: Document
    line_index: int
    text: str
    tags: tuple[str, ...]  # matched tags, lowercased, in line order
    item: ListItem | None = None  # set when the same line is also a list item

    @property
    def item_id(self) -> str:
        return f"{self.document.path}:{self.line_index}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.item_id,
            "path": self.document.path,
            "line": self.line_index,
            "text": self.text,
            "tags": list(self.tags),
            "item": self.item.to_dict() if self.item else None,
        }


@dataclass(frozen=True)
class SyncContext:
    """Where an aggregation is displayed, used to pick the sync target."""

    target: str | None = None  # explicit association (link text or path)
    source_path: str | None = None  # document hosting the aggregated view
    focused_path: str | None = None  # currently focused document
