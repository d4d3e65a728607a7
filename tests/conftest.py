"""Pytest configuration and fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from notefold.errors import DocumentReadError, DocumentWriteError
from notefold.models import Document
from notefold.vault.store import parse_header


class MemoryStore:
    """In-memory DocumentStore that records every write."""

    def __init__(
        self,
        files: dict[str, str],
        declared: dict[str, str] | None = None,
        headers: dict[str, dict[str, Any]] | None = None,
    ):
        self.texts = dict(files)
        self.declared = declared or {}
        self.header_overrides = headers or {}
        self.writes: list[tuple[str, str]] = []
        self.fail_reads: set[str] = set()
        self.fail_writes: set[str] = set()

    @staticmethod
    def _doc(path: str) -> Document:
        name = path.rpartition("/")[2]
        if name.endswith(".md"):
            name = name[:-3]
        return Document(path=path, name=name)

    async def list_documents(self) -> list[Document]:
        return [self._doc(path) for path in self.texts]

    async def read_cached(self, document: Document) -> str:
        if document.path in self.fail_reads:
            raise DocumentReadError(document.path, "boom")
        return self.texts[document.path]

    async def read_fresh(self, document: Document) -> str:
        return await self.read_cached(document)

    async def write_full(self, document: Document, text: str) -> None:
        if document.path in self.fail_writes:
            raise DocumentWriteError(document.path, "disk full")
        self.texts[document.path] = text
        self.writes.append((document.path, text))

    async def get_header(self, document: Document) -> dict[str, Any]:
        if document.path in self.header_overrides:
            return self.header_overrides[document.path]
        return parse_header(await self.read_cached(document))

    def get_document(self, path: str) -> Document | None:
        if path in self.texts:
            return self._doc(path)
        if f"{path}.md" in self.texts:
            return self._doc(f"{path}.md")
        return None

    def resolve_link_target(self, name: str, from_path: str) -> Document | None:
        exact = self.get_document(name)
        if exact is not None:
            return exact
        for path in self.texts:
            if self._doc(path).name == name:
                return self._doc(path)
        return None

    def get_declared_property_kind(self, key: str) -> str | None:
        return self.declared.get(key)


def note(header: str | None, body: str = "") -> str:
    """Build note text from header YAML lines and a body."""
    if header is None:
        return body
    return f"---\n{header}\n---\n{body}"


def write_note(root: Path, rel: str, text: str) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def vault_path(tmp_path: Path) -> Path:
    """A small on-disk vault."""
    vault = tmp_path / "vault"
    (vault / ".obsidian").mkdir(parents=True)
    write_note(vault, "Projects/Alpha.md", note("status: active\ntags:\n- x", "- [ ] write intro #todo\n- [x] outline\n"))
    write_note(vault, "Projects/Beta.md", note("status: paused\ntags: y\nowner: '[[People/Ann|Ann]]'", "See [[Alpha]].\n- [-] dropped idea\n"))
    write_note(vault, "People/Ann.md", note("role: lead", "Works on [[Alpha]].\n"))
    write_note(vault, "Summary.md", note("title: Summary", "# Summary\n"))
    return vault
