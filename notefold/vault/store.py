"""Document store contract and a filesystem-backed vault implementation."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

import frontmatter
import yaml

from ..errors import DocumentReadError, DocumentWriteError
from ..models import Document, HeaderMap

logger = logging.getLogger(__name__)


class DocumentStore(Protocol):
    """What the core needs from the host that owns the documents."""

    async def list_documents(self) -> list[Document]: ...

    async def read_cached(self, document: Document) -> str: ...

    async def read_fresh(self, document: Document) -> str: ...

    async def write_full(self, document: Document, text: str) -> None: ...

    async def get_header(self, document: Document) -> HeaderMap: ...

    def get_document(self, path: str) -> Document | None: ...

    def resolve_link_target(self, name: str, from_path: str) -> Document | None: ...

    def get_declared_property_kind(self, key: str) -> str | None: ...


def parse_header(text: str) -> dict[str, Any]:
    """Parse the header block of a document with python-frontmatter."""
    post = frontmatter.loads(text)
    return dict(post.metadata)


def _atomic_write(target_path: Path, content: str) -> None:
    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=target_path.parent, delete=False, newline=""
        ) as temp_file:
            temp_path = Path(temp_file.name)
            temp_file.write(content)
            temp_file.flush()
            os.fsync(temp_file.fileno())
        os.replace(temp_path, target_path)
    finally:
        if temp_path is not None and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                pass


class FileVault:
    """A directory of markdown files exposed through the DocumentStore contract.

    The document index is rebuilt by `list_documents()`; cached reads are
    keyed on mtime so an external edit is picked up on the next pass.
    """

    TYPES_FILE = Path(".obsidian") / "types.json"

    def __init__(self, root: Path):
        self.root = root
        self._documents: dict[str, Document] = {}
        self._cache: dict[str, tuple[float, str]] = {}  # path -> (mtime, text)
        self._declared_types: dict[str, str] | None = None

    def _abs(self, document: Document) -> Path:
        return self.root / document.path

    def _scan(self) -> dict[str, Document]:
        documents: dict[str, Document] = {}
        for md_file in sorted(self.root.rglob("*.md")):
            rel = md_file.relative_to(self.root)
            # Skip hidden files and directories
            if any(part.startswith(".") for part in rel.parts):
                continue
            try:
                stat = md_file.stat()
            except OSError as e:
                logger.warning(f"Skipping {rel.as_posix()}: {e}")
                continue
            path = rel.as_posix()
            documents[path] = Document(
                path=path,
                name=md_file.stem,
                ctime=getattr(stat, "st_birthtime", stat.st_ctime),
                mtime=stat.st_mtime,
            )
        return documents

    def refresh(self) -> list[Document]:
        """Rebuild the document index synchronously."""
        self._documents = self._scan()
        return list(self._documents.values())

    async def list_documents(self) -> list[Document]:
        self._documents = await asyncio.to_thread(self._scan)
        return list(self._documents.values())

    def _read(self, document: Document, use_cache: bool) -> str:
        path = self._abs(document)
        try:
            mtime = path.stat().st_mtime
            if use_cache:
                cached = self._cache.get(document.path)
                if cached and cached[0] == mtime:
                    return cached[1]
            with path.open("r", encoding="utf-8", newline="") as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentReadError(document.path, str(e)) from e
        self._cache[document.path] = (mtime, text)
        return text

    async def read_cached(self, document: Document) -> str:
        return await asyncio.to_thread(self._read, document, True)

    async def read_fresh(self, document: Document) -> str:
        return await asyncio.to_thread(self._read, document, False)

    async def write_full(self, document: Document, text: str) -> None:
        path = self._abs(document)
        try:
            await asyncio.to_thread(_atomic_write, path, text)
        except OSError as e:
            raise DocumentWriteError(document.path, str(e)) from e
        self._cache.pop(document.path, None)

    async def get_header(self, document: Document) -> HeaderMap:
        text = await self.read_cached(document)
        try:
            return parse_header(text)
        except (yaml.YAMLError, ValueError, TypeError) as e:
            raise DocumentReadError(document.path, f"malformed header: {e}") from e

    def get_document(self, path: str) -> Document | None:
        if not self._documents:
            self.refresh()
        document = self._documents.get(path)
        if document is None and not path.lower().endswith(".md"):
            document = self._documents.get(f"{path}.md")
        return document

    def resolve_link_target(self, name: str, from_path: str) -> Document | None:
        """Resolve link text the way the editor does.

        Exact vault path first, then basename; among basename matches prefer
        the linking document's folder, then the shortest path.
        """
        if not self._documents:
            self.refresh()
        link = name.split("|", 1)[0].split("#", 1)[0].strip()
        if not link:
            return None

        exact = self.get_document(link)
        if exact is not None:
            return exact

        wanted = link.rpartition("/")[2].lower()
        if wanted.endswith(".md"):
            wanted = wanted[:-3]
        suffix = link.lower() if link.lower().endswith(".md") else f"{link.lower()}.md"
        candidates = [
            doc
            for doc in self._documents.values()
            if doc.name.lower() == wanted and doc.path.lower().endswith(suffix)
        ]
        if not candidates:
            return None

        from_folder = from_path.rpartition("/")[0]
        for doc in candidates:
            if doc.folder == from_folder:
                return doc
        return min(candidates, key=lambda d: (len(d.path), d.path))

    def _load_declared_types(self) -> dict[str, str]:
        path = self.root / self.TYPES_FILE
        if not path.is_file():
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring {self.TYPES_FILE.as_posix()}: {e}")
            return {}
        types = data.get("types", {}) if isinstance(data, dict) else {}
        if not isinstance(types, dict):
            return {}
        return {str(k): str(v) for k, v in types.items()}

    def get_declared_property_kind(self, key: str) -> str | None:
        if self._declared_types is None:
            self._declared_types = self._load_declared_types()
        return self._declared_types.get(key)
