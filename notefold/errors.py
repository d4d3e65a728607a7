"""Error types raised by document stores and the config loader."""

from __future__ import annotations


class NotefoldError(RuntimeError):
    """Base class for notefold errors."""


class DocumentReadError(NotefoldError):
    """A document could not be read or its header could not be parsed."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to read {path}: {reason}")
        self.path = path
        self.reason = reason


class DocumentWriteError(NotefoldError):
    """A document could not be written back."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to write {path}: {reason}")
        self.path = path
        self.reason = reason


class OptionsError(NotefoldError):
    """An option overlay or config file could not be parsed."""
