"""Backlinks and daily commands - note listings with body previews."""

from __future__ import annotations

import asyncio
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel

from ..config import parse_options
from ..views import BACKLINK_DEFAULTS, DAILY_DEFAULTS, ListingView, collect_backlinks, collect_daily_notes
from ..vault.store import FileVault


def _render(console: Console, view: ListingView) -> None:
    if view.message:
        console.print(escape(view.message))
        return

    console.print(f"[bold]{escape(view.title)}[/bold]")
    for entry in view.entries:
        if entry.embed:
            console.print(Panel(escape(entry.embed), title=escape(entry.title), title_align="left"))
            continue
        panel = Panel(
            Markdown(entry.preview),
            title=escape(entry.title),
            subtitle=escape(entry.document.path),
            title_align="left",
        )
        console.print(panel)


def run_backlinks(vault_path: Path, source: str | None, source_path: str = "") -> int:
    """Show documents linking to a target. Returns the number shown."""
    console = Console()
    options = parse_options(source, BACKLINK_DEFAULTS)
    view = asyncio.run(collect_backlinks(FileVault(vault_path), options, source_path))
    _render(console, view)
    return len(view.entries)


def run_daily(vault_path: Path, source: str | None, source_path: str = "") -> int:
    """Show the timestamped notes of one day. Returns the number shown."""
    console = Console()
    options = parse_options(source, DAILY_DEFAULTS)
    view = asyncio.run(collect_daily_notes(FileVault(vault_path), options, source_path))
    _render(console, view)
    return len(view.entries)
