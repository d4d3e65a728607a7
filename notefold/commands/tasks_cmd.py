"""Tasks, tags and toggle commands."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..config import NotefoldConfig
from ..errors import DocumentReadError
from ..hashtags import scan_hashtags
from ..models import Document, ListItem
from ..tasks import ItemToggler, ScanOptions, scan_list_items
from ..vault.store import FileVault
from ..views import lookup_header_path

STATUS_ICONS = {" ": "\\[ ]", "x": "[green]\\[x][/green]", "X": "[green]\\[x][/green]", "-": "[dim]\\[-][/dim]"}


async def _titles(store: FileVault, documents: list[Document], title_property: str | None) -> dict[str, str]:
    """Document title, with the configured header value beside it."""
    titles: dict[str, str] = {}
    for doc in documents:
        title = doc.name
        if title_property:
            try:
                value = lookup_header_path(await store.get_header(doc), title_property)
            except DocumentReadError:
                value = None
            if value not in (None, ""):
                title = f"{title} · {value}"
        titles[doc.path] = title
    return titles


def _status(item: ListItem) -> str:
    return STATUS_ICONS.get(item.status_char, f"[yellow]\\[{escape(item.status_char)}][/yellow]")


def run_tasks(
    vault_path: Path,
    config: NotefoldConfig,
    *,
    output_json: bool = False,
) -> int:
    """List bracket-status items. Returns the number listed."""
    console = Console()
    store = FileVault(vault_path)
    options = ScanOptions(include_completed=config.include_completed, contains=config.contains)

    async def collect() -> tuple[list[ListItem], dict[str, str]]:
        items = await scan_list_items(store, options)
        docs = list({item.document.path: item.document for item in items}.values())
        return items, await _titles(store, docs, config.title_property)

    items, titles = asyncio.run(collect())

    if output_json:
        payload = [item.to_dict() for item in items]
        print(json.dumps(payload, indent=2))
        return len(items)

    if not items:
        console.print("[dim]No tasks found.[/dim]")
        return 0

    table = Table(title=f"Tasks ({len(items)})")
    table.add_column("Note", style="bold")
    table.add_column("Line", justify="right")
    table.add_column("")
    table.add_column("Task")

    last_path = None
    for item in items:
        path = item.document.path
        table.add_row(
            escape(titles[path]) if path != last_path else "",
            str(item.line_index),
            _status(item),
            escape(item.text),
        )
        last_path = path

    console.print(table)
    return len(items)


def run_tags(
    vault_path: Path,
    tags: list[str],
    *,
    output_json: bool = False,
) -> int:
    """List lines carrying any of `tags`. Returns the number listed."""
    console = Console()
    store = FileVault(vault_path)
    matches = asyncio.run(scan_hashtags(store, tags))

    if output_json:
        payload = [m.to_dict() for m in matches]
        print(json.dumps(payload, indent=2))
        return len(matches)

    if not matches:
        console.print(f"[dim]No lines tagged {escape(', '.join(tags))}.[/dim]")
        return 0

    table = Table(title=f"Tagged lines ({len(matches)})")
    table.add_column("Location", style="bold")
    table.add_column("")
    table.add_column("Line")
    for match in matches:
        table.add_row(
            match.item_id,
            _status(match.item) if match.item else "",
            escape(match.item.text if match.item else match.text),
        )
    console.print(table)
    return len(matches)


def run_toggle(vault_path: Path, path: str, line_index: int, completed: bool) -> int:
    """Set one item's status. Returns 0 when written or already in that state."""
    console = Console(stderr=True)
    store = FileVault(vault_path)
    document = store.get_document(path)
    if document is None:
        console.print(f"[red]Note not found:[/red] {escape(path)}")
        return 1

    written = asyncio.run(ItemToggler(store).toggle(document, line_index, completed))
    state = "done" if completed else "open"
    if written:
        console.print(f"[green]Marked {state}[/green] {escape(document.path)}:{line_index}")
    else:
        console.print(f"[dim]No change at {escape(document.path)}:{line_index}[/dim]")
    return 0
