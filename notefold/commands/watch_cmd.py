"""Watch command - keep a target header in sync as the vault changes."""

from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from ..config import NotefoldConfig
from ..models import SyncContext
from ..properties.sync import Rollup
from ..vault.store import FileVault
from ..watcher import RescanLoop


def run_watch(vault_path: Path, config: NotefoldConfig, context: SyncContext) -> int:
    """
    Re-sync on every change until interrupted (Ctrl+C).

    Returns the number of passes that wrote to the target.
    """
    console = Console(stderr=True)
    store = FileVault(vault_path)
    rollup = Rollup(store, context, config)

    target = rollup.synchronizer.resolve_target()
    if target is None:
        console.print("[yellow]No sync target resolved.[/yellow]")
        return 0

    console.print(f"[bold]Watching[/bold] {vault_path}")
    console.print(f"  Target: {escape(target.path)}")
    console.print()
    console.print("[dim]Press Ctrl+C to stop watching[/dim]")
    console.print()

    write_count = 0

    async def on_pass() -> None:
        nonlocal write_count
        written = await rollup.refresh()
        if written:
            write_count += 1
            timestamp = datetime.now().strftime("%H:%M:%S")
            console.print(f"[dim]{timestamp}[/dim] updated {', '.join(written)}")

    loop = RescanLoop(vault_path, on_pass)
    try:
        asyncio.run(loop.run())
    except KeyboardInterrupt:
        console.print()
        console.print(f"[bold]Stopped.[/bold] {loop.passes} passes, {write_count} writes.")

    return write_count
