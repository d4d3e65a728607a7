"""Props and sync commands - property rollups across the vault."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..config import NotefoldConfig
from ..models import SyncContext
from ..properties.aggregate import aggregate_properties
from ..properties.sync import Rollup
from ..vault.store import FileVault


def run_props(
    vault_path: Path,
    config: NotefoldConfig,
    *,
    output_json: bool = False,
) -> int:
    """Print every aggregated property. Returns the number of properties."""
    console = Console()
    store = FileVault(vault_path)
    aggregated = asyncio.run(aggregate_properties(store, exclude_keys=config.exclude_keys))

    if output_json:
        payload = {key: [entry.to_dict() for entry in entries] for key, entries in aggregated.items()}
        print(json.dumps(payload, indent=2))
        return len(aggregated)

    if not aggregated:
        console.print("[dim]No properties found.[/dim]")
        return 0

    table = Table(title="Properties")
    table.add_column("Property", style="bold")
    table.add_column("Kind")
    table.add_column("Value")
    table.add_column("Sources", justify="right")

    for key, entries in aggregated.items():
        for idx, entry in enumerate(entries):
            table.add_row(
                escape(key) if idx == 0 else "",
                entry.kind.value if idx == 0 else "",
                escape(entry.display_name),
                str(len(entry.sources)),
            )

    console.print(table)
    return len(aggregated)


def run_sync(
    vault_path: Path,
    config: NotefoldConfig,
    context: SyncContext,
    *,
    dry_run: bool = False,
) -> int:
    """Sync aggregated properties into the target header. Returns 0 on success."""
    console = Console(stderr=True)
    store = FileVault(vault_path)
    rollup = Rollup(store, context, config)

    if dry_run:
        plan = asyncio.run(rollup.plan())
        console.print(plan.summary())
        for key, value in plan.changes.items():
            console.print(f"  [cyan]{escape(key)}[/cyan]: {escape(json.dumps(value))}", highlight=False)
        return 0 if plan.target is not None else 1

    target = rollup.synchronizer.resolve_target()
    if target is None:
        console.print("[yellow]No sync target resolved.[/yellow]")
        return 1

    written = asyncio.run(rollup.refresh())
    if written:
        console.print(f"[green]Updated[/green] {escape(target.path)}: {', '.join(written)}")
    else:
        console.print(f"[dim]{escape(target.path)} unchanged.[/dim]")
    return 0

