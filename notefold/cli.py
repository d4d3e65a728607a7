"""CLI entrypoint for notefold."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import CONFIG_FILENAME, NotefoldConfig, load_config
from .models import SyncContext


def _auto_detect_vault(start: Path) -> Path:
    """Nearest directory holding .obsidian or a config file, else `start`."""
    cur = start.resolve()
    for p in (cur, *cur.parents):
        if (p / ".obsidian").is_dir() or (p / CONFIG_FILENAME).is_file():
            return p
    return cur


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False, markup=False)],
        force=True,
    )


def _config(ctx: click.Context) -> NotefoldConfig:
    return ctx.obj["config"]


@click.group()
@click.version_option(__version__, prog_name="notefold")
@click.option(
    "--vault",
    "-v",
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Path to the vault directory (defaults to the nearest folder with .obsidian)",
)
@click.option("--verbose", is_flag=True, help="Log debug output")
@click.pass_context
def cli(ctx: click.Context, vault: Path | None, verbose: bool) -> None:
    """notefold - Property, task and tag rollups for a markdown vault.

    Aggregate header properties across notes, sync them into one note,
    and list or toggle checklist items.
    """
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    if vault is None:
        vault = _auto_detect_vault(Path.cwd())

    if not vault.exists() or not vault.is_dir():
        raise click.BadParameter(f"Directory '{vault}' does not exist.", param_hint="--vault / -v")

    ctx.obj["vault"] = vault.resolve()
    ctx.obj["config"] = load_config(ctx.obj["vault"])


@cli.command()
@click.option(
    "--exclude",
    "exclude_keys",
    multiple=True,
    help="Header key to leave out (repeatable; replaces the configured list)",
)
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def props(ctx: click.Context, exclude_keys: tuple[str, ...], output_json: bool) -> None:
    """Aggregate header properties across all notes."""
    from .commands.props import run_props

    config = _config(ctx).with_overrides(exclude_keys=exclude_keys or None)
    run_props(ctx.obj["vault"], config, output_json=output_json)


@cli.command()
@click.argument("target", required=False)
@click.option("--source", "source_path", default=None, help="Note hosting the rollup (used when TARGET is omitted)")
@click.option("--dry-run", is_flag=True, help="Show what would be written without writing")
@click.pass_context
def sync(ctx: click.Context, target: str | None, source_path: str | None, dry_run: bool) -> None:
    """Write aggregated properties into a note's header.

    Examples:

        notefold sync "Projects/Summary"

        notefold sync --source Dashboards/Week.md --dry-run
    """
    from .commands.props import run_sync

    context = SyncContext(target=target, source_path=source_path)
    sys.exit(run_sync(ctx.obj["vault"], _config(ctx), context, dry_run=dry_run))


@cli.command()
@click.option(
    "--hide-completed",
    is_flag=True,
    help="Leave out done and cancelled items",
)
@click.option("--contains", default=None, help="Only items whose text contains this (case-insensitive)")
@click.option("--title-property", default=None, help="Header key (dotted path) shown beside note titles")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def tasks(
    ctx: click.Context,
    hide_completed: bool,
    contains: str | None,
    title_property: str | None,
    output_json: bool,
) -> None:
    """List checklist items across the vault."""
    from .commands.tasks_cmd import run_tasks

    config = _config(ctx).with_overrides(
        include_completed=False if hide_completed else None,
        contains=contains,
        title_property=title_property,
    )
    run_tasks(ctx.obj["vault"], config, output_json=output_json)


@cli.command()
@click.argument("tag_list", metavar="[TAG]...", nargs=-1)
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def tags(ctx: click.Context, tag_list: tuple[str, ...], output_json: bool) -> None:
    """List lines carrying any of the given hashtags (default: configured tags)."""
    from .commands.tasks_cmd import run_tags

    run_tags(ctx.obj["vault"], list(tag_list or _config(ctx).tags), output_json=output_json)


@cli.command()
@click.argument("path")
@click.argument("line", type=int)
@click.option("--done/--undone", "completed", default=True, show_default=True, help="Status to set")
@click.pass_context
def toggle(ctx: click.Context, path: str, line: int, completed: bool) -> None:
    """Set the checklist item at PATH:LINE (0-based) done or open."""
    from .commands.tasks_cmd import run_toggle

    sys.exit(run_toggle(ctx.obj["vault"], path, line, completed))


@cli.command()
@click.argument("options", required=False)
@click.option("--source", "source_path", default="", help="Note the listing is shown in")
@click.pass_context
def backlinks(ctx: click.Context, options: str | None, source_path: str) -> None:
    """Show notes linking to a target.

    OPTIONS is a note name or a YAML snippet such as "{target: Foo, limit: 5}".
    """
    from .commands.views_cmd import run_backlinks

    run_backlinks(ctx.obj["vault"], options, source_path)


@cli.command()
@click.argument("options", required=False)
@click.option("--source", "source_path", default="", help="Note the listing is shown in")
@click.pass_context
def daily(ctx: click.Context, options: str | None, source_path: str) -> None:
    """Show timestamped notes (YYYYMMDD-HHMM) for one day.

    OPTIONS is a date or a YAML snippet such as "{order: asc, limit: 3}".
    """
    from .commands.views_cmd import run_daily

    run_daily(ctx.obj["vault"], options, source_path)


@cli.command()
@click.argument("target")
@click.pass_context
def watch(ctx: click.Context, target: str) -> None:
    """Keep TARGET's header in sync while the vault changes.

    Runs until interrupted (Ctrl+C).
    """
    from .commands.watch_cmd import run_watch

    run_watch(ctx.obj["vault"], _config(ctx), SyncContext(target=target))


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
