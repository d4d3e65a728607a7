"""Tests for the command functions behind the CLI."""

from __future__ import annotations

import json
from pathlib import Path

from notefold.commands.props import run_props, run_sync
from notefold.commands.tasks_cmd import run_tags, run_tasks, run_toggle
from notefold.commands.views_cmd import run_backlinks, run_daily
from notefold.config import NotefoldConfig
from notefold.models import SyncContext

from .conftest import write_note


def test_props_json(vault_path: Path, capsys) -> None:
    result = run_props(vault_path, NotefoldConfig(), output_json=True)
    assert result == 5

    payload = json.loads(capsys.readouterr().out)
    assert list(payload) == ["role", "status", "tags", "owner", "title"]
    assert [e["key"] for e in payload["tags"]] == ["x", "y"]
    assert payload["owner"][0]["key"] == "People/Ann"
    assert payload["owner"][0]["display_name"] == "Ann"
    assert payload["owner"][0]["kind"] == "link"
    assert payload["status"][0]["sources"] == ["Projects/Alpha.md"]


def test_props_table_escapes_values(vault_path: Path, capsys) -> None:
    run_props(vault_path, NotefoldConfig())
    out = capsys.readouterr().out
    assert "Properties" in out
    assert "paused" in out


def test_props_empty_vault(tmp_path: Path, capsys) -> None:
    assert run_props(tmp_path, NotefoldConfig()) == 0
    assert "No properties found" in capsys.readouterr().out


def test_sync_writes_target(vault_path: Path, capsys) -> None:
    result = run_sync(vault_path, NotefoldConfig(), SyncContext(target="Summary"))
    assert result == 0
    assert "Updated" in capsys.readouterr().err

    text = (vault_path / "Summary.md").read_text(encoding="utf-8")
    assert text.startswith("---\ntitle: Summary\n")
    assert "status:\n- active\n- paused\n" in text
    assert "owner: '[[People/Ann]]'\n" in text
    assert text.endswith("---\n# Summary\n")

    # Second pass has nothing to do
    run_sync(vault_path, NotefoldConfig(), SyncContext(target="Summary"))
    assert "unchanged" in capsys.readouterr().err


def test_sync_dry_run_does_not_write(vault_path: Path, capsys) -> None:
    before = (vault_path / "Summary.md").read_text(encoding="utf-8")
    result = run_sync(vault_path, NotefoldConfig(), SyncContext(target="Summary"), dry_run=True)
    assert result == 0
    assert "Summary.md: update" in capsys.readouterr().err
    assert (vault_path / "Summary.md").read_text(encoding="utf-8") == before


def test_sync_without_target(vault_path: Path, capsys) -> None:
    assert run_sync(vault_path, NotefoldConfig(), SyncContext(target="Nowhere")) == 1
    assert "No sync target" in capsys.readouterr().err


def test_tasks_json(vault_path: Path, capsys) -> None:
    assert run_tasks(vault_path, NotefoldConfig(), output_json=True) == 3
    payload = json.loads(capsys.readouterr().out)
    assert [item["id"] for item in payload] == [
        "Projects/Alpha.md:5",
        "Projects/Alpha.md:6",
        "Projects/Beta.md:6",
    ]
    assert payload[2]["completed"] is True
    assert payload[2]["toggleable"] is False


def test_tasks_filters(vault_path: Path, capsys) -> None:
    config = NotefoldConfig(include_completed=False)
    assert run_tasks(vault_path, config, output_json=True) == 1

    config = NotefoldConfig(contains="OUTLINE")
    assert run_tasks(vault_path, config, output_json=True) == 1


def test_tasks_table_shows_title_property(vault_path: Path, capsys) -> None:
    run_tasks(vault_path, NotefoldConfig(title_property="status"))
    out = capsys.readouterr().out
    assert "Alpha · active" in out
    assert "write intro" in out


def test_tags(vault_path: Path, capsys) -> None:
    assert run_tags(vault_path, ["#todo"], output_json=True) == 1
    (match,) = json.loads(capsys.readouterr().out)
    assert match["id"] == "Projects/Alpha.md:5"
    assert match["item"]["text"] == "write intro #todo"

    assert run_tags(vault_path, ["#nothing"]) == 0


def test_toggle(vault_path: Path, capsys) -> None:
    assert run_toggle(vault_path, "Projects/Alpha", 5, True) == 0
    text = (vault_path / "Projects/Alpha.md").read_text(encoding="utf-8")
    assert "- [x] write intro #todo\n- [x] outline\n" in text
    assert "Marked done" in capsys.readouterr().err

    assert run_toggle(vault_path, "Projects/Alpha", 6, False) == 0
    assert "- [ ] outline" in (vault_path / "Projects/Alpha.md").read_text(encoding="utf-8")


def test_toggle_missing_note(vault_path: Path, capsys) -> None:
    assert run_toggle(vault_path, "Nope", 0, True) == 1
    assert "Note not found" in capsys.readouterr().err


def test_backlinks(vault_path: Path, capsys) -> None:
    assert run_backlinks(vault_path, "Alpha") == 2
    out = capsys.readouterr().out
    assert "Backlinks (2)" in out

    assert run_backlinks(vault_path, "Summary") == 0
    assert "No backlinks to Summary." in capsys.readouterr().out


def test_daily(vault_path: Path, capsys) -> None:
    write_note(vault_path, "daily/20240105-0930.md", "standup notes")
    assert run_daily(vault_path, "2024-01-05") == 1
    assert "standup notes" in capsys.readouterr().out

    assert run_daily(vault_path, "{date: 2023-01-01}") == 0
    assert "No notes found for 20230101." in capsys.readouterr().out
