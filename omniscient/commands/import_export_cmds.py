from __future__ import annotations

import sys
from pathlib import Path

import typer
from rich import print
from rich.markup import escape

from omniscient.errors import MalformedExport
from omniscient.store.merge import export_json, load_export, parse_export
from omniscient.store.types import validate_import_strategy

from .common import exit_on_store_errors


def export_history_cmd(*, store_from_path, db_path: str | None, output: str) -> None:
    """Export all commands to a JSON file for backup or another machine."""

    with exit_on_store_errors():
        store = store_from_path(db_path)
        try:
            if output == "-":
                typer.echo(export_json(store))
                return
            stats = store.export_to(Path(output))
        finally:
            store.close()
    print(f"[green]✓ Exported {stats.commands_exported} commands to {escape(stats.file_path)}[/green]")


def import_history_cmd(
    *,
    store_from_path,
    db_path: str | None,
    input_file: str,
    strategy: str,
    dry_run: bool,
) -> None:
    """Merge an exported JSON file into the local history."""

    try:
        policy = validate_import_strategy(strategy)
    except ValueError as exc:
        print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc

    with exit_on_store_errors():
        if input_file == "-":
            bundle = parse_export(sys.stdin.read())
        else:
            input_path = Path(input_file).expanduser()
            if not input_path.exists():
                raise MalformedExport(f"input file not found: {input_path}")
            bundle = load_export(input_path)

        print("[bold]Import Preview[/bold]")
        print(f"- Export version: {escape(bundle.version)}")
        print(f"- Exported at: {escape(str(bundle.exported_at or 'unknown'))}")
        print(f"- Commands: {len(bundle.commands)}")
        print(f"- Strategy: {policy}")

        if dry_run:
            print("\n[yellow]Dry run - no data will be imported[/yellow]")
            return

        store = store_from_path(db_path)
        try:
            if input_file == "-":
                summary = store.merge(bundle.commands, policy)
            else:
                summary = store.import_from(input_path, policy)
        finally:
            store.close()

    print(f"\n[green]✓ {summary.summary()}[/green]")
    if summary.errors:
        print(f"[yellow]{summary.errors} records were malformed and ignored[/yellow]")
