from __future__ import annotations

import json
import sys

import typer
from rich import print
from rich.markup import escape

from omniscient.config import get_config_path, get_env_overrides, load_config
from omniscient.shell import ShellHook, detect_shell

from .common import exit_on_store_errors, read_config_or_exit


def _format_bytes(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / 1024 / 1024:.1f} MB"


def stats_cmd(*, store_from_path, db_path: str | None) -> None:
    with exit_on_store_errors():
        store = store_from_path(db_path)
        try:
            stats = store.stats()
            path = store.db_path
        finally:
            store.close()

    print("[bold]Database[/bold]")
    print(f"- Path: {escape(str(path))}")
    if path.exists():
        print(f"- Size: {_format_bytes(path.stat().st_size)}")

    print("\n[bold]Commands[/bold]")
    if not stats.total_commands:
        print("- No commands recorded yet")
        return
    print(f"- Total: {stats.total_commands}")
    print(f"- Successful: {stats.successful_commands}")
    print(f"- Failed: {stats.failed_commands}")
    print(f"- Success rate: {stats.success_rate():.1f}%")
    if stats.oldest_command and stats.newest_command:
        oldest = stats.oldest_command.astimezone().strftime("%Y-%m-%d %H:%M")
        newest = stats.newest_command.astimezone().strftime("%Y-%m-%d %H:%M")
        print(f"- Range: {oldest} → {newest}")

    print("\n[bold]By category[/bold]")
    for entry in stats.by_category:
        share = entry.count / stats.total_commands * 100
        print(f"- {escape(entry.category)}: {entry.count} ({share:.0f}%)")


def config_cmd() -> None:
    """Print the effective configuration."""

    config_path = get_config_path()
    # Surface a broken file instead of silently showing defaults.
    read_config_or_exit()
    effective = load_config(config_path).to_dict()
    overrides = get_env_overrides()
    print(f"[bold]Config file:[/bold] {escape(str(config_path))}")
    if overrides:
        print(f"[bold]Environment overrides:[/bold] {', '.join(sorted(overrides))}")
    typer.echo(json.dumps(effective, indent=2))


def init_cmd(*, shell: str | None) -> None:
    """Print the shell hook on stdout and install hints on stderr."""

    try:
        hook = ShellHook(shell) if shell else ShellHook(detect_shell())
    except ValueError as exc:
        print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc
    typer.echo(hook.generate(), nl=False)
    sys.stderr.write(hook.installation_instructions() + "\n")
