from __future__ import annotations

import logging

import typer
from rich import print

from . import __version__
from .commands.common import store_from_path
from .commands.history_cmds import (
    capture_cmd,
    category_cmd,
    here_cmd,
    recent_cmd,
    search_cmd,
    top_cmd,
)
from .commands.import_export_cmds import export_history_cmd, import_history_cmd
from .commands.maintenance_cmds import config_cmd, init_cmd, stats_cmd
from .config import load_config
from .logging_config import configure_logging, remove_handlers

app = typer.Typer(help="omniscient: searchable, deduplicated shell history")

_log_handlers: list[logging.Handler] = []


@app.callback()
def root(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
) -> None:
    global _log_handlers
    remove_handlers(_log_handlers)
    _log_handlers = configure_logging(verbose=verbose, log_path=load_config().log_path)


@app.command(hidden=True)
def capture(
    command: str = typer.Argument(..., help="Command line that just finished"),
    exit_code: int = typer.Option(0, "--exit-code", help="Exit status of the command"),
    duration: int = typer.Option(0, "--duration", help="Wall time in milliseconds"),
    directory: str = typer.Option(None, "--dir", help="Directory the command ran in"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Record a command (called from the shell hook)."""
    capture_cmd(
        store_from_path=store_from_path,
        db_path=db_path,
        command=command,
        exit_code=exit_code,
        duration_ms=duration,
        working_dir=directory,
    )


@app.command()
def search(
    query: str,
    limit: int = typer.Option(20, min=1, help="Max results"),
    directory: str = typer.Option(None, "--dir", help="Only commands run in this directory"),
    recursive: bool = typer.Option(False, help="Include subdirectories of --dir"),
    category: str = typer.Option(None, help="Filter by category"),
    success: bool | None = typer.Option(
        None, "--success/--failed", help="Only successful or only failed commands"
    ),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Search history by relevance."""
    search_cmd(
        store_from_path=store_from_path,
        db_path=db_path,
        query=query,
        limit=limit,
        directory=directory,
        recursive=recursive,
        category=category,
        success=success,
    )


@app.command()
def here(
    directory: str = typer.Option(None, "--dir", help="Directory (defaults to cwd)"),
    recursive: bool = typer.Option(False, help="Include subdirectories"),
    limit: int = typer.Option(20, min=1, help="Max results"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Show recent commands run in this directory."""
    here_cmd(
        store_from_path=store_from_path,
        db_path=db_path,
        directory=directory,
        recursive=recursive,
        limit=limit,
    )


@app.command()
def recent(
    limit: int = typer.Argument(20, min=1, help="Number of commands"),
    directory: str = typer.Option(None, "--dir", help="Only commands run in this directory"),
    recursive: bool = typer.Option(False, help="Include subdirectories of --dir"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Show the most recently used commands."""
    recent_cmd(
        store_from_path=store_from_path,
        db_path=db_path,
        limit=limit,
        directory=directory,
        recursive=recursive,
    )


@app.command()
def top(
    limit: int = typer.Argument(10, min=1, help="Number of commands"),
    directory: str = typer.Option(None, "--dir", help="Only commands run in this directory"),
    recursive: bool = typer.Option(False, help="Include subdirectories of --dir"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Show the most frequently used commands."""
    top_cmd(
        store_from_path=store_from_path,
        db_path=db_path,
        limit=limit,
        directory=directory,
        recursive=recursive,
    )


@app.command()
def category(
    name: str = typer.Argument(..., help="Category name, e.g. git or docker"),
    limit: int = typer.Option(20, min=1, help="Max results"),
    directory: str = typer.Option(None, "--dir", help="Only commands run in this directory"),
    recursive: bool = typer.Option(False, help="Include subdirectories of --dir"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Show commands in one category."""
    category_cmd(
        store_from_path=store_from_path,
        db_path=db_path,
        category=name,
        limit=limit,
        directory=directory,
        recursive=recursive,
    )


@app.command()
def stats(db_path: str = typer.Option(None, help="Path to SQLite database")) -> None:
    """Show history statistics."""
    stats_cmd(store_from_path=store_from_path, db_path=db_path)


@app.command("export")
def export_history(
    output: str = typer.Argument("history.json", help="Output file, or - for stdout"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Export history to JSON."""
    export_history_cmd(store_from_path=store_from_path, db_path=db_path, output=output)


@app.command("import")
def import_history(
    input_file: str = typer.Argument(..., help="Export file, or - for stdin"),
    strategy: str = typer.Option(
        "preserve-higher", help="Conflict policy: preserve-higher, update-usage or skip"
    ),
    dry_run: bool = typer.Option(False, help="Preview without importing"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Merge an exported history file."""
    import_history_cmd(
        store_from_path=store_from_path,
        db_path=db_path,
        input_file=input_file,
        strategy=strategy,
        dry_run=dry_run,
    )


@app.command()
def config() -> None:
    """Print the effective configuration."""
    config_cmd()


@app.command()
def init(
    shell: str = typer.Option(None, help="zsh or bash (defaults to $SHELL)"),
) -> None:
    """Print the shell integration snippet."""
    init_cmd(shell=shell)


@app.command("version")
def version() -> None:
    """Print version."""

    print(__version__)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
