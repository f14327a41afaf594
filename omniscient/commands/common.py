from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import typer
from rich import print
from rich.markup import escape

from omniscient.capture import current_working_dir
from omniscient.config import OmniscientConfig, load_config, read_config_file
from omniscient.errors import MalformedExport, StorageUnavailable
from omniscient.store import CommandRecord, HistoryStore


def store_from_path(db_path: str | None, config: OmniscientConfig | None = None) -> HistoryStore:
    cfg = config or load_config()
    return HistoryStore(db_path or cfg.database_path(), timeout=cfg.busy_timeout_s)


def read_config_or_exit() -> dict[str, Any]:
    try:
        return read_config_file()
    except ValueError as exc:
        print(f"[red]Invalid config file: {exc}[/red]")
        raise typer.Exit(code=1) from exc


def resolve_directory(directory: str | None) -> str:
    if directory:
        return os.path.abspath(os.path.expanduser(directory))
    return current_working_dir()


@contextmanager
def exit_on_store_errors() -> Iterator[None]:
    """Report storage and export-file failures in red and exit 1."""

    try:
        yield
    except StorageUnavailable as exc:
        print(f"[red]History database unavailable: {escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc
    except MalformedExport as exc:
        print(f"[red]Invalid export file: {escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc


def print_records(records: list[CommandRecord], *, show_dir: bool = True) -> None:
    for record in records:
        color = "green" if record.is_success() else "red"
        status = f"[{color}]{record.status_symbol()}[/{color}]"
        when = (record.last_used or record.timestamp).astimezone().strftime("%Y-%m-%d %H:%M")
        line = f"{status} {escape(record.command)}"
        meta = f"[dim]{when} · {record.duration_display()} · x{record.usage_count}"
        if show_dir:
            meta += f" · {escape(record.working_dir)}"
        print(line)
        print(f"  {meta}[/dim]")
