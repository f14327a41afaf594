from __future__ import annotations

import logging
import sqlite3
import sys

from rich import print
from rich.markup import escape

from omniscient.capture import CommandCapture
from omniscient.config import load_config
from omniscient.errors import OmniscientError

from .common import exit_on_store_errors, print_records, resolve_directory

logger = logging.getLogger(__name__)


def capture_cmd(
    *,
    store_from_path,
    db_path: str | None,
    command: str,
    exit_code: int,
    duration_ms: int,
    working_dir: str | None,
) -> None:
    """Record one finished command. Never fails the calling shell."""

    try:
        config = load_config()
        store = store_from_path(db_path, config)
    except (OmniscientError, sqlite3.Error, OSError) as exc:
        logger.exception("capture failed: cannot open history store")
        sys.stderr.write(f"omniscient: capture failed: {exc}\n")
        return
    try:
        CommandCapture(config, store).capture(
            command, exit_code, duration_ms, working_dir=working_dir
        )
    except (OmniscientError, sqlite3.Error, OSError, ValueError) as exc:
        logger.exception("capture failed")
        sys.stderr.write(f"omniscient: capture failed: {exc}\n")
    finally:
        store.close()


def search_cmd(
    *,
    store_from_path,
    db_path: str | None,
    query: str,
    limit: int,
    directory: str | None,
    recursive: bool,
    category: str | None,
    success: bool | None,
) -> None:
    """Search history by relevance."""

    with exit_on_store_errors():
        store = store_from_path(db_path)
        try:
            working_dir = resolve_directory(directory) if directory or recursive else None
            results = store.search(
                query,
                limit=limit,
                category=category,
                success_only=success,
                working_dir=working_dir,
                recursive=recursive,
            )
        finally:
            store.close()
    if not results:
        print(f"[yellow]No commands found matching '{escape(query)}'[/yellow]")
        return
    print(f"[bold]Found {len(results)} matching commands[/bold]")
    print_records(results)


def here_cmd(
    *,
    store_from_path,
    db_path: str | None,
    directory: str | None,
    recursive: bool,
    limit: int,
) -> None:
    """Show recent commands run in the current (or given) directory."""

    working_dir = resolve_directory(directory)
    with exit_on_store_errors():
        store = store_from_path(db_path)
        try:
            results = store.recent(limit=limit, working_dir=working_dir, recursive=recursive)
        finally:
            store.close()
    if not results:
        print(f"[yellow]No commands recorded in {escape(working_dir)}[/yellow]")
        return
    scope = "under" if recursive else "in"
    print(f"[bold]Recent commands {scope} {escape(working_dir)}[/bold]")
    print_records(results, show_dir=recursive)


def recent_cmd(
    *,
    store_from_path,
    db_path: str | None,
    limit: int,
    directory: str | None,
    recursive: bool,
) -> None:
    """Show the most recently used commands."""

    with exit_on_store_errors():
        store = store_from_path(db_path)
        try:
            working_dir = resolve_directory(directory) if directory or recursive else None
            results = store.recent(limit=limit, working_dir=working_dir, recursive=recursive)
        finally:
            store.close()
    if not results:
        print("[yellow]No commands recorded yet[/yellow]")
        return
    print_records(results)


def top_cmd(
    *,
    store_from_path,
    db_path: str | None,
    limit: int,
    directory: str | None,
    recursive: bool,
) -> None:
    """Show the most frequently used commands."""

    with exit_on_store_errors():
        store = store_from_path(db_path)
        try:
            working_dir = resolve_directory(directory) if directory or recursive else None
            results = store.top(limit=limit, working_dir=working_dir, recursive=recursive)
        finally:
            store.close()
    if not results:
        print("[yellow]No commands recorded yet[/yellow]")
        return
    for rank, record in enumerate(results, start=1):
        print(f"{rank:>3}. [bold]{record.usage_count:>5}x[/bold] {escape(record.command)}")


def category_cmd(
    *,
    store_from_path,
    db_path: str | None,
    category: str,
    limit: int,
    directory: str | None,
    recursive: bool,
) -> None:
    """Show commands of one category, most used first."""

    with exit_on_store_errors():
        store = store_from_path(db_path)
        try:
            working_dir = resolve_directory(directory) if directory or recursive else None
            results = store.by_category(
                category, limit=limit, working_dir=working_dir, recursive=recursive
            )
        finally:
            store.close()
    if not results:
        print(f"[yellow]No commands in category '{escape(category)}'[/yellow]")
        return
    print(f"[bold]{escape(category)}[/bold] ({len(results)} commands)")
    print_records(results)

