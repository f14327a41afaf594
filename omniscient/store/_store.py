from __future__ import annotations

import datetime as dt
import sqlite3
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from types import TracebackType
from typing import Any

from .. import db
from ..errors import ConstraintViolation, MalformedRecord, NotFound, StorageUnavailable
from . import merge as store_merge
from . import search as store_search
from . import usage as store_usage
from .types import (
    CategoryStats,
    CommandRecord,
    ExportStats,
    HistoryQuery,
    HistoryStats,
    ImportStrategy,
    MergeSummary,
    RecordOutcome,
)
from .utils import format_timestamp, now_utc, parse_iso8601

_SELECT_COLUMNS = ", ".join(f"commands.{column}" for column in db.RECORD_COLUMNS)


class HistoryStore:
    """SQLite-backed command history.

    Owns the ``commands`` table, its ``working_dir`` index and the FTS5 shadow
    index on ``command``. Every mutation runs inside ``BEGIN IMMEDIATE`` so the
    table and both indexes change together or not at all.
    """

    def __init__(
        self,
        db_path: Path | str = db.DEFAULT_DB_PATH,
        *,
        timeout: float = db.DEFAULT_BUSY_TIMEOUT_S,
        check_same_thread: bool = True,
    ):
        self.db_path = Path(db_path).expanduser()
        self.conn = db.connect(self.db_path, timeout=timeout, check_same_thread=check_same_thread)
        try:
            db.initialize_schema(self.conn)
        except StorageUnavailable:
            self.conn.close()
            raise
        self._tx_depth = 0

    def __enter__(self) -> HistoryStore:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self.conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        if self._tx_depth:
            self._tx_depth += 1
            try:
                yield self.conn
            finally:
                self._tx_depth -= 1
            return
        self.conn.execute("BEGIN IMMEDIATE")
        self._tx_depth = 1
        try:
            yield self.conn
        except BaseException:
            self.conn.rollback()
            raise
        else:
            self.conn.commit()
        finally:
            self._tx_depth = 0

    # Record Store primitives

    def insert(self, record: CommandRecord) -> int:
        if record.usage_count < 1:
            raise MalformedRecord("usage_count must be at least 1")
        if record.duration_ms < 0:
            raise MalformedRecord("duration_ms must be non-negative")
        with self.transaction():
            try:
                cur = self.conn.execute(
                    """
                    INSERT INTO commands(
                        command, timestamp, exit_code, duration_ms,
                        working_dir, category, usage_count, last_used
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.command,
                        format_timestamp(record.timestamp),
                        int(record.exit_code),
                        int(record.duration_ms),
                        record.working_dir,
                        record.category,
                        int(record.usage_count),
                        format_timestamp(record.last_used or record.timestamp),
                    ),
                )
            except sqlite3.IntegrityError as exc:
                raise ConstraintViolation(record.command, record.working_dir) from exc
        lastrowid = cur.lastrowid
        if lastrowid is None:
            raise RuntimeError("Failed to insert command")
        return int(lastrowid)

    def find(self, command: str, working_dir: str) -> CommandRecord | None:
        row = self.conn.execute(
            f"SELECT {_SELECT_COLUMNS} FROM commands WHERE command = ? AND working_dir = ?",
            (command, working_dir),
        ).fetchone()
        return CommandRecord.from_row(row) if row else None

    def get(self, record_id: int) -> CommandRecord | None:
        row = self.conn.execute(
            f"SELECT {_SELECT_COLUMNS} FROM commands WHERE id = ?", (record_id,)
        ).fetchone()
        return CommandRecord.from_row(row) if row else None

    def touch(self, record_id: int, at: dt.datetime | None = None) -> None:
        when = format_timestamp(at or now_utc())
        with self.transaction():
            cur = self.conn.execute(
                """
                UPDATE commands
                SET usage_count = usage_count + 1,
                    last_used = MAX(last_used, ?)
                WHERE id = ?
                """,
                (when, record_id),
            )
            if cur.rowcount == 0:
                raise NotFound(f"command {record_id} not found")

    def set_usage(
        self, record_id: int, usage_count: int, last_used: dt.datetime | None = None
    ) -> None:
        if usage_count < 1:
            raise MalformedRecord("usage_count must be at least 1")
        with self.transaction():
            if last_used is None:
                cur = self.conn.execute(
                    "UPDATE commands SET usage_count = ? WHERE id = ?",
                    (usage_count, record_id),
                )
            else:
                cur = self.conn.execute(
                    """
                    UPDATE commands
                    SET usage_count = ?, last_used = MAX(last_used, ?)
                    WHERE id = ?
                    """,
                    (usage_count, format_timestamp(last_used), record_id),
                )
            if cur.rowcount == 0:
                raise NotFound(f"command {record_id} not found")

    def query(self, query: HistoryQuery) -> list[CommandRecord]:
        return store_search.run_query(self, query)

    def count(self) -> int:
        row = self.conn.execute("SELECT COUNT(*) AS count FROM commands").fetchone()
        return int(row["count"])

    def all(self) -> Iterator[CommandRecord]:
        cursor = self.conn.execute(
            f"SELECT {_SELECT_COLUMNS} FROM commands ORDER BY timestamp ASC, id ASC"
        )
        for row in cursor:
            yield CommandRecord.from_row(row)

    # Views over query()

    def search(
        self,
        text: str,
        limit: int = 20,
        *,
        category: str | None = None,
        success_only: bool | None = None,
        working_dir: str | None = None,
        recursive: bool = False,
    ) -> list[CommandRecord]:
        return self.query(
            HistoryQuery(
                text=text,
                category=category,
                success_only=success_only,
                working_dir=working_dir,
                recursive=recursive,
                limit=limit,
                order_by="relevance",
            )
        )

    def recent(
        self, limit: int = 20, working_dir: str | None = None, recursive: bool = False
    ) -> list[CommandRecord]:
        return self.query(
            HistoryQuery(working_dir=working_dir, recursive=recursive, limit=limit)
        )

    def top(
        self, limit: int = 10, working_dir: str | None = None, recursive: bool = False
    ) -> list[CommandRecord]:
        return self.query(
            HistoryQuery(working_dir=working_dir, recursive=recursive, limit=limit, order_by="usage")
        )

    def by_category(
        self,
        category: str,
        limit: int = 20,
        working_dir: str | None = None,
        recursive: bool = False,
    ) -> list[CommandRecord]:
        return self.query(
            HistoryQuery(
                category=category,
                working_dir=working_dir,
                recursive=recursive,
                limit=limit,
                order_by="usage",
            )
        )

    def stats(self) -> HistoryStats:
        totals = self.conn.execute(
            """
            SELECT COUNT(*) AS total,
                   COALESCE(SUM(CASE WHEN exit_code = 0 THEN 1 ELSE 0 END), 0) AS successful,
                   MIN(timestamp) AS oldest,
                   MAX(timestamp) AS newest
            FROM commands
            """
        ).fetchone()
        rows = self.conn.execute(
            """
            SELECT category, COUNT(*) AS count
            FROM commands
            GROUP BY category
            ORDER BY count DESC, category ASC
            """
        ).fetchall()
        total = int(totals["total"])
        successful = int(totals["successful"])
        return HistoryStats(
            total_commands=total,
            successful_commands=successful,
            failed_commands=total - successful,
            by_category=[CategoryStats(row["category"], int(row["count"])) for row in rows],
            oldest_command=parse_iso8601(totals["oldest"]) if totals["oldest"] else None,
            newest_command=parse_iso8601(totals["newest"]) if totals["newest"] else None,
        )

    # Capture and merge entry points

    def record(self, candidate: CommandRecord) -> RecordOutcome:
        return store_usage.record_command(self, candidate)

    def merge(
        self, records: Iterable[Any], strategy: ImportStrategy | str = "preserve-higher"
    ) -> MergeSummary:
        return store_merge.merge_records(self, records, strategy)

    def export_to(self, output_path: Path | str) -> ExportStats:
        return store_merge.export_history(self, output_path)

    def import_from(
        self, input_path: Path | str, strategy: ImportStrategy | str = "preserve-higher"
    ) -> MergeSummary:
        return store_merge.import_history(self, input_path, strategy)
