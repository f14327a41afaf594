from __future__ import annotations

import sqlite3
from pathlib import Path

from .errors import StorageUnavailable

DEFAULT_DB_PATH = Path.home() / ".omniscient" / "history.db"
DEFAULT_BUSY_TIMEOUT_S = 5.0

RECORD_COLUMNS = (
    "id",
    "command",
    "timestamp",
    "exit_code",
    "duration_ms",
    "working_dir",
    "category",
    "usage_count",
    "last_used",
)


def connect(
    db_path: Path | str,
    *,
    timeout: float = DEFAULT_BUSY_TIMEOUT_S,
    check_same_thread: bool = True,
) -> sqlite3.Connection:
    path = Path(db_path).expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(path, timeout=timeout, check_same_thread=check_same_thread)
    except (OSError, sqlite3.Error) as exc:
        raise StorageUnavailable(f"cannot open history database at {path}: {exc}") from exc
    conn.row_factory = sqlite3.Row
    try:
        try:
            conn.execute("PRAGMA journal_mode = WAL")
        except sqlite3.OperationalError:
            conn.execute("PRAGMA journal_mode = DELETE")
        conn.execute("PRAGMA synchronous = NORMAL")
    except sqlite3.DatabaseError as exc:
        conn.close()
        raise StorageUnavailable(f"{path} is not a usable history database: {exc}") from exc
    return conn


def initialize_schema(conn: sqlite3.Connection) -> None:
    try:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS commands (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                command TEXT NOT NULL,
                timestamp TEXT NOT NULL,
                exit_code INTEGER NOT NULL,
                duration_ms INTEGER NOT NULL,
                working_dir TEXT NOT NULL,
                category TEXT NOT NULL,
                usage_count INTEGER NOT NULL DEFAULT 1,
                last_used TEXT NOT NULL,
                UNIQUE(command, working_dir)
            );
            CREATE INDEX IF NOT EXISTS idx_commands_working_dir ON commands(working_dir);
            CREATE INDEX IF NOT EXISTS idx_commands_timestamp ON commands(timestamp DESC);
            CREATE INDEX IF NOT EXISTS idx_commands_last_used ON commands(last_used DESC);
            CREATE INDEX IF NOT EXISTS idx_commands_usage ON commands(usage_count DESC);
            CREATE INDEX IF NOT EXISTS idx_commands_category ON commands(category);
            CREATE INDEX IF NOT EXISTS idx_commands_exit_code ON commands(exit_code);

            CREATE VIRTUAL TABLE IF NOT EXISTS commands_fts USING fts5(
                command,
                content='commands',
                content_rowid='id'
            );

            CREATE TRIGGER IF NOT EXISTS commands_ai AFTER INSERT ON commands BEGIN
                INSERT INTO commands_fts(rowid, command) VALUES (new.id, new.command);
            END;

            CREATE TRIGGER IF NOT EXISTS commands_ad AFTER DELETE ON commands BEGIN
                INSERT INTO commands_fts(commands_fts, rowid, command)
                VALUES('delete', old.id, old.command);
            END;

            CREATE TRIGGER IF NOT EXISTS commands_au AFTER UPDATE OF command ON commands BEGIN
                INSERT INTO commands_fts(commands_fts, rowid, command)
                VALUES('delete', old.id, old.command);
                INSERT INTO commands_fts(rowid, command) VALUES (new.id, new.command);
            END;
            """
        )
    except sqlite3.DatabaseError as exc:
        raise StorageUnavailable(f"failed to initialize history schema: {exc}") from exc
    conn.commit()


def index_names(conn: sqlite3.Connection, table: str) -> set[str]:
    return {row["name"] for row in conn.execute(f"PRAGMA index_list({table})").fetchall()}

