from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Final, Literal

from ..errors import MalformedRecord
from .utils import format_timestamp, now_utc, parse_iso8601, to_utc

OrderBy = Literal["recency", "usage", "relevance"]
ImportStrategy = Literal["skip", "update-usage", "preserve-higher"]

ORDERINGS: Final[tuple[str, ...]] = ("recency", "usage", "relevance")
IMPORT_STRATEGIES: Final[tuple[str, ...]] = ("skip", "update-usage", "preserve-higher")
DEFAULT_CATEGORY: Final[str] = "other"
SQLITE_INT_MIN: Final[int] = -(2**63)
SQLITE_INT_MAX: Final[int] = 2**63 - 1


def validate_order_by(order_by: str) -> OrderBy:
    normalized = (order_by or "").strip().lower()
    if normalized not in ORDERINGS:
        raise ValueError(f"Invalid ordering '{order_by}'. Allowed: {', '.join(ORDERINGS)}")
    return normalized  # type: ignore[return-value]


def validate_import_strategy(strategy: str) -> ImportStrategy:
    normalized = (strategy or "").strip().lower().replace("_", "-")
    if normalized not in IMPORT_STRATEGIES:
        raise ValueError(
            f"Invalid import strategy '{strategy}'. Allowed: {', '.join(IMPORT_STRATEGIES)}"
        )
    return normalized  # type: ignore[return-value]


@dataclass
class CommandRecord:
    """One stored history entry, keyed by ``(command, working_dir)``."""

    command: str
    timestamp: dt.datetime
    exit_code: int
    duration_ms: int
    working_dir: str
    category: str = DEFAULT_CATEGORY
    usage_count: int = 1
    last_used: dt.datetime | None = None
    id: int | None = None
    score: float = 0.0

    def __post_init__(self) -> None:
        self.timestamp = to_utc(self.timestamp)
        self.last_used = to_utc(self.last_used) if self.last_used else self.timestamp

    @classmethod
    def new(
        cls,
        command: str,
        *,
        exit_code: int,
        duration_ms: int,
        working_dir: str,
        category: str = DEFAULT_CATEGORY,
        timestamp: dt.datetime | None = None,
    ) -> CommandRecord:
        when = timestamp or now_utc()
        return cls(
            command=command,
            timestamp=when,
            exit_code=exit_code,
            duration_ms=duration_ms,
            working_dir=working_dir,
            category=category,
            usage_count=1,
            last_used=when,
        )

    @classmethod
    def from_row(cls, row: Any) -> CommandRecord:
        keys = row.keys()
        return cls(
            id=int(row["id"]),
            command=row["command"],
            timestamp=_parse_stored_timestamp(row["timestamp"]),
            exit_code=int(row["exit_code"]),
            duration_ms=int(row["duration_ms"]),
            working_dir=row["working_dir"],
            category=row["category"],
            usage_count=int(row["usage_count"]),
            last_used=_parse_stored_timestamp(row["last_used"]),
            score=float(row["score"]) if "score" in keys and row["score"] is not None else 0.0,
        )

    @classmethod
    def from_dict(cls, data: Any) -> CommandRecord:
        """Build a record from an export payload entry, validating every field."""
        if not isinstance(data, dict):
            raise MalformedRecord(f"record must be an object, got {type(data).__name__}")
        command = data.get("command")
        if not isinstance(command, str) or not command.strip():
            raise MalformedRecord("record is missing a non-empty 'command'")
        working_dir = data.get("working_dir")
        if not isinstance(working_dir, str):
            raise MalformedRecord("record is missing 'working_dir'")
        timestamp = _require_timestamp(data.get("timestamp"), "timestamp")
        last_used_raw = data.get("last_used")
        last_used = (
            timestamp if last_used_raw is None else _require_timestamp(last_used_raw, "last_used")
        )
        category = data.get("category", DEFAULT_CATEGORY)
        if category is None:
            category = DEFAULT_CATEGORY
        if not isinstance(category, str):
            raise MalformedRecord("'category' must be a string")
        exit_code = _require_int(data.get("exit_code", 0), "exit_code")
        duration_ms = _require_int(data.get("duration_ms", 0), "duration_ms")
        if duration_ms < 0:
            raise MalformedRecord("'duration_ms' must be non-negative")
        usage_count = _require_int(data.get("usage_count", 1), "usage_count")
        if usage_count < 1:
            raise MalformedRecord("'usage_count' must be at least 1")
        return cls(
            command=_require_utf8(command, "command"),
            timestamp=timestamp,
            exit_code=exit_code,
            duration_ms=duration_ms,
            working_dir=_require_utf8(working_dir, "working_dir"),
            category=_require_utf8(category, "category"),
            usage_count=usage_count,
            last_used=last_used,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "command": self.command,
            "timestamp": format_timestamp(self.timestamp),
            "exit_code": self.exit_code,
            "duration_ms": self.duration_ms,
            "working_dir": self.working_dir,
            "category": self.category,
            "usage_count": self.usage_count,
            "last_used": format_timestamp(self.last_used or self.timestamp),
        }

    def is_success(self) -> bool:
        return self.exit_code == 0

    def status_symbol(self) -> str:
        return "✓" if self.is_success() else "✗"

    def duration_display(self) -> str:
        if self.duration_ms < 1000:
            return f"{self.duration_ms}ms"
        if self.duration_ms < 60_000:
            return f"{self.duration_ms / 1000:.1f}s"
        minutes = self.duration_ms // 60_000
        seconds = (self.duration_ms % 60_000) // 1000
        return f"{minutes}m{seconds}s"


@dataclass
class HistoryQuery:
    text: str | None = None
    category: str | None = None
    success_only: bool | None = None
    working_dir: str | None = None
    recursive: bool = False
    limit: int = 20
    order_by: OrderBy = "recency"

    def __post_init__(self) -> None:
        self.order_by = validate_order_by(self.order_by)
        if self.limit < 1:
            raise ValueError("limit must be positive")

    @property
    def search_text(self) -> str | None:
        if self.text is None or not self.text.strip():
            return None
        return self.text


@dataclass
class CategoryStats:
    category: str
    count: int


@dataclass
class HistoryStats:
    total_commands: int
    successful_commands: int
    failed_commands: int
    by_category: list[CategoryStats] = field(default_factory=list)
    oldest_command: dt.datetime | None = None
    newest_command: dt.datetime | None = None

    def success_rate(self) -> float:
        if self.total_commands == 0:
            return 0.0
        return self.successful_commands / self.total_commands * 100.0


@dataclass
class RecordOutcome:
    """Result of feeding one candidate through the dedup tracker."""

    id: int
    created: bool
    usage_count: int


@dataclass
class MergeSummary:
    imported: int = 0
    merged: int = 0
    skipped: int = 0
    errors: int = 0
    total: int = 0

    def summary(self) -> str:
        return (
            f"Imported {self.imported} new commands, merged {self.merged}, "
            f"skipped {self.skipped} duplicates, {self.errors} errors (total: {self.total})"
        )


@dataclass
class ExportStats:
    commands_exported: int
    file_path: str


def _parse_stored_timestamp(value: str) -> dt.datetime:
    parsed = parse_iso8601(value)
    if parsed is None:
        raise MalformedRecord(f"stored timestamp is not ISO-8601: {value!r}")
    return parsed


def _require_timestamp(value: Any, key: str) -> dt.datetime:
    if not isinstance(value, str):
        raise MalformedRecord(f"'{key}' must be an ISO-8601 string")
    parsed = parse_iso8601(value)
    if parsed is None:
        raise MalformedRecord(f"'{key}' is not a valid ISO-8601 timestamp: {value!r}")
    return parsed


def _require_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedRecord(f"'{key}' must be an integer")
    if not SQLITE_INT_MIN <= value <= SQLITE_INT_MAX:
        raise MalformedRecord(f"'{key}' is outside the 64-bit integer range")
    return value


def _require_utf8(value: str, key: str) -> str:
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise MalformedRecord(f"'{key}' is not valid UTF-8 text") from exc
    return value
