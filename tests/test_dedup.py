from __future__ import annotations

import datetime as dt
import logging
import threading
from pathlib import Path

import pytest

from omniscient.store import CommandRecord, HistoryStore


def _candidate(command: str, working_dir: str = "/repo", **kwargs) -> CommandRecord:
    return CommandRecord.new(
        command,
        exit_code=kwargs.get("exit_code", 0),
        duration_ms=kwargs.get("duration_ms", 5),
        working_dir=working_dir,
        category=kwargs.get("category", "git"),
        timestamp=kwargs.get("timestamp"),
    )


def test_first_capture_inserts_and_repeat_touches(store: HistoryStore) -> None:
    first = store.record(_candidate("git status"))
    second = store.record(_candidate("git status", exit_code=1, duration_ms=900))

    assert first.created is True
    assert first.usage_count == 1
    assert second.created is False
    assert second.id == first.id
    assert second.usage_count == 2

    record = store.get(first.id)
    assert record is not None
    assert record.usage_count == 2
    # The first occurrence's details are kept.
    assert record.exit_code == 0
    assert record.duration_ms == 5
    assert store.count() == 1


def test_same_command_in_other_directory_is_separate(store: HistoryStore) -> None:
    a = store.record(_candidate("make", working_dir="/a"))
    b = store.record(_candidate("make", working_dir="/b"))
    assert a.id != b.id
    assert store.count() == 2


def test_repeat_advances_last_used(store: HistoryStore) -> None:
    old = dt.datetime(2025, 1, 1, tzinfo=dt.UTC)
    outcome = store.record(_candidate("ls", timestamp=old))
    store.record(_candidate("ls"))

    record = store.get(outcome.id)
    assert record is not None
    assert record.timestamp == old
    assert record.last_used is not None
    assert record.last_used > old


def test_candidate_usage_count_is_ignored(store: HistoryStore) -> None:
    candidate = _candidate("npm test")
    candidate.usage_count = 40
    outcome = store.record(candidate)
    assert outcome.usage_count == 1
    record = store.get(outcome.id)
    assert record is not None
    assert record.usage_count == 1


def test_concurrent_writers_count_every_capture(tmp_path: Path) -> None:
    db_path = tmp_path / "shared.db"
    writers = [HistoryStore(db_path, timeout=30.0, check_same_thread=False) for _ in range(4)]
    per_writer = 25
    errors: list[BaseException] = []
    barrier = threading.Barrier(len(writers))

    def run(history: HistoryStore) -> None:
        try:
            barrier.wait()
            for _ in range(per_writer):
                history.record(_candidate("cargo build", working_dir="/proj"))
        except BaseException as exc:  # pragma: no cover - surfaced below
            errors.append(exc)

    threads = [threading.Thread(target=run, args=(history,)) for history in writers]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    for history in writers:
        history.close()

    assert errors == []
    with HistoryStore(db_path) as history:
        assert history.count() == 1
        record = history.find("cargo build", "/proj")
        assert record is not None
        assert record.usage_count == len(writers) * per_writer


def _miss_first_lookup(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make the first ``find`` report no row, as if a concurrent writer raced us."""
    real_find = HistoryStore.find
    calls = {"n": 0}

    def find(self: HistoryStore, command: str, working_dir: str) -> CommandRecord | None:
        calls["n"] += 1
        if calls["n"] == 1:
            return None
        return real_find(self, command, working_dir)

    monkeypatch.setattr(HistoryStore, "find", find)


def test_constraint_violation_is_retried_as_touch(
    store: HistoryStore, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    first = store.record(_candidate("git fetch"))
    _miss_first_lookup(monkeypatch)

    with caplog.at_level(logging.INFO, logger="omniscient"):
        outcome = store.record(_candidate("git fetch"))

    assert outcome.created is False
    assert outcome.id == first.id
    assert outcome.usage_count == 2
    assert store.count() == 1
    record = store.get(first.id)
    assert record is not None
    assert record.usage_count == 2
    assert "concurrent insert" in caplog.text
