from __future__ import annotations

import logging
from pathlib import Path

import pytest

from omniscient.store import HistoryStore


@pytest.fixture(autouse=True)
def _isolate_omniscient_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("OMNISCIENT_CONFIG", str(tmp_path / "config.json"))
    monkeypatch.setenv("OMNISCIENT_DB_PATH", str(tmp_path / "history.db"))
    monkeypatch.setenv("OMNISCIENT_LOG_PATH", str(tmp_path / "omniscient.log"))
    for name in (
        "OMNISCIENT_REDACT_ENABLED",
        "OMNISCIENT_REDACT_PATTERNS",
        "OMNISCIENT_MIN_DURATION_MS",
        "OMNISCIENT_BUSY_TIMEOUT_S",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _reset_omniscient_logging():
    yield
    logger = logging.getLogger("omniscient")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def store(tmp_path: Path):
    history = HistoryStore(tmp_path / "store.db")
    try:
        yield history
    finally:
        history.close()
