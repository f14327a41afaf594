from __future__ import annotations

import logging
import os

from .category import Categorizer
from .config import OmniscientConfig
from .redaction import REDACTED, RedactionEngine, strip_ansi
from .store import CommandRecord, HistoryStore, RecordOutcome

logger = logging.getLogger(__name__)

UNKNOWN_WORKING_DIR = "/unknown"


def current_working_dir() -> str:
    try:
        return os.getcwd()
    except OSError:
        return UNKNOWN_WORKING_DIR


class CommandCapture:
    """Filter, classify and record one finished shell command."""

    def __init__(self, config: OmniscientConfig, store: HistoryStore):
        self.config = config
        self.store = store
        self.redactor = RedactionEngine(config.redact_patterns, config.redact_enabled)
        self.categorizer = Categorizer()

    def capture(
        self,
        command: str,
        exit_code: int,
        duration_ms: int,
        working_dir: str | None = None,
    ) -> RecordOutcome | None:
        command = strip_ansi(command).strip()
        if not command:
            return None
        if duration_ms < self.config.min_duration_ms:
            logger.debug("skipping %dms command below threshold", duration_ms)
            return None
        processed = self.redactor.redact(command)
        if processed == REDACTED:
            logger.debug("dropping redacted command")
            return None
        candidate = CommandRecord.new(
            processed,
            exit_code=exit_code,
            duration_ms=max(duration_ms, 0),
            working_dir=working_dir or current_working_dir(),
            category=self.categorizer.categorize(processed),
        )
        return self.store.record(candidate)
