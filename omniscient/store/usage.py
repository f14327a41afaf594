"""Deduplication and usage accounting for captured commands."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from ..errors import ConstraintViolation, NotFound
from .types import CommandRecord, RecordOutcome

if TYPE_CHECKING:
    from ._store import HistoryStore

logger = logging.getLogger(__name__)


def _touch_existing(store: HistoryStore, command: str, working_dir: str) -> RecordOutcome:
    existing = store.find(command, working_dir)
    if existing is None or existing.id is None:
        raise NotFound(f"no record for {command!r} in {working_dir!r}")
    store.touch(existing.id)
    return RecordOutcome(id=existing.id, created=False, usage_count=existing.usage_count + 1)


def record_command(store: HistoryStore, candidate: CommandRecord) -> RecordOutcome:
    """Turn a captured candidate into exactly one store mutation.

    A repeat of a known ``(command, working_dir)`` only bumps ``usage_count`` and
    ``last_used``; the first occurrence's exit code, duration and category are kept.
    A new pair is inserted with ``usage_count = 1``. If a concurrent writer inserts
    the same pair between lookup and insert, the insert fails on the uniqueness
    constraint and the candidate is applied as a touch instead.
    """
    fresh = replace(candidate, id=None, usage_count=1, last_used=candidate.timestamp)
    try:
        with store.transaction():
            existing = store.find(fresh.command, fresh.working_dir)
            if existing is not None and existing.id is not None:
                store.touch(existing.id)
                return RecordOutcome(
                    id=existing.id, created=False, usage_count=existing.usage_count + 1
                )
            record_id = store.insert(fresh)
            return RecordOutcome(id=record_id, created=True, usage_count=1)
    except ConstraintViolation:
        logger.info(
            "concurrent insert for %r in %r, recording as a repeat",
            fresh.command,
            fresh.working_dir,
        )
    with store.transaction():
        return _touch_existing(store, fresh.command, fresh.working_dir)
