"""Export envelope and merge of external history batches.

A merge is not transactional as a whole: each record is applied in its own
transaction and is idempotent to re-apply, so partial progress after a failure
is kept.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ..errors import ConstraintViolation, MalformedExport, MalformedRecord
from .types import (
    CommandRecord,
    ExportStats,
    ImportStrategy,
    MergeSummary,
    validate_import_strategy,
)
from .utils import format_timestamp, now_utc

if TYPE_CHECKING:
    from ._store import HistoryStore

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"
SUPPORTED_MAJOR_VERSION = 1
SUPPORTED_MINOR_VERSION = 0


@dataclass
class ExportBundle:
    version: str
    exported_at: str | None
    command_count: int | None
    commands: list[Any]


def build_export(store: HistoryStore) -> dict[str, Any]:
    commands = [record.to_dict() for record in store.all()]
    return {
        "version": EXPORT_VERSION,
        "exported_at": format_timestamp(now_utc()),
        "command_count": len(commands),
        "commands": commands,
    }


def export_json(store: HistoryStore) -> str:
    return json.dumps(build_export(store), ensure_ascii=False, indent=2)


def export_history(store: HistoryStore, output_path: Path | str) -> ExportStats:
    payload = build_export(store)
    path = Path(output_path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    logger.info("exported %d commands to %s", payload["command_count"], path)
    return ExportStats(commands_exported=payload["command_count"], file_path=str(path))


def _check_version(version: Any) -> str:
    if not isinstance(version, str) or not version.strip():
        raise MalformedExport("export file is missing a format version")
    major_text, _, minor_text = version.strip().partition(".")
    try:
        major = int(major_text)
        minor = int(minor_text or 0)
    except ValueError as exc:
        raise MalformedExport(f"unrecognized export version: {version!r}") from exc
    if major != SUPPORTED_MAJOR_VERSION:
        raise MalformedExport(
            f"unsupported export version {version!r} (expected {SUPPORTED_MAJOR_VERSION}.x)"
        )
    if minor > SUPPORTED_MINOR_VERSION:
        logger.warning(
            "export version %s is newer than %s; unknown fields will be ignored",
            version,
            EXPORT_VERSION,
        )
    return version


def parse_export(text: str) -> ExportBundle:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedExport(f"invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedExport("export file must contain a JSON object")
    version = _check_version(data.get("version"))
    commands = data.get("commands")
    if not isinstance(commands, list):
        raise MalformedExport("export file has no 'commands' list")
    command_count = data.get("command_count")
    if isinstance(command_count, int) and command_count != len(commands):
        logger.warning(
            "export declares %d commands but contains %d", command_count, len(commands)
        )
    return ExportBundle(
        version=version,
        exported_at=data.get("exported_at"),
        command_count=command_count if isinstance(command_count, int) else None,
        commands=commands,
    )


def load_export(input_path: Path | str) -> ExportBundle:
    path = Path(input_path).expanduser()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise MalformedExport(f"cannot read export file {path}: {exc}") from exc
    return parse_export(text)


def _apply_policy(
    store: HistoryStore,
    existing: CommandRecord,
    incoming: CommandRecord,
    strategy: ImportStrategy,
) -> str:
    if strategy == "skip" or existing.id is None:
        return "skipped"
    if strategy == "update-usage":
        store.touch(existing.id)
        return "merged"
    store.set_usage(
        existing.id,
        max(existing.usage_count, incoming.usage_count),
        last_used=incoming.last_used,
    )
    return "merged"


def _merge_one(store: HistoryStore, incoming: CommandRecord, strategy: ImportStrategy) -> str:
    try:
        with store.transaction():
            existing = store.find(incoming.command, incoming.working_dir)
            if existing is None:
                store.insert(incoming)
                return "imported"
            return _apply_policy(store, existing, incoming, strategy)
    except ConstraintViolation:
        pass
    with store.transaction():
        existing = store.find(incoming.command, incoming.working_dir)
        if existing is None:
            raise MalformedRecord(f"record vanished during merge: {incoming.command!r}")
        return _apply_policy(store, existing, incoming, strategy)


def merge_records(
    store: HistoryStore,
    records: Iterable[Any],
    strategy: ImportStrategy | str = "preserve-higher",
) -> MergeSummary:
    """Reconcile ``records`` (export entries or ``CommandRecord``s) into ``store``."""
    policy = validate_import_strategy(strategy)
    summary = MergeSummary()
    for index, raw in enumerate(records):
        summary.total += 1
        try:
            if isinstance(raw, CommandRecord):
                incoming = replace(raw, id=None)
            else:
                incoming = CommandRecord.from_dict(raw)
            outcome = _merge_one(store, incoming, policy)
        except MalformedRecord as exc:
            logger.warning("skipping malformed record #%d: %s", index, exc)
            summary.errors += 1
            continue
        if outcome == "imported":
            summary.imported += 1
        elif outcome == "merged":
            summary.merged += 1
        else:
            summary.skipped += 1
    logger.info("merge finished (%s): %s", policy, summary.summary())
    return summary


def import_history(
    store: HistoryStore,
    input_path: Path | str,
    strategy: ImportStrategy | str = "preserve-higher",
) -> MergeSummary:
    bundle = load_export(input_path)
    return merge_records(store, bundle.commands, strategy)
