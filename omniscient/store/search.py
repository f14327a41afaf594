from __future__ import annotations

import datetime as dt
import logging
import math
import sqlite3
from typing import TYPE_CHECKING, Any

from ..errors import QuerySyntaxError
from .paths import path_clause
from .types import CommandRecord, HistoryQuery, OrderBy
from .utils import age_in_days, now_utc

if TYPE_CHECKING:
    from ._store import HistoryStore

logger = logging.getLogger(__name__)

EXACT_MATCH_BONUS = 10.0
RECENCY_HALF_LIFE_DAYS = 30.0
RELEVANCE_CANDIDATE_LIMIT = 500
RELEVANCE_CANDIDATE_FACTOR = 25


def sanitize_fts_query(term: str) -> str:
    """Wrap ``term`` as a single FTS5 phrase so operators are read as text."""
    escaped = term.replace('"', '""')
    return f'"{escaped}"'


def _has_index_tokens(term: str) -> bool:
    # unicode61 only indexes letters and digits; anything else is a separator.
    return any(ch.isalnum() for ch in term)


def _filter_clauses(query: HistoryQuery) -> tuple[list[str], list[Any]]:
    where: list[str] = []
    params: list[Any] = []
    if query.category:
        where.append("commands.category = ?")
        params.append(query.category)
    if query.success_only is True:
        where.append("commands.exit_code = 0")
    elif query.success_only is False:
        where.append("commands.exit_code != 0")
    clause, clause_params = path_clause(query.working_dir, recursive=query.recursive)
    if clause:
        where.append(clause)
        params.extend(clause_params)
    return where, params


def _order_clause(order_by: OrderBy, *, native_score: bool) -> str:
    if order_by == "recency":
        return "commands.last_used DESC, commands.id DESC"
    if order_by == "usage":
        return "commands.usage_count DESC, commands.last_used DESC, commands.id DESC"
    if native_score:
        return "score DESC, commands.usage_count DESC, commands.last_used DESC"
    return "commands.usage_count DESC, commands.last_used DESC, commands.id DESC"


def _fetch_limit(query: HistoryQuery) -> int:
    if query.order_by != "relevance":
        return query.limit
    return max(query.limit * RELEVANCE_CANDIDATE_FACTOR, RELEVANCE_CANDIDATE_LIMIT)


def _plain_rows(store: HistoryStore, query: HistoryQuery) -> list[sqlite3.Row]:
    where, params = _filter_clauses(query)
    where_clause = " AND ".join(where) if where else "1 = 1"
    sql = f"""
        SELECT commands.*, 0.0 AS score
        FROM commands
        WHERE {where_clause}
        ORDER BY {_order_clause(query.order_by, native_score=False)}
        LIMIT ?
    """
    return store.conn.execute(sql, (*params, query.limit)).fetchall()


def _indexed_rows(store: HistoryStore, query: HistoryQuery, term: str) -> list[sqlite3.Row]:
    if not _has_index_tokens(term):
        raise QuerySyntaxError(f"term has no indexable tokens: {term!r}")
    where, params = _filter_clauses(query)
    where.insert(0, "commands_fts MATCH ?")
    params.insert(0, sanitize_fts_query(term))
    sql = f"""
        SELECT commands.*, -bm25(commands_fts) AS score
        FROM commands_fts
        JOIN commands ON commands.id = commands_fts.rowid
        WHERE {" AND ".join(where)}
        ORDER BY {_order_clause(query.order_by, native_score=True)}
        LIMIT ?
    """
    try:
        return store.conn.execute(sql, (*params, _fetch_limit(query))).fetchall()
    except sqlite3.OperationalError as exc:
        if "locked" in str(exc).lower():
            raise
        raise QuerySyntaxError(str(exc)) from exc


def _substring_rows(store: HistoryStore, query: HistoryQuery, term: str) -> list[sqlite3.Row]:
    where, params = _filter_clauses(query)
    # instr() is case-sensitive and has no wildcard characters to escape.
    where.insert(0, "instr(commands.command, ?) > 0")
    params.insert(0, term)
    sql = f"""
        SELECT commands.*, 0.0 AS score
        FROM commands
        WHERE {" AND ".join(where)}
        ORDER BY {_order_clause(query.order_by, native_score=False)}
        LIMIT ?
    """
    return store.conn.execute(sql, (*params, _fetch_limit(query))).fetchall()


def relevance_score(record: CommandRecord, term: str, now: dt.datetime) -> float:
    score = record.score
    if term in record.command:
        score += EXACT_MATCH_BONUS
    score += math.log(max(record.usage_count, 1))
    last_used = record.last_used or record.timestamp
    score += 1.0 / (1.0 + age_in_days(last_used, now) / RECENCY_HALF_LIFE_DAYS)
    return score


def rank_results(
    records: list[CommandRecord],
    term: str,
    limit: int,
    now: dt.datetime | None = None,
) -> list[CommandRecord]:
    now = now or now_utc()
    for record in records:
        record.score = relevance_score(record, term, now)
    ordered = sorted(
        records,
        key=lambda item: (item.score, item.last_used or item.timestamp),
        reverse=True,
    )
    return ordered[:limit]


def run_query(store: HistoryStore, query: HistoryQuery) -> list[CommandRecord]:
    term = query.search_text
    if term is None:
        return [CommandRecord.from_row(row) for row in _plain_rows(store, query)]
    try:
        rows = _indexed_rows(store, query, term)
    except QuerySyntaxError as exc:
        logger.debug("full-text search rejected %r, scanning for substring: %s", term, exc)
        rows = _substring_rows(store, query, term)
    records = [CommandRecord.from_row(row) for row in rows]
    if query.order_by != "relevance":
        for record in records:
            record.score = 0.0
        return records
    return rank_results(records, term, query.limit)
