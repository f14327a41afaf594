"""Directory scoping for history queries.

Paths are compared exactly as supplied: no canonicalization, symlink
resolution or trailing-slash normalization happens here.

Recursive mode is a plain textual prefix match with no path-separator boundary,
so ``/foo`` also matches ``/foobar``. Callers wanting a strict subtree pass a
path ending in ``/`` and query the directory itself separately.
"""

from __future__ import annotations

from typing import Any

_GLOB_SPECIAL = "*?["


def escape_glob(value: str) -> str:
    return "".join(f"[{ch}]" if ch in _GLOB_SPECIAL else ch for ch in value)


def path_column_clause(
    column_expr: str, working_dir: str | None, *, recursive: bool = False
) -> tuple[str, list[Any]]:
    if working_dir is None:
        return "", []
    if recursive:
        # GLOB is case-sensitive and can use the working_dir index, unlike LIKE.
        return f"{column_expr} GLOB ?", [escape_glob(working_dir) + "*"]
    return f"{column_expr} = ?", [working_dir]


def path_clause(working_dir: str | None, *, recursive: bool = False) -> tuple[str, list[Any]]:
    return path_column_clause("commands.working_dir", working_dir, recursive=recursive)

