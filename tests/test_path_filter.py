from __future__ import annotations

import pytest

from omniscient.store import CommandRecord, HistoryStore
from omniscient.store.paths import escape_glob, path_clause


@pytest.fixture
def populated(store: HistoryStore) -> HistoryStore:
    for working_dir in ("/home/u/proj", "/home/u/proj/sub", "/home/u/projects", "/srv", "/Home/u/proj"):
        store.insert(
            CommandRecord.new(
                f"make in {working_dir}",
                exit_code=0,
                duration_ms=1,
                working_dir=working_dir,
            )
        )
    return store


def _dirs(records) -> set[str]:
    return {r.working_dir for r in records}


def test_exact_directory_match(populated: HistoryStore) -> None:
    assert _dirs(populated.recent(working_dir="/home/u/proj")) == {"/home/u/proj"}


def test_recursive_is_a_textual_prefix(populated: HistoryStore) -> None:
    found = _dirs(populated.recent(working_dir="/home/u/proj", recursive=True))
    # No separator boundary: the sibling "projects" directory matches too.
    assert found == {"/home/u/proj", "/home/u/proj/sub", "/home/u/projects"}


def test_trailing_slash_limits_recursion_to_subtree(populated: HistoryStore) -> None:
    found = _dirs(populated.recent(working_dir="/home/u/proj/", recursive=True))
    assert found == {"/home/u/proj/sub"}


def test_path_match_is_case_sensitive(populated: HistoryStore) -> None:
    found = _dirs(populated.recent(working_dir="/home", recursive=True))
    assert "/Home/u/proj" not in found
    assert _dirs(populated.recent(working_dir="/Home/u/proj")) == {"/Home/u/proj"}


def test_wildcard_characters_in_paths_are_literal(store: HistoryStore) -> None:
    for working_dir in ("/tmp/a*b", "/tmp/axb", "/tmp/[x]", "/tmp/x", "/tmp/q?", "/tmp/qz"):
        store.insert(
            CommandRecord.new("ls", exit_code=0, duration_ms=1, working_dir=working_dir)
        )

    assert _dirs(store.recent(working_dir="/tmp/a*", recursive=True)) == {"/tmp/a*b"}
    assert _dirs(store.recent(working_dir="/tmp/[x]", recursive=True)) == {"/tmp/[x]"}
    assert _dirs(store.recent(working_dir="/tmp/q?", recursive=True)) == {"/tmp/q?"}


def test_path_filter_combines_with_search(populated: HistoryStore) -> None:
    results = populated.search("make", working_dir="/home/u/proj", recursive=True)
    assert _dirs(results) == {"/home/u/proj", "/home/u/proj/sub", "/home/u/projects"}


def test_escape_glob_and_clause() -> None:
    assert escape_glob("a*b?[c]") == "a[*]b[?][[]c]"
    assert path_clause(None) == ("", [])
    assert path_clause("/x") == ("commands.working_dir = ?", ["/x"])
    assert path_clause("/x", recursive=True) == ("commands.working_dir GLOB ?", ["/x*"])
