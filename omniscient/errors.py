"""Exception taxonomy for the history store.

Recoverable kinds are handled by the layer that can act on them: the dedup
tracker turns ``ConstraintViolation`` into a touch, the search engine turns
``QuerySyntaxError`` into a substring scan, and the merge engine counts
``MalformedRecord`` as a row error. ``StorageUnavailable`` always propagates.
"""

from __future__ import annotations


class OmniscientError(Exception):
    """Base class for every error raised by omniscient."""


class ConstraintViolation(OmniscientError):
    """An insert collided with an existing ``(command, working_dir)`` pair."""

    def __init__(self, command: str, working_dir: str) -> None:
        super().__init__(f"command already recorded for {working_dir!r}: {command!r}")
        self.command = command
        self.working_dir = working_dir


class NotFound(OmniscientError):
    """A record id (or key) is not present in the store."""


class QuerySyntaxError(OmniscientError):
    """The full-text index rejected a search term."""


class StorageUnavailable(OmniscientError):
    """The database could not be opened or is not a usable SQLite file."""


class MalformedRecord(OmniscientError):
    """A record failed field validation."""


class MalformedExport(OmniscientError):
    """An export file is unreadable or has an unsupported format version."""
