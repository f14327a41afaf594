from __future__ import annotations

import re
from collections.abc import Iterable

from .config import DEFAULT_REDACT_PATTERNS

REDACTED = "[REDACTED]"

ANSI_ESCAPE_RE = re.compile(
    r"""
    \x1B
    (?:
        [@-Z\\-_]
      | \[ [0-?]* [ -/]* [@-~]
      | \] [^\x1B]* (?:\x1B\\\\|\x07)
      | P  [0-?]* [ -/]* [\x20-\x7E]* (?:\x1B\\\\|\x07)
    )
    """,
    re.VERBOSE,
)


class RedactionEngine:
    """Suppress whole commands that mention anything sensitive.

    A matching command is replaced by ``[REDACTED]`` rather than masked in
    place; capture treats that marker as "do not store".
    """

    def __init__(self, patterns: Iterable[str] = DEFAULT_REDACT_PATTERNS, enabled: bool = True):
        self.enabled = enabled
        self.patterns: list[re.Pattern[str]] = []
        for pattern in patterns:
            try:
                self.patterns.append(re.compile(pattern, re.IGNORECASE))
            except re.error as exc:
                raise ValueError(f"Invalid redaction pattern '{pattern}': {exc}") from exc

    def should_redact(self, command: str) -> bool:
        if not self.enabled:
            return False
        return any(pattern.search(command) for pattern in self.patterns)

    def redact(self, command: str) -> str:
        if self.should_redact(command):
            return REDACTED
        return command

    @property
    def pattern_count(self) -> int:
        return len(self.patterns)


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE_RE.sub("", text)
