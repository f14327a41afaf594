import pytest

from omniscient.redaction import REDACTED, RedactionEngine, strip_ansi


def test_default_patterns_redact_whole_command() -> None:
    engine = RedactionEngine()
    assert engine.redact("export GITHUB_TOKEN=abc123") == REDACTED
    assert engine.redact("mysql --password=hunter2") == REDACTED
    assert engine.redact("curl -H 'X-Api_Key: 1'") == REDACTED
    assert engine.redact("git status") == "git status"


def test_patterns_are_case_insensitive_regexes() -> None:
    engine = RedactionEngine([r"aws_[a-z]+_key", "^vault "])
    assert engine.should_redact("export AWS_SECRET_KEY=x")
    assert engine.should_redact("vault read secret/db")
    assert not engine.should_redact("echo vault")
    assert engine.pattern_count == 2


def test_disabled_engine_passes_everything_through() -> None:
    engine = RedactionEngine(enabled=False)
    assert not engine.should_redact("echo $PASSWORD")
    assert engine.redact("echo $PASSWORD") == "echo $PASSWORD"


def test_invalid_pattern_raises_value_error() -> None:
    with pytest.raises(ValueError, match="Invalid redaction pattern"):
        RedactionEngine(["(unclosed"])


def test_strip_ansi() -> None:
    assert strip_ansi("\x1b[31mgit\x1b[0m status") == "git status"
    assert strip_ansi("plain") == "plain"
