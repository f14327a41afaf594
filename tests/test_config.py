import json
from pathlib import Path

import pytest

from omniscient.config import (
    DEFAULT_REDACT_PATTERNS,
    get_config_path,
    get_env_overrides,
    load_config,
    read_config_file,
    write_config_file,
)


def test_defaults_without_config_file(tmp_path: Path) -> None:
    cfg = load_config(tmp_path / "missing.json")
    assert cfg.redact_enabled is True
    assert cfg.redact_patterns == DEFAULT_REDACT_PATTERNS
    assert cfg.min_duration_ms == 0
    assert cfg.busy_timeout_s == 5.0
    # The autouse fixture points the database into tmp_path.
    assert cfg.database_path() == tmp_path / "history.db"


def test_config_file_values_are_applied(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OMNISCIENT_DB_PATH")
    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps(
            {
                "db_path": str(tmp_path / "custom.db"),
                "redact_enabled": "false",
                "redact_patterns": ["hunter2", " "],
                "min_duration_ms": "250",
                "unknown_key": 1,
            }
        )
    )
    cfg = load_config(config_path)
    assert cfg.database_path() == tmp_path / "custom.db"
    assert cfg.redact_enabled is False
    assert cfg.redact_patterns == ["hunter2"]
    assert cfg.min_duration_ms == 250
    assert not hasattr(cfg, "unknown_key")


def test_env_overrides_win(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = tmp_path / "config.json"
    write_config_file({"min_duration_ms": 100}, config_path)
    monkeypatch.setenv("OMNISCIENT_MIN_DURATION_MS", "5")
    monkeypatch.setenv("OMNISCIENT_REDACT_PATTERNS", "aws_, gh_token")
    monkeypatch.setenv("OMNISCIENT_REDACT_ENABLED", "0")

    cfg = load_config(config_path)
    assert cfg.min_duration_ms == 5
    assert cfg.redact_patterns == ["aws_", "gh_token"]
    assert cfg.redact_enabled is False
    overrides = get_env_overrides()
    assert overrides["min_duration_ms"] == "5"
    assert "db_path" in overrides


def test_bad_values_warn_and_fall_back(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"min_duration_ms": "soon", "busy_timeout_s": []}))
    with pytest.warns(RuntimeWarning):
        cfg = load_config(config_path)
    assert cfg.min_duration_ms == 0
    assert cfg.busy_timeout_s == 5.0


def test_load_config_tolerates_invalid_json(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text("{broken")
    cfg = load_config(config_path)
    assert cfg.redact_enabled is True


def test_read_config_file_rejects_invalid_json(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text("{not-json}")
    with pytest.raises(ValueError, match="invalid config json"):
        read_config_file(config_path)


def test_read_config_file_rejects_non_object(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text("[1, 2]")
    with pytest.raises(ValueError, match="object"):
        read_config_file(config_path)


def test_write_then_read_round_trip(tmp_path: Path) -> None:
    config_path = tmp_path / "nested" / "config.json"
    written = write_config_file({"redact_enabled": False}, config_path)
    assert written == config_path
    assert read_config_file(config_path) == {"redact_enabled": False}


def test_config_path_env_override(tmp_path: Path) -> None:
    assert get_config_path() == tmp_path / "config.json"
    assert get_config_path(tmp_path / "x.json") == tmp_path / "x.json"
