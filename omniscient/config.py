from __future__ import annotations

import json
import os
import warnings
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_PATH = Path("~/.omniscient/config.json").expanduser()

DEFAULT_REDACT_PATTERNS = ["password", "token", "secret", "api_key", "apikey"]

CONFIG_ENV_OVERRIDES = {
    "db_path": "OMNISCIENT_DB_PATH",
    "redact_enabled": "OMNISCIENT_REDACT_ENABLED",
    "redact_patterns": "OMNISCIENT_REDACT_PATTERNS",
    "min_duration_ms": "OMNISCIENT_MIN_DURATION_MS",
    "busy_timeout_s": "OMNISCIENT_BUSY_TIMEOUT_S",
    "log_path": "OMNISCIENT_LOG_PATH",
}


def get_config_path(path: Path | None = None) -> Path:
    candidate = path or Path(os.getenv("OMNISCIENT_CONFIG", DEFAULT_CONFIG_PATH))
    return candidate.expanduser()


def read_config_file(path: Path | None = None) -> dict[str, Any]:
    config_path = get_config_path(path)
    if not config_path.exists():
        return {}
    raw = config_path.read_text()
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError("invalid config json") from exc
    if not isinstance(data, dict):
        raise ValueError("config must be an object")
    return data


def write_config_file(data: dict[str, Any], path: Path | None = None) -> Path:
    config_path = get_config_path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(data, ensure_ascii=False, indent=2) + "\n")
    return config_path


def get_env_overrides() -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, env_var in CONFIG_ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value is not None:
            overrides[key] = value
    return overrides


@dataclass
class OmniscientConfig:
    db_path: str = "~/.omniscient/history.db"
    redact_enabled: bool = True
    redact_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_REDACT_PATTERNS))
    # Commands finishing faster than this are not recorded.
    min_duration_ms: int = 0
    busy_timeout_s: float = 5.0
    log_path: str | None = "~/.omniscient/omniscient.log"

    def database_path(self) -> Path:
        return Path(self.db_path).expanduser()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    if value.lower() in {"1", "true", "yes", "on"}:
        return True
    if value.lower() in {"0", "false", "off", "no"}:
        return False
    return default


def _parse_int(value: object, default: int, *, key: str) -> int:
    if value is None:
        return default
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        warnings.warn(f"Invalid int for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default


def _parse_float(value: object, default: float, *, key: str) -> float:
    if value is None:
        return default
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        warnings.warn(f"Invalid float for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default


def _coerce_bool(value: object, default: bool, *, key: str) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        return _parse_bool(value, default)
    warnings.warn(f"Invalid bool for {key}: {value!r}", RuntimeWarning, stacklevel=2)
    return default


def _coerce_str_list(value: object, *, key: str) -> list[str] | None:
    if value is None:
        return None
    if isinstance(value, list):
        items: list[str] = []
        for item in value:
            if isinstance(item, str) and item.strip():
                items.append(item.strip())
        return items
    if isinstance(value, str):
        return [p.strip() for p in value.split(",") if p.strip()]
    warnings.warn(f"Invalid list for {key}: {value!r}", RuntimeWarning, stacklevel=2)
    return None


def load_config(path: Path | None = None) -> OmniscientConfig:
    cfg = OmniscientConfig()
    config_path = get_config_path(path)
    if config_path.exists():
        try:
            data = json.loads(config_path.read_text())
        except json.JSONDecodeError:
            data = {}
        if isinstance(data, dict):
            cfg = _apply_dict(cfg, data)
    cfg = _apply_env(cfg)
    return cfg


def _apply_dict(cfg: OmniscientConfig, data: dict[str, Any]) -> OmniscientConfig:
    for key, value in data.items():
        if not hasattr(cfg, key):
            continue
        if key == "min_duration_ms":
            cfg.min_duration_ms = _parse_int(value, cfg.min_duration_ms, key=key)
            continue
        if key == "busy_timeout_s":
            cfg.busy_timeout_s = _parse_float(value, cfg.busy_timeout_s, key=key)
            continue
        if key == "redact_enabled":
            cfg.redact_enabled = _coerce_bool(value, cfg.redact_enabled, key=key)
            continue
        if key == "redact_patterns":
            parsed = _coerce_str_list(value, key=key)
            if parsed is not None:
                cfg.redact_patterns = parsed
            continue
        setattr(cfg, key, value)
    return cfg


def _apply_env(cfg: OmniscientConfig) -> OmniscientConfig:
    cfg.db_path = os.getenv("OMNISCIENT_DB_PATH", cfg.db_path)
    cfg.redact_enabled = _parse_bool(os.getenv("OMNISCIENT_REDACT_ENABLED"), cfg.redact_enabled)
    patterns = _coerce_str_list(os.getenv("OMNISCIENT_REDACT_PATTERNS"), key="redact_patterns")
    if patterns is not None:
        cfg.redact_patterns = patterns
    cfg.min_duration_ms = _parse_int(
        os.getenv("OMNISCIENT_MIN_DURATION_MS"), cfg.min_duration_ms, key="min_duration_ms"
    )
    cfg.busy_timeout_s = _parse_float(
        os.getenv("OMNISCIENT_BUSY_TIMEOUT_S"), cfg.busy_timeout_s, key="busy_timeout_s"
    )
    cfg.log_path = os.getenv("OMNISCIENT_LOG_PATH", cfg.log_path)
    return cfg
