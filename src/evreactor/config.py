# src/evreactor/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from evreactor.core.contracts import ConfigError
from evreactor.core.log import load_env

# env var -> AppConfig field
ENV_KEYS: Dict[str, str] = {
    "EVR_WORKER_COUNT": "worker_count",
    "EVR_EXPECTED_EVENTS": "expected_event_count",
    "EVR_TOPIC": "topic",
    "EVR_MAX_PENDING": "max_pending",
    "EVR_AWAIT_TIMEOUT": "await_timeout",
    "LOG_LEVEL": "log_level",
    "LOG_JSON": "log_json",
    "METRICS_INTERVAL": "metrics_interval",
}

# YAML uses the same camelCase names the reactor options are known by
YAML_ALIASES: Dict[str, str] = {
    "workerCount": "worker_count",
    "expectedEventCount": "expected_event_count",
    "maxPending": "max_pending",
    "awaitTimeout": "await_timeout",
}


@dataclass(frozen=True)
class AppConfig:
    worker_count: int = 4
    expected_event_count: int = 10
    topic: str = "jokes"
    max_pending: Optional[int] = None
    await_timeout: Optional[float] = 30.0
    log_level: str = "INFO"
    log_json: bool = False
    metrics_interval: float = 5.0

    def __post_init__(self):
        if self.worker_count < 1:
            raise ConfigError(f"worker_count must be >= 1, got {self.worker_count}")
        if self.expected_event_count < 0:
            raise ConfigError(f"expected_event_count must be >= 0, got {self.expected_event_count}")
        if self.max_pending is not None and self.max_pending < 1:
            raise ConfigError(f"max_pending must be >= 1, got {self.max_pending}")
        if not self.topic:
            raise ConfigError("topic must not be empty")


def _to_bool(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    return str(v).strip().lower() in ("1", "true", "yes", "on")


def _optional(conv):
    def inner(v: Any):
        if v is None or (isinstance(v, str) and v.strip().lower() in ("", "none", "null")):
            return None
        return conv(v)
    return inner


_CONVERTERS = {
    "worker_count": int,
    "expected_event_count": int,
    "topic": str,
    "max_pending": _optional(int),
    "await_timeout": _optional(float),
    "log_level": lambda v: str(v).upper(),
    "log_json": _to_bool,
    "metrics_interval": float,
}


def _coerce(values: Mapping[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    known = {f.name for f in fields(AppConfig)}
    for raw_key, v in values.items():
        key = YAML_ALIASES.get(raw_key, raw_key)
        if key not in known:
            raise ConfigError(f"unknown config key: {raw_key}")
        try:
            out[key] = _CONVERTERS[key](v)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"bad value for {raw_key}: {v!r} ({e})") from e
    return out


def from_yaml(path: str | Path, base: Optional[AppConfig] = None) -> AppConfig:
    """Read a YAML mapping; a top-level ``reactor:`` section is used if present."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"cannot read {path}: {e}") from e
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"cannot parse {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at top level")
    section = data.get("reactor", data) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"{path}: 'reactor' must be a mapping, got {type(section).__name__}")
    return replace(base or AppConfig(), **_coerce(section))


def from_env(base: Optional[AppConfig] = None, environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    env = os.environ if environ is None else environ
    picked = {field: env[k] for k, field in ENV_KEYS.items() if k in env}
    return replace(base or AppConfig(), **_coerce(picked))


def load(path: str | Path | None = None, environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """defaults < YAML file (if given) < environment (including ./.env when reading os.environ)."""
    if environ is None:
        load_env()
    cfg = from_yaml(path) if path else AppConfig()
    return from_env(cfg, environ)
