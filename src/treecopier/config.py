from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import json
import yaml


DEFAULT_CONCURRENCY = 10
LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}


@dataclass(slots=True)
class CopyConfig:
    source: Path
    destination: Path
    delete_source: bool = False
    concurrency: int = DEFAULT_CONCURRENCY
    fail_fast: bool = False
    prune_source_dirs: bool = False
    log_level: str = "INFO"
    log_file: Path | None = None


def _as_path(value: Any, field_name: str) -> Path:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be a non-empty string path")
    return Path(value).expanduser()


def _as_bool(value: Any, field_name: str, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    raise ValueError(f"{field_name} must be a boolean")


def _as_int(value: Any, field_name: str, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer")
    return value


def _as_log_level(value: Any, field_name: str, default: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")
    level = value.strip().upper()
    if level == "WARN":
        level = "WARNING"
    if level not in LOG_LEVELS:
        raise ValueError(f"{field_name} must be one of: {', '.join(sorted(LOG_LEVELS))}")
    return level


def _load_raw_config(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise ValueError(f"Config file does not exist: {config_path}")

    suffix = config_path.suffix.lower()
    text = config_path.read_text(encoding="utf-8")
    if suffix in {".yml", ".yaml"}:
        loaded = yaml.safe_load(text)
    elif suffix == ".json":
        loaded = json.loads(text)
    else:
        raise ValueError("Config file must be .yaml/.yml or .json")

    if not isinstance(loaded, dict):
        raise ValueError("Config root must be an object")
    return loaded


def load_config(config_path: Path) -> CopyConfig:
    raw = _load_raw_config(config_path)

    raw_log_file = raw.get("logFile")
    return CopyConfig(
        source=_as_path(raw.get("source"), "source"),
        destination=_as_path(raw.get("destination"), "destination"),
        delete_source=_as_bool(raw.get("deleteSource"), "deleteSource", default=False),
        concurrency=_as_int(raw.get("concurrency"), "concurrency", default=DEFAULT_CONCURRENCY),
        fail_fast=_as_bool(raw.get("failFast"), "failFast", default=False),
        prune_source_dirs=_as_bool(raw.get("pruneSourceDirs"), "pruneSourceDirs", default=False),
        log_level=_as_log_level(raw.get("logLevel"), "logLevel", default="INFO"),
        log_file=_as_path(raw_log_file, "logFile") if raw_log_file else None,
    )


def apply_overrides(config: CopyConfig | None, **overrides: Any) -> CopyConfig:
    """Layer command-line values (``None`` meaning "not given") over ``config``."""
    known = {item.name for item in fields(CopyConfig)}
    unknown = set(overrides) - known
    if unknown:
        raise ValueError(f"Unknown config option(s): {', '.join(sorted(unknown))}")

    values: dict[str, Any] = {}
    if config is not None:
        values = {name: getattr(config, name) for name in known}
    values.update({name: value for name, value in overrides.items() if value is not None})

    for required in ("source", "destination"):
        if values.get(required) is None:
            raise ValueError(f"{required} is required (pass --{required} or set it in the config file)")

    values["source"] = Path(values["source"]).expanduser()
    values["destination"] = Path(values["destination"]).expanduser()
    if values.get("log_level") is not None:
        values["log_level"] = _as_log_level(values["log_level"], "log_level", default="INFO")
    return CopyConfig(**values)


def validate_config(config: CopyConfig) -> None:
    if config.concurrency < 1:
        raise ValueError(f"concurrency must be a positive integer, got {config.concurrency}")
    if config.log_level not in LOG_LEVELS:
        raise ValueError(f"log level must be one of: {', '.join(sorted(LOG_LEVELS))}")
    if config.prune_source_dirs and not config.delete_source:
        raise ValueError("pruneSourceDirs requires deleteSource")

    source_resolved = config.source.resolve()
    destination_resolved = config.destination.resolve()

    if source_resolved == destination_resolved:
        raise ValueError(f"Invalid mapping: source and destination are equal: {config.source}")

    if destination_resolved.is_relative_to(source_resolved):
        raise ValueError(
            f"Invalid mapping: destination is inside source, which can recurse: {config.destination}"
        )

    if source_resolved.is_relative_to(destination_resolved):
        raise ValueError(
            f"Invalid mapping: source is inside destination, which can overwrite source files: {config.source}"
        )
