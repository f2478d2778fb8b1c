from __future__ import annotations

from dataclasses import dataclass, fields, replace
import json
from pathlib import Path
from typing import Any, Iterator


FRAME_MS = 1000.0 / 60.0
SCHEMA_VERSION = 1

# Nested sections map to dicts; leaves map to None.
CONFIG_SCHEMA: dict[str, Any] = {
    "schema_version": None,
    "session": {"starting_money": None, "starting_lives": None, "seed": None},
    "timing": {
        "frame_ms": None,
        "preparation_seconds": None,
        "wave_countdown_seconds": None,
        "bonus_delay_ms": None,
    },
    "map": None,
}

# (section, key, lower bound, bound is exclusive)
_NUMERIC_RULES = (
    ("session", "starting_money", 0, False),
    ("session", "starting_lives", 0, True),
    ("timing", "frame_ms", 0, True),
    ("timing", "preparation_seconds", 0, True),
    ("timing", "wave_countdown_seconds", 0, True),
    ("timing", "bonus_delay_ms", 0, True),
)


@dataclass(frozen=True, slots=True)
class SessionConfig:
    starting_money: int = 75
    starting_lives: int = 1
    seed: int | None = None
    frame_ms: float = FRAME_MS
    preparation_seconds: int = 5
    wave_countdown_seconds: int = 8
    bonus_delay_ms: float = 1000.0
    map: str | None = None

    def with_overrides(self, **changes: Any) -> "SessionConfig":
        return replace(self, **changes)


def load_json_config(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    data = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{p}: config must be a JSON object, got {type(data).__name__}")
    _validate_config(data)
    return data


def load_session_config(path: str | Path | None = None, overrides_list: list[str] | None = None) -> SessionConfig:
    """
    Defaults, then the JSON file, then `section.key=value` overrides.

    Every layer is validated; unknown keys and out-of-range numbers raise
    ValueError.
    """
    cfg: dict[str, Any] = {"schema_version": SCHEMA_VERSION}
    if path is not None:
        cfg = deep_merge(cfg, load_json_config(path))
    cfg = apply_overrides(cfg, overrides_list)
    _validate_config(cfg)
    return session_config_from_dict(cfg)


def session_config_from_dict(cfg: dict[str, Any]) -> SessionConfig:
    values: dict[str, Any] = {}
    values.update(cfg.get("session") or {})
    values.update(cfg.get("timing") or {})
    if cfg.get("map") is not None:
        values["map"] = str(cfg["map"])
    names = {f.name for f in fields(SessionConfig)}
    return SessionConfig(**{name: values[name] for name in names if name in values})


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = deep_merge(current, value)
        merged[key] = value
    return merged


def apply_overrides(cfg: dict[str, Any], overrides_list: list[str] | None) -> dict[str, Any]:
    for item in overrides_list or ():
        keys, value = _parse_override(item)
        node = cfg
        for key in keys[:-1]:
            child = node.get(key)
            if not isinstance(child, dict):
                child = node[key] = {}
            node = child
        node[keys[-1]] = value
    return cfg


def _parse_override(item: str) -> tuple[list[str], Any]:
    dotted, sep, raw = item.partition("=")
    if not sep:
        raise ValueError(f"override {item!r} is not of the form key=value")
    keys = dotted.split(".")
    if not all(keys):
        raise ValueError(f"override {item!r} has an empty key")
    return keys, _parse_scalar(raw)


def _parse_scalar(raw: str) -> Any:
    """JSON literals (numbers, true/false/null) where possible, otherwise the raw string."""
    text = raw.strip()
    if text.lower() in ("true", "false", "null", "none"):
        return {"true": True, "false": False}.get(text.lower())
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        return raw
    return value if isinstance(value, (int, float)) else raw


def _validate_config(cfg: dict[str, Any]) -> None:
    unknown = sorted(_unknown_keys(cfg, CONFIG_SCHEMA))
    if unknown:
        raise ValueError("unknown config keys: " + ", ".join(unknown))

    version = cfg.get("schema_version", SCHEMA_VERSION)
    if version != SCHEMA_VERSION:
        raise ValueError(f"unsupported schema_version {version!r}, expected {SCHEMA_VERSION}")

    for section_name in ("session", "timing"):
        section = cfg.get(section_name)
        if section is not None and not isinstance(section, dict):
            raise ValueError(f"config section '{section_name}' must be an object")

    for section_name, key, bound, exclusive in _NUMERIC_RULES:
        section = cfg.get(section_name) or {}
        if key not in section:
            continue
        value = section[key]
        dotted = f"{section_name}.{key}"
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{dotted} must be a number, got {value!r}")
        if value < bound or (exclusive and value == bound):
            op = ">" if exclusive else ">="
            raise ValueError(f"{dotted} must be {op} {bound}, got {value!r}")

    # Countdowns tick in whole seconds.
    timing = cfg.get("timing") or {}
    for key in ("preparation_seconds", "wave_countdown_seconds"):
        value = timing.get(key)
        if value is not None and not isinstance(value, int):
            raise ValueError(f"timing.{key} must be a whole number of seconds, got {value!r}")

    seed = (cfg.get("session") or {}).get("seed")
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
        raise ValueError(f"session.seed must be an integer or null, got {seed!r}")


def _unknown_keys(value: dict[str, Any], schema: dict[str, Any], prefix: str = "") -> Iterator[str]:
    for key, sub in value.items():
        if key not in schema:
            yield prefix + key
        elif isinstance(sub, dict) and isinstance(schema[key], dict):
            yield from _unknown_keys(sub, schema[key], f"{prefix}{key}.")
