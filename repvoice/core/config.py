"""Configuration loading and persistence."""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # Python 3.9-3.10
    import tomli as tomllib  # type: ignore[no-redef]

from repvoice.core.constants import DEFAULT_TRIGGER_PHRASES
from repvoice.utils.text import normalize_phrase


class ConfigError(RuntimeError):
    """Raised when config file parsing fails."""


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def expand_path(path_str: str) -> Path:
    """Expand user/env vars and return absolute path."""
    return Path(os.path.expandvars(path_str)).expanduser().resolve()


def default_data_dir() -> Path:
    """Resolve XDG-style data directory with env override."""
    raw = os.getenv("REPVOICE_DATA_DIR", "~/.local/share/repvoice")
    return expand_path(raw)


def default_config_path() -> Path:
    """Get default config file path."""
    raw = os.getenv("REPVOICE_CONFIG_FILE", "~/.config/repvoice/config.toml")
    return expand_path(raw)


def _default_config() -> Dict[str, Any]:
    data_dir = default_data_dir()
    return {
        "user": {
            "id": "local",
        },
        "voice": {
            "enabled": True,
            "announce": True,
            "trigger_phrases": [],
            "silence_timeout_seconds": 3.0,
            "acknowledgment_seconds": 3.0,
        },
        "storage": {
            "backend": "local",
            "log_directory": str(data_dir / "logs"),
        },
        "api": {
            "base_url": "",
            "token_env": "REPVOICE_API_TOKEN",
            "rate_limit_delay": 0.0,
            "max_retries": 3,
            "timeout_seconds": 30,
        },
    }


DEFAULT_CONFIG: Dict[str, Any] = _default_config()


def _read_config(path: Path) -> Dict[str, Any]:
    suffix = path.suffix.lower()
    text = path.read_text()
    try:
        if suffix in {".toml", ""}:
            loaded = tomllib.loads(text)
        else:
            loaded = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in config file {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigError(f"Config file {path} must contain an object/table at the root")
    return loaded


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from disk, merged with defaults."""
    cfg_path = path or default_config_path()
    cfg = _default_config()

    if cfg_path.exists():
        cfg = _deep_merge(cfg, _read_config(cfg_path))

    for table in ("user", "voice", "storage", "api"):
        if not isinstance(cfg.get(table), dict):
            raise ConfigError(f"{table} must be a table")
    phrases = cfg["voice"].get("trigger_phrases")
    if not isinstance(phrases, list) or not all(isinstance(item, str) for item in phrases):
        raise ConfigError("voice.trigger_phrases must be a list of strings")
    return cfg


def _toml_literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    if isinstance(value, list):
        items = ", ".join(_toml_literal(item) for item in value if item is not None)
        return f"[{items}]"
    raise TypeError(f"Unsupported TOML value type: {type(value)!r}")


def _dict_to_toml(data: Dict[str, Any], prefix: Optional[str] = None) -> str:
    lines = []
    plain_keys = []
    nested_keys = []

    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, dict):
            nested_keys.append((key, value))
        else:
            plain_keys.append((key, value))

    if prefix is not None:
        lines.append(f"[{prefix}]")

    for key, value in plain_keys:
        lines.append(f"{key} = {_toml_literal(value)}")

    if plain_keys and nested_keys:
        lines.append("")

    for index, (key, value) in enumerate(nested_keys):
        table_name = key if prefix is None else f"{prefix}.{key}"
        lines.append(_dict_to_toml(value, prefix=table_name))
        if index != len(nested_keys) - 1:
            lines.append("")

    return "\n".join(lines)


def save_config(config: Dict[str, Any], path: Optional[Path] = None) -> Path:
    """Save configuration to disk as TOML (default) or JSON."""
    cfg_path = path or default_config_path()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)

    if cfg_path.suffix.lower() == ".json":
        cfg_path.write_text(json.dumps(config, indent=2) + "\n")
        return cfg_path

    cfg_path.write_text(_dict_to_toml(config).strip() + "\n")
    return cfg_path


def custom_trigger_phrases(config: Dict[str, Any]) -> List[str]:
    """User-added phrases, normalized, without defaults or duplicates."""
    phrases: List[str] = []
    for raw in config.get("voice", {}).get("trigger_phrases", []):
        phrase = normalize_phrase(str(raw))
        if phrase and phrase not in DEFAULT_TRIGGER_PHRASES and phrase not in phrases:
            phrases.append(phrase)
    return phrases


def resolve_trigger_phrases(config: Dict[str, Any]) -> List[str]:
    """Defaults plus user phrases, in match order.

    A user phrase is placed ahead of the first phrase it contains, so
    "hey trainer mike" is tried before "hey trainer". Otherwise it follows the
    defaults in the order it was added.
    """
    phrases = list(DEFAULT_TRIGGER_PHRASES)
    for phrase in custom_trigger_phrases(config):
        position = next((index for index, existing in enumerate(phrases) if existing in phrase), len(phrases))
        phrases.insert(position, phrase)
    return phrases


def add_trigger_phrase(config: Dict[str, Any], phrase: str) -> bool:
    """Add a user trigger phrase in place; returns False when nothing changed."""
    normalized = normalize_phrase(phrase)
    if not normalized or normalized in resolve_trigger_phrases(config):
        return False
    config.setdefault("voice", {})["trigger_phrases"] = custom_trigger_phrases(config) + [normalized]
    return True


def remove_trigger_phrase(config: Dict[str, Any], phrase: str) -> bool:
    """Remove a user trigger phrase in place; default phrases cannot be removed."""
    normalized = normalize_phrase(phrase)
    if normalized in DEFAULT_TRIGGER_PHRASES:
        raise ConfigError(f"'{normalized}' is a built-in trigger phrase and cannot be removed")
    current = custom_trigger_phrases(config)
    if normalized not in current:
        return False
    config.setdefault("voice", {})["trigger_phrases"] = [item for item in current if item != normalized]
    return True


def resolve_log_dir(config: Dict[str, Any], explicit: Optional[Path] = None) -> Path:
    """Resolve workout log directory with CLI override first."""
    if explicit is not None:
        return explicit.expanduser().resolve()
    raw = os.getenv("REPVOICE_LOG_DIR") or config.get("storage", {}).get("log_directory")
    if not raw:
        raw = str(default_data_dir() / "logs")
    return expand_path(raw)


def resolve_api_token(config: Dict[str, Any]) -> Optional[str]:
    env_name = config.get("api", {}).get("token_env") or "REPVOICE_API_TOKEN"
    return os.getenv(str(env_name)) or None
