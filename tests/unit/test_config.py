from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

import pytest

from repvoice.core.config import (
    ConfigError,
    _deep_merge,
    add_trigger_phrase,
    custom_trigger_phrases,
    default_config_path,
    default_data_dir,
    expand_path,
    load_config,
    remove_trigger_phrase,
    resolve_api_token,
    resolve_log_dir,
    resolve_trigger_phrases,
    save_config,
)
from repvoice.core.constants import DEFAULT_TRIGGER_PHRASES


def test_deep_merge_nested_dicts() -> None:
    base = {"a": {"b": 1, "c": 2}, "x": 3}
    override = {"a": {"b": 9}, "y": 4}
    merged = _deep_merge(base, override)
    assert merged == {"a": {"b": 9, "c": 2}, "x": 3, "y": 4}
    assert base["a"]["b"] == 1


def test_expand_path_expands_home_and_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("REPVOICE_TMP_PATH", str(tmp_path))
    expanded = expand_path("$REPVOICE_TMP_PATH/config.toml")
    assert expanded == (tmp_path / "config.toml").resolve()


def test_default_config_path_uses_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    path = tmp_path / "custom.toml"
    monkeypatch.setenv("REPVOICE_CONFIG_FILE", str(path))
    assert default_config_path() == path.resolve()


def test_default_data_dir_uses_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    path = tmp_path / "repvoice-data"
    monkeypatch.setenv("REPVOICE_DATA_DIR", str(path))
    assert default_data_dir() == path.resolve()


def test_load_config_missing_file_returns_defaults(tmp_path: Path) -> None:
    cfg = load_config(tmp_path / "missing.toml")
    assert cfg["voice"]["enabled"] is True
    assert cfg["voice"]["trigger_phrases"] == []
    assert cfg["storage"]["backend"] == "local"
    assert cfg["storage"]["log_directory"].endswith("logs")


def test_load_config_from_json(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"voice": {"silence_timeout_seconds": 5}, "user": {"id": "sam"}}))
    cfg = load_config(path)
    assert cfg["voice"]["silence_timeout_seconds"] == 5
    assert cfg["voice"]["enabled"] is True
    assert cfg["user"]["id"] == "sam"


def test_load_config_from_toml(write_temp_toml) -> None:
    path = write_temp_toml(
        "config.toml",
        """
[voice]
enabled = false
trigger_phrases = ["okay coach"]

[storage]
backend = "remote"
""",
    )
    cfg = load_config(path)
    assert cfg["voice"]["enabled"] is False
    assert cfg["voice"]["trigger_phrases"] == ["okay coach"]
    assert cfg["storage"]["backend"] == "remote"


def test_load_config_invalid_json_raises(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{broken")
    with pytest.raises(ConfigError):
        load_config(path)


def test_load_config_invalid_toml_raises(tmp_path: Path) -> None:
    path = tmp_path / "broken.toml"
    path.write_text("[voice\nenabled = true")
    with pytest.raises(ConfigError):
        load_config(path)


def test_load_config_rejects_non_table_sections(write_temp_toml) -> None:
    with pytest.raises(ConfigError, match="voice must be a table"):
        load_config(write_temp_toml("voice.toml", "voice = 5"))
    with pytest.raises(ConfigError, match="storage must be a table"):
        load_config(write_temp_toml("storage.toml", 'storage = "local"'))


def test_load_config_rejects_non_list_trigger_phrases(write_temp_toml) -> None:
    path = write_temp_toml("config.toml", '[voice]\ntrigger_phrases = "hey coach"')
    with pytest.raises(ConfigError, match="trigger_phrases"):
        load_config(path)


def test_save_config_toml_and_reload(tmp_path: Path) -> None:
    payload: Dict[str, Any] = {"voice": {"trigger_phrases": ["okay coach", "yo coach"], "enabled": True}}
    path = save_config(payload, tmp_path / "config.toml")
    cfg = load_config(path)
    assert cfg["voice"]["trigger_phrases"] == ["okay coach", "yo coach"]


def test_save_config_json(tmp_path: Path) -> None:
    path = save_config({"user": {"id": "sam"}}, tmp_path / "config.json")
    assert json.loads(path.read_text())["user"]["id"] == "sam"


def test_resolve_trigger_phrases_defaults_first() -> None:
    cfg = {"voice": {"trigger_phrases": ["  Okay   Coach ", "hey trainer", "okay coach", ""]}}
    phrases = resolve_trigger_phrases(cfg)
    assert phrases[: len(DEFAULT_TRIGGER_PHRASES)] == DEFAULT_TRIGGER_PHRASES
    assert phrases[len(DEFAULT_TRIGGER_PHRASES):] == ["okay coach"]


def test_resolve_trigger_phrases_puts_longer_custom_phrase_first() -> None:
    cfg = {"voice": {"trigger_phrases": ["hey trainer mike", "okay coach", "okay coach sam"]}}
    phrases = resolve_trigger_phrases(cfg)
    assert phrases.index("hey trainer mike") < phrases.index("hey trainer")
    assert phrases.index("okay coach sam") < phrases.index("okay coach")
    assert [item for item in phrases if item not in cfg["voice"]["trigger_phrases"]] == DEFAULT_TRIGGER_PHRASES


def test_add_trigger_phrase() -> None:
    cfg: Dict[str, Any] = {"voice": {"trigger_phrases": []}}
    assert add_trigger_phrase(cfg, " Yo Coach ") is True
    assert add_trigger_phrase(cfg, "yo coach") is False
    assert add_trigger_phrase(cfg, "hey trainer") is False
    assert add_trigger_phrase(cfg, "   ") is False
    assert custom_trigger_phrases(cfg) == ["yo coach"]


def test_remove_trigger_phrase() -> None:
    cfg: Dict[str, Any] = {"voice": {"trigger_phrases": ["yo coach", "okay coach"]}}
    assert remove_trigger_phrase(cfg, "YO COACH") is True
    assert remove_trigger_phrase(cfg, "never added") is False
    assert cfg["voice"]["trigger_phrases"] == ["okay coach"]


def test_remove_default_trigger_phrase_raises() -> None:
    cfg: Dict[str, Any] = {"voice": {"trigger_phrases": []}}
    with pytest.raises(ConfigError, match="built-in"):
        remove_trigger_phrase(cfg, "Hey Trainer")


def test_resolve_log_dir_prefers_explicit(tmp_path: Path) -> None:
    explicit = tmp_path / "logs"
    cfg = {"storage": {"log_directory": "/tmp/ignored"}}
    assert resolve_log_dir(cfg, explicit=explicit) == explicit.resolve()


def test_resolve_log_dir_env_override(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("REPVOICE_LOG_DIR", str(tmp_path / "from-env"))
    cfg = {"storage": {"log_directory": "/tmp/ignored"}}
    assert resolve_log_dir(cfg) == (tmp_path / "from-env").resolve()


def test_resolve_api_token_reads_configured_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MY_STORE_TOKEN", "secret")
    assert resolve_api_token({"api": {"token_env": "MY_STORE_TOKEN"}}) == "secret"
    monkeypatch.delenv("REPVOICE_API_TOKEN", raising=False)
    assert resolve_api_token({}) is None
