"""Tests for the circuitry config loader."""

from __future__ import annotations

import warnings
from pathlib import Path

import pytest
import yaml

from circuitry.config import ConfigError, load_config, write_project_config

_ENV_VARS = (
    "CIRCUITRY_GENERATION_MODEL",
    "CIRCUITRY_TRANSCRIPTION_MODEL",
    "CIRCUITRY_LOG_LEVEL",
    "CIRCUITRY_API_KEY",
    "OPENAI_API_KEY",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def _write_yaml(path: Path, data: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.dump(data), encoding="utf-8")


def _load(tmp_path: Path, global_path: Path | None = None):
    return load_config(
        project_dir=tmp_path,
        global_config_path=global_path or tmp_path / "nonexistent" / "config.yaml",
    )


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


def test_load_config_defaults_no_files(tmp_path: Path) -> None:
    cfg = _load(tmp_path)

    assert cfg.generation.model == "openai/gpt-4o"
    assert cfg.generation.temperature == 0.7
    assert cfg.generation.max_tokens == 500
    assert cfg.transcription.model == "openai/whisper-1"
    assert cfg.transcription.language == "en"
    assert cfg.composer.knowledge_token_budget == 8_192
    assert cfg.storage.uploads_dir == "uploads"
    assert cfg.logging.level == "WARNING"
    assert cfg.logging.json is False
    assert cfg.provider.api_key is None


def test_api_key_not_in_repr(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-secret-value")
    cfg = _load(tmp_path)
    assert cfg.provider.api_key == "sk-secret-value"
    assert "sk-secret-value" not in repr(cfg)


# ---------------------------------------------------------------------------
# Layering
# ---------------------------------------------------------------------------


def test_project_config_overrides_defaults(tmp_path: Path) -> None:
    _write_yaml(
        tmp_path / "circuitry.yaml",
        {"generation": {"model": "anthropic/claude-3-5-sonnet-20241022", "max_tokens": 800}},
    )
    cfg = _load(tmp_path)
    assert cfg.generation.model == "anthropic/claude-3-5-sonnet-20241022"
    assert cfg.generation.max_tokens == 800
    assert cfg.generation.temperature == 0.7


def test_project_config_wins_over_global(tmp_path: Path) -> None:
    global_path = tmp_path / "home" / "config.yaml"
    _write_yaml(
        global_path,
        {"generation": {"model": "openai/gpt-4o-mini", "temperature": 0.2}},
    )
    _write_yaml(tmp_path / "circuitry.yaml", {"generation": {"model": "openai/gpt-4o"}})

    cfg = _load(tmp_path, global_path)

    assert cfg.generation.model == "openai/gpt-4o"
    assert cfg.generation.temperature == 0.2


def test_env_overrides_files(tmp_path: Path, monkeypatch) -> None:
    _write_yaml(tmp_path / "circuitry.yaml", {"generation": {"model": "openai/gpt-4o"}})
    monkeypatch.setenv("CIRCUITRY_GENERATION_MODEL", "openai/gpt-4o-mini")
    monkeypatch.setenv("CIRCUITRY_TRANSCRIPTION_MODEL", "groq/whisper-large-v3")
    monkeypatch.setenv("CIRCUITRY_LOG_LEVEL", "debug")

    cfg = _load(tmp_path)

    assert cfg.generation.model == "openai/gpt-4o-mini"
    assert cfg.transcription.model == "groq/whisper-large-v3"
    assert cfg.logging.level == "DEBUG"


def test_circuitry_api_key_preferred_over_openai(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-openai")
    monkeypatch.setenv("CIRCUITRY_API_KEY", "sk-circuitry")
    assert _load(tmp_path).provider.api_key == "sk-circuitry"


# ---------------------------------------------------------------------------
# Knowledge budget
# ---------------------------------------------------------------------------


def test_budget_null_disables_bound(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "circuitry.yaml", {"composer": {"knowledge_token_budget": None}})
    assert _load(tmp_path).composer.knowledge_token_budget is None


def test_budget_zero_disables_bound(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "circuitry.yaml", {"composer": {"knowledge_token_budget": 0}})
    assert _load(tmp_path).composer.knowledge_token_budget is None


def test_budget_negative_raises(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "circuitry.yaml", {"composer": {"knowledge_token_budget": -5}})
    with pytest.raises(ConfigError, match="knowledge_token_budget"):
        _load(tmp_path)


def test_budget_section_without_key_keeps_default(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "circuitry.yaml", {"composer": {}})
    assert _load(tmp_path).composer.knowledge_token_budget == 8_192


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "data",
    [
        {"generation": {"api_key": "sk-abc"}},
        {"transcription": {"openai_api_key": "sk-abc"}},
        {"storage": {"password": "hunter2"}},
    ],
)
def test_api_key_in_project_config_raises(tmp_path: Path, data: dict) -> None:
    _write_yaml(tmp_path / "circuitry.yaml", data)
    with pytest.raises(ConfigError, match="environment variables"):
        _load(tmp_path)


def test_api_key_in_global_config_raises(tmp_path: Path) -> None:
    global_path = tmp_path / "home" / "config.yaml"
    _write_yaml(global_path, {"generation": {"api_key": "sk-abc"}})
    with pytest.raises(ConfigError, match="forbidden key"):
        _load(tmp_path, global_path)


def test_token_settings_are_not_mistaken_for_secrets(tmp_path: Path) -> None:
    _write_yaml(
        tmp_path / "circuitry.yaml",
        {"generation": {"max_tokens": 300}, "composer": {"knowledge_token_budget": 100}},
    )
    cfg = _load(tmp_path)
    assert cfg.generation.max_tokens == 300
    assert cfg.composer.knowledge_token_budget == 100


def test_invalid_log_level_raises(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "circuitry.yaml", {"logging": {"level": "CHATTY"}})
    with pytest.raises(ConfigError, match="logging.level"):
        _load(tmp_path)


def test_non_positive_max_tokens_raises(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "circuitry.yaml", {"generation": {"max_tokens": 0}})
    with pytest.raises(ConfigError, match="generation.max_tokens"):
        _load(tmp_path)


def test_non_mapping_config_raises(tmp_path: Path) -> None:
    (tmp_path / "circuitry.yaml").write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="YAML mapping"):
        _load(tmp_path)


def test_unknown_section_warns(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "circuitry.yaml", {"retrieval": {"top_k": 5}})
    with pytest.warns(UserWarning, match="retrieval"):
        _load(tmp_path)


# ---------------------------------------------------------------------------
# write_project_config
# ---------------------------------------------------------------------------


def test_write_project_config_creates_loadable_defaults(tmp_path: Path) -> None:
    path = write_project_config(tmp_path)
    assert path == tmp_path / "circuitry.yaml"

    with warnings.catch_warnings():
        warnings.simplefilter("error")
        cfg = _load(tmp_path)

    assert cfg.generation.model == "openai/gpt-4o"
    assert cfg.composer.knowledge_token_budget == 8_192
    assert "api_key" not in path.read_text(encoding="utf-8")


def test_write_project_config_keeps_existing_file(tmp_path: Path) -> None:
    target = tmp_path / "circuitry.yaml"
    target.write_text("generation:\n  model: custom/model\n", encoding="utf-8")
    write_project_config(tmp_path)
    assert target.read_text(encoding="utf-8") == "generation:\n  model: custom/model\n"
