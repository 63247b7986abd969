"""Circuitry configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site — not in this module)
  2. Environment variables  (CIRCUITRY_GENERATION_MODEL, CIRCUITRY_TRANSCRIPTION_MODEL,
     CIRCUITRY_LOG_LEVEL, CIRCUITRY_API_KEY / OPENAI_API_KEY)
  3. Per-project circuitry.yaml  (next to .circuitry.db)
  4. Global ~/.circuitry/config.yaml  (model defaults only — no API keys)
  5. Hardcoded defaults

The provider API key is only ever read from the environment, here, and then
passed explicitly to the transcriber and the chat call.
All YAML reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".circuitry"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "circuitry.yaml"

# Key names that look like credentials are forbidden in any config file.
# Does NOT match legitimate keys like knowledge_token_budget or max_tokens.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["generation", "transcription", "composer", "storage", "logging"]
)

_LOG_LEVELS: frozenset[str] = frozenset(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class ProviderCfg:
    """Credentials for the speech-to-text and model boundaries (environment only)."""

    api_key: str | None = field(default=None, repr=False)


@dataclass
class GenerationCfg:
    """Chat model configuration (circuitry.yaml: generation:)."""

    model: str = "openai/gpt-4o"
    temperature: float = 0.7
    max_tokens: int = 500


@dataclass
class TranscriptionCfg:
    """Speech-to-text configuration (circuitry.yaml: transcription:)."""

    model: str = "openai/whisper-1"
    language: str = "en"
    max_bytes: int = 25 * 1024 * 1024


@dataclass
class ComposerCfg:
    """Prompt composition configuration (circuitry.yaml: composer:).

    Attributes:
        knowledge_token_budget: Approximate token ceiling for the knowledge-base
            section. None disables the bound.
    """

    knowledge_token_budget: int | None = 8_192


@dataclass
class StorageCfg:
    """Upload storage configuration (circuitry.yaml: storage:)."""

    uploads_dir: str = "uploads"
    max_upload_bytes: int = 10 * 1024 * 1024


@dataclass
class LoggingCfg:
    """structlog output configuration (circuitry.yaml: logging:)."""

    level: str = "WARNING"
    json: bool = False


@dataclass
class CircuitryConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    provider: ProviderCfg = field(default_factory=ProviderCfg)
    generation: GenerationCfg = field(default_factory=GenerationCfg)
    transcription: TranscriptionCfg = field(default_factory=TranscriptionCfg)
    composer: ComposerCfg = field(default_factory=ComposerCfg)
    storage: StorageCfg = field(default_factory=StorageCfg)
    logging: LoggingCfg = field(default_factory=LoggingCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export CIRCUITRY_API_KEY=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


def _read_yaml(path: Path) -> dict[str, Any]:
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config '{path}' must be a YAML mapping at the top level.")
    return raw


def _positive_int(value: Any, name: str) -> int:
    try:
        result = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from exc
    if result < 1:
        raise ConfigError(f"{name} must be >= 1, got {result}")
    return result


def _optional_budget(value: Any) -> int | None:
    """``null`` or ``0`` disables the knowledge budget."""
    if value is None:
        return None
    try:
        budget = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(
            f"composer.knowledge_token_budget must be an integer or null, got {value!r}"
        ) from exc
    if budget < 0:
        raise ConfigError(f"composer.knowledge_token_budget must be >= 0, got {budget}")
    return budget or None


def _log_level(value: Any) -> str:
    level = str(value).upper()
    if level not in _LOG_LEVELS:
        raise ConfigError(
            f"logging.level must be one of {', '.join(sorted(_LOG_LEVELS))}, got {value!r}"
        )
    return level


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> CircuitryConfig:
    """Build a *CircuitryConfig* from a merged raw YAML dict."""
    cfg = CircuitryConfig()

    if "generation" in data:
        g = data["generation"] or {}
        cfg.generation = GenerationCfg(
            model=str(g.get("model", cfg.generation.model)),
            temperature=float(g.get("temperature", cfg.generation.temperature)),
            max_tokens=_positive_int(
                g.get("max_tokens", cfg.generation.max_tokens), "generation.max_tokens"
            ),
        )

    if "transcription" in data:
        t = data["transcription"] or {}
        cfg.transcription = TranscriptionCfg(
            model=str(t.get("model", cfg.transcription.model)),
            language=str(t.get("language", cfg.transcription.language)),
            max_bytes=_positive_int(
                t.get("max_bytes", cfg.transcription.max_bytes), "transcription.max_bytes"
            ),
        )

    if "composer" in data:
        c = data["composer"] or {}
        budget = cfg.composer.knowledge_token_budget
        if "knowledge_token_budget" in c:
            budget = _optional_budget(c["knowledge_token_budget"])
        cfg.composer = ComposerCfg(knowledge_token_budget=budget)

    if "storage" in data:
        s = data["storage"] or {}
        cfg.storage = StorageCfg(
            uploads_dir=str(s.get("uploads_dir", cfg.storage.uploads_dir)),
            max_upload_bytes=_positive_int(
                s.get("max_upload_bytes", cfg.storage.max_upload_bytes),
                "storage.max_upload_bytes",
            ),
        )

    if "logging" in data:
        lg = data["logging"] or {}
        cfg.logging = LoggingCfg(
            level=_log_level(lg.get("level", cfg.logging.level)),
            json=bool(lg.get("json", cfg.logging.json)),
        )

    return cfg


def _apply_env_overrides(cfg: CircuitryConfig) -> CircuitryConfig:
    """Apply CIRCUITRY_* environment variable overrides (layer 2)."""
    if model := os.environ.get("CIRCUITRY_GENERATION_MODEL"):
        cfg.generation.model = model
    if model := os.environ.get("CIRCUITRY_TRANSCRIPTION_MODEL"):
        cfg.transcription.model = model
    if level := os.environ.get("CIRCUITRY_LOG_LEVEL"):
        cfg.logging.level = _log_level(level)
    cfg.provider.api_key = (
        os.environ.get("CIRCUITRY_API_KEY") or os.environ.get("OPENAI_API_KEY") or None
    )
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> CircuitryConfig:
    """Load and return a merged *CircuitryConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *circuitry.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Returns:
        Fully merged *CircuitryConfig* with env var overrides applied.

    Raises:
        ConfigError: If a config file contains API-key-like fields or an
            invalid value.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    # Layer 1: global config
    if global_path.exists():
        raw_global = _read_yaml(global_path)
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    # Layer 2: per-project config
    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = _read_yaml(project_cfg_path)
        _check_no_api_keys(raw_project, project_cfg_path)
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged)

    # Layer 3: env var overrides
    return _apply_env_overrides(cfg)


def write_project_config(project_dir: Path) -> Path:
    """Write a commented ``circuitry.yaml`` with defaults if none exists.

    Returns:
        Path to the project config file.
    """
    target = project_dir / _PROJECT_CONFIG_NAME
    if not target.exists():
        target.write_text(
            "# Circuitry project configuration.\n"
            "# NEVER store API keys here — use environment variables:\n"
            "#   export OPENAI_API_KEY=sk-...\n"
            "\n"
            "generation:\n"
            "  model: openai/gpt-4o\n"
            "  temperature: 0.7\n"
            "  max_tokens: 500\n"
            "\n"
            "transcription:\n"
            "  model: openai/whisper-1\n"
            "  language: en\n"
            "\n"
            "composer:\n"
            "  # Approximate tokens (4 chars ≈ 1 token); null disables the bound.\n"
            "  knowledge_token_budget: 8192\n"
            "\n"
            "storage:\n"
            "  uploads_dir: uploads\n",
            encoding="utf-8",
        )
    return target
