"""ragbox configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site — not in this module)
  2. Environment variables  (LLM_HOST, LLM_MODEL, RAGBOX_DB, RAGBOX_GENERATION_BACKEND)
  3. Per-project ragbox.yaml  (current working directory)
  4. Global ~/.ragbox/config.yaml  (defaults only — no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
generation.host must be an http(s) URL.
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

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".ragbox"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "ragbox.yaml"

# Matches api_key, api-key, api_secret, *_token, token, *_secret, secret,
# password, passwd, credential(s). Leaves snippet_tokens, max_k etc. alone.
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
    ["database", "generation", "retrieval", "chunking"]
)

_BACKENDS: frozenset[str] = frozenset(["ollama", "litellm"])

# FTS5 caps snippet() context at 64 tokens.
_MAX_SNIPPET_TOKENS = 64


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class DatabaseCfg:
    """SQLite database location (ragbox.yaml: database:).

    Attributes:
        path: Database file; created on first use.
        busy_timeout: Seconds a connection waits on a locked database.
    """

    path: str = "rag.db"
    busy_timeout: float = 5.0


@dataclass
class GenerationCfg:
    """Generation backend configuration (ragbox.yaml: generation:).

    Attributes:
        backend: 'ollama' (native /api/generate) or 'litellm' (any provider).
        model: Model identifier passed to the backend.
        host: Base URL of the Ollama server.
        api_base: Base URL override for the litellm backend (None = provider default).
        timeout: Seconds before a generation call is abandoned.
    """

    backend: str = "ollama"
    model: str = "llama3"
    host: str = "http://localhost:11434"
    api_base: str | None = None
    timeout: float = 120.0


@dataclass
class RetrievalCfg:
    """Full-text retrieval configuration (ragbox.yaml: retrieval:)."""

    default_k: int = 5
    min_k: int = 1
    max_k: int = 8
    snippet_start: str = "<b>"
    snippet_end: str = "</b>"
    snippet_ellipsis: str = "…"
    snippet_tokens: int = 10


@dataclass
class ChunkingCfg:
    """Fixed-window chunking (ragbox.yaml: chunking:). Sizes are in characters."""

    chunk_size: int = 1000


@dataclass
class RagboxConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    database: DatabaseCfg = field(default_factory=DatabaseCfg)
    generation: GenerationCfg = field(default_factory=GenerationCfg)
    retrieval: RetrievalCfg = field(default_factory=RetrievalCfg)
    chunking: ChunkingCfg = field(default_factory=ChunkingCfg)


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
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
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


def _validate(cfg: RagboxConfig) -> None:
    """Raise ConfigError for values the pipeline cannot run with."""
    gen = cfg.generation
    if gen.backend not in _BACKENDS:
        raise ConfigError(
            f"generation.backend must be one of {sorted(_BACKENDS)}, got '{gen.backend}'"
        )
    if not gen.host.startswith(("http://", "https://")):
        raise ConfigError(f"generation.host must be an http(s) URL: '{gen.host}'")
    if gen.timeout <= 0:
        raise ConfigError("generation.timeout must be > 0")

    r = cfg.retrieval
    if r.min_k < 1:
        raise ConfigError("retrieval.min_k must be >= 1")
    if r.max_k < r.min_k:
        raise ConfigError("retrieval.max_k must be >= retrieval.min_k")
    if not 1 <= r.snippet_tokens <= _MAX_SNIPPET_TOKENS:
        raise ConfigError(
            f"retrieval.snippet_tokens must be between 1 and {_MAX_SNIPPET_TOKENS}"
        )

    if cfg.chunking.chunk_size < 1:
        raise ConfigError("chunking.chunk_size must be >= 1")


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


def _cfg_from_dict(data: dict[str, Any]) -> RagboxConfig:
    """Build a *RagboxConfig* from a merged raw YAML dict."""
    cfg = RagboxConfig()

    if "database" in data:
        d = data["database"] or {}
        cfg.database = DatabaseCfg(
            path=str(d.get("path", cfg.database.path)),
            busy_timeout=float(d.get("busy_timeout", cfg.database.busy_timeout)),
        )

    if "generation" in data:
        g = data["generation"] or {}
        cfg.generation = GenerationCfg(
            backend=str(g.get("backend", cfg.generation.backend)),
            model=str(g.get("model", cfg.generation.model)),
            host=str(g.get("host", cfg.generation.host)),
            api_base=g.get("api_base") or cfg.generation.api_base,
            timeout=float(g.get("timeout", cfg.generation.timeout)),
        )

    if "retrieval" in data:
        r = data["retrieval"] or {}
        defaults = cfg.retrieval
        cfg.retrieval = RetrievalCfg(
            default_k=int(r.get("default_k", defaults.default_k)),
            min_k=int(r.get("min_k", defaults.min_k)),
            max_k=int(r.get("max_k", defaults.max_k)),
            snippet_start=str(r.get("snippet_start", defaults.snippet_start)),
            snippet_end=str(r.get("snippet_end", defaults.snippet_end)),
            snippet_ellipsis=str(r.get("snippet_ellipsis", defaults.snippet_ellipsis)),
            snippet_tokens=int(r.get("snippet_tokens", defaults.snippet_tokens)),
        )

    if "chunking" in data:
        c = data["chunking"] or {}
        cfg.chunking = ChunkingCfg(
            chunk_size=int(c.get("chunk_size", cfg.chunking.chunk_size)),
        )

    return cfg


def _apply_env_overrides(cfg: RagboxConfig) -> RagboxConfig:
    """Apply environment variable overrides (layer 2)."""
    if host := os.environ.get("LLM_HOST"):
        cfg.generation.host = host
    if model := os.environ.get("LLM_MODEL"):
        cfg.generation.model = model
    if backend := os.environ.get("RAGBOX_GENERATION_BACKEND"):
        cfg.generation.backend = backend
    if db_path := os.environ.get("RAGBOX_DB"):
        cfg.database.path = db_path
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> RagboxConfig:
    """Load and return a merged *RagboxConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *ragbox.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Returns:
        Fully merged and validated *RagboxConfig*.

    Raises:
        ConfigError: If global config contains API-key-like fields, or if a
            value is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    # Layer 1: global config
    if global_path.exists():
        raw_global = yaml.safe_load(global_path.read_text(encoding="utf-8")) or {}
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    # Layer 2: per-project config
    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = yaml.safe_load(project_cfg_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged)

    # Layer 3: env var overrides
    cfg = _apply_env_overrides(cfg)
    cfg.generation.host = cfg.generation.host.rstrip("/")

    _validate(cfg)
    return cfg


def ensure_global_config(
    global_config_path: Path | None = None,
) -> Path:
    """Create ``~/.ragbox/config.yaml`` with defaults if it does not exist.

    Creates parent directory with mode 0o700 and the config file with
    mode 0o600 (owner-readable only).

    Args:
        global_config_path: Override path (for testing).

    Returns:
        Path to the global config file.
    """
    target = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    if not target.exists():
        content = (
            "# ragbox global configuration — defaults only.\n"
            "# NEVER store API keys here — use environment variables:\n"
            "#   export OPENAI_API_KEY=sk-...\n"
            "\n"
            "generation:\n"
            "  backend: ollama\n"
            "  model: llama3\n"
            "  host: http://localhost:11434\n"
            "\n"
            "retrieval:\n"
            "  default_k: 5\n"
        )
        target.write_text(content, encoding="utf-8")
        target.chmod(0o600)

    return target
