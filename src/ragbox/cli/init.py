"""ragbox init — create the database and starter config files.

  <db>                      — SQLite database with the current schema
  ragbox.yaml               — per-project config (current directory)
  ~/.ragbox/config.yaml     — global defaults (created once, mode 0o600)
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from ragbox.cli.common import console, load_settings, open_db
from ragbox.config import ensure_global_config
from ragbox.db.schema import schema_version

_PROJECT_CONFIG = Path("ragbox.yaml")

_PROJECT_TEMPLATE = """\
# ragbox project configuration.
# Environment variables LLM_HOST / LLM_MODEL / RAGBOX_DB override these values.

database:
  path: {db_path}

generation:
  backend: ollama        # ollama | litellm
  model: llama3
  host: http://localhost:11434
  timeout: 120

retrieval:
  default_k: 5
  min_k: 1
  max_k: 8

chunking:
  chunk_size: 1000
"""


def init_cmd(
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the database (default: rag.db)."),
    ] = None,
    write_config: Annotated[
        bool,
        typer.Option("--config/--no-config", help="Write ragbox.yaml and the global config if missing."),
    ] = True,
) -> None:
    """Create the database schema (idempotent) and a project config file."""
    cfg = load_settings(db)
    db_path = cfg.database.path

    conn = open_db(cfg)
    try:
        version = schema_version(conn)
    finally:
        conn.close()

    console.print(f"[green]✓[/] Database ready: {db_path} (schema v{version})")

    if write_config:
        if _PROJECT_CONFIG.exists():
            console.print(f"  [dim]↷ {_PROJECT_CONFIG} already exists — left unchanged[/]")
        else:
            _PROJECT_CONFIG.write_text(
                _PROJECT_TEMPLATE.format(db_path=db_path), encoding="utf-8"
            )
            console.print(f"[green]✓[/] Wrote {_PROJECT_CONFIG}")

        cfg_path = ensure_global_config()
        console.print(f"[green]✓[/] {cfg_path} (global config)")
