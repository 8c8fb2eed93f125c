"""Helpers shared by the ragbox commands: config, database, error output."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console

from ragbox.cli.errors import err_config, err_storage
from ragbox.config import ConfigError, RagboxConfig, load_config
from ragbox.db.connection import Database
from ragbox.db.schema import initialize

console = Console()


def load_settings(db: Path | None = None, json_out: bool = False) -> RagboxConfig:
    """Load the layered config and apply the --db flag on top."""
    try:
        cfg = load_config()
    except ConfigError as exc:
        fail(str(exc), err_config(str(exc)), json_out)
    if db is not None:
        cfg.database.path = str(db)
    return cfg


def open_db(cfg: RagboxConfig, json_out: bool = False) -> sqlite3.Connection:
    """Open (or create) the database and run migrations.

    A database that cannot be opened or migrated is reported like any other
    storage failure and exits 1.
    """
    conn = None
    try:
        conn = Database(cfg.database.path, busy_timeout=cfg.database.busy_timeout).connect()
        initialize(conn)
    except sqlite3.Error as exc:
        if conn is not None:
            conn.close()
        fail(str(exc), err_storage(str(exc), cfg.database.path), json_out)
    return conn


def fail(error: str, message: str, json_out: bool = False) -> NoReturn:
    """Report a failure as ``{"error": ...}`` JSON or a rich message, then exit 1."""
    if json_out:
        typer.echo(json.dumps({"error": error}, ensure_ascii=False))
    else:
        console.print(message)
    raise typer.Exit(1)


def emit_json(data: dict) -> None:
    typer.echo(json.dumps(data, ensure_ascii=False, indent=2))
