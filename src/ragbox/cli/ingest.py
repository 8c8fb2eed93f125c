"""ragbox ingest — store one document and index its chunks.

Content comes from --content or from a UTF-8 text file via --file.
The document row and all chunk rows are written in one transaction.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from ragbox.cli.common import console, emit_json, fail, load_settings, open_db
from ragbox.cli.errors import err_file_not_found, err_storage, err_validation
from ragbox.db.repository import Repository
from ragbox.errors import ValidationError
from ragbox.rag.pipeline import RagPipeline


def ingest_cmd(
    title: Annotated[
        str,
        typer.Option("--title", "-t", help="Document title."),
    ] = "",
    content: Annotated[
        str | None,
        typer.Option("--content", "-c", help="Document text."),
    ] = None,
    file: Annotated[
        Path | None,
        typer.Option("--file", "-f", help="Read document text from a UTF-8 file."),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the database (default: rag.db)."),
    ] = None,
    json_out: Annotated[
        bool,
        typer.Option("--json", help="Print the result as JSON."),
    ] = False,
) -> None:
    """Add a document to the knowledge base."""
    if file is not None:
        try:
            content = file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            fail(f"cannot read {file}", err_file_not_found(str(file)), json_out)

    cfg = load_settings(db, json_out)
    conn = open_db(cfg, json_out)
    try:
        pipeline = RagPipeline.from_config(Repository(conn), None, cfg)
        result = pipeline.ingest(title, content or "")
    except ValidationError as exc:
        fail(exc.message, err_validation(exc.message), json_out)
    except sqlite3.Error as exc:
        fail(str(exc), err_storage(str(exc), cfg.database.path), json_out)
    finally:
        conn.close()

    if json_out:
        emit_json({"ok": True, "doc": result.to_dict()})
        return
    console.print(
        f"[green]✓[/] Ingested document {result.id} '{escape(result.title)}' ({result.chunks} chunks)"
    )
