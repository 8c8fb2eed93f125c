"""ragbox status — database location, schema version, document list."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ragbox.cli.common import console, fail, load_settings, open_db
from ragbox.cli.errors import err_no_db, err_storage
from ragbox.db.repository import Repository
from ragbox.db.schema import schema_version


def status_cmd(
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the database (default: rag.db)."),
    ] = None,
) -> None:
    """Show the knowledge base: documents, chunk counts, generation backend."""
    cfg = load_settings(db)
    db_path = Path(cfg.database.path)

    if not db_path.exists():
        console.print(err_no_db(str(db_path)))
        raise typer.Exit(1)

    conn = open_db(cfg)
    try:
        repo = Repository(conn)
        version = schema_version(conn)
        documents = repo.list_documents()
        chunk_counts = {d.id: repo.count_chunks(d.id) for d in documents}
        total_chunks = repo.count_chunks()
    except sqlite3.Error as exc:
        fail(str(exc), err_storage(str(exc), str(db_path)))
    finally:
        conn.close()

    gen = cfg.generation
    console.print(
        Panel(
            f"Database:   {escape(str(db_path))} (schema v{version})\n"
            f"Documents:  {len(documents)}\n"
            f"Chunks:     {total_chunks}\n"
            f"Generation: {gen.backend} · {escape(gen.model)} · {escape(gen.host)}",
            title="[bold]Knowledge Base[/]",
            expand=False,
        )
    )

    if not documents:
        console.print("[dim]No documents yet. Run:  ragbox ingest --title TITLE --file PATH[/]")
        return

    table = Table(title="Documents")
    table.add_column("ID", justify="right")
    table.add_column("Title")
    table.add_column("Chars", justify="right")
    table.add_column("Chunks", justify="right")
    table.add_column("Created")
    for doc in documents:
        table.add_row(
            str(doc.id),
            escape(doc.title),
            f"{len(doc.content):,}",
            str(chunk_counts[doc.id]),
            doc.created_at or "",
        )
    console.print(table)
