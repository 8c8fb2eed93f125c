"""ragbox ask / ragbox search — question answering and raw retrieval.

  ragbox ask "How many channels does DMX512 have?" [--k 5] [--json]
  ragbox search "DMX512 channel*" [--k 5] [--json]

ask: retrieve → prompt → generation backend; prints the answer and the
evidence chunks. search: retrieval only, no generation call.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from ragbox.cli.common import console, emit_json, fail, load_settings, open_db
from ragbox.cli.errors import err_gateway, err_no_api_key, err_storage, err_validation
from ragbox.config import RagboxConfig
from ragbox.db.models import SearchHit
from ragbox.db.repository import Repository
from ragbox.errors import GatewayError, ValidationError
from ragbox.rag.llm_client import build_generator
from ragbox.rag.pipeline import RagPipeline


def ask_cmd(
    question: Annotated[str, typer.Argument(help="Question to answer from the knowledge base.")],
    k: Annotated[
        int | None,
        typer.Option("--k", "-k", help="Number of chunks to retrieve (clamped to 1-8)."),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the database (default: rag.db)."),
    ] = None,
    json_out: Annotated[
        bool,
        typer.Option("--json", help="Print {answer, hits} as JSON."),
    ] = False,
) -> None:
    """Answer a question using only the ingested documents."""
    cfg = load_settings(db, json_out)

    try:
        generator = build_generator(cfg.generation)
    except EnvironmentError as exc:
        provider = cfg.generation.model.split("/")[0] if "/" in cfg.generation.model else "openai"
        fail(str(exc), err_no_api_key(provider), json_out)

    conn = open_db(cfg, json_out)
    try:
        pipeline = RagPipeline.from_config(Repository(conn), generator, cfg)
        result = pipeline.ask(question, k)
    except ValidationError as exc:
        fail(exc.message, err_validation(exc.message), json_out)
    except GatewayError as exc:
        fail(exc.message, err_gateway(exc.message, cfg.generation.host), json_out)
    except sqlite3.Error as exc:
        fail(str(exc), err_storage(str(exc), cfg.database.path), json_out)
    finally:
        conn.close()

    if json_out:
        emit_json({"ok": True, **result.to_dict()})
        return

    console.print(escape(result.answer) if result.answer else "[dim](empty answer)[/]")
    if result.hits:
        console.print()
        console.print(_hits_table(result.hits, "Context Chunks", _markers(cfg)))


def search_cmd(
    query: Annotated[str, typer.Argument(help="FTS5 query: terms, \"phrases\", AND/OR/NOT, prefix*.")],
    k: Annotated[
        int | None,
        typer.Option("--k", "-k", help="Maximum number of hits (clamped to 1-8)."),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the database (default: rag.db)."),
    ] = None,
    json_out: Annotated[
        bool,
        typer.Option("--json", help="Print hits as JSON."),
    ] = False,
) -> None:
    """Show the chunks a question would retrieve, without calling the model."""
    cfg = load_settings(db, json_out)
    conn = open_db(cfg, json_out)
    try:
        pipeline = RagPipeline.from_config(Repository(conn), None, cfg)
        hits = pipeline.search(query, k)
    except sqlite3.Error as exc:
        fail(str(exc), err_storage(str(exc), cfg.database.path), json_out)
    finally:
        conn.close()

    if json_out:
        emit_json({"ok": True, "hits": [h.to_dict() for h in hits]})
        return
    if not hits:
        console.print("[yellow]No matching chunks.[/]")
        return
    console.print(_hits_table(hits, f"{len(hits)} hit(s)", _markers(cfg)))


def _markers(cfg: RagboxConfig) -> tuple[str, str]:
    return cfg.retrieval.snippet_start, cfg.retrieval.snippet_end


def _hits_table(hits: list[SearchHit], title: str, markers: tuple[str, str]) -> Table:
    table = Table(title=title, show_lines=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Doc", justify="right")
    table.add_column("Snippet")
    for i, hit in enumerate(hits, start=1):
        table.add_row(str(i), str(hit.doc_id), _highlight(hit.snippet, *markers))
    return table


def _highlight(snippet: str, start: str = "<b>", end: str = "</b>") -> Text:
    """Render the snippet's match markers (retrieval.snippet_start/end) as bold."""
    text = Text()
    if not start or not end:
        text.append(snippet)
        return text
    if start == end:
        for i, part in enumerate(snippet.split(start)):
            text.append(part, style="bold yellow" if i % 2 else None)
        return text
    head, *marked = snippet.split(start)
    text.append(head)
    for part in marked:
        match, _, tail = part.partition(end)
        text.append(match, style="bold yellow")
        text.append(tail)
    return text
