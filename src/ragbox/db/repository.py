"""Repository pattern for all ragbox database operations.

Single interface for: documents, FTS5 chunk rows, and full-text search.
Document and chunk inserts do not commit on their own; they must run inside
``transaction()`` so a document and its chunks become visible together.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager

from ragbox.db.models import Chunk, Document, SearchHit


class Repository:
    """Data access layer for documents and the FTS5 chunk index.

    Wraps an open sqlite3.Connection. The connection is owned by the caller
    and must be closed after use.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with the schema initialised
                (see ragbox.db.schema.initialize).
        """
        self._conn = conn

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run the enclosed writes as one unit: commit on success, roll back on error.

        BEGIN IMMEDIATE takes the write lock up front, so concurrent ingests
        queue on SQLite's busy timeout instead of racing for document ids.
        """
        self._conn.execute("BEGIN IMMEDIATE")
        try:
            yield
        except BaseException:
            self._conn.rollback()
            raise
        else:
            self._conn.commit()

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def insert_document(self, title: str, content: str) -> int:
        """Insert a document row and return its generated id. Caller commits."""
        cur = self._conn.execute(
            "INSERT INTO documents (title, content) VALUES (?, ?)",
            (title, content),
        )
        return cur.lastrowid

    def get_document(self, doc_id: int) -> Document | None:
        """Return a document by id, or None if not found."""
        row = self._conn.execute(
            "SELECT id, title, content, created_at FROM documents WHERE id = ?",
            (doc_id,),
        ).fetchone()
        return _row_to_document(row) if row else None

    def list_documents(self) -> list[Document]:
        """Return all documents, oldest first."""
        rows = self._conn.execute(
            "SELECT id, title, content, created_at FROM documents ORDER BY id"
        ).fetchall()
        return [_row_to_document(r) for r in rows]

    def count_documents(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM documents").fetchone()[0]

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    def insert_chunk(self, chunk: Chunk) -> int:
        """Insert a chunk into the FTS5 index and return its rowid. Caller commits."""
        cur = self._conn.execute(
            "INSERT INTO chunks_fts (doc_id, content) VALUES (?, ?)",
            (chunk.doc_id, chunk.content),
        )
        chunk.rowid = cur.lastrowid
        return cur.lastrowid

    def get_chunks(self, doc_id: int) -> list[Chunk]:
        """Return the chunks of *doc_id* in creation order."""
        rows = self._conn.execute(
            "SELECT rowid, doc_id, content FROM chunks_fts WHERE doc_id = ? ORDER BY rowid",
            (doc_id,),
        ).fetchall()
        return [_row_to_chunk(r) for r in rows]

    def count_chunks(self, doc_id: int | None = None) -> int:
        """Return the number of chunks for *doc_id*, or across all documents."""
        if doc_id is None:
            return self._conn.execute("SELECT COUNT(*) FROM chunks_fts").fetchone()[0]
        return self._conn.execute(
            "SELECT COUNT(*) FROM chunks_fts WHERE doc_id = ?", (doc_id,)
        ).fetchone()[0]

    # ------------------------------------------------------------------
    # FTS5 search
    # ------------------------------------------------------------------

    def search_fts(
        self,
        query: str,
        limit: int,
        *,
        start: str = "<b>",
        end: str = "</b>",
        ellipsis: str = "…",
        tokens: int = 10,
    ) -> list[SearchHit]:
        """Full-text match of *query* in FTS5 query syntax, best bm25 score first.

        Ties in bm25 fall back to rowid order (insertion order in SQLite).

        Raises:
            sqlite3.OperationalError: If *query* is not valid FTS5 syntax.
        """
        rows = self._conn.execute(
            """
            SELECT doc_id,
                   snippet(chunks_fts, 1, ?, ?, ?, ?) AS snippet,
                   content
            FROM chunks_fts
            WHERE chunks_fts MATCH ?
            ORDER BY bm25(chunks_fts), rowid
            LIMIT ?
            """,
            (start, end, ellipsis, tokens, query, limit),
        ).fetchall()
        return [
            SearchHit(doc_id=int(r["doc_id"]), snippet=r["snippet"], content=r["content"])
            for r in rows
        ]


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------

def _row_to_document(row: sqlite3.Row) -> Document:
    return Document(
        id=row["id"],
        title=row["title"],
        content=row["content"],
        created_at=row["created_at"],
    )


def _row_to_chunk(row: sqlite3.Row) -> Chunk:
    return Chunk(
        rowid=row["rowid"],
        doc_id=int(row["doc_id"]),
        content=row["content"],
    )
