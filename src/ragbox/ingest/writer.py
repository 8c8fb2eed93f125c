"""Document writer — one document row plus its chunk rows in one transaction."""

from __future__ import annotations

import logging

from ragbox.db.models import Document
from ragbox.db.repository import Repository
from ragbox.ingest.chunker import FixedWindowChunker

logger = logging.getLogger(__name__)


class DocumentWriter:
    """Persist a document and index its chunks atomically.

    For each call:
    1. Insert the document row and read back its generated id.
    2. Split the content with the chunker.
    3. Insert one FTS5 row per window, tagged with that id.

    All three steps share ``Repository.transaction()``; any failure rolls the
    whole write back and the exception propagates to the caller.

    Args:
        repo:    Open Repository instance.
        chunker: Chunker used to split content (default: 1000-character windows).
    """

    def __init__(self, repo: Repository, chunker: FixedWindowChunker | None = None) -> None:
        self._repo = repo
        self._chunker = chunker or FixedWindowChunker()

    def write(self, title: str, content: str) -> tuple[Document, int]:
        """Store *title*/*content* verbatim. Returns (document, chunk count)."""
        with self._repo.transaction():
            doc_id = self._repo.insert_document(title, content)
            chunks = self._chunker.chunk(doc_id, content)
            for chunk in chunks:
                self._repo.insert_chunk(chunk)

        logger.info("Ingested document %d %r (%d chunks)", doc_id, title, len(chunks))
        return Document(id=doc_id, title=title, content=content), len(chunks)
