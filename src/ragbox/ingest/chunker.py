"""Fixed-window chunker — non-overlapping character windows."""

from __future__ import annotations

from ragbox.db.models import Chunk

DEFAULT_CHUNK_SIZE = 1000


class FixedWindowChunker:
    """Split text into successive windows of ``chunk_size`` characters.

    Windows are measured in code points (``str`` slicing), never bytes, so
    multi-byte text is never cut mid-character. Windows do not overlap and
    are not stripped: joining them gives back the input exactly. The last
    window is shorter unless the length is a multiple of ``chunk_size``.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        self.chunk_size = chunk_size

    def split(self, text: str) -> list[str]:
        size = self.chunk_size
        return [text[pos:pos + size] for pos in range(0, len(text), size)]

    def chunk(self, doc_id: int, content: str) -> list[Chunk]:
        """Split *content* into unsaved Chunk objects owned by *doc_id*."""
        return [Chunk(doc_id=doc_id, content=window) for window in self.split(content)]
