"""ragbox ingest pipeline — fixed-window chunker and atomic document writer."""

from ragbox.ingest.chunker import FixedWindowChunker
from ragbox.ingest.writer import DocumentWriter

__all__ = [
    "DocumentWriter",
    "FixedWindowChunker",
]
