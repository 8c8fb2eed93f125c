"""Domain models for the ragbox database layer."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Document:
    id: int
    title: str
    content: str
    created_at: str | None = None


@dataclass
class Chunk:
    doc_id: int
    content: str
    rowid: int | None = None  # set after insert; None for unsaved chunks


@dataclass
class SearchHit:
    """One full-text match: owning document, highlighted excerpt, full chunk text."""

    doc_id: int
    snippet: str
    content: str

    def to_dict(self) -> dict:
        return {"doc_id": self.doc_id, "snippet": self.snippet, "content": self.content}
