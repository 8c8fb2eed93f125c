"""Grounding prompt template.

Layout:
  {instruction}

  Context:
  [Chunk 1]
  {hit 1 content, stripped}

  [Chunk 2]
  ...

  Question: {question}
  Answer:

The output depends only on the arguments: same question and hits in the
same order always give the same string.
"""

from __future__ import annotations

from collections.abc import Sequence

from ragbox.db.models import SearchHit

INSTRUCTION = (
    "You are a helpful assistant. Answer the user using only the provided context chunks. "
    "If the answer isn't in the context, say you don't know briefly."
)


def build_prompt(question: str, hits: Sequence[SearchHit]) -> str:
    """Render *hits* (in the given order) and *question* into one prompt string."""
    context = _format_chunks(hits)
    return f"{INSTRUCTION}\n\nContext:\n{context}\nQuestion: {question}\nAnswer:"


def _format_chunks(hits: Sequence[SearchHit]) -> str:
    return "".join(
        f"[Chunk {i}]\n{hit.content.strip()}\n\n" for i, hit in enumerate(hits, start=1)
    )
