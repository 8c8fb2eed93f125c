"""Full-text retriever over the FTS5 chunk index.

The query is passed to FTS5 as-is, so term, "phrase", AND/OR/NOT and
prefix* syntax all work. Natural-language questions often are not valid
FTS5 syntax ("what is DMX?"); those are retried once as a plain AND of
their quoted terms.

Ordering: bm25 ascending (best first), then rowid. The rowid tie-break is
SQLite insertion order and is not portable to other full-text engines.
"""

from __future__ import annotations

import logging
import re
import sqlite3
from dataclasses import dataclass

from ragbox.config import RetrievalCfg
from ragbox.db.models import SearchHit
from ragbox.db.repository import Repository

logger = logging.getLogger(__name__)

_PUNCT_RE = re.compile(r"[^\w\s]")
_SYNTAX_MARKERS = ("fts5", "syntax error", "no such column", "unterminated")


@dataclass
class RetrieverConfig:
    """Bounds on k and snippet highlighting for the retriever.

    Attributes:
        min_k: Smallest number of hits a caller may ask for.
        max_k: Largest number of hits a caller may ask for.
        snippet_start: Marker inserted before each matched term.
        snippet_end: Marker inserted after each matched term.
        snippet_ellipsis: Marker for text cut from the excerpt.
        snippet_tokens: Maximum tokens in the excerpt (FTS5 allows 1-64).
    """

    min_k: int = 1
    max_k: int = 8
    snippet_start: str = "<b>"
    snippet_end: str = "</b>"
    snippet_ellipsis: str = "…"
    snippet_tokens: int = 10

    @classmethod
    def from_config(cls, cfg: RetrievalCfg) -> RetrieverConfig:
        return cls(
            min_k=cfg.min_k,
            max_k=cfg.max_k,
            snippet_start=cfg.snippet_start,
            snippet_end=cfg.snippet_end,
            snippet_ellipsis=cfg.snippet_ellipsis,
            snippet_tokens=cfg.snippet_tokens,
        )


def clamp_k(k: int, min_k: int = 1, max_k: int = 8) -> int:
    """Clamp *k* into the closed range [min_k, max_k]."""
    return max(min_k, min(int(k), max_k))


def retrieve(
    query: str,
    repo: Repository,
    k: int,
    config: RetrieverConfig | None = None,
) -> list[SearchHit]:
    """Return at most clamp_k(k) hits for *query*, best match first.

    No match is not an error: the result is an empty list.

    Raises:
        sqlite3.OperationalError: On storage failures, or if even the
            sanitised query is rejected.
    """
    config = config or RetrieverConfig()
    limit = clamp_k(k, config.min_k, config.max_k)

    if not query.strip():
        return []

    try:
        hits = _search(query, repo, limit, config)
    except sqlite3.OperationalError as exc:
        if not _is_query_syntax_error(exc):
            raise
        fallback = sanitize_query(query)
        logger.debug("FTS5 rejected %r (%s); retrying as %r", query, exc, fallback)
        if not fallback:
            return []
        hits = _search(fallback, repo, limit, config)

    logger.debug("Retrieved %d hit(s) for %r (limit %d)", len(hits), query, limit)
    return hits


def sanitize_query(query: str) -> str:
    """Turn free text into an FTS5 AND-query of quoted terms ('' if none)."""
    terms = _PUNCT_RE.sub(" ", query).split()
    return " ".join(f'"{t}"' for t in terms)


def _search(
    fts_query: str, repo: Repository, limit: int, config: RetrieverConfig
) -> list[SearchHit]:
    return repo.search_fts(
        fts_query,
        limit,
        start=config.snippet_start,
        end=config.snippet_end,
        ellipsis=config.snippet_ellipsis,
        tokens=config.snippet_tokens,
    )


def _is_query_syntax_error(exc: sqlite3.OperationalError) -> bool:
    msg = str(exc).lower()
    return any(marker in msg for marker in _SYNTAX_MARKERS)
