"""Ingest and ask flows.

ingest: validate → DocumentWriter (document + chunks, one transaction)
ask:    validate → retrieve → build_prompt → Generator → AskResult

The pipeline holds no state besides its collaborators; the repository
(one SQLite connection) and the generator are passed in by the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ragbox.config import RagboxConfig
from ragbox.db.models import SearchHit
from ragbox.db.repository import Repository
from ragbox.errors import GatewayError, ValidationError
from ragbox.ingest.chunker import FixedWindowChunker
from ragbox.ingest.writer import DocumentWriter
from ragbox.rag.llm_client import Generator
from ragbox.rag.prompt import build_prompt
from ragbox.rag.retriever import RetrieverConfig, clamp_k, retrieve

logger = logging.getLogger(__name__)

DEFAULT_K = 5


@dataclass
class IngestResult:
    id: int
    title: str
    chunks: int = 0

    def to_dict(self) -> dict:
        return {"id": self.id, "title": self.title}


@dataclass
class AskResult:
    """Generated answer plus the evidence hits it was grounded on."""

    answer: str
    hits: list[SearchHit] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"answer": self.answer, "hits": [h.to_dict() for h in self.hits]}


class RagPipeline:
    """Compose the document writer, retriever, prompt builder and generator.

    Args:
        repo: Open Repository; the pipeline never closes it.
        generator: Generation backend (any object with ``generate(prompt)``);
            may be None for a pipeline that only ingests and searches.
        chunker: Chunker for ingestion (default: 1000-character windows).
        retriever_config: k bounds and snippet markers.
        default_k: Hits requested when ``ask``/``search`` get no k.
    """

    def __init__(
        self,
        repo: Repository,
        generator: Generator | None = None,
        *,
        chunker: FixedWindowChunker | None = None,
        retriever_config: RetrieverConfig | None = None,
        default_k: int = DEFAULT_K,
    ) -> None:
        self._repo = repo
        self._generator = generator
        self._writer = DocumentWriter(repo, chunker)
        self._retriever_config = retriever_config or RetrieverConfig()
        self._default_k = default_k

    @classmethod
    def from_config(
        cls, repo: Repository, generator: Generator | None, cfg: RagboxConfig
    ) -> RagPipeline:
        return cls(
            repo,
            generator,
            chunker=FixedWindowChunker(cfg.chunking.chunk_size),
            retriever_config=RetrieverConfig.from_config(cfg.retrieval),
            default_k=cfg.retrieval.default_k,
        )

    def ingest(self, title: str, content: str) -> IngestResult:
        """Store a document and index its chunks atomically.

        Raises:
            ValidationError: If title or content is blank.
            sqlite3.Error: If the write fails; nothing is left behind.
        """
        if not (title or "").strip() or not (content or "").strip():
            raise ValidationError("title and content are required")

        doc, n_chunks = self._writer.write(title, content)
        return IngestResult(id=doc.id, title=doc.title, chunks=n_chunks)

    def search(self, query: str, k: int | None = None) -> list[SearchHit]:
        """Ranked full-text hits for *query*; k is clamped to the configured bounds."""
        return retrieve(query, self._repo, self._resolve_k(k), self._retriever_config)

    def ask(self, question: str, k: int | None = None) -> AskResult:
        """Answer *question* from the indexed chunks.

        Raises:
            ValidationError: If the question is blank (nothing is retrieved
                or generated).
            GatewayError: If the generation backend reports an error.
        """
        question = (question or "").strip()
        if not question:
            raise ValidationError("q is required")
        if self._generator is None:
            raise RuntimeError("RagPipeline was built without a generator")

        hits = self.search(question, k)
        prompt = build_prompt(question, hits)
        result = self._generator.generate(prompt)
        if not result.ok:
            raise GatewayError(result.error or "LLM request failed")

        logger.debug("Answered %r from %d hit(s)", question, len(hits))
        return AskResult(answer=result.response or "", hits=hits)

    def _resolve_k(self, k: int | None) -> int:
        cfg = self._retriever_config
        return clamp_k(self._default_k if k is None else k, cfg.min_k, cfg.max_k)
