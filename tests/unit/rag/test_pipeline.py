"""Tests for RagPipeline — ingest and ask flows."""

from __future__ import annotations

import pytest

from ragbox.config import RagboxConfig
from ragbox.errors import GatewayError, ValidationError
from ragbox.rag.llm_client import GenerationResult
from ragbox.rag.pipeline import AskResult, IngestResult, RagPipeline
from ragbox.rag.retriever import RetrieverConfig


class FakeGenerator:
    """Records prompts; replies with a fixed result."""

    def __init__(self, result: GenerationResult | None = None) -> None:
        self.result = result or GenerationResult(response="generated answer")
        self.prompts: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    def generate(self, prompt: str) -> GenerationResult:
        self.prompts.append(prompt)
        return self.result


_FILLER = "lorem ipsum dolor sit amet " * 60


def _block(marker: str = "") -> str:
    """Exactly 1000 characters, with *marker* in the middle if given."""
    text = _FILLER[:400] + f" {marker} " + _FILLER if marker else _FILLER * 2
    return text[:1000]


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def pipeline(repo, generator):
    return RagPipeline(repo, generator)


# ------------------------------------------------------------------
# ingest
# ------------------------------------------------------------------


def test_ingest_returns_id_and_title(pipeline):
    result = pipeline.ingest("Doc A", "some content")
    assert isinstance(result, IngestResult)
    assert result.id >= 1
    assert result.to_dict() == {"id": result.id, "title": "Doc A"}


def test_ingest_2500_chars_makes_three_chunks(pipeline, repo):
    result = pipeline.ingest("Doc A", "z" * 2500)
    assert result.chunks == 3
    assert [len(c.content) for c in repo.get_chunks(result.id)] == [1000, 1000, 500]


@pytest.mark.parametrize(
    "title, content",
    [("", "content"), ("title", ""), ("   ", "content"), ("title", " \n\t "), (None, "x")],
)
def test_ingest_blank_fields_rejected_without_writes(pipeline, repo, title, content):
    with pytest.raises(ValidationError, match="title and content are required"):
        pipeline.ingest(title, content)
    assert repo.count_documents() == 0


def test_ingest_never_generates(pipeline, generator):
    pipeline.ingest("t", "c")
    assert generator.calls == 0


def test_ingest_uses_configured_chunk_size(repo, generator):
    cfg = RagboxConfig()
    cfg.chunking.chunk_size = 10
    pipeline = RagPipeline.from_config(repo, generator, cfg)
    assert pipeline.ingest("t", "x" * 25).chunks == 3


# ------------------------------------------------------------------
# ask — validation
# ------------------------------------------------------------------


@pytest.mark.parametrize("question", ["", "   ", "\n", None])
def test_ask_blank_question_makes_no_calls(pipeline, generator, question):
    with pytest.raises(ValidationError) as exc_info:
        pipeline.ask(question)
    assert exc_info.value.status == 400
    assert generator.calls == 0


def test_ask_without_generator_is_programming_error(repo):
    with pytest.raises(RuntimeError):
        RagPipeline(repo).ask("question")


# ------------------------------------------------------------------
# ask — success
# ------------------------------------------------------------------


def test_ask_scenario_hit_from_second_chunk(pipeline, repo, generator):
    content = _block() + _block("flamingo protocol") + _block()[:500]
    assert len(content) == 2500
    doc = pipeline.ingest("Doc A", content)
    assert doc.chunks == 3

    result = pipeline.ask("flamingo protocol", k=3)

    assert isinstance(result, AskResult)
    assert result.answer == "generated answer"
    assert len(result.hits) == 1
    hit = result.hits[0]
    assert hit.doc_id == doc.id
    assert hit.content == repo.get_chunks(doc.id)[1].content
    assert "<b>" in hit.snippet and "</b>" in hit.snippet
    assert "flamingo" in hit.snippet


def test_ask_prompt_contains_hits_and_question(pipeline, generator):
    pipeline.ingest("t", "Quokkas live on Rottnest Island.")
    pipeline.ask("  Rottnest quokkas  ")
    prompt = generator.prompts[0]
    assert "[Chunk 1]\nQuokkas live on Rottnest Island." in prompt
    assert prompt.count("Rottnest quokkas") == 1
    assert "Question: Rottnest quokkas\n" in prompt


def test_ask_with_no_hits_still_generates(pipeline, generator):
    result = pipeline.ask("nothing indexed yet")
    assert result.hits == []
    assert generator.calls == 1
    assert "[Chunk" not in generator.prompts[0]


def test_ask_empty_generation_is_empty_answer(repo):
    pipeline = RagPipeline(repo, FakeGenerator(GenerationResult(response="")))
    assert pipeline.ask("question").answer == ""


def test_ask_default_k_is_5(repo, generator):
    pipeline = RagPipeline(repo, generator)
    for i in range(10):
        pipeline.ingest(f"d{i}", f"common word {i}")
    assert len(pipeline.ask("common").hits) == 5


@pytest.mark.parametrize("k, expected", [(0, 1), (-1, 1), (20, 8)])
def test_ask_clamps_k(pipeline, k, expected):
    for i in range(10):
        pipeline.ingest(f"d{i}", f"common word {i}")
    assert len(pipeline.ask("common", k=k).hits) == expected


def test_ask_respects_configured_bounds(repo, generator):
    pipeline = RagPipeline(repo, generator, retriever_config=RetrieverConfig(max_k=2))
    for i in range(5):
        pipeline.ingest(f"d{i}", "common")
    assert len(pipeline.ask("common", k=8).hits) == 2


def test_ask_result_to_dict(pipeline):
    doc = pipeline.ingest("t", "alpha beta")
    data = pipeline.ask("alpha").to_dict()
    assert data["answer"] == "generated answer"
    assert data["hits"] == [
        {"doc_id": doc.id, "snippet": "<b>alpha</b> beta", "content": "alpha beta"}
    ]


# ------------------------------------------------------------------
# ask — gateway failures
# ------------------------------------------------------------------


def test_ask_generation_error_raises_gateway_error(repo):
    pipeline = RagPipeline(repo, FakeGenerator(GenerationResult.failure("LLM HTTP 500")))
    with pytest.raises(GatewayError) as exc_info:
        pipeline.ask("question")
    assert exc_info.value.status == 502
    assert exc_info.value.to_dict() == {"error": "LLM HTTP 500"}


def test_ask_gateway_error_leaves_store_unchanged(repo):
    ok = RagPipeline(repo, FakeGenerator())
    ok.ingest("t", "alpha")
    failing = RagPipeline(repo, FakeGenerator(GenerationResult.failure("timed out")))
    with pytest.raises(GatewayError):
        failing.ask("alpha")
    assert repo.count_documents() == 1
    assert repo.count_chunks() == 1


# ------------------------------------------------------------------
# search
# ------------------------------------------------------------------


def test_search_does_not_generate(pipeline, generator):
    pipeline.ingest("t", "alpha")
    assert len(pipeline.search("alpha")) == 1
    assert generator.calls == 0
