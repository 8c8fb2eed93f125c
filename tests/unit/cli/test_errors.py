"""Tests for ragbox rich error messages."""

from __future__ import annotations

import pytest

from ragbox.cli.errors import (
    err_config,
    err_file_not_found,
    err_gateway,
    err_no_api_key,
    err_no_db,
    err_storage,
    err_validation,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _has_action(msg: str) -> bool:
    """Every error must contain a cause AND an actionable instruction."""
    lower = msg.lower()
    return any(
        kw in lower for kw in ["run:", "set:", "use:", "fix ", "check ", "ragbox ", "export "]
    )


# ---------------------------------------------------------------------------
# Every message names the cause and an action
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "msg",
    [
        err_no_api_key("openai"),
        err_no_db("rag.db"),
        err_validation("q is required"),
        err_gateway("LLM HTTP 500", "http://localhost:11434"),
        err_storage("disk I/O error", "rag.db"),
        err_config("retrieval.min_k must be >= 1"),
        err_file_not_found("notes.txt"),
    ],
)
def test_error_has_cause_and_action(msg):
    assert "Error:" in msg
    assert _has_action(msg)


def test_no_api_key_known_provider():
    assert "ANTHROPIC_API_KEY" in err_no_api_key("anthropic")


def test_no_api_key_unknown_provider_derives_env_var():
    assert "GROQ_API_KEY" in err_no_api_key("groq")


def test_gateway_mentions_host_and_cause():
    msg = err_gateway("LLM request timed out after 120s", "http://gpu:11434")
    assert "timed out" in msg
    assert "http://gpu:11434" in msg


def test_dynamic_text_is_escaped():
    msg = err_gateway("Invalid LLM response [red]", "http://h")
    assert "\\[red]" in msg


def test_storage_says_nothing_written():
    assert "No changes were written" in err_storage("locked", "rag.db")
