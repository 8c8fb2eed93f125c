"""Generation backends: Ollama /api/generate and LiteLLM.

Every backend implements ``Generator.generate(prompt) -> GenerationResult``.
Failures never raise: transport errors, timeouts, non-2xx statuses and
malformed bodies each come back as a ``GenerationResult`` with a distinct
``error`` message. No retries are made here; retrying is the caller's call.
"""

from __future__ import annotations

import http.client
import json
import logging
import os
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any, Protocol

import litellm

from ragbox.config import GenerationCfg

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True
litellm.set_verbose = False  # type: ignore[assignment]

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0

_INVALID_RESPONSE = "Invalid LLM response"


@dataclass
class GenerationResult:
    """Outcome of one generation call: exactly one of *response* / *error* is set.

    Attributes:
        response: Generated text ('' when the service sent no text field).
        error: Human-readable failure description.
        raw: Decoded response body, when there was one.
    """

    response: str | None = None
    error: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, message: str) -> GenerationResult:
        logger.warning("Generation failed: %s", message)
        return cls(error=message)


class Generator(Protocol):
    """Capability interface for answer generation."""

    def generate(self, prompt: str) -> GenerationResult: ...


# ------------------------------------------------------------------
# Ollama
# ------------------------------------------------------------------


class OllamaClient:
    """Single synchronous POST to ``<host>/api/generate``.

    Request body: ``{"model": ..., "prompt": ..., "stream": false}``.
    Expected response: a JSON object with a ``response`` string.

    Args:
        host: Base URL of the Ollama server (trailing slash ignored).
        model: Model name, e.g. 'llama3'.
        timeout: Seconds for connect + read; exceeding it is a transport failure.
    """

    def __init__(self, host: str, model: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.host = host.rstrip("/")
        self.model = model
        self.timeout = timeout

    @property
    def endpoint(self) -> str:
        return f"{self.host}/api/generate"

    def generate(self, prompt: str) -> GenerationResult:
        payload = json.dumps(
            {"model": self.model, "prompt": prompt, "stream": False},
            ensure_ascii=False,
        ).encode("utf-8")
        req = urllib.request.Request(
            self.endpoint,
            data=payload,
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        logger.debug("POST %s (model=%s, %d prompt chars)", self.endpoint, self.model, len(prompt))

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                status = resp.status
                body = resp.read()
        except urllib.error.HTTPError as exc:
            return GenerationResult.failure(f"LLM HTTP {exc.code}")
        except urllib.error.URLError as exc:
            if isinstance(exc.reason, TimeoutError):
                return self._timed_out()
            return GenerationResult.failure(f"LLM request failed: {exc.reason}")
        except TimeoutError:
            return self._timed_out()
        except http.client.HTTPException as exc:
            return GenerationResult.failure(f"LLM request failed: {exc}")
        except OSError as exc:
            return GenerationResult.failure(f"LLM request failed: {exc}")

        if not 200 <= status < 300:
            return GenerationResult.failure(f"LLM HTTP {status}")

        return _parse_body(body)

    def _timed_out(self) -> GenerationResult:
        return GenerationResult.failure(f"LLM request timed out after {self.timeout:g}s")


def _parse_body(body: bytes) -> GenerationResult:
    """Decode an /api/generate response. A missing ``response`` field means ''."""
    try:
        data = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return GenerationResult.failure(_INVALID_RESPONSE)
    if not isinstance(data, dict):
        return GenerationResult.failure(_INVALID_RESPONSE)

    answer = data.get("response")
    if answer is None:
        answer = ""
    elif not isinstance(answer, str):
        return GenerationResult.failure(_INVALID_RESPONSE)
    return GenerationResult(response=answer, raw=data)


# ------------------------------------------------------------------
# LiteLLM
# ------------------------------------------------------------------

_PROVIDER_ENV: dict[str, str | None] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "google": "GOOGLE_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "groq": "GROQ_API_KEY",
    "together_ai": "TOGETHERAI_API_KEY",
    "ollama": None,  # Local, no key required
    "ollama_chat": None,
}


def validate_api_key(model: str) -> None:
    """Check that the required API key env var is set for *model*.

    Args:
        model: LiteLLM model string in 'provider/model' format.

    Raises:
        EnvironmentError: If the required key is missing from environment.
    """
    provider = model.split("/")[0].lower() if "/" in model else "openai"
    env_var = _PROVIDER_ENV.get(provider, "OPENAI_API_KEY")

    if env_var is None:
        return

    if not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


class LiteLLMClient:
    """Generation through ``litellm.completion()`` for hosted or proxied models.

    The prompt is sent as a single user message. LiteLLM retries are disabled
    so the no-retry contract matches OllamaClient.

    Args:
        model: LiteLLM model string (provider/model format).
        api_base: Optional base URL override.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self, model: str, api_base: str | None = None, timeout: float = DEFAULT_TIMEOUT
    ) -> None:
        self.model = model
        self.api_base = api_base
        self.timeout = timeout

    def generate(self, prompt: str) -> GenerationResult:
        try:
            response = litellm.completion(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                api_base=self.api_base,
                timeout=self.timeout,
                num_retries=0,
            )
        except litellm.exceptions.Timeout:
            return GenerationResult.failure(f"LLM request timed out after {self.timeout:g}s")
        except litellm.exceptions.APIConnectionError as exc:
            return GenerationResult.failure(f"LLM request failed: {exc}")
        except Exception as exc:
            # Provider errors arrive as many LiteLLM/OpenAI classes; all carry status_code.
            status = getattr(exc, "status_code", None)
            if status is not None:
                return GenerationResult.failure(f"LLM HTTP {status}")
            return GenerationResult.failure(f"LLM request failed: {exc}")

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, KeyError, TypeError):
            return GenerationResult.failure(_INVALID_RESPONSE)
        if content is not None and not isinstance(content, str):
            return GenerationResult.failure(_INVALID_RESPONSE)
        return GenerationResult(response=content or "")


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------


def build_generator(cfg: GenerationCfg) -> Generator:
    """Return the backend named by ``cfg.backend``.

    Raises:
        ValueError: If the backend name is unknown.
        EnvironmentError: If the LiteLLM provider's API key is not set.
    """
    if cfg.backend == "ollama":
        return OllamaClient(cfg.host, cfg.model, timeout=cfg.timeout)
    if cfg.backend == "litellm":
        validate_api_key(cfg.model)
        return LiteLLMClient(cfg.model, api_base=cfg.api_base, timeout=cfg.timeout)
    raise ValueError(f"Unknown generation backend: {cfg.backend!r}")
