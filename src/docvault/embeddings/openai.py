"""OpenAIEmbedding — async embedding provider backed by OpenAI's API."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

# Default dimensions per model when the caller does not specify.
_MODEL_DEFAULTS: dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}

_PREVIEW_CHARS = 100


@dataclass(frozen=True, slots=True)
class EmbeddingOptions:
    """Explicit configuration for :class:`OpenAIEmbedding`.

    Attributes:
        api_key: OpenAI API key.
        model: Embedding model name.
        dimensions: Requested output width; ``None`` uses the model default.
        timeout: Per-request timeout in seconds, enforced by the SDK.
    """

    api_key: str
    model: str = "text-embedding-3-small"
    dimensions: int | None = None
    timeout: float = 60.0


class OpenAIEmbedding:
    """Async embedding provider backed by the OpenAI Embeddings API.

    Newlines are replaced with spaces before submission.  Calls are
    timed and logged; failures are logged and re-raised unchanged, with
    no retry, fallback, or caching.
    """

    def __init__(self, options: EmbeddingOptions) -> None:
        if not options.api_key:
            msg = "No OpenAI API key provided. Set EmbeddingOptions.api_key."
            raise ValueError(msg)

        self._options = options
        self._client = AsyncOpenAI(
            api_key=options.api_key,
            max_retries=0,
            timeout=options.timeout,
        )

    # ------------------------------------------------------------------
    # EmbeddingProvider protocol
    # ------------------------------------------------------------------

    async def embed(self, text: str) -> list[float]:
        """Embed a single text string via the OpenAI API."""
        logger.debug("Generating embedding for text: %s...", text[:_PREVIEW_CHARS])
        kwargs: dict[str, object] = {
            "input": normalize_input(text),
            "model": self._options.model,
        }
        if self._options.dimensions is not None:
            kwargs["dimensions"] = self._options.dimensions

        started = time.perf_counter()
        try:
            response = await self._client.embeddings.create(**kwargs)  # type: ignore[arg-type]
        except Exception:
            logger.exception("Error generating embedding")
            raise
        elapsed_ms = (time.perf_counter() - started) * 1000

        logger.info(
            "Embedding generated successfully (model=%s, %.1f ms)",
            self._options.model,
            elapsed_ms,
        )
        return response.data[0].embedding

    @property
    def dimensions(self) -> int:
        """Return the embedding dimensionality."""
        if self._options.dimensions is not None:
            return self._options.dimensions
        default = _MODEL_DEFAULTS.get(self._options.model)
        if default is not None:
            return default
        msg = (
            f"Unknown default dimensions for model {self._options.model!r}. "
            "Pass dimensions= explicitly."
        )
        raise ValueError(msg)

    @property
    def model_name(self) -> str:
        """Return the model name."""
        return self._options.model

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the underlying httpx client."""
        await self._client.close()


def normalize_input(text: str) -> str:
    """Replace newlines with spaces, as the embeddings endpoint expects."""
    return text.replace("\n", " ")
