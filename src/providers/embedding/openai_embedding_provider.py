"""OpenAI-compatible embedding provider adapter.

Wraps the ``openai`` async client to implement :class:`IEmbeddingProvider`.
Supports both real OpenAI and OpenAI-compatible providers (TogetherAI,
Fireworks, vLLM) via a custom ``base_url``.

Every call carries the configured timeout and the client is built with
``max_retries=0``: a timeout or API failure surfaces immediately as
:class:`EmbeddingServiceError` and retrying is left to whoever re-triggers
the ingestion.
"""

from __future__ import annotations

import openai
import structlog

from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.utils.errors import EmbeddingServiceError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MODEL = "text-embedding-3-large"


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by an OpenAI-compatible embeddings API.

    Parameters
    ----------
    settings:
        Supplies the API key, optional base URL and default model.
    timeout_seconds:
        Per-request timeout applied to every embedding call.
    """

    def __init__(
        self,
        settings: Settings,
        timeout_seconds: float = 30.0,
        model: str | None = None,
    ) -> None:
        self._settings = settings
        self._api_key = settings.openai_api_key
        self._timeout = timeout_seconds

        # The SDK rejects an empty key, so no client is built without one.
        self._client: openai.AsyncOpenAI | None = None
        if self._api_key:
            client_kwargs: dict = {
                "api_key": self._api_key,
                "timeout": openai.Timeout(timeout_seconds, connect=min(5.0, timeout_seconds)),
                "max_retries": 0,
            }
            if settings.openai_base_url:
                client_kwargs["base_url"] = settings.openai_base_url
            self._client = openai.AsyncOpenAI(**client_kwargs)

        self._model = model or settings.openai_embedding_model or _DEFAULT_MODEL
        self._provider_label = (
            "openai-compatible_embedding" if settings.openai_base_url else "openai_embedding"
        )

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(self, text: str, model: str | None = None) -> list[float]:
        """Generate an embedding vector for a single text string."""
        model_name = model or self._model
        if self._client is None:
            raise EmbeddingServiceError(
                message=f"{self._provider_label} has no API key configured",
                provider_name=self.get_provider_name(),
            )
        try:
            response = await self._client.embeddings.create(
                input=text,
                model=model_name,
                encoding_format="float",
            )
        except openai.APITimeoutError as exc:
            raise EmbeddingServiceError(
                message=f"{self._provider_label} timed out after {self._timeout}s",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise EmbeddingServiceError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.data or not response.data[0].embedding:
            raise EmbeddingServiceError(
                message=f"{self._provider_label} returned no embedding vector",
                provider_name=self.get_provider_name(),
            )

        vector = list(response.data[0].embedding)
        logger.debug(
            "openai_embedding",
            model=model_name,
            provider=self._provider_label,
            dimension=len(vector),
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return vector

    def get_default_model(self) -> str:
        return self._model

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)
