"""Abstract base class for LLM (generation service) providers.

Defines the contract for the remote text-generation backend used to
synthesize answers, self-assess them, and summarise uploaded files.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations: OpenAILLMProvider
# Located in: src/providers/llm/
class ILLMProvider(ABC):
    """Contract for generation services used by the RAG core."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 2000,
        json_mode: bool = False,
    ) -> str:
        """Generate a text completion from the model.

        Parameters
        ----------
        system_prompt:
            The instruction message that sets the model's behaviour.
        user_prompt:
            The message carrying context and the actual request.
        temperature:
            Sampling temperature (0.0 = deterministic).
        max_tokens:
            Upper bound on response tokens.
        json_mode:
            Ask the service to return a single JSON object.

        Returns
        -------
        str
            The model's non-empty text response.

        Raises
        ------
        src.utils.errors.GenerationServiceError
            If the API call fails or times out.
        src.utils.errors.GenerationEmptyResponse
            If the service returns no content.
        """

    @abstractmethod
    def get_model(self) -> str:
        """Return the generation model identifier."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are configured."""
