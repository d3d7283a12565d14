"""Grounded answer generation from retrieved context.

Builds one generation request: an instruction to answer strictly from the
supplied context (and to say so when the context is not enough), followed
by the numbered context fragments and the question.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from src.interfaces.llm_provider import ILLMProvider
from src.utils.errors import GenerationEmptyResponse
from src.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)


class ResponseSynthesizer:
    """Turns a query plus ranked context into a natural-language answer.

    Parameters
    ----------
    llm:
        Generation service used for the single completion call.
    """

    _SYSTEM_PROMPT = (
        "You are a helpful assistant that answers questions about the user's documents.\n\n"
        "Rules:\n"
        "- Answer strictly from the provided context. Do not use outside knowledge.\n"
        "- If the context does not contain enough information to answer, say explicitly "
        "that the provided context is insufficient to answer the question.\n"
        "- Be concise and accurate."
    )

    def __init__(self, llm: ILLMProvider, temperature: float = 0.2, max_tokens: int = 1500) -> None:
        self._llm = llm
        self._temperature = temperature
        self._max_tokens = max_tokens

    async def synthesize(self, query: str, context: Sequence[str]) -> str:
        """Return the raw answer text for *query* grounded in *context*.

        Raises
        ------
        GenerationEmptyResponse
            If the generation service returns no content.
        GenerationServiceError
            If the generation call fails or times out.
        """
        answer = await self._llm.complete(
            system_prompt=self._SYSTEM_PROMPT,
            user_prompt=self.build_user_prompt(query, context),
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        if not answer or not answer.strip():
            raise GenerationEmptyResponse(provider_name=self._llm.get_provider_name())

        logger.debug("answer_synthesized", context_fragments=len(context), chars=len(answer))
        return answer

    @staticmethod
    def build_user_prompt(query: str, context: Sequence[str]) -> str:
        if context:
            blocks = "\n\n".join(f"[{i}] {fragment}" for i, fragment in enumerate(context, start=1))
        else:
            blocks = "(no context available)"
        return f"Context:\n{blocks}\n\nQuestion: {query}"
