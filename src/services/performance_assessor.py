"""Self-assessment of a generated answer against its retrieved context.

One JSON-mode generation request asks the model to score, on a 0-1 scale,
how relevant the retrieved context was to the query and how good the
answer is, and to list concrete improvements.  The reply must parse into
all three fields; anything else is an :class:`AssessmentParseError`, never
a silent zero.
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence

import structlog
from pydantic import ValidationError

from src.interfaces.llm_provider import ILLMProvider
from src.models.rag import PerformanceScores
from src.utils.errors import AssessmentParseError
from src.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def extract_json_object(raw: str) -> str:
    """Strip markdown fences or surrounding prose from a JSON reply."""
    text = raw.strip()
    if text.startswith("```"):
        lines = [line for line in text.split("\n") if not line.strip().startswith("```")]
        text = "\n".join(lines).strip()
    if not text.startswith("{"):
        match = _JSON_OBJECT.search(text)
        if match:
            text = match.group(0)
    return text


class PerformanceAssessor:
    """Scores an answer's context relevance and quality via the generation service."""

    _SYSTEM_PROMPT = (
        "You evaluate a retrieval-augmented answer. Given a question, the retrieved "
        "context, and the answer, rate on a scale from 0 to 1:\n"
        "- contextRelevance: how relevant the retrieved context is to the question\n"
        "- responseQuality: how accurate, complete and grounded in the context the answer is\n"
        "Also list concrete suggestions to improve retrieval or the answer.\n\n"
        "Respond with JSON only, exactly in this format:\n"
        '{"contextRelevance": number, "responseQuality": number, '
        '"suggestedImprovements": [string]}'
    )

    def __init__(self, llm: ILLMProvider, max_tokens: int = 800) -> None:
        self._llm = llm
        self._max_tokens = max_tokens

    async def assess(
        self, query: str, context: Sequence[str], answer: str
    ) -> PerformanceScores:
        """Return the self-assessed scores for *answer*.

        Raises
        ------
        AssessmentParseError
            If the reply is not JSON with ``contextRelevance``,
            ``responseQuality`` (both in [0, 1]) and ``suggestedImprovements``.
        """
        raw = await self._llm.complete(
            system_prompt=self._SYSTEM_PROMPT,
            user_prompt=json.dumps(
                {"query": query, "context": list(context), "answer": answer},
                ensure_ascii=False,
            ),
            temperature=0.0,
            max_tokens=self._max_tokens,
            json_mode=True,
        )
        scores = self.parse(raw, provider_name=self._llm.get_provider_name())
        logger.info(
            "answer_assessed",
            context_relevance=scores.context_relevance,
            response_quality=scores.response_quality,
            improvements=len(scores.suggested_improvements),
        )
        return scores

    @staticmethod
    def parse(raw: str, provider_name: str | None = None) -> PerformanceScores:
        try:
            data = json.loads(extract_json_object(raw))
        except json.JSONDecodeError as exc:
            raise AssessmentParseError(
                message=f"Assessment is not valid JSON: {exc.msg}",
                provider_name=provider_name,
            ) from exc
        if not isinstance(data, dict):
            raise AssessmentParseError(
                message="Assessment JSON is not an object", provider_name=provider_name
            )
        try:
            return PerformanceScores.model_validate(data)
        except ValidationError as exc:
            raise AssessmentParseError(
                message=f"Assessment is missing or has invalid fields: {exc.error_count()} error(s)",
                provider_name=provider_name,
            ) from exc
