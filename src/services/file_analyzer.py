"""Synchronous upload-time analysis: a short summary and a category.

Runs before the document record is created, so every stored document has
its summary/category before background ingestion starts.
"""

from __future__ import annotations

import json

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.interfaces.llm_provider import ILLMProvider
from src.services.performance_assessor import extract_json_object
from src.utils.errors import AnalysisParseError
from src.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)

# Long uploads are analysed from their head only.
_MAX_ANALYSIS_CHARS = 12000


class FileAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    summary: str = Field(min_length=1)
    category: str = Field(min_length=1)


class FileAnalyzer:
    """Summarises and categorises uploaded text via one JSON-mode completion."""

    _SYSTEM_PROMPT = (
        "Analyze the file content and provide a short summary (2-3 sentences) and a "
        "single category label. Respond with JSON in this format: "
        '{"summary": string, "category": string}'
    )

    def __init__(self, llm: ILLMProvider) -> None:
        self._llm = llm

    async def analyze(self, content: str) -> FileAnalysis:
        raw = await self._llm.complete(
            system_prompt=self._SYSTEM_PROMPT,
            user_prompt=content[:_MAX_ANALYSIS_CHARS],
            temperature=0.0,
            max_tokens=400,
            json_mode=True,
        )
        try:
            analysis = FileAnalysis.model_validate(json.loads(extract_json_object(raw)))
        except (json.JSONDecodeError, ValidationError) as exc:
            raise AnalysisParseError(
                message=f"File analysis response could not be parsed: {exc}",
                provider_name=self._llm.get_provider_name(),
            ) from exc

        logger.info("file_analyzed", category=analysis.category, chars=len(content))
        return analysis
