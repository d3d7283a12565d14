"""LLM provider adapters.

OpenAILLMProvider (gpt-4o by default, or any OpenAI-compatible endpoint)
implements ILLMProvider (src/interfaces/llm_provider.py).  main.py builds
one instance and shares it between file analysis, answer synthesis and
performance assessment.
"""

from src.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider"]
