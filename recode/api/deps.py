"""
Process-wide service objects handed to routes through FastAPI dependencies.

Both are created once per process and stored on app.state; tests swap them
with app.dependency_overrides.
"""
import logging
from fastapi import Request

from recode.core.errors import UpstreamUnavailable
from recode.llm.provider import LLMProvider
from recode.llm.openai_provider import OpenAIProvider
from recode.llm.router import is_model_available
from recode.services.solution_cache import SolutionCache

logger = logging.getLogger(__name__)


def get_solution_cache(request: Request) -> SolutionCache:
    return request.app.state.solution_cache


def get_llm_provider(request: Request) -> LLMProvider:
    """Build the provider on first use so the API can start without LLM credentials."""
    provider = getattr(request.app.state, "llm_provider", None)
    if provider is None:
        if not is_model_available():
            logger.error("LLM request rejected: OPENAI_API_KEY not configured")
            raise UpstreamUnavailable("AI service is not configured.")
        provider = OpenAIProvider()
        request.app.state.llm_provider = provider
    return provider
