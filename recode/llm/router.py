"""
Model router for selecting models and sampling settings per task.
"""
import logging
import os
from typing import Dict, Any

from recode.core.config import OPENAI_API_KEY

logger = logging.getLogger(__name__)

# Task -> model and sampling settings
MODEL_ROUTING: Dict[str, Dict[str, Any]] = {
    "solution": {"model": os.getenv("SOLUTION_MODEL", "gpt-4o-mini"), "temperature": 0.7, "max_tokens": 8192},
    "analysis": {"model": os.getenv("ANALYSIS_MODEL", "gpt-4o-mini"), "temperature": 0.2, "max_tokens": 4000},
    # Complexity re-checks favour accuracy over speed
    "reasoning": {"model": os.getenv("REASONING_MODEL", "gpt-4o"), "temperature": 0.2, "max_tokens": 4000},
}


def get_task_config(task: str) -> Dict[str, Any]:
    """
    Get model settings for a task.

    Args:
        task: "solution", "analysis" or "reasoning"

    Returns:
        Dict with model, temperature and max_tokens
    """
    return dict(MODEL_ROUTING.get(task, MODEL_ROUTING["analysis"]))


def is_model_available() -> bool:
    """Check if an LLM endpoint is configured."""
    return bool(OPENAI_API_KEY)
