"""
Solution generation and code analysis over the LLM provider.

Builds prompts, parses the JSON the model returns, strips markdown fences and
validates the result before it is cached or returned.
"""
import json
import logging
import re
from typing import Dict, Any, Optional, List

from pydantic import BaseModel, ValidationError as PydanticValidationError

from recode.core.errors import GenerationFailed, ValidationError
from recode.llm.provider import LLMProvider
from recode.llm.router import get_task_config
from recode.schemas.solution import (
    AnalysisResult,
    ComplexityReconsideration,
    SolutionPayload,
)
from recode.services.solution_cache import (
    CacheResult,
    SolutionCache,
    normalize_language,
    normalize_question_name,
)

logger = logging.getLogger(__name__)

SOLUTION_SYSTEM_PROMPT = (
    "You are an expert DSA tutor. Provide comprehensive, educational solutions. "
    "Always output valid JSON only."
)

ANALYSIS_SYSTEM_PROMPT = "You are a structured code analysis engine. Return ONLY valid JSON."

RECONSIDERATION_SYSTEM_PROMPT = "You are a complexity analysis expert. Prioritize accuracy."

_FENCE_START = re.compile(r"^```[\w+-]*[ \t]*\n?", re.MULTILINE)
_FENCE_END = re.compile(r"\n?```[ \t]*$", re.MULTILINE)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences around (or inside) a block of text."""
    if not text:
        return text
    text = _FENCE_START.sub("", text.strip())
    return _FENCE_END.sub("", text).strip()


def parse_json_reply(content: str) -> Dict[str, Any]:
    """
    Parse a model reply into a JSON object.

    Raises:
        GenerationFailed: reply is not a JSON object
    """
    text = strip_code_fences(content or "")
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        # Some models wrap the object in prose; fall back to the outermost braces
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise GenerationFailed("AI returned an invalid response. Please try again.")
        try:
            parsed = json.loads(text[start:end + 1])
        except json.JSONDecodeError as e:
            raise GenerationFailed("AI returned an invalid response. Please try again.") from e

    if not isinstance(parsed, dict):
        raise GenerationFailed("AI returned an invalid response. Please try again.")
    return parsed


def _validate(model: type[BaseModel], data: Dict[str, Any]) -> Dict[str, Any]:
    try:
        return model.model_validate(data).model_dump(by_alias=True)
    except PydanticValidationError as e:
        logger.warning(f"AI response failed validation for {model.__name__}: {e.error_count()} errors")
        raise GenerationFailed("AI returned an incomplete response. Please try again.") from e


def _call(provider: LLMProvider, task: str, messages: List[Dict[str, str]]) -> str:
    settings = get_task_config(task)
    try:
        response = provider.chat(
            messages=messages,
            model=settings["model"],
            temperature=settings["temperature"],
            max_tokens=settings["max_tokens"],
        )
    except Exception as e:
        logger.error(f"LLM call failed for task={task}: {type(e).__name__}: {e}", exc_info=True)
        raise GenerationFailed("AI service temporarily unavailable. Please try again later.") from e

    logger.info(
        f"LLM call complete: task={task}, model={response.model}, "
        f"tokens_in={response.tokens_in}, tokens_out={response.tokens_out}, cost=${response.cost_estimate:.5f}"
    )
    return response.content


def validate_solution_request(question_name: str, language: str) -> None:
    """
    Reject names that normalize to nothing.

    "   " and "???" would otherwise both map to the key ":python" and share one
    cached solution.

    Raises:
        ValidationError: empty question name or language after normalization
    """
    if not normalize_question_name(question_name):
        raise ValidationError(
            "questionName must contain letters or digits",
            details={"field": "question_name", "provided": question_name},
        )
    if not normalize_language(language):
        raise ValidationError("language is required", details={"field": "language"})


def validate_analysis_request(code: str) -> None:
    """
    Raises:
        ValidationError: empty or whitespace-only code
    """
    if not code or not code.strip():
        raise ValidationError("Code is required", details={"field": "code"})


def build_solution_messages(question_name: str, language: str, description: Optional[str] = None) -> List[Dict[str, str]]:
    if description:
        context = f"DESCRIPTION: {description}"
    else:
        context = "If problem name is ambiguous, state your interpretation before solving."

    prompt = f"""You are a DSA problem solver. Solve this problem with multiple approaches.

PROBLEM: {question_name}
LANGUAGE: {language}
{context}

TASK: Provide Brute Force, Better (if exists), and Optimal solutions.

RULES:
- If brute force IS optimal, provide both fields with same content and add a note.
- If no "better" approach exists, set better to null.
- Code must be clean {language} without markdown fences.
- Add minimal inline comments in code.

REQUIRED JSON OUTPUT:
{{
  "problemStatement": "2-3 sentence problem explanation",
  "difficulty": "Easy|Medium|Hard",
  "bruteForce": {{
    "name": "Approach name",
    "intuition": "3-4 sentences explaining why this works",
    "steps": ["Step 1...", "Step 2..."],
    "code": "Clean {language} code with comments",
    "timeComplexity": "O(...)",
    "timeComplexityReason": "2-3 sentences",
    "spaceComplexity": "O(...)",
    "spaceComplexityReason": "2-3 sentences"
  }},
  "better": null | same structure,
  "optimal": same structure as bruteForce,
  "note": "Explanation if brute=optimal, else null",
  "edgeCases": ["5-6 specific edge cases"],
  "dsaCategory": "Arrays & Hashing | Trees | Graphs | DP | etc.",
  "pattern": "Two Pointers | Sliding Window | BFS | etc.",
  "keyInsights": ["5-6 key insights including common mistakes"]
}}"""

    return [
        {"role": "system", "content": SOLUTION_SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]


def generate_solution(
    provider: LLMProvider,
    question_name: str,
    language: str,
    description: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Ask the LLM for a fresh multi-approach solution.

    Returns:
        Validated payload with camelCase keys and fence-free code fields

    Raises:
        GenerationFailed: provider error or unusable reply
    """
    content = _call(provider, "solution", build_solution_messages(question_name, language, description))
    parsed = parse_json_reply(content)

    for approach in ("bruteForce", "better", "optimal"):
        block = parsed.get(approach)
        if isinstance(block, dict) and block.get("code"):
            block["code"] = strip_code_fences(block["code"])

    return _validate(SolutionPayload, parsed)


def get_solution(
    cache: SolutionCache,
    provider: LLMProvider,
    question_name: str,
    language: str,
    description: Optional[str] = None,
) -> CacheResult:
    """Serve a solution from the cache tiers, generating and storing it on a miss."""
    validate_solution_request(question_name, language)
    return cache.get_or_generate(
        question_name,
        language,
        lambda: generate_solution(provider, question_name, language, description),
        description=description,
    )


def analyze_code(
    provider: LLMProvider,
    code: str,
    language: str,
    analysis_type: Optional[str] = None,
    problem_url: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Produce revision notes for a pasted solution, or re-check its complexity.

    Args:
        analysis_type: "reconsideration" for a complexity-only second opinion
        problem_url: link to the problem, passed to the model as context

    Raises:
        ValidationError: empty code
        GenerationFailed: provider error or unusable reply
    """
    validate_analysis_request(code)
    source = f"Problem link: {problem_url.strip()}\n\n" if problem_url and problem_url.strip() else ""

    if analysis_type == "reconsideration":
        messages = [
            {"role": "system", "content": RECONSIDERATION_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": (
                    f"{source}Reconsider the complexity of this {language} code:\n\n{code}\n\n"
                    'Task: Return strict JSON { "finalTimeComplexity": "...", '
                    '"finalSpaceComplexity": "...", "reasoning": "..." }.'
                ),
            },
        ]
        return _validate(ComplexityReconsideration, parse_json_reply(_call(provider, "reasoning", messages)))

    messages = [
        {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": (
                f"{source}Analyze this {language} code:\n\n{code}\n\n"
                "Return JSON with: title, language, dsaCategory, timeComplexity, "
                "spaceComplexity, revisionNotes, problemOverview, testCases."
            ),
        },
    ]
    return _validate(AnalysisResult, parse_json_reply(_call(provider, "analysis", messages)))
