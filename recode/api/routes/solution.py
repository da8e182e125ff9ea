"""
Solution endpoint: metered, cache-first LLM solutions.
"""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from recode.api.deps import get_llm_provider, get_solution_cache
from recode.core.auth_dependency import get_current_user_obj
from recode.db.session import get_db
from recode.db.models.user import User
from recode.llm.provider import LLMProvider
from recode.schemas.solution import SolutionRequest, SolutionResponse
from recode.schemas.usage import QuotaExceededResponse
from recode.services.quota_service import increment_usage
from recode.services.solution_cache import SolutionCache
from recode.services.solution_service import get_solution, validate_solution_request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/solution", tags=["Solution"])


@router.post("", response_model=SolutionResponse, responses={429: {"model": QuotaExceededResponse}})
def create_solution(
    body: SolutionRequest,
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db),
    cache: SolutionCache = Depends(get_solution_cache),
    provider: LLMProvider = Depends(get_llm_provider)
):
    """
    Get brute force / better / optimal solutions for a question.

    Consumes one getSolution (or variant, when problem_description is given)
    before looking anything up. Names that normalize to nothing are rejected
    without being metered.
    """
    validate_solution_request(body.question_name, body.language)
    description = (body.problem_description or "").strip() or None
    action = "variant" if description else "getSolution"
    increment_usage(db, user, action)

    result = get_solution(cache, provider, body.question_name, body.language, description)

    logger.info(
        f"Solution served: user_id={user.id}, question={body.question_name!r}, "
        f"language={body.language}, tier={result.tier}, from_cache={result.from_cache}"
    )

    return SolutionResponse(
        from_cache=result.from_cache,
        tier=result.tier,
        hits=result.hits,
        data=result.data,
    )
