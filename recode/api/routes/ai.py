"""
Code analysis endpoint: revision notes for a pasted solution.
"""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from recode.api.deps import get_llm_provider
from recode.core.auth_dependency import get_current_user_obj
from recode.db.session import get_db
from recode.db.models.user import User
from recode.llm.provider import LLMProvider
from recode.schemas.solution import AnalyzeRequest, AnalyzeResponse
from recode.schemas.usage import QuotaExceededResponse
from recode.services.quota_service import increment_usage
from recode.services.solution_service import analyze_code, validate_analysis_request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["AI"])


@router.post("/analyze", response_model=AnalyzeResponse, responses={429: {"model": QuotaExceededResponse}})
def analyze(
    body: AnalyzeRequest,
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db),
    provider: LLMProvider = Depends(get_llm_provider)
):
    """
    Analyze a solution into structured revision notes.

    type="reconsideration" returns only a second opinion on time/space complexity.
    Consumes one addSolution once the body is known to be valid.
    """
    validate_analysis_request(body.code)
    increment_usage(db, user, "addSolution")

    analysis_type = "reconsideration" if body.type == "reconsideration" else "analysis"
    data = analyze_code(provider, body.code, body.language, body.type, problem_url=body.problem_url)

    logger.info(f"Code analyzed: user_id={user.id}, language={body.language}, type={analysis_type}")
    return AnalyzeResponse(type=analysis_type, data=data)
