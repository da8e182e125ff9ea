"""
Usage tracking endpoints.

Daily quota snapshot, atomic increment and self-service reset for the
authenticated user.
"""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from recode.db.session import get_db
from recode.db.models.user import User
from recode.core.auth_dependency import get_current_user_obj
from recode.schemas.usage import (
    IncrementRequest,
    QuotaExceededResponse,
    ResetRequest,
    ResetResponse,
    UsageResponse,
)
from recode.services.quota_service import get_usage, increment_usage, reset_usage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/usage", tags=["Usage"])


@router.get("", response_model=UsageResponse, status_code=status.HTTP_200_OK)
def get_usage_snapshot(
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db)
):
    """
    Get today's usage for the authenticated user.

    Returns:
    - plan, unlimited: plan and whether it has no limits at all
    - date, resets_at: the UTC day counted and when the next one starts
    - usage: per action {used, limit, left}; left is "unlimited" for unlimited plans
    """
    snapshot = get_usage(db, user)
    logger.debug(f"Usage snapshot requested: user_id={user.id}, plan={snapshot['plan']}")
    return snapshot


@router.post(
    "/increment",
    response_model=UsageResponse,
    responses={429: {"model": QuotaExceededResponse}},
)
def increment_usage_counter(
    body: IncrementRequest,
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db)
):
    """Consume one unit of a metered action; 429 when today's limit is used up."""
    return increment_usage(db, user, body.type)


@router.post("/reset", response_model=ResetResponse)
def reset_usage_counters(
    body: ResetRequest,
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db)
):
    """Clear the caller's usage: every day ("clear-my-usage") or only today ("clear-today")."""
    deleted = reset_usage(db, user, body.action)

    if body.action == "clear-today":
        message = f"Cleared today's usage ({deleted} records)"
    else:
        message = f"Cleared {deleted} usage records"

    return ResetResponse(message=message, deleted_count=deleted)
