"""
Cache admin endpoints.

Gated by an admin token from POST /admin/login, independent of user sessions.
"""
import logging
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import func
from sqlalchemy.orm import Session

from recode.api.deps import get_solution_cache
from recode.core.auth_dependency import require_admin
from recode.core.errors import AuthenticationRequired, ValidationError
from recode.core.security import create_admin_token, verify_admin_password
from recode.db.session import get_db
from recode.db.models.user import User
from recode.db.models.usage import UsageRecord
from recode.schemas.admin import (
    AdminLoginRequest,
    AdminLoginResponse,
    AdminStatsResponse,
    CachedSolutionsResponse,
    ClearCacheResponse,
    DeleteCachedSolutionResponse,
)
from recode.services.quota_service import count_usage_records, utc_now
from recode.services.solution_cache import SolutionCache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/login", response_model=AdminLoginResponse)
def admin_login(body: AdminLoginRequest):
    """Exchange the admin password for a 24h admin token."""
    if not body.password:
        raise ValidationError("Password required")

    if not verify_admin_password(body.password):
        logger.warning("Admin login failed: invalid password")
        raise AuthenticationRequired("Invalid password")

    logger.info("Admin login succeeded")
    return AdminLoginResponse(token=create_admin_token())


@router.get("/stats", response_model=AdminStatsResponse)
def admin_stats(
    _admin: dict = Depends(require_admin),
    cache: SolutionCache = Depends(get_solution_cache),
    db: Session = Depends(get_db)
):
    """Cache tier stats plus user and usage counters."""
    total_users = db.query(func.count(User.id)).scalar() or 0
    usage_today = count_usage_records(db, UsageRecord.bucket_for(utc_now()))

    return {
        "success": True,
        "stats": {
            "total_users": total_users,
            "usage_records_today": usage_today,
            "cache": cache.stats(),
        },
    }


@router.get("/cached-solutions", response_model=CachedSolutionsResponse)
def list_cached_solutions(
    _admin: dict = Depends(require_admin),
    cache: SolutionCache = Depends(get_solution_cache)
):
    """Top 100 cached solutions by hit count."""
    return {"success": True, "solutions": cache.list_entries(limit=100)}


@router.delete("/cache", response_model=ClearCacheResponse)
def clear_cache(
    _admin: dict = Depends(require_admin),
    cache: SolutionCache = Depends(get_solution_cache)
):
    """Empty every cache tier. Repeating the call is a no-op."""
    cleared = cache.clear_all()
    logger.info(f"Admin cleared all caches: {cleared}")
    return ClearCacheResponse(message="All caches cleared", details=cleared)


@router.delete(
    "/cached-solutions/{entry_id}",
    response_model=DeleteCachedSolutionResponse,
    responses={404: {"model": DeleteCachedSolutionResponse}},
)
def delete_cached_solution(
    entry_id: int,
    _admin: dict = Depends(require_admin),
    cache: SolutionCache = Depends(get_solution_cache)
):
    """Remove one cached solution from every tier."""
    if not cache.delete_entry(entry_id):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"success": False, "error": "not_found", "message": "Cached solution not found"},
        )
    return DeleteCachedSolutionResponse(success=True, message="Cached solution deleted")
