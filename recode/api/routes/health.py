"""
Health check endpoint for deployment monitoring.
"""
from datetime import datetime
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from recode.api.deps import get_solution_cache
from recode.db.session import get_db
from recode.services.solution_cache import SolutionCache

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
def health_check(
    cache: SolutionCache = Depends(get_solution_cache),
    db: Session = Depends(get_db)
):
    """
    "degraded" when the database is unreachable. Redis being down only shows
    up in distributed_cache; solutions are still served without it.
    """
    status = "ok"

    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        db_status = f"error: {type(e).__name__}"
        status = "degraded"

    distributed = cache.stats().get("distributed", {})

    return {
        "status": status,
        "timestamp": datetime.utcnow().isoformat(),
        "database": db_status,
        "distributed_cache": "connected" if distributed.get("connected") else "unavailable",
        "version": "1.0.0",
    }
