"""
Pydantic schemas for usage endpoints.
"""
from typing import Optional, Union, Literal
from pydantic import BaseModel, Field


class ActionUsageDetail(BaseModel):
    """Usage details for a single metered action."""
    used: int = Field(..., description="Today's usage")
    limit: Optional[int] = Field(None, description="Daily limit (None for unlimited)")
    left: Union[int, Literal["unlimited"]] = Field(..., description="Remaining today, or 'unlimited'")


class ActionUsage(BaseModel):
    getSolution: ActionUsageDetail
    addSolution: ActionUsageDetail
    variant: ActionUsageDetail


class UsageResponse(BaseModel):
    """Response schema for GET /usage and POST /usage/increment."""
    success: bool = True
    plan: str = Field(..., description="Current plan (free, trial, pro, admin)")
    unlimited: bool = Field(..., description="Whether every action is unlimited")
    date: str = Field(..., description="UTC day the counters belong to (YYYY-MM-DD)")
    resets_at: str = Field(..., description="Next UTC midnight (ISO 8601)")
    usage: ActionUsage

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "plan": "free",
                "unlimited": False,
                "date": "2026-01-15",
                "resets_at": "2026-01-16T00:00:00+00:00",
                "usage": {
                    "getSolution": {"used": 1, "limit": 3, "left": 2},
                    "addSolution": {"used": 0, "limit": 2, "left": 2},
                    "variant": {"used": 0, "limit": 1, "left": 1}
                }
            }
        }


class IncrementRequest(BaseModel):
    """Request body for POST /usage/increment."""
    type: Optional[str] = Field(None, description="getSolution | addSolution | variant")


class ResetRequest(BaseModel):
    """Request body for POST /usage/reset."""
    action: Optional[str] = Field(None, description="clear-my-usage | clear-today")


class ResetResponse(BaseModel):
    success: bool = True
    message: str
    deleted_count: int


class QuotaExceededResponse(BaseModel):
    """Error response schema for quota exceeded."""
    error: str = Field("quota_exceeded", description="Error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict = Field(..., description="action, plan, limit, used, remaining, resets_at, upgrade_url")

    class Config:
        json_schema_extra = {
            "example": {
                "error": "quota_exceeded",
                "message": "You've used all 3 getSolution requests for today. Resets at midnight UTC.",
                "details": {
                    "action": "getSolution",
                    "plan": "free",
                    "limit": 3,
                    "used": 3,
                    "remaining": 0,
                    "resets_at": "2026-01-16T00:00:00+00:00",
                    "upgrade_url": "/upgrade"
                }
            }
        }
