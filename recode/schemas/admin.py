"""
Pydantic schemas for the cache admin endpoints.
"""
from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field


class AdminLoginRequest(BaseModel):
    password: Optional[str] = Field(None, description="Admin password")


class AdminLoginResponse(BaseModel):
    success: bool = True
    token: str


class CacheStats(BaseModel):
    memory: Dict[str, Any] = Field(..., description="{size}")
    durable: Dict[str, Any] = Field(..., description="{count}")
    distributed: Dict[str, Any] = Field(..., description="{connected, keys}")


class AdminStats(BaseModel):
    total_users: int
    usage_records_today: int = Field(..., description="Users with any metered action today")
    cache: CacheStats


class AdminStatsResponse(BaseModel):
    success: bool = True
    stats: AdminStats


class CachedSolutionSummary(BaseModel):
    id: int
    question_name: str
    original_name: Optional[str] = None
    language: str
    is_variant: bool = False
    hit_count: int = 0
    created_at: Optional[datetime] = None


class CachedSolutionsResponse(BaseModel):
    success: bool = True
    solutions: List[CachedSolutionSummary]


class ClearCacheResponse(BaseModel):
    success: bool = True
    message: str
    details: Dict[str, int] = Field(..., description="Entries removed per tier")


class DeleteCachedSolutionResponse(BaseModel):
    success: bool
    message: str
    error: Optional[str] = None
