"""
Pydantic schemas for solution generation and code analysis.

LLM payloads keep the camelCase keys the frontend reads; the Python side uses
snake_case names with aliases.
"""
from typing import Any, List, Optional
from pydantic import BaseModel, Field


class Approach(BaseModel):
    """One solution approach (brute force, better or optimal)."""
    name: str = Field("", description="Approach name")
    intuition: str = Field("", description="Why the approach works")
    steps: List[str] = Field(default_factory=list, description="Step-by-step walkthrough")
    code: str = Field("", description="Code without markdown fences")
    time_complexity: str = Field("", alias="timeComplexity")
    time_complexity_reason: str = Field("", alias="timeComplexityReason")
    space_complexity: str = Field("", alias="spaceComplexity")
    space_complexity_reason: str = Field("", alias="spaceComplexityReason")

    class Config:
        populate_by_name = True


class SolutionPayload(BaseModel):
    """Structured solution as cached in every tier."""
    problem_statement: str = Field("", alias="problemStatement")
    difficulty: Optional[str] = Field(None, description="Easy | Medium | Hard")
    brute_force: Approach = Field(..., alias="bruteForce")
    better: Optional[Approach] = Field(None, description="Null when no intermediate approach exists")
    optimal: Approach = Field(...)
    note: Optional[str] = Field(None, description="Set when brute force is already optimal")
    edge_cases: List[Any] = Field(default_factory=list, alias="edgeCases")
    dsa_category: Optional[str] = Field(None, alias="dsaCategory")
    pattern: Optional[str] = None
    key_insights: List[Any] = Field(default_factory=list, alias="keyInsights")

    class Config:
        populate_by_name = True


class SolutionRequest(BaseModel):
    """Request model for POST /solution."""
    question_name: str = Field(..., min_length=1, description="LeetCode question name, any casing")
    language: str = Field(..., min_length=1, description="Programming language")
    problem_description: Optional[str] = Field(
        None,
        description="Custom problem text; turns the request into a metered variant"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "question_name": "Two Sum",
                "language": "python"
            }
        }


class SolutionResponse(BaseModel):
    success: bool = True
    from_cache: bool = Field(..., description="Served from a cache tier instead of a fresh generation")
    tier: str = Field(..., description="memory | durable | distributed | generated")
    hits: Optional[int] = Field(None, description="Durable hit count after this request")
    data: dict = Field(..., description="Solution payload (camelCase keys)")


class AnalyzeRequest(BaseModel):
    """Request model for POST /ai/analyze."""
    code: str = Field("", description="Solution source code")
    language: str = Field("python", description="Programming language")
    problem_url: Optional[str] = Field(None, description="Link to the problem, if any")
    type: Optional[str] = Field(None, description="'reconsideration' re-checks complexity only")


class AnalysisResult(BaseModel):
    """Structured revision notes for a submitted solution."""
    title: str = ""
    language: str = ""
    dsa_category: Optional[str] = Field(None, alias="dsaCategory")
    time_complexity: str = Field("", alias="timeComplexity")
    space_complexity: str = Field("", alias="spaceComplexity")
    revision_notes: Any = Field(default_factory=list, alias="revisionNotes")
    problem_overview: str = Field("", alias="problemOverview")
    test_cases: Any = Field(default_factory=list, alias="testCases")

    class Config:
        populate_by_name = True


class ComplexityReconsideration(BaseModel):
    final_time_complexity: str = Field("", alias="finalTimeComplexity")
    final_space_complexity: str = Field("", alias="finalSpaceComplexity")
    reasoning: str = ""

    class Config:
        populate_by_name = True


class AnalyzeResponse(BaseModel):
    success: bool = True
    type: str = Field(..., description="analysis | reconsideration")
    data: dict
