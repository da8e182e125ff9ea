"""
Database models module.

Importing this module registers every table with SQLAlchemy's Base.metadata
before table creation.
"""
from recode.db.models.user import User
from recode.db.models.usage import UsageRecord
from recode.db.models.solution_cache import SolutionCacheEntry

# Explicitly export all models for clarity
__all__ = [
    "User",
    "UsageRecord",
    "SolutionCacheEntry",
]
