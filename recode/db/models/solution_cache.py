from sqlalchemy import Column, Integer, String, DateTime, Boolean, JSON
from sqlalchemy.sql import func
from recode.db.base import Base


class SolutionCacheEntry(Base):
    """
    Durable tier of the solution cache.

    cache_key is the normalized question name + language (plus a description
    digest for variants) and identifies exactly one cached payload.
    """
    __tablename__ = "solution_cache"

    id = Column(Integer, primary_key=True, index=True)
    cache_key = Column(String, unique=True, nullable=False, index=True)
    question_name = Column(String, nullable=False, index=True)  # normalized
    language = Column(String, nullable=False)  # normalized
    is_variant = Column(Boolean, default=False, nullable=False)
    original_name = Column(String, nullable=True)  # as the user typed it
    solution = Column(JSON, nullable=False)
    hit_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
