from datetime import datetime, timezone, timedelta
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from recode.db.base import Base


class UsageRecord(Base):
    """
    Daily usage counters for metered actions.

    One row per user per UTC day. Rows are created lazily by the first metered
    action of the day and kept afterwards for analytics; a new day simply has
    no row yet, which reads as zero usage.
    """
    __tablename__ = "user_usage"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    date = Column(String(10), nullable=False, index=True)  # "YYYY-MM-DD" (UTC)
    get_solution_count = Column(Integer, default=0, nullable=False)
    add_solution_count = Column(Integer, default=0, nullable=False)
    variant_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Unique constraint: one record per user per day
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_user_usage_user_date"),
    )

    @staticmethod
    def bucket_for(now: datetime) -> str:
        """Date key (YYYY-MM-DD) of the UTC calendar day containing `now`."""
        if now.tzinfo is not None:
            now = now.astimezone(timezone.utc)
        return now.strftime("%Y-%m-%d")

    @staticmethod
    def next_reset(now: datetime) -> datetime:
        """Next UTC midnight after `now`; the instant every user's counters roll over."""
        if now.tzinfo is not None:
            now = now.astimezone(timezone.utc).replace(tzinfo=None)
        midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
        return (midnight + timedelta(days=1)).replace(tzinfo=timezone.utc)
