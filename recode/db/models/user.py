from datetime import datetime, timedelta
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from recode.core.config import TRIAL_DAYS
from recode.db.base import Base


def _default_trial_end():
    return datetime.utcnow() + timedelta(days=TRIAL_DAYS)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    username = Column(String, nullable=True)
    plan = Column(String, default="trial", nullable=False)  # free | trial | pro | admin
    trial_end_date = Column(DateTime, default=_default_trial_end, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
