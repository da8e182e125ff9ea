import logging

from sqlalchemy.engine import Engine

from recode.db.base import Base
import recode.db.models  # noqa: F401  registers every table on Base.metadata

logger = logging.getLogger(__name__)


def init_db(bind: Engine = None) -> None:
    """Create any missing tables. Existing tables are left untouched."""
    if bind is None:
        from recode.db.session import engine
        bind = engine
    Base.metadata.create_all(bind=bind)
    logger.info("Database tables ensured: %s", ", ".join(sorted(Base.metadata.tables)))
