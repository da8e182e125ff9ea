"""
Dialect-specific INSERT constructs that support ON CONFLICT DO UPDATE.

Both PostgreSQL and SQLite (3.24+) accept the same upsert shape, and
RETURNING (SQLite 3.35+), which the usage counters rely on.
"""
from typing import Callable, Dict
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

_UPSERT_INSERTS: Dict[str, Callable] = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def dialect_insert(db: Session) -> Callable:
    """Return the insert() of the session's dialect."""
    dialect = db.get_bind().dialect.name
    insert = _UPSERT_INSERTS.get(dialect)
    if insert is None:
        raise NotImplementedError(f"Atomic upsert is not supported for dialect '{dialect}'")
    return insert
