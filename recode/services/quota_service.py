"""
Quota service for daily usage limits.

Handles plan resolution, usage snapshots, and the atomic check-and-increment
for metered actions. Counters live in one user_usage row per user per UTC day;
the daily reset is implicit, a new date simply has no row yet.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from sqlalchemy.orm import Session
from sqlalchemy import delete, func
from sqlalchemy.exc import SQLAlchemyError

from recode.core import config
from recode.core.errors import (
    AuthenticationRequired,
    QuotaExceeded,
    TrialExpired,
    UsageStoreUnavailable,
    ValidationError,
)
from recode.core.plan_limits import (
    ACTION_COLUMNS,
    SUPPORTED_ACTIONS,
    get_all_plan_limits,
    get_plan_limit,
    is_unlimited_plan,
    normalize_plan,
)
from recode.db.models.user import User
from recode.db.models.usage import UsageRecord
from recode.db.upsert import dialect_insert

logger = logging.getLogger(__name__)

RESET_ACTIONS = ("clear-my-usage", "clear-today")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _require_user(user: Optional[User]) -> User:
    if user is None:
        raise AuthenticationRequired()
    return user


def _validate_action(action: Optional[str]) -> str:
    if not action:
        raise ValidationError(
            "Missing required field: type",
            details={"valid_types": SUPPORTED_ACTIONS},
        )
    if action not in ACTION_COLUMNS:
        raise ValidationError(
            "Invalid usage type",
            details={"provided": action, "valid_types": SUPPORTED_ACTIONS},
        )
    return action


def resolve_plan(user: User, now: Optional[datetime] = None) -> str:
    """
    Get the user's effective plan.

    Raises:
        TrialExpired: plan is 'trial' and trial_end_date has passed
    """
    plan = normalize_plan(user.plan)
    if plan == "trial" and user.trial_end_date is not None:
        now = now or utc_now()
        trial_end = user.trial_end_date
        if trial_end.tzinfo is None:
            trial_end = trial_end.replace(tzinfo=timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        if now > trial_end:
            logger.info(f"Trial expired: user_id={user.id}, trial_end_date={trial_end.isoformat()}")
            raise TrialExpired(trial_end.isoformat())
    return plan


def get_usage_record(db: Session, user_id: int, date_key: str) -> Optional[UsageRecord]:
    """Get the usage row for one user and day, or None if nothing was metered yet."""
    return db.query(UsageRecord).filter(
        UsageRecord.user_id == user_id,
        UsageRecord.date == date_key,
    ).first()


def _used_counts(record: Optional[UsageRecord]) -> Dict[str, int]:
    return {
        action: (getattr(record, column) or 0) if record else 0
        for action, column in ACTION_COLUMNS.items()
    }


def build_snapshot(plan: str, used: Dict[str, int], now: datetime) -> Dict[str, Any]:
    """
    Shape a usage snapshot for API responses.

    `left` is "unlimited" for unlimited actions, otherwise max(0, limit - used).
    """
    limits = get_all_plan_limits(plan)
    usage = {}
    for action in SUPPORTED_ACTIONS:
        limit = limits.get(action)
        count = used.get(action, 0)
        usage[action] = {
            "used": count,
            "limit": limit,
            "left": "unlimited" if limit is None else max(0, limit - count),
        }

    return {
        "plan": plan,
        "unlimited": is_unlimited_plan(plan),
        "date": UsageRecord.bucket_for(now),
        "resets_at": UsageRecord.next_reset(now).isoformat(),
        "usage": usage,
    }


def get_usage(db: Session, user: Optional[User], now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Get today's usage snapshot for a user.

    A day without a usage row reports used=0 and left=limit for every action.

    Raises:
        AuthenticationRequired: no user
        TrialExpired: trial plan past its end date
        UsageStoreUnavailable: the usage table could not be read
    """
    user = _require_user(user)
    now = now or utc_now()
    plan = resolve_plan(user, now)

    try:
        record = get_usage_record(db, user.id, UsageRecord.bucket_for(now))
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Usage read failed: user_id={user.id}: {e}", exc_info=True)
        raise UsageStoreUnavailable() from e

    return build_snapshot(plan, _used_counts(record), now)


def increment_usage_count(
    db: Session,
    user_id: int,
    action: str,
    limit: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Optional[int]:
    """
    Atomically add one to today's counter for an action.

    Runs a single INSERT ... ON CONFLICT (user_id, date) DO UPDATE statement,
    so concurrent calls neither create duplicate rows nor lose increments.
    With a limit, the update only applies while the counter is below it.

    Returns:
        The new counter value, or None when the limit was already reached
    """
    column_name = ACTION_COLUMNS[action]
    date_key = UsageRecord.bucket_for(now or utc_now())

    if limit is not None and limit <= 0:
        return None

    insert = dialect_insert(db)
    table = UsageRecord.__table__
    column = table.c[column_name]
    stmt = insert(table).values(user_id=user_id, date=date_key, **{column_name: 1})
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "date"],
        set_={column_name: column + 1, "updated_at": func.now()},
        where=(column < limit) if limit is not None else None,
    ).returning(column)

    row = db.execute(stmt).first()
    db.commit()
    return row[0] if row else None


def increment_usage(
    db: Session,
    user: Optional[User],
    action: str,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Consume one unit of a metered action for today.

    The limit check and the increment are the same statement, so there is no
    gap between "has quota" and "used quota".

    Returns:
        Updated usage snapshot

    Raises:
        AuthenticationRequired: no user
        ValidationError: unknown action
        TrialExpired: trial plan past its end date
        QuotaExceeded: today's limit for the action is used up
        UsageStoreUnavailable: the counter could not be written
    """
    user = _require_user(user)
    action = _validate_action(action)
    now = now or utc_now()
    plan = resolve_plan(user, now)

    limit = get_plan_limit(plan, action)
    enforced_limit = None if config.IGNORE_USAGE_LIMITS else limit

    try:
        new_count = increment_usage_count(db, user.id, action, limit=enforced_limit, now=now)
        record = get_usage_record(db, user.id, UsageRecord.bucket_for(now))
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Usage increment failed: user_id={user.id}, action={action}: {e}", exc_info=True)
        raise UsageStoreUnavailable() from e

    used = _used_counts(record)

    if new_count is None:
        logger.warning(
            f"Quota exceeded: user_id={user.id}, action={action}, "
            f"plan={plan}, limit={limit}, used={used[action]}"
        )
        raise QuotaExceeded(
            action=action,
            plan=plan,
            limit=limit,
            used=used[action],
            resets_at=UsageRecord.next_reset(now).isoformat(),
        )

    logger.info(
        f"Usage consumed: user_id={user.id}, action={action}, "
        f"used={new_count}/{limit if limit is not None else 'unlimited'}, plan={plan}"
    )

    return build_snapshot(plan, used, now)


def reset_usage(
    db: Session,
    user: Optional[User],
    action: str,
    now: Optional[datetime] = None,
) -> int:
    """
    Delete usage rows for the caller.

    Args:
        action: "clear-my-usage" (all days) or "clear-today"

    Returns:
        Number of rows deleted
    """
    user = _require_user(user)
    if action not in RESET_ACTIONS:
        raise ValidationError(
            "Invalid action. Use 'clear-my-usage' or 'clear-today'",
            details={"provided": action, "valid_actions": list(RESET_ACTIONS)},
        )

    stmt = delete(UsageRecord).where(UsageRecord.user_id == user.id)
    if action == "clear-today":
        stmt = stmt.where(UsageRecord.date == UsageRecord.bucket_for(now or utc_now()))

    try:
        result = db.execute(stmt)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Usage reset failed: user_id={user.id}: {e}", exc_info=True)
        raise UsageStoreUnavailable() from e

    logger.info(f"Usage reset: user_id={user.id}, action={action}, deleted={result.rowcount}")
    return result.rowcount


def count_usage_records(db: Session, date_key: str) -> int:
    """Number of users with any metered action on a given day."""
    return db.query(func.count(UsageRecord.id)).filter(UsageRecord.date == date_key).scalar() or 0
