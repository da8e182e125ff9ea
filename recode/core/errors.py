"""
Error taxonomy for the ReCode API.

Services raise these; the handler registered in recode.main renders them as
{"error": code, "message": str, "details": {...}} with the matching status.
"""
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class RecodeError(Exception):
    """Base class for all user-visible application errors."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str = "An error occurred", details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the error to a dictionary for API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }

    def log(self, level: int = logging.WARNING) -> None:
        """Log the error with its code and status."""
        logger.log(level, f"{self.error_code} ({self.status_code}): {self.message}")


class AuthenticationRequired(RecodeError):
    """No (valid) caller identity on a request that needs one."""

    status_code = 401
    error_code = "authentication_required"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class AdminRequired(RecodeError):
    """Caller is authenticated but the token carries no admin claim."""

    status_code = 403
    error_code = "admin_required"

    def __init__(self, message: str = "Forbidden - Not an admin token"):
        super().__init__(message)


class QuotaExceeded(RecodeError):
    """Daily limit for a metered action is used up."""

    status_code = 429
    error_code = "quota_exceeded"

    def __init__(self, action: str, plan: str, limit: int, used: int, resets_at: str):
        if plan == "trial":
            message = f"Trial limit: {limit} {action} per day. Upgrade to Pro for 10 per day!"
        else:
            message = f"You've used all {limit} {action} requests for today. Resets at midnight UTC."
        super().__init__(
            message,
            details={
                "action": action,
                "plan": plan,
                "limit": limit,
                "used": used,
                "remaining": 0,
                "resets_at": resets_at,
                "upgrade_url": "/upgrade",
            },
        )


class TrialExpired(RecodeError):
    status_code = 403
    error_code = "trial_expired"

    def __init__(self, trial_end_date: Optional[str] = None):
        super().__init__(
            "Your 7-day trial has ended. Upgrade to Pro to continue!",
            details={"trial_expired": True, "trial_end_date": trial_end_date, "upgrade_url": "/upgrade"},
        )


class ValidationError(RecodeError):
    status_code = 400
    error_code = "validation_error"


class UpstreamUnavailable(RecodeError):
    """A backing store (durable or distributed) could not be reached."""

    status_code = 503
    error_code = "upstream_unavailable"


class UsageStoreUnavailable(UpstreamUnavailable):
    """The usage counters could not be read or written; never silently under-count."""

    error_code = "usage_store_unavailable"

    def __init__(self, message: str = "Usage tracking is temporarily unavailable. Please try again."):
        super().__init__(message)


class GenerationFailed(RecodeError):
    """The LLM call failed or returned something that is not usable JSON."""

    status_code = 502
    error_code = "generation_failed"
