"""
Plan-based usage limits configuration.

Single source of truth for daily quota limits per plan.
None means unlimited quota for that action.
"""
from typing import Dict, Optional, List

# Metered actions, keyed the way clients send them
SUPPORTED_ACTIONS: List[str] = [
    "getSolution",
    "addSolution",
    "variant",
]

# Column on user_usage that counts each action
ACTION_COLUMNS: Dict[str, str] = {
    "getSolution": "get_solution_count",
    "addSolution": "add_solution_count",
    "variant": "variant_count",
}

SUPPORTED_PLANS: List[str] = ["free", "trial", "pro", "admin"]

# Plan limits (per UTC day)
PLAN_LIMITS: Dict[str, Dict[str, Optional[int]]] = {
    "trial": {
        "getSolution": 1,
        "addSolution": 2,
        "variant": 1,
    },
    "free": {
        "getSolution": 3,
        "addSolution": 2,
        "variant": 1,  # Variants are expensive, limit strictly
    },
    "pro": {
        "getSolution": 10,
        "addSolution": 10,
        "variant": 10,
    },
    "admin": {
        "getSolution": None,  # Unlimited
        "addSolution": None,
        "variant": None,
    },
}


def normalize_plan(plan_type: Optional[str]) -> str:
    """Lowercase the plan name and fall back to 'free' for unknown plans."""
    plan_type = plan_type.lower() if plan_type else "free"
    return plan_type if plan_type in PLAN_LIMITS else "free"


def get_plan_limit(plan_type: str, action: str) -> Optional[int]:
    """
    Get the daily limit for an action in a given plan.

    Args:
        plan_type: Plan type (free, trial, pro, admin)
        action: Action name (getSolution, addSolution, variant)

    Returns:
        Daily limit (int) or None for unlimited
    """
    return PLAN_LIMITS[normalize_plan(plan_type)].get(action)


def is_unlimited_plan(plan_type: str) -> bool:
    """Check if every action is unlimited for the plan."""
    limits = PLAN_LIMITS[normalize_plan(plan_type)]
    return all(limit is None for limit in limits.values())


def get_all_plan_limits(plan_type: str) -> Dict[str, Optional[int]]:
    """Get all limits for a plan type."""
    return PLAN_LIMITS[normalize_plan(plan_type)]
