"""
Script to empty every solution cache tier (durable table and Redis prefix).
Run: python -m scripts.clear_cache

Exits 1 when the durable tier could not be cleared; a Redis failure only
warns since those entries expire on their own.
"""
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from recode.core.config import REDIS_URL, SOLUTION_CACHE_TTL_SECONDS
from recode.db.session import SessionLocal
from recode.services.solution_cache import DurableTier, SolutionCache, build_solution_cache
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def clear_tiers(cache: SolutionCache):
    """
    Clear each tier directly so failures are visible.

    Returns:
        (cleared counts per tier, names of tiers that failed)
    """
    cleared, failed = {}, []
    for tier in cache.tiers:
        try:
            cleared[tier.name] = tier.clear()
        except Exception as e:
            logger.error(f"Failed to clear tier '{tier.name}': {type(e).__name__}: {e}")
            failed.append(tier.name)
    return cleared, failed


def main(cache: SolutionCache = None) -> int:
    if cache is None:
        cache = build_solution_cache(SessionLocal, redis_url=REDIS_URL, ttl_seconds=SOLUTION_CACHE_TTL_SECONDS)

    cleared, failed = clear_tiers(cache)
    durable_names = {tier.name for tier in cache.tiers if isinstance(tier, DurableTier)}

    if durable_names & set(failed):
        print(f"\n[ERROR] Durable cache was not cleared (cleared: {cleared}, failed: {failed})")
        return 1
    if failed:
        print(f"\n[WARNING] Cleared {cleared}; could not clear: {failed}")
        return 0

    # The memory tier of running API workers is not reachable from here
    print(f"\n[SUCCESS] Cleared solution cache: {cleared}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
