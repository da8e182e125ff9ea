"""
Unit tests for the tiered solution cache.
"""
import logging
import pytest
import redis
from unittest.mock import MagicMock
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from recode.core.errors import UpstreamUnavailable
from recode.db.base import Base
from recode.db.models.solution_cache import SolutionCacheEntry
from recode.services.solution_cache import (
    DurableTier,
    MemoryTier,
    RedisTier,
    SolutionCache,
    build_solution_cache,
    make_cache_key,
    normalize_question_name,
)


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

PAYLOAD = {
    "problemStatement": "Find two numbers that add up to target.",
    "bruteForce": {"name": "Nested loops", "code": "pass"},
    "optimal": {"name": "Hash map", "code": "pass"},
}


@pytest.fixture(scope="function", autouse=True)
def setup_db():
    """Create and drop tables for each test."""
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def cache():
    """Memory + durable + disabled distributed tier."""
    return build_solution_cache(TestSessionLocal, redis_url=None)


def make_generator(payload=None):
    generate = MagicMock(return_value=payload or PAYLOAD)
    return generate


def durable_hits(key):
    with TestSessionLocal() as db:
        return db.query(SolutionCacheEntry.hit_count).filter(SolutionCacheEntry.cache_key == key).scalar()


class FakeRedis:
    """Just enough of redis.Redis for the distributed tier."""

    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, ex=None):
        self.data[key] = value

    def delete(self, *keys):
        for key in keys:
            self.data.pop(key, None)

    def scan_iter(self, match=None, count=None):
        prefix = match.rstrip("*")
        return [key for key in list(self.data) if key.startswith(prefix)]

    def ping(self):
        return True


# ============================================
# Key normalization
# ============================================

@pytest.mark.parametrize("name", ["Two Sum", " two sum ", "two-sum", "TWO_SUM", "Two   Sum!"])
def test_question_name_variants_share_a_key(name):
    assert normalize_question_name(name) == "twosum"
    assert make_cache_key(name, "Python") == "twosum:python"


def test_variant_key_differs_from_base_key():
    base = make_cache_key("Two Sum", "python")
    variant = make_cache_key("Two Sum", "python", "Return indices sorted descending")
    assert variant.startswith("twosum:python:v:")
    assert variant != base

    # Whitespace and casing in the description do not matter
    assert variant == make_cache_key("two sum", "python", "  return INDICES sorted   descending ")
    assert make_cache_key("Two Sum", "python", "   ") == base


# ============================================
# Lookup / store
# ============================================

def test_miss_generates_then_hits(cache):
    generate = make_generator()

    first = cache.get_or_generate("Two Sum", "python", generate)
    assert first.from_cache is False
    assert first.tier == "generated"
    assert first.hits == 0
    assert first.data == PAYLOAD

    second = cache.get_or_generate("two-sum", "Python", generate)
    assert second.from_cache is True
    assert second.tier == "memory"
    assert second.hits == 1
    assert second.data == PAYLOAD

    generate.assert_called_once()
    assert durable_hits("twosum:python") == 1


def test_durable_hit_is_promoted_to_memory():
    durable = DurableTier(TestSessionLocal)
    durable.store("twosum:python", PAYLOAD, original_name="Two Sum")

    memory = MemoryTier()
    cache = SolutionCache([memory, durable, RedisTier(None)])

    result = cache.get_or_generate("Two Sum", "python", make_generator())
    assert result.tier == "durable"
    assert result.hits == 1
    assert memory.lookup("twosum:python") == PAYLOAD

    result = cache.get_or_generate("Two Sum", "python", make_generator())
    assert result.tier == "memory"
    assert result.hits == 2


def test_memory_tier_returns_copies():
    memory = MemoryTier()
    memory.store("k", {"steps": ["a"]})

    payload = memory.lookup("k")
    payload["steps"].append("b")

    assert memory.lookup("k") == {"steps": ["a"]}


def test_memory_tier_evicts_least_recently_used():
    memory = MemoryTier(max_entries=2)
    memory.store("a", {"n": 1})
    memory.store("b", {"n": 2})
    memory.lookup("a")
    memory.store("c", {"n": 3})

    assert memory.lookup("b") is None
    assert memory.lookup("a") == {"n": 1}
    assert memory.stats() == {"size": 2}


def test_generation_failure_stores_nothing(cache):
    generate = MagicMock(side_effect=RuntimeError("model down"))

    with pytest.raises(RuntimeError):
        cache.get_or_generate("Two Sum", "python", generate)

    assert cache.stats()["durable"] == {"count": 0}
    assert cache.stats()["memory"] == {"size": 0}


def test_variant_entries_are_flagged(cache):
    cache.get_or_generate("Two Sum", "python", make_generator(), description="Sorted input")

    entries = cache.list_entries()
    assert len(entries) == 1
    assert entries[0]["is_variant"] is True
    assert entries[0]["question_name"] == "twosum"
    assert entries[0]["original_name"] == "Two Sum"


# ============================================
# Degraded tiers
# ============================================

def test_disconnected_redis_is_a_miss(caplog):
    client = MagicMock()
    client.get.side_effect = redis.ConnectionError("refused")
    client.set.side_effect = redis.ConnectionError("refused")
    client.ping.side_effect = redis.ConnectionError("refused")
    cache = SolutionCache([MemoryTier(), DurableTier(TestSessionLocal), RedisTier(client)])

    with caplog.at_level(logging.WARNING):
        result = cache.get_or_generate("Two Sum", "python", make_generator())

    assert result.tier == "generated"
    assert "distributed" in caplog.text

    stats = cache.stats()
    assert stats["distributed"]["connected"] is False
    assert stats["distributed"]["keys"] == 0


def test_disconnected_redis_still_serves_durable_hits():
    client = MagicMock()
    client.get.side_effect = redis.ConnectionError("refused")
    client.ping.side_effect = redis.ConnectionError("refused")
    durable = DurableTier(TestSessionLocal)
    durable.store("twosum:python", PAYLOAD)
    cache = SolutionCache([MemoryTier(), durable, RedisTier(client)])

    hit = cache.lookup(make_cache_key(" two sum ", "python"))

    assert hit is not None
    assert hit.tier == "durable"
    assert hit.hits == 1
    assert cache.stats()["distributed"]["connected"] is False


def test_durable_failure_falls_through_to_distributed():
    fake = FakeRedis()
    distributed = RedisTier(fake)
    distributed.store("twosum:python", PAYLOAD)

    broken_factory = MagicMock(side_effect=RuntimeError("database unavailable"))
    cache = SolutionCache([MemoryTier(), DurableTier(broken_factory), distributed])

    result = cache.get_or_generate("Two Sum", "python", make_generator())
    assert result.from_cache is True
    assert result.tier == "distributed"
    assert result.hits is None


def test_distributed_hit_backfills_faster_tiers():
    fake = FakeRedis()
    distributed = RedisTier(fake)
    distributed.store("twosum:python", PAYLOAD)
    cache = SolutionCache([MemoryTier(), DurableTier(TestSessionLocal), distributed])

    result = cache.get_or_generate("Two Sum", "python", make_generator())
    assert result.tier == "distributed"

    assert cache.stats()["memory"] == {"size": 1}
    assert cache.stats()["durable"] == {"count": 1}


# ============================================
# Admin operations
# ============================================

def test_clear_all_is_idempotent():
    fake = FakeRedis()
    fake.set("session:abc", "keep me")
    cache = SolutionCache([MemoryTier(), DurableTier(TestSessionLocal), RedisTier(fake)])
    cache.get_or_generate("Two Sum", "python", make_generator())
    cache.get_or_generate("3Sum", "java", make_generator())

    assert cache.clear_all() == {"memory": 2, "durable": 2, "distributed": 2}
    assert cache.clear_all() == {"memory": 0, "durable": 0, "distributed": 0}

    # Keys outside the solution: prefix survive
    assert fake.get("session:abc") == "keep me"


def test_delete_entry_removes_key_everywhere():
    fake = FakeRedis()
    cache = SolutionCache([MemoryTier(), DurableTier(TestSessionLocal), RedisTier(fake)])
    cache.get_or_generate("Two Sum", "python", make_generator())
    entry_id = cache.list_entries()[0]["id"]

    assert cache.delete_entry(entry_id) is True
    assert cache.delete_entry(entry_id) is False
    assert cache.lookup("twosum:python") is None


def test_list_entries_orders_by_hit_count(cache):
    cache.get_or_generate("Two Sum", "python", make_generator())
    cache.get_or_generate("Valid Parentheses", "python", make_generator())
    for _ in range(3):
        cache.get_or_generate("Valid Parentheses", "python", make_generator())

    entries = cache.list_entries()
    assert [e["question_name"] for e in entries] == ["validparentheses", "twosum"]
    assert entries[0]["hit_count"] == 3


def test_stats_without_redis(cache):
    cache.get_or_generate("Two Sum", "python", make_generator())
    assert cache.stats() == {
        "memory": {"size": 1},
        "durable": {"count": 1},
        "distributed": {"connected": False, "keys": 0},
    }


def test_delete_entry_store_down_is_not_reported_as_missing():
    broken_factory = MagicMock(side_effect=RuntimeError("database unavailable"))
    cache = SolutionCache([MemoryTier(), DurableTier(broken_factory), RedisTier(None)])

    with pytest.raises(UpstreamUnavailable):
        cache.delete_entry(1)
