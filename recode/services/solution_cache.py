"""
Multi-tier cache for generated solutions.

Lookup walks an ordered list of tiers (memory -> durable -> distributed) and
stops at the first hit, backfilling the faster tiers it skipped. Every tier
failure is logged and treated as a miss, so a broken cache only costs latency
or a fresh generation, never the request. The one exception is deleting a
single entry by id, where "not there" and "store unreachable" must differ.
"""
import copy
import hashlib
import json
import logging
import re
import threading
from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import redis
from sqlalchemy import delete, func, update
from sqlalchemy.orm import sessionmaker

from recode.core.errors import UpstreamUnavailable
from recode.db.models.solution_cache import SolutionCacheEntry
from recode.db.upsert import dialect_insert

logger = logging.getLogger(__name__)

REDIS_KEY_PREFIX = "solution:"


# ============================================
# Key normalization
# ============================================

def normalize_question_name(name: str) -> str:
    """
    Collapse a question name to lowercase alphanumerics.

    "Two Sum", " two sum " and "two-sum" all become "twosum".
    """
    name = (name or "").lower().strip()
    name = re.sub(r"[-_]", " ", name)
    name = re.sub(r"\s+", "", name)
    return re.sub(r"[^a-z0-9]", "", name)


def normalize_language(language: str) -> str:
    return (language or "").lower().strip()


def make_cache_key(question_name: str, language: str, description: Optional[str] = None) -> str:
    """
    Build the cache key shared by every tier.

    Variants (a question with a custom problem description) get a digest of the
    normalized description appended so they never collide with the base entry.
    """
    key = f"{normalize_question_name(question_name)}:{normalize_language(language)}"
    if description and description.strip():
        normalized_desc = re.sub(r"\s+", " ", description.lower().strip())
        digest = hashlib.sha256(normalized_desc.encode("utf-8")).hexdigest()[:16]
        key = f"{key}:v:{digest}"
    return key


# ============================================
# Tiers
# ============================================

class CacheTier(ABC):
    """One backend in the lookup chain."""

    name: str = "tier"
    # Level used when an operation on this tier fails
    failure_level: int = logging.WARNING

    @abstractmethod
    def lookup(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the cached payload or None on a miss."""

    @abstractmethod
    def store(self, key: str, payload: Dict[str, Any], original_name: Optional[str] = None, is_variant: bool = False) -> None:
        """Insert or replace the payload for a key."""

    @abstractmethod
    def evict(self, key: str) -> None:
        """Remove a single key; a missing key is not an error."""

    @abstractmethod
    def clear(self) -> int:
        """Remove every entry this tier owns and return how many were removed."""

    @abstractmethod
    def stats(self) -> Dict[str, Any]:
        pass

    def record_hit(self, key: str) -> Optional[int]:
        """Bump the hit counter for a key; tiers without counters return None."""
        return None


class MemoryTier(CacheTier):
    """Process-local LRU. Fastest and weakest: lost on restart, not shared between workers."""

    name = "memory"

    def __init__(self, max_entries: int = 500):
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
        self._lock = threading.Lock()

    def lookup(self, key):
        with self._lock:
            payload = self._entries.get(key)
            if payload is None:
                return None
            self._entries.move_to_end(key)
            return copy.deepcopy(payload)

    def store(self, key, payload, original_name=None, is_variant=False):
        with self._lock:
            self._entries[key] = copy.deepcopy(payload)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def evict(self, key):
        with self._lock:
            self._entries.pop(key, None)

    def clear(self):
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def stats(self):
        with self._lock:
            return {"size": len(self._entries)}


class DurableTier(CacheTier):
    """
    The solution_cache table. Authoritative copy and owner of hit counts.

    Opens a short-lived session per operation since the cache outlives requests.
    """

    name = "durable"
    failure_level = logging.ERROR

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def lookup(self, key):
        with self.session_factory() as db:
            entry = db.query(SolutionCacheEntry).filter(SolutionCacheEntry.cache_key == key).first()
            return dict(entry.solution) if entry else None

    def record_hit(self, key):
        with self.session_factory() as db:
            result = db.execute(
                update(SolutionCacheEntry)
                .where(SolutionCacheEntry.cache_key == key)
                .values(hit_count=SolutionCacheEntry.hit_count + 1)
            )
            db.commit()
            if not result.rowcount:
                return None
            return db.query(SolutionCacheEntry.hit_count).filter(SolutionCacheEntry.cache_key == key).scalar()

    def store(self, key, payload, original_name=None, is_variant=False):
        parts = key.split(":")
        question_name = parts[0]
        language = parts[1] if len(parts) > 1 else ""

        with self.session_factory() as db:
            insert = dialect_insert(db)
            stmt = insert(SolutionCacheEntry.__table__).values(
                cache_key=key,
                question_name=question_name,
                language=language,
                is_variant=is_variant or ":v:" in key,
                original_name=original_name,
                solution=payload,
                hit_count=0,
            )
            set_ = {"solution": stmt.excluded.solution}
            if original_name:
                set_["original_name"] = stmt.excluded.original_name
            db.execute(stmt.on_conflict_do_update(index_elements=["cache_key"], set_=set_))
            db.commit()

    def evict(self, key):
        with self.session_factory() as db:
            db.execute(delete(SolutionCacheEntry).where(SolutionCacheEntry.cache_key == key))
            db.commit()

    def clear(self):
        with self.session_factory() as db:
            result = db.execute(delete(SolutionCacheEntry))
            db.commit()
            return result.rowcount

    def stats(self):
        with self.session_factory() as db:
            return {"count": db.query(func.count(SolutionCacheEntry.id)).scalar() or 0}

    def delete_by_id(self, entry_id: int) -> Optional[str]:
        """Delete one row by primary key and return its cache key, or None if absent."""
        with self.session_factory() as db:
            entry = db.get(SolutionCacheEntry, entry_id)
            if entry is None:
                return None
            key = entry.cache_key
            db.delete(entry)
            db.commit()
            return key

    def list_entries(self, limit: int = 100) -> List[Dict[str, Any]]:
        with self.session_factory() as db:
            entries = (
                db.query(SolutionCacheEntry)
                .order_by(SolutionCacheEntry.hit_count.desc(), SolutionCacheEntry.id.asc())
                .limit(limit)
                .all()
            )
            return [
                {
                    "id": entry.id,
                    "question_name": entry.question_name,
                    "original_name": entry.original_name,
                    "language": entry.language,
                    "is_variant": entry.is_variant,
                    "hit_count": entry.hit_count,
                    "created_at": entry.created_at,
                }
                for entry in entries
            ]


class RedisTier(CacheTier):
    """
    Shared cache across instances. Optional: without a client every lookup is a miss.

    Only keys under the solution: prefix are touched, so clear() never flushes
    unrelated data living in the same Redis database.
    """

    name = "distributed"

    def __init__(self, client: Optional[redis.Redis] = None, ttl_seconds: int = 7 * 24 * 60 * 60):
        self.client = client
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_url(cls, url: Optional[str], ttl_seconds: int = 7 * 24 * 60 * 60) -> "RedisTier":
        if not url:
            logger.info("REDIS_URL not configured - distributed cache tier disabled")
            return cls(None, ttl_seconds)
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        return cls(client, ttl_seconds)

    def _key(self, key: str) -> str:
        return f"{REDIS_KEY_PREFIX}{key}"

    def _keys(self) -> List[str]:
        return list(self.client.scan_iter(match=f"{REDIS_KEY_PREFIX}*", count=500))

    def lookup(self, key):
        if self.client is None:
            return None
        raw = self.client.get(self._key(key))
        if raw is None:
            return None
        return json.loads(raw)

    def store(self, key, payload, original_name=None, is_variant=False):
        if self.client is None:
            return
        self.client.set(self._key(key), json.dumps(payload), ex=self.ttl_seconds)

    def evict(self, key):
        if self.client is None:
            return
        self.client.delete(self._key(key))

    def clear(self):
        if self.client is None:
            return 0
        keys = self._keys()
        if keys:
            self.client.delete(*keys)
        return len(keys)

    def stats(self):
        if self.client is None:
            return {"connected": False, "keys": 0}
        try:
            self.client.ping()
            return {"connected": True, "keys": len(self._keys())}
        except redis.RedisError as e:
            logger.warning(f"Redis stats failed: {e}")
            return {"connected": False, "keys": 0, "error": str(e)}


# ============================================
# Cache facade
# ============================================

@dataclass
class CacheHit:
    payload: Dict[str, Any]
    tier: str
    hits: Optional[int] = None


@dataclass
class CacheResult:
    """Outcome of get_or_generate."""
    data: Dict[str, Any]
    from_cache: bool
    tier: str
    hits: Optional[int] = None


class SolutionCache:
    """Ordered tiers iterated generically; constructed once per process."""

    def __init__(self, tiers: List[CacheTier]):
        self.tiers = list(tiers)

    def _safe(self, tier: CacheTier, operation: str, default: Any, *args, **kwargs) -> Any:
        """Run a tier operation, turning any failure into `default`."""
        try:
            return getattr(tier, operation)(*args, **kwargs)
        except Exception as e:
            logger.log(tier.failure_level, f"Cache tier '{tier.name}' {operation} failed: {type(e).__name__}: {e}")
            return default

    def _durable(self) -> Optional[DurableTier]:
        for tier in self.tiers:
            if isinstance(tier, DurableTier):
                return tier
        return None

    def lookup(self, key: str) -> Optional[CacheHit]:
        """
        Find a payload, fastest tier first.

        A hit in a slower tier is written back into every faster tier, and the
        durable hit counter goes up by one for every hit regardless of tier.
        """
        for index, tier in enumerate(self.tiers):
            payload = self._safe(tier, "lookup", None, key)
            if payload is None:
                continue

            for faster in self.tiers[:index]:
                self._safe(faster, "store", None, key, payload)

            hits = None
            for counting in self.tiers:
                hits = self._safe(counting, "record_hit", None, key)
                if hits is not None:
                    break

            logger.info(f"Solution cache hit: key={key}, tier={tier.name}, hits={hits}")
            return CacheHit(payload=payload, tier=tier.name, hits=hits)

        logger.info(f"Solution cache miss: key={key}")
        return None

    def store(self, key: str, payload: Dict[str, Any], original_name: Optional[str] = None, is_variant: bool = False) -> None:
        for tier in self.tiers:
            self._safe(tier, "store", None, key, payload, original_name=original_name, is_variant=is_variant)

    def get_or_generate(
        self,
        question_name: str,
        language: str,
        generate: Callable[[], Dict[str, Any]],
        description: Optional[str] = None,
    ) -> CacheResult:
        """
        Serve from cache, or call `generate` on a miss and store the result in every tier.

        Exceptions from `generate` propagate and nothing is stored.
        """
        key = make_cache_key(question_name, language, description)
        hit = self.lookup(key)
        if hit is not None:
            return CacheResult(data=hit.payload, from_cache=True, tier=hit.tier, hits=hit.hits)

        payload = generate()
        self.store(key, payload, original_name=question_name, is_variant=bool(description and description.strip()))
        return CacheResult(data=payload, from_cache=False, tier="generated", hits=0)

    def clear_all(self) -> Dict[str, int]:
        """Empty every tier. Safe to call repeatedly."""
        cleared = {tier.name: self._safe(tier, "clear", 0) for tier in self.tiers}
        logger.info(f"Solution cache cleared: {cleared}")
        return cleared

    def stats(self) -> Dict[str, Dict[str, Any]]:
        defaults = {"memory": {"size": 0}, "durable": {"count": 0}, "distributed": {"connected": False, "keys": 0}}
        return {
            tier.name: self._safe(tier, "stats", defaults.get(tier.name, {}))
            for tier in self.tiers
        }

    def delete_entry(self, entry_id: int) -> bool:
        """
        Delete a durable entry by id and evict its key everywhere else.

        Returns False only when no such row exists.

        Raises:
            UpstreamUnavailable: the durable tier could not be reached
        """
        durable = self._durable()
        if durable is None:
            return False
        try:
            key = durable.delete_by_id(entry_id)
        except Exception as e:
            logger.error(f"Cache tier 'durable' delete_by_id failed: {type(e).__name__}: {e}")
            raise UpstreamUnavailable("Solution cache store is temporarily unavailable.") from e
        if key is None:
            return False
        for tier in self.tiers:
            if tier is not durable:
                self._safe(tier, "evict", None, key)
        logger.info(f"Cached solution deleted: id={entry_id}, key={key}")
        return True

    def list_entries(self, limit: int = 100) -> List[Dict[str, Any]]:
        durable = self._durable()
        if durable is None:
            return []
        return self._safe(durable, "list_entries", [], limit)


def build_solution_cache(
    session_factory: sessionmaker,
    redis_url: Optional[str] = None,
    ttl_seconds: int = 7 * 24 * 60 * 60,
    memory_max_entries: int = 500,
) -> SolutionCache:
    """Assemble the standard memory -> durable -> distributed chain."""
    return SolutionCache([
        MemoryTier(max_entries=memory_max_entries),
        DurableTier(session_factory),
        RedisTier.from_url(redis_url, ttl_seconds=ttl_seconds),
    ])
