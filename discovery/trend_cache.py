"""Remote trending topics with a durable, time-boxed cache.

Read path for ``TrendFeed.fetch_trending_topics(limit, hours)``:

1. A stored snapshot for ``(limit, hours)`` younger than the TTL is returned
   as-is, with no network call.
2. Otherwise the backend is asked; a successful answer is stored and returned.
3. If the backend fails, the stored snapshot is returned whatever its age,
   or an empty list when there is none.

Storage errors never propagate: a failed read is a miss, a failed write is
logged and ignored.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

from pydantic import ValidationError

from discovery.clock import Clock, wall_clock_ms
from discovery.models import TrendCacheEntry, TrendCategory, TrendingTopic, normalize_hashtag
from discovery.storage import KeyValueStorage
from discovery.trending import CACHE_DURATION_MS

logger = logging.getLogger(__name__)


class TrendSource(Protocol):
    def fetch_trending(self, limit: int, hours: int) -> list[dict[str, Any]]: ...


def cache_key(limit: int, hours: int) -> str:
    return f"trending_topics_{limit}_{hours}"


def _as_int(value: Any) -> int:
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


def category_for_count(count: int) -> TrendCategory:
    """Category of a server-side topic, derived from its count alone."""
    if count >= 10:
        return TrendCategory.HOT
    if count >= 5:
        return TrendCategory.RISING
    return TrendCategory.STEADY


def topic_from_row(row: dict[str, Any]) -> TrendingTopic:
    """Map a backend ``{_id, count}`` row, defaulting missing fields."""
    raw_id = row.get("_id")
    count = _as_int(row.get("count"))
    return TrendingTopic(
        hashtag=normalize_hashtag(raw_id) if isinstance(raw_id, str) else "",
        count=count,
        growth=0.0,
        category=category_for_count(count),
    )


class TrendFeed:
    """Backend trending topics behind a durable per-``(limit, hours)`` cache."""

    def __init__(
        self,
        storage: KeyValueStorage,
        backend: Optional[TrendSource] = None,
        clock: Clock = wall_clock_ms,
        ttl_ms: int = CACHE_DURATION_MS,
    ) -> None:
        """Initialise the feed.

        Args:
            storage: Durable key-value store for snapshots.
            backend: Trending endpoint client; ``None`` means always offline.
            clock: Returns the current time in epoch ms.
            ttl_ms: Age under which a stored snapshot is served without a fetch.
        """
        self.storage = storage
        self.backend = backend
        self.clock = clock
        self.ttl_ms = ttl_ms

    # ── Storage ────────────────────────────────────────────────────────────

    def _read(self, key: str) -> Optional[TrendCacheEntry]:
        try:
            raw = self.storage.get(key)
            return TrendCacheEntry.model_validate_json(raw) if raw else None
        except (ValidationError, ValueError) as exc:
            logger.warning("Ignoring corrupt trend cache entry %r: %s", key, exc)
        except Exception as exc:
            logger.warning("Trend cache read failed for %r: %s", key, exc)
        return None

    def _write(self, key: str, entry: TrendCacheEntry) -> None:
        try:
            self.storage.set(key, entry.model_dump_json())
        except Exception as exc:
            logger.warning("Trend cache write failed for %r: %s", key, exc)

    # ── Public ─────────────────────────────────────────────────────────────

    def fetch_trending_topics(self, limit: int = 10, hours: int = 24) -> list[TrendingTopic]:
        """Return the backend's trending topics, served from cache when fresh.

        Never raises; the worst case is a stale or empty list.
        """
        key = cache_key(limit, hours)
        cached = self._read(key)
        now = self.clock()

        if cached is not None and now - cached.timestamp < self.ttl_ms:
            logger.debug("Trend cache hit for %s", key)
            return list(cached.data)

        try:
            if self.backend is None:
                raise ConnectionError("no backend configured")
            rows = self.backend.fetch_trending(limit, hours)
        except Exception as exc:
            if cached is not None:
                logger.warning("Trending fetch failed (%s); serving stale %s", exc, key)
                return list(cached.data)
            logger.warning("Trending fetch failed (%s); no cached data for %s", exc, key)
            return []

        topics = [topic_from_row(row) for row in rows]
        self._write(key, TrendCacheEntry(timestamp=now, data=topics))
        logger.info("Cached %d trending topics under %s", len(topics), key)
        return topics
