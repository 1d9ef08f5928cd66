"""Public entry point of the discovery engine.

``DiscoveryService`` wires the search orchestrator, the trending aggregator
and the remote trend feed together and exposes the operations the rest of
the platform calls.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from discovery.backend import BackendClient
from discovery.clock import Clock, wall_clock_ms
from discovery.models import Ad, HashtagStats, Post, TrendCategory, TrendingTopic, User
from discovery.search import SearchFilters, SearchOrchestrator, get_suggestions
from discovery.searchers import SearchResult
from discovery.storage import KeyValueStorage, SQLiteStorage
from discovery.trend_cache import TrendFeed
from discovery.trending import TrendingAggregator

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)


class DiscoveryService:
    """Search, suggestions and trending topics over a caller-supplied corpus."""

    def __init__(
        self,
        backend: Optional[BackendClient] = None,
        storage: Optional[KeyValueStorage] = None,
        clock: Clock = wall_clock_ms,
        trend_ttl_ms: int = 5 * 60 * 1000,
    ) -> None:
        """Initialise the service.

        Args:
            backend: Optional backend client for corpus widening and the
                trending endpoint.
            storage: Durable store for trend snapshots (SQLite by default).
            clock: Returns the current time in epoch ms.
            trend_ttl_ms: Lifetime of both trend caches.
        """
        self.orchestrator = SearchOrchestrator(backend, clock=clock)
        self.aggregator = TrendingAggregator(clock=clock, ttl_ms=trend_ttl_ms)
        self.feed = TrendFeed(
            storage=storage if storage is not None else SQLiteStorage(),
            backend=backend,
            clock=clock,
            ttl_ms=trend_ttl_ms,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> DiscoveryService:
        storage = SQLiteStorage(settings.db_path)
        storage.init_db()
        return cls(
            backend=BackendClient.from_settings(settings),
            storage=storage,
            trend_ttl_ms=settings.trend_cache_ttl_seconds * 1000,
        )

    # ── Search ─────────────────────────────────────────────────────────────

    def search(
        self,
        query: str,
        posts: list[Post],
        users: list[User],
        ads: list[Ad],
        filters: Optional[SearchFilters] = None,
    ) -> list[SearchResult]:
        return self.orchestrator.search(query, posts, users, ads, filters)

    def get_suggestions(
        self,
        query: str,
        posts: list[Post],
        users: list[User],
        ads: list[Ad],
    ) -> list[str]:
        return get_suggestions(query, posts, users, ads)

    # ── Trending ───────────────────────────────────────────────────────────

    def fetch_trending_topics(self, limit: int = 10, hours: int = 24) -> list[TrendingTopic]:
        return self.feed.fetch_trending_topics(limit, hours)

    def get_trending_topics(self, posts: list[Post], ads: list[Ad]) -> list[TrendingTopic]:
        return self.aggregator.get_trending_topics(posts, ads)

    def get_trending_by_category(
        self,
        posts: list[Post],
        ads: list[Ad],
        category: TrendCategory,
    ) -> list[TrendingTopic]:
        return self.aggregator.get_trending_by_category(posts, ads, category)

    def get_suggested_hashtags(self, posts: list[Post], ads: list[Ad], limit: int = 5) -> list[str]:
        return self.aggregator.get_suggested_hashtags(posts, ads, limit)

    def is_hashtag_trending(self, hashtag: str, posts: list[Post], ads: list[Ad]) -> bool:
        return self.aggregator.is_hashtag_trending(hashtag, posts, ads)

    def get_hashtag_stats(self, hashtag: str, posts: list[Post], ads: list[Ad]) -> HashtagStats:
        return self.aggregator.get_hashtag_stats(hashtag, posts, ads)

    def clear_cache(self) -> None:
        """Reset the in-process trending memo. Durable storage is untouched."""
        self.aggregator.clear_cache()
        logger.info("Trending memo cleared")
