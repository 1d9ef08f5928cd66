"""Client-side trending topics.

Buckets hashtag occurrences into rolling windows anchored on "now":

- recent    last 24 hours
- previous  24 to 48 hours ago
- weekly    last 7 days

Posts contribute 1 per hashtag to every window their timestamp falls in.
Active ads are always current: each contributes a flat 3 per hashtag to
``recent`` and ``weekly``.

Growth compares ``recent`` against ``previous``; a hashtag with no previous
usage reports 100 (new). Topics are categorised as rising / hot / steady,
ranked by a composite score and truncated to the top 15.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Optional

from discovery.clock import Clock, wall_clock_ms
from discovery.models import (
    Ad,
    HashtagStats,
    Post,
    TrendCategory,
    TrendingTopic,
    normalize_hashtag,
)

logger = logging.getLogger(__name__)

HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS

#: In-process memo lifetime.
CACHE_DURATION_MS = 5 * 60 * 1000
#: Maximum number of topics returned.
TOP_N = 15
#: Weight of one active ad's hashtag in the recent and weekly windows.
AD_WEIGHT = 3

#: Ranking bonus per category.
CATEGORY_BONUS: dict[TrendCategory, int] = {
    TrendCategory.RISING: 5,
    TrendCategory.HOT: 3,
    TrendCategory.STEADY: 1,
}


# ── Scoring rules ──────────────────────────────────────────────────────────────


def growth_rate(recent: int, previous: int) -> float:
    """Percent change from *previous* to *recent*; 100 when the tag is new.

    Examples:
        >>> growth_rate(6, 3)
        100.0
        >>> growth_rate(2, 0)
        100.0
        >>> growth_rate(0, 0)
        0.0
    """
    if previous > 0:
        return (recent - previous) / previous * 100
    return 100.0 if recent > 0 else 0.0


def categorize(growth: float, recent: int, weekly: int) -> TrendCategory:
    """Classify a hashtag from its growth and window counts."""
    if growth > 150 and recent >= 3:
        return TrendCategory.RISING
    if recent >= 8 or weekly >= 15:
        return TrendCategory.HOT
    return TrendCategory.STEADY


def rank_score(topic: TrendingTopic) -> float:
    return topic.count * 2 + max(0.0, topic.growth) * 0.1 + CATEGORY_BONUS[topic.category]


# ── Aggregation ────────────────────────────────────────────────────────────────


def compute_trending(
    posts: list[Post],
    ads: list[Ad],
    now_ms: int,
    limit: int = TOP_N,
) -> list[TrendingTopic]:
    """Compute ranked trending topics without any caching.

    Args:
        posts: All posts in the corpus.
        ads: All ads; cancelled ads are ignored.
        now_ms: Window anchor in epoch ms.
        limit: Maximum number of topics to return.

    Returns:
        Topics ordered by composite score, highest first (stable on ties).
    """
    one_day_ago = now_ms - DAY_MS
    two_days_ago = now_ms - 2 * DAY_MS
    one_week_ago = now_ms - 7 * DAY_MS

    recent: Counter[str] = Counter()
    previous: Counter[str] = Counter()
    weekly: Counter[str] = Counter()

    for post in posts:
        for tag in post.hashtags:
            tag = normalize_hashtag(tag)
            if post.timestamp >= one_day_ago:
                recent[tag] += 1
            elif post.timestamp >= two_days_ago:
                previous[tag] += 1
            if post.timestamp >= one_week_ago:
                weekly[tag] += 1

    for ad in ads:
        if not ad.is_active:
            continue
        for tag in ad.hashtags:
            tag = normalize_hashtag(tag)
            recent[tag] += AD_WEIGHT
            weekly[tag] += AD_WEIGHT

    topics: list[TrendingTopic] = []
    for tag, count in recent.items():
        if count < 1 or len(tag) < 2:
            continue
        growth = growth_rate(count, previous[tag])
        topics.append(TrendingTopic(
            hashtag=tag,
            count=count,
            growth=growth,
            category=categorize(growth, count, weekly[tag]),
        ))

    return sorted(topics, key=rank_score, reverse=True)[:limit]


class TrendingAggregator:
    """Trending topics with a short-lived in-process memo.

    The memo holds a single snapshot for ``CACHE_DURATION_MS`` regardless of
    the corpus passed in, so rapid re-invocation (e.g. on every render) does
    not recompute. ``clear_cache()`` drops it.
    """

    def __init__(
        self,
        clock: Clock = wall_clock_ms,
        ttl_ms: int = CACHE_DURATION_MS,
    ) -> None:
        """Initialise the aggregator.

        Args:
            clock: Returns the current time in epoch ms.
            ttl_ms: How long a computed snapshot is reused.
        """
        self.clock = clock
        self.ttl_ms = ttl_ms
        self._topics: Optional[list[TrendingTopic]] = None
        self._computed_at = 0

    def get_trending_topics(self, posts: list[Post], ads: list[Ad]) -> list[TrendingTopic]:
        now = self.clock()
        if self._topics is not None and now - self._computed_at < self.ttl_ms:
            logger.debug("Trending memo hit (age=%dms)", now - self._computed_at)
            return list(self._topics)

        topics = compute_trending(posts, ads, now)
        self._topics = topics
        self._computed_at = now
        logger.info("Computed %d trending topics", len(topics))
        return list(topics)

    def clear_cache(self) -> None:
        self._topics = None
        self._computed_at = 0

    def get_trending_by_category(
        self,
        posts: list[Post],
        ads: list[Ad],
        category: TrendCategory,
    ) -> list[TrendingTopic]:
        category = TrendCategory(category)
        return [t for t in self.get_trending_topics(posts, ads) if t.category is category]

    def get_suggested_hashtags(self, posts: list[Post], ads: list[Ad], limit: int = 5) -> list[str]:
        return [t.hashtag for t in self.get_trending_topics(posts, ads)[:limit]]

    def is_hashtag_trending(self, hashtag: str, posts: list[Post], ads: list[Ad]) -> bool:
        normalized = normalize_hashtag(hashtag)
        return any(t.hashtag == normalized for t in self.get_trending_topics(posts, ads))

    def get_hashtag_stats(self, hashtag: str, posts: list[Post], ads: list[Ad]) -> HashtagStats:
        """Usage counts, growth and category for a single hashtag.

        Uses its own weighting (2 per active ad, growth defaults to 100) and a
        ``"none"`` category for hashtags unused in the last 24 hours.
        """
        normalized = normalize_hashtag(hashtag)
        now = self.clock()
        one_day_ago = now - DAY_MS
        two_days_ago = now - 2 * DAY_MS

        total = recent = previous = 0
        for post in posts:
            if any(normalize_hashtag(tag) == normalized for tag in post.hashtags):
                total += 1
                if post.timestamp >= one_day_ago:
                    recent += 1
                elif post.timestamp >= two_days_ago:
                    previous += 1

        for ad in ads:
            if ad.is_active and any(normalize_hashtag(tag) == normalized for tag in ad.hashtags):
                total += 2
                recent += 2

        growth = (recent - previous) / previous * 100 if previous > 0 else 100.0

        if recent == 0:
            category = "none"
        elif growth > 50:
            category = TrendCategory.RISING.value
        elif recent >= 5:
            category = TrendCategory.HOT.value
        else:
            category = TrendCategory.STEADY.value

        return HashtagStats(
            total_uses=total,
            recent_uses=recent,
            growth=growth,
            category=category,
        )
