"""Tests for discovery/trending.py: windows, growth, categories and the memo."""

from __future__ import annotations

import pytest

from discovery.models import Ad, Post, TrendCategory, User
from discovery.trending import (
    CACHE_DURATION_MS,
    TrendingAggregator,
    categorize,
    compute_trending,
    growth_rate,
)

NOW = 1_700_000_000_000
HOUR = 60 * 60 * 1000
DAY = 24 * HOUR

AUTHOR = User(id="u1", name="Alex Kim")


def posts_with(tag: str, n: int, age_ms: int, start: int = 0) -> list[Post]:
    return [
        Post(id=f"{tag}-{age_ms}-{start + i}", author=AUTHOR, hashtags=[tag], timestamp=NOW - age_ms)
        for i in range(n)
    ]


class FakeClock:
    def __init__(self, now: int = NOW) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


def by_tag(topics):
    return {t.hashtag: t for t in topics}


# ── Rules ──────────────────────────────────────────────────────────────────────


class TestRules:
    def test_growth_against_previous(self):
        assert growth_rate(6, 3) == pytest.approx(100)
        assert growth_rate(1, 4) == pytest.approx(-75)

    def test_growth_for_new_tag(self):
        assert growth_rate(2, 0) == 100

    def test_growth_without_activity(self):
        assert growth_rate(0, 0) == 0

    def test_rising_needs_growth_and_volume(self):
        assert categorize(200, 3, 3) is TrendCategory.RISING
        assert categorize(200, 2, 2) is TrendCategory.STEADY

    def test_hot_by_recent_or_weekly(self):
        assert categorize(100, 8, 8) is TrendCategory.HOT
        assert categorize(0, 1, 15) is TrendCategory.HOT


# ── Aggregation ────────────────────────────────────────────────────────────────


class TestComputeTrending:
    def test_new_hashtag_with_nine_posts_is_hot(self):
        topics = compute_trending(posts_with("growth", 9, HOUR), [], NOW)

        [topic] = topics
        assert topic.hashtag == "growth"
        assert topic.count == 9
        assert topic.growth == 100
        assert topic.category is TrendCategory.HOT

    def test_rising(self):
        posts = posts_with("ai", 3, HOUR) + posts_with("ai", 1, 30 * HOUR)

        topic = by_tag(compute_trending(posts, [], NOW))["ai"]

        assert topic.growth == pytest.approx(200)
        assert topic.category is TrendCategory.RISING

    def test_hot_from_weekly_volume(self):
        posts = posts_with("ml", 1, HOUR) + posts_with("ml", 14, 3 * DAY)

        topic = by_tag(compute_trending(posts, [], NOW))["ml"]

        assert topic.count == 1
        assert topic.category is TrendCategory.HOT

    def test_active_ads_weighted_three_without_timestamps(self):
        ads = [
            Ad(id="a1", hashtags=["#Promo"]),
            Ad(id="a2", hashtags=["promo"], status="cancelled"),
        ]

        topic = by_tag(compute_trending([], ads, NOW))["promo"]

        assert topic.count == 3
        assert topic.growth == 100
        assert topic.category is TrendCategory.STEADY

    def test_only_recent_hashtags_listed(self):
        posts = posts_with("old", 5, 30 * HOUR) + posts_with("older", 5, 4 * DAY)
        assert compute_trending(posts, [], NOW) == []

    def test_short_hashtags_excluded(self):
        assert compute_trending(posts_with("a", 4, HOUR), [], NOW) == []

    def test_hashtags_normalized(self):
        posts = posts_with("#Growth", 2, HOUR) + posts_with("growth", 1, HOUR, start=10)
        assert [t.hashtag for t in compute_trending(posts, [], NOW)] == ["growth"]
        assert compute_trending(posts, [], NOW)[0].count == 3

    def test_ranked_by_composite_score(self):
        posts = posts_with("growth", 9, HOUR) + posts_with("steady", 1, HOUR)
        ads = [Ad(id="a1", hashtags=["promo"])]

        # growth 18+10+3, promo 6+10+1, steady 2+10+1
        assert [t.hashtag for t in compute_trending(posts, ads, NOW)] == ["growth", "promo", "steady"]

    def test_truncated_to_fifteen(self):
        posts = []
        for i in range(20):
            posts += posts_with(f"tag{i:02d}", 1, HOUR)
        assert len(compute_trending(posts, [], NOW)) == 15


# ── Aggregator memo ────────────────────────────────────────────────────────────


class TestTrendingAggregator:
    def test_memoized_within_ttl(self):
        clock = FakeClock()
        aggregator = TrendingAggregator(clock=clock)

        first = aggregator.get_trending_topics(posts_with("growth", 2, HOUR), [])
        clock.now += CACHE_DURATION_MS - 1
        second = aggregator.get_trending_topics(posts_with("other", 5, HOUR), [])

        assert second == first

    def test_recomputed_after_ttl(self):
        clock = FakeClock()
        aggregator = TrendingAggregator(clock=clock)

        aggregator.get_trending_topics(posts_with("growth", 2, HOUR), [])
        clock.now += CACHE_DURATION_MS
        topics = aggregator.get_trending_topics(posts_with("other", 2, HOUR + CACHE_DURATION_MS), [])

        assert [t.hashtag for t in topics] == ["other"]

    def test_clear_cache_forces_recompute(self):
        aggregator = TrendingAggregator(clock=FakeClock())

        aggregator.get_trending_topics(posts_with("growth", 2, HOUR), [])
        aggregator.clear_cache()
        topics = aggregator.get_trending_topics(posts_with("other", 2, HOUR), [])

        assert [t.hashtag for t in topics] == ["other"]

    def test_returned_list_is_a_copy(self):
        aggregator = TrendingAggregator(clock=FakeClock())
        aggregator.get_trending_topics(posts_with("growth", 2, HOUR), []).clear()
        assert aggregator.get_trending_topics([], []) != []

    def test_helpers(self):
        aggregator = TrendingAggregator(clock=FakeClock())
        posts = posts_with("growth", 9, HOUR) + posts_with("steady", 1, HOUR)

        assert [t.hashtag for t in aggregator.get_trending_by_category(posts, [], TrendCategory.HOT)] == ["growth"]
        assert aggregator.get_suggested_hashtags(posts, [], limit=1) == ["growth"]
        assert aggregator.is_hashtag_trending("#GROWTH", posts, [])
        assert not aggregator.is_hashtag_trending("missing", posts, [])


class TestHashtagStats:
    def test_rising(self):
        aggregator = TrendingAggregator(clock=FakeClock())
        posts = posts_with("growth", 2, HOUR) + posts_with("growth", 1, 30 * HOUR)
        ads = [Ad(id="a1", hashtags=["#growth"]), Ad(id="a2", hashtags=["growth"], status="cancelled")]

        stats = aggregator.get_hashtag_stats("#Growth", posts, ads)

        assert stats.total_uses == 5
        assert stats.recent_uses == 4
        assert stats.growth == pytest.approx(300)
        assert stats.category == "rising"

    def test_hot_when_flat_but_busy(self):
        aggregator = TrendingAggregator(clock=FakeClock())
        posts = posts_with("ai", 5, HOUR) + posts_with("ai", 5, 30 * HOUR)

        stats = aggregator.get_hashtag_stats("ai", posts, [])

        assert stats.growth == 0
        assert stats.category == "hot"

    def test_steady(self):
        aggregator = TrendingAggregator(clock=FakeClock())
        posts = posts_with("ai", 2, HOUR) + posts_with("ai", 2, 30 * HOUR)
        assert aggregator.get_hashtag_stats("ai", posts, []).category == "steady"

    def test_none_without_recent_use(self):
        aggregator = TrendingAggregator(clock=FakeClock())

        stats = aggregator.get_hashtag_stats("ai", posts_with("ai", 1, 30 * HOUR), [])

        assert stats.recent_uses == 0
        assert stats.growth == pytest.approx(-100)
        assert stats.category == "none"
