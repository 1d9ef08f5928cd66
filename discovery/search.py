"""Search orchestration and suggestions.

Responsibilities:
- Tokenize the free-text query
- Optionally widen the post and user corpora with backend matches
- Run the searchers selected by the type filter
- Apply the date filter and ordering
- Offer typeahead suggestions from the local corpus
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from discovery.backend import BackendClient
from discovery.clock import Clock, wall_clock_ms
from discovery.merger import augment
from discovery.models import Ad, Post, User
from discovery.ranking import DateRange, SortBy, apply_date_filter, sort_results
from discovery.scoring import tokenize
from discovery.searchers import (
    SearchResult,
    search_ads,
    search_hashtags,
    search_posts,
    search_users,
)

logger = logging.getLogger(__name__)

#: Maximum number of typeahead suggestions.
MAX_SUGGESTIONS = 8


# ── Filters ────────────────────────────────────────────────────────────────────


class SearchType(str, Enum):
    """Which entity searchers to run."""

    ALL = "all"
    POSTS = "posts"
    USERS = "users"
    ADS = "ads"
    HASHTAGS = "hashtags"


@dataclass(frozen=True)
class SearchFilters:
    type: SearchType = SearchType.ALL
    date_range: DateRange = DateRange.ALL
    sort_by: SortBy = SortBy.RELEVANCE

    def __post_init__(self) -> None:
        # accept plain strings ("posts", "week", ...) from callers
        object.__setattr__(self, "type", SearchType(self.type))
        object.__setattr__(self, "date_range", DateRange(self.date_range))
        object.__setattr__(self, "sort_by", SortBy(self.sort_by))

    @classmethod
    def from_dict(cls, raw: Optional[dict]) -> SearchFilters:
        """Build filters from camelCase or snake_case keys; missing keys use defaults.

        Raises:
            ValueError: On an unknown filter value.
        """
        raw = raw or {}
        if not isinstance(raw, dict):
            raise ValueError("filters must be a JSON object")
        return cls(
            type=SearchType(raw.get("type") or SearchType.ALL),
            date_range=DateRange(raw.get("dateRange") or raw.get("date_range") or DateRange.ALL),
            sort_by=SortBy(raw.get("sortBy") or raw.get("sort_by") or SortBy.RELEVANCE),
        )

    def wants(self, search_type: SearchType) -> bool:
        return self.type in (SearchType.ALL, search_type)


# ── Orchestrator ───────────────────────────────────────────────────────────────


class SearchOrchestrator:
    """Runs a full search over a caller-supplied corpus.

    The only state held is the optional backend client and the clock, so one
    instance can serve repeated and concurrent calls.
    """

    def __init__(
        self,
        backend: Optional[BackendClient] = None,
        clock: Clock = wall_clock_ms,
    ) -> None:
        """Initialise the orchestrator.

        Args:
            backend: Client used to widen post and user corpora. ``None``
                keeps every search local.
            clock: Returns the current time in epoch ms; anchors the date
                filter and the date sort.
        """
        self.backend = backend
        self.clock = clock

    def search(
        self,
        query: str,
        posts: list[Post],
        users: list[User],
        ads: list[Ad],
        filters: Optional[SearchFilters] = None,
    ) -> list[SearchResult]:
        """Search posts, users, ads and hashtags for *query*.

        Args:
            query: Free-text query. Blank queries return ``[]`` with no
                network call.
            posts: Local posts.
            users: Local users.
            ads: Local ads (only active ones can match).
            filters: Type, date range and ordering; defaults to all / all / relevance.

        Returns:
            Results with relevance > 0, filtered and ordered per *filters*.
        """
        if not query.strip():
            return []

        filters = filters or SearchFilters()
        tokens = tokenize(query)
        raw_query = query.strip()
        results: list[SearchResult] = []

        if filters.wants(SearchType.POSTS):
            fetch = self.backend.search_posts if self.backend else None
            results.extend(search_posts(tokens, augment(posts, fetch, raw_query, "posts")))

        if filters.wants(SearchType.USERS):
            fetch = self.backend.search_users if self.backend else None
            results.extend(search_users(tokens, augment(users, fetch, raw_query, "users")))

        if filters.wants(SearchType.ADS):
            results.extend(search_ads(tokens, ads))

        if filters.wants(SearchType.HASHTAGS):
            results.extend(search_hashtags(tokens, posts, ads))

        now_ms = self.clock()
        filtered = apply_date_filter(results, filters.date_range, now_ms)
        ordered = sort_results(filtered, filters.sort_by, now_ms)

        logger.info(
            "Search query=%r type=%s results=%d",
            raw_query, filters.type.value, len(ordered),
        )
        return ordered


# ── Suggestions ────────────────────────────────────────────────────────────────


def get_suggestions(
    query: str,
    posts: list[Post],
    users: list[User],
    ads: list[Ad],
) -> list[str]:
    """Return up to eight typeahead suggestions for a partial query.

    User names and handles come first, then ``#hashtags``, then content words
    longer than three characters. A leading ``#`` on the query is ignored
    and queries shorter than two characters yield nothing. Users hidden
    from search are never suggested.
    """
    if len(query) < 2:
        return []

    lowered = query.lower()
    base = lowered[1:] if lowered.startswith("#") else lowered
    if not base:
        return []

    # dict preserves insertion order and doubles as the dedupe set
    suggestions: dict[str, None] = {}

    for user in users:
        if not user.searchable:
            continue
        if user.name and base in user.name.lower():
            suggestions[user.name] = None
        if user.handle and base in user.handle.lower():
            suggestions[user.handle] = None

    tags: dict[str, None] = {}
    for entity in [*posts, *ads]:
        for tag in entity.hashtags:
            tags[tag] = None
    for tag in tags:
        if base in tag.lower():
            suggestions[f"#{tag}"] = None

    for post in posts:
        for word in post.content.lower().split():
            if len(word) > 3 and base in word:
                suggestions[word] = None

    return list(suggestions)[:MAX_SUGGESTIONS]
