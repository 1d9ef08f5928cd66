"""Per-entity searchers.

Each searcher scores one collection against the query tokens with
type-specific field weights and returns only results with a positive
relevance. Popularity boosts are added on top of a textual match, never in
place of one.
"""

from __future__ import annotations

import logging
import math
import time
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from discovery.clock import wall_clock_ms
from discovery.models import Ad, HashtagSummary, Post, User, normalize_hashtag
from discovery.scoring import calculate_relevance, hashtag_terms

logger = logging.getLogger(__name__)

Payload = Union[Post, User, Ad, HashtagSummary]

#: Maximum description length for post and ad results.
DESCRIPTION_LIMIT = 120


class ResultType(str, Enum):
    """Discriminant for ``SearchResult.data``."""

    POST = "post"
    USER = "user"
    AD = "ad"
    HASHTAG = "hashtag"


@dataclass
class SearchResult:
    """A single scored hit of any entity type."""

    type: ResultType
    id: str
    title: str
    description: str
    relevance: float
    data: Payload
    matched_fields: list[str] = field(default_factory=list)

    @property
    def timestamp(self) -> Optional[int]:
        """Epoch ms for timestamped payloads (posts), else ``None``."""
        if self.type is ResultType.POST:
            return self.data.timestamp
        return None

    @property
    def popularity(self) -> float:
        if self.type is ResultType.POST:
            return self.data.radiance
        if self.type is ResultType.USER:
            return self.data.trust_score
        if self.type is ResultType.HASHTAG:
            return self.data.count
        return 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "relevance": self.relevance,
            "matchedFields": list(self.matched_fields),
            "data": self.data.model_dump(mode="json", by_alias=True),
        }


class _Match:
    """Accumulates weighted field scores for one entity."""

    def __init__(self, tokens: list[str]) -> None:
        self.tokens = tokens
        self.relevance = 0.0
        self.fields: list[str] = []

    def _hit(self, name: str, amount: float) -> None:
        self.relevance += amount
        if name not in self.fields:
            self.fields.append(name)

    def weighted(self, name: str, text: str, weight: float) -> None:
        score = calculate_relevance(self.tokens, text.lower())
        if score > 0:
            self._hit(name, score * weight)

    def flat(self, name: str, matched: bool, bonus: float) -> None:
        if matched:
            self._hit(name, bonus)

    def boost(self, amount: float) -> None:
        # Popularity only counts on top of a real field match.
        if self.relevance > 0:
            self.relevance += amount


# ── Helpers ────────────────────────────────────────────────────────────────────


def truncate_text(text: str, max_length: int = DESCRIPTION_LIMIT) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def format_relative(timestamp_ms: int, now_ms: Optional[int] = None) -> str:
    """Render an epoch-ms timestamp as ``Just now`` / ``5h ago`` / ``3d ago`` / a date."""
    now_ms = wall_clock_ms() if now_ms is None else now_ms
    hours = (now_ms - timestamp_ms) // (60 * 60 * 1000)
    if hours < 1:
        return "Just now"
    if hours < 24:
        return f"{hours}h ago"
    if hours // 24 < 7:
        return f"{hours // 24}d ago"
    return time.strftime("%Y-%m-%d", time.gmtime(timestamp_ms / 1000))


def _has_tag(tags: list[str], terms: list[str]) -> bool:
    normalized = {normalize_hashtag(tag) for tag in tags}
    return any(term in normalized for term in terms)


# ── Searchers ──────────────────────────────────────────────────────────────────


def search_posts(tokens: list[str], posts: list[Post]) -> list[SearchResult]:
    """Score posts on content, author, hashtags and comments."""
    terms = hashtag_terms(tokens)
    results: list[SearchResult] = []

    for post in posts:
        match = _Match(tokens)
        match.weighted("content", post.content, 3)
        match.weighted("author", post.author.name, 2)
        match.weighted("handle", post.author.handle, 2)
        match.flat("hashtags", _has_tag(post.hashtags, terms), 2)
        match.flat(
            "comments",
            any(calculate_relevance(tokens, c.text.lower()) > 0 for c in post.comments),
            1,
        )
        match.boost(math.log(max(post.radiance, 0) + 1) * 0.1)

        if match.relevance > 0:
            results.append(SearchResult(
                type=ResultType.POST,
                id=post.id,
                title=f"{post.author.name} • {format_relative(post.timestamp)}",
                description=truncate_text(post.content),
                relevance=match.relevance,
                data=post,
                matched_fields=match.fields,
            ))

    return results


def search_users(tokens: list[str], users: list[User]) -> list[SearchResult]:
    """Score searchable users on names, handle and profile fields.

    Users who set ``privacySettings.showInSearch`` to false are dropped
    before any scoring happens.
    """
    results: list[SearchResult] = []

    for user in users:
        if not user.searchable:
            continue

        match = _Match(tokens)
        match.weighted("name", user.name, 4)
        match.weighted("firstName", user.first_name, 4)
        match.weighted("lastName", user.last_name, 4)
        if user.first_name and user.last_name:
            for combination in (
                f"{user.first_name} {user.last_name}",
                f"{user.last_name} {user.first_name}",
                f"{user.first_name}{user.last_name}",
            ):
                match.weighted("fullName", combination, 5)
        match.weighted("handle", user.handle, 3)
        match.weighted("bio", user.bio, 2)
        match.weighted("company", user.company_name, 2)
        match.weighted("industry", user.industry, 1.5)
        match.boost(max(user.trust_score, 0) / 100 * 0.5)

        if match.relevance > 0:
            results.append(SearchResult(
                type=ResultType.USER,
                id=user.id,
                title=user.name or user.handle or "Unknown User",
                description=user.bio or user.handle,
                relevance=match.relevance,
                data=user,
                matched_fields=match.fields,
            ))

    return results


def search_ads(tokens: list[str], ads: list[Ad]) -> list[SearchResult]:
    """Score active ads. Cancelled ads never appear."""
    terms = hashtag_terms(tokens)
    results: list[SearchResult] = []

    for ad in ads:
        if not ad.is_active:
            continue

        match = _Match(tokens)
        match.weighted("headline", ad.headline, 4)
        match.weighted("description", ad.description, 3)
        match.weighted("owner", ad.owner_name, 2)
        match.flat("hashtags", _has_tag(ad.hashtags, terms), 2)
        match.flat("cta", calculate_relevance(tokens, ad.cta_text.lower()) > 0, 1)

        if match.relevance > 0:
            results.append(SearchResult(
                type=ResultType.AD,
                id=ad.id,
                title=ad.headline,
                description=truncate_text(ad.description),
                relevance=match.relevance,
                data=ad,
                matched_fields=match.fields,
            ))

    return results


def count_hashtags(posts: list[Post], ads: list[Ad]) -> Counter[str]:
    """Count normalized hashtag occurrences across posts and active ads."""
    counts: Counter[str] = Counter()
    for post in posts:
        counts.update(normalize_hashtag(tag) for tag in post.hashtags)
    for ad in ads:
        if ad.is_active:
            counts.update(normalize_hashtag(tag) for tag in ad.hashtags)
    return counts


def search_hashtags(
    tokens: list[str],
    posts: list[Post],
    ads: list[Ad],
) -> list[SearchResult]:
    """Score every distinct hashtag in the corpus against the query."""
    terms = hashtag_terms(tokens)
    results: list[SearchResult] = []

    for tag, count in count_hashtags(posts, ads).items():
        if not tag:
            continue
        match = _Match(terms)
        match.weighted("tag", tag, 1)
        match.boost(math.log(count + 1) * 0.5)

        if match.relevance > 0:
            results.append(SearchResult(
                type=ResultType.HASHTAG,
                id=f"hashtag-{tag}",
                title=f"#{tag}",
                description=f"{count} posts",
                relevance=match.relevance,
                data=HashtagSummary(tag=tag, count=count),
                matched_fields=match.fields,
            ))

    logger.debug("Hashtag search matched %d tags", len(results))
    return results
