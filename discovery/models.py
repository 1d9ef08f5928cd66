"""
Pydantic models shared across the discovery engine.

Corpus entities arrive as camelCase JSON (from the caller or the remote
backend) and are validated once here. Missing or null free-text fields
become ``""`` and null numbers become ``0``, so the searchers never have
to check for ``None``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def normalize_hashtag(tag: str) -> str:
    """Strip any leading ``#`` characters and lowercase *tag*."""
    return tag.lstrip("#").lower()


class _Entity(BaseModel):
    """Base for corpus entities: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _text_or_empty(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _zero_if_none(value: Any) -> Any:
    return 0 if value is None else value


# ── Corpus entities ────────────────────────────────────────────────────────────


class PrivacySettings(_Entity):
    show_in_search: bool = True

    @field_validator("show_in_search", mode="before")
    @classmethod
    def _default_visible(cls, value: Any) -> Any:
        return True if value is None else value


class User(_Entity):
    """A platform member (person or company account)."""

    id: str
    name: str = ""
    first_name: str = ""
    last_name: str = ""
    handle: str = ""
    bio: str = ""
    company_name: str = ""
    industry: str = ""
    trust_score: float = 0.0
    privacy_settings: PrivacySettings | None = None

    @field_validator(
        "name", "first_name", "last_name", "handle", "bio", "company_name", "industry",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _text_or_empty(value)

    @field_validator("trust_score", mode="before")
    @classmethod
    def _coerce_trust(cls, value: Any) -> Any:
        return _zero_if_none(value)

    @property
    def searchable(self) -> bool:
        """False only when the user explicitly opted out of search."""
        return self.privacy_settings is None or self.privacy_settings.show_in_search


class Comment(_Entity):
    id: str = ""
    text: str = ""
    timestamp: int = 0

    @field_validator("text", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _text_or_empty(value)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> Any:
        return _zero_if_none(value)


class Post(_Entity):
    """A feed post. ``timestamp`` is epoch milliseconds."""

    id: str
    author: User
    content: str = ""
    hashtags: list[str] = Field(default_factory=list)
    timestamp: int = 0
    radiance: float = 0.0
    comments: list[Comment] = Field(default_factory=list)

    @field_validator("content", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _text_or_empty(value)

    @field_validator("hashtags", "comments", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("timestamp", "radiance", mode="before")
    @classmethod
    def _coerce_numbers(cls, value: Any) -> Any:
        return _zero_if_none(value)


class AdStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"


class Ad(_Entity):
    """A sponsored ad. Ads carry no timestamp and are always "current"."""

    id: str
    headline: str = ""
    description: str = ""
    owner_name: str = ""
    hashtags: list[str] = Field(default_factory=list)
    cta_text: str = ""
    status: AdStatus = AdStatus.ACTIVE

    @field_validator("headline", "description", "owner_name", "cta_text", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _text_or_empty(value)

    @field_validator("hashtags", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def is_active(self) -> bool:
        return self.status == AdStatus.ACTIVE


class HashtagSummary(BaseModel):
    """Derived payload for a hashtag search result."""

    tag: str
    count: int


# ── Trending ───────────────────────────────────────────────────────────────────


class TrendCategory(str, Enum):
    RISING = "rising"
    HOT = "hot"
    STEADY = "steady"


class TrendingTopic(BaseModel):
    """A ranked hashtag in the trending feed."""

    hashtag: str
    count: int = Field(default=0, ge=0)
    growth: float = 0.0     # percent; 100 marks a hashtag new in this window
    category: TrendCategory = TrendCategory.STEADY


class TrendCacheEntry(BaseModel):
    """A durable trending snapshot, stored as JSON."""

    timestamp: int          # epoch ms when the snapshot was fetched
    data: list[TrendingTopic]


class HashtagStats(BaseModel):
    """Usage statistics for a single hashtag. ``category`` may be ``"none"``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_uses: int
    recent_uses: int
    growth: float
    category: str
