"""Date-range filtering and ordering of search results.

Only posts carry a timestamp. Users, ads and hashtags always pass the date
filter, and sort as "now" when ordering by date. All sorts are stable, so
ties keep the order the searchers produced.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from discovery.clock import wall_clock_ms
from discovery.searchers import SearchResult

logger = logging.getLogger(__name__)

_DAY_MS = 24 * 60 * 60 * 1000


class DateRange(str, Enum):
    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class SortBy(str, Enum):
    RELEVANCE = "relevance"
    DATE = "date"
    POPULARITY = "popularity"


#: Look-back window per date range, in milliseconds.
RANGE_MS: dict[DateRange, int] = {
    DateRange.TODAY: _DAY_MS,
    DateRange.WEEK: 7 * _DAY_MS,
    DateRange.MONTH: 30 * _DAY_MS,
    DateRange.YEAR: 365 * _DAY_MS,
}


def apply_date_filter(
    results: list[SearchResult],
    date_range: DateRange = DateRange.ALL,
    now_ms: Optional[int] = None,
) -> list[SearchResult]:
    """Drop timestamped results older than *date_range*.

    Args:
        results: Scored results of any type.
        date_range: Look-back window; ``DateRange.ALL`` is a no-op.
        now_ms: Reference time in epoch ms (defaults to the wall clock).

    Returns:
        The surviving results, in their original order.
    """
    window = RANGE_MS.get(DateRange(date_range))
    if window is None:
        return list(results)

    cutoff = (wall_clock_ms() if now_ms is None else now_ms) - window
    return [
        result for result in results
        if result.timestamp is None or result.timestamp >= cutoff
    ]


def sort_results(
    results: list[SearchResult],
    sort_by: SortBy = SortBy.RELEVANCE,
    now_ms: Optional[int] = None,
) -> list[SearchResult]:
    """Return *results* ordered descending by the chosen key (stable)."""
    sort_by = SortBy(sort_by)

    if sort_by is SortBy.DATE:
        now = wall_clock_ms() if now_ms is None else now_ms
        return sorted(
            results,
            key=lambda r: now if r.timestamp is None else r.timestamp,
            reverse=True,
        )
    if sort_by is SortBy.POPULARITY:
        return sorted(results, key=lambda r: r.popularity, reverse=True)
    return sorted(results, key=lambda r: r.relevance, reverse=True)
