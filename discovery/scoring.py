"""Token relevance scoring.

A query is split into lowercase tokens and each token is matched against a
single lowercase text field. Per token exactly one tier applies, highest
first:

    exact full-string match   10
    whole-word match           5
    field starts with token    3
    field contains token       1

Tier scores are summed across tokens. There is no stemming or fuzzy matching.
"""

from __future__ import annotations

import re
from functools import lru_cache

EXACT_SCORE = 10
WORD_SCORE = 5
PREFIX_SCORE = 3
CONTAINS_SCORE = 1


def tokenize(query: str) -> list[str]:
    """Split *query* on whitespace into lowercase, non-empty tokens.

    Examples:
        >>> tokenize("  Great   Leadership ")
        ['great', 'leadership']
    """
    return query.lower().split()


def hashtag_terms(tokens: list[str]) -> list[str]:
    """Return *tokens* with one leading ``#`` stripped, dropping empties."""
    terms = [token[1:] if token.startswith("#") else token for token in tokens]
    return [term for term in terms if term]


@lru_cache(maxsize=512)
def _word_pattern(token: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(token)}\b")


def token_score(token: str, text: str) -> int:
    """Score a single token against *text* using the first matching tier."""
    if text == token:
        return EXACT_SCORE
    if _word_pattern(token).search(text):
        return WORD_SCORE
    if text.startswith(token):
        return PREFIX_SCORE
    if token in text:
        return CONTAINS_SCORE
    return 0


def calculate_relevance(tokens: list[str], text: str) -> int:
    """Sum the tier score of every token against *text*.

    Args:
        tokens: Lowercase query tokens (see ``tokenize``).
        text: The lowercase field value to score.

    Returns:
        A non-negative integer score; ``0`` when nothing matched.

    Examples:
        >>> calculate_relevance(["leadership"], "great leadership tips")
        5
        >>> calculate_relevance(["lead"], "leadership")
        3
    """
    if not text:
        return 0
    return sum(token_score(token, text) for token in tokens)
