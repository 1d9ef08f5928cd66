"""Corpus augmentation from the remote backend.

Responsibilities:
- Ask the backend for entities matching the raw query
- Append any remote entity whose id is not already in the local corpus
- Degrade to the local corpus on any remote failure

Merging happens once per search, before scoring, so local and remote
entities are scored the same way.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import TypeVar

logger = logging.getLogger(__name__)

E = TypeVar("E")


def merge_by_id(local: Sequence[E], remote: Sequence[E]) -> list[E]:
    """Append remote entities whose ``id`` is absent locally, keeping order.

    The first occurrence of an id wins, so duplicates inside *remote* are
    dropped as well.

    Args:
        local: The caller-supplied corpus.
        remote: Entities returned by the backend.

    Returns:
        A new list: all of *local*, then the unseen part of *remote*.
    """
    seen: set[str] = {getattr(entity, "id") for entity in local}
    merged: list[E] = list(local)

    for entity in remote:
        entity_id = getattr(entity, "id")
        if entity_id not in seen:
            seen.add(entity_id)
            merged.append(entity)

    return merged


def augment(
    local: Sequence[E],
    fetch: Callable[[str], Sequence[E]] | None,
    query: str,
    kind: str,
) -> list[E]:
    """Return *local* extended with the remote matches for *query*.

    Args:
        local: The caller-supplied corpus.
        fetch: Remote search callable, or ``None`` when no backend is configured.
        query: The raw query string sent to the backend.
        kind: Entity label used in log lines (``"posts"``, ``"users"``).

    Returns:
        The merged corpus. Never raises: a failing backend yields *local*.
    """
    if fetch is None:
        return list(local)

    try:
        remote = fetch(query)
    except Exception as exc:
        logger.warning("Could not fetch remote %s for search: %s", kind, exc)
        return list(local)

    merged = merge_by_id(local, remote)
    logger.info(
        "Search expanded with %d %s from backend search",
        len(merged) - len(local), kind,
    )
    return merged
