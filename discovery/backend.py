"""HTTP client for the platform backend.

Wraps the three read-only endpoints the discovery engine consumes:

    GET /posts/search?q=...           -> {"success": bool, "data": [Post, ...]}
    GET /users/search?q=...           -> {"success": bool, "data": [User, ...]}
    GET /trending?limit=..&hours=..   -> {"success": bool, "data": [{"_id", "count"}]}

Every failure (transport error, non-2xx status, ``success: false``, body that
is not JSON) surfaces as a single ``BackendError``. Individual entities that
fail validation are skipped rather than failing the whole response.

The ``httpx.Client`` is lazy-initialised so the class can be instantiated in
tests without a reachable backend.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from discovery.models import Post, User

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class BackendError(Exception):
    """Raised when a backend call fails or returns a non-success payload."""


class BackendClient:
    """Synchronous client for the backend search and trending endpoints."""

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """Initialise the client.

        Args:
            base_url: Backend root, e.g. ``https://api.example.com/api``.
            timeout: Per-request timeout in seconds; ``None`` disables it.
            transport: Optional httpx transport (tests pass ``httpx.MockTransport``).
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional[BackendClient]:
        """Build a client from *settings*, or ``None`` when no backend is configured."""
        if not settings.backend_url:
            return None
        return cls(settings.backend_url, timeout=settings.backend_timeout)

    @property
    def client(self) -> httpx.Client:
        """Lazy-initialise and return the underlying ``httpx.Client``."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={"Content-Type": "application/json"},
            )
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    # ── Low-level ──────────────────────────────────────────────────────────

    def _get_data(self, path: str, params: dict[str, Any]) -> list[Any]:
        """GET *path* and return the ``data`` list of a successful payload."""
        try:
            response = self.client.get(path, params=params)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise BackendError(f"GET {path} failed: {exc}") from exc

        if not isinstance(payload, dict) or not payload.get("success"):
            raise BackendError(f"GET {path} returned a non-success payload")

        data = payload.get("data")
        return data if isinstance(data, list) else []

    @staticmethod
    def _parse_all(model: type[M], items: list[Any]) -> list[M]:
        parsed: list[M] = []
        for item in items:
            try:
                parsed.append(model.model_validate(item))
            except ValidationError as exc:
                logger.warning("Skipping malformed %s from backend: %s", model.__name__, exc)
        return parsed

    # ── Endpoints ──────────────────────────────────────────────────────────

    def search_posts(self, query: str) -> list[Post]:
        """Return the posts the backend matches for *query*.

        Raises:
            BackendError: On any transport or payload failure.
        """
        normalized = query.lower().strip()
        if not normalized:
            return []
        items = self._get_data("/posts/search", {"q": normalized})
        posts = self._parse_all(Post, items)
        logger.info("Found %d posts via backend search", len(posts))
        return posts

    def search_users(self, query: str) -> list[User]:
        """Return the users the backend matches for *query*.

        Raises:
            BackendError: On any transport or payload failure.
        """
        items = self._get_data("/users/search", {"q": query})
        return self._parse_all(User, items)

    def fetch_trending(self, limit: int, hours: int) -> list[dict[str, Any]]:
        """Return the raw ``{_id, count}`` rows from the trending endpoint.

        Rows that are not JSON objects are dropped; field defaulting is left
        to the caller.

        Raises:
            BackendError: On any transport or payload failure.
        """
        items = self._get_data("/trending", {"limit": limit, "hours": hours})
        return [item for item in items if isinstance(item, dict)]
