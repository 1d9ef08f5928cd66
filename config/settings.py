"""Application settings: all configuration loaded from environment variables.

Usage:
    from config.settings import Settings
    settings = Settings()
    settings.validate()   # raises ValueError on a malformed BACKEND_URL or TTL
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlparse


def _optional_float(name: str) -> Optional[float]:
    raw = os.environ.get(name, "").strip()
    return float(raw) if raw else None


@dataclass
class Settings:
    """Centralised application configuration.

    All values are read from environment variables at instantiation time
    so that tests can override them by patching ``os.environ``.
    """

    # ── Backend ─────────────────────────────────────────────────────────────
    #: Root of the platform API; empty keeps every search and trend call local.
    backend_url: str = field(
        default_factory=lambda: os.environ.get("BACKEND_URL", "")
    )
    #: Seconds; unset means no timeout is applied to backend calls.
    backend_timeout: Optional[float] = field(
        default_factory=lambda: _optional_float("BACKEND_TIMEOUT")
    )

    # ── Storage ─────────────────────────────────────────────────────────────
    db_path: str = field(
        default_factory=lambda: os.environ.get("DB_PATH", "data/discovery.db")
    )
    trend_cache_ttl_seconds: int = field(
        default_factory=lambda: int(os.environ.get("TREND_CACHE_TTL_SECONDS", "300"))
    )

    # ── Flask ───────────────────────────────────────────────────────────────
    debug: bool = field(
        default_factory=lambda: os.environ.get("FLASK_DEBUG", "0") == "1"
    )
    port: int = field(
        default_factory=lambda: int(os.environ.get("PORT", "5000"))
    )

    def validate(self) -> None:
        """Raise ``ValueError`` if any setting is malformed."""
        if self.backend_url:
            parsed = urlparse(self.backend_url)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ValueError(
                    f"BACKEND_URL must be an http(s) URL, got {self.backend_url!r}."
                )
        if self.trend_cache_ttl_seconds <= 0:
            raise ValueError("TREND_CACHE_TTL_SECONDS must be positive.")
