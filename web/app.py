"""
Flask web server for the discovery engine.

The corpus is owned by the caller, so search-style routes take it in the
JSON body.

Routes
──────
POST   /api/search            {query, posts, users, ads, filters} → results
POST   /api/suggestions       {query, posts, users, ads}          → strings
POST   /api/trending          {posts, ads, category?}             → topics (computed locally)
GET    /api/trending?limit&hours                                  → topics (backend, cached)
POST   /api/hashtags/stats    {hashtag, posts, ads}               → usage statistics
DELETE /api/trending/cache                                        → reset the in-process memo
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, Optional

from dotenv import load_dotenv
from flask import Flask, jsonify, request
from pydantic import TypeAdapter, ValidationError

# Allow running as `python web/app.py` from the project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

load_dotenv()

from config.settings import Settings
from discovery.models import Ad, Post, TrendCategory, User
from discovery.search import SearchFilters
from discovery.service import DiscoveryService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

_POSTS = TypeAdapter(list[Post])
_USERS = TypeAdapter(list[User])
_ADS = TypeAdapter(list[Ad])


class InvalidRequest(ValueError):
    """Request body failed validation."""


def _corpus(body: dict[str, Any]) -> tuple[list[Post], list[User], list[Ad]]:
    try:
        return (
            _POSTS.validate_python(body.get("posts") or []),
            _USERS.validate_python(body.get("users") or []),
            _ADS.validate_python(body.get("ads") or []),
        )
    except ValidationError as exc:
        raise InvalidRequest(f"invalid corpus: {exc.error_count()} validation error(s)") from exc


def _json_body() -> dict[str, Any]:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise InvalidRequest("request body must be a JSON object")
    return body


def create_app(
    service: Optional[DiscoveryService] = None,
    settings: Optional[Settings] = None,
) -> Flask:
    """Build the Flask app around *service* (built from *settings* when omitted)."""
    if service is None:
        settings = settings or Settings()
        settings.validate()
        service = DiscoveryService.from_settings(settings)

    app = Flask(__name__)

    @app.errorhandler(InvalidRequest)
    def bad_request(exc: InvalidRequest):
        return jsonify({"error": str(exc)}), 400

    # ── Search ─────────────────────────────────────────────────────────────

    @app.route("/api/search", methods=["POST"])
    def search():
        body = _json_body()
        posts, users, ads = _corpus(body)
        try:
            filters = SearchFilters.from_dict(body.get("filters"))
        except ValueError as exc:
            raise InvalidRequest(str(exc)) from exc

        results = service.search(str(body.get("query") or ""), posts, users, ads, filters)
        return jsonify([r.to_dict() for r in results])

    @app.route("/api/suggestions", methods=["POST"])
    def suggestions():
        body = _json_body()
        posts, users, ads = _corpus(body)
        return jsonify(service.get_suggestions(str(body.get("query") or ""), posts, users, ads))

    # ── Trending ───────────────────────────────────────────────────────────

    @app.route("/api/trending", methods=["GET"])
    def remote_trending():
        limit = request.args.get("limit", 10, type=int)
        hours = request.args.get("hours", 24, type=int)
        topics = service.fetch_trending_topics(limit=limit, hours=hours)
        return jsonify([t.model_dump(mode="json") for t in topics])

    @app.route("/api/trending", methods=["POST"])
    def local_trending():
        body = _json_body()
        posts, _, ads = _corpus(body)
        category = body.get("category")
        if category:
            try:
                topics = service.get_trending_by_category(posts, ads, TrendCategory(category))
            except ValueError as exc:
                raise InvalidRequest(str(exc)) from exc
        else:
            topics = service.get_trending_topics(posts, ads)
        return jsonify([t.model_dump(mode="json") for t in topics])

    @app.route("/api/hashtags/stats", methods=["POST"])
    def hashtag_stats():
        body = _json_body()
        hashtag = str(body.get("hashtag") or "").strip()
        if not hashtag:
            raise InvalidRequest("hashtag is required")
        posts, _, ads = _corpus(body)
        return jsonify(service.get_hashtag_stats(hashtag, posts, ads).model_dump(by_alias=True))

    @app.route("/api/trending/cache", methods=["DELETE"])
    def clear_trending_cache():
        service.clear_cache()
        return jsonify({"cleared": True})

    return app


# ── Entry point ────────────────────────────────────────────────────────────

if __name__ == "__main__":
    settings = Settings()
    create_app(settings=settings).run(debug=settings.debug, host="0.0.0.0", port=settings.port)
