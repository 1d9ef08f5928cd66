"""Tests for the backend HTTP client."""

from __future__ import annotations

import httpx
import pytest

from config.settings import Settings
from discovery.backend import BackendClient, BackendError

POST_JSON = {
    "id": "p9",
    "author": {"id": "u9", "name": "Remote Author", "handle": "remote"},
    "content": "Remote leadership notes",
    "hashtags": ["leadership"],
    "timestamp": 1_700_000_000_000,
    "radiance": 3,
}


def make_client(handler) -> BackendClient:
    return BackendClient("https://api.example.com/api", transport=httpx.MockTransport(handler))


class TestSearchPosts:
    def test_parses_posts_and_skips_malformed(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/posts/search"
            assert request.url.params["q"] == "leadership tips"
            return httpx.Response(200, json={"success": True, "data": [POST_JSON, {"id": "no-author"}]})

        posts = make_client(handler).search_posts("  Leadership Tips ")

        assert [p.id for p in posts] == ["p9"]
        assert posts[0].author.name == "Remote Author"

    def test_blank_query_skips_request(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        assert make_client(handler).search_posts("   ") == []

    def test_non_success_payload_raises(self):
        client = make_client(lambda request: httpx.Response(200, json={"success": False}))
        with pytest.raises(BackendError):
            client.search_posts("q")

    def test_http_error_raises(self):
        client = make_client(lambda request: httpx.Response(500, json={"message": "boom"}))
        with pytest.raises(BackendError):
            client.search_posts("q")

    def test_invalid_json_raises(self):
        client = make_client(lambda request: httpx.Response(200, content=b"<html>"))
        with pytest.raises(BackendError):
            client.search_posts("q")

    def test_transport_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(BackendError):
            make_client(handler).search_posts("q")


class TestSearchUsers:
    def test_parses_camel_case(self):
        payload = {
            "success": True,
            "data": [{"id": "u1", "name": "Jordan Lee", "firstName": "Jordan", "trustScore": 70}],
        }
        users = make_client(lambda request: httpx.Response(200, json=payload)).search_users("jordan")

        assert users[0].first_name == "Jordan"
        assert users[0].trust_score == 70

    def test_null_numbers_kept_not_dropped(self):
        payload = {"success": True, "data": [{"id": "u9", "name": "Remote", "trustScore": None}]}
        users = make_client(lambda request: httpx.Response(200, json=payload)).search_users("remote")

        assert [u.id for u in users] == ["u9"]
        assert users[0].trust_score == 0.0

    def test_missing_data_is_empty(self):
        client = make_client(lambda request: httpx.Response(200, json={"success": True}))
        assert client.search_users("jordan") == []


class TestFetchTrending:
    def test_passes_limit_and_hours(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/trending"
            assert request.url.params["limit"] == "5"
            assert request.url.params["hours"] == "48"
            return httpx.Response(200, json={"success": True, "data": [{"_id": "ai", "count": 4}, "junk"]})

        rows = make_client(handler).fetch_trending(5, 48)

        assert rows == [{"_id": "ai", "count": 4}]


class TestFromSettings:
    def test_no_backend_url_means_no_client(self, monkeypatch):
        monkeypatch.delenv("BACKEND_URL", raising=False)
        assert BackendClient.from_settings(Settings()) is None

    def test_builds_client(self, monkeypatch):
        monkeypatch.setenv("BACKEND_URL", "https://api.example.com/api/")
        monkeypatch.setenv("BACKEND_TIMEOUT", "2.5")

        client = BackendClient.from_settings(Settings())

        assert client.base_url == "https://api.example.com/api"
        assert client.timeout == 2.5
