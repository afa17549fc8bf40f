"""Tests for the recipe service client."""

import json

import httpx
import pytest

from grocery_board.recipe_fetcher import (
    MAX_URL_LENGTH,
    RecipeFetcher,
    RecipeFetchError,
    RecipeFetchStatus,
    coerce_https_url,
    is_blocked_host,
    validate_recipe_url,
)

SERVICE_URL = "http://recipes.test"


def make_fetcher(handler):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return RecipeFetcher(SERVICE_URL, client=client)


class TestUrlChecks:
    """Tests for URL coercion and validation."""

    def test_coerce_adds_https(self):
        assert coerce_https_url(" example.com/pannkakor ") == "https://example.com/pannkakor"
        assert coerce_https_url("http://example.com") == "http://example.com"
        assert coerce_https_url("HTTPS://example.com") == "HTTPS://example.com"
        assert coerce_https_url("   ") == ""

    @pytest.mark.parametrize(
        "host",
        ["localhost", "app.localhost", "127.0.0.1", "10.1.2.3", "192.168.0.10",
         "172.16.5.4", "169.254.1.1", "0.0.0.0", "::1", "[::1]"],
    )
    def test_blocked_hosts(self, host):
        assert is_blocked_host(host) is True

    @pytest.mark.parametrize("host", ["example.com", "8.8.8.8", "www.ica.se"])
    def test_public_hosts(self, host):
        assert is_blocked_host(host) is False

    def test_validate_returns_coerced_url(self):
        assert validate_recipe_url("example.com/r") == "https://example.com/r"

    @pytest.mark.parametrize("raw", ["", "   ", "https://"])
    def test_invalid_urls(self, raw):
        with pytest.raises(RecipeFetchError) as exc_info:
            validate_recipe_url(raw)
        assert exc_info.value.status == RecipeFetchStatus.INVALID_URL

    def test_too_long(self):
        raw = "https://example.com/" + "a" * MAX_URL_LENGTH
        with pytest.raises(RecipeFetchError) as exc_info:
            validate_recipe_url(raw)
        assert exc_info.value.status == RecipeFetchStatus.INVALID_URL
        assert exc_info.value.message == "URL too long"

    def test_blocked_host_rejected(self):
        with pytest.raises(RecipeFetchError) as exc_info:
            validate_recipe_url("http://192.168.1.1/admin")
        assert exc_info.value.status == RecipeFetchStatus.BLOCKED_HOST


class TestFetchIngredients:
    """Tests for RecipeFetcher.fetch_ingredients."""

    def test_posts_url_and_parses_recipe(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "title": "Pannkakor",
                    "ingredients": ["3 ägg", "  ", "6 dl mjölk"],
                    "instructions": "Vispa.",
                    "yields": "4 servings",
                    "total_time": 30,
                    "image_url": "https://example.com/p.jpg",
                    "host": "example.com",
                },
            )

        with make_fetcher(handler) as fetcher:
            recipe = fetcher.fetch_ingredients("example.com/pannkakor")

        assert seen["url"] == "http://recipes.test/parse"
        assert seen["body"] == {"url": "https://example.com/pannkakor"}
        assert recipe.title == "Pannkakor"
        assert recipe.ingredients == ["3 ägg", "6 dl mjölk"]
        assert recipe.total_time == 30
        assert recipe.image_url == "https://example.com/p.jpg"

    def test_alternate_field_names(self):
        def handler(request):
            return httpx.Response(
                200,
                json={
                    "title": "Tacos",
                    "ingredients": ["tortilla"],
                    "totalTimeMinutes": 20,
                    "image": "https://img.example/t.jpg",
                },
            )

        recipe = make_fetcher(handler).fetch_ingredients("https://www.example.se/tacos")
        assert recipe.total_time == 20
        assert recipe.image_url == "https://img.example/t.jpg"
        assert recipe.host == "www.example.se"

    def test_blocked_url_never_sent(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={})

        with pytest.raises(RecipeFetchError) as exc_info:
            make_fetcher(handler).fetch_ingredients("http://localhost:8000/x")
        assert exc_info.value.status == RecipeFetchStatus.BLOCKED_HOST
        assert calls == []

    def test_upstream_json_error(self):
        def handler(request):
            return httpx.Response(502, json={"error": "could not scrape"})

        with pytest.raises(RecipeFetchError) as exc_info:
            make_fetcher(handler).fetch_ingredients("https://example.com/r")
        error = exc_info.value
        assert error.status == RecipeFetchStatus.UPSTREAM_ERROR
        assert error.upstream_status == 502
        assert error.details == {"error": "could not scrape"}

    def test_upstream_text_error_is_truncated(self):
        def handler(request):
            return httpx.Response(500, text="x" * 5000)

        with pytest.raises(RecipeFetchError) as exc_info:
            make_fetcher(handler).fetch_ingredients("https://example.com/r")
        details = exc_info.value.details
        assert details.startswith("x" * 1000)
        assert len(details) == 1001

    def test_timeout(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(RecipeFetchError) as exc_info:
            make_fetcher(handler).fetch_ingredients("https://example.com/r")
        assert exc_info.value.status == RecipeFetchStatus.TIMEOUT

    def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(RecipeFetchError) as exc_info:
            make_fetcher(handler).fetch_ingredients("https://example.com/r")
        assert exc_info.value.status == RecipeFetchStatus.UNREACHABLE

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, text="<html>not json</html>"),
            httpx.Response(200, json=["not", "an", "object"]),
            httpx.Response(200, json={"ingredients": "one string"}),
        ],
    )
    def test_malformed_responses(self, response):
        def handler(request):
            return response

        with pytest.raises(RecipeFetchError) as exc_info:
            make_fetcher(handler).fetch_ingredients("https://example.com/r")
        assert exc_info.value.status == RecipeFetchStatus.MALFORMED


class TestRecipeFetcherClient:
    """Tests for client lifecycle."""

    def test_requires_service_url(self):
        with pytest.raises(ValueError):
            RecipeFetcher("")

    def test_strips_trailing_slash_and_defaults_timeout(self):
        fetcher = RecipeFetcher("http://recipes.test/")
        assert fetcher.service_url == "http://recipes.test"
        assert fetcher.timeout == 15.0

    def test_close_owned_client(self):
        fetcher = RecipeFetcher(SERVICE_URL, timeout=2)
        client = fetcher._get_client()
        fetcher.close()
        assert client.is_closed

    def test_injected_client_left_open(self):
        client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        fetcher = RecipeFetcher(SERVICE_URL, client=client)
        fetcher.close()
        assert not client.is_closed
        client.close()
