"""
Tests for the Plausible client — metric parsing and payload normalisation.

Parsing tests patch ``PlausibleClient.query``; the request tests run the
real aiohttp code against a local server.
"""

import asyncio
from datetime import datetime
from unittest.mock import AsyncMock, patch

import pytest
from aiohttp import web

from chronoquasar.config import settings
from chronoquasar.database import Store
from chronoquasar.errors import ProviderQueryError
from chronoquasar.models import AnalyticsError, Article, Domain
from chronoquasar.services.analytics import get_domain_analytics
from chronoquasar.services.plausible import (
    TOTAL_METRICS,
    TRAFFIC_METRICS,
    PlausibleClient,
    client_for,
    page_path,
    parse_metrics,
    percent_change,
)
from tests.conftest import IST


class TestPercentChange:
    @pytest.mark.parametrize(
        "current, previous, expected",
        [
            (150, 100, 50),
            (50, 100, -50),
            (100, 100, 0),
            (5, 0, 100),
            (0, 0, 0),
            (1, 3, -67),
            (2, 3, -33),
            (101, 200, -49),   # -49.5 rounds half up
        ],
    )
    def test_values(self, current, previous, expected):
        assert percent_change(current, previous) == expected

    def test_returns_int(self):
        assert isinstance(percent_change(7, 3), int)


class TestPagePath:
    def test_full_url(self):
        assert page_path("https://example.com/news/budget-2024?utm=x") == "/news/budget-2024"

    def test_root(self):
        assert page_path("https://example.com") == "/"

    def test_not_a_url(self):
        assert page_path("/already/a/path") == "/already/a/path"


class TestParseMetrics:
    def test_zips_names(self):
        row = {"metrics": [12, 30, 41.5, 88]}
        assert parse_metrics(row, TOTAL_METRICS) == {
            "visitors": 12, "pageviews": 30, "bounce_rate": 41.5, "visit_duration": 88,
        }

    def test_missing_values_read_as_zero(self):
        assert parse_metrics({"metrics": [4, None]}, TOTAL_METRICS) == {
            "visitors": 4, "pageviews": 0, "bounce_rate": 0, "visit_duration": 0,
        }

    def test_no_row(self):
        assert parse_metrics(None, TRAFFIC_METRICS) is None
        assert parse_metrics({"dimensions": []}, TRAFFIC_METRICS) is None


def _fake_query(site_id: str, body: dict) -> dict:
    if body.get("dimensions") == ["time:hour"]:
        return {"results": [
            {"dimensions": ["2024-01-01 09:00:00"], "metrics": [3, 4]},
            {"dimensions": ["2024-01-01 10:00:00"], "metrics": [7, 9]},
        ]}
    if body["metrics"] == TOTAL_METRICS:
        return {"results": [{"metrics": [10, 13, 45, 70]}]}
    return {"results": [{"metrics": [2, 2]}]}


class TestFetchArticleAnalytics:
    async def test_normalises_three_queries(self):
        client = PlausibleClient("key", base_url="https://stats.test")
        now = datetime(2024, 1, 1, 10, 30, tzinfo=IST)

        with patch.object(PlausibleClient, "query", new_callable=AsyncMock, side_effect=_fake_query) as q:
            result = await client.fetch_article_analytics(
                "example.com", "https://www.example.com/news/story", now=now
            )

        assert q.await_count == 3
        for call in q.await_args_list:
            site_id, body = call.args
            assert site_id == "example.com"
            assert body["filters"] == [["is", "event:page", ["/news/story"]]]

        realtime_body = q.await_args_list[0].args[1]
        assert realtime_body["date_range"] == ["2024-01-01T10:25:00+05:30", "2024-01-01T10:30:00+05:30"]

        assert result.realtime.visitors == 2
        assert [p.visitors for p in result.hourly_trend] == [3, 7]
        assert result.hourly_trend[1].time == "2024-01-01 10:00:00"
        assert result.totals.visitors == 10
        assert result.totals.bounce_rate == 45
        assert result.previous_period_totals.visitors == 10
        assert result.last_updated is None

    async def test_empty_results_read_as_zero(self):
        client = PlausibleClient("key")
        with patch.object(PlausibleClient, "query", new_callable=AsyncMock, return_value={"results": []}):
            result = await client.fetch_article_analytics("example.com", "https://example.com/a")

        assert result.realtime.visitors == 0
        assert result.hourly_trend == []
        assert result.totals.pageviews == 0


class TestClientFor:
    def test_none_without_key(self):
        assert client_for(Store(api_key="")) is None

    def test_uses_store_key(self):
        client = client_for(Store(api_key="secret"))
        assert client.api_key == "secret"
        assert client._headers == {"Authorization": "Bearer secret"}


async def _slow(request):
    await asyncio.sleep(0.5)
    return web.json_response({"results": []})


class TestQuery:
    async def test_posts_with_bearer_key(self, serve):
        seen = {}

        async def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = await request.json()
            return web.json_response({"results": [{"metrics": [4, 9]}]})

        base = await serve(web.post("/api/v2/query", handler))
        data = await PlausibleClient("secret", base_url=base).query(
            "example.com", {"metrics": TRAFFIC_METRICS, "date_range": "day"}
        )

        assert data == {"results": [{"metrics": [4, 9]}]}
        assert seen["auth"] == "Bearer secret"
        assert seen["body"] == {
            "site_id": "example.com", "metrics": TRAFFIC_METRICS, "date_range": "day",
        }

    async def test_error_status_raises(self, serve):
        async def handler(request):
            return web.Response(status=401, text="Invalid API key")

        base = await serve(web.post("/api/v2/query", handler))
        with pytest.raises(ProviderQueryError) as exc_info:
            await PlausibleClient("bad", base_url=base).query("example.com", {})

        assert exc_info.value.status == 401
        assert exc_info.value.body == "Invalid API key"
        assert "401" in str(exc_info.value)

    async def test_invalid_json_raises(self, serve):
        async def handler(request):
            return web.Response(text="<html>maintenance</html>", content_type="text/html")

        base = await serve(web.post("/api/v2/query", handler))
        with pytest.raises(ProviderQueryError) as exc_info:
            await PlausibleClient("k", base_url=base).query("example.com", {})

        assert exc_info.value.status == 200

    async def test_timeout_raises_status_zero(self, serve):
        base = await serve(web.post("/api/v2/query", _slow))
        with pytest.raises(ProviderQueryError) as exc_info:
            await PlausibleClient("k", base_url=base, timeout=0.05).query("example.com", {})

        assert exc_info.value.status == 0

    async def test_failure_becomes_error_marker(self, serve, store, monkeypatch):
        async def handler(request):
            return web.Response(status=500, text="boom")

        base = await serve(web.post("/api/v2/query", handler))
        domain = store.domains.add(Domain(name="Ex", url="https://example.com"))
        article = store.session_for(domain.id, "2024-01-01").add_article(
            Article(url="https://example.com/a", label="a", is_tracking=True)
        )

        monkeypatch.setattr(settings, "plausible_base_url", base)
        result = await get_domain_analytics(store, domain.id)

        assert isinstance(result[article.id], AnalyticsError)
        assert store.cache.get(article.id) is None


class TestRealtimeVisitors:
    async def test_returns_count(self, serve):
        async def handler(request):
            assert request.query["site_id"] == "example.com"
            return web.json_response(7)

        base = await serve(web.get("/api/v1/stats/realtime/visitors", handler))
        assert await PlausibleClient("k", base_url=base).realtime_visitors("example.com") == 7

    async def test_error_status_reads_zero(self, serve):
        async def handler(request):
            return web.Response(status=500, text="down")

        base = await serve(web.get("/api/v1/stats/realtime/visitors", handler))
        assert await PlausibleClient("k", base_url=base).realtime_visitors("example.com") == 0

    async def test_timeout_reads_zero(self, serve):
        base = await serve(web.get("/api/v1/stats/realtime/visitors", _slow))
        client = PlausibleClient("k", base_url=base, timeout=0.05)
        assert await client.realtime_visitors("example.com") == 0
