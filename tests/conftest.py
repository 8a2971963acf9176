"""
Shared test fixtures — in-memory store, fake Plausible, FastAPI test client.
"""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, patch
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer
from httpx import AsyncClient, ASGITransport

from chronoquasar.config import settings
from chronoquasar.database import Store, get_store
from chronoquasar.errors import ProviderQueryError
from chronoquasar.main import app
from chronoquasar.models import ArticleAnalytics, TotalMetrics, TrafficCounts
from chronoquasar.services.plausible import PlausibleClient

IST = ZoneInfo("Asia/Kolkata")


# ── Settings ────────────────────────────────────────────

@pytest.fixture(autouse=True)
def fast_settings(monkeypatch):
    """No pauses between index checks, stable timezone, schedulers off."""
    monkeypatch.setattr(settings, "index_check_delay_seconds", 0)
    monkeypatch.setattr(settings, "reporting_timezone", "Asia/Kolkata")
    monkeypatch.setattr(settings, "schedulers_enabled", False)
    return settings


# ── Store + HTTP client ─────────────────────────────────

@pytest.fixture
def store():
    return Store(api_key="test-plausible-key")


@pytest.fixture
def keyless_store():
    return Store(api_key="")


@pytest_asyncio.fixture()
async def client(store):
    """FastAPI test client with a fresh store injected."""
    app.dependency_overrides[get_store] = lambda: store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Clock ───────────────────────────────────────────────

class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, 9, 0, tzinfo=IST)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


# ── Fake Plausible ──────────────────────────────────────

def make_analytics(visitors: int = 0, pageviews: int | None = None) -> ArticleAnalytics:
    pageviews = visitors * 2 if pageviews is None else pageviews
    return ArticleAnalytics(
        realtime=TrafficCounts(visitors=min(visitors, 3), pageviews=min(pageviews, 5)),
        totals=TotalMetrics(visitors=visitors, pageviews=pageviews, bounce_rate=40, visit_duration=65),
        previous_period_totals=TrafficCounts(visitors=visitors, pageviews=pageviews),
    )


class FakePlausible:
    """Stands in for ``PlausibleClient.fetch_article_analytics``.

    ``visitors`` maps page URLs to today's visitor count; URLs in
    ``failing`` raise ProviderQueryError.
    """

    def __init__(self):
        self.visitors: dict[str, int] = {}
        self.failing: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    async def fetch_article_analytics(self, site_id: str, page_url: str, now=None) -> ArticleAnalytics:
        self.calls.append((site_id, page_url))
        if page_url in self.failing:
            raise ProviderQueryError(500, "upstream exploded")
        return make_analytics(self.visitors.get(page_url, 0))


@pytest.fixture
def fake_plausible():
    """Patches PlausibleClient so every client built by the app talks to FakePlausible."""
    fake = FakePlausible()

    async def _fetch(client_self, site_id, page_url, now=None):
        return await fake.fetch_article_analytics(site_id, page_url, now)

    with patch.object(PlausibleClient, "fetch_article_analytics", _fetch):
        yield fake


# ── Collaborators ───────────────────────────────────────

@pytest.fixture
def mock_page_meta():
    meta = {"image": "https://cdn.example.com/og.jpg", "title": "Budget 2024: What Changed"}
    with patch(
        "chronoquasar.routes.sessions.fetch_page_meta",
        new_callable=AsyncMock,
        return_value=meta,
    ) as m:
        yield m


@pytest.fixture
def mock_index_checker():
    with patch(
        "chronoquasar.services.index_checker.check_search_index",
        new_callable=AsyncMock,
        return_value="indexed",
    ) as m:
        yield m


# ── Sample data helpers ─────────────────────────────────

SAMPLE_DOMAIN = {"name": "Daily Ledger", "url": "https://www.dailyledger.in"}


async def create_domain(client, **overrides) -> dict:
    resp = await client.post("/api/domains", json={**SAMPLE_DOMAIN, **overrides})
    assert resp.status_code == 201
    return resp.json()


async def add_article(client, domain_id: str, url: str, **extra) -> dict:
    resp = await client.post(
        f"/api/domains/{domain_id}/session/articles", json={"url": url, **extra}
    )
    assert resp.status_code == 201
    return resp.json()


# ── Local HTTP server ───────────────────────────────────

@pytest_asyncio.fixture()
async def serve():
    """Start a local aiohttp server for the given routes; returns its base URL."""
    servers: list[TestServer] = []

    async def _serve(*routes) -> str:
        web_app = web.Application()
        web_app.add_routes(routes)
        server = TestServer(web_app)
        await server.start_server()
        servers.append(server)
        return str(server.make_url("/")).rstrip("/")

    yield _serve

    for server in servers:
        await server.close()
