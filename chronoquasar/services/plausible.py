"""
ChronoQuasar — Plausible Stats API client.

Every article lookup is three independent v2 queries filtered to the
article's page path:

  1. realtime — last 5 minutes, visitors + pageviews
  2. trend    — today, bucketed by ``time:hour``
  3. totals   — today, visitors / pageviews / bounce_rate / visit_duration

Responses arrive as ``results[i].metrics`` arrays in the order the
metrics were requested; they are zipped back into named values with a
missing metric read as 0.
"""

import asyncio
import json
import logging
import math
from datetime import datetime, timedelta
from urllib.parse import urlparse

import aiohttp

from chronoquasar.config import settings
from chronoquasar.errors import ProviderQueryError
from chronoquasar.models import (
    ArticleAnalytics,
    TotalMetrics,
    TrafficCounts,
    TrendPoint,
    site_id_from_url,  # noqa: F401  (re-exported for callers)
)

logger = logging.getLogger("analytics.plausible")

TRAFFIC_METRICS = ["visitors", "pageviews"]
TOTAL_METRICS = ["visitors", "pageviews", "bounce_rate", "visit_duration"]
REALTIME_WINDOW = timedelta(minutes=5)


def percent_change(current: float, previous: float) -> int:
    """Whole-number percent change; a zero baseline reads as +100 (or 0 if still zero)."""
    if previous == 0:
        return 100 if current > 0 else 0
    return math.floor(100 * (current - previous) / previous + 0.5)


def page_path(page_url: str) -> str:
    """Path component used in the ``event:page`` filter; the raw string if not a URL."""
    parsed = urlparse(page_url)
    if not parsed.scheme or not parsed.netloc:
        return page_url
    return parsed.path or "/"


def parse_metrics(result: dict | None, names: list[str]) -> dict | None:
    """Zip a v2 result row's metric array with *names*; None if the row has no metrics."""
    if not result or result.get("metrics") is None:
        return None
    values = result["metrics"]
    return {
        name: (values[i] if i < len(values) and values[i] else 0)
        for i, name in enumerate(names)
    }


def _first_row(data: dict) -> dict | None:
    rows = data.get("results") or []
    return rows[0] if rows else None


class PlausibleClient:
    """Thin async client; one aiohttp session per request, bounded by ``timeout``."""

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        timeout: float | None = None,
    ):
        self.api_key = api_key
        self.base_url = (base_url or settings.plausible_base_url).rstrip("/")
        self._timeout = aiohttp.ClientTimeout(
            total=timeout if timeout is not None else settings.plausible_timeout_seconds
        )

    @property
    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.api_key}"}

    async def query(self, site_id: str, body: dict) -> dict:
        """POST /api/v2/query. Raises ProviderQueryError on any non-2xx or transport failure."""
        url = f"{self.base_url}/api/v2/query"
        payload = {"site_id": site_id, **body}
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.post(url, json=payload, headers=self._headers) as resp:
                    text = await resp.text()
                    if not 200 <= resp.status < 300:
                        raise ProviderQueryError(resp.status, text)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise ProviderQueryError(0, str(exc) or type(exc).__name__) from exc

        try:
            return json.loads(text)
        except ValueError as exc:
            raise ProviderQueryError(resp.status, f"invalid JSON: {text[:200]}") from exc

    async def realtime_visitors(self, site_id: str) -> int:
        """Site-wide current visitors (v1 realtime endpoint); 0 when unavailable."""
        url = f"{self.base_url}/api/v1/stats/realtime/visitors"
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.get(
                    url, params={"site_id": site_id}, headers=self._headers
                ) as resp:
                    if resp.status != 200:
                        logger.warning("Realtime visitors for %s: HTTP %d", site_id, resp.status)
                        return 0
                    return int(await resp.json(content_type=None) or 0)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError, TypeError) as exc:
            logger.warning("Realtime visitors for %s failed: %s", site_id, exc)
            return 0

    async def fetch_article_analytics(
        self,
        site_id: str,
        page_url: str,
        now: datetime | None = None,
    ) -> ArticleAnalytics:
        """Realtime, hourly trend and today's totals for one page.

        ``percent_change`` and ``last_updated`` are left for the caller.
        """
        now = now or settings.now()
        page_filter = [["is", "event:page", [page_path(page_url)]]]

        realtime_data = await self.query(site_id, {
            "metrics": TRAFFIC_METRICS,
            "date_range": [
                (now - REALTIME_WINDOW).isoformat(timespec="seconds"),
                now.isoformat(timespec="seconds"),
            ],
            "filters": page_filter,
        })

        trend_data = await self.query(site_id, {
            "metrics": TRAFFIC_METRICS,
            "date_range": "day",
            "dimensions": ["time:hour"],
            "filters": page_filter,
        })

        totals_data = await self.query(site_id, {
            "metrics": TOTAL_METRICS,
            "date_range": "day",
            "filters": page_filter,
        })

        realtime = parse_metrics(_first_row(realtime_data), TRAFFIC_METRICS) or {}
        totals = parse_metrics(_first_row(totals_data), TOTAL_METRICS) or {}

        hourly_trend = []
        for row in trend_data.get("results") or []:
            dimensions = row.get("dimensions") or []
            metrics = parse_metrics(row, TRAFFIC_METRICS) or {}
            hourly_trend.append(TrendPoint(
                time=(dimensions[0] if dimensions else "") or "",
                **metrics,
            ))

        total_metrics = TotalMetrics(**totals)
        return ArticleAnalytics(
            realtime=TrafficCounts(**realtime),
            hourly_trend=hourly_trend,
            totals=total_metrics,
            # TODO: query the previous period once product settles the comparison baseline
            previous_period_totals=TrafficCounts(
                visitors=total_metrics.visitors,
                pageviews=total_metrics.pageviews,
            ),
        )


def client_for(store) -> PlausibleClient | None:
    """Client for the store's current API key, or None when no key is configured."""
    if not store.api_key:
        return None
    return PlausibleClient(store.api_key)
