"""
ChronoQuasar — Pydantic request/response schemas.

Request bodies keep required fields optional so the routes can answer a
missing field with 400 and a readable message instead of a 422 dump.
"""

from datetime import datetime

from chronoquasar.models import (
    AnalyticsError,
    Article,
    ArticleAnalytics,
    FocusGroup,
    IndexStatus,
)
from chronoquasar.models.base import Entity


# ── Requests ───────────────────────────────────────────────

class DomainCreate(Entity):
    name: str | None = None
    url: str | None = None


class ArticleCreate(Entity):
    url: str | None = None
    label: str | None = None
    date: str | None = None


class ArticleUpdate(Entity):
    is_tracking: bool | None = None
    index_status: IndexStatus | None = None
    date: str | None = None


class DateBody(Entity):
    date: str | None = None


class FocusGroupCreate(Entity):
    name: str | None = None
    start_time: str | None = None
    date: str | None = None


class FocusGroupAssign(Entity):
    article_ids: list[str] = []
    date: str | None = None


class PushUpdate(Entity):
    given: bool = True
    given_at: datetime | None = None
    date: str | None = None


class SettingsUpdate(Entity):
    plausible_api_key: str | None = None


# ── Responses ──────────────────────────────────────────────

class HealthResponse(Entity):
    status: str = "ok"
    version: str
    timestamp: datetime
    domains: int = 0
    has_api_key: bool = False
    schedulers_enabled: bool = False


class SessionSummary(Entity):
    date: str
    article_count: int
    focus_group_count: int


class FocusGroupSummary(Entity):
    id: str
    name: str
    color: str


class ArticleDetail(Article):
    focus_group: FocusGroupSummary | None = None


class TrackingResponse(Entity):
    focus_group: FocusGroup | None = None
    articles: list[Article]


class CacheInfo(Entity):
    ttl_minutes: int
    next_refresh: datetime


class AnalyticsResponse(Entity):
    analytics: dict[str, ArticleAnalytics | AnalyticsError]
    cache_info: CacheInfo


class RefreshResponse(Entity):
    message: str = "Analytics refreshed"
    analytics: dict[str, ArticleAnalytics | AnalyticsError]


class RealtimeResponse(Entity):
    site_id: str
    visitors: int


class IndexCheckResult(Entity):
    id: str
    index_status: IndexStatus


class IndexCheckBatchResponse(Entity):
    checked: int
    results: list[IndexCheckResult]


class SettingsResponse(Entity):
    has_api_key: bool
    message: str | None = None
