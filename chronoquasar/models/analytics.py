"""
ChronoQuasar — normalized analytics payloads.

These are what the analytics cache stores and what the read path returns
per tracked article. A batch result maps article ids to either a payload
or an error marker; both forbid unknown keys so the two never validate
as each other.
"""

from datetime import datetime

from pydantic import ConfigDict, Field

from chronoquasar.models.base import Entity


class TrafficCounts(Entity):
    visitors: int = 0
    pageviews: int = 0


class TrendPoint(Entity):
    """One bucket of the same-day hourly trend."""
    time: str = ""
    visitors: int = 0
    pageviews: int = 0


class TotalMetrics(Entity):
    visitors: int = 0
    pageviews: int = 0
    bounce_rate: float = 0
    visit_duration: float = 0


class ArticleAnalytics(Entity):
    model_config = ConfigDict(extra="forbid")

    realtime: TrafficCounts = Field(default_factory=TrafficCounts)   # last 5 minutes
    hourly_trend: list[TrendPoint] = Field(default_factory=list)
    totals: TotalMetrics = Field(default_factory=TotalMetrics)       # today
    previous_period_totals: TrafficCounts = Field(default_factory=TrafficCounts)
    percent_change: int = 0
    last_updated: datetime | None = None


class AnalyticsError(Entity):
    """Per-article error marker in a batch result."""
    model_config = ConfigDict(extra="forbid")

    error: str


class CacheEntry(Entity):
    payload: ArticleAnalytics
    timestamp: datetime
