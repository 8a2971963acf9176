from chronoquasar.models.analytics import (  # noqa: F401
    AnalyticsError,
    ArticleAnalytics,
    CacheEntry,
    TotalMetrics,
    TrafficCounts,
    TrendPoint,
)
from chronoquasar.models.domain import Domain, site_id_from_url  # noqa: F401
from chronoquasar.models.session import (  # noqa: F401
    FOCUS_COLORS,
    Article,
    FocusGroup,
    HourlySnapshot,
    IndexStatus,
    PushStatus,
    Session,
)
