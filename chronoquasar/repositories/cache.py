"""
Analytics cache — latest analytics payload per article, with a TTL.

An entry is a miss once ``now - timestamp >= ttl``; expired entries are
dropped on read. There is no other eviction: every path that deletes an
article (or a domain) must call ``invalidate`` for its ids.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from chronoquasar.config import settings
from chronoquasar.models import ArticleAnalytics, CacheEntry

logger = logging.getLogger(__name__)


class AnalyticsCache:
    def __init__(
        self,
        ttl: Optional[timedelta] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.ttl = ttl or timedelta(minutes=settings.cache_ttl_minutes)
        self._clock = clock or settings.now
        self._entries: dict[str, CacheEntry] = {}

    def get(self, article_id: str) -> CacheEntry | None:
        entry = self._entries.get(article_id)
        if entry is None:
            return None
        if self._clock() - entry.timestamp >= self.ttl:
            self._entries.pop(article_id, None)
            logger.debug("Cache expired: %s", article_id)
            return None
        return entry

    def put(self, article_id: str, payload: ArticleAnalytics) -> CacheEntry:
        entry = CacheEntry(payload=payload, timestamp=self._clock())
        self._entries[article_id] = entry
        return entry

    def invalidate(self, article_id: str) -> bool:
        return self._entries.pop(article_id, None) is not None

    def invalidate_many(self, article_ids: Iterable[str]) -> int:
        return sum(1 for article_id in article_ids if self.invalidate(article_id))

    def __contains__(self, article_id: str) -> bool:
        return article_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
