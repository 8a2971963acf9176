"""
ChronoQuasar — in-memory store.

The store groups the three repositories (domains, sessions, analytics
cache) and the runtime analytics credential. Routes get it through the
``get_store`` dependency; the schedulers receive it explicitly.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from chronoquasar.config import settings
from chronoquasar.models import Domain, Session
from chronoquasar.repositories import AnalyticsCache, DomainRepository, SessionRepository

logger = logging.getLogger(__name__)


class Store:
    def __init__(
        self,
        api_key: Optional[str] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.domains = DomainRepository()
        self.sessions = SessionRepository()
        self.cache = AnalyticsCache(clock=clock)
        self.api_key = settings.plausible_api_key if api_key is None else api_key

    def session_for(self, domain_id: str, date: str | None = None) -> Session:
        """Session of an existing domain; raises NotFoundError for unknown domains."""
        self.domains.get(domain_id)
        return self.sessions.get_or_create(domain_id, date or settings.today())

    def recount(self, domain_id: str) -> None:
        domain = self.domains.find(domain_id)
        if domain is not None:
            domain.url_count = self.sessions.article_count(domain_id)

    def delete_domain(self, domain_id: str) -> Domain:
        """Remove a domain, its sessions, and every cached payload of their articles."""
        domain = self.domains.remove(domain_id)
        removed = self.sessions.delete_domain(domain_id)
        article_ids = [a.id for s in removed for a in s.articles]
        dropped = self.cache.invalidate_many(article_ids)
        logger.info(
            "🗑️ Deleted domain %s — %d sessions, %d articles, %d cache entries",
            domain.name, len(removed), len(article_ids), dropped,
        )
        return domain


store = Store()


def get_store() -> Store:
    """FastAPI dependency — the process-wide store."""
    return store
