"""
ChronoQuasar — Analytics read path.

Serves a domain's tracked-article analytics from the cache, falling back
to a live Plausible fetch on a miss (or for every article on a forced
refresh). A failed fetch yields an error marker for that article only
and is never cached, so the next read retries.
"""

import logging
from datetime import datetime, timedelta

from chronoquasar.config import settings
from chronoquasar.database import Store
from chronoquasar.errors import CredentialMissingError
from chronoquasar.models import AnalyticsError, Article, ArticleAnalytics, Domain, Session
from chronoquasar.services.plausible import PlausibleClient, client_for, percent_change

logger = logging.getLogger("analytics.read")

AnalyticsResult = ArticleAnalytics | AnalyticsError


def tracked_articles(store: Store, domain_id: str) -> list[Article]:
    """Tracked articles across all of a domain's sessions, deduplicated by id then URL."""
    seen: list[Article] = []
    for session in store.sessions.sessions_for(domain_id):
        for article in session.tracked_articles():
            if any(a.id == article.id or a.url == article.url for a in seen):
                continue
            seen.append(article)
    return seen


def process_analytics(analytics: ArticleAnalytics, now: datetime | None = None) -> ArticleAnalytics:
    """Stamp percent change (today vs previous period) and capture time."""
    analytics.percent_change = percent_change(
        analytics.totals.visitors or 0,
        analytics.previous_period_totals.visitors or 0,
    )
    analytics.last_updated = now or settings.now()
    return analytics


def _session_holding(store: Store, domain_id: str, article_id: str) -> Session | None:
    for session in store.sessions.sessions_for(domain_id):
        if any(a.id == article_id for a in session.articles):
            return session
    return None


async def cache_if_present(
    store: Store,
    domain_id: str,
    article_id: str,
    analytics: ArticleAnalytics,
) -> bool:
    """Cache *analytics* only while the domain and article still exist.

    The provider call runs without any lock, so a delete may land while it
    is in flight; caching afterwards would leave an entry nothing removes.
    """
    session = _session_holding(store, domain_id, article_id)
    if session is None:
        return False

    async with store.sessions.lock(domain_id, session.date):
        if store.domains.find(domain_id) is None:
            return False
        if store.sessions.get(domain_id, session.date) is not session:
            return False
        if not any(a.id == article_id for a in session.articles):
            return False
        store.cache.put(article_id, analytics)
    return True


async def fetch_and_cache(
    store: Store,
    client: PlausibleClient,
    domain: Domain,
    article: Article,
) -> ArticleAnalytics:
    analytics = await client.fetch_article_analytics(domain.site_id, article.url)
    analytics = process_analytics(analytics)
    if not await cache_if_present(store, domain.id, article.id, analytics):
        logger.info("Article %s was deleted during fetch, not caching", article.id)
    return analytics


def _require_client(store: Store) -> PlausibleClient:
    client = client_for(store)
    if client is None:
        raise CredentialMissingError()
    return client


async def _fetch_all(
    store: Store,
    client: PlausibleClient,
    domain: Domain,
    articles: list[Article],
    use_cache: bool,
) -> dict[str, AnalyticsResult]:
    results: dict[str, AnalyticsResult] = {}
    for article in articles:
        if use_cache:
            cached = store.cache.get(article.id)
            if cached is not None:
                results[article.id] = cached.payload
                continue

        try:
            results[article.id] = await fetch_and_cache(store, client, domain, article)
        except Exception as exc:
            logger.error("Failed to fetch analytics for %s: %s", article.label, exc)
            results[article.id] = AnalyticsError(error=str(exc))
    return results


async def get_domain_analytics(
    store: Store,
    domain_id: str,
    force_refresh: bool = False,
) -> dict[str, AnalyticsResult]:
    """Analytics for every tracked article of a domain, keyed by article id."""
    domain = store.domains.get(domain_id)
    client = _require_client(store)
    articles = tracked_articles(store, domain_id)

    if force_refresh:
        store.cache.invalidate_many(a.id for a in articles)
        logger.info("🔄 Force refreshing analytics for %d tracked URLs", len(articles))

    return await _fetch_all(store, client, domain, articles, use_cache=not force_refresh)


async def refresh_domain_analytics(store: Store, domain_id: str) -> dict[str, AnalyticsResult]:
    """Drop every cached payload of the domain and re-fetch its tracked articles."""
    domain = store.domains.get(domain_id)
    client = _require_client(store)

    all_ids = [a.id for s in store.sessions.sessions_for(domain_id) for a in s.articles]
    store.cache.invalidate_many(all_ids)

    articles = tracked_articles(store, domain_id)
    logger.info("🔄 Manual refresh for %s — %d tracked URLs", domain.name, len(articles))
    return await _fetch_all(store, client, domain, articles, use_cache=False)


async def prime_article_analytics(store: Store, domain: Domain, article: Article) -> None:
    """Fetch and cache one article right away (e.g. when it starts being tracked)."""
    client = client_for(store)
    if client is None:
        return
    try:
        await fetch_and_cache(store, client, domain, article)
    except Exception as exc:
        logger.error("Failed to fetch initial analytics for %s: %s", article.url, exc)


def cache_info(store: Store) -> dict:
    ttl: timedelta = store.cache.ttl
    return {
        "ttl_minutes": int(ttl.total_seconds() // 60),
        "next_refresh": settings.now() + ttl,
    }
