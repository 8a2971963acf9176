"""
Analytics Refresher — Plausible → analytics cache, every 30 minutes.

Fires on wall-clock half hours (xx:00, xx:30), not relative to the last
run. Each cycle walks every domain's tracked articles one at a time (no
fan-out, to stay inside the provider's rate limits) and overwrites their
cache entries. A failing article is logged and skipped; the cycle goes
on with the rest.
"""

import asyncio
import logging

from chronoquasar.config import settings
from chronoquasar.database import Store
from chronoquasar.services.analytics import fetch_and_cache, tracked_articles
from chronoquasar.services.plausible import PlausibleClient, client_for
from chronoquasar.services.timing import seconds_until_boundary

logger = logging.getLogger("analytics.refresh")


async def refresh_all_tracked(store: Store, client: PlausibleClient | None = None) -> dict:
    """One refresh cycle. Returns ``refreshed`` / ``failed`` counts."""
    client = client or client_for(store)
    if client is None:
        logger.info("⚠️ No Plausible API key configured, skipping refresh")
        return {"refreshed": 0, "failed": 0}

    logger.info("🔄 Refreshing analytics for all tracked URLs...")
    refreshed = failed = 0

    for domain in store.domains.list():
        for article in tracked_articles(store, domain.id):
            try:
                await fetch_and_cache(store, client, domain, article)
                refreshed += 1
                logger.info("✅ Refreshed: %s", article.label)
            except Exception as e:
                failed += 1
                logger.error("❌ Failed to refresh %s: %s", article.label, e)

    logger.info("✅ Analytics refresh complete — %d refreshed, %d failed", refreshed, failed)
    return {"refreshed": refreshed, "failed": failed}


async def periodic_analytics_refresh(store: Store, interval_minutes: int | None = None) -> None:
    """Run ``refresh_all_tracked`` on every wall-clock multiple of the interval."""
    interval = interval_minutes or settings.refresh_interval_minutes
    while True:
        try:
            await asyncio.sleep(seconds_until_boundary(settings.now(), interval))
            await refresh_all_tracked(store)
        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.error("Analytics refresh error: %s", e)
