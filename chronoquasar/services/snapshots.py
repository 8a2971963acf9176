"""
Hourly Snapshots — visitor samples per tracked article.

The first capture runs at the next top of the hour after startup, then
every 60 minutes from that first deadline. Each capture reads today's
total visitors for every tracked article in every session, and prepends
a snapshot carrying the delta and percent change against the previously
*stored* snapshot (a skipped hour just widens the gap). History is kept
newest-first and capped at ``snapshot_history_limit``.

The provider call happens outside the session lock; the read-modify-write
of the history happens inside it.
"""

import asyncio
import logging
from datetime import datetime

from chronoquasar.config import settings
from chronoquasar.database import Store
from chronoquasar.models import Article, HourlySnapshot
from chronoquasar.services.plausible import PlausibleClient, client_for
from chronoquasar.services.timing import current_hour_bucket, seconds_until_boundary

logger = logging.getLogger("analytics.snapshots")


def snapshot_percent_change(current: int, previous: int) -> float:
    """Percent change to one decimal; a zero baseline reads as +100 (or 0 if still zero)."""
    if previous > 0:
        return round((current - previous) / previous * 100, 1)
    return 100.0 if current > 0 else 0.0


def record_snapshot(
    article: Article,
    hour: str,
    visitors: int,
    limit: int | None = None,
) -> HourlySnapshot:
    """Prepend a snapshot to the article's history and trim it to *limit* entries."""
    limit = limit or settings.snapshot_history_limit
    history = article.hourly_snapshots
    previous = history[0].visitors if history else 0

    snapshot = HourlySnapshot(
        hour=hour,
        visitors=visitors,
        delta=visitors - previous,
        percent_change=snapshot_percent_change(visitors, previous),
    )
    article.hourly_snapshots = [snapshot, *history][:limit]
    return snapshot


async def capture_hourly_snapshots(
    store: Store,
    client: PlausibleClient | None = None,
    now: datetime | None = None,
) -> dict:
    """One capture cycle. Returns ``captured`` / ``failed`` counts."""
    logger.info("📸 Capturing hourly snapshots...")
    client = client or client_for(store)
    if client is None:
        logger.info("No API key configured, skipping snapshots")
        return {"captured": 0, "failed": 0}

    hour = current_hour_bucket(now or settings.now())
    captured = failed = 0

    for session in store.sessions.all_sessions():
        domain = store.domains.find(session.domain_id)
        if domain is None:
            continue

        for article in session.tracked_articles():
            try:
                analytics = await client.fetch_article_analytics(domain.site_id, article.url)
                visitors = analytics.totals.visitors or 0

                async with store.sessions.lock(session.domain_id, session.date):
                    snapshot = record_snapshot(article, hour, visitors)

                captured += 1
                logger.info(
                    "✅ Snapshot: %s - %d visitors (%+d)",
                    (article.title or article.label)[:30], visitors, snapshot.delta,
                )
            except Exception as e:
                failed += 1
                logger.error("Failed to snapshot %s: %s", article.url, e)

    logger.info("📸 Hourly snapshots complete — %d captured, %d failed", captured, failed)
    return {"captured": captured, "failed": failed}


async def periodic_hourly_snapshots(store: Store, interval_minutes: int | None = None) -> None:
    """First capture at the next top of the hour, then every interval from that deadline."""
    interval = (interval_minutes or settings.snapshot_interval_minutes) * 60
    loop = asyncio.get_running_loop()

    delay = seconds_until_boundary(settings.now(), 60)
    logger.info("⏰ Next hourly snapshot in %d minutes", round(delay / 60))
    deadline = loop.time() + delay

    while True:
        try:
            await asyncio.sleep(max(0.0, deadline - loop.time()))
            deadline += interval
            await capture_hourly_snapshots(store)
        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.error("Hourly snapshot error: %s", e)
