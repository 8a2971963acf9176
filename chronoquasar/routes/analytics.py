"""
ChronoQuasar — Analytics API routes.
"""

import logging

from fastapi import APIRouter, Depends, Query

from chronoquasar.database import Store, get_store
from chronoquasar.errors import CredentialMissingError
from chronoquasar.schemas import AnalyticsResponse, CacheInfo, RealtimeResponse, RefreshResponse
from chronoquasar.services.analytics import (
    cache_info,
    get_domain_analytics,
    refresh_domain_analytics,
)
from chronoquasar.services.plausible import client_for

logger = logging.getLogger(__name__)

analytics_router = APIRouter(prefix="/domains/{domain_id}/analytics", tags=["analytics"])


@analytics_router.get("", response_model=AnalyticsResponse)
async def read_analytics(
    domain_id: str,
    force: bool = Query(False),
    store: Store = Depends(get_store),
):
    analytics = await get_domain_analytics(store, domain_id, force_refresh=force)
    return AnalyticsResponse(analytics=analytics, cache_info=CacheInfo(**cache_info(store)))


@analytics_router.post("/refresh", response_model=RefreshResponse)
async def refresh_analytics(domain_id: str, store: Store = Depends(get_store)):
    analytics = await refresh_domain_analytics(store, domain_id)
    return RefreshResponse(analytics=analytics)


@analytics_router.get("/realtime", response_model=RealtimeResponse)
async def realtime_visitors(domain_id: str, store: Store = Depends(get_store)):
    """Site-wide visitors right now."""
    domain = store.domains.get(domain_id)
    client = client_for(store)
    if client is None:
        raise CredentialMissingError()
    visitors = await client.realtime_visitors(domain.site_id)
    return RealtimeResponse(site_id=domain.site_id, visitors=visitors)
