"""
ChronoQuasar — Settings API routes (runtime analytics credential).
"""

import logging

from fastapi import APIRouter, Depends

from chronoquasar.database import Store, get_store
from chronoquasar.schemas import SettingsResponse, SettingsUpdate

logger = logging.getLogger(__name__)

settings_router = APIRouter(prefix="/settings", tags=["settings"])


@settings_router.get("", response_model=SettingsResponse)
async def get_settings(store: Store = Depends(get_store)):
    return SettingsResponse(has_api_key=bool(store.api_key))


@settings_router.post("", response_model=SettingsResponse)
async def update_settings(req: SettingsUpdate, store: Store = Depends(get_store)):
    if req.plausible_api_key is not None:
        store.api_key = req.plausible_api_key
        logger.info("🔑 Plausible API key %s", "updated" if store.api_key else "cleared")
    return SettingsResponse(has_api_key=bool(store.api_key), message="Settings updated")
