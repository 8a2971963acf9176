"""
API Routes — health and domain CRUD.
"""

import logging

from fastapi import APIRouter, Depends, Response

from chronoquasar import __version__
from chronoquasar.config import settings as app_settings
from chronoquasar.database import Store, get_store
from chronoquasar.errors import ValidationError
from chronoquasar.models import Domain
from chronoquasar.schemas import DomainCreate, HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Health ──────────────────────────────────────────────

@router.get("/health", response_model=HealthResponse, tags=["system"])
async def health(store: Store = Depends(get_store)):
    return HealthResponse(
        status="ok",
        version=__version__,
        timestamp=app_settings.now(),
        domains=len(store.domains),
        has_api_key=bool(store.api_key),
        schedulers_enabled=app_settings.schedulers_enabled,
    )


# ── Domains ─────────────────────────────────────────────

@router.get("/domains", response_model=list[Domain], tags=["domains"])
async def list_domains(store: Store = Depends(get_store)):
    return store.domains.list()


@router.post("/domains", response_model=Domain, status_code=201, tags=["domains"])
async def create_domain(req: DomainCreate, store: Store = Depends(get_store)):
    if not req.name or not req.url:
        raise ValidationError("Name and URL are required")

    domain = store.domains.add(Domain(name=req.name, url=req.url))
    logger.info("🌐 Domain added: %s (%s)", domain.name, domain.site_id)
    return domain


@router.get("/domains/{domain_id}", response_model=Domain, tags=["domains"])
async def get_domain(domain_id: str, store: Store = Depends(get_store)):
    return store.domains.get(domain_id)


@router.delete("/domains/{domain_id}", status_code=204, response_class=Response, tags=["domains"])
async def delete_domain(domain_id: str, store: Store = Depends(get_store)):
    store.delete_domain(domain_id)
    return Response(status_code=204)
