"""
ChronoQuasar — Session API routes.

Daily sessions, their articles, focus sets and search-index checks.
Every session mutation runs under that session's key lock; page-metadata
and index lookups happen before or between lock sections, never inside.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, Query, Response

from chronoquasar.config import settings
from chronoquasar.database import Store, get_store
from chronoquasar.errors import ValidationError, validate_session_date, validate_start_time
from chronoquasar.models import Article, FocusGroup, IndexStatus, Session
from chronoquasar.schemas import (
    ArticleCreate,
    ArticleDetail,
    ArticleUpdate,
    DateBody,
    FocusGroupAssign,
    FocusGroupCreate,
    FocusGroupSummary,
    IndexCheckBatchResponse,
    IndexCheckResult,
    PushUpdate,
    SessionSummary,
    TrackingResponse,
)
from chronoquasar.services import index_checker
from chronoquasar.services.analytics import prime_article_analytics
from chronoquasar.services.page_meta import fetch_page_meta

logger = logging.getLogger(__name__)

session_router = APIRouter(prefix="/domains/{domain_id}", tags=["sessions"])


def _date(date: str | None) -> str:
    return validate_session_date(date) if date else settings.today()


def _apply_index_result(article: Article, result: str) -> None:
    if result == index_checker.INDEXED:
        article.index_status = IndexStatus.INDEXED
        article.indexed_at = article.indexed_at or settings.now()
    elif result == index_checker.NOT_INDEXED:
        article.index_status = IndexStatus.NOT_INDEXED
    else:
        article.index_status = IndexStatus.UNCHECKED


# ── Sessions ────────────────────────────────────────────

@session_router.get("/sessions", response_model=list[SessionSummary])
async def list_sessions(domain_id: str, store: Store = Depends(get_store)):
    store.domains.get(domain_id)
    return [SessionSummary(**s) for s in store.sessions.list_sessions(domain_id)]


@session_router.get("/session", response_model=Session)
async def get_today_session(domain_id: str, store: Store = Depends(get_store)):
    return store.session_for(domain_id)


@session_router.get("/session/{date}", response_model=Session)
async def get_session(domain_id: str, date: str, store: Store = Depends(get_store)):
    return store.session_for(domain_id, validate_session_date(date))


# ── Articles ────────────────────────────────────────────

@session_router.post("/session/articles", response_model=Article, status_code=201)
async def add_article(domain_id: str, req: ArticleCreate, store: Store = Depends(get_store)):
    if not req.url:
        raise ValidationError("URL is required")
    date = _date(req.date)
    store.domains.get(domain_id)

    meta = await fetch_page_meta(req.url)
    article = Article(
        url=req.url,
        label=req.label or meta["title"] or req.url,
        title=meta["title"] or req.label or req.url,
        featured_image=meta["image"],
    )

    async with store.sessions.lock(domain_id, date):
        store.session_for(domain_id, date).add_article(article)
    store.recount(domain_id)

    logger.info("📝 Article added to %s/%s: %s", domain_id, date, article.label)
    return article


@session_router.get("/session/articles/{article_id}", response_model=ArticleDetail)
async def get_article(
    domain_id: str,
    article_id: str,
    date: str | None = Query(None),
    store: Store = Depends(get_store),
):
    session = store.session_for(domain_id, _date(date))
    article = session.find_article(article_id)

    focus_group = None
    if article.focus_group_id:
        group = next((g for g in session.focus_groups if g.id == article.focus_group_id), None)
        if group:
            focus_group = FocusGroupSummary(id=group.id, name=group.name, color=group.color)

    return ArticleDetail(**article.model_dump(), focus_group=focus_group)


@session_router.patch("/session/articles/{article_id}", response_model=Article)
async def update_article(
    domain_id: str,
    article_id: str,
    req: ArticleUpdate,
    store: Store = Depends(get_store),
):
    """Toggle tracking and/or set the index status by hand.

    Turning tracking off leaves focus-set membership untouched.
    """
    date = _date(req.date)
    async with store.sessions.lock(domain_id, date):
        article = store.session_for(domain_id, date).find_article(article_id)
        if req.is_tracking is not None:
            article.is_tracking = req.is_tracking
        if req.index_status is not None:
            article.index_status = req.index_status
    return article


@session_router.patch("/session/articles/{article_id}/indexed", response_model=Article)
async def mark_article_indexed(
    domain_id: str,
    article_id: str,
    req: DateBody | None = None,
    store: Store = Depends(get_store),
):
    date = _date(req.date if req else None)
    async with store.sessions.lock(domain_id, date):
        return store.session_for(domain_id, date).mark_indexed(article_id)


@session_router.delete(
    "/session/articles/{article_id}", status_code=204, response_class=Response
)
async def delete_article(
    domain_id: str,
    article_id: str,
    date: str | None = Query(None),
    store: Store = Depends(get_store),
):
    date = _date(date)
    async with store.sessions.lock(domain_id, date):
        store.session_for(domain_id, date).remove_article(article_id)
    store.cache.invalidate(article_id)
    store.recount(domain_id)
    return Response(status_code=204)


@session_router.post("/session/articles/{article_id}/promote", response_model=Article)
async def promote_article(
    domain_id: str,
    article_id: str,
    date: str | None = Query(None),
    store: Store = Depends(get_store),
):
    """Start tracking an article and fetch its analytics right away."""
    date = _date(date)
    async with store.sessions.lock(domain_id, date):
        article = store.session_for(domain_id, date).find_article(article_id)
        article.is_tracking = True

    await prime_article_analytics(store, store.domains.get(domain_id), article)
    return article


# ── Search index ────────────────────────────────────────

@session_router.post("/session/articles/{article_id}/check-index", response_model=Article)
async def check_article_index(
    domain_id: str,
    article_id: str,
    date: str | None = Query(None),
    store: Store = Depends(get_store),
):
    date = _date(date)
    async with store.sessions.lock(domain_id, date):
        article = store.session_for(domain_id, date).find_article(article_id)
        article.index_status = IndexStatus.CHECKING

    result = await index_checker.check_search_index(article.url)

    async with store.sessions.lock(domain_id, date):
        _apply_index_result(article, result)
    return article


@session_router.post("/session/check-index", response_model=IndexCheckBatchResponse)
async def check_session_index(
    domain_id: str,
    date: str | None = Query(None),
    store: Store = Depends(get_store),
):
    """Check every article of the session, one at a time with a pause in between."""
    date = _date(date)
    async with store.sessions.lock(domain_id, date):
        articles = list(store.session_for(domain_id, date).articles)
        for article in articles:
            article.index_status = IndexStatus.CHECKING

    results: list[IndexCheckResult] = []
    for article in articles:
        result = await index_checker.check_search_index(article.url)
        async with store.sessions.lock(domain_id, date):
            _apply_index_result(article, result)
        results.append(IndexCheckResult(id=article.id, index_status=article.index_status))
        await asyncio.sleep(settings.index_check_delay_seconds)

    return IndexCheckBatchResponse(checked=len(results), results=results)


# ── Focus sets ──────────────────────────────────────────

@session_router.post("/session/focus-groups", response_model=FocusGroup, status_code=201)
async def create_focus_group(
    domain_id: str,
    req: FocusGroupCreate | None = None,
    store: Store = Depends(get_store),
):
    req = req or FocusGroupCreate()
    date = _date(req.date)
    if req.start_time:
        validate_start_time(req.start_time)

    async with store.sessions.lock(domain_id, date):
        return store.session_for(domain_id, date).create_focus_group(
            name=req.name, start_time=req.start_time,
        )


@session_router.post("/session/focus-groups/{group_id}/articles", response_model=FocusGroup)
async def assign_focus_group_articles(
    domain_id: str,
    group_id: str,
    req: FocusGroupAssign,
    store: Store = Depends(get_store),
):
    date = _date(req.date)
    async with store.sessions.lock(domain_id, date):
        return store.session_for(domain_id, date).assign_articles(group_id, req.article_ids)


@session_router.patch("/session/focus-groups/{group_id}/push", response_model=FocusGroup)
async def mark_push(
    domain_id: str,
    group_id: str,
    req: PushUpdate | None = None,
    store: Store = Depends(get_store),
):
    req = req or PushUpdate()
    date = _date(req.date)
    async with store.sessions.lock(domain_id, date):
        return store.session_for(domain_id, date).mark_push_given(
            group_id, given=req.given, given_at=req.given_at,
        )


# ── Tracking view ───────────────────────────────────────

@session_router.get("/tracking", response_model=TrackingResponse)
async def get_tracking(
    domain_id: str,
    focus_group_id: str | None = Query(None, alias="focusGroupId"),
    date: str | None = Query(None),
    store: Store = Depends(get_store),
):
    """Tracked articles of a session (optionally one focus set) with their snapshots."""
    session = store.session_for(domain_id, _date(date))
    articles = session.tracked_articles()

    focus_group = None
    if focus_group_id:
        focus_group = session.find_focus_group(focus_group_id)
        articles = [a for a in articles if a.focus_group_id == focus_group_id]

    return TrackingResponse(focus_group=focus_group, articles=articles)
