"""
ChronoQuasar — Session, Article and FocusGroup models.

A session is one domain's working set for one calendar day. Articles are
kept in insertion (display) order; focus groups reference their member
articles by id and every member points back at its group through
``focus_group_id``. The session methods keep both sides consistent.
"""

from datetime import datetime, time, timedelta
from enum import Enum

from pydantic import Field, field_serializer

from chronoquasar.config import settings
from chronoquasar.errors import NotFoundError
from chronoquasar.models.base import Entity, new_id

FOCUS_COLORS = ["#3b82f6", "#10b981", "#8b5cf6", "#f59e0b", "#ef4444", "#ec4899"]


class IndexStatus(str, Enum):
    UNCHECKED = "unchecked"
    CHECKING = "checking"
    INDEXED = "indexed"
    NOT_INDEXED = "not-indexed"


class HourlySnapshot(Entity):
    hour: str                   # "YYYY-MM-DDTHH:00" in the reporting timezone
    visitors: int
    delta: int
    percent_change: float


class Article(Entity):
    id: str = Field(default_factory=new_id)
    url: str
    label: str
    title: str | None = None
    featured_image: str | None = None
    index_status: IndexStatus = IndexStatus.UNCHECKED
    is_tracking: bool = False
    focus_group_id: str | None = None

    # Timeline
    added_at: datetime = Field(default_factory=lambda: settings.now())
    indexed_at: datetime | None = None
    focus_started_at: datetime | None = None
    push_given_at: datetime | None = None

    # Newest first, capped at settings.snapshot_history_limit
    hourly_snapshots: list[HourlySnapshot] = Field(default_factory=list)


class PushStatus(Entity):
    """Stored push state; ``due`` is added on serialisation from the group's clock."""
    given: bool = False
    given_at: datetime | None = None


class FocusGroup(Entity):
    id: str = Field(default_factory=new_id)
    name: str
    start_time: str             # "HH:MM", local clock time
    color: str
    articles: list[str] = Field(default_factory=list)
    push_status: PushStatus = Field(default_factory=PushStatus)
    created_at: datetime = Field(default_factory=lambda: settings.now())

    def is_push_due(self, now: datetime | None = None) -> bool:
        """Push is due ``push_due_after_minutes`` after start_time, on now's day."""
        if self.push_status.given:
            return False
        now = now or settings.now()
        try:
            hours, minutes = (int(p) for p in self.start_time.split(":")[:2])
            started = datetime.combine(now.date(), time(hours, minutes), tzinfo=now.tzinfo)
        except ValueError:
            return False
        return now >= started + timedelta(minutes=settings.push_due_after_minutes)

    @field_serializer("push_status", mode="wrap")
    def _serialize_push_status(self, status: PushStatus, handler):
        return {"due": self.is_push_due(), **handler(status)}


class Session(Entity):
    domain_id: str
    date: str
    articles: list[Article] = Field(default_factory=list)
    focus_groups: list[FocusGroup] = Field(default_factory=list)

    # ── lookups ──

    def find_article(self, article_id: str) -> Article:
        for article in self.articles:
            if article.id == article_id:
                return article
        raise NotFoundError("Article not found")

    def find_focus_group(self, group_id: str) -> FocusGroup:
        for group in self.focus_groups:
            if group.id == group_id:
                return group
        raise NotFoundError("Focus group not found")

    def tracked_articles(self) -> list[Article]:
        return [a for a in self.articles if a.is_tracking]

    # ── articles ──

    def add_article(self, article: Article) -> Article:
        self.articles.append(article)
        return article

    def remove_article(self, article_id: str) -> Article:
        article = self.find_article(article_id)
        self.articles.remove(article)
        for group in self.focus_groups:
            if article_id in group.articles:
                group.articles.remove(article_id)
        return article

    def mark_indexed(self, article_id: str, now: datetime | None = None) -> Article:
        article = self.find_article(article_id)
        article.index_status = IndexStatus.INDEXED
        article.indexed_at = now or settings.now()
        return article

    # ── focus groups ──

    def create_focus_group(
        self,
        name: str | None = None,
        start_time: str | None = None,
        now: datetime | None = None,
    ) -> FocusGroup:
        now = now or settings.now()
        position = len(self.focus_groups)
        group = FocusGroup(
            name=name or f"Focus Set {position + 1}",
            start_time=start_time or now.strftime("%H:%M"),
            color=FOCUS_COLORS[position % len(FOCUS_COLORS)],
            created_at=now,
        )
        self.focus_groups.append(group)
        return group

    def assign_articles(
        self,
        group_id: str,
        article_ids: list[str],
        now: datetime | None = None,
    ) -> FocusGroup:
        """Add articles to a focus group and start tracking them.

        Unknown ids are ignored. An article already in another group is
        moved, so membership stays one group per article.
        """
        group = self.find_focus_group(group_id)
        now = now or settings.now()

        for article_id in article_ids:
            try:
                article = self.find_article(article_id)
            except NotFoundError:
                continue
            if article_id in group.articles:
                continue

            if article.focus_group_id and article.focus_group_id != group_id:
                for previous in self.focus_groups:
                    if previous.id == article.focus_group_id and article_id in previous.articles:
                        previous.articles.remove(article_id)

            group.articles.append(article_id)
            article.focus_group_id = group_id
            article.is_tracking = True
            article.focus_started_at = now

        return group

    def mark_push_given(
        self,
        group_id: str,
        given: bool = True,
        given_at: datetime | None = None,
    ) -> FocusGroup:
        group = self.find_focus_group(group_id)
        push_time = (given_at or settings.now()) if given else None

        group.push_status = PushStatus(given=given, given_at=push_time)
        for article_id in group.articles:
            for article in self.articles:
                if article.id == article_id:
                    article.push_given_at = push_time

        return group
