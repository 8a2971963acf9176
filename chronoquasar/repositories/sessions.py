"""
Session repository — one Session per (domain_id, date).

Sessions are created lazily by ``get_or_create``. The lookup and the
insert happen without an intervening await, so on the event loop two
concurrent first accesses for the same key always get the same object.

Mutations that span an ``await`` (or that must not interleave with the
snapshot scheduler) take the per-key lock from ``lock()``. Nobody holds
a lock across a network call.
"""

import asyncio
import logging

from chronoquasar.models import Session

logger = logging.getLogger(__name__)

SessionKey = tuple[str, str]


class SessionRepository:
    def __init__(self):
        self._sessions: dict[SessionKey, Session] = {}
        self._locks: dict[SessionKey, asyncio.Lock] = {}

    def get_or_create(self, domain_id: str, date: str) -> Session:
        key = (domain_id, date)
        session = self._sessions.get(key)
        if session is None:
            session = Session(domain_id=domain_id, date=date)
            self._sessions[key] = session
            logger.debug("Created session %s/%s", domain_id, date)
        return session

    def get(self, domain_id: str, date: str) -> Session | None:
        return self._sessions.get((domain_id, date))

    def lock(self, domain_id: str, date: str) -> asyncio.Lock:
        key = (domain_id, date)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    def sessions_for(self, domain_id: str) -> list[Session]:
        return [s for (d, _), s in self._sessions.items() if d == domain_id]

    def all_sessions(self) -> list[Session]:
        return list(self._sessions.values())

    def list_sessions(self, domain_id: str) -> list[dict]:
        """Session history for a domain, newest date first."""
        summaries = [
            {
                "date": s.date,
                "article_count": len(s.articles),
                "focus_group_count": len(s.focus_groups),
            }
            for s in self.sessions_for(domain_id)
        ]
        return sorted(summaries, key=lambda s: s["date"], reverse=True)

    def article_count(self, domain_id: str) -> int:
        return sum(len(s.articles) for s in self.sessions_for(domain_id))

    def delete_domain(self, domain_id: str) -> list[Session]:
        """Drop every session of a domain and return them. Key locks stay in place."""
        keys = [k for k in self._sessions if k[0] == domain_id]
        removed = [self._sessions.pop(k) for k in keys]
        return removed
