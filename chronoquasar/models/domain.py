"""
ChronoQuasar — Domain model.

A domain is a website the editorial team publishes to. Its host name is
the Plausible ``site_id``.
"""

import re
from datetime import datetime
from urllib.parse import urlparse

from pydantic import Field

from chronoquasar.config import settings
from chronoquasar.models.base import Entity, new_id


def site_id_from_url(url: str) -> str:
    """Return the analytics site id for *url*: its host without a leading ``www.``."""
    try:
        host = urlparse(url).hostname
    except ValueError:
        host = None
    if not host:
        return url
    return re.sub(r"^www\.", "", host)


class Domain(Entity):
    id: str = Field(default_factory=new_id)
    name: str
    url: str
    created_at: datetime = Field(default_factory=lambda: settings.now())

    # Number of articles across all of the domain's sessions (kept by the store)
    url_count: int = 0

    @property
    def site_id(self) -> str:
        return site_id_from_url(self.url)

    def __repr__(self):
        return f"<Domain {self.name} ({self.url})>"
