"""
Search-index checker — is a URL in Google's index?

Runs a ``site:<url>`` search and looks at the result page. Advisory
only: anything unexpected comes back as ``"unknown"``.
"""

import asyncio
import logging
from urllib.parse import quote

import aiohttp

from chronoquasar.config import settings

logger = logging.getLogger(__name__)

INDEXED = "indexed"
NOT_INDEXED = "not-indexed"
UNKNOWN = "unknown"

SEARCH_URL = "https://www.google.com/search"
_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml",
    "Accept-Language": "en-US,en;q=0.9",
}
_NO_RESULTS = ("did not match any documents", "No results found")


def _host_of(page_url: str) -> str:
    without_scheme = page_url.split("://", 1)[-1]
    return without_scheme.split("/", 1)[0]


def classify_results(html: str, page_url: str) -> str:
    if any(marker in html for marker in _NO_RESULTS):
        return NOT_INDEXED
    if _host_of(page_url) not in html:
        return NOT_INDEXED
    return INDEXED


async def check_search_index(page_url: str) -> str:
    timeout = aiohttp.ClientTimeout(total=settings.index_check_timeout_seconds)
    query = quote(f"site:{page_url}", safe="")
    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(f"{SEARCH_URL}?q={query}", headers=_HEADERS) as resp:
                if resp.status != 200:
                    logger.error("Google search failed: %d", resp.status)
                    return UNKNOWN
                html = await resp.text(errors="replace")
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logger.error("Failed to check Google index for %s: %s", page_url, e)
        return UNKNOWN

    return classify_results(html, page_url)
