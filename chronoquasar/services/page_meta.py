"""
Page metadata — Open Graph image/title for a freshly logged article.

Best effort: any failure returns ``{"image": None, "title": None}``.
"""

import asyncio
import logging

import aiohttp
from bs4 import BeautifulSoup

from chronoquasar.config import settings

logger = logging.getLogger(__name__)

_USER_AGENT = "Mozilla/5.0 (compatible; ChronoQuasar/1.0)"


def _meta_content(soup: BeautifulSoup, prop: str) -> str | None:
    tag = soup.find("meta", attrs={"property": prop}) or soup.find("meta", attrs={"name": prop})
    if tag and tag.get("content"):
        return tag["content"].strip() or None
    return None


def parse_page_meta(html: str) -> dict:
    """Extract og:image and og:title (falling back to <title>) from an HTML page."""
    soup = BeautifulSoup(html, "lxml")
    title = _meta_content(soup, "og:title")
    if not title and soup.title and soup.title.string:
        title = soup.title.string.strip() or None
    return {"image": _meta_content(soup, "og:image"), "title": title}


async def fetch_page_meta(page_url: str) -> dict:
    empty = {"image": None, "title": None}
    timeout = aiohttp.ClientTimeout(total=settings.page_fetch_timeout_seconds)
    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(
                page_url,
                allow_redirects=True,
                headers={"User-Agent": _USER_AGENT},
            ) as resp:
                if resp.status != 200:
                    return empty
                html = await resp.text(errors="replace")
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        logger.error("Failed to fetch OG data for %s: %s", page_url, e)
        return empty

    return parse_page_meta(html)
