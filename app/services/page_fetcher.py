"""Fetch recipe webpages and reduce them to plain text for the model."""

from __future__ import annotations

import logging
import re
from typing import Optional

import httpx
from bs4 import BeautifulSoup

from app.config import Settings
from app.utils.exceptions import ScrapingError

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; Chef-Choice-Bot/1.0)"
ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"

_WHITESPACE = re.compile(r"\s+")


def html_to_text(html: str, limit: int) -> str:
    """
    Visible text of an HTML document, whitespace collapsed, cut to ``limit`` chars.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    text = _WHITESPACE.sub(" ", soup.get_text(" ")).strip()
    return text[:limit]


class PageFetcher:
    """Downloads a recipe page over HTTP."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self._settings = settings
        self._transport = transport

    async def fetch_html(self, url: str) -> str:
        """
        Raises:
            ScrapingError: On transport failure or a non-2xx response
        """
        headers = {"User-Agent": USER_AGENT, "Accept": ACCEPT}
        try:
            async with httpx.AsyncClient(
                timeout=self._settings.page_fetch_timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(url, headers=headers)
        except httpx.HTTPError as e:
            logger.warning(f"Failed to fetch {url}: {str(e)}")
            raise ScrapingError(f"Failed to fetch page: {str(e) or type(e).__name__}") from e

        if not response.is_success:
            raise ScrapingError(f"HTTP {response.status_code}: {response.reason_phrase}")

        logger.info("Fetched recipe page", extra={"url": url[:200], "html_length": len(response.text)})
        return response.text

    async def fetch_text(self, url: str) -> str:
        html = await self.fetch_html(url)
        text = html_to_text(html, self._settings.max_page_text_chars)
        if not text:
            raise ScrapingError("Page has no readable text")
        return text
