"""RSS/Atom feed fetching.

Fetches every configured source concurrently and joins the results.
A failing source is logged and contributes nothing; it never aborts
the remaining sources.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Optional

import feedparser
import httpx
from bs4 import BeautifulSoup

from ..errors import FetchError
from .models import Article, FeedSource
from .text import plain_text

logger = logging.getLogger(__name__)

_HEADERS = {"User-Agent": "article-of-the-day/1.0 (RSS reader)"}

SNIPPET_MAX_LENGTH = 500


class FeedFetcher:
    """
    Fetches articles from a fixed, ordered list of feed sources.

    Each source is requested with its own timeout. Results come back
    in source order, then entry order within each source.
    """

    def __init__(
        self,
        sources: list[FeedSource],
        timeout: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize feed fetcher.

        Args:
            sources: Feed sources to poll, in priority order
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used to stub the network)
        """
        self.sources = sources
        self.timeout = timeout
        self.transport = transport

    async def fetch_all(self) -> list[Article]:
        """
        Fetch articles from all sources concurrently.

        Returns:
            List of Article, possibly empty if every source failed
        """
        if not self.sources:
            logger.warning("[FETCHER] No feed sources configured")
            return []

        async with httpx.AsyncClient(
            follow_redirects=True,
            timeout=self.timeout,
            headers=_HEADERS,
            transport=self.transport,
        ) as client:
            results = await asyncio.gather(
                *(self._fetch_source(client, source) for source in self.sources),
                return_exceptions=True,
            )

        articles: list[Article] = []
        failed_feeds = 0
        for source, result in zip(self.sources, results):
            if isinstance(result, list):
                source.mark_ok(len(result))
                articles.extend(result)
            else:
                failed_feeds += 1
                source.mark_failed(str(result))
                logger.warning("[FETCHER] Source failed: %s (%s)", source.url, result)

        logger.info(
            "[FETCHER] Fetched %d articles from %d feeds (%d failed)",
            len(articles),
            len(self.sources) - failed_feeds,
            failed_feeds,
        )
        return articles

    async def _fetch_source(
        self, client: httpx.AsyncClient, source: FeedSource
    ) -> list[Article]:
        """Fetch and parse a single feed. Raises FetchError on failure."""
        try:
            response = await client.get(source.url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise FetchError(source.url, str(e) or type(e).__name__) from e

        feed = feedparser.parse(response.content)
        if feed.get("bozo") and not feed.get("entries"):
            reason = feed.get("bozo_exception") or "malformed feed"
            raise FetchError(source.url, str(reason))

        fetched_at = datetime.now(timezone.utc)
        articles = []
        for entry in feed.get("entries", []):
            try:
                article = self._parse_entry(entry, source.url, fetched_at)
            except Exception as e:
                logger.warning("[FETCHER] Skipping unparseable entry from %s: %s", source.url, e)
                continue
            if article is not None:
                articles.append(article)

        logger.debug("[FETCHER] %s: %d entries", source.url, len(articles))
        return articles

    def _parse_entry(
        self, entry: dict[str, Any], source_url: str, fetched_at: datetime
    ) -> Optional[Article]:
        """Convert one feed entry to an Article, or None if it has no identity."""
        link = (entry.get("link") or entry.get("id") or "").strip()
        if not link:
            return None

        content = self._extract_content(entry)
        return Article(
            link=link,
            title=(entry.get("title") or "").strip(),
            content=content,
            content_snippet=self._make_snippet(content),
            published_date=self._parse_date(entry) or fetched_at,
            source_url=source_url,
            image_url=self._extract_image(entry, content),
        )

    def _extract_content(self, entry: dict[str, Any]) -> str:
        """Prefer full content, fall back to summary/description."""
        contents = entry.get("content") or []
        for item in contents:
            value = item.get("value")
            if value:
                return value.strip()
        return (entry.get("summary") or entry.get("description") or "").strip()

    def _parse_date(self, entry: dict[str, Any]) -> Optional[datetime]:
        """Parse entry date from the parsed published/updated struct."""
        for key in ("published_parsed", "updated_parsed"):
            parsed = entry.get(key)
            if parsed:
                dt = datetime(*parsed[:6])
                return dt.replace(tzinfo=timezone.utc)
        return None

    def _make_snippet(self, content: str) -> str:
        """Display excerpt: plain text truncated to SNIPPET_MAX_LENGTH."""
        clean = plain_text(content)
        if len(clean) > SNIPPET_MAX_LENGTH:
            clean = clean[:SNIPPET_MAX_LENGTH] + "..."
        return clean

    def _extract_image(self, entry: dict[str, Any], content: str) -> Optional[str]:
        """Find a representative image: media tags, enclosures, then inline <img>."""
        for key in ("media_content", "media_thumbnail"):
            for media in entry.get(key) or []:
                url = media.get("url")
                medium = media.get("medium") or media.get("type") or "image"
                if url and medium.startswith("image"):
                    return url

        for link in entry.get("links") or []:
            if link.get("rel") == "enclosure" and (link.get("type") or "").startswith("image"):
                if link.get("href"):
                    return link["href"]

        if content and "<img" in content:
            img = BeautifulSoup(content, "html.parser").find("img")
            if img is not None and img.get("src"):
                return img["src"]

        return None
