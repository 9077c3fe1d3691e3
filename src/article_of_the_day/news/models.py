"""Data models for feed sources and fetched articles."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from .text import plain_text


@dataclass
class Article:
    """A single syndicated item, identified by its link."""

    link: str
    title: str
    content: str
    content_snippet: str
    published_date: datetime
    source_url: str
    score: int = 0  # Transient, recomputed every run
    summary: Optional[str] = None
    image_url: Optional[str] = None

    @property
    def text(self) -> str:
        """Title plus the full plain body text, as read by the scorer.

        The snippet is a truncated display excerpt, so it is only used
        when there is no content to strip.
        """
        body = plain_text(self.content) or self.content_snippet
        return f"{self.title} {body}".strip()

    def to_record(self) -> dict[str, Any]:
        """Serialize to the on-disk archive record (score is not persisted)."""
        return {
            "link": self.link,
            "title": self.title,
            "content": self.content,
            "contentSnippet": self.content_snippet,
            "summary": self.summary,
            "sourceURL": self.source_url,
            "publishedDate": self.published_date.isoformat(),
            "imageURL": self.image_url,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Article":
        """Build an Article from an archive record."""
        published = datetime.fromisoformat(record["publishedDate"])
        if published.tzinfo is None:
            published = published.replace(tzinfo=timezone.utc)

        return cls(
            link=record["link"],
            title=record.get("title", ""),
            content=record.get("content", ""),
            content_snippet=record.get("contentSnippet", ""),
            published_date=published,
            source_url=record.get("sourceURL", ""),
            summary=record.get("summary"),
            image_url=record.get("imageURL"),
        )


class FetchStatus(str, Enum):
    """Outcome of the most recent fetch of a source."""

    NEVER = "never"
    OK = "ok"
    FAILED = "failed"


@dataclass
class FeedSource:
    """A configured feed endpoint and its last fetch outcome."""

    url: str
    name: Optional[str] = None
    last_status: FetchStatus = FetchStatus.NEVER
    last_error: Optional[str] = None
    last_fetched_at: Optional[datetime] = None
    last_item_count: int = field(default=0)

    def mark_ok(self, item_count: int) -> None:
        self.last_status = FetchStatus.OK
        self.last_error = None
        self.last_item_count = item_count
        self.last_fetched_at = datetime.now(timezone.utc)

    def mark_failed(self, error: str) -> None:
        self.last_status = FetchStatus.FAILED
        self.last_error = error
        self.last_item_count = 0
        self.last_fetched_at = datetime.now(timezone.utc)
