"""Pydantic response models for the web API."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ..news.models import Article, FeedSource


class ArticleData(BaseModel):
    """An archived article as exposed over HTTP."""

    link: str
    title: str
    content: str
    content_snippet: str
    summary: Optional[str] = None
    source_url: str
    published_date: datetime
    image_url: Optional[str] = None

    @classmethod
    def from_article(cls, article: Article) -> "ArticleData":
        return cls(
            link=article.link,
            title=article.title,
            content=article.content,
            content_snippet=article.content_snippet,
            summary=article.summary,
            source_url=article.source_url,
            published_date=article.published_date,
            image_url=article.image_url,
        )


class RunResponse(BaseModel):
    """Result of an on-demand pipeline run."""

    status: str
    article: Optional[ArticleData] = None
    error: Optional[str] = None
    stats: dict = {}


class FeedStatus(BaseModel):
    """Last fetch outcome of a configured feed."""

    url: str
    name: Optional[str] = None
    last_status: str
    last_error: Optional[str] = None
    last_fetched_at: Optional[datetime] = None
    last_item_count: int = 0

    @classmethod
    def from_source(cls, source: FeedSource) -> "FeedStatus":
        return cls(
            url=source.url,
            name=source.name,
            last_status=source.last_status.value,
            last_error=source.last_error,
            last_fetched_at=source.last_fetched_at,
            last_item_count=source.last_item_count,
        )
