"""FastAPI web application serving the article of the day."""

import asyncio
import html
import logging
from contextlib import asynccontextmanager
from typing import Optional
from urllib.parse import urlsplit

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse

from ..config.settings import settings
from ..errors import PersistenceError
from ..news.enricher import SUMMARY_UNAVAILABLE
from ..news.models import Article
from ..pipeline.orchestrator import Orchestrator, build_orchestrator
from ..pipeline.scheduler import DailyScheduler
from .models import ArticleData, FeedStatus, RunResponse

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "Article not yet available"


def create_app(
    orchestrator: Optional[Orchestrator] = None,
    scheduler_enabled: Optional[bool] = None,
) -> FastAPI:
    """
    Build the web app.

    Args:
        orchestrator: Pipeline to serve (default: built from settings at startup)
        scheduler_enabled: Run the daily trigger (default: settings.scheduler_enabled)
    """
    if scheduler_enabled is None:
        scheduler_enabled = settings.scheduler_enabled

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        pipeline = orchestrator or build_orchestrator(settings)
        await asyncio.get_running_loop().run_in_executor(None, pipeline.load_current)
        app.state.orchestrator = pipeline

        scheduler = None
        if scheduler_enabled:
            scheduler = DailyScheduler(pipeline, settings.schedule_hour, settings.schedule_minute)
            scheduler.start()
        try:
            yield
        finally:
            if scheduler is not None:
                await scheduler.stop()

    app = FastAPI(title="Article of the Day", lifespan=lifespan)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    @app.get("/", response_class=HTMLResponse)
    async def index(request: Request):
        """Render the current article, or a placeholder until the first run."""
        article = request.app.state.orchestrator.current_article
        return HTMLResponse(content=render_article_page(article))

    @app.get("/api/article", response_model=ArticleData)
    async def current_article(request: Request):
        """Return the current article."""
        article = request.app.state.orchestrator.current_article
        if article is None:
            raise HTTPException(status_code=404, detail=NOT_AVAILABLE)
        return ArticleData.from_article(article)

    @app.get("/api/archive", response_model=list[ArticleData])
    async def archive(request: Request):
        """Return the full archive, newest first."""
        pipeline = request.app.state.orchestrator
        try:
            entries = await asyncio.get_running_loop().run_in_executor(
                None, pipeline.archive.load
            )
        except PersistenceError as e:
            logger.error("Failed to read archive: %s", e)
            raise HTTPException(status_code=503, detail="Archive unavailable")
        return [ArticleData.from_article(a) for a in entries]

    @app.get("/api/feeds", response_model=list[FeedStatus])
    async def feeds(request: Request):
        """Return the last fetch outcome of each configured feed."""
        pipeline = request.app.state.orchestrator
        return [FeedStatus.from_source(s) for s in pipeline.fetcher.sources]

    @app.post("/api/refresh", response_model=RunResponse)
    async def refresh(request: Request):
        """Trigger a pipeline run on demand."""
        result = await request.app.state.orchestrator.run()
        return RunResponse(
            status=result.status.value,
            article=ArticleData.from_article(result.article) if result.article else None,
            error=result.error,
            stats=result.stats,
        )

    return app


def is_web_url(url: Optional[str]) -> bool:
    """Only http(s) URLs from feeds are rendered as links or images."""
    if not url:
        return False
    return urlsplit(url.strip()).scheme.lower() in ("http", "https")


def render_article_page(article: Optional[Article]) -> str:
    """Render the landing page HTML. All article fields are escaped."""
    if article is None:
        body = f"<p>{NOT_AVAILABLE}</p>"
    else:
        text = article.content_snippet
        if article.summary and article.summary != SUMMARY_UNAVAILABLE:
            text = article.summary
        image = ""
        if is_web_url(article.image_url):
            image = f'<img src="{html.escape(article.image_url)}" alt="" style="max-width: 100%;">'
        link = ""
        if is_web_url(article.link):
            link = f'<a href="{html.escape(article.link)}">Read full article</a>'
        body = f"""
    <h2>{html.escape(article.title)}</h2>
    {image}
    <p>{html.escape(text or "")}</p>
    {link}"""

    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Article of the Day</title></head>
<body style="font-family: Georgia, serif; max-width: 720px; margin: 40px auto; padding: 0 16px;">
    <h1>Article of the Day</h1>{body}
</body>
</html>"""


app = create_app()
