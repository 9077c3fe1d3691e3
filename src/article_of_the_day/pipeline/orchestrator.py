"""Orchestrator for the article-of-the-day pipeline.

One run per trigger:
1. Fetch all feeds (concurrently, joined)
2. Score every candidate and pick the best (first wins on ties)
3. Reject it if its link is already archived
4. Enrich the winner with a summary (best effort)
5. Append it to the archive
6. On success, refresh the cached current article
"""

import asyncio
import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..config.settings import Settings
from ..errors import PersistenceError
from ..news.dedup import is_duplicate
from ..news.enricher import SummaryEnricher, llm_summarizer
from ..news.feed_loader import resolve_feed_sources
from ..news.fetcher import FeedFetcher
from ..news.models import Article
from ..news.scorer import RelevanceScorer
from ..storage.archive import AppendStatus, ArchiveStore

logger = logging.getLogger(__name__)


class RunStatus(str, Enum):
    APPENDED = "appended"
    EMPTY_BATCH = "empty_batch"
    DUPLICATE = "duplicate"
    PERSISTENCE_ERROR = "persistence_error"
    BUSY = "busy"
    FAILED = "failed"


@dataclass
class RunResult:
    """Outcome of one pipeline run."""

    status: RunStatus
    article: Optional[Article] = None
    error: Optional[str] = None
    stats: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """False only for runs that hit an error."""
        return self.status not in (RunStatus.PERSISTENCE_ERROR, RunStatus.FAILED)


class Orchestrator:
    """
    Sequences pipeline runs and owns the cached current article.

    Only one run executes at a time. A trigger that arrives while a run
    is in progress is dropped and reported as BUSY.
    """

    def __init__(
        self,
        fetcher: FeedFetcher,
        scorer: RelevanceScorer,
        enricher: SummaryEnricher,
        archive: ArchiveStore,
    ):
        self.fetcher = fetcher
        self.scorer = scorer
        self.enricher = enricher
        self.archive = archive

        self._run_lock = threading.Lock()
        self._current: Optional[Article] = None

    @property
    def current_article(self) -> Optional[Article]:
        return self._current

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    def load_current(self) -> Optional[Article]:
        """Populate the cache from the archive head. Call once at startup."""
        try:
            self._current = self.archive.head()
        except PersistenceError as e:
            logger.error("[PIPELINE] Could not load current article: %s", e)
            self._current = None

        if self._current is not None:
            logger.info("[PIPELINE] Current article: %s", self._current.link)
        else:
            logger.info("[PIPELINE] No archived article yet")
        return self._current

    async def run(self) -> RunResult:
        """Execute one run. Never raises; errors are reported in the result."""
        if not self._run_lock.acquire(blocking=False):
            logger.warning("[PIPELINE] Run already in progress, dropping trigger")
            return RunResult(status=RunStatus.BUSY)

        try:
            return await self._run()
        except Exception as e:
            logger.exception("[PIPELINE] Run failed")
            return RunResult(status=RunStatus.FAILED, error=str(e))
        finally:
            self._run_lock.release()

    async def _run(self) -> RunResult:
        run_start = time.time()
        loop = asyncio.get_running_loop()

        # Step 1: Fetch
        articles = await self.fetcher.fetch_all()
        stats = {"candidates": len(articles)}

        # Step 2: Score and select
        best = self.scorer.select_best(articles)
        if best is None:
            logger.info("[PIPELINE] No candidates fetched, nothing to do")
            return RunResult(status=RunStatus.EMPTY_BATCH, stats=self._finish(stats, run_start))
        stats["score"] = best.score

        # Step 3: Dedup against full history
        try:
            history = await loop.run_in_executor(None, self.archive.load)
        except PersistenceError as e:
            logger.error("[PIPELINE] %s", e)
            return RunResult(
                status=RunStatus.PERSISTENCE_ERROR,
                article=best,
                error=str(e),
                stats=self._finish(stats, run_start),
            )

        if is_duplicate(best, history):
            logger.info("[PIPELINE] Best candidate already archived: %s", best.link)
            return RunResult(
                status=RunStatus.DUPLICATE, article=best, stats=self._finish(stats, run_start)
            )

        # Step 4: Enrich (winner only)
        enriched = await self.enricher.enrich(best)

        # Step 5: Persist
        result = await loop.run_in_executor(None, self.archive.append, enriched)
        stats = self._finish(stats, run_start)

        if result.status == AppendStatus.DUPLICATE:
            return RunResult(status=RunStatus.DUPLICATE, article=enriched, stats=stats)
        if result.status == AppendStatus.PERSISTENCE_ERROR:
            return RunResult(
                status=RunStatus.PERSISTENCE_ERROR,
                article=enriched,
                error=result.error,
                stats=stats,
            )

        # Step 6: Refresh cache
        self._current = result.entries[0]
        stats["archive_size"] = len(result.entries)
        logger.info(
            "[PIPELINE] Appended %r in %.1fs", self._current.title, stats["duration_seconds"]
        )
        return RunResult(status=RunStatus.APPENDED, article=self._current, stats=stats)

    def _finish(self, stats: dict, run_start: float) -> dict:
        stats["duration_seconds"] = round(time.time() - run_start, 2)
        return stats

    def run_sync(self) -> RunResult:
        """Synchronous wrapper for run()."""
        return asyncio.run(self.run())


def build_orchestrator(settings: Settings) -> Orchestrator:
    """Wire the pipeline components from settings."""
    sources = resolve_feed_sources(settings.feed_sources, settings.feeds_file)
    summarizer = llm_summarizer(
        settings.summary_model,
        settings.summary_max_tokens,
        timeout=settings.enrichment_timeout,
    )

    return Orchestrator(
        fetcher=FeedFetcher(sources, timeout=settings.fetch_timeout),
        scorer=RelevanceScorer(settings.relevance_keywords, settings.length_bonus_threshold),
        enricher=SummaryEnricher(
            summarize=summarizer,
            timeout=settings.enrichment_timeout,
            enabled=settings.enrichment_enabled,
        ),
        archive=ArchiveStore(settings.archive_path),
    )
