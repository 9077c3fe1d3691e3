"""Tests for pipeline.orchestrator module."""

import asyncio
import threading
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock, patch

import httpx

from article_of_the_day.config.settings import Settings
from article_of_the_day.news.enricher import SUMMARY_UNAVAILABLE, SummaryEnricher
from article_of_the_day.news.fetcher import FeedFetcher
from article_of_the_day.news.models import Article, FeedSource
from article_of_the_day.news.scorer import RelevanceScorer
from article_of_the_day.pipeline.orchestrator import Orchestrator, RunStatus, build_orchestrator
from article_of_the_day.storage.archive import ArchiveStore

KEYWORDS = ["art", "philosophy", "aesthetics", "painting", "sculpture", "modern"]


def _article(link: str, title: str = "", content: str = "") -> Article:
    return Article(
        link=link,
        title=title or f"Title {link}",
        content=content,
        content_snippet=content,
        published_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        source_url="https://example.com/rss",
    )


class StubFetcher:
    """Returns a fixed batch, fresh copies every call."""

    def __init__(self, batch=None, error: Exception = None, delay: float = 0.0):
        self.batch = batch or []
        self.error = error
        self.delay = delay
        self.sources = []
        self.calls = 0

    async def fetch_all(self) -> list[Article]:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return [
            _article(a.link, a.title, a.content) for a in self.batch
        ]


def _orchestrator(tmp_path: Path, fetcher, summarize=None, timeout: float = 5) -> Orchestrator:
    return Orchestrator(
        fetcher=fetcher,
        scorer=RelevanceScorer(KEYWORDS, length_bonus_threshold=100),
        enricher=SummaryEnricher(
            summarize=summarize or AsyncMock(return_value="A summary."), timeout=timeout
        ),
        archive=ArchiveStore(tmp_path / "archive.json"),
    )


def _seed_archive(store: ArchiveStore, links: list[str]) -> None:
    for link in reversed(links):
        store.append(_article(link))


class TestRun:
    def test_one_failed_source_still_appends(self, tmp_path: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "b.example.com":
                raise httpx.ConnectError("unreachable")
            return httpx.Response(200, content=b"""<?xml version="1.0"?>
<rss version="2.0"><channel><title>A</title><link>https://a.example.com</link>
<description>A</description>
<item><title>On Beauty</title><link>https://a.example.com/a1</link>
<description>A study of art and aesthetics today.</description></item>
</channel></rss>""")

        fetcher = FeedFetcher(
            [FeedSource(url="https://a.example.com/rss"), FeedSource(url="https://b.example.com/rss")],
            transport=httpx.MockTransport(handler),
        )
        orchestrator = _orchestrator(tmp_path, fetcher)

        result = asyncio.run(orchestrator.run())

        assert result.status == RunStatus.APPENDED
        archived = orchestrator.archive.load()
        assert [a.link for a in archived] == ["https://a.example.com/a1"]
        assert archived[0].summary == "A summary."
        assert orchestrator.current_article.link == "https://a.example.com/a1"

    def test_duplicate_anywhere_in_history_changes_nothing(self, tmp_path: Path) -> None:
        links = [f"x{i}" for i in range(10)]
        links[5] = "a1"
        summarize = AsyncMock(return_value="A summary.")
        orchestrator = _orchestrator(tmp_path, StubFetcher([_article("a1", "Art")]), summarize)
        _seed_archive(orchestrator.archive, links)
        orchestrator.load_current()
        cached = orchestrator.current_article
        before = orchestrator.archive.path.read_bytes()

        result = asyncio.run(orchestrator.run())

        assert result.status == RunStatus.DUPLICATE
        assert orchestrator.archive.path.read_bytes() == before
        assert len(orchestrator.archive.load()) == 10
        assert orchestrator.current_article is cached
        assert orchestrator.current_article.link == "x0"
        summarize.assert_not_awaited()

    def test_selects_most_relevant_candidate(self, tmp_path: Path) -> None:
        c1 = _article(
            "c1",
            "On Seeing",
            "Philosophy of art asks what we value in art, and philosophy of mind asks "
            "how we perceive it. Such questions remain open in every gallery we visit today.",
        )
        c2 = _article("c2", "Weather", "Local weather report for Tuesday")
        orchestrator = _orchestrator(tmp_path, StubFetcher([c2, c1]))

        result = asyncio.run(orchestrator.run())

        assert result.status == RunStatus.APPENDED
        assert result.article.link == "c1"

    def test_enrichment_failure_still_appends_with_sentinel(self, tmp_path: Path) -> None:
        summarize = AsyncMock(side_effect=TimeoutError("model timed out"))
        orchestrator = _orchestrator(tmp_path, StubFetcher([_article("a1", "Art")]), summarize)
        _seed_archive(orchestrator.archive, ["x0", "x1"])

        result = asyncio.run(orchestrator.run())

        assert result.status == RunStatus.APPENDED
        assert result.ok
        archived = orchestrator.archive.load()
        assert len(archived) == 3
        assert archived[0].link == "a1"
        assert archived[0].summary == SUMMARY_UNAVAILABLE

    def test_enrichment_timeout_still_appends_with_sentinel(self, tmp_path: Path) -> None:
        async def slow(text: str) -> str:
            await asyncio.sleep(10)
            return "late"

        orchestrator = _orchestrator(
            tmp_path, StubFetcher([_article("a1", "Art")]), summarize=slow, timeout=0.05
        )

        result = asyncio.run(orchestrator.run())

        assert result.status == RunStatus.APPENDED
        assert orchestrator.archive.head().summary == SUMMARY_UNAVAILABLE

    def test_enriches_only_the_winner(self, tmp_path: Path) -> None:
        summarize = AsyncMock(return_value="A summary.")
        batch = [_article("a1", "Art"), _article("a2", "Modern art"), _article("a3", "News")]
        orchestrator = _orchestrator(tmp_path, StubFetcher(batch), summarize)

        asyncio.run(orchestrator.run())

        summarize.assert_awaited_once()
        assert "Modern art" in summarize.await_args.args[0]

    def test_total_failure_leaves_state_identical(self, tmp_path: Path) -> None:
        orchestrator = _orchestrator(tmp_path, StubFetcher([]))
        _seed_archive(orchestrator.archive, ["x0", "x1"])
        orchestrator.load_current()
        cached = orchestrator.current_article
        before = orchestrator.archive.path.read_bytes()

        result = asyncio.run(orchestrator.run())

        assert result.status == RunStatus.EMPTY_BATCH
        assert orchestrator.archive.path.read_bytes() == before
        assert orchestrator.current_article is cached

    def test_rerun_with_unchanged_feed_is_duplicate(self, tmp_path: Path) -> None:
        orchestrator = _orchestrator(tmp_path, StubFetcher([_article("a1", "Art")]))

        first = asyncio.run(orchestrator.run())
        before = orchestrator.archive.path.read_bytes()
        second = asyncio.run(orchestrator.run())

        assert first.status == RunStatus.APPENDED
        assert second.status == RunStatus.DUPLICATE
        assert orchestrator.archive.path.read_bytes() == before

    def test_persistence_error_is_reported_and_next_run_retries(self, tmp_path: Path) -> None:
        orchestrator = _orchestrator(tmp_path, StubFetcher([_article("a1", "Art")]))
        _seed_archive(orchestrator.archive, ["x0"])
        orchestrator.load_current()
        before = orchestrator.archive.path.read_bytes()

        with patch("article_of_the_day.storage.archive.os.replace", side_effect=OSError("read-only")):
            failed = asyncio.run(orchestrator.run())

        assert failed.status == RunStatus.PERSISTENCE_ERROR
        assert not failed.ok
        assert "read-only" in failed.error
        assert orchestrator.archive.path.read_bytes() == before
        assert orchestrator.current_article.link == "x0"

        retried = asyncio.run(orchestrator.run())

        assert retried.status == RunStatus.APPENDED
        assert orchestrator.current_article.link == "a1"

    def test_unreadable_archive_is_persistence_error(self, tmp_path: Path) -> None:
        orchestrator = _orchestrator(tmp_path, StubFetcher([_article("a1", "Art")]))
        orchestrator.archive.path.write_text("not json")

        result = asyncio.run(orchestrator.run())

        assert result.status == RunStatus.PERSISTENCE_ERROR
        assert orchestrator.archive.path.read_text() == "not json"

    def test_unexpected_error_is_contained(self, tmp_path: Path) -> None:
        orchestrator = _orchestrator(tmp_path, StubFetcher(error=RuntimeError("boom")))

        result = asyncio.run(orchestrator.run())

        assert result.status == RunStatus.FAILED
        assert result.error == "boom"
        assert orchestrator.is_running is False


class TestConcurrency:
    def test_trigger_during_run_is_dropped(self, tmp_path: Path) -> None:
        fetcher = StubFetcher([_article("a1", "Art")], delay=0.1)
        orchestrator = _orchestrator(tmp_path, fetcher)

        async def trigger_twice():
            return await asyncio.gather(orchestrator.run(), orchestrator.run())

        first, second = asyncio.run(trigger_twice())

        assert {first.status, second.status} == {RunStatus.APPENDED, RunStatus.BUSY}
        assert fetcher.calls == 1
        assert len(orchestrator.archive.load()) == 1

    def test_concurrent_runs_on_shared_archive_serialize_writes(self, tmp_path: Path) -> None:
        orchestrators = [
            _orchestrator(tmp_path, StubFetcher([_article(f"a{i}", "Art")])) for i in range(6)
        ]
        orchestrators += [_orchestrator(tmp_path, StubFetcher([_article("a0", "Art")]))]
        results = []

        def worker(o: Orchestrator) -> None:
            results.append(o.run_sync().status)

        threads = [threading.Thread(target=worker, args=(o,)) for o in orchestrators]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        archived = [a.link for a in ArchiveStore(tmp_path / "archive.json").load()]
        assert sorted(archived) == [f"a{i}" for i in range(6)]
        assert results.count(RunStatus.APPENDED) == 6
        assert results.count(RunStatus.DUPLICATE) == 1


class TestLoadCurrent:
    def test_no_archive_means_no_current_article(self, tmp_path: Path) -> None:
        orchestrator = _orchestrator(tmp_path, StubFetcher([_article("a1", "Art")]))

        assert orchestrator.load_current() is None
        assert orchestrator.current_article is None

        asyncio.run(orchestrator.run())

        assert orchestrator.current_article.link == "a1"

    def test_loads_archive_head(self, tmp_path: Path) -> None:
        orchestrator = _orchestrator(tmp_path, StubFetcher())
        _seed_archive(orchestrator.archive, ["x0", "x1"])

        assert orchestrator.load_current().link == "x0"

    def test_unreadable_archive_leaves_cache_empty(self, tmp_path: Path) -> None:
        orchestrator = _orchestrator(tmp_path, StubFetcher())
        orchestrator.archive.path.write_text("{")

        assert orchestrator.load_current() is None


class TestBuildOrchestrator:
    @patch("article_of_the_day.pipeline.orchestrator.llm_summarizer")
    def test_wires_settings_into_components(self, mock_summarizer, tmp_path: Path) -> None:
        settings = Settings(
            feed_sources=["https://example.com/rss"],
            enrichment_timeout=12.5,
            summary_model="test-model",
            summary_max_tokens=50,
            archive_path=tmp_path / "archive.json",
        )

        orchestrator = build_orchestrator(settings)

        mock_summarizer.assert_called_once_with("test-model", 50, timeout=12.5)
        assert [s.url for s in orchestrator.fetcher.sources] == ["https://example.com/rss"]
        assert orchestrator.enricher.timeout == 12.5
        assert orchestrator.archive.path == tmp_path / "archive.json"
