"""Feed acquisition, scoring, deduplication and summary enrichment."""

from .dedup import is_duplicate
from .enricher import SUMMARY_UNAVAILABLE, SummaryEnricher, llm_summarizer
from .fetcher import FeedFetcher
from .models import Article, FeedSource, FetchStatus
from .scorer import RelevanceScorer

__all__ = [
    "Article",
    "FeedSource",
    "FetchStatus",
    "FeedFetcher",
    "RelevanceScorer",
    "is_duplicate",
    "SummaryEnricher",
    "SUMMARY_UNAVAILABLE",
    "llm_summarizer",
]
