"""Best-effort LLM summary for the selected article.

The summarizer is an injected async callable (text -> summary). Any
failure, including a timeout, leaves the article with the fixed
SUMMARY_UNAVAILABLE sentinel instead of raising.
"""

import asyncio
import dataclasses
import logging
from typing import Awaitable, Callable, Optional

from ..errors import EnrichmentError
from ..prompts.loader import render
from ..utils.llm_client import get_completion_async
from .models import Article

logger = logging.getLogger(__name__)

SUMMARY_UNAVAILABLE = "Summary unavailable"

MAX_INPUT_CHARS = 4000

Summarizer = Callable[[str], Awaitable[str]]


def llm_summarizer(
    model: str,
    max_tokens: int = 200,
    timeout: Optional[float] = None,
) -> Summarizer:
    """Build a summarizer that calls an LLM through LiteLLM.

    `timeout` bounds the provider request itself; the enricher's own
    timeout still bounds the whole call.
    """

    async def summarize(text: str) -> str:
        prompt = render("summarize", text=text[:MAX_INPUT_CHARS])
        return await get_completion_async(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=max_tokens,
            temperature=0.3,
            timeout=timeout,
        )

    return summarize


class SummaryEnricher:
    """Attaches a generated summary to a single article."""

    def __init__(
        self,
        summarize: Optional[Summarizer] = None,
        timeout: float = 30.0,
        enabled: bool = True,
    ):
        """
        Initialize enricher.

        Args:
            summarize: Async callable from article text to summary text
            timeout: Upper bound for one summarize call, in seconds
            enabled: If False, every article gets the sentinel without a call
        """
        self.summarize = summarize
        self.timeout = timeout
        self.enabled = enabled and summarize is not None

    async def enrich(self, article: Article) -> Article:
        """Return a copy of the article with its summary set."""
        if not self.enabled:
            return dataclasses.replace(article, summary=SUMMARY_UNAVAILABLE)

        try:
            summary = await self._summarize(article)
        except EnrichmentError as e:
            logger.warning("[ENRICH] Summary failed for %s: %s", article.link, e)
            summary = SUMMARY_UNAVAILABLE
        else:
            logger.info("[ENRICH] Summarized %s (%d chars)", article.link, len(summary))

        return dataclasses.replace(article, summary=summary)

    async def _summarize(self, article: Article) -> str:
        text = f"{article.title}\n\n{article.content_snippet or article.content}".strip()
        try:
            result = await asyncio.wait_for(self.summarize(text), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise EnrichmentError(f"timed out after {self.timeout:.0f}s") from e
        except Exception as e:
            raise EnrichmentError(str(e) or type(e).__name__) from e

        if result is None:
            result = ""
        if not isinstance(result, str):
            raise EnrichmentError(f"unexpected response type {type(result).__name__}")
        summary = result.strip()
        if not summary:
            raise EnrichmentError("empty response")
        return summary
