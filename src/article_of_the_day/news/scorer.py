"""Keyword relevance scoring for fetched articles."""

import logging
from typing import Iterable, Optional

from .models import Article

logger = logging.getLogger(__name__)


class RelevanceScorer:
    """
    Scores articles against a fixed keyword vocabulary.

    Score = occurrences of each keyword as a case-insensitive substring
    of the article text, plus one point if the text is longer than
    the length threshold. Deterministic, no stemming.
    """

    def __init__(self, keywords: Iterable[str], length_bonus_threshold: int = 100):
        self.keywords = list(dict.fromkeys(k.lower() for k in keywords if k))
        self.length_bonus_threshold = length_bonus_threshold

    def score(self, article: Article) -> int:
        text = article.text
        lowered = text.lower()
        total = sum(lowered.count(keyword) for keyword in self.keywords)
        if len(text) > self.length_bonus_threshold:
            total += 1
        return total

    def select_best(self, articles: list[Article]) -> Optional[Article]:
        """
        Score every candidate and return the highest scoring one.

        Ties go to the candidate that appears first in fetch order.

        Returns:
            The winning Article, or None for an empty batch
        """
        best: Optional[Article] = None
        for article in articles:
            article.score = self.score(article)
            # Strict comparison keeps the earliest candidate on ties
            if best is None or article.score > best.score:
                best = article

        if best is not None:
            logger.info(
                "[SCORER] Selected %r (score=%d) from %d candidates",
                best.title,
                best.score,
                len(articles),
            )
        return best
