"""Exception types raised inside the article pipeline."""


class ArticleOfTheDayError(Exception):
    """Base class for pipeline errors."""


class FetchError(ArticleOfTheDayError):
    """A single feed source could not be fetched or parsed."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class EnrichmentError(ArticleOfTheDayError):
    """The summarization call failed, timed out, or returned nothing usable."""


class PersistenceError(ArticleOfTheDayError):
    """The archive could not be read or written."""
