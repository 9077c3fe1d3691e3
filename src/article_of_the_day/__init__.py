"""Article of the Day: fetch, rank, deduplicate, summarize and archive feed articles."""

__version__ = "0.1.0"
