"""Identity check of a candidate against the archive history."""

from typing import Iterable

from .models import Article


def is_duplicate(candidate: Article, archive: Iterable[Article]) -> bool:
    """Return True if any archived entry, anywhere in history, has the candidate's link.

    Linear in archive size.
    """
    return any(entry.link == candidate.link for entry in archive)
