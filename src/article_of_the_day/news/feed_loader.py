"""Load feed sources from YAML configuration."""

import logging
from pathlib import Path
from typing import Optional

import yaml

from .models import FeedSource

logger = logging.getLogger(__name__)


def load_feeds(path: Path) -> list[FeedSource]:
    """
    Load enabled feed sources from a YAML file.

    Args:
        path: Path to feeds.yaml.

    Returns:
        List of enabled FeedSource objects, in file order.
    """
    if not path.exists():
        logger.warning("[FEEDS] Feed file not found: %s", path)
        return []

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    feeds = []
    for entry in data.get("feeds", []):
        if not entry.get("enabled", True):
            continue
        feeds.append(FeedSource(url=entry["url"], name=entry.get("name")))

    logger.info("[FEEDS] Loaded %d enabled feeds from %s", len(feeds), path.name)
    return feeds


def resolve_feed_sources(
    urls: Optional[list[str]] = None,
    path: Optional[Path] = None,
) -> list[FeedSource]:
    """
    Build the ordered feed list for the fetcher.

    Explicitly configured URLs win over the feeds file. Duplicate URLs are
    dropped, keeping the first occurrence.

    Args:
        urls: Feed URLs from settings (may be empty).
        path: Fallback feeds.yaml path.

    Returns:
        Ordered list of unique FeedSource objects.
    """
    if urls:
        sources = [FeedSource(url=u) for u in urls]
    elif path is not None:
        sources = load_feeds(path)
    else:
        sources = []

    seen: set[str] = set()
    unique = []
    for source in sources:
        if source.url in seen:
            continue
        seen.add(source.url)
        unique.append(source)
    return unique
