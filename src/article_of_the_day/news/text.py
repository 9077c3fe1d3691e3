"""Markup stripping shared by the fetcher and the scorer."""

import re

from bs4 import BeautifulSoup


def plain_text(markup: str) -> str:
    """Strip HTML tags and collapse whitespace. Plain input skips the parser."""
    if not markup:
        return ""
    if "<" in markup:
        markup = BeautifulSoup(markup, "html.parser").get_text(" ")
    return re.sub(r"\s+", " ", markup).strip()
