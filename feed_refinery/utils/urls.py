"""URL helpers shared by the scraper and the rewrite engine."""

from __future__ import annotations

from urllib.parse import urljoin, urlsplit


def domain(url: str) -> str:
    """Return the host component (with port, if any) of a URL.

    Unparseable input is returned unchanged, matching how the predefined
    rule tables are searched by substring.
    """
    try:
        return urlsplit(url).netloc
    except ValueError:
        return url


def is_absolute_url(url: str) -> bool:
    if url.startswith(("https://", "http://")):
        return True
    try:
        return bool(urlsplit(url).scheme)
    except ValueError:
        return False


def resolve_url(base_url: str, relative_url: str) -> str:
    """Resolve a link found in a page against the page's base URL."""
    if relative_url.startswith("//"):
        return "https:" + relative_url
    if is_absolute_url(relative_url):
        return relative_url
    return urljoin(base_url, relative_url)
