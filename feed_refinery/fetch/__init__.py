"""
Page fetching.

This package handles HTTP downloads of article pages for the scraper.
"""

from .fetcher import (
    FetchResult,
    Fetcher,
    HttpxFetcher,
    RequestOptions,
    decode_body,
    is_html_content_type,
)

__all__ = [
    "FetchResult",
    "Fetcher",
    "HttpxFetcher",
    "RequestOptions",
    "decode_body",
    "is_html_content_type",
]
