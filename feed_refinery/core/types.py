"""
Core data types for the entry content pipeline.

This module defines the records the pipeline works on:
- Entry: A single feed item, mutated in place by scraping and rewriting
- Feed: Per-feed settings (crawler switch, rule strings, fetch options)
- User: Per-user entry filter rules
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Entry:
    """A feed entry as produced by the feed parser.

    Attributes:
        url: Link to the original article
        title: The entry headline
        content: HTML content, never None (empty string when missing)
        author: Author name, possibly empty
        tags: Category labels attached by the feed
        date: Publication timestamp, timezone aware
        comments_url: Link to the discussion page, possibly empty
        hash: Stable identifier used to detect new entries
        id: Storage identifier, 0 when not persisted yet
    """
    url: str = ""
    title: str = ""
    content: str = ""
    author: str = ""
    tags: list[str] = field(default_factory=list)
    date: datetime = field(default_factory=_utc_now)
    comments_url: str = ""
    hash: str = ""
    id: int = 0


@dataclass
class Feed:
    """Feed-level settings consumed by the pipeline.

    Attributes:
        id: Storage identifier, used for logging only
        feed_url: URL of the feed document, used for logging only
        crawler: Whether entries of this feed should be scraped
        scraper_rules: Explicit CSS selector overriding readability
        rewrite_rules: Explicit rewrite rule list
        url_rewrite_rules: A single rewrite("search"|"replace") rule for entry URLs
        blocklist_rules: Regex; matching entries are dropped
        keeplist_rules: Regex; only matching entries are kept
        user_agent: Custom User-Agent used when scraping
        cookie: Cookie header sent when scraping
        fetch_via_proxy: Route scraping requests through the configured proxy
        allow_self_signed_certificates: Disable TLS verification when scraping
        disable_http2: Force HTTP/1.1 when scraping
        entries: Entries of the last refresh, newest first
    """
    id: int = 0
    feed_url: str = ""
    crawler: bool = False
    scraper_rules: str = ""
    rewrite_rules: str = ""
    url_rewrite_rules: str = ""
    blocklist_rules: str = ""
    keeplist_rules: str = ""
    user_agent: str = ""
    cookie: str = ""
    fetch_via_proxy: bool = False
    allow_self_signed_certificates: bool = False
    disable_http2: bool = False
    entries: list[Entry] = field(default_factory=list)


@dataclass
class User:
    """User-level filter rules; these take precedence over feed rules.

    Attributes:
        id: Storage identifier, used for logging only
        block_filter_entry_rules: Newline separated Field=Pattern lines
        keep_filter_entry_rules: Newline separated Field=Pattern lines
    """
    id: int = 0
    block_filter_entry_rules: str = ""
    keep_filter_entry_rules: str = ""
