"""
Entry processing pipeline for a refreshed feed.

For every entry, oldest first:
1. Drop it when blocked or not allowed by the filter rules
2. Compute the website URL (entry URL after the feed's URL rewrite rule)
3. Scrape the full article when the feed crawls and the entry is new
   (or a refresh is forced); a failed scrape keeps the feed content
4. Apply the rewrite rules
5. Sanitize the content, always last
"""

from __future__ import annotations

import logging
from typing import Callable

from .config import AppConfig
from .core.types import Entry, Feed, User
from .errors import ScraperError
from .fetch.fetcher import Fetcher, HttpxFetcher, RequestOptions
from .filtering import is_allowed_entry, is_blocked_entry
from .logging_utils import log_event
from .rewrite import Rewriter, rewrite_entry_url
from .rules import DEFAULT_RULES, PredefinedRules
from .scrape import Scraper

logger = logging.getLogger(__name__)

Sanitizer = Callable[[str, str], str]
NewEntryCheck = Callable[[Feed, Entry], bool]


def passthrough_sanitizer(base_url: str, content: str) -> str:
    return content


def process_feed_entries(
    feed: Feed,
    user: User,
    *,
    fetcher: Fetcher | None = None,
    rules: PredefinedRules = DEFAULT_RULES,
    cfg: AppConfig | None = None,
    is_new_entry: NewEntryCheck | None = None,
    force_refresh: bool = False,
    sanitize: Sanitizer | None = None,
) -> list[Entry]:
    """Filter, scrape, rewrite and sanitize the entries of a feed.

    Args:
        feed: The refreshed feed; feed.entries is replaced with the kept
            entries, in processing order
        user: Owner of the feed, for the user filter rules
        fetcher: Page downloader, HttpxFetcher by default
        rules: Predefined per-domain rule tables
        cfg: Application configuration, defaults when omitted
        is_new_entry: Tells whether an entry was not seen before; every
            entry counts as new when omitted
        force_refresh: Scrape even entries that are not new
        sanitize: (base_url, content) -> content, applied last

    Returns:
        The kept entries
    """
    cfg = cfg or AppConfig()
    fetcher = fetcher or HttpxFetcher()
    sanitize = sanitize or passthrough_sanitizer
    scraper = Scraper(fetcher, rules=rules, max_link_hops=cfg.scraper.max_link_hops)
    rewriter = Rewriter(rules=rules, cfg=cfg.rewrite)

    kept: list[Entry] = []
    # Feeds list the newest entries first.
    for entry in reversed(feed.entries):
        log_event(
            logger,
            "Processing entry",
            level=logging.DEBUG,
            event="process_entry",
            user_id=user.id,
            entry_url=entry.url,
            entry_hash=entry.hash,
            entry_title=entry.title,
            feed_id=feed.id,
            feed_url=feed.feed_url,
        )

        if is_blocked_entry(feed, entry, user) or not is_allowed_entry(feed, entry, user):
            continue

        website_url = rewrite_entry_url(feed, entry)
        entry_is_new = is_new_entry(feed, entry) if is_new_entry is not None else True

        if feed.crawler and (entry_is_new or force_refresh):
            log_event(
                logger,
                "Scraping entry",
                level=logging.DEBUG,
                event="process_scrape",
                user_id=user.id,
                entry_url=entry.url,
                feed_id=feed.id,
                entry_is_new=entry_is_new,
                force_refresh=force_refresh,
                website_url=website_url,
            )
            options = RequestOptions.from_feed(feed, cfg.fetch)
            try:
                _, content = scraper.scrape_website(website_url, feed.scraper_rules, options)
            except ScraperError as exc:
                log_event(
                    logger,
                    "Unable to scrape entry",
                    level=logging.WARNING,
                    event="process_scrape_failed",
                    user_id=user.id,
                    entry_url=entry.url,
                    feed_id=feed.id,
                    feed_url=feed.feed_url,
                    error=str(exc),
                )
            else:
                if content:
                    entry.content = content

        rewriter.rewrite(website_url, entry, feed.rewrite_rules)
        entry.content = sanitize(website_url, entry.content)
        kept.append(entry)

    feed.entries = kept
    return kept


def process_entry_web_page(
    feed: Feed,
    entry: Entry,
    user: User,
    *,
    fetcher: Fetcher | None = None,
    rules: PredefinedRules = DEFAULT_RULES,
    cfg: AppConfig | None = None,
    sanitize: Sanitizer | None = None,
) -> None:
    """Scrape, rewrite and sanitize a single entry on demand.

    Unlike process_feed_entries, scrape errors are raised to the caller
    and the entry is left untouched.

    Raises:
        ScraperError: The page could not be scraped
    """
    cfg = cfg or AppConfig()
    fetcher = fetcher or HttpxFetcher()
    sanitize = sanitize or passthrough_sanitizer

    website_url = rewrite_entry_url(feed, entry)
    log_event(
        logger,
        "Scraping entry web page",
        level=logging.DEBUG,
        event="process_entry_web_page",
        user_id=user.id,
        entry_url=entry.url,
        feed_id=feed.id,
        website_url=website_url,
    )

    scraper = Scraper(fetcher, rules=rules, max_link_hops=cfg.scraper.max_link_hops)
    options = RequestOptions.from_feed(feed, cfg.fetch)
    _, content = scraper.scrape_website(website_url, feed.scraper_rules, options)

    if content:
        entry.content = content

    Rewriter(rules=rules, cfg=cfg.rewrite).rewrite(website_url, entry, feed.rewrite_rules)
    entry.content = sanitize(website_url, entry.content)
