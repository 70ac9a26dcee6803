"""
Scrape orchestration.

This package downloads article pages and chooses between per-site CSS
selectors and the generic readability extractor.
"""

from .scraper import Scraper, find_content_using_custom_rules, find_single_link, scrape_website

__all__ = [
    "Scraper",
    "find_content_using_custom_rules",
    "find_single_link",
    "scrape_website",
]
