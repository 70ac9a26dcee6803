"""
Feed Refinery - content pipeline for feed entries.

This package turns the entries of a refreshed feed into clean article
content: it filters entries with block/keep rules, scrapes the full
article page (readability or per-site CSS selectors), and applies
per-site rewrite rules.

Main entry point is the CLI via the `feed-refinery` command.

Example:
    $ feed-refinery process refresh.json -o entries.json
"""

__all__ = [
    "__version__",
    "extract_content",
    "parse_feed_json",
    "process_feed_entries",
    "rewrite_entry",
    "scrape_website",
]
__version__ = "0.1.0"

from .extract import extract_content
from .input import parse_feed_json
from .processor import process_feed_entries
from .rewrite import rewrite_entry
from .scrape import scrape_website
