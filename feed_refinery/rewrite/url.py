"""Entry URL rewriting from a feed's rewrite("search"|"replacement") rule."""

from __future__ import annotations

import logging
import re

from ..core.types import Entry, Feed
from ..logging_utils import log_event
from .functions import expand_template

logger = logging.getLogger(__name__)

_URL_REWRITE_RULE_RE = re.compile(r'rewrite\("(.*)"\|"(.*)"\)')


def rewrite_entry_url(feed: Feed, entry: Entry) -> str:
    """Return the URL to scrape for an entry.

    Without a rule, or when the rule or its pattern is malformed, the
    entry URL is returned unchanged.
    """
    url = entry.url
    if not feed.url_rewrite_rules:
        return url

    parts = _URL_REWRITE_RULE_RE.search(feed.url_rewrite_rules)
    if parts is None:
        log_event(
            logger,
            "Cannot find search and replace terms in URL rewrite rule",
            level=logging.DEBUG,
            event="url_rewrite_malformed",
            feed_id=feed.id,
            url_rewrite_rules=feed.url_rewrite_rules,
        )
        return url

    try:
        pattern = re.compile(parts.group(1))
    except re.error as exc:
        log_event(
            logger,
            "Invalid URL rewrite pattern",
            level=logging.WARNING,
            event="url_rewrite_invalid_pattern",
            feed_id=feed.id,
            pattern=parts.group(1),
            error=str(exc),
        )
        return url

    replacement = parts.group(2)
    rewritten = pattern.sub(lambda match: expand_template(match, replacement), url)
    log_event(
        logger,
        "Rewriting entry URL",
        level=logging.DEBUG,
        event="url_rewrite",
        original_url=url,
        rewritten_url=rewritten,
    )
    return rewritten
