"""
Block and keep decisions for entries.

Each direction has two rule sources:
- the user's Field=Pattern line list (BlockFilterEntryRules / KeepFilterEntryRules)
- the feed's single regex (BlocklistRules / KeeplistRules)

A non-empty user list decides its direction on its own, and the first
matching line wins. Otherwise the feed regex is searched in the entry
URL, title, author and tags. Without any rule an entry is never blocked
and always allowed. Invalid patterns never match.
"""

from __future__ import annotations

from functools import lru_cache
import logging
import re

from ..core.types import Entry, Feed, User
from ..logging_utils import log_event
from .date import is_date_matching_pattern

logger = logging.getLogger(__name__)


def is_blocked_entry(feed: Feed, entry: Entry, user: User) -> bool:
    if user.block_filter_entry_rules:
        return _matches_rule_lines(user.block_filter_entry_rules, feed, entry, "block")

    if feed.blocklist_rules and _matches_feed_regex(feed.blocklist_rules, entry):
        log_event(
            logger,
            "Blocking entry based on feed blocklist rule",
            level=logging.DEBUG,
            event="filter_blocked",
            entry_url=entry.url,
            feed_id=feed.id,
            feed_url=feed.feed_url,
            pattern=feed.blocklist_rules,
        )
        return True

    return False


def is_allowed_entry(feed: Feed, entry: Entry, user: User) -> bool:
    if user.keep_filter_entry_rules:
        return _matches_rule_lines(user.keep_filter_entry_rules, feed, entry, "keep")

    if feed.keeplist_rules:
        if _matches_feed_regex(feed.keeplist_rules, entry):
            log_event(
                logger,
                "Allowing entry based on feed keeplist rule",
                level=logging.DEBUG,
                event="filter_allowed",
                entry_url=entry.url,
                feed_id=feed.id,
                feed_url=feed.feed_url,
                pattern=feed.keeplist_rules,
            )
            return True
        return False

    return True


def is_kept_entry(feed: Feed, entry: Entry, user: User) -> bool:
    return not is_blocked_entry(feed, entry, user) and is_allowed_entry(feed, entry, user)


def parse_rule_line(line: str) -> tuple[str, str] | None:
    """Split a "Field=Pattern" line, or return None when there is no "="."""
    field, sep, value = line.replace("\r", "").strip().partition("=")
    if not sep:
        return None
    return field.strip(), value.strip()


def matches_rule(field: str, value: str, entry: Entry) -> bool:
    if field == "EntryDate":
        return is_date_matching_pattern(value, entry.date)
    if field == "EntryTitle":
        return _search(value, entry.title)
    if field == "EntryURL":
        return _search(value, entry.url)
    if field == "EntryCommentsURL":
        return _search(value, entry.comments_url)
    if field == "EntryContent":
        return _search(value, entry.content)
    if field == "EntryAuthor":
        return _search(value, entry.author)
    if field == "EntryTag":
        return any(_search(value, tag) for tag in entry.tags)
    return False


def _matches_rule_lines(rules: str, feed: Feed, entry: Entry, direction: str) -> bool:
    for line in rules.splitlines():
        rule = parse_rule_line(line)
        if rule is None:
            continue
        field, value = rule
        if matches_rule(field, value, entry):
            log_event(
                logger,
                "Entry matches filter rule",
                level=logging.DEBUG,
                event="filter_rule_matched",
                direction=direction,
                entry_url=entry.url,
                entry_title=entry.title,
                feed_url=feed.feed_url,
                rule_type=field,
                rule_value=value,
            )
            return True
    return False


def _matches_feed_regex(pattern: str, entry: Entry) -> bool:
    return (
        _search(pattern, entry.url)
        or _search(pattern, entry.title)
        or _search(pattern, entry.author)
        or any(_search(pattern, tag) for tag in entry.tags)
    )


def _search(pattern: str, text: str) -> bool:
    compiled = _compile(pattern)
    if compiled is None:
        return False
    return compiled.search(text or "") is not None


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str] | None:
    try:
        return re.compile(pattern)
    except re.error as exc:
        log_event(
            logger,
            "Failed on regexp compilation",
            level=logging.WARNING,
            event="filter_invalid_regex",
            pattern=pattern,
            error=str(exc),
        )
        return None
