from __future__ import annotations

from datetime import datetime, timedelta, timezone

from feed_refinery.core.types import Entry, Feed, User
from feed_refinery.filtering import is_allowed_entry, is_blocked_entry, is_date_matching_pattern, is_kept_entry
from feed_refinery.filtering.date import parse_duration
from feed_refinery.filtering.entry_filter import parse_rule_line


def _entry(**kwargs) -> Entry:  # noqa: ANN003
    defaults = {
        "url": "https://example.org/post",
        "title": "Weekly update",
        "author": "Jane",
        "tags": ["news", "go"],
        "date": datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc),
    }
    defaults.update(kwargs)
    return Entry(**defaults)


def test_no_rules_never_block_and_always_allow():
    entry = _entry()

    assert is_blocked_entry(Feed(), entry, User()) is False
    assert is_allowed_entry(Feed(), entry, User()) is True
    assert is_kept_entry(Feed(), entry, User()) is True


def test_feed_blocklist_matches_url_title_author_and_tags():
    user = User()

    assert is_blocked_entry(Feed(blocklist_rules="(?i)weekly"), _entry(), user)
    assert is_blocked_entry(Feed(blocklist_rules="example\\.org"), _entry(), user)
    assert is_blocked_entry(Feed(blocklist_rules="^Jane$"), _entry(), user)
    assert is_blocked_entry(Feed(blocklist_rules="^go$"), _entry(), user)
    assert not is_blocked_entry(Feed(blocklist_rules="sponsored"), _entry(), user)


def test_feed_keeplist_requires_a_match():
    user = User()

    assert is_allowed_entry(Feed(keeplist_rules="update"), _entry(), user)
    assert not is_allowed_entry(Feed(keeplist_rules="release"), _entry(), user)
    assert not is_kept_entry(Feed(keeplist_rules="release"), _entry(), user)


def test_invalid_feed_regex_never_matches():
    user = User()

    assert not is_blocked_entry(Feed(blocklist_rules="("), _entry(), user)
    assert not is_allowed_entry(Feed(keeplist_rules="("), _entry(), user)


def test_user_block_rules_override_feed_blocklist():
    feed = Feed(blocklist_rules="Weekly")
    user = User(block_filter_entry_rules="EntryTitle=Monthly")

    assert not is_blocked_entry(feed, _entry(), user)


def test_user_rules_first_matching_line_decides():
    user = User(keep_filter_entry_rules="EntryURL=nomatch\nnot a rule\nUnknownField=.*\nEntryTag=^go$")

    assert is_allowed_entry(Feed(), _entry(), user)
    assert not is_allowed_entry(Feed(), _entry(tags=["rust"]), user)


def test_user_rules_cover_every_field():
    entry = _entry(comments_url="https://news.example/item/1", content="<p>Giveaway inside</p>")

    for rule in (
        "EntryTitle=Weekly",
        "EntryURL=/post$",
        "EntryCommentsURL=news\\.example",
        "EntryContent=Giveaway",
        "EntryAuthor=^Jane",
        "EntryTag=news",
        "EntryDate=after:2024-01-01",
    ):
        assert is_blocked_entry(Feed(), entry, User(block_filter_entry_rules=rule)), rule


def test_parse_rule_line():
    assert parse_rule_line(" EntryTitle = a=b \r") == ("EntryTitle", "a=b")
    assert parse_rule_line("no separator") is None


def test_date_patterns():
    date = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)

    assert is_date_matching_pattern("before:2024-03-16", date)
    assert not is_date_matching_pattern("before:2024-03-15", date)
    assert is_date_matching_pattern("after:2024-03-15", date)
    assert is_date_matching_pattern("between:2024-03-01,2024-04-01", date)
    assert not is_date_matching_pattern("between:2024-03-16,2024-04-01", date)


def test_between_is_strict():
    start = datetime(2024, 3, 1, tzinfo=timezone.utc)

    assert not is_date_matching_pattern("between:2024-03-01,2024-04-01", start)


def test_future_and_max_age_use_now():
    now = datetime(2024, 6, 1, tzinfo=timezone.utc)

    assert is_date_matching_pattern("future", now + timedelta(hours=1), now=now)
    assert not is_date_matching_pattern("future", now - timedelta(hours=1), now=now)
    assert is_date_matching_pattern("max-age:7d", now - timedelta(days=8), now=now)
    assert not is_date_matching_pattern("max-age:7d", now - timedelta(days=6), now=now)
    assert is_date_matching_pattern("max-age:1h30m", now - timedelta(hours=2), now=now)


def test_malformed_date_patterns_never_match():
    date = datetime(2024, 3, 15, tzinfo=timezone.utc)

    assert not is_date_matching_pattern("before:2024-13-01", date)
    assert not is_date_matching_pattern("between:2024-01-01", date)
    assert not is_date_matching_pattern("between:2024-01-01,soon", date)
    assert not is_date_matching_pattern("max-age:forever", date)
    assert not is_date_matching_pattern("sometime:2024-01-01", date)
    assert not is_date_matching_pattern("yesterday", date)


def test_naive_entry_dates_are_treated_as_utc():
    assert is_date_matching_pattern("after:2024-03-15", datetime(2024, 3, 15, 0, 30))


def test_parse_duration():
    assert parse_duration("30d") == timedelta(days=30)
    assert parse_duration("d") == timedelta(0)
    assert parse_duration("90s") == timedelta(seconds=90)
    assert parse_duration("1h30m") == timedelta(minutes=90)
    assert parse_duration("1w") is None
