"""JSON parser for feed processing requests.

A request bundles one feed, its owner and the entries of the latest
refresh. Keys may be snake_case or camelCase (as exported by feed
readers):

    {
        "feed": {
            "id": 42,
            "feedUrl": "https://example.org/feed.xml",
            "crawler": true,
            "scraperRules": "article",
            "rewriteRules": "add_dynamic_image",
            "urlRewriteRules": "rewrite(\"^http:\"|\"https:\")",
            "blocklistRules": "",
            "keeplistRules": "",
            "userAgent": "",
            "cookie": "",
            "fetchViaProxy": false,
            "allowSelfSignedCertificates": false,
            "disableHttp2": false
        },
        "user": {
            "id": 1,
            "blockFilterEntryRules": "EntryTitle=(?i)sponsored",
            "keepFilterEntryRules": ""
        },
        "entries": [
            {
                "url": "https://example.org/post",
                "title": "Post",
                "content": "<p>Summary</p>",
                "author": "Jane",
                "tags": ["news"],
                "date": "2024-05-01T10:00:00Z",
                "commentsUrl": "",
                "hash": "abc"
            }
        ]
    }
"""

from __future__ import annotations

from dataclasses import fields
from datetime import datetime, timezone
import logging
import re
from typing import Any

from ..core.types import Entry, Feed, User

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")

_KEY_ALIASES = {
    "disablehttp2": "disable_http2",
}


def parse_iso8601(value: str) -> datetime:
    """Parse an ISO 8601 timestamp string into a timezone-aware datetime."""
    raw = value.strip()
    if raw.endswith("Z"):
        raw = f"{raw[:-1]}+00:00"
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_feed_json(data: dict[str, Any]) -> tuple[Feed, User]:
    """Parse a processing request into a Feed (with entries) and a User.

    Entries may be given at the top level or inside the feed object.
    Entries without a URL are skipped with a warning.

    Raises:
        ValueError: If the JSON has no 'feed' object
    """
    raw_feed = data.get("feed")
    if not isinstance(raw_feed, dict):
        raise ValueError("Invalid JSON format: missing 'feed' object")

    feed_fields = _normalize_keys(raw_feed)
    nested_entries = feed_fields.pop("entries", [])
    raw_entries = data.get("entries", nested_entries)
    feed = Feed(**_known_fields(Feed, feed_fields))

    raw_user = data.get("user") or {}
    user = User(**_known_fields(User, _normalize_keys(raw_user)))

    if not isinstance(raw_entries, list):
        raise ValueError("Invalid JSON format: 'entries' must be a list")

    for index, item in enumerate(raw_entries):
        if not isinstance(item, dict):
            logger.warning(f"Skipping entry #{index}: not an object")
            continue
        entry = _parse_entry(_normalize_keys(item))
        if entry is None:
            logger.warning(f"Skipping entry #{index}: missing required field (url)")
            continue
        feed.entries.append(entry)

    return feed, user


def _parse_entry(item: dict[str, Any]) -> Entry | None:
    if not item.get("url"):
        return None

    date_value = item.pop("date", None) or item.pop("published_at", None)
    entry = Entry(**_known_fields(Entry, item, exclude={"date", "tags"}))
    entry.tags = [str(tag) for tag in item.get("tags") or []]

    if isinstance(date_value, str) and date_value.strip():
        try:
            entry.date = parse_iso8601(date_value)
        except ValueError:
            logger.warning(f"Invalid date for entry {entry.url}: {date_value!r}")

    for name in ("title", "content", "author", "comments_url", "hash"):
        if getattr(entry, name) is None:
            setattr(entry, name, "")
    return entry


def _normalize_keys(raw: dict[str, Any]) -> dict[str, Any]:
    normalized: dict[str, Any] = {}
    for key, value in raw.items():
        snake = _CAMEL_BOUNDARY_RE.sub("_", str(key)).lower()
        normalized[_KEY_ALIASES.get(snake, snake)] = value
    return normalized


def _known_fields(cls: type, values: dict[str, Any], exclude: set[str] | None = None) -> dict[str, Any]:
    exclude = exclude or set()
    names = {f.name for f in fields(cls)} - exclude
    return {key: value for key, value in values.items() if key in names}
