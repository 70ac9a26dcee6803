"""
Date matching language for EntryDate filter rules.

Patterns:
- future: the entry is dated after now
- before:YYYY-MM-DD / after:YYYY-MM-DD: strict comparison with UTC midnight
- between:YYYY-MM-DD,YYYY-MM-DD: strictly inside the range
- max-age:DURATION: older than now minus DURATION ("7d", "12h", "1h30m", "90s")

Anything that does not parse never matches.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import re

_DAYS_RE = re.compile(r"^(\d*)d$")
_DURATION_RE = re.compile(r"^(?:\d+(?:\.\d*)?(?:ms|h|m|s))+$")
_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d*)?)(ms|h|m|s)")

_UNIT_SECONDS = {
    "h": 3600.0,
    "m": 60.0,
    "s": 1.0,
    "ms": 0.001,
}


def is_date_matching_pattern(pattern: str, entry_date: datetime, now: datetime | None = None) -> bool:
    now = now or datetime.now(timezone.utc)
    entry_date = _as_utc(entry_date)

    if pattern == "future":
        return entry_date > now

    rule_type, sep, value = pattern.partition(":")
    if not sep:
        return False

    if rule_type == "before":
        target = parse_rule_date(value)
        return target is not None and entry_date < target

    if rule_type == "after":
        target = parse_rule_date(value)
        return target is not None and entry_date > target

    if rule_type == "between":
        dates = value.split(",")
        if len(dates) != 2:
            return False
        start = parse_rule_date(dates[0])
        end = parse_rule_date(dates[1])
        if start is None or end is None:
            return False
        return start < entry_date < end

    if rule_type == "max-age":
        duration = parse_duration(value)
        if duration is None:
            return False
        return entry_date < now - duration

    return False


def parse_rule_date(value: str) -> datetime | None:
    """Parse YYYY-MM-DD as midnight UTC."""
    try:
        parsed = datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return None
    return parsed.replace(tzinfo=timezone.utc)


def parse_duration(value: str) -> timedelta | None:
    """Parse "Nd" or an h/m/s/ms duration such as "1h30m"."""
    days = _DAYS_RE.match(value)
    if days:
        return timedelta(days=int(days.group(1) or 0))

    if not _DURATION_RE.match(value):
        return None
    seconds = sum(float(amount) * _UNIT_SECONDS[unit] for amount, unit in _DURATION_PART_RE.findall(value))
    return timedelta(seconds=seconds)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
