from .date import is_date_matching_pattern
from .entry_filter import is_allowed_entry, is_blocked_entry, is_kept_entry

__all__ = [
    "is_allowed_entry",
    "is_blocked_entry",
    "is_date_matching_pattern",
    "is_kept_entry",
]
