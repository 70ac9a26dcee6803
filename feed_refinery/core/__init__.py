"""
Core domain models.

This package contains the data types shared by every pipeline stage.
"""

from .types import Entry, Feed, User

__all__ = [
    "Entry",
    "Feed",
    "User",
]
