"""
Shared utility functions.

This package contains helpers used across multiple pipeline stages.
"""

from .urls import domain, is_absolute_url, resolve_url

__all__ = [
    "domain",
    "is_absolute_url",
    "resolve_url",
]
