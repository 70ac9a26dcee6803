"""
Main-content extraction.

This package finds the article body of an arbitrary HTML page without
any site-specific configuration.
"""

from .readability import extract_content, extract_main_content, find_base_url

__all__ = [
    "extract_content",
    "extract_main_content",
    "find_base_url",
]
