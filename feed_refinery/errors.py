"""Exceptions raised by the scraping side of the pipeline.

Only fetching and scraping raise; extraction, rewriting and filtering
degrade to a no-op on bad input instead.
"""

from __future__ import annotations


class ScraperError(Exception):
    """Base class for errors that abort scraping of one page."""

    def __init__(self, message: str, url: str | None = None):
        super().__init__(message)
        self.url = url


class FetchError(ScraperError):
    """The page could not be downloaded (network, TLS, timeout).

    Attributes:
        reason: Short category such as "timeout", "tls_error" or "network_failed"
    """

    def __init__(self, message: str, url: str | None = None, reason: str = "unknown"):
        super().__init__(message, url)
        self.reason = reason


class ServerFailureError(FetchError):
    """The server answered with a terminal status or an empty body.

    Attributes:
        status_code: HTTP status code of the response, if any
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        reason: str = "server_error",
        status_code: int | None = None,
    ):
        super().__init__(message, url, reason)
        self.status_code = status_code


class UnsupportedContentTypeError(ScraperError):
    """The response is not an HTML document."""

    def __init__(self, content_type: str, url: str | None = None):
        super().__init__(f"this resource is not a HTML document ({content_type})", url)
        self.content_type = content_type


class TooManyLinkHopsError(ScraperError):
    """Single-link pages kept pointing to further pages, or looped."""
