"""
HTTP page fetching for the scraper.

This module provides:
1. RequestOptions: per-request settings derived from the feed and config
2. FetchResult: the response body plus the metadata the scraper needs
3. Fetcher: the interface the scraper depends on
4. HttpxFetcher: the default implementation, backed by httpx

Fetching never retries; retry and backoff policy belongs to whoever
schedules feed refreshes.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import re
import ssl
from typing import TYPE_CHECKING, Protocol

from bs4 import UnicodeDammit
import httpx

from ..config import FetchConfig
from ..errors import FetchError, ServerFailureError

if TYPE_CHECKING:
    from ..core.types import Feed


_CHARSET_RE = re.compile(r"charset\s*=\s*[\"']?([^\s;\"']+)", re.IGNORECASE)

_STATUS_REASONS = {
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    410: "not_found",
    429: "too_many_requests",
    500: "internal_server_error",
    502: "bad_gateway",
    503: "service_unavailable",
    504: "gateway_timeout",
}


@dataclass
class RequestOptions:
    """Settings for a single page request.

    Attributes:
        timeout_seconds: Overall request timeout
        user_agent: User-Agent header value
        cookie: Cookie header value, empty for none
        proxy_url: Proxy to use when use_proxy is set
        use_proxy: Whether to route the request through proxy_url
        ignore_tls_errors: Skip TLS certificate verification
        disable_http2: Force HTTP/1.1
        max_body_size: Maximum number of body bytes to read
    """

    timeout_seconds: float = 20.0
    user_agent: str = FetchConfig.user_agent
    cookie: str = ""
    proxy_url: str | None = None
    use_proxy: bool = False
    ignore_tls_errors: bool = False
    disable_http2: bool = False
    max_body_size: int = FetchConfig.max_body_size

    def without_credentials(self) -> RequestOptions:
        """Copy of these options without cookie and proxy, for cross-site requests."""
        return replace(self, cookie="", use_proxy=False)

    @classmethod
    def from_feed(cls, feed: Feed, cfg: FetchConfig) -> RequestOptions:
        return cls(
            timeout_seconds=cfg.timeout_seconds,
            user_agent=feed.user_agent or cfg.user_agent,
            cookie=feed.cookie,
            proxy_url=cfg.proxy_url,
            use_proxy=feed.fetch_via_proxy,
            ignore_tls_errors=feed.allow_self_signed_certificates,
            disable_http2=feed.disable_http2,
            max_body_size=cfg.max_body_size,
        )


@dataclass
class FetchResult:
    """Result of an HTTP fetch operation.

    Either the response fields are populated (a response was received) or
    error is populated (the request failed before a response arrived).

    Attributes:
        url: The URL that was requested
        effective_url: The URL after following redirects
        status_code: HTTP status code, or None if request failed before getting response
        content_type: Content-Type header value, possibly empty
        body: Response body bytes, capped at the configured maximum size
        error: Error message if the request failed, None otherwise
        error_kind: Category of error: "timeout", "tls_error", "network_failed",
            "body_too_large" or "http_client_error"
    """
    url: str
    effective_url: str
    status_code: int | None
    content_type: str = ""
    body: bytes = b""
    error: str | None = None
    error_kind: str | None = None

    def failure_reason(self) -> str | None:
        """Categorize a failed fetch, or return None when the response is usable."""
        if self.error is not None:
            return self.error_kind or "http_client_error"
        if self.status_code is None:
            return "http_client_error"
        if self.status_code in _STATUS_REASONS:
            return _STATUS_REASONS[self.status_code]
        if self.status_code >= 400:
            return "unexpected_status_code"
        if self.status_code != 304 and not self.body:
            return "empty_response_body"
        return None

    def raise_for_failure(self) -> None:
        """Raise FetchError or ServerFailureError when the fetch did not succeed."""
        reason = self.failure_reason()
        if reason is None:
            return
        if self.error is not None or self.status_code is None:
            raise FetchError(f"fetcher: {self.error or reason}", url=self.url, reason=reason)
        raise ServerFailureError(
            f"fetcher: {reason.replace('_', ' ')} ({self.status_code} status code)",
            url=self.url,
            reason=reason,
            status_code=self.status_code,
        )

    def text(self) -> str:
        return decode_body(self.body, self.content_type)


class Fetcher(Protocol):
    """Anything able to download a page for the scraper."""

    def fetch(self, url: str, options: RequestOptions) -> FetchResult:
        ...


class HttpxFetcher:
    """Fetcher backed by a short-lived httpx.Client per request.

    Redirects are followed, the body is read up to options.max_body_size
    bytes, and system proxy settings are ignored in favor of the options.

    Args:
        transport: Optional httpx transport, mainly for tests
    """

    def __init__(self, transport: httpx.BaseTransport | None = None):
        self._transport = transport

    def fetch(self, url: str, options: RequestOptions) -> FetchResult:
        headers = {"User-Agent": options.user_agent}
        if options.cookie:
            headers["Cookie"] = options.cookie
        proxy = options.proxy_url if options.use_proxy and options.proxy_url else None

        try:
            with httpx.Client(
                timeout=options.timeout_seconds,
                headers=headers,
                follow_redirects=True,
                verify=not options.ignore_tls_errors,
                http2=not options.disable_http2,
                proxy=proxy,
                trust_env=False,
                transport=self._transport,
            ) as client:
                with client.stream("GET", url) as resp:
                    body = _read_limited(resp, options.max_body_size)
                    if body is None:
                        return _error_result(
                            url,
                            f"response body too large (more than {options.max_body_size} bytes)",
                            "body_too_large",
                            status_code=resp.status_code,
                        )
                    return FetchResult(
                        url=url,
                        effective_url=str(resp.url),
                        status_code=resp.status_code,
                        content_type=resp.headers.get("content-type", ""),
                        body=body,
                    )
        except httpx.TimeoutException as exc:
            return _error_result(url, f"{type(exc).__name__}: {exc}", "timeout")
        except httpx.TransportError as exc:
            kind = "tls_error" if _is_tls_error(exc) else "network_failed"
            return _error_result(url, f"{type(exc).__name__}: {exc}", kind)
        except httpx.HTTPError as exc:
            return _error_result(url, f"{type(exc).__name__}: {exc}", "http_client_error")


def decode_body(body: bytes, content_type: str) -> str:
    """Decode a response body to text.

    The charset announced in the Content-Type header wins; otherwise the
    encoding is sniffed from the document itself (BOM, <meta charset>).
    """
    match = _CHARSET_RE.search(content_type or "")
    known = [match.group(1)] if match else []
    dammit = UnicodeDammit(body, known_definite_encodings=known, is_html=True)
    if dammit.unicode_markup is None:
        return body.decode("utf-8", errors="replace")
    return dammit.unicode_markup


def is_html_content_type(content_type: str) -> bool:
    content_type = (content_type or "").lower()
    return content_type.startswith("text/html") or content_type.startswith("application/xhtml+xml")


def _read_limited(resp: httpx.Response, max_size: int) -> bytes | None:
    chunks: list[bytes] = []
    total = 0
    for chunk in resp.iter_bytes():
        total += len(chunk)
        if total > max_size:
            return None
        chunks.append(chunk)
    return b"".join(chunks)


def _error_result(url: str, error: str, kind: str, status_code: int | None = None) -> FetchResult:
    return FetchResult(
        url=url,
        effective_url=url,
        status_code=status_code,
        error=error,
        error_kind=kind,
    )


def _is_tls_error(exc: BaseException) -> bool:
    current: BaseException | None = exc
    seen: set[int] = set()
    while current is not None and id(current) not in seen:
        if isinstance(current, ssl.SSLError):
            return True
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return "CERTIFICATE_VERIFY_FAILED" in str(exc)
