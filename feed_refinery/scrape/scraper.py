"""
Scrape orchestration: download an article page and extract its content.

For each page the scraper:
1. Fetches it and rejects failed responses and non-HTML documents
2. Picks the explicit feed selector, else the predefined selector for
   the host, else nothing
3. Extracts with the selector when the page did not redirect to another
   site, otherwise with readability
4. Follows "continue reading" pages whose content is a single link,
   up to a fixed number of hops
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup, Comment, NavigableString, Tag
import soupsieve

from ..errors import TooManyLinkHopsError, UnsupportedContentTypeError
from ..extract.readability import extract_content, find_base_url
from ..fetch.fetcher import Fetcher, RequestOptions, is_html_content_type
from ..logging_utils import log_event
from ..rules import DEFAULT_RULES, PredefinedRules
from ..utils.urls import domain, resolve_url

logger = logging.getLogger(__name__)

DEFAULT_MAX_LINK_HOPS = 3


class Scraper:
    """Downloads pages through a Fetcher and extracts their main content.

    Attributes:
        fetcher: Collaborator used to download pages
        rules: Predefined per-domain selector table
        max_link_hops: How many single-link pages may be followed
    """

    def __init__(
        self,
        fetcher: Fetcher,
        rules: PredefinedRules = DEFAULT_RULES,
        max_link_hops: int = DEFAULT_MAX_LINK_HOPS,
    ):
        self.fetcher = fetcher
        self.rules = rules
        self.max_link_hops = max_link_hops

    def scrape_website(
        self,
        page_url: str,
        custom_rules: str = "",
        options: RequestOptions | None = None,
    ) -> tuple[str, str]:
        """Scrape a page and return (base_url, content).

        Args:
            page_url: The article URL
            custom_rules: Feed-level CSS selector, "" to use the predefined table
            options: Request options; cookie and proxy are only sent to the
                site they belong to

        Returns:
            The base URL to resolve relative links against, and the
            extracted HTML fragment

        Raises:
            FetchError: The page could not be downloaded
            ServerFailureError: The server answered with a terminal status
            UnsupportedContentTypeError: The page is not an HTML document
            TooManyLinkHopsError: Single-link pages looped or chained too deep
        """
        options = options or RequestOptions()
        origin_domain = domain(page_url)
        visited: set[str] = set()

        url = page_url
        rules = custom_rules
        request_options = options

        for hop in range(self.max_link_hops + 1):
            visited.add(url)
            base_url, content, effective_url = self._scrape_page(url, rules, request_options)
            visited.add(effective_url)

            link = find_single_link(content)
            if not link:
                return base_url, content

            next_url = resolve_url(base_url, link)
            if next_url in visited:
                raise TooManyLinkHopsError(f"scraper: link loop detected at {next_url}", url=page_url)
            if hop == self.max_link_hops:
                break

            same_site = domain(next_url) == origin_domain
            log_event(
                logger,
                "Following single-link page",
                level=logging.DEBUG,
                event="scraper_follow_link",
                url=url,
                next_url=next_url,
                same_site=same_site,
            )
            request_options = options if same_site else options.without_credentials()
            rules = custom_rules if same_site else ""
            url = next_url

        raise TooManyLinkHopsError(
            f"scraper: more than {self.max_link_hops} single-link pages followed",
            url=page_url,
        )

    def _scrape_page(
        self,
        page_url: str,
        custom_rules: str,
        options: RequestOptions,
    ) -> tuple[str, str, str]:
        result = self.fetcher.fetch(page_url, options)

        reason = result.failure_reason()
        if reason is not None:
            log_event(
                logger,
                "Unable to scrape website",
                level=logging.WARNING,
                event="scraper_fetch_failed",
                website_url=page_url,
                reason=reason,
                error=result.error,
                status_code=result.status_code,
            )
            result.raise_for_failure()

        if not is_html_content_type(result.content_type):
            raise UnsupportedContentTypeError(result.content_type, url=page_url)

        # The entry URL could redirect somewhere else.
        effective_url = result.effective_url or page_url
        same_site = domain(page_url) == domain(effective_url)

        rules = custom_rules or self.rules.scraper_rules_for(effective_url)
        page = result.text()

        content = None
        base_url = ""
        if same_site and rules:
            log_event(
                logger,
                "Extracting content with custom rules",
                level=logging.DEBUG,
                event="scraper_custom_rules",
                url=effective_url,
                rules=rules,
            )
            try:
                base_url, content = find_content_using_custom_rules(page, rules)
            except soupsieve.SelectorSyntaxError as exc:
                log_event(
                    logger,
                    "Invalid scraper rules, falling back to readability",
                    level=logging.WARNING,
                    event="scraper_invalid_rules",
                    url=effective_url,
                    rules=rules,
                    error=str(exc),
                )

        if content is None:
            log_event(
                logger,
                "Extracting content with readability",
                level=logging.DEBUG,
                event="scraper_readability",
                url=effective_url,
            )
            base_url, content = extract_content(page)

        if not base_url:
            base_url = effective_url
        else:
            log_event(
                logger,
                "Using base URL from HTML document",
                level=logging.DEBUG,
                event="scraper_base_url",
                base_url=base_url,
            )

        return base_url, content, effective_url


def scrape_website(
    fetcher: Fetcher,
    page_url: str,
    custom_rules: str = "",
    options: RequestOptions | None = None,
    rules: PredefinedRules = DEFAULT_RULES,
    max_link_hops: int = DEFAULT_MAX_LINK_HOPS,
) -> tuple[str, str]:
    """Scrape a page with a one-off Scraper; see Scraper.scrape_website."""
    scraper = Scraper(fetcher, rules=rules, max_link_hops=max_link_hops)
    return scraper.scrape_website(page_url, custom_rules, options)


def find_content_using_custom_rules(page: str, rules: str) -> tuple[str, str]:
    """Concatenate the outer HTML of every element matching a CSS selector.

    Raises:
        soupsieve.SelectorSyntaxError: The selector is malformed
    """
    document = BeautifulSoup(page, "html.parser")
    base_url = find_base_url(document)
    content = "".join(str(element) for element in document.select(rules))
    return base_url, content


def find_single_link(content: str) -> str | None:
    """Return the href when a fragment is nothing but one link.

    Wrapper div/p elements holding only that link are looked through,
    so readability output like <div><div><a href>..</a></div></div>
    qualifies.
    """
    node: Tag = BeautifulSoup(content, "html.parser")
    node = node.body or node

    while True:
        for child in node.children:
            if isinstance(child, NavigableString) and not isinstance(child, Comment) and child.strip():
                return None

        elements = [child for child in node.children if isinstance(child, Tag)]
        if len(elements) != 1:
            return None

        element = elements[0]
        if element.name == "a":
            href = str(element.get("href") or "").strip()
            return href or None
        if element.name not in ("div", "p"):
            return None
        node = element
