"""
Heuristic main-content extraction.

Scores paragraph-like elements of a page and propagates the score to
their parent and grandparent; the best scoring node, together with
related siblings, is returned as the article body.

Steps:
1. Drop script/style subtrees
2. Retag divs that only hold inline content as paragraphs
3. Prune elements whose class/id look like chrome (comments, sidebars, ads)
4. Score candidates, scale them by link density, pick the best one
5. Gather siblings of the best candidate that look like content too

Candidates are keyed by node and visited in document order, so ties
between equal scores always resolve to the node that comes first in the
page and the output is reproducible for identical input.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import re

from bs4 import BeautifulSoup, Doctype, Tag

from ..logging_utils import log_event
from ..utils.urls import is_absolute_url

logger = logging.getLogger(__name__)

TAGS_TO_SCORE = ["section", "h2", "h3", "h4", "h5", "h6", "p", "td", "pre", "div"]

_DIV_TO_P_ELEMENTS_RE = re.compile(r"<(?:a|blockquote|dl|div|img|ol|p|pre|table|ul)", re.IGNORECASE)
_SENTENCE_RE = re.compile(r"\.( |$)")

_BLACKLIST_CANDIDATES_RE = re.compile(r"popupbody|-ad|g-plus", re.IGNORECASE)
_OK_MAYBE_ITS_A_CANDIDATE_RE = re.compile(r"and|article|body|column|main|shadow", re.IGNORECASE)
_UNLIKELY_CANDIDATES_RE = re.compile(
    r"banner|breadcrumbs|combx|comment|community|cover-wrap|disqus|extra|foot|header|legends|"
    r"menu|modal|related|remark|replies|rss|shoutbox|sidebar|skyscraper|social|sponsor|"
    r"supplemental|ad-break|agegate|pagination|pager|popup|yom-remote",
    re.IGNORECASE,
)

_NEGATIVE_RE = re.compile(
    r"hidden|^hid$|hid$|hid|^hid |banner|combx|comment|com-|contact|foot|footer|footnote|"
    r"masthead|media|meta|modal|outbrain|promo|related|scroll|share|shoutbox|sidebar|"
    r"skyscraper|sponsor|shopping|tags|tool|widget|byline|author|dateline|writtenby|p-author",
    re.IGNORECASE,
)
_POSITIVE_RE = re.compile(
    r"article|body|content|entry|hentry|h-entry|main|page|pagination|post|text|blog|story",
    re.IGNORECASE,
)

_TAG_BASE_SCORES = {
    "div": 5,
    "pre": 3,
    "td": 3,
    "blockquote": 3,
    "img": 3,
    "address": -3,
    "ol": -3,
    "ul": -3,
    "dl": -3,
    "dd": -3,
    "dt": -3,
    "li": -3,
    "form": -3,
    "h1": -5,
    "h2": -5,
    "h3": -5,
    "h4": -5,
    "h5": -5,
    "h6": -5,
    "th": -5,
}

EMPTY_ARTICLE = "<div></div>"


@dataclass
class Candidate:
    """A node considered as the article root, with its accumulated score.

    Attributes:
        node: The element being scored
        score: Accumulated relevance score
        index: Position of the node in document order
    """
    node: Tag
    score: float
    index: int

    def __str__(self) -> str:
        node_id = self.node.get("id") or ""
        node_class = _class_string(self.node)
        label = self.node.name
        if node_id:
            label += f"#{node_id}"
        if node_class:
            label += f".{node_class}"
        return f"{label} => {self.score:f}"


CandidateList = dict[int, Candidate]


def extract_content(html: str | bytes) -> tuple[str, str]:
    """Extract the main content of an HTML page.

    Args:
        html: The page, as text or raw bytes (bytes are charset-sniffed)

    Returns:
        A (base_url, content) tuple. base_url is the absolute href of the
        document's <base> element, or "" when there is none. content is an
        HTML fragment wrapped in a single <div>; "<div></div>" when nothing
        scored above zero.
    """
    document = BeautifulSoup(html, "html.parser")
    base_url = find_base_url(document)

    for tag in document.find_all(["script", "style"]):
        tag.decompose()

    _ensure_body(document)
    _transform_misused_divs_into_paragraphs(document)
    _remove_unlikely_candidates(document)

    candidates = _get_candidates(document)
    top_candidate = _get_top_candidate(candidates)

    log_event(
        logger,
        "Readability parsing",
        level=logging.DEBUG,
        event="readability_parsing",
        base_url=base_url,
        candidates=len(candidates),
        top_candidate=str(top_candidate) if top_candidate else None,
    )

    if top_candidate is None or top_candidate.score <= 0:
        return base_url, EMPTY_ARTICLE

    return base_url, _get_article(top_candidate, candidates)


def extract_main_content(html: str | bytes) -> str:
    """Return only the extracted content of an HTML page."""
    _, content = extract_content(html)
    return content


def find_base_url(document: BeautifulSoup) -> str:
    """Return the absolute <head><base href> of a parsed page, or ""."""
    base = document.select_one("head base[href]")
    if base is None:
        return ""
    href = str(base.get("href", "")).strip()
    if is_absolute_url(href):
        return href
    return ""


def _get_article(top_candidate: Candidate, candidates: CandidateList) -> str:
    """Collect the top candidate and related siblings into one fragment.

    Siblings are things like preambles or content split by ads that were
    removed earlier.
    """
    threshold = max(10.0, top_candidate.score * 0.2)
    top_node = top_candidate.node
    parent = top_node.parent
    if parent is None:
        siblings = [top_node]
    else:
        siblings = [child for child in parent.children if isinstance(child, Tag)]

    output = ["<div>"]
    for sibling in siblings:
        append = False

        if sibling is top_node:
            append = True
        else:
            candidate = candidates.get(id(sibling))
            if candidate is not None and candidate.score >= threshold:
                append = True

        if sibling.name == "p":
            link_density = _get_link_density(sibling)
            content = sibling.get_text()
            content_length = len(content)

            if content_length >= 80 and link_density < 0.25:
                append = True
            elif content_length < 80 and link_density == 0 and _SENTENCE_RE.search(content):
                append = True

        if append:
            tag = "p" if sibling.name == "p" else "div"
            output.append(f"<{tag}>{sibling.decode_contents()}</{tag}>")

    output.append("</div>")
    return "".join(output)


def _ensure_body(document: BeautifulSoup) -> None:
    """Wrap the top-level content of a fragment in an implicit <body>."""
    if document.body is not None:
        return
    container = document.html or document
    body = document.new_tag("body")
    for child in list(container.contents):
        if isinstance(child, Doctype) or (isinstance(child, Tag) and child.name == "head"):
            continue
        body.append(child.extract())
    container.append(body)


def _remove_unlikely_candidates(document: BeautifulSoup) -> None:
    for element in document.find_all(True):
        if element.decomposed or element.name in ("html", "body"):
            continue

        value = _class_string(element) + str(element.get("id") or "")
        if _BLACKLIST_CANDIDATES_RE.search(value) or (
            _UNLIKELY_CANDIDATES_RE.search(value) and not _OK_MAYBE_ITS_A_CANDIDATE_RE.search(value)
        ):
            element.decompose()


def _get_top_candidate(candidates: CandidateList) -> Candidate | None:
    best: Candidate | None = None
    for candidate in sorted(candidates.values(), key=lambda c: c.index):
        if best is None or best.score < candidate.score:
            best = candidate
    return best


def _get_candidates(document: BeautifulSoup) -> CandidateList:
    """Score paragraphs and credit their score to parent and grandparent.

    A score is determined by the number of commas, the text length and
    the class/id names of the parent nodes.
    """
    order = {id(element): index for index, element in enumerate(document.find_all(True))}
    candidates: CandidateList = {}

    for node in document.find_all(TAGS_TO_SCORE):
        text = node.get_text()

        # Paragraphs under 25 characters are not counted at all.
        if len(text) < 25:
            continue

        parent = _element_parent(node)
        if parent is None:
            continue
        grand_parent = _element_parent(parent)

        if id(parent) not in candidates:
            candidates[id(parent)] = _score_node(parent, order[id(parent)])

        if grand_parent is not None and id(grand_parent) not in candidates:
            candidates[id(grand_parent)] = _score_node(grand_parent, order[id(grand_parent)])

        content_score = 1.0
        content_score += text.count(",") + 1
        content_score += min(len(text) // 100, 3)

        candidates[id(parent)].score += content_score
        if grand_parent is not None:
            candidates[id(grand_parent)].score += content_score / 2.0

    # Good content should have a small link density and be mostly
    # unaffected by this scaling.
    for candidate in candidates.values():
        candidate.score *= 1 - _get_link_density(candidate.node)

    return candidates


def _element_parent(node: Tag) -> Tag | None:
    parent = node.parent
    if parent is None or isinstance(parent, BeautifulSoup):
        return None
    return parent


def _score_node(node: Tag, index: int) -> Candidate:
    score = float(_TAG_BASE_SCORES.get(node.name, 0))
    score += _get_class_weight(node)
    return Candidate(node=node, score=score, index=index)


def _get_link_density(node: Tag) -> float:
    """Share of the node's text that sits inside links."""
    text_length = len(node.get_text())
    if text_length == 0:
        return 0.0
    link_length = sum(len(link.get_text()) for link in node.find_all("a"))
    return link_length / text_length


def _get_class_weight(node: Tag) -> float:
    weight = 0
    node_class = _class_string(node)
    node_id = str(node.get("id") or "")

    if node_class:
        if _NEGATIVE_RE.search(node_class):
            weight -= 25
        if _POSITIVE_RE.search(node_class):
            weight += 25

    if node_id:
        if _NEGATIVE_RE.search(node_id):
            weight -= 25
        if _POSITIVE_RE.search(node_id):
            weight += 25

    return float(weight)


def _transform_misused_divs_into_paragraphs(document: BeautifulSoup) -> None:
    for div in document.find_all("div"):
        if not _DIV_TO_P_ELEMENTS_RE.search(div.decode_contents()):
            div.name = "p"


def _class_string(node: Tag) -> str:
    value = node.get("class")
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value)
    return str(value)
