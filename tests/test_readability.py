"""Tests for heuristic main-content extraction."""

from __future__ import annotations

from bs4 import BeautifulSoup

from feed_refinery.extract import extract_content, extract_main_content
from feed_refinery.extract.readability import (
    EMPTY_ARTICLE,
    Candidate,
    _get_article,
    _get_candidates,
    _get_class_weight,
    _get_link_density,
    _get_top_candidate,
    _remove_unlikely_candidates,
    _score_node,
    _transform_misused_divs_into_paragraphs,
)

ARTICLE_HTML = """<html><head><title>Example</title></head><body>
<div id="header">Menu</div>
<div class="article-body">
<p>Lorem ipsum dolor sit amet, consectetur adipiscing elit, sed do eiusmod tempor incididunt ut labore et dolore magna aliqua.</p>
<p>Ut enim ad minim veniam, quis nostrud exercitation ullamco laboris nisi ut aliquip ex ea commodo consequat.</p>
</div>
<div class="sidebar"><p>Sidebar text that should not be part of the article body at all, really.</p></div>
<script>var tracking = "Lorem ipsum, dolor, sit, amet, consectetur";</script>
</body></html>"""


def test_extract_content_keeps_article_and_drops_chrome():
    base_url, content = extract_content(ARTICLE_HTML)

    assert base_url == ""
    assert content.startswith("<div>")
    assert content.endswith("</div>")
    assert "Lorem ipsum dolor sit amet" in content
    assert "Ut enim ad minim veniam" in content
    assert "Sidebar text" not in content
    assert "Menu" not in content
    assert "tracking" not in content


def test_extract_content_is_deterministic():
    assert extract_content(ARTICLE_HTML) == extract_content(ARTICLE_HTML)


def test_extract_content_accepts_bytes():
    assert extract_main_content(ARTICLE_HTML.encode("utf-8")) == extract_main_content(ARTICLE_HTML)


def test_extract_content_returns_empty_article_without_candidates():
    base_url, content = extract_content("<html><body><p>short</p></body></html>")

    assert base_url == ""
    assert content == EMPTY_ARTICLE == "<div></div>"


def test_extract_content_reads_absolute_base_url():
    page = ARTICLE_HTML.replace("<head>", '<head><base href="https://example.org/blog/">')

    base_url, _ = extract_content(page)

    assert base_url == "https://example.org/blog/"


def test_extract_content_ignores_relative_base_url():
    page = ARTICLE_HTML.replace("<head>", '<head><base href="/blog/">')

    base_url, _ = extract_content(page)

    assert base_url == ""


def test_link_density_of_empty_node_is_zero():
    node = BeautifulSoup("<div></div>", "html.parser").div

    assert _get_link_density(node) == 0.0


def test_link_density_counts_anchor_text():
    node = BeautifulSoup('<div>abcd<a href="#">efgh</a></div>', "html.parser").div

    assert _get_link_density(node) == 0.5


def test_misused_divs_become_paragraphs():
    document = BeautifulSoup(
        '<div id="inline">Text <span>only</span></div><div id="block"><p>para</p></div>',
        "html.parser",
    )

    _transform_misused_divs_into_paragraphs(document)  # noqa: SLF001

    assert document.find(id="inline").name == "p"
    assert document.find(id="block").name == "div"


def test_unlikely_candidates_are_pruned():
    document = BeautifulSoup(
        '<div class="comment">c</div><div class="main-comment">m</div><div class="main-ad">a</div>',
        "html.parser",
    )

    _remove_unlikely_candidates(document)  # noqa: SLF001

    assert document.find(class_="comment") is None
    assert document.find(class_="main-comment") is not None
    assert document.find(class_="main-ad") is None


def test_top_candidate_tie_resolves_to_document_order():
    document = BeautifulSoup('<div id="a"></div><div id="b"></div>', "html.parser")
    first = document.find(id="a")
    second = document.find(id="b")
    candidates = {
        id(second): Candidate(node=second, score=12.0, index=1),
        id(first): Candidate(node=first, score=12.0, index=0),
    }

    assert _get_top_candidate(candidates).node is first  # noqa: SLF001


def test_sibling_gathering_uses_score_threshold():
    document = BeautifulSoup(
        '<section><div id="top">top</div><div id="low">low</div><div id="high">high</div>'
        '<p id="sentence">Short sentence.</p><p id="fragment">no sentence end</p></section>',
        "html.parser",
    )
    top = document.find(id="top")
    low = document.find(id="low")
    high = document.find(id="high")
    candidates = {
        id(top): Candidate(node=top, score=100.0, index=1),
        id(low): Candidate(node=low, score=19.0, index=2),
        id(high): Candidate(node=high, score=21.0, index=3),
    }

    article = _get_article(candidates[id(top)], candidates)  # noqa: SLF001

    assert article == "<div><div>top</div><div>high</div><p>Short sentence.</p></div>"


def test_extract_content_scores_pages_without_body():
    text = "Alpha, beta, gamma. " * 8
    page = f"<!DOCTYPE html><p>{text}</p><p>{text}</p>"

    _, content = extract_content(page)

    assert content != EMPTY_ARTICLE
    assert content.count(text) == 2
    assert "DOCTYPE" not in content


def test_link_density_without_links_is_zero():
    node = BeautifulSoup("<div>plain text, no links here</div>", "html.parser").div

    assert _get_link_density(node) == 0.0


def test_candidate_scores_credit_parent_and_half_to_grandparent():
    document = BeautifulSoup(
        '<div id="story" class="comment"><article>'
        f"<p>{'word, ' * 5}</p>"
        f"<h2>{'h' * 120}</h2>"
        "<p>tiny</p>"
        "</article></div>",
        "html.parser",
    )
    article = document.article
    story = document.find(id="story")

    candidates = _get_candidates(document)  # noqa: SLF001

    # p: 1 + (5 commas + 1) + 0 = 7, h2: 1 + 1 + 1 = 3, short p skipped.
    assert set(candidates) == {id(article), id(story)}
    assert candidates[id(article)].score == 10.0
    # div base 5, class -25, id +25, then half of each child score.
    assert candidates[id(story)].score == 10.0
    assert candidates[id(story)].index == 0
    assert candidates[id(article)].index == 1


def test_link_density_scales_candidate_scores():
    document = BeautifulSoup(
        f"<section><div><p>{'word, ' * 5}</p><a href=\"/x\">{'l' * 30}</a></div></section>",
        "html.parser",
    )
    div = document.div

    candidates = _get_candidates(document)  # noqa: SLF001

    # div: 5 + 7, scaled by 1 - 30/60.
    assert candidates[id(div)].score == 6.0


def test_score_node_uses_tag_base_scores():
    document = BeautifulSoup("<h2></h2><td></td><li></li><section></section><div></div>", "html.parser")

    scores = {tag.name: _score_node(tag, 0).score for tag in document.find_all(True)}  # noqa: SLF001

    assert scores == {"h2": -5.0, "td": 3.0, "li": -3.0, "section": 0.0, "div": 5.0}


def test_class_and_id_weights_add_independently():
    def weight(markup):  # noqa: ANN001
        return _get_class_weight(BeautifulSoup(markup, "html.parser").div)  # noqa: SLF001

    assert weight('<div class="content" id="main"></div>') == 50.0
    assert weight('<div class="footer" id="widget"></div>') == -50.0
    assert weight('<div class="content" id="sidebar"></div>') == 0.0
    assert weight('<div class="article comment"></div>') == 0.0
    assert weight("<div></div>") == 0.0


def test_divs_holding_tags_with_block_prefixes_stay_divs():
    document = BeautifulSoup(
        '<div id="article"><article>text</article></div><div id="picture"><picture></picture></div>',
        "html.parser",
    )

    _transform_misused_divs_into_paragraphs(document)  # noqa: SLF001

    assert document.find(id="article").name == "div"
    assert document.find(id="picture").name == "div"
