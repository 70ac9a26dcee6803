from __future__ import annotations

import pytest

from feed_refinery.config import RewriteConfig
from feed_refinery.core.types import Entry, Feed
from feed_refinery.rewrite import Rewriter, Rule, RuleKind, parse_rules, rewrite_entry, rewrite_entry_url
from feed_refinery.rewrite import functions
from feed_refinery.rules import PredefinedRules

NO_RULES = PredefinedRules.empty()


def test_parse_rules_reads_names_and_arguments():
    rules = parse_rules('add_dynamic_image,replace("a(.*).svg"|"a$1.png"),remove(".x, .y")')

    assert rules == [
        Rule(RuleKind.ADD_DYNAMIC_IMAGE),
        Rule(RuleKind.REPLACE, ("a(.*).svg", "a$1.png")),
        Rule(RuleKind.REMOVE, (".x, .y",)),
    ]


def test_parse_rules_drops_unknown_names_and_accepts_aliases():
    rules = parse_rules('unknown_rule("x"), nl2br\nconvert_text_link')

    assert [rule.kind for rule in rules] == [RuleKind.NL2BR, RuleKind.CONVERT_TEXT_LINKS]


def test_parse_rules_unescapes_strings():
    rules = parse_rules(r'replace("\"quoted\""|"a\\b")')

    assert rules[0].args == ('"quoted"', "a\\b")


def test_pdf_link_is_always_applied_last():
    entry = Entry(content="body text")

    rewrite_entry("https://example.org/doc.pdf", entry, rules=NO_RULES)

    assert entry.content == '<a href="https://example.org/doc.pdf">PDF</a><br>body text'


def test_pdf_link_skipped_for_other_urls():
    entry = Entry(content="body text")

    rewrite_entry("https://example.org/doc.html", entry, rules=NO_RULES)

    assert entry.content == "body text"


def test_rule_resolution_prefers_explicit_list():
    rules = NO_RULES.with_overrides(rewrite={"example.org": "nl2br"})
    rewriter = Rewriter(rules=rules)

    predefined = rewriter.resolve_rules("https://blog.example.org/post")
    explicit = rewriter.resolve_rules("https://blog.example.org/post", "remove_clickbait")
    nothing = rewriter.resolve_rules("https://other.net/post")

    assert [rule.kind for rule in predefined] == [RuleKind.NL2BR, RuleKind.ADD_PDF_DOWNLOAD_LINK]
    assert [rule.kind for rule in explicit] == [RuleKind.REMOVE_CLICKBAIT, RuleKind.ADD_PDF_DOWNLOAD_LINK]
    assert [rule.kind for rule in nothing] == [RuleKind.ADD_PDF_DOWNLOAD_LINK]


def test_rewrite_requires_entry():
    with pytest.raises(ValueError):
        Rewriter(rules=NO_RULES).rewrite("https://example.org/", None)


def test_failing_rule_does_not_stop_other_rules(monkeypatch):
    def explode(content):  # noqa: ANN001
        raise RuntimeError("boom")

    monkeypatch.setattr(functions, "nl2br", explode)
    entry = Entry(title="BREAKING NEWS", content="a\nb")

    rewrite_entry("https://example.org/", entry, "nl2br,remove_clickbait", rules=NO_RULES)

    assert entry.content == "a\nb"
    assert entry.title == "Breaking news"


def test_rule_with_missing_arguments_is_skipped():
    entry = Entry(content="abc")

    rewrite_entry("https://example.org/", entry, 'replace("a"),remove', rules=NO_RULES)

    assert entry.content == "abc"


def test_every_rule_kind_is_dispatched():
    rewriter = Rewriter(rules=NO_RULES)
    for kind in RuleKind:
        entry = Entry(title="Title", content="<p>content</p>")
        rewriter.apply_rule(Rule(kind, ("p", "q")), "https://example.org/", entry)


def test_add_image_title():
    content = '<img src="comic.png" title="Hello &amp; bye">'

    assert functions.add_image_title(content) == (
        '<figure><img src="comic.png" alt=""/><figcaption>Hello &amp; bye</figcaption></figure>'
    )


def test_add_image_title_without_titled_images_is_noop():
    assert functions.add_image_title('<img src="a.png">') == '<img src="a.png">'


def test_add_mailto_subject():
    content = '<a href="mailto:me@example.org?subject=Hi%20there">Mail</a>'

    assert functions.add_mailto_subject(content) == (
        '<a href="mailto:me@example.org?subject=Hi%20there">Mail [Hi there]</a>'
    )


def test_add_dynamic_image_promotes_lazy_attributes():
    result = functions.add_dynamic_image(
        '<img src="placeholder.gif" data-original="second.jpg" data-src="first.jpg">'
        '<div data-srcset="a.jpg 1x" alt="pic"></div>'
    )

    assert 'src="first.jpg"' in result
    assert "placeholder.gif" not in result
    assert '<img srcset="a.jpg 1x" alt="pic"/>' in result
    assert "<div" not in result


def test_add_dynamic_image_falls_back_to_noscript():
    result = functions.add_dynamic_image('<img src="p.gif"><noscript><img src="real.jpg"></noscript>')

    assert "noscript" not in result
    assert 'src="real.jpg"' in result


def test_add_dynamic_image_without_lazy_images_is_noop():
    content = '<p>No <b>images</b></p>'

    assert functions.add_dynamic_image(content) == content


def test_add_dynamic_iframe():
    result = functions.add_dynamic_iframe('<iframe data-lazy-src="https://player.example/1"></iframe>')

    assert 'src="https://player.example/1"' in result


def test_youtube_rules_use_configured_players():
    cfg = RewriteConfig(youtube_embed_url="https://embed.example/", invidious_instance="inv.example")
    rewriter = Rewriter(rules=NO_RULES, cfg=cfg)

    youtube = Entry(content="desc")
    rewriter.rewrite("https://www.youtube.com/watch?v=abc123", youtube, "add_youtube_video")
    invidious = Entry(content="desc")
    rewriter.rewrite(
        "https://www.youtube.com/watch?v=abc123", invidious, "add_youtube_video_using_invidious_player"
    )

    assert youtube.content == (
        '<iframe width="650" height="350" frameborder="0" src="https://embed.example/abc123" '
        "allowfullscreen></iframe><br>desc"
    )
    assert 'src="https://inv.example/embed/abc123"' in invidious.content


def test_add_invidious_video():
    result = functions.add_invidious_video("https://yewtu.be/watch?v=xyz", "desc")

    assert result.startswith('<iframe width="650" height="350" frameborder="0" src="https://yewtu.be/embed/xyz"')
    assert result.endswith("<br>desc")


def test_add_youtube_video_from_id():
    content = 'var youtube_id = "dQw4w9WgXcQ";'

    result = functions.add_youtube_video_from_id(content, "https://www.youtube-nocookie.com/embed/")

    assert result.startswith('<iframe width="650" height="350" frameborder="0" '
                             'src="https://www.youtube-nocookie.com/embed/dQw4w9WgXcQ"')
    assert result.endswith(content)


def test_nl2br_and_text_links():
    assert functions.nl2br("a\nb") == "a<br>b"
    assert functions.replace_text_links("see https://example.org/x.") == (
        'see <a href="https://example.org/x">https://example.org/x</a>.'
    )


def test_fix_medium_images():
    content = '<figure class="paragraph-image"><img src="placeholder"><noscript><img src="real.jpg"></noscript></figure>'

    assert functions.fix_medium_images(content) == '<img src="real.jpg"/>'


def test_use_noscript_figure_images():
    content = (
        '<figure><img src="ph.gif"><noscript><img src="real.jpg"></noscript>'
        "<figcaption>caption</figcaption></figure>"
    )

    assert functions.use_noscript_figure_images(content) == (
        '<figure><img src="real.jpg"/><figcaption>caption</figcaption></figure>'
    )


def test_replace_custom_expands_group_references():
    assert functions.replace_custom('<img src="a1.svg">', "a(.*).svg", "a$1.png") == '<img src="a1.png">'
    assert functions.replace_custom("abc", "b", "${0}${0}") == "abbc"
    assert functions.replace_custom("abc", "(?P<mid>b)", "[${mid}]") == "a[b]c"
    assert functions.replace_custom("abc", "b", "$$") == "a$c"
    assert functions.replace_custom("abc", "b", "$9") == "ac"


def test_replace_custom_with_invalid_pattern_is_noop():
    assert functions.replace_custom("abc", "(", "x") == "abc"


def test_replace_title_rule():
    entry = Entry(title="Foo news", content="body")

    rewrite_entry("https://example.org/", entry, 'replace_title("Foo"|"Bar")', rules=NO_RULES)

    assert entry.title == "Bar news"
    assert entry.content == "body"


def test_remove_custom():
    content = '<div><p class="x">a</p><p class="y">b</p><p>c</p></div>'

    assert functions.remove_custom(content, ".x, .y") == "<div><p>c</p></div>"
    assert functions.remove_custom(content, "p[") == content


def test_remove_custom_handles_nested_matches():
    assert functions.remove_custom("<div><div>inner</div></div><p>keep</p>", "div") == "<p>keep</p>"


def test_base64_decode():
    assert functions.apply_base64_decode("aGVsbG8gd29ybGQ=") == "hello world"
    assert functions.apply_base64_decode("not base64!") == "not base64!"
    assert functions.apply_base64_decode('<p class="b">aGVsbG8=</p><p>aGVsbG8=</p>', "p.b") == (
        '<p class="b">hello</p><p>aGVsbG8=</p>'
    )


def test_base64_decode_escapes_decoded_markup():
    assert functions.apply_base64_decode("PGI+") == "&lt;b&gt;"


def test_parse_markdown():
    assert functions.parse_markdown("# Title") == "<h1>Title</h1>"


def test_remove_tables():
    content = "<table><tr><td>a</td><td>b</td></tr></table><p>c</p>"

    assert functions.remove_tables(content) == "ab<p>c</p>"


def test_remove_clickbait():
    assert functions.remove_clickbait("YOU WON'T BELIEVE THIS") == "You won't believe this"
    assert functions.remove_clickbait("") == ""


def test_hacker_news_links():
    content = '<p><a href="https://news.ycombinator.com/item?id=1">HN</a></p>'

    hack = functions.add_hn_links_using(content, "hack")
    opener = functions.add_hn_links_using(content, "opener")

    assert '<a href="hack://item?id=1">Open with HACK</a>' in hack
    assert (
        '<a href="opener://x-callback-url/show-options?url=https%3A%2F%2Fnews.ycombinator.com%2Fitem%3Fid%3D1">'
        "Open with Opener</a>"
    ) in opener


def test_add_castopod_episode():
    result = functions.add_castopod_episode("https://pod.example/@show/episodes/1", "notes")

    assert result == (
        '<iframe width="650" frameborder="0" src="https://pod.example/@show/episodes/1/embed/light">'
        "</iframe><br>notes"
    )


def test_rewrite_entry_url():
    feed = Feed(url_rewrite_rules='rewrite("^https://example.org/(.*)"|"https://mirror.example.org/$1")')
    entry = Entry(url="https://example.org/post/1")

    assert rewrite_entry_url(feed, entry) == "https://mirror.example.org/post/1"


def test_rewrite_entry_url_ignores_bad_rules():
    entry = Entry(url="https://example.org/post")

    assert rewrite_entry_url(Feed(), entry) == entry.url
    assert rewrite_entry_url(Feed(url_rewrite_rules="nonsense"), entry) == entry.url
    assert rewrite_entry_url(Feed(url_rewrite_rules='rewrite("("|"x")'), entry) == entry.url
