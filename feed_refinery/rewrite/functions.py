"""
Content transforms behind the rewrite rules.

Every function takes the current HTML (or title) and returns the new
value; the input is returned unchanged when the rule does not apply.
DOM-based rules parse the fragment with BeautifulSoup and serialize the
body contents back.
"""

from __future__ import annotations

import base64
import html
import logging
import re
from urllib.parse import parse_qs, urlencode, urlsplit

from bs4 import BeautifulSoup, NavigableString, Tag
import markdown
import soupsieve

from ..logging_utils import log_event

logger = logging.getLogger(__name__)

_YOUTUBE_VIDEO_RE = re.compile(r"youtube\.com/watch\?v=(.*)$")
_YOUTUBE_SHORT_RE = re.compile(r"youtube\.com/shorts/([a-zA-Z0-9_-]{11})$")
_YOUTUBE_ID_RE = re.compile(r'youtube_id"?\s*[:=]\s*"([a-zA-Z0-9_-]{11})"')
_INVIDIOUS_RE = re.compile(r"https?://(.*)/watch\?v=(.*)")
_IMG_RE = re.compile(r"<img [^>]+>")
_TEXT_LINK_RE = re.compile(
    r"(\bhttps?://[-A-Z0-9+&@#/%?=~_|!:,.;]*[-A-Z0-9+&@#/%=~_|])", re.IGNORECASE | re.MULTILINE
)
_TEMPLATE_RE = re.compile(r"\$(?:(\$)|\{(\w+)\}|(\w+))")

HN_PREFIX = "https://news.ycombinator.com/"

# Ordered most preferred to least preferred.
LAZY_IMAGE_SRC_ATTRS = (
    "data-src",
    "data-original",
    "data-orig",
    "data-url",
    "data-orig-file",
    "data-large-file",
    "data-medium-file",
    "data-original-mos",
    "data-2000src",
    "data-1000src",
    "data-800src",
    "data-655src",
    "data-500src",
    "data-380src",
)
LAZY_IMAGE_SRCSET_ATTRS = ("data-srcset",)
LAZY_IFRAME_SRC_ATTRS = (
    "data-src",
    "data-original",
    "data-orig",
    "data-url",
    "data-lazy-src",
)

_TABLE_TAGS = ["table", "thead", "tbody", "tfoot", "tr", "th", "td"]


def add_image_title(content: str) -> str:
    """Turn <img src title> into a figure with the title as caption."""
    document = _parse(content)
    images = document.select("img[src][title]")
    if not images:
        return content

    for img in images:
        figure = document.new_tag("figure")
        figure.append(document.new_tag("img", attrs={"src": img["src"], "alt": img.get("alt", "")}))
        caption = document.new_tag("figcaption")
        caption.string = str(img["title"])
        figure.append(caption)
        img.replace_with(figure)

    return _render(document)


def add_mailto_subject(content: str) -> str:
    document = _parse(content)
    links = document.select('a[href^="mailto:"]')
    if not links:
        return content

    for link in links:
        query = parse_qs(urlsplit(str(link["href"])).query)
        subject = query.get("subject", [""])[0]
        if subject:
            link.append(f" [{subject}]")

    return _render(document)


def add_dynamic_image(content: str) -> str:
    """Promote lazy-load image attributes into real src/srcset.

    When no element carries such an attribute, a lone <img> inside a
    <noscript> block replaces that block instead.
    """
    document = _parse(content)
    changed = False

    for element in document.find_all(["img", "div"]):
        src = _first_attr(element, LAZY_IMAGE_SRC_ATTRS)
        srcset = _first_attr(element, LAZY_IMAGE_SRCSET_ATTRS)
        if src is None and srcset is None:
            continue

        changed = True
        if element.name == "img":
            if src is not None:
                element["src"] = src
            if srcset is not None:
                element["srcset"] = srcset
            continue

        attrs = {}
        if src is not None:
            attrs["src"] = src
        if srcset is not None:
            attrs["srcset"] = srcset
        attrs["alt"] = str(element.get("alt", ""))
        element.replace_with(document.new_tag("img", attrs=attrs))

    if not changed:
        for noscript in document.find_all("noscript"):
            matches = _IMG_RE.findall(_noscript_markup(noscript))
            if len(matches) == 1:
                _replace_with_html(noscript, matches[0])
                changed = True

    if not changed:
        return content
    return _render(document)


def add_dynamic_iframe(content: str) -> str:
    document = _parse(content)
    changed = False

    for iframe in document.find_all("iframe"):
        src = _first_attr(iframe, LAZY_IFRAME_SRC_ATTRS)
        if src is not None:
            iframe["src"] = src
            changed = True

    if not changed:
        return content
    return _render(document)


def youtube_video_id(entry_url: str) -> str:
    match = _YOUTUBE_VIDEO_RE.search(entry_url) or _YOUTUBE_SHORT_RE.search(entry_url)
    return match.group(1) if match else ""


def add_video_player_iframe(video_url: str, content: str) -> str:
    video = (
        f'<iframe width="650" height="350" frameborder="0" src="{html.escape(video_url)}" '
        "allowfullscreen></iframe>"
    )
    return f"{video}<br>{content}"


def add_youtube_video(entry_url: str, content: str, embed_url: str) -> str:
    video_id = youtube_video_id(entry_url)
    if not video_id:
        return content
    return add_video_player_iframe(embed_url + video_id, content)


def add_youtube_video_using_invidious_player(entry_url: str, content: str, instance: str) -> str:
    video_id = youtube_video_id(entry_url)
    if not video_id:
        return content
    return add_video_player_iframe(f"https://{instance}/embed/{video_id}", content)


def add_invidious_video(entry_url: str, content: str) -> str:
    match = _INVIDIOUS_RE.search(entry_url)
    if not match:
        return content
    return add_video_player_iframe(f"https://{match.group(1)}/embed/{match.group(2)}", content)


def add_youtube_video_from_id(content: str, embed_url: str) -> str:
    """Prepend a player for every youtube_id="..." found in the content."""
    video_ids = _YOUTUBE_ID_RE.findall(content)
    if not video_ids:
        return content
    players = [
        f'<iframe width="650" height="350" frameborder="0" src="{html.escape(embed_url + video_id)}" '
        "allowfullscreen></iframe><br>"
        for video_id in video_ids
    ]
    return "".join(players) + content


def add_pdf_download_link(entry_url: str, content: str) -> str:
    if not entry_url.endswith(".pdf"):
        return content
    return f'<a href="{html.escape(entry_url)}">PDF</a><br>{content}'


def nl2br(content: str) -> str:
    return content.replace("\n", "<br>")


def replace_text_links(content: str) -> str:
    return _TEXT_LINK_RE.sub(r'<a href="\1">\1</a>', content)


def fix_medium_images(content: str) -> str:
    """Replace Medium's lazy figures with the image kept in their <noscript>."""
    document = _parse(content)
    for figure in document.select("figure.paragraph-image"):
        noscript = figure.find("noscript")
        if noscript is not None:
            _replace_with_html(figure, _noscript_markup(noscript))
    return _render(document)


def use_noscript_figure_images(content: str) -> str:
    """Inside figures, drop placeholder images in favor of the <noscript> image."""
    document = _parse(content)
    for figure in document.find_all("figure"):
        noscript = figure.find("noscript")
        if noscript is None:
            continue
        placeholders = [img for img in figure.find_all("img") if img.find_parent("noscript") is None]
        if not placeholders:
            continue

        markup = _noscript_markup(noscript)
        for img in placeholders:
            img.decompose()
        noscript.decompose()
        for node in reversed(_fragment(markup)):
            figure.insert(0, node)
    return _render(document)


def replace_custom(content: str, search: str, replacement: str) -> str:
    """Regex search/replace with $1, ${1}, ${name} and $$ in the replacement.

    An invalid pattern leaves the content unchanged.
    """
    try:
        pattern = re.compile(search)
    except re.error as exc:
        log_event(
            logger,
            "Invalid replace pattern",
            level=logging.WARNING,
            event="rewrite_invalid_pattern",
            pattern=search,
            error=str(exc),
        )
        return content
    return pattern.sub(lambda match: expand_template(match, replacement), content)


def expand_template(match: re.Match[str], template: str) -> str:
    """Expand a $-style replacement template; unknown groups expand to ""."""

    def reference(ref: re.Match[str]) -> str:
        if ref.group(1):
            return "$"
        name = ref.group(2) or ref.group(3)
        try:
            value = match.group(int(name)) if name.isdigit() else match.group(name)
        except IndexError:
            return ""
        return value or ""

    return _TEMPLATE_RE.sub(reference, template)


def remove_custom(content: str, selector: str) -> str:
    document = _parse(content)
    try:
        elements = document.select(selector)
    except soupsieve.SelectorSyntaxError as exc:
        log_event(
            logger,
            "Invalid remove selector",
            level=logging.WARNING,
            event="rewrite_invalid_selector",
            selector=selector,
            error=str(exc),
        )
        return content

    for element in elements:
        if not element.decomposed:
            element.decompose()
    return _render(document)


def add_castopod_episode(entry_url: str, content: str) -> str:
    player = f'<iframe width="650" frameborder="0" src="{html.escape(entry_url)}/embed/light"></iframe>'
    return f"{player}<br>{content}"


def decode_base64_content(text: str) -> str | None:
    try:
        return base64.b64decode(text.strip(), validate=True).decode("utf-8")
    except ValueError:
        return None


def apply_base64_decode(content: str, selector: str = "body") -> str:
    """Base64-decode the text of every element matching selector, in place.

    Text that is not valid base64 (or not UTF-8 once decoded) is kept.
    """
    document = _parse(content)
    if selector == "body" and document.body is None:
        targets: list[Tag] = [document]
    else:
        try:
            targets = document.select(selector)
        except soupsieve.SelectorSyntaxError as exc:
            log_event(
                logger,
                "Invalid base64_decode selector",
                level=logging.WARNING,
                event="rewrite_invalid_selector",
                selector=selector,
                error=str(exc),
            )
            return content

    for target in targets:
        for text in list(target.find_all(string=True)):
            if type(text) is not NavigableString or not text.strip():
                continue
            decoded = decode_base64_content(str(text))
            if decoded is not None:
                text.replace_with(decoded)

    return _render(document)


def add_hn_links_using(content: str, app: str) -> str:
    """Add "Open with ..." links next to Hacker News links for the hack or opener apps."""
    document = _parse(content)
    links = document.select(f'a[href^="{HN_PREFIX}"]')
    if not links:
        return content

    for link in links:
        href = str(link["href"])
        if app == "opener":
            target = "opener://x-callback-url/show-options?" + urlencode({"url": href})
            label = "Open with Opener"
        elif app == "hack":
            target = href.replace(HN_PREFIX, "hack://", 1)
            label = "Open with HACK"
        else:
            log_event(
                logger,
                "Unknown app for Hacker News links",
                level=logging.WARNING,
                event="rewrite_unknown_hn_app",
                app=app,
            )
            return content

        anchor = document.new_tag("a", attrs={"href": target})
        anchor.string = label
        link.parent.append(" ")
        link.parent.append(anchor)

    return _render(document)


def parse_markdown(content: str) -> str:
    return markdown.markdown(content)


def remove_tables(content: str) -> str:
    """Unwrap table markup, keeping the cell contents in document order."""
    document = _parse(content)
    tables = document.find_all("table")
    if not tables:
        return content

    for element in document.find_all(_TABLE_TAGS):
        element.unwrap()
    return _render(document)


def remove_clickbait(title: str) -> str:
    """Sentence-case a shouting title."""
    lowered = title.lower()
    return lowered[:1].upper() + lowered[1:]


def _parse(content: str) -> BeautifulSoup:
    return BeautifulSoup(content, "html.parser")


def _render(document: BeautifulSoup) -> str:
    body = document.body
    if body is not None:
        return body.decode_contents()
    return document.decode_contents()


def _fragment(markup: str) -> list:
    return list(_parse(markup).contents)


def _replace_with_html(element: Tag, markup: str) -> None:
    nodes = _fragment(markup)
    if nodes:
        element.replace_with(*nodes)
    else:
        element.decompose()


def _noscript_markup(noscript: Tag) -> str:
    # html.parser parses noscript children as markup; other builders keep them as text.
    if noscript.find(True) is not None:
        return noscript.decode_contents()
    return noscript.get_text()


def _first_attr(element: Tag, names: tuple[str, ...]) -> str | None:
    for name in names:
        value = element.get(name)
        if value is not None:
            return str(value)
    return None
