"""
Rule-list parsing for the rewrite engine.

A rule list is a loose token stream: identifiers name a rule and
double-quoted strings are arguments of the most recent rule. Every other
character is a separator, so these are equivalent:

    add_dynamic_image,replace("a(.*).svg"|"a$1.png")
    add_dynamic_image replace("a(.*).svg" "a$1.png")
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import json
import logging
import re

from ..logging_utils import log_event

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r'(?P<ident>[A-Za-z_][A-Za-z0-9_]*)|(?P<string>"(?:[^"\\\n]|\\.)*")')


class RuleKind(str, Enum):
    ADD_IMAGE_TITLE = "add_image_title"
    ADD_MAILTO_SUBJECT = "add_mailto_subject"
    ADD_DYNAMIC_IMAGE = "add_dynamic_image"
    ADD_DYNAMIC_IFRAME = "add_dynamic_iframe"
    ADD_YOUTUBE_VIDEO = "add_youtube_video"
    ADD_YOUTUBE_VIDEO_USING_INVIDIOUS_PLAYER = "add_youtube_video_using_invidious_player"
    ADD_INVIDIOUS_VIDEO = "add_invidious_video"
    ADD_YOUTUBE_VIDEO_FROM_ID = "add_youtube_video_from_id"
    ADD_PDF_DOWNLOAD_LINK = "add_pdf_download_link"
    NL2BR = "nl2br"
    CONVERT_TEXT_LINKS = "convert_text_links"
    FIX_MEDIUM_IMAGES = "fix_medium_images"
    USE_NOSCRIPT_FIGURE_IMAGES = "use_noscript_figure_images"
    REPLACE = "replace"
    REPLACE_TITLE = "replace_title"
    REMOVE = "remove"
    ADD_CASTOPOD_EPISODE = "add_castopod_episode"
    BASE64_DECODE = "base64_decode"
    ADD_HN_LINKS_USING_HACK = "add_hn_links_using_hack"
    ADD_HN_LINKS_USING_OPENER = "add_hn_links_using_opener"
    PARSE_MARKDOWN = "parse_markdown"
    REMOVE_TABLES = "remove_tables"
    REMOVE_CLICKBAIT = "remove_clickbait"


_ALIASES = {
    "convert_text_link": RuleKind.CONVERT_TEXT_LINKS,
}


@dataclass(frozen=True)
class Rule:
    """One parsed rewrite rule and its string arguments."""

    kind: RuleKind
    args: tuple[str, ...] = ()

    @property
    def name(self) -> str:
        return self.kind.value


def lookup_rule_kind(name: str) -> RuleKind | None:
    if name in _ALIASES:
        return _ALIASES[name]
    try:
        return RuleKind(name)
    except ValueError:
        return None


def parse_rules(rules_text: str) -> list[Rule]:
    """Parse a rule list into rules, in order.

    Unknown rule names are dropped (their arguments with them) and logged.
    Strings appearing before any rule name are ignored.
    """
    parsed: list[tuple[str, list[str]]] = []

    for match in _TOKEN_RE.finditer(rules_text or ""):
        if match.group("ident") is not None:
            parsed.append((match.group("ident"), []))
        elif parsed:
            parsed[-1][1].append(_unquote(match.group("string")))

    rules: list[Rule] = []
    for name, args in parsed:
        kind = lookup_rule_kind(name)
        if kind is None:
            log_event(
                logger,
                "Ignoring unknown rewrite rule",
                level=logging.DEBUG,
                event="rewrite_unknown_rule",
                rule_name=name,
            )
            continue
        rules.append(Rule(kind=kind, args=tuple(args)))
    return rules


def _unquote(token: str) -> str:
    try:
        value = json.loads(token)
    except ValueError:
        log_event(
            logger,
            "Unable to unquote rewrite rule argument",
            level=logging.DEBUG,
            event="rewrite_unquote_failed",
            token=token,
        )
        return token[1:-1]
    return value if isinstance(value, str) else token[1:-1]
