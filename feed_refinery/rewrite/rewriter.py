"""
Rewrite engine: apply an ordered rule list to an entry.

Rule source, in priority order:
1. The feed's explicit rule list
2. The predefined list for the entry URL's host
3. Nothing

The PDF download link rule is always appended last. A rule that fails
is logged and skipped; the remaining rules still run.
"""

from __future__ import annotations

import logging

from ..config import RewriteConfig
from ..core.types import Entry
from ..logging_utils import log_event
from ..rules import DEFAULT_RULES, PredefinedRules
from . import functions
from .parser import Rule, RuleKind, parse_rules

logger = logging.getLogger(__name__)

_ARITY = {
    RuleKind.REPLACE: 2,
    RuleKind.REPLACE_TITLE: 2,
    RuleKind.REMOVE: 1,
}


class Rewriter:
    """Applies rewrite rules to entries.

    Attributes:
        rules: Predefined per-domain rule lists
        cfg: Player settings for the video embedding rules
    """

    def __init__(self, rules: PredefinedRules = DEFAULT_RULES, cfg: RewriteConfig | None = None):
        self.rules = rules
        self.cfg = cfg or RewriteConfig()

    def resolve_rules(self, entry_url: str, custom_rules: str = "") -> list[Rule]:
        rules_text = custom_rules or self.rules.rewrite_rules_for(entry_url)
        rules = parse_rules(rules_text)
        rules.append(Rule(RuleKind.ADD_PDF_DOWNLOAD_LINK))
        return rules

    def rewrite(self, entry_url: str, entry: Entry, custom_rules: str = "") -> None:
        """Rewrite entry.content and entry.title in place.

        Raises:
            ValueError: entry is None
        """
        if entry is None:
            raise ValueError("rewriter: an entry is required")

        rules = self.resolve_rules(entry_url, custom_rules)
        log_event(
            logger,
            "Rewriting entry",
            level=logging.DEBUG,
            event="rewrite_entry",
            entry_url=entry_url,
            rules=[rule.name for rule in rules],
        )

        for rule in rules:
            try:
                self.apply_rule(rule, entry_url, entry)
            except Exception as exc:  # noqa: BLE001
                log_event(
                    logger,
                    "Rewrite rule failed",
                    level=logging.WARNING,
                    event="rewrite_rule_failed",
                    entry_url=entry_url,
                    rule_name=rule.name,
                    error=f"{type(exc).__name__}: {exc}",
                )

    def apply_rule(self, rule: Rule, entry_url: str, entry: Entry) -> None:
        kind = rule.kind
        args = rule.args

        expected = _ARITY.get(kind)
        if expected is not None and len(args) < expected:
            log_event(
                logger,
                "Rewrite rule is missing arguments",
                level=logging.WARNING,
                event="rewrite_rule_arguments",
                rule_name=rule.name,
                rule_args=list(args),
            )
            return

        content = entry.content
        if kind is RuleKind.ADD_IMAGE_TITLE:
            entry.content = functions.add_image_title(content)
        elif kind is RuleKind.ADD_MAILTO_SUBJECT:
            entry.content = functions.add_mailto_subject(content)
        elif kind is RuleKind.ADD_DYNAMIC_IMAGE:
            entry.content = functions.add_dynamic_image(content)
        elif kind is RuleKind.ADD_DYNAMIC_IFRAME:
            entry.content = functions.add_dynamic_iframe(content)
        elif kind is RuleKind.ADD_YOUTUBE_VIDEO:
            entry.content = functions.add_youtube_video(entry_url, content, self.cfg.youtube_embed_url)
        elif kind is RuleKind.ADD_YOUTUBE_VIDEO_USING_INVIDIOUS_PLAYER:
            entry.content = functions.add_youtube_video_using_invidious_player(
                entry_url, content, self.cfg.invidious_instance
            )
        elif kind is RuleKind.ADD_INVIDIOUS_VIDEO:
            entry.content = functions.add_invidious_video(entry_url, content)
        elif kind is RuleKind.ADD_YOUTUBE_VIDEO_FROM_ID:
            entry.content = functions.add_youtube_video_from_id(content, self.cfg.youtube_embed_url)
        elif kind is RuleKind.ADD_PDF_DOWNLOAD_LINK:
            entry.content = functions.add_pdf_download_link(entry_url, content)
        elif kind is RuleKind.NL2BR:
            entry.content = functions.nl2br(content)
        elif kind is RuleKind.CONVERT_TEXT_LINKS:
            entry.content = functions.replace_text_links(content)
        elif kind is RuleKind.FIX_MEDIUM_IMAGES:
            entry.content = functions.fix_medium_images(content)
        elif kind is RuleKind.USE_NOSCRIPT_FIGURE_IMAGES:
            entry.content = functions.use_noscript_figure_images(content)
        elif kind is RuleKind.REPLACE:
            entry.content = functions.replace_custom(content, args[0], args[1])
        elif kind is RuleKind.REPLACE_TITLE:
            entry.title = functions.replace_custom(entry.title, args[0], args[1])
        elif kind is RuleKind.REMOVE:
            entry.content = functions.remove_custom(content, args[0])
        elif kind is RuleKind.ADD_CASTOPOD_EPISODE:
            entry.content = functions.add_castopod_episode(entry_url, content)
        elif kind is RuleKind.BASE64_DECODE:
            selector = args[0] if args and args[0] else "body"
            entry.content = functions.apply_base64_decode(content, selector)
        elif kind is RuleKind.ADD_HN_LINKS_USING_HACK:
            entry.content = functions.add_hn_links_using(content, "hack")
        elif kind is RuleKind.ADD_HN_LINKS_USING_OPENER:
            entry.content = functions.add_hn_links_using(content, "opener")
        elif kind is RuleKind.PARSE_MARKDOWN:
            entry.content = functions.parse_markdown(content)
        elif kind is RuleKind.REMOVE_TABLES:
            entry.content = functions.remove_tables(content)
        elif kind is RuleKind.REMOVE_CLICKBAIT:
            entry.title = functions.remove_clickbait(entry.title)
        else:
            raise AssertionError(f"unhandled rewrite rule kind: {kind}")


def rewrite_entry(
    entry_url: str,
    entry: Entry,
    custom_rules: str = "",
    rules: PredefinedRules = DEFAULT_RULES,
    cfg: RewriteConfig | None = None,
) -> None:
    """Rewrite an entry with a one-off Rewriter; see Rewriter.rewrite."""
    Rewriter(rules=rules, cfg=cfg).rewrite(entry_url, entry, custom_rules)
