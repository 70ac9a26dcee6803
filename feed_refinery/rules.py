"""
Predefined per-domain rule tables.

Two static tables ship with the package:
- SCRAPER_RULES: domain -> CSS selector used instead of readability
- REWRITE_RULES: domain -> rewrite rule list applied when a feed has none

A domain key matches when it is a (case-sensitive) substring of the
host name; the first match in table order wins. The tables are wrapped
in a PredefinedRules value that is built once and passed to the scraper
and the rewriter, so tests can inject alternate tables.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from .config import RulesConfig
from .utils.urls import domain

# Alphabetically sorted.
SCRAPER_RULES: dict[str, str] = {
    "bbc.co.uk": "div.vxp-column--single, div.story-body__inner, ul.gallery-images__list",
    "blog.cloudflare.com": "div.post-content",
    "cbc.ca": ".story-content",
    "darkreading.com": "#article-main:not(header)",
    "developpez.com": "div[itemprop=articleBody]",
    "dilbert.com": "span.comic-title-name, img.img-comic",
    "explosm.net": "div#comic",
    "financialsamurai.com": "article",
    "francetvinfo.fr": ".text",
    "github.com": "article.entry-content",
    "heise.de": "header > div:first-of-type, div.article-layout__content.article-content",
    "igen.fr": "section.corps",
    "ikiwiki.iki.fi": ".page.group",
    "ilpost.it": ".entry-content",
    "ing.dk": "section.body",
    "lapresse.ca": ".amorce, .entry",
    "lemonde.fr": "article",
    "lepoint.fr": ".art-text",
    "lesjoiesducode.fr": ".blog-post-content img",
    "lesnumeriques.com": ".text",
    "linux.com": "div.content, div[property]",
    "mac4ever.com": "div[itemprop=articleBody]",
    "monwindows.com": ".blog-post-body",
    "npr.org": "#storytext",
    "oneindia.com": ".io-article-body",
    "opensource.com": "div[property]",
    "osnews.com": "div.newscontent1",
    "phoronix.com": "div.content",
    "pitchfork.com": "#main-content",
    "quantamagazine.org": ".outer--content, figure, script",
    "raywenderlich.com": "article",
    "royalroad.com": ".author-note-portlet,.chapter-content",
    "slate.fr": ".field-items",
    "smbc-comics.com": "div#cc-comicbody, div#aftercomic",
    "techcrunch.com": "div.article-entry",
    "theoatmeal.com": "div#comic",
    "theregister.com": "#top-col-story h2, #body",
    "turnoff.us": "article.post-content",
    "universfreebox.com": "#corps_corps",
    "version2.dk": "section.body",
    "wdwnt.com": "div.entry-content",
    "webtoons.com": ".viewer_img,p.author_text",
    "wired.com": "main figure, article",
    "zdnet.com": "div.storyBody",
    "zeit.de": ".summary, .article-body",
}

# Alphabetically sorted.
REWRITE_RULES: dict[str, str] = {
    "abstrusegoose.com": "add_image_title",
    "amazingsuperpowers.com": "add_image_title",
    "blog.cloudflare.com": 'add_image_title,remove("figure.kg-image-card figure.kg-image + img")',
    "cowbirdsinlove.com": "add_image_title",
    "drawingboardcomic.com": "add_image_title",
    "exocomics.com": "add_image_title",
    "framatube.org": "nl2br,convert_text_link",
    "happletea.com": "add_image_title",
    "ilpost.it": (
        'remove(".art_tag, #audioPlayerArticle, .author-container, .caption, .ilpostShare, '
        '.lastRecents, #mc_embed_signup, .outbrain_inread, p:has(.leggi-anche), .youtube-overlay")'
    ),
    "imogenquest.net": "add_image_title",
    "lukesurl.com": "add_image_title",
    "medium.com": "fix_medium_images",
    "mercworks.net": "add_image_title",
    "monkeyuser.com": "add_image_title",
    "mrlovenstein.com": "add_image_title",
    "nedroid.com": "add_image_title",
    "oglaf.com": 'replace("media.oglaf.com/story/tt(.+).gif"|"media.oglaf.com/comic/$1.jpg"),add_image_title',
    "optipess.com": "add_image_title",
    "peebleslab.com": "add_image_title",
    "quantamagazine.org": (
        'add_youtube_video_from_id, remove("h6:not(.byline,.post__title__kicker), #comments, '
        '.next-post__content, .footer__section, figure .outer--content, script")'
    ),
    "sentfromthemoon.com": "add_image_title",
    "thedoghousediaries.com": "add_image_title",
    "theverge.com": 'add_dynamic_image, remove("div.duet--recirculation--related-list, .hidden")',
    "treelobsters.com": "add_image_title",
    "webtoons.com": 'add_dynamic_image,replace("webtoon"|"swebtoon")',
    "www.qwantz.com": "add_image_title,add_mailto_subject",
    "xkcd.com": "add_image_title",
    "youtube.com": "add_youtube_video",
}


def _lookup(table: Mapping[str, str], url: str) -> str:
    host = domain(url)
    for key, rules in table.items():
        if key in host:
            return rules
    return ""


@dataclass(frozen=True)
class PredefinedRules:
    """Read-only domain -> rules tables for the scraper and the rewriter."""

    scraper: Mapping[str, str] = field(default_factory=lambda: MappingProxyType(dict(SCRAPER_RULES)))
    rewrite: Mapping[str, str] = field(default_factory=lambda: MappingProxyType(dict(REWRITE_RULES)))

    def scraper_rules_for(self, url: str) -> str:
        """Return the CSS selector registered for the URL's host, or ""."""
        return _lookup(self.scraper, url)

    def rewrite_rules_for(self, url: str) -> str:
        """Return the rewrite rule list registered for the URL's host, or ""."""
        return _lookup(self.rewrite, url)

    def with_overrides(
        self,
        scraper: Mapping[str, str] | None = None,
        rewrite: Mapping[str, str] | None = None,
    ) -> PredefinedRules:
        """Return new tables with extra entries merged over these ones."""
        return PredefinedRules(
            scraper=MappingProxyType({**self.scraper, **(scraper or {})}),
            rewrite=MappingProxyType({**self.rewrite, **(rewrite or {})}),
        )

    @classmethod
    def empty(cls) -> PredefinedRules:
        return cls(scraper=MappingProxyType({}), rewrite=MappingProxyType({}))

    @classmethod
    def from_config(cls, cfg: RulesConfig) -> PredefinedRules:
        return DEFAULT_RULES.with_overrides(scraper=cfg.scraper, rewrite=cfg.rewrite)


DEFAULT_RULES = PredefinedRules()
