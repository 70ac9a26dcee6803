"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- FetchConfig: HTTP fetching settings used when scraping pages
- ScraperConfig: Scrape orchestration limits
- RewriteConfig: Settings consumed by individual rewrite rules
- RulesConfig: Additions/overrides for the predefined per-domain tables
- LoggingConfig: Logging behavior
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

import yaml


@dataclass
class FetchConfig:
    """Configuration for HTTP page fetching.

    Attributes:
        timeout_seconds: HTTP request timeout
        user_agent: Default HTTP User-Agent header, used when the feed sets none
        proxy_url: Proxy used for feeds that enable fetch_via_proxy
        max_body_size: Maximum number of body bytes read from a response
    """

    timeout_seconds: float = 20.0
    user_agent: str = (
        "Mozilla/5.0 (compatible; feed-refinery/0.1; +https://github.com/feed-refinery)"
    )
    proxy_url: str | None = None
    max_body_size: int = 15 * 1024 * 1024


@dataclass
class ScraperConfig:
    """Configuration for scrape orchestration.

    Attributes:
        max_link_hops: How many single-link pages are followed before giving up
    """

    max_link_hops: int = 3


@dataclass
class RewriteConfig:
    """Configuration for rewrite rules that embed third-party players.

    Attributes:
        youtube_embed_url: Base URL the YouTube video ID is appended to
        invidious_instance: Host name of the Invidious instance
    """

    youtube_embed_url: str = "https://www.youtube-nocookie.com/embed/"
    invidious_instance: str = "yewtu.be"


@dataclass
class RulesConfig:
    """Extra entries for the predefined per-domain rule tables.

    Attributes:
        scraper: domain -> CSS selector, merged over the built-in table
        rewrite: domain -> rewrite rule list, merged over the built-in table
    """

    scraper: dict[str, str] = field(default_factory=dict)
    rewrite: dict[str, str] = field(default_factory=dict)


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    filename: str = "run.jsonl"


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    fetch: FetchConfig = field(default_factory=FetchConfig)
    scraper: ScraperConfig = field(default_factory=ScraperConfig)
    rewrite: RewriteConfig = field(default_factory=RewriteConfig)
    rules: RulesConfig = field(default_factory=RulesConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return _merge_config(AppConfig(), raw)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update(value)
        else:
            data[key] = value
    return _fromdict(data)


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    return AppConfig(
        fetch=FetchConfig(**data["fetch"]),
        scraper=ScraperConfig(**data["scraper"]),
        rewrite=RewriteConfig(**data["rewrite"]),
        rules=RulesConfig(**data["rules"]),
        logging=LoggingConfig(**data["logging"]),
    )
