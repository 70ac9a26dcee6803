"""
Command-line interface for Feed Refinery.

Uses Typer to expose the pipeline stages:
- extract: run readability on a saved HTML page
- scrape: download a page and extract its content
- process: filter, scrape, rewrite a feed refresh given as JSON
"""

from __future__ import annotations

from dataclasses import asdict
from pathlib import Path
import json

import typer
from rich.console import Console
from rich.table import Table

from .config import AppConfig, load_config
from .errors import ScraperError
from .extract import extract_content
from .fetch import HttpxFetcher, RequestOptions
from .input import parse_feed_json
from .logging_utils import setup_logging, truncate_text
from .processor import process_feed_entries
from .rules import PredefinedRules
from .scrape import Scraper

app = typer.Typer(add_completion=False)
console = Console(stderr=True)


def _load(
    config: Path | None,
    log_level: str | None,
    log_file: bool | None,
    log_dir: Path | None,
) -> AppConfig:
    cfg = load_config(str(config) if config else None)
    if log_level:
        cfg.logging.level = log_level
    if log_file is not None:
        cfg.logging.file = log_file
    setup_logging(cfg.logging, log_dir)
    return cfg


@app.command()
def extract(
    file: Path = typer.Argument(..., exists=True, readable=True, dir_okay=False),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
):
    """Extract the main content of a saved HTML page.

    Args:
        file: HTML document to read
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    _load(None, log_level, None, None)
    base_url, content = extract_content(file.read_bytes())
    if base_url:
        console.print(f"Base URL: {base_url}")
    typer.echo(content)


@app.command()
def scrape(
    url: str = typer.Argument(..., help="Page to scrape."),
    rules: str = typer.Option("", "--rules", "-r", help="CSS selector used instead of readability."),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True),
    user_agent: str | None = typer.Option(None, "--user-agent", help="User-Agent header."),
    cookie: str = typer.Option("", "--cookie", help="Cookie header sent to the page's site."),
    insecure: bool = typer.Option(False, "--insecure", help="Skip TLS certificate verification."),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
):
    """Download a page and print its extracted content.

    Args:
        url: Page to scrape
        rules: Optional CSS selector
        config: Optional path to YAML config file
        user_agent: Override the configured User-Agent
        cookie: Cookie header value
        insecure: Allow self-signed certificates
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    cfg = _load(config, log_level, None, None)
    options = RequestOptions(
        timeout_seconds=cfg.fetch.timeout_seconds,
        user_agent=user_agent or cfg.fetch.user_agent,
        cookie=cookie,
        proxy_url=cfg.fetch.proxy_url,
        ignore_tls_errors=insecure,
        max_body_size=cfg.fetch.max_body_size,
    )
    scraper = Scraper(
        HttpxFetcher(),
        rules=PredefinedRules.from_config(cfg.rules),
        max_link_hops=cfg.scraper.max_link_hops,
    )

    try:
        base_url, content = scraper.scrape_website(url, rules, options)
    except ScraperError as exc:
        console.print(f"[red]Unable to scrape {url}:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    console.print(f"Base URL: {base_url}")
    typer.echo(content)


@app.command()
def process(
    input: Path = typer.Argument(..., exists=True, readable=True, dir_okay=False),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write entries JSON here."),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True),
    force_refresh: bool = typer.Option(False, "--force-refresh", help="Scrape every entry."),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
    log_file: bool | None = typer.Option(
        None, "--log-file/--no-log-file", help="Enable or disable file logging."
    ),
    log_dir: Path = typer.Option(Path("logs"), "--log-dir", help="Directory for the log file."),
):
    """Filter, scrape and rewrite the entries of a feed refresh.

    Args:
        input: JSON file with "feed", "user" and "entries"
        output: Destination for the processed entries (stdout when omitted)
        config: Optional path to YAML config file
        force_refresh: Scrape entries even when they are not new
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Enable/disable file logging
        log_dir: Directory for the log file
    """
    cfg = _load(config, log_level, log_file, log_dir)

    with open(input, encoding="utf-8") as fh:
        payload = json.load(fh)
    try:
        feed, user = parse_feed_json(payload)
    except ValueError as exc:
        console.print(f"[red]Invalid input:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    total = len(feed.entries)
    entries = process_feed_entries(
        feed,
        user,
        fetcher=HttpxFetcher(),
        rules=PredefinedRules.from_config(cfg.rules),
        cfg=cfg,
        force_refresh=force_refresh,
    )

    table = Table(title=f"{len(entries)} of {total} entries kept")
    table.add_column("Title")
    table.add_column("URL")
    table.add_column("Content")
    for entry in entries:
        table.add_row(entry.title, entry.url, truncate_text(entry.content, 80))
    console.print(table)

    result = json.dumps([asdict(entry) for entry in entries], ensure_ascii=False, indent=2, default=str)
    if output is None:
        typer.echo(result)
    else:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(result, encoding="utf-8")
        console.print(f"Entries written: {output}")
