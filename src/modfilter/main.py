"""modfilter CLI - check messages from the command line."""

from __future__ import annotations

import sys
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from modfilter import __version__
from modfilter.ai.llm_engine import ModerationAPIError, ModerationClient
from modfilter.configuration.app_configuration import AppConfig, get_app_config
from modfilter.datatypes.verdict_datatypes import Verdict
from modfilter.moderation.blocked_terms import default_blocked_terms
from modfilter.moderation.term_matcher import contains_blocked_term

console = Console()

EXIT_REJECTED = 1
EXIT_API_ERROR = 2


def load_config(config_path: str | None) -> AppConfig:
    """Load ``.env`` from the working directory, then the given or shared YAML configuration."""
    load_dotenv(dotenv_path=Path.cwd() / ".env")
    if config_path:
        return AppConfig(Path(config_path).resolve())
    return get_app_config()


def render_verdict(verdict: Verdict) -> Table:
    table = Table(show_header=False)
    table.add_column("Field", style="dim")
    table.add_column("Value")
    status = "[red]rejected[/]" if verdict.is_malicious else "[green]allowed[/]"
    table.add_row("verdict", status)
    table.add_row("error_code", verdict.error_code.value or "-")
    table.add_row("reason", verdict.reason or "-")
    return table


@click.group()
@click.version_option(version=__version__)
def main():
    """modfilter - blocklist and LLM based message moderation."""


@main.command()
@click.argument("text")
@click.option("--config", "config_path", default=None, help="Path to the YAML config file")
@click.option("--timeout", default=None, type=float, help="Request deadline in seconds")
def check(text: str, config_path: str | None, timeout: float | None):
    """Run the full moderation pipeline on TEXT."""
    app_config = load_config(config_path)
    client = ModerationClient(app_config.client_config())
    if not client.configured:
        console.print("[yellow]No API key configured; messages are allowed without a check.[/]")

    try:
        verdict = client.check_message_sync(text, timeout=timeout)
    except ModerationAPIError as exc:
        console.print(f"[red]Moderation API error:[/] {exc}")
        sys.exit(EXIT_API_ERROR)

    console.print(render_verdict(verdict))
    if verdict.is_malicious:
        sys.exit(EXIT_REJECTED)


@main.command()
@click.argument("text")
@click.option("--config", "config_path", default=None, help="Path to the YAML config file")
def match(text: str, config_path: str | None):
    """Check TEXT against the blocklist only."""
    app_config = load_config(config_path)
    terms = app_config.blocked_terms
    if terms is None:
        terms = default_blocked_terms()

    matched, term = contains_blocked_term(text, terms)
    if matched:
        console.print(f"[red]Blocked term:[/] {term}")
        sys.exit(EXIT_REJECTED)
    console.print("[green]No blocked term found.[/]")


@main.command()
def terms():
    """Show how many baseline blocked terms are bundled."""
    console.print(f"{len(default_blocked_terms())} baseline blocked terms")
