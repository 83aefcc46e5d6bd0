"""Command-line entry point for the revisions digest."""

from __future__ import annotations

import json
import logging
from contextlib import ExitStack
from datetime import datetime
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from revisions_digest.config import Config, load_config
from revisions_digest.digest import Digest, DigestResult
from revisions_digest.differ import summarize
from revisions_digest.models import GroupBy, Period
from revisions_digest.reporter import EMPTY_MESSAGE, ReportGenerator
from revisions_digest.store import FileStore, StoreError, as_utc
from revisions_digest.wordpress import WordPressClient

logger = logging.getLogger(__name__)
console = Console()
# Logs go to stderr so JSON on stdout stays parseable
log_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich output."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=log_console, rich_tracebacks=True)],
    )


def open_source(config: Config, stack: ExitStack) -> FileStore | WordPressClient:
    """Open the configured content source.

    Both source types also serve user and category lookups.
    """
    source = config.source
    if source.source_type == "file":
        return FileStore(source.path, post_type=source.post_type, status=source.status)

    if not source.is_authenticated:
        logger.warning("WP_USERNAME/WP_APP_PASSWORD not set; revisions may be unavailable")
    return stack.enter_context(
        WordPressClient(
            base_url=source.base_url,
            post_type=source.post_type,
            status=source.status,
            username=source.username,
            app_password=source.app_password,
            timeout=source.timeout,
            retry_count=source.retry_count,
        )
    )


def print_digest(result: DigestResult) -> None:
    """Print a digest summary to the console."""
    console.print(f"[bold]Revisions Digest[/bold] since {result.cutoff:%Y-%m-%d %H:%M} UTC")

    if result.is_empty:
        console.print(EMPTY_MESSAGE)
        return

    for group in result.groups.values():
        if result.request.group_by != GroupBy.POST:
            console.print(f"\n[bold cyan]{escape(group.key)}[/bold cyan]")
        console.print(f"  [italic]{escape(group.description)}[/italic]")
        for change in group.changes:
            title = change.item.title if change.item and change.item.title else f"#{change.item_id}"
            console.print(f"    • {escape(title)}: {summarize(change.edits)}")


@click.command()
@click.option("--config", "config_path", default="config/config.yaml", help="Config file path")
@click.option(
    "--period",
    type=click.Choice([p.value for p in Period]),
    default=None,
    help="Lookback period (defaults to config)",
)
@click.option("--group-by", "group_by", default=None, help="post, date, user or taxonomy")
@click.option("--since", default=None, help="Explicit ISO cutoff, overrides --period")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json", "html"]),
    default="text",
    help="Output format",
)
@click.option("--output", "output_path", default=None, help="Write output to this file")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
def cli(
    config_path: str,
    period: str | None,
    group_by: str | None,
    since: str | None,
    output_format: str,
    output_path: str | None,
    verbose: bool,
) -> None:
    """Summarize recent page edits as a digest."""
    # Load .env file for local development
    load_dotenv()
    setup_logging(verbose)

    try:
        config = load_config(Path(config_path))
        cutoff: datetime | None = as_utc(since) if since else None
        request = config.digest.to_request(
            period=Period(period) if period else None,
            group_by=GroupBy.parse(group_by) if group_by else None,
            cutoff=cutoff,
        )

        with ExitStack() as stack:
            source = open_source(config, stack)
            digest = Digest(store=source, users=source, taxonomy=source)
            result = digest.get_grouped_changes(request)

            if output_format == "json":
                payload = json.dumps(result.to_dict(source), indent=2)
                if output_path:
                    Path(output_path).write_text(payload)
                    console.print(f"[green]Digest written to {output_path}[/green]")
                else:
                    click.echo(payload)
            elif output_format == "html":
                reporter = ReportGenerator(config.reports_dir)
                if output_path:
                    Path(output_path).write_text(reporter.render_digest(result, source))
                    written = Path(output_path)
                else:
                    written = reporter.generate_digest(result, source)
                    reporter.update_main_index()
                console.print(f"[green]Report written to {written}[/green]")
            else:
                print_digest(result)

    except FileNotFoundError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise SystemExit(1) from None
    except (StoreError, ValueError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise SystemExit(1) from None
    except Exception as e:
        logger.exception("Unexpected error")
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise SystemExit(1) from None


if __name__ == "__main__":
    cli()
