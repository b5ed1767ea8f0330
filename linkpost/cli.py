"""Command line entry point for linkpost."""

import json
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import click
from pydantic import ValidationError
from rich.console import Console

from linkpost.dependencies import get_settings, get_sync_service
from linkpost.logging_config import configure_application_logging
from linkpost.models.bookmark import Bookmark
from linkpost.services.post_builder import build_post, should_process_bookmark

console = Console()


def _validate_timezone(_ctx, _param, value: str) -> str:
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise click.BadParameter(f"unknown timezone '{value}'") from exc
    return value


@click.group()
@click.version_option(version="0.1.0")
def main():
    """linkpost - publish annotated Raindrop bookmarks to Ghost."""


@click.command()
def sync():
    """Publish the latest tagged bookmark once."""
    settings = get_settings()
    configure_application_logging(settings)

    try:
        response = get_sync_service().run(trigger="cli")
    except RuntimeError as exc:
        console.print(f"[red]Sync failed:[/red] {exc}")
        raise SystemExit(1) from exc

    style = "green" if response.outcome in {"created", "updated"} else "yellow"
    console.print(f"[{style}]{response.message}[/{style}]")


@click.command()
@click.argument("bookmark_json", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--timezone",
    default="America/Los_Angeles",
    show_default=True,
    callback=_validate_timezone,
)
def preview(bookmark_json: Path, timezone: str):
    """Render the post for a Raindrop item saved as JSON, without publishing."""
    try:
        bookmark = Bookmark.model_validate(json.loads(bookmark_json.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise click.ClickException(f"Not a readable Raindrop item: {exc}") from exc

    if not should_process_bookmark(bookmark):
        console.print("[yellow]Bookmark would be skipped - no content to process[/yellow]")
        return

    built = build_post(bookmark, timezone=timezone)
    console.print(f"[bold cyan]{built.payload.title}[/bold cyan]")
    console.print(f"Tags: {', '.join(built.payload.tags)}")
    console.print()
    console.print(built.payload.html, markup=False, highlight=False, soft_wrap=True)


main.add_command(sync)
main.add_command(preview)


if __name__ == "__main__":
    main()
