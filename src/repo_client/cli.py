"""Command line interface for repo-client."""

import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from . import __version__
from .client import RepoClient
from .config import ConfigManager
from .errors import RepoClientError

console = Console()


def _load_client(ctx: click.Context) -> RepoClient:
    config_manager: ConfigManager = ctx.obj["config_manager"]
    try:
        config = config_manager.load()
    except ValueError as e:
        console.print(f"[red]❌ {e}[/red]")
        sys.exit(1)
    return RepoClient(config)


def _fail(e: RepoClientError) -> None:
    console.print(f"[red]❌ {type(e).__name__}: {e}[/red]")
    sys.exit(1)


@click.group()
@click.option("--config", "-c", type=click.Path(exists=False), help="Config file path")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.version_option(version=__version__, prog_name="repo-client")
@click.pass_context
def cli(ctx, config: Optional[str], verbose: bool):
    """Inspect repository history and search tracked content.

    \b
    LOCATOR is a local path, a file:// URI or a clone-able remote URL.

    \b
    EXAMPLES:
      repo-client commits . --depth 10
      repo-client search . "eval(" --path src
      repo-client files https://github.com/org/repo --ref v1.2.0
    """
    ctx.ensure_object(dict)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s:%(name)s:%(message)s",
    )

    if config:
        ctx.obj["config_manager"] = ConfigManager(Path(config))
    else:
        ctx.obj["config_manager"] = ConfigManager.create_with_backtrack()


@cli.command()
@click.argument("locator")
@click.option("--ref", "reference", default=None, help="Reference to start from")
@click.option(
    "--depth",
    type=int,
    default=None,
    help="Number of commits to list (0 or negative: whole history)",
)
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a table")
@click.pass_context
def commits(
    ctx, locator: str, reference: Optional[str], depth: Optional[int], as_json: bool
):
    """List commits reachable from a reference, newest first."""
    with _load_client(ctx) as client:
        try:
            client.init_repo(locator, reference, depth)
            history = client.list_commits()
        except RepoClientError as e:
            _fail(e)

    if as_json:
        click.echo(json.dumps([c.to_dict() for c in history], indent=2))
        return

    table = Table(title=f"Commits in {locator}")
    table.add_column("Commit", style="cyan")
    table.add_column("Date", style="magenta")
    table.add_column("Author", style="green")
    table.add_column("Subject", style="white")
    for commit in history:
        table.add_row(
            commit.short_sha,
            commit.committed_date.strftime("%Y-%m-%d %H:%M"),
            commit.author.name,
            commit.subject,
        )
    console.print(table)


@cli.command()
@click.argument("locator")
@click.argument("query")
@click.option("--ref", "reference", default=None, help="Reference to search at")
@click.option("--filename", default="", help="Only search files with this name")
@click.option(
    "--path", "path_prefix", default="", help="Only search under this directory"
)
@click.option("--ignore-case", "-i", is_flag=True, help="Case-insensitive matching")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a list")
@click.pass_context
def search(
    ctx,
    locator: str,
    query: str,
    reference: Optional[str],
    filename: str,
    path_prefix: str,
    ignore_case: bool,
    as_json: bool,
):
    """Search tracked files for a plain substring."""
    with _load_client(ctx) as client:
        try:
            client.init_repo(locator, reference)
            request = client.make_request(query, filename=filename, path=path_prefix)
            if ignore_case:
                request = replace(request, case_sensitive=False)
            response = client.search(request)
        except RepoClientError as e:
            _fail(e)

    if as_json:
        click.echo(json.dumps(response.to_dict(), indent=2))
        return

    for result in response.results:
        console.print(f"  {result.path}", style="cyan")
    console.print(
        f"{response.hits} hits in {len(response.results)} files",
        style="green" if response.hits else "yellow",
    )


@cli.command()
@click.argument("locator")
@click.option("--ref", "reference", default=None, help="Reference to list files at")
@click.pass_context
def files(ctx, locator: str, reference: Optional[str]):
    """List tracked files at a reference."""
    with _load_client(ctx) as client:
        try:
            client.init_repo(locator, reference)
            paths = client.list_files()
        except RepoClientError as e:
            _fail(e)

    for path in paths:
        click.echo(path)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
