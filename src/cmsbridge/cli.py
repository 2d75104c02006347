"""cmsbridge CLI

Render theme pages from the command line.

Usage:
    cmsbridge render themes/demo /blog/hello       # render the page routed to a URL
    cmsbridge render themes/demo --page home       # render a page by name
    cmsbridge render themes/demo / -o out.html     # write to a file
    cmsbridge pages themes/demo                    # list pages and their URLs
    cmsbridge --version
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
from jinja2 import TemplateError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from cmsbridge import __version__
from cmsbridge.controller import Controller
from cmsbridge.exceptions import CmsError
from cmsbridge.theme import Theme

console = Console()
log = logging.getLogger(__name__)

typer_app = typer.Typer(help="Render CMS theme pages through Jinja2.")


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the cmsbridge CLI.

    Log levels:
    - Normal: Only warnings/errors shown
    - Verbose (-v): INFO level - shows which page and layout are rendered
    - Debug (CMSBRIDGE_DEBUG=1): DEBUG level - shows everything
    """
    debug = bool(os.environ.get("CMSBRIDGE_DEBUG"))
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=verbose,
        show_path=debug,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    cms_logger = logging.getLogger("cmsbridge")
    cms_logger.setLevel(level)
    cms_logger.handlers = [handler]
    cms_logger.propagate = False


def parse_params(pairs: Optional[List[str]]) -> dict[str, str]:
    """Parse ``key=value`` strings into a dict."""
    params: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected key=value, got {pair!r}")
        params[key.strip()] = value
    return params


def _fail(message: str) -> NoReturn:
    typer.secho(f"Error: {message}", err=True, fg=typer.colors.RED)
    raise typer.Exit(code=1)


@typer_app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    if version:
        typer.echo(f"cmsbridge {__version__}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@typer_app.command()
def render(
    theme_dir: Path = typer.Argument(..., help="Theme directory."),
    url: Optional[str] = typer.Argument(None, help="URL to route, e.g. /blog/hello."),
    page: Optional[str] = typer.Option(
        None, "--page", help="Render this page by name instead of routing a URL."
    ),
    params: Optional[List[str]] = typer.Option(
        None, "-p", "--param", help="Route parameter as key=value (with --page)."
    ),
    output: Optional[Path] = typer.Option(
        None, "-o", "--output", help="Write the rendered page to a file."
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logging."),
) -> None:
    """Render one page of a theme."""
    setup_logging(verbose)

    if url is None and page is None:
        _fail("Give a URL or --page NAME.")

    route_params = parse_params(params)

    try:
        controller = Controller(Theme.load(theme_dir))
        if page is not None:
            html = controller.render(page, route_params)
        else:
            html = controller.run(url)  # type: ignore[arg-type]
    except (CmsError, TemplateError) as exc:
        log.debug("Render failed", exc_info=True)
        _fail(str(exc))

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(html, encoding="utf-8")
        typer.echo(f"Wrote {output}")
    else:
        typer.echo(html)


@typer_app.command()
def pages(theme_dir: Path = typer.Argument(..., help="Theme directory.")) -> None:
    """List the pages of a theme."""
    try:
        theme = Theme.load(theme_dir)
        found = theme.pages()
    except CmsError as exc:
        _fail(str(exc))

    if not found:
        console.print("[yellow]No pages found[/yellow]")
        return

    table = Table()
    table.add_column("Page", style="cyan")
    table.add_column("URL")
    table.add_column("Layout")
    table.add_column("Title")

    for item in found:
        table.add_row(
            item.name,
            item.url or "[dim]-[/dim]",
            item.layout or theme.config.default_layout or "[dim]-[/dim]",
            item.title or "",
        )

    console.print(table)


def app() -> None:
    """Entry point for the installed ``cmsbridge`` script."""
    typer_app()


if __name__ == "__main__":
    app()
