"""pressroom new — create a dated post file with a front-matter header."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from pressroom.cli.build import load_site_config
from pressroom.cli.errors import err_post_exists
from pressroom.content.frontmatter import dump_front_matter, parse_date
from pressroom.errors import InvalidFieldValue
from pressroom.site.sink import write_atomic

console = Console()

_SLUG_INVALID_RE = re.compile(r"[^a-z0-9]+")


def new_cmd(
    title: Annotated[str, typer.Argument(help="Post title.")],
    source: Annotated[
        Path,
        typer.Option("--source", "-s", help="Site source directory."),
    ] = Path("."),
    layout: Annotated[str, typer.Option("--layout", help="Layout name for the post.")] = "post",
    category: Annotated[
        list[str] | None,
        typer.Option("--category", "-c", help="Category tag (repeatable)."),
    ] = None,
    date: Annotated[
        str | None,
        typer.Option("--date", help="Post date (ISO format). Defaults to now."),
    ] = None,
    draft: Annotated[
        bool,
        typer.Option("--draft", help="Mark the post 'published: false'."),
    ] = False,
) -> None:
    """Create a new post in the site's posts directory."""
    cfg = load_site_config(source)

    try:
        when = parse_date(date) if date else datetime.now(timezone.utc).replace(microsecond=0)
    except InvalidFieldValue as exc:
        console.print(f"[red]Error:[/] {exc.message}\n  Example:  --date 2025-03-06")
        raise typer.Exit(1)

    slug = _SLUG_INVALID_RE.sub("-", title.lower()).strip("-") or "post"
    path = cfg.posts_path / f"{when:%Y-%m-%d}-{slug}.md"
    if path.exists():
        console.print(err_post_exists(path))
        raise typer.Exit(1)

    meta: dict = {
        "layout": layout,
        "title": title,
        "date": when.strftime("%Y-%m-%d %H:%M:%S %z"),
    }
    if category:
        meta["categories"] = list(category)
    if draft:
        meta["published"] = False

    write_atomic(path, dump_front_matter(meta, "\n"))
    console.print(f"[bold green]✓[/] Created [bold]{path}[/]")
