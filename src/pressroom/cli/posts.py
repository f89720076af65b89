"""pressroom posts — list the site index, newest first.

Parses every post (without writing anything) and prints a table with the
date, slug, title and categories in index order. Posts that fail to parse
are listed below the table.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pressroom.build import load_posts
from pressroom.cli.build import load_site_config
from pressroom.cli.errors import err_no_posts_dir, err_post_failed
from pressroom.content.posts import discover_posts
from pressroom.site.index import build_index

console = Console()


def posts_cmd(
    source: Annotated[
        Path,
        typer.Argument(help="Site source directory."),
    ] = Path("."),
    drafts: Annotated[
        bool,
        typer.Option("--drafts", help="Include posts marked 'published: false'."),
    ] = False,
) -> None:
    """List posts in index order (newest first)."""
    cfg = load_site_config(source, drafts=drafts)

    if not cfg.posts_path.is_dir():
        console.print(err_no_posts_dir(cfg.posts_path))
        raise typer.Exit(0)

    results = load_posts(discover_posts(cfg.posts_path), fail_fast=False)
    posts = [r.post for r in results if r.post is not None and (r.post.published or cfg.build.drafts)]
    index = build_index(posts, excerpt_length=0, permalink=cfg.build.permalink, baseurl=cfg.site.baseurl)

    table = Table(title=f"{cfg.site.title} ({len(index)} posts)", show_lines=False)
    table.add_column("Date", style="cyan", no_wrap=True)
    table.add_column("Slug", style="bold")
    table.add_column("Title")
    table.add_column("Categories", style="dim")

    for summary in index:
        table.add_row(
            summary.date.strftime("%Y-%m-%d"),
            escape(summary.slug),
            escape(summary.title),
            escape(", ".join(summary.categories)),
        )
    console.print(table)

    failures = [r.failure for r in results if r.failure is not None]
    for failure in failures:
        console.print(err_post_failed(failure))
    if failures:
        raise typer.Exit(1)
