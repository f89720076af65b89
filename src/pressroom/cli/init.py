"""pressroom init — scaffold a new site.

Creates:
  pressroom.yaml           — site config (site: + build: sections)
  _posts/                  — post sources, one markdown file per post
    YYYY-MM-DD-welcome.md  — sample post with a fenced code block
  _layouts/                — user layouts; empty means the built-ins are used
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from pressroom.cli.errors import err_site_exists
from pressroom.config import CONFIG_NAME, default_config_text
from pressroom.content.frontmatter import dump_front_matter

console = Console()

_DEFAULT_SITE_DIR = Path(".")

_WELCOME_BODY = """\
This site is built with **pressroom**. Each file in `_posts/` becomes one page.

Code blocks keep their language tag for highlighting:

```python
print("hello")
```
"""


def init_cmd(
    site_dir: Annotated[
        Path,
        typer.Argument(help="Directory to initialize. Defaults to current directory."),
    ] = _DEFAULT_SITE_DIR,
    title: Annotated[
        str,
        typer.Option("--title", prompt="Site title", help="Site title shown in every layout."),
    ] = "My Blog",
) -> None:
    """Initialize a new site with config, posts and layouts directories."""
    site_dir = site_dir.resolve()
    site_dir.mkdir(parents=True, exist_ok=True)

    cfg_path = site_dir / CONFIG_NAME
    if cfg_path.exists():
        console.print(err_site_exists(cfg_path))
        raise typer.Exit(1)

    console.print(f"\n[bold]Creating site in {site_dir} …[/]\n")

    cfg_path.write_text(default_config_text(title), encoding="utf-8")
    console.print(f"  [green]✓[/] {CONFIG_NAME}")

    posts_dir = site_dir / "_posts"
    posts_dir.mkdir(exist_ok=True)
    _create_welcome_post(posts_dir)
    console.print("  [green]✓[/] _posts/")

    (site_dir / "_layouts").mkdir(exist_ok=True)
    console.print("  [green]✓[/] _layouts/")

    console.print(f"\n[bold green]✓ Site '{title}' initialized.[/]")
    console.print("\nNext steps:")
    console.print('  1. pressroom new "Post title"   (write a post)')
    console.print("  2. pressroom serve              (preview at http://127.0.0.1:4000/)")
    console.print("  3. pressroom build              (write the site to _site/)")


def _create_welcome_post(posts_dir: Path) -> None:
    now = datetime.now(timezone.utc).replace(microsecond=0)
    meta = {
        "layout": "post",
        "title": "Welcome",
        "date": now.strftime("%Y-%m-%d %H:%M:%S %z"),
        "categories": ["meta"],
    }
    path = posts_dir / f"{now:%Y-%m-%d}-welcome.md"
    if not path.exists():
        path.write_text(dump_front_matter(meta, _WELCOME_BODY), encoding="utf-8")
