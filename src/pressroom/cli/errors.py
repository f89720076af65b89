"""Pressroom rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from pressroom.cli.errors import err_no_posts_dir
    console.print(err_no_posts_dir(Path("_posts")))
    raise typer.Exit(1)
"""

from __future__ import annotations

from pathlib import Path

from rich.markup import escape

from pressroom.build import BuildWarning, PostFailure

_HINTS = {
    "malformed-front-matter": "Close the header with a '---' line and check the YAML between the delimiters.",
    "missing-required-field": "Add the field to the post header (required: layout, title, date).",
    "invalid-field-value": "Use an ISO date such as 2025-03-06 or 2025-03-06 10:00:00 +0100.",
    "duplicate-slug": "Rename one of the files; slugs come from the filename after the date prefix.",
    "unknown-layout": "Create _layouts/<name>.html or change the post's 'layout:' value.",
    "layout-error": "Fix the template error in the layout named by the post.",
    "unreadable": "Check the file's permissions and that it is UTF-8 encoded.",
}


def err_source_not_found(source: Path) -> str:
    """Source directory does not exist."""
    return (
        f"[red]Error:[/] Source directory not found: '{escape(str(source))}'\n"
        "  Run:  pressroom init <dir>   to create a new site."
    )


def err_no_posts_dir(posts_dir: Path) -> str:
    """Posts directory missing — nothing to build."""
    return (
        f"[yellow]Warning:[/] No posts directory at '{escape(str(posts_dir))}'.\n"
        "  Run:  pressroom new \"My first post\"   to create one."
    )


def err_config(message: str, config_path: Path) -> str:
    """pressroom.yaml holds an invalid value."""
    return (
        f"[red]Error:[/] Invalid configuration in '{escape(str(config_path))}':\n"
        f"  {escape(message)}\n"
        "  Fix the value in pressroom.yaml and re-run the command."
    )


def err_post_failed(failure: PostFailure) -> str:
    """One post could not be built."""
    hint = _HINTS.get(failure.kind, "Fix the post and rebuild.")
    return (
        f"[red]✗[/] {escape(failure.source)}: {escape(failure.message)}\n"
        f"    Fix:  {hint}"
    )


def err_build_aborted(count: int) -> str:
    """Fail-fast build stopped before writing."""
    noun = "post" if count == 1 else "posts"
    return (
        f"[red]Error:[/] Build aborted — {count} {noun} failed; nothing was written.\n"
        "  Fix the errors above, or run:  pressroom build --keep-going   to skip failing posts."
    )


def warn_markdown(warning: BuildWarning) -> str:
    """Recoverable markdown problem (the build continues)."""
    return f"[yellow]⚠[/] {escape(warning.source)}: {escape(warning.message)}"


def err_post_exists(path: Path) -> str:
    """``pressroom new`` would overwrite an existing post."""
    return (
        f"[red]Error:[/] Post already exists: '{escape(str(path))}'\n"
        "  Use a different title or pass --date to file it under another day."
    )


def err_site_exists(config_path: Path) -> str:
    """``pressroom init`` target already holds a site."""
    return (
        f"[yellow]⚠[/] '{escape(str(config_path))}' already exists.\n"
        "  Remove it first, or run:  pressroom build   to build the existing site."
    )
