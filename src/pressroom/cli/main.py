"""Pressroom CLI entry point."""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from pressroom.cli.build import build_cmd
from pressroom.cli.init import init_cmd
from pressroom.cli.new import new_cmd
from pressroom.cli.posts import posts_cmd
from pressroom.cli.serve import serve_cmd, watch_cmd


def _installed_version() -> str:
    try:
        return importlib.metadata.version("pressroom")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"pressroom {_installed_version()}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


app = typer.Typer(
    name="pressroom",
    help=(
        "Pressroom — static blog generator.\n\n"
        "  pressroom build   Render _posts/ into a static site.\n"
        "  pressroom serve   Preview locally, rebuilding on change."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log build progress to stderr."),
    ] = False,
) -> None:
    """Pressroom — static blog generator."""
    _configure_logging(verbose)


app.command("init")(init_cmd)
app.command("new")(new_cmd)
app.command("build")(build_cmd)
app.command("serve")(serve_cmd)
app.command("watch")(watch_cmd)
app.command("posts")(posts_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed Pressroom version."""
    typer.echo(f"pressroom {_installed_version()}")


if __name__ == "__main__":
    app()
