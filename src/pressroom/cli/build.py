"""pressroom build — render a site's posts into static HTML.

Reads ``pressroom.yaml`` from the source directory (defaults when absent),
builds every post under ``build.posts_dir`` and swaps the finished site into
``build.output_dir`` in one step.

Exit codes:
  0  success (also keep-going builds that skipped failing posts)
  1  config error, missing source dir, or a post failed in fail-fast mode

Usage:
  pressroom build
  pressroom build path/to/site --output public
  pressroom build --workers 4 --keep-going
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from jinja2 import TemplateError
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn

from pressroom.build import BuildReport, build_site
from pressroom.cli.errors import (
    err_build_aborted,
    err_config,
    err_no_posts_dir,
    err_post_failed,
    err_source_not_found,
    warn_markdown,
)
from pressroom.config import CONFIG_NAME, ConfigError, PressroomConfig, load_config, validate_config
from pressroom.site.sink import StagedDirectorySink

console = Console()

_DEFAULT_SOURCE = Path(".")


def build_cmd(
    source: Annotated[
        Path,
        typer.Argument(help="Site source directory (holds pressroom.yaml and _posts/)."),
    ] = _DEFAULT_SOURCE,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output directory. Overrides build.output_dir in pressroom.yaml."),
    ] = None,
    workers: Annotated[
        int | None,
        typer.Option("--workers", "-j", help="Parallel parse/render workers (0 = one per CPU)."),
    ] = None,
    keep_going: Annotated[
        bool,
        typer.Option("--keep-going", help="Skip posts that fail instead of aborting the build."),
    ] = False,
    drafts: Annotated[
        bool,
        typer.Option("--drafts", help="Include posts marked 'published: false'."),
    ] = False,
) -> None:
    """Build the static site from markdown posts."""
    cfg = load_site_config(source, output=output, workers=workers, keep_going=keep_going, drafts=drafts)

    if not cfg.posts_path.is_dir():
        console.print(err_no_posts_dir(cfg.posts_path))

    report = run_build(cfg)
    print_report(report, cfg)
    if report.aborted:
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Shared with serve / watch
# ---------------------------------------------------------------------------


def load_site_config(
    source: Path,
    *,
    output: Path | None = None,
    workers: int | None = None,
    keep_going: bool = False,
    drafts: bool = False,
) -> PressroomConfig:
    """Load pressroom.yaml and apply CLI overrides; exit 1 on bad config."""
    if not source.is_dir():
        console.print(err_source_not_found(source))
        raise typer.Exit(1)

    try:
        cfg = load_config(source)
        if output is not None:
            cfg.build.output_dir = str(output if output.is_absolute() else Path.cwd() / output)
        if workers is not None:
            cfg.build.workers = workers
        if keep_going:
            cfg.build.fail_fast = False
        if drafts:
            cfg.build.drafts = True
        validate_config(cfg)
    except ConfigError as exc:
        console.print(err_config(str(exc), source / CONFIG_NAME))
        raise typer.Exit(1)
    return cfg


def run_build(cfg: PressroomConfig) -> BuildReport:
    """One staged build: committed on success, discarded when aborted."""
    sink = StagedDirectorySink(cfg.output_path)
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            console=console,
        ) as prog:
            prog.add_task(f"Building {cfg.site.title}…", total=None)
            report = build_site(cfg, sink)
    except TemplateError as exc:
        sink.discard()
        console.print(
            f"[red]Error:[/] Layout failed to render: {escape(str(exc))}\n"
            f"  Fix the template in {escape(str(cfg.layouts_path))}."
        )
        raise typer.Exit(1)
    except BaseException:
        sink.discard()
        raise

    if report.aborted:
        sink.discard()
    else:
        sink.commit()
    return report


def print_report(report: BuildReport, cfg: PressroomConfig) -> None:
    for warning in report.warnings:
        console.print(warn_markdown(warning))
    for failure in report.failures:
        console.print(err_post_failed(failure))
    for skipped in report.skipped:
        console.print(f"  [dim]↷ Skipped draft {escape(skipped)}[/]")

    if report.aborted:
        console.print(err_build_aborted(len(report.failures)))
        return

    summary = (
        f"[bold green]✓[/] Built {report.posts} post(s), {report.documents} file(s) "
        f"into [bold]{escape(str(cfg.output_path))}[/] in {report.elapsed:.2f}s"
    )
    if report.failures:
        summary += f" — [yellow]{len(report.failures)} post(s) skipped[/]"
    console.print(summary)
