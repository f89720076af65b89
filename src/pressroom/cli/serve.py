"""pressroom serve / pressroom watch — local preview with rebuild on change.

``serve`` builds once, serves the output directory over HTTP and (unless
--no-watch) rebuilds whenever a source file changes. ``watch`` only rebuilds.

Each rebuild is independent and cancellable: a change during a build cancels
it and starts over; the output directory only ever holds a complete build.
"""

from __future__ import annotations

import functools
import threading
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from pressroom.build import BuildReport
from pressroom.cli.build import load_site_config, print_report, run_build
from pressroom.config import PressroomConfig
from pressroom.watch import Rebuilder, watch

console = Console()

_DEFAULT_SOURCE = Path(".")


def serve_cmd(
    source: Annotated[
        Path,
        typer.Argument(help="Site source directory."),
    ] = _DEFAULT_SOURCE,
    host: Annotated[str, typer.Option("--host", help="Interface to bind.")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", "-p", help="Port to listen on.")] = 4000,
    no_watch: Annotated[
        bool,
        typer.Option("--no-watch", help="Serve the initial build only; do not rebuild on change."),
    ] = False,
    interval: Annotated[
        float,
        typer.Option("--interval", help="Seconds between source tree scans."),
    ] = 1.0,
    drafts: Annotated[
        bool,
        typer.Option("--drafts", help="Include posts marked 'published: false'."),
    ] = False,
) -> None:
    """Build the site, serve it locally and rebuild on change."""
    cfg = load_site_config(source, keep_going=True, drafts=drafts)
    print_report(run_build(cfg), cfg)

    server = make_server(cfg.output_path, host, port)
    thread = threading.Thread(target=server.serve_forever, name="pressroom-http", daemon=True)
    thread.start()
    console.print(f"[bold]Serving[/] {cfg.output_path} at [link]http://{host}:{server.server_address[1]}/[/link]")

    try:
        if no_watch:
            thread.join()
        else:
            _watch_until_interrupted(cfg, interval)
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped.[/]")
    finally:
        server.shutdown()
        server.server_close()


def watch_cmd(
    source: Annotated[
        Path,
        typer.Argument(help="Site source directory."),
    ] = _DEFAULT_SOURCE,
    interval: Annotated[
        float,
        typer.Option("--interval", help="Seconds between source tree scans."),
    ] = 1.0,
    drafts: Annotated[
        bool,
        typer.Option("--drafts", help="Include posts marked 'published: false'."),
    ] = False,
) -> None:
    """Rebuild the site whenever a source file changes."""
    cfg = load_site_config(source, keep_going=True, drafts=drafts)
    print_report(run_build(cfg), cfg)
    try:
        _watch_until_interrupted(cfg, interval)
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped.[/]")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_server(root: Path, host: str, port: int) -> ThreadingHTTPServer:
    """HTTP server for *root*. The directory is looked up per request, so
    swapping in a rebuilt site needs no restart."""
    handler = functools.partial(_QuietHandler, directory=str(root))
    return ThreadingHTTPServer((host, port), handler)


class _QuietHandler(SimpleHTTPRequestHandler):
    def log_message(self, format: str, *args) -> None:  # noqa: A002
        console.print(f"  [dim]{escape(self.address_string())} {escape(format % args)}[/]")


def _watch_until_interrupted(cfg: PressroomConfig, interval: float) -> None:
    console.print(f"[bold]Watching[/] {cfg.source_dir} for changes (Ctrl+C to stop)")

    def on_report(report: BuildReport) -> None:
        print_report(report, cfg)

    watch(cfg, interval=interval, rebuilder=Rebuilder(cfg, on_report=on_report))
