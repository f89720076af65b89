"""Build pipeline.

  Discover posts → Parse + render each (parallel) → join
    → check slugs and layouts → Build index → Assemble outputs → write

Per-post work runs in a ProcessPoolExecutor when more than one worker is
configured. Workers return PostResult values and never raise across the
process boundary, so one bad file cannot take others down with it.

Partial-failure policy (build.fail_fast):
  true  — stop scheduling work at the first failure and write nothing.
  false — skip failed posts, write everything else, report the failures.

Nothing reaches the sink until every document has been assembled.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ProcessPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path

from jinja2 import TemplateError

from pressroom.config import PressroomConfig
from pressroom.content.models import Post
from pressroom.content.posts import discover_posts, parse_post
from pressroom.errors import BuildCancelled, ContentError, UnknownLayout
from pressroom.site.assembler import (
    Document,
    assemble_feed,
    assemble_index,
    assemble_post,
    collect_static_files,
    static_documents,
    write_documents,
)
from pressroom.site.index import SiteIndex, build_index, check_unique_slugs
from pressroom.site.layouts import LayoutSet
from pressroom.site.sink import OutputSink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PostFailure:
    source: str
    kind: str
    message: str

    def __str__(self) -> str:
        return f"{self.source}: {self.message}"


@dataclass(frozen=True)
class BuildWarning:
    source: str
    message: str

    def __str__(self) -> str:
        return f"{self.source}: {self.message}"


@dataclass(frozen=True)
class PostResult:
    """Outcome of parsing one file. Exactly one of post / failure is set."""

    source: str
    post: Post | None = None
    failure: PostFailure | None = None
    warnings: tuple[BuildWarning, ...] = ()


@dataclass
class BuildReport:
    posts: int = 0
    documents: int = 0
    skipped: list[str] = field(default_factory=list)  # unpublished drafts
    failures: list[PostFailure] = field(default_factory=list)
    warnings: list[BuildWarning] = field(default_factory=list)
    elapsed: float = 0.0
    aborted: bool = False  # fail-fast stopped the build before writing

    @property
    def ok(self) -> bool:
        return not self.failures


# ------------------------------------------------------------------
# Per-post stage (runs in worker processes)
# ------------------------------------------------------------------


def load_post(path: Path) -> PostResult:
    """Parse and render *path*, capturing errors as data."""
    source = str(path)
    try:
        post, md_warnings = parse_post(path)
    except ContentError as exc:
        return PostResult(source, failure=PostFailure(source, exc.kind, exc.message))
    except (OSError, UnicodeDecodeError) as exc:
        return PostResult(source, failure=PostFailure(source, "unreadable", str(exc)))

    warnings = tuple(BuildWarning(source, str(w)) for w in md_warnings)
    return PostResult(source, post=post, warnings=warnings)


def _check_cancel(cancel: threading.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        raise BuildCancelled("build cancelled")


def _load_serial(
    paths: list[Path],
    fail_fast: bool,
    cancel: threading.Event | None,
) -> list[PostResult]:
    results = []
    for path in paths:
        _check_cancel(cancel)
        result = load_post(path)
        results.append(result)
        if result.failure and fail_fast:
            break
    return results


def _load_parallel(
    paths: list[Path],
    workers: int,
    fail_fast: bool,
    cancel: threading.Event | None,
) -> list[PostResult]:
    results: list[PostResult] = []
    with ProcessPoolExecutor(max_workers=workers) as pool:
        pending: set[Future[PostResult]] = {pool.submit(load_post, p) for p in paths}
        try:
            while pending:
                done, pending = wait(pending, timeout=0.2, return_when=FIRST_COMPLETED)
                for fut in done:
                    results.append(fut.result())
                _check_cancel(cancel)
                if fail_fast and any(r.failure for r in results):
                    break
        finally:
            for fut in pending:
                fut.cancel()
    # Completion order is arbitrary; keep reports deterministic.
    return sorted(results, key=lambda r: r.source)


def load_posts(
    paths: list[Path],
    *,
    workers: int = 1,
    fail_fast: bool = True,
    cancel: threading.Event | None = None,
) -> list[PostResult]:
    """Parse and render every path. Returns once all work has finished (the join)."""
    if workers > 1 and len(paths) > 1:
        return _load_parallel(paths, workers, fail_fast, cancel)
    return _load_serial(paths, fail_fast, cancel)


# ------------------------------------------------------------------
# Whole build
# ------------------------------------------------------------------


def build_site(
    config: PressroomConfig,
    sink: OutputSink,
    *,
    cancel: threading.Event | None = None,
) -> BuildReport:
    """Run one full build of *config*'s site into *sink*.

    Raises:
        BuildCancelled: if *cancel* is set before the build finished writing.
    """
    started = time.monotonic()
    b = config.build
    report = BuildReport()

    # ---- Discover ----
    paths = discover_posts(config.posts_path)
    logger.info("Discovered %d post file(s) in %s", len(paths), config.posts_path)

    # ---- Parse + render (parallel), join ----
    results = load_posts(paths, workers=b.worker_count, fail_fast=b.fail_fast, cancel=cancel)
    _check_cancel(cancel)

    posts: list[Post] = []
    for result in results:
        report.warnings.extend(result.warnings)
        for w in result.warnings:
            logger.debug("%s", w)
        if result.failure:
            report.failures.append(result.failure)
            logger.debug("%s", result.failure)
        elif result.post is not None:
            if result.post.published or b.drafts:
                posts.append(result.post)
            else:
                report.skipped.append(result.source)
                logger.info("Skipping unpublished post %s", result.source)

    if report.failures and b.fail_fast:
        return _abort(report, started)

    # ---- Slugs + layouts ----
    layouts = LayoutSet(config.layouts_path)
    posts = _drop_invalid(posts, layouts, report)
    if report.failures and b.fail_fast:
        return _abort(report, started)

    # ---- Index ----
    site = config.site.as_dict()
    index = build_index(
        posts,
        excerpt_length=b.excerpt_length,
        permalink=b.permalink,
        baseurl=config.site.baseurl,
    )

    # ---- Assemble ----
    documents = _assemble(index, layouts, site, config, report, cancel)
    if report.failures and b.fail_fast:
        return _abort(report, started)

    _check_cancel(cancel)

    # ---- Write ----
    report.documents = write_documents(documents, sink)
    report.elapsed = time.monotonic() - started
    logger.info(
        "Wrote %d document(s) for %d post(s) in %.2fs", report.documents, report.posts, report.elapsed
    )
    return report


def _drop_invalid(posts: list[Post], layouts: LayoutSet, report: BuildReport) -> list[Post]:
    """Record and remove posts with duplicate slugs or unknown layouts."""
    rejected: set[str] = set()
    for dup in check_unique_slugs(posts):
        report.failures.append(PostFailure(dup.source or "", dup.kind, dup.message))
        logger.debug("%s", dup)
        rejected.add(dup.source or "")

    for post in posts:
        if str(post.source) in rejected or post.layout in layouts:
            continue
        exc = UnknownLayout(post.layout, layouts.names, post.source)
        report.failures.append(PostFailure(str(post.source), exc.kind, exc.message))
        logger.debug("%s", exc)
        rejected.add(str(post.source))

    return [p for p in posts if str(p.source) not in rejected]


def _assemble(
    index: SiteIndex,
    layouts: LayoutSet,
    site: dict,
    config: PressroomConfig,
    report: BuildReport,
    cancel: threading.Event | None,
) -> list[Document]:
    b = config.build
    documents: list[Document] = []

    for post in index.posts:
        _check_cancel(cancel)
        try:
            documents.append(assemble_post(post, layouts, site, permalink=b.permalink))
        except ContentError as exc:
            report.failures.append(PostFailure(str(post.source), exc.kind, exc.message))
            logger.debug("%s", exc)
            if b.fail_fast:
                return documents
        except TemplateError as exc:
            report.failures.append(PostFailure(str(post.source), "layout-error", str(exc)))
            logger.debug("%s: layout '%s' failed: %s", post.source, post.layout, exc)
            if b.fail_fast:
                return documents

    report.posts = len(documents)
    documents.extend(assemble_index(index, layouts, site, per_page=b.per_page))
    if b.feed:
        documents.append(assemble_feed(index, layouts, site, limit=b.feed_limit))

    static = collect_static_files(config.source_dir, exclude=[config.output_path])
    documents.extend(static_documents(config.source_dir, static))
    return documents


def _abort(report: BuildReport, started: float) -> BuildReport:
    report.aborted = True
    report.elapsed = time.monotonic() - started
    logger.info("Build aborted: %d post(s) failed", len(report.failures))
    return report
