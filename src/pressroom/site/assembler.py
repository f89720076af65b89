"""Site assembler: layouts applied to rendered posts, the index and the feed.

Assembly is split from writing: ``assemble_*`` return Document objects and
``write_documents`` hands them to an OutputSink. A build can therefore assemble
everything, decide whether it failed, and only then touch the destination.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from markupsafe import Markup

from pressroom.config import CONFIG_NAME
from pressroom.content.models import Post
from pressroom.errors import ContentError
from pressroom.site.index import SiteIndex, post_path, url_for
from pressroom.site.layouts import LayoutSet
from pressroom.site.sink import OutputSink

INDEX_LAYOUT = "index"
FEED_LAYOUT = "feed"
FEED_PATH = "feed.xml"


@dataclass(frozen=True)
class Document:
    path: str  # site-relative, forward slashes
    content: str | bytes


def page_context(post: Post, permalink: str, baseurl: str = "") -> dict[str, Any]:
    """Template ``page`` variable: front matter plus derived fields."""
    page = dict(post.meta)
    path = post_path(post, permalink)
    page.update(
        slug=post.slug,
        title=post.title,
        date=post.date,
        layout=post.layout,
        categories=list(post.categories),
        path=path,
        url=url_for(path, baseurl),
        code_languages=sorted({b.language for b in post.code_blocks if b.language}),
    )
    return page


def assemble_post(
    post: Post,
    layouts: LayoutSet,
    site: dict[str, Any],
    *,
    permalink: str,
) -> Document:
    """Apply *post*'s layout to its rendered body.

    Raises:
        UnknownLayout: if the post names a layout that is not in *layouts*.
    """
    try:
        template = layouts.resolve(post.layout)
    except ContentError as exc:
        raise exc.with_source(post.source)

    page = page_context(post, permalink, site.get("baseurl", ""))
    html = template.render(site=site, page=page, post=post, content=Markup(post.body_html))
    return Document(path=page["path"], content=html)


def assemble_index(
    index: SiteIndex,
    layouts: LayoutSet,
    site: dict[str, Any],
    *,
    per_page: int,
) -> list[Document]:
    """One document per index page, newest posts first."""
    template = layouts.resolve(INDEX_LAYOUT)
    documents = []
    for page in index.pages(per_page):
        html = template.render(
            site=site,
            page={"title": site.get("title", ""), "url": url_for(page.path, site.get("baseurl", ""))},
            paginator=page,
            posts=page.summaries,
        )
        documents.append(Document(path=page.path, content=html))
    return documents


def assemble_feed(
    index: SiteIndex,
    layouts: LayoutSet,
    site: dict[str, Any],
    *,
    limit: int,
) -> Document:
    """Atom feed of the newest *limit* posts."""
    summaries = index[:limit]
    updated = summaries[0].date if summaries else datetime.now(timezone.utc)
    xml = layouts.render(FEED_LAYOUT, {"site": site, "posts": summaries, "updated": updated})
    return Document(path=FEED_PATH, content=xml)


# ------------------------------------------------------------------
# Static files
# ------------------------------------------------------------------


def collect_static_files(source_dir: Path, exclude: Iterable[Path] = ()) -> list[Path]:
    """Files under *source_dir* that are copied to the output verbatim.

    Skips anything under a ``_``- or ``.``-prefixed name, the config file and
    every path in *exclude* (e.g. the output directory).
    """
    excluded = [p.resolve() for p in exclude]
    files = []
    for path in sorted(source_dir.rglob("*")):
        if not path.is_file():
            continue
        relative = path.relative_to(source_dir)
        if any(part.startswith(("_", ".")) for part in relative.parts):
            continue
        if relative.as_posix() == CONFIG_NAME:
            continue
        resolved = path.resolve()
        if any(resolved == ex or ex in resolved.parents for ex in excluded):
            continue
        files.append(path)
    return files


def static_documents(source_dir: Path, files: Iterable[Path]) -> list[Document]:
    return [
        Document(path=f.relative_to(source_dir).as_posix(), content=f.read_bytes())
        for f in files
    ]


def write_documents(documents: Iterable[Document], sink: OutputSink) -> int:
    """Write every document to *sink*; returns the number written."""
    count = 0
    for doc in documents:
        sink.write(doc.path, doc.content)
        count += 1
    return count

