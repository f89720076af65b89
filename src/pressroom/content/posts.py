"""Post loader.

Reads ``*.md`` / ``*.markdown`` files from a site's posts directory, splits
off the front matter, validates the required fields and renders the body.

Usage:
    paths = discover_posts(Path("_posts"))
    for path in paths:
        post, warnings = parse_post(path)
        print(post.slug, post.date, post.title)
"""

from __future__ import annotations

import re
from pathlib import Path

from pressroom.content.frontmatter import (
    parse_categories,
    parse_date,
    require_fields,
    split_front_matter,
)
from pressroom.content.markdown import render_markdown
from pressroom.content.models import Post
from pressroom.errors import ContentError, InvalidFieldValue, MarkdownSyntaxWarning

POST_EXTENSIONS = frozenset({".md", ".markdown"})

# Jekyll-style filename prefix: 2025-03-06-my-post.md
_DATE_PREFIX_RE = re.compile(r"^\d{4}-\d{1,2}-\d{1,2}-")
_SLUG_INVALID_RE = re.compile(r"[^a-z0-9]+")


def slug_from_filename(path: Path) -> str:
    """Derive a URL slug from *path*'s filename.

    ``2025-03-06-C++ Templates.md`` -> ``c-templates``.
    """
    stem = _DATE_PREFIX_RE.sub("", path.stem)
    slug = _SLUG_INVALID_RE.sub("-", stem.lower()).strip("-")
    if not slug:
        raise InvalidFieldValue("slug", f"cannot derive a slug from '{path.name}'", path)
    return slug


def parse_post_text(text: str, path: Path) -> tuple[Post, list[MarkdownSyntaxWarning]]:
    """Build a Post from raw file *text*. *path* is used for the slug and errors."""
    try:
        meta, body = split_front_matter(text)
        require_fields(meta)
        slug = slug_from_filename(path)
        date = parse_date(meta["date"])
        categories = parse_categories(meta.get("categories"))
    except ContentError as exc:
        raise exc.with_source(path)

    rendered = render_markdown(body)

    post = Post(
        slug=slug,
        title=str(meta["title"]),
        date=date,
        layout=str(meta["layout"]),
        body_markdown=body,
        body_html=rendered.html,
        source=path,
        categories=categories,
        code_blocks=tuple(rendered.code_blocks),
        meta=meta,
    )
    return post, rendered.warnings


def parse_post(path: Path) -> tuple[Post, list[MarkdownSyntaxWarning]]:
    """Read and parse a single post file.

    Returns:
        The Post and any recoverable markdown warnings.

    Raises:
        ContentError: (a subclass) if the file is not a valid post.
        OSError: if the file cannot be read.
    """
    text = path.read_text(encoding="utf-8")
    return parse_post_text(text, path)


def discover_posts(posts_dir: Path) -> list[Path]:
    """Return post files under *posts_dir*, sorted by path.

    Returns an empty list if the directory does not exist. Names starting
    with ``_`` or ``.`` are skipped.
    """
    if not posts_dir.is_dir():
        return []

    found = []
    for path in sorted(posts_dir.rglob("*")):
        if not path.is_file() or path.suffix.lower() not in POST_EXTENSIONS:
            continue
        relative = path.relative_to(posts_dir)
        if any(part.startswith(("_", ".")) for part in relative.parts):
            continue
        found.append(path)
    return found
