"""Post index builder.

Orders posts newest-first (slug ascending on equal dates) and exposes them as
a lazy, restartable sequence of summaries plus fixed-size index pages.

The index is the build's join point: it is only constructed once every post
has been parsed and rendered.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator, Sequence

from pressroom.content.markdown import make_excerpt
from pressroom.content.models import IndexPage, Post, PostSummary
from pressroom.errors import DuplicateSlug

DEFAULT_PERMALINK = "{year}/{month}/{day}/{slug}.html"


def sort_posts(posts: Iterable[Post]) -> list[Post]:
    """Return *posts* ordered by date descending, then slug ascending."""
    return sorted(posts, key=Post.sort_key)


def check_unique_slugs(posts: Iterable[Post]) -> list[DuplicateSlug]:
    """Return one DuplicateSlug per post reusing an earlier post's slug.

    Posts are visited in source-path order so the same file always wins.
    """
    seen: dict[str, Post] = {}
    duplicates: list[DuplicateSlug] = []
    for post in sorted(posts, key=lambda p: str(p.source)):
        first = seen.get(post.slug)
        if first is None:
            seen[post.slug] = post
        else:
            duplicates.append(DuplicateSlug(post.slug, first.source, post.source))
    return duplicates


def post_path(post: Post, permalink: str = DEFAULT_PERMALINK) -> str:
    """Site-relative output path of *post* for the *permalink* pattern."""
    path = permalink.format(
        year=f"{post.date.year:04d}",
        month=f"{post.date.month:02d}",
        day=f"{post.date.day:02d}",
        slug=post.slug,
        category=post.categories[0] if post.categories else "",
    )
    # Collapse the empty segment an absent {category} leaves behind
    parts = [p for p in path.split("/") if p]
    path = "/".join(parts)
    if "." not in parts[-1]:
        path = f"{path}/index.html"
    return path


def url_for(path: str, baseurl: str = "") -> str:
    """Public URL for a site-relative output *path*."""
    if path == "index.html":
        return f"{baseurl}/"
    if path.endswith("/index.html"):
        path = path[: -len("index.html")]
    return f"{baseurl}/{path}"


def index_page_path(number: int) -> str:
    """Output path of index page *number* (1-based)."""
    return "index.html" if number == 1 else f"page{number}/index.html"


class SiteIndex(Sequence[PostSummary]):
    """Newest-first summaries of a build's posts.

    Iteration is lazy (excerpts are computed on demand) and restartable:
    every ``iter()`` starts again from the newest post.
    """

    def __init__(
        self,
        posts: Iterable[Post],
        *,
        excerpt_length: int = 200,
        permalink: str = DEFAULT_PERMALINK,
        baseurl: str = "",
    ) -> None:
        self.posts: list[Post] = sort_posts(posts)
        self.excerpt_length = excerpt_length
        self.permalink = permalink
        self.baseurl = baseurl

    def summarize(self, post: Post) -> PostSummary:
        return PostSummary(
            slug=post.slug,
            title=post.title,
            date=post.date,
            excerpt=make_excerpt(post.body_html, self.excerpt_length),
            url=url_for(post_path(post, self.permalink), self.baseurl),
            categories=post.categories,
        )

    def __iter__(self) -> Iterator[PostSummary]:
        return (self.summarize(post) for post in self.posts)

    def __len__(self) -> int:
        return len(self.posts)

    def __getitem__(self, i):  # type: ignore[override]
        if isinstance(i, slice):
            return [self.summarize(p) for p in self.posts[i]]
        return self.summarize(self.posts[i])

    def pages(self, per_page: int) -> Iterator[IndexPage]:
        """Yield index pages of at most *per_page* summaries.

        An empty index still yields a single empty page.
        """
        if per_page < 1:
            raise ValueError("per_page must be >= 1")

        total = max(1, math.ceil(len(self.posts) / per_page))
        for number in range(1, total + 1):
            start = (number - 1) * per_page
            summaries = tuple(self[start:start + per_page])
            yield IndexPage(
                number=number,
                total_pages=total,
                summaries=summaries,
                path=index_page_path(number),
                previous_url=url_for(index_page_path(number - 1), self.baseurl) if number > 1 else None,
                next_url=url_for(index_page_path(number + 1), self.baseurl) if number < total else None,
            )


def build_index(
    posts: Iterable[Post],
    *,
    excerpt_length: int = 200,
    permalink: str = DEFAULT_PERMALINK,
    baseurl: str = "",
) -> SiteIndex:
    """Build the ordered index of *posts*. No side effects."""
    return SiteIndex(posts, excerpt_length=excerpt_length, permalink=permalink, baseurl=baseurl)
