"""Tests for the post index builder."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from pressroom.content.models import Post
from pressroom.site.index import (
    build_index,
    check_unique_slugs,
    index_page_path,
    post_path,
    sort_posts,
    url_for,
)


def _post(
    slug: str,
    day: datetime | str = "2025-01-01",
    *,
    source: str | None = None,
    categories: tuple[str, ...] = (),
    html: str = "<p>Body text</p>",
) -> Post:
    when = datetime.fromisoformat(day).replace(tzinfo=timezone.utc) if isinstance(day, str) else day
    return Post(
        slug=slug,
        title=slug.title(),
        date=when,
        layout="post",
        body_markdown="",
        body_html=html,
        source=Path(source or f"_posts/{slug}.md"),
        categories=categories,
    )


# ------------------------------------------------------------------
# Ordering
# ------------------------------------------------------------------


def test_index_orders_newest_first():
    index = build_index([_post("old", "2025-01-01"), _post("new", "2025-03-06")])
    assert [s.date.date().isoformat() for s in index] == ["2025-03-06", "2025-01-01"]


def test_equal_dates_ordered_by_slug():
    posts = [_post("b"), _post("c"), _post("a")]
    assert [p.slug for p in sort_posts(posts)] == ["a", "b", "c"]


def test_order_independent_of_input_order():
    posts = [_post("x", "2025-02-01"), _post("y", "2025-02-01"), _post("z", "2024-12-31")]
    assert [s.slug for s in build_index(posts)] == [s.slug for s in build_index(reversed(posts))]


def test_timezones_compared_as_instants():
    early = _post("early", datetime(2025, 1, 1, 10, tzinfo=timezone(timedelta(hours=5))))  # 05:00 UTC
    late = _post("late", datetime(2025, 1, 1, 6, tzinfo=timezone.utc))
    assert [s.slug for s in build_index([early, late])] == ["late", "early"]


# ------------------------------------------------------------------
# Summaries and laziness
# ------------------------------------------------------------------


def test_summary_fields():
    post = _post("hello", "2025-03-06", categories=("c++",), html="<p>Hello <em>there</em></p>")
    summary = build_index([post], excerpt_length=8)[0]
    assert summary.title == "Hello"
    assert summary.excerpt == "Hello th"
    assert summary.url == "/2025/03/06/hello.html"
    assert summary.categories == ("c++",)


def test_iteration_is_restartable():
    index = build_index([_post("a"), _post("b")])
    assert [s.slug for s in index] == [s.slug for s in index]


def test_sequence_protocol():
    index = build_index([_post("a"), _post("b"), _post("c")])
    assert len(index) == 3
    assert index[-1].slug == "c"
    assert [s.slug for s in index[:2]] == ["a", "b"]


def test_empty_index():
    index = build_index([])
    assert len(index) == 0
    assert list(index) == []


# ------------------------------------------------------------------
# Pages
# ------------------------------------------------------------------


def test_pages_split_and_link():
    index = build_index([_post(s) for s in "abcde"])
    pages = list(index.pages(2))
    assert [p.path for p in pages] == ["index.html", "page2/index.html", "page3/index.html"]
    assert [len(p.summaries) for p in pages] == [2, 2, 1]
    assert pages[0].previous_url is None
    assert pages[0].next_url == "/page2/"
    assert pages[1].previous_url == "/"
    assert pages[2].next_url is None
    assert all(p.total_pages == 3 for p in pages)


def test_empty_index_has_one_page():
    pages = list(build_index([]).pages(10))
    assert len(pages) == 1
    assert pages[0].summaries == ()


def test_pages_rejects_zero_per_page():
    with pytest.raises(ValueError):
        list(build_index([]).pages(0))


# ------------------------------------------------------------------
# Paths and URLs
# ------------------------------------------------------------------


def test_post_path_default_pattern():
    assert post_path(_post("hi", "2025-03-06")) == "2025/03/06/hi.html"


def test_post_path_directory_style():
    assert post_path(_post("hi"), "blog/{slug}/") == "blog/hi/index.html"


def test_post_path_category_missing_collapses():
    assert post_path(_post("hi"), "{category}/{slug}.html") == "hi.html"
    assert post_path(_post("hi", categories=("c++",)), "{category}/{slug}.html") == "c++/hi.html"


def test_url_for():
    assert url_for("index.html") == "/"
    assert url_for("page2/index.html", "/blog") == "/blog/page2/"
    assert url_for("2025/01/01/hi.html", "/blog") == "/blog/2025/01/01/hi.html"


def test_index_page_path():
    assert index_page_path(1) == "index.html"
    assert index_page_path(4) == "page4/index.html"


# ------------------------------------------------------------------
# check_unique_slugs
# ------------------------------------------------------------------


def test_unique_slugs_pass():
    assert check_unique_slugs([_post("a"), _post("b")]) == []


def test_duplicate_slug_reported_against_later_source():
    first = _post("same", source="_posts/2025-01-01-same.md")
    second = _post("same", source="_posts/2025-02-01-same.md")
    dups = check_unique_slugs([second, first])
    assert len(dups) == 1
    assert dups[0].source == str(second.source)
    assert dups[0].first == str(first.source)
    assert dups[0].kind == "duplicate-slug"
