"""Tests for the post loader."""

from __future__ import annotations

import pickle
from datetime import datetime, timezone
from pathlib import Path

import pytest

from pressroom.content.models import Post
from pressroom.content.posts import discover_posts, parse_post, parse_post_text, slug_from_filename
from pressroom.errors import InvalidFieldValue, MalformedFrontMatter, MissingRequiredField

_HI = '---\nlayout: post\ntitle: "Hi"\ndate: 2025-01-01\n---\nHello **world**'


# ------------------------------------------------------------------
# slug_from_filename
# ------------------------------------------------------------------


@pytest.mark.parametrize(
    ("name", "slug"),
    [
        ("2025-03-06-variadic-templates.md", "variadic-templates"),
        ("2025-3-6-short.md", "short"),
        ("2025-03-06-C++ Templates.md", "c-templates"),
        ("about.markdown", "about"),
    ],
)
def test_slug_from_filename(name, slug):
    assert slug_from_filename(Path(name)) == slug


def test_slug_from_filename_rejects_empty_slug():
    with pytest.raises(InvalidFieldValue, match="slug"):
        slug_from_filename(Path("2025-01-01-+++.md"))


# ------------------------------------------------------------------
# parse_post_text
# ------------------------------------------------------------------


def test_parse_post_text_builds_post():
    post, warnings = parse_post_text(_HI, Path("_posts/2025-01-01-hi.md"))
    assert post.title == "Hi"
    assert post.layout == "post"
    assert post.slug == "hi"
    assert post.date == datetime(2025, 1, 1, tzinfo=timezone.utc)
    assert "<strong>world</strong>" in post.body_html
    assert post.body_markdown == "Hello **world**"
    assert post.code_blocks == ()
    assert warnings == []


def test_parse_post_text_collects_code_blocks_and_categories():
    text = (
        "---\nlayout: post\ntitle: T\ndate: 2025-03-06\ncategories: c++, templates\n---\n"
        "```cpp\nint x;\n```\n"
    )
    post, _ = parse_post_text(text, Path("2025-03-06-t.md"))
    assert post.categories == ("c++", "templates")
    assert [(b.language, b.content) for b in post.code_blocks] == [("cpp", "int x;\n")]


def test_parse_post_text_keeps_extra_front_matter():
    text = "---\nlayout: post\ntitle: T\ndate: 2025-03-06\ncomments: true\n---\n"
    post, _ = parse_post_text(text, Path("t.md"))
    assert post.meta["comments"] is True


def test_parse_post_text_missing_field_names_source():
    text = "---\nlayout: post\ndate: 2025-01-01\n---\nbody"
    with pytest.raises(MissingRequiredField) as exc_info:
        parse_post_text(text, Path("_posts/x.md"))
    assert exc_info.value.field == "title"
    assert exc_info.value.source == str(Path("_posts/x.md"))
    assert str(Path("_posts/x.md")) in str(exc_info.value)


def test_parse_post_text_without_front_matter_is_missing_fields():
    with pytest.raises(MissingRequiredField):
        parse_post_text("Just text.", Path("x.md"))


def test_parse_post_text_malformed_front_matter():
    with pytest.raises(MalformedFrontMatter) as exc_info:
        parse_post_text("---\ntitle: x\n", Path("x.md"))
    assert exc_info.value.source == "x.md"


def test_parse_post_text_bad_date():
    text = "---\nlayout: post\ntitle: T\ndate: someday\n---\n"
    with pytest.raises(InvalidFieldValue, match="date"):
        parse_post_text(text, Path("x.md"))


def test_parse_post_text_reports_unterminated_fence():
    text = "---\nlayout: post\ntitle: T\ndate: 2025-01-01\n---\n```sh\nls\n"
    post, warnings = parse_post_text(text, Path("x.md"))
    assert len(warnings) == 1
    assert post.code_blocks[0].language == "sh"


def test_unpublished_post():
    text = "---\nlayout: post\ntitle: T\ndate: 2025-01-01\npublished: false\n---\n"
    post, _ = parse_post_text(text, Path("x.md"))
    assert post.published is False


# ------------------------------------------------------------------
# parse_post / discover_posts
# ------------------------------------------------------------------


def test_parse_post_reads_file(tmp_path):
    path = tmp_path / "2025-01-01-hi.md"
    path.write_text(_HI, encoding="utf-8")
    post, _ = parse_post(path)
    assert post.source == path
    assert post.title == "Hi"


def test_discover_posts_sorted_and_filtered(tmp_path):
    posts = tmp_path / "_posts"
    (posts / "2024").mkdir(parents=True)
    (posts / "_drafts").mkdir()
    for name in ["b.md", "a.markdown", "notes.txt", ".hidden.md", "2024/c.md", "_drafts/d.md"]:
        (posts / name).write_text("x", encoding="utf-8")

    found = [p.relative_to(posts).as_posix() for p in discover_posts(posts)]
    assert found == ["2024/c.md", "a.markdown", "b.md"]


def test_discover_posts_missing_dir(tmp_path):
    assert discover_posts(tmp_path / "nope") == []


def test_parse_post_text_impossible_date_names_source():
    text = "---\nlayout: post\ntitle: T\ndate: 2025-02-30\n---\n"
    with pytest.raises(MalformedFrontMatter) as exc_info:
        parse_post_text(text, Path("x.md"))
    assert exc_info.value.source == "x.md"


def test_post_meta_is_read_only():
    text = "---\nlayout: post\ntitle: T\ndate: 2025-03-06\ncomments: true\n---\n"
    post, _ = parse_post_text(text, Path("t.md"))
    with pytest.raises(TypeError):
        post.meta["comments"] = False
    assert post.meta["comments"] is True


def test_post_meta_is_a_private_copy():
    meta = {"layout": "post", "title": "T", "date": "2025-03-06"}
    post = Post(
        slug="t",
        title="T",
        date=datetime(2025, 3, 6, tzinfo=timezone.utc),
        layout="post",
        body_markdown="",
        body_html="",
        source=Path("t.md"),
        meta=meta,
    )
    meta["title"] = "Changed"
    assert post.meta["title"] == "T"


def test_post_survives_pickling_with_read_only_meta():
    post, _ = parse_post_text(_HI, Path("2025-01-01-hi.md"))
    restored = pickle.loads(pickle.dumps(post))
    assert restored == post
    assert restored.meta["title"] == "Hi"
    with pytest.raises(TypeError):
        restored.meta["title"] = "Bye"
