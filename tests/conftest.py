"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from pressroom.config import load_config


def write_post(
    posts_dir: Path,
    name: str,
    *,
    title: str = "Post",
    date: str = "2025-01-01",
    layout: str = "post",
    body: str = "Hello **world**\n",
    extra: str = "",
) -> Path:
    """Write a post file with a front-matter header and return its path."""
    posts_dir.mkdir(parents=True, exist_ok=True)
    path = posts_dir / name
    path.write_text(
        f"---\nlayout: {layout}\ntitle: \"{title}\"\ndate: {date}\n{extra}---\n{body}",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def make_post():
    """The write_post helper, for tests that build their own posts directory."""
    return write_post


@pytest.fixture
def site_dir(tmp_path: Path) -> Path:
    """Site source directory with a config file and two valid posts."""
    site = tmp_path / "site"
    site.mkdir()
    (site / "pressroom.yaml").write_text(
        "site:\n"
        '  title: "Test Blog"\n'
        '  url: "https://example.com"\n'
        "build:\n"
        "  workers: 1\n",
        encoding="utf-8",
    )
    posts = site / "_posts"
    write_post(posts, "2025-01-01-first.md", title="First", date="2025-01-01")
    write_post(
        posts,
        "2025-03-06-templates.md",
        title="Templates",
        date="2025-03-06 10:00:00 +0100",
        body="Intro.\n\n```cpp\nint x;\n```\n",
        extra="categories: c++, templates\n",
    )
    return site


@pytest.fixture
def site_config(site_dir: Path):
    return load_config(site_dir)
