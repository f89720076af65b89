"""Tests for layout lookup and rendering."""

from __future__ import annotations

import pytest

from pressroom.errors import UnknownLayout
from pressroom.site.layouts import LayoutSet


def test_builtin_layout_names():
    assert LayoutSet().names == ["default", "feed", "index", "post"]


def test_contains():
    layouts = LayoutSet()
    assert "post" in layouts
    assert "gallery" not in layouts


def test_unknown_layout_lists_available():
    with pytest.raises(UnknownLayout) as exc_info:
        LayoutSet().resolve("gallery")
    assert exc_info.value.layout == "gallery"
    assert "post" in exc_info.value.available
    assert "gallery" in str(exc_info.value)


def test_user_layout_overrides_builtin(tmp_path):
    (tmp_path / "post.html").write_text("custom: {{ page.title }}", encoding="utf-8")
    layouts = LayoutSet(tmp_path)
    assert layouts.render("post", {"page": {"title": "T"}}) == "custom: T"


def test_user_layout_adds_name_and_can_extend_builtin(tmp_path):
    (tmp_path / "note.html").write_text(
        '{% extends "default.html" %}{% block content %}NOTE {{ content }}{% endblock %}',
        encoding="utf-8",
    )
    layouts = LayoutSet(tmp_path)
    assert "note" in layouts
    html = layouts.render("note", {"site": {"title": "S", "baseurl": ""}, "content": "body"})
    assert "NOTE body" in html
    assert "<title>S</title>" in html


def test_missing_layouts_dir_uses_builtins(tmp_path):
    assert LayoutSet(tmp_path / "absent").names == LayoutSet().names


def test_subdirectory_templates_are_not_layouts(tmp_path):
    (tmp_path / "partials").mkdir()
    (tmp_path / "partials" / "nav.html").write_text("nav", encoding="utf-8")
    assert "nav" not in LayoutSet(tmp_path)


def test_html_is_autoescaped():
    layouts = LayoutSet(builtins={"plain.html": "{{ value }}"})
    assert layouts.render("plain", {"value": "<b>"}) == "&lt;b&gt;"
