"""Pressroom configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site — not in this module)
  2. Environment variables  (PRESSROOM_OUTPUT_DIR, PRESSROOM_WORKERS)
  3. Per-site pressroom.yaml  (in the source directory)
  4. Hardcoded defaults

All YAML reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

import json
import os
import string
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

CONFIG_NAME: str = "pressroom.yaml"

# Known top-level sections — unknown keys produce a warning
_KNOWN_SECTIONS: frozenset[str] = frozenset(["site", "build"])

# Fields a permalink pattern may reference
PERMALINK_FIELDS: frozenset[str] = frozenset(
    ["year", "month", "day", "slug", "category"]
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class SiteCfg:
    """Site metadata handed to every layout (pressroom.yaml: site:)."""

    title: str = "My Blog"
    description: str = ""
    author: str = ""
    url: str = ""  # absolute site URL, used by the feed
    baseurl: str = ""  # path prefix when the site is not served from /

    def as_dict(self) -> dict[str, str]:
        return {
            "title": self.title,
            "description": self.description,
            "author": self.author,
            "url": self.url,
            "baseurl": self.baseurl,
        }


@dataclass
class BuildCfg:
    """Build pipeline configuration (pressroom.yaml: build:).

    Attributes:
        posts_dir: Directory of post files, relative to the source directory.
        layouts_dir: Directory of user layouts, relative to the source directory.
        output_dir: Destination directory, relative to the source directory.
        permalink: Output path pattern for posts.
        excerpt_length: Characters of plain text kept for index excerpts.
        per_page: Posts per index page.
        workers: Parallel parse/render workers; 0 means one per CPU.
        fail_fast: Abort the build on the first failing post.
        drafts: Include posts marked ``published: false``.
        feed: Write an Atom feed to feed.xml.
        feed_limit: Number of posts in the feed.
    """

    posts_dir: str = "_posts"
    layouts_dir: str = "_layouts"
    output_dir: str = "_site"
    permalink: str = "{year}/{month}/{day}/{slug}.html"
    excerpt_length: int = 200
    per_page: int = 10
    workers: int = 1
    fail_fast: bool = True
    drafts: bool = False
    feed: bool = True
    feed_limit: int = 20

    @property
    def worker_count(self) -> int:
        return self.workers or os.cpu_count() or 1


@dataclass
class PressroomConfig:
    """Root configuration object, built by load_config()."""

    source_dir: Path = field(default_factory=Path.cwd)
    site: SiteCfg = field(default_factory=SiteCfg)
    build: BuildCfg = field(default_factory=BuildCfg)

    @property
    def posts_path(self) -> Path:
        return self.source_dir / self.build.posts_dir

    @property
    def layouts_path(self) -> Path:
        return self.source_dir / self.build.layouts_dir

    @property
    def output_path(self) -> Path:
        return self.source_dir / self.build.output_dir

    @property
    def config_path(self) -> Path:
        return self.source_dir / CONFIG_NAME


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


def validate_permalink(pattern: str) -> None:
    """Raise ConfigError unless *pattern* is a usable permalink pattern."""
    try:
        names = {fname for _, fname, _, _ in string.Formatter().parse(pattern) if fname is not None}
    except ValueError as exc:
        raise ConfigError(f"build.permalink '{pattern}' is not a valid pattern: {exc}") from exc

    unknown = names - PERMALINK_FIELDS
    if unknown:
        raise ConfigError(
            f"build.permalink '{pattern}' uses unknown field(s): {', '.join(sorted(unknown))}\n"
            f"  Allowed: {', '.join(sorted(PERMALINK_FIELDS))}"
        )
    if "slug" not in names:
        raise ConfigError(
            f"build.permalink '{pattern}' must contain '{{slug}}' so every post gets its own path.\n"
            "  Example: build.permalink: \"{year}/{month}/{day}/{slug}.html\""
        )
    if pattern.startswith("/") or ".." in Path(pattern).parts:
        raise ConfigError(f"build.permalink '{pattern}' must be a relative path inside the output directory.")


def _validate(cfg: PressroomConfig) -> None:
    b = cfg.build
    if b.per_page < 1:
        raise ConfigError(f"build.per_page must be >= 1, got {b.per_page}")
    if b.excerpt_length < 0:
        raise ConfigError(f"build.excerpt_length must be >= 0, got {b.excerpt_length}")
    if b.workers < 0:
        raise ConfigError(f"build.workers must be >= 0, got {b.workers}")
    if b.feed_limit < 1:
        raise ConfigError(f"build.feed_limit must be >= 1, got {b.feed_limit}")
    validate_permalink(b.permalink)


# ---------------------------------------------------------------------------
# Build
# ---------------------------------------------------------------------------


def _as_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "yes", "1", "false", "no", "0"):
        return value.strip().lower() in ("true", "yes", "1")
    raise ConfigError(f"{name} must be true or false, got {value!r}")


def _as_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None


def _cfg_from_dict(data: dict[str, Any], source_dir: Path) -> PressroomConfig:
    """Build a *PressroomConfig* from a raw YAML dict."""
    cfg = PressroomConfig(source_dir=source_dir)

    if "site" in data:
        s = data["site"] or {}
        cfg.site = SiteCfg(
            title=str(s.get("title", cfg.site.title)),
            description=str(s.get("description", cfg.site.description)),
            author=str(s.get("author", cfg.site.author)),
            url=str(s.get("url", cfg.site.url)).rstrip("/"),
            baseurl=str(s.get("baseurl", cfg.site.baseurl)).rstrip("/"),
        )

    if "build" in data:
        b = data["build"] or {}
        d = cfg.build
        cfg.build = BuildCfg(
            posts_dir=str(b.get("posts_dir", d.posts_dir)),
            layouts_dir=str(b.get("layouts_dir", d.layouts_dir)),
            output_dir=str(b.get("output_dir", d.output_dir)),
            permalink=str(b.get("permalink", d.permalink)),
            excerpt_length=_as_int(b.get("excerpt_length", d.excerpt_length), "build.excerpt_length"),
            per_page=_as_int(b.get("per_page", d.per_page), "build.per_page"),
            workers=_as_int(b.get("workers", d.workers), "build.workers"),
            fail_fast=_as_bool(b.get("fail_fast", d.fail_fast), "build.fail_fast"),
            drafts=_as_bool(b.get("drafts", d.drafts), "build.drafts"),
            feed=_as_bool(b.get("feed", d.feed), "build.feed"),
            feed_limit=_as_int(b.get("feed_limit", d.feed_limit), "build.feed_limit"),
        )

    return cfg


def _apply_env_overrides(cfg: PressroomConfig) -> PressroomConfig:
    """Apply PRESSROOM_* environment variable overrides (layer 2)."""
    if output := os.environ.get("PRESSROOM_OUTPUT_DIR"):
        cfg.build.output_dir = output
    if workers := os.environ.get("PRESSROOM_WORKERS"):
        cfg.build.workers = _as_int(workers, "PRESSROOM_WORKERS")
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(source_dir: Path | None = None) -> PressroomConfig:
    """Load and return a merged *PressroomConfig*.

    Applies layers in order: defaults → pressroom.yaml → env vars.
    CLI flag overrides must be applied by the caller, followed by
    ``validate_config()``.

    Args:
        source_dir: Site source directory holding *pressroom.yaml*. Defaults to CWD.

    Raises:
        ConfigError: If the file is not a mapping or holds an invalid value.
    """
    search_dir = (source_dir if source_dir is not None else Path.cwd()).resolve()

    raw: dict[str, Any] = {}
    cfg_path = search_dir / CONFIG_NAME
    if cfg_path.exists():
        try:
            loaded = yaml.safe_load(cfg_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise ConfigError(f"'{cfg_path}' is not valid YAML: {exc}") from exc
        if loaded is not None and not isinstance(loaded, dict):
            raise ConfigError(f"'{cfg_path}' must contain a mapping at the top level.")
        raw = loaded or {}
        _warn_unknown_keys(raw, cfg_path)

    cfg = _cfg_from_dict(raw, search_dir)
    cfg = _apply_env_overrides(cfg)
    _validate(cfg)
    return cfg


def validate_config(cfg: PressroomConfig) -> PressroomConfig:
    """Re-run validation after the caller applied CLI overrides."""
    _validate(cfg)
    return cfg


def default_config_text(title: str) -> str:
    """Return the pressroom.yaml written by ``pressroom init``."""
    return (
        "# Pressroom site configuration.\n"
        "site:\n"
        f"  title: {json.dumps(title, ensure_ascii=False)}\n"
        '  description: ""\n'
        '  author: ""\n'
        '  url: ""\n'
        "\n"
        "build:\n"
        "  posts_dir: _posts\n"
        "  layouts_dir: _layouts\n"
        "  output_dir: _site\n"
        '  permalink: "{year}/{month}/{day}/{slug}.html"\n'
        "  excerpt_length: 200\n"
        "  per_page: 10\n"
        "  workers: 1\n"
        "  fail_fast: true\n"
        "  feed: true\n"
    )
