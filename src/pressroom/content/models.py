"""Domain models for posts and their rendered pieces."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping


@dataclass(frozen=True)
class CodeBlock:
    language: str | None  # verbatim tag after the opening fence, None if absent
    content: str


@dataclass(frozen=True)
class Post:
    slug: str
    title: str
    date: datetime  # always timezone-aware
    layout: str
    body_markdown: str
    body_html: str
    source: Path
    categories: tuple[str, ...] = ()
    code_blocks: tuple[CodeBlock, ...] = ()
    meta: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        # read-only view over a private copy of the front matter
        object.__setattr__(self, "meta", MappingProxyType(dict(self.meta)))

    # mappingproxy does not pickle; posts cross the worker process boundary
    def __getstate__(self) -> dict[str, Any]:
        state = dict(self.__dict__)
        state["meta"] = dict(self.meta)
        return state

    def __setstate__(self, state: dict[str, Any]) -> None:
        self.__dict__.update(state)
        object.__setattr__(self, "meta", MappingProxyType(state["meta"]))

    @property
    def published(self) -> bool:
        return self.meta.get("published", True) is not False

    def sort_key(self) -> tuple[float, str]:
        """Key giving newest-first order with slug ascending on ties."""
        return (-self.date.timestamp(), self.slug)


@dataclass(frozen=True)
class PostSummary:
    slug: str
    title: str
    date: datetime
    excerpt: str
    url: str
    categories: tuple[str, ...] = ()


@dataclass(frozen=True)
class IndexPage:
    number: int  # 1-based
    total_pages: int
    summaries: tuple[PostSummary, ...]
    path: str
    previous_url: str | None = None
    next_url: str | None = None
