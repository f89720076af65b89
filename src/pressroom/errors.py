"""Pressroom exception hierarchy.

Per-post failures derive from ContentError and carry the source file they
came from, so a build can report them without aborting unrelated posts.
"""

from __future__ import annotations

from pathlib import Path


class PressroomError(Exception):
    """Base class for all Pressroom errors."""


class ContentError(PressroomError):
    """A single post could not be parsed, rendered or assembled."""

    kind = "content"

    def __init__(self, message: str, source: Path | str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.source = str(source) if source is not None else None

    def with_source(self, source: Path | str) -> ContentError:
        """Attach *source* if the error does not name one yet."""
        if self.source is None:
            self.source = str(source)
        return self

    def __str__(self) -> str:
        if self.source:
            return f"{self.source}: {self.message}"
        return self.message


class MalformedFrontMatter(ContentError):
    kind = "malformed-front-matter"


class MissingRequiredField(ContentError):
    kind = "missing-required-field"

    def __init__(self, field: str, source: Path | str | None = None) -> None:
        super().__init__(f"missing required front-matter field '{field}'", source)
        self.field = field


class InvalidFieldValue(ContentError):
    kind = "invalid-field-value"

    def __init__(self, field: str, message: str, source: Path | str | None = None) -> None:
        super().__init__(f"invalid value for '{field}': {message}", source)
        self.field = field


class DuplicateSlug(ContentError):
    kind = "duplicate-slug"

    def __init__(self, slug: str, first: Path | str, source: Path | str | None = None) -> None:
        super().__init__(f"slug '{slug}' is already used by {first}", source)
        self.slug = slug
        self.first = str(first)


class UnknownLayout(ContentError):
    kind = "unknown-layout"

    def __init__(
        self,
        layout: str,
        available: list[str],
        source: Path | str | None = None,
    ) -> None:
        names = ", ".join(available) if available else "(none)"
        super().__init__(f"unknown layout '{layout}' (available: {names})", source)
        self.layout = layout
        self.available = list(available)


class BuildCancelled(PressroomError):
    """Raised at a pipeline checkpoint once the build's cancel event is set."""


class MarkdownSyntaxWarning(UserWarning):
    """Recoverable markdown problem, e.g. a fence closed implicitly at end of input."""

    def __init__(self, message: str, line: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.line = line

    def __str__(self) -> str:
        if self.line is not None:
            return f"line {self.line}: {self.message}"
        return self.message
