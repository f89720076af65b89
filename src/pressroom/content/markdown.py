"""Markdown renderer — mistune with strict column-zero fence handling.

Strategy:
- Fenced code blocks that open at column zero are located first by
  ``normalize_fences()``. A block closes only at a column-zero line made of the
  same fence character, at least as long as the opening fence, with nothing
  but trailing whitespace after it. Each block is re-emitted with a fence long
  enough that nothing inside it can close it early, so mistune sees exactly
  the block boundaries found here.
- A fence still open at end of input is closed there and reported as a
  MarkdownSyntaxWarning rather than an error.
- Everything else (headings, emphasis, links, lists, blockquotes, tables,
  footnotes, fences nested inside list items) is mistune's job.
- Code blocks are rendered as ``<pre><code class="language-X" data-lang="X">``
  and collected, in document order, as CodeBlock records.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass, field

import mistune
from mistune.util import escape

from pressroom.content.models import CodeBlock
from pressroom.errors import MarkdownSyntaxWarning

_PLUGINS = ["strikethrough", "table", "footnotes"]

# Opening fence at column zero: 3+ backticks or tildes, then an optional info string.
_FENCE_OPEN_RE = re.compile(r"^(?P<fence>`{3,}|~{3,})(?P<info>[^\r\n]*)$")

# Any line mistune could take as a fence (up to 3 spaces of indent).
_FENCE_LIKE_RE = re.compile(r"^ {0,3}(?P<run>`{3,}|~{3,})")

_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")


@dataclass
class RenderedMarkdown:
    html: str
    code_blocks: list[CodeBlock] = field(default_factory=list)
    warnings: list[MarkdownSyntaxWarning] = field(default_factory=list)


class _PressroomRenderer(mistune.HTMLRenderer):
    """HTML renderer that keeps the fence language as structured attributes."""

    def __init__(self) -> None:
        super().__init__(escape=False)
        self.code_blocks: list[CodeBlock] = []

    def block_code(self, code: str, info: str | None = None) -> str:
        language = _language_from_info(info)
        self.code_blocks.append(CodeBlock(language=language, content=code))
        if language is None:
            return f"<pre><code>{escape(code)}</code></pre>\n"
        lang = escape(language)
        return (
            f'<pre><code class="language-{lang}" data-lang="{lang}">'
            f"{escape(code)}</code></pre>\n"
        )


def _language_from_info(info: str | None) -> str | None:
    if not info or not info.strip():
        return None
    return info.strip().split(None, 1)[0]


def render_markdown(text: str) -> RenderedMarkdown:
    """Render markdown *text* to HTML.

    Pure function: no I/O, no shared state, safe to call from worker processes.
    """
    source, warnings = normalize_fences(text)

    renderer = _PressroomRenderer()
    md = mistune.create_markdown(renderer=renderer, plugins=_PLUGINS)
    body = md(source)

    return RenderedMarkdown(html=body, code_blocks=renderer.code_blocks, warnings=warnings)


def normalize_fences(text: str) -> tuple[str, list[MarkdownSyntaxWarning]]:
    """Rewrite column-zero fenced blocks so their boundaries are unambiguous.

    Returns the rewritten text and any warnings (unterminated fences).
    Content lines inside a block are preserved byte for byte.
    """
    lines = text.splitlines(keepends=True)
    out: list[str] = []
    warnings: list[MarkdownSyntaxWarning] = []

    i = 0
    while i < len(lines):
        line = lines[i]
        match = _FENCE_OPEN_RE.match(line.rstrip("\r\n"))
        if not match or not _is_valid_opening(match):
            out.append(line)
            i += 1
            continue

        fence = match.group("fence")
        info = match.group("info")
        close_at = _find_closing(lines, i + 1, fence)

        if close_at is None:
            body_lines = lines[i + 1:]
            warnings.append(
                MarkdownSyntaxWarning(
                    f"code fence '{fence}' is never closed; closed at end of document",
                    line=i + 1,
                )
            )
            next_i = len(lines)
        else:
            body_lines = lines[i + 1:close_at]
            next_i = close_at + 1

        safe_fence = _safe_fence(fence, body_lines)
        out.append(f"{safe_fence}{info}\n")
        out.extend(body_lines)
        if body_lines and not body_lines[-1].endswith(("\n", "\r")):
            out.append("\n")
        out.append(f"{safe_fence}\n")
        i = next_i

    return "".join(out), warnings


def _is_valid_opening(match: re.Match[str]) -> bool:
    # A backtick fence's info string may not itself contain backticks
    # (otherwise the line is inline code, e.g. ```foo```).
    fence = match.group("fence")
    return not (fence[0] == "`" and "`" in match.group("info"))


def _find_closing(lines: list[str], start: int, fence: str) -> int | None:
    char = re.escape(fence[0])
    closing_re = re.compile(rf"^{char}{{{len(fence)},}}[ \t]*$")
    for j in range(start, len(lines)):
        if closing_re.match(lines[j].rstrip("\r\n")):
            return j
    return None


def _safe_fence(fence: str, body_lines: list[str]) -> str:
    """Return a fence of *fence*'s character longer than any fence-like run inside."""
    char = fence[0]
    longest = 0
    for line in body_lines:
        m = _FENCE_LIKE_RE.match(line)
        if m and m.group("run")[0] == char:
            longest = max(longest, len(m.group("run")))
    return char * max(len(fence), longest + 1)


# ------------------------------------------------------------------
# Excerpts
# ------------------------------------------------------------------


def strip_tags(markup: str) -> str:
    """Drop HTML tags, unescape entities and collapse whitespace."""
    text = _TAG_RE.sub("", markup)
    return _WS_RE.sub(" ", html.unescape(text)).strip()


def make_excerpt(markup: str, length: int) -> str:
    """First *length* characters of *markup* as plain text."""
    if length <= 0:
        return ""
    return strip_tags(markup)[:length].rstrip()
