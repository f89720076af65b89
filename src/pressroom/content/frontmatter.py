"""Front-matter parser.

A post starts with a YAML block between ``---`` delimiter lines::

    ---
    layout: post
    title: "Variadic templates"
    date: 2025-03-06 10:00:00 +0100
    categories: c++, templates
    ---
    Body text...

The block must be a flat mapping of string keys to scalars or lists. Keys
other than the required ones are kept as-is and handed to the layout step.
All YAML reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Any, Iterable

import yaml

from pressroom.errors import InvalidFieldValue, MalformedFrontMatter, MissingRequiredField

REQUIRED_FIELDS: tuple[str, ...] = ("layout", "title", "date")

_OPEN_DELIMITER = "---"
_CLOSE_DELIMITERS = ("---", "...")

# 2025-03-06 10:00:00 +0100 (Jekyll style) and friends that fromisoformat rejects
_DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S %z",
    "%Y-%m-%d %H:%M %z",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
)

_CATEGORY_SPLIT_RE = re.compile(r"\s*,\s*")


def split_front_matter(text: str) -> tuple[dict[str, Any], str]:
    """Split *text* into its front-matter mapping and the remaining body.

    Returns ``({}, text)`` when the text does not open with a delimiter line.

    Raises:
        MalformedFrontMatter: if the opening delimiter is never closed, or the
            block is not a valid YAML mapping.
    """
    if text.startswith("\ufeff"):
        text = text[1:]

    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip() != _OPEN_DELIMITER:
        return {}, text

    for i in range(1, len(lines)):
        if lines[i].rstrip() in _CLOSE_DELIMITERS:
            block = "".join(lines[1:i])
            body = "".join(lines[i + 1:])
            return _load_block(block), body

    raise MalformedFrontMatter("front matter opened with '---' is never closed")


def _load_block(block: str) -> dict[str, Any]:
    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        raise MalformedFrontMatter(f"front matter is not valid YAML: {exc}") from exc
    except ValueError as exc:
        # safe_load builds timestamps itself, so 2025-02-30 fails here
        raise MalformedFrontMatter(f"front matter holds an impossible date or time: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise MalformedFrontMatter(
            f"front matter must be a key/value mapping, got {type(data).__name__}"
        )

    meta: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict):
            raise MalformedFrontMatter(
                f"front matter key '{key}' holds a nested mapping; only scalars and lists are allowed"
            )
        meta[str(key)] = value
    return meta


def require_fields(meta: dict[str, Any], fields: Iterable[str] = REQUIRED_FIELDS) -> None:
    """Raise MissingRequiredField for the first absent or empty key in *fields*."""
    for name in fields:
        value = meta.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise MissingRequiredField(name)


def dump_front_matter(meta: dict[str, Any], body: str = "") -> str:
    """Serialise *meta* and *body* back into a post file."""
    block = yaml.safe_dump(meta, sort_keys=False, allow_unicode=True, default_flow_style=False)
    return f"{_OPEN_DELIMITER}\n{block}{_OPEN_DELIMITER}\n{body}"


def parse_date(value: Any) -> datetime:
    """Return a timezone-aware datetime for a front-matter ``date`` value.

    Naive values are taken as UTC.

    Raises:
        InvalidFieldValue: if *value* cannot be read as a timestamp.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        parsed = _parse_date_string(value.strip())
    else:
        raise InvalidFieldValue("date", f"expected a timestamp, got {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_date_string(raw: str) -> datetime:
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt)
        except ValueError:
            continue
    raise InvalidFieldValue("date", f"cannot parse {raw!r} as a timestamp")


def parse_categories(value: Any) -> tuple[str, ...]:
    """Normalise a ``categories`` value (list or comma-separated string).

    Duplicates are dropped; first-seen order is kept.
    """
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        raw = [str(v).strip() for v in value if v is not None]
    else:
        raw = _CATEGORY_SPLIT_RE.split(str(value).strip())

    seen: dict[str, None] = {}
    for item in raw:
        if item:
            seen.setdefault(item, None)
    return tuple(seen)
