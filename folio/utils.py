"""Utility functions for Folio.

This module contains small helpers shared across the Folio codebase:
string processing, date normalization, and path classification.

Key functions:
    slugify: Convert filenames and titles to URL slugs.
    titleize: Convert filenames to human-readable titles.
    extract_date_from_name: Extract date from a YYYY-MM-DD filename prefix.
    normalize_date: Coerce front matter date values to naive datetimes.
    truncate_text: Truncate text to a length, appending an ellipsis marker.
    is_markdown / is_template / is_html: Classify content files.
    ensure_clean_dir: Ensure a directory exists and is empty.
"""

from __future__ import annotations

import re
import shutil
from datetime import date, datetime, timezone
from pathlib import Path

DATE_PREFIX_RE = re.compile(r"^_?(\d{4})-(\d{2})-(\d{2})-")
ELLIPSIS = "..."

MARKDOWN_SUFFIXES = (".md", ".markdown")


def strip_date_prefix(name: str) -> str:
    """Remove a leading YYYY-MM-DD- prefix (draft underscore included)."""
    return DATE_PREFIX_RE.sub("", name, count=1)


def slugify(name: str) -> str:
    """Convert a filename stem or title to a slug, dropping any date prefix.

    Args:
        name: Filename stem or free text.

    Returns:
        URL-friendly slug.

    Examples:
        >>> slugify("2024-01-15-Hello World")
        'hello-world'
    """
    cleaned = strip_date_prefix(name)
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", cleaned)
    cleaned = cleaned.strip("-").lower()
    return cleaned or "index"


def titleize(filename: str) -> str:
    """Convert a filename to a human-readable title.

    Removes date prefixes (YYYY-MM-DD), replaces hyphens and underscores
    with spaces, and capitalizes each word.

    Examples:
        >>> titleize("2024-01-15-hello-world.md")
        'Hello World'
    """
    base = strip_date_prefix(Path(filename).stem)
    words = re.split(r"[\s\-_]+", base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def extract_date_from_name(name: str) -> datetime | None:
    """Extract a date from a filename with YYYY-MM-DD prefix.

    Args:
        name: Filename stem (without extension).

    Returns:
        datetime object if a valid date prefix is found, None otherwise.
    """
    match = DATE_PREFIX_RE.match(name + "-")
    if not match:
        return None
    try:
        return datetime(*(int(part) for part in match.groups()))
    except ValueError:
        return None


def normalize_date(value: object) -> datetime | None:
    """Coerce a front matter date value into a naive datetime.

    PyYAML yields ``date`` or ``datetime`` objects for unquoted timestamps and
    plain strings for quoted ones. Aware datetimes are converted to UTC so that
    every date in a collection compares cleanly.

    Args:
        value: Raw front matter value.

    Returns:
        Naive datetime, or None when the value is missing or unparseable.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return normalize_date(parsed)
    return None


def truncate_text(text: str, length: int, end: str = ELLIPSIS) -> str:
    """Truncate text to ``length`` characters, appending ``end`` if cut.

    Whitespace is collapsed first. The cut backs off to the last word
    boundary when one exists inside the limit.

    Examples:
        >>> truncate_text("The quick brown fox", 12)
        'The quick...'
        >>> truncate_text("short", 12)
        'short'
    """
    collapsed = " ".join(text.split())
    if length < 1 or len(collapsed) <= length:
        return collapsed
    cut = collapsed[:length]
    if collapsed[length] != " " and " " in cut:
        cut = cut.rsplit(" ", 1)[0]
    return cut.rstrip(" ,.;:") + end


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file (.md or .markdown)."""
    return path.suffix.lower() in MARKDOWN_SUFFIXES


def is_template(path: Path) -> bool:
    """Check if a path is a Jinja template file.

    Matches both .jinja and .html.jinja extensions.
    """
    return path.suffixes[-2:] == [".html", ".jinja"] or path.suffix == ".jinja"


def is_html(path: Path) -> bool:
    """Check if a path is a plain HTML file (not a Jinja template)."""
    return path.suffix.lower() == ".html" and not is_template(path)


def content_stem(path: Path) -> str:
    """Return the filename without any content suffix (.html.jinja included)."""
    name = path.name
    for suffix in (".html.jinja", ".jinja", ".html", *MARKDOWN_SUFFIXES):
        if name.lower().endswith(suffix):
            return name[: -len(suffix)]
    return path.stem
