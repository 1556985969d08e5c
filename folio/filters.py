"""Jinja filters for Folio templates.

Filters are fail-soft: a missing or unparseable value renders as an empty
string instead of aborting the build. Jinja's built-in filters (``upper``,
``lower``, ``title``, ``truncate``, ``striptags``) remain available alongside
these.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from jinja2 import Undefined

from .config import SiteConfig
from .html_utils import join_root_url, strip_html
from .utils import ELLIPSIS, normalize_date, slugify, truncate_text

logger = logging.getLogger(__name__)

RFC822_FORMAT = "%a, %d %b %Y %H:%M:%S +0000"


def _as_text(value: Any) -> str:
    if value is None or isinstance(value, Undefined):
        return ""
    return str(value)


def strip_html_filter(value: Any) -> str:
    """Remove markup tags and collapse whitespace."""
    return strip_html(_as_text(value))


def truncate_text_filter(value: Any, length: int = 200, end: str = ELLIPSIS) -> str:
    """Truncate text to ``length`` characters, ending with ``end`` if cut."""
    return truncate_text(_as_text(value), length, end)


def upcase(value: Any) -> str:
    return _as_text(value).upper()


def downcase(value: Any) -> str:
    return _as_text(value).lower()


def titlecase(value: Any) -> str:
    """Capitalize each whitespace-separated word, leaving the rest alone."""
    return " ".join(word[:1].upper() + word[1:] for word in _as_text(value).split())


def slugify_filter(value: Any) -> str:
    text = _as_text(value)
    return slugify(text) if text else ""


def number_of_words(value: Any) -> int:
    return len(strip_html(_as_text(value)).split())


def _coerce_date(value: Any) -> datetime | None:
    if isinstance(value, Undefined) or value is None:
        return None
    if isinstance(value, str) and value.strip().lower() in {"now", "today"}:
        return datetime.now()
    date = normalize_date(value)
    if date is None:
        logger.warning("Cannot format %r as a date; rendering empty", value)
    return date


def date_to_xmlschema(value: Any) -> str:
    date = _coerce_date(value)
    return date.strftime("%Y-%m-%dT%H:%M:%S+00:00") if date else ""


def date_to_rfc822(value: Any) -> str:
    date = _coerce_date(value)
    return date.strftime(RFC822_FORMAT) if date else ""


def make_filters(config: SiteConfig) -> dict[str, Callable[..., Any]]:
    """Build the filter table for an environment bound to ``config``.

    Args:
        config: Site configuration supplying the default date format, the
            excerpt length, and the base URL.

    Returns:
        Mapping of filter name to callable, ready for ``env.filters.update``.
    """

    def date_filter(value: Any, fmt: str | None = None) -> str:
        date = _coerce_date(value)
        return date.strftime(fmt or config.date_format) if date else ""

    def excerpt_filter(value: Any, length: int | None = None) -> str:
        return truncate_text(
            strip_html(_as_text(value)), length or config.excerpt_length
        )

    def relative_url(value: Any) -> str:
        text = _as_text(value)
        if text.startswith(("http://", "https://", "//")):
            return text
        return text if text.startswith("/") else f"/{text}"

    def absolute_url(value: Any) -> str:
        text = relative_url(value)
        if text.startswith(("http://", "https://", "//")):
            return text
        return join_root_url(config.url, text)

    return {
        "strip_html": strip_html_filter,
        "truncate_text": truncate_text_filter,
        "excerpt": excerpt_filter,
        "date": date_filter,
        "date_to_xmlschema": date_to_xmlschema,
        "date_to_rfc822": date_to_rfc822,
        "slugify": slugify_filter,
        "upcase": upcase,
        "downcase": downcase,
        "titlecase": titlecase,
        "number_of_words": number_of_words,
        "relative_url": relative_url,
        "absolute_url": absolute_url,
    }
