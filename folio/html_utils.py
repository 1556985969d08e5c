"""HTML utility functions for Folio.

This module provides HTML string helpers: escaping, tag stripping, and URL
joining/absolutization. It deliberately stays free of template or content
concerns so filters, feeds, and the build can all share it.

Functions:
    escape_html: Escape special HTML characters in a string.
    strip_html: Remove tags and collapse whitespace.
    join_root_url: Join a base URL with a path.
    absolutize_html_urls: Convert root-relative URLs to absolute in HTML.
"""

from __future__ import annotations

import html
import re

_TAG_RE = re.compile(r"<[^>]*>")
_SCRIPT_STYLE_RE = re.compile(
    r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL
)
_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)

# URL attribute regex pattern for finding href, src, action attributes
_URL_ATTR_RE = re.compile(
    r'(?P<prefix>\b(?:href|src|action)=["\'])(?P<url>[^"\']+)(?P<suffix>["\'])'
)

# URL prefixes that should not be modified
_URL_SKIP_PREFIXES = (
    "http://",
    "https://",
    "//",
    "mailto:",
    "tel:",
    "#",
    "javascript:",
)


def escape_html(text: str) -> str:
    """Escape special HTML characters in a string.

    Examples:
        >>> escape_html('Tom & Jerry')
        'Tom &amp; Jerry'
    """
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def strip_html(text: str) -> str:
    """Remove markup from an HTML fragment and collapse whitespace.

    Script and style blocks and comments are dropped along with their
    contents. Entities are decoded so the result is plain text.

    Examples:
        >>> strip_html("<p>Hello <em>world</em> &amp; more</p>")
        'Hello world & more'
    """
    if not text:
        return ""
    cleaned = _SCRIPT_STYLE_RE.sub(" ", str(text))
    cleaned = _COMMENT_RE.sub(" ", cleaned)
    cleaned = _TAG_RE.sub(" ", cleaned)
    cleaned = html.unescape(cleaned)
    return " ".join(cleaned.split())


def join_root_url(root_url: str, path: str) -> str:
    """Safely join a root URL and a path, avoiding double slashes.

    Examples:
        >>> join_root_url('https://example.com/', 'about')
        'https://example.com/about'
    """
    if not root_url:
        return path
    base = root_url.rstrip("/")
    suffix = path if path.startswith("/") else f"/{path}"
    return f"{base}{suffix}"


def absolutize_html_urls(html_text: str, root_url: str) -> str:
    """Rewrite root-relative URLs in HTML to absolute URLs.

    Processes href, src, and action attributes. External URLs, anchors,
    mailto/tel links, and javascript: URLs are left unchanged.

    Examples:
        >>> absolutize_html_urls('<a href="/about">About</a>', 'https://example.com')
        '<a href="https://example.com/about">About</a>'
    """
    if not root_url:
        return html_text

    def repl(match: re.Match) -> str:
        url = match.group("url")
        if not url or url.startswith(_URL_SKIP_PREFIXES):
            return match.group(0)
        absolute = join_root_url(root_url, url)
        return f"{match.group('prefix')}{absolute}{match.group('suffix')}"

    return _URL_ATTR_RE.sub(repl, html_text)
