"""Front matter parsing and typed access.

Content and layout files may start with a YAML block fenced by ``---`` lines.
:func:`extract_frontmatter` splits that block from the body, and
:class:`FrontMatter` wraps the result in a read-only mapping whose accessors
return ``None`` instead of raising when a key is absent or holds the wrong
kind of value.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterator, Mapping, Sequence
from datetime import datetime
from types import MappingProxyType
from typing import Any

import yaml

from .utils import normalize_date

FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(.*?)(?:\r?\n)?^---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)


class FrontMatterSyntaxError(ValueError):
    """Raised when a front matter block exists but cannot be parsed."""


def extract_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Extract YAML front matter from content.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (front matter dict, remaining body). Text without a front
        matter block yields an empty dict and the text unchanged.

    Raises:
        FrontMatterSyntaxError: If the block is not valid YAML or not a mapping.
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as exc:
        raise FrontMatterSyntaxError(f"invalid YAML front matter: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontMatterSyntaxError(
            f"front matter must be a mapping, got {type(data).__name__}"
        )
    return {str(k): v for k, v in data.items()}, text[match.end() :]


class FrontMatter(Mapping[str, Any]):
    """Immutable view over parsed front matter with safe typed accessors.

    Each accessor returns the value only when it is of the requested kind:
    ``text`` for strings (numbers are stringified), ``number`` for ints and
    floats, ``date`` for anything :func:`normalize_date` understands,
    ``sequence`` for lists (a bare string is split on whitespace), and
    ``mapping`` for dicts. Anything else is treated as absent.
    """

    def __init__(self, data: Mapping[str, Any] | None = None):
        self._data = MappingProxyType(dict(data or {}))

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"FrontMatter({dict(self._data)!r})"

    def text(self, key: str) -> str | None:
        value = self._data.get(key)
        if isinstance(value, bool) or value is None:
            return None
        if isinstance(value, (str, int, float)):
            text = str(value).strip()
            return text or None
        return None

    def number(self, key: str) -> float | None:
        """Return a finite number, or None for anything else (NaN included)."""
        value = self._data.get(key)
        if isinstance(value, bool):
            return None
        if isinstance(value, str):
            try:
                value = float(value)
            except ValueError:
                return None
        if isinstance(value, (int, float)) and math.isfinite(value):
            return float(value)
        return None

    def date(self, key: str) -> datetime | None:
        return normalize_date(self._data.get(key))

    def sequence(self, key: str) -> tuple[str, ...] | None:
        """Return a list value as a tuple of strings.

        Space-separated strings are split the way ``categories: blog notes``
        is commonly written.
        """
        value = self._data.get(key)
        if value is None:
            return None
        if isinstance(value, str):
            return tuple(value.split())
        if isinstance(value, Sequence):
            return tuple(str(item) for item in value if item is not None)
        return None

    def mapping(self, key: str) -> Mapping[str, Any] | None:
        value = self._data.get(key)
        if isinstance(value, Mapping):
            return MappingProxyType(dict(value))
        return None

    def flag(self, key: str) -> bool:
        return self._data.get(key) is True
