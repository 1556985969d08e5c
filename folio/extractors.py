"""Metadata extractors for Folio.

Each extractor derives one kind of page metadata from the parsed front
matter, falling back to the body or the filename when a field is missing.

Key classes:
- TitleExtractor: Title from front matter, first heading, or filename.
- DateExtractor: Date from front matter, filename prefix, or file mtime.
- TaxonomyExtractor: Categories and tags as ordered tuples.
- OrderExtractor: Explicit numeric ordering key.
- SummaryExtractor: Explicit excerpt and description.
- CompositeMetadataExtractor: Runs extractors in order and merges results.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from .frontmatter import FrontMatter
from .utils import extract_date_from_name, is_markdown, titleize

logger = logging.getLogger(__name__)


class TitleExtractor:
    """Extracts the page title.

    Front matter ``title`` wins; Markdown files fall back to their first
    level-1 heading, everything else to the titleized filename.
    """

    def extract(self, frontmatter: FrontMatter, body: str, path: Path) -> dict[str, Any]:
        title = frontmatter.text("title")
        if title:
            return {"title": title}
        if is_markdown(path):
            for line in body.splitlines():
                stripped = line.strip()
                if stripped.startswith("# "):
                    return {"title": stripped[2:].strip()}
        return {"title": titleize(path.name)}


class DateExtractor:
    """Extracts the publication date.

    Looks at front matter ``date``, then a YYYY-MM-DD filename prefix, then
    the file modification time.
    """

    def extract(self, frontmatter: FrontMatter, body: str, path: Path) -> dict[str, Any]:
        date = frontmatter.date("date")
        if date is None and "date" in frontmatter:
            logger.warning(
                "%s: could not parse date %r; using filename or mtime",
                path,
                frontmatter["date"],
            )
        if date is None:
            date = extract_date_from_name(path.stem)
        if date is None:
            date = datetime.fromtimestamp(path.stat().st_mtime)
        return {"date": date}


class TaxonomyExtractor:
    """Extracts categories and tags as ordered, de-duplicated tuples.

    Accepts both the plural keys and the singular ``category``/``tag``.
    """

    def extract(self, frontmatter: FrontMatter, body: str, path: Path) -> dict[str, Any]:
        return {
            "categories": self._collect(frontmatter, "categories", "category"),
            "tags": self._collect(frontmatter, "tags", "tag"),
        }

    @staticmethod
    def _collect(frontmatter: FrontMatter, plural: str, singular: str) -> tuple[str, ...]:
        values = list(frontmatter.sequence(plural) or ())
        single = frontmatter.text(singular)
        if single:
            values.append(single)
        seen: list[str] = []
        for value in values:
            if value and value not in seen:
                seen.append(value)
        return tuple(seen)


class OrderExtractor:
    """Extracts the explicit ``order`` key used to pin posts."""

    def extract(self, frontmatter: FrontMatter, body: str, path: Path) -> dict[str, Any]:
        order = frontmatter.number("order")
        if order is None and "order" in frontmatter:
            logger.warning("%s: ignoring non-numeric order %r", path, frontmatter["order"])
        return {"order": order}


class SummaryExtractor:
    """Extracts an explicit excerpt and description.

    A missing excerpt is left empty here; the page builder derives one from
    the rendered body.
    """

    def extract(self, frontmatter: FrontMatter, body: str, path: Path) -> dict[str, Any]:
        return {
            "excerpt": frontmatter.text("excerpt") or "",
            "description": frontmatter.text("description") or "",
        }


class CompositeMetadataExtractor:
    """Combines multiple metadata extractors.

    Runs every registered extractor and merges their results; later
    extractors override earlier ones.
    """

    def __init__(self, extractors: list | None = None):
        if extractors is None:
            self._extractors = [
                TitleExtractor(),
                DateExtractor(),
                TaxonomyExtractor(),
                OrderExtractor(),
                SummaryExtractor(),
            ]
        else:
            self._extractors = list(extractors)

    def add_extractor(self, extractor) -> None:
        self._extractors.append(extractor)

    def extract(self, frontmatter: FrontMatter, body: str, path: Path) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for extractor in self._extractors:
            result.update(extractor.extract(frontmatter, body, path))
        return result


# Default composite extractor instance
default_metadata_extractor = CompositeMetadataExtractor()
