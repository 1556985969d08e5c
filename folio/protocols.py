"""Protocol definitions for Folio.

These interfaces let the content pipeline swap its parts (renderers, metadata
extractors, loaders, page builders) without touching the code that drives
them, and let tests pass in small fakes.
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .content import Page
    from .frontmatter import FrontMatter


@runtime_checkable
class ContentRenderer(Protocol):
    """Protocol for rendering a content body to HTML."""

    @abstractmethod
    def can_render(self, path: Path) -> bool:
        """Check if this renderer can handle the given file."""
        ...

    @abstractmethod
    def render(self, content: str) -> str:
        """Render a body to HTML."""
        ...

    @property
    @abstractmethod
    def source_type(self) -> str:
        """Return the source type identifier ('markdown', 'html', 'jinja')."""
        ...


@runtime_checkable
class MetadataExtractor(Protocol):
    """Protocol for deriving page metadata from front matter and the body.

    Each extractor contributes a few keys; the composite merges them in
    order, so later extractors override earlier ones.
    """

    @abstractmethod
    def extract(
        self, frontmatter: FrontMatter, body: str, path: Path
    ) -> dict[str, Any]:
        """Extract metadata.

        Args:
            frontmatter: Parsed front matter of the file.
            body: Content body after the front matter.
            path: Path to the source file.

        Returns:
            Dictionary of extracted metadata.
        """
        ...


@runtime_checkable
class ContentLoader(Protocol):
    """Protocol for discovering content files."""

    @abstractmethod
    def iter_files(self, include_drafts: bool = False) -> list[Path]:
        """Return all content files, sorted for deterministic builds."""
        ...


@runtime_checkable
class PageBuilder(Protocol):
    """Protocol for building Page objects from source files."""

    @abstractmethod
    def build(self, path: Path, draft: bool = False) -> Page:
        """Build a Page object from a source file."""
        ...
