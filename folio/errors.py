"""Build errors for Folio.

Every fatal problem found while building a site is a :class:`BuildError`
naming the file that caused it. Soft problems (unknown template variables,
missing optional fields) are logged and never raise.
"""

from __future__ import annotations

from pathlib import Path


class BuildError(Exception):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the source file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


class FrontMatterError(BuildError):
    """A content or layout file has an unparseable front matter block."""


class LayoutNotFoundError(BuildError):
    """A page or layout refers to a layout that does not exist."""

    def __init__(self, source_path: Path, layout: str):
        self.layout = layout
        super().__init__(source_path, f"Unknown layout '{layout}'")


class LayoutCycleError(BuildError):
    """A layout extends itself, directly or through its parents."""

    def __init__(self, source_path: Path, chain: list[str]):
        self.chain = list(chain)
        super().__init__(
            source_path, "Layout cycle detected: " + " -> ".join(self.chain)
        )


class OutputCollisionError(BuildError):
    """Two sources would be written to the same output file."""

    def __init__(self, source_path: Path, other_path: Path, output_path: str):
        self.other_path = other_path
        self.output_path = output_path
        super().__init__(
            source_path,
            f"Output path '{output_path}' is already produced by {other_path}",
        )


class OutputPathError(BuildError):
    """A page's URL would place its output outside the output directory."""

    def __init__(self, source_path: Path, url: str):
        self.url = url
        super().__init__(
            source_path, f"URL '{url}' resolves outside the output directory"
        )
