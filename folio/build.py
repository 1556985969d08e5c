"""Site building functionality for Folio.

Builds a static site from source files in four passes, none of which writes
anything until all have succeeded:

1. Load configuration, data, and every page.
2. Index posts and plan every output path, rejecting collisions.
3. Resolve every layout chain, rejecting unknown layouts and cycles.
4. Render everything in memory.

Only then is the output directory cleaned and written. The build is a pure
function of the source tree: building twice yields identical bytes.

Key functions:
- build_site: Main function to build the entire site.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any

from jinja2 import TemplateSyntaxError

from .collections import Pager, paginate
from .config import SiteConfig, load_config, load_data
from .content import ContentProcessor, Page
from .errors import (  # noqa: F401 - re-exported for callers of folio.build
    BuildError,
    FrontMatterError,
    LayoutCycleError,
    LayoutNotFoundError,
    OutputCollisionError,
    OutputPathError,
)
from .feeds import create_default_feed_registry
from .html_utils import absolutize_html_urls
from .templates import TemplateEngine
from .utils import ensure_clean_dir

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedPage:
    """Final markup for one output file.

    Attributes:
        output_path: POSIX path relative to the output directory.
        html: Rendered document.
        source_path: Source file the document came from.
    """

    output_path: str
    html: str
    source_path: Path


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        pages: Every loaded page.
        rendered: Every rendered document, in write order.
        output_dir: Directory where the site was built.
        config: Site configuration used.
        data: Site data dictionary.
    """

    pages: list[Page]
    rendered: list[RenderedPage]
    output_dir: Path
    config: SiteConfig
    data: dict[str, Any]


@dataclass(frozen=True)
class _RenderJob:
    page: Page
    pager: Pager | None
    output_path: str


def output_path_for_url(url: str) -> str:
    """Map a page URL to a file path relative to the output directory.

    Examples:
        >>> output_path_for_url("/")
        'index.html'
        >>> output_path_for_url("/about/")
        'about/index.html'
        >>> output_path_for_url("/404.html")
        '404.html'
    """
    stripped = url.strip("/")
    if not stripped:
        return "index.html"
    if url.endswith("/") or not PurePosixPath(stripped).suffix:
        return f"{stripped}/index.html"
    return stripped


def build_site(
    project_root: Path,
    include_drafts: bool = False,
    root_url: str | None = None,
    clean_output: bool = True,
    output_dir_override: Path | None = None,
) -> BuildResult:
    """Build the entire static site.

    Args:
        project_root: Root directory of the project.
        include_drafts: Whether to include draft pages.
        root_url: Optional base URL to absolutize links with.
        clean_output: Whether to wipe the output directory before writing.
        output_dir_override: Optional path to write the build output instead of config output_dir.

    Returns:
        BuildResult containing all pages, rendered documents, and site data.

    Raises:
        BuildError: On malformed front matter, unknown or cyclic layouts,
            output path collisions, or template errors. Nothing is written.
        FileNotFoundError: If the project has no site/ directory.
    """
    config = load_config(project_root)
    data = load_data(project_root)
    output_dir = output_dir_override or (project_root / config.output_dir)
    site_dir = project_root / "site"
    if not site_dir.exists():
        raise FileNotFoundError(f"Expected site directory at {site_dir}")

    pages = ContentProcessor(site_dir, config).load(include_drafts=include_drafts)
    engine = TemplateEngine(site_dir, config, data, root_url=root_url)
    engine.update_collections(pages)

    feeds = create_default_feed_registry().generate_all(pages, engine.posts, config)
    jobs = _plan_outputs(pages, engine, config, reserved=feeds)

    for page in pages:
        engine.layout_chain(page)

    rendered = [_render(engine, job, root_url) for job in jobs]

    if clean_output:
        ensure_clean_dir(output_dir)
    else:
        output_dir.mkdir(parents=True, exist_ok=True)
    for document in rendered:
        _write(output_dir, document.output_path, document.html)
    for filename, content in feeds.items():
        _write(output_dir, filename, content)

    logger.info("Built %d documents into %s", len(rendered) + len(feeds), output_dir)
    return BuildResult(
        pages=pages, rendered=rendered, output_dir=output_dir, config=config, data=data
    )


def _plan_outputs(
    pages: Iterable[Page],
    engine: TemplateEngine,
    config: SiteConfig,
    reserved: Iterable[str] = (),
) -> list[_RenderJob]:
    """Assign every page (and every pager) an output path.

    Raises:
        OutputCollisionError: If two sources map to the same output path.
        OutputPathError: If a URL climbs above the output directory.
    """
    claimed: dict[str, Path] = {name: Path(f"<generated {name}>") for name in reserved}

    jobs: list[_RenderJob] = []

    def claim(page: Page, pager: Pager | None, url: str) -> None:
        output_path = output_path_for_url(url)
        if ".." in PurePosixPath(output_path).parts:
            raise OutputPathError(page.path, url)
        other = claimed.get(output_path)
        if other is not None:
            raise OutputCollisionError(page.path, other, output_path)
        claimed[output_path] = page.path
        jobs.append(_RenderJob(page=page, pager=pager, output_path=output_path))

    for page in pages:
        if page.paginate:
            for pager in paginate(
                engine.posts, config.paginate, page.url, config.paginate_path
            ):
                claim(page, pager, pager.url)
        else:
            claim(page, None, page.url)
    return jobs


def _render(engine: TemplateEngine, job: _RenderJob, root_url: str | None) -> RenderedPage:
    page = job.page
    try:
        html = engine.render_page(page, pager=job.pager)
    except BuildError:
        raise
    except TemplateSyntaxError as exc:
        source = Path(exc.filename) if exc.filename else page.path
        raise BuildError(
            source,
            f"Template syntax error on line {exc.lineno}: {exc.message}",
            exc,
        ) from exc
    except Exception as exc:
        raise BuildError(page.path, _format_error_message(exc), exc) from exc
    if root_url:
        html = absolutize_html_urls(html, root_url)
    return RenderedPage(output_path=job.output_path, html=html, source_path=page.path)


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message."""
    error_type = type(exc).__name__
    error_msg = str(exc)

    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if error_type == "TemplateNotFound":
        return f"Template not found: {error_msg}"
    if error_type == "TypeError":
        return f"Type error: {error_msg}"
    if error_type == "AttributeError":
        return f"Attribute error: {error_msg}"

    return f"{error_type}: {error_msg}"


def _write(output_dir: Path, output_path: str, content: str) -> None:
    target = output_dir / output_path
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w", encoding="utf-8", newline="\n") as f:
        f.write(content)
