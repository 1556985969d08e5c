"""Template rendering engine for Folio.

This module uses Jinja2 to render pages through their layouts.

Layouts live in ``site/_layouts`` and may start with their own front matter.
A ``layout:`` key there names a parent layout, so a post can be rendered
through ``post`` which is itself wrapped by ``default``. Chains are resolved
iteratively with a visited set; a layout that extends itself (directly or
transitively) is a fatal build error.

Unknown variables never abort rendering: they render as empty strings and
log a warning.

Key classes:
- TemplateEngine: Renders pages and listings with the site context.
- LayoutLibrary: Finds layouts and resolves their parent chains.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from jinja2 import ChainableUndefined, Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from .collections import (
    PageCollection,
    Pager,
    TagCollection,
    build_categories_index,
    build_tags_index,
)
from .config import SiteConfig
from .content import LAYOUT_SUFFIXES, Page
from .errors import FrontMatterError, LayoutCycleError, LayoutNotFoundError
from .filters import make_filters
from .frontmatter import FrontMatter, FrontMatterSyntaxError, extract_frontmatter
from .html_utils import join_root_url
from .renderers import pygments_css

__all__ = ["LayoutLibrary", "SoftUndefined", "TemplateEngine"]

logger = logging.getLogger(__name__)


class SoftUndefined(ChainableUndefined):
    """Undefined value that renders empty and logs a warning when printed.

    Attribute and item access chain (``page.missing.deeper`` stays
    undefined), iteration yields nothing, and calling it returns itself.
    Arithmetic and ordering comparisons also return the undefined value, so
    ``{{ missing + 1 }}`` prints empty and ``{% if missing > 3 %}`` is false.
    Only printing logs, so ``{% if page.subtitle %}`` checks stay quiet.
    """

    __slots__ = ()

    def __str__(self) -> str:
        logger.warning("Undefined template variable '%s' rendered empty", self._undefined_name)
        return ""

    def __call__(self, *args: Any, **kwargs: Any) -> SoftUndefined:
        return self

    __add__ = __radd__ = __sub__ = __rsub__ = __call__
    __mul__ = __rmul__ = __truediv__ = __rtruediv__ = __call__
    __floordiv__ = __rfloordiv__ = __mod__ = __rmod__ = __call__
    __pow__ = __rpow__ = __pos__ = __neg__ = __call__
    __lt__ = __le__ = __gt__ = __ge__ = __call__


class FrontMatterLoader(FileSystemLoader):
    """File system loader that strips a template's front matter block."""

    def get_source(self, environment: Environment, template: str):
        source, filename, uptodate = super().get_source(environment, template)
        try:
            _, body = extract_frontmatter(source)
        except FrontMatterSyntaxError as exc:
            raise FrontMatterError(Path(filename), str(exc), exc) from exc
        return body, filename, uptodate


class LayoutLibrary:
    """Locates layouts and resolves their parent chains.

    Attributes:
        layout_dir: Directory containing layout templates.
    """

    def __init__(self, layout_dir: Path):
        self.layout_dir = layout_dir
        self._meta: dict[str, FrontMatter] = {}

    def find(self, name: str) -> Path | None:
        """Return the file for layout ``name``, trying each layout suffix."""
        for suffix in LAYOUT_SUFFIXES:
            candidate = self.layout_dir / f"{name}{suffix}"
            if candidate.is_file():
                return candidate
        return None

    def template_name(self, name: str) -> str:
        path = self.find(name)
        if path is None:
            raise LayoutNotFoundError(self.layout_dir, name)
        return path.relative_to(self.layout_dir).as_posix()

    def metadata(self, name: str) -> FrontMatter:
        """Return the front matter of layout ``name`` (cached)."""
        if name not in self._meta:
            path = self.find(name)
            if path is None:
                raise LayoutNotFoundError(self.layout_dir, name)
            try:
                data, _ = extract_frontmatter(path.read_text(encoding="utf-8"))
            except FrontMatterSyntaxError as exc:
                raise FrontMatterError(path, str(exc), exc) from exc
            self._meta[name] = FrontMatter(data)
        return self._meta[name]

    def parent_of(self, name: str) -> str | None:
        return self.metadata(name).text("layout")

    def resolve_chain(self, name: str, source_path: Path) -> list[str]:
        """Follow ``name`` through its parents to a terminal layout.

        Args:
            name: Layout the page asks for.
            source_path: File that asked for it, named in errors.

        Returns:
            Layout names from innermost to outermost.

        Raises:
            LayoutNotFoundError: If a layout in the chain does not exist.
            LayoutCycleError: If the chain revisits a layout.
        """
        chain: list[str] = []
        visited: set[str] = set()
        current: str | None = name
        referrer = source_path
        while current is not None:
            if current in visited:
                raise LayoutCycleError(referrer, chain + [current])
            path = self.find(current)
            if path is None:
                raise LayoutNotFoundError(referrer, current)
            visited.add(current)
            chain.append(current)
            referrer = path
            current = self.parent_of(current)
        return chain


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Attributes:
        site_dir: Directory containing content, layouts, and includes.
        config: Site configuration, exposed to templates as ``site``.
        data: Site data from data/*.yaml, exposed as ``data``.
        env: Jinja2 environment.
        layouts: Layout library for chain resolution.
        pages: All pages.
        posts: Posts in display order.
    """

    def __init__(
        self,
        site_dir: Path,
        config: SiteConfig | None = None,
        data: dict[str, Any] | None = None,
        root_url: str | None = None,
    ):
        """Initialize the template engine.

        Args:
            site_dir: Directory with content and templates.
            config: Site configuration.
            data: Site data.
            root_url: Optional base URL for url_for, overriding config.url.
        """
        self.site_dir = site_dir
        self.config = config or SiteConfig()
        self.data = data or {}
        self.root_url = root_url or self.config.url or ""
        self.env = Environment(
            loader=FrontMatterLoader(
                [
                    site_dir / "_layouts",
                    site_dir / "_includes",
                    site_dir,
                ]
            ),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            undefined=SoftUndefined,
        )
        self.env.filters.update(make_filters(self.config))
        self.layouts = LayoutLibrary(site_dir / "_layouts")
        self.pages = PageCollection([])
        self.posts = PageCollection([])
        self.tags = TagCollection({})
        self.categories = TagCollection({})
        self._install_globals()

    def _install_globals(self) -> None:
        """Install global variables and functions in the Jinja environment."""
        self.env.globals["site"] = self.config
        self.env.globals["data"] = self.data
        self.env.globals["pages"] = self.pages
        self.env.globals["posts"] = self.posts
        self.env.globals["tags"] = self.tags
        self.env.globals["categories"] = self.categories
        self.env.globals["url_for"] = self._url_for
        self.env.globals["pygments_css"] = pygments_css

    def update_collections(self, pages: Iterable[Page]) -> None:
        """Index the full page set before any page is rendered.

        Args:
            pages: Every loaded page.
        """
        self.pages = PageCollection(pages)
        self.posts = self.pages.posts()
        self.tags = TagCollection(build_tags_index(self.posts))
        self.categories = TagCollection(build_categories_index(self.posts))
        self._install_globals()

    def _url_for(self, path: str) -> str:
        """Generate a URL for a path, applying root_url if configured.

        Args:
            path: Path to generate URL for.

        Returns:
            Full URL with root_url prefix if configured.
        """
        if path.startswith(("http://", "https://", "//")):
            return path
        normalized = path if path.startswith("/") else f"/{path}"
        if self.root_url:
            return join_root_url(self.root_url, normalized)
        return normalized

    def layout_chain(self, page: Page) -> list[str]:
        """Return the layout chain for ``page``, innermost first.

        Raises:
            LayoutNotFoundError: If the page or a parent names a missing layout.
            LayoutCycleError: If the layouts form a cycle.
        """
        if page.layout is None:
            return []
        return self.layouts.resolve_chain(page.layout, page.path)

    def render_page(self, page: Page, pager: Pager | None = None) -> str:
        """Render a page with its layout chain.

        Args:
            page: Page object to render.
            pager: Pager when rendering one page of a paginated listing.

        Returns:
            Rendered HTML string.
        """
        context = self._context(page, pager)
        html = self._render_body(page, context)
        for name in self.layout_chain(page):
            template = self.env.get_template(self.layouts.template_name(name))
            html = template.render(
                context,
                content=Markup(html),
                layout=self.layouts.metadata(name),
            )
        return html

    def _context(self, page: Page, pager: Pager | None) -> dict[str, Any]:
        previous_post, next_post = self.posts.neighbours(page)
        return {
            "page": page,
            "paginator": pager,
            "previous_post": previous_post,
            "next_post": next_post,
        }

    def _render_body(self, page: Page, context: dict[str, Any]) -> str:
        """Render the page body (only Jinja sources are templated)."""
        if page.source_type == "jinja":
            template = self.env.from_string(page.content)
            return template.render(context)
        return page.content

    def render_string(self, template: str, context: dict[str, Any]) -> str:
        """Render a template string with the site globals plus ``context``."""
        return self.env.from_string(template).render(context)
