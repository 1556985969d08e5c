"""Content processing for Folio.

This module loads content files (Markdown, HTML, and Jinja templates), parses
their front matter, renders their bodies, and creates immutable Page objects.

Key classes:
- Page: Frozen dataclass representing one content unit.
- FileContentLoader: Discovers content files under the site directory.
- LayoutResolver: Picks the layout a page is rendered through.
- PermalinkResolver: Derives the URL a page is published at.
- DefaultPageBuilder: Builds a Page from a source file.
- ContentProcessor: Facade that loads every page of a site.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Any

from markupsafe import Markup

from .config import SiteConfig
from .errors import FrontMatterError
from .extractors import CompositeMetadataExtractor, default_metadata_extractor
from .frontmatter import FrontMatter, FrontMatterSyntaxError, extract_frontmatter
from .html_utils import strip_html
from .protocols import ContentLoader, PageBuilder
from .renderers import RendererRegistry, default_renderer_registry
from .utils import content_stem, is_html, is_markdown, is_template, slugify, truncate_text

logger = logging.getLogger(__name__)

LAYOUT_SUFFIXES = (".html.jinja", ".jinja", ".html")
_TEMPLATE_SYNTAX_RE = re.compile(r"\{[%#{].*?[%#}]\}", re.DOTALL)
_NO_LAYOUT = frozenset({"none", "null", "false"})


@dataclass(frozen=True, eq=False)
class Page:
    """A content unit: one source file with its metadata and rendered body.

    Pages are immutable once loaded. Templates reach any front matter key
    through item access, so ``{{ page.subtitle }}`` works for custom fields.

    Attributes:
        title: Human-readable title.
        body: Raw body text after the front matter.
        content: Body rendered to HTML (template source for Jinja pages).
        excerpt: Explicit excerpt, or one derived from the rendered body.
        description: Explicit description, empty when unset.
        url: URL path the page is published at.
        slug: URL-friendly slug.
        date: Publication date (naive datetime).
        categories: Ordered categories.
        tags: Ordered tags.
        order: Explicit ordering key, None when unset.
        layout: Layout name, None to render the body bare.
        permalink: Explicit permalink from front matter, if any.
        group: First folder under site/ (e.g. 'posts').
        is_post: Whether the page belongs to the posts collection.
        draft: Whether this is a draft page.
        path: Path to the source file.
        folder: Folder path relative to site directory.
        filename: Name of the source file.
        source_type: "markdown", "html", or "jinja".
        frontmatter: Read-only front matter.
    """

    title: str
    body: str
    content: str
    excerpt: str
    description: str
    url: str
    slug: str
    date: datetime
    categories: tuple[str, ...]
    tags: tuple[str, ...]
    order: float | None
    layout: str | None
    permalink: str | None
    group: str
    is_post: bool
    draft: bool
    path: Path
    folder: str
    filename: str
    source_type: str
    frontmatter: FrontMatter = field(default_factory=FrontMatter)

    def __getitem__(self, key: str) -> Any:
        return self.frontmatter[key]

    @property
    def paginate(self) -> bool:
        """Whether this page is rendered once per pager of the post index."""
        return self.frontmatter.flag("paginate")


class FileContentLoader:
    """Loads content files from a directory.

    Directories starting with ``_`` (layouts, includes) are skipped, as are
    ``_``-prefixed files unless drafts are requested.

    Attributes:
        site_dir: Directory containing site content.
    """

    def __init__(self, site_dir: Path):
        self.site_dir = site_dir

    def iter_files(self, include_drafts: bool = False) -> list[Path]:
        """Return all content files in sorted order.

        Args:
            include_drafts: Whether to include ``_``-prefixed draft files.

        Returns:
            List of paths to content files.
        """
        files: list[Path] = []
        for path in sorted(self.site_dir.rglob("*")):
            if path.is_dir():
                continue
            rel = path.relative_to(self.site_dir)
            if any(part.startswith(("_", ".")) for part in rel.parts[:-1]):
                continue
            if rel.name.startswith(".") or (rel.name.startswith("_") and not include_drafts):
                continue
            if is_markdown(path) or is_template(path) or is_html(path):
                files.append(path)
        return files


class LayoutResolver:
    """Resolves the layout a page is rendered through.

    An explicit front matter ``layout`` always wins (``null``/``none``
    means no layout). Otherwise the first existing layout among these is
    used:

    1. ``{folder}/{name}``, the most specific
    2. ``post`` for posts
    3. ``{group}``, the group-level layout
    4. ``{name}`` for top-level pages
    5. ``page`` then ``default``

    Attributes:
        layout_dir: Directory containing layout templates.
    """

    def __init__(self, site_dir: Path):
        self.site_dir = site_dir
        self.layout_dir = site_dir / "_layouts"

    def resolve(
        self, path: Path, folder: str, frontmatter: FrontMatter, is_post: bool = False
    ) -> str | None:
        """Resolve the layout for a page.

        Args:
            path: Path to the source file.
            folder: Folder containing the page.
            frontmatter: Front matter of the page.
            is_post: Whether the page is a post.

        Returns:
            Layout name to use, or None to render the body bare.
        """
        if "layout" in frontmatter:
            explicit = frontmatter.text("layout")
            if explicit is None or explicit.lower() in _NO_LAYOUT:
                return None
            return explicit

        name = content_stem(path)
        group = group_from_folder(folder)
        candidates: list[str] = []
        if folder:
            candidates.append(f"{folder}/{name}")
            if is_post:
                candidates.append("post")
            candidates.append(group)
        else:
            candidates.append(name)
        candidates.extend(["page", "default"])

        for candidate in candidates:
            if self.exists(candidate):
                return candidate
        return None

    def exists(self, name: str) -> bool:
        return any(
            (self.layout_dir / f"{name}{suffix}").is_file() for suffix in LAYOUT_SUFFIXES
        )


class PermalinkResolver:
    """Derives the URL a page is published at.

    Precedence: explicit ``permalink`` front matter, then the configured
    post pattern for posts, then the page's folder and slug.

    Post patterns support ``:categories``, ``:year``, ``:month``, ``:day``,
    ``:title`` and ``:slug``.
    """

    def __init__(self, post_pattern: str):
        self.post_pattern = post_pattern

    def derive(
        self,
        rel: Path,
        slug: str,
        date: datetime,
        categories: tuple[str, ...],
        is_post: bool,
        permalink: str | None = None,
    ) -> str:
        """Derive the URL for a page.

        Args:
            rel: Path relative to the site directory.
            slug: URL-friendly slug.
            date: Publication date.
            categories: Ordered categories of the page.
            is_post: Whether the page is a post.
            permalink: Explicit permalink override.

        Returns:
            URL path beginning with ``/``.
        """
        if permalink:
            return normalize_url(permalink)
        if is_post:
            return self._expand(slug, date, categories)

        segments = [p for p in PurePosixPath(rel.as_posix()).parent.parts if p]
        url_parts = segments if slug == "index" else segments + [slug]
        path = "/".join(url_parts)
        return f"/{path}/" if path else "/"

    def _expand(self, slug: str, date: datetime, categories: tuple[str, ...]) -> str:
        replacements = {
            ":categories": "/".join(slugify(c) for c in categories),
            ":year": f"{date.year:04d}",
            ":month": f"{date.month:02d}",
            ":day": f"{date.day:02d}",
            ":title": slug,
            ":slug": slug,
        }
        url = self.post_pattern
        # Longest placeholders first so ':categories' is not eaten by a prefix.
        for key in sorted(replacements, key=len, reverse=True):
            url = url.replace(key, replacements[key])
        return normalize_url(url)


def normalize_url(url: str) -> str:
    """Normalize a URL path: leading slash, no doubled slashes.

    ``.`` segments are dropped and ``..`` removes the segment before it, so
    two spellings of the same path normalize to the same string. A ``..``
    that would climb above the root is kept and rejected when outputs are
    planned. Paths without a file extension get a trailing slash.

    Examples:
        >>> normalize_url("about")
        '/about/'
        >>> normalize_url("//blog//feed.xml")
        '/blog/feed.xml'
        >>> normalize_url("/about/./")
        '/about/'
        >>> normalize_url("/blog/../about")
        '/about/'
    """
    stripped = url.strip()
    segments: list[str] = []
    for segment in stripped.split("/"):
        if segment in ("", "."):
            continue
        if segment == ".." and segments and segments[-1] != "..":
            segments.pop()
        else:
            segments.append(segment)
    cleaned = "/" + "/".join(segments)
    if segments and stripped.endswith("/"):
        cleaned += "/"
    if not cleaned.endswith("/") and not PurePosixPath(cleaned).suffix:
        cleaned += "/"
    return cleaned


def group_from_folder(folder: str) -> str:
    """Return the first component of a folder path, or an empty string."""
    if not folder:
        return ""
    return PurePosixPath(folder).parts[0]


class DefaultPageBuilder:
    """Builds Page objects from source files.

    Attributes:
        site_dir: Directory containing site content.
        config: Site configuration.
        renderer_registry: Registry of content renderers.
        metadata_extractor: Composite metadata extractor.
        layout_resolver: Layout resolver instance.
        permalink_resolver: Permalink resolver instance.
    """

    def __init__(
        self,
        site_dir: Path,
        config: SiteConfig | None = None,
        renderer_registry: RendererRegistry | None = None,
        metadata_extractor: CompositeMetadataExtractor | None = None,
    ):
        self.site_dir = site_dir
        self.config = config or SiteConfig()
        self.renderer_registry = renderer_registry or default_renderer_registry
        self.metadata_extractor = metadata_extractor or default_metadata_extractor
        self.layout_resolver = LayoutResolver(site_dir)
        self.permalink_resolver = PermalinkResolver(self.config.permalink)

    def build(self, path: Path, draft: bool = False) -> Page:
        """Build a Page object from a source file.

        Args:
            path: Path to the source file.
            draft: Whether this is a draft page.

        Returns:
            Page object.

        Raises:
            FrontMatterError: If the front matter block cannot be parsed.
        """
        rel = path.relative_to(self.site_dir)
        folder = rel.parent.as_posix() if rel.parent != Path(".") else ""
        raw = path.read_text(encoding="utf-8")
        try:
            data, body = extract_frontmatter(raw)
        except FrontMatterSyntaxError as exc:
            raise FrontMatterError(path, str(exc), exc) from exc
        frontmatter = FrontMatter(data)

        metadata = self.metadata_extractor.extract(frontmatter, body, path)
        group = group_from_folder(folder)
        is_post = (
            group == self.config.posts_dir
            and content_stem(path) != "index"
            and not frontmatter.flag("paginate")
        )

        renderer = self.renderer_registry.get_renderer(path)
        if renderer:
            source_type = renderer.source_type
            content = renderer.render(body)
            if source_type != "jinja":
                content = Markup(content)
        else:
            source_type = "unknown"
            content = body

        slug = slugify(frontmatter.text("slug") or content_stem(path))
        date = metadata["date"]
        categories = metadata.get("categories", ())
        permalink = frontmatter.text("permalink")
        url = self.permalink_resolver.derive(
            rel, slug, date, categories, is_post, permalink=permalink
        )
        layout = self.layout_resolver.resolve(path, folder, frontmatter, is_post=is_post)

        excerpt = metadata.get("excerpt") or self._derive_excerpt(content, source_type)

        return Page(
            title=metadata["title"],
            body=body,
            content=content,
            excerpt=excerpt,
            description=metadata.get("description", ""),
            url=url,
            slug=slug,
            date=date,
            categories=categories,
            tags=metadata.get("tags", ()),
            order=metadata.get("order"),
            layout=layout,
            permalink=permalink,
            group=group,
            is_post=is_post,
            draft=draft or frontmatter.flag("draft"),
            path=path,
            folder=folder,
            filename=path.name,
            source_type=source_type,
            frontmatter=frontmatter,
        )

    def _derive_excerpt(self, content: str, source_type: str) -> str:
        """Strip markup from the rendered body and truncate it."""
        text = content
        if source_type == "jinja":
            text = _TEMPLATE_SYNTAX_RE.sub(" ", text)
        return truncate_text(strip_html(text), self.config.excerpt_length)


class ContentProcessor:
    """Facade for loading every page of a site.

    Attributes:
        site_dir: Directory containing site content.
    """

    def __init__(
        self,
        site_dir: Path,
        config: SiteConfig | None = None,
        content_loader: ContentLoader | None = None,
        page_builder: PageBuilder | None = None,
    ):
        self.site_dir = site_dir
        self._content_loader = content_loader or FileContentLoader(site_dir)
        self._page_builder = page_builder or DefaultPageBuilder(site_dir, config)

    def load(self, include_drafts: bool = False) -> list[Page]:
        """Load all content files and create Page objects.

        Args:
            include_drafts: Whether to include draft pages.

        Returns:
            List of Page objects in source path order.
        """
        pages: list[Page] = []
        for path in self._content_loader.iter_files(include_drafts):
            page = self._page_builder.build(path, draft=path.name.startswith("_"))
            if page.draft and not include_drafts:
                logger.debug("Skipping draft %s", path)
                continue
            pages.append(page)
        logger.debug("Loaded %d pages from %s", len(pages), self.site_dir)
        return pages
