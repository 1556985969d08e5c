"""Feed generation for Folio.

Generates ``sitemap.xml`` over every page and an RSS 2.0 ``feed.xml`` over
posts. Both need the site ``url`` to build absolute links and are skipped
without it. Output depends only on the pages, never on the wall clock, so
rebuilding an unchanged site reproduces the same bytes.

Classes:
    FeedGenerator: Base class for feed generators.
    SitemapGenerator: Generates sitemap.xml.
    RSSGenerator: Generates feed.xml.
    FeedRegistry: Runs every registered generator.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING

from .filters import RFC822_FORMAT
from .html_utils import escape_html

if TYPE_CHECKING:
    from .config import SiteConfig
    from .content import Page


class FeedGenerator(ABC):
    """Abstract base class for feed generators."""

    @property
    @abstractmethod
    def filename(self) -> str:
        """Return the output filename for this feed."""
        ...

    @abstractmethod
    def generate(
        self, pages: Sequence[Page], posts: Sequence[Page], config: SiteConfig
    ) -> str | None:
        """Generate feed content.

        Args:
            pages: Every page of the site, in source order.
            posts: Posts in display order.
            config: Site configuration.

        Returns:
            Feed content, or None if the feed cannot be generated
            (e.g. no base URL configured).
        """
        ...


class SitemapGenerator(FeedGenerator):
    """Generates sitemap.xml listing every page with its last-modified date."""

    @property
    def filename(self) -> str:
        return "sitemap.xml"

    def generate(
        self, pages: Sequence[Page], posts: Sequence[Page], config: SiteConfig
    ) -> str | None:
        base_url = config.url.rstrip("/")
        if not base_url:
            return None

        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
        ]
        for page in sorted(pages, key=lambda p: p.url):
            full_url = escape_html(f"{base_url}{page.url}")
            lastmod = page.date.strftime("%Y-%m-%d")
            lines.append(
                f"  <url><loc>{full_url}</loc><lastmod>{lastmod}</lastmod></url>"
            )
        lines.append("</urlset>")
        return "\n".join(lines) + "\n"


class RSSGenerator(FeedGenerator):
    """Generates an RSS 2.0 feed of the most recent posts.

    Attributes:
        limit: Maximum number of items in the feed.
    """

    def __init__(self, limit: int = 20):
        self.limit = limit

    @property
    def filename(self) -> str:
        return "feed.xml"

    def generate(
        self, pages: Sequence[Page], posts: Sequence[Page], config: SiteConfig
    ) -> str | None:
        base_url = config.url.rstrip("/")
        if not base_url:
            return None

        recent = sorted(posts, key=lambda p: p.date, reverse=True)[: self.limit]
        items = []
        for post in recent:
            link = escape_html(f"{base_url}{post.url}")
            pub_date = post.date.strftime(RFC822_FORMAT)
            description = escape_html(post.description or post.excerpt or post.title)
            items.append(
                f"<item><title>{escape_html(post.title)}</title><link>{link}</link>"
                f"<guid>{link}</guid>"
                f"<description>{description}</description>"
                f"<pubDate>{pub_date}</pubDate></item>"
            )

        rss = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0"><channel>',
            f"<title>{escape_html(config.title)}</title>",
            f"<link>{escape_html(base_url)}/</link>",
            f"<description>{escape_html(config.description or config.title)}</description>",
        ]
        if recent:
            rss.append(f"<lastBuildDate>{recent[0].date.strftime(RFC822_FORMAT)}</lastBuildDate>")
        rss.extend(items)
        rss.append("</channel></rss>")
        return "\n".join(rss) + "\n"


class FeedRegistry:
    """Registry of feed generators run at the end of a build."""

    def __init__(self) -> None:
        self._generators: list[FeedGenerator] = []

    def register(self, generator: FeedGenerator) -> None:
        self._generators.append(generator)

    def generate_all(
        self, pages: Sequence[Page], posts: Sequence[Page], config: SiteConfig
    ) -> dict[str, str]:
        """Generate every registered feed.

        Returns:
            Mapping of output filename to content, skipped feeds omitted.
        """
        outputs: dict[str, str] = {}
        for generator in self._generators:
            content = generator.generate(pages, posts, config)
            if content is not None:
                outputs[generator.filename] = content
        return outputs


def create_default_feed_registry() -> FeedRegistry:
    """Create a registry with the sitemap and RSS generators."""
    registry = FeedRegistry()
    registry.register(SitemapGenerator())
    registry.register(RSSGenerator())
    return registry
