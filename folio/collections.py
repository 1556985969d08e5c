"""Collection indexing for Folio.

Sorting, pagination and taxonomy indexes over loaded pages. Everything here
works on the complete, immutable page set and is computed before any page is
rendered, since previous/next and pager links depend on the whole collection.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime

from .content import Page, normalize_url


def post_sort_key(page: Page) -> tuple[bool, float, datetime]:
    """Sort key for posts: pinned by ``order`` first, then by date."""
    has_order = page.order is not None
    return (has_order, page.order if has_order else 0.0, page.date)


def sort_posts(posts: Iterable[Page]) -> list[Page]:
    """Order posts for display.

    Posts with an explicit ``order`` come first, highest order first; ties on
    order, and posts without one, are ordered newest first. Python's sort is
    stable even with ``reverse=True``, so fully equal keys keep input order.

    Args:
        posts: Posts in source order.

    Returns:
        A new list in display order.
    """
    return sorted(posts, key=post_sort_key, reverse=True)


class PageCollection(Sequence[Page]):
    """Lightweight helper for working with lists of Pages in templates and code."""

    def __init__(self, pages: Iterable[Page]):
        self._pages = list(pages)
        self._sorted_cache: PageCollection | None = None

    def __iter__(self) -> Iterator[Page]:
        return iter(self._pages)

    def __len__(self) -> int:
        return len(self._pages)

    def __getitem__(self, item):
        if isinstance(item, slice):
            return PageCollection(self._pages[item])
        return self._pages[item]

    def group(self, name: str) -> PageCollection:
        return PageCollection(p for p in self._pages if p.group == name)

    def posts(self) -> PageCollection:
        return PageCollection(p for p in self._pages if p.is_post).sorted()

    def with_tag(self, tag: str) -> PageCollection:
        return PageCollection(p for p in self._pages if tag in p.tags)

    def in_category(self, category: str) -> PageCollection:
        return PageCollection(p for p in self._pages if category in p.categories)

    def drafts(self) -> PageCollection:
        return PageCollection(p for p in self._pages if p.draft)

    def published(self) -> PageCollection:
        return PageCollection(p for p in self._pages if not p.draft)

    def sorted(self) -> PageCollection:
        """Return the pages in display order (see :func:`sort_posts`)."""
        if self._sorted_cache is None:
            self._sorted_cache = PageCollection(sort_posts(self._pages))
        return self._sorted_cache

    def latest(self, count: int = 5) -> PageCollection:
        return self.sorted()[:count]

    def neighbours(self, page: Page) -> tuple[Page | None, Page | None]:
        """Return the (previous, next) pages around ``page`` in display order.

        "Previous" is the entry listed before ``page`` (newer), "next" the one
        after it (older). Pages outside the collection have no neighbours.
        """
        ordered = self.sorted()
        for index, candidate in enumerate(ordered):
            if candidate is page:
                previous = ordered[index - 1] if index > 0 else None
                following = ordered[index + 1] if index + 1 < len(ordered) else None
                return previous, following
        return None, None

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"PageCollection({len(self._pages)} pages)"


class TagCollection(Mapping[str, PageCollection]):
    """Mapping of tag or category name to PageCollection."""

    def __init__(self, mapping: Mapping[str, Iterable[Page]]):
        self._mapping = {k: PageCollection(v) for k, v in mapping.items()}

    def __getitem__(self, key: str) -> PageCollection:
        return self._mapping[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"TagCollection({len(self._mapping)} tags)"


def build_tags_index(pages: Iterable[Page]) -> dict[str, list[Page]]:
    """Map each tag to the pages carrying it, in first-seen order."""
    tags: dict[str, list[Page]] = {}
    for page in pages:
        for tag in page.tags:
            tags.setdefault(tag, []).append(page)
    return tags


def build_categories_index(pages: Iterable[Page]) -> dict[str, list[Page]]:
    """Map each category to the pages filed under it, in first-seen order."""
    categories: dict[str, list[Page]] = {}
    for page in pages:
        for category in page.categories:
            categories.setdefault(category, []).append(page)
    return categories


@dataclass(frozen=True)
class Pager:
    """One page of a paginated post listing.

    Attributes:
        number: 1-based page number.
        total_pages: Number of pages in the listing.
        per_page: Configured page size.
        total_posts: Number of posts across all pages.
        posts: Posts shown on this page.
        url: URL of this page.
        previous_url: URL of the previous page, None on the first page.
        next_url: URL of the next page, None on the last page.
    """

    number: int
    total_pages: int
    per_page: int
    total_posts: int
    posts: PageCollection
    url: str
    previous_url: str | None = None
    next_url: str | None = None

    @property
    def has_previous(self) -> bool:
        return self.previous_url is not None

    @property
    def has_next(self) -> bool:
        return self.next_url is not None

    @property
    def is_empty(self) -> bool:
        return len(self.posts) == 0


def pager_url(base_url: str, paginate_path: str, number: int) -> str:
    """Return the URL of page ``number`` of a listing rooted at ``base_url``.

    Page 1 is the listing itself; later pages expand ``:num`` in
    ``paginate_path`` below it (absolute paths are used as is).

    Examples:
        >>> pager_url("/blog/", "page/:num/", 3)
        '/blog/page/3/'
    """
    if number == 1:
        return base_url
    path = paginate_path.replace(":num", str(number))
    if path.startswith("/"):
        return normalize_url(path)
    return normalize_url(base_url.rstrip("/") + "/" + path)


def paginate(
    posts: Sequence[Page],
    per_page: int,
    base_url: str = "/",
    paginate_path: str = "page/:num/",
) -> list[Pager]:
    """Split sorted posts into fixed-size pages.

    Args:
        posts: Posts already in display order.
        per_page: Maximum posts per page.
        base_url: URL of the first page.
        paginate_path: Pattern for later pages, ``:num`` is the page number.

    Returns:
        ``ceil(len(posts) / per_page)`` pagers, or a single empty pager with
        no previous/next links when there are no posts.

    Raises:
        ValueError: If ``per_page`` is less than 1.
    """
    if per_page < 1:
        raise ValueError(f"per_page must be at least 1, got {per_page}")
    items = list(posts)
    total_pages = max(1, -(-len(items) // per_page))
    urls = [pager_url(base_url, paginate_path, n) for n in range(1, total_pages + 1)]
    pagers: list[Pager] = []
    for index in range(total_pages):
        start = index * per_page
        pagers.append(
            Pager(
                number=index + 1,
                total_pages=total_pages,
                per_page=per_page,
                total_posts=len(items),
                posts=PageCollection(items[start : start + per_page]),
                url=urls[index],
                previous_url=urls[index - 1] if index > 0 else None,
                next_url=urls[index + 1] if index + 1 < total_pages else None,
            )
        )
    return pagers
