from datetime import datetime

import pytest
from markupsafe import Markup

from folio.content import Page
from folio.frontmatter import FrontMatter
from folio.utils import slugify


@pytest.fixture(autouse=True)
def _no_url_override(monkeypatch):
    monkeypatch.delenv("FOLIO_URL", raising=False)


@pytest.fixture
def make_page(tmp_path):
    """Factory for Page objects with sensible post defaults."""

    def factory(title="Post", date=datetime(2024, 1, 1), **overrides):
        slug = overrides.pop("slug", slugify(title))
        fields = dict(
            title=title,
            body="",
            content=Markup(f"<p>{title}</p>"),
            excerpt="",
            description="",
            url=f"/{slug}/",
            slug=slug,
            date=date,
            categories=(),
            tags=(),
            order=None,
            layout=None,
            permalink=None,
            group="posts",
            is_post=True,
            draft=False,
            path=tmp_path / "site" / "posts" / f"{slug}.md",
            folder="posts",
            filename=f"{slug}.md",
            source_type="markdown",
            frontmatter=FrontMatter(),
        )
        fields.update(overrides)
        return Page(**fields)

    return factory

