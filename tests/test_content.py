import logging
from datetime import datetime
from pathlib import Path

import pytest
from markupsafe import Markup

from folio.config import SiteConfig
from folio.content import (
    ContentProcessor,
    DefaultPageBuilder,
    FileContentLoader,
    LayoutResolver,
    PermalinkResolver,
    group_from_folder,
    normalize_url,
)
from folio.errors import FrontMatterError
from folio.frontmatter import FrontMatter
from folio.renderers import MarkdownRenderer, RendererRegistry


def _write(root, rel, text):
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def _build(site, rel, text, config=None):
    path = _write(site, rel, text)
    return DefaultPageBuilder(site, config or SiteConfig()).build(path)


def test_post_page_fields(tmp_path):
    site = tmp_path / "site"
    _write(site, "_layouts/post.html", "{{ content }}")
    page = _build(
        site,
        "posts/2024-01-15-hello-world.md",
        "---\ntitle: Hello\ncategories: [Notes]\ntags: [python, meta]\n---\n"
        "Some **bold** text.\n",
    )
    assert page.title == "Hello"
    assert page.slug == "hello-world"
    assert page.date == datetime(2024, 1, 15)
    assert page.url == "/notes/2024/01/15/hello-world/"
    assert page.categories == ("Notes",)
    assert page.tags == ("python", "meta")
    assert page.is_post
    assert page.group == "posts"
    assert page.folder == "posts"
    assert page.layout == "post"
    assert page.source_type == "markdown"
    assert "<strong>bold</strong>" in page.content
    assert isinstance(page.content, Markup)
    assert page.excerpt == "Some bold text."


def test_post_without_categories_uses_date_path(tmp_path):
    site = tmp_path / "site"
    page = _build(site, "posts/2024-02-03-plain.md", "Body\n")
    assert page.url == "/2024/02/03/plain/"


def test_custom_post_permalink_pattern(tmp_path):
    site = tmp_path / "site"
    config = SiteConfig(permalink="/blog/:year/:slug")
    page = _build(site, "posts/2024-02-03-plain.md", "Body\n", config)
    assert page.url == "/blog/2024/plain/"


def test_explicit_permalink_wins(tmp_path):
    site = tmp_path / "site"
    page = _build(site, "posts/2024-02-03-plain.md", "---\npermalink: /custom\n---\nBody")
    assert page.url == "/custom/"
    assert page.permalink == "/custom"


def test_top_level_pages(tmp_path):
    site = tmp_path / "site"
    about = _build(site, "about.md", "---\ntitle: About\n---\nHi")
    home = _build(site, "index.html", "<p>Home</p>")
    listing = _build(site, "blog/index.html.jinja", "---\npaginate: true\n---\n{{ 1 }}")

    assert about.url == "/about/"
    assert not about.is_post
    assert home.url == "/"
    assert home.title == "Index"
    assert home.source_type == "html"
    assert listing.url == "/blog/"
    assert listing.source_type == "jinja"
    assert listing.paginate
    assert not about.paginate


def test_posts_index_and_paginated_pages_are_not_posts(tmp_path):
    site = tmp_path / "site"
    index = _build(site, "posts/index.md", "Listing")
    listing = _build(site, "posts/archive.html.jinja", "---\npaginate: true\n---\n")
    assert not index.is_post
    assert not listing.is_post
    assert index.url == "/posts/"


def test_title_falls_back_to_heading_then_filename(tmp_path):
    site = tmp_path / "site"
    assert _build(site, "notes.md", "# From Heading\n\ntext").title == "From Heading"
    assert _build(site, "2024-01-15-my-post.html", "<p>x</p>").title == "My Post"


def test_explicit_excerpt_and_description(tmp_path):
    site = tmp_path / "site"
    page = _build(
        site,
        "posts/2024-01-15-x.md",
        "---\nexcerpt: Hand written\ndescription: Meta text\n---\nBody text",
    )
    assert page.excerpt == "Hand written"
    assert page.description == "Meta text"


def test_derived_excerpt_is_truncated(tmp_path):
    site = tmp_path / "site"
    body = "Word " * 100
    page = _build(site, "posts/2024-01-15-long.md", body, SiteConfig(excerpt_length=22))
    assert page.excerpt == "Word Word Word Word..."


def test_jinja_excerpt_ignores_template_syntax(tmp_path):
    site = tmp_path / "site"
    page = _build(site, "hello.html.jinja", "<p>Hi {{ site.title }} there{% if x %}!{% endif %}</p>")
    assert page.excerpt == "Hi there !"


def test_order_and_taxonomy_parsing(tmp_path, caplog):
    site = tmp_path / "site"
    pinned = _build(
        site,
        "posts/2024-01-15-a.md",
        "---\norder: 2\ncategories: blog notes\ntags: [a, solo]\ntag: solo\n---\n",
    )
    assert pinned.order == 2.0
    assert pinned.categories == ("blog", "notes")
    assert pinned.tags == ("a", "solo")

    with caplog.at_level(logging.WARNING, logger="folio"):
        odd = _build(site, "posts/2024-01-16-b.md", "---\norder: high\n---\n")
    assert odd.order is None
    assert "non-numeric order" in caplog.text


def test_unparseable_date_falls_back_to_filename(tmp_path, caplog):
    site = tmp_path / "site"
    with caplog.at_level(logging.WARNING, logger="folio"):
        page = _build(site, "posts/2024-05-06-x.md", "---\ndate: someday\n---\n")
    assert page.date == datetime(2024, 5, 6)
    assert "could not parse date" in caplog.text


def test_front_matter_date_is_normalized(tmp_path):
    site = tmp_path / "site"
    page = _build(site, "posts/2024-05-06-x.md", "---\ndate: 2024-05-07 10:00:00+02:00\n---\n")
    assert page.date == datetime(2024, 5, 7, 8, 0)


def test_page_item_access_reads_front_matter(tmp_path):
    site = tmp_path / "site"
    page = _build(site, "about.md", "---\nsubtitle: Hello there\n---\n")
    assert page["subtitle"] == "Hello there"
    with pytest.raises(KeyError):
        page["missing"]


def test_invalid_front_matter_raises_with_source_path(tmp_path):
    site = tmp_path / "site"
    path = _write(site, "broken.md", "---\ntitle: [oops\n---\nBody")
    with pytest.raises(FrontMatterError) as excinfo:
        DefaultPageBuilder(site).build(path)
    assert excinfo.value.source_path == path
    assert "invalid YAML" in excinfo.value.message


def test_layout_resolution_order(tmp_path):
    site = tmp_path / "site"
    resolver = LayoutResolver(site)
    post_path = site / "posts" / "2024-01-01-a.md"
    about_path = site / "about.md"
    empty = FrontMatter()

    assert resolver.resolve(about_path, "", empty) is None

    _write(site, "_layouts/default.html", "")
    assert resolver.resolve(post_path, "posts", empty, is_post=True) == "default"
    _write(site, "_layouts/page.html", "")
    assert resolver.resolve(about_path, "", empty) == "page"
    _write(site, "_layouts/posts.html", "")
    assert resolver.resolve(post_path, "posts", empty, is_post=True) == "posts"
    _write(site, "_layouts/post.html.jinja", "")
    assert resolver.resolve(post_path, "posts", empty, is_post=True) == "post"
    _write(site, "_layouts/about.jinja", "")
    assert resolver.resolve(about_path, "", empty) == "about"


def test_explicit_layout_and_no_layout(tmp_path):
    site = tmp_path / "site"
    _write(site, "_layouts/default.html", "")
    resolver = LayoutResolver(site)
    path = site / "about.md"
    assert resolver.resolve(path, "", FrontMatter({"layout": "fancy"})) == "fancy"
    assert resolver.resolve(path, "", FrontMatter({"layout": None})) is None
    assert resolver.resolve(path, "", FrontMatter({"layout": "none"})) is None
    assert resolver.resolve(path, "", FrontMatter({"layout": False})) is None


def test_permalink_resolver_slugifies_categories():
    resolver = PermalinkResolver("/:categories/:year/:month/:day/:title/")
    url = resolver.derive(
        Path("posts/x.md"), "x", datetime(2024, 3, 9), ("Deep Dives", "Python"), True
    )
    assert url == "/deep-dives/python/2024/03/09/x/"


def test_normalize_url_and_group():
    assert normalize_url("about") == "/about/"
    assert normalize_url("//blog//feed.xml") == "/blog/feed.xml"
    assert normalize_url("/") == "/"
    assert normalize_url("/about/./") == "/about/"
    assert normalize_url("/blog/./../about") == "/about/"
    assert normalize_url("/notes/../feed.xml") == "/feed.xml"
    assert normalize_url("/../escaped/") == "/../escaped/"
    assert group_from_folder("posts/2024") == "posts"
    assert group_from_folder("") == ""


def test_file_loader_skips_private_and_hidden(tmp_path):
    site = tmp_path / "site"
    _write(site, "index.html", "")
    _write(site, "about.md", "")
    _write(site, "_layouts/default.html", "")
    _write(site, "_includes/nav.html", "")
    _write(site, ".hidden/secret.md", "")
    _write(site, "posts/_draft.md", "")
    _write(site, "style.css", "")

    loader = FileContentLoader(site)
    names = [p.relative_to(site).as_posix() for p in loader.iter_files()]
    assert names == ["about.md", "index.html"]
    with_drafts = [p.relative_to(site).as_posix() for p in loader.iter_files(True)]
    assert with_drafts == ["about.md", "index.html", "posts/_draft.md"]


def test_content_processor_filters_drafts(tmp_path):
    site = tmp_path / "site"
    _write(site, "posts/2024-01-01-live.md", "Live")
    _write(site, "posts/2024-01-02-flagged.md", "---\ndraft: true\n---\nFlagged")
    _write(site, "posts/_2024-01-03-hidden.md", "Hidden")

    published = ContentProcessor(site).load()
    assert [p.slug for p in published] == ["live"]

    everything = ContentProcessor(site).load(include_drafts=True)
    assert sorted(p.slug for p in everything) == ["flagged", "hidden", "live"]
    assert all(p.draft for p in everything if p.slug != "live")


def test_markdown_code_blocks_are_highlighted():
    renderer = MarkdownRenderer()
    html = renderer.render("```python\nprint('hi')\n```\n")
    assert 'class="highlight"' in html
    plain = renderer.render("```nolang\n<tag>\n```\n")
    assert '<pre><code class="language-nolang">&lt;tag&gt;' in plain


def test_renderer_registry_picks_by_suffix():
    registry = RendererRegistry()
    assert registry.get_renderer(Path("a.md")).source_type == "markdown"
    assert registry.get_renderer(Path("a.html")).source_type == "html"
    assert registry.get_renderer(Path("a.html.jinja")).source_type == "jinja"
    assert registry.get_renderer(Path("a.txt")) is None
