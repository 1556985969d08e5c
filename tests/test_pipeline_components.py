"""Tests for the pluggable content pipeline.

Covers the protocols, metadata extractors, renderers, and swapping custom
components into the content processor.
"""

import os
from datetime import datetime
from pathlib import Path

from folio.content import ContentProcessor, DefaultPageBuilder, FileContentLoader
from folio.extractors import (
    CompositeMetadataExtractor,
    DateExtractor,
    OrderExtractor,
    SummaryExtractor,
    TaxonomyExtractor,
    TitleExtractor,
)
from folio.frontmatter import FrontMatter
from folio.protocols import ContentLoader, ContentRenderer, MetadataExtractor, PageBuilder
from folio.renderers import (
    HTMLRenderer,
    JinjaContentRenderer,
    MarkdownRenderer,
    RendererRegistry,
    pygments_css,
)

# --- Extractor Tests ---


def test_title_extractor_prefers_front_matter():
    """Front matter title wins over the first heading."""
    result = TitleExtractor().extract(
        FrontMatter({"title": "Given"}), "# Heading", Path("x.md")
    )
    assert result == {"title": "Given"}


def test_title_extractor_ignores_headings_outside_markdown():
    result = TitleExtractor().extract(FrontMatter(), "# Heading", Path("my-page.html"))
    assert result == {"title": "My Page"}


def test_date_extractor_falls_back_to_mtime(tmp_path):
    """Without a front matter or filename date, the file mtime is used."""
    path = tmp_path / "undated.md"
    path.write_text("x", encoding="utf-8")
    stamp = datetime(2023, 5, 6, 7, 8, 9).timestamp()
    os.utime(path, (stamp, stamp))

    result = DateExtractor().extract(FrontMatter(), "x", path)
    assert result["date"] == datetime(2023, 5, 6, 7, 8, 9)


def test_date_extractor_prefers_front_matter(tmp_path):
    result = DateExtractor().extract(
        FrontMatter({"date": "2022-02-02"}), "", tmp_path / "2024-01-01-x.md"
    )
    assert result["date"] == datetime(2022, 2, 2)


def test_taxonomy_extractor_defaults_to_empty():
    result = TaxonomyExtractor().extract(FrontMatter(), "", Path("x.md"))
    assert result == {"categories": (), "tags": ()}


def test_order_and_summary_extractors():
    fm = FrontMatter({"order": 3, "excerpt": "Short", "description": "Meta"})
    assert OrderExtractor().extract(fm, "", Path("x.md")) == {"order": 3.0}
    assert SummaryExtractor().extract(fm, "", Path("x.md")) == {
        "excerpt": "Short",
        "description": "Meta",
    }
    assert OrderExtractor().extract(FrontMatter(), "", Path("x.md")) == {"order": None}
    nan = FrontMatter({"order": float("nan")})
    assert OrderExtractor().extract(nan, "", Path("x.md")) == {"order": None}


def test_composite_extractor_later_wins():
    """Later extractors override keys set by earlier ones."""

    class Override:
        def extract(self, frontmatter, body, path):
            return {"title": "Overridden", "mood": "sunny"}

    composite = CompositeMetadataExtractor([TitleExtractor()])
    composite.add_extractor(Override())
    result = composite.extract(FrontMatter({"title": "Original"}), "", Path("x.md"))
    assert result == {"title": "Overridden", "mood": "sunny"}


# --- Renderer Tests ---


def test_html_and_jinja_renderers_pass_through():
    assert HTMLRenderer().render("<p>x</p>") == "<p>x</p>"
    assert JinjaContentRenderer().render("{{ x }}") == "{{ x }}"


def test_markdown_renderer_plugins():
    html = MarkdownRenderer().render(
        "~~gone~~\n\n| a | b |\n|---|---|\n| 1 | 2 |\n\nhttps://example.com\n"
    )
    assert "<del>gone</del>" in html
    assert "<table>" in html
    assert 'href="https://example.com"' in html


def test_renderer_registry_custom_renderer_order():
    class TextRenderer:
        source_type = "text"

        def can_render(self, path):
            return path.suffix == ".txt"

        def render(self, content):
            return f"<pre>{content}</pre>"

    registry = RendererRegistry()
    registry.register(TextRenderer())
    assert registry.get_renderer(Path("notes.txt")).render("hi") == "<pre>hi</pre>"


def test_pygments_css():
    css = pygments_css()
    assert ".highlight" in css


# --- Protocol Tests ---


def test_renderers_implement_protocol():
    assert isinstance(MarkdownRenderer(), ContentRenderer)
    assert isinstance(HTMLRenderer(), ContentRenderer)
    assert isinstance(JinjaContentRenderer(), ContentRenderer)


def test_extractors_implement_protocol():
    for extractor in (
        TitleExtractor(),
        DateExtractor(),
        TaxonomyExtractor(),
        OrderExtractor(),
        SummaryExtractor(),
        CompositeMetadataExtractor(),
    ):
        assert isinstance(extractor, MetadataExtractor)


def test_loader_and_builder_implement_protocols(tmp_path):
    assert isinstance(FileContentLoader(tmp_path), ContentLoader)
    assert isinstance(DefaultPageBuilder(tmp_path), PageBuilder)


def test_content_processor_with_custom_components(tmp_path):
    """ContentProcessor drives whatever loader and builder it is given."""
    site_dir = tmp_path / "site"
    site_dir.mkdir()
    (site_dir / "a.md").write_text("# A", encoding="utf-8")
    (site_dir / "b.md").write_text("# B", encoding="utf-8")

    class OnlyFirst:
        def iter_files(self, include_drafts=False):
            return [site_dir / "a.md"]

    built = []

    class RecordingBuilder(DefaultPageBuilder):
        def build(self, path, draft=False):
            built.append(path.name)
            return super().build(path, draft)

    processor = ContentProcessor(
        site_dir,
        content_loader=OnlyFirst(),
        page_builder=RecordingBuilder(site_dir),
    )
    pages = processor.load()
    assert [p.title for p in pages] == ["A"]
    assert built == ["a.md"]
