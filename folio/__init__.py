"""Folio static site generator.

Folio builds a personal blog and portfolio from Markdown posts and pages with
YAML front matter, rendered through Jinja2 layouts into a static HTML tree.

The pipeline is a pure function from source tree to output tree:
- content: loads pages and their front matter.
- collections: sorts posts and paginates the blog index.
- templates: renders pages through layout chains.
- build: plans output paths, renders everything, then writes.

The main entry point is the CLI module, which provides commands for
scaffolding a blog, building it, and previewing it locally.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
