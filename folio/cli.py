"""Command-line interface for Folio.

This module defines the CLI commands using the Click framework.

Commands:
- new: Scaffold a new blog.
- build: Build the site into the output directory.
- serve: Build, serve locally, and rebuild on change.
- post: Create a new post interactively.
"""

from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path

import click
import questionary
import yaml
from rich.logging import RichHandler

from . import __version__
from .config import ConfigError, load_config
from .utils import slugify

# Path to the default template directory
_TEMPLATES_DIR = Path(__file__).parent / "templates" / "default"


def _setup_logging(verbose: bool) -> None:
    """Route the folio logger to the console through Rich."""
    logger = logging.getLogger("folio")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.handlers = []
    handler = RichHandler(show_time=False, show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)


@click.group()
@click.version_option(version=__version__, prog_name="folio")
@click.option("-v", "--verbose", is_flag=True, help="Show debug output")
def cli(verbose: bool):
    """Folio static site generator."""
    _setup_logging(verbose)


@cli.command()
@click.argument("name")
def new(name: str):
    """Scaffold a new blog."""
    target = Path(name).resolve()
    if target.exists() and any(target.iterdir()):
        raise click.ClickException(
            f"Refusing to initialize into non-empty directory: {target}"
        )
    _scaffold(target)
    click.echo(f"New Folio site created at {target}")


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
def build(drafts: bool):
    """Build the site into the output directory."""
    project_root = Path.cwd()
    from .build import BuildError, build_site

    try:
        result = build_site(project_root, include_drafts=drafts)
    except BuildError as exc:
        _report_build_error(exc, project_root)
        raise SystemExit(1) from None
    except (ConfigError, FileNotFoundError) as exc:
        raise click.ClickException(str(exc)) from None
    click.echo(f"Built {len(result.rendered)} pages into {result.output_dir}")


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
@click.option(
    "--port",
    type=int,
    required=False,
    help="Port to run the preview server (overrides folio.yaml)",
)
def serve(drafts: bool, port: int | None):
    """Build, serve locally, and rebuild on change."""
    project_root = Path.cwd()
    from .build import BuildError
    from .server import DevServer

    try:
        server = DevServer(project_root, http_port=port)
        server.start(include_drafts=drafts)
    except BuildError as exc:
        _report_build_error(exc, project_root)
        raise SystemExit(1) from None
    except (ConfigError, FileNotFoundError) as exc:
        raise click.ClickException(str(exc)) from None


@cli.command()
def post():
    """Create a new post interactively."""
    project_root = Path.cwd()
    site_dir = project_root / "site"
    if not site_dir.exists():
        raise click.ClickException(
            "No site/ directory found. Run this command from a Folio project root."
        )
    try:
        config = load_config(project_root)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from None

    title = questionary.text(
        "Title:",
        validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
        style=_questionary_style(),
    ).ask()
    if title is None:
        raise click.Abort()
    title = title.strip()

    categories = questionary.text(
        "Categories (space separated, optional):", style=_questionary_style()
    ).ask()
    if categories is None:
        raise click.Abort()

    tags = questionary.text(
        "Tags (comma separated, optional):", style=_questionary_style()
    ).ask()
    if tags is None:
        raise click.Abort()

    draft = questionary.confirm(
        "Save as draft?", default=False, style=_questionary_style()
    ).ask()
    if draft is None:
        raise click.Abort()

    now = datetime.now()
    target_dir = site_dir / config.posts_dir
    slug = slugify(title)
    filename = f"{'_' if draft else ''}{now:%Y-%m-%d}-{slug}.md"
    target_path = target_dir / filename

    existing = _get_existing_slugs(target_dir)
    if slug in existing:
        raise click.ClickException(
            f"A post with slug '{slug}' already exists: {existing[slug]}"
        )

    target_dir.mkdir(parents=True, exist_ok=True)
    target_path.write_text(
        _post_template(title, now, categories.split(), _split_tags(tags)),
        encoding="utf-8",
    )
    click.echo(f"Created {target_path.relative_to(project_root)}")


def _report_build_error(exc, project_root: Path) -> None:
    click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
    click.echo(
        click.style(f"  File: {_display_path(exc.source_path, project_root)}", fg="yellow"),
        err=True,
    )
    click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)


def _display_path(path: Path, project_root: Path) -> str:
    try:
        return str(path.relative_to(project_root))
    except ValueError:
        return str(path)


def _get_existing_slugs(folder: Path) -> dict[str, str]:
    """Map slugs of existing posts in ``folder`` to their filenames."""
    slugs: dict[str, str] = {}
    if folder.exists():
        for f in sorted(folder.iterdir()):
            if f.is_file() and f.suffix in (".md", ".markdown"):
                slugs[slugify(f.stem.lstrip("_"))] = f.name
    return slugs


def _split_tags(raw: str) -> list[str]:
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def _post_template(
    title: str, date: datetime, categories: list[str], tags: list[str]
) -> str:
    """Return the front matter and stub body for a new post."""
    frontmatter = {
        "title": title,
        "date": date.strftime("%Y-%m-%d %H:%M:%S"),
        "layout": "post",
        "categories": categories,
        "tags": tags,
    }
    header = yaml.safe_dump(frontmatter, sort_keys=False, allow_unicode=True)
    return f"---\n{header}---\n\nWrite your post here.\n"


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()


def _scaffold(root: Path) -> None:
    """Copy the starter blog into ``root``.

    Args:
        root: Root directory for the new project.
    """
    for src_path in sorted(_TEMPLATES_DIR.rglob("*")):
        if src_path.is_dir():
            continue
        rel_path = src_path.relative_to(_TEMPLATES_DIR)
        dest_path = root / rel_path
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src_path, dest_path)
