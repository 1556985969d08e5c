"""Site configuration for Folio.

Configuration is read once from ``folio.yaml`` at the project root into an
immutable :class:`SiteConfig`, which is then passed explicitly to the
collection indexer, template engine, and build. Templates see it as ``site``.

Key functions:
- load_config: Loads site configuration from folio.yaml.
- load_data: Loads site data from YAML files in the data directory.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "folio.yaml"
URL_ENV_VAR = "FOLIO_URL"


class ConfigError(Exception):
    """Raised when folio.yaml cannot be parsed."""


@dataclass(frozen=True)
class Author:
    """Author metadata shown on the About page and in feeds."""

    name: str = ""
    avatar: str = ""
    email: str = ""
    bio: str = ""


@dataclass(frozen=True)
class SiteConfig:
    """Process-wide, read-only site settings.

    Keys in folio.yaml that are not fields land in ``extra`` and stay
    reachable from templates through item access (``site.github``).
    """

    title: str = "My Site"
    description: str = ""
    author: Author = field(default_factory=Author)
    url: str = ""
    paginate: int = 5
    paginate_path: str = "page/:num/"
    permalink: str = "/:categories/:year/:month/:day/:title/"
    excerpt_length: int = 200
    date_format: str = "%b %d, %Y"
    posts_dir: str = "posts"
    output_dir: str = "output"
    port: int = 4000
    extra: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __getitem__(self, key: str) -> Any:
        if key in _FIELD_NAMES:
            return getattr(self, key)
        return self.extra[key]

    def get(self, key: str, default: Any = None) -> Any:
        try:
            return self[key]
        except KeyError:
            return default

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> SiteConfig:
        """Build a config from a parsed YAML mapping.

        Args:
            raw: Mapping loaded from folio.yaml.

        Returns:
            SiteConfig with defaults applied and unknown keys in ``extra``.
        """
        known: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in raw.items():
            if key in _FIELD_NAMES and key != "extra":
                known[key] = value
            else:
                extra[str(key)] = value

        author = known.pop("author", None)
        if isinstance(author, Mapping):
            known["author"] = Author(
                **{k: str(v) for k, v in author.items() if k in _AUTHOR_FIELDS}
            )
        elif isinstance(author, str):
            known["author"] = Author(name=author)

        for key in ("paginate", "excerpt_length", "port"):
            if key in known:
                known[key] = _coerce_int(key, known[key])
        if known.get("paginate", 1) < 1:
            raise ConfigError(f"paginate must be at least 1, got {known['paginate']}")
        for key in _STRING_FIELDS:
            if key in known and known[key] is not None:
                known[key] = str(known[key])
            elif key in known:
                del known[key]

        return cls(**known, extra=MappingProxyType(extra))


_FIELD_NAMES = frozenset(f.name for f in fields(SiteConfig))
_AUTHOR_FIELDS = frozenset(f.name for f in fields(Author))
_STRING_FIELDS = (
    "title",
    "description",
    "url",
    "paginate_path",
    "permalink",
    "date_format",
    "posts_dir",
    "output_dir",
)


def _coerce_int(key: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be an integer, got {value!r}") from exc


def load_config(project_root: Path) -> SiteConfig:
    """Load site configuration from folio.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        SiteConfig with defaults applied. The FOLIO_URL environment variable
        overrides ``url`` when set.

    Raises:
        ConfigError: If folio.yaml is not valid YAML or not a mapping.
    """
    config_path = project_root / CONFIG_FILENAME
    raw: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            try:
                loaded = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(f"{config_path}: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ConfigError(f"{config_path}: expected a mapping at top level")
        raw.update(loaded)
    else:
        logger.debug("No %s found in %s; using defaults", CONFIG_FILENAME, project_root)

    env_url = os.environ.get(URL_ENV_VAR)
    if env_url:
        raw["url"] = env_url
    return SiteConfig.from_mapping(raw)


def load_data(project_root: Path) -> dict[str, Any]:
    """Load site data from YAML files in the data directory.

    Each ``data/<name>.yaml`` is exposed to templates as ``data.<name>``.

    Args:
        project_root: Root directory of the project.

    Returns:
        Dictionary mapping file stems to their parsed contents.
    """
    data_dir = project_root / "data"
    data: dict[str, Any] = {}
    if not data_dir.exists():
        return data
    for path in sorted([*data_dir.glob("*.yaml"), *data_dir.glob("*.yml")]):
        with open(path, encoding="utf-8") as f:
            try:
                payload = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise ConfigError(f"{path}: {exc}") from exc
        if payload is None:
            logger.warning("Data file %s is empty; skipping", path.name)
            continue
        data[path.stem] = payload
    return data
