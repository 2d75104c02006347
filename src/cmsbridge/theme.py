"""Theme directory and template files.

A theme is a directory laid out as::

    theme.yaml
    layouts/default.htm
    pages/home.htm
    partials/card.htm
    content/welcome.htm

Pages, layouts and partials start with an optional YAML settings section,
closed by a line holding only ``==``::

    url: /blog/:slug
    layout: default
    title: Blog post
    ==
    <h1>{{ this.page.title }}</h1>
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import yaml
from jinja2 import BaseLoader, Environment, TemplateNotFound
from jinja2.loaders import split_template_path

from cmsbridge.config import THEME_CONFIG_FILE, ThemeConfig
from cmsbridge.exceptions import ThemeError

log = logging.getLogger(__name__)

SECTION_SEPARATOR = "=="
TEMPLATE_EXTENSIONS = (".htm", ".html")
CONTENT_EXTENSIONS = (".htm", ".html", ".txt")

PAGES = "pages"
LAYOUTS = "layouts"
PARTIALS = "partials"
CONTENT = "content"


@dataclass
class TemplateFile:
    """A parsed theme template: settings plus markup."""

    name: str
    markup: str
    settings: dict[str, Any] = field(default_factory=dict)
    path: Path | None = None

    @property
    def url(self) -> str | None:
        return self.settings.get("url")

    @property
    def layout(self) -> str | None:
        return self.settings.get("layout")

    @property
    def title(self) -> str | None:
        return self.settings.get("title")

    @property
    def description(self) -> str | None:
        return self.settings.get("description")


def parse_template_file(text: str, name: str = "", path: Path | None = None) -> TemplateFile:
    """Split a template file into its settings and markup sections.

    Raises:
        ThemeError: If the settings section is not a YAML mapping.
    """
    lines = text.splitlines(keepends=True)
    for index, line in enumerate(lines):
        if line.strip() == SECTION_SEPARATOR:
            head = "".join(lines[:index])
            markup = "".join(lines[index + 1 :])
            break
    else:
        return TemplateFile(name=name, markup=text, path=path)

    try:
        settings = yaml.safe_load(head) or {}
    except yaml.YAMLError as e:
        raise ThemeError(f"Invalid settings section in {path or name}: {e}") from e

    if not isinstance(settings, dict):
        raise ThemeError(f"Settings section of {path or name} must be a mapping")

    return TemplateFile(name=name, markup=markup, settings=settings, path=path)


class Theme:
    """File-system theme with template lookup by kind and name."""

    def __init__(self, path: Path, config: ThemeConfig | None = None):
        self.path = Path(path)
        self.config = config or ThemeConfig()

    @classmethod
    def load(cls, path: Path) -> "Theme":
        """Open a theme directory, reading its theme.yaml if present."""
        path = Path(path)
        if not path.is_dir():
            raise ThemeError(f"Theme directory not found: {path}")
        return cls(path, ThemeConfig.load(path / THEME_CONFIG_FILE))

    @property
    def name(self) -> str:
        return self.config.name or self.path.name

    @property
    def url(self) -> str:
        return (self.config.url or f"/themes/{self.path.name}").rstrip("/")

    def find(
        self, kind: str, name: str, extensions: tuple[str, ...] = TEMPLATE_EXTENSIONS
    ) -> Path | None:
        """Locate ``<kind>/<name>``, trying the known extensions."""
        try:
            pieces = split_template_path(name)
        except TemplateNotFound:
            return None

        base = self.path.joinpath(kind, *pieces)
        candidates = [base] if base.suffix in extensions else []
        candidates += [base.with_name(base.name + ext) for ext in extensions]
        for candidate in candidates:
            if candidate.is_file():
                return candidate
        return None

    def template_name(self, path: Path) -> str:
        """Loader name (posix, theme relative) for a theme file."""
        return path.relative_to(self.path).as_posix()

    def read(self, kind: str, name: str) -> TemplateFile | None:
        path = self.find(kind, name)
        if path is None:
            return None
        return parse_template_file(path.read_text(encoding="utf-8"), name, path)

    def page(self, name: str) -> TemplateFile | None:
        return self.read(PAGES, name)

    def layout(self, name: str) -> TemplateFile | None:
        return self.read(LAYOUTS, name)

    def partial(self, name: str) -> TemplateFile | None:
        return self.read(PARTIALS, name)

    def content(self, name: str) -> Path | None:
        return self.find(CONTENT, name, CONTENT_EXTENSIONS)

    def pages(self) -> list[TemplateFile]:
        """All pages, sorted by name."""
        root = self.path / PAGES
        if not root.is_dir():
            return []

        found = []
        for path in sorted(root.rglob("*")):
            if path.is_file() and path.suffix in TEMPLATE_EXTENSIONS:
                name = path.relative_to(root).with_suffix("").as_posix()
                found.append(parse_template_file(path.read_text(encoding="utf-8"), name, path))
        return found


class ThemeLoader(BaseLoader):
    """Jinja2 loader serving the markup section of theme files."""

    def __init__(self, theme: Theme):
        self.theme = theme

    def get_source(
        self, environment: Environment, template: str
    ) -> tuple[str, str, Callable[[], bool]]:
        path = self.theme.path.joinpath(*split_template_path(template))
        if not path.is_file():
            raise TemplateNotFound(template)

        mtime = os.path.getmtime(path)
        parsed = parse_template_file(path.read_text(encoding="utf-8"), template, path)
        log.debug("Loaded template %s", template)

        def uptodate() -> bool:
            try:
                return os.path.getmtime(path) == mtime
            except OSError:
                return False

        return parsed.markup, str(path), uptodate

    def list_templates(self) -> list[str]:
        found = []
        for kind in (LAYOUTS, PAGES, PARTIALS):
            root = self.theme.path / kind
            if root.is_dir():
                found.extend(
                    self.theme.template_name(p)
                    for p in root.rglob("*")
                    if p.is_file() and p.suffix in TEMPLATE_EXTENSIONS
                )
        return sorted(found)
