"""Page routing - maps URLs to pages and builds URLs for pages.

URL patterns are set in the ``url`` setting of each page:

    /blog                 static
    /blog/:slug           required parameter
    /blog/:page?          optional parameter
    /blog/:page?1         optional parameter with a default
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote, unquote, urlsplit

from cmsbridge.theme import TEMPLATE_EXTENSIONS, TemplateFile, Theme

log = logging.getLogger(__name__)

MISSING_PARAM_VALUE = "default"


@dataclass
class Segment:
    """One path segment of a URL pattern."""

    value: str
    param: bool = False
    optional: bool = False
    default: str | None = None

    @classmethod
    def parse(cls, raw: str) -> "Segment":
        if not raw.startswith(":"):
            return cls(raw)
        name, optional, default = raw[1:].partition("?")
        return cls(name, param=True, optional=bool(optional), default=default or None)


def split_path(url: str) -> list[str]:
    path = urlsplit(url).path
    return [unquote(part) for part in path.split("/") if part]


@dataclass
class Route:
    page: TemplateFile
    pattern: str
    segments: list[Segment] = field(default_factory=list)

    @classmethod
    def from_page(cls, page: TemplateFile) -> "Route":
        pattern = page.url or ""
        return cls(page, pattern, [Segment.parse(s) for s in pattern.split("/") if s])

    @property
    def specificity(self) -> tuple[int, int]:
        params = sum(1 for s in self.segments if s.param)
        return (params, -len(self.segments))

    def match(self, url: str) -> dict[str, str] | None:
        """Return route parameters when ``url`` fits this pattern."""
        parts = split_path(url)
        if len(parts) > len(self.segments):
            return None

        params: dict[str, str] = {}
        for index, segment in enumerate(self.segments):
            if index < len(parts):
                part = parts[index]
                if segment.param:
                    params[segment.value] = part
                elif part != segment.value:
                    return None
            elif segment.param and segment.optional:
                if segment.default is not None:
                    params[segment.value] = segment.default
            else:
                return None
        return params

    def build(self, params: dict[str, Any]) -> str:
        """Fill the pattern with ``params``; trailing empty optionals are dropped."""
        parts: list[str | None] = []
        for segment in self.segments:
            if not segment.param:
                parts.append(segment.value)
                continue

            value = params.get(segment.value)
            if value is None or value == "":
                value = segment.default
            if value is None and not segment.optional:
                value = MISSING_PARAM_VALUE
            parts.append(None if value is None else quote(str(value), safe=""))

        while parts and parts[-1] is None:
            parts.pop()
        return "/" + "/".join(p if p is not None else MISSING_PARAM_VALUE for p in parts)


def page_name(name: str) -> str:
    """Strip a template extension from a page reference."""
    for ext in TEMPLATE_EXTENSIONS:
        if name.endswith(ext):
            return name[: -len(ext)]
    return name


class Router:
    """Routes built from the ``url`` settings of a theme's pages."""

    def __init__(self, theme: Theme):
        self.theme = theme
        self._routes: list[Route] | None = None

    @property
    def routes(self) -> list[Route]:
        if self._routes is None:
            routes = [Route.from_page(p) for p in self.theme.pages() if p.url]
            self._routes = sorted(routes, key=lambda r: r.specificity)
        return self._routes

    def match(self, url: str) -> tuple[TemplateFile, dict[str, str]] | None:
        """Find the page serving ``url``."""
        for route in self.routes:
            params = route.match(url)
            if params is not None:
                log.debug("Matched %s to page %s %s", url, route.page.name, params)
                return route.page, params
        return None

    def find(self, name: str) -> Route | None:
        wanted = page_name(name)
        for route in self.routes:
            if route.page.name == wanted:
                return route
        return None

    def url(self, name: str, params: dict[str, Any] | None = None) -> str | None:
        """URL of the named page, or None when no such routed page exists."""
        route = self.find(name)
        if route is None:
            return None
        return route.build(params or {})
