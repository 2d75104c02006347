"""Page controller - renders theme pages for one request.

The ``ControllerProtocol`` is everything the template extension asks of a
controller. ``Controller`` implements it on top of a file-system theme:

    controller = Controller(Theme.load(Path("themes/demo")))
    html = controller.run("/blog/hello-world")

A controller serves a single request. Each ``run``/``render`` opens a new
``RenderSession`` so block state never leaks between pages.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path, PurePosixPath
from typing import Any, Protocol

from markupsafe import escape

from cmsbridge.assets import AssetCollection
from cmsbridge.components import Component
from cmsbridge.exceptions import (
    ComponentNotFoundError,
    ContentNotFoundError,
    LayoutNotFoundError,
    MissingContextError,
    PageNotFoundError,
    PartialNotFoundError,
)
from cmsbridge.extension import create_environment
from cmsbridge.flash import FlashBag
from cmsbridge.hooks import BlockRenderHooks
from cmsbridge.router import Router
from cmsbridge.session import SESSION_KEY, RenderSession
from cmsbridge.theme import PARTIALS, TemplateFile, Theme, ThemeLoader

log = logging.getLogger(__name__)


class ControllerProtocol(Protocol):
    """Capabilities the template extension consumes."""

    def render_page(self) -> str: ...

    def render_partial(
        self, name: str, parameters: dict[str, Any], throw_on_missing: bool = False
    ) -> str: ...

    def render_content(self, name: str, parameters: dict[str, Any]) -> str: ...

    def render_component(self, name: str, parameters: dict[str, Any]) -> str: ...

    def make_assets(self, type: str | None = None) -> str | None: ...

    def page_url(
        self, name: str, parameters: dict[str, Any], preserve_route_params: bool = True
    ) -> str | None: ...

    def theme_url(self, url: str | list[str]) -> str: ...

    def flash_messages(self, type: str | None = None) -> list[tuple[str, str]]: ...


def _is_external(url: str) -> bool:
    return url.startswith(("/", "//")) or "://" in url


class Controller:
    """Theme-backed controller for a single request."""

    def __init__(
        self,
        theme: Theme,
        *,
        hooks: BlockRenderHooks | None = None,
        components: dict[str, Component] | None = None,
        vars: dict[str, Any] | None = None,
    ):
        self.theme = theme
        self.router = Router(theme)
        self.hooks = hooks if hooks is not None else BlockRenderHooks()
        self.components: dict[str, Component] = dict(components or {})
        self.vars: dict[str, Any] = dict(vars or {})
        self.assets = AssetCollection()
        self.flash = FlashBag()
        self.combined: dict[str, list[str]] = {}
        self.env = create_environment(
            ThemeLoader(theme), settings=theme.config.extension
        )
        self.session: RenderSession | None = None

    # -- entry points ---------------------------------------------------------

    def run(self, url: str) -> str:
        """Render the page routed to ``url``.

        Raises:
            PageNotFoundError: If no page pattern matches.
        """
        match = self.router.match(url)
        if match is None:
            raise PageNotFoundError(url)
        page, params = match
        return self._render_pass(page, params)

    def render(self, name: str, params: dict[str, str] | None = None) -> str:
        """Render a page by name, bypassing the router."""
        page = self.theme.page(name)
        if page is None:
            raise PageNotFoundError(name)
        return self._render_pass(page, dict(params or {}))

    def _render_pass(self, page: TemplateFile, params: dict[str, str]) -> str:
        layout_name = page.layout or self.theme.config.default_layout
        layout = None
        if layout_name:
            layout = self.theme.layout(layout_name)
            if layout is None:
                raise LayoutNotFoundError(layout_name)

        self.session = RenderSession(
            controller=self, hooks=self.hooks, page=page, layout=layout, param=params
        )
        for component in self.components.values():
            component.on_run(self)

        log.info("Rendering page %s (layout: %s)", page.name, layout_name or "none")

        # Page first, so its {% put %} blocks exist when the layout renders.
        self.session.page_contents = self._render_file(page.path)  # type: ignore[arg-type]
        if layout is None:
            return self.session.page_contents
        return self._render_file(layout.path)  # type: ignore[arg-type]

    # -- rendering helpers ----------------------------------------------------

    def _require_session(self, operation: str) -> RenderSession:
        if self.session is None:
            raise MissingContextError(operation)
        return self.session

    def _variables(self, extra: dict[str, Any]) -> dict[str, Any]:
        variables = {**self.vars, **extra}
        variables[SESSION_KEY] = self._require_session("render")
        return variables

    def _render_file(self, path: Path, variables: dict[str, Any] | None = None) -> str:
        name = self.theme.template_name(path)
        log.debug("Rendering template %s", name)
        return self.env.get_template(name).render(self._variables(variables or {}))

    def render_string(self, markup: str, variables: dict[str, Any] | None = None) -> str:
        """Render inline markup inside the current pass."""
        return self.env.from_string(markup).render(self._variables(variables or {}))

    # -- ControllerProtocol ---------------------------------------------------

    def render_page(self) -> str:
        return self._require_session("page").page_contents

    def render_partial(
        self, name: str, parameters: dict[str, Any], throw_on_missing: bool = False
    ) -> str:
        path = self.theme.find(PARTIALS, name)
        if path is None:
            if throw_on_missing:
                raise PartialNotFoundError(name)
            log.debug("Partial %s not found, rendering nothing", name)
            return ""

        return self._render_file(path, parameters)

    def render_content(self, name: str, parameters: dict[str, Any]) -> str:
        """Render a static content file, substituting ``{key}`` parameters.

        ``.txt`` files are treated as plain text and escaped.
        """
        path = self.theme.content(name)
        if path is None:
            raise ContentNotFoundError(name)

        text = path.read_text(encoding="utf-8")
        for key, value in parameters.items():
            text = text.replace("{" + key + "}", str(value))

        if path.suffix == ".txt":
            return str(escape(text))
        return text

    def render_component(self, name: str, parameters: dict[str, Any]) -> str:
        component = self.components.get(name)
        if component is None:
            raise ComponentNotFoundError(name)
        return component.render(self, parameters)

    def make_assets(self, type: str | None = None) -> str | None:
        return self.assets.make(type)

    def page_url(
        self, name: str, parameters: dict[str, Any], preserve_route_params: bool = True
    ) -> str | None:
        params: dict[str, Any] = {}
        if preserve_route_params and self.session is not None:
            params.update(self.session.param)
        params.update(parameters)
        return self.router.url(name, params)

    def theme_url(self, url: str | list[str]) -> str:
        if isinstance(url, (list, tuple)):
            return self.combine(list(url))
        if not url:
            return self.theme.url
        return f"{self.theme.url}/{url.lstrip('/')}"

    def flash_messages(self, type: str | None = None) -> list[tuple[str, str]]:
        return self.flash.all(type)

    # -- registration ---------------------------------------------------------

    def combine(self, paths: list[str]) -> str:
        """Build one URL standing for several theme assets.

        The combination is recorded in ``combined`` under its key so a host
        can serve the concatenated files.
        """
        digest = hashlib.sha1("\n".join(paths).encode("utf-8")).hexdigest()[:16]
        self.combined[digest] = [self.theme_url(p) for p in paths]
        ext = PurePosixPath(paths[0]).suffix if paths else ""
        log.debug("Combined %d assets as %s", len(paths), digest)
        return f"{self.theme.config.combine_url.rstrip('/')}/{digest}{ext}"

    def add_component(self, alias: str, component: Component) -> None:
        self.components[alias] = component

    def _asset_url(self, url: str) -> str:
        return url if _is_external(url) else self.theme_url(url)

    def add_js(self, url: str) -> None:
        self.assets.add("js", self._asset_url(url))

    def add_css(self, url: str) -> None:
        self.assets.add("css", self._asset_url(url))

    def add_rss(self, url: str) -> None:
        self.assets.add("rss", self._asset_url(url))
