"""Rendering bridge - forwards template calls to the controller and blocks.

Every function takes the render session (or its block registry) as an
explicit argument. Controller errors are never caught here; the only soft
failure is an absent block in ``placeholder`` and ``display_block``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from cmsbridge.blocks import BlockRegistry, merge_default
from cmsbridge.exceptions import MissingContextError
from cmsbridge.session import RenderSession

if TYPE_CHECKING:
    from cmsbridge.controller import ControllerProtocol

log = logging.getLogger(__name__)


def _controller(session: RenderSession, operation: str) -> ControllerProtocol:
    if session.controller is None:
        raise MissingContextError(operation)
    return session.controller


def page(session: RenderSession) -> str:
    """Render the page; used by layouts."""
    return _controller(session, "page").render_page()


def partial(
    session: RenderSession,
    name: str,
    parameters: dict[str, Any] | None = None,
    throw_on_missing: bool = False,
) -> str:
    """Render a partial, optionally raising when it does not exist."""
    controller = _controller(session, "partial")
    return controller.render_partial(name, parameters or {}, throw_on_missing)


def content(
    session: RenderSession, name: str, parameters: dict[str, Any] | None = None
) -> str:
    """Render a content file."""
    return _controller(session, "content").render_content(name, parameters or {})


def component(
    session: RenderSession, name: str, parameters: dict[str, Any] | None = None
) -> str:
    """Render a component's default view."""
    return _controller(session, "component").render_component(name, parameters or {})


def assets(session: RenderSession, type: str | None = None) -> str | None:
    """Render registered asset tags, all types when ``type`` is None."""
    return _controller(session, "assets").make_assets(type)


def placeholder(
    blocks: BlockRegistry, name: str, default: str | None = None
) -> str | None:
    """Read a block without removing it.

    Must be called before the ``{% placeholder %}`` tag for the same block,
    which consumes it. Returns None when the block was never filled.
    """
    result = blocks.get(name)
    if result is None:
        return None
    return merge_default(result, default)


def page_url(
    session: RenderSession,
    name: str,
    parameters: dict[str, Any] | None = None,
    preserve_route_params: bool = True,
) -> str | None:
    """Relative URL of a page, keeping the current route params by default."""
    controller = _controller(session, "page")
    return controller.page_url(name, parameters or {}, preserve_route_params)


def theme_url(session: RenderSession, url: str | list[str]) -> str:
    """Theme URL for an asset; lists are combined into one URL."""
    return _controller(session, "theme").theme_url(url)


def start_block(blocks: BlockRegistry, name: str) -> None:
    blocks.start_block(name)


def display_block(
    session: RenderSession, name: str, default: str | None = None
) -> str | None:
    """Return a block's content and remove it from the registry.

    Interceptors registered on the session hooks get a chance to replace
    the content first. When the block is absent ``default`` comes back
    unchanged.
    """
    result = session.blocks.placeholder(name)
    if result is None:
        return default

    override = session.hooks.fire(name, result)
    if override:
        log.debug("Block %r content replaced by interceptor", name)
        result = override

    return merge_default(result, default)


def end_block(blocks: BlockRegistry, append: bool = True) -> None:
    blocks.end_block(append)
