"""Render session - the state of one page render pass.

Templates see the session as ``this``:

    {{ this.page.title }}
    {{ this.param.slug }}
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from cmsbridge.blocks import BlockRegistry
from cmsbridge.exceptions import MissingContextError
from cmsbridge.hooks import BlockRenderHooks

if TYPE_CHECKING:
    from cmsbridge.controller import ControllerProtocol
    from cmsbridge.theme import TemplateFile

SESSION_KEY = "this"


@dataclass
class RenderSession:
    """Per-pass state shared by the page, its layout and its partials."""

    controller: "ControllerProtocol | None" = None
    blocks: BlockRegistry = field(default_factory=BlockRegistry)
    hooks: BlockRenderHooks = field(default_factory=BlockRenderHooks)
    page: "TemplateFile | None" = None
    layout: "TemplateFile | None" = None
    param: dict[str, str] = field(default_factory=dict)
    page_contents: str = ""


def get_session(
    context: Mapping[str, Any], operation: str, require_controller: bool = True
) -> RenderSession:
    """Return the session stored under ``this`` in a template context.

    Raises:
        MissingContextError: If there is no session, or it has no controller
            and ``require_controller`` is set.
    """
    session = context.get(SESSION_KEY)
    if not isinstance(session, RenderSession):
        raise MissingContextError(operation)
    if require_controller and session.controller is None:
        raise MissingContextError(operation)
    return session


def get_blocks(context: Mapping[str, Any], operation: str) -> BlockRegistry:
    """Return the block registry of the current pass.

    Block operations do not talk to the controller, so a controller-less
    session is accepted here.
    """
    return get_session(context, operation, require_controller=False).blocks
