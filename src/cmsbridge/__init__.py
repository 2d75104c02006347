"""cmsbridge - CMS rendering for Jinja2 templates

Pages, partials, content files, components and layout blocks exposed to
theme templates as Jinja2 functions, filters and tags.
"""

from cmsbridge.blocks import DEFAULT_BLOCK_MARKER, BlockRegistry
from cmsbridge.components import Component, TemplateComponent
from cmsbridge.controller import Controller, ControllerProtocol
from cmsbridge.exceptions import (
    BlockNestingError,
    CmsError,
    MissingContextError,
    NotFoundError,
)
from cmsbridge.extension import CmsExtension, create_environment
from cmsbridge.hooks import BlockRenderHooks
from cmsbridge.session import RenderSession
from cmsbridge.theme import Theme

__version__ = "0.1.0"

__all__ = [
    # extension
    "CmsExtension",
    "create_environment",
    # render pass
    "RenderSession",
    "BlockRegistry",
    "BlockRenderHooks",
    "DEFAULT_BLOCK_MARKER",
    # controller
    "Controller",
    "ControllerProtocol",
    "Component",
    "TemplateComponent",
    "Theme",
    # errors
    "CmsError",
    "MissingContextError",
    "NotFoundError",
    "BlockNestingError",
]
