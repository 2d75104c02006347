"""cmsbridge Exceptions

Custom exceptions raised by the CMS template bridge and its controller.
"""

from __future__ import annotations


class CmsError(Exception):
    """Base exception for all cmsbridge errors."""

    pass


class MissingContextError(CmsError):
    """Raised when a template call has no render session or controller."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            f"'{operation}' needs a render session with a controller under 'this'"
        )


class BlockNestingError(CmsError):
    """Raised when a block is closed without a matching open."""

    def __init__(self) -> None:
        super().__init__("Invalid block nesting: end_block() called with no open block")


class ThemeError(CmsError):
    """Raised when a theme or one of its template files is malformed."""

    pass


class NotFoundError(CmsError):
    """Raised when a named CMS object cannot be resolved."""

    kind = "object"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"{self.kind.capitalize()} not found: {name}")


class PageNotFoundError(NotFoundError):
    kind = "page"


class LayoutNotFoundError(NotFoundError):
    kind = "layout"


class PartialNotFoundError(NotFoundError):
    kind = "partial"


class ContentNotFoundError(NotFoundError):
    kind = "content"


class ComponentNotFoundError(NotFoundError):
    kind = "component"
