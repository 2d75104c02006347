"""Component system.

Components are reusable render units attached to a controller under an
alias and rendered with ``{% component "alias" %}``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cmsbridge.controller import Controller


class Component(ABC):
    """Base class for components."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Component name (e.g., 'blogPosts')."""
        ...

    @property
    def defaults(self) -> dict[str, Any]:
        """Property values used when the caller does not pass them."""
        return {}

    def on_run(self, controller: "Controller") -> None:
        """Called before the page renders; register assets here."""

    @abstractmethod
    def render(self, controller: "Controller", parameters: dict[str, Any]) -> str:
        """Render the default view with the given parameters."""
        ...

    def properties(self, parameters: dict[str, Any]) -> dict[str, Any]:
        return {**self.defaults, **parameters}


@dataclass
class TemplateComponent(Component):
    """A component rendered from a Jinja2 template.

    Supports two modes:
    1. Partial: partial="blog/posts" (a theme partial)
    2. Inline: content="<ul>{% for p in posts %}...{% endfor %}</ul>"

    Usage:
        TemplateComponent("posts", content="<p>{{ __SELF__.name }}</p>")
    """

    component_name: str
    content: str | None = None
    partial: str | None = None
    props: dict[str, Any] = field(default_factory=dict)
    js: list[str] = field(default_factory=list)
    css: list[str] = field(default_factory=list)

    def __post_init__(self):
        """Validate that exactly one of partial or content is provided."""
        if self.partial is None and self.content is None:
            raise ValueError("Must provide either 'partial' or 'content'")
        if self.partial is not None and self.content is not None:
            raise ValueError("Cannot provide both 'partial' and 'content'")

    @property
    def name(self) -> str:
        return self.component_name

    @property
    def defaults(self) -> dict[str, Any]:
        return dict(self.props)

    def on_run(self, controller: "Controller") -> None:
        for url in self.css:
            controller.add_css(url)
        for url in self.js:
            controller.add_js(url)

    def render(self, controller: "Controller", parameters: dict[str, Any]) -> str:
        variables = self.properties(parameters)
        variables["__SELF__"] = self
        if self.content is not None:
            return controller.render_string(self.content, variables)
        return controller.render_partial(self.partial, variables, True)  # type: ignore[arg-type]
