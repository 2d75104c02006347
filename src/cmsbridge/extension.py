"""Jinja2 extension exposing CMS rendering to theme templates.

Functions:
    {{ page() }}  {{ partial('card', {'title': t}) }}  {{ content('intro') }}
    {{ component('posts') }}  {{ assets('js') }}  {{ placeholder('sidebar') }}

Filters:
    {{ 'blog-post'|page({'slug': post.slug}) }}
    {{ 'css/site.css'|theme }}  {{ ['css/a.css', 'css/b.css']|theme }}

Tags:
    {% page %}
    {% partial "card" title="Hello" %}  {% partial "card" body %}...{% endpartial %}
    {% content "intro" name=user.name %}
    {% component "posts" limit=5 %}
    {% put sidebar %}...{% endput %}  {% put sidebar overwrite %}...{% endput %}
    {% placeholder sidebar %}  {% placeholder sidebar default %}...{% endplaceholder %}
    {% default %}
    {% framework %}  {% framework extras %}
    {% snowboard request attr %}
    {% flash %}...{% endflash %}  {% flash error %}...{% endflash %}
    {% scripts %}  {% styles %}

Every call finds the render session under ``this`` in the template context.
"""

from __future__ import annotations

from typing import Any

from jinja2 import Environment, nodes, pass_context, select_autoescape
from jinja2.ext import Extension
from jinja2.parser import Parser
from jinja2.runtime import Context
from markupsafe import Markup, escape

from cmsbridge import bridge
from cmsbridge.assets import script_tag, style_tag
from cmsbridge.blocks import DEFAULT_BLOCK_MARKER
from cmsbridge.config import ExtensionSettings
from cmsbridge.session import get_blocks, get_session

SNOWBOARD_ALL = "all"


def _safe(value: str | None) -> Markup:
    """Wrap controller output as safe markup; None renders as nothing."""
    if value is None:
        return Markup("")
    return Markup(value)


# =============================================================================
# Functions
# =============================================================================


@pass_context
def page_function(context: Context) -> Markup:
    """Render the page; used in layouts."""
    return _safe(bridge.page(get_session(context, "page")))


@pass_context
def partial_function(
    context: Context,
    name: str,
    parameters: dict[str, Any] | None = None,
    throw_on_missing: bool = False,
) -> Markup:
    """Render a partial. Missing partials render as nothing unless asked to throw."""
    session = get_session(context, "partial")
    return _safe(bridge.partial(session, name, parameters, throw_on_missing))


@pass_context
def content_function(
    context: Context, name: str, parameters: dict[str, Any] | None = None
) -> Markup:
    return _safe(bridge.content(get_session(context, "content"), name, parameters))


@pass_context
def component_function(
    context: Context, name: str, parameters: dict[str, Any] | None = None
) -> Markup:
    return _safe(bridge.component(get_session(context, "component"), name, parameters))


@pass_context
def assets_function(context: Context, type: str | None = None) -> Markup:
    """Render registered asset tags of a type, or of all types."""
    return _safe(bridge.assets(get_session(context, "assets"), type))


@pass_context
def placeholder_function(
    context: Context, name: str, default: str | None = None
) -> Markup:
    """Peek at a block without removing it.

    Call before the ``{% placeholder %}`` tag for the same block.
    """
    blocks = get_blocks(context, "placeholder")
    return _safe(bridge.placeholder(blocks, name, default))


# =============================================================================
# Filters
# =============================================================================


@pass_context
def page_filter(
    context: Context,
    name: str,
    parameters: dict[str, Any] | None = None,
    preserve_route_params: bool = True,
) -> Markup:
    """Relative URL of a page.

    Example:
        <a href="{{ 'blog-post'|page({'slug': post.slug}) }}">...</a>
        <a href="{{ 'blog'|page({}, false) }}">all posts</a>
    """
    session = get_session(context, "page")
    return _safe(bridge.page_url(session, name, parameters, preserve_route_params))


@pass_context
def theme_filter(context: Context, url: str | list[str]) -> Markup:
    """Theme URL for an asset path, or one combined URL for a list."""
    return _safe(bridge.theme_url(get_session(context, "theme"), url))


FUNCTIONS = {
    "page": page_function,
    "partial": partial_function,
    "content": content_function,
    "component": component_function,
    "assets": assets_function,
    "placeholder": placeholder_function,
}

FILTERS = {
    "page": page_filter,
    "theme": theme_filter,
}


# =============================================================================
# Tags
# =============================================================================


class CmsExtension(Extension):
    """Registers the CMS functions, filters and tags on an environment.

    Tag rendering is delegated to the same bridge operations as the
    functions, so a tag and its function counterpart always agree.
    """

    tags = {
        "page",
        "partial",
        "content",
        "component",
        "put",
        "placeholder",
        "default",
        "framework",
        "snowboard",
        "flash",
        "scripts",
        "styles",
    }

    def __init__(self, environment: Environment):
        super().__init__(environment)
        environment.extend(cms_settings=ExtensionSettings())
        environment.globals.update(FUNCTIONS)
        environment.filters.update(FILTERS)

    def parse(self, parser: Parser) -> nodes.Node | list[nodes.Node]:
        token = next(parser.stream)
        handler = getattr(self, f"_parse_{token.value}")
        return handler(parser, token.lineno)

    # -- parsing helpers ------------------------------------------------------

    def _parse_block_name(self, parser: Parser) -> str:
        """Block names are bare identifiers or string literals."""
        token = parser.stream.current
        if token.type in ("name", "string"):
            next(parser.stream)
            return token.value
        parser.fail(f"Expected a block name, got {token.type!r}", token.lineno)

    def _parse_arguments(
        self, parser: Parser, flags: tuple[str, ...] = ()
    ) -> tuple[nodes.Dict, set[str]]:
        """Parse ``key=value`` pairs and bare flag words up to the block end."""
        pairs: list[nodes.Pair] = []
        found: set[str] = set()
        stream = parser.stream

        while not stream.current.test("block_end"):
            if pairs or found:
                stream.skip_if("comma")
            token = stream.current
            if token.test("name") and stream.look().test("assign"):
                next(stream)
                next(stream)
                value = parser.parse_expression()
                pairs.append(nodes.Pair(nodes.Const(token.value), value, lineno=token.lineno))
            elif token.test("name") and token.value in flags:
                found.add(next(stream).value)
            else:
                parser.fail(f"Unexpected {token.value!r} in tag arguments", token.lineno)

        return nodes.Dict(pairs), found

    def _output(self, method: str, args: list[nodes.Expr], lineno: int) -> nodes.Output:
        call = self.call_method(method, [nodes.ContextReference(), *args])
        return nodes.Output([call]).set_lineno(lineno)

    def _call_block(
        self,
        method: str,
        args: list[nodes.Expr],
        body: list[nodes.Node],
        lineno: int,
        caller_args: list[nodes.Expr] | None = None,
    ) -> nodes.CallBlock:
        call = self.call_method(method, [nodes.ContextReference(), *args])
        return nodes.CallBlock(call, caller_args or [], [], body).set_lineno(lineno)

    # -- tag parsers ----------------------------------------------------------

    def _parse_page(self, parser: Parser, lineno: int) -> nodes.Node:
        return self._output("_render_page", [], lineno)

    def _parse_partial(self, parser: Parser, lineno: int) -> nodes.Node:
        """{% partial "name" key=value %} or {% partial "name" body %}...{% endpartial %}"""
        name = parser.parse_expression()
        parameters, flags = self._parse_arguments(parser, flags=("body",))
        if "body" in flags:
            body = parser.parse_statements(("name:endpartial",), drop_needle=True)
            return self._call_block("_render_partial", [name, parameters], body, lineno)
        return self._output("_render_partial", [name, parameters], lineno)

    def _parse_content(self, parser: Parser, lineno: int) -> nodes.Node:
        name = parser.parse_expression()
        parameters, _ = self._parse_arguments(parser)
        return self._output("_render_content", [name, parameters], lineno)

    def _parse_component(self, parser: Parser, lineno: int) -> nodes.Node:
        name = parser.parse_expression()
        parameters, _ = self._parse_arguments(parser)
        return self._output("_render_component", [name, parameters], lineno)

    def _parse_put(self, parser: Parser, lineno: int) -> nodes.Node:
        """{% put name %}...{% endput %}, appending unless marked overwrite."""
        name = self._parse_block_name(parser)
        _, flags = self._parse_arguments(parser, flags=("overwrite",))
        append = "overwrite" not in flags
        body = parser.parse_statements(("name:endput",), drop_needle=True)
        return self._call_block(
            "_capture_block", [nodes.Const(name), nodes.Const(append)], body, lineno
        )

    def _parse_placeholder(self, parser: Parser, lineno: int) -> nodes.Node:
        """{% placeholder name %} or {% placeholder name default %}...{% endplaceholder %}"""
        name = self._parse_block_name(parser)
        options, flags = self._parse_arguments(parser, flags=("default",))
        args = [nodes.Const(name), options]
        if "default" in flags:
            body = parser.parse_statements(("name:endplaceholder",), drop_needle=True)
            return self._call_block("_render_placeholder", args, body, lineno)
        return self._output("_render_placeholder", args, lineno)

    def _parse_default(self, parser: Parser, lineno: int) -> nodes.Node:
        marker = nodes.MarkSafe(nodes.Const(DEFAULT_BLOCK_MARKER))
        return nodes.Output([marker]).set_lineno(lineno)

    def _parse_framework(self, parser: Parser, lineno: int) -> nodes.Node:
        """{% framework %} or {% framework extras %}"""
        extras = parser.stream.skip_if("name:extras")
        call = self.call_method("_render_framework", [nodes.Const(extras)])
        return nodes.Output([call]).set_lineno(lineno)

    def _parse_snowboard(self, parser: Parser, lineno: int) -> nodes.Node:
        """{% snowboard %}, {% snowboard request attr extras %} or {% snowboard all %}"""
        available = self.environment.cms_settings.snowboard_modules  # type: ignore[attr-defined]
        modules: list[str] = []
        while not parser.stream.current.test("block_end"):
            token = parser.stream.expect("name")
            if token.value == SNOWBOARD_ALL:
                modules = list(available)
            elif token.value in available:
                if token.value not in modules:
                    modules.append(token.value)
            else:
                parser.fail(f"Unknown snowboard module {token.value!r}", token.lineno)

        names = nodes.List([nodes.Const(m) for m in modules])
        call = self.call_method("_render_snowboard", [names])
        return nodes.Output([call]).set_lineno(lineno)

    def _parse_flash(self, parser: Parser, lineno: int) -> nodes.Node:
        """{% flash %}...{% endflash %} with ``type`` and ``message`` bound."""
        kind = None
        if parser.stream.current.test("name"):
            kind = next(parser.stream).value
        body = parser.parse_statements(("name:endflash",), drop_needle=True)
        caller_args = [nodes.Name("type", "param"), nodes.Name("message", "param")]
        return self._call_block(
            "_render_flash", [nodes.Const(kind)], body, lineno, caller_args
        )

    def _parse_scripts(self, parser: Parser, lineno: int) -> nodes.Node:
        return self._output(
            "_render_asset_block", [nodes.Const("js"), nodes.Const("scripts")], lineno
        )

    def _parse_styles(self, parser: Parser, lineno: int) -> nodes.Node:
        return self._output(
            "_render_asset_block", [nodes.Const("css"), nodes.Const("styles")], lineno
        )

    # -- render-time callbacks ------------------------------------------------

    def _render_page(self, context: Context) -> Markup:
        return page_function(context)

    def _render_partial(
        self, context: Context, name: str, parameters: dict[str, Any], caller=None
    ) -> Markup:
        if caller is not None:
            parameters = {**parameters, "body": caller()}
        return partial_function(context, name, parameters, True)

    def _render_content(
        self, context: Context, name: str, parameters: dict[str, Any]
    ) -> Markup:
        return content_function(context, name, parameters)

    def _render_component(
        self, context: Context, name: str, parameters: dict[str, Any]
    ) -> Markup:
        return component_function(context, name, parameters)

    def _capture_block(
        self, context: Context, name: str, append: bool, caller
    ) -> str:
        blocks = get_blocks(context, "put")
        bridge.start_block(blocks, name)
        try:
            blocks.write(caller())
        except Exception:
            blocks.discard()
            raise
        bridge.end_block(blocks, append)
        return ""

    def _render_placeholder(
        self, context: Context, name: str, options: dict[str, Any], caller=None
    ) -> Markup:
        session = get_session(context, "placeholder", require_controller=False)
        default = str(caller()) if caller is not None else None
        result = bridge.display_block(session, name, default)
        if options.get("type") == "text":
            return escape(result or "")
        return _safe(result)

    def _render_framework(self, extras: bool) -> Markup:
        settings: ExtensionSettings = self.environment.cms_settings  # type: ignore[attr-defined]
        tags = [script_tag(settings.asset(settings.framework_js))]
        if extras:
            tags.append(script_tag(settings.asset(settings.framework_extras_js)))
            tags.append(style_tag(settings.asset(settings.framework_extras_css)))
        return Markup("\n".join(tags))

    def _render_snowboard(self, modules: list[str]) -> Markup:
        settings: ExtensionSettings = self.environment.cms_settings  # type: ignore[attr-defined]
        tags = [script_tag(settings.asset(settings.snowboard_js))]
        for module in modules:
            tags.append(script_tag(settings.asset(settings.snowboard_modules[module])))
        if "extras" in modules:
            tags.append(style_tag(settings.asset(settings.snowboard_extras_css)))
        return Markup("\n".join(tags))

    def _render_flash(self, context: Context, kind: str | None, caller) -> Markup:
        session = get_session(context, "flash")
        messages = session.controller.flash_messages(kind)
        return Markup("".join(str(caller(t, m)) for t, m in messages))

    def _render_asset_block(self, context: Context, type: str, block: str) -> Markup:
        session = get_session(context, block)
        parts = [bridge.assets(session, type), bridge.display_block(session, block)]
        return Markup("".join(p for p in parts if p))


def create_environment(
    loader=None, settings: ExtensionSettings | None = None, **options: Any
) -> Environment:
    """Create a Jinja2 Environment with the CMS extension installed.

    Args:
        loader: Template loader (e.g. a ``ThemeLoader``).
        settings: Asset paths for the framework and snowboard tags.
        **options: Extra ``Environment`` options.

    Returns:
        Configured Jinja2 Environment.
    """
    options.setdefault(
        "autoescape", select_autoescape(("htm", "html"), default_for_string=True)
    )
    extensions = list(options.pop("extensions", []))
    if CmsExtension not in extensions:
        extensions.append(CmsExtension)

    env = Environment(loader=loader, extensions=extensions, **options)
    if settings is not None:
        env.cms_settings = settings  # type: ignore[attr-defined]
    return env
