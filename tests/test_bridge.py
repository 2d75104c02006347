"""Tests for the rendering bridge operations."""

import pytest

from cmsbridge import bridge
from cmsbridge.blocks import DEFAULT_BLOCK_MARKER
from cmsbridge.exceptions import MissingContextError, NotFoundError
from cmsbridge.session import RenderSession


def fill(session, name, text, append=True):
    bridge.start_block(session.blocks, name)
    session.blocks.write(text)
    bridge.end_block(session.blocks, append)


class TestBlocks:
    def test_absent_block(self, session):
        """Never-opened blocks: placeholder gives nothing, display gives the default."""
        assert bridge.placeholder(session.blocks, "sidebar", "fallback") is None
        assert bridge.display_block(session, "sidebar", "fallback") == "fallback"

    def test_absent_block_without_default(self, session):
        assert bridge.display_block(session, "sidebar") is None

    def test_display_block_consumes(self, session):
        fill(session, "sidebar", "<p>A</p>")

        assert bridge.display_block(session, "sidebar", "d") == "<p>A</p>"
        assert bridge.display_block(session, "sidebar", "d") == "d"

    def test_placeholder_does_not_consume(self, session):
        fill(session, "sidebar", "<p>A</p>")

        assert bridge.placeholder(session.blocks, "sidebar") == "<p>A</p>"
        assert bridge.placeholder(session.blocks, "sidebar") == "<p>A</p>"
        assert bridge.display_block(session, "sidebar") == "<p>A</p>"

    def test_default_substitution(self, session):
        fill(session, "x", f"A{DEFAULT_BLOCK_MARKER}B")

        assert bridge.placeholder(session.blocks, "x", " D ") == "ADB"
        assert bridge.display_block(session, "x", " D ") == "ADB"

    def test_end_block_append_and_replace(self, session):
        fill(session, "x", "one")
        fill(session, "x", "two", append=True)
        assert bridge.placeholder(session.blocks, "x") == "onetwo"

        fill(session, "x", "three", append=False)
        assert bridge.placeholder(session.blocks, "x") == "three"

    def test_hook_replaces_content_before_default_substitution(self, session):
        fill(session, "footer", f"original{DEFAULT_BLOCK_MARKER}")
        session.hooks.listen(
            lambda name, content: f"override{DEFAULT_BLOCK_MARKER}"
            if name == "footer"
            else None
        )

        assert bridge.display_block(session, "footer", " D ") == "overrideD"

    def test_hook_receives_name_and_content(self, session):
        received = []
        fill(session, "footer", "  captured  ")
        session.hooks.listen(lambda name, content: received.append((name, content)))

        assert bridge.display_block(session, "footer") == "captured"
        assert received == [("footer", "captured")]

    def test_empty_hook_response_keeps_content(self, session):
        fill(session, "footer", "captured")
        session.hooks.listen(lambda name, content: "")

        assert bridge.display_block(session, "footer") == "captured"


class TestControllerDelegation:
    def test_page(self, session, controller):
        assert bridge.page(session) == "<main>page</main>"
        assert controller.calls == [("page",)]

    def test_partial_missing_throws_when_asked(self, session):
        with pytest.raises(NotFoundError):
            bridge.partial(session, "missing", {}, True)

    def test_partial_missing_soft_fails(self, session):
        assert bridge.partial(session, "missing", {}, False) == ""

    def test_partial_defaults(self, session, controller):
        bridge.partial(session, "card")
        assert controller.calls == [("partial", "card", {}, False)]

    def test_content_and_component(self, session, controller):
        assert bridge.content(session, "intro", {"name": "Ann"}) == "<content:intro>"
        assert bridge.component(session, "posts") == "<component:posts>"
        assert controller.calls == [
            ("content", "intro", {"name": "Ann"}),
            ("component", "posts", {}),
        ]

    def test_assets(self, session, controller):
        assert bridge.assets(session, "js") == '<script src="/app.js"></script>'
        assert bridge.assets(session, "css") is None
        assert bridge.assets(session) is None
        assert controller.calls[-1] == ("assets", None)

    def test_page_url(self, session, controller):
        assert bridge.page_url(session, "blog", {"page": 2}) == "/blog"
        bridge.page_url(session, "blog", preserve_route_params=False)
        assert controller.calls == [
            ("page_url", "blog", {"page": 2}, True),
            ("page_url", "blog", {}, False),
        ]

    def test_theme_url(self, session, controller):
        assert bridge.theme_url(session, "css/a.css") == "/themes/demo/css/a.css"
        assert bridge.theme_url(session, ["a.css", "b.css"]) == "/combine/abc.css"


@pytest.mark.parametrize(
    "call",
    [
        lambda s: bridge.page(s),
        lambda s: bridge.partial(s, "card"),
        lambda s: bridge.content(s, "intro"),
        lambda s: bridge.component(s, "posts"),
        lambda s: bridge.assets(s, "js"),
        lambda s: bridge.page_url(s, "blog"),
        lambda s: bridge.theme_url(s, "css/a.css"),
    ],
    ids=["page", "partial", "content", "component", "assets", "page_url", "theme_url"],
)
def test_controller_operations_need_a_controller(call):
    with pytest.raises(MissingContextError):
        call(RenderSession())
