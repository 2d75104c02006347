"""Shared fixtures: a recording controller and an on-disk demo theme."""

from pathlib import Path

import pytest

from cmsbridge.exceptions import PartialNotFoundError
from cmsbridge.extension import create_environment
from cmsbridge.session import RenderSession


class FakeController:
    """Controller double that records every call it receives."""

    def __init__(self, partials=("card",), assets=None, flash=()):
        self.calls = []
        self.partials = set(partials)
        self.asset_tags = assets or {}
        self.messages = list(flash)

    def render_page(self):
        self.calls.append(("page",))
        return "<main>page</main>"

    def render_partial(self, name, parameters, throw_on_missing=False):
        self.calls.append(("partial", name, parameters, throw_on_missing))
        if name not in self.partials:
            if throw_on_missing:
                raise PartialNotFoundError(name)
            return ""
        return f"<partial:{name}>" + str(parameters.get("body", ""))

    def render_content(self, name, parameters):
        self.calls.append(("content", name, parameters))
        return f"<content:{name}>"

    def render_component(self, name, parameters):
        self.calls.append(("component", name, parameters))
        return f"<component:{name}>"

    def make_assets(self, type=None):
        self.calls.append(("assets", type))
        return self.asset_tags.get(type)

    def page_url(self, name, parameters, preserve_route_params=True):
        self.calls.append(("page_url", name, parameters, preserve_route_params))
        return f"/{name}"

    def theme_url(self, url):
        self.calls.append(("theme_url", url))
        if isinstance(url, list):
            return "/combine/abc.css"
        return f"/themes/demo/{url}"

    def flash_messages(self, type=None):
        return [(t, m) for t, m in self.messages if type is None or t == type]


@pytest.fixture
def controller():
    return FakeController(
        assets={"js": '<script src="/app.js"></script>'},
        flash=[("success", "Saved"), ("error", "Oops")],
    )


@pytest.fixture
def session(controller):
    return RenderSession(controller=controller)


@pytest.fixture
def env():
    return create_environment()


@pytest.fixture
def render(env, session):
    """Render a template string inside the test session."""

    def _render(source, **variables):
        return env.from_string(source).render(this=session, **variables)

    return _render


DEMO_THEME = {
    "theme.yaml": "name: Demo\n",
    "layouts/default.htm": (
        "title: Default\n"
        "==\n"
        "<html><head><title>{{ this.page.title }}</title>{% styles %}</head>"
        "<body>{% placeholder sidebar default %}<nav>default nav</nav>{% endplaceholder %}"
        "{% page %}{% scripts %}</body></html>\n"
    ),
    "pages/home.htm": (
        "url: /\n"
        "layout: default\n"
        "title: Home\n"
        "==\n"
        '<h1>Home</h1>{% partial "card" title="First" %}\n'
    ),
    "pages/blog-post.htm": (
        "url: /blog/:slug\n"
        "layout: default\n"
        "title: Post\n"
        "==\n"
        "{% put sidebar %}<aside>{{ this.param.slug }}</aside>{% default %}{% endput %}"
        "<article>{{ this.param.slug }}</article>"
        "<a href=\"{{ 'blog'|page }}\">all</a>\n"
    ),
    "pages/blog.htm": (
        "url: /blog/:page?\n"
        "title: Blog\n"
        "==\n"
        "<h1>Blog {{ this.param.page }}</h1>\n"
    ),
    "pages/about.htm": "<p>No settings here</p>\n",
    "partials/card.htm": (
        '<div class="card">{{ title }}</div>'
        "{% put scripts %}<script>card()</script>{% endput %}\n"
    ),
    "content/intro.htm": "<p>Hello {name}</p>",
    "content/notes.txt": "a < b",
}


def write_theme(root: Path, files: dict[str, str]) -> Path:
    for name, text in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return root


@pytest.fixture
def theme_dir(tmp_path):
    return write_theme(tmp_path / "demo", DEMO_THEME)


@pytest.fixture
def make_theme(tmp_path):
    """Build a theme from DEMO_THEME plus overrides; None removes a file."""

    def _make(overrides=None, name="demo"):
        files = {**DEMO_THEME, **(overrides or {})}
        return write_theme(tmp_path / name, {k: v for k, v in files.items() if v is not None})

    return _make
