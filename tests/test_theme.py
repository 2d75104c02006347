"""Tests for theme loading and template files."""

import pytest
from jinja2 import Environment, TemplateNotFound

from cmsbridge.config import ThemeConfig
from cmsbridge.exceptions import ThemeError
from cmsbridge.theme import CONTENT, PARTIALS, Theme, ThemeLoader, parse_template_file


class TestParseTemplateFile:
    def test_settings_and_markup(self):
        parsed = parse_template_file("url: /blog\ntitle: Blog\n==\n<h1>Blog</h1>\n", "blog")

        assert parsed.name == "blog"
        assert parsed.url == "/blog"
        assert parsed.title == "Blog"
        assert parsed.layout is None
        assert parsed.markup == "<h1>Blog</h1>\n"

    def test_without_separator(self):
        parsed = parse_template_file("<p>plain</p>")
        assert parsed.settings == {}
        assert parsed.markup == "<p>plain</p>"

    def test_empty_settings(self):
        parsed = parse_template_file("==\nbody")
        assert parsed.settings == {}
        assert parsed.markup == "body"

    def test_invalid_yaml(self):
        with pytest.raises(ThemeError):
            parse_template_file("url: [\n==\nbody")

    def test_settings_must_be_mapping(self):
        with pytest.raises(ThemeError, match="mapping"):
            parse_template_file("- a\n- b\n==\nbody")


class TestTheme:
    def test_load(self, theme_dir):
        theme = Theme.load(theme_dir)
        assert theme.name == "Demo"
        assert theme.url == "/themes/demo"

    def test_load_missing_directory(self, tmp_path):
        with pytest.raises(ThemeError):
            Theme.load(tmp_path / "nope")

    def test_configured_url(self, make_theme):
        root = make_theme({"theme.yaml": "url: https://cdn.example.com/t/\n"})
        theme = Theme.load(root)
        assert theme.url == "https://cdn.example.com/t"
        assert theme.name == "demo"

    def test_find(self, theme_dir):
        theme = Theme.load(theme_dir)
        expected = theme_dir / "partials" / "card.htm"

        assert theme.find(PARTIALS, "card") == expected
        assert theme.find(PARTIALS, "card.htm") == expected
        assert theme.find(PARTIALS, "missing") is None

    def test_find_rejects_parent_paths(self, theme_dir):
        assert Theme.load(theme_dir).find(PARTIALS, "../layouts/default") is None

    def test_content(self, theme_dir):
        theme = Theme.load(theme_dir)
        assert theme.content("notes") == theme_dir / CONTENT / "notes.txt"
        assert theme.content("intro").suffix == ".htm"

    def test_read_kinds(self, theme_dir):
        theme = Theme.load(theme_dir)
        assert theme.page("home").title == "Home"
        assert theme.layout("default").title == "Default"
        assert theme.partial("card").settings == {}
        assert theme.page("missing") is None

    def test_pages(self, make_theme):
        root = make_theme({"pages/docs/install.htm": "url: /docs/install\n==\nx"})
        names = [p.name for p in Theme.load(root).pages()]
        assert names == ["about", "blog-post", "blog", "docs/install", "home"]

    def test_pages_without_directory(self, make_theme):
        pages = ("home", "blog-post", "blog", "about")
        root = make_theme({f"pages/{name}.htm": None for name in pages})
        assert Theme.load(root).pages() == []


class TestThemeLoader:
    def test_serves_markup_only(self, theme_dir):
        env = Environment(loader=ThemeLoader(Theme.load(theme_dir)))
        source, filename, uptodate = env.loader.get_source(env, "pages/home.htm")

        assert source.startswith("<h1>Home</h1>")
        assert "url:" not in source
        assert filename.endswith("home.htm")
        assert uptodate()

    def test_missing_template(self, theme_dir):
        env = Environment(loader=ThemeLoader(Theme.load(theme_dir)))
        with pytest.raises(TemplateNotFound):
            env.get_template("pages/missing.htm")

    def test_list_templates(self, theme_dir):
        names = ThemeLoader(Theme.load(theme_dir)).list_templates()

        assert "layouts/default.htm" in names
        assert "pages/home.htm" in names
        assert "partials/card.htm" in names
        assert not any(n.startswith("content/") for n in names)


class TestThemeConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        config = ThemeConfig.load(tmp_path / "theme.yaml")
        assert config.name is None
        assert config.combine_url == "/combine"
        assert config.extension.asset_url == "/modules/system/assets"

    def test_extension_settings_and_extra_keys(self, tmp_path):
        path = tmp_path / "theme.yaml"
        path.write_text(
            "name: Demo\nauthor: Ann\ndefault_layout: base\n"
            "extension:\n  asset_url: /static/\n"
        )
        config = ThemeConfig.load(path)

        assert config.default_layout == "base"
        assert config.author == "Ann"
        assert config.extension.asset("js/framework.js") == "/static/js/framework.js"
