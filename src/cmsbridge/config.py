"""Configuration parsing for theme.yaml"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

THEME_CONFIG_FILE = "theme.yaml"


class ExtensionSettings(BaseModel):
    """Asset paths emitted by the framework and snowboard tags.

    Paths are relative to ``asset_url``.
    """

    asset_url: str = "/modules/system/assets"
    framework_js: str = "js/framework.js"
    framework_extras_js: str = "js/framework.extras.js"
    framework_extras_css: str = "css/framework.extras.css"
    snowboard_js: str = "js/snowboard/snowboard.base.js"
    snowboard_modules: dict[str, str] = {
        "request": "js/snowboard/snowboard.request.js",
        "attr": "js/snowboard/snowboard.data-attr.js",
        "extras": "js/snowboard/snowboard.extras.js",
    }
    snowboard_extras_css: str = "css/snowboard.extras.css"

    def asset(self, path: str) -> str:
        """Join a path onto ``asset_url``."""
        return f"{self.asset_url.rstrip('/')}/{path.lstrip('/')}"


class ThemeConfig(BaseModel):
    """Full theme.yaml configuration"""

    name: str | None = None
    url: str | None = None  # defaults to /themes/<dir name>
    combine_url: str = "/combine"
    default_layout: str | None = None
    extension: ExtensionSettings = Field(default_factory=ExtensionSettings)

    class Config:
        extra = "allow"  # themes may carry their own metadata

    @classmethod
    def load(cls, path: Path) -> "ThemeConfig":
        """Load config from yaml file"""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.model_validate(data)
