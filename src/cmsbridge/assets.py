"""Assets registered by pages and components during a request."""

from __future__ import annotations

from dataclasses import dataclass, field

from markupsafe import escape

ASSET_TYPES = ("css", "rss", "js")


def script_tag(url: str) -> str:
    return f'<script src="{escape(url)}"></script>'


def style_tag(url: str) -> str:
    return f'<link rel="stylesheet" href="{escape(url)}">'


def rss_tag(url: str) -> str:
    return f'<link rel="alternate" type="application/rss+xml" href="{escape(url)}">'


_TAG_BUILDERS = {"css": style_tag, "rss": rss_tag, "js": script_tag}


@dataclass
class AssetCollection:
    """Ordered, de-duplicated asset URLs per type."""

    css: list[str] = field(default_factory=list)
    rss: list[str] = field(default_factory=list)
    js: list[str] = field(default_factory=list)

    def add(self, type: str, url: str) -> None:
        if type not in ASSET_TYPES:
            raise ValueError(f"Unknown asset type: {type}")
        urls = getattr(self, type)
        if url not in urls:
            urls.append(url)

    def make(self, type: str | None = None) -> str | None:
        """Build the tags for one type, or all of them when ``type`` is None.

        Returns None when nothing of the requested type is registered.
        """
        types = ASSET_TYPES if type is None else (type,)
        tags: list[str] = []
        for kind in types:
            if kind not in _TAG_BUILDERS:
                raise ValueError(f"Unknown asset type: {kind}")
            build = _TAG_BUILDERS[kind]
            tags.extend(build(url) for url in getattr(self, kind))

        if not tags:
            return None
        return "\n".join(tags)
