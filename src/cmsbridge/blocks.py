"""Named layout blocks captured during a render pass.

A page fills blocks with ``{% put %}``; the layout reads them back with
``{% placeholder %}``. Each render pass owns a fresh ``BlockRegistry``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from cmsbridge.exceptions import BlockNestingError

log = logging.getLogger(__name__)

DEFAULT_BLOCK_MARKER = "<!-- X_WINTER_DEFAULT_BLOCK_CONTENT -->"


def merge_default(content: str, default: str | None) -> str:
    """Splice trimmed default content into captured block output."""
    return content.replace(DEFAULT_BLOCK_MARKER, (default or "").strip())


@dataclass
class _OpenBlock:
    name: str
    parts: list[str] = field(default_factory=list)


class BlockRegistry:
    """Stack of open captures plus the closed blocks, keyed by name."""

    def __init__(self) -> None:
        self._blocks: dict[str, str] = {}
        self._stack: list[_OpenBlock] = []

    def start_block(self, name: str) -> None:
        """Open a capture; writes go to it until ``end_block``."""
        log.debug("Opening block %r (depth %d)", name, len(self._stack) + 1)
        self._stack.append(_OpenBlock(name))

    def write(self, text: str) -> None:
        """Append text to the innermost open capture."""
        if not self._stack:
            raise BlockNestingError()
        self._stack[-1].parts.append(str(text))

    def end_block(self, append: bool = True) -> None:
        """Close the innermost capture.

        Args:
            append: Append to an existing block of the same name instead of
                replacing it.
        """
        if not self._stack:
            raise BlockNestingError()

        block = self._stack.pop()
        contents = "".join(block.parts)
        if append:
            self.append(block.name, contents)
        else:
            self.set(block.name, contents)
        log.debug("Closed block %r (append=%s)", block.name, append)

    def discard(self) -> None:
        """Drop the innermost capture without storing it."""
        if not self._stack:
            raise BlockNestingError()
        block = self._stack.pop()
        log.debug("Discarded block %r", block.name)

    def set(self, name: str, content: str) -> None:
        self._blocks[name] = content

    def append(self, name: str, content: str) -> None:
        self._blocks[name] = self._blocks.get(name, "") + content

    def has(self, name: str) -> bool:
        return name in self._blocks

    def get(self, name: str, default: str | None = None) -> str | None:
        """Read a block without removing it."""
        return self._blocks.get(name, default)

    def placeholder(self, name: str, default: str | None = None) -> str | None:
        """Read a block and remove it. The result is stripped."""
        result = self._blocks.pop(name, default)
        if isinstance(result, str):
            result = result.strip()
        return result

    @property
    def depth(self) -> int:
        """Number of captures still open."""
        return len(self._stack)

    def names(self) -> list[str]:
        return list(self._blocks)

    def reset(self) -> None:
        self._blocks.clear()
        self._stack.clear()
