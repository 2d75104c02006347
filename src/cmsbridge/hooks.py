"""Interceptors for rendered layout blocks.

Observers registered here may replace a block's content right before the
layout outputs it::

    hooks = BlockRenderHooks()

    @hooks.listen
    def brand_footer(name, content):
        if name == "footer":
            return "<footer>ACME</footer>"
        return None
"""

from __future__ import annotations

import logging
from collections.abc import Callable

log = logging.getLogger(__name__)

BlockInterceptor = Callable[[str, str], "str | None"]


class BlockRenderHooks:
    """Ordered list of ``block.render`` interceptors.

    The first interceptor returning something other than ``None`` wins and
    the remaining ones are skipped.
    """

    event = "block.render"

    def __init__(self, interceptors: list[BlockInterceptor] | None = None):
        self._interceptors: list[BlockInterceptor] = list(interceptors or [])

    def listen(self, callback: BlockInterceptor) -> BlockInterceptor:
        """Register an interceptor. Returns it so this works as a decorator."""
        self._interceptors.append(callback)
        return callback

    def forget(self, callback: BlockInterceptor) -> None:
        self._interceptors.remove(callback)

    def fire(self, name: str, content: str) -> str | None:
        """Run interceptors in order, stopping at the first response."""
        for interceptor in self._interceptors:
            response = interceptor(name, content)
            if response is not None:
                log.debug(
                    "%s for %r answered by %s",
                    self.event,
                    name,
                    getattr(interceptor, "__name__", repr(interceptor)),
                )
                return response
        return None

    def __len__(self) -> int:
        return len(self._interceptors)
