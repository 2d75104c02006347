"""Flash messages for the current request."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class FlashBag:
    """Messages grouped by type (success, error, warning, info, ...)."""

    messages: list[tuple[str, str]] = field(default_factory=list)

    def add(self, type: str, message: str) -> None:
        self.messages.append((type, message))

    def success(self, message: str) -> None:
        self.add("success", message)

    def error(self, message: str) -> None:
        self.add("error", message)

    def warning(self, message: str) -> None:
        self.add("warning", message)

    def info(self, message: str) -> None:
        self.add("info", message)

    def all(self, type: str | None = None) -> list[tuple[str, str]]:
        """Messages in insertion order, optionally of one type."""
        if type is None:
            return list(self.messages)
        return [(t, m) for t, m in self.messages if t == type]

    def purge(self) -> None:
        self.messages.clear()
