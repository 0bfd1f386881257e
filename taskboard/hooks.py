"""
Listener registry — how UI consumers observe a store.

Stores fire events; listeners re-render. Nothing inside store.py knows or
cares what happens downstream. Listeners are plain callables because
local reorders during a drag are synchronous.
"""

from __future__ import annotations

from typing import Any, Callable

from loguru import logger


Listener = Callable[[Any], None]

EVENTS = ("on_change", "on_error")


class HookRegistry:
    """Maps event names to lists of callables."""

    def __init__(self) -> None:
        self._hooks: dict[str, list[Listener]] = {event: [] for event in EVENTS}

    def register(self, event: str, hook: Listener) -> Callable[[], None]:
        """Add a listener; returns a function that removes it again."""
        if event not in self._hooks:
            raise ValueError(f"Unknown hook event: {event}")
        self._hooks[event].append(hook)

        def unregister() -> None:
            if hook in self._hooks[event]:
                self._hooks[event].remove(hook)

        return unregister

    def fire(self, event: str, source: Any) -> None:
        for hook in list(self._hooks.get(event, [])):
            try:
                hook(source)
            except Exception as e:
                logger.error("Hook {} failed: {}", event, e)

    def clear(self) -> None:
        for hooks in self._hooks.values():
            hooks.clear()


def log_change(source: Any) -> None:
    """Built-in listener: logs every state change."""
    logger.debug("State changed: {!r}", source)
