"""Event hooks shared by the engine and the tester."""

import asyncio
import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class EventEmitter:
    """Minimal named-event dispatcher accepting sync and async callbacks."""

    def __init__(self):
        self._listeners: Dict[str, List[Callable]] = {}

    def on(self, event: str, callback: Callable) -> Callable:
        """Register a callback for an event.

        Args:
            event: Event name, e.g. "url.changed" or "fail"
            callback: Function called with the event arguments

        Returns:
            The callback, so this can be used as a decorator
        """
        self._listeners.setdefault(event, []).append(callback)
        return callback

    def off(self, event: str, callback: Callable) -> None:
        """Remove a previously registered callback."""
        listeners = self._listeners.get(event, [])
        if callback in listeners:
            listeners.remove(callback)

    def listeners(self, event: str) -> List[Callable]:
        return list(self._listeners.get(event, []))

    def copy_listeners_to(self, other: "EventEmitter") -> None:
        """Register every listener of this emitter on another one."""
        for event, callbacks in self._listeners.items():
            for callback in callbacks:
                other.on(event, callback)

    async def emit(self, event: str, *args: Any) -> None:
        """Call every listener of an event in registration order."""
        for callback in self.listeners(event):
            result = callback(*args)
            if asyncio.iscoroutine(result):
                await result
