"""Event emitter implementation using Observer Pattern."""
from typing import Callable, Dict, List, Optional

from ...logging import get_logger

AUTH_INVALIDATED = 'auth-invalidated'


class EventEmitter:
    """Event emitter using Observer Pattern."""

    def __init__(self, logger_name: str = 'rawbox.events'):
        """Initializes event emitter."""
        self._events: Dict[str, List[Callable]] = {}
        self._logger = get_logger(logger_name)

    def on(self, event: str, callback: Callable) -> 'EventEmitter':
        """Registers an event handler."""
        if event not in self._events:
            self._events[event] = []
        self._events[event].append(callback)
        return self

    def emit(self, event: str, *args, **kwargs) -> int:
        """
        Emits an event to every registered handler.

        A handler that raises is logged and skipped; the remaining
        handlers still run. Returns the number of handlers called.
        """
        callbacks = list(self._events.get(event, ()))
        for callback in callbacks:
            try:
                callback(*args, **kwargs)
            except Exception:
                self._logger.exception(f"Handler for '{event}' failed")
        return len(callbacks)

    def off(self, event: str, callback: Optional[Callable] = None) -> 'EventEmitter':
        """Removes an event handler."""
        if event not in self._events:
            return self

        if callback is None:
            del self._events[event]
        else:
            self._events[event] = [cb for cb in self._events[event] if cb != callback]

        return self

    def listener_count(self, event: str) -> int:
        """Number of handlers registered for an event."""
        return len(self._events.get(event, ()))
