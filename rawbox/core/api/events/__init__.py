"""Event emitter using Observer Pattern."""
from .event_emitter import EventEmitter, AUTH_INVALIDATED

__all__ = [
    'EventEmitter',
    'AUTH_INVALIDATED',
]
