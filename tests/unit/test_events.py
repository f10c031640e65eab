"""Tests for the event emitter."""
from unittest.mock import Mock

from rawbox.core.api.events import AUTH_INVALIDATED, EventEmitter


class TestEventEmitter:
    """Test suite for EventEmitter."""

    def test_emit_calls_handlers(self):
        emitter = EventEmitter()
        handler = Mock()
        emitter.on(AUTH_INVALIDATED, handler)

        emitter.emit(AUTH_INVALIDATED, "Session expired")

        handler.assert_called_once_with("Session expired")

    def test_emit_without_handlers(self):
        """Test emitting with zero listeners is fine."""
        assert EventEmitter().emit(AUTH_INVALIDATED, "msg") == 0

    def test_on_returns_self(self):
        emitter = EventEmitter()

        assert emitter.on('x', Mock()) is emitter

    def test_off_single_handler(self):
        emitter = EventEmitter()
        kept, removed = Mock(), Mock()
        emitter.on('x', kept).on('x', removed)

        emitter.off('x', removed)
        emitter.emit('x')

        kept.assert_called_once()
        removed.assert_not_called()

    def test_off_all_handlers(self):
        emitter = EventEmitter()
        emitter.on('x', Mock()).on('x', Mock())

        emitter.off('x')

        assert emitter.listener_count('x') == 0

    def test_failing_handler_does_not_stop_delivery(self):
        """Test one raising handler does not block the others."""
        emitter = EventEmitter()
        failing = Mock(side_effect=RuntimeError("boom"))
        after = Mock()
        emitter.on('x', failing).on('x', after)

        called = emitter.emit('x', 1)

        assert called == 2
        after.assert_called_once_with(1)

    def test_handler_removing_itself(self):
        emitter = EventEmitter()
        other = Mock()

        def once(*args):
            emitter.off('x', once)

        emitter.on('x', once).on('x', other)
        emitter.emit('x')
        emitter.emit('x')

        assert other.call_count == 2
        assert emitter.listener_count('x') == 1
