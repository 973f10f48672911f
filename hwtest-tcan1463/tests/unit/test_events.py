"""Unit tests for event dispatch."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest

from hwtest_tcan1463.errors import InvalidArgumentError
from hwtest_tcan1463.events import (
    EventDispatcher,
    FaultEvent,
    ModeChangeEvent,
    WakeUpEvent,
)
from hwtest_tcan1463.types import EventType, OperatingMode, StatusFlag


def _mode_event(timestamp_ns: int = 100) -> ModeChangeEvent:
    """Create a representative mode change event."""
    return ModeChangeEvent(timestamp_ns, OperatingMode.OFF, OperatingMode.NORMAL)


class TestEventTypes:
    """Tests for the event dataclasses."""

    def test_event_type_per_class(self) -> None:
        """Each event class carries its event type."""
        assert _mode_event().event_type is EventType.MODE_CHANGE
        assert FaultEvent(0, StatusFlag.TSD, True).event_type is EventType.FAULT_DETECTED
        assert WakeUpEvent(0, local=True).event_type is EventType.WAKE_UP

    def test_events_are_frozen(self) -> None:
        """Events cannot be modified after creation."""
        event = _mode_event()
        with pytest.raises(AttributeError):
            event.timestamp_ns = 5  # type: ignore[misc]


class TestEventDispatcher:
    """Tests for EventDispatcher."""

    def test_dispatch_to_registered(self) -> None:
        """Callbacks receive events of their type only."""
        dispatcher = EventDispatcher()
        on_mode = MagicMock()
        on_wake = MagicMock()
        dispatcher.register(EventType.MODE_CHANGE, on_mode)
        dispatcher.register(EventType.WAKE_UP, on_wake)

        event = _mode_event()
        dispatcher.dispatch(event)

        on_mode.assert_called_once_with(event)
        on_wake.assert_not_called()

    def test_register_is_idempotent(self) -> None:
        """Registering the same callable twice keeps one registration."""
        dispatcher = EventDispatcher()
        callback = MagicMock()
        dispatcher.register(EventType.MODE_CHANGE, callback)
        dispatcher.register(EventType.MODE_CHANGE, callback)
        assert dispatcher.count(EventType.MODE_CHANGE) == 1
        dispatcher.dispatch(_mode_event())
        assert callback.call_count == 1

    def test_same_callback_for_several_types(self) -> None:
        """One callable may be registered for several event types."""
        dispatcher = EventDispatcher()
        callback = MagicMock()
        dispatcher.register(EventType.MODE_CHANGE, callback)
        dispatcher.register(EventType.WAKE_UP, callback)
        dispatcher.dispatch(_mode_event())
        dispatcher.dispatch(WakeUpEvent(200, local=False))
        assert callback.call_count == 2

    def test_unregister(self) -> None:
        """unregister() reports whether the callback was registered."""
        dispatcher = EventDispatcher()
        callback = MagicMock()
        assert not dispatcher.unregister(EventType.MODE_CHANGE, callback)
        dispatcher.register(EventType.MODE_CHANGE, callback)
        assert dispatcher.unregister(EventType.MODE_CHANGE, callback)
        assert not dispatcher.has_listeners()
        dispatcher.dispatch(_mode_event())
        callback.assert_not_called()

    def test_has_listeners(self) -> None:
        """has_listeners() is True once any callback is registered."""
        dispatcher = EventDispatcher()
        assert not dispatcher.has_listeners()
        dispatcher.register(EventType.PIN_CHANGE, MagicMock())
        assert dispatcher.has_listeners()

    def test_invalid_event_type(self) -> None:
        """Unknown event types are rejected."""
        dispatcher = EventDispatcher()
        with pytest.raises(InvalidArgumentError, match="Unknown event type"):
            dispatcher.register("mode_change", MagicMock())  # type: ignore[arg-type]
        with pytest.raises(InvalidArgumentError):
            dispatcher.unregister(7, MagicMock())  # type: ignore[arg-type]

    def test_callback_must_be_callable(self) -> None:
        """Non-callable callbacks are rejected."""
        dispatcher = EventDispatcher()
        with pytest.raises(InvalidArgumentError, match="callable"):
            dispatcher.register(EventType.MODE_CHANGE, None)  # type: ignore[arg-type]

    def test_callback_error_logged_and_isolated(self, caplog: pytest.LogCaptureFixture) -> None:
        """A failing callback is logged and later callbacks still run."""
        dispatcher = EventDispatcher()
        failing = MagicMock(side_effect=RuntimeError("boom"))
        healthy = MagicMock()
        dispatcher.register(EventType.MODE_CHANGE, failing)
        dispatcher.register(EventType.MODE_CHANGE, healthy)

        with caplog.at_level(logging.ERROR, logger="hwtest_tcan1463.events"):
            dispatcher.dispatch(_mode_event())

        healthy.assert_called_once()
        assert "Error in mode_change callback" in caplog.text

    def test_callback_may_unregister_itself(self) -> None:
        """A callback removing itself during dispatch does not skip others."""
        dispatcher = EventDispatcher()
        second = MagicMock()

        def first(_event: object) -> None:
            dispatcher.unregister(EventType.MODE_CHANGE, first)

        dispatcher.register(EventType.MODE_CHANGE, first)
        dispatcher.register(EventType.MODE_CHANGE, second)
        dispatcher.dispatch(_mode_event())

        second.assert_called_once()
        assert dispatcher.count(EventType.MODE_CHANGE) == 1
