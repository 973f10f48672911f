"""Simulator events and callback dispatch.

The simulator reports mode changes, fault flag changes, wake-up events, pin
changes and status flag changes to callbacks registered per event type.

Example:
    >>> def on_mode(event: ModeChangeEvent) -> None:
    ...     print(f"{event.old_mode.name} -> {event.new_mode.name}")
    >>> sim.register_callback(EventType.MODE_CHANGE, on_mode)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import ClassVar

from hwtest_tcan1463.errors import InvalidArgumentError
from hwtest_tcan1463.pins import PinValue
from hwtest_tcan1463.types import EventType, OperatingMode, PinId, StatusFlag

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulatorEvent:
    """Base class for simulator events.

    Attributes:
        timestamp_ns: Simulated time at which the event occurred.
    """

    event_type: ClassVar[EventType]

    timestamp_ns: int


@dataclass(frozen=True)
class ModeChangeEvent(SimulatorEvent):
    """The operating mode changed."""

    event_type: ClassVar[EventType] = EventType.MODE_CHANGE

    old_mode: OperatingMode
    new_mode: OperatingMode


@dataclass(frozen=True)
class FaultEvent(SimulatorEvent):
    """A fault flag was set or cleared."""

    event_type: ClassVar[EventType] = EventType.FAULT_DETECTED

    flag: StatusFlag
    active: bool


@dataclass(frozen=True)
class WakeUpEvent(SimulatorEvent):
    """A wake-up request was latched.

    Attributes:
        local: The wake-up came from the WAKE pin rather than the bus.
    """

    event_type: ClassVar[EventType] = EventType.WAKE_UP

    local: bool


@dataclass(frozen=True)
class PinChangeEvent(SimulatorEvent):
    """A pin's state or voltage changed."""

    event_type: ClassVar[EventType] = EventType.PIN_CHANGE

    pin: PinId
    old: PinValue
    new: PinValue


@dataclass(frozen=True)
class FlagChangeEvent(SimulatorEvent):
    """A status flag changed value."""

    event_type: ClassVar[EventType] = EventType.FLAG_CHANGE

    flag: StatusFlag
    value: bool


#: Type alias for event callback functions.
EventCallback = Callable[[SimulatorEvent], None]


class EventDispatcher:
    """Holds callback registrations and delivers events to them.

    Each event type has its own list of callbacks. A callback is identified by
    the callable itself, so registering it twice for the same event type has
    no further effect.
    """

    def __init__(self) -> None:
        self._callbacks: dict[EventType, list[EventCallback]] = {
            event_type: [] for event_type in EventType
        }

    def register(self, event_type: EventType, callback: EventCallback) -> None:
        """Register a callback for an event type.

        Args:
            event_type: Event type to subscribe to.
            callback: Function called with each event of that type.

        Raises:
            InvalidArgumentError: If event_type is not an EventType or callback
                is not callable.
        """
        callbacks = self._callbacks_for(event_type)
        if not callable(callback):
            raise InvalidArgumentError(f"callback must be callable, got {callback!r}")
        if not any(existing is callback for existing in callbacks):
            callbacks.append(callback)

    def unregister(self, event_type: EventType, callback: EventCallback) -> bool:
        """Remove a callback registration.

        Returns:
            True if the callback was registered for event_type.

        Raises:
            InvalidArgumentError: If event_type is not an EventType.
        """
        callbacks = self._callbacks_for(event_type)
        for index, existing in enumerate(callbacks):
            if existing is callback:
                del callbacks[index]
                return True
        return False

    def count(self, event_type: EventType) -> int:
        """Return the number of callbacks registered for event_type."""
        return len(self._callbacks_for(event_type))

    def has_listeners(self) -> bool:
        """Return True if any callback is registered."""
        return any(self._callbacks.values())

    def dispatch(self, event: SimulatorEvent) -> None:
        """Deliver an event to every callback registered for its type.

        Exceptions raised by a callback are logged and do not prevent delivery
        to the remaining callbacks.
        """
        for callback in list(self._callbacks[event.event_type]):
            try:
                callback(event)
            except Exception:  # pylint: disable=broad-exception-caught
                logger.exception("Error in %s callback", event.event_type.value)

    def _callbacks_for(self, event_type: EventType) -> list[EventCallback]:
        if not isinstance(event_type, EventType):
            raise InvalidArgumentError(f"Unknown event type: {event_type!r}")
        return self._callbacks[event_type]
