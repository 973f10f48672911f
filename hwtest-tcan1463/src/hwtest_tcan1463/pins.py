"""Pin model for the TCAN1463-Q1.

The device exposes fourteen pins. Each has a fixed direction capability and a
valid voltage interval; the interval is enforced on every write. Digital
states written with a voltage of exactly 0.0 are exempt from the interval
check, since a logic level does not need a literal voltage to be valid.

Example:
    >>> bank = PinBank()
    >>> bank.set(PinId.TXD, PinState.LOW)
    >>> bank.get(PinId.TXD).state
    <PinState.LOW: 'low'>
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from hwtest_tcan1463.errors import DomainRangeError, InvalidArgumentError, PinDirectionError
from hwtest_tcan1463.limits import DEFAULT_VCC_V, DEFAULT_VIO_V, DEFAULT_VSUP_V
from hwtest_tcan1463.types import PinId, PinState


@dataclass(frozen=True)
class PinInfo:
    """Static pin metadata.

    Attributes:
        pin: Pin identifier.
        is_input: Pin can be written by the caller.
        is_output: Pin is driven by the device.
        min_voltage: Lowest valid voltage.
        max_voltage: Highest valid voltage.
    """

    pin: PinId
    is_input: bool
    is_output: bool
    min_voltage: float
    max_voltage: float

    @property
    def is_bidirectional(self) -> bool:
        """Return True if the pin is both an input and an output."""
        return self.is_input and self.is_output

    def contains(self, voltage: float) -> bool:
        """Return True if voltage lies within the pin's interval."""
        return self.min_voltage <= voltage <= self.max_voltage


@dataclass(frozen=True)
class PinValue:
    """A pin reading.

    Attributes:
        pin: Pin identifier.
        state: Logical state.
        voltage: Voltage in volts.
    """

    pin: PinId
    state: PinState
    voltage: float

    @property
    def is_high(self) -> bool:
        """Return True if the pin reads as logic high."""
        return self.state is PinState.HIGH

    @property
    def is_low(self) -> bool:
        """Return True if the pin reads as logic low."""
        return self.state is PinState.LOW


@dataclass
class Pin:
    """Mutable per-pin record."""

    pin: PinId
    state: PinState
    voltage: float = 0.0


PIN_INFO: dict[PinId, PinInfo] = {
    info.pin: info
    for info in (
        PinInfo(PinId.TXD, True, False, 0.0, 5.5),
        PinInfo(PinId.RXD, False, True, 0.0, 5.5),
        PinInfo(PinId.EN, True, False, 0.0, 5.5),
        PinInfo(PinId.NSTB, True, False, 0.0, 5.5),
        PinInfo(PinId.NFAULT, False, True, 0.0, 5.5),
        PinInfo(PinId.WAKE, True, False, 0.0, 5.5),
        PinInfo(PinId.INH, False, True, 0.0, 42.0),
        PinInfo(PinId.INH_MASK, True, False, 0.0, 5.5),
        PinInfo(PinId.CANH, True, True, -27.0, 42.0),
        PinInfo(PinId.CANL, True, True, -27.0, 42.0),
        PinInfo(PinId.VSUP, True, False, 4.5, 42.0),
        PinInfo(PinId.VCC, True, False, 4.5, 5.5),
        PinInfo(PinId.VIO, True, False, 1.65, 5.5),
        PinInfo(PinId.GND, True, False, 0.0, 0.0),
    )
}
"""Direction and voltage interval of every pin."""

_POWER_ON_DEFAULTS: dict[PinId, tuple[PinState, float]] = {
    PinId.TXD: (PinState.HIGH, 0.0),
    PinId.RXD: (PinState.HIGH, 0.0),
    PinId.EN: (PinState.LOW, 0.0),
    PinId.NSTB: (PinState.LOW, 0.0),
    PinId.NFAULT: (PinState.HIGH, 0.0),
    PinId.WAKE: (PinState.LOW, 0.0),
    PinId.INH: (PinState.HIGH_IMPEDANCE, 0.0),
    PinId.INH_MASK: (PinState.LOW, 0.0),
    PinId.CANH: (PinState.HIGH_IMPEDANCE, 0.0),
    PinId.CANL: (PinState.HIGH_IMPEDANCE, 0.0),
    PinId.VSUP: (PinState.ANALOG, DEFAULT_VSUP_V),
    PinId.VCC: (PinState.ANALOG, DEFAULT_VCC_V),
    PinId.VIO: (PinState.ANALOG, DEFAULT_VIO_V),
    PinId.GND: (PinState.ANALOG, 0.0),
}

SUPPLY_PINS = (PinId.VSUP, PinId.VCC, PinId.VIO)


def resolve_pin(pin: PinId | str) -> PinId:
    """Convert a pin identifier or pin name to a PinId.

    Args:
        pin: PinId member, or its name or value (case-insensitive).

    Returns:
        The matching PinId.

    Raises:
        InvalidArgumentError: If the pin is unknown.
    """
    if isinstance(pin, PinId):
        return pin
    if isinstance(pin, str):
        key = pin.strip().lower()
        for candidate in PinId:
            if key in (candidate.value, candidate.name.lower()):
                return candidate
    raise InvalidArgumentError(f"Unknown pin: {pin!r}")


def resolve_pin_state(state: PinState | str) -> PinState:
    """Convert a pin state or state name to a PinState.

    Raises:
        InvalidArgumentError: If the state is unknown.
    """
    if isinstance(state, PinState):
        return state
    if isinstance(state, str):
        key = state.strip().lower()
        for candidate in PinState:
            if key in (candidate.value, candidate.name.lower()):
                return candidate
    raise InvalidArgumentError(f"Unknown pin state: {state!r}")


def _check_voltage_type(voltage: float) -> float:
    if isinstance(voltage, bool) or not isinstance(voltage, (int, float)):
        raise InvalidArgumentError(f"voltage must be a number, got {voltage!r}")
    return float(voltage)


class PinBank:
    """The device's fourteen pins.

    Caller writes go through set(), which enforces direction and voltage
    interval. The device model drives its outputs through drive(), which
    enforces only the interval.
    """

    def __init__(self) -> None:
        """Initialize all pins to their power-on defaults."""
        self._pins: dict[PinId, Pin] = {}
        self.reset()

    def reset(self) -> None:
        """Return every pin to its power-on default."""
        self._pins = {
            pin: Pin(pin, state, voltage) for pin, (state, voltage) in _POWER_ON_DEFAULTS.items()
        }

    @staticmethod
    def info(pin: PinId | str) -> PinInfo:
        """Return the metadata of a pin.

        Raises:
            InvalidArgumentError: If the pin is unknown.
        """
        return PIN_INFO[resolve_pin(pin)]

    def get(self, pin: PinId | str) -> PinValue:
        """Read a pin.

        Args:
            pin: Pin to read. Inputs and outputs can both be read.

        Returns:
            The pin's current state and voltage.

        Raises:
            InvalidArgumentError: If the pin is unknown.
        """
        record = self._pins[resolve_pin(pin)]
        return PinValue(record.pin, record.state, record.voltage)

    def values(self) -> dict[PinId, PinValue]:
        """Return readings of all pins keyed by pin."""
        return {pin: PinValue(pin, rec.state, rec.voltage) for pin, rec in self._pins.items()}

    def check_write(
        self, pin: PinId | str, state: PinState | str, voltage: float = 0.0
    ) -> tuple[PinId, PinState, float]:
        """Validate a caller write without applying it.

        Args:
            pin: Pin to write.
            state: Logical state.
            voltage: Voltage in volts.

        Returns:
            The normalized (pin, state, voltage) triple.

        Raises:
            InvalidArgumentError: If the pin, state or voltage is malformed.
            PinDirectionError: If the pin is output-only.
            DomainRangeError: If the voltage is outside the pin's interval.
        """
        pin_id = resolve_pin(pin)
        pin_state = resolve_pin_state(state)
        value = _check_voltage_type(voltage)
        if not PIN_INFO[pin_id].is_input:
            raise PinDirectionError(f"Pin {pin_id.name} is output-only")
        self._check_interval(pin_id, pin_state, value)
        return pin_id, pin_state, value

    def set(self, pin: PinId | str, state: PinState | str, voltage: float = 0.0) -> None:
        """Write an input pin.

        Raises:
            InvalidArgumentError: If the pin, state or voltage is malformed.
            PinDirectionError: If the pin is output-only.
            DomainRangeError: If the voltage is outside the pin's interval.
        """
        pin_id, pin_state, value = self.check_write(pin, state, voltage)
        self._store(pin_id, pin_state, value)

    def drive(self, pin: PinId, state: PinState, voltage: float = 0.0) -> None:
        """Drive a pin from the device side.

        Raises:
            DomainRangeError: If the voltage is outside the pin's interval.
        """
        self._check_interval(pin, state, voltage)
        self._store(pin, state, voltage)

    def write_supply(self, pin: PinId, voltage: float) -> None:
        """Set a supply rail voltage directly.

        Supply voltages come from configuration, which has its own ranges, so
        the pin's operating interval is not applied.
        """
        if pin not in SUPPLY_PINS:
            raise InvalidArgumentError(f"Pin {pin.name} is not a supply rail")
        self._store(pin, PinState.ANALOG, float(voltage))

    def load(self, values: Iterable[PinValue]) -> None:
        """Overwrite pin records from readings, without validation."""
        for value in values:
            self._store(value.pin, value.state, value.voltage)

    def is_state(self, pin: PinId, state: PinState) -> bool:
        """Return True if the pin currently has the given state."""
        return self._pins[pin].state is state

    def voltage(self, pin: PinId) -> float:
        """Return the voltage of a pin."""
        return self._pins[pin].voltage

    @staticmethod
    def _check_interval(pin: PinId, state: PinState, voltage: float) -> None:
        if state is not PinState.ANALOG and voltage == 0.0:
            return
        info = PIN_INFO[pin]
        if not info.contains(voltage):
            raise DomainRangeError(
                f"Voltage {voltage} V out of range for {pin.name} "
                f"[{info.min_voltage}, {info.max_voltage}]"
            )

    def _store(self, pin: PinId, state: PinState, voltage: float) -> None:
        record = self._pins[pin]
        record.state = state
        record.voltage = voltage
