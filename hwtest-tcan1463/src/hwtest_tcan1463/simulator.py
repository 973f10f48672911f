"""TCAN1463-Q1 transceiver simulator.

Tcan1463Simulator owns the clock, the pins and one instance of every device
component, and advances them together in fixed-size ticks chosen by the
caller. Each tick runs the components in this order:

1. Sample the input pins and supply rails.
2. Power monitor.
3. Wake handler, using the bus state left on the pins by the previous tick.
4. Mode controller; entering Normal clears the wake flags and, unless coming
   straight from Off, the power-on flag.
5. CAN transceiver state machine and bus bias.
6. TXD clamp check if Normal mode was just entered.
7. INH controller.
8. Drive CANH/CANL, then decode the bus from the driven levels.
9. Apply or schedule the RXD update.
10. Fault detector.
11. Drive RXD, nFAULT and INH.

Example:
    >>> sim = Tcan1463Simulator()
    >>> sim.set_pin(PinId.EN, PinState.HIGH)
    >>> sim.set_pin(PinId.NSTB, PinState.HIGH)
    >>> sim.step(200_000)
    >>> sim.mode
    <OperatingMode.NORMAL: 'normal'>
"""

from __future__ import annotations

import copy
import dataclasses
import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from hwtest_tcan1463.bias import BusBiasController
from hwtest_tcan1463.config import BusLoad, SimulatorConfig, SupplyVoltages, TimingParameters
from hwtest_tcan1463.errors import InvalidArgumentError, InvalidOperationError, SnapshotError
from hwtest_tcan1463.events import (
    EventCallback,
    EventDispatcher,
    FaultEvent,
    FlagChangeEvent,
    ModeChangeEvent,
    PinChangeEvent,
    WakeUpEvent,
)
from hwtest_tcan1463.faults import FaultDetector
from hwtest_tcan1463.inhibit import InhibitController
from hwtest_tcan1463.limits import RUN_UNTIL_STEP_NS
from hwtest_tcan1463.mode import ModeController
from hwtest_tcan1463.pins import PinBank, PinInfo, PinValue
from hwtest_tcan1463.power import PowerMonitor
from hwtest_tcan1463.snapshot import SNAPSHOT_VERSION, SimulatorSnapshot
from hwtest_tcan1463.timing import TimingEngine
from hwtest_tcan1463.transceiver import CanTransceiver, decode_bus_state
from hwtest_tcan1463.types import (
    BiasState,
    BusState,
    EventType,
    OperatingMode,
    PinId,
    PinState,
    StatusFlag,
    TransceiverState,
)
from hwtest_tcan1463.wake import WakeHandler

logger = logging.getLogger(__name__)

#: Predicate polled by run_until().
Condition = Callable[["Tcan1463Simulator"], bool]


@dataclass(frozen=True)
class StatusFlags:
    """The device's twelve status flags."""

    pwron: bool
    wakerq: bool
    wakesr: bool
    uvsup: bool
    uvcc: bool
    uvio: bool
    cbf: bool
    txdclp: bool
    txddto: bool
    txdrxd: bool
    candom: bool
    tsd: bool

    def __getitem__(self, flag: StatusFlag) -> bool:
        return bool(getattr(self, flag.value))

    def as_dict(self) -> dict[StatusFlag, bool]:
        """Return the flags keyed by StatusFlag."""
        return {flag: self[flag] for flag in StatusFlag}

    @property
    def any_fault(self) -> bool:
        """Return True if any of the six fault flags is set."""
        return self.cbf or self.txdclp or self.txddto or self.txdrxd or self.candom or self.tsd


@dataclass(frozen=True)
class _Observation:
    mode: OperatingMode
    flags: dict[StatusFlag, bool]
    pins: dict[PinId, PinValue]


class Tcan1463Simulator:
    """Cycle-based behavioral model of the TCAN1463-Q1 CAN transceiver.

    The simulator starts unpowered in Off mode with the supply rails at their
    configured voltages; the first step registers the power-on event.

    Args:
        config: Configuration; defaults to SimulatorConfig().

    Raises:
        InvalidArgumentError: If config is not a SimulatorConfig.
        DomainRangeError: If a configuration value is out of range.
    """

    def __init__(self, config: SimulatorConfig | None = None) -> None:
        if config is None:
            config = SimulatorConfig()
        if not isinstance(config, SimulatorConfig):
            raise InvalidArgumentError(f"config must be a SimulatorConfig, got {config!r}")
        config.validate()

        self._initial_config = config
        self._config = config
        self._events = EventDispatcher()
        self._closed = False

        self._clock = TimingEngine()
        self._pins = PinBank()
        self._power = PowerMonitor()
        self._mode = ModeController()
        self._transceiver = CanTransceiver()
        self._faults = FaultDetector()
        self._wake = WakeHandler()
        self._bias = BusBiasController()
        self._inhibit = InhibitController()
        self._init_state(config)
        logger.info("TCAN1463 simulator created")

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        """Return True once close() has been called."""
        return self._closed

    def reset(self) -> None:
        """Return to power-on defaults with the construction configuration.

        Registered callbacks are kept.
        """
        self._check_open()
        with self._observed():
            self._init_state(self._initial_config)
        logger.info("TCAN1463 simulator reset")

    def close(self) -> None:
        """Release the simulator. Later calls raise InvalidOperationError."""
        if not self._closed:
            self._closed = True
            logger.info("TCAN1463 simulator closed")

    def __enter__(self) -> Tcan1463Simulator:
        """Enter context manager."""
        self._check_open()
        return self

    def __exit__(self, *args: Any) -> None:
        """Exit context manager, closing the simulator."""
        self.close()

    def _check_open(self) -> None:
        if self._closed:
            raise InvalidOperationError("Simulator is closed")

    def _init_state(self, config: SimulatorConfig) -> None:
        self._config = config
        self._clock.reset()
        self._pins.reset()
        for component in (
            self._power,
            self._mode,
            self._transceiver,
            self._faults,
            self._wake,
            self._bias,
            self._inhibit,
        ):
            component.reset()
        self._apply_timing(config.timing)
        self._write_supply(config.supply)

    # -------------------------------------------------------------------------
    # Components
    # -------------------------------------------------------------------------

    @property
    def power_monitor(self) -> PowerMonitor:
        """Return the power monitor."""
        self._check_open()
        return self._power

    @property
    def mode_controller(self) -> ModeController:
        """Return the mode controller."""
        self._check_open()
        return self._mode

    @property
    def transceiver(self) -> CanTransceiver:
        """Return the CAN transceiver."""
        self._check_open()
        return self._transceiver

    @property
    def fault_detector(self) -> FaultDetector:
        """Return the fault detector."""
        self._check_open()
        return self._faults

    @property
    def wake_handler(self) -> WakeHandler:
        """Return the wake handler."""
        self._check_open()
        return self._wake

    @property
    def bias_controller(self) -> BusBiasController:
        """Return the bus bias controller."""
        self._check_open()
        return self._bias

    @property
    def inhibit_controller(self) -> InhibitController:
        """Return the INH controller."""
        self._check_open()
        return self._inhibit

    # -------------------------------------------------------------------------
    # Pins
    # -------------------------------------------------------------------------

    def set_pin(self, pin: PinId | str, state: PinState | str, voltage: float = 0.0) -> None:
        """Write an input pin.

        Args:
            pin: Pin to write.
            state: Logical state.
            voltage: Voltage in volts; may be left at 0.0 for digital states.

        Raises:
            InvalidArgumentError: If the pin, state or voltage is malformed.
            PinDirectionError: If the pin is output-only.
            DomainRangeError: If the voltage is outside the pin's interval.
        """
        self._check_open()
        pin_id, pin_state, value = self._pins.check_write(pin, state, voltage)
        with self._observed():
            self._pins.set(pin_id, pin_state, value)

    def set_pins(self, values: Mapping[PinId | str, Any]) -> None:
        """Write several input pins at once.

        Every write is validated before any pin changes.

        Args:
            values: Mapping of pin to a state, or to a (state, voltage) pair.

        Raises:
            InvalidArgumentError: If a pin, state or voltage is malformed.
            PinDirectionError: If a pin is output-only.
            DomainRangeError: If a voltage is outside its pin's interval.
        """
        self._check_open()
        if not isinstance(values, Mapping):
            raise InvalidArgumentError("values must be a mapping of pin to state")
        writes = []
        for pin, value in values.items():
            if isinstance(value, tuple):
                if len(value) != 2:
                    raise InvalidArgumentError(f"Pin write for {pin!r} must be (state, voltage)")
                state, voltage = value
            else:
                state, voltage = value, 0.0
            writes.append(self._pins.check_write(pin, state, voltage))
        with self._observed():
            for pin_id, pin_state, voltage in writes:
                self._pins.set(pin_id, pin_state, voltage)

    def get_pin(self, pin: PinId | str) -> PinValue:
        """Read a pin.

        Raises:
            InvalidArgumentError: If the pin is unknown.
        """
        self._check_open()
        return self._pins.get(pin)

    def get_pins(self, pins: Iterable[PinId | str] | None = None) -> dict[PinId, PinValue]:
        """Read several pins.

        Args:
            pins: Pins to read; all pins if None.

        Returns:
            Readings keyed by pin.
        """
        self._check_open()
        if pins is None:
            return self._pins.values()
        readings = [self._pins.get(pin) for pin in pins]
        return {reading.pin: reading for reading in readings}

    def get_pin_info(self, pin: PinId | str) -> PinInfo:
        """Return a pin's direction and voltage interval."""
        self._check_open()
        return self._pins.info(pin)

    # -------------------------------------------------------------------------
    # Time
    # -------------------------------------------------------------------------

    @property
    def now_ns(self) -> int:
        """Return the simulated time in nanoseconds."""
        self._check_open()
        return self._clock.now()

    def step(self, delta_ns: int) -> None:
        """Advance the simulation by one tick.

        Args:
            delta_ns: Tick length in nanoseconds.

        Raises:
            InvalidArgumentError: If delta_ns is negative or not an integer.
        """
        self._check_open()
        with self._observed():
            self._tick(delta_ns)

    def run_until(
        self, condition: Condition, timeout_ns: int, step_ns: int = RUN_UNTIL_STEP_NS
    ) -> bool:
        """Step until a condition holds or a timeout elapses.

        The condition is checked before every step and once more after the
        timeout is reached.

        Args:
            condition: Called with the simulator; stepping stops when it
                returns True.
            timeout_ns: Maximum simulated time to run.
            step_ns: Tick length.

        Returns:
            True if the condition was met.

        Raises:
            InvalidArgumentError: If condition is not callable, timeout_ns is
                negative or step_ns is not positive.
        """
        self._check_open()
        if not callable(condition):
            raise InvalidArgumentError("condition must be callable")
        if isinstance(timeout_ns, bool) or not isinstance(timeout_ns, int) or timeout_ns < 0:
            raise InvalidArgumentError(f"timeout_ns must be a non-negative integer, got {timeout_ns!r}")
        if isinstance(step_ns, bool) or not isinstance(step_ns, int) or step_ns <= 0:
            raise InvalidArgumentError(f"step_ns must be a positive integer, got {step_ns!r}")

        start = self._clock.now()
        while not condition(self):
            if self._clock.now() - start >= timeout_ns:
                return False
            self.step(step_ns)
        return True

    # -------------------------------------------------------------------------
    # State queries
    # -------------------------------------------------------------------------

    @property
    def mode(self) -> OperatingMode:
        """Return the current operating mode."""
        self._check_open()
        return self._mode.mode

    @property
    def time_in_mode_ns(self) -> int:
        """Return the time spent in the current mode."""
        self._check_open()
        return self._mode.time_in_mode(self._clock.now())

    @property
    def transceiver_state(self) -> TransceiverState:
        """Return the internal CAN transceiver state."""
        self._check_open()
        return self._transceiver.state.state

    @property
    def bus_state(self) -> BusState:
        """Return the bus state decoded from the CANH/CANL pins."""
        self._check_open()
        return decode_bus_state(
            self._pins.voltage(PinId.CANH) - self._pins.voltage(PinId.CANL)
        )

    @property
    def driver_enabled(self) -> bool:
        """Return True if the bus driver is enabled and not disabled by a fault."""
        self._check_open()
        return self._transceiver.state.driver_enabled and not self._faults.should_disable_driver()

    def get_flags(self) -> StatusFlags:
        """Return all twelve status flags."""
        self._check_open()
        return self._flags()

    def _flags(self) -> StatusFlags:
        power = self._power.state
        wake = self._wake.state
        faults = self._faults.state
        return StatusFlags(
            pwron=power.pwron,
            wakerq=wake.wake_request,
            wakesr=wake.wake_source,
            uvsup=power.uvsup,
            uvcc=power.uvcc,
            uvio=power.uvio,
            cbf=faults.cbf,
            txdclp=faults.txdclp,
            txddto=faults.txddto,
            txdrxd=faults.txdrxd,
            candom=faults.candom,
            tsd=faults.tsd,
        )

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    @property
    def config(self) -> SimulatorConfig:
        """Return the configuration in effect."""
        self._check_open()
        return self._config

    def configure(
        self,
        vsup: float,
        vcc: float,
        vio: float,
        temperature: float,
        resistance_ohm: float,
        capacitance_f: float,
    ) -> None:
        """Set supply voltages, junction temperature and bus load together.

        Nothing changes unless every value is valid.

        Raises:
            InvalidArgumentError: If a value is not a number.
            DomainRangeError: If a value is out of range.
        """
        self._check_open()
        self._apply_config(
            dataclasses.replace(
                self._config,
                junction_temperature_c=temperature,
                bus_load=BusLoad(resistance_ohm, capacitance_f),
                supply=SupplyVoltages(vsup, vcc, vio),
            ),
            write_supply=True,
        )

    @property
    def supply_voltages(self) -> SupplyVoltages:
        """Return the current supply rail voltages."""
        self._check_open()
        return SupplyVoltages(
            vsup=self._pins.voltage(PinId.VSUP),
            vcc=self._pins.voltage(PinId.VCC),
            vio=self._pins.voltage(PinId.VIO),
        )

    def set_supply_voltages(self, vsup: float, vcc: float, vio: float) -> None:
        """Set the supply rail voltages.

        The rails take effect at the next step. Values below the undervoltage
        thresholds are allowed so that undervoltage can be simulated.

        Raises:
            InvalidArgumentError: If a value is not a number.
            DomainRangeError: If VSUP is outside 0-40 V, VCC outside 0-6 V or
                VIO outside 0-5.5 V.
        """
        self._check_open()
        self._apply_config(
            dataclasses.replace(self._config, supply=SupplyVoltages(vsup, vcc, vio)),
            write_supply=True,
        )

    @property
    def junction_temperature(self) -> float:
        """Return the junction temperature in degrees Celsius."""
        self._check_open()
        return self._config.junction_temperature_c

    def set_junction_temperature(self, temperature: float) -> None:
        """Set the junction temperature (-40 to 200 C)."""
        self._check_open()
        self._apply_config(dataclasses.replace(self._config, junction_temperature_c=temperature))

    @property
    def bus_load(self) -> BusLoad:
        """Return the bus termination load."""
        self._check_open()
        return self._config.bus_load

    def set_bus_load(self, resistance_ohm: float, capacitance_f: float) -> None:
        """Set the bus termination load (both values non-negative)."""
        self._check_open()
        self._apply_config(
            dataclasses.replace(self._config, bus_load=BusLoad(resistance_ohm, capacitance_f))
        )

    @property
    def timing_parameters(self) -> TimingParameters:
        """Return the timing parameters in effect."""
        self._check_open()
        return self._config.timing

    def set_timing_parameters(self, params: TimingParameters) -> None:
        """Replace the timing parameters.

        Raises:
            InvalidArgumentError: If params is not a TimingParameters.
            DomainRangeError: If a parameter is outside its datasheet range.
        """
        self._check_open()
        if not isinstance(params, TimingParameters):
            raise InvalidArgumentError(f"params must be TimingParameters, got {params!r}")
        self._apply_config(dataclasses.replace(self._config, timing=params))

    def _apply_config(self, config: SimulatorConfig, write_supply: bool = False) -> None:
        config.validate()
        with self._observed():
            self._config = config
            self._apply_timing(config.timing)
            if write_supply:
                self._write_supply(config.supply)
        logger.info("Configuration updated: %s", config.to_dict())

    def _apply_timing(self, params: TimingParameters) -> None:
        self._power.filter_time_ns = params.tuv_ns
        self._mode.silence_time_ns = params.tsilence_ns
        self._transceiver.silence_time_ns = params.tsilence_ns
        self._bias.silence_time_ns = params.tsilence_ns
        self._faults.txd_timeout_ns = params.ttxddto_ns
        self._faults.bus_timeout_ns = params.tbusdom_ns
        self._wake.filter_time_ns = params.twk_filter_ns
        self._wake.timeout_ns = params.twk_timeout_ns

    def _write_supply(self, supply: SupplyVoltages) -> None:
        self._pins.write_supply(PinId.VSUP, supply.vsup)
        self._pins.write_supply(PinId.VCC, supply.vcc)
        self._pins.write_supply(PinId.VIO, supply.vio)

    # -------------------------------------------------------------------------
    # Snapshot
    # -------------------------------------------------------------------------

    def snapshot(self) -> SimulatorSnapshot:
        """Capture the complete simulator state."""
        self._check_open()
        snap = SimulatorSnapshot(
            version=SNAPSHOT_VERSION,
            clock=copy.deepcopy(self._clock),
            pins=tuple(self._pins.values().values()),
            power=copy.deepcopy(self._power.state),
            mode=copy.deepcopy(self._mode.state),
            transceiver=copy.deepcopy(self._transceiver.state),
            faults=copy.deepcopy(self._faults.state),
            wake=copy.deepcopy(self._wake.state),
            bias=copy.deepcopy(self._bias.state),
            inhibit=copy.deepcopy(self._inhibit.state),
            config=self._config,
        )
        logger.debug("Snapshot taken at %d ns", snap.timestamp_ns)
        return snap

    def restore(self, snapshot: SimulatorSnapshot) -> None:
        """Restore state captured by snapshot().

        Registered callbacks are kept.

        Raises:
            InvalidArgumentError: If snapshot is not a SimulatorSnapshot.
            SnapshotError: If the snapshot version or pin set does not match.
        """
        self._check_open()
        if not isinstance(snapshot, SimulatorSnapshot):
            raise InvalidArgumentError(f"Expected a SimulatorSnapshot, got {snapshot!r}")
        if snapshot.version != SNAPSHOT_VERSION:
            raise SnapshotError(
                f"Snapshot version {snapshot.version} does not match {SNAPSHOT_VERSION}"
            )
        snapshot_pins = [value.pin for value in snapshot.pins]
        if len(snapshot_pins) != len(PinId) or set(snapshot_pins) != set(PinId):
            raise SnapshotError("Snapshot pin set does not match the simulator")

        with self._observed():
            self._clock = snapshot.copy_state("clock")
            self._pins.load(snapshot.pins)
            self._power.state = snapshot.copy_state("power")
            self._mode.state = snapshot.copy_state("mode")
            self._transceiver.state = snapshot.copy_state("transceiver")
            self._faults.state = snapshot.copy_state("faults")
            self._wake.state = snapshot.copy_state("wake")
            self._bias.state = snapshot.copy_state("bias")
            self._inhibit.state = snapshot.copy_state("inhibit")
            self._config = snapshot.config
            self._apply_timing(snapshot.config.timing)
        logger.debug("Snapshot from %d ns restored", snapshot.timestamp_ns)

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def register_callback(self, event_type: EventType, callback: EventCallback) -> None:
        """Register a callback for an event type.

        Raises:
            InvalidArgumentError: If event_type is unknown or callback is not
                callable.
        """
        self._check_open()
        self._events.register(event_type, callback)

    def unregister_callback(self, event_type: EventType, callback: EventCallback) -> bool:
        """Remove a callback registration.

        Returns:
            True if the callback was registered for event_type.
        """
        self._check_open()
        return self._events.unregister(event_type, callback)

    def _observe(self) -> _Observation:
        return _Observation(
            mode=self._mode.mode,
            flags=self._flags().as_dict(),
            pins=self._pins.values(),
        )

    @contextmanager
    def _observed(self) -> Iterator[None]:
        before = self._observe() if self._events.has_listeners() else None
        yield
        if before is not None:
            self._emit_changes(before)

    def _emit_changes(self, before: _Observation) -> None:
        after = self._observe()
        now = self._clock.now()
        events = self._events

        if after.mode is not before.mode:
            events.dispatch(ModeChangeEvent(now, before.mode, after.mode))
        for flag, value in after.flags.items():
            if value == before.flags[flag]:
                continue
            events.dispatch(FlagChangeEvent(now, flag, value))
            if flag.is_fault:
                events.dispatch(FaultEvent(now, flag, value))
        if after.flags[StatusFlag.WAKERQ] and not before.flags[StatusFlag.WAKERQ]:
            events.dispatch(WakeUpEvent(now, self._wake.state.source_local))
        for pin, value in after.pins.items():
            old = before.pins[pin]
            if value != old:
                events.dispatch(PinChangeEvent(now, pin, old, value))

    # -------------------------------------------------------------------------
    # Tick
    # -------------------------------------------------------------------------

    def _tick(self, delta_ns: int) -> None:
        clock = self._clock
        pins = self._pins
        time_before = clock.now()
        clock.advance(delta_ns)
        now = clock.now()

        txd_low = pins.is_state(PinId.TXD, PinState.LOW)
        en_high = pins.is_state(PinId.EN, PinState.HIGH)
        nstb_high = pins.is_state(PinId.NSTB, PinState.HIGH)
        wake_high = pins.is_state(PinId.WAKE, PinState.HIGH)
        mask_high = pins.is_state(PinId.INH_MASK, PinState.HIGH)
        vsup = pins.voltage(PinId.VSUP)
        vcc = pins.voltage(PinId.VCC)
        vio = pins.voltage(PinId.VIO)

        self._power.update(vsup, vcc, vio, now, time_before)
        supply_valid = self._power.is_vsup_valid()

        canh_prev = pins.voltage(PinId.CANH)
        canl_prev = pins.voltage(PinId.CANL)
        bus_prev = decode_bus_state(canh_prev - canl_prev)

        wake = self._wake
        wake_request_before = wake.state.wake_request
        wake.update(bus_prev, wake_high, self._mode.mode, now)
        wake_request = wake.state.wake_request

        old_mode = self._mode.mode
        mode = self._mode.update(en_high, nstb_high, supply_valid, wake_request, now)
        entered_normal = mode is OperatingMode.NORMAL and old_mode is not OperatingMode.NORMAL
        if entered_normal:
            if old_mode is not OperatingMode.OFF:
                self._power.clear_power_on_flag()
            wake.clear_flags()

        # The first pass treats the supply as valid outside Off so that an
        # Off -> autonomous -> active sequence completes within one tick.
        self._transceiver.update(mode, txd_low, canh_prev, canl_prev, now)
        self._transceiver.update_state_machine(mode, bus_prev, supply_valid, now)
        self._bias.update(self._transceiver.state.state, bus_prev, now)

        if entered_normal:
            self._faults.check_clamp_on_entry(txd_low, mode)

        self._inhibit.update(mode, mask_high, wake_request and not wake_request_before, now)

        self._drive_bus(txd_low, vcc)
        bus_state = decode_bus_state(pins.voltage(PinId.CANH) - pins.voltage(PinId.CANL))
        self._transceiver.update_rxd(bus_state, now, time_before)
        rxd_high = self._transceiver.state.rxd_high
        self._faults.update(
            txd_low, not rxd_high, bus_state, self._config.junction_temperature_c, now, mode
        )
        self._drive_outputs(rxd_high, vsup, vio)

    def _drive_bus(self, txd_low: bool, vcc: float) -> None:
        pins = self._pins
        if self._transceiver.state.driver_enabled and not self._faults.should_disable_driver():
            canh, canl = self._transceiver.drive(txd_low)
            state = PinState.ANALOG
        elif self._bias.state.state is not BiasState.OFF:
            canh, canl = self._bias.get_bias(vcc)
            state = PinState.ANALOG
        else:
            canh, canl = 0.0, 0.0
            state = PinState.HIGH_IMPEDANCE
        pins.drive(PinId.CANH, state, canh)
        pins.drive(PinId.CANL, state, canl)

    def _drive_outputs(self, rxd_high: bool, vsup: float, vio: float) -> None:
        pins = self._pins
        if rxd_high:
            pins.drive(PinId.RXD, PinState.HIGH, vio)
        else:
            pins.drive(PinId.RXD, PinState.LOW, 0.0)

        if self._faults.fault_indicator_active() or self._wake.state.wake_request:
            pins.drive(PinId.NFAULT, PinState.LOW, 0.0)
        else:
            pins.drive(PinId.NFAULT, PinState.HIGH, vio)

        inh_state, inh_voltage = self._inhibit.get_pin_state(vsup)
        pins.drive(PinId.INH, inh_state, inh_voltage)
