"""CAN transceiver model.

The transceiver has four internal states:

- OFF: VSUP invalid, driver and receiver disabled.
- AUTONOMOUS_INACTIVE: bus biased to ground, receiver enabled for wake-up.
- AUTONOMOUS_ACTIVE: bus biased to 2.5 V after remote activity.
- ACTIVE: Normal or Silent mode, bus biased to VCC/2.

RXD follows the decoded bus state after a propagation delay. A new RXD value
is scheduled relative to the clock value before the current tick's advance,
so the delay is measured from the TXD edge rather than from the end of the
step that observed it.

Example:
    >>> xcvr = CanTransceiver()
    >>> xcvr.update_state_machine(OperatingMode.NORMAL, BusState.RECESSIVE, True, 0)
    >>> xcvr.update_state_machine(OperatingMode.NORMAL, BusState.RECESSIVE, True, 10)
    >>> xcvr.state.state
    <TransceiverState.ACTIVE: 'active'>
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from hwtest_tcan1463.limits import (
    CANH_DOMINANT_V,
    CANH_RECESSIVE_V,
    CANL_DOMINANT_V,
    CANL_RECESSIVE_V,
    RXD_FALL_DELAY_NS,
    RXD_RISE_DELAY_NS,
    TSILENCE_MIN_S,
    VDIFF_DOMINANT_V,
    VDIFF_RECESSIVE_V,
    s_to_ns,
)
from hwtest_tcan1463.types import BusState, OperatingMode, TransceiverState

logger = logging.getLogger(__name__)


def decode_bus_state(vdiff: float) -> BusState:
    """Decode the bus state from the differential voltage CANH - CANL.

    Args:
        vdiff: Differential voltage in volts.

    Returns:
        DOMINANT at or above 0.9 V, RECESSIVE at or below 0.5 V, otherwise
        INDETERMINATE.
    """
    if vdiff >= VDIFF_DOMINANT_V:
        return BusState.DOMINANT
    if vdiff <= VDIFF_RECESSIVE_V:
        return BusState.RECESSIVE
    return BusState.INDETERMINATE


@dataclass
class CanTransceiverState:
    """Transceiver state.

    Attributes:
        state: Internal transceiver state.
        driver_enabled: Bus driver enabled.
        receiver_enabled: Bus receiver enabled.
        canh_voltage: Last CANH level produced by drive().
        canl_voltage: Last CANL level produced by drive().
        rxd_high: Current RXD output level.
        rxd_pending: An RXD update is scheduled.
        rxd_pending_high: Level of the scheduled RXD update.
        rxd_update_time: Time at which the scheduled update applies.
        last_bus_activity: Last time the bus was seen dominant, None until
            the first update.
    """

    state: TransceiverState = TransceiverState.OFF
    driver_enabled: bool = False
    receiver_enabled: bool = False
    canh_voltage: float = 0.0
    canl_voltage: float = 0.0
    rxd_high: bool = True
    rxd_pending: bool = False
    rxd_pending_high: bool = True
    rxd_update_time: int = 0
    last_bus_activity: int | None = None


class CanTransceiver:
    """Transceiver state machine, bus driver and RXD scheduler.

    Args:
        silence_time_ns: Bus silence after which autonomous-active falls back
            to autonomous-inactive.
    """

    def __init__(self, silence_time_ns: int = s_to_ns(TSILENCE_MIN_S)) -> None:
        self.silence_time_ns = silence_time_ns
        self.state = CanTransceiverState()

    def reset(self) -> None:
        """Return to the Off state."""
        self.state = CanTransceiverState()

    # -------------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------------

    def update_state_machine(
        self, mode: OperatingMode, bus_state: BusState, supply_valid: bool, now: int
    ) -> None:
        """Advance the internal state and derive driver/receiver enables.

        Args:
            mode: Current operating mode.
            bus_state: Decoded bus state.
            supply_valid: VSUP is valid.
            now: Current simulated time in nanoseconds.
        """
        xcvr = self.state
        if bus_state is BusState.DOMINANT or xcvr.last_bus_activity is None:
            xcvr.last_bus_activity = now
        previous = xcvr.state
        xcvr.state = self._next_state(mode, bus_state, supply_valid, now)
        if xcvr.state is not previous:
            logger.debug("Transceiver %s -> %s (mode %s)", previous.name, xcvr.state.name, mode.name)
        xcvr.driver_enabled, xcvr.receiver_enabled = self._enables(xcvr.state, mode)

    def _next_state(
        self, mode: OperatingMode, bus_state: BusState, supply_valid: bool, now: int
    ) -> TransceiverState:
        xcvr = self.state
        current = xcvr.state
        if current is TransceiverState.OFF:
            return TransceiverState.AUTONOMOUS_INACTIVE if supply_valid else current
        if not supply_valid:
            return TransceiverState.OFF
        if mode.is_active:
            return TransceiverState.ACTIVE
        if current is TransceiverState.AUTONOMOUS_INACTIVE:
            if bus_state is BusState.DOMINANT:
                xcvr.last_bus_activity = now
                return TransceiverState.AUTONOMOUS_ACTIVE
            return current
        if current is TransceiverState.AUTONOMOUS_ACTIVE:
            if self.is_silent(now):
                return TransceiverState.AUTONOMOUS_INACTIVE
            return current
        # ACTIVE, and the mode has left Normal/Silent.
        if bus_state is BusState.DOMINANT or not self.is_silent(now):
            return TransceiverState.AUTONOMOUS_ACTIVE
        return TransceiverState.AUTONOMOUS_INACTIVE

    def is_silent(self, now: int) -> bool:
        """Return True if the bus has been silent longer than the silence time."""
        last = self.state.last_bus_activity
        return last is not None and now - last > self.silence_time_ns

    @staticmethod
    def _enables(state: TransceiverState, mode: OperatingMode) -> tuple[bool, bool]:
        if state is TransceiverState.OFF:
            return False, False
        if state is TransceiverState.ACTIVE:
            if mode is OperatingMode.NORMAL:
                return True, True
            if mode is OperatingMode.SILENT:
                return False, True
            return False, False
        return False, True

    # -------------------------------------------------------------------------
    # Bus drive
    # -------------------------------------------------------------------------

    def drive(self, dominant: bool) -> tuple[float, float]:
        """Return the (CANH, CANL) levels for the requested bus state.

        Args:
            dominant: TXD requests a dominant bit.

        Returns:
            Dominant levels if the driver is enabled and dominant is requested,
            otherwise the recessive levels.
        """
        xcvr = self.state
        if dominant and xcvr.driver_enabled:
            levels = (CANH_DOMINANT_V, CANL_DOMINANT_V)
        else:
            levels = (CANH_RECESSIVE_V, CANL_RECESSIVE_V)
        xcvr.canh_voltage, xcvr.canl_voltage = levels
        return levels

    def update(
        self,
        mode: OperatingMode,
        txd_low: bool,
        canh_voltage: float,
        canl_voltage: float,
        now: int,
    ) -> tuple[float, float]:
        """Run the state machine against the sampled bus and drive TXD.

        The supply is considered valid whenever the mode is not Off.

        Args:
            mode: Current operating mode.
            txd_low: TXD input is low (dominant requested).
            canh_voltage: Sampled CANH voltage.
            canl_voltage: Sampled CANL voltage.
            now: Current simulated time in nanoseconds.

        Returns:
            The (CANH, CANL) levels requested by TXD.
        """
        bus_state = decode_bus_state(canh_voltage - canl_voltage)
        self.update_state_machine(mode, bus_state, mode is not OperatingMode.OFF, now)
        return self.drive(txd_low)

    # -------------------------------------------------------------------------
    # RXD
    # -------------------------------------------------------------------------

    def update_rxd(self, bus_state: BusState, now: int, schedule_time: int) -> None:
        """Apply due RXD updates and schedule a new one if the bus changed.

        Args:
            bus_state: Bus state decoded after this tick's drive.
            now: Current simulated time in nanoseconds.
            schedule_time: Simulated time before this tick's advance; new
                updates are scheduled relative to it.
        """
        xcvr = self.state
        if not xcvr.receiver_enabled:
            xcvr.rxd_high = True
            xcvr.rxd_pending = False
            return

        if xcvr.rxd_pending and now >= xcvr.rxd_update_time:
            xcvr.rxd_high = xcvr.rxd_pending_high
            xcvr.rxd_pending = False

        if bus_state is BusState.INDETERMINATE:
            return
        target_high = bus_state is BusState.RECESSIVE
        if target_high == xcvr.rxd_high:
            return
        if xcvr.rxd_pending and xcvr.rxd_pending_high == target_high:
            return

        delay = RXD_RISE_DELAY_NS if target_high else RXD_FALL_DELAY_NS
        update_time = schedule_time + delay
        if update_time <= now:
            xcvr.rxd_high = target_high
            xcvr.rxd_pending = False
        else:
            xcvr.rxd_pending = True
            xcvr.rxd_pending_high = target_high
            xcvr.rxd_update_time = update_time
