"""Fault detection.

Six fault conditions are tracked:

- TXDCLP: TXD low when Normal mode is entered.
- TXDDTO: TXD held low for the TXD dominant timeout.
- TXDRXD: TXD and RXD at the same level for the TXD dominant timeout.
- CANDOM: bus dominant for the bus dominant timeout.
- TSD: junction temperature at or above the shutdown threshold.
- CBF: four dominant-to-recessive bus transitions in Normal or Silent mode.

All flags except TSD latch until the detector is reset. TSD follows the
temperature.

TXDDTO and TXDRXD keep separate windows. The dominant timeout window depends
on TXD alone, so it also runs while the driver is off and RXD stays high. The
loopback window runs while TXD is low and RXD follows it low; an idle bus with
TXD and RXD both high never accumulates loopback time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from hwtest_tcan1463.limits import (
    CBF_TRANSITION_COUNT,
    TBUSDOM_MIN_MS,
    TSD_C,
    TTXDDTO_MIN_MS,
    ms_to_ns,
)
from hwtest_tcan1463.types import BusState, OperatingMode, StatusFlag

logger = logging.getLogger(__name__)


@dataclass
class FaultState:
    """Fault flags and their timers.

    Attributes:
        txdclp: TXD clamped low on entry to Normal.
        txddto: TXD dominant timeout.
        txdrxd: TXD/RXD loopback short.
        candom: Bus dominant timeout.
        tsd: Thermal shutdown.
        cbf: Bus fault after four transitions.
        txd_dominant_start: Start of the TXD dominant window, None when idle.
        txd_rxd_start: Start of the TXD/RXD loopback window, None when idle.
        bus_dominant_start: Start of the bus dominant window, None when idle.
        cbf_transition_count: Dominant-to-recessive edges seen.
        prev_bus_state: Bus state at the previous bus fault check.
    """

    txdclp: bool = False
    txddto: bool = False
    txdrxd: bool = False
    candom: bool = False
    tsd: bool = False
    cbf: bool = False
    txd_dominant_start: int | None = None
    txd_rxd_start: int | None = None
    bus_dominant_start: int | None = None
    cbf_transition_count: int = 0
    prev_bus_state: BusState = BusState.RECESSIVE

    def flags(self) -> dict[StatusFlag, bool]:
        """Return the six fault flags keyed by status flag."""
        return {
            StatusFlag.CBF: self.cbf,
            StatusFlag.TXDCLP: self.txdclp,
            StatusFlag.TXDDTO: self.txddto,
            StatusFlag.TXDRXD: self.txdrxd,
            StatusFlag.CANDOM: self.candom,
            StatusFlag.TSD: self.tsd,
        }


class FaultDetector:
    """Evaluates the fault conditions each tick.

    Args:
        txd_timeout_ns: TXD dominant timeout, also used for the loopback check.
        bus_timeout_ns: Bus dominant timeout.
    """

    def __init__(
        self,
        txd_timeout_ns: int = ms_to_ns(TTXDDTO_MIN_MS),
        bus_timeout_ns: int = ms_to_ns(TBUSDOM_MIN_MS),
    ) -> None:
        self.txd_timeout_ns = txd_timeout_ns
        self.bus_timeout_ns = bus_timeout_ns
        self.state = FaultState()

    def reset(self) -> None:
        """Clear all flags, timers and counters."""
        self.state = FaultState()

    def check_clamp_on_entry(self, txd_low: bool, entering_mode: OperatingMode) -> None:
        """Latch TXDCLP if TXD is low as Normal mode is entered."""
        if entering_mode is OperatingMode.NORMAL and txd_low:
            self._latch("txdclp")

    def check_dominant_timeout(self, txd_low: bool, now: int) -> None:
        """Latch TXDDTO once TXD has been low for the TXD timeout."""
        state = self.state
        if not txd_low:
            state.txd_dominant_start = None
        elif state.txd_dominant_start is None:
            state.txd_dominant_start = now
        elif now - state.txd_dominant_start >= self.txd_timeout_ns:
            self._latch("txddto")

    def check_loopback_short(self, txd_low: bool, rxd_low: bool, now: int) -> None:
        """Latch TXDRXD once RXD has followed a low TXD for the TXD timeout."""
        state = self.state
        if not (txd_low and rxd_low):
            state.txd_rxd_start = None
        elif state.txd_rxd_start is None:
            state.txd_rxd_start = now
        elif now - state.txd_rxd_start >= self.txd_timeout_ns:
            self._latch("txdrxd")

    def check_bus_dominant(self, bus_state: BusState, now: int) -> None:
        """Latch CANDOM once the bus has been dominant for the bus timeout."""
        state = self.state
        if bus_state is not BusState.DOMINANT:
            state.bus_dominant_start = None
        elif state.bus_dominant_start is None:
            state.bus_dominant_start = now
        elif now - state.bus_dominant_start >= self.bus_timeout_ns:
            self._latch("candom")

    def check_thermal(self, temperature: float) -> None:
        """Set TSD at or above the shutdown threshold, clear it below."""
        tsd = temperature >= TSD_C
        if tsd and not self.state.tsd:
            logger.warning("Thermal shutdown at %.1f C", temperature)
        self.state.tsd = tsd

    def check_bus_fault(self, bus_state: BusState, mode: OperatingMode) -> None:
        """Count dominant-to-recessive edges and latch CBF at four."""
        state = self.state
        if not mode.is_active:
            state.cbf_transition_count = 0
            return
        if state.prev_bus_state is BusState.DOMINANT and bus_state is BusState.RECESSIVE:
            state.cbf_transition_count += 1
            if state.cbf_transition_count >= CBF_TRANSITION_COUNT:
                self._latch("cbf")
        if bus_state is not BusState.INDETERMINATE:
            state.prev_bus_state = bus_state

    def update(
        self,
        txd_low: bool,
        rxd_low: bool,
        bus_state: BusState,
        temperature: float,
        now: int,
        mode: OperatingMode,
    ) -> None:
        """Run every timed and level check for one tick.

        Clamp-on-entry is not included; it is checked only when Normal mode is
        entered.

        Args:
            txd_low: TXD input is low.
            rxd_low: RXD output is low.
            bus_state: Decoded bus state.
            temperature: Junction temperature in degrees Celsius.
            now: Current simulated time in nanoseconds.
            mode: Current operating mode.
        """
        self.check_dominant_timeout(txd_low, now)
        self.check_loopback_short(txd_low, rxd_low, now)
        self.check_bus_dominant(bus_state, now)
        self.check_thermal(temperature)
        self.check_bus_fault(bus_state, mode)

    def has_any_fault(self) -> bool:
        """Return True if any fault flag is set."""
        return any(self.state.flags().values())

    def fault_indicator_active(self) -> bool:
        """Return True if the nFAULT output should be asserted."""
        return self.has_any_fault()

    def should_disable_driver(self) -> bool:
        """Return True if a fault requires the bus driver to be disabled.

        CANDOM and CBF are reported only and do not disable the driver.
        """
        state = self.state
        return state.txdclp or state.txddto or state.txdrxd or state.tsd

    def _latch(self, name: str) -> None:
        if not getattr(self.state, name):
            logger.warning("Fault %s latched", name.upper())
            setattr(self.state, name, True)
