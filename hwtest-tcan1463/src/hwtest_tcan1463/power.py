"""Supply rail undervoltage monitoring.

Three rails are monitored. VSUP uses plain hysteresis: the undervoltage flag
sets at or below the falling threshold and clears above the rising threshold,
setting the power-on flag as it clears. VCC and VIO additionally require the
rail to stay below its falling ceiling for the undervoltage filter time before
their flag sets, which rejects short dips.

The monitor starts in the unpowered state (VSUP undervoltage flagged) so that
the first valid VSUP reading registers as a power-on event.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from hwtest_tcan1463.limits import (
    DEFAULT_VCC_V,
    DEFAULT_VIO_V,
    DEFAULT_VSUP_V,
    TUV_MIN_MS,
    UVCC_FALLING_V,
    UVCC_RISING_V,
    UVIO_FALLING_V,
    UVIO_RISING_V,
    UVSUP_FALLING_V,
    UVSUP_RISING_V,
    ms_to_ns,
)

logger = logging.getLogger(__name__)


@dataclass
class PowerState:
    """Supply readings and undervoltage flags.

    Attributes:
        vsup: Last VSUP reading.
        vcc: Last VCC reading.
        vio: Last VIO reading.
        uvsup: VSUP undervoltage flag.
        uvcc: VCC undervoltage flag.
        uvio: VIO undervoltage flag.
        pwron: Power-on flag, sticky until cleared.
        uvcc_filter_start: Start of the VCC filter window, None when not running.
        uvio_filter_start: Start of the VIO filter window, None when not running.
    """

    vsup: float = DEFAULT_VSUP_V
    vcc: float = DEFAULT_VCC_V
    vio: float = DEFAULT_VIO_V
    uvsup: bool = True
    uvcc: bool = False
    uvio: bool = False
    pwron: bool = False
    uvcc_filter_start: int | None = None
    uvio_filter_start: int | None = None


class PowerMonitor:
    """Applies hysteresis and filtering to the three supply rails.

    Args:
        filter_time_ns: Time a filtered rail must stay low before its flag sets.
    """

    def __init__(self, filter_time_ns: int = ms_to_ns(TUV_MIN_MS)) -> None:
        self.filter_time_ns = filter_time_ns
        self.state = PowerState()

    def reset(self) -> None:
        """Return to the unpowered power-on state."""
        self.state = PowerState()

    def update(
        self, vsup: float, vcc: float, vio: float, now: int, tick_start: int | None = None
    ) -> None:
        """Process one set of rail readings.

        Args:
            vsup: VSUP voltage.
            vcc: VCC voltage.
            vio: VIO voltage.
            now: Current simulated time in nanoseconds.
            tick_start: Time the readings were first applied. A new filter
                window opens here; defaults to now.
        """
        state = self.state
        start = now if tick_start is None else tick_start
        self._update_vsup(vsup)
        state.uvcc, state.uvcc_filter_start = self._update_filtered(
            "VCC", vcc, state.vcc, state.uvcc, state.uvcc_filter_start,
            UVCC_FALLING_V, UVCC_RISING_V, start, now,
        )
        state.uvio, state.uvio_filter_start = self._update_filtered(
            "VIO", vio, state.vio, state.uvio, state.uvio_filter_start,
            UVIO_FALLING_V, UVIO_RISING_V, start, now,
        )
        state.vsup = vsup
        state.vcc = vcc
        state.vio = vio

    def _update_vsup(self, vsup: float) -> None:
        state = self.state
        if not state.uvsup and vsup <= UVSUP_FALLING_V:
            state.uvsup = True
            logger.debug("VSUP undervoltage at %.3f V", vsup)
        elif state.uvsup and vsup > UVSUP_RISING_V:
            state.uvsup = False
            state.pwron = True
            logger.debug("VSUP valid at %.3f V, power-on flagged", vsup)

    def _update_filtered(
        self,
        name: str,
        voltage: float,
        previous: float,
        flag: bool,
        filter_start: int | None,
        falling: float,
        rising: float,
        start: int,
        now: int,
    ) -> tuple[bool, int | None]:
        if voltage < falling:
            if not flag:
                if filter_start is None:
                    filter_start = start
                if now - filter_start >= self.filter_time_ns:
                    flag = True
                    filter_start = None
                    logger.debug("%s undervoltage at %.3f V", name, voltage)
        elif voltage > rising:
            if flag:
                logger.debug("%s valid at %.3f V", name, voltage)
            flag = False
            filter_start = None
        elif voltage > previous:
            # Rising through the hysteresis band.
            filter_start = None
        return flag, filter_start

    def clear_power_on_flag(self) -> None:
        """Clear the sticky power-on flag."""
        self.state.pwron = False

    def is_vsup_valid(self) -> bool:
        """Return True if VSUP is not in undervoltage."""
        return not self.state.uvsup

    def is_vcc_valid(self) -> bool:
        """Return True if VCC is not in undervoltage."""
        return not self.state.uvcc

    def is_vio_valid(self) -> bool:
        """Return True if VIO is not in undervoltage."""
        return not self.state.uvio
