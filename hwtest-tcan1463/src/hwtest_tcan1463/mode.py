"""Operating mode state machine.

The device has six operating modes. Each update derives a target mode from
the supply status, the EN and nSTB inputs and the latched wake request, then
commits it only if the transition appears in the transition table. Requests
for transitions that are not in the table are ignored and the mode stays put.

Target mode priority:
    1. Supply invalid: Off.
    2. Go-to-Sleep held for the silence time: Sleep.
    3. nSTB high: Normal if EN is high, else Silent.
    4. nSTB low: Standby if a wake request is latched, else stay in Sleep,
       else Go-to-Sleep.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from hwtest_tcan1463.limits import TSILENCE_MIN_S, s_to_ns
from hwtest_tcan1463.types import OperatingMode

logger = logging.getLogger(__name__)

_N = OperatingMode.NORMAL
_SI = OperatingMode.SILENT
_SB = OperatingMode.STANDBY
_GTS = OperatingMode.GO_TO_SLEEP
_SL = OperatingMode.SLEEP
_OFF = OperatingMode.OFF

TRANSITIONS: dict[OperatingMode, frozenset[OperatingMode]] = {
    _OFF: frozenset({_N, _SI}),
    _N: frozenset({_SI, _SB, _GTS, _OFF}),
    _SI: frozenset({_N, _SB, _GTS, _OFF}),
    _SB: frozenset({_N, _SI, _OFF}),
    _GTS: frozenset({_SL, _OFF}),
    _SL: frozenset({_SB, _OFF}),
}
"""Legal mode transitions, keyed by source mode."""


def can_transition(from_mode: OperatingMode, to_mode: OperatingMode) -> bool:
    """Return True if the device may move from from_mode to to_mode.

    A mode may always "transition" to itself.
    """
    return from_mode is to_mode or to_mode in TRANSITIONS[from_mode]


@dataclass
class ModeState:
    """Operating mode bookkeeping.

    Attributes:
        current: Current mode.
        previous: Mode before the last committed transition.
        entry_time: Simulated time the current mode was entered.
        wake_request: Wake request as seen by the last update.
    """

    current: OperatingMode = OperatingMode.OFF
    previous: OperatingMode = OperatingMode.OFF
    entry_time: int = 0
    wake_request: bool = False


class ModeController:
    """Derives and commits the operating mode.

    Args:
        silence_time_ns: Time spent in Go-to-Sleep before entering Sleep.
    """

    def __init__(self, silence_time_ns: int = s_to_ns(TSILENCE_MIN_S)) -> None:
        self.silence_time_ns = silence_time_ns
        self.state = ModeState()

    def reset(self) -> None:
        """Return to Off at time zero."""
        self.state = ModeState()

    @property
    def mode(self) -> OperatingMode:
        """Return the current operating mode."""
        return self.state.current

    def time_in_mode(self, now: int) -> int:
        """Return the time spent in the current mode, never negative."""
        return max(0, now - self.state.entry_time)

    def target_mode(
        self, en_high: bool, nstb_high: bool, supply_valid: bool, wake_requested: bool, now: int
    ) -> OperatingMode:
        """Return the mode the inputs call for, without committing it."""
        current = self.state.current
        if not supply_valid:
            return OperatingMode.OFF
        if current is OperatingMode.GO_TO_SLEEP and self.time_in_mode(now) >= self.silence_time_ns:
            return OperatingMode.SLEEP
        if nstb_high:
            return OperatingMode.NORMAL if en_high else OperatingMode.SILENT
        if wake_requested:
            return OperatingMode.STANDBY
        if current is OperatingMode.SLEEP:
            return OperatingMode.SLEEP
        return OperatingMode.GO_TO_SLEEP

    def update(
        self, en_high: bool, nstb_high: bool, supply_valid: bool, wake_requested: bool, now: int
    ) -> OperatingMode:
        """Evaluate the inputs and commit a legal transition.

        Args:
            en_high: EN input is high.
            nstb_high: nSTB input is high.
            supply_valid: VSUP is not in undervoltage.
            wake_requested: A wake request is latched.
            now: Current simulated time in nanoseconds.

        Returns:
            The operating mode after the update.
        """
        self.state.wake_request = wake_requested
        target = self.target_mode(en_high, nstb_high, supply_valid, wake_requested, now)
        current = self.state.current
        if target is current:
            return current
        if not can_transition(current, target):
            logger.debug("Ignoring illegal mode transition %s -> %s", current.name, target.name)
            return current
        self._commit(target, now)
        return target

    def _commit(self, mode: OperatingMode, now: int) -> None:
        state = self.state
        logger.debug("Mode %s -> %s at %d ns", state.current.name, mode.name, now)
        state.previous = state.current
        state.current = mode
        state.entry_time = now
