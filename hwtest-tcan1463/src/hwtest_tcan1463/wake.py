"""Wake-up detection.

Two wake sources are recognized, both only in Standby or Sleep mode:

Remote wake-up (WUP)
    A filtered dominant, filtered recessive, filtered dominant sequence on the
    bus. Each phase must hold for the wake filter time, and the whole pattern
    must complete within the wake timeout measured from the first dominant.

Local wake-up (LWU)
    Any edge on the WAKE input while in Sleep mode.

Either source latches WAKERQ and WAKESR. Clearing the flags on entry to
Normal mode clears WAKERQ only; WAKESR keeps recording the last wake source.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from hwtest_tcan1463.limits import TWK_FILTER_MIN_US, TWK_TIMEOUT_MIN_MS, ms_to_ns, us_to_ns
from hwtest_tcan1463.types import BusState, OperatingMode, WakePatternState

logger = logging.getLogger(__name__)


@dataclass
class WakeState:
    """Wake flags and pattern recognizer progress.

    Attributes:
        wake_request: WAKERQ flag.
        wake_source: WAKESR flag.
        source_local: The last wake-up came from the WAKE pin.
        pattern: Pattern recognizer state.
        phase_start: Start of the current pattern phase.
        timeout_start: Start of the pattern timeout window.
        prev_wake_high: WAKE input level at the previous tick.
    """

    wake_request: bool = False
    wake_source: bool = False
    source_local: bool = False
    pattern: WakePatternState = WakePatternState.IDLE
    phase_start: int | None = None
    timeout_start: int | None = None
    prev_wake_high: bool = False


class WakeHandler:
    """Recognizes remote and local wake-up events.

    Args:
        filter_time_ns: Minimum duration of each pattern phase.
        timeout_ns: Time allowed for the whole pattern.
    """

    def __init__(
        self,
        filter_time_ns: int = us_to_ns(TWK_FILTER_MIN_US),
        timeout_ns: int = ms_to_ns(TWK_TIMEOUT_MIN_MS),
    ) -> None:
        self.filter_time_ns = filter_time_ns
        self.timeout_ns = timeout_ns
        self.state = WakeState()

    def reset(self) -> None:
        """Clear all flags and the recognizer."""
        self.state = WakeState()

    def update(self, bus_state: BusState, wake_high: bool, mode: OperatingMode, now: int) -> None:
        """Run the wake-up detectors for one tick.

        Args:
            bus_state: Bus state decoded at the start of the tick.
            wake_high: WAKE input is high.
            mode: Current operating mode.
            now: Current simulated time in nanoseconds.
        """
        if mode.is_wake_capable:
            self.process_pattern(bus_state, now)
            if mode is OperatingMode.SLEEP:
                self.process_local(wake_high)
        elif self.state.pattern is not WakePatternState.IDLE:
            self._reset_pattern()
        self.state.prev_wake_high = wake_high

    def process_pattern(self, bus_state: BusState, now: int) -> None:
        """Advance the remote wake-up pattern recognizer."""
        state = self.state
        pattern = state.pattern
        if (
            pattern not in (WakePatternState.IDLE, WakePatternState.COMPLETE)
            and state.timeout_start is not None
            and now - state.timeout_start >= self.timeout_ns
        ):
            logger.debug("Wake-up pattern timed out in %s", pattern.name)
            self._reset_pattern()
            return

        dominant = bus_state is BusState.DOMINANT
        if pattern is WakePatternState.IDLE:
            if dominant:
                state.pattern = WakePatternState.FIRST_DOMINANT
                state.phase_start = now
                state.timeout_start = now
        elif pattern is WakePatternState.FIRST_DOMINANT:
            if not dominant:
                self._reset_pattern()
            elif self._phase_done(now):
                self._enter_phase(WakePatternState.RECESSIVE, now)
        elif pattern is WakePatternState.RECESSIVE:
            if bus_state is BusState.RECESSIVE:
                if self._phase_done(now):
                    self._enter_phase(WakePatternState.SECOND_DOMINANT, now)
            elif dominant:
                # Early dominant still completes a long enough recessive phase.
                if self._phase_done(now):
                    self._enter_phase(WakePatternState.SECOND_DOMINANT, now)
                else:
                    self._reset_pattern()
        elif pattern is WakePatternState.SECOND_DOMINANT:
            if not dominant:
                self._reset_pattern()
            elif self._phase_done(now):
                self._complete(local=False)
                state.pattern = WakePatternState.COMPLETE
                state.phase_start = None
                state.timeout_start = None

    def process_local(self, wake_high: bool) -> None:
        """Latch a local wake-up on any WAKE edge."""
        if wake_high != self.state.prev_wake_high:
            self._complete(local=True)
            self._reset_pattern()

    def clear_flags(self) -> None:
        """Clear WAKERQ and the recognizer, keeping WAKESR."""
        self.state.wake_request = False
        self._reset_pattern()

    def _phase_done(self, now: int) -> bool:
        start = self.state.phase_start
        return start is not None and now - start >= self.filter_time_ns

    def _enter_phase(self, pattern: WakePatternState, now: int) -> None:
        self.state.pattern = pattern
        self.state.phase_start = now

    def _complete(self, local: bool) -> None:
        state = self.state
        state.wake_request = True
        state.wake_source = True
        state.source_local = local
        logger.debug("Wake-up detected (%s)", "local" if local else "remote")

    def _reset_pattern(self) -> None:
        state = self.state
        state.pattern = WakePatternState.IDLE
        state.phase_start = None
        state.timeout_start = None
