"""INH output control.

INH switches an external regulator. It is driven high in Normal, Silent and
Standby modes and left high-impedance otherwise. After a wake-up event the
output is held off for tINH_SLP_STB before it may assert. A high INH_MASK
input disables the output entirely.
"""

from __future__ import annotations

from dataclasses import dataclass

from hwtest_tcan1463.limits import INH_DROP_V, TINH_SLP_STB_NS
from hwtest_tcan1463.types import OperatingMode, PinState

_INH_HIGH_MODES = frozenset({
    OperatingMode.NORMAL,
    OperatingMode.SILENT,
    OperatingMode.STANDBY,
})


@dataclass
class InhibitState:
    """INH output state.

    Attributes:
        enabled: INH_MASK is low.
        output_high: INH is driven high.
        wake_event_time: Time of the last wake-up event, None if none yet.
        pending: Assertion is being delayed after a wake-up event.
    """

    enabled: bool = True
    output_high: bool = False
    wake_event_time: int | None = None
    pending: bool = False


class InhibitController:
    """Drives the INH output.

    Args:
        assertion_delay_ns: Delay between a wake-up event and INH asserting.
    """

    def __init__(self, assertion_delay_ns: int = TINH_SLP_STB_NS) -> None:
        self.assertion_delay_ns = assertion_delay_ns
        self.state = InhibitState()

    def reset(self) -> None:
        """Return to the enabled, high-impedance state."""
        self.state = InhibitState()

    def update(self, mode: OperatingMode, mask_high: bool, wake_event: bool, now: int) -> None:
        """Update the INH output for one tick.

        Args:
            mode: Current operating mode.
            mask_high: INH_MASK input is high.
            wake_event: A wake-up event occurred this tick.
            now: Current simulated time in nanoseconds.
        """
        inh = self.state
        inh.enabled = not mask_high
        if mask_high:
            inh.output_high = False
            inh.pending = False
            return

        if wake_event:
            inh.wake_event_time = now
            inh.pending = True
        if (
            inh.pending
            and inh.wake_event_time is not None
            and now - inh.wake_event_time >= self.assertion_delay_ns
        ):
            inh.pending = False

        inh.output_high = mode in _INH_HIGH_MODES and not inh.pending

    def get_pin_state(self, vsup: float) -> tuple[PinState, float]:
        """Return the INH pin state and voltage.

        Args:
            vsup: VSUP voltage; a high INH sits one diode drop below it.
        """
        if self.state.enabled and self.state.output_high:
            return PinState.HIGH, max(0.0, vsup - INH_DROP_V)
        return PinState.HIGH_IMPEDANCE, 0.0
