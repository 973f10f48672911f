"""Bus bias control.

The bias applied to CANH/CANL follows the transceiver state. The controller
also remembers when the bus was last dominant so callers can ask whether the
bus has gone silent.
"""

from __future__ import annotations

from dataclasses import dataclass

from hwtest_tcan1463.limits import AUTONOMOUS_BIAS_V, TSILENCE_MIN_S, s_to_ns
from hwtest_tcan1463.types import BiasState, BusState, TransceiverState

_BIAS_FOR_TRANSCEIVER: dict[TransceiverState, BiasState] = {
    TransceiverState.OFF: BiasState.OFF,
    TransceiverState.AUTONOMOUS_INACTIVE: BiasState.AUTONOMOUS_INACTIVE,
    TransceiverState.AUTONOMOUS_ACTIVE: BiasState.AUTONOMOUS_ACTIVE,
    TransceiverState.ACTIVE: BiasState.ACTIVE,
}


@dataclass
class BusBiasState:
    """Bias state and last bus activity time."""

    state: BiasState = BiasState.OFF
    last_bus_activity: int | None = None


class BusBiasController:
    """Maps the transceiver state to bus bias levels.

    Args:
        silence_time_ns: Silence threshold used by is_silence_timeout().
    """

    def __init__(self, silence_time_ns: int = s_to_ns(TSILENCE_MIN_S)) -> None:
        self.silence_time_ns = silence_time_ns
        self.state = BusBiasState()

    def reset(self) -> None:
        """Return to the unbiased state."""
        self.state = BusBiasState()

    def update(self, transceiver_state: TransceiverState, bus_state: BusState, now: int) -> None:
        """Follow the transceiver state and record bus activity."""
        bias = self.state
        if bus_state is BusState.DOMINANT or bias.last_bus_activity is None:
            bias.last_bus_activity = now
        bias.state = _BIAS_FOR_TRANSCEIVER[transceiver_state]

    def get_bias(self, vcc: float) -> tuple[float, float]:
        """Return the (CANH, CANL) bias voltages.

        Args:
            vcc: VCC voltage, used for the Active bias of VCC/2.

        Returns:
            (0, 0) when Off or autonomous-inactive, (2.5, 2.5) when
            autonomous-active and (VCC/2, VCC/2) when active.
        """
        state = self.state.state
        if state is BiasState.ACTIVE:
            return vcc / 2.0, vcc / 2.0
        if state is BiasState.AUTONOMOUS_ACTIVE:
            return AUTONOMOUS_BIAS_V, AUTONOMOUS_BIAS_V
        return 0.0, 0.0

    def is_silence_timeout(self, now: int) -> bool:
        """Return True if the bus has been silent longer than the threshold."""
        last = self.state.last_bus_activity
        return last is not None and now - last > self.silence_time_ns
