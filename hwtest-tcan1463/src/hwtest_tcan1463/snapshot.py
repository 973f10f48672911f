"""Simulator state snapshots.

A snapshot is a versioned value copy of every piece of simulator state: the
clock, all pins, each component's state and the configuration. Callback
registrations are not part of a snapshot. Snapshots share nothing with the
simulator they were taken from, and restoring one copies it again, so the
same snapshot can be restored any number of times.

Snapshots can be converted to plain dictionaries for storage:

    >>> data = sim.snapshot().to_dict()
    >>> sim.restore(SimulatorSnapshot.from_dict(data))
"""

from __future__ import annotations

import copy
import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar, get_type_hints

from hwtest_tcan1463.bias import BusBiasState
from hwtest_tcan1463.config import SimulatorConfig
from hwtest_tcan1463.errors import SnapshotError
from hwtest_tcan1463.faults import FaultState
from hwtest_tcan1463.inhibit import InhibitState
from hwtest_tcan1463.mode import ModeState
from hwtest_tcan1463.pins import PinValue
from hwtest_tcan1463.power import PowerState
from hwtest_tcan1463.timing import TimingEngine
from hwtest_tcan1463.transceiver import CanTransceiverState
from hwtest_tcan1463.types import PinId, PinState
from hwtest_tcan1463.wake import WakeState

SNAPSHOT_VERSION = 1
"""Snapshot format version. Increment when a state field changes."""

_T = TypeVar("_T")

_STATE_FIELDS: dict[str, type] = {
    "clock": TimingEngine,
    "power": PowerState,
    "mode": ModeState,
    "transceiver": CanTransceiverState,
    "faults": FaultState,
    "wake": WakeState,
    "bias": BusBiasState,
    "inhibit": InhibitState,
}


@dataclass(frozen=True)
class SimulatorSnapshot:
    """Captured simulator state.

    Attributes:
        version: Snapshot format version.
        clock: Simulated clock.
        pins: Readings of all pins.
        power: Power monitor state.
        mode: Mode controller state.
        transceiver: CAN transceiver state.
        faults: Fault detector state.
        wake: Wake handler state.
        bias: Bus bias state.
        inhibit: INH controller state.
        config: Configuration in effect.
    """

    version: int
    clock: TimingEngine
    pins: tuple[PinValue, ...]
    power: PowerState
    mode: ModeState
    transceiver: CanTransceiverState
    faults: FaultState
    wake: WakeState
    bias: BusBiasState
    inhibit: InhibitState
    config: SimulatorConfig

    @property
    def timestamp_ns(self) -> int:
        """Simulated time at which the snapshot was taken."""
        return self.clock.current_ns

    def copy_state(self, name: str) -> Any:
        """Return a private copy of one captured state object."""
        return copy.deepcopy(getattr(self, name))

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary of built-in types."""
        data: dict[str, Any] = {"version": self.version}
        for name in _STATE_FIELDS:
            data[name] = {
                f.name: _encode(getattr(getattr(self, name), f.name))
                for f in dataclasses.fields(getattr(self, name))
            }
        data["pins"] = [
            {"pin": p.pin.value, "state": p.state.value, "voltage": p.voltage} for p in self.pins
        ]
        data["config"] = self.config.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SimulatorSnapshot:
        """Rebuild a snapshot from to_dict() output.

        Raises:
            SnapshotError: If the version does not match or the data is
                malformed.
        """
        if not isinstance(data, dict):
            raise SnapshotError("Snapshot data must be a mapping")
        version = data.get("version")
        if version != SNAPSHOT_VERSION:
            raise SnapshotError(
                f"Snapshot version {version!r} does not match {SNAPSHOT_VERSION}"
            )
        try:
            states = {name: _decode(kind, data[name]) for name, kind in _STATE_FIELDS.items()}
            pins = tuple(
                PinValue(PinId(p["pin"]), PinState(p["state"]), float(p["voltage"]))
                for p in data["pins"]
            )
            config = SimulatorConfig.from_dict(data["config"])
        except (KeyError, TypeError, ValueError) as e:
            raise SnapshotError(f"Malformed snapshot data: {e}") from e
        if {p.pin for p in pins} != set(PinId) or len(pins) != len(PinId):
            raise SnapshotError("Snapshot pin set does not match the device")
        return cls(version=SNAPSHOT_VERSION, pins=pins, config=config, **states)


def _encode(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def _decode(kind: type[_T], data: dict[str, Any]) -> _T:
    hints = get_type_hints(kind)
    values: dict[str, Any] = {}
    for f in dataclasses.fields(kind):  # type: ignore[arg-type]
        raw = data[f.name]
        hint = hints[f.name]
        if isinstance(hint, type) and issubclass(hint, Enum):
            raw = hint(raw)
        values[f.name] = raw
    return kind(**values)
