"""hwtest-tcan1463: Behavioral simulator of the TCAN1463-Q1 CAN transceiver.

This package models the transceiver's pins, supply monitoring, operating
modes, bus driver and receiver, fault detection and wake-up logic as a
discrete-time simulation advanced by explicit steps. It lets test software
exercise mode transitions, fault handling and timing margins without
hardware:

- Fourteen pins with direction and voltage range checking
- VSUP/VCC/VIO undervoltage detection with hysteresis and filtering
- Six operating modes and the four-state transceiver machine
- RXD propagation delay, fault latching, remote and local wake-up
- Snapshots, YAML configuration and event callbacks
"""

from hwtest_tcan1463.config import (
    BusLoad,
    SimulatorConfig,
    SupplyVoltages,
    TimingParameters,
    load_config,
)
from hwtest_tcan1463.errors import (
    DomainRangeError,
    InvalidArgumentError,
    InvalidOperationError,
    PinDirectionError,
    SnapshotError,
    Tcan1463Error,
)
from hwtest_tcan1463.events import (
    FaultEvent,
    FlagChangeEvent,
    ModeChangeEvent,
    PinChangeEvent,
    SimulatorEvent,
    WakeUpEvent,
)
from hwtest_tcan1463.pins import PinInfo, PinValue
from hwtest_tcan1463.simulator import StatusFlags, Tcan1463Simulator
from hwtest_tcan1463.snapshot import SimulatorSnapshot
from hwtest_tcan1463.types import (
    BiasState,
    BusState,
    EventType,
    OperatingMode,
    PinId,
    PinState,
    StatusFlag,
    TransceiverState,
    WakePatternState,
)

__version__ = "0.1.0"

__all__ = [
    # Config
    "BusLoad",
    "SimulatorConfig",
    "SupplyVoltages",
    "TimingParameters",
    "load_config",
    # Errors
    "DomainRangeError",
    "InvalidArgumentError",
    "InvalidOperationError",
    "PinDirectionError",
    "SnapshotError",
    "Tcan1463Error",
    # Events
    "FaultEvent",
    "FlagChangeEvent",
    "ModeChangeEvent",
    "PinChangeEvent",
    "SimulatorEvent",
    "WakeUpEvent",
    # Pins
    "PinInfo",
    "PinValue",
    # Simulator
    "SimulatorSnapshot",
    "StatusFlags",
    "Tcan1463Simulator",
    # Types
    "BiasState",
    "BusState",
    "EventType",
    "OperatingMode",
    "PinId",
    "PinState",
    "StatusFlag",
    "TransceiverState",
    "WakePatternState",
]
