"""Enumerations shared across the simulator.

Every multi-valued device state is a closed Enum. Consumers map the members
through tables or if-chains that cover each member.

Classes:
    PinId: The fourteen device pins.
    PinState: Logical state of a pin.
    OperatingMode: Device operating mode.
    BusState: Decoded logical state of the differential bus.
    TransceiverState: Internal CAN transceiver state.
    BiasState: Bus bias state, mirroring the transceiver state.
    WakePatternState: Progress of the remote wake-up pattern recognizer.
    EventType: Categories of simulator events.
    StatusFlag: The twelve status flags reported by the device.
"""

from __future__ import annotations

from enum import Enum


class PinId(Enum):
    """Device pin identifiers.

    Attributes:
        TXD: Transmit data input (low drives the bus dominant).
        RXD: Receive data output.
        EN: Enable input.
        NSTB: Active-low standby input.
        NFAULT: Active-low fault output.
        WAKE: Local wake-up input.
        INH: Inhibit output used to switch an external regulator.
        INH_MASK: Inhibit mask input.
        CANH: CAN bus high line.
        CANL: CAN bus low line.
        VSUP: Battery supply rail.
        VCC: Transceiver logic supply rail.
        VIO: I/O level supply rail.
        GND: Ground.
    """

    TXD = "txd"
    RXD = "rxd"
    EN = "en"
    NSTB = "nstb"
    NFAULT = "nfault"
    WAKE = "wake"
    INH = "inh"
    INH_MASK = "inh_mask"
    CANH = "canh"
    CANL = "canl"
    VSUP = "vsup"
    VCC = "vcc"
    VIO = "vio"
    GND = "gnd"


class PinState(Enum):
    """Logical pin state."""

    LOW = "low"
    HIGH = "high"
    HIGH_IMPEDANCE = "high_impedance"
    ANALOG = "analog"


class OperatingMode(Enum):
    """Device operating modes.

    Attributes:
        NORMAL: Transmit and receive.
        SILENT: Receive only.
        STANDBY: Low power, wake-up detection active.
        GO_TO_SLEEP: Transitional mode on the way to Sleep.
        SLEEP: Lowest power, wake-up detection active.
        OFF: Supply invalid.
    """

    NORMAL = "normal"
    SILENT = "silent"
    STANDBY = "standby"
    GO_TO_SLEEP = "go_to_sleep"
    SLEEP = "sleep"
    OFF = "off"

    @property
    def is_active(self) -> bool:
        """Return True for modes in which the transceiver is active."""
        return self in (OperatingMode.NORMAL, OperatingMode.SILENT)

    @property
    def is_wake_capable(self) -> bool:
        """Return True for modes in which wake-up events are detected."""
        return self in (OperatingMode.STANDBY, OperatingMode.SLEEP)


class BusState(Enum):
    """Decoded logical state of the differential bus."""

    DOMINANT = "dominant"
    RECESSIVE = "recessive"
    INDETERMINATE = "indeterminate"


class TransceiverState(Enum):
    """Internal CAN transceiver state."""

    OFF = "off"
    AUTONOMOUS_INACTIVE = "autonomous_inactive"
    AUTONOMOUS_ACTIVE = "autonomous_active"
    ACTIVE = "active"


class BiasState(Enum):
    """Bus bias state."""

    OFF = "off"
    AUTONOMOUS_INACTIVE = "autonomous_inactive"
    AUTONOMOUS_ACTIVE = "autonomous_active"
    ACTIVE = "active"


class WakePatternState(Enum):
    """Remote wake-up pattern recognizer state."""

    IDLE = "idle"
    FIRST_DOMINANT = "first_dominant"
    RECESSIVE = "recessive"
    SECOND_DOMINANT = "second_dominant"
    COMPLETE = "complete"


class EventType(Enum):
    """Categories of events delivered to registered callbacks."""

    MODE_CHANGE = "mode_change"
    FAULT_DETECTED = "fault_detected"
    WAKE_UP = "wake_up"
    PIN_CHANGE = "pin_change"
    FLAG_CHANGE = "flag_change"


class StatusFlag(Enum):
    """Device status flags.

    Attributes:
        PWRON: Power-on reset occurred.
        WAKERQ: Wake-up request latched.
        WAKESR: Wake-up source recognized.
        UVSUP: VSUP undervoltage.
        UVCC: VCC undervoltage.
        UVIO: VIO undervoltage.
        CBF: CAN bus fault (four dominant-to-recessive transitions).
        TXDCLP: TXD clamped low on entry to Normal mode.
        TXDDTO: TXD dominant timeout.
        TXDRXD: TXD/RXD loopback short.
        CANDOM: CAN bus dominant timeout.
        TSD: Thermal shutdown.
    """

    PWRON = "pwron"
    WAKERQ = "wakerq"
    WAKESR = "wakesr"
    UVSUP = "uvsup"
    UVCC = "uvcc"
    UVIO = "uvio"
    CBF = "cbf"
    TXDCLP = "txdclp"
    TXDDTO = "txddto"
    TXDRXD = "txdrxd"
    CANDOM = "candom"
    TSD = "tsd"

    @property
    def is_fault(self) -> bool:
        """Return True for the six fault-detector flags."""
        return self in FAULT_FLAGS


FAULT_FLAGS = frozenset({
    StatusFlag.CBF,
    StatusFlag.TXDCLP,
    StatusFlag.TXDDTO,
    StatusFlag.TXDRXD,
    StatusFlag.CANDOM,
    StatusFlag.TSD,
})
"""Flags owned by the fault detector."""
