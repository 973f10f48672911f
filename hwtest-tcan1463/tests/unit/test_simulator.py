"""Unit tests for the transceiver simulator."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from hwtest_tcan1463.config import SimulatorConfig, SupplyVoltages, TimingParameters
from hwtest_tcan1463.errors import (
    DomainRangeError,
    InvalidArgumentError,
    InvalidOperationError,
    PinDirectionError,
)
from hwtest_tcan1463.events import FaultEvent, ModeChangeEvent, PinChangeEvent, WakeUpEvent
from hwtest_tcan1463.limits import TMODE1_NS, TPWRUP_NS
from hwtest_tcan1463.pins import PinValue
from hwtest_tcan1463.simulator import Tcan1463Simulator
from hwtest_tcan1463.types import (
    BusState,
    EventType,
    OperatingMode,
    PinId,
    PinState,
    StatusFlag,
    TransceiverState,
)

_US = 1_000
_MS = 1_000_000
_SILENCE_NS = 600_000_000


def _to_sleep(sim: Tcan1463Simulator) -> None:
    """Take a simulator in Normal mode through Go-to-Sleep into Sleep."""
    sim.set_pin(PinId.NSTB, PinState.LOW)
    sim.step(1_000)
    assert sim.mode is OperatingMode.GO_TO_SLEEP
    sim.step(_SILENCE_NS)
    assert sim.mode is OperatingMode.SLEEP


def _bus(sim: Tcan1463Simulator, dominant: bool) -> None:
    """Drive the bus lines from outside the device."""
    if dominant:
        sim.set_pins({PinId.CANH: (PinState.ANALOG, 3.5), PinId.CANL: (PinState.ANALOG, 1.5)})
    else:
        sim.set_pins({PinId.CANH: (PinState.ANALOG, 2.5), PinId.CANL: (PinState.ANALOG, 2.5)})


# -----------------------------------------------------------------------------
# Construction and lifecycle
# -----------------------------------------------------------------------------


class TestLifecycle:
    """Tests for construction, reset and close."""

    def test_initial_state(self, simulator: Tcan1463Simulator) -> None:
        """A new simulator is unpowered in Off mode at time zero."""
        assert simulator.now_ns == 0
        assert simulator.mode is OperatingMode.OFF
        assert simulator.transceiver_state is TransceiverState.OFF
        flags = simulator.get_flags()
        assert flags.uvsup
        assert not flags.pwron
        assert not flags.any_fault
        assert simulator.supply_voltages == SupplyVoltages(12.0, 5.0, 3.3)

    def test_config_applied(self) -> None:
        """Construction applies supply and timing configuration."""
        config = SimulatorConfig(
            junction_temperature_c=85.0,
            supply=SupplyVoltages(vsup=24.0, vcc=5.0, vio=1.8),
            timing=TimingParameters(ttxddto_ms=3.0, tsilence_s=1.0),
        )
        with Tcan1463Simulator(config) as sim:
            assert sim.get_pin(PinId.VSUP).voltage == 24.0
            assert sim.get_pin(PinId.VIO).voltage == 1.8
            assert sim.junction_temperature == 85.0
            assert sim.fault_detector.txd_timeout_ns == 3 * _MS
            assert sim.mode_controller.silence_time_ns == 1_000_000_000

    def test_invalid_config(self) -> None:
        """Invalid configurations are rejected at construction."""
        with pytest.raises(DomainRangeError):
            Tcan1463Simulator(SimulatorConfig(junction_temperature_c=300.0))
        with pytest.raises(InvalidArgumentError):
            Tcan1463Simulator({"junction_temperature_c": 25.0})  # type: ignore[arg-type]

    def test_closed_simulator_rejects_calls(self) -> None:
        """Every operation on a closed simulator raises."""
        sim = Tcan1463Simulator()
        sim.close()
        sim.close()
        assert sim.closed
        with pytest.raises(InvalidOperationError, match="closed"):
            sim.step(1_000)
        with pytest.raises(InvalidOperationError):
            _ = sim.mode
        with pytest.raises(InvalidOperationError):
            sim.get_pin(PinId.TXD)
        with pytest.raises(InvalidOperationError):
            sim.snapshot()

    def test_context_manager_closes(self) -> None:
        """Leaving the with block closes the simulator."""
        with Tcan1463Simulator() as sim:
            sim.step(1_000)
        assert sim.closed

    def test_reset(self, normal_simulator: Tcan1463Simulator) -> None:
        """reset() returns to power-on defaults and the construction config."""
        sim = normal_simulator
        sim.set_junction_temperature(100.0)
        sim.set_pin(PinId.TXD, PinState.LOW)
        sim.step(10 * _US)
        sim.reset()

        assert sim.now_ns == 0
        assert sim.mode is OperatingMode.OFF
        assert sim.junction_temperature == 25.0
        assert sim.get_pin(PinId.TXD).state is PinState.HIGH
        assert sim.get_pin(PinId.EN).state is PinState.LOW
        assert sim.get_flags().uvsup

    def test_reset_keeps_callbacks(self, simulator: Tcan1463Simulator) -> None:
        """Callbacks survive reset() and see the mode change it causes."""
        callback = MagicMock()
        simulator.register_callback(EventType.MODE_CHANGE, callback)
        simulator.set_pins({PinId.EN: PinState.HIGH, PinId.NSTB: PinState.HIGH})
        simulator.step(1_000)
        simulator.reset()
        simulator.set_pins({PinId.EN: "high", PinId.NSTB: "high"})
        simulator.step(1_000)

        modes = [(c.args[0].old_mode, c.args[0].new_mode) for c in callback.call_args_list]
        assert modes == [
            (OperatingMode.OFF, OperatingMode.NORMAL),
            (OperatingMode.NORMAL, OperatingMode.OFF),
            (OperatingMode.OFF, OperatingMode.NORMAL),
        ]


# -----------------------------------------------------------------------------
# Pins and time
# -----------------------------------------------------------------------------


class TestPinsAndTime:
    """Tests for pin access and time stepping."""

    def test_set_pin_by_name(self, simulator: Tcan1463Simulator) -> None:
        """Pins and states can be given by name."""
        simulator.set_pin("en", "high")
        assert simulator.get_pin(PinId.EN).is_high

    def test_set_output_pin_rejected(self, simulator: Tcan1463Simulator) -> None:
        """Output-only pins cannot be written."""
        with pytest.raises(PinDirectionError):
            simulator.set_pin(PinId.NFAULT, PinState.LOW)

    def test_set_pins_is_atomic(self, simulator: Tcan1463Simulator) -> None:
        """A rejected write leaves every pin unchanged."""
        with pytest.raises(PinDirectionError):
            simulator.set_pins({PinId.EN: PinState.HIGH, PinId.RXD: PinState.LOW})
        assert simulator.get_pin(PinId.EN).is_low
        with pytest.raises(DomainRangeError):
            simulator.set_pins({PinId.EN: PinState.HIGH, PinId.CANH: (PinState.ANALOG, 50.0)})
        assert simulator.get_pin(PinId.EN).is_low

    def test_set_pins_rejects_bad_tuple(self, simulator: Tcan1463Simulator) -> None:
        """Pin writes must be a state or a (state, voltage) pair."""
        with pytest.raises(InvalidArgumentError):
            simulator.set_pins({PinId.EN: (PinState.HIGH, 3.3, 1)})

    def test_get_pins(self, simulator: Tcan1463Simulator) -> None:
        """get_pins() reads all pins or a selection."""
        assert set(simulator.get_pins()) == set(PinId)
        selected = simulator.get_pins(["txd", PinId.VCC])
        assert selected == {
            PinId.TXD: PinValue(PinId.TXD, PinState.HIGH, 0.0),
            PinId.VCC: PinValue(PinId.VCC, PinState.ANALOG, 5.0),
        }

    def test_get_pin_info(self, simulator: Tcan1463Simulator) -> None:
        """Pin metadata is exposed."""
        info = simulator.get_pin_info(PinId.CANH)
        assert info.is_bidirectional
        assert info.max_voltage == 42.0

    def test_step_advances_time(self, simulator: Tcan1463Simulator) -> None:
        """step() advances the clock by the tick length."""
        simulator.step(250)
        simulator.step(0)
        simulator.step(750)
        assert simulator.now_ns == 1_000

    @pytest.mark.parametrize("delta", [-1, 1.5, True, "10"])
    def test_step_rejects_bad_delta(self, simulator: Tcan1463Simulator, delta: object) -> None:
        """step() only accepts non-negative integers."""
        with pytest.raises(InvalidArgumentError):
            simulator.step(delta)  # type: ignore[arg-type]
        assert simulator.now_ns == 0

    def test_run_until_met(self, simulator: Tcan1463Simulator) -> None:
        """run_until() stops as soon as the condition holds."""
        simulator.set_pins({PinId.EN: PinState.HIGH, PinId.NSTB: PinState.HIGH})
        met = simulator.run_until(lambda s: s.mode is OperatingMode.NORMAL, 10 * _US)
        assert met
        assert simulator.now_ns == 1_000

    def test_run_until_timeout(self, simulator: Tcan1463Simulator) -> None:
        """run_until() gives up once the timeout has elapsed."""
        assert not simulator.run_until(lambda s: False, 5_000, step_ns=1_000)
        assert simulator.now_ns == 5_000

    def test_run_until_already_true(self, simulator: Tcan1463Simulator) -> None:
        """A condition that already holds needs no steps."""
        assert simulator.run_until(lambda s: True, 0)
        assert simulator.now_ns == 0

    def test_run_until_bad_arguments(self, simulator: Tcan1463Simulator) -> None:
        """run_until() validates its arguments."""
        with pytest.raises(InvalidArgumentError):
            simulator.run_until("ready", 1_000)  # type: ignore[arg-type]
        with pytest.raises(InvalidArgumentError):
            simulator.run_until(lambda s: False, -1)
        with pytest.raises(InvalidArgumentError):
            simulator.run_until(lambda s: False, 1_000, step_ns=0)


# -----------------------------------------------------------------------------
# End-to-end scenarios
# -----------------------------------------------------------------------------


class TestScenarios:
    """End-to-end power-up, fault and sleep/wake scenarios."""

    def test_power_up_with_settling(self, simulator: Tcan1463Simulator) -> None:
        """Rails at 5 V, wait for power-up, then enable into Normal."""
        simulator.set_supply_voltages(5.0, 5.0, 3.3)
        simulator.step(TPWRUP_NS)
        simulator.set_pins({PinId.EN: PinState.HIGH, PinId.NSTB: PinState.HIGH})
        simulator.step(TMODE1_NS)
        assert simulator.mode is OperatingMode.NORMAL
        assert simulator.get_flags().pwron

    def test_dominant_timeout_fault(self, normal_simulator: Tcan1463Simulator) -> None:
        """TXD held low for 5 ms latches TXDDTO, asserts nFAULT and stops the driver."""
        sim = normal_simulator
        sim.set_pin(PinId.TXD, PinState.LOW)
        assert sim.run_until(lambda s: s.now_ns >= 5 * _MS + 1_000, 5 * _MS, step_ns=10 * _US)
        assert sim.get_flags().txddto
        assert sim.get_pin(PinId.NFAULT).is_low
        assert not sim.driver_enabled

    def test_sleep_then_wake(self, normal_simulator: Tcan1463Simulator) -> None:
        """Go-to-Sleep, Sleep, local wake to Standby, then Normal."""
        sim = normal_simulator
        modes: list[OperatingMode] = []
        sim.register_callback(EventType.MODE_CHANGE, lambda e: modes.append(e.new_mode))
        _to_sleep(sim)
        sim.set_pin(PinId.WAKE, PinState.HIGH)
        sim.step(1_000)
        assert sim.get_flags().wakerq
        sim.set_pin(PinId.NSTB, PinState.HIGH)
        sim.step(1_000)

        assert modes == [
            OperatingMode.GO_TO_SLEEP,
            OperatingMode.SLEEP,
            OperatingMode.STANDBY,
            OperatingMode.NORMAL,
        ]
        flags = sim.get_flags()
        assert not flags.pwron
        assert not flags.wakerq


# -----------------------------------------------------------------------------
# Power-up and modes
# -----------------------------------------------------------------------------


class TestPowerUp:
    """Tests for power-up into Normal mode."""

    def test_power_up_to_normal(self, normal_simulator: Tcan1463Simulator) -> None:
        """EN and nSTB high bring the device up in Normal mode."""
        sim = normal_simulator
        flags = sim.get_flags()
        assert flags.pwron
        assert not flags.uvsup
        assert not flags.any_fault
        assert sim.transceiver_state is TransceiverState.ACTIVE
        assert sim.driver_enabled
        assert sim.bus_state is BusState.RECESSIVE
        assert sim.get_pin(PinId.RXD) == PinValue(PinId.RXD, PinState.HIGH, 3.3)
        assert sim.get_pin(PinId.NFAULT) == PinValue(PinId.NFAULT, PinState.HIGH, 3.3)
        inh = sim.get_pin(PinId.INH)
        assert inh.state is PinState.HIGH
        assert inh.voltage == pytest.approx(11.25)

    def test_power_up_to_silent(self, simulator: Tcan1463Simulator) -> None:
        """nSTB high with EN low selects Silent mode with the driver off."""
        simulator.set_pin(PinId.NSTB, PinState.HIGH)
        simulator.step(1_000)
        assert simulator.mode is OperatingMode.SILENT
        assert not simulator.driver_enabled
        assert simulator.get_pin(PinId.CANH).voltage == pytest.approx(2.5)

    def test_stays_off_with_nstb_low(self, simulator: Tcan1463Simulator) -> None:
        """Off cannot move to the sleep modes."""
        simulator.step(1_000)
        assert simulator.mode is OperatingMode.OFF
        assert simulator.get_flags().pwron
        assert simulator.get_pin(PinId.INH).state is PinState.HIGH_IMPEDANCE

    def test_time_in_mode(self, normal_simulator: Tcan1463Simulator) -> None:
        """time_in_mode_ns counts from the mode's entry."""
        normal_simulator.step(4_000)
        assert normal_simulator.time_in_mode_ns == 4_000

    def test_vsup_undervoltage_forces_off(self, normal_simulator: Tcan1463Simulator) -> None:
        """Dropping VSUP below its threshold turns the device off."""
        sim = normal_simulator
        sim.set_supply_voltages(3.0, 5.0, 3.3)
        sim.step(1_000)
        assert sim.mode is OperatingMode.OFF
        assert sim.get_flags().uvsup
        assert sim.transceiver_state is TransceiverState.OFF
        assert sim.get_pin(PinId.CANH).state is PinState.HIGH_IMPEDANCE
        assert sim.get_pin(PinId.INH).state is PinState.HIGH_IMPEDANCE

        sim.set_supply_voltages(12.0, 5.0, 3.3)
        sim.step(1_000)
        assert sim.mode is OperatingMode.NORMAL
        assert sim.get_flags().pwron

    def test_vcc_undervoltage_filtered(self, normal_simulator: Tcan1463Simulator) -> None:
        """A VCC dip sets UVCC only after the filter time."""
        sim = normal_simulator
        sim.set_supply_voltages(12.0, 3.0, 3.3)
        sim.step(1_000)
        sim.step(99 * _MS)
        assert not sim.get_flags().uvcc
        sim.step(1 * _MS)
        assert sim.get_flags().uvcc
        assert sim.mode is OperatingMode.NORMAL

    def test_vcc_undervoltage_held_for_filter_time(
        self, normal_simulator: Tcan1463Simulator
    ) -> None:
        """VCC held low for exactly the filter time in 1 ms steps sets UVCC."""
        sim = normal_simulator
        sim.set_supply_voltages(12.0, 3.0, 3.3)
        for _ in range(99):
            sim.step(1 * _MS)
        assert not sim.get_flags().uvcc
        sim.step(1 * _MS)
        assert sim.get_flags().uvcc


class TestSleepAndWake:
    """Tests for the sleep and wake-up sequence."""

    def test_local_wake_sequence(self, normal_simulator: Tcan1463Simulator) -> None:
        """Sleep, local wake-up to Standby, then back to Normal."""
        sim = normal_simulator
        _to_sleep(sim)
        assert sim.get_pin(PinId.INH).state is PinState.HIGH_IMPEDANCE

        sim.set_pin(PinId.WAKE, PinState.HIGH)
        sim.step(1_000)
        flags = sim.get_flags()
        assert flags.wakerq
        assert flags.wakesr
        assert sim.mode is OperatingMode.STANDBY
        assert sim.wake_handler.state.source_local
        assert sim.get_pin(PinId.NFAULT).is_low
        assert sim.get_pin(PinId.INH).state is PinState.HIGH_IMPEDANCE

        sim.step(100 * _US)
        assert sim.get_pin(PinId.INH).state is PinState.HIGH

        sim.set_pin(PinId.NSTB, PinState.HIGH)
        sim.step(1_000)
        flags = sim.get_flags()
        assert sim.mode is OperatingMode.NORMAL
        assert not flags.pwron
        assert not flags.wakerq
        assert flags.wakesr
        assert sim.get_pin(PinId.NFAULT).is_high

    def test_remote_wake(self, normal_simulator: Tcan1463Simulator) -> None:
        """A filtered dominant-recessive-dominant pattern wakes the device."""
        sim = normal_simulator
        _to_sleep(sim)
        for dominant in (True, True, False, True):
            _bus(sim, dominant)
            sim.step(600)
        assert sim.get_flags().wakerq
        assert not sim.wake_handler.state.source_local
        assert sim.mode is OperatingMode.STANDBY

    def test_short_pulse_does_not_wake(self, normal_simulator: Tcan1463Simulator) -> None:
        """Bus pulses shorter than the filter time are ignored."""
        sim = normal_simulator
        _to_sleep(sim)
        for dominant in (True, False, True, False):
            _bus(sim, dominant)
            sim.step(200)
        assert not sim.get_flags().wakerq
        assert sim.mode is OperatingMode.SLEEP

    def test_go_to_sleep_aborted(self, normal_simulator: Tcan1463Simulator) -> None:
        """Go-to-Sleep cannot go back to Normal; it only proceeds to Sleep."""
        sim = normal_simulator
        sim.set_pin(PinId.NSTB, PinState.LOW)
        sim.step(1_000)
        sim.set_pin(PinId.NSTB, PinState.HIGH)
        sim.step(1_000)
        assert sim.mode is OperatingMode.GO_TO_SLEEP


# -----------------------------------------------------------------------------
# Bus and faults
# -----------------------------------------------------------------------------


class TestBusAndFaults:
    """Tests for bus driving, RXD timing and faults."""

    def test_dominant_drive(self, normal_simulator: Tcan1463Simulator) -> None:
        """TXD low drives the bus dominant."""
        sim = normal_simulator
        sim.set_pin(PinId.TXD, PinState.LOW)
        sim.step(1_000)
        assert sim.bus_state is BusState.DOMINANT
        assert sim.get_pin(PinId.CANH).voltage == 3.5
        assert sim.get_pin(PinId.CANL).voltage == 1.5
        assert sim.get_pin(PinId.RXD).is_low

    def test_rxd_propagation_delay(self, normal_simulator: Tcan1463Simulator) -> None:
        """RXD follows the bus 145 ns after TXD falls and 150 ns after it rises."""
        sim = normal_simulator
        sim.set_pin(PinId.TXD, PinState.LOW)
        for _ in range(13):
            sim.step(10)
            assert sim.get_pin(PinId.RXD).is_high
        sim.step(10)
        assert sim.now_ns == 1_140
        assert sim.get_pin(PinId.RXD).is_high
        sim.step(10)
        assert sim.get_pin(PinId.RXD).is_low

        sim.set_pin(PinId.TXD, PinState.HIGH)
        sim.step(10)
        start = sim.now_ns - 10
        while sim.now_ns < start + 150:
            assert sim.get_pin(PinId.RXD).is_low
            sim.step(10)
        assert sim.get_pin(PinId.RXD).is_high

    def test_txd_clamped_on_entry(self, simulator: Tcan1463Simulator) -> None:
        """Entering Normal with TXD low latches TXDCLP and keeps the bus recessive."""
        simulator.set_pins({
            PinId.TXD: PinState.LOW,
            PinId.EN: PinState.HIGH,
            PinId.NSTB: PinState.HIGH,
        })
        simulator.step(1_000)
        assert simulator.get_flags().txdclp
        assert not simulator.driver_enabled
        assert simulator.bus_state is BusState.RECESSIVE
        assert simulator.get_pin(PinId.NFAULT).is_low

    def test_txd_dominant_timeout(self, normal_simulator: Tcan1463Simulator) -> None:
        """TXD held low latches TXDDTO and releases the bus."""
        sim = normal_simulator
        sim.set_pin(PinId.TXD, PinState.LOW)
        for _ in range(12):
            sim.step(100 * _US)
        assert not sim.get_flags().txddto
        sim.step(100 * _US)
        assert sim.get_flags().txddto
        sim.step(100 * _US)
        assert not sim.driver_enabled
        assert sim.bus_state is BusState.RECESSIVE

        sim.set_pin(PinId.TXD, PinState.HIGH)
        sim.step(100 * _US)
        assert sim.get_flags().txddto

    def test_txd_dominant_timeout_in_silent(self, simulator: Tcan1463Simulator) -> None:
        """TXD held low in Silent mode latches TXDDTO although RXD stays high."""
        sim = simulator
        sim.set_pin(PinId.NSTB, PinState.HIGH)
        sim.step(1_000)
        assert sim.mode is OperatingMode.SILENT
        sim.set_pin(PinId.TXD, PinState.LOW)
        for _ in range(12):
            sim.step(100 * _US)
        assert not sim.get_flags().txddto
        sim.step(100 * _US)
        flags = sim.get_flags()
        assert flags.txddto
        assert not flags.txdrxd
        assert sim.get_pin(PinId.RXD).is_high
        assert sim.get_pin(PinId.NFAULT).is_low

    def test_bus_fault_after_four_transitions(self, normal_simulator: Tcan1463Simulator) -> None:
        """Four dominant-to-recessive transitions latch CBF."""
        sim = normal_simulator
        for _ in range(4):
            sim.set_pin(PinId.TXD, PinState.LOW)
            sim.step(1_000)
            sim.set_pin(PinId.TXD, PinState.HIGH)
            sim.step(1_000)
        flags = sim.get_flags()
        assert flags.cbf
        assert not flags.txddto
        assert sim.driver_enabled
        assert sim.get_pin(PinId.NFAULT).is_low

    def test_thermal_shutdown(self, normal_simulator: Tcan1463Simulator) -> None:
        """Over-temperature disables the driver until it cools."""
        sim = normal_simulator
        sim.set_junction_temperature(170.0)
        sim.step(1_000)
        assert sim.get_flags().tsd
        assert not sim.driver_enabled
        sim.set_junction_temperature(25.0)
        sim.step(1_000)
        assert not sim.get_flags().tsd
        assert sim.driver_enabled

    def test_inh_mask(self, normal_simulator: Tcan1463Simulator) -> None:
        """INH_MASK high turns INH off."""
        sim = normal_simulator
        sim.set_pin(PinId.INH_MASK, PinState.HIGH)
        sim.step(1_000)
        assert sim.get_pin(PinId.INH) == PinValue(PinId.INH, PinState.HIGH_IMPEDANCE, 0.0)


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------


class TestConfiguration:
    """Tests for runtime configuration."""

    def test_configure(self, simulator: Tcan1463Simulator) -> None:
        """configure() sets every value together."""
        simulator.configure(13.5, 4.8, 1.8, 85.0, 120.0, 50e-12)
        assert simulator.supply_voltages == SupplyVoltages(13.5, 4.8, 1.8)
        assert simulator.junction_temperature == 85.0
        assert simulator.bus_load.resistance_ohm == 120.0

    def test_configure_rejects_atomically(self, simulator: Tcan1463Simulator) -> None:
        """One bad value leaves the whole configuration unchanged."""
        before = simulator.config
        with pytest.raises(DomainRangeError):
            simulator.configure(13.5, 4.8, 1.8, 85.0, -1.0, 50e-12)
        assert simulator.config == before
        assert simulator.supply_voltages == SupplyVoltages(12.0, 5.0, 3.3)

    def test_supply_out_of_range(self, simulator: Tcan1463Simulator) -> None:
        """Supply voltages outside their configuration range are rejected."""
        with pytest.raises(DomainRangeError):
            simulator.set_supply_voltages(41.0, 5.0, 3.3)
        with pytest.raises(InvalidArgumentError):
            simulator.set_supply_voltages("12", 5.0, 3.3)  # type: ignore[arg-type]
        assert simulator.get_pin(PinId.VSUP).voltage == 12.0

    def test_temperature_out_of_range(self, simulator: Tcan1463Simulator) -> None:
        """Junction temperature outside -40 to 200 C is rejected."""
        with pytest.raises(DomainRangeError):
            simulator.set_junction_temperature(-41.0)
        assert simulator.junction_temperature == 25.0

    def test_bus_load(self, simulator: Tcan1463Simulator) -> None:
        """The bus load can be changed and is validated."""
        simulator.set_bus_load(120.0, 0.0)
        assert simulator.bus_load.resistance_ohm == 120.0
        with pytest.raises(DomainRangeError):
            simulator.set_bus_load(-1.0, 0.0)

    def test_timing_parameters_drive_components(self, simulator: Tcan1463Simulator) -> None:
        """New timing parameters reach every component."""
        params = TimingParameters(
            tuv_ms=200.0,
            ttxddto_ms=3.0,
            tbusdom_ms=2.0,
            twk_filter_us=1.0,
            twk_timeout_ms=1.5,
            tsilence_s=1.0,
        )
        simulator.set_timing_parameters(params)
        assert simulator.timing_parameters == params
        assert simulator.power_monitor.filter_time_ns == 200 * _MS
        assert simulator.fault_detector.txd_timeout_ns == 3 * _MS
        assert simulator.fault_detector.bus_timeout_ns == 2 * _MS
        assert simulator.wake_handler.filter_time_ns == 1_000
        assert simulator.wake_handler.timeout_ns == 1_500_000
        assert simulator.transceiver.silence_time_ns == 1_000_000_000
        assert simulator.bias_controller.silence_time_ns == 1_000_000_000

    def test_timing_parameters_rejected(self, simulator: Tcan1463Simulator) -> None:
        """Out-of-range or mistyped timing parameters are rejected."""
        with pytest.raises(DomainRangeError):
            simulator.set_timing_parameters(TimingParameters(tuv_ms=10.0))
        with pytest.raises(InvalidArgumentError):
            simulator.set_timing_parameters({"tuv_ms": 200.0})  # type: ignore[arg-type]
        assert simulator.timing_parameters == TimingParameters()

    def test_longer_dominant_timeout(self, normal_simulator: Tcan1463Simulator) -> None:
        """The TXD dominant timeout follows the configured value."""
        sim = normal_simulator
        sim.set_timing_parameters(TimingParameters(ttxddto_ms=3.0))
        sim.set_pin(PinId.TXD, PinState.LOW)
        for _ in range(25):
            sim.step(100 * _US)
        assert not sim.get_flags().txddto
        for _ in range(10):
            sim.step(100 * _US)
        assert sim.get_flags().txddto


# -----------------------------------------------------------------------------
# Events
# -----------------------------------------------------------------------------


class TestEvents:
    """Tests for event delivery."""

    def test_mode_change_event(self, simulator: Tcan1463Simulator) -> None:
        """Mode changes are reported with the step's timestamp."""
        callback = MagicMock()
        simulator.register_callback(EventType.MODE_CHANGE, callback)
        simulator.set_pins({PinId.EN: PinState.HIGH, PinId.NSTB: PinState.HIGH})
        simulator.step(1_000)
        callback.assert_called_once_with(
            ModeChangeEvent(1_000, OperatingMode.OFF, OperatingMode.NORMAL)
        )

    def test_flag_change_events(self, simulator: Tcan1463Simulator) -> None:
        """Status flag changes are reported."""
        callback = MagicMock()
        simulator.register_callback(EventType.FLAG_CHANGE, callback)
        simulator.step(1_000)
        changes = {(c.args[0].flag, c.args[0].value) for c in callback.call_args_list}
        assert changes == {(StatusFlag.UVSUP, False), (StatusFlag.PWRON, True)}

    def test_fault_events(self, normal_simulator: Tcan1463Simulator) -> None:
        """Fault flags report both setting and clearing."""
        callback = MagicMock()
        normal_simulator.register_callback(EventType.FAULT_DETECTED, callback)
        normal_simulator.set_junction_temperature(170.0)
        normal_simulator.step(1_000)
        normal_simulator.set_junction_temperature(25.0)
        normal_simulator.step(1_000)
        assert [c.args[0] for c in callback.call_args_list] == [
            FaultEvent(2_000, StatusFlag.TSD, True),
            FaultEvent(3_000, StatusFlag.TSD, False),
        ]

    def test_wake_up_event(self, normal_simulator: Tcan1463Simulator) -> None:
        """A wake-up is reported with its source."""
        sim = normal_simulator
        _to_sleep(sim)
        callback = MagicMock()
        sim.register_callback(EventType.WAKE_UP, callback)
        sim.set_pin(PinId.WAKE, PinState.HIGH)
        sim.step(1_000)
        callback.assert_called_once_with(WakeUpEvent(sim.now_ns, local=True))

    def test_pin_change_event(self, simulator: Tcan1463Simulator) -> None:
        """Pin writes are reported with old and new values."""
        callback = MagicMock()
        simulator.register_callback(EventType.PIN_CHANGE, callback)
        simulator.set_pin(PinId.EN, PinState.HIGH)
        simulator.set_pin(PinId.EN, PinState.HIGH)
        callback.assert_called_once_with(
            PinChangeEvent(
                0,
                PinId.EN,
                PinValue(PinId.EN, PinState.LOW, 0.0),
                PinValue(PinId.EN, PinState.HIGH, 0.0),
            )
        )

    def test_unregistered_callback_not_called(self, simulator: Tcan1463Simulator) -> None:
        """Unregistered callbacks receive nothing."""
        callback = MagicMock()
        simulator.register_callback(EventType.PIN_CHANGE, callback)
        assert simulator.unregister_callback(EventType.PIN_CHANGE, callback)
        simulator.set_pin(PinId.EN, PinState.HIGH)
        callback.assert_not_called()

    def test_failing_callback_does_not_break_step(self, simulator: Tcan1463Simulator) -> None:
        """An exception in a callback does not interrupt the simulation."""
        simulator.register_callback(EventType.MODE_CHANGE, MagicMock(side_effect=ValueError))
        simulator.set_pins({PinId.EN: PinState.HIGH, PinId.NSTB: PinState.HIGH})
        simulator.step(1_000)
        assert simulator.mode is OperatingMode.NORMAL


@pytest.mark.slow
class TestLongRuns:
    """Tests that simulate long stretches with small ticks."""

    def test_idle_bus_stays_fault_free(self, normal_simulator: Tcan1463Simulator) -> None:
        """Ten milliseconds of idle bus raise no fault."""
        sim = normal_simulator
        for _ in range(10_000):
            sim.step(1_000)
        assert not sim.get_flags().any_fault
        assert sim.mode is OperatingMode.NORMAL
