#!/usr/bin/env python3
"""Sleep and wake-up example for the TCAN1463-Q1 simulator.

This example powers the simulated transceiver up into Normal mode, sends it
to sleep through Go-to-Sleep, wakes it with a remote wake-up pattern on the
bus and returns to Normal mode. Mode changes and wake-ups are printed as
they happen.

An optional YAML file can override supply voltages, temperature and timing:

    timing:
      tsilence_s: 0.8
      twk_filter_us: 1.0

Usage:
    python sleep_wake.py [config.yaml]
"""

from __future__ import annotations

import logging
import sys

from hwtest_tcan1463 import (
    EventType,
    ModeChangeEvent,
    OperatingMode,
    PinId,
    PinState,
    SimulatorConfig,
    SimulatorEvent,
    Tcan1463Simulator,
    WakeUpEvent,
    load_config,
)


def on_event(event: SimulatorEvent) -> None:
    """Print mode changes and wake-ups."""
    t_ms = event.timestamp_ns / 1e6
    if isinstance(event, ModeChangeEvent):
        print(f"[{t_ms:12.3f} ms] mode {event.old_mode.name} -> {event.new_mode.name}")
    elif isinstance(event, WakeUpEvent):
        source = "local" if event.local else "remote"
        print(f"[{t_ms:12.3f} ms] {source} wake-up")


def drive_bus(sim: Tcan1463Simulator, dominant: bool) -> None:
    """Drive CANH/CANL from the remote node's side."""
    canh, canl = (3.5, 1.5) if dominant else (2.5, 2.5)
    sim.set_pins({PinId.CANH: (PinState.ANALOG, canh), PinId.CANL: (PinState.ANALOG, canl)})


def main() -> None:
    """Run the sleep/wake sequence."""
    logging.basicConfig(level=logging.INFO)
    config = load_config(sys.argv[1]) if len(sys.argv) > 1 else SimulatorConfig()

    with Tcan1463Simulator(config) as sim:
        sim.register_callback(EventType.MODE_CHANGE, on_event)
        sim.register_callback(EventType.WAKE_UP, on_event)

        # Power up into Normal mode
        sim.set_pins({PinId.EN: PinState.HIGH, PinId.NSTB: PinState.HIGH})
        sim.run_until(lambda s: s.mode is OperatingMode.NORMAL, timeout_ns=1_000_000)

        # nSTB low starts Go-to-Sleep; Sleep follows after the silence time
        sim.set_pin(PinId.NSTB, PinState.LOW)
        sim.step(1_000)
        sim.step(config.timing.tsilence_ns)
        print(f"Mode after silence: {sim.mode.name}")

        # Remote wake-up: dominant, recessive, dominant, each held past the filter
        phase_ns = config.timing.twk_filter_ns + 100
        for dominant in (True, True, False, True):
            drive_bus(sim, dominant)
            sim.step(phase_ns)

        flags = sim.get_flags()
        print(f"WAKERQ={flags.wakerq} WAKESR={flags.wakesr} nFAULT={sim.get_pin(PinId.NFAULT).state.name}")

        # Back to Normal, which clears the wake request
        sim.set_pin(PinId.NSTB, PinState.HIGH)
        sim.step(1_000)
        flags = sim.get_flags()
        print(f"Mode: {sim.mode.name} WAKERQ={flags.wakerq} WAKESR={flags.wakesr}")


if __name__ == "__main__":
    main()
