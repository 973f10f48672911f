"""Root conftest.py for the hwtest-tcan1463 repository.

This provides shared pytest configuration and simulator fixtures.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from _pytest.config import Config

    from hwtest_tcan1463.simulator import Tcan1463Simulator


# Add all package src directories to path for imports
PROJECT_ROOT = Path(__file__).parent
for pkg_dir in PROJECT_ROOT.glob("hwtest-*/src"):
    if str(pkg_dir) not in sys.path:
        sys.path.insert(0, str(pkg_dir))


def pytest_configure(config: Config) -> None:
    """Register custom markers.

    Args:
        config: pytest configuration object.
    """
    config.addinivalue_line(
        "markers",
        "slow: Simulates long stretches of device time",
    )


def pytest_report_header(config: Config) -> list[str]:
    """Add a suite banner to the pytest header.

    Args:
        config: pytest configuration object.

    Returns:
        List of header lines.
    """
    return ["hwtest-tcan1463 test suite"]


@pytest.fixture
def simulator() -> Iterator[Tcan1463Simulator]:
    """A freshly constructed simulator in Off mode."""
    from hwtest_tcan1463.simulator import Tcan1463Simulator

    sim = Tcan1463Simulator()
    yield sim
    sim.close()


@pytest.fixture
def normal_simulator(simulator: Tcan1463Simulator) -> Tcan1463Simulator:
    """A simulator powered up and stepped into Normal mode."""
    from hwtest_tcan1463.types import OperatingMode, PinId, PinState

    simulator.set_pin(PinId.EN, PinState.HIGH)
    simulator.set_pin(PinId.NSTB, PinState.HIGH)
    simulator.step(1_000)
    assert simulator.mode is OperatingMode.NORMAL
    return simulator
