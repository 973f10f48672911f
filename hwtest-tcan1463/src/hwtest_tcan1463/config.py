"""Simulator configuration.

Configuration covers the supply rail voltages, junction temperature, bus load
and the six datasheet timing parameters. Each value has a documented range;
validate() raises DomainRangeError for values outside it and the module-level
validate_* helpers answer the same question as a bool.

Configuration can be loaded from YAML:

    junction_temperature_c: 85.0
    bus_load:
      resistance_ohm: 60.0
      capacitance_f: 1.0e-10
    supply:
      vsup: 12.0
      vcc: 5.0
      vio: 3.3
    timing:
      tuv_ms: 200.0
      ttxddto_ms: 2.5
      tbusdom_ms: 2.6
      twk_filter_us: 1.15
      twk_timeout_ms: 1.4
      tsilence_s: 0.9

Every section and key is optional; omitted values take their defaults.

Example:
    >>> config = load_config("tcan1463.yaml")
    >>> sim = Tcan1463Simulator(config)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from hwtest_tcan1463.errors import DomainRangeError, InvalidArgumentError
from hwtest_tcan1463.limits import (
    DEFAULT_BUS_CAPACITANCE_F,
    DEFAULT_BUS_RESISTANCE_OHM,
    DEFAULT_TEMPERATURE_C,
    DEFAULT_VCC_V,
    DEFAULT_VIO_V,
    DEFAULT_VSUP_V,
    TBUSDOM_MAX_MS,
    TBUSDOM_MIN_MS,
    TJ_MAX_C,
    TJ_MIN_C,
    TSILENCE_MAX_S,
    TSILENCE_MIN_S,
    TTXDDTO_MAX_MS,
    TTXDDTO_MIN_MS,
    TUV_MAX_MS,
    TUV_MIN_MS,
    TWK_FILTER_MAX_US,
    TWK_FILTER_MIN_US,
    TWK_TIMEOUT_MAX_MS,
    TWK_TIMEOUT_MIN_MS,
    VCC_CONFIG_MAX_V,
    VCC_CONFIG_MIN_V,
    VIO_CONFIG_MAX_V,
    VIO_CONFIG_MIN_V,
    VSUP_CONFIG_MAX_V,
    VSUP_CONFIG_MIN_V,
    ms_to_ns,
    s_to_ns,
    us_to_ns,
)


def _check_number(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgumentError(f"{name} must be a number, got {value!r}")
    return float(value)


def _check_range(name: str, value: Any, low: float, high: float, unit: str) -> None:
    number = _check_number(name, value)
    if not low <= number <= high:
        raise DomainRangeError(f"{name} must be between {low} and {high} {unit}, got {number}")


def _check_non_negative(name: str, value: Any) -> None:
    number = _check_number(name, value)
    if not number >= 0.0:
        raise DomainRangeError(f"{name} must be non-negative, got {number}")


def _is_valid(check: Any, *args: Any) -> bool:
    try:
        check(*args)
    except (InvalidArgumentError, DomainRangeError):
        return False
    return True


# ---------------------------------------------------------------------------
# Configuration types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TimingParameters:
    """Datasheet timing parameters.

    Defaults are the lower bound of each datasheet range. The simulator uses
    these values for every timed behavior.

    Attributes:
        tuv_ms: VCC/VIO undervoltage filter time (100-350 ms).
        ttxddto_ms: TXD dominant timeout (1.2-3.8 ms).
        tbusdom_ms: Bus dominant timeout (1.4-3.8 ms).
        twk_filter_us: Wake-up pattern phase filter (0.5-1.8 us).
        twk_timeout_ms: Wake-up pattern timeout (0.8-2.0 ms).
        tsilence_s: Bus silence timeout (0.6-1.2 s).
    """

    tuv_ms: float = TUV_MIN_MS
    ttxddto_ms: float = TTXDDTO_MIN_MS
    tbusdom_ms: float = TBUSDOM_MIN_MS
    twk_filter_us: float = TWK_FILTER_MIN_US
    twk_timeout_ms: float = TWK_TIMEOUT_MIN_MS
    tsilence_s: float = TSILENCE_MIN_S

    def validate(self) -> None:
        """Check every parameter against its datasheet range.

        Raises:
            InvalidArgumentError: If a parameter is not a number.
            DomainRangeError: If a parameter is out of range.
        """
        _check_range("tuv_ms", self.tuv_ms, TUV_MIN_MS, TUV_MAX_MS, "ms")
        _check_range("ttxddto_ms", self.ttxddto_ms, TTXDDTO_MIN_MS, TTXDDTO_MAX_MS, "ms")
        _check_range("tbusdom_ms", self.tbusdom_ms, TBUSDOM_MIN_MS, TBUSDOM_MAX_MS, "ms")
        _check_range(
            "twk_filter_us", self.twk_filter_us, TWK_FILTER_MIN_US, TWK_FILTER_MAX_US, "us"
        )
        _check_range(
            "twk_timeout_ms", self.twk_timeout_ms, TWK_TIMEOUT_MIN_MS, TWK_TIMEOUT_MAX_MS, "ms"
        )
        _check_range("tsilence_s", self.tsilence_s, TSILENCE_MIN_S, TSILENCE_MAX_S, "s")

    def is_valid(self) -> bool:
        """Return True if every parameter is within its datasheet range."""
        return _is_valid(self.validate)

    @property
    def tuv_ns(self) -> int:
        """Undervoltage filter time in nanoseconds."""
        return ms_to_ns(self.tuv_ms)

    @property
    def ttxddto_ns(self) -> int:
        """TXD dominant timeout in nanoseconds."""
        return ms_to_ns(self.ttxddto_ms)

    @property
    def tbusdom_ns(self) -> int:
        """Bus dominant timeout in nanoseconds."""
        return ms_to_ns(self.tbusdom_ms)

    @property
    def twk_filter_ns(self) -> int:
        """Wake-up pattern phase filter in nanoseconds."""
        return us_to_ns(self.twk_filter_us)

    @property
    def twk_timeout_ns(self) -> int:
        """Wake-up pattern timeout in nanoseconds."""
        return ms_to_ns(self.twk_timeout_ms)

    @property
    def tsilence_ns(self) -> int:
        """Bus silence timeout in nanoseconds."""
        return s_to_ns(self.tsilence_s)

    def to_dict(self) -> dict[str, float]:
        """Convert to a plain dictionary."""
        return {
            "tuv_ms": self.tuv_ms,
            "ttxddto_ms": self.ttxddto_ms,
            "tbusdom_ms": self.tbusdom_ms,
            "twk_filter_us": self.twk_filter_us,
            "twk_timeout_ms": self.twk_timeout_ms,
            "tsilence_s": self.tsilence_s,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TimingParameters:
        """Create from a dictionary, using defaults for missing keys.

        Raises:
            ValueError: If the dictionary has unknown keys.
        """
        return cls(**_known_keys("timing", data, cls().to_dict()))


@dataclass(frozen=True)
class BusLoad:
    """Bus termination load.

    Attributes:
        resistance_ohm: Load resistance in ohms.
        capacitance_f: Load capacitance in farads.
    """

    resistance_ohm: float = DEFAULT_BUS_RESISTANCE_OHM
    capacitance_f: float = DEFAULT_BUS_CAPACITANCE_F

    def validate(self) -> None:
        """Raise DomainRangeError if either value is negative."""
        _check_non_negative("resistance_ohm", self.resistance_ohm)
        _check_non_negative("capacitance_f", self.capacitance_f)

    def to_dict(self) -> dict[str, float]:
        """Convert to a plain dictionary."""
        return {"resistance_ohm": self.resistance_ohm, "capacitance_f": self.capacitance_f}


@dataclass(frozen=True)
class SupplyVoltages:
    """Supply rail voltages.

    Attributes:
        vsup: Battery supply (0-40 V).
        vcc: Transceiver supply (0-6 V).
        vio: I/O supply (0-5.5 V).
    """

    vsup: float = DEFAULT_VSUP_V
    vcc: float = DEFAULT_VCC_V
    vio: float = DEFAULT_VIO_V

    def validate(self) -> None:
        """Raise DomainRangeError if a rail is outside its configuration range."""
        _check_range("vsup", self.vsup, VSUP_CONFIG_MIN_V, VSUP_CONFIG_MAX_V, "V")
        _check_range("vcc", self.vcc, VCC_CONFIG_MIN_V, VCC_CONFIG_MAX_V, "V")
        _check_range("vio", self.vio, VIO_CONFIG_MIN_V, VIO_CONFIG_MAX_V, "V")

    def to_dict(self) -> dict[str, float]:
        """Convert to a plain dictionary."""
        return {"vsup": self.vsup, "vcc": self.vcc, "vio": self.vio}


@dataclass(frozen=True)
class SimulatorConfig:
    """Complete simulator configuration.

    Attributes:
        junction_temperature_c: Junction temperature (-40 to 200 C).
        bus_load: Bus termination load.
        supply: Supply rail voltages applied at power-on and reset.
        timing: Datasheet timing parameters.
    """

    junction_temperature_c: float = DEFAULT_TEMPERATURE_C
    bus_load: BusLoad = field(default_factory=BusLoad)
    supply: SupplyVoltages = field(default_factory=SupplyVoltages)
    timing: TimingParameters = field(default_factory=TimingParameters)

    def validate(self) -> None:
        """Validate every section.

        Raises:
            InvalidArgumentError: If a value is not a number.
            DomainRangeError: If a value is out of range.
        """
        _check_range(
            "junction_temperature_c", self.junction_temperature_c, TJ_MIN_C, TJ_MAX_C, "C"
        )
        self.bus_load.validate()
        self.supply.validate()
        self.timing.validate()

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary, in the layout load_config() reads."""
        return {
            "junction_temperature_c": self.junction_temperature_c,
            "bus_load": self.bus_load.to_dict(),
            "supply": self.supply.to_dict(),
            "timing": self.timing.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SimulatorConfig:
        """Create and validate a configuration from a dictionary.

        Args:
            data: Mapping in the layout produced by to_dict(). Missing
                sections and keys take their defaults.

        Returns:
            Validated configuration.

        Raises:
            ValueError: If the mapping is malformed or a value is out of range.
        """
        if not isinstance(data, dict):
            raise ValueError("Config must be a mapping")
        defaults = cls()
        unknown = set(data) - set(defaults.to_dict())
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")

        config = cls(
            junction_temperature_c=data.get(
                "junction_temperature_c", defaults.junction_temperature_c
            ),
            bus_load=BusLoad(
                **_known_keys("bus_load", data.get("bus_load", {}), defaults.bus_load.to_dict())
            ),
            supply=SupplyVoltages(
                **_known_keys("supply", data.get("supply", {}), defaults.supply.to_dict())
            ),
            timing=TimingParameters.from_dict(data.get("timing", {})),
        )
        config.validate()
        return config


def _known_keys(section: str, data: Any, defaults: dict[str, float]) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{section} must be a mapping")
    unknown = set(data) - set(defaults)
    if unknown:
        raise ValueError(f"Unknown {section} keys: {', '.join(sorted(unknown))}")
    return dict(data)


# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------


def validate_vsup(voltage: float) -> bool:
    """Return True if voltage is a valid VSUP configuration (0-40 V)."""
    return _is_valid(_check_range, "vsup", voltage, VSUP_CONFIG_MIN_V, VSUP_CONFIG_MAX_V, "V")


def validate_vcc(voltage: float) -> bool:
    """Return True if voltage is a valid VCC configuration (0-6 V)."""
    return _is_valid(_check_range, "vcc", voltage, VCC_CONFIG_MIN_V, VCC_CONFIG_MAX_V, "V")


def validate_vio(voltage: float) -> bool:
    """Return True if voltage is a valid VIO configuration (0-5.5 V)."""
    return _is_valid(_check_range, "vio", voltage, VIO_CONFIG_MIN_V, VIO_CONFIG_MAX_V, "V")


def validate_temperature(temperature: float) -> bool:
    """Return True if temperature is a valid junction temperature (-40 to 200 C)."""
    return _is_valid(
        _check_range, "junction_temperature_c", temperature, TJ_MIN_C, TJ_MAX_C, "C"
    )


def validate_bus_load(resistance_ohm: float, capacitance_f: float) -> bool:
    """Return True if both bus load values are non-negative."""
    return _is_valid(BusLoad(resistance_ohm, capacitance_f).validate)


def validate_timing_parameters(params: TimingParameters) -> bool:
    """Return True if every timing parameter is within its datasheet range."""
    return params.is_valid()


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_config(path: str | Path) -> SimulatorConfig:
    """Load simulator configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Parsed and validated configuration.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ValueError: If the config is malformed or a value is out of range.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return SimulatorConfig()
    if not isinstance(data, dict):
        raise ValueError("Config must be a YAML mapping")
    return SimulatorConfig.from_dict(data)
