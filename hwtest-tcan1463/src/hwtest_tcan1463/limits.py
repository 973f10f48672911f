"""Datasheet limits and fixed electrical constants for the TCAN1463-Q1.

Voltages are in volts, temperatures in degrees Celsius and durations in the
unit named by the suffix. Durations used directly by the simulation kernel are
also given in integer nanoseconds (``*_NS``).
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Time units
# ---------------------------------------------------------------------------

NS_PER_US = 1_000
NS_PER_MS = 1_000_000
NS_PER_S = 1_000_000_000

# ---------------------------------------------------------------------------
# Supply undervoltage thresholds
# ---------------------------------------------------------------------------

UVSUP_FALLING_V = 3.5
UVSUP_RISING_V = 3.85

# Falling ceiling: the flag may set only after the rail stays below this level
# for the undervoltage filter time. Rising: the flag clears above this level.
UVCC_FALLING_V = 3.9
UVCC_RISING_V = 4.1

UVIO_FALLING_V = 1.25
UVIO_RISING_V = 1.4

# ---------------------------------------------------------------------------
# Bus levels
# ---------------------------------------------------------------------------

VDIFF_DOMINANT_V = 0.9
VDIFF_RECESSIVE_V = 0.5

CANH_DOMINANT_V = 3.5
CANL_DOMINANT_V = 1.5
CANH_RECESSIVE_V = 2.5
CANL_RECESSIVE_V = 2.5

AUTONOMOUS_BIAS_V = 2.5

# ---------------------------------------------------------------------------
# Propagation delays (TXD to RXD loop)
# ---------------------------------------------------------------------------

TPROP_LOOP1_MIN_NS = 100
TPROP_LOOP1_MAX_NS = 190
TPROP_LOOP2_MIN_NS = 110
TPROP_LOOP2_MAX_NS = 190

# Recessive to dominant (RXD falling) and dominant to recessive (RXD rising).
RXD_FALL_DELAY_NS = (TPROP_LOOP1_MIN_NS + TPROP_LOOP1_MAX_NS) // 2
RXD_RISE_DELAY_NS = (TPROP_LOOP2_MIN_NS + TPROP_LOOP2_MAX_NS) // 2

# ---------------------------------------------------------------------------
# Fixed device timings
# ---------------------------------------------------------------------------

TPWRUP_NS = 340 * NS_PER_US
TMODE1_NS = 200 * NS_PER_US
TINH_SLP_STB_NS = 100 * NS_PER_US

CBF_TRANSITION_COUNT = 4

# ---------------------------------------------------------------------------
# Thermal and inhibit output
# ---------------------------------------------------------------------------

TSD_C = 165.0
INH_DROP_V = 0.75

# ---------------------------------------------------------------------------
# Configurable timing parameter ranges
# ---------------------------------------------------------------------------

TUV_MIN_MS, TUV_MAX_MS = 100.0, 350.0
TTXDDTO_MIN_MS, TTXDDTO_MAX_MS = 1.2, 3.8
TBUSDOM_MIN_MS, TBUSDOM_MAX_MS = 1.4, 3.8
TWK_FILTER_MIN_US, TWK_FILTER_MAX_US = 0.5, 1.8
TWK_TIMEOUT_MIN_MS, TWK_TIMEOUT_MAX_MS = 0.8, 2.0
TSILENCE_MIN_S, TSILENCE_MAX_S = 0.6, 1.2

# ---------------------------------------------------------------------------
# Configuration ranges
# ---------------------------------------------------------------------------

VSUP_CONFIG_MIN_V, VSUP_CONFIG_MAX_V = 0.0, 40.0
VCC_CONFIG_MIN_V, VCC_CONFIG_MAX_V = 0.0, 6.0
VIO_CONFIG_MIN_V, VIO_CONFIG_MAX_V = 0.0, 5.5
TJ_MIN_C, TJ_MAX_C = -40.0, 200.0

# ---------------------------------------------------------------------------
# Power-on defaults
# ---------------------------------------------------------------------------

DEFAULT_VSUP_V = 12.0
DEFAULT_VCC_V = 5.0
DEFAULT_VIO_V = 3.3
DEFAULT_TEMPERATURE_C = 25.0
DEFAULT_BUS_RESISTANCE_OHM = 60.0
DEFAULT_BUS_CAPACITANCE_F = 100e-12

RUN_UNTIL_STEP_NS = 1_000


def ms_to_ns(value: float) -> int:
    """Convert milliseconds to integer nanoseconds."""
    return int(round(value * NS_PER_MS))


def us_to_ns(value: float) -> int:
    """Convert microseconds to integer nanoseconds."""
    return int(round(value * NS_PER_US))


def s_to_ns(value: float) -> int:
    """Convert seconds to integer nanoseconds."""
    return int(round(value * NS_PER_S))
