"""Simulated time base.

The simulation clock counts integer nanoseconds from zero and only moves
forward, by caller-supplied deltas.

Example:
    >>> clock = TimingEngine()
    >>> clock.advance(1500)
    >>> clock.now()
    1500
    >>> clock.has_elapsed(500, 1000)
    True
"""

from __future__ import annotations

from dataclasses import dataclass

from hwtest_tcan1463.errors import InvalidArgumentError


@dataclass
class TimingEngine:
    """Monotonic nanosecond clock.

    Attributes:
        current_ns: Current simulated time.
        previous_ns: Simulated time before the most recent advance.
    """

    current_ns: int = 0
    previous_ns: int = 0

    def now(self) -> int:
        """Return the current simulated time in nanoseconds."""
        return self.current_ns

    def advance(self, delta_ns: int) -> None:
        """Advance the clock.

        Args:
            delta_ns: Non-negative number of nanoseconds to advance by.

        Raises:
            InvalidArgumentError: If delta_ns is not a non-negative integer.
        """
        if isinstance(delta_ns, bool) or not isinstance(delta_ns, int):
            raise InvalidArgumentError(f"delta_ns must be an integer, got {delta_ns!r}")
        if delta_ns < 0:
            raise InvalidArgumentError(f"delta_ns must be non-negative, got {delta_ns}")
        self.previous_ns = self.current_ns
        self.current_ns += delta_ns

    def elapsed_since(self, start_ns: int) -> int:
        """Return the time elapsed since start_ns, saturating at zero."""
        return max(0, self.current_ns - start_ns)

    def has_elapsed(self, start_ns: int, duration_ns: int) -> bool:
        """Return True if at least duration_ns has passed since start_ns."""
        return self.current_ns - start_ns >= duration_ns

    def reset(self) -> None:
        """Return the clock to time zero."""
        self.current_ns = 0
        self.previous_ns = 0
