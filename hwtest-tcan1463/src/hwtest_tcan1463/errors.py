"""Exception types for hwtest-tcan1463.

This module defines the exception hierarchy used by the transceiver simulator.
All simulator exceptions inherit from Tcan1463Error, allowing consumers to catch
every simulator-specific error with a single except clause.

Argument and range errors also derive from ValueError, and operation errors from
RuntimeError, so generic handlers keep working.

Exception hierarchy:
    Tcan1463Error (base)
    +-- InvalidArgumentError: Malformed or unknown arguments
    +-- DomainRangeError: Values outside a documented physical/timing range
    +-- InvalidOperationError: Operation not allowed in the current state
        +-- PinDirectionError: Write to an output-only pin
        +-- SnapshotError: Incompatible or malformed snapshot
"""


class Tcan1463Error(Exception):
    """Base exception for all simulator errors.

    This is the root of the hwtest-tcan1463 exception hierarchy. Catch this to
    handle any simulator-specific error.
    """


class InvalidArgumentError(Tcan1463Error, ValueError):
    """Raised when an argument is malformed or unknown.

    Examples include an unknown pin name, an unknown event category, a
    negative time step, or a callback that is not callable.
    """


class DomainRangeError(Tcan1463Error, ValueError):
    """Raised when a well-formed value violates a documented range.

    This covers pin voltages outside the pin's interval, supply voltages or
    junction temperature outside their configuration range, and timing
    parameters outside their datasheet range.
    """


class InvalidOperationError(Tcan1463Error, RuntimeError):
    """Raised when an operation is not allowed in the current state.

    The most common cause is calling into a simulator that has been closed.
    """


class PinDirectionError(InvalidOperationError):
    """Raised when writing to a pin that is not an input.

    Output-only pins (RXD, nFAULT, INH) are driven by the device model and
    can only be read.
    """


class SnapshotError(InvalidOperationError):
    """Raised when a snapshot cannot be restored or deserialized.

    This occurs for snapshot format version mismatches or when the snapshot's
    pin set does not match the live simulator.
    """
