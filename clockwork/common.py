"""Common definitions and utilities for the rotation simulator.

This module contains the time units, global constants, action identifiers
and the error taxonomy shared by the simulation core.

All time in the simulator is measured in centiseconds; i.e. ``Timestamp(123)``
means '1.23 seconds since simulation start' and ``Duration(456)`` means
'4.56 seconds'.
"""

from enum import Enum

# Global constants
CENTISECONDS_PER_SECOND = 100
STARTING_MP = 10000  # MP the player starts every run with
DEFAULT_DURATION = 100_000  # Default simulation horizon in centiseconds


class Duration(int):
    """Signed amount of elapsed time, in centiseconds."""

    def __add__(self, other):
        if isinstance(other, Timestamp):
            return Timestamp(int(self) + int(other))
        if isinstance(other, int):
            return Duration(int(self) + int(other))
        return NotImplemented

    __radd__ = __add__

    def __sub__(self, other):
        if isinstance(other, Timestamp):
            return NotImplemented
        if isinstance(other, int):
            return Duration(int(self) - int(other))
        return NotImplemented

    def __rsub__(self, other):
        if isinstance(other, int) and not isinstance(other, Timestamp):
            return Duration(int(other) - int(self))
        return NotImplemented

    def __neg__(self):
        return Duration(-int(self))

    def __repr__(self):
        return f"Duration({int(self)})"

    @property
    def seconds(self) -> float:
        return int(self) / CENTISECONDS_PER_SECOND


class Timestamp(int):
    """
    Time since simulation start, in centiseconds.

    Timestamps are totally ordered. Adding or subtracting a Duration (or a
    plain int) yields a Timestamp; subtracting another Timestamp yields a
    Duration. Adding two Timestamps is meaningless and raises TypeError.
    """

    def __add__(self, other):
        if isinstance(other, Timestamp):
            raise TypeError("cannot add two Timestamps")
        if isinstance(other, int):
            return Timestamp(int(self) + int(other))
        return NotImplemented

    __radd__ = __add__

    def __sub__(self, other):
        if isinstance(other, Timestamp):
            return Duration(int(self) - int(other))
        if isinstance(other, int):
            return Timestamp(int(self) - int(other))
        return NotImplemented

    def __rsub__(self, other):
        return NotImplemented

    def __repr__(self):
        return f"Timestamp({int(self)})"

    @property
    def seconds(self) -> float:
        return int(self) / CENTISECONDS_PER_SECOND


def format_cs(cs: int):
    """
    Format integer centiseconds to "±mm:ss.00" string format,
    handling both positive and negative values.

    Args:
        cs (int): Time in centiseconds (positive or negative)

    Returns:
        str: Formatted time string "±mm:ss.00"
    """
    is_negative = cs < 0
    abs_cs = abs(int(cs))

    minutes = abs_cs // 6000
    seconds = (abs_cs // 100) % 60
    centiseconds = abs_cs % 100

    sign = "-" if is_negative else "+"
    return f"{sign}{minutes:02d}:{seconds:02d}.{centiseconds:02d}"


class ActionID(str, Enum):
    """Identifiers of the built-in actions.

    Catalogs loaded from data may use any other string as an identifier;
    the enum values compare and hash equal to their plain string form.
    """

    HIT = "hit"
    RECHARGE = "recharge"

    def __str__(self):
        return self.value

    # Hash like the plain string so either form finds the same catalog entry.
    def __hash__(self):
        return hash(self.value)


class InvariantViolation(RuntimeError):
    """Raised when a caller breaks a precondition of the simulation core.

    These are logic errors (typically a faulty rotation), never transient
    conditions; the core does not try to recover from them.
    """


class ActionLockedError(InvariantViolation):
    """Tried to begin an action while a lock prevents it."""


class InsufficientMPError(InvariantViolation):
    """Tried to spend more MP than the player has."""


class UnknownActionError(KeyError):
    """The action identifier is not registered in the catalog."""

    def __str__(self):
        return f"Unknown action: {self.args[0]!r}" if self.args else "Unknown action"
