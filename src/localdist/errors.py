"""Exception taxonomy for locally weighted distances.

Each exception also derives from the builtin a caller would naturally
catch, so ``except ValueError`` keeps working for dimensionality
mismatches and ``except KeyError`` for unknown object ids.
"""

from __future__ import annotations


class LocalDistanceError(Exception):
    """Base class for all errors raised by localdist."""


class DimensionalityMismatchError(LocalDistanceError, ValueError):
    """Two arguments of a distance or bound operation differ in dimensionality."""


class NonPositiveSemidefiniteError(LocalDistanceError, ArithmeticError):
    """A quadratic form evaluated to a clearly negative squared distance."""


class ConcurrentAccessError(LocalDistanceError, RuntimeError):
    """The weight matrix store was used outside its single-threaded discipline."""


class NotBoundError(LocalDistanceError, RuntimeError):
    """An operation needs a dataset but none is bound."""


class UnknownObjectError(LocalDistanceError, KeyError):
    """No object with the requested id exists in the dataset."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable.
        return str(self.args[0]) if self.args else ""


class DistanceOverflowError(LocalDistanceError, OverflowError):
    """A quadratic form of finite inputs exceeded the float range."""
