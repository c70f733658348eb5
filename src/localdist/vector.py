"""Feature vectors and the dimensionality guard."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np

from localdist.errors import DimensionalityMismatchError


def check_dimensionality(first: Any, second: Any) -> int:
    """Return the shared dimensionality of *first* and *second*.

    Both arguments must expose a ``dimensionality`` attribute
    (:class:`FeatureVector`, :class:`~localdist.spatial.MBR`).

    Raises
    ------
    DimensionalityMismatchError
        If the two dimensionalities differ.
    """
    if first.dimensionality != second.dimensionality:
        raise DimensionalityMismatchError(
            "Different dimensionality of objects\n"
            f"  first argument: {first}\n"
            f"  second argument: {second}"
        )
    return first.dimensionality


def _coordinates(values: Any) -> tuple[float, ...]:
    """Return *values* as a tuple of finite floats.

    Every offending coordinate is reported, not just the first.
    """
    if isinstance(values, np.ndarray):
        values = values.tolist()
    if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
        raise TypeError(
            f"Feature vector values must be a sequence, got: {type(values).__name__}"
        )
    if len(values) == 0:
        raise ValueError("Feature vector must not be empty")
    bad = [
        f"[{i}]={v!r}"
        for i, v in enumerate(values)
        if isinstance(v, bool)
        or not isinstance(v, (int, float))
        or not math.isfinite(v)
    ]
    if bad:
        raise ValueError(
            "Feature vector coordinates must be finite numbers, got: " + ", ".join(bad)
        )
    return tuple(float(v) for v in values)


@dataclass(frozen=True)
class FeatureVector:
    """An immutable real vector stored in a dataset under an integer id.

    Dimension indices follow the 1-based domain convention in
    :meth:`get_value`; :meth:`as_array` gives the 0-based numpy view.
    """

    id: int
    values: tuple[float, ...]

    def __post_init__(self) -> None:
        if isinstance(self.id, bool) or not isinstance(self.id, int):
            raise TypeError(f"Object id must be an int, got: {type(self.id).__name__}")
        object.__setattr__(self, "values", _coordinates(self.values))

    @property
    def dimensionality(self) -> int:
        return len(self.values)

    def get_value(self, dimension: int) -> float:
        """Return the value at the 1-based *dimension*."""
        if not 1 <= dimension <= len(self.values):
            raise IndexError(
                f"Dimension {dimension} out of range 1..{len(self.values)}"
            )
        return self.values[dimension - 1]

    def as_array(self) -> np.ndarray:
        return np.array(self.values, dtype=float)

    def with_values(self, values: Sequence[float]) -> "FeatureVector":
        """Return a vector with the same id and new *values*."""
        return FeatureVector(self.id, tuple(values))
