"""
Minimum bounding regions and geometric bounds for spatial indexes.

Three bounds are offered, all consistent with the locally weighted
distance of :mod:`localdist.distance`:

* **point–region**: the point is clamped coordinate-wise into the
  region and the difference is measured in the point's own weight
  matrix.  Points inside the region (boundary included) get 0.
* **region–region**: regions carry no weight matrix, so the bound
  falls back to the Euclidean norm of the per-axis interval gaps.
  Regions overlapping on every axis get 0.
* **center distance**: Euclidean distance between region centers.
  This is an ordering heuristic (e.g. for traversal order), not a
  bound; it may exceed the true minimum distance.

All functions reject arguments of different dimensionality with
:class:`~localdist.errors.DimensionalityMismatchError`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np

from localdist.distance import LocalDistance
from localdist.errors import DimensionalityMismatchError
from localdist.matrix_store import WeightMatrixStore
from localdist.quadratic import SQUARED_DISTANCE_TOLERANCE, quadratic_form_distance
from localdist.vector import FeatureVector, check_dimensionality

# ── Regions ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class MBR:
    """Axis-aligned box given by per-dimension minimum and maximum."""

    min: tuple[float, ...]
    max: tuple[float, ...]

    def __post_init__(self) -> None:
        lo = tuple(float(v) for v in self.min)
        hi = tuple(float(v) for v in self.max)
        if len(lo) != len(hi):
            raise ValueError(
                f"MBR bounds dimension mismatch: {len(lo)} vs {len(hi)}"
            )
        if len(lo) == 0:
            raise ValueError("MBR must have at least one dimension")
        for i, (a, b) in enumerate(zip(lo, hi)):
            if not (math.isfinite(a) and math.isfinite(b)):
                raise ValueError(f"MBR bounds must be finite, got [{a}, {b}] at [{i}]")
            if a > b:
                raise ValueError(f"MBR min exceeds max at [{i}]: {a} > {b}")
        object.__setattr__(self, "min", lo)
        object.__setattr__(self, "max", hi)

    @classmethod
    def from_points(cls, points: Iterable[Sequence[float] | FeatureVector]) -> "MBR":
        """Smallest box containing every point."""
        rows = [p.values if isinstance(p, FeatureVector) else tuple(p) for p in points]
        if not rows:
            raise ValueError("Cannot build an MBR from no points")
        arr = np.array(rows, dtype=float)
        if arr.ndim != 2:
            raise ValueError("Points must all have the same dimensionality")
        return cls(tuple(arr.min(axis=0)), tuple(arr.max(axis=0)))

    @classmethod
    def around(cls, point: Sequence[float] | FeatureVector) -> "MBR":
        """Degenerate box holding exactly *point*."""
        values = point.values if isinstance(point, FeatureVector) else tuple(point)
        return cls(values, values)

    @property
    def dimensionality(self) -> int:
        return len(self.min)

    def get_min(self, dimension: int) -> float:
        """Lower bound in the 1-based *dimension*."""
        self._check_index(dimension)
        return self.min[dimension - 1]

    def get_max(self, dimension: int) -> float:
        """Upper bound in the 1-based *dimension*."""
        self._check_index(dimension)
        return self.max[dimension - 1]

    def _check_index(self, dimension: int) -> None:
        if not 1 <= dimension <= len(self.min):
            raise IndexError(f"Dimension {dimension} out of range 1..{len(self.min)}")

    def center(self) -> tuple[float, ...]:
        return tuple((a + b) / 2.0 for a, b in zip(self.min, self.max))

    def contains(self, point: Sequence[float] | FeatureVector) -> bool:
        values = point.values if isinstance(point, FeatureVector) else tuple(point)
        if len(values) != self.dimensionality:
            raise DimensionalityMismatchError(
                f"Point dimension {len(values)} does not match "
                f"MBR dimension {self.dimensionality}"
            )
        return all(a <= v <= b for a, v, b in zip(self.min, values, self.max))

    def union(self, other: "MBR") -> "MBR":
        check_dimensionality(self, other)
        return MBR(
            tuple(min(a, b) for a, b in zip(self.min, other.min)),
            tuple(max(a, b) for a, b in zip(self.max, other.max)),
        )


# ── Bound functions ─────────────────────────────────────────────────


def min_dist_point_region(
    mbr: MBR,
    point: FeatureVector,
    matrix: np.ndarray,
    *,
    tolerance: float = SQUARED_DISTANCE_TOLERANCE,
) -> float:
    """Minimum distance from *point* to *mbr* in the metric *matrix*.

    The point is clamped into ``[min, max]`` on every axis; the distance
    is ``sqrt(Δᵗ · matrix · Δ)`` with ``Δ = point - clamped``.
    """
    check_dimensionality(mbr, point)
    p = point.as_array()
    clamped = np.clip(p, np.array(mbr.min), np.array(mbr.max))
    return quadratic_form_distance(p - clamped, matrix, tolerance=tolerance)


def _interval_gaps(a: MBR, b: MBR) -> np.ndarray:
    lo_a, hi_a = np.array(a.min), np.array(a.max)
    lo_b, hi_b = np.array(b.min), np.array(b.max)
    # 0 where the intervals overlap, else the distance between nearest edges
    return np.maximum(0.0, np.maximum(lo_b - hi_a, lo_a - hi_b))


def min_dist_region_region(a: MBR, b: MBR) -> float:
    """Euclidean norm of the per-axis gaps between *a* and *b*."""
    check_dimensionality(a, b)
    gaps = _interval_gaps(a, b)
    return math.sqrt(float(gaps @ gaps))


def center_distance_region_region(a: MBR, b: MBR) -> float:
    """Euclidean distance between the centers of *a* and *b*."""
    check_dimensionality(a, b)
    diff = (np.array(a.min) + np.array(a.max)) / 2.0 - (np.array(b.min) + np.array(b.max)) / 2.0
    return math.sqrt(float(diff @ diff))


# ── Evaluator ───────────────────────────────────────────────────────


class GeometricBoundEvaluator:
    """Bounds between points and regions, reading matrices from a store."""

    def __init__(
        self,
        store: WeightMatrixStore,
        *,
        tolerance: float = SQUARED_DISTANCE_TOLERANCE,
    ) -> None:
        self.store = store
        self.tolerance = tolerance

    def min_dist(self, mbr: MBR, point: FeatureVector) -> LocalDistance:
        """Minimum distance between *mbr* and *point*.

        Undefined when the point has no weight matrix: the caller has no
        pruning information for this pair.
        """
        check_dimensionality(mbr, point)
        matrix = self.store.get(point.id)
        if matrix is None:
            return LocalDistance.undefined()
        return LocalDistance(
            min_dist_point_region(mbr, point, matrix, tolerance=self.tolerance)
        )

    def min_dist_regions(self, a: MBR, b: MBR) -> float:
        return min_dist_region_region(a, b)

    def center_distance(self, a: MBR, b: MBR) -> float:
        return center_distance_region_region(a, b)
