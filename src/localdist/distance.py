"""Locally weighted point-to-point distance.

For vectors ``A`` and ``B`` with weight matrices ``Ma`` and ``Mb``::

    d(A, B) = max( sqrt((A-B)ᵗ · Ma · (A-B)),  sqrt((B-A)ᵗ · Mb · (B-A)) )

Each one-sided form measures the difference in the local metric of one
endpoint; taking the maximum makes the result symmetric.  When either
endpoint has no weight matrix the pair is not comparable and the result
is :meth:`LocalDistance.undefined`, which orders after every defined
distance and converts to ``float('inf')``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import total_ordering
from typing import Optional

from localdist.matrix_store import WeightMatrixStore
from localdist.quadratic import SQUARED_DISTANCE_TOLERANCE, quadratic_form_distance
from localdist.vector import FeatureVector, check_dimensionality

_INFINITY_SPELLINGS = frozenset({"inf", "+inf", "infinity", "+infinity"})


@total_ordering
@dataclass(frozen=True)
class LocalDistance:
    """A distance value, or the tagged "not comparable" sentinel.

    ``value`` is a finite non-negative float, or ``None`` when at least
    one weight matrix was missing.  ``float(d)`` is ``inf`` for the
    sentinel, so callers that only rank can treat it as maximally far.
    """

    value: Optional[float]

    def __post_init__(self) -> None:
        if self.value is None:
            return
        if isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
            raise TypeError(f"Distance must be a number, got: {type(self.value).__name__}")
        if not math.isfinite(self.value) or self.value < 0:
            raise ValueError(
                f"Distance must be finite and non-negative, got: {self.value}. "
                "Use LocalDistance.undefined() for incomparable pairs."
            )
        object.__setattr__(self, "value", float(self.value))

    @classmethod
    def undefined(cls) -> "LocalDistance":
        return cls(None)

    @classmethod
    def parse(cls, text: str) -> "LocalDistance":
        """Parse a distance written as a non-negative float or ``inf``."""
        token = text.strip().lower()
        if token in _INFINITY_SPELLINGS:
            return cls.undefined()
        try:
            return cls(float(token))
        except ValueError:
            raise ValueError(
                f"Cannot parse distance {text!r}: expected a non-negative "
                "number or 'inf'"
            ) from None

    @property
    def is_defined(self) -> bool:
        return self.value is not None

    def __float__(self) -> float:
        return math.inf if self.value is None else self.value

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, LocalDistance):
            return NotImplemented
        return float(self) < float(other)

    def __str__(self) -> str:
        return "inf" if self.value is None else repr(self.value)


class LocalDistanceEvaluator:
    """Evaluates the locally weighted distance from a weight matrix store."""

    def __init__(
        self,
        store: WeightMatrixStore,
        *,
        tolerance: float = SQUARED_DISTANCE_TOLERANCE,
    ) -> None:
        self.store = store
        self.tolerance = tolerance

    def distance(self, a: FeatureVector, b: FeatureVector) -> LocalDistance:
        """Return ``max(dist_A(A, B), dist_B(B, A))``.

        Raises
        ------
        DimensionalityMismatchError
            If *a* and *b*, or a vector and its matrix, differ in
            dimensionality.
        NonPositiveSemidefiniteError
            If a weight matrix yields a clearly negative squared distance.
        """
        check_dimensionality(a, b)
        ma = self.store.get(a.id)
        mb = self.store.get(b.id)
        if ma is None or mb is None:
            return LocalDistance.undefined()

        a_minus_b = a.as_array() - b.as_array()
        b_minus_a = -a_minus_b
        dist_a = quadratic_form_distance(a_minus_b, ma, tolerance=self.tolerance)
        dist_b = quadratic_form_distance(b_minus_a, mb, tolerance=self.tolerance)
        return LocalDistance(max(dist_a, dist_b))
