"""Quadratic-form distances ``sqrt(Δᵗ · M · Δ)``.

A weight matrix is positive-semidefinite in theory, but floating-point
cancellation can push ``Δᵗ · M · Δ`` slightly below zero.  Values within
:data:`SQUARED_DISTANCE_TOLERANCE` of zero are clamped; anything more
negative means the matrix itself is malformed and is reported as
:class:`~localdist.errors.NonPositiveSemidefiniteError`.
Differences too large for the squared form to stay finite raise
:class:`~localdist.errors.DistanceOverflowError`.
"""

from __future__ import annotations

import math
from typing import Any

import numpy as np

from localdist.errors import (
    DimensionalityMismatchError,
    DistanceOverflowError,
    NonPositiveSemidefiniteError,
)

SQUARED_DISTANCE_TOLERANCE = 1e-9


def as_weight_matrix(matrix: Any, dimensionality: int | None = None) -> np.ndarray:
    """Convert *matrix* to a square float64 array.

    Raises
    ------
    DimensionalityMismatchError
        If the matrix is not square, or its side differs from
        *dimensionality* when one is given.
    ValueError
        On empty matrices or non-finite entries.
    """
    m = np.array(matrix, dtype=float)
    if m.ndim != 2 or m.shape[0] != m.shape[1]:
        raise DimensionalityMismatchError(
            f"Weight matrix must be square, got shape {m.shape}"
        )
    if m.shape[0] == 0:
        raise ValueError("Weight matrix must not be empty")
    if dimensionality is not None and m.shape[0] != dimensionality:
        raise DimensionalityMismatchError(
            f"Weight matrix shape {m.shape} does not match "
            f"vector dimension {dimensionality}"
        )
    if not np.all(np.isfinite(m)):
        raise ValueError("Weight matrix entries must be finite")
    return m


def quadratic_form(delta: np.ndarray, matrix: np.ndarray) -> float:
    """Return ``deltaᵗ · matrix · delta`` as a Python float."""
    if matrix.shape != (len(delta), len(delta)):
        raise DimensionalityMismatchError(
            f"Weight matrix shape {matrix.shape} does not match "
            f"vector dimension {len(delta)}"
        )
    with np.errstate(over="ignore", invalid="ignore"):
        return float(delta @ matrix @ delta)


def quadratic_form_distance(
    delta: np.ndarray,
    matrix: np.ndarray,
    *,
    tolerance: float = SQUARED_DISTANCE_TOLERANCE,
) -> float:
    """Return ``sqrt(deltaᵗ · matrix · delta)``.

    Parameters
    ----------
    delta:
        Difference vector.
    matrix:
        Square weight matrix matching ``len(delta)``.
    tolerance:
        Largest magnitude of a negative squared value that is still
        treated as rounding noise and clamped to zero.

    Raises
    ------
    NonPositiveSemidefiniteError
        If the squared distance is below ``-tolerance``.
    DistanceOverflowError
        If the squared distance is not representable as a finite float.
    """
    squared = quadratic_form(delta, matrix)
    if not math.isfinite(squared):
        raise DistanceOverflowError(
            f"Squared distance overflowed ({squared!r}) for a difference "
            f"vector of magnitude up to {float(np.max(np.abs(delta))):.3g}"
        )
    if squared < 0.0:
        if squared < -tolerance:
            raise NonPositiveSemidefiniteError(
                f"Negative squared distance {squared!r} exceeds tolerance "
                f"{tolerance!r}; weight matrix is not positive-semidefinite"
            )
        squared = 0.0
    return math.sqrt(squared)
