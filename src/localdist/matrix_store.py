"""Weight matrix store: one optional weight matrix per object id.

The store is the only mutable state shared between the preprocessing
trigger (single writer) and the distance / bound evaluators (readers).
It performs no computation.  Entries of deleted objects are not purged;
they are overwritten by the next preprocessing pass or ignored.

Use is single-threaded: :meth:`WeightMatrixStore.writing` brackets a
write pass, and reads issued while a pass is open raise
:class:`~localdist.errors.ConcurrentAccessError` instead of observing a
half-rebuilt table.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import numpy as np

from localdist.errors import ConcurrentAccessError
from localdist.quadratic import as_weight_matrix


class WeightMatrixStore:
    """Association table ``object id -> weight matrix``.

    Parameters
    ----------
    dimensionality:
        Side length every matrix must have.  When ``None`` it is fixed
        by the first matrix stored.
    thread_confined:
        If ``True`` (default), any access from a thread other than the
        one that created the store raises ``ConcurrentAccessError``.
    """

    def __init__(
        self,
        dimensionality: Optional[int] = None,
        *,
        thread_confined: bool = True,
    ) -> None:
        if dimensionality is not None and (
            isinstance(dimensionality, bool)
            or not isinstance(dimensionality, int)
            or dimensionality < 1
        ):
            raise ValueError(
                f"dimensionality must be a positive integer, got: {dimensionality!r}"
            )
        self._dimensionality = dimensionality
        self._matrices: Dict[int, np.ndarray] = {}
        self._writing = False
        self._owner = threading.get_ident() if thread_confined else None

    # ── Guards ───────────────────────────────────────────────────

    def _check_thread(self) -> None:
        if self._owner is not None and threading.get_ident() != self._owner:
            raise ConcurrentAccessError(
                "WeightMatrixStore is confined to the thread that created it"
            )

    def _check_readable(self) -> None:
        self._check_thread()
        if self._writing:
            raise ConcurrentAccessError(
                "Weight matrices are being recomputed; queries must not "
                "interleave with preprocessing"
            )

    @contextmanager
    def writing(self) -> Iterator["WeightMatrixStore"]:
        """Bracket a write pass; reads inside the pass are rejected."""
        self._check_thread()
        if self._writing:
            raise ConcurrentAccessError("A write pass is already in progress")
        self._writing = True
        try:
            yield self
        finally:
            self._writing = False

    @property
    def is_writing(self) -> bool:
        return self._writing

    # ── Association access ───────────────────────────────────────

    @property
    def dimensionality(self) -> Optional[int]:
        return self._dimensionality

    def get(self, object_id: int) -> Optional[np.ndarray]:
        """Return the weight matrix of *object_id*, or ``None`` if absent."""
        self._check_readable()
        return self._matrices.get(object_id)

    def set(self, object_id: int, matrix: Any) -> None:
        """Associate *matrix* with *object_id*, replacing any previous one.

        The matrix is copied and frozen (``writeable=False``).
        """
        self._check_thread()
        m = as_weight_matrix(matrix, self._dimensionality)
        if self._dimensionality is None:
            self._dimensionality = m.shape[0]
        m.setflags(write=False)
        self._matrices[object_id] = m

    def discard(self, object_id: int) -> None:
        """Remove the association of *object_id* if there is one."""
        self._check_thread()
        self._matrices.pop(object_id, None)

    def clear(self) -> None:
        self._check_thread()
        self._matrices.clear()

    def has_any(self) -> bool:
        """Return ``True`` if at least one object has a weight matrix."""
        self._check_readable()
        return bool(self._matrices)

    def ids(self) -> List[int]:
        self._check_readable()
        return sorted(self._matrices)

    def snapshot(self) -> Dict[int, np.ndarray]:
        """Return a shallow copy of the table (matrices are read-only)."""
        self._check_readable()
        return dict(self._matrices)

    def __contains__(self, object_id: object) -> bool:
        self._check_readable()
        return object_id in self._matrices

    def __len__(self) -> int:
        self._check_readable()
        return len(self._matrices)

    def __repr__(self) -> str:
        return (
            f"WeightMatrixStore(dimensionality={self._dimensionality}, "
            f"entries={len(self._matrices)})"
        )
