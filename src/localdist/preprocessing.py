"""
Preprocessors and the preprocessing trigger.

A *preprocessor* estimates one weight matrix per object from the
dataset and writes it into a :class:`~localdist.matrix_store.WeightMatrixStore`.
The *trigger* decides when a preprocessor runs:

    dataset lifecycle ──▶ PreprocessingTrigger ──▶ Preprocessor.run
    (bind, insert,          (omit_recompute            │
     delete, update)         policy)                   ▼
                                                WeightMatrixStore
                                                       │
                                     distance / bound evaluators (read)

Preprocessors are selected through the closed :class:`PreprocessorChoice`
enum and :func:`make_preprocessor`.  Two reference implementations ship
with the library:

* :class:`IdentityPreprocessor`: the identity matrix for every object,
  which turns the locally weighted distance into Euclidean distance.
* :class:`KnnPCAPreprocessor`: local principal component analysis of
  each object's k nearest neighbours.  Strong eigenvectors (those that
  together explain at least ``alpha`` of the neighbourhood variance)
  get weight 1, weak ones get weight ``big``, so distance along the
  local correlation subspace is cheap and distance across it is
  expensive.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol, Union, runtime_checkable

import numpy as np
from scipy.spatial import cKDTree

from localdist.dataset import MutationEvent, Subscription, VectorDataset
from localdist.errors import NotBoundError
from localdist.matrix_store import WeightMatrixStore

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
# Preprocessor protocol
# ═══════════════════════════════════════════════════════════════════


@runtime_checkable
class Preprocessor(Protocol):
    """Populates a store with one weight matrix per object.

    Implementations may leave objects without an association when no
    matrix can be estimated for them.  Errors propagate to whoever
    triggered the run.
    """

    def run(self, dataset: VectorDataset, store: WeightMatrixStore) -> None:
        ...


# ═══════════════════════════════════════════════════════════════════
# Reference preprocessors
# ═══════════════════════════════════════════════════════════════════


class IdentityPreprocessor:
    """Associate the identity matrix with every object."""

    def run(self, dataset: VectorDataset, store: WeightMatrixStore) -> None:
        dim = dataset.dimensionality
        if dim is None:
            return
        identity = np.eye(dim)
        for object_id in dataset.ids():
            store.set(object_id, identity)

    def settings(self) -> Dict[str, Any]:
        return {}

    def __repr__(self) -> str:
        return "IdentityPreprocessor()"


class KnnPCAPreprocessor:
    """Local-PCA weight matrices from k-nearest-neighbour neighbourhoods.

    Parameters
    ----------
    k:
        Neighbourhood size, the object itself included.  ``None``
        (default) means ``3 * dimensionality``.
    alpha:
        Fraction of the neighbourhood variance the strong eigenvectors
        must explain, in ``(0, 1]``.
    big:
        Weight of the weak eigenvectors; must be ``>= 1``.
    """

    DEFAULT_ALPHA = 0.85
    DEFAULT_BIG = 50.0

    def __init__(
        self,
        k: Optional[int] = None,
        *,
        alpha: float = DEFAULT_ALPHA,
        big: float = DEFAULT_BIG,
    ) -> None:
        if k is not None and (isinstance(k, bool) or not isinstance(k, int) or k < 2):
            raise ValueError(f"k must be an integer >= 2, got: {k!r}")
        if not 0.0 < alpha <= 1.0:
            raise ValueError(f"alpha must be in (0, 1], got: {alpha!r}")
        if big < 1.0:
            raise ValueError(f"big must be >= 1, got: {big!r}")
        self.k = k
        self.alpha = float(alpha)
        self.big = float(big)

    def neighbourhood_size(self, dimensionality: int) -> int:
        return self.k if self.k is not None else 3 * dimensionality

    def run(self, dataset: VectorDataset, store: WeightMatrixStore) -> None:
        dim = dataset.dimensionality
        ids = dataset.ids()
        if dim is None or not ids:
            return
        k = self.neighbourhood_size(dim)
        if len(ids) < k:
            logger.warning(
                "Cannot estimate weight matrices: %d objects but k=%d; "
                "objects are left without a weight matrix",
                len(ids),
                k,
            )
            for object_id in ids:
                store.discard(object_id)
            return

        points = np.array([dataset.get(i).values for i in ids], dtype=float)
        tree = cKDTree(points)
        _, neighbours = tree.query(points, k=k)
        for row, object_id in enumerate(ids):
            store.set(object_id, self.weight_matrix(points[neighbours[row]]))

    def weight_matrix(self, neighbourhood: np.ndarray) -> np.ndarray:
        """Return ``V · diag(w) · Vᵗ`` for one neighbourhood (rows = points)."""
        centered = neighbourhood - neighbourhood.mean(axis=0)
        covariance = centered.T @ centered / len(neighbourhood)
        eigenvalues, eigenvectors = np.linalg.eigh(covariance)
        # eigh sorts ascending; strong directions come first below
        order = np.argsort(eigenvalues)[::-1]
        eigenvalues = np.clip(eigenvalues[order], 0.0, None)
        eigenvectors = eigenvectors[:, order]

        weights = np.full(len(eigenvalues), self.big)
        weights[: self.strong_dimensionality(eigenvalues)] = 1.0
        matrix = eigenvectors @ np.diag(weights) @ eigenvectors.T
        return (matrix + matrix.T) / 2.0

    def strong_dimensionality(self, eigenvalues: np.ndarray) -> int:
        """Number of leading eigenvalues explaining ``alpha`` of the total."""
        total = float(eigenvalues.sum())
        if total <= 0.0:
            return len(eigenvalues)
        explained = np.cumsum(eigenvalues) / total
        return int(np.searchsorted(explained, self.alpha - 1e-12) + 1)

    def settings(self) -> Dict[str, Any]:
        return {"k": self.k, "alpha": self.alpha, "big": self.big}

    def __repr__(self) -> str:
        return f"KnnPCAPreprocessor(k={self.k}, alpha={self.alpha}, big={self.big})"


# ═══════════════════════════════════════════════════════════════════
# Enumerated selection
# ═══════════════════════════════════════════════════════════════════


class PreprocessorChoice(str, Enum):
    IDENTITY = "identity"
    KNN_PCA = "knn_pca"


DEFAULT_PREPROCESSOR = PreprocessorChoice.KNN_PCA

_FACTORIES: Dict[PreprocessorChoice, Callable[..., Preprocessor]] = {
    PreprocessorChoice.IDENTITY: IdentityPreprocessor,
    PreprocessorChoice.KNN_PCA: KnnPCAPreprocessor,
}


def parse_preprocessor_choice(choice: Union[PreprocessorChoice, str]) -> PreprocessorChoice:
    """Resolve *choice* (enum member or its string value).

    Raises
    ------
    ValueError
        If *choice* names no known preprocessor.
    """
    try:
        return PreprocessorChoice(choice)
    except ValueError:
        raise ValueError(
            f"Unknown preprocessor {choice!r}. "
            f"Available: {sorted(c.value for c in PreprocessorChoice)}"
        ) from None


def make_preprocessor(
    choice: Union[PreprocessorChoice, str] = DEFAULT_PREPROCESSOR,
    **params: Any,
) -> Preprocessor:
    """Instantiate the preprocessor selected by *choice* with *params*."""
    return _FACTORIES[parse_preprocessor_choice(choice)](**params)


# ═══════════════════════════════════════════════════════════════════
# Trigger
# ═══════════════════════════════════════════════════════════════════


class PreprocessingTrigger:
    """Decides when the preprocessor (re)populates the store.

    * On bind the preprocessor runs, unless ``omit_recompute`` is set
      **and** the store already holds matrices.
    * On every mutation event it re-runs over the whole dataset, unless
      ``omit_recompute`` is set, in which case the matrices are kept as
      they are regardless of dataset churn.

    Runs happen synchronously inside ``store.writing()``; errors raised
    by the preprocessor propagate unchanged and are not retried.
    """

    def __init__(
        self,
        preprocessor: Preprocessor,
        store: WeightMatrixStore,
        *,
        omit_recompute: bool = False,
    ) -> None:
        if not isinstance(preprocessor, Preprocessor):
            raise TypeError(
                f"preprocessor must implement run(dataset, store), "
                f"got: {type(preprocessor).__name__}"
            )
        self.preprocessor = preprocessor
        self.store = store
        self.omit_recompute = omit_recompute
        self._dataset: Optional[VectorDataset] = None
        self._subscription: Optional[Subscription] = None

    @property
    def dataset(self) -> Optional[VectorDataset]:
        return self._dataset

    def on_bind(self, dataset: VectorDataset) -> bool:
        """Start operating over *dataset*; return whether preprocessing ran.

        Under ``omit_recompute`` preprocessing is skipped only when every
        object of *dataset* already has a weight matrix in the store.  The
        trigger is bound only once preprocessing succeeded.
        """
        self._dataset = None
        if self.omit_recompute and self._covers(dataset):
            logger.debug(
                "Omitting preprocessing: weight matrices already associated"
            )
            self._dataset = dataset
            return False
        self._run(dataset, reason="bind")
        self._dataset = dataset
        return True

    def _covers(self, dataset: VectorDataset) -> bool:
        ids = dataset.ids()
        return bool(ids) and all(object_id in self.store for object_id in ids)

    def on_mutation(self, event: MutationEvent) -> bool:
        """React to a dataset mutation; return whether preprocessing ran."""
        if self._dataset is None:
            raise NotBoundError("Trigger received a mutation event before bind")
        if self.omit_recompute:
            logger.debug(
                "Ignoring %s of %d object(s): omit_recompute is set",
                event.kind.value,
                len(event.object_ids),
            )
            return False
        self._run(self._dataset, reason=event.kind.value)
        return True

    def attach(self, dataset: VectorDataset) -> Subscription:
        """Bind to *dataset* and subscribe to its mutation events.

        Returns a handle; releasing it unsubscribes and unbinds.
        """
        if self._subscription is not None and self._subscription.active:
            raise RuntimeError("Trigger is already attached to a dataset")
        self.on_bind(dataset)
        try:
            inner = dataset.subscribe(self.on_mutation)
        except Exception:
            self._dataset = None
            raise

        def _detach() -> None:
            inner.release()
            self._subscription = None
            self._dataset = None

        self._subscription = Subscription(_detach)
        return self._subscription

    def _run(self, dataset: VectorDataset, *, reason: str) -> None:
        start = time.perf_counter()
        with self.store.writing():
            self.preprocessor.run(dataset, self.store)
        logger.info(
            "Preprocessing (%s) with %r over %d object(s) took %.3fs",
            reason,
            self.preprocessor,
            len(dataset),
            time.perf_counter() - start,
        )
