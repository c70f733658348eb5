"""
LocallyWeightedDistanceFunction: distance and bounds over a bound dataset.

Wires the weight matrix store, the preprocessing trigger, the local
distance evaluator and the geometric bound evaluator behind one object
that spatial indexes and neighbour queries use::

    fn = LocallyWeightedDistanceFunction(DistanceConfig(omit_recompute=True))
    with fn.bind(dataset):
        fn.distance(0, 1)
        fn.min_dist(region, 0)
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Tuple, Union

from localdist.config import DistanceConfig
from localdist.dataset import Subscription, VectorDataset
from localdist.distance import LocalDistance, LocalDistanceEvaluator
from localdist.errors import NotBoundError
from localdist.matrix_store import WeightMatrixStore
from localdist.preprocessing import Preprocessor, PreprocessingTrigger
from localdist.quadratic import SQUARED_DISTANCE_TOLERANCE
from localdist.spatial import MBR, GeometricBoundEvaluator
from localdist.vector import FeatureVector

logger = logging.getLogger(__name__)


class LocallyWeightedDistanceFunction:
    """Locally weighted distance function over a dataset.

    Parameters
    ----------
    config:
        Preprocessor choice and ``omit_recompute`` flag.  Defaults to
        :class:`DistanceConfig()`.
    preprocessor:
        Explicit preprocessor instance; overrides ``config.preprocessor``.
        Use this for preprocessors with non-default parameters or ones
        implemented outside this library.
    store:
        Weight matrix store to use; a fresh one by default.  Sharing a
        store across functions lets ``omit_recompute`` reuse earlier
        preprocessing.
    tolerance:
        Clamp tolerance for slightly negative squared distances.
    """

    def __init__(
        self,
        config: Optional[DistanceConfig] = None,
        *,
        preprocessor: Optional[Preprocessor] = None,
        store: Optional[WeightMatrixStore] = None,
        tolerance: float = SQUARED_DISTANCE_TOLERANCE,
    ) -> None:
        self._config = config if config is not None else DistanceConfig()
        self._store = store if store is not None else WeightMatrixStore()
        self._trigger = PreprocessingTrigger(
            preprocessor if preprocessor is not None else self._config.resolve_preprocessor(),
            self._store,
            omit_recompute=self._config.omit_recompute,
        )
        self._distances = LocalDistanceEvaluator(self._store, tolerance=tolerance)
        self._bounds = GeometricBoundEvaluator(self._store, tolerance=tolerance)

    # ── Wiring ───────────────────────────────────────────────────

    @property
    def config(self) -> DistanceConfig:
        return self._config

    @property
    def store(self) -> WeightMatrixStore:
        return self._store

    @property
    def preprocessor(self) -> Preprocessor:
        return self._trigger.preprocessor

    @property
    def dataset(self) -> Optional[VectorDataset]:
        return self._trigger.dataset

    def bind(self, dataset: VectorDataset) -> Subscription:
        """Start operating over *dataset*.

        Runs preprocessing according to the configuration and subscribes
        to the dataset's mutations.  Release the returned handle (or use
        it as a context manager) to detach.
        """
        logger.debug("Binding %s to dataset of %d object(s)", type(self).__name__, len(dataset))
        return self._trigger.attach(dataset)

    def _require_dataset(self) -> VectorDataset:
        dataset = self._trigger.dataset
        if dataset is None:
            raise NotBoundError(f"{type(self).__name__} is not bound to a dataset")
        return dataset

    def _resolve(self, point: Union[FeatureVector, int]) -> FeatureVector:
        if isinstance(point, FeatureVector):
            return point
        return self._require_dataset().get(point)

    # ── Distances ────────────────────────────────────────────────

    def distance(self, id_a: int, id_b: int) -> LocalDistance:
        """Locally weighted distance between two objects of the dataset."""
        dataset = self._require_dataset()
        return self._distances.distance(dataset.get(id_a), dataset.get(id_b))

    def distance_vectors(self, a: FeatureVector, b: FeatureVector) -> LocalDistance:
        """Same as :meth:`distance` for already resolved vectors."""
        return self._distances.distance(a, b)

    def min_dist(self, mbr: MBR, point: Union[FeatureVector, int]) -> LocalDistance:
        """Minimum distance between *mbr* and a vector or object id."""
        return self._bounds.min_dist(mbr, self._resolve(point))

    def min_dist_regions(self, a: MBR, b: MBR) -> float:
        return self._bounds.min_dist_regions(a, b)

    def center_distance(self, a: MBR, b: MBR) -> float:
        return self._bounds.center_distance(a, b)

    # ── Queries ──────────────────────────────────────────────────

    def knn(self, query_id: int, k: int) -> List[Tuple[int, LocalDistance]]:
        """The *k* objects closest to *query_id*, nearest first.

        Objects whose distance is undefined rank after all others; ties
        are broken by id.
        """
        if isinstance(k, bool) or not isinstance(k, int) or k < 1:
            raise ValueError(f"k must be a positive integer, got: {k!r}")
        dataset = self._require_dataset()
        query = dataset.get(query_id)
        ranked = sorted(
            (
                (self._distances.distance(query, dataset.get(other)), other)
                for other in dataset.ids()
                if other != query_id
            ),
            key=lambda pair: (float(pair[0]), pair[1]),
        )
        return [(other, dist) for dist, other in ranked[:k]]

    def settings(self) -> dict[str, Any]:
        """Describe the resolved configuration."""
        settings: dict[str, Any] = self._config.as_dict()
        settings["preprocessor_class"] = type(self.preprocessor).__name__
        describe = getattr(self.preprocessor, "settings", None)
        if callable(describe):
            settings["preprocessor_settings"] = describe()
        return settings
