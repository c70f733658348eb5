"""
localdist: locally-adaptive correlation distance

Every vector carries its own locally estimated weight matrix; the
distance between two vectors symmetrizes two quadratic forms by taking
their maximum.  Geometric bounds between points and bounding regions
keep the distance usable inside spatial indexes.
"""

__version__ = "0.1.0"

from localdist.errors import (
    LocalDistanceError,
    DimensionalityMismatchError,
    NonPositiveSemidefiniteError,
    DistanceOverflowError,
    ConcurrentAccessError,
    NotBoundError,
    UnknownObjectError,
)
from localdist.vector import FeatureVector, check_dimensionality
from localdist.quadratic import (
    SQUARED_DISTANCE_TOLERANCE,
    quadratic_form,
    quadratic_form_distance,
)
from localdist.matrix_store import WeightMatrixStore
from localdist.dataset import (
    InMemoryDataset,
    MutationEvent,
    MutationKind,
    Subscription,
    VectorDataset,
)
from localdist.preprocessing import (
    DEFAULT_PREPROCESSOR,
    IdentityPreprocessor,
    KnnPCAPreprocessor,
    Preprocessor,
    PreprocessorChoice,
    PreprocessingTrigger,
    make_preprocessor,
)
from localdist.config import DEFAULT_DISTANCE_CONFIG, DistanceConfig
from localdist.distance import LocalDistance, LocalDistanceEvaluator
from localdist.spatial import (
    MBR,
    GeometricBoundEvaluator,
    min_dist_point_region,
    min_dist_region_region,
    center_distance_region_region,
)
from localdist.locally_weighted import LocallyWeightedDistanceFunction

__all__ = [
    # Errors
    "LocalDistanceError",
    "DimensionalityMismatchError",
    "NonPositiveSemidefiniteError",
    "DistanceOverflowError",
    "ConcurrentAccessError",
    "NotBoundError",
    "UnknownObjectError",
    # Vectors and quadratic forms
    "FeatureVector",
    "check_dimensionality",
    "SQUARED_DISTANCE_TOLERANCE",
    "quadratic_form",
    "quadratic_form_distance",
    # Store and dataset
    "WeightMatrixStore",
    "InMemoryDataset",
    "MutationEvent",
    "MutationKind",
    "Subscription",
    "VectorDataset",
    # Preprocessing
    "DEFAULT_PREPROCESSOR",
    "IdentityPreprocessor",
    "KnnPCAPreprocessor",
    "Preprocessor",
    "PreprocessorChoice",
    "PreprocessingTrigger",
    "make_preprocessor",
    # Configuration
    "DEFAULT_DISTANCE_CONFIG",
    "DistanceConfig",
    # Distances and bounds
    "LocalDistance",
    "LocalDistanceEvaluator",
    "MBR",
    "GeometricBoundEvaluator",
    "min_dist_point_region",
    "min_dist_region_region",
    "center_distance_region_region",
    "LocallyWeightedDistanceFunction",
]
