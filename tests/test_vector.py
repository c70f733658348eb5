"""Tests for feature vectors: validation and edge cases."""

import math
import numpy as np
import pytest

from localdist.errors import DimensionalityMismatchError
from localdist.vector import FeatureVector, check_dimensionality


class TestCoordinates:
    def test_numpy_array_accepted(self):
        assert FeatureVector(0, np.array([0.5, 1.5])).values == (0.5, 1.5)

    def test_not_a_sequence(self):
        with pytest.raises(TypeError, match="sequence"):
            FeatureVector(0, "not a vector")  # type: ignore[arg-type]

    def test_scalar_rejected(self):
        with pytest.raises(TypeError):
            FeatureVector(0, 1.0)  # type: ignore[arg-type]

    def test_nan_reported_with_index(self):
        with pytest.raises(ValueError, match=r"\[1\]"):
            FeatureVector(0, [1.0, math.nan])

    def test_every_bad_coordinate_reported(self):
        with pytest.raises(ValueError) as exc:
            FeatureVector(0, [math.inf, 1.0, "x"])
        assert "[0]" in str(exc.value)
        assert "[2]" in str(exc.value)

    def test_bool_rejected(self):
        with pytest.raises(ValueError):
            FeatureVector(0, [True, 1.0])


class TestFeatureVector:
    def test_values_normalized_to_float_tuple(self):
        v = FeatureVector(3, [1, 2])
        assert v.values == (1.0, 2.0)
        assert isinstance(v.values, tuple)

    def test_dimensionality(self):
        assert FeatureVector(0, (1.0, 2.0, 3.0)).dimensionality == 3

    def test_get_value_is_one_based(self):
        v = FeatureVector(0, (4.0, 5.0))
        assert v.get_value(1) == 4.0
        assert v.get_value(2) == 5.0

    @pytest.mark.parametrize("dimension", [0, 3, -1])
    def test_get_value_out_of_range(self, dimension):
        with pytest.raises(IndexError):
            FeatureVector(0, (4.0, 5.0)).get_value(dimension)

    def test_as_array_is_a_copy(self):
        v = FeatureVector(0, (1.0, 2.0))
        arr = v.as_array()
        arr[0] = 99.0
        assert v.values == (1.0, 2.0)

    def test_immutable(self):
        v = FeatureVector(0, (1.0,))
        with pytest.raises(AttributeError):
            v.values = (2.0,)  # type: ignore[misc]

    def test_with_values_keeps_id(self):
        v = FeatureVector(7, (1.0, 2.0)).with_values([3.0, 4.0])
        assert v.id == 7
        assert v.values == (3.0, 4.0)

    def test_empty_rejected(self):
        with pytest.raises(ValueError, match="empty"):
            FeatureVector(0, ())

    def test_infinite_rejected(self):
        with pytest.raises(ValueError, match="finite"):
            FeatureVector(0, (math.inf,))

    def test_non_int_id_rejected(self):
        with pytest.raises(TypeError):
            FeatureVector("a", (1.0,))  # type: ignore[arg-type]


class TestCheckDimensionality:
    def test_match_returns_dimensionality(self):
        a = FeatureVector(0, (1.0, 2.0))
        b = FeatureVector(1, (3.0, 4.0))
        assert check_dimensionality(a, b) == 2

    def test_mismatch_raises(self):
        a = FeatureVector(0, (1.0, 2.0))
        b = FeatureVector(1, (3.0,))
        with pytest.raises(DimensionalityMismatchError, match="Different dimensionality"):
            check_dimensionality(a, b)

    def test_mismatch_is_a_value_error(self):
        with pytest.raises(ValueError):
            check_dimensionality(FeatureVector(0, (1.0,)), FeatureVector(1, (1.0, 2.0)))
