"""Tests for the locally weighted point-to-point distance."""

import math

import numpy as np
import pytest

from localdist.distance import LocalDistance, LocalDistanceEvaluator
from localdist.errors import DimensionalityMismatchError, NonPositiveSemidefiniteError
from localdist.matrix_store import WeightMatrixStore
from localdist.vector import FeatureVector


@pytest.fixture
def store():
    return WeightMatrixStore()


@pytest.fixture
def evaluator(store):
    return LocalDistanceEvaluator(store)


A = FeatureVector(0, (0.0, 0.0))
B = FeatureVector(1, (3.0, 4.0))


# ── LocalDistance ───────────────────────────────────────────────────


class TestLocalDistance:
    def test_defined(self):
        d = LocalDistance(2.5)
        assert d.is_defined
        assert float(d) == 2.5
        assert str(d) == "2.5"

    def test_undefined(self):
        d = LocalDistance.undefined()
        assert not d.is_defined
        assert float(d) == math.inf
        assert str(d) == "inf"

    def test_int_normalized(self):
        assert LocalDistance(3).value == 3.0

    @pytest.mark.parametrize("bad", [-1.0, math.inf, math.nan])
    def test_invalid_values(self, bad):
        with pytest.raises(ValueError):
            LocalDistance(bad)

    def test_bool_rejected(self):
        with pytest.raises(TypeError):
            LocalDistance(True)

    def test_undefined_orders_last(self):
        ranked = sorted([LocalDistance.undefined(), LocalDistance(10.0), LocalDistance(0.0)])
        assert ranked == [LocalDistance(0.0), LocalDistance(10.0), LocalDistance.undefined()]

    def test_equality_and_hash(self):
        assert LocalDistance(1.0) == LocalDistance(1.0)
        assert LocalDistance.undefined() == LocalDistance.undefined()
        assert len({LocalDistance(1.0), LocalDistance(1.0)}) == 1

    def test_comparison_with_other_types_unsupported(self):
        with pytest.raises(TypeError):
            LocalDistance(1.0) < 2.0  # noqa: B015

    @pytest.mark.parametrize("text", ["inf", "Infinity", " +INF "])
    def test_parse_infinity(self, text):
        assert LocalDistance.parse(text) == LocalDistance.undefined()

    def test_parse_number(self):
        assert LocalDistance.parse("1.25") == LocalDistance(1.25)

    @pytest.mark.parametrize("text", ["-1", "abc", "nan", ""])
    def test_parse_invalid(self, text):
        with pytest.raises(ValueError, match="Cannot parse distance"):
            LocalDistance.parse(text)


# ── LocalDistanceEvaluator ──────────────────────────────────────────


class TestEvaluator:
    def test_identity_matrices_give_euclidean(self, store, evaluator):
        store.set(0, np.eye(2))
        store.set(1, np.eye(2))
        assert evaluator.distance(A, B).value == pytest.approx(5.0)

    def test_max_of_both_sides(self, store, evaluator):
        # delta (3, 4): dist_A = sqrt(4*9 + 16), dist_B = sqrt(9 + 9*16)
        store.set(0, np.diag([4.0, 1.0]))
        store.set(1, np.diag([1.0, 9.0]))
        assert evaluator.distance(A, B).value == pytest.approx(math.sqrt(153.0))

    def test_symmetric_although_sides_differ(self, store, evaluator):
        store.set(0, np.diag([4.0, 1.0]))
        store.set(1, np.diag([1.0, 9.0]))
        assert evaluator.distance(A, B) == evaluator.distance(B, A)

    def test_self_distance_is_zero(self, store, evaluator):
        store.set(1, np.diag([2.0, 5.0]))
        assert evaluator.distance(B, B).value == 0.0

    def test_missing_matrix_is_undefined(self, store, evaluator):
        store.set(0, np.eye(2))
        assert evaluator.distance(A, B) == LocalDistance.undefined()
        assert evaluator.distance(B, A) == LocalDistance.undefined()

    def test_both_missing(self, evaluator):
        assert not evaluator.distance(A, B).is_defined

    def test_dimensionality_mismatch(self, store, evaluator):
        store.set(0, np.eye(2))
        c = FeatureVector(2, (1.0, 2.0, 3.0))
        with pytest.raises(DimensionalityMismatchError):
            evaluator.distance(A, c)

    def test_mismatch_checked_before_lookup(self, evaluator):
        # no matrices at all: still fatal, not undefined
        with pytest.raises(DimensionalityMismatchError):
            evaluator.distance(A, FeatureVector(5, (1.0,)))

    def test_tiny_negative_clamped(self, store, evaluator):
        near_zero = np.array([[-1e-12, 0.0], [0.0, -1e-12]])
        store.set(0, near_zero)
        store.set(1, near_zero)
        a = FeatureVector(0, (0.0, 0.0))
        b = FeatureVector(1, (1.0, 0.0))
        assert evaluator.distance(a, b).value == 0.0

    def test_indefinite_matrix_raises(self, store, evaluator):
        store.set(0, np.diag([-1.0, 1.0]))
        store.set(1, np.eye(2))
        b = FeatureVector(1, (2.0, 0.0))
        with pytest.raises(NonPositiveSemidefiniteError):
            evaluator.distance(A, b)
