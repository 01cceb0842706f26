"""
Tests for the projection of distance matrices into Euclidean space.

Validates:
    - Round trip: distances of the configuration reproduce the input
    - Partial (top-k) projection agrees with the full one
    - Gower matrix is double centred
    - Failure reasons: non-positive leading eigenvalue, negative
      eigenvalue (non-Euclidean input), degenerate rank
    - Input validation (square, symmetric, non-negative)
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from pymlm.core.compute.tolerances import select_tolerance
from pymlm.core.exceptions import InputError, ProjectionError
from pymlm.mlm import mlmdist, mlmproject
from pymlm.mlm._projection import gower_matrix


class TestRoundTrip:

    def test_full_projection_reproduces_distances(self, euclidean_points):
        _, D = euclidean_points
        Y = mlmproject(D)
        assert Y.shape == (12, 3)
        assert_allclose(mlmdist(Y), D, atol=1e-8)

    def test_partial_projection_reproduces_distances(self, euclidean_points):
        _, D = euclidean_points
        Y = mlmproject(D, k=3)
        assert Y.shape == (12, 3)
        assert_allclose(mlmdist(Y), D, atol=1e-8)

    def test_partial_matches_full(self, euclidean_points):
        """Columns agree up to sign."""
        _, D = euclidean_points
        tier = select_tolerance(is_iterative=True)
        assert_allclose(
            np.abs(mlmproject(D, k=3)), np.abs(mlmproject(D)),
            rtol=tier.rtol, atol=1e-6,
        )

    def test_configuration_is_centred(self, euclidean_points):
        _, D = euclidean_points
        assert_allclose(mlmproject(D).mean(axis=0), 0.0, atol=1e-10)

    def test_column_variances_decrease(self, euclidean_points):
        _, D = euclidean_points
        ss = np.sum(mlmproject(D) ** 2, axis=0)
        assert np.all(np.diff(ss) <= 0)


class TestGower:

    def test_double_centred(self, euclidean_points):
        _, D = euclidean_points
        G = gower_matrix(D)
        assert_allclose(G.sum(axis=1), 0.0, atol=1e-10)

    def test_inner_products_of_centred_points(self, euclidean_points):
        X, D = euclidean_points
        Xc = X - X.mean(axis=0)
        assert_allclose(gower_matrix(D), Xc @ Xc.T, atol=1e-10)


class TestProjectionErrors:

    def test_zero_matrix(self):
        with pytest.raises(ProjectionError) as exc_info:
            mlmproject(np.zeros((5, 5)))
        assert exc_info.value.reason == 'non_positive_leading_eigenvalue'

    def test_non_euclidean(self):
        # d(0, 3) = 3 > d(0, 1) + d(1, 3): triangle inequality violated
        D = np.array([
            [0.0, 1.0, 1.0, 3.0],
            [1.0, 0.0, 1.0, 1.0],
            [1.0, 1.0, 0.0, 1.0],
            [3.0, 1.0, 1.0, 0.0],
        ])
        with pytest.raises(ProjectionError) as exc_info:
            mlmproject(D)
        err = exc_info.value
        assert err.reason == 'negative_eigenvalue'
        assert err.min_eigenvalue < 0
        assert err.leading_eigenvalue > 0

    def test_collinear_points(self):
        D = mlmdist(np.array([0.0, 1.0, 2.0, 4.0, 7.0]))
        with pytest.raises(ProjectionError) as exc_info:
            mlmproject(D)
        assert exc_info.value.reason == 'degenerate_rank'
        assert exc_info.value.n_retained == 1


class TestProjectionValidation:

    def test_not_square(self):
        with pytest.raises(InputError, match="square"):
            mlmproject(np.zeros((3, 4)))

    def test_not_symmetric(self):
        D = np.array([[0.0, 1.0, 2.0], [1.0, 0.0, 1.0], [2.5, 1.0, 0.0]])
        with pytest.raises(InputError, match="symmetric"):
            mlmproject(D)

    def test_negative_entries(self):
        D = np.array([[0.0, -1.0, 2.0], [-1.0, 0.0, 1.0], [2.0, 1.0, 0.0]])
        with pytest.raises(InputError, match="non-negative"):
            mlmproject(D)
