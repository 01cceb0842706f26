"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def euclidean_points(rng):
    """12 points in 3 dimensions and their distance matrix."""
    X = rng.standard_normal((12, 3))
    diff = X[:, None, :] - X[None, :, :]
    D = np.sqrt(np.sum(diff ** 2, axis=-1))
    return X, D
