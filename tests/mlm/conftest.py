"""
Shared fixtures for multivariate linear model tests.

Provides reusable multivariate datasets: a small two-group design, an
unbalanced two-factor design with a covariate, and fitted objects built
from them.
"""

import numpy as np
import pytest

from pymlm.mlm._contrasts import build_model_matrix
from pymlm.mlm._fit import fit_multivariate


# =====================================================================
# Raw multivariate responses
# =====================================================================


@pytest.fixture
def two_groups():
    """10 x 2 response, two groups of 5 with well separated centroids."""
    rng = np.random.default_rng(2024)
    Y = np.vstack([
        rng.normal(0.0, 0.5, (5, 2)),
        rng.normal(3.0, 0.5, (5, 2)),
    ])
    group = np.array(['a'] * 5 + ['b'] * 5)
    return Y, group


@pytest.fixture
def two_factor():
    """
    Unbalanced 2 x 3 design with a covariate and a 4-column response.

    A and x have effects, B has none.
    """
    rng = np.random.default_rng(7)
    a = np.array(['lo', 'hi'] * 23)[:45]
    b = np.array(['p', 'q', 'r'] * 15)
    x = rng.normal(0.0, 1.0, 45)
    Y = rng.normal(0.0, 1.0, (45, 4))
    Y[a == 'hi'] += np.array([1.5, 1.0, 0.5, -1.0])
    Y[:, 0] += 0.8 * x
    return Y, a, b, x


@pytest.fixture
def null_data():
    """30 x 3 response unrelated to a 3-level factor."""
    rng = np.random.default_rng(99)
    Y = rng.normal(0.0, 1.0, (30, 3))
    group = np.array(['g1', 'g2', 'g3'] * 10)
    return Y, group


# =====================================================================
# Fitted objects
# =====================================================================


def _levels(values):
    return sorted(set(str(v) for v in values))


@pytest.fixture
def interaction_fit(two_factor):
    """Centred response fitted on A + B + x + A:B (sum coding)."""
    Y, a, b, x = two_factor
    Yc = Y - Y.mean(axis=0)
    mm = build_model_matrix(
        {'A': a, 'B': b, 'x': x},
        categorical={'A': _levels(a), 'B': _levels(b)},
        codings={'A': 'sum', 'B': 'sum'},
        interactions=[('A', 'B')],
    )
    return fit_multivariate(mm, Yc), mm
