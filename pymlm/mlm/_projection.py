"""
Projection of a distance matrix into Euclidean space.

The Gower matrix G = -1/2 J (D o D) J is the inner-product matrix of any
point configuration whose interpoint distances are D. Its eigenpairs give
the classical-scaling coordinates Y = V diag(sqrt(lambda)), so that the
Euclidean distances between the rows of Y reproduce D. A negative
eigenvalue means D is not Euclidean and no such configuration exists.
"""

from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pymlm.core.compute.linalg.eigen import double_centre, eigh_cpu, eigsh_cpu
from pymlm.core.compute.tolerances import PROJECTION_TOL
from pymlm.core.exceptions import ProjectionError
from pymlm.core.validation import (
    check_array,
    check_finite,
    check_nonnegative,
    check_square,
    check_symmetric,
)


def gower_matrix(dmat: NDArray[np.floating[Any]]) -> NDArray[np.floating[Any]]:
    """G = double_centre(-0.5 * D^2)."""
    return double_centre(-0.5 * dmat ** 2)


def mlmproject(
    dmat: ArrayLike,
    k: int | None = None,
    tol: float = PROJECTION_TOL,
) -> NDArray[np.floating[Any]]:
    """
    Project a distance matrix into Euclidean space.

    When k is given (the number of columns of the data the distances were
    computed from), only the top-k eigenpairs are computed. Otherwise the
    full spectrum is used.

    Args:
        dmat: (n, n) symmetric, non-negative distance matrix
        k: Known dimensionality of the original data, or None
        tol: Eigenvalues with |lambda / lambda_1| <= tol are treated as zero

    Returns:
        (n, l) configuration with l >= 2 columns, one per positive eigenvalue

    Raises:
        InputError: If dmat is not square, symmetric and non-negative
        ProjectionError: If the leading eigenvalue is not positive, a
            retained eigenvalue is negative, or fewer than 2 survive
    """
    D = check_array(dmat, 'dmat')
    check_square(D, 'dmat')
    check_finite(D, 'dmat')
    check_symmetric(D, 'dmat')
    check_nonnegative(D, 'dmat', tol=tol)

    G = gower_matrix(D)
    if k is None:
        eig = eigh_cpu(G)
    else:
        eig = eigsh_cpu(G, k=int(k))

    lambda1 = float(eig.values[0])
    if lambda1 < tol:
        raise ProjectionError(
            f"first eigenvalue of G should be > 0, got {lambda1:.6g}",
            reason='non_positive_leading_eigenvalue',
            leading_eigenvalue=lambda1,
        )

    normalised = eig.values / lambda1
    keep = np.abs(normalised) > tol
    retained = normalised[keep]

    if np.any(retained < tol):
        raise ProjectionError(
            f"all eigenvalues of G should be > 0, smallest retained "
            f"eigenvalue is {float(retained.min()):.6g} (relative to the largest); "
            f"the distance is not Euclidean",
            reason='negative_eigenvalue',
            leading_eigenvalue=lambda1,
            n_retained=int(retained.size),
            min_eigenvalue=float(retained.min()),
        )

    if retained.size <= 1:
        raise ProjectionError(
            f"number of eigenvalues of G should be > 1, got {retained.size}",
            reason='degenerate_rank',
            leading_eigenvalue=lambda1,
            n_retained=int(retained.size),
        )

    return eig.vectors[:, keep] * np.sqrt(eig.values[keep])
