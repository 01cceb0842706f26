"""
Multivariate least squares fit.

Fits every column of the projected configuration on the same design
matrix with one QR decomposition, keeping the by-products the sums of
squares need: effects Q'Y, the unscaled coefficient covariance (X'X)^-1
and the residual matrix.
"""

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pymlm.core.compute.linalg.qr import qr_solve_cpu
from pymlm.core.validation import check_consistent_length
from pymlm.mlm._contrasts import ModelMatrix


@dataclass(frozen=True)
class MultivariateFit:
    """
    Result of regressing an (n, l) response on an (n, p) design.

    Attributes:
        response: (n, l) response the model was fitted to
        coefficients: (p, l) least squares coefficients
        fitted_values: (n, l) X B
        residuals: (n, l) Y - X B
        effects: (p, l) Q'Y for the p column-space coordinates
        xtx_inv: (p, p) (X'X)^-1
        assign: (p,) term index per design column
        rank: numerical rank of X
        df_residual: n - rank
    """
    response: NDArray[np.floating[Any]]
    coefficients: NDArray[np.floating[Any]]
    fitted_values: NDArray[np.floating[Any]]
    residuals: NDArray[np.floating[Any]]
    effects: NDArray[np.floating[Any]]
    xtx_inv: NDArray[np.floating[Any]]
    assign: NDArray[np.intp]
    rank: int
    df_residual: int

    @property
    def n_obs(self) -> int:
        return self.response.shape[0]


def fit_multivariate(
    model_matrix: ModelMatrix,
    Y: NDArray[np.floating[Any]],
) -> MultivariateFit:
    """
    Fit Y = X B + E by least squares.

    Args:
        model_matrix: Design matrix and term metadata
        Y: (n, l) response

    Returns:
        MultivariateFit

    Raises:
        SingularMatrixError: If the design matrix is rank-deficient
    """
    X = model_matrix.X
    check_consistent_length(X, Y, names=('X', 'Y'))

    solved = qr_solve_cpu(X, Y, check_rank=True)
    fitted_values = X @ solved.coefficients
    residuals = Y - fitted_values

    return MultivariateFit(
        response=Y,
        coefficients=solved.coefficients,
        fitted_values=fitted_values,
        residuals=residuals,
        effects=solved.effects,
        xtx_inv=solved.xtx_inv,
        assign=model_matrix.assign,
        rank=solved.rank,
        df_residual=X.shape[0] - solved.rank,
    )
