"""
QR decomposition kernels.

Provides the QR factorisation and least squares solve used by the
multivariate linear model fit. Responses may be a vector or a matrix
with one column per response dimension.
"""

from dataclasses import dataclass
from typing import Any
import numpy as np
from numpy.typing import NDArray
from scipy.linalg import solve_triangular

from pymlm.core.exceptions import SingularMatrixError


@dataclass(frozen=True)
class QRResult:
    """Economy QR factors of an (n, p) model matrix and its numerical rank."""
    Q: NDArray[np.floating[Any]]
    R: NDArray[np.floating[Any]]
    rank: int


@dataclass(frozen=True)
class QRSolve:
    """
    Least squares solution with the by-products a fit needs.

    Attributes:
        coefficients: (p,) or (p, m) coefficient array
        effects: Q'Y restricted to the p column-space coordinates
        xtx_inv: (X'X)^-1 computed as R^-1 R^-T
        rank: Numerical rank of X
    """
    coefficients: NDArray[np.floating[Any]]
    effects: NDArray[np.floating[Any]]
    xtx_inv: NDArray[np.floating[Any]]
    rank: int


def qr_cpu(X: NDArray[np.floating[Any]]) -> QRResult:
    """
    Economy QR of a model matrix, X = QR with Q (n, p) and R (p, p).

    The rank counts diagonal entries of R above max(n, p) * eps * max|R_ii|.
    """
    Q, R = np.linalg.qr(X, mode="reduced")

    diag = np.abs(np.diag(R))
    top = diag.max() if diag.size else 0.0
    rank = int(np.sum(diag > max(X.shape) * np.finfo(X.dtype).eps * top)) if top > 0 else 0

    return QRResult(Q=Q, R=R, rank=rank)


def qr_solve_cpu(
    X: NDArray[np.floating[Any]],
    Y: NDArray[np.floating[Any]],
    check_rank: bool = True
) -> QRSolve:
    """
    Multi-response least squares through one QR of the model matrix.

    With X = QR, B = R^-1 Q'Y for every column of Y at once. The
    effects Q'Y and (X'X)^-1 = R^-1 R^-T are returned as well; the
    sums-of-squares code works from them.

    Args:
        X: (n, p) model matrix, n >= p
        Y: (n,) or (n, m) response
        check_rank: Raise on a rank-deficient X

    Raises:
        SingularMatrixError: If X has rank < p and check_rank is set
    """
    n, p = X.shape
    qr_result = qr_cpu(X)

    if check_rank and qr_result.rank < p:
        raise SingularMatrixError(
            f"model matrix has rank {qr_result.rank} but {p} columns; "
            f"explanatory variables are collinear",
            matrix_name='X',
            rank=qr_result.rank,
            expected_rank=p
        )

    # Effects Q'Y, then back substitution on the p x p triangle
    R = qr_result.R[:p, :p]
    effects = qr_result.Q.T @ Y
    beta = solve_triangular(R, effects[:p], lower=False)

    R_inv = solve_triangular(R, np.eye(p), lower=False)
    xtx_inv = R_inv @ R_inv.T

    return QRSolve(
        coefficients=beta,
        effects=effects[:p],
        xtx_inv=xtx_inv,
        rank=qr_result.rank,
    )
