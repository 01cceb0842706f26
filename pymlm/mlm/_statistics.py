"""
Reduction of SSCP matrices to scalar test statistics.

For each term:
    SS       = trace(SSCP_term)
    f_tilde  = SS / trace(SSCP_error)       (not divided by degrees of freedom)
    R2       = SS / trace(Y'Y)              (partial R2)

The un-normalised ratio f_tilde is what the asymptotic p-value is
computed for; the F value displayed in tables is f_tilde * df_e / Df.
"""

from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pymlm.mlm._contrasts import ModelMatrix
from pymlm.mlm._fit import MultivariateFit
from pymlm.mlm._ss import SSCPDecomposition, decompose


@dataclass(frozen=True)
class MLMStatistics:
    """
    Per-term scalar statistics of a multivariate linear model.

    Attributes:
        ss: term -> trace of the hypothesis SSCP
        ss_residual: trace of the error SSCP
        df: term -> degrees of freedom
        df_residual: residual degrees of freedom
        f_tilde: term -> ss / ss_residual
        r2: term -> ss / total SS
        r2_model: 1 - ss_residual / total SS
        ss_total: trace(Y'Y)
        warnings: propagated from the decomposition
    """
    ss: dict[str, float]
    ss_residual: float
    df: dict[str, int]
    df_residual: int
    f_tilde: dict[str, float]
    r2: dict[str, float]
    r2_model: float
    ss_total: float
    warnings: tuple[str, ...] = field(default_factory=tuple)


def reduce_sscp(
    decomposition: SSCPDecomposition,
    total_sscp: NDArray[np.floating[Any]],
) -> MLMStatistics:
    """
    Reduce SSCP matrices to SS, pseudo-F and partial R2.

    Args:
        decomposition: Per-term and error SSCP matrices
        total_sscp: (l, l) cross-product Y'Y of the centred response

    Returns:
        MLMStatistics
    """
    ss = {term: float(np.trace(M)) for term, M in decomposition.hypothesis.items()}
    ss_residual = float(np.trace(decomposition.error))
    ss_total = float(np.trace(total_sscp))

    # A perfect fit leaves no residual variation to compare against
    f_tilde = {
        term: value / ss_residual if ss_residual > 0 else np.inf
        for term, value in ss.items()
    }
    r2 = {term: value / ss_total for term, value in ss.items()}

    return MLMStatistics(
        ss=ss,
        ss_residual=ss_residual,
        df=dict(decomposition.df),
        df_residual=decomposition.df_residual,
        f_tilde=f_tilde,
        r2=r2,
        r2_model=float(np.trace(total_sscp - decomposition.error)) / ss_total,
        ss_total=ss_total,
        warnings=decomposition.warnings,
    )


def mlmtst(
    fit: MultivariateFit,
    model_matrix: ModelMatrix,
    ss_type: int | str = 'II',
) -> MLMStatistics:
    """
    Degrees of freedom, sums of squares, pseudo-F and partial R2 per term.

    Args:
        fit: Multivariate fit of the centred configuration
        model_matrix: Design matrix and term metadata of the fit
        ss_type: 'I', 'II' or 'III' (1, 2, 3 accepted)

    Returns:
        MLMStatistics
    """
    decomposition = decompose(fit, model_matrix, ss_type)
    total_sscp = fit.response.T @ fit.response
    return reduce_sscp(decomposition, total_sscp)


def residual_eigenvalues(
    residuals: NDArray[np.floating[Any]],
    df_residual: int,
) -> NDArray[np.floating[Any]]:
    """
    Eigenvalues of cov(R) (n - 1) / df_e, decreasing.

    These are the weights of the quadratic form behind the asymptotic
    p-value. Round-off negatives are clamped to zero.
    """
    n = residuals.shape[0]
    cov = np.atleast_2d(np.cov(residuals, rowvar=False)) * (n - 1) / df_residual
    values = np.linalg.eigvalsh(cov)[::-1]
    return np.clip(values, 0.0, None)
