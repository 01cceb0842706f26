"""
Sums of squares and cross-products (SSCP) for multivariate linear models.

All three types are computed from a single fit of the full model. No
refitting: the sequential type reads the QR effects, the other two test
linear hypotheses L B = 0 on the coefficient matrix.

Type I (Sequential):
    Terms enter in declaration order. SSCP(term) = E_t' E_t, where E = Q'Y
    and E_t are the rows of the term's columns. Term and error SSCPs add
    up to the total SSCP.

Type II (Hierarchical, respects marginality):
    SSCP(A) = SSCP(A | all terms not containing A). The hypothesis matrix
    is the part of the (A + relatives) coefficient space that is
    conjugate-orthogonal, under (X'X)^-1, to the relatives' coefficients.
    An interaction A:B contains both A and B.

Type III (Each term last):
    SSCP(term) = SSCP(term | every other term), hypothesis = the term's own
    coefficients. The intercept is tested too. Only meaningful with
    orthogonal coding of unordered factors.

For a hypothesis matrix L the SSCP is (LB)' [L (X'X)^-1 L']^-1 (LB).
"""

import warnings
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import NDArray
from scipy.linalg import qr as scipy_qr

from pymlm.core.exceptions import DecompositionWarning, NumericalError
from pymlm.mlm._contrasts import INTERCEPT, ModelMatrix, term_contains
from pymlm.mlm._fit import MultivariateFit

SS_TYPES = ('I', 'II', 'III')


@dataclass(frozen=True)
class SSCPDecomposition:
    """
    Per-term hypothesis SSCP matrices and the error SSCP.

    Attributes:
        ss_type: 'I', 'II' or 'III'
        hypothesis: term -> (l, l) hypothesis SSCP, in table order
        error: (l, l) residual SSCP of the full model
        df: term -> degrees of freedom
        df_residual: residual degrees of freedom
        warnings: non-fatal issues raised while decomposing
    """
    ss_type: str
    hypothesis: dict[str, NDArray[np.floating[Any]]]
    error: NDArray[np.floating[Any]]
    df: dict[str, int]
    df_residual: int
    warnings: tuple[str, ...] = field(default_factory=tuple)


def normalize_ss_type(ss_type: int | str) -> str:
    """Accept 1/2/3 or 'I'/'II'/'III'."""
    mapping = {1: 'I', 2: 'II', 3: 'III'}
    if isinstance(ss_type, (int, np.integer)) and not isinstance(ss_type, bool):
        if int(ss_type) in mapping:
            return mapping[int(ss_type)]
    elif isinstance(ss_type, str) and ss_type.upper() in SS_TYPES:
        return ss_type.upper()
    raise ValueError(f"ss_type must be one of 'I', 'II', 'III' (or 1, 2, 3), got {ss_type!r}")


def decompose(
    fit: MultivariateFit,
    model_matrix: ModelMatrix,
    ss_type: int | str = 'II',
) -> SSCPDecomposition:
    """Dispatch to the correct SSCP computation."""
    ss_type = normalize_ss_type(ss_type)
    if ss_type == 'I':
        return compute_sscp_type1(fit, model_matrix)
    elif ss_type == 'II':
        return compute_sscp_type2(fit, model_matrix)
    return compute_sscp_type3(fit, model_matrix)


def error_sscp(fit: MultivariateFit) -> NDArray[np.floating[Any]]:
    """Residual SSCP R'R of the full model."""
    return _symmetrize(fit.residuals.T @ fit.residuals)


def hypothesis_sscp(
    fit: MultivariateFit,
    L: NDArray[np.floating[Any]],
) -> NDArray[np.floating[Any]]:
    """
    SSCP for the linear hypothesis L B = 0.

    Args:
        fit: Full-model fit (coefficients and (X'X)^-1)
        L: (q, p) hypothesis matrix of full row rank

    Returns:
        (l, l) hypothesis SSCP
    """
    LB = L @ fit.coefficients
    LVL = L @ fit.xtx_inv @ L.T
    return _symmetrize(LB.T @ np.linalg.solve(LVL, LB))


def compute_sscp_type1(
    fit: MultivariateFit,
    model_matrix: ModelMatrix,
) -> SSCPDecomposition:
    """
    Type I (Sequential) SSCP.

    Order-dependent for unbalanced designs. Matches R's
    summary(manova(fit)) on the same design.
    """
    hypothesis: dict[str, NDArray] = {}
    for term in model_matrix.terms:
        E_t = fit.effects[model_matrix.term_slices[term]]
        hypothesis[term] = _symmetrize(E_t.T @ E_t)

    return SSCPDecomposition(
        ss_type='I',
        hypothesis=hypothesis,
        error=error_sscp(fit),
        df={term: model_matrix.term_df[term] for term in model_matrix.terms},
        df_residual=fit.df_residual,
    )


def compute_sscp_type2(
    fit: MultivariateFit,
    model_matrix: ModelMatrix,
) -> SSCPDecomposition:
    """
    Type II (Hierarchical) SSCP.

    For each term, the hypothesis tests the term's coefficients after
    removing their dependence on the coefficients of the terms that
    contain it. When nothing contains the term, the hypothesis is the
    term's own coefficients (same as Type III).

    This matches R's: car::Anova(lm(Y ~ ...), type="II").
    """
    p = model_matrix.p
    I_p = np.eye(p)
    V = fit.xtx_inv
    hypothesis: dict[str, NDArray] = {}

    for term in model_matrix.terms:
        members = model_matrix.term_factors[term]
        relatives = [
            other for other in model_matrix.terms
            if term_contains(model_matrix.term_factors[other], members)
        ]
        cols_term = _columns(model_matrix, [term])
        cols_relatives = _columns(model_matrix, relatives)

        hyp_2 = I_p[np.concatenate([cols_relatives, cols_term])]
        if cols_relatives.size == 0:
            L = hyp_2
        else:
            hyp_1 = I_p[cols_relatives]
            L = conjugate_complement(hyp_1.T, hyp_2.T, V).T

        L = L[~np.all(np.abs(L) < 1e-12, axis=1)]
        if L.shape[0] == 0:
            raise NumericalError(
                f"term {term!r}: the hypothesis contains only aliased coefficients"
            )
        hypothesis[term] = hypothesis_sscp(fit, L)

    return SSCPDecomposition(
        ss_type='II',
        hypothesis=hypothesis,
        error=error_sscp(fit),
        df={term: model_matrix.term_df[term] for term in model_matrix.terms},
        df_residual=fit.df_residual,
    )


def compute_sscp_type3(
    fit: MultivariateFit,
    model_matrix: ModelMatrix,
) -> SSCPDecomposition:
    """
    Type III SSCP.

    Each term, including the intercept, is tested as if it were the last
    one added.

    IMPORTANT: unordered factors should use orthogonal (sum, helmert)
    coding; with treatment coding the hypotheses depend on the baseline
    level. A DecompositionWarning is issued in that case.

    This matches R's: car::Anova(lm(Y ~ ...), type="III").
    """
    issued: list[str] = []
    treatment = sorted(
        name for name, coding in model_matrix.codings.items() if coding == 'treatment'
    )
    if treatment:
        message = (
            "Type III Sum of Squares require effect- or orthogonal coding for "
            "unordered categorical variables (i.e. sum, helmert); "
            f"treatment coding used for {treatment}"
        )
        warnings.warn(message, DecompositionWarning, stacklevel=3)
        issued.append(message)

    I_p = np.eye(model_matrix.p)
    hypothesis: dict[str, NDArray] = {}
    for term in model_matrix.term_names:
        L = I_p[_columns(model_matrix, [term])]
        hypothesis[term] = hypothesis_sscp(fit, L)

    return SSCPDecomposition(
        ss_type='III',
        hypothesis=hypothesis,
        error=error_sscp(fit),
        df={term: model_matrix.term_df[term] for term in model_matrix.term_names},
        df_residual=fit.df_residual,
        warnings=tuple(issued),
    )


def conjugate_complement(
    X: NDArray[np.floating[Any]],
    Z: NDArray[np.floating[Any]],
    ip: NDArray[np.floating[Any]],
) -> NDArray[np.floating[Any]]:
    """
    Basis of the part of span(Z) that is ip-orthogonal to span(X).

    Args:
        X: (p, r1) columns spanning the subspace to remove
        Z: (p, r2) columns spanning the enclosing subspace
        ip: (p, p) inner product matrix

    Returns:
        (p, r2 - rank) columns W with W' ip X = 0
    """
    A = Z.T @ ip @ X
    Q, R, _ = scipy_qr(A, mode='full', pivoting=True)
    diag_R = np.abs(np.diag(R))
    if diag_R.size == 0 or diag_R[0] == 0:
        return Z
    rank = int(np.sum(diag_R > 1e-7 * diag_R[0]))
    return Z @ Q[:, rank:]


def _columns(model_matrix: ModelMatrix, terms: list[str]) -> NDArray[np.intp]:
    """Design-matrix column indices belonging to the given terms."""
    cols = [np.arange(model_matrix.p)[model_matrix.term_slices[t]] for t in terms]
    if not cols:
        return np.empty(0, dtype=np.intp)
    return np.concatenate(cols).astype(np.intp)


def _symmetrize(A: NDArray[np.floating[Any]]) -> NDArray[np.floating[Any]]:
    return 0.5 * (A + A.T)
