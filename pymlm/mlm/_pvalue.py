"""
Asymptotic p-values for the pseudo-F statistic.

Under the null hypothesis the pseudo-F of a term is asymptotically
distributed as a ratio of weighted sums of chi-square variables, with
the eigenvalues lambda of the residual covariance as weights:

    f_tilde ~ sum_j lambda_j chi2(df_i) / sum_j lambda_j chi2(df_e)

so that P(f_tilde > f) = P(Q > 0) for the indefinite quadratic form

    Q = sum_j lambda_j chi2(df_i) - f * sum_j lambda_j chi2(df_e).

The tail of Q comes from Davies' method. When it cannot reach the
requested accuracy the accuracy is relaxed tenfold and the computation
repeated. The returned p-value is never smaller than the accuracy that
was finally achieved.
"""

from typing import Any

import numpy as np
from numpy.typing import ArrayLike

from pymlm.core.compute.tolerances import DAVIES_DEFAULTS
from pymlm.core.exceptions import ConvergenceError
from pymlm.mlm._davies import davies


def pv_f(
    f: float,
    lambdas: ArrayLike,
    df_i: int,
    df_e: int,
    acc: float = DAVIES_DEFAULTS.acc,
    *,
    lim: int = DAVIES_DEFAULTS.lim,
    max_steps: int = DAVIES_DEFAULTS.max_steps,
    term: str | None = None,
) -> tuple[float, float]:
    """
    Asymptotic p-value of a pseudo-F statistic.

    Args:
        f: Observed pseudo-F (trace(SSCP_term) / trace(SSCP_error))
        lambdas: Eigenvalues of the scaled residual covariance
        df_i: Degrees of freedom of the term
        df_e: Residual degrees of freedom
        acc: Initial accuracy requested from Davies' method
        lim: Maximum number of integration terms per Davies call
        max_steps: Maximum number of tenfold accuracy relaxations
        term: Term name, used in error messages only

    Returns:
        (p_value, precision) with p_value >= precision

    Raises:
        ConvergenceError: If no valid probability is obtained after
            max_steps relaxations
    """
    lam = np.asarray(lambdas, dtype=np.float64).ravel()
    f = float(f)

    if np.isposinf(f):
        return acc, acc

    weights = np.concatenate([lam, -f * lam])
    h = np.concatenate([np.full(lam.size, df_i), np.full(lam.size, df_e)])

    result = None
    for step in range(max_steps + 1):
        if step > 0:
            acc = acc * 10.0
        result = davies(0.0, weights, h=h, lim=lim, acc=acc)
        if result.ifault == 0 and 0.0 <= result.qq <= 1.0:
            return max(result.qq, acc), acc

    label = f" for term {term!r}" if term is not None else ""
    raise ConvergenceError(
        f"Davies' method did not converge{label}: last accuracy {acc:.1e}, "
        f"fault code {result.ifault}, value {result.qq:.6g}",
        iterations=max_steps,
        accuracy=acc,
        reason='max_steps',
        ifault=result.ifault,
        term=term,
    )


def pv_f_terms(
    f_tilde: dict[str, float],
    df: dict[str, int],
    df_e: int,
    lambdas: ArrayLike,
    **kwargs: Any,
) -> dict[str, tuple[float, float] | ConvergenceError]:
    """
    p-values for several terms sharing the same eigenvalues.

    Terms are independent: a term whose computation fails maps to its
    ConvergenceError instead of a (p_value, precision) pair, and the
    remaining terms are still evaluated.
    """
    out: dict[str, tuple[float, float] | ConvergenceError] = {}
    for term, f in f_tilde.items():
        try:
            out[term] = pv_f(f, lambdas, df[term], df_e, term=term, **kwargs)
        except ConvergenceError as e:
            out[term] = e
    return out
