"""
Multivariate linear model solver.

Public API:
    mlm(response, predictors, ...) -> MLMSolution
"""

import warnings
from typing import Any, Iterable, Mapping, Sequence

from pymlm.core.compute.timing import Timer
from pymlm.core.compute.tolerances import DAVIES_DEFAULTS, PROJECTION_TOL
from pymlm.core.exceptions import ConvergenceError
from pymlm.core.result import Result
from pymlm.mlm._common import MLMParams, MLMTableRow
from pymlm.mlm._contrasts import build_model_matrix
from pymlm.mlm._fit import fit_multivariate
from pymlm.mlm._projection import mlmproject
from pymlm.mlm._pvalue import pv_f_terms
from pymlm.mlm._ss import normalize_ss_type
from pymlm.mlm._statistics import mlmtst, residual_eigenvalues
from pymlm.mlm.design import MLMDesign
from pymlm.mlm.solution import MLMSolution


def mlm(
    response: Any,
    predictors: Mapping[str, Any],
    *,
    distance: str = 'euclidean',
    ss_type: int | str = 2,
    contrasts: Mapping[str, str] | None = None,
    ordered: Mapping[str, Sequence[Any]] | Iterable[str] = (),
    interactions: Iterable[Sequence[str]] | None = None,
    tol: float = PROJECTION_TOL,
    acc: float = DAVIES_DEFAULTS.acc,
    lim: int = DAVIES_DEFAULTS.lim,
    max_steps: int = DAVIES_DEFAULTS.max_steps,
) -> MLMSolution:
    """
    Distance-based multivariate linear model with asymptotic p-values.

    The dissimilarities are projected onto a Euclidean configuration
    (classical scaling), the configuration is regressed on the
    explanatory variables, and each term is tested with a pseudo-F
    statistic whose asymptotic null distribution is evaluated with
    Davies' method. No permutations are involved.

    Args:
        response: (n, n) distance matrix, (n, p) multivariate response,
            or an explicitly tagged Distance / RawMultivariate
        predictors: {name: 1D array}. Numeric arrays are covariates,
            anything else (strings, booleans) is a factor.
        distance: 'euclidean' or 'hellinger', for raw responses
        ss_type: Type of sums of squares (1, 2, 3 or 'I', 'II', 'III').
            Default 2.
            Type I: sequential (order-dependent)
            Type II: each term adjusted for the terms not containing it
            Type III: each term last (requires orthogonal coding)
        contrasts: {factor: coding} with coding in 'treatment', 'sum',
            'helmert', 'poly'. Defaults: 'sum' for unordered factors,
            'poly' for ordered factors.
        ordered: Ordered factors, as names or {name: levels in order}
        interactions: Tuples of variable names, e.g. [('A', 'B')]
        tol: Relative eigenvalue tolerance of the projection
        acc: Initial accuracy of the p-values
        lim: Integration term limit per Davies evaluation
        max_steps: Maximum number of tenfold accuracy relaxations

    Returns:
        MLMSolution with the MLM table, p-value precisions and the fit

    Examples:
        >>> result = mlm(Y, {'group': group, 'age': age})
        >>> print(result.summary())
        >>> result = mlm(Distance(D), {'site': site}, ss_type=3)
    """
    timer = Timer()
    timer.start()

    design = MLMDesign.build(
        response,
        predictors,
        distance=distance,
        contrasts=contrasts,
        ordered=ordered,
        interactions=interactions,
    )

    with timer.section('projection'):
        Y = mlmproject(design.dmat, k=design.k, tol=tol)
        Y = Y - Y.mean(axis=0)

    with timer.section('fit'):
        mm = build_model_matrix(
            design.variables,
            categorical=design.categorical,
            codings=design.codings,
            interactions=design.interactions,
        )
        fit = fit_multivariate(mm, Y)

    with timer.section('decomposition'):
        stats = mlmtst(fit, mm, ss_type)
        lambdas = residual_eigenvalues(fit.residuals, fit.df_residual)

    with timer.section('pvalues'):
        outcomes = pv_f_terms(
            stats.f_tilde, stats.df, stats.df_residual, lambdas,
            acc=acc, lim=lim, max_steps=max_steps,
        )

    issued = list(stats.warnings)
    failed: list[str] = []
    precision: dict[str, float] = {}
    rows: list[MLMTableRow] = []
    df_e = stats.df_residual

    for term, f_tilde in stats.f_tilde.items():
        outcome = outcomes[term]
        if isinstance(outcome, ConvergenceError):
            message = f"p-value for term {term!r} not computed: {outcome}"
            warnings.warn(message, RuntimeWarning, stacklevel=2)
            issued.append(message)
            failed.append(term)
            p_value, precision[term] = float('nan'), outcome.accuracy
        else:
            p_value, precision[term] = outcome

        df = stats.df[term]
        rows.append(MLMTableRow(
            term=term,
            df=df,
            sum_sq=stats.ss[term],
            mean_sq=stats.ss[term] / df,
            f_value=f_tilde * df_e / df,
            r2=stats.r2[term],
            p_value=p_value,
            precision=precision[term],
        ))

    residual_ms = stats.ss_residual / df_e
    rows.append(MLMTableRow(
        term='Residuals',
        df=df_e,
        sum_sq=stats.ss_residual,
        mean_sq=residual_ms,
        f_value=None,
        r2=None,
        p_value=None,
        precision=None,
    ))

    timer.stop()

    ss_label = normalize_ss_type(ss_type)
    params = MLMParams(
        table=tuple(rows),
        ss_type=ss_label,
        n_obs=design.n,
        n_omitted=len(design.omitted),
        omitted=design.omitted,
        n_dimensions=Y.shape[1],
        residual_df=df_e,
        residual_ss=stats.ss_residual,
        residual_ms=residual_ms,
        f_tilde=dict(stats.f_tilde),
        precision=precision,
        r2_model=stats.r2_model,
        eigenvalues=lambdas,
        failed_terms=tuple(failed),
    )

    result = Result(
        params=params,
        info={
            'ss_type': ss_label,
            'distance': design.distance,
            'response': design.response_kind,
            'codings': dict(design.codings),
            'fit': fit,
            'model_matrix': mm,
        },
        timing=timer.result(),
        backend_name='cpu_davies',
        warnings=tuple(issued),
    )

    return MLMSolution(_result=result)
