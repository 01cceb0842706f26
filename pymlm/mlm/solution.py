"""
User-facing MLM solution type.

Wraps a Result[MLMParams] and provides convenient accessors, formatted
summary output (matching R conventions), and the MLM table.
"""

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pymlm.core.result import Result
from pymlm.mlm._common import MLMParams, MLMTableRow
from pymlm.mlm._contrasts import ModelMatrix
from pymlm.mlm._fit import MultivariateFit


@dataclass
class MLMSolution:
    """
    User-facing result for distance-based multivariate linear models.

    Produced by mlm().
    """
    _result: Result[MLMParams]

    @property
    def table(self) -> tuple[MLMTableRow, ...]:
        """MLM table (rows: term, Df, SS, MS, F, R2, p, precision)."""
        return self._result.params.table

    @property
    def ss_type(self) -> str:
        return self._result.params.ss_type

    @property
    def n_obs(self) -> int:
        return self._result.params.n_obs

    @property
    def n_omitted(self) -> int:
        """Number of rows deleted due to missingness."""
        return self._result.params.n_omitted

    @property
    def omitted(self) -> tuple[int, ...]:
        return self._result.params.omitted

    @property
    def n_dimensions(self) -> int:
        return self._result.params.n_dimensions

    @property
    def residual_df(self) -> int:
        return self._result.params.residual_df

    @property
    def residual_ss(self) -> float:
        return self._result.params.residual_ss

    @property
    def residual_ms(self) -> float:
        return self._result.params.residual_ms

    @property
    def f_tilde(self) -> dict[str, float]:
        """Un-normalised pseudo-F: trace(SSCP_term) / trace(SSCP_error)."""
        return self._result.params.f_tilde

    @property
    def p_values(self) -> dict[str, float]:
        return {
            row.term: row.p_value for row in self.table if row.p_value is not None
        }

    @property
    def precision(self) -> dict[str, float]:
        """Accuracy reached by each p-value; no p-value is below it."""
        return self._result.params.precision

    @property
    def r2(self) -> dict[str, float]:
        return {row.term: row.r2 for row in self.table if row.r2 is not None}

    @property
    def r2_model(self) -> float:
        return self._result.params.r2_model

    @property
    def eigenvalues(self) -> NDArray[np.floating[Any]]:
        return self._result.params.eigenvalues

    @property
    def failed_terms(self) -> tuple[str, ...]:
        return self._result.params.failed_terms

    @property
    def distance(self) -> str:
        return self._result.info['distance']

    @property
    def fit(self) -> MultivariateFit:
        return self._result.info['fit']

    @property
    def model_matrix(self) -> ModelMatrix:
        return self._result.info['model_matrix']

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def summary(self) -> str:
        """Generate R-style MLM summary table."""
        lines = [
            f"Multivariate Linear Model (Type {self.ss_type} Sum of Squares)",
            "=" * 84,
            f"Observations: {self.n_obs}    Dimensions: {self.n_dimensions}"
            f"    Distance: {self.distance}",
            "",
            f"{'Source':<20} {'Df':>6} {'Sum Sq':>12} {'Mean Sq':>12} "
            f"{'F value':>10} {'R2':>8} {'Pr(>F)':>11}",
            "-" * 84,
        ]

        for row in self.table:
            if row.f_value is not None:
                sig = _significance_stars(row.p_value)
                lines.append(
                    f"{row.term:<20} {row.df:>6} {row.sum_sq:>12.5g} "
                    f"{row.mean_sq:>12.5g} {row.f_value:>10.4f} "
                    f"{row.r2:>8.4f} {format_pvalue(row.p_value, row.precision):>11} {sig}"
                )
            else:
                lines.append(
                    f"{row.term:<20} {row.df:>6} {row.sum_sq:>12.5g} "
                    f"{row.mean_sq:>12.5g}"
                )

        lines.append("-" * 84)
        lines.append("Signif. codes:  0 '***' 0.001 '**' 0.01 '*' 0.05 '.' 0.1 ' ' 1")

        if self.n_omitted:
            lines.append(f"{self.n_omitted} observations deleted due to missingness")
        if self.failed_terms:
            lines.append(f"p-values not computed for: {', '.join(self.failed_terms)}")

        return "\n".join(lines)

    def __repr__(self) -> str:
        terms = [row.term for row in self.table if row.term != 'Residuals']
        return (
            f"MLMSolution(type={self.ss_type}, n={self.n_obs}, "
            f"terms={terms})"
        )


def format_pvalue(p: float | None, eps: float | None, digits: int = 4) -> str:
    """
    Format a p-value against its accuracy.

    A p-value sitting at its accuracy floor is shown as '< eps'; the
    true value may be anywhere below.
    """
    if p is None or np.isnan(p):
        return "NA"
    if eps is not None and p <= eps:
        return f"< {eps:.3g}"
    return f"{p:.{digits}g}"


def _significance_stars(p: float | None) -> str:
    """Return significance stars for a p-value."""
    if p is None or np.isnan(p):
        return ""
    if p < 0.001:
        return "***"
    if p < 0.01:
        return "**"
    if p < 0.05:
        return "*"
    if p < 0.1:
        return "."
    return ""
