"""
Common data types for multivariate linear models.

Contains the frozen parameter payloads that go inside Result[P] envelopes.
Payloads hold data only; the solution classes do the formatting.
"""

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class MLMTableRow:
    """One row of an MLM table (one term or residuals)."""
    term: str
    df: int
    sum_sq: float
    mean_sq: float
    f_value: float | None      # None for Residuals row
    r2: float | None           # None for Residuals row
    p_value: float | None      # None for Residuals row, NaN if not converged
    precision: float | None    # accuracy reached for p_value


@dataclass(frozen=True)
class MLMParams:
    """
    Parameter payload for mlm().

    The F value in the table is the pseudo-F rescaled to the usual
    (SS / Df) / (SSe / df_e) form; f_tilde keeps the raw trace ratio the
    p-values are computed for.
    """
    table: tuple[MLMTableRow, ...]
    ss_type: str                                  # 'I', 'II' or 'III'
    n_obs: int
    n_omitted: int
    omitted: tuple[int, ...]                      # original row indices
    n_dimensions: int                             # columns of the configuration
    residual_df: int
    residual_ss: float
    residual_ms: float
    f_tilde: dict[str, float]
    precision: dict[str, float]                   # term -> achieved accuracy
    r2_model: float
    eigenvalues: NDArray[np.floating[Any]]        # lambdas of the p-values
    failed_terms: tuple[str, ...]
