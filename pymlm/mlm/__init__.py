"""
Distance-based multivariate linear models with asymptotic p-values.

Public API:
    mlm(response, predictors, ...) -> MLMSolution
    mlmdist(X, method) -> distance matrix          # euclidean / hellinger
    mlmproject(dmat, k, tol) -> configuration      # classical scaling
    mlmtst(fit, model_matrix, ss_type) -> MLMStatistics
    pv_f(f, lambdas, df_i, df_e, ...) -> (p_value, precision)
    davies(q, lambdas, ...) -> DaviesResult
"""

from pymlm.mlm.solvers import mlm
from pymlm.mlm.solution import MLMSolution
from pymlm.mlm.design import Distance, RawMultivariate, MLMDesign
from pymlm.mlm._common import MLMParams, MLMTableRow
from pymlm.mlm._distance import mlmdist
from pymlm.mlm._projection import mlmproject
from pymlm.mlm._statistics import MLMStatistics, mlmtst
from pymlm.mlm._pvalue import pv_f
from pymlm.mlm._davies import DaviesResult, davies

__all__ = [
    "mlm",
    "mlmdist",
    "mlmproject",
    "mlmtst",
    "pv_f",
    "davies",
    "MLMSolution",
    "MLMParams",
    "MLMTableRow",
    "MLMStatistics",
    "MLMDesign",
    "Distance",
    "RawMultivariate",
    "DaviesResult",
]
