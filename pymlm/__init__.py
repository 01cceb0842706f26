"""
pymlm: distance-based multivariate linear models for Python.

Multivariate linear models on dissimilarity matrices with asymptotic
p-values (Davies' method) instead of permutation tests.

Submodules:
    mlm: Model fitting, SSCP decomposition and p-values
    core: Result envelope, exceptions, validation, numeric kernels
"""

__version__ = "0.1.0"

from pymlm.mlm import (
    mlm,
    mlmdist,
    mlmproject,
    mlmtst,
    pv_f,
    davies,
    Distance,
    RawMultivariate,
    MLMSolution,
)

__all__ = [
    "__version__",
    "mlm",
    "mlmdist",
    "mlmproject",
    "mlmtst",
    "pv_f",
    "davies",
    "Distance",
    "RawMultivariate",
    "MLMSolution",
]
