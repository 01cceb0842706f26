"""
Core infrastructure for pymlm.

This module provides shared abstractions and numeric utilities used by the
multivariate linear model domain.

Key components:
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    compute: Timing, tolerances, linear algebra kernels
"""

from pymlm.core.result import Result
from pymlm.core.exceptions import (
    PyMLMError,
    ValidationError,
    DimensionError,
    InputError,
    NumericalError,
    SingularMatrixError,
    ProjectionError,
    ConvergenceError,
    DecompositionWarning,
)

__all__ = [
    # Result
    "Result",
    # Exceptions
    "PyMLMError",
    "ValidationError",
    "DimensionError",
    "InputError",
    "NumericalError",
    "SingularMatrixError",
    "ProjectionError",
    "ConvergenceError",
    "DecompositionWarning",
]
