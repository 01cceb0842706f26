"""
Shared compute infrastructure for pymlm.

This module provides timing utilities, numerical defaults and linear
algebra kernels shared by the domain code.

IMPORTANT: This is NOT where domain algorithms live. Those go in
pymlm/{domain}/. This module contains shared NUMERIC infrastructure.

Submodules:
    timing: Execution timing utilities
    tolerances: Algorithm defaults and comparison tiers
    linalg: Linear algebra kernels (QR, symmetric eigendecomposition)
"""

from pymlm.core.compute.timing import Timer
from pymlm.core.compute.tolerances import (
    DAVIES_DEFAULTS,
    DISTANCE_TOL,
    PROJECTION_TOL,
    DaviesSettings,
)

__all__ = [
    # Timing
    "Timer",
    # Defaults
    "DAVIES_DEFAULTS",
    "DISTANCE_TOL",
    "PROJECTION_TOL",
    "DaviesSettings",
]
