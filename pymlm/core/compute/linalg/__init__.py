"""
Linear algebra kernels for pymlm.

All functions follow these conventions:
    - CPU functions use NumPy/SciPy (LAPACK/ARPACK under the hood)
    - Each operation returns a structured result dataclass
    - Errors are raised immediately with clear messages

Submodules:
    qr: QR decomposition and least squares
    eigen: Double-centering and symmetric eigendecomposition
"""

from pymlm.core.compute.linalg.qr import (
    QRResult,
    QRSolve,
    qr_cpu,
    qr_solve_cpu,
)
from pymlm.core.compute.linalg.eigen import (
    EigenResult,
    double_centre,
    eigh_cpu,
    eigsh_cpu,
)

__all__ = [
    # QR decomposition
    "QRResult",
    "QRSolve",
    "qr_cpu",
    "qr_solve_cpu",
    # Eigendecomposition
    "EigenResult",
    "double_centre",
    "eigh_cpu",
    "eigsh_cpu",
]
