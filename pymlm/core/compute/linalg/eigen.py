"""
Symmetric eigendecomposition kernels.

Full decompositions go through LAPACK (scipy.linalg.eigh). Partial
decompositions of the k largest-magnitude eigenpairs use ARPACK
(scipy.sparse.linalg.eigsh). Both return eigenvalues in decreasing order
with eigenvectors as matching columns.
"""

from dataclasses import dataclass
from typing import Any
import numpy as np
from numpy.typing import NDArray
from scipy.linalg import eigh
from scipy.sparse.linalg import eigsh


@dataclass(frozen=True)
class EigenResult:
    """
    Eigenpairs of a symmetric matrix.

    Attributes:
        values: (k,) eigenvalues, decreasing
        vectors: (n, k) orthonormal eigenvectors, column j pairs with values[j]
        partial: True if only the leading k pairs were computed
    """
    values: NDArray[np.floating[Any]]
    vectors: NDArray[np.floating[Any]]
    partial: bool


def double_centre(A: NDArray[np.floating[Any]]) -> NDArray[np.floating[Any]]:
    """
    Double-centre a square matrix: J A J with J = I - 11'/n.

    Subtracts row means and column means and adds back the grand mean.
    """
    row_means = A.mean(axis=1, keepdims=True)
    col_means = A.mean(axis=0, keepdims=True)
    return A - row_means - col_means + A.mean()


def eigh_cpu(G: NDArray[np.floating[Any]]) -> EigenResult:
    """Full symmetric eigendecomposition, eigenvalues decreasing."""
    values, vectors = eigh(G)
    order = np.argsort(values)[::-1]
    return EigenResult(values=values[order], vectors=vectors[:, order], partial=False)


def eigsh_cpu(G: NDArray[np.floating[Any]], k: int, seed: int = 0) -> EigenResult:
    """
    Leading k eigenpairs (largest magnitude) of a symmetric matrix.

    Falls back to the full decomposition when k is too large for ARPACK
    (k >= n - 1). The starting vector is drawn from a seeded generator so
    repeated calls are deterministic.
    """
    n = G.shape[0]
    if k >= n - 1:
        full = eigh_cpu(G)
        order = np.argsort(np.abs(full.values))[::-1][:k]
        order = order[np.argsort(full.values[order])[::-1]]
        return EigenResult(values=full.values[order], vectors=full.vectors[:, order], partial=False)

    v0 = np.random.default_rng(seed).standard_normal(n)
    values, vectors = eigsh(G, k=k, which='LM', v0=v0)
    order = np.argsort(values)[::-1]
    return EigenResult(values=values[order], vectors=vectors[:, order], partial=True)
