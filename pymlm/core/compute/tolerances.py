"""
Tolerances and numerical defaults.

Two kinds of settings live here:
- Defaults for the algorithms themselves (projection eigenvalue cutoff,
  Davies accuracy / iteration cap / escalation limit). These are the
  values every public function uses unless overridden by keyword.
- Comparison tiers used by the test suite when checking results against
  independent computations.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ToleranceTier:
    """Absolute and relative tolerances for a numerical comparison."""
    rtol: float
    atol: float
    name: str
    description: str


@dataclass(frozen=True)
class DaviesSettings:
    """
    Accuracy control for Davies' quadratic-form algorithm.

    Attributes:
        acc: Initial requested absolute accuracy of the CDF
        lim: Maximum number of integration terms per call
        max_steps: Maximum number of tenfold accuracy relaxations
    """
    acc: float
    lim: int
    max_steps: int


# Eigenvalues of the Gower matrix at or below this (relative to the
# largest) are treated as zero.
PROJECTION_TOL = 1e-12

# Negative dissimilarities down to -PROJECTION_TOL are accepted as zero.
DISTANCE_TOL = 1e-12

# acc=1e-14 relaxed at most 14 times ends at 1.0.
DAVIES_DEFAULTS = DaviesSettings(acc=1e-14, lim=50000, max_steps=14)

# Direct computations in double precision
CPU_FP64 = ToleranceTier(
    rtol=1e-10,
    atol=1e-12,
    name='cpu_fp64',
    description='CPU double precision, direct linear algebra',
)

# Comparisons that pass through an eigendecomposition or a numerical
# integration
CPU_FP64_ITERATIVE = ToleranceTier(
    rtol=1e-6,
    atol=1e-8,
    name='cpu_fp64_iterative',
    description='CPU double precision, iterative or integrated quantities',
)


def select_tolerance(is_iterative: bool = False) -> ToleranceTier:
    """Select the comparison tier for a computation path."""
    if is_iterative:
        return CPU_FP64_ITERATIVE
    return CPU_FP64
