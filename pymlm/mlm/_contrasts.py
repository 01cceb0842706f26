"""
Contrast coding and model matrix construction.

Handles the translation from explanatory variables to a numeric design
matrix, recording which columns belong to which term.

Key concepts:
    - Treatment coding: k-1 indicator columns (baseline = first level)
    - Sum coding: k-1 columns summing to zero across levels (last level = -1)
    - Helmert coding: level j+1 contrasted with the mean of levels 1..j
    - Polynomial coding: orthogonal polynomials over equally spaced scores
    - Interaction: element-wise products of the member terms' columns
    - ModelMatrix: the full design matrix with metadata for SS computation

Defaults follow the multivariate model convention: sum coding for
unordered factors, polynomial coding for ordered ones. Numeric variables
enter as a single column.
"""

from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np
from numpy.typing import NDArray

INTERCEPT = '(Intercept)'

CODINGS = ('treatment', 'sum', 'helmert', 'poly')

# Codings whose columns are orthogonal to the intercept in balanced data
ORTHOGONAL_CODINGS = ('sum', 'helmert', 'poly')


@dataclass(frozen=True)
class ModelMatrix:
    """
    Encoded design matrix with metadata for SS computation.

    Attributes:
        X: (n, p) float64 design matrix (column 0 is the intercept)
        assign: (p,) term index per column, 0 for the intercept
        term_slices: term name -> column slice in X
        term_names: ordered list of term names, intercept first
        term_df: term -> number of columns (degrees of freedom for that term)
        term_factors: term -> names of the variables it is built from
        n: number of observations
        p: total number of columns
        codings: categorical variable -> coding used
        factor_levels: categorical variable -> ordered level strings
    """
    X: NDArray[np.floating[Any]]
    assign: NDArray[np.intp]
    term_slices: dict[str, slice]
    term_names: list[str]
    term_df: dict[str, int]
    term_factors: dict[str, tuple[str, ...]]
    n: int
    p: int
    codings: dict[str, str]
    factor_levels: dict[str, list[str]]

    @property
    def terms(self) -> list[str]:
        """Term names without the intercept."""
        return [t for t in self.term_names if t != INTERCEPT]


def contrast_matrix(n_levels: int, coding: str) -> NDArray[np.floating[Any]]:
    """
    (k, k-1) contrast matrix for a factor with k levels.

    Row i holds the columns assigned to observations at level i.
    """
    k = n_levels
    if coding == 'treatment':
        return np.eye(k, dtype=np.float64)[:, 1:]

    if coding == 'sum':
        C = np.zeros((k, k - 1), dtype=np.float64)
        C[:k - 1, :] = np.eye(k - 1)
        C[k - 1, :] = -1.0
        return C

    if coding == 'helmert':
        C = np.zeros((k, k - 1), dtype=np.float64)
        for j in range(k - 1):
            C[:j + 1, j] = -1.0
            C[j + 1, j] = float(j + 1)
        return C

    if coding == 'poly':
        scores = np.arange(1, k + 1, dtype=np.float64)
        centred = scores - scores.mean()
        V = np.vander(centred, N=k, increasing=True)
        Q, R = np.linalg.qr(V)
        raw = Q * np.diag(R)
        Z = raw / np.sqrt(np.sum(raw ** 2, axis=0))
        return Z[:, 1:]

    raise ValueError(f"coding must be one of {CODINGS}, got {coding!r}")


def encode_factor(
    factor: NDArray,
    levels: Sequence[str],
    coding: str,
) -> NDArray[np.floating[Any]]:
    """
    Code a single factor into k-1 columns.

    Args:
        factor: 1D array of level labels (already strings)
        levels: ordered level names; row i of the contrast matrix
            belongs to levels[i]
        coding: one of CODINGS

    Returns:
        (n, k-1) float64 matrix
    """
    index = {level: i for i, level in enumerate(levels)}
    codes = np.array([index[str(v)] for v in factor], dtype=np.intp)
    return contrast_matrix(len(levels), coding)[codes]


def interaction_columns(*blocks: NDArray) -> NDArray:
    """
    Interaction columns as element-wise products across member blocks.

    The first block's columns vary fastest.

    Args:
        *blocks: (n, p_i) column blocks, one per member variable

    Returns:
        (n, prod(p_i)) interaction columns
    """
    X_int = blocks[0]
    for block in blocks[1:]:
        n = X_int.shape[0]
        X_int = (X_int[:, :, None] * block[:, None, :]).transpose(0, 2, 1).reshape(n, -1)
    return X_int


def build_model_matrix(
    variables: dict[str, NDArray],
    *,
    categorical: dict[str, list[str]],
    codings: dict[str, str],
    interactions: Sequence[Sequence[str]] | None = None,
) -> ModelMatrix:
    """
    Build a full design matrix from explanatory variables.

    Main-effect terms appear in the order of ``variables``; interaction
    terms follow in the order given.

    Args:
        variables: {name: 1D array}; categorical ones hold level strings,
            numeric ones floats
        categorical: categorical variable -> ordered level list
        codings: categorical variable -> coding
        interactions: member-name tuples, e.g. [('A', 'B')]

    Returns:
        ModelMatrix with full design matrix and metadata
    """
    for name, coding in codings.items():
        if coding not in CODINGS:
            raise ValueError(
                f"{name}: coding must be one of {CODINGS}, got {coding!r}"
            )

    n = len(next(iter(variables.values())))
    columns = [np.ones((n, 1), dtype=np.float64)]
    term_slices: dict[str, slice] = {INTERCEPT: slice(0, 1)}
    term_names: list[str] = [INTERCEPT]
    term_df: dict[str, int] = {INTERCEPT: 1}
    term_factors: dict[str, tuple[str, ...]] = {INTERCEPT: ()}
    assign = [0]
    col_offset = 1

    def _add(term: str, members: tuple[str, ...], X_term: NDArray) -> None:
        nonlocal col_offset
        ncols = X_term.shape[1]
        columns.append(X_term)
        term_slices[term] = slice(col_offset, col_offset + ncols)
        term_names.append(term)
        term_df[term] = ncols
        term_factors[term] = members
        assign.extend([len(term_names) - 1] * ncols)
        col_offset += ncols

    blocks: dict[str, NDArray] = {}
    for name, values in variables.items():
        if name in categorical:
            block = encode_factor(values, categorical[name], codings[name])
        else:
            block = np.asarray(values, dtype=np.float64).reshape(-1, 1)
        blocks[name] = block
        _add(name, (name,), block)

    for members in interactions or ():
        members = tuple(members)
        unknown = [m for m in members if m not in blocks]
        if unknown:
            raise ValueError(f"interaction {members}: unknown variables {unknown}")
        if len(set(members)) != len(members) or len(members) < 2:
            raise ValueError(
                f"interaction {members}: needs at least 2 distinct variables"
            )
        _add(":".join(members), members, interaction_columns(*(blocks[m] for m in members)))

    return ModelMatrix(
        X=np.hstack(columns),
        assign=np.asarray(assign, dtype=np.intp),
        term_slices=term_slices,
        term_names=term_names,
        term_df=term_df,
        term_factors=term_factors,
        n=n,
        p=col_offset,
        codings=dict(codings),
        factor_levels={name: list(levels) for name, levels in categorical.items()},
    )


def term_contains(candidate: tuple[str, ...], target: tuple[str, ...]) -> bool:
    """
    Check if candidate term contains target term.

    A term 'A:B' contains 'A' and 'B' (it's an interaction of those
    variables); 'A:B:C' contains 'A:B'. A term does not contain itself,
    and the intercept contains nothing.

    Used by Type II to respect marginality.
    """
    return len(candidate) > len(target) and set(target) < set(candidate)
