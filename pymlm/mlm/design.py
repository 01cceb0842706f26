"""
Multivariate linear model design object.

Wraps validated data and metadata for the analysis. The response is
resolved once into a tagged variant: either a distance matrix supplied
by the caller, or a raw multivariate response from which distances are
computed. Rows with missing values (in the response or in any
explanatory variable) are excluded here, so everything downstream works
on complete matrices.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence, Union

import numpy as np
from numpy.typing import NDArray

from pymlm.core.compute.tolerances import DISTANCE_TOL
from pymlm.core.exceptions import InputError, ValidationError
from pymlm.core.validation import (
    check_array,
    check_min_samples,
    check_nonnegative,
    check_square,
    check_symmetric,
)
from pymlm.mlm._contrasts import CODINGS
from pymlm.mlm._distance import DISTANCE_METHODS, mlmdist


@dataclass(frozen=True)
class Distance:
    """Response given as an (n, n) dissimilarity matrix."""
    matrix: Any


@dataclass(frozen=True)
class RawMultivariate:
    """Response given as an (n, p) data matrix plus a distance method."""
    matrix: Any
    method: str = 'euclidean'


ResponseInput = Union[Distance, RawMultivariate]


def resolve_response(response: Any, distance: str = 'euclidean') -> ResponseInput:
    """
    Tag an untagged response.

    A square matrix that is symmetric (missing entries aside) is taken
    to be a distance matrix; anything else is raw data to which
    ``distance`` is applied.
    """
    if isinstance(response, (Distance, RawMultivariate)):
        return response

    arr = np.asarray(response)
    if arr.ndim == 2 and arr.shape[0] == arr.shape[1] and np.issubdtype(arr.dtype, np.number):
        try:
            check_symmetric(arr.astype(np.float64), 'response')
        except InputError:
            pass
        else:
            return Distance(arr)
    return RawMultivariate(response, distance)


@dataclass(frozen=True)
class MLMDesign:
    """
    Validated data container for a multivariate linear model.

    Created via MLMDesign.build(), not directly.

    Attributes:
        dmat: (n, n) complete distance matrix
        k: number of response columns for raw input, None for distances
        variables: explanatory variables in declaration order, complete
        categorical: categorical variable -> ordered levels
        codings: categorical variable -> contrast coding
        interactions: interaction member tuples
        n: number of complete observations
        omitted: original row indices excluded for missingness
        response_kind: 'distance' or 'raw'
        distance: distance method applied to raw input
    """
    dmat: NDArray[np.floating[Any]]
    k: int | None
    variables: dict[str, NDArray]
    categorical: dict[str, list[str]]
    codings: dict[str, str]
    interactions: tuple[tuple[str, ...], ...]
    n: int
    omitted: tuple[int, ...]
    response_kind: str
    distance: str

    @staticmethod
    def build(
        response: Any,
        predictors: Mapping[str, Any],
        *,
        distance: str = 'euclidean',
        contrasts: Mapping[str, str] | None = None,
        ordered: Mapping[str, Sequence[Any]] | Iterable[str] | None = None,
        interactions: Iterable[Sequence[str]] | None = None,
    ) -> 'MLMDesign':
        """
        Create the design for mlm().

        Args:
            response: Distance(...), RawMultivariate(...), or an untagged
                matrix (see resolve_response)
            predictors: {name: 1D array}, in declaration order
            distance: 'euclidean' or 'hellinger', for raw responses
            contrasts: {variable: coding} overrides
            ordered: ordered factors, as names or {name: levels}
            interactions: member-name tuples

        Returns:
            MLMDesign
        """
        if distance not in DISTANCE_METHODS:
            raise InputError(
                f"distance must be one of {DISTANCE_METHODS}, got {distance!r}"
            )
        if not predictors:
            raise ValidationError("predictors: at least one explanatory variable is required")

        tagged = resolve_response(response, distance)
        contrasts = dict(contrasts or {})
        ordered_levels = _ordered_levels(ordered)

        # --- explanatory variables, with their missingness ---
        raw_vars: dict[str, NDArray] = {}
        is_categorical: dict[str, bool] = {}
        missing_x: NDArray | None = None
        for name, values in predictors.items():
            arr = np.asarray(values)
            if arr.ndim != 1:
                raise ValidationError(f"{name}: expected 1D, got {arr.ndim}D")
            if missing_x is None:
                missing_x = np.zeros(len(arr), dtype=bool)
            elif len(arr) != len(missing_x):
                raise ValidationError(
                    f"{name}: length {len(arr)} doesn't match other predictors ({len(missing_x)})"
                )
            categorical = (
                name in ordered_levels
                or name in contrasts
                or arr.dtype.kind not in 'iuf'
            )
            is_categorical[name] = categorical
            missing_x |= _missing(arr, categorical)
            raw_vars[name] = arr

        for name in contrasts:
            if name not in raw_vars:
                raise ValidationError(f"contrasts: unknown variable {name!r}")
            if contrasts[name] not in CODINGS:
                raise ValueError(
                    f"{name}: coding must be one of {CODINGS}, got {contrasts[name]!r}"
                )
        for name in ordered_levels:
            if name not in raw_vars:
                raise ValidationError(f"ordered: unknown variable {name!r}")

        # --- response ---
        if isinstance(tagged, Distance):
            dmat, omitted = _complete_distance(tagged.matrix, missing_x)
            k = None
            kind = 'distance'
        else:
            if tagged.method not in DISTANCE_METHODS:
                raise InputError(
                    f"distance must be one of {DISTANCE_METHODS}, got {tagged.method!r}"
                )
            Y = check_array(tagged.matrix, 'response')
            if Y.ndim == 1:
                Y = Y.reshape(-1, 1)
            if Y.shape[0] != len(missing_x):
                raise ValidationError(
                    f"response: {Y.shape[0]} rows don't match predictors ({len(missing_x)})"
                )
            incomplete = np.any(np.isnan(Y), axis=1) | missing_x
            omitted = np.flatnonzero(incomplete)
            dmat = mlmdist(Y[~incomplete], method=tagged.method)
            k = Y.shape[1]
            distance = tagged.method
            kind = 'raw'

        keep = np.ones(len(missing_x), dtype=bool)
        keep[omitted] = False
        check_min_samples(dmat, 3, 'response (complete rows)')

        # --- categorical levels and codings on complete rows ---
        variables: dict[str, NDArray] = {}
        levels: dict[str, list[str]] = {}
        codings: dict[str, str] = {}
        for name, arr in raw_vars.items():
            arr = arr[keep]
            if not is_categorical[name]:
                variables[name] = arr.astype(np.float64)
                continue
            labels = np.array([str(v) for v in arr])
            if name in ordered_levels and ordered_levels[name] is not None:
                lv = [str(v) for v in ordered_levels[name]]
                unknown = sorted(set(labels) - set(lv))
                if unknown:
                    raise ValidationError(f"{name}: values {unknown} are not among its levels")
                lv = [v for v in lv if v in set(labels)]
            else:
                lv = sorted(set(labels))
            if len(lv) < 2:
                raise ValidationError(f"{name}: need at least 2 levels, got {len(lv)}")
            variables[name] = labels
            levels[name] = lv
            codings[name] = contrasts.get(name, 'poly' if name in ordered_levels else 'sum')

        return MLMDesign(
            dmat=dmat,
            k=k,
            variables=variables,
            categorical=levels,
            codings=codings,
            interactions=tuple(tuple(t) for t in (interactions or ())),
            n=dmat.shape[0],
            omitted=tuple(int(i) for i in omitted),
            response_kind=kind,
            distance=distance,
        )


def _ordered_levels(
    ordered: Mapping[str, Sequence[Any]] | Iterable[str] | None,
) -> dict[str, Sequence[Any] | None]:
    if ordered is None:
        return {}
    if isinstance(ordered, Mapping):
        return dict(ordered)
    if isinstance(ordered, str):
        return {ordered: None}
    return {name: None for name in ordered}


def _missing(arr: NDArray, categorical: bool) -> NDArray:
    """Boolean mask of missing entries (NaN, None)."""
    if arr.dtype.kind == 'f':
        return np.isnan(arr)
    if arr.dtype.kind == 'O':
        return np.array([
            v is None or (isinstance(v, float) and np.isnan(v)) for v in arr
        ], dtype=bool)
    return np.zeros(len(arr), dtype=bool)


def _complete_distance(
    matrix: Any,
    missing_x: NDArray,
) -> tuple[NDArray, NDArray]:
    """
    Validate a distance matrix and drop incomplete rows/columns.

    Only the upper triangle is read when anything is missing: a missing
    entry (i, j), i < j, drops observation i.
    """
    D = check_array(matrix, 'response')
    check_square(D, 'response')
    if D.shape[0] != len(missing_x):
        raise ValidationError(
            f"response: {D.shape[0]} rows don't match predictors ({len(missing_x)})"
        )
    check_symmetric(D, 'response')

    if np.any(np.isnan(D)) or np.any(missing_x):
        upper = np.triu(D)
        incomplete = np.any(np.isnan(upper), axis=1) | missing_x
        omitted = np.flatnonzero(incomplete)
        upper = upper[~incomplete][:, ~incomplete]
        D = upper + upper.T - np.diag(np.diag(upper))
    else:
        omitted = np.empty(0, dtype=np.intp)

    check_nonnegative(D, 'response', tol=DISTANCE_TOL)
    return D, omitted
