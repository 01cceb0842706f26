"""
Input checks shared by the distance, projection and fit layers.

Each check tests one property and raises with the parameter name and
the offending value; nothing is repaired silently. Missing values (NaN)
pass check_array so that design.py can exclude incomplete rows; every
other check that sees them treats them as absent.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray
from typing import Any

from pymlm.core.exceptions import ValidationError, DimensionError, InputError


def check_array(
    array: ArrayLike,
    name: str,
) -> NDArray[np.float64]:
    """
    Convert a numeric array-like to a float64 array.

    Raises:
        ValidationError: If the input is ragged, of object dtype, or not
            numeric (strings, dates)
    """
    try:
        arr = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{name}: not convertible to an array ({e})") from e

    if arr.dtype == object:
        raise ValidationError(f"{name}: object dtype, expected numbers only")
    if not np.issubdtype(arr.dtype, np.number):
        raise ValidationError(f"{name}: non-numeric dtype {arr.dtype}")

    return arr.astype(np.float64, copy=False)


def check_finite(array: NDArray[np.floating[Any]], name: str) -> None:
    """Reject NaN and Inf entries."""
    bad = ~np.isfinite(array)
    if bad.any():
        raise ValidationError(
            f"{name}: {int(bad.sum())} non-finite entries "
            f"({int(np.isnan(array).sum())} missing)"
        )


def check_2d(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Raises:
        DimensionError: If array is not a matrix
    """
    if array.ndim != 2:
        raise DimensionError(f"{name}: expected a matrix, got shape {array.shape}")


def check_square(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Raises:
        InputError: If array is not an (n, n) matrix
    """
    if array.ndim != 2 or array.shape[0] != array.shape[1]:
        raise InputError(
            f"{name}: expected a square matrix, got shape {array.shape}"
        )


def check_symmetric(
    array: NDArray[np.floating[Any]],
    name: str,
    tol: float = 1e-12,
) -> None:
    """
    Verify a square array is symmetric up to a relative tolerance.

    Pairs with a missing entry are skipped.

    Raises:
        InputError: If max |A - A'| exceeds tol * max(1, max |A|)
    """
    diff = np.abs(array - array.T)
    diff = diff[~np.isnan(diff)]
    if diff.size == 0:
        return
    scale = max(1.0, float(np.nanmax(np.abs(array))))
    worst = float(np.max(diff))
    if worst > tol * scale:
        raise InputError(
            f"{name}: matrix is not symmetric (max asymmetry {worst:.3g})"
        )


def check_nonnegative(
    array: NDArray[np.floating[Any]],
    name: str,
    tol: float = 0.0,
) -> None:
    """
    Verify all (non-missing) entries are >= -tol.

    Raises:
        InputError: If any entry is below -tol
    """
    finite = array[~np.isnan(array)]
    if finite.size and float(np.min(finite)) < -tol:
        raise InputError(
            f"{name}: entries must be non-negative, "
            f"minimum is {float(np.min(finite)):.6g}"
        )


def check_consistent_length(
    *arrays: NDArray[np.floating[Any]],
    names: tuple[str, ...]
) -> None:
    """
    Verify the arrays have the same number of rows.

    Raises:
        ValueError: If names and arrays differ in number
        DimensionError: If the row counts differ
    """
    if len(arrays) != len(names):
        raise ValueError(f"got {len(arrays)} arrays but {len(names)} names")

    rows = {name: arr.shape[0] for name, arr in zip(names, arrays)}
    if len(set(rows.values())) > 1:
        counts = ", ".join(f"{name}={n}" for name, n in rows.items())
        raise DimensionError(f"row counts differ: {counts}")


def check_min_samples(array: NDArray[np.floating[Any]], min_samples: int, name: str) -> None:
    """
    Raises:
        ValidationError: If array has fewer than min_samples rows
    """
    n = array.shape[0]
    if n < min_samples:
        raise ValidationError(
            f"{name}: needs at least {min_samples} observations, got {n}"
        )
