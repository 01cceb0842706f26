"""
Distance matrices between the rows of a response matrix.

Available methods (for rows x and y):
    euclidean: sqrt(sum((x_i - y_i)^2))
    hellinger: sqrt(sum((sqrt(x_i) - sqrt(y_i))^2)), i.e. Euclidean
               distance on square-root transformed data
"""

from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.spatial.distance import pdist, squareform

from pymlm.core.exceptions import InputError
from pymlm.core.validation import check_array, check_finite, check_2d, check_nonnegative

DISTANCE_METHODS = ('euclidean', 'hellinger')


def mlmdist(X: ArrayLike, method: str = 'euclidean') -> NDArray[np.floating[Any]]:
    """
    Distance matrix between the rows of X.

    Args:
        X: (n, p) numeric data matrix. A 1D input is treated as one column.
        method: 'euclidean' or 'hellinger'

    Returns:
        (n, n) symmetric distance matrix with zero diagonal

    Raises:
        InputError: For an unknown method, or negative data with 'hellinger'
    """
    if method not in DISTANCE_METHODS:
        raise InputError(f'there is no method called "{method}"')

    X_arr = check_array(X, 'X')
    if X_arr.ndim == 1:
        X_arr = X_arr.reshape(-1, 1)
    check_2d(X_arr, 'X')
    check_finite(X_arr, 'X')

    if method == 'hellinger':
        check_nonnegative(X_arr, 'X')
        X_arr = np.sqrt(X_arr)

    return squareform(pdist(X_arr, metric='euclidean'))
