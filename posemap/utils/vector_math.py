"""A set of helper functions to handle common vector operations.

Wherever possible, these functions are designed to handle multiple vectors at the same time to perform efficient
computations.
"""
import numpy as np
from numpy.linalg import norm


def row_wise_dot(v1, v2, squeeze=False):
    """Calculate row wise dot product of two vectors."""
    v1, v2 = np.atleast_2d(v1, v2)
    out = np.sum(v1 * v2, axis=-1)
    if squeeze:
        return np.squeeze(out)
    return out


def normalize(v: np.ndarray) -> np.ndarray:
    """Simply normalize a vector.

    If a 2D array is provided, each row is considered a vector, which is normalized independently.
    Rows with a norm of 0 are returned unchanged.

    Parameters
    ----------
    v : array with shape (n,) or (m, n)
         vector or array of vectors

    Returns
    -------
    normalized vector or  array of normalized vectors

    Examples
    --------
    1D array

    >>> normalize(np.array([0, 0, 2]))
    array([0., 0., 1.])

    2D array

    >>> normalize(np.array([[2, 0, 0, 0], [0, 0, 0, 0]]))
    array([[1., 0., 0., 0.],
           [0., 0., 0., 0.]])

    """
    v = np.asarray(v, dtype=float)
    lengths = norm(v, axis=-1, keepdims=True)
    return np.divide(v, lengths, out=v.copy(), where=lengths != 0)
