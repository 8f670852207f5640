#!/usr/bin/env python
"""
Module containing useful general functions that don't belong to another
module.
"""

import math

import numpy as np

__all__ = ['randn_c_RS', 'dominant_right_singular_vectors']


def randn_c_RS(RS: np.random.RandomState, *args: int) -> np.ndarray:
    """
    Draw a circularly symmetric complex Gaussian array (unit variance per
    element) from the random generator `RS`.

    The positional arguments are the dimensions of the array, as in
    `RS.randn`.

    Examples
    --------
    >>> RS = np.random.RandomState(1234)
    >>> a = randn_c_RS(RS, 4, 3)
    >>> a.shape
    (4, 3)
    >>> a.dtype
    dtype('complex128')
    """
    if RS is None:
        raise ValueError("A RandomState object must be provided")
    return (1.0 / math.sqrt(2.0)) * (RS.randn(*args) + (1j * RS.randn(*args)))


def dominant_right_singular_vectors(A: np.ndarray, n: int) -> np.ndarray:
    """
    Return the `n` right singular vectors of `A` corresponding to its
    largest singular values.

    Parameters
    ----------
    A : np.ndarray
        A 2D numpy array.
    n : int
        Number of desired right singular vectors. This must not be larger
        than the number of columns of `A`.

    Returns
    -------
    np.ndarray
        A 2D numpy array with `A.shape[1]` rows and `n` columns.

    Examples
    --------
    >>> A = np.array([[0.0, 2.0], [1.0, 0.0]])
    >>> print(np.abs(dominant_right_singular_vectors(A, 1)))
    [[0.]
     [1.]]
    """
    if n > A.shape[1]:
        raise ValueError("`n` must be lower then the number of columns "
                         "in `A`")
    # Note that numpy.linalg.svd returns the hermitian of V and the
    # singular values are already in descending order
    [_, _, V_H] = np.linalg.svd(A, full_matrices=True)
    return V_H.conj().T[:, 0:n]
