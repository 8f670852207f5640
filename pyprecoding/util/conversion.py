#!/usr/bin/env python
"""
Unit conversions (dB, dBm and linear scale) and the conversion between a
single block matrix and the equivalent matrix of matrices.

Powers in the networks are in mW, thus `dB2Linear` applied to a value in
dBm gives mW. The `linear2dBm` function takes Watts.
"""

from typing import List, Optional, TypeVar

import numpy as np

__all__ = [
    'single_matrix_to_matrix_of_matrices', 'dB2Linear', 'linear2dB',
    'linear2dBm'
]

NumberOrArray = TypeVar("NumberOrArray", np.ndarray, float)


def _blocks_to_object_array(blocks: List[np.ndarray]) -> np.ndarray:
    output = np.empty(len(blocks), dtype=object)
    for index, block in enumerate(blocks):
        output[index] = block
    return output


def single_matrix_to_matrix_of_matrices(
        single_matrix: np.ndarray,
        nrows: Optional[np.ndarray] = None,
        ncols: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Break a block matrix into a numpy array (of object dtype) whose
    elements are the blocks.

    The blocks are views of `single_matrix`, therefore if `single_matrix`
    is read-only so are the blocks.

    Parameters
    ----------
    single_matrix : np.ndarray
        The block matrix. A 1D array can only be broken with `nrows`.
    nrows : np.ndarray, optional
        Number of rows of each block row. If not provided, only the columns
        are broken and the result is a 1D array of blocks.
    ncols : np.ndarray, optional
        Number of columns of each block column. If not provided, only the
        rows are broken and the result is a 1D array of blocks.

    Returns
    -------
    np.ndarray
        A 1D array of blocks (only `nrows` or only `ncols` provided) or a
        `nrows.size x ncols.size` array of blocks.

    Raises
    ------
    ValueError
        If neither `nrows` nor `ncols` is provided.

    Examples
    --------
    >>> single_array = np.array([2, 2, 4, 5, 6, 8, 8, 8, 8])
    >>> m_of_ms = single_matrix_to_matrix_of_matrices(single_array,
    ...                                               np.array([2, 3, 4]))
    >>> print(m_of_ms.size)
    3
    >>> print(m_of_ms[1])
    [4 5 6]
    >>> single_matrix = np.array([[1, 1, 1], [2, 2, 2], [3, 3, 3]])
    >>> multi_M = single_matrix_to_matrix_of_matrices(
    ...     single_matrix, np.array([2, 1]), np.array([1, 2]))
    >>> print(multi_M[0, 1])
    [[1 1]
     [2 2]]
    >>> print(multi_M[1, 0])
    [[3]]
    """
    if nrows is None and ncols is None:
        raise ValueError("At least one of nrows and ncols must be provided")

    if ncols is None:
        return _blocks_to_object_array(
            np.split(single_matrix, np.cumsum(nrows)[:-1], axis=0))

    column_edges = np.cumsum(ncols)[:-1]
    if nrows is None:
        return _blocks_to_object_array(
            np.split(single_matrix, column_edges, axis=1))

    output = np.empty([len(nrows), len(ncols)], dtype=object)
    row_blocks = np.split(single_matrix, np.cumsum(nrows)[:-1], axis=0)
    for rx, row_block in enumerate(row_blocks):
        for tx, block in enumerate(
                np.split(row_block, column_edges, axis=1)):
            output[rx, tx] = block
    return output


def dB2Linear(valueIndB: NumberOrArray) -> NumberOrArray:
    """
    Convert from dB to linear scale.

    Examples
    --------
    >>> dB2Linear(30)
    1000.0
    """
    return pow(10, valueIndB / 10.0)


def linear2dB(valueInLinear: NumberOrArray) -> NumberOrArray:
    """
    Convert from linear scale to dB.

    Examples
    --------
    >>> print(linear2dB(1000))
    30.0
    """
    return 10.0 * np.log10(valueInLinear)  # type: ignore


def linear2dBm(valueInLinear: NumberOrArray) -> NumberOrArray:
    """
    Convert from Watts to dBm.

    Examples
    --------
    >>> print(linear2dBm(1000))
    60.0
    """
    return linear2dB(valueInLinear * 1000.)
