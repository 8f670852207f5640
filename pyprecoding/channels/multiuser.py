#!/usr/bin/env python
"""
Module containing the single carrier multi-cell channel used by the
coordinated precoding algorithms.

The channel is stored as a "matrix of matrices", where the block `(k, i)`
is the channel from the antennas of base station `i` to the antennas of
mobile station (user) `k`.
"""

from typing import Optional, Union

import numpy as np

from ..util.conversion import single_matrix_to_matrix_of_matrices
from ..util.misc import randn_c_RS

__all__ = ['SinglecarrierChannel']

IntOrIntArrayUnion = Union[int, np.ndarray]


def _to_int_array(value: IntOrIntArrayUnion, size: int) -> np.ndarray:
    """Repeat `value` `size` times if it is an integer."""
    if isinstance(value, (int, np.integer)):
        return np.ones(size, dtype=int) * int(value)
    return np.asarray(value, dtype=int)


class SinglecarrierChannel:  # pylint: disable=R0902
    """
    Stores the (flat fading) channel between all base stations and all
    mobile stations of a cellular network.

    This channel matrix can be seem as an concatenation of blocks (of
    non-uniform size) where each block is the channel from one base station
    to one user and the block size is equal to the number of receive
    antennas of the user times the number of transmit antennas of the base
    station. For instance, with users having [2, 4] receive antennas and
    base stations having [2, 3, 5] transmit antennas, the channel looks
    like

      +-----+---------+---------------+
      |2 x 2|  2 x 3  |     2 x 5     |
      +-----+---------+---------------+
      |4 x 2|  4 x 3  |     4 x 5     |
      |     |         |               |
      +-----+---------+---------------+

    The channel is immutable: the numpy arrays are marked as
    non-writable. A new channel realization is obtained by calling one of
    the `randomize` or `init_from_channel_matrix` methods again, which
    replaces all the stored arrays.

    Parameters
    ----------
    H : np.ndarray, optional
        A `K x I` numpy array of numpy arrays with the channel of each
        (user, base station) pair. If not provided, the channel is empty
        until `randomize` or `init_from_channel_matrix` is called.

    Examples
    --------
    >>> H = np.empty((2, 1), dtype=np.ndarray)
    >>> H[0, 0] = np.array([[1.0, 2.0]])
    >>> H[1, 0] = np.array([[3.0, 4.0], [5.0, 6.0]])
    >>> channel = SinglecarrierChannel(H)
    >>> channel.K, channel.I
    (2, 1)
    >>> print(channel.Ns, channel.Ms)
    [1 2] [2]
    >>> print(channel.big_H.real)
    [[1. 2.]
     [3. 4.]
     [5. 6.]]
    """
    def __init__(self, H: Optional[np.ndarray] = None) -> None:
        # The _big_H_no_fading variable is an internal variable with all
        # the channels from each base station to each user represented as
        # a single big matrix.
        self._big_H_no_fading = np.array([], dtype=complex)

        # Same data as _big_H_no_fading, but as a matrix of matrices.
        self._H_no_fading = np.empty((0, 0), dtype=np.ndarray)

        # Versions with the large scale fading applied. These are lazily
        # computed from the large scale fading factors.
        self._big_H_with_fading: Optional[np.ndarray] = None
        self._H_with_fading: Optional[np.ndarray] = None

        self._Ns = np.array([], dtype=int)
        self._Ms = np.array([], dtype=int)
        self._K: int = 0
        self._I: int = 0

        # K x I matrix with the large scale fading (power gain in linear
        # scale) of each link.
        self._large_scale_fading: Optional[np.ndarray] = None

        if H is not None:
            self._init_from_matrix_of_matrices(H)

    def __repr__(self) -> str:
        return "{0}(K={1}, I={2}, Ns={3}, Ms={4})".format(
            self.__class__.__name__, self._K, self._I, self._Ns.tolist(),
            self._Ms.tolist())

    # xxxxxxxxxx Properties xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
    @property
    def Ns(self) -> np.ndarray:
        """Number of receive antennas of each user."""
        return self._Ns

    @property
    def Ms(self) -> np.ndarray:
        """Number of transmit antennas of each base station."""
        return self._Ms

    @property
    def K(self) -> int:
        """Number of users (mobile stations)."""
        return self._K

    @property
    def I(self) -> int:  # noqa: E743
        """Number of base stations."""
        return self._I

    @property
    def large_scale_fading(self) -> Optional[np.ndarray]:
        """
        Get method for the large_scale_fading property.

        Returns
        -------
        None | np.ndarray
            The `K x I` large scale fading matrix (if one was applied).
        """
        return self._large_scale_fading

    @property
    def H(self) -> np.ndarray:
        """
        Get method for the H property.

        Returns
        -------
        np.ndarray
            The channel from all base stations to all users (with the
            large scale fading applied, if any). This is a `K x I` numpy
            array of numpy arrays.
        """
        if self._large_scale_fading is None:
            return self._H_no_fading

        if self._H_with_fading is None:
            H = self._H_no_fading * np.sqrt(self._large_scale_fading)
            for Hki in H.flat:
                Hki.setflags(write=False)
            H.setflags(write=False)
            self._H_with_fading = H
        return self._H_with_fading

    @property
    def big_H(self) -> np.ndarray:
        """
        Get method for the big_H property.

        Returns
        -------
        np.ndarray
            The channel from all base stations to all users as a single
            big matrix (with `sum(Ns)` rows and `sum(Ms)` columns).
        """
        if self._large_scale_fading is None:
            return self._big_H_no_fading

        if self._big_H_with_fading is None:
            H = self.H
            big_H = np.vstack([np.hstack(list(H[k, :])) for k in range(self._K)])
            big_H.setflags(write=False)
            self._big_H_with_fading = big_H
        return self._big_H_with_fading

    # xxxxxxxxxx Initialization xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
    def _reset(self) -> None:
        """Forget anything derived from a previous channel realization."""
        self._big_H_with_fading = None
        self._H_with_fading = None
        self._large_scale_fading = None

    def _store(self, big_H: np.ndarray, Ns: np.ndarray, Ms: np.ndarray,
               K: int, I: int) -> None:  # noqa: E741
        self._reset()
        self._K = int(K)
        self._I = int(I)
        self._Ns = Ns
        self._Ms = Ms

        # Assures that _big_H and _H will stay in sync by disallowing
        # modification of individual elements in both of them. The base
        # array is locked before the blocks are taken so that the block
        # views are also read-only.
        big_H.setflags(write=False)
        self._big_H_no_fading = big_H
        self._H_no_fading = single_matrix_to_matrix_of_matrices(big_H, Ns, Ms)
        self._H_no_fading.setflags(write=False)

    def _init_from_matrix_of_matrices(self, H: np.ndarray) -> None:
        if H.ndim != 2:
            raise ValueError("H must be a K x I numpy array of numpy arrays")
        K, I = H.shape  # noqa: E741
        Ns = np.array([H[k, 0].shape[0] for k in range(K)], dtype=int)
        Ms = np.array([H[0, i].shape[1] for i in range(I)], dtype=int)
        for k in range(K):
            for i in range(I):
                if H[k, i].shape != (Ns[k], Ms[i]):
                    msg = ("The channel from base station {0} to user {1} "
                           "must have shape {2}, but it has shape {3}")
                    raise ValueError(
                        msg.format(i, k, (Ns[k], Ms[i]), H[k, i].shape))

        big_H = np.vstack(
            [np.hstack([H[k, i] for i in range(I)]) for k in range(K)])
        self._store(np.array(big_H, dtype=complex), Ns, Ms, K, I)

    def init_from_channel_matrix(self, channel_matrix: np.ndarray,
                                 Ns: IntOrIntArrayUnion,
                                 Ms: IntOrIntArrayUnion, K: int,
                                 I: int) -> None:  # noqa: E741
        """
        Initializes the channel from the given `channel_matrix`.

        Parameters
        ----------
        channel_matrix : np.ndarray
            A matrix concatenating the channel from each base station to
            each user. This is a 2D numpy array.
        Ns : int | np.ndarray
            Number of receive antennas of each user.
        Ms : int | np.ndarray
            Number of transmit antennas of each base station.
        K : int
            Number of users.
        I : int
            Number of base stations.

        Raises
        ------
        ValueError
            If the arguments are invalid.

        Examples
        --------
        >>> channel = SinglecarrierChannel()
        >>> big_H = np.reshape(np.r_[0:12], [3, 4])
        >>> channel.init_from_channel_matrix(big_H, np.array([1, 2]), 2, 2, 2)
        >>> print(channel.get_Hki(1, 0).real)
        [[4. 5.]
         [8. 9.]]
        """
        Ns_array = _to_int_array(Ns, K)
        Ms_array = _to_int_array(Ms, I)

        if (Ns_array.size != K) or (Ms_array.size != I):
            raise ValueError("K must be equal to the number of elements in "
                             "Ns and I to the number of elements in Ms")

        if channel_matrix.shape != (np.sum(Ns_array), np.sum(Ms_array)):
            msg = ("Shape of the channel_matrix must be equal to the sum of "
                   "receive antennas of all users times the sum of the "
                   "transmit antennas of all base stations.")
            raise ValueError(msg)

        self._store(np.array(channel_matrix, dtype=complex), Ns_array,
                    Ms_array, K, I)

    def randomize(self, Ns: IntOrIntArrayUnion, Ms: IntOrIntArrayUnion,
                  K: int, I: int,  # noqa: E741
                  RS: np.random.RandomState) -> None:
        """
        Generates a random (Rayleigh fading) channel for all links.

        Parameters
        ----------
        Ns : int | np.ndarray
            Number of receive antennas of each user. If an integer is
            specified, all users will have that number of receive antennas.
        Ms : int | np.ndarray
            Number of transmit antennas of each base station. If an
            integer is specified, all base stations will have that number
            of transmit antennas.
        K : int
            Number of users.
        I : int
            Number of base stations.
        RS : np.random.RandomState
            The RandomState object used to draw the channel.
        """
        Ns_array = _to_int_array(Ns, K)
        Ms_array = _to_int_array(Ms, I)
        if (Ns_array.size != K) or (Ms_array.size != I):
            raise ValueError("K must be equal to the number of elements in "
                             "Ns and I to the number of elements in Ms")

        big_H = randn_c_RS(RS, int(np.sum(Ns_array)), int(np.sum(Ms_array)))
        self._store(big_H, Ns_array, Ms_array, K, I)

    def apply_large_scale_fading(self, factors: np.ndarray) -> None:
        """
        Set the large scale fading (path loss, shadowing, antenna gains,
        etc.) of each link.

        The channel from base station `i` to user `k` is multiplied by
        `sqrt(factors[k, i])`. Calling this method again replaces the
        previous factors, instead of accumulating them.

        Parameters
        ----------
        factors : np.ndarray
            A `K x I` numpy array with the power gain (in linear scale) of
            each link.

        Raises
        ------
        ValueError
            If `factors` has the wrong shape or negative values.
        """
        factors = np.array(factors, dtype=float)
        if factors.shape != (self._K, self._I):
            raise ValueError("The large scale fading must be a {0} x {1} "
                             "matrix".format(self._K, self._I))
        if np.any(factors < 0):
            raise ValueError("The large scale fading factors must be "
                             "non-negative")

        self._big_H_with_fading = None
        self._H_with_fading = None
        self._large_scale_fading = factors
        self._large_scale_fading.setflags(write=False)

    def get_Hki(self, k: int, i: int) -> np.ndarray:
        """
        Get the channel matrix from base station `i` to user `k`.

        Parameters
        ----------
        k : int
            Receiving user.
        i : int
            Transmitting base station.

        Returns
        -------
        channel : np.ndarray
            Channel from base station `i` to user `k`. This is a 2D numpy
            array with `Ns[k]` rows and `Ms[i]` columns.
        """
        return self.H[k, i]
