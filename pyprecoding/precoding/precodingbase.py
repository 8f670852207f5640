#!/usr/bin/env python
"""
Module with the base classes and the common functions of the coordinated
precoding algorithms.

All coordinated precoding algorithms alternate between an update of the
receive filters of the mobile stations (the "MS update") and an update of
the precoders of the base stations (the "BS update"). The iteration loop,
the convergence test and the collection of the results are implemented
once in :class:`CoordinatedPrecodingBase`, while each algorithm only
implements its two update steps.
"""

import logging
import math
from abc import ABCMeta, abstractmethod
from collections.abc import Mapping
from typing import (TYPE_CHECKING, Any, Dict, Iterator, List, Optional,
                    Sequence, Tuple)

import numpy as np

from ..channels.multiuser import SinglecarrierChannel
from ..util.misc import dominant_right_singular_vectors
from ..util.serialize import JsonSerializable
from .errors import (BisectionWarning, InfeasibleBisectionError,
                     InvalidConfigurationError)
from .settings import PrecodingSettings

if TYPE_CHECKING:  # pragma: no cover
    from ..network.network import CellAssignment, Network

__all__ = [
    'InvalidConfigurationError', 'InfeasibleBisectionError',
    'BisectionWarning', 'AlgorithmState', 'PrecodingResults',
    'CoordinatedPrecodingBase', 'calculate_logdet_rates',
    'calculate_MMSE_rates', 'calculate_allocated_power', 'zero_receivers',
    'unity_MSE_weights', 'initial_precoders'
]

logger = logging.getLogger(__name__)

MatrixList = List[np.ndarray]


# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxx Algorithm state xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
class AlgorithmState:
    """
    State of a coordinated precoding algorithm.

    Every algorithm keeps at least the receive filters `U`, the precoders
    `V` and the MSE weights `W` of each user. Algorithms needing more
    variables subclass this class.

    Parameters
    ----------
    U : list[np.ndarray]
        Receive filter of each user (`Ns[k] x ds[k]`).
    V : list[np.ndarray]
        Precoder of each user (`Ms[i] x ds[k]`, where `i` is the serving
        base station of user `k`).
    W : list[np.ndarray]
        MSE weight of each user (`ds[k] x ds[k]`).
    """
    def __init__(self, U: MatrixList, V: MatrixList, W: MatrixList) -> None:
        self.U = U
        self.V = V
        self.W = W

    def __repr__(self) -> str:
        return "{0}(K={1}, ds={2})".format(self.__class__.__name__,
                                           len(self.W), self.ds.tolist())

    @property
    def ds(self) -> np.ndarray:
        """Number of streams of each user."""
        return np.array([Wk.shape[0] for Wk in self.W], dtype=int)


# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxx Rate calculation xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
def calculate_logdet_rates(state: AlgorithmState) -> np.ndarray:
    """
    Calculate the rate of each stream from the eigenvalues of the MSE
    weights.

    The rate of a stream is `log2(max(1, lambda))`, where `lambda` is an
    eigenvalue of the MSE weight of the user. Eigenvalues lower than one
    (numerical noise) give a rate of zero.

    Parameters
    ----------
    state : AlgorithmState
        The algorithm state (any object with a `W` attribute).

    Returns
    -------
    np.ndarray
        A `K x max(ds)` numpy array with the rates (in bits/s/Hz). Users
        with fewer streams than `max(ds)` have the remaining entries equal
        to zero.

    Examples
    --------
    >>> state = AlgorithmState([], [], [np.diag([4.0, 2.0]), np.eye(1) * 8])
    >>> print(calculate_logdet_rates(state))
    [[1. 2.]
     [3. 0.]]
    """
    ds = [Wk.shape[0] for Wk in state.W]
    logdet_rates = np.zeros([len(ds), max(ds)])

    for k, Wk in enumerate(state.W):
        # W is positive definite and thus its eigenvalues are real, but
        # numerically they can be lower than one.
        eigenvalues = np.linalg.eigvalsh(Wk)
        logdet_rates[k, 0:ds[k]] = np.log2(np.maximum(1.0, eigenvalues))

    return logdet_rates


def calculate_MMSE_rates(state: AlgorithmState) -> np.ndarray:
    """
    Calculate the rate of each stream from the MSE of the MMSE receiver.

    The MSE matrix is the inverse of the MSE weight and the rate of stream
    `n` is `log2(max(1, 1/E[n, n]))`.

    Parameters
    ----------
    state : AlgorithmState
        The algorithm state (any object with a `W` attribute).

    Returns
    -------
    np.ndarray
        A `K x max(ds)` numpy array with the rates (in bits/s/Hz), padded
        with zeros as in :func:`calculate_logdet_rates`.

    Examples
    --------
    >>> state = AlgorithmState([], [], [np.diag([4.0, 2.0]), np.eye(1) * 8])
    >>> print(calculate_MMSE_rates(state))
    [[2. 1.]
     [3. 0.]]
    """
    ds = [Wk.shape[0] for Wk in state.W]
    MMSE_rates = np.zeros([len(ds), max(ds)])

    for k, Wk in enumerate(state.W):
        E = np.linalg.inv(Wk)
        MMSE_rates[k, 0:ds[k]] = np.log2(
            np.maximum(1.0, np.real(1.0 / np.diag(E))))

    return MMSE_rates


def calculate_allocated_power(state: AlgorithmState) -> np.ndarray:
    """
    Calculate the transmit power allocated to each stream.

    Parameters
    ----------
    state : AlgorithmState
        The algorithm state (any object with a `V` attribute).

    Returns
    -------
    np.ndarray
        A `K x max(ds)` numpy array with the squared norm of each column
        of the precoders, padded with zeros.
    """
    ds = [Vk.shape[1] for Vk in state.V]
    allocated_power = np.zeros([len(ds), max(ds)])

    for k, Vk in enumerate(state.V):
        allocated_power[k, 0:ds[k]] = np.sum(np.abs(Vk)**2, axis=0)

    return allocated_power


# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxx Initialization xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
def zero_receivers(channel: SinglecarrierChannel,
                   ds: Sequence[int]) -> MatrixList:
    """
    Create all-zero receive filters.

    Parameters
    ----------
    channel : SinglecarrierChannel
        The channel.
    ds : Sequence[int]
        Number of streams of each user.

    Returns
    -------
    list[np.ndarray]
        The `Ns[k] x ds[k]` receive filter of each user.
    """
    return [
        np.zeros([channel.Ns[k], ds[k]], dtype=complex)
        for k in range(channel.K)
    ]


def unity_MSE_weights(ds: Sequence[int]) -> MatrixList:
    """
    Create identity MSE weights.

    Parameters
    ----------
    ds : Sequence[int]
        Number of streams of each user.

    Returns
    -------
    list[np.ndarray]
        The `ds[k] x ds[k]` identity MSE weight of each user.
    """
    return [np.eye(d, dtype=complex) for d in ds]


def initial_precoders(channel: SinglecarrierChannel, Ps: Sequence[float],
                      sigma2s: Sequence[float], ds: Sequence[int],
                      cell_assignment: "CellAssignment",
                      strategy: str) -> MatrixList:
    """
    Create the initial precoders of all users.

    With the exception of the 'zeros' strategy, the precoders of the users
    served by base station `i` use exactly the power budget `Ps[i]`, which
    is split evenly among them.

    Parameters
    ----------
    channel : SinglecarrierChannel
        The channel.
    Ps : Sequence[float]
        Power budget of each base station.
    sigma2s : Sequence[float]
        Noise power of each user. The available strategies do not depend
        on it.
    ds : Sequence[int]
        Number of streams of each user.
    cell_assignment : CellAssignment
        The cell assignment.
    strategy : str
        One of the strings

        - 'dft': columns of a DFT matrix.
        - 'white': columns of an identity matrix.
        - 'zeros': all-zero precoders.
        - 'eigendirection': the dominant right singular vectors of the
          channel from the serving base station.

    Returns
    -------
    list[np.ndarray]
        The `Ms[i] x ds[k]` precoder of each user.

    Raises
    ------
    InvalidConfigurationError
        If the strategy is unknown.
    """
    # pylint: disable=W0613
    if strategy not in ('dft', 'white', 'zeros', 'eigendirection'):
        raise InvalidConfigurationError(
            "unknown initialization option: '{0}'".format(strategy))

    V: MatrixList = [np.empty(0)] * channel.K

    for i in range(channel.I):
        served = cell_assignment.served_MS_ids(i)
        Kc = len(served)
        M = channel.Ms[i]

        for k in served:
            d = ds[k]
            if strategy == 'dft':
                V[k] = (math.sqrt(Ps[i] / (M * d * Kc)) *
                        np.fft.fft(np.eye(M, d), axis=0))
            elif strategy == 'white':
                V[k] = math.sqrt(Ps[i] / (d * Kc)) * np.eye(M, d,
                                                            dtype=complex)
            elif strategy == 'zeros':
                V[k] = np.zeros([M, d], dtype=complex)
            else:
                Vtmp = dominant_right_singular_vectors(channel.get_Hki(k, i),
                                                       d)
                V[k] = math.sqrt(Ps[i] / Kc) * Vtmp / np.linalg.norm(Vtmp,
                                                                    'fro')

    return V


# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxx Results xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
class PrecodingResults(Mapping, JsonSerializable):
    """
    Results of one run of a coordinated precoding algorithm.

    The object behaves as a (read-only) dictionary with the fields
    'objective', 'logdet_rates', 'MMSE_rates' and 'allocated_power'. It
    also carries the diagnostics of the run.

    Parameters
    ----------
    fields : dict
        The result fields.
    iters : int
        Number of performed iterations.
    conv_crit : float
        Last computed relative change of the objective (NaN if less than
        two iterations were performed).
    converged : bool
        True if the iterations stopped because the relative change of the
        objective was lower than the stop criterion.

    Examples
    --------
    >>> results = PrecodingResults({'objective': np.array([1.0, 2.0])}, 2,
    ...                            0.5, False)
    >>> print(results['objective'])
    [1. 2.]
    >>> list(results)
    ['objective']
    >>> results.iters, results.converged
    (2, False)
    """
    def __init__(self, fields: Dict[str, Any], iters: int, conv_crit: float,
                 converged: bool) -> None:
        self._fields = dict(fields)
        self.iters = iters
        self.conv_crit = conv_crit
        self.converged = converged

    def __getitem__(self, key: str) -> Any:
        return self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return "PrecodingResults(fields={0}, iters={1}, converged={2})".format(
            list(self._fields), self.iters, self.converged)

    def _to_dict(self) -> Dict[str, Any]:
        return {
            'fields': self._fields,
            'iters': self.iters,
            'conv_crit': self.conv_crit,
            'converged': self.converged
        }

    @classmethod
    def _from_dict(cls, d: Dict[str, Any]) -> "PrecodingResults":
        return cls(d['fields'], d['iters'], d['conv_crit'], d['converged'])


# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxx Base class xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
class CoordinatedPrecodingBase(metaclass=ABCMeta):
    """
    Base class of the coordinated precoding algorithms.

    Subclasses must implement the `_update_MSs` and `_update_BSs`
    methods. Both methods read the current state (`self.state`) and must
    build new lists of matrices for the variables they update, replacing
    the ones in the state only at the end. This way no user observes the
    update of another user in the same phase.

    Solving the problem corresponds to the loop

    1. MS update (receive filters and MSE weights).
    2. Rates and objective of the current iteration.
    3. Stop if the relative change of the objective is below the stop
       criterion (checked from the second iteration on).
    4. BS update (precoders), unless this was the last iteration.

    Parameters
    ----------
    channel : SinglecarrierChannel
        The channel. It is not modified.
    Ps : Sequence[float]
        Power budget of each base station.
    sigma2s : Sequence[float]
        Receiver noise power of each user.
    ds : Sequence[int]
        Number of streams of each user.
    cell_assignment : CellAssignment
        The base station serving each user.
    settings : PrecodingSettings, optional
        The algorithm settings. If not provided, the default settings are
        used.

    Raises
    ------
    InvalidConfigurationError
        If the dimensions of the arguments do not match the channel.
    """
    # Algorithms that divide by the norm of the precoders cannot start
    # from all-zero precoders.
    _supports_zero_precoders = True

    # The state class of the algorithm.
    _state_class = AlgorithmState

    def __init__(self,
                 channel: SinglecarrierChannel,
                 Ps: Sequence[float],
                 sigma2s: Sequence[float],
                 ds: Sequence[int],
                 cell_assignment: "CellAssignment",
                 settings: Optional[PrecodingSettings] = None) -> None:
        self._channel = channel
        self._Ps = np.array(Ps, dtype=float)
        self._sigma2s = np.array(sigma2s, dtype=float)
        self._ds = np.array(ds, dtype=int)
        self._cell_assignment = cell_assignment
        self.settings = settings if settings is not None \
            else PrecodingSettings()

        self._check_dimensions()

        self._state: Optional[AlgorithmState] = None

    def __repr__(self) -> str:
        return "{0}(K={1}, I={2}, ds={3})".format(self.__class__.__name__,
                                                  self._channel.K,
                                                  self._channel.I,
                                                  self._ds.tolist())

    @classmethod
    def from_network(cls,
                     channel: SinglecarrierChannel,
                     network: "Network",
                     settings: Optional[PrecodingSettings] = None) -> Any:
        """
        Create the algorithm object with the power budgets, noise powers,
        number of streams and cell assignment of a network.

        Parameters
        ----------
        channel : SinglecarrierChannel
            The channel.
        network : Network
            The network.
        settings : PrecodingSettings, optional
            The algorithm settings.

        Returns
        -------
        CoordinatedPrecodingBase
            The algorithm object.
        """
        return cls(channel, network.get_transmit_powers(),
                   network.get_receiver_noise_powers(),
                   network.get_no_streams(), network.get_cell_assignment(),
                   settings)

    def _check_dimensions(self) -> None:
        channel = self._channel
        K, I = channel.K, channel.I  # noqa: E741
        if self._Ps.size != I:
            raise InvalidConfigurationError(
                "There must be one power budget per base station")
        if self._sigma2s.size != K or self._ds.size != K:
            raise InvalidConfigurationError(
                "There must be one noise power and one number of streams "
                "per user")
        if np.any(self._sigma2s < 0) or np.any(self._Ps < 0):
            raise InvalidConfigurationError(
                "Noise powers and power budgets must be non-negative")
        if (self._cell_assignment.num_MSs != K
                or self._cell_assignment.num_BSs != I):
            raise InvalidConfigurationError(
                "The cell assignment does not match the channel dimensions")
        for k in range(K):
            i = self._cell_assignment.serving_BS_id(k)
            if not 1 <= self._ds[k] <= min(channel.Ns[k], channel.Ms[i]):
                msg = ("User {0} cannot have {1} streams with {2} receive "
                       "antennas and {3} transmit antennas")
                raise InvalidConfigurationError(
                    msg.format(k, self._ds[k], channel.Ns[k], channel.Ms[i]))

    # xxxxxxxxxx Properties xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
    @property
    def channel(self) -> SinglecarrierChannel:
        """Get method for the channel property."""
        return self._channel

    @property
    def cell_assignment(self) -> "CellAssignment":
        """Get method for the cell_assignment property."""
        return self._cell_assignment

    @property
    def state(self) -> AlgorithmState:
        """
        Get method for the state property.

        Returns
        -------
        AlgorithmState
            The state after the last call of `solve`.
        """
        if self._state is None:
            raise RuntimeError("The solve method was not called yet")
        return self._state

    @property
    def K(self) -> int:
        """Number of users."""
        return self._channel.K

    @property
    def I(self) -> int:  # noqa: E743
        """Number of base stations."""
        return self._channel.I

    # xxxxxxxxxx Common building blocks xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
    def _received_covariance(self, k: int, V: MatrixList) -> np.ndarray:
        """
        Calculate the covariance of the signal received by user `k` (all
        streams of all users plus noise).

        Parameters
        ----------
        k : int
            The user index.
        V : list[np.ndarray]
            The precoders of all users.

        Returns
        -------
        np.ndarray
            The `Ns[k] x Ns[k]` covariance matrix.
        """
        Phi = self._sigma2s[k] * np.eye(self._channel.Ns[k], dtype=complex)
        for l in range(self.K):  # noqa: E741
            j = self._cell_assignment.serving_BS_id(l)
            HV = self._channel.get_Hki(k, j).dot(V[l])
            Phi += HV.dot(HV.conj().T)
        return Phi

    def _mmse_receivers(self, V: MatrixList
                        ) -> Tuple[MatrixList, MatrixList, MatrixList]:
        """
        Calculate the MMSE receivers, the MSE matrices and the optimal MSE
        weights of all users for the given precoders.

        Parameters
        ----------
        V : list[np.ndarray]
            The precoders of all users.

        Returns
        -------
        (list[np.ndarray], list[np.ndarray], list[np.ndarray])
            The receivers `U`, the MSE matrices `E` and the MSE weights
            `W = E^{-1}`.
        """
        U: MatrixList = []
        E: MatrixList = []
        W: MatrixList = []
        for k in range(self.K):
            i = self._cell_assignment.serving_BS_id(k)
            Phi = self._received_covariance(k, V)
            F = self._channel.get_Hki(k, i).dot(V[k])
            Uk = np.linalg.solve(Phi, F)
            Ek = np.eye(self._ds[k]) - Uk.conj().T.dot(F)
            U.append(Uk)
            E.append(Ek)
            W.append(np.linalg.inv(Ek))
        return U, E, W

    def _virtual_uplink_covariance(self, i: int, U: MatrixList,
                                   weights: Optional[MatrixList] = None
                                   ) -> np.ndarray:
        """
        Calculate the (weighted) virtual uplink covariance of base station
        `i`, summing over all users of the network.

        Parameters
        ----------
        i : int
            The base station index.
        U : list[np.ndarray]
            The receivers of all users.
        weights : list[np.ndarray], optional
            The weight of each user. If not provided, identity weights are
            used.

        Returns
        -------
        np.ndarray
            The `Ms[i] x Ms[i]` Hermitian matrix
            `sum_l H[l,i]^H U[l] weights[l] U[l]^H H[l,i]`.
        """
        Ms = self._channel.Ms[i]
        Gamma = np.zeros([Ms, Ms], dtype=complex)
        for l in range(self.K):  # noqa: E741
            HU = self._channel.get_Hki(l, i).conj().T.dot(U[l])
            if weights is None:
                Gamma += HU.dot(HU.conj().T)
            else:
                Gamma += HU.dot(weights[l]).dot(HU.conj().T)
        # Remove the numerical noise that makes Gamma not Hermitian
        return 0.5 * (Gamma + Gamma.conj().T)

    # xxxxxxxxxx Algorithm steps xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
    def _initial_state(self) -> AlgorithmState:
        """
        Create the state used in the first iteration.

        Returns
        -------
        AlgorithmState
            The initial state, with zero receivers, unity MSE weights and
            the precoders given by the `initial_precoders` setting.
        """
        V = initial_precoders(self._channel, self._Ps, self._sigma2s,
                              self._ds, self._cell_assignment,
                              self.settings.initial_precoders)
        return self._state_class(zero_receivers(self._channel, self._ds), V,
                                 unity_MSE_weights(self._ds))

    @abstractmethod
    def _update_MSs(self) -> None:  # pragma: no cover
        """
        Update the receive filters and the MSE weights of all users.

        Notes
        -----
        This method should be implemented in the derived classes
        """
        raise NotImplementedError("_update_MSs: Not implemented")

    @abstractmethod
    def _update_BSs(self) -> None:  # pragma: no cover
        """
        Update the precoders of all base stations.

        Notes
        -----
        This method should be implemented in the derived classes
        """
        raise NotImplementedError("_update_BSs: Not implemented")

    def _objective(self, logdet_rates: np.ndarray) -> float:
        """
        Calculate the objective of the current iteration.

        Parameters
        ----------
        logdet_rates : np.ndarray
            The `K x max(ds)` log-det rates of the current iteration.

        Returns
        -------
        float
            The sum rate.
        """
        return float(np.sum(logdet_rates))

    def solve(self) -> PrecodingResults:
        """
        Run the algorithm until convergence or until the maximum number of
        iterations.

        Returns
        -------
        PrecodingResults
            The results. With the 'all_iterations' output protocol the
            objective is a 1D array with one element per iteration and the
            rates and allocated powers are `K x max(ds) x iters` arrays.
            With the 'final_iteration' output protocol the objective is a
            float and the other fields are `K x max(ds)` arrays.

        Raises
        ------
        InvalidConfigurationError
            If the algorithm cannot start from the configured initial
            precoders.
        InfeasibleBisectionError
            If the power bisection of a BS update fails.
        """
        settings = self.settings
        name = self.__class__.__name__
        if (settings.initial_precoders == 'zeros'
                and not self._supports_zero_precoders):
            raise InvalidConfigurationError(
                "{0} cannot be initialized with zero precoders".format(name))

        self._state = self._initial_state()

        objective: List[float] = []
        logdet_rates: MatrixList = []
        MMSE_rates: MatrixList = []
        allocated_power: MatrixList = []

        iters = 0
        conv_crit = math.nan
        converged = False
        while iters < settings.max_iters:
            self._update_MSs()
            iters += 1

            # Results after this iteration
            logdet_rates.append(calculate_logdet_rates(self._state))
            objective.append(self._objective(logdet_rates[-1]))
            MMSE_rates.append(calculate_MMSE_rates(self._state))
            allocated_power.append(calculate_allocated_power(self._state))

            # Check convergence
            if iters >= 2:
                conv_crit = _relative_change(objective[-1], objective[-2])
                if conv_crit < settings.stop_crit:
                    converged = True
                    logger.debug(
                        "%s converged: no_iters=%d, final_objective=%g, "
                        "conv_crit=%g, stop_crit=%g, max_iters=%d", name,
                        iters, objective[-1], conv_crit, settings.stop_crit,
                        settings.max_iters)
                    break

            # Begin next iteration, unless the loop will end
            if iters < settings.max_iters:
                self._update_BSs()

        if not converged:
            logger.debug(
                "%s did NOT converge: no_iters=%d, final_objective=%g, "
                "conv_crit=%g, stop_crit=%g, max_iters=%d", name, iters,
                objective[-1], conv_crit, settings.stop_crit,
                settings.max_iters)

        if settings.output_protocol == 'all_iterations':
            fields = {
                'objective': np.array(objective),
                'logdet_rates': np.stack(logdet_rates, axis=2),
                'MMSE_rates': np.stack(MMSE_rates, axis=2),
                'allocated_power': np.stack(allocated_power, axis=2)
            }
        else:
            fields = {
                'objective': objective[-1],
                'logdet_rates': logdet_rates[-1],
                'MMSE_rates': MMSE_rates[-1],
                'allocated_power': allocated_power[-1]
            }

        return PrecodingResults(fields, iters, conv_crit, converged)


def _relative_change(current: float, previous: float) -> float:
    """
    Relative change of the objective between two iterations.

    Two zero objectives (all-zero precoders) give NaN, which never
    satisfies the stop criterion.
    """
    if previous == 0:
        return math.nan if current == 0 else math.inf
    return abs(current - previous) / abs(previous)
