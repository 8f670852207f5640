#!/usr/bin/env python

# pylint: disable=R0904
"""
Module with implementation of the coordinated precoding algorithms.

All algorithms receive the channel and the network parameters (power
budgets, noise powers, number of streams and cell assignment) and any
change to them must be performed before calling the `solve` method of the
algorithm object.

The implemented algorithms are

- :class:`WeightedMaxSINR`: the Max-SINR algorithm of [Gomadam2008]_, with
  the receivers and precoders weighted by the MSE weights.
- :class:`Shi2011WMMSE`: the weighted MMSE algorithm of [Shi2011]_.
- :class:`Komulainen2013WMMSE`: the weighted MMSE algorithm of
  [Komulainen2013]_, which uses diagonal MSE weights and finds the
  precoders by bisection over the power constraint.
- :class:`Razaviyayn2013MaxMinWMMSE`: a max-min fair version of the
  weighted MMSE algorithm, based on [Razaviyayn2013]_.

.. [Gomadam2008] K. Gomadam, V. R. Cadambe and S. A. Jafar, "Approaching
   the Capacity of Wireless Networks through Distributed Interference
   Alignment," IEEE GLOBECOM 2008.

.. [Shi2011] Q. Shi, M. Razaviyayn, Z.-Q. Luo and C. He, "An Iteratively
   Weighted MMSE Approach to Distributed Sum-Utility Maximization for a
   MIMO Interfering Broadcast Channel," IEEE Transactions on Signal
   Processing 59, pp. 4331-4340, Sep. 2011.

.. [Komulainen2013] P. Komulainen, A. Tolli and M. Juntti, "Effective CSI
   Signaling and Decentralized Beam Coordination in TDD Multi-Cell MIMO
   Systems," IEEE Transactions on Signal Processing 61, pp. 2204-2218,
   May 2013.

.. [Razaviyayn2013] M. Razaviyayn, M. Hong and Z.-Q. Luo, "Linear
   Transceiver Design for a MIMO Interfering Broadcast Channel Achieving
   Max-Min Fairness," Signal Processing 93, pp. 3327-3340, Dec. 2013.
"""

import math
from typing import List, Optional

import numpy as np
from scipy.linalg import sqrtm

from .bisection import optimal_mu
from .precodingbase import AlgorithmState, CoordinatedPrecodingBase

__all__ = [
    'WeightedMaxSINR', 'Shi2011WMMSE', 'Komulainen2013WMMSE',
    'Razaviyayn2013MaxMinWMMSE', 'WeightedMaxSINRState', 'Shi2011WMMSEState',
    'Komulainen2013WMMSEState', 'Razaviyayn2013MaxMinWMMSEState'
]

MatrixList = List[np.ndarray]

# Rate (in bits/s/Hz) used instead of smaller rates when the max-min
# priorities are computed.
_MIN_RATE = 1e-3


def _hermitian(A: np.ndarray) -> np.ndarray:
    """Remove the non-Hermitian numerical noise of `A`."""
    return 0.5 * (A + A.conj().T)


# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxx Algorithm states xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
class WeightedMaxSINRState(AlgorithmState):
    """
    State of the :class:`WeightedMaxSINR` algorithm.

    The MSE weights are only used to weight the filters and to calculate
    the rates.
    """


class Shi2011WMMSEState(AlgorithmState):
    """State of the :class:`Shi2011WMMSE` algorithm."""


class Komulainen2013WMMSEState(AlgorithmState):
    """
    State of the :class:`Komulainen2013WMMSE` algorithm.

    Besides the full MSE weights (used for the rates), the state keeps the
    diagonal MSE weights `W_diag` actually used in the BS update.

    Parameters
    ----------
    U : list[np.ndarray]
        Receive filter of each user.
    V : list[np.ndarray]
        Precoder of each user.
    W : list[np.ndarray]
        MSE weight of each user.
    W_diag : list[np.ndarray], optional
        Diagonal MSE weight of each user. If not provided, a copy of `W`
        is used.
    """
    def __init__(self,
                 U: MatrixList,
                 V: MatrixList,
                 W: MatrixList,
                 W_diag: Optional[MatrixList] = None) -> None:
        super().__init__(U, V, W)
        self.W_diag = W_diag if W_diag is not None else [
            Wk.copy() for Wk in W
        ]


class Razaviyayn2013MaxMinWMMSEState(AlgorithmState):
    """
    State of the :class:`Razaviyayn2013MaxMinWMMSE` algorithm.

    Besides `U`, `V` and `W`, the state keeps the priority `alpha` of each
    user (with sum equal to the number of users).

    Parameters
    ----------
    U : list[np.ndarray]
        Receive filter of each user.
    V : list[np.ndarray]
        Precoder of each user.
    W : list[np.ndarray]
        MSE weight of each user.
    alpha : np.ndarray, optional
        Priority of each user. If not provided, all users have priority 1.
    """
    def __init__(self,
                 U: MatrixList,
                 V: MatrixList,
                 W: MatrixList,
                 alpha: Optional[np.ndarray] = None) -> None:
        super().__init__(U, V, W)
        self.alpha = alpha if alpha is not None else np.ones(len(W))


# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxx WeightedMaxSINR class xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
class WeightedMaxSINR(CoordinatedPrecodingBase):
    """
    Weighted Max-SINR algorithm.

    Each stream is received (and, by reciprocity, transmitted) with the
    filter maximizing its SINR, where the interference includes all other
    streams of the network. The filters of each user are then weighted by
    the square root of its MSE weight, so that users with better links get
    more of the power budget of their base station. See [Gomadam2008]_.

    Parameters
    ----------
    channel : SinglecarrierChannel
        The channel.
    Ps : Sequence[float]
        Power budget of each base station.
    sigma2s : Sequence[float]
        Receiver noise power of each user.
    ds : Sequence[int]
        Number of streams of each user.
    cell_assignment : CellAssignment
        The base station serving each user.
    settings : PrecodingSettings, optional
        The algorithm settings.
    """
    # The per stream filters are normalized
    _supports_zero_precoders = False
    _state_class = WeightedMaxSINRState

    def _update_MSs(self) -> None:
        state = self.state
        U: MatrixList = []
        W: MatrixList = []

        for k in range(self.K):
            i = self._cell_assignment.serving_BS_id(k)
            Hkk = self._channel.get_Hki(k, i)
            Vk = state.V[k]
            Phi = self._received_covariance(k, state.V)

            # Per-stream receivers, with the stream itself removed from the
            # covariance matrix.
            Uk = np.empty([self._channel.Ns[k], self._ds[k]], dtype=complex)
            for n in range(self._ds[k]):
                Hv = Hkk.dot(Vk[:, n])
                Phi_i_plus_n = Phi - np.outer(Hv, Hv.conj())
                u = np.linalg.solve(Phi_i_plus_n, Hv)
                Uk[:, n] = u / np.linalg.norm(u, 2)

            # Optimal MSE weights
            F = Hkk.dot(Vk)
            Ummse = np.linalg.solve(Phi, F)
            Wk = _hermitian(
                np.linalg.inv(np.eye(self._ds[k]) - Ummse.conj().T.dot(F)))

            # Weighting
            Uk = Uk.dot(sqrtm(Wk))
            U.append(Uk / np.linalg.norm(Uk, 'fro'))
            W.append(Wk)

        state.U = U
        state.W = W

    def _update_BSs(self) -> None:
        state = self.state
        V: MatrixList = list(state.V)

        for i in range(self.I):
            Ms = self._channel.Ms[i]
            # Virtual uplink covariance (the receivers are already
            # weighted)
            Gamma = self._virtual_uplink_covariance(i, state.U)

            served = self._cell_assignment.served_MS_ids(i)
            Nserved = len(served)
            for k in served:
                Hkk_H = self._channel.get_Hki(k, i).conj().T
                Vk = np.empty([Ms, self._ds[k]], dtype=complex)

                # Per-stream precoders
                for n in range(self._ds[k]):
                    Hu = Hkk_H.dot(state.U[k][:, n])
                    Gamma_i_plus_n = (
                        Gamma - np.outer(Hu, Hu.conj()) +
                        (self._sigma2s[k] / self._Ps[i]) * np.eye(Ms))
                    v = np.linalg.solve(Gamma_i_plus_n, Hu)
                    Vk[:, n] = v / np.linalg.norm(v, 2)

                # Weighting
                Vk = Vk.dot(sqrtm(state.W[k]))
                V[k] = (math.sqrt(self._Ps[i] / Nserved) * Vk /
                        np.linalg.norm(Vk, 'fro'))

        state.V = V


# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxx Shi2011WMMSE class xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
class Shi2011WMMSE(CoordinatedPrecodingBase):
    """
    Weighted MMSE algorithm of [Shi2011]_.

    The MS update calculates the MMSE receivers and the optimal MSE
    weights. The BS update calculates the regularized weighted MMSE
    precoders

    .. math::
       \\mtV_k = (\\mtGamma_i + \\frac{\\sigma_k^2}{P_i}\\mtI)^{-1}
       \\mtH_{ki}^H \\mtU_k \\mtW_k

    and scales the precoders of each base station by a common factor, so
    that each base station uses exactly its power budget.

    Parameters
    ----------
    channel : SinglecarrierChannel
        The channel.
    Ps : Sequence[float]
        Power budget of each base station.
    sigma2s : Sequence[float]
        Receiver noise power of each user.
    ds : Sequence[int]
        Number of streams of each user.
    cell_assignment : CellAssignment
        The base station serving each user.
    settings : PrecodingSettings, optional
        The algorithm settings.
    """
    _state_class = Shi2011WMMSEState

    def _update_MSs(self) -> None:
        state = self.state
        U, _, W = self._mmse_receivers(state.V)
        state.U = U
        state.W = [_hermitian(Wk) for Wk in W]

    def _update_BSs(self) -> None:
        state = self.state
        V: MatrixList = list(state.V)

        for i in range(self.I):
            Ms = self._channel.Ms[i]
            Gamma = self._virtual_uplink_covariance(i, state.U, state.W)

            served = self._cell_assignment.served_MS_ids(i)
            for k in served:
                HUW = self._channel.get_Hki(k, i).conj().T.dot(
                    state.U[k]).dot(state.W[k])
                V[k] = np.linalg.solve(
                    Gamma + (self._sigma2s[k] / self._Ps[i]) * np.eye(Ms),
                    HUW)

            # Use the whole power budget
            used_power = sum(np.linalg.norm(V[k], 'fro')**2 for k in served)
            if used_power > 0:
                scale = math.sqrt(self._Ps[i] / used_power)
                for k in served:
                    V[k] = scale * V[k]

        state.V = V


# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxx Bisection based WMMSE classes xxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
class _BisectionWMMSEBase(CoordinatedPrecodingBase):
    """
    Base class of the weighted MMSE algorithms whose BS update finds the
    Lagrange multiplier of the power constraint by bisection.
    """
    def _bisection_precoders(self, U: MatrixList,
                             weights: MatrixList) -> MatrixList:
        """
        Calculate the precoders

        .. math::
           \\mtV_k = (\\mtGamma_i + \\mu_i \\mtI)^{-1} \\mtH_{ki}^H
           \\mtU_k \\mtW_k

        of all users, where :math:`\\mu_i` is the optimal Lagrange
        multiplier of the power constraint of base station `i`.

        Parameters
        ----------
        U : list[np.ndarray]
            The receivers of all users.
        weights : list[np.ndarray]
            The weight of each user.

        Returns
        -------
        list[np.ndarray]
            The new precoders.
        """
        V: MatrixList = [np.empty(0)] * self.K

        for i in range(self.I):
            Ms = self._channel.Ms[i]
            Gamma = self._virtual_uplink_covariance(i, U, weights)

            # Build bisector function
            served = self._cell_assignment.served_MS_ids(i)
            HUW = {
                k: self._channel.get_Hki(k, i).conj().T.dot(U[k]).dot(
                    weights[k])
                for k in served
            }
            bis_M = np.zeros([Ms, Ms], dtype=complex)
            for k in served:
                bis_M += HUW[k].dot(HUW[k].conj().T)

            # Find optimal Lagrange multiplier
            mu_star, (eigenvalues, eigenvectors) = optimal_mu(
                Gamma, bis_M, self._Ps[i], self.settings)

            # Precoders (reuse the eigendecomposition). The HUW matrices
            # lie in the range of Gamma, thus its null space is left out.
            inv_diag = np.zeros(Ms)
            in_range = eigenvalues != 0
            inv_diag[in_range] = 1.0 / (eigenvalues[in_range] + mu_star)
            Gamma_mu_inv = (eigenvectors * inv_diag).dot(
                eigenvectors.conj().T)
            for k in served:
                V[k] = Gamma_mu_inv.dot(HUW[k])

        return V


class Komulainen2013WMMSE(_BisectionWMMSEBase):
    """
    Weighted MMSE algorithm of [Komulainen2013]_.

    The MS update calculates the MMSE receivers, the optimal MSE weights
    (used for the rates) and the diagonal MSE weights

    .. math::
       \\mtW^{diag}_k = \\textrm{diag}(\\max(1, 1/[\\mtE_k]_{nn}))

    where :math:`\\mtE_k` is the MSE matrix of user `k`. The BS update
    uses the diagonal weights and finds the Lagrange multiplier of the
    power constraint of each base station by bisection, so that each base
    station uses (within the bisection tolerance) its power budget, unless
    a smaller power is optimal.

    Parameters
    ----------
    channel : SinglecarrierChannel
        The channel.
    Ps : Sequence[float]
        Power budget of each base station.
    sigma2s : Sequence[float]
        Receiver noise power of each user.
    ds : Sequence[int]
        Number of streams of each user.
    cell_assignment : CellAssignment
        The base station serving each user.
    settings : PrecodingSettings, optional
        The algorithm settings. The `bisection_*` options control the
        bisection.
    """
    _state_class = Komulainen2013WMMSEState

    def _update_MSs(self) -> None:
        state = self.state
        U, E, W = self._mmse_receivers(state.V)
        state.U = U
        state.W = [_hermitian(Wk) for Wk in W]
        state.W_diag = [
            np.diag(np.maximum(1.0, np.real(1.0 / np.diag(Ek)))) for Ek in E
        ]

    def _update_BSs(self) -> None:
        state = self.state
        state.V = self._bisection_precoders(state.U, state.W_diag)


class Razaviyayn2013MaxMinWMMSE(_BisectionWMMSEBase):
    """
    Max-min fair weighted MMSE algorithm, based on [Razaviyayn2013]_.

    The MS update is the same of :class:`Shi2011WMMSE`. Before each BS
    update the priority of each user is moved towards a value inversely
    proportional to its current rate,

    .. math::
       \\alpha_k \\leftarrow (1 - s) \\alpha_k + s \\frac{K / r_k}{\\sum_l
       1/r_l}

    where `s` is the `maxmin_weight_step` setting, and the weighted MMSE
    precoders are calculated with the MSE weights :math:`\\alpha_k
    \\mtW_k`. The objective of this algorithm is the rate of the worst
    user.

    Parameters
    ----------
    channel : SinglecarrierChannel
        The channel.
    Ps : Sequence[float]
        Power budget of each base station.
    sigma2s : Sequence[float]
        Receiver noise power of each user.
    ds : Sequence[int]
        Number of streams of each user.
    cell_assignment : CellAssignment
        The base station serving each user.
    settings : PrecodingSettings, optional
        The algorithm settings.
    """
    _state_class = Razaviyayn2013MaxMinWMMSEState

    def _objective(self, logdet_rates: np.ndarray) -> float:
        return float(np.min(np.sum(logdet_rates, axis=1)))

    def _update_MSs(self) -> None:
        state = self.state
        U, _, W = self._mmse_receivers(state.V)
        state.U = U
        state.W = [_hermitian(Wk) for Wk in W]

    def _update_priorities(self) -> None:
        """Move the priority of each user towards the inverse of its rate."""
        state = self.state
        step = self.settings.maxmin_weight_step
        K = self.K

        rates = np.array([
            np.sum(np.log2(np.maximum(1.0, np.linalg.eigvalsh(Wk))))
            for Wk in state.W
        ])
        alpha_target = 1.0 / np.maximum(rates, _MIN_RATE)
        alpha_target *= K / np.sum(alpha_target)

        alpha = (1 - step) * state.alpha + step * alpha_target
        state.alpha = alpha * (K / np.sum(alpha))

    def _update_BSs(self) -> None:
        state = self.state
        self._update_priorities()
        weights = [alpha_k * Wk for alpha_k, Wk in zip(state.alpha, state.W)]
        state.V = self._bisection_precoders(state.U, weights)
