#!/usr/bin/env python
"""
Module with the bisection search for the Lagrange multiplier of the
per base station power constraint.

The WMMSE precoders of a base station with power budget `P` are given by

.. math::
   \\mtV_k = (\\mtGamma + \\mu \\mtI)^{-1} \\mtH_{ki}^H \\mtU_k \\mtW_k

where :math:`\\mu \\geq 0` is the Lagrange multiplier. With the
eigendecomposition :math:`\\mtGamma = \\mtE \\mtLambda \\mtE^H`, the total
transmit power of the base station as a function of :math:`\\mu` is the
"bisector function"

.. math::
   f(\\mu) = \\sum_j \\frac{d_j}{(\\lambda_j + \\mu)^2}

where :math:`d_j` are the diagonal elements of :math:`\\mtE^H \\mtM \\mtE`
and :math:`\\mtM = \\sum_k \\mtH_{ki}^H \\mtU_k \\mtW_k^2 \\mtU_k^H
\\mtH_{ki}`. Since :math:`f` is decreasing in :math:`\\mu`, the smallest
multiplier satisfying the power constraint is found by bisection.
"""

import logging
import math
import warnings
from typing import Callable, Tuple

import numpy as np

from .errors import BisectionWarning, InfeasibleBisectionError
from .settings import PrecodingSettings

__all__ = ['bisector_function', 'bisection_bounds', 'bisect', 'optimal_mu']

logger = logging.getLogger(__name__)

# Eigenvalues of Gamma smaller than this many times `M * eps * max|lambda|`
# are treated as zero
_ROUND_OFF_FACTOR = 1e3


def bisector_function(eigenvalues: np.ndarray,
                      bis_JMJ_diag: np.ndarray) -> Callable[[float], float]:
    """
    Create the bisector function :math:`f(\\mu) = \\sum_j d_j /
    (\\lambda_j + \\mu)^2`.

    Parameters
    ----------
    eigenvalues : np.ndarray
        The eigenvalues :math:`\\lambda_j` of the virtual uplink
        covariance.
    bis_JMJ_diag : np.ndarray
        The (real) diagonal elements :math:`d_j`.

    Returns
    -------
    Callable[[float], float]
        The bisector function.

    Examples
    --------
    >>> f = bisector_function(np.array([1.0, 3.0]), np.array([4.0, 16.0]))
    >>> print(f(1.0))
    2.0
    """
    def f(mu: float) -> float:
        return float(np.sum(bis_JMJ_diag / (eigenvalues + mu)**2))

    return f


def bisection_bounds(eigenvalues: np.ndarray, bis_JMJ_diag: np.ndarray,
                     P: float,
                     settings: PrecodingSettings) -> Tuple[float, float]:
    """
    Calculate the initial interval of the Lagrange multiplier bisection.

    The lower bound is zero when the virtual uplink covariance is
    invertible (its condition number is below
    `settings.bisection_Gamma_cond`), and
    `settings.bisection_singular_Gamma_mu_lower_bound` otherwise. The upper
    bound comes from bounding every term of the bisector function by the
    largest :math:`d_j` and the smallest eigenvalue, which gives

    .. math::
       \\mu_{upper} = \\sqrt{\\frac{M}{P} \\max_j d_j} - |\\min_j \\lambda_j|

    Parameters
    ----------
    eigenvalues : np.ndarray
        The eigenvalues of the virtual uplink covariance.
    bis_JMJ_diag : np.ndarray
        The diagonal elements of the bisector function.
    P : float
        The power budget.
    settings : PrecodingSettings
        The settings with the bisection options.

    Returns
    -------
    (float, float)
        The lower and upper bounds.
    """
    abs_eigenvalues = np.abs(eigenvalues)
    if abs_eigenvalues.min() > 0:
        cond = abs_eigenvalues.max() / abs_eigenvalues.min()
    else:
        cond = math.inf

    if cond < settings.bisection_Gamma_cond:
        # Gamma is invertible
        mu_lower = 0.0
    else:
        mu_lower = settings.bisection_singular_Gamma_mu_lower_bound

    M = eigenvalues.size
    mu_upper = (math.sqrt(M / P * float(np.max(bis_JMJ_diag))) -
                float(abs_eigenvalues.min()))
    return mu_lower, mu_upper


def bisect(f: Callable[[float], float], P: float, mu_lower: float,
           mu_upper: float, tolerance: float,
           max_iters: int) -> Tuple[float, int]:
    """
    Bisection search for the smallest multiplier `mu` with `f(mu) <= P`.

    The function `f` must be decreasing, `f(mu_lower) > P` and
    `f(mu_upper) <= P`. The interval is halved, always keeping a feasible
    upper point, until the relative gap `(P - f(mu_upper))/P` is lower
    than `tolerance` or `max_iters` halvings were performed. In the latter
    case a :class:`BisectionWarning` is emitted.

    Parameters
    ----------
    f : Callable[[float], float]
        The (decreasing) bisector function.
    P : float
        The power budget.
    mu_lower : float
        An infeasible multiplier.
    mu_upper : float
        A feasible multiplier.
    tolerance : float
        Relative tolerance of the power constraint.
    max_iters : int
        Maximum number of halvings.

    Returns
    -------
    (float, int)
        The feasible multiplier and the number of performed halvings.

    Examples
    --------
    >>> f = lambda mu: 1.0 / (1.0 + mu)**2
    >>> mu, no_iters = bisect(f, 0.25, 0.0, 10.0, 1e-6, 100)
    >>> print(round(mu, 4))
    1.0
    >>> f(mu) <= 0.25
    True
    """
    no_iters = 0
    while no_iters < max_iters:
        conv_crit = (P - f(mu_upper)) / P
        if conv_crit < tolerance:
            break

        mu = 0.5 * (mu_lower + mu_upper)
        if f(mu) < P:
            # New point feasible, replace upper point
            mu_upper = mu
        else:
            # New point not feasible, replace lower point
            mu_lower = mu

        no_iters += 1

    if no_iters == max_iters:
        msg = "Power bisection: reached max iterations ({0}).".format(
            max_iters)
        logger.debug("%s Relative gap: %g", msg, (P - f(mu_upper)) / P)
        warnings.warn(msg, BisectionWarning)

    # The upper point is always feasible, therefore we use it
    return mu_upper, no_iters


def _clip_round_off(eigenvalues: np.ndarray) -> np.ndarray:
    """
    Set to zero the eigenvalues of a positive semi-definite matrix that are
    only round-off noise around zero (possibly negative).
    """
    tol = (_ROUND_OFF_FACTOR * eigenvalues.size * np.finfo(float).eps *
           np.max(np.abs(eigenvalues), initial=0.0))
    return np.where(np.abs(eigenvalues) <= tol, 0.0, eigenvalues)


def optimal_mu(Gamma: np.ndarray, bis_M: np.ndarray, P: float,
               settings: PrecodingSettings
               ) -> Tuple[float, Tuple[np.ndarray, np.ndarray]]:
    """
    Find the optimal Lagrange multiplier of the power constraint of one
    base station.

    `Gamma` is usually singular (for instance when the base station has
    more antennas than the total number of receive streams). The
    eigenvalues of `Gamma` that are only round-off noise are returned as
    exact zeros, and the null space of `Gamma` (which contains the null
    space of `bis_M`) does not contribute to the bisector function. The
    precoders must then be built without the zero eigenvalue directions.

    Parameters
    ----------
    Gamma : np.ndarray
        The (Hermitian) virtual uplink covariance of the base station.
    bis_M : np.ndarray
        The (Hermitian) matrix :math:`\\mtM` of the bisector function.
    P : float
        The power budget of the base station.
    settings : PrecodingSettings
        The settings with the bisection options.

    Returns
    -------
    (float, (np.ndarray, np.ndarray))
        The optimal multiplier and the eigendecomposition (eigenvalues and
        eigenvectors) of `Gamma`, which is reused to build the precoders.

    Raises
    ------
    InfeasibleBisectionError
        If the computed upper bound does not satisfy the power constraint.

    Examples
    --------
    >>> Gamma = np.diag([0.0, 4.0]) + 1e-17 * np.ones([2, 2])
    >>> mu, (eigenvalues, _) = optimal_mu(Gamma, np.diag([0.0, 64.0]), 1.0,
    ...                                   PrecodingSettings())
    >>> print(eigenvalues[0])
    0.0
    >>> 3.99 < mu < 4.01
    True
    """
    eigenvalues, eigenvectors = np.linalg.eigh(Gamma)
    eigenvalues = _clip_round_off(eigenvalues)
    bis_JMJ_diag = np.maximum(
        np.real(np.diag(eigenvectors.conj().T.dot(bis_M).dot(eigenvectors))),
        0.0)
    bis_JMJ_diag[eigenvalues == 0] = 0.0
    f = bisector_function(eigenvalues, bis_JMJ_diag)

    mu_lower, mu_upper = bisection_bounds(eigenvalues, bis_JMJ_diag, P,
                                          settings)

    if f(mu_lower) <= P:
        # No bisection needed
        return mu_lower, (eigenvalues, eigenvectors)

    if f(mu_upper) > P:
        raise InfeasibleBisectionError(
            "Power bisection: infeasible mu upper bound.")

    mu_star, _ = bisect(f, P, mu_lower, mu_upper,
                        settings.bisection_tolerance,
                        settings.bisection_max_iters)
    return mu_star, (eigenvalues, eigenvectors)
