#!/usr/bin/env python
"""
Module with the simulation of the convergence of the coordinated precoding
algorithms as a function of the number of iterations.

For each user drop of the network, for each channel realization of that
drop and for each simulated transmit power, every precoding algorithm is
run with the 'all_iterations' output protocol and the objective of each
iteration is collected.
"""

import logging
from typing import Dict, Optional, Sequence, Type

import numpy as np

from ..network.network import Network
from ..precoding.precodingbase import CoordinatedPrecodingBase
from ..precoding.settings import PrecodingSettings

__all__ = ['simulate_precoding_convergence']

logger = logging.getLogger(__name__)


def simulate_precoding_convergence(
        network: Network,
        methods: Sequence[Type[CoordinatedPrecodingBase]],
        settings: Optional[PrecodingSettings] = None,
        Ndrops: int = 10,
        Nsim: int = 10,
        RS: Optional[np.random.RandomState] = None,
        transmit_powers_dBm: Optional[Sequence[float]] = None
) -> Dict[str, np.ndarray]:
    """
    Simulate the convergence of the precoding algorithms in `methods`.

    Parameters
    ----------
    network : Network
        The network. It must implement the `draw_user_drop` and
        `draw_channel` methods (such as :class:`Triangular3SiteNetwork`)
        and have a cell assignment.
    methods : Sequence[type]
        The precoding algorithm classes (subclasses of
        :class:`CoordinatedPrecodingBase`).
    settings : PrecodingSettings, optional
        The algorithm settings. The output protocol is always replaced by
        'all_iterations'.
    Ndrops : int
        Number of user drops.
    Nsim : int
        Number of channel realizations for each user drop.
    RS : np.random.RandomState, optional
        The RandomState object used to draw the user drops and the
        channels. If not provided, a new (randomly seeded) one is created.
    transmit_powers_dBm : Sequence[float], optional
        Transmit powers (in dBm, the same for all base stations) to
        simulate. Each channel realization is used with every transmit
        power. If not provided, only the current transmit powers of the
        network are simulated. The transmit powers of the network are
        restored at the end.

    Returns
    -------
    dict[str, np.ndarray]
        For each algorithm (keyed by its class name) a numpy array with
        dimension `Npowers x Ndrops x Nsim x max_iters` with the objective
        of each iteration, where `Npowers` is the number of transmit powers
        (one if `transmit_powers_dBm` is not provided). Iterations not
        performed because the algorithm converged before `max_iters` are
        NaN.

    Examples
    --------
    >>> from pyprecoding.network.network import setup_triangular3site_network
    >>> from pyprecoding.precoding.algorithms import Shi2011WMMSE
    >>> network = setup_triangular3site_network(3, 1, 2, 2)
    >>> _ = network.assign_cells_by_id()
    >>> results = simulate_precoding_convergence(
    ...     network, [Shi2011WMMSE], PrecodingSettings(max_iters=5),
    ...     Ndrops=2, Nsim=3, RS=np.random.RandomState(0),
    ...     transmit_powers_dBm=[10, 30])
    >>> results['Shi2011WMMSE'].shape
    (2, 2, 3, 5)
    """
    if RS is None:
        RS = np.random.RandomState()
    if settings is None:
        settings = PrecodingSettings()
    settings = settings.replace(output_protocol='all_iterations')

    original_powers = network.get_transmit_powers()
    if transmit_powers_dBm is None:
        Npowers = 1
    else:
        Npowers = len(transmit_powers_dBm)

    max_iters = settings.max_iters
    objectives = {
        method.__name__: np.full([Npowers, Ndrops, Nsim, max_iters], np.nan)
        for method in methods
    }

    try:
        for Ndrop in range(Ndrops):
            network.draw_user_drop(RS)

            for Nsim_idx in range(Nsim):
                channel = network.draw_channel(RS)

                for P_idx in range(Npowers):
                    if transmit_powers_dBm is not None:
                        network.set_transmit_powers_dBm(
                            transmit_powers_dBm[P_idx])

                    for method in methods:
                        results = method.from_network(channel, network,
                                                      settings).solve()
                        objective = results['objective']
                        objectives[method.__name__][
                            P_idx, Ndrop, Nsim_idx, 0:objective.size] = \
                            objective

            logger.debug("Finished drop %d of %d", Ndrop + 1, Ndrops)
    finally:
        for bs, P in zip(network.BSs, original_powers):
            bs.transmit_power = float(P)

    return objectives
