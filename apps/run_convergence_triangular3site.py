#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Simulate the convergence of the coordinated precoding algorithms in the
triangular 3-site network and print the average objective of each
iteration for each simulated transmit power.

The algorithm options can be read from the [Precoding] section of a
config file, such as

    [Precoding]
    max_iters = 30
    stop_crit = 0
    initial_precoders = eigendirection
"""

# xxxxxxxxxx Add the parent folder to the python path. xxxxxxxxxxxxxxxxxxxx
import sys
import os

try:
    parent_dir = os.path.split(os.path.abspath(os.path.dirname(__file__)))[0]
    sys.path.append(parent_dir)
except NameError:
    sys.path.append('../')
# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx

import argparse
import json
import logging

import numpy as np

from pyprecoding.network.network import setup_triangular3site_network
from pyprecoding.precoding.algorithms import (WeightedMaxSINR, Shi2011WMMSE,
                                              Komulainen2013WMMSE,
                                              Razaviyayn2013MaxMinWMMSE)
from pyprecoding.precoding.settings import PrecodingSettings
from pyprecoding.simulations.convergence import simulate_precoding_convergence
from pyprecoding.util.serialize import NumpyOrSetEncoder


def get_parser():
    """Create the command line parser."""
    parser = argparse.ArgumentParser(description=__doc__.split("\n\n")[0])
    parser.add_argument("--config", help="config file with the algorithm "
                        "options in a [Precoding] section")
    parser.add_argument("--Kc", type=int, default=2,
                        help="number of users per cell")
    parser.add_argument("--M", type=int, default=4,
                        help="number of antennas of each base station")
    parser.add_argument("--N", type=int, default=2,
                        help="number of antennas of each user")
    parser.add_argument("--Ndrops", type=int, default=5,
                        help="number of user drops")
    parser.add_argument("--Nsim", type=int, default=5,
                        help="number of channel realizations per drop")
    parser.add_argument("--powers", type=float, nargs="+", default=[10., 30.],
                        help="transmit powers (in dBm) of the base stations")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--output", help="save the results to this JSON file")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="show the debug messages of the algorithms")
    return parser


if __name__ == '__main__':
    args = get_parser().parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s")
    logger = logging.getLogger("run_convergence_triangular3site")

    if args.config is not None:
        settings = PrecodingSettings.load_from_config_file(
            args.config, 'Precoding')
    else:
        settings = PrecodingSettings(max_iters=30, stop_crit=0)
    logger.info("%s", settings)

    network = setup_triangular3site_network(3, args.Kc, args.N, args.M)
    network.assign_cells_by_id()

    methods = [
        WeightedMaxSINR, Shi2011WMMSE, Komulainen2013WMMSE,
        Razaviyayn2013MaxMinWMMSE
    ]
    results = simulate_precoding_convergence(
        network, methods, settings, Ndrops=args.Ndrops, Nsim=args.Nsim,
        RS=np.random.RandomState(args.seed),
        transmit_powers_dBm=args.powers)

    # xxxxx Average objective of each iteration xxxxxxxxxxxxxxxxxxxxxxxxxxx
    for P_idx, P_dBm in enumerate(args.powers):
        print("Transmit power: {0} dBm".format(P_dBm))
        for name, objective in results.items():
            mean_objective = np.nanmean(objective[P_idx], axis=(0, 1))
            print("{0:>26}: {1}".format(
                name, " ".join("{0:.2f}".format(v) for v in mean_objective)))
    # xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx

    if args.output is not None:
        with open(args.output, 'w') as f:
            output = {
                'settings': settings.to_dict(),
                'transmit_powers_dBm': args.powers,
                'objective': results
            }
            json.dump(output, f, cls=NumpyOrSetEncoder)
        logger.info("Results saved to %s", args.output)
