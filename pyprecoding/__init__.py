#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
The Pyprecoding library provides iterative coordinated precoding
algorithms for multi-cell MIMO networks, together with the network and
channel models needed to simulate them.
"""

__version__ = 0.1

from . import channels, network, precoding, simulations, util
