#!/usr/bin/env python
"""
Package with the description of the simulated cellular networks (base
stations, mobile stations, cell assignment and network geometry).
"""

from . import network
