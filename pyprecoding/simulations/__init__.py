#!/usr/bin/env python
"""Package with simulation drivers for the coordinated precoding algorithms.
"""

from . import convergence
