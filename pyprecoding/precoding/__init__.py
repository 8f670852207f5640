#!/usr/bin/env python
"""
Package with the coordinated precoding algorithms.

Note that all algorithms require the channel object and any change to the
channel object must be performed before calling the `solve` method of the
algorithm object.
"""

from . import algorithms, bisection, errors, precodingbase, settings
