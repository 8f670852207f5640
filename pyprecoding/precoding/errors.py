#!/usr/bin/env python
"""Exceptions and warnings raised by the coordinated precoding code."""

__all__ = [
    'InvalidConfigurationError', 'InfeasibleBisectionError',
    'BisectionWarning'
]


class InvalidConfigurationError(ValueError):
    """
    Raised when an algorithm or a network is configured with invalid
    options, such as an unknown initialization strategy, an unknown output
    protocol, an unknown option name or an out of range value.
    """


class InfeasibleBisectionError(RuntimeError):
    """
    Raised when the upper bound computed for the Lagrange multiplier
    bisection does not satisfy the power constraint.
    """


class BisectionWarning(RuntimeWarning):
    """
    Warning emitted when the Lagrange multiplier bisection reaches its
    maximum number of iterations before the requested tolerance. The last
    feasible point is used in that case.
    """
