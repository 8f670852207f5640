#!/usr/bin/env python
"""Thermal and receiver noise power."""

import scipy.constants

from ..util.conversion import linear2dBm

__all__ = ['calc_thermal_noise_power_dBm', 'calc_receiver_noise_power_dBm']


def calc_thermal_noise_power_dBm(T: float, delta_f: float) -> float:
    """
    Thermal noise power (in dBm) :math:`k_B T \\Delta f` at the temperature
    `T` (in Celsius degrees) over the bandwidth `delta_f` (in Hz).

    Examples
    --------
    >>> print(round(calc_thermal_noise_power_dBm(17.0, 1.0), 1))
    -174.0
    """
    kelvin = T + 273.0
    return float(linear2dBm(scipy.constants.Boltzmann * kelvin * delta_f))


def calc_receiver_noise_power_dBm(delta_f: float,
                                  noise_figure_dB: float,
                                  T: float = 17.0) -> float:
    """
    Noise power (in dBm) of a receiver with noise figure `noise_figure_dB`
    over the bandwidth `delta_f` (in Hz).

    The default temperature of 17 Celsius degrees gives the usual
    -174dBm/Hz noise density.

    Examples
    --------
    >>> print(round(calc_receiver_noise_power_dBm(15e3, 9.0), 1))
    -123.2
    """
    return calc_thermal_noise_power_dBm(T, delta_f) + noise_figure_dB
