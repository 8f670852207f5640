#!/usr/bin/env python
"""
Antenna gain models of the base stations.

The gains are power gains in linear scale, as a function of the angle (in
radians, measured from the x axis) from the base station to the user.
"""

import math
from typing import Optional, TypeVar

import numpy as np

from ..util.conversion import dB2Linear

__all__ = ['AntGainBase', 'AntGainOmni', 'AntGainBS3GPP25996']

NumberOrArray = TypeVar("NumberOrArray", np.ndarray, float)

# Parameters of the sectorized BS antenna of 3GPP TR 25.996 for each number
# of sectors: (3dB beam width in degrees, maximum attenuation in dB)
_SECTOR_PATTERNS = {
    3: (70., 20.),
    6: (35., 23.),
}


class AntGainBase:  # pragma: no cover
    """Base class of the antenna gain models."""
    def get_antenna_gain(self, angle: NumberOrArray) -> NumberOrArray:
        """
        Antenna gain (linear scale) in the direction `angle`.

        Parameters
        ----------
        angle : float | np.ndarray
            Direction(s) in radians, measured from the x axis.

        Returns
        -------
        float | np.ndarray
            The gain(s), with the same shape as `angle`.
        """
        raise NotImplementedError("Implement in a subclass")


class AntGainOmni(AntGainBase):
    """
    Omnidirectional antenna with a constant gain.

    Parameters
    ----------
    ant_gain : float, optional
        The gain in dBi (default is 0dBi).
    """
    def __init__(self, ant_gain: Optional[float] = None) -> None:
        super().__init__()
        self.ant_gain: float = 1.0 if ant_gain is None else dB2Linear(
            ant_gain)

    def get_antenna_gain(self, angle: NumberOrArray) -> NumberOrArray:
        if np.ndim(angle) == 0:
            return self.ant_gain
        return np.full(np.shape(angle), self.ant_gain)  # type: ignore


class AntGainBS3GPP25996(AntGainBase):
    """
    Sectorized base station antenna of 3GPP TR 25.996.

    The attenuation (in dB) with respect to the bore sight is
    :math:`\\min\\left[12\\left(\\theta/\\theta_{3dB}\\right)^2,
    A_m\\right]`, where :math:`\\theta` is the angle between the direction
    of interest and the bore sight. The pattern is normalized to 0dB in the
    bore sight.

    Parameters
    ----------
    number_of_sectors : int
        Number of sectors of the site (3 or 6).
    bore_sight_angle : float
        Direction (in radians, from the x axis) the antenna points to.

    Examples
    --------
    >>> ant = AntGainBS3GPP25996(6, bore_sight_angle=0.0)
    >>> print(ant.get_antenna_gain(0.0))
    1.0
    >>> print(round(float(ant.get_antenna_gain(math.pi)), 6))
    0.005012
    """
    def __init__(self,
                 number_of_sectors: int = 3,
                 bore_sight_angle: float = 0.0) -> None:
        super().__init__()
        if number_of_sectors not in _SECTOR_PATTERNS:
            raise ValueError(
                "Invalid number of sectors: {0}".format(number_of_sectors))

        self.bore_sight_angle = bore_sight_angle
        self.theta_3db, self.Am = _SECTOR_PATTERNS[number_of_sectors]

    def __repr__(self) -> str:
        return "{0}(theta_3db={1}, bore_sight={2:.1f}deg)".format(
            self.__class__.__name__, self.theta_3db,
            math.degrees(self.bore_sight_angle))

    def get_antenna_gain(self, angle: NumberOrArray) -> NumberOrArray:
        # Offset from the bore sight, wrapped into [-180, 180] degrees
        theta = np.degrees(
            np.angle(np.exp(1j * (np.asarray(angle) - self.bore_sight_angle))))
        attenuation_dB = np.minimum(12 * (theta / self.theta_3db)**2, self.Am)
        return dB2Linear(-attenuation_dB)  # type: ignore
