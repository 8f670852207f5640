#!/usr/bin/env python
"""
Distance dependent path loss models used by the cellular networks.

All models follow the log-distance law

.. math::
   PL = 10 n \\log_{10}(d) + C

with the distance `d` in Km and the path loss `PL` in dB. Shadow fading is
not part of these classes, since the networks draw it with a correlation
between the sites (see
:class:`pyprecoding.network.network.Triangular3SiteNetwork`).
"""

from abc import ABCMeta, abstractmethod

import numpy as np

__all__ = ['PathLossBase', 'PathLossGeneral', 'PathLoss3GPP1']


class PathLossBase(metaclass=ABCMeta):
    """
    Base class of the path loss models.

    Subclasses implement `_path_loss_dB`.

    Attributes
    ----------
    handle_small_distances_bool : bool
        Distances too small for the model give a negative path loss (in
        dB). If this is True such values are replaced by 0dB, otherwise a
        RuntimeError is raised.
    """
    def __init__(self) -> None:
        self.handle_small_distances_bool = False

    @abstractmethod
    def _path_loss_dB(self, d):  # pragma: no cover
        """Path loss (in dB) of the distances `d` (in Km), unclipped."""
        raise NotImplementedError("Implement in a subclass")

    def calc_path_loss_dB(self, d):
        """
        Calculate the path loss (in dB) for the distance `d` (in Km).

        The returned value is positive and must be understood as a loss.

        Parameters
        ----------
        d : float | np.ndarray
            Distance(s) in Km.

        Returns
        -------
        float | np.ndarray
            The path loss (in dB), with the same shape as `d`.

        Raises
        ------
        RuntimeError
            If some distance is too small and `handle_small_distances_bool`
            is False.
        """
        PL = self._path_loss_dB(d)
        if np.any(PL < 0):
            if not self.handle_small_distances_bool:
                raise RuntimeError("The distance is too small to calculate a "
                                   "valid path loss.")
            PL = np.maximum(PL, 0.0)
        if np.ndim(PL) == 0:
            return float(PL)
        return PL


class PathLossGeneral(PathLossBase):
    """
    Log-distance path loss with exponent `n` and the loss `C` (in dB) at
    1Km.

    Parameters
    ----------
    n : float
        The path loss exponent (usually between 2 and 4).
    C : float
        The path loss (in dB) at 1Km.

    Examples
    --------
    >>> pl = PathLossGeneral(n=3.0, C=100.0)
    >>> print(pl.calc_path_loss_dB(10.0))
    130.0
    """
    def __init__(self, n: float, C: float) -> None:
        super().__init__()
        self._n = n
        self._C = C

    def __repr__(self) -> str:
        return "{0}(n={1}, C={2})".format(self.__class__.__name__, self._n,
                                          self._C)

    def _path_loss_dB(self, d):
        return 10 * self._n * np.log10(d) + self._C


class PathLoss3GPP1(PathLossGeneral):
    """
    Macro cell path loss of 3GPP Case 1 (TR 25.814) at 2GHz, that is,
    :math:`PL = 128.1 + 37.6 \\log_{10}(d)` with `d` in Km.

    Examples
    --------
    >>> pl = PathLoss3GPP1()
    >>> print(pl.calc_path_loss_dB(1))
    128.1
    >>> print(round(pl.calc_path_loss_dB(2), 4))
    139.4187
    """
    def __init__(self) -> None:
        super().__init__(n=3.76, C=128.1)
