#!/usr/bin/env python
"""
Module with the description of the cellular networks where the
coordinated precoding algorithms are simulated.

A network is made of base stations (:class:`BaseStation`), mobile stations
(:class:`MobileStation`) and a :class:`CellAssignment` stating which base
station serves each mobile station. Positions are represented as complex
numbers (real part is the x coordinate and imaginary part is the y
coordinate), in meters.

The :class:`Triangular3SiteNetwork` is a macro cell network with three
sites placed on the vertices of an equilateral triangle. Its parameters
are based on the 3GPP Case 1 (TR 25.814 and TR 36.814) simulation
environment, with distance dependent path loss and log-normal shadow
fading correlated between the three sites.
"""

import cmath
import logging
import math
from typing import List, Optional, Sequence, Union

import numpy as np

from ..channels.antennagain import AntGainBase, AntGainBS3GPP25996, AntGainOmni
from ..channels.multiuser import SinglecarrierChannel
from ..channels.noise import calc_receiver_noise_power_dBm
from ..channels.pathloss import PathLoss3GPP1, PathLossBase
from ..precoding.precodingbase import InvalidConfigurationError
from ..util.conversion import dB2Linear

__all__ = [
    'BaseStation', 'MobileStation', 'CellAssignment', 'Network',
    'Triangular3SiteNetwork', 'setup_triangular3site_network'
]

logger = logging.getLogger(__name__)

FloatOrFloatArray = Union[float, Sequence[float], np.ndarray]


# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxx Stations xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
class BaseStation:
    """
    A base station of the network.

    Parameters
    ----------
    no_antennas : int
        Number of transmit antennas.
    transmit_power : float
        Transmit power budget (in mW).
    pos : complex
        Position of the base station (in meters).
    antenna_gain : AntGainBase, optional
        The antenna gain model. If not provided, an omnidirectional
        antenna with 0dBi gain is used.
    """
    def __init__(self,
                 no_antennas: int,
                 transmit_power: float,
                 pos: complex = 0j,
                 antenna_gain: Optional[AntGainBase] = None) -> None:
        if no_antennas < 1:
            raise ValueError("A base station needs at least one antenna")
        if transmit_power < 0:
            raise ValueError("The transmit power must be non-negative")

        self.no_antennas = int(no_antennas)
        self.transmit_power = float(transmit_power)
        self.pos = complex(pos)
        self.antenna_gain: AntGainBase = (antenna_gain if antenna_gain
                                          is not None else AntGainOmni())

    def __repr__(self) -> str:
        return "BaseStation(M={0}, P={1:.4g}mW, pos={2})".format(
            self.no_antennas, self.transmit_power, self.pos)


class MobileStation:
    """
    A mobile station (user) of the network.

    Parameters
    ----------
    no_antennas : int
        Number of receive antennas.
    noise_power : float
        Receiver noise power (in mW).
    no_streams : int
        Number of data streams sent to this user.
    pos : complex
        Position of the mobile station (in meters).
    antenna_gain_dB : float
        Antenna gain (in dBi) of the mobile station.
    """
    def __init__(self,
                 no_antennas: int,
                 noise_power: float,
                 no_streams: int = 1,
                 pos: complex = 0j,
                 antenna_gain_dB: float = 0.0) -> None:
        if no_antennas < 1:
            raise ValueError("A mobile station needs at least one antenna")
        if noise_power < 0:
            raise ValueError("The noise power must be non-negative")
        if no_streams < 1:
            raise ValueError("A mobile station needs at least one stream")

        self.no_antennas = int(no_antennas)
        self.noise_power = float(noise_power)
        self.no_streams = int(no_streams)
        self.pos = complex(pos)
        self.antenna_gain_dB = float(antenna_gain_dB)

        # Shadow fading realization (in dB) towards each base station. This
        # is set when a user drop is drawn.
        self.shadow_fading_dB: Optional[np.ndarray] = None

    def __repr__(self) -> str:
        return "MobileStation(N={0}, d={1}, pos={2})".format(
            self.no_antennas, self.no_streams, self.pos)


# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxx CellAssignment xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
class CellAssignment:
    """
    Immutable mapping between base stations and the users they serve.

    Every user is served by exactly one base station. The users served by
    a base station are kept in increasing order of their index.

    Parameters
    ----------
    assignment : Sequence[int] | np.ndarray
        The index of the serving base station of each user.
    num_BSs : int
        The number of base stations. Base stations serving no user are
        allowed.

    Examples
    --------
    >>> ca = CellAssignment([0, 0, 1], 2)
    >>> print(ca.served_MS_ids(0))
    [0 1]
    >>> ca.serving_BS_id(2)
    1
    >>> print(ca.served_MS_ids(1))
    [2]
    """
    def __init__(self, assignment: Sequence[int], num_BSs: int) -> None:
        assignment_array = np.array(assignment, dtype=int)
        if assignment_array.ndim != 1:
            raise ValueError("The assignment must be a 1D sequence")
        if np.any(assignment_array < 0) or np.any(
                assignment_array >= num_BSs):
            raise ValueError("Every user must be assigned to one of the "
                             "{0} base stations".format(num_BSs))
        assignment_array.setflags(write=False)

        self._assignment = assignment_array
        self._num_BSs = int(num_BSs)

        served: List[np.ndarray] = []
        for i in range(self._num_BSs):
            served_i = np.flatnonzero(assignment_array == i)
            served_i.setflags(write=False)
            served.append(served_i)
        self._served = served

    def __repr__(self) -> str:
        return "CellAssignment({0}, {1})".format(self._assignment.tolist(),
                                                 self._num_BSs)

    @property
    def assignment(self) -> np.ndarray:
        """The serving base station of each user."""
        return self._assignment

    @property
    def num_BSs(self) -> int:
        """Number of base stations."""
        return self._num_BSs

    @property
    def num_MSs(self) -> int:
        """Number of users."""
        return self._assignment.size

    def served_MS_ids(self, i: int) -> np.ndarray:
        """
        Get the (ordered) indexes of the users served by base station `i`.

        Parameters
        ----------
        i : int
            Base station index.

        Returns
        -------
        np.ndarray
            A read-only 1D numpy array with the user indexes.
        """
        return self._served[i]

    def serving_BS_id(self, k: int) -> int:
        """
        Get the index of the base station serving user `k`.

        Parameters
        ----------
        k : int
            User index.

        Returns
        -------
        int
            The index of the serving base station.
        """
        return int(self._assignment[k])


# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxx Network classes xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
class Network:
    """
    A cellular network with base stations and mobile stations.

    The network provides the per station quantities required by the
    coordinated precoding algorithms: transmit powers, receiver noise
    powers, number of streams and the cell assignment.

    Parameters
    ----------
    BSs : list[BaseStation]
        The base stations.
    MSs : list[MobileStation]
        The mobile stations.
    cell_assignment : CellAssignment, optional
        The cell assignment. It can also be set later with
        `set_cell_assignment`.
    """
    def __init__(self,
                 BSs: List[BaseStation],
                 MSs: List[MobileStation],
                 cell_assignment: Optional[CellAssignment] = None) -> None:
        self.BSs = BSs
        self.MSs = MSs
        self._cell_assignment: Optional[CellAssignment] = None
        if cell_assignment is not None:
            self.set_cell_assignment(cell_assignment)

    def __repr__(self) -> str:
        return "{0}(I={1}, K={2})".format(self.__class__.__name__,
                                          self.get_no_BSs(),
                                          self.get_no_MSs())

    def get_no_BSs(self) -> int:
        """Number of base stations."""
        return len(self.BSs)

    def get_no_MSs(self) -> int:
        """Number of mobile stations."""
        return len(self.MSs)

    def get_transmit_powers(self) -> np.ndarray:
        """Transmit power budget (in mW) of each base station."""
        return np.array([bs.transmit_power for bs in self.BSs])

    def set_transmit_powers_dBm(self, transmit_power_dBm: FloatOrFloatArray) -> None:
        """
        Set the transmit power budget of the base stations.

        Parameters
        ----------
        transmit_power_dBm : float | np.ndarray
            The transmit power (in dBm). If it is a single value, it is
            used for all base stations.
        """
        powers = np.broadcast_to(
            np.asarray(transmit_power_dBm, dtype=float), (self.get_no_BSs(), ))
        for bs, P_dBm in zip(self.BSs, powers):
            # dBm to mW
            bs.transmit_power = float(dB2Linear(P_dBm))

    def get_receiver_noise_powers(self) -> np.ndarray:
        """Receiver noise power (in mW) of each mobile station."""
        return np.array([ms.noise_power for ms in self.MSs])

    def get_no_streams(self) -> np.ndarray:
        """Number of streams of each mobile station."""
        return np.array([ms.no_streams for ms in self.MSs], dtype=int)

    def get_no_BS_antennas(self) -> np.ndarray:
        """Number of transmit antennas of each base station."""
        return np.array([bs.no_antennas for bs in self.BSs], dtype=int)

    def get_no_MS_antennas(self) -> np.ndarray:
        """Number of receive antennas of each mobile station."""
        return np.array([ms.no_antennas for ms in self.MSs], dtype=int)

    def get_cell_assignment(self) -> CellAssignment:
        """
        Get the cell assignment of the network.

        Raises
        ------
        RuntimeError
            If no cell assignment was set yet.
        """
        if self._cell_assignment is None:
            raise RuntimeError("The network has no cell assignment yet")
        return self._cell_assignment

    def set_cell_assignment(self, cell_assignment: CellAssignment) -> None:
        """
        Set the cell assignment of the network.

        Parameters
        ----------
        cell_assignment : CellAssignment
            The new cell assignment. It must cover every user and base
            station of the network.
        """
        if (cell_assignment.num_MSs != self.get_no_MSs()
                or cell_assignment.num_BSs != self.get_no_BSs()):
            raise ValueError(
                "The cell assignment does not match the network size")
        self._cell_assignment = cell_assignment

    def get_distances(self) -> np.ndarray:
        """
        Distance (in meters) between each mobile station and each base
        station.

        Returns
        -------
        np.ndarray
            A `K x I` numpy array.
        """
        MS_pos = np.array([ms.pos for ms in self.MSs])
        BS_pos = np.array([bs.pos for bs in self.BSs])
        return np.abs(MS_pos[:, np.newaxis] - BS_pos[np.newaxis, :])

    def get_angles(self) -> np.ndarray:
        """
        Angle (in radians, measured from the x axis) of the direction from
        each base station towards each mobile station.

        Returns
        -------
        np.ndarray
            A `K x I` numpy array.
        """
        MS_pos = np.array([ms.pos for ms in self.MSs])
        BS_pos = np.array([bs.pos for bs in self.BSs])
        return np.angle(MS_pos[:, np.newaxis] - BS_pos[np.newaxis, :])


class Triangular3SiteNetwork(Network):
    """
    Macro cell network with three sites on the vertices of an equilateral
    triangle.

    Use :func:`setup_triangular3site_network` to create objects of this
    class with the default 3GPP Case 1 parameters.

    Parameters
    ----------
    BSs : list[BaseStation]
        The three base stations.
    MSs : list[MobileStation]
        The mobile stations. Users `i*Kc` to `(i+1)*Kc - 1` belong to
        cell `i`, where `Kc` is `no_MSs_per_cell`.
    no_MSs_per_cell : int
        Number of users in each cell.
    inter_site_distance : float
        Distance between the sites (in meters).
    guard_distance : float
        Minimum distance between a user and its serving site (in meters).
    pathloss : PathLossBase
        The distance dependent path loss model (distance in Km).
    penetration_loss_dB : float
        Penetration loss (in dB) applied to every link.
    shadow_sigma_dB : float
        Standard deviation (in dB) of the log-normal shadow fading.
    shadow_correlation : float
        Correlation coefficient between the shadow fading of one user
        towards the three sites.
    """
    def __init__(self,
                 BSs: List[BaseStation],
                 MSs: List[MobileStation],
                 no_MSs_per_cell: int,
                 inter_site_distance: float = 500.,
                 guard_distance: float = 35.,
                 pathloss: Optional[PathLossBase] = None,
                 penetration_loss_dB: float = 20.,
                 shadow_sigma_dB: float = 8.,
                 shadow_correlation: float = 0.5) -> None:
        if len(BSs) != 3:
            raise InvalidConfigurationError(
                "Triangular3SiteNetwork only allows for I = 3.")
        if len(MSs) != 3 * no_MSs_per_cell:
            raise ValueError("The network needs {0} mobile stations".format(
                3 * no_MSs_per_cell))
        if not 0 <= guard_distance < inter_site_distance / 2:
            raise ValueError("The guard distance must be lower than half the "
                             "inter site distance")

        super().__init__(BSs, MSs)
        self.no_MSs_per_cell = int(no_MSs_per_cell)
        self.inter_site_distance = float(inter_site_distance)
        self.guard_distance = float(guard_distance)
        self.pathloss: PathLossBase = (pathloss if pathloss is not None else
                                       PathLoss3GPP1())
        self.penetration_loss_dB = float(penetration_loss_dB)
        self.shadow_sigma_dB = float(shadow_sigma_dB)
        self.shadow_correlation = float(shadow_correlation)

    def __repr__(self) -> str:
        return "Triangular3Site(I = {0}, Kc = {1}, ISD = {2}, GD = {3})".format(
            self.get_no_BSs(), self.no_MSs_per_cell, self.inter_site_distance,
            self.guard_distance)

    def assign_cells_by_id(self) -> CellAssignment:
        """
        Assign the users to the cells by their index, that is, the first
        `no_MSs_per_cell` users are served by the first base station, and so
        on.

        The assignment is also stored in the network.

        Returns
        -------
        CellAssignment
            The new cell assignment.
        """
        Kc = self.no_MSs_per_cell
        assignment = np.repeat(np.arange(self.get_no_BSs()), Kc)
        cell_assignment = CellAssignment(assignment, self.get_no_BSs())
        self.set_cell_assignment(cell_assignment)
        return cell_assignment

    def _shadow_fading_cov_sqrt(self) -> np.ndarray:
        I = self.get_no_BSs()  # noqa: E741
        rho = self.shadow_correlation
        corr = rho * np.ones([I, I]) + (1 - rho) * np.eye(I)
        return np.linalg.cholesky(self.shadow_sigma_dB**2 * corr)

    def draw_user_drop(self, RS: np.random.RandomState) -> None:
        """
        Draw new positions and shadow fading realizations for all users.

        Each user is dropped uniformly (in area) inside the part of its
        serving cell that faces the center of the triangle, keeping at
        least `guard_distance` from its serving site.

        Parameters
        ----------
        RS : np.random.RandomState
            The RandomState object used for the drop.
        """
        I = self.get_no_BSs()  # noqa: E741
        Kc = self.no_MSs_per_cell
        half_ISD = self.inter_site_distance / 2
        gd = self.guard_distance
        cov_sqrt = self._shadow_fading_cov_sqrt()

        # Rotation that takes the standard triangle to the cell of each
        # site
        rotations = [
            cmath.exp(1j * math.radians(240)), 1.0,
            cmath.exp(1j * math.radians(120))
        ]

        for k, ms in enumerate(self.MSs):
            # Position within the standard triangle [0, 30] degrees, to
            # the right of the base, with the guard distance applied to
            # the x coordinate.
            xtri = math.sqrt((half_ISD**2 - gd**2) * RS.rand() + gd**2)
            ytri = (xtri / math.sqrt(3)) * RS.rand()

            # Flip it over with probability 0.5
            if RS.rand() < 0.5:
                pos = complex(xtri, ytri)
            else:
                pos = complex(xtri, -ytri) * cmath.exp(1j * math.radians(60))

            i = k // Kc
            ms.pos = pos * rotations[i] + self.BSs[i].pos
            ms.shadow_fading_dB = cov_sqrt.dot(RS.randn(I))

    def get_large_scale_fading(self) -> np.ndarray:
        """
        Calculate the large scale fading (power gain in linear scale) of
        each link, including path loss, shadow fading, penetration loss and
        antenna gains.

        Returns
        -------
        np.ndarray
            A `K x I` numpy array.

        Raises
        ------
        RuntimeError
            If no user drop was drawn yet.
        """
        if any(ms.shadow_fading_dB is None for ms in self.MSs):
            raise RuntimeError("Call draw_user_drop before drawing a channel")

        distances_km = self.get_distances() / 1000.
        angles = self.get_angles()

        gain_dB = -self.pathloss.calc_path_loss_dB(distances_km)
        gain_dB -= self.penetration_loss_dB
        gain_dB += np.array([ms.shadow_fading_dB for ms in self.MSs])
        gain_dB += np.array([[ms.antenna_gain_dB] for ms in self.MSs])

        bs_gains = np.column_stack([
            bs.antenna_gain.get_antenna_gain(angles[:, i])
            for i, bs in enumerate(self.BSs)
        ])
        return dB2Linear(gain_dB) * bs_gains

    def draw_channel(self, RS: np.random.RandomState) -> SinglecarrierChannel:
        """
        Draw a new channel realization for the current user drop.

        The small scale fading is Rayleigh (independent complex Gaussian
        coefficients) and it is scaled by the large scale fading of each
        link.

        Parameters
        ----------
        RS : np.random.RandomState
            The RandomState object used to draw the small scale fading.

        Returns
        -------
        SinglecarrierChannel
            The new channel.
        """
        large_scale_fading = self.get_large_scale_fading()
        channel = SinglecarrierChannel()
        channel.randomize(self.get_no_MS_antennas(), self.get_no_BS_antennas(),
                          self.get_no_MSs(), self.get_no_BSs(), RS)
        channel.apply_large_scale_fading(large_scale_fading)
        return channel


def setup_triangular3site_network(
        no_BSs: int,
        no_MSs_per_cell: int,
        no_MS_antennas: int,
        no_BS_antennas: int,
        inter_site_distance: float = 500.,
        guard_distance: float = 35.,
        transmit_power_dBm: float = 18.2,
        no_streams: int = 1,
        MS_antenna_gain_dB: float = 0.,
        receiver_noise_figure: float = 9.,
        system_bandwidth: float = 15e3,
        penetration_loss_dB: float = 20.,
        shadow_sigma_dB: float = 8.,
        BS_antenna_gains: Optional[List[AntGainBase]] = None
) -> Triangular3SiteNetwork:
    """
    Create a :class:`Triangular3SiteNetwork` with 3GPP Case 1 parameters.

    The default values are taken from 3GPP Case 1 (TR 25.814 and TR
    36.814) at a 2GHz carrier frequency. The users are placed at the
    origin until :meth:`Triangular3SiteNetwork.draw_user_drop` is called.

    Parameters
    ----------
    no_BSs : int
        Number of base stations. It must be equal to 3.
    no_MSs_per_cell : int
        Number of users in each cell.
    no_MS_antennas : int
        Number of receive antennas of each user.
    no_BS_antennas : int
        Number of transmit antennas of each base station.
    inter_site_distance : float
        Distance between the sites (in meters).
    guard_distance : float
        Minimum distance between a user and its serving site (in meters).
    transmit_power_dBm : float
        Transmit power of each base station (in dBm).
    no_streams : int
        Number of streams of each user.
    MS_antenna_gain_dB : float
        Antenna gain of the users (in dBi).
    receiver_noise_figure : float
        Noise figure (in dB) of the user receivers.
    system_bandwidth : float
        Bandwidth (in Hz) used to calculate the thermal noise power.
    penetration_loss_dB : float
        Penetration loss (in dB).
    shadow_sigma_dB : float
        Standard deviation (in dB) of the shadow fading.
    BS_antenna_gains : list[AntGainBase], optional
        The antenna gain model of each site. By default the 6 sector 3GPP
        TR 25.996 pattern is used, with each site pointing towards the
        center of the triangle.

    Returns
    -------
    Triangular3SiteNetwork
        The new network.

    Raises
    ------
    InvalidConfigurationError
        If `no_BSs` is not 3.

    Examples
    --------
    >>> network = setup_triangular3site_network(3, 2, 2, 4)
    >>> network
    Triangular3Site(I = 3, Kc = 2, ISD = 500.0, GD = 35.0)
    >>> print(network.get_no_streams())
    [1 1 1 1 1 1]
    """
    if no_BSs != 3:
        raise InvalidConfigurationError(
            "Triangular3SiteNetwork only allows for I = 3.")

    if BS_antenna_gains is None:
        BS_antenna_gains = [
            AntGainBS3GPP25996(6, bore_sight_angle=math.radians(-90)),
            AntGainBS3GPP25996(6, bore_sight_angle=math.radians(30)),
            AntGainBS3GPP25996(6, bore_sight_angle=math.radians(150))
        ]

    ISD = inter_site_distance
    BS_positions = [
        complex(0, ISD / math.sqrt(3)),
        complex(-ISD / 2, -ISD / (2 * math.sqrt(3))),
        complex(+ISD / 2, -ISD / (2 * math.sqrt(3)))
    ]
    # dBm to mW
    transmit_power = dB2Linear(transmit_power_dBm)
    BSs = [
        BaseStation(no_BS_antennas, transmit_power, pos, antenna_gain)
        for pos, antenna_gain in zip(BS_positions, BS_antenna_gains)
    ]

    noise_power = dB2Linear(
        calc_receiver_noise_power_dBm(system_bandwidth, receiver_noise_figure))
    MSs = [
        MobileStation(no_MS_antennas,
                      noise_power,
                      no_streams,
                      antenna_gain_dB=MS_antenna_gain_dB)
        for _ in range(3 * no_MSs_per_cell)
    ]

    logger.debug(
        "Triangular3SiteNetwork with Kc=%d, M=%d, N=%d, P=%.1fdBm, "
        "sigma2=%.2emW", no_MSs_per_cell, no_BS_antennas, no_MS_antennas,
        transmit_power_dBm, noise_power)

    return Triangular3SiteNetwork(BSs,
                                  MSs,
                                  no_MSs_per_cell,
                                  inter_site_distance=inter_site_distance,
                                  guard_distance=guard_distance,
                                  penetration_loss_dB=penetration_loss_dB,
                                  shadow_sigma_dB=shadow_sigma_dB)
