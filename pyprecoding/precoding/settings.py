#!/usr/bin/env python
"""
Module with the configuration object shared by all coordinated precoding
algorithms.

Every option has an explicit default and is validated when it is set, so
that an invalid configuration fails when the settings object is created
and never in the middle of a simulation.
"""

import logging
from typing import Any, Dict, Optional

from configobj import ConfigObj, flatten_errors
from validate import Validator

from ..util.serialize import JsonSerializable
from .errors import InvalidConfigurationError

__all__ = ['PrecodingSettings']

logger = logging.getLogger(__name__)

# Options recognized by the configuration file parser (and their
# defaults). See "validation" in the configobj module documentation.
CONFIG_SPEC = [
    "initial_precoders = option('dft', 'white', 'zeros', 'eigendirection', default='dft')",
    "max_iters = integer(min=1, default=20)",
    "stop_crit = float(min=0, default=1e-3)",
    "output_protocol = option('all_iterations', 'final_iteration', default='all_iterations')",
    "bisection_Gamma_cond = float(min=1, default=1e10)",
    "bisection_singular_Gamma_mu_lower_bound = float(min=0, default=1e-14)",
    "bisection_max_iters = integer(min=1, default=50)",
    "bisection_tolerance = float(min=0, default=1e-3)",
    "maxmin_weight_step = float(min=0, max=1, default=0.5)",
]


def _check_positive_int(name: str, value: Any) -> int:
    try:
        valid = (not isinstance(value, bool) and int(value) == value
                 and value >= 1)
    except (TypeError, ValueError):
        valid = False
    if not valid:
        raise InvalidConfigurationError(
            "'{0}' must be a positive integer, not {1!r}".format(name, value))
    return int(value)


def _check_non_negative_float(name: str, value: Any) -> float:
    try:
        valid = not isinstance(value, bool) and float(value) >= 0
    except (TypeError, ValueError):
        valid = False
    if not valid:
        raise InvalidConfigurationError(
            "'{0}' must be a non-negative number, not {1!r}".format(
                name, value))
    return float(value)


class PrecodingSettings(JsonSerializable):  # pylint: disable=R0902
    """
    Configuration of the coordinated precoding algorithms.

    Parameters
    ----------
    initial_precoders : str
        Initialization strategy of the precoders. One of 'dft', 'white',
        'zeros' or 'eigendirection'.
    max_iters : int
        Maximum number of iterations.
    stop_crit : float
        The iterations stop when the relative change of the objective
        between two consecutive iterations is lower than this value. Zero
        disables the early stop.
    output_protocol : str
        Either 'all_iterations' (results of every iteration) or
        'final_iteration' (only the results of the last iteration).
    bisection_Gamma_cond : float
        Condition number above which the virtual uplink covariance is
        considered singular in the Lagrange multiplier bisection.
    bisection_singular_Gamma_mu_lower_bound : float
        Lower bound of the Lagrange multiplier used when the virtual
        uplink covariance is singular.
    bisection_max_iters : int
        Maximum number of iterations of the Lagrange multiplier bisection.
    bisection_tolerance : float
        Relative tolerance (with respect to the power budget) of the
        Lagrange multiplier bisection.
    maxmin_weight_step : float
        Step (between 0 and 1) used to update the user priorities of the
        max-min variant.

    Raises
    ------
    InvalidConfigurationError
        If any option is unknown or has an invalid value.

    Examples
    --------
    >>> settings = PrecodingSettings(max_iters=10, stop_crit=0)
    >>> settings.max_iters
    10
    >>> settings.initial_precoders
    'dft'
    >>> PrecodingSettings(max_iter=10)
    Traceback (most recent call last):
    ...
    pyprecoding.precoding.errors.InvalidConfigurationError: Unknown option(s): max_iter
    """
    _DEFAULTS: Dict[str, Any] = {
        'initial_precoders': 'dft',
        'max_iters': 20,
        'stop_crit': 1e-3,
        'output_protocol': 'all_iterations',
        'bisection_Gamma_cond': 1e10,
        'bisection_singular_Gamma_mu_lower_bound': 1e-14,
        'bisection_max_iters': 50,
        'bisection_tolerance': 1e-3,
        'maxmin_weight_step': 0.5,
    }

    def __init__(self, **kwargs: Any) -> None:
        unknown = sorted(set(kwargs) - set(self._DEFAULTS))
        if unknown:
            raise InvalidConfigurationError("Unknown option(s): {0}".format(
                ", ".join(unknown)))

        # Each assignment goes through the validating property setter
        for name, default in self._DEFAULTS.items():
            setattr(self, name, kwargs.get(name, default))

    def __repr__(self) -> str:
        options = ", ".join("{0}={1!r}".format(name, getattr(self, name))
                            for name in self._DEFAULTS)
        return "PrecodingSettings({0})".format(options)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PrecodingSettings):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def replace(self, **kwargs: Any) -> "PrecodingSettings":
        """
        Return a new settings object with the given options changed.

        Parameters
        ----------
        kwargs : dict
            The options to change.

        Returns
        -------
        PrecodingSettings
            The new settings object.
        """
        options = self.to_dict()
        options.update(kwargs)
        return PrecodingSettings(**options)

    # xxxxxxxxxx Options xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
    @property
    def initial_precoders(self) -> str:
        """Get method for the initial_precoders property."""
        return self._initial_precoders

    @initial_precoders.setter
    def initial_precoders(self, value: str) -> None:
        options = ['dft', 'white', 'zeros', 'eigendirection']
        if value not in options:
            msg = "unknown initialization option: '{0}'".format(value)
            raise InvalidConfigurationError(msg)
        self._initial_precoders = value

    @property
    def max_iters(self) -> int:
        """Get method for the max_iters property."""
        return self._max_iters

    @max_iters.setter
    def max_iters(self, value: int) -> None:
        self._max_iters = _check_positive_int('max_iters', value)

    @property
    def stop_crit(self) -> float:
        """Get method for the stop_crit property."""
        return self._stop_crit

    @stop_crit.setter
    def stop_crit(self, value: float) -> None:
        self._stop_crit = _check_non_negative_float('stop_crit', value)

    @property
    def output_protocol(self) -> str:
        """Get method for the output_protocol property."""
        return self._output_protocol

    @output_protocol.setter
    def output_protocol(self, value: str) -> None:
        if value not in ('all_iterations', 'final_iteration'):
            raise InvalidConfigurationError(
                "Unknown output protocol: '{0}'".format(value))
        self._output_protocol = value

    @property
    def bisection_Gamma_cond(self) -> float:
        """Get method for the bisection_Gamma_cond property."""
        return self._bisection_Gamma_cond

    @bisection_Gamma_cond.setter
    def bisection_Gamma_cond(self, value: float) -> None:
        value = _check_non_negative_float('bisection_Gamma_cond', value)
        if value < 1:
            raise InvalidConfigurationError(
                "'bisection_Gamma_cond' must be at least 1")
        self._bisection_Gamma_cond = value

    @property
    def bisection_singular_Gamma_mu_lower_bound(self) -> float:
        """Get method for the bisection_singular_Gamma_mu_lower_bound
        property."""
        return self._bisection_singular_Gamma_mu_lower_bound

    @bisection_singular_Gamma_mu_lower_bound.setter
    def bisection_singular_Gamma_mu_lower_bound(self, value: float) -> None:
        self._bisection_singular_Gamma_mu_lower_bound = \
            _check_non_negative_float(
                'bisection_singular_Gamma_mu_lower_bound', value)

    @property
    def bisection_max_iters(self) -> int:
        """Get method for the bisection_max_iters property."""
        return self._bisection_max_iters

    @bisection_max_iters.setter
    def bisection_max_iters(self, value: int) -> None:
        self._bisection_max_iters = _check_positive_int(
            'bisection_max_iters', value)

    @property
    def bisection_tolerance(self) -> float:
        """Get method for the bisection_tolerance property."""
        return self._bisection_tolerance

    @bisection_tolerance.setter
    def bisection_tolerance(self, value: float) -> None:
        self._bisection_tolerance = _check_non_negative_float(
            'bisection_tolerance', value)

    @property
    def maxmin_weight_step(self) -> float:
        """Get method for the maxmin_weight_step property."""
        return self._maxmin_weight_step

    @maxmin_weight_step.setter
    def maxmin_weight_step(self, value: float) -> None:
        value = _check_non_negative_float('maxmin_weight_step', value)
        if not 0 < value <= 1:
            raise InvalidConfigurationError(
                "'maxmin_weight_step' must be in the interval (0, 1]")
        self._maxmin_weight_step = value

    # xxxxxxxxxx Serialization xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
    def _to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self._DEFAULTS}

    @classmethod
    def _from_dict(cls, d: Dict[str, Any]) -> "PrecodingSettings":
        return cls(**d)

    @staticmethod
    def load_from_config_file(filename: str,
                              section: Optional[str] = None
                              ) -> "PrecodingSettings":
        """
        Load the settings from a config file using the configobj module.

        Options missing in the file take their default values.

        Parameters
        ----------
        filename : str
            Name of the config file.
        section : str, optional
            Name of the section of the config file with the options. If not
            provided, the options are read from the top level of the file.

        Returns
        -------
        PrecodingSettings
            The loaded settings.

        Raises
        ------
        InvalidConfigurationError
            If some option in the file is unknown or has an invalid value.
        """
        conf_file_parser = ConfigObj(filename, list_values=True)
        config = conf_file_parser
        if section is not None:
            if section not in conf_file_parser.sections:
                raise InvalidConfigurationError(
                    "Error loading file {0}. There is no section '{1}'".format(
                        filename, section))
            config = conf_file_parser[section]

        unknown = [name for name in config.scalars if name not in
                   PrecodingSettings._DEFAULTS]
        if unknown:
            raise InvalidConfigurationError(
                "Error loading file {0}. Unknown option(s): {1}".format(
                    filename, ", ".join(unknown)))

        # Validate only the options we care about, so that other sections
        # of the same file (simulation parameters, for instance) are left
        # alone.
        options = ConfigObj(dict((name, config[name])
                                 for name in config.scalars),
                            configspec=CONFIG_SPEC)
        result = options.validate(Validator(), preserve_errors=True, copy=True)

        # The flatten_errors function will return only the parameters whose
        # parsing failed.
        errors_list = flatten_errors(options, result)
        if len(errors_list) != 0:
            first_error = errors_list[0]
            msg = ("Error loading file {0}. Parameter '{1}' is invalid. {2}")
            raise InvalidConfigurationError(
                msg.format(filename, first_error[1],
                           str(first_error[2]).capitalize()))

        logger.debug("Loaded precoding settings from %s", filename)
        return PrecodingSettings(**options.dict())
