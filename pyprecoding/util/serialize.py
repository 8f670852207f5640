#!/usr/bin/env python
"""
JSON serialization of objects holding numpy arrays, such as the settings
and the results of the precoding algorithms.
"""

import json
from typing import Any, Dict, Union

import numpy as np

__all__ = ['NumpyOrSetEncoder', 'json_numpy_or_set_obj_hook', 'JsonSerializable']

Serializable = Union[np.ndarray, np.integer, np.floating, np.bool_, set]

# JSON has no dedicated type, thus we use Any
JsonRepresentation = Any


class NumpyOrSetEncoder(json.JSONEncoder):
    """
    JSON encoder for numpy arrays, numpy scalars and python sets.

    Arrays become a dictionary with the `_is_numpy_array` marker, their
    dtype, shape and data. The imaginary part of complex arrays is stored
    in a separated `imag` field. Use :func:`json_numpy_or_set_obj_hook` to
    decode them.
    """
    def default(self, obj: Serializable) -> JsonRepresentation:
        if isinstance(obj, np.ndarray):
            encoded = {
                '_is_numpy_array': True,
                'dtype': str(obj.dtype),
                'shape': obj.shape,
                'data': obj.real.tolist() if np.iscomplexobj(obj) else
                obj.tolist()
            }
            if np.iscomplexobj(obj):
                encoded['imag'] = obj.imag.tolist()
            return encoded

        if isinstance(obj, np.bool_):
            return bool(obj)
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if isinstance(obj, set):
            return {'_is_set': True, 'data': list(obj)}

        return json.JSONEncoder.default(self, obj)


def json_numpy_or_set_obj_hook(
        dct: Dict[str, JsonRepresentation]) -> Serializable:
    """
    Object hook for `json.loads` that decodes the arrays and sets encoded
    by :class:`NumpyOrSetEncoder`. Other dictionaries are returned
    unchanged.

    Raises
    ------
    ValueError
        If a marker key is present but not True.

    Examples
    --------
    >>> dumped = json.dumps(np.array([[1.0, 2.0]]), cls=NumpyOrSetEncoder)
    >>> json.loads(dumped, object_hook=json_numpy_or_set_obj_hook)
    array([[1., 2.]])
    """
    for marker in ('_is_numpy_array', '_is_set'):
        if marker in dct and dct[marker] is not True:
            raise ValueError(
                "Invalid JSON representation: '{0}' must be true".format(
                    marker))

    if '_is_numpy_array' in dct:
        if 'imag' in dct:
            data = np.array(dct['data']) + 1j * np.array(dct['imag'])
        else:
            data = np.array(dct['data'])
        return data.astype(dct['dtype']).reshape(dct['shape'])

    if '_is_set' in dct:
        return set(dct['data'])

    return dct


class JsonSerializable:
    """
    Base class of the objects that can be converted to (and from) a
    dictionary and JSON.

    Subclasses implement `_to_dict` and the `_from_dict` classmethod.
    """
    def _to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError("Implement in a subclass")

    @classmethod
    def _from_dict(cls, d: Dict[str, Any]) -> Any:
        raise NotImplementedError("Implement in a subclass")

    def to_dict(self) -> Dict[str, Any]:
        """Convert the object to a dictionary."""
        return self._to_dict()

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> Any:
        """Create an object from its dictionary representation."""
        return cls._from_dict(d)

    def to_json(self) -> JsonRepresentation:
        """
        Convert the object to JSON.

        Returns
        -------
        str
            The JSON representation of the object.
        """
        return json.dumps(self._to_dict(), cls=NumpyOrSetEncoder)

    @classmethod
    def from_json(cls, data: JsonRepresentation) -> Any:
        """
        Create an object from its JSON representation.

        Parameters
        ----------
        data : str
            The JSON representation (created with `to_json`).

        Returns
        -------
        JsonSerializable
            The new object.
        """
        return cls._from_dict(
            json.loads(data, object_hook=json_numpy_or_set_obj_hook))
