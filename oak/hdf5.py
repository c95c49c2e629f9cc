#  -*- coding: utf-8 -*-
"""
HDF5 key/value filer.

:class:`HDF5Filer` stores each property as one entry of an HDF5 group. The
encoding follows these rules:

- ``None`` is stored as the string attribute ``"NoneType:None"``;
- :class:`pathlib.Path` is stored as the string attribute ``"Path:<absolute path>"``;
- ``str`` and numbers are stored directly as attributes;
- lists and dicts become subgroups tagged with ``__container_type__``;
- numpy arrays become datasets tagged with ``__dataset_type__``.

The file is opened on every call, so no handle is kept between operations.
"""

from __future__ import annotations

import logging

from numbers import Number
from pathlib import Path

import h5py
import numpy

from oak.filer import Filer

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import Any


log = logging.getLogger(__name__)


NONE_MARKER = 'NoneType:None'
PATH_PREFIX = 'Path:'


class HDF5Filer(Filer):
    """
    Filer storing properties in one group of an HDF5 file.

    Parameters
    ----------
    path : str or Path
        HDF5 file. Created on the first ``store``.
    group : str, default "root"
        Group holding the properties. Nested groups are written as
        ``"a/b"``.

    Examples
    --------
    >>> filer = HDF5Filer('settings.h5')
    >>> filer.store(threshold=0.5, labels=['a', 'b'])
    True
    >>> filer.load('threshold', 'missing')
    {'threshold': 0.5}
    """

    # ========== ========== ========== ========== ========== special methods
    def __init__(self, path: str | Path, group: str = 'root') -> None:
        self.path: Path = Path(path)
        self.group: str = group

    def __repr__(self) -> str:
        return f'{type(self).__name__}({str(self.path)!r}, group={self.group!r})'

    # ========== ========== ========== ========== ========== protected methods
    @staticmethod
    def _save_data_in_group(key: str, value: Any, group: h5py.Group) -> None:
        """
        Save a value under a given key inside an HDF5 group.

        Raises
        ------
        TypeError
            If the value type cannot be stored.
        """
        if value is None:
            group.attrs[key] = NONE_MARKER

        elif isinstance(value, Path):
            group.attrs[key] = f'{PATH_PREFIX}{str(value.absolute())}'

        elif isinstance(value, (str, Number)):
            group.attrs[key] = value

        elif isinstance(value, (list, tuple)):
            subgroup = group.create_group(key, track_order=True)
            subgroup.attrs['__container_type__'] = 'list'

            for idx, obj in enumerate(value):
                HDF5Filer._save_data_in_group(str(idx), obj, subgroup)

        elif isinstance(value, dict):
            subgroup = group.create_group(key)
            subgroup.attrs['__container_type__'] = 'dict'

            for _key, obj in value.items():
                HDF5Filer._save_data_in_group(str(_key), obj, subgroup)

        elif isinstance(value, numpy.ndarray):
            if value.ndim > 0:
                dataset = group.create_dataset(key, data=value, maxshape=(None, *value.shape[1:]))
            else:  # scalar dataset cannot be extended
                dataset = group.create_dataset(key, data=value)

            dataset.attrs['__dataset_type__'] = 'numpy.ndarray'

        else:
            raise TypeError(f"instances of {type(value).__name__} cannot be saved in h5py.Groups")

    @staticmethod
    def _load_data_from_h5py_tree(value: Any) -> Any:
        """
        Load a value from an HDF5 group, dataset or attribute recursively.

        Raises
        ------
        ValueError
            If a container group has an unknown ``__container_type__`` or a
            dataset an unknown ``__dataset_type__``.
        """
        if isinstance(value, h5py.Group):

            data = {k: HDF5Filer._load_data_from_h5py_tree(v) for k, v in value.items()}
            data.update({k: HDF5Filer._load_data_from_h5py_tree(v) for k, v in value.attrs.items()})

            container_type = data.pop('__container_type__', None)

            if container_type == 'list':
                return [data[key] for key in sorted(data.keys(), key=int)]

            if container_type == 'dict':
                return data

            raise ValueError(f"Could not resolve __container_type__={container_type}")

        if isinstance(value, h5py.Dataset):

            dataset_type = value.attrs.get('__dataset_type__')

            if dataset_type != 'numpy.ndarray':
                raise ValueError(f"Could not resolve __dataset_type__={dataset_type}")

            return value[...]

        if isinstance(value, bytes):
            value = value.decode('utf-8')

        if isinstance(value, str):

            if value == NONE_MARKER:
                return None

            if value.startswith(PATH_PREFIX):
                return Path(value.removeprefix(PATH_PREFIX))

            return value  # just regular strings

        if isinstance(value, numpy.bool_):
            return bool(value)

        if isinstance(value, numpy.generic):
            return value.item()

        return value  # basically numbers

    # ========== ========== ========== ========== ========== public methods
    def load(self, *names: str) -> dict[str, Any]:
        """
        Return the stored values of ``names``.

        A missing file or group loads as empty.
        """
        if not names or not self.path.is_file():
            return {}

        data = {}

        with h5py.File(self.path, 'r') as file:

            if self.group not in file:
                return {}

            group = file[self.group]

            for name in names:

                if name in group:
                    data[name] = self._load_data_from_h5py_tree(group[name])

                elif name in group.attrs:
                    data[name] = self._load_data_from_h5py_tree(group.attrs[name])

        log.debug('loaded %s from %s:%s', sorted(data), self.path, self.group)

        return data

    def store(self, values: dict[str, Any] | None = None, /, **kwargs: Any) -> bool:
        """
        Write the given values, replacing previous entries with the same names.

        Raises
        ------
        TypeError
            If a value type cannot be stored.
        """
        data = self._merge(values, kwargs)

        with h5py.File(self.path, 'a') as file:

            group = file.require_group(self.group)

            for name, value in data.items():

                if name in group:
                    del group[name]

                if name in group.attrs:
                    del group.attrs[name]

                self._save_data_in_group(name, value, group)

        log.debug('stored %s in %s:%s', sorted(data), self.path, self.group)

        return True


__all__ = [
    'HDF5Filer',
]
