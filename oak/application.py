#  -*- coding: utf-8 -*-
"""
Applications and their registry of live top-level components.

An :class:`Application` knows the top-level components it may open (a class
and a document each), opens them on demand and keeps the live ones in its
:class:`Registry`, which components can reach through
:attr:`oak.component.Component.registry` to look up other trees.

Applications are usually described by a TOML file::

    default = "login"
    is_designing = false

    [toplevels.login]
    class = "myapp.forms.LoginForm"
    location = "forms/login.xml"

    [toplevels.data]
    class = "oak.datamodule.DataModule"
    location = "data.xml"

Relative locations are resolved against the directory of the file.
"""

from __future__ import annotations

import logging

from pathlib import Path

import toml

from oak.component import Component
from oak.errors import ParamsMissing, ClassNotFound, DuplicatedTopLevel, NotRegistered
from oak.object import OakMeta, check_types

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import Any, Iterator, Self


log = logging.getLogger(__name__)


class Registry:
    """
    Named collection of live top-level components.

    Examples
    --------
    >>> registry = Registry()
    >>> form = LoginForm(name='login', registry=registry)
    >>> registry['login'] is form
    True
    >>> form.destroy()
    >>> 'login' in registry
    False
    """

    # ========== ========== ========== ========== ========== special methods
    def __init__(self) -> None:
        self._components: dict[str, Component] = {}

    def __getitem__(self, name: str) -> Component:
        if name not in self._components:
            raise NotRegistered(name)

        return self._components[name]

    def __contains__(self, item: str | Component) -> bool:
        if isinstance(item, Component):
            return any(item is component for component in self._components.values())

        return item in self._components

    def __iter__(self) -> Iterator[Component]:
        return iter(list(self._components.values()))

    def __len__(self) -> int:
        return len(self._components)

    def __repr__(self) -> str:
        return f'{type(self).__name__}({sorted(self._components)})'

    # ========== ========== ========== ========== ========== public methods
    def register(self, component: Component, name: str | None = None) -> None:
        """
        Register ``component`` under ``name`` (its own name by default).

        Raises
        ------
        DuplicatedTopLevel
            If another component is registered under the same name.
        """
        check_types(component, Component)

        name = name or component.name

        if not name:
            raise ParamsMissing('name')

        registered = self._components.get(name)

        if registered is not None and registered is not component:
            raise DuplicatedTopLevel(name)

        self._components[name] = component

    def unregister(self, item: str | Component) -> Component:
        """
        Remove a component, given by name or by itself, and return it.

        Raises
        ------
        NotRegistered
            If it is not registered.
        """
        if isinstance(item, Component):
            for name, component in self._components.items():
                if component is item:
                    return self._components.pop(name)

            raise NotRegistered(item.name)

        if item not in self._components:
            raise NotRegistered(item)

        return self._components.pop(item)

    def clear(self) -> None:
        self._components.clear()


class Application:
    """
    Set of top-level components opened on demand.

    Parameters
    ----------
    toplevels : dict, optional
        ``key -> (classname, location)``. The key is how the application refers
        to a top level; the component itself is registered under its name.
    default : str, optional
        Key of the top level opened by :meth:`run`.
    is_designing : bool, default False
        Design mode given to every top level opened.

    Examples
    --------
    >>> with Application.from_config('app.toml') as app:
    ...     form = app.run()
    ...     form.get_child('user').get('value')
    """

    # ========== ========== ========== ========== ========== special methods
    def __init__(self,
                 toplevels: dict[str, tuple[str, Any]] | None = None,
                 default: str | None = None,
                 is_designing: bool = False) -> None:

        self.toplevels: dict[str, tuple[str, Any]] = dict(toplevels or {})
        self.is_designing: bool = bool(is_designing)
        self.registry: Registry = Registry()
        self._opened: dict[str, Component] = {}
        self._default: str | None = None

        self.default = default

    def __getitem__(self, key: str) -> Component:
        """Return the top level ``key``, opening it if needed."""
        component = self._opened.get(key)

        if component is None or component not in self.registry:
            component = self.initiate_toplevel(key)

        return component

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.free_all_toplevels()

    # ========== ========== ========== ========== ========== public methods
    @classmethod
    def from_config(cls, path: str | Path) -> Self:
        """
        Build an application from a TOML file.

        Raises
        ------
        ParamsMissing
            If a top level lacks ``class`` or ``location``.
        """
        path = Path(path)
        config = toml.load(path)

        toplevels = {}

        for key, entry in config.get('toplevels', {}).items():

            classname = entry.get('class')
            location = entry.get('location')

            if not classname or not location:
                raise ParamsMissing(f'class and location of top level {key!r}')

            location = Path(location)

            if not location.is_absolute():
                location = path.parent / location

            toplevels[key] = (classname, location)

        log.info('loaded application configuration %s', path)

        return cls(toplevels=toplevels,
                   default=config.get('default'),
                   is_designing=config.get('is_designing', False))

    def initiate_toplevel(self, key: str) -> Component:
        """
        Open the top level ``key`` from its document and register it.

        Raises
        ------
        KeyError
            If ``key`` is not a configured top level.
        ClassNotFound
            If its class cannot be resolved or is not a component.
        DuplicatedTopLevel
            If another live top level already uses the same name.
        """
        if key not in self.toplevels:
            raise KeyError(f'Unknown top level: {key}')

        classname, location = self.toplevels[key]

        cls = OakMeta.resolve(classname)

        if not issubclass(cls, Component):
            raise ClassNotFound(f'{classname} is not a component')

        log.info('initiating top level %s (%s) from %s', key, classname, location)

        component = cls(location=location, is_designing=self.is_designing, registry=self.registry)
        self._opened[key] = component

        return component

    def free_all_toplevels(self) -> None:
        """Destroy every live top level and empty the registry."""
        for component in list(self.registry):
            component.destroy()

        self.registry.clear()
        self._opened.clear()

    def run(self) -> Component:
        """
        Open the default top level and return it.

        Raises
        ------
        ParamsMissing
            If the application has no default top level.
        """
        if self.default is None:
            raise ParamsMissing('default')

        return self[self.default]

    # ---------- ---------- ---------- ---------- ---------- properties
    @property
    def default(self) -> str | None:
        """Key of the top level opened by :meth:`run`."""
        return self._default

    @default.setter
    def default(self, key: str | None) -> None:
        if key is not None and key not in self.toplevels:
            raise KeyError(f'Unknown top level: {key}')

        self._default = key


__all__ = [
    'Application',
    'Registry',
]
