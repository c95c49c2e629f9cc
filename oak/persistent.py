#  -*- coding: utf-8 -*-
"""
Backend-agnostic property storage.

:class:`Persistent` routes every property name to a *filer* (see
:mod:`oak.filer`) through an overridable policy, :meth:`Persistent.choose_filer`.
Reading a property that is not in the bag yet loads it from its filer; writing
a property stores it in its filer and mirrors it in the bag.

Both directions batch by filer: N properties spread over K filers cost K
``load`` (or ``store``) calls, never N.

Filers are looked up by id:

- ``"default"`` is always a :class:`~oak.filer.NullFiler`;
- other ids come from filers injected at construction
  (``Persistent(filers={...})``) or with :meth:`Persistent.attach_filer`;
- failing that, from the class-level ``filer_factories`` mapping, whose
  values are called with the object and must return a filer.

Examples
--------
>>> class Settings(Persistent):
...     filer_routes = {'threshold': 'disk'}
...     filer_factories = {'disk': lambda obj: HDF5Filer('settings.h5')}
>>> settings = Settings()
>>> settings.set(threshold=0.5, label='transient')
True
>>> settings.forget('threshold')
>>> settings.get('threshold')
0.5
"""

from __future__ import annotations

import logging

from oak.errors import UnknownFiler
from oak.filer import Filer, NullFiler
from oak.object import OakObject, check_types, iter_names

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import Any, Callable, Iterable


log = logging.getLogger(__name__)


DEFAULT_FILER = 'default'


class Persistent(OakObject):
    """
    Property bag with per-property storage routing.

    Parameters
    ----------
    filers : dict, optional
        ``filer id -> Filer`` mapping injected into the object.
    **params
        Initial properties, fed into the bag without touching any filer.

    Attributes
    ----------
    filer_routes : dict[str, str]
        Class-level ``property name -> filer id`` table used by the default
        :meth:`choose_filer`. Unrouted names go to ``"default"``.
    filer_factories : dict[str, callable]
        Class-level ``filer id -> factory(obj)`` table used by
        :meth:`create_filer` for ids that were not injected.
    """

    filer_routes: dict[str, str] = {}
    filer_factories: dict[str, Callable[[Persistent], Filer]] = {}

    # ========== ========== ========== ========== ========== special methods
    ...

    # ========== ========== ========== ========== ========== protected methods
    def _group_by_filer(self, names: Iterable[str]) -> dict[str, list[str]]:
        groups: dict[str, list[str]] = {}

        for name in names:
            groups.setdefault(self.choose_filer(name), []).append(name)

        return groups

    # ========== ========== ========== ========== ========== public methods
    def construct(self, filers: dict[str, Filer] | None = None, **params: Any) -> None:
        self._filers: dict[str, Filer] = {}

        for filer_id, filer in (filers or {}).items():
            self.attach_filer(filer_id, filer)

        super().construct(**params)

    def after_construction(self) -> None:
        super().after_construction()
        self.load_initial_properties()

    def load_initial_properties(self) -> None:
        """
        Hook run right after construction.

        Override it to warm up the bag, typically with ``self.get(...)`` over
        the properties every instance is going to need.
        """

    def choose_filer(self, name: str) -> str:
        """
        Return the id of the filer responsible for property ``name``.

        The default policy looks the name up in ``filer_routes`` and falls back
        to ``"default"``.
        """
        return self.filer_routes.get(name, DEFAULT_FILER)

    def create_filer(self, filer_id: str) -> Filer:
        """
        Build the filer with id ``filer_id``.

        Raises
        ------
        UnknownFiler
            If there is no way to build a filer with this id.
        """
        if filer_id == DEFAULT_FILER:
            return NullFiler()

        factory = self.filer_factories.get(filer_id)

        if factory is None:
            raise UnknownFiler(filer_id)

        filer = factory(self)
        check_types(filer, Filer)

        return filer

    def test_filer(self, filer_id: str) -> Filer:
        """Return the filer ``filer_id``, creating and caching it on first use."""
        filer = self._filers.get(filer_id)

        if filer is None:
            filer = self._filers[filer_id] = self.create_filer(filer_id)
            log.debug('%r created filer %s: %r', self, filer_id, filer)

        return filer

    def attach_filer(self, filer_id: str, filer: Filer) -> None:
        """Inject ``filer`` under ``filer_id``, replacing any previous one."""
        check_types(filer, Filer)
        self._filers[filer_id] = filer

    def get(self, *names: str) -> Any:
        """
        Read one or several properties, loading the missing ones.

        Names not in the bag are grouped by filer and loaded with one ``load``
        call per filer. Loaded values are cached in the bag. Names the filer
        does not know stay absent (and resolve to ``None``), so they are asked
        again on the next read.
        """
        missing = [name for name in iter_names(names) if name not in self._properties]

        for filer_id, group in self._group_by_filer(missing).items():

            loaded = self.test_filer(filer_id).load(*group)

            self._properties.update({name: loaded[name] for name in group if name in loaded})

        return super().get(*names)

    def set(self, values: dict[str, Any] | None = None, /, **kwargs: Any) -> bool:
        """
        Store properties through their filers and mirror them in the bag.

        One ``store`` call is issued per filer with only the subset of values
        routed to it. Filer errors propagate, in which case the bag is left
        untouched.
        """
        data = self._merge(values, kwargs)

        for filer_id, group in self._group_by_filer(data).items():
            self.test_filer(filer_id).store({name: data[name] for name in group})

        return super().set(data)

    def feed(self, values: dict[str, Any] | None = None, /, **kwargs: Any) -> bool:
        """Set properties in the bag only, without involving any filer."""
        return OakObject.set(self, values, **kwargs)

    def forget(self, *names: str) -> None:
        """
        Evict cached values so the next :meth:`get` asks the filers again.

        Without names every property except the reserved ``__*__`` markers is
        evicted.
        """
        if not names:
            names = tuple(name for name in self._properties if not name.startswith('__'))

        for name in names:
            self._properties.pop(name, None)

    # ---------- ---------- ---------- ---------- ---------- properties
    @property
    def filers(self) -> dict[str, Filer]:
        """Copy of the filers instantiated so far."""
        return {**self._filers}


__all__ = [
    'DEFAULT_FILER',
    'Persistent',
]
