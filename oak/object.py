#  -*- coding: utf-8 -*-
"""
Base object model of Oak: the property bag.

Every Oak object keeps its state in a flat mapping from property name to
value (the *property bag*). This module provides:

- :class:`OakObject`, the bag itself with ``get``/``set`` primitives and the
  ``construct``/``after_construction`` construction hooks;
- :class:`OakMeta`, the metaclass keeping a registry of every Oak class under
  its fully qualified name and collecting declared
  :class:`~oak.properties.OakProperty` descriptors across the MRO;
- small helpers shared by the rest of the package.

The bag has no storage intelligence. Storage routing is added by
:class:`oak.persistent.Persistent`.
"""

from __future__ import annotations

import importlib
import logging

from abc import ABCMeta

from oak.errors import ClassNotFound
from oak.properties import OakProperty

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import Any, Iterable, Type


log = logging.getLogger(__name__)


CLASSNAME = '__classname__'
"""Reserved property holding the fully qualified class name of an object."""


def get_full_qualified_name(cls: type) -> str:
    """
    Return the fully qualified class name used by the class registry.

    For built-in types (module is ``builtins``), returns ``cls.__qualname__``.
    For user-defined types, returns ``"<module>.<qualname>"``.

    Parameters
    ----------
    cls : type
        The class to identify.

    Returns
    -------
    str
        Fully qualified name suitable for registry keys and for the
        ``__classname__`` property.
    """
    module = cls.__module__

    if module is None or module == 'builtins':
        return cls.__qualname__

    return f"{module}.{cls.__qualname__}"


def check_types(obj: Any,
                types: type | tuple[type, ...],
                can_be_none: bool = False,
                raise_error: bool = True) -> bool:
    """
    Check whether an object is an instance of expected types.

    Parameters
    ----------
    obj : object
        Value to test.
    types : type or tuple of type
        Expected type(s).
    can_be_none : bool, default False
        If True, ``None`` is accepted as valid.
    raise_error : bool, default True
        If True, raises TypeError when the check fails.

    Returns
    -------
    bool

    Raises
    ------
    TypeError
        If ``raise_error`` is True and the check fails.

    Examples
    --------
    >>> check_types(1, int)
    True
    >>> check_types("x", int, raise_error=False)
    False
    """
    if can_be_none:
        if isinstance(types, tuple):
            types = (*types, None.__class__)
        else:
            types = (types, None.__class__)

    result = isinstance(obj, types)

    if not result and raise_error:

        if isinstance(types, tuple):
            cls_names = ', '.join(get_full_qualified_name(cls) for cls in types)
        else:
            cls_names = get_full_qualified_name(types)

        error_msg = f"Expected instance of one of the following classes: {cls_names}. " \
                    f"Given {get_full_qualified_name(type(obj))} instead"
        raise TypeError(error_msg)

    return result


class OakMeta(ABCMeta):
    """
    Metaclass implementing the Oak class registry.

    Any subclass of :class:`OakObject` is registered under its fully
    qualified name, which is the value stored in the ``__classname__``
    property of its instances. The registry is what lets a component tree be
    rebuilt from a document that only carries class names.

    Additionally, every class gets an ``_oak_properties`` mapping with the
    :class:`~oak.properties.OakProperty` descriptors found along its MRO.

    The metaclass supports:

    - lookup: ``OakObject[qualname]``
    - membership: ``qualname in OakObject`` or ``cls in OakObject``
    - resolution with import fallback: ``OakMeta.resolve(qualname)``
    """

    _registry: dict[str, type] = {}

    # ========== ========== ========== ========== ========== special methods
    def __new__(mcs,
                name: str,
                bases: tuple[type, ...],
                namespace: dict[str, Any],
                **kwargs: Any) -> type:

        cls = super().__new__(mcs, name, bases, namespace, **kwargs)

        OakMeta._registry[get_full_qualified_name(cls)] = cls

        cls._oak_properties = {}

        for base in reversed(cls.__mro__):

            if base is object:
                continue

            for attr_name, attr_value in base.__dict__.items():

                if isinstance(attr_value, OakProperty):
                    cls._oak_properties[attr_name] = attr_value

        return cls

    def __getitem__(cls, qualname: str) -> type:
        """
        Resolve a registered Oak class by fully qualified name.

        Raises
        ------
        KeyError
            If the class is not registered.
        """
        return OakMeta._registry[qualname]

    def __contains__(cls, item: str | type) -> bool:
        if isinstance(item, str):
            return item in OakMeta._registry

        if isinstance(item, type):
            return item in OakMeta._registry.values()

        raise TypeError('Expected the class full qualified name or the class itself')

    # ========== ========== ========== ========== ========== public methods
    @staticmethod
    def resolve(qualname: str) -> type:
        """
        Turn a fully qualified class name into a class.

        The registry is consulted first. When the name is unknown, the longest
        importable module prefix of the dotted name is imported (which
        registers the classes it defines) and the remaining parts are looked up
        as attributes, so nested classes resolve as well.

        Parameters
        ----------
        qualname : str
            Name such as ``"myapp.forms.LoginForm"``.

        Returns
        -------
        type

        Raises
        ------
        ClassNotFound
            If no module prefix can be imported or the attribute path does not
            lead to a class.
        """
        if not qualname or not isinstance(qualname, str):
            raise ClassNotFound(qualname)

        if qualname in OakMeta._registry:
            return OakMeta._registry[qualname]

        parts = qualname.split('.')

        for index in range(len(parts) - 1, 0, -1):

            module_name = '.'.join(parts[:index])

            try:
                obj = importlib.import_module(module_name)
            except ModuleNotFoundError as error:
                if error.name is not None and not module_name.startswith(error.name):
                    # the module exists but one of its own imports is missing
                    raise ClassNotFound(qualname) from error
                continue
            except ImportError as error:
                raise ClassNotFound(qualname) from error

            log.debug('imported %s while resolving %s', module_name, qualname)

            try:
                for attr in parts[index:]:
                    obj = getattr(obj, attr)
            except AttributeError as error:
                raise ClassNotFound(qualname) from error

            if not isinstance(obj, type):
                raise ClassNotFound(qualname)

            return obj

        raise ClassNotFound(qualname)

    # ---------- ---------- ---------- ---------- ---------- properties
    @property
    def oak_properties(cls) -> dict[str, OakProperty]:
        """
        dict[str, OakProperty]
            Copy of the declared properties of this class, inherited ones
            included.
        """
        return {**cls._oak_properties}

    @property
    def registered_types(cls) -> list[type]:
        """list of every Oak class currently registered."""
        return list(OakMeta._registry.values())


class OakObject(metaclass=OakMeta):
    """
    Flat property bag with construction hooks.

    Construction runs in two steps, both overridable (always call ``super``):

    1. :meth:`construct` receives the keyword parameters given to the class;
       the base implementation feeds them into the bag.
    2. :meth:`after_construction` runs once the object is fully built.

    The reserved property ``__classname__`` is always present and holds the
    fully qualified name of the concrete class.

    Examples
    --------
    >>> obj = OakObject(color='blue', size=3)
    >>> obj.get('color')
    'blue'
    >>> obj.get('color', 'size', 'missing')
    ('blue', 3, None)
    >>> obj.set(color='red')
    True
    """

    # ========== ========== ========== ========== ========== special methods
    def __init__(self, **params: Any) -> None:
        self._properties: dict[str, Any] = {CLASSNAME: get_full_qualified_name(type(self))}
        self.construct(**params)
        self.after_construction()

    def __repr__(self) -> str:
        return f'<{type(self).__name__} {self._properties.get("name", hex(id(self)))}>'

    # ========== ========== ========== ========== ========== protected methods
    @staticmethod
    def _merge(values: dict[str, Any] | None, kwargs: dict[str, Any]) -> dict[str, Any]:
        # set(mapping) and set(**kwargs) are both accepted
        if values is None:
            return dict(kwargs)

        check_types(values, dict)

        return {**values, **kwargs}

    # ========== ========== ========== ========== ========== public methods
    def construct(self, **params: Any) -> None:
        """
        Construction hook.

        The base implementation stores every parameter as a property.
        Subclasses pop the parameters they understand and pass the rest on.
        """
        if params:
            OakObject.set(self, params)

    def after_construction(self) -> None:
        """Hook called after :meth:`construct` completes."""

    def message(self, message: Any) -> Any:
        """
        Receive a message from another object.

        Objects talk to each other by calling this hook with an arbitrary
        payload. It does nothing by default; subclasses override it to react.
        """

    def get(self, *names: str) -> Any:
        """
        Read one or several properties.

        Parameters
        ----------
        *names : str
            Property names.

        Returns
        -------
        object or tuple
            The value when one name is given, otherwise a tuple aligned with
            ``names``. Missing properties resolve to ``None``.
        """
        values = tuple(self._properties.get(name) for name in names)

        if len(values) == 1:
            return values[0]

        return values

    def set(self, values: dict[str, Any] | None = None, /, **kwargs: Any) -> bool:
        """
        Overwrite properties unconditionally.

        Accepts a mapping, keyword arguments or both.

        Returns
        -------
        bool
            Always True.
        """
        self._properties.update(self._merge(values, kwargs))
        return True

    def has_property(self, name: str) -> bool:
        """Return True if ``name`` is present in the bag (loaded or set)."""
        return name in self._properties

    def property_names(self) -> list[str]:
        """Return the names currently present in the bag."""
        return list(self._properties)

    def assign(self, other: OakObject) -> None:
        """
        Copy every property of ``other`` into this object through :meth:`set`.

        The type marker is not copied.
        """
        check_types(other, OakObject)

        self.set({name: value for name, value in other._properties.items() if name != CLASSNAME})

    def instance_of(self, cls: type | str) -> bool:
        """
        Capability check by class or by fully qualified class name.

        Parameters
        ----------
        cls : type or str

        Returns
        -------
        bool
            True if this object is an instance of ``cls`` or of one of its
            subclasses.
        """
        if isinstance(cls, str):
            return any(get_full_qualified_name(base) == cls for base in type(self).__mro__)

        return isinstance(self, cls)

    def hierarchy_tree(self) -> list[str]:
        """Fully qualified names of the class hierarchy, most generic first."""
        return [get_full_qualified_name(base) for base in reversed(type(self).__mro__)]

    # ---------- ---------- ---------- ---------- ---------- properties
    @property
    def classname(self) -> str:
        """Fully qualified name of the concrete class."""
        return self._properties[CLASSNAME]


def iter_names(values: Iterable[str]) -> list[str]:
    """Return ``values`` without duplicates, keeping the first occurrence order."""
    return list(dict.fromkeys(values))


__all__ = [
    'CLASSNAME',
    'OakMeta',
    'OakObject',
    'check_types',
    'get_full_qualified_name',
]
