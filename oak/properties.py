#  -*- coding: utf-8 -*-
"""
Declared property accessors for Oak objects.

An :class:`OakProperty` exposes one entry of an object's property bag as a
regular Python attribute. Reads and writes go through the object's ``get`` and
``set`` methods, so whatever storage routing the object implements (filers,
component feeding, owner notification) applies to attribute access as well.
"""

from __future__ import annotations

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import TypeVar, Callable, Any, TypeAlias, Self


T = TypeVar('T')
"""Represent the type of the property"""

Getter: TypeAlias = Callable[[object], T]
Observer: TypeAlias = Callable[[object, T, T], None]
Parser: TypeAlias = Callable[[object, Any], T]


class OakProperty:
    """
    Descriptor mapping an attribute to a property-bag entry.

    Parameters
    ----------
    default : object or callable, optional
        Value returned when the bag has no value (or ``None``) for the
        property. If callable, it is called as ``default(instance)``.
    parser : callable, optional
        Invoked before assignment as ``parser(instance, raw_value)``; its
        return value is what gets stored.
    observer : callable, optional
        Invoked after assignment as ``observer(instance, old_value, new_value)``.
    readonly : bool, default False
        If True, assignment raises AttributeError.
    doc : str, optional
        Docstring of the attribute.

    Attributes
    ----------
    name : str
        Attribute name, which is also the property name in the bag (set by
        ``__set_name__``).
    owner : type
        Owning class.

    Examples
    --------
    >>> class Label(Component):
    ...     caption = OakProperty(default='')
    ...
    ...     @caption.parser
    ...     def caption(self, value):
    ...         return str(value).strip()
    >>> label = Label(name='title')
    >>> label.caption = '  Hello '
    >>> label.get('caption')
    'Hello'
    """

    # ========== ========== ========== ========== ========== special methods
    def __init__(self,
                 *,
                 default: T | Getter | None = None,
                 parser: Parser | None = None,
                 observer: Observer | None = None,
                 readonly: bool = False,
                 doc: str | None = None) -> None:

        self._default: T | Getter | None = default
        self._parser: Parser | None = parser
        self._observer: Observer | None = observer
        self._readonly: bool = readonly

        self.__doc__: str | None = doc

    def __set_name__(self, owner: type, name: str) -> None:
        self.name: str = name
        self.owner: type = owner

    def __get__(self, instance: object | None, owner: type) -> T | Self:
        if instance is None:
            # Accessing from class, return descriptor for introspection
            return self

        value = instance.get(self.name)

        if value is None:
            value = self._resolve_default(instance)

        return value

    def __set__(self, instance: object, value: Any) -> None:
        if self._readonly:
            raise AttributeError(f"can't set attribute '{self.name}' (read-only property)")

        if value is None:
            value = self._resolve_default(instance)

        if self._parser is not None:
            value = self._parser(instance, value)

        old_value = self.__get__(instance, self.owner)

        instance.set({self.name: value})

        if self._observer is not None:
            self._observer(instance, old_value, value)

    # ========== ========== ========== ========== ========== private methods
    def _resolve_default(self, instance: object) -> Any:
        if callable(self._default):
            return self._default(instance)

        return self._default

    def _copy(self, **changes: Any) -> Self:
        config = {
            'default': self._default,
            'parser': self._parser,
            'observer': self._observer,
            'readonly': self._readonly,
            'doc': self.__doc__,
        }
        config.update(changes)

        return type(self)(**config)

    # ========== ========== ========== ========== ========== public methods
    def default(self, func: Getter) -> Self:
        """Return a copy of this descriptor using ``func`` as default factory."""
        return self._copy(default=func, doc=self.__doc__ or func.__doc__)

    def parser(self, func: Parser) -> Self:
        """Return a copy of this descriptor using ``func`` as parser."""
        return self._copy(parser=func)

    def observer(self, func: Observer) -> Self:
        """Return a copy of this descriptor using ``func`` as observer."""
        return self._copy(observer=func)

    # ---------- ---------- ---------- ---------- ---------- properties
    @property
    def readonly(self) -> bool:
        """Check if property is read-only."""
        return self._readonly


__all__ = [
    'OakProperty',
]
