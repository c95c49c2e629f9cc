#  -*- coding: utf-8 -*-
"""
Container for non-visual components.

A :class:`DataModule` is a top-level component grouping the components an
application needs that have no visual representation, like database
connections or shared settings. Besides ownership, it offers lookups across
its whole subtree.

Examples
--------
>>> module = DataModule(location='data.xml')
>>> connection = module.find('main_db')
>>> [child.name for child in module.components_of('myapp.db.Connection')]
['main_db']
"""

from __future__ import annotations

from oak.component import Component
from oak.errors import NotRegistered

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import Iterator


class DataModule(Component):
    """Component owning non-visual components."""

    def walk(self) -> Iterator[Component]:
        """Yield every component below this one, depth first, parents first."""
        return _walk(self)

    def find(self, name: str) -> Component:
        """
        Return the first component named ``name`` in the subtree.

        Raises
        ------
        NotRegistered
            If no component of the subtree has this name.
        """
        for component in self.walk():
            if component.name == name:
                return component

        raise NotRegistered(name)

    def components_of(self, cls: type | str) -> list[Component]:
        """Components of the subtree that are instances of ``cls`` (class or qualified name)."""
        return [component for component in self.walk() if component.instance_of(cls)]


def _walk(component: Component) -> Iterator[Component]:
    for child in component:
        yield child
        yield from _walk(child)


__all__ = [
    'DataModule',
]
