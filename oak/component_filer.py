#  -*- coding: utf-8 -*-
"""
XML document filer for component trees.

A top-level component and everything it owns are stored in one XML document::

    <?xml version='1.0' encoding='utf-8'?>
    <oak-component>
        <prop name="caption" value="Login" />
        <owned name="user">
            <prop name="__classname__" value="myapp.widgets.Entry" />
            <prop name="size" value="20" />
        </owned>
    </oak-component>

The document is split in two partitions when loaded:

mine
    flat ``name -> value`` mapping of the top-level component itself;
owned
    ``child name -> mapping`` for every immediate child. The child's ``name``
    is taken from the tag attribute, and children owned by a child are nested
    under its ``__owned__`` key.

Property values are flat strings. Empty values are never written, so an empty
string and an absent property are equivalent after a round trip.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ElementTree

from pathlib import Path

from oak.errors import MissingFile, ErrorReadingXML, ErrorWritingXML
from oak.filer import Filer
from oak.object import CLASSNAME

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import Any


log = logging.getLogger(__name__)


LOCATION = '__location__'
"""Reserved property holding the document location of a top-level component."""

OWNED = '__owned__'
"""Key under which nested children travel inside a component data mapping."""

ROOT_TAG = 'oak-component'


class ComponentFiler(Filer):
    """
    Whole-document XML filer bound to one file.

    Parameters
    ----------
    location : str or Path
        Path of the XML document.
    create : bool, default False
        If True and the document does not exist, an empty document is written
        first. Otherwise a missing document raises :class:`MissingFile`.

    Raises
    ------
    MissingFile
        If ``location`` is None or the file does not exist (and ``create`` is
        False).
    ErrorWritingXML
        If ``create`` is True and the empty document cannot be written.

    Notes
    -----
    The file is opened and closed on every ``load``/``store``; no handle or
    cache is kept between calls. Concurrent writers are not synchronized.
    """

    # ========== ========== ========== ========== ========== special methods
    def __init__(self, location: str | Path | None, create: bool = False) -> None:
        if location is None:
            raise MissingFile(location)

        self.location: Path = Path(location)

        if not self.location.is_file():

            if not create:
                raise MissingFile(self.location)

            self._write(ElementTree.Element(ROOT_TAG))

    def __repr__(self) -> str:
        return f'{type(self).__name__}({str(self.location)!r})'

    # ========== ========== ========== ========== ========== private methods
    def _write(self, root: ElementTree.Element) -> None:
        ElementTree.indent(root, space='    ')

        try:
            data = ElementTree.tostring(root, encoding='utf-8', xml_declaration=True)
            self.location.write_bytes(data + b'\n')

        except (OSError, TypeError, ValueError) as error:
            raise ErrorWritingXML(self.location) from error

        log.debug('wrote component document %s', self.location)

    # ========== ========== ========== ========== ========== protected methods
    @staticmethod
    def _read_props(element: ElementTree.Element, data: dict[str, Any]) -> None:
        for prop in element.findall('prop'):

            name = prop.get('name')

            if not name:
                raise ErrorReadingXML('<prop> without name attribute')

            data[name] = prop.get('value', '')

    @classmethod
    def _read_owned(cls, element: ElementTree.Element) -> dict[str, dict[str, Any]]:
        owned = {}

        for child in element.findall('owned'):

            name = child.get('name')

            if not name:
                raise ErrorReadingXML('<owned> without name attribute')

            if name in owned:
                raise ErrorReadingXML(f'duplicated owned component {name!r}')

            data = {'name': name}
            cls._read_props(child, data)
            data['name'] = name

            nested = cls._read_owned(child)

            if nested:
                data[OWNED] = nested

            owned[name] = data

        return owned

    @staticmethod
    def _write_props(element: ElementTree.Element,
                     data: dict[str, Any],
                     skip: tuple[str, ...]) -> None:

        for name in sorted(data):

            value = data[name]

            if name in skip or value is None or value == '':
                continue

            ElementTree.SubElement(element, 'prop', name=str(name), value=str(value))

    @classmethod
    def _write_owned(cls, element: ElementTree.Element, owned: dict[str, dict[str, Any]]) -> None:
        for name in sorted(owned):

            data = owned[name]

            child = ElementTree.SubElement(element, 'owned', name=str(name))

            cls._write_props(child, data, skip=('name', LOCATION, OWNED))
            cls._write_owned(child, data.get(OWNED) or {})

    # ========== ========== ========== ========== ========== public methods
    def read(self) -> dict[str, dict[str, Any]]:
        """
        Parse the whole document.

        Returns
        -------
        dict
            ``{"mine": {...}, "owned": {...}}``.

        Raises
        ------
        ErrorReadingXML
            If the file cannot be read, is not well formed, or does not follow
            the component document layout.
        """
        try:
            tree = ElementTree.parse(self.location)

        except (OSError, ElementTree.ParseError) as error:
            raise ErrorReadingXML(self.location) from error

        root = tree.getroot()

        if root.tag != ROOT_TAG:
            raise ErrorReadingXML(f'unexpected root element <{root.tag}> in {self.location}')

        mine = {}
        self._read_props(root, mine)

        log.debug('read component document %s', self.location)

        return {'mine': mine, 'owned': self._read_owned(root)}

    def load(self, *names: str) -> dict[str, Any]:
        """
        Load from the document.

        Parameters
        ----------
        *names : str
            Without names, the whole document is returned as
            ``{"mine": ..., "owned": ...}``. With names, the subset of "mine"
            holding those names is returned, which is what a top-level
            component asks for when it misses a property.
        """
        document = self.read()

        if not names:
            return document

        mine = document['mine']

        return {name: mine[name] for name in names if name in mine}

    def store(self, values: dict[str, Any] | None = None, /, **kwargs: Any) -> bool:
        """
        Overwrite the document.

        Parameters
        ----------
        mine : dict
            Complete property mapping of the top-level component. The location
            and type markers are not written.
        owned : dict
            Complete ``child name -> mapping`` snapshot. The ``name`` entry of
            each child is not written (it is the tag attribute); nested
            children are taken from the ``__owned__`` entry.

        Both partitions replace what the document held: callers pass the full
        current state, never a delta. A missing partition is written empty.

        Raises
        ------
        ValueError
            If keys other than ``mine`` and ``owned`` are given.
        ErrorWritingXML
            If the destination cannot be written.
        """
        data = self._merge(values, kwargs)

        unexpected = set(data) - {'mine', 'owned'}

        if unexpected:
            raise ValueError(f'Unexpected partitions: {sorted(unexpected)}')

        root = ElementTree.Element(ROOT_TAG)

        self._write_props(root, data.get('mine') or {}, skip=(LOCATION, CLASSNAME, OWNED))
        self._write_owned(root, data.get('owned') or {})

        self._write(root)

        return True


__all__ = [
    'ComponentFiler',
    'LOCATION',
    'OWNED',
]
