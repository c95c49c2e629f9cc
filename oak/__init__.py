#  -*- coding: utf-8 -*-
"""
Oak: a component framework with pluggable property persistence.

Oak objects keep their state in a property bag whose entries are routed, one
by one, to storage backends called filers. Components build on that to form
ownership trees that are stored as a whole in one XML document per tree.

Key Features
------------
- **Property bag**: ``get``/``set`` over a flat mapping, with a class registry
- **Pluggable filers**: null, XML component document, SQL table row and HDF5 group
- **Component trees**: named children, weak owner references, XML round trip
- **Events**: per-component handler tables and importable handler references
- **Rich terminal output**: panels, forms and tables with the Rich library

Modules
-------
object
    OakObject (the property bag) and its registry metaclass OakMeta
properties
    OakProperty descriptor
filer, component_filer, sql, hdf5
    The filer contract and its backends
persistent
    Persistent, the per-property storage router
component
    Component and the HasChildren capability
datamodule
    DataModule, container of non-visual components
application
    Application and its Registry of top levels
display
    DisplaySettings and Displayable
errors
    The exception taxonomy

Examples
--------
Build a tree, store it and restore it:

>>> from oak import Component
>>>
>>> root = Component(name="root")
>>> child = Component(name="child1", owner=root)
>>> root.store_all("root.xml")
True
>>> Component(location="root.xml").get_child("child1").get("name")
'child1'
"""


from .errors import *
from .properties import OakProperty
from .object import OakObject, OakMeta
from .filer import Filer, NullFiler
from .component_filer import ComponentFiler
from .sql import SQLConnection, SQLRowFiler
from .hdf5 import HDF5Filer
from .persistent import Persistent
from .display import DisplaySettings, Displayable
from .component import Component, HasChildren
from .datamodule import DataModule
from .application import Application, Registry


__all__ = [
    "OakError",
    "OakProperty",
    "OakObject",
    "OakMeta",
    "Filer",
    "NullFiler",
    "ComponentFiler",
    "SQLConnection",
    "SQLRowFiler",
    "HDF5Filer",
    "Persistent",
    "DisplaySettings",
    "Displayable",
    "Component",
    "HasChildren",
    "DataModule",
    "Application",
    "Registry",
]


try:
    # this will run if oak is installed
    from importlib.metadata import metadata, PackageNotFoundError

    meta = metadata('oak-components')

    __author__ = meta['Author-email'] or meta['Author']
    __license__ = meta['License']
    __version__ = meta['Version']

except PackageNotFoundError:
    # this will run during development
    import toml
    from pathlib import Path

    pyproject_filepath = Path(__file__).parent.parent / "pyproject.toml"

    with pyproject_filepath.open() as file:
        pyproject = toml.load(file)

    __version__ = pyproject["project"]["version"]
    __author__ = pyproject["project"]["authors"][0]["name"]
    __license__ = pyproject["project"]["license"]["text"]
