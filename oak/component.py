#  -*- coding: utf-8 -*-
"""
Component trees.

A :class:`Component` is a persistent object that can own other components,
forming a strict tree. The root of a tree (a component without owner) is the
unit of persistence: it is bound to one XML document (see
:mod:`oak.component_filer`) that holds its own properties and, embedded, the
properties of every component it owns, at any depth.

A component is built in one of three ways::

    # fresh, from explicit properties
    form = LoginForm(name='login', caption='Login')

    # from a nested mapping, as done for owned components
    entry = Entry(restore={'name': 'user', 'size': '20'}, owner=form)

    # from a document, restoring the whole tree
    form = LoginForm(location='forms/login.xml')

Mutations of a component only touch memory. The tree is committed with
:meth:`Component.store_all`, which rewrites the root document from the
in-memory snapshot.

Event handlers are callables bound per component with :meth:`Component.bind`,
or import references (``"package.module:function"``) stored in a property named
after the event. They receive the component as single argument.
"""

from __future__ import annotations

import importlib
import logging
import weakref

from abc import ABC, abstractmethod

import pandas

from rich.console import RenderableType, Group
from rich.panel import Panel
from rich.text import Text

from oak.component_filer import ComponentFiler, LOCATION, OWNED
from oak.display import Displayable
from oak.errors import (OakError, ClassNotFound, MissingComponentName, MissingOwnedClassname,
                        MissingOwnedFile, ErrorCreatingOwned, AlreadyRegistered, NotRegistered,
                        AlreadyOwned, CircularOwnership, UnknownHandler, DuplicatedTopLevel)
from oak.filer import Filer
from oak.object import OakMeta, CLASSNAME, check_types
from oak.persistent import Persistent
from oak.properties import OakProperty

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import Any, Callable, Iterator, TypeAlias


log = logging.getLogger(__name__)


COMPONENT_FILER = 'COMPONENT'
"""Filer id of the XML document of a top-level component."""

Handler: TypeAlias = Callable[['Component'], Any]


def resolve_handler(reference: str) -> Handler:
    """
    Import the callable designated by ``reference``.

    Parameters
    ----------
    reference : str
        ``"package.module:function"`` or ``"package.module.function"``. The
        part after the colon may be a dotted attribute path.

    Raises
    ------
    UnknownHandler
        If the module cannot be imported or the attribute is missing or not
        callable.
    """
    if ':' in reference:
        module_name, _, attr_path = reference.partition(':')
    else:
        module_name, _, attr_path = reference.rpartition('.')

    if not module_name or not attr_path:
        raise UnknownHandler(reference)

    try:
        obj = importlib.import_module(module_name)

        for attr in attr_path.split('.'):
            obj = getattr(obj, attr)

    except (ImportError, AttributeError) as error:
        raise UnknownHandler(reference) from error

    if not callable(obj):
        raise UnknownHandler(reference)

    return obj


class HasChildren(ABC):
    """
    Capability of owning named children.

    Implementers provide the four abstract methods; mapping-style access
    (``obj[name]``, ``name in obj``, iteration and ``len`` over children) is
    derived from them.
    """

    # ========== ========== ========== ========== ========== special methods
    def __getitem__(self, name: str) -> Any:
        return self.get_child(name)

    def __contains__(self, item: Any) -> bool:
        if isinstance(item, str):
            return item in self.list_children()

        return any(item is self.get_child(name) for name in self.list_children())

    def __iter__(self) -> Iterator[Any]:
        return iter([self.get_child(name) for name in self.list_children()])

    def __len__(self) -> int:
        return len(self.list_children())

    # ========== ========== ========== ========== ========== public methods
    @abstractmethod
    def get_child(self, name: str) -> Any:
        ...

    @abstractmethod
    def register_child(self, *children: Any) -> bool:
        ...

    @abstractmethod
    def free_child(self, name: str) -> Any:
        ...

    @abstractmethod
    def list_children(self) -> list[str]:
        ...


class Component(Persistent, HasChildren, Displayable):
    """
    Node of a component tree.

    Parameters
    ----------
    restore : dict, optional
        Already materialized properties of the component, as parsed from the
        document of its top level. Children to create may be given under
        ``"__owned__"``.
    location : str or Path, optional
        XML document to restore the whole tree from. The component becomes
        the top level bound to this document.
    owner : Component, optional
        Component that owns this one. Registration happens before the
        creation event is dispatched.
    is_designing : bool, default False
        Design mode. While designing, no event is dispatched.
    registry : Registry, optional
        Application registry of top-level components. The component is
        registered under its name and deregistered by :meth:`destroy`.
    handlers : dict, optional
        ``event -> callable`` table, bound with :meth:`bind` before the
        creation event is dispatched.
    filers : dict, optional
        Extra filers, see :class:`~oak.persistent.Persistent`.
    **properties
        Properties of a fresh component. They cannot be combined with
        ``restore`` or ``location``.

    Raises
    ------
    MissingComponentName
        If the component ends up without a name.
    ValueError
        If explicit properties are given together with ``restore`` or
        ``location``.

    Examples
    --------
    >>> root = Component(name='root')
    >>> child = Component(name='child1', owner=root)
    >>> root.get_child('child1') is child
    True
    >>> root.store_all('root.xml')
    True
    >>> Component(location='root.xml')['child1'].get('name')
    'child1'
    """

    # ========== ========== ========== ========== ========== class attributes
    name: str = OakProperty(doc="""
        Name of the component, unique among the children of its owner.

        Assigning it goes through :meth:`change_name`.
        """)

    # ========== ========== ========== ========== ========== special methods
    def __bool__(self) -> bool:
        # a component without children is still a component
        return True

    # ========== ========== ========== ========== ========== private methods
    def _snapshot_owned(self) -> dict[str, dict[str, Any]]:
        owned = {}

        for name, properties in self._owned_properties.items():

            data = {**properties}
            nested = self._children[name]._snapshot_owned()

            if nested:
                data[OWNED] = nested

            owned[name] = data

        return owned

    # ========== ========== ========== ========== ========== protected methods
    def _title(self) -> Text:
        return Text(f'{type(self).__name__} {self.name}', style='italic bold bright_yellow')

    def _content(self) -> RenderableType:
        contents = []

        # ---------- ---------- ---------- ---------- properties
        properties = {name: value for name, value in sorted(self._properties.items())
                      if not name.startswith('__')}

        contents.append(Panel(self.format_as_form(properties),
                              title=Text('Properties', style='bold bright_yellow'),
                              title_align='right',
                              expand=True))

        # ---------- ---------- ---------- ---------- children
        if self._children:

            frame = pandas.DataFrame(
                [(name, child.classname, len(child.property_names()), len(child))
                 for name, child in sorted(self._children.items())],
                columns=['name', 'class', 'properties', 'children']
            ).set_index('name')

            contents.append(Panel(self.format_as_table(frame),
                                  title=Text('Children', style='bold bright_yellow'),
                                  title_align='right',
                                  expand=True))

        # ---------- ---------- ---------- ---------- location
        location = self._properties.get(LOCATION)

        if location is not None:
            contents.append(Panel(self.format_as_form({'location': location})))

        return Group(*contents)

    # ========== ========== ========== ========== ========== public methods
    def construct(self,
                  restore: dict[str, Any] | None = None,
                  location: Any = None,
                  owner: Component | None = None,
                  is_designing: bool = False,
                  registry: Any = None,
                  handlers: dict[str, Handler] | None = None,
                  filers: dict[str, Filer] | None = None,
                  **properties: Any) -> None:

        self._children: dict[str, Component] = {}
        self._owned_properties: dict[str, dict[str, Any]] = {}
        self._owner: weakref.ref | None = None
        self._is_designing: bool = bool(is_designing)
        self._registry = None
        self._handlers: dict[str, Handler] = {}
        self._resolved_handlers: dict[str, tuple[str, Handler]] = {}
        self._pending_events: dict[str, None] = {}

        super().construct(filers=filers)

        if properties and (restore is not None or location is not None):
            raise ValueError('Explicit properties cannot be combined with restore or location')

        if location is not None:
            self.restore_toplevel(location)

        elif restore is not None:
            self.restore(restore)

        else:
            self.restore(properties)

        for event, handler in (handlers or {}).items():
            self.bind(event, handler)

        if owner is not None:
            owner.register_child(self)

        if registry is not None:
            registry.register(self)
            self._registry = registry

    def after_construction(self) -> None:
        super().after_construction()
        self.dispatch('ev_onCreate')

    # ---------- ---------- ---------- ---------- restoring
    def restore_toplevel(self, location: Any) -> None:
        """
        Bind this component to the document at ``location`` and restore the
        whole tree from it.

        Raises
        ------
        MissingFile
            If the document does not exist.
        ErrorReadingXML
            If the document cannot be parsed.
        """
        self.feed({LOCATION: str(location)})

        document = self.test_filer(COMPONENT_FILER).load()

        log.info('restoring %s from %s', type(self).__name__, location)

        self.restore({**document['mine'], OWNED: document['owned']})

    def restore(self, data: dict[str, Any]) -> None:
        """
        Feed already materialized properties and create the children listed
        under ``"__owned__"``.

        Raises
        ------
        MissingComponentName
            If ``data`` has no (or an empty) ``name``.
        """
        check_types(data, dict)

        if not data.get('name'):
            raise MissingComponentName(type(self).__name__)

        self.feed({key: value for key, value in data.items() if key not in (OWNED, CLASSNAME)})

        owned = data.get(OWNED) or {}

        for child_name in sorted(owned):
            self.create_owned({'name': child_name, **owned[child_name]})

        self.child_update()

    def create_owned(self, data: dict[str, Any]) -> Component:
        """
        Instantiate the owned component described by ``data``.

        The class is taken from ``data["__classname__"]``. The new component
        inherits the design mode of this one.

        Raises
        ------
        MissingOwnedClassname
            If the class name is absent.
        MissingOwnedFile
            If the class cannot be resolved.
        ErrorCreatingOwned
            If the class is not a component or its construction fails with an
            error that is not an Oak error (Oak errors propagate as they are).
        """
        classname = data.get(CLASSNAME)

        if not classname:
            raise MissingOwnedClassname(data.get('name'))

        try:
            cls = OakMeta.resolve(classname)

        except ClassNotFound as error:
            raise MissingOwnedFile(classname) from error

        if not issubclass(cls, Component):
            raise ErrorCreatingOwned(f'{classname} is not a component')

        try:
            return cls(restore=data, owner=self, is_designing=self._is_designing)

        except OakError:
            raise

        except Exception as error:
            raise ErrorCreatingOwned(data.get('name')) from error

    # ---------- ---------- ---------- ---------- ownership
    def register_child(self, *children: Component) -> bool:
        """
        Register ``children`` under their names.

        All children are validated before any of them is registered.

        Raises
        ------
        AlreadyRegistered
            If a name is already used by a child of this component.
        CircularOwnership
            If a child is this component or one of its ancestors.
        AlreadyOwned
            If a child already has another owner.
        """
        names = set()

        for child in children:

            check_types(child, Component)

            name = child._properties.get('name')

            if not name:
                raise MissingComponentName(type(child).__name__)

            if name in self._children or name in names:
                raise AlreadyRegistered(name)

            if child is self or child in self.ancestors:
                raise CircularOwnership(name)

            owner = child.owner

            if owner is not None and owner is not self:
                raise AlreadyOwned(name)

            names.add(name)

        for child in children:

            name = child._properties['name']

            self._children[name] = child
            self._owned_properties[name] = child._properties

            child.set_owner(self)

        return True

    def free_child(self, name: str) -> Component:
        """
        Release the child registered as ``name`` and return it.

        The child becomes a top level again.

        Raises
        ------
        NotRegistered
            If no child has this name.
        """
        if name not in self._children:
            raise NotRegistered(name)

        child = self._children.pop(name)
        self._owned_properties.pop(name)

        child._owner = None

        return child

    def get_child(self, name: str) -> Component:
        """
        Return the child registered as ``name``.

        Raises
        ------
        NotRegistered
            If no child has this name.
        """
        if name not in self._children:
            raise NotRegistered(name)

        return self._children[name]

    def list_children(self) -> list[str]:
        """Names of the children, in registration order."""
        return list(self._children)

    def set_owner(self, owner: Component) -> bool:
        """
        Set the owner back-reference.

        Raises
        ------
        AlreadyOwned
            If a different owner is already set.
        """
        check_types(owner, Component)

        current = self.owner

        if current is not None and current is not owner:
            raise AlreadyOwned(self._properties.get('name'))

        self._owner = weakref.ref(owner)

        return True

    def change_name(self, new_name: str) -> bool:
        """
        Rename this component.

        An owned component is re-registered under the new name; a top level
        registered in an application registry is re-registered there too.

        Raises
        ------
        MissingComponentName
            If ``new_name`` is empty.
        AlreadyRegistered
            If a sibling already uses ``new_name``.
        DuplicatedTopLevel
            If another top level of the same registry already uses ``new_name``.

        On failure the name and the registrations are left untouched.
        """
        if not new_name:
            raise MissingComponentName(type(self).__name__)

        old_name = self._properties.get('name')

        if new_name == old_name:
            return True

        owner = self.owner

        if owner is not None:

            if new_name in owner._children:
                raise AlreadyRegistered(new_name)

            owner.free_child(old_name)
            self.feed(name=new_name)
            owner.register_child(self)

            return True

        registry = self._registry

        if registry is not None and self in registry:

            if new_name in registry and registry[new_name] is not self:
                raise DuplicatedTopLevel(new_name)

            registry.unregister(self)
            self.feed(name=new_name)
            registry.register(self)

        else:
            self.feed(name=new_name)

        return True

    def child_update(self, child: Component | None = None) -> None:
        """
        Hook called when the tree below this component changed.

        Called with the child whose properties were set, and without argument
        at the end of :meth:`restore`. Does nothing by default.
        """

    def destroy(self) -> None:
        """
        Tear this component down.

        Dispatches ``ev_onDestroy``, destroys the children depth first,
        releases this component from its owner and deregisters it from its
        registry.
        """
        self.dispatch('ev_onDestroy')

        for child in list(self._children.values()):
            child.destroy()

        owner = self.owner

        if owner is not None:
            owner.free_child(self._properties['name'])

        if self._registry is not None:

            if self in self._registry:
                self._registry.unregister(self)

            self._registry = None

        self._pending_events.clear()

    # ---------- ---------- ---------- ---------- storage
    def choose_filer(self, name: str) -> str:
        """
        Route every property but the reserved markers to the document filer
        when this component is a top level bound to a document.
        """
        if name not in (LOCATION, CLASSNAME) and self.owner is None \
                and self._properties.get(LOCATION) is not None:
            return COMPONENT_FILER

        return super().choose_filer(name)

    def create_filer(self, filer_id: str) -> Filer:
        if filer_id == COMPONENT_FILER:
            return ComponentFiler(self._properties.get(LOCATION))

        return super().create_filer(filer_id)

    def set(self, values: dict[str, Any] | None = None, /, **kwargs: Any) -> bool:
        """
        Set properties in memory.

        ``name`` goes through :meth:`change_name`, everything else is fed. The
        owner, if any, is notified through :meth:`child_update`. Nothing is
        written until :meth:`store_all`.
        """
        data = self._merge(values, kwargs)

        # renaming may fail, so it goes before anything is fed
        if 'name' in data:
            self.change_name(data.pop('name'))

        if data:
            self.feed(data)

        owner = self.owner

        if owner is not None:
            owner.child_update(self)

        return True

    def snapshot(self) -> dict[str, Any]:
        """
        Nested data of the subtree rooted at this component.

        The children travel under ``"__owned__"``, each with its own nested
        children. This is what :meth:`store_all` writes and what
        ``Component(restore=...)`` accepts.
        """
        data = {**self._properties}
        owned = self._snapshot_owned()

        if owned:
            data[OWNED] = owned

        return data

    def store_all(self, location: Any = None) -> bool:
        """
        Write the whole tree to the document of its top level.

        Called on an owned component, the top level is committed.

        Parameters
        ----------
        location : str or Path, optional
            Bind the top level to this document first, creating it if needed.

        Raises
        ------
        MissingFile
            If the top level is bound to no document.
        ErrorWritingXML
            If the document cannot be written.
        """
        top_level = self.top_level

        if top_level is not self:
            return top_level.store_all(location)

        if location is not None:
            self.feed({LOCATION: str(location)})
            self.attach_filer(COMPONENT_FILER, ComponentFiler(location, create=True))

        filer = self.test_filer(COMPONENT_FILER)

        log.info('storing %s in %s', type(self).__name__, self._properties.get(LOCATION))

        return filer.store(mine={**self._properties}, owned=self._snapshot_owned())

    # ---------- ---------- ---------- ---------- events
    def bind(self, event: str, handler: Handler) -> None:
        """Bind ``handler`` to ``event``, replacing any previous binding."""
        if not callable(handler):
            raise TypeError(f'Event handler must be callable, given {type(handler).__name__}')

        self._handlers[event] = handler

    def unbind(self, event: str) -> Handler | None:
        """Remove the handler bound to ``event`` and return it."""
        return self._handlers.pop(event, None)

    def handler_for(self, event: str) -> Handler | None:
        """
        Return the handler of ``event``, or None.

        A bound handler wins over a reference stored in the property named
        after the event. Resolved references are cached until the property
        changes.

        Raises
        ------
        UnknownHandler
            If the stored reference cannot be resolved.
        """
        handler = self._handlers.get(event)

        if handler is not None:
            return handler

        reference = self._properties.get(event)

        if not reference:
            return None

        if not isinstance(reference, str):
            raise UnknownHandler(f'{event}={reference!r}')

        cached = self._resolved_handlers.get(event)

        if cached is not None and cached[0] == reference:
            return cached[1]

        handler = resolve_handler(reference)
        self._resolved_handlers[event] = (reference, handler)

        return handler

    def dispatch(self, event: str) -> bool:
        """
        Call the handler of ``event`` with this component.

        Returns
        -------
        bool
            True if a handler ran. False while designing or when the event has
            no handler.
        """
        if self._is_designing:
            return False

        handler = self.handler_for(event)

        if handler is None:
            return False

        log.debug('%r dispatching %s', self, event)

        handler(self)

        return True

    def raise_event(self, event: str) -> None:
        """Mark ``event`` as pending for the next :meth:`dispatch_all`."""
        self._pending_events[event] = None

    def dispatch_all(self) -> list[str]:
        """
        Dispatch every pending event, in the order they were raised.

        Returns
        -------
        list of str
            The events whose handler ran.
        """
        dispatched = []

        while self._pending_events:

            event = next(iter(self._pending_events))
            del self._pending_events[event]

            if self.dispatch(event):
                dispatched.append(event)

        return dispatched

    # ---------- ---------- ---------- ---------- ---------- properties
    @property
    def owner(self) -> Component | None:
        """The owning component, or None for a top level."""
        if self._owner is None:
            return None

        return self._owner()

    @property
    def ancestors(self) -> list[Component]:
        """
        list[Component]
            Owners from the immediate one up to the top level, nearest first.
        """
        chain = []

        component = self.owner

        while component is not None:
            chain.append(component)
            component = component.owner

        return chain

    @property
    def top_level(self) -> Component:
        """The root of the tree this component belongs to."""
        ancestors = self.ancestors
        return ancestors[-1] if ancestors else self

    @property
    def is_top_level(self) -> bool:
        return self.owner is None

    @property
    def is_designing(self) -> bool:
        """Design mode flag. While designing, events are not dispatched."""
        return self._is_designing

    @is_designing.setter
    def is_designing(self, value: bool) -> None:
        self._is_designing = bool(value)

    @property
    def registry(self) -> Any:
        """Application registry of the top level of this tree, if any."""
        return self.top_level._registry

    @property
    def location(self) -> str | None:
        """Document of this tree when this component is a bound top level."""
        return self._properties.get(LOCATION)


__all__ = [
    'COMPONENT_FILER',
    'Component',
    'HasChildren',
    'resolve_handler',
]
