#  -*- coding: utf-8 -*-
"""
Test suite for the property bag (OakObject) and its registry metaclass.

Tests cover:
- get/set primitives, single and multiple names, missing names
- construction hooks
- class registry, lookup and resolution by fully qualified name
- capability checks and helpers
"""

from __future__ import annotations

import pytest

from oak.errors import ClassNotFound
from oak.object import OakObject, OakMeta, CLASSNAME, check_types, get_full_qualified_name
from oak.properties import OakProperty


# ========== ========== ========== ========== Helpers
class Shape(OakObject):
    color = OakProperty(default='black')


class Circle(Shape):
    radius = OakProperty(default=1.0)


class Recorder(OakObject):

    def construct(self, **params):
        self.calls = ['construct']
        super().construct(**params)

    def after_construction(self):
        self.calls.append('after_construction')


# ========== ========== ========== ========== get / set
class TestPropertyBag:

    def test_get_single_name_returns_value(self) -> None:
        obj = OakObject(color='blue')
        assert obj.get('color') == 'blue'

    def test_get_several_names_returns_aligned_tuple(self) -> None:
        obj = OakObject(color='blue', size=3)
        assert obj.get('size', 'color') == (3, 'blue')

    def test_missing_names_resolve_to_none(self) -> None:
        obj = OakObject(color='blue')

        assert obj.get('missing') is None
        assert obj.get('color', 'missing') == ('blue', None)

    def test_set_overwrites_unconditionally(self) -> None:
        obj = OakObject(color='blue')

        assert obj.set(color='red') is True
        assert obj.get('color') == 'red'

    def test_set_accepts_mapping_and_keywords(self) -> None:
        obj = OakObject()
        obj.set({'a': 1, 'b': 2}, b=3)

        assert obj.get('a', 'b') == (1, 3)

    def test_set_rejects_non_mapping(self) -> None:
        obj = OakObject()

        with pytest.raises(TypeError):
            obj.set(['a', 1])

    def test_classname_marker_is_always_present(self) -> None:
        obj = Circle()

        assert obj.get(CLASSNAME) == get_full_qualified_name(Circle)
        assert obj.classname == get_full_qualified_name(Circle)

    def test_property_names_and_has_property(self) -> None:
        obj = OakObject(color='blue')

        assert set(obj.property_names()) == {CLASSNAME, 'color'}
        assert obj.has_property('color')
        assert not obj.has_property('size')

    def test_assign_copies_everything_but_the_type_marker(self) -> None:
        source = Circle(color='red', radius=2)
        target = Shape()

        target.assign(source)

        assert target.get('color', 'radius') == ('red', 2)
        assert target.classname == get_full_qualified_name(Shape)


# ========== ========== ========== ========== construction
class TestConstruction:

    def test_hooks_run_in_order(self) -> None:
        obj = Recorder(x=1)

        assert obj.calls == ['construct', 'after_construction']
        assert obj.get('x') == 1

    def test_message_does_nothing_by_default(self) -> None:
        obj = OakObject(color='blue')

        assert obj.message({'action': 'refresh'}) is None
        assert obj.property_names() == [CLASSNAME, 'color']

    def test_message_can_be_overridden(self) -> None:

        class Listener(OakObject):

            def message(self, message):
                self.set(last=message)
                return True

        listener = Listener()

        assert listener.message('ping') is True
        assert listener.get('last') == 'ping'

    def test_declared_properties_read_defaults(self) -> None:
        circle = Circle()

        assert circle.color == 'black'
        assert circle.radius == 1.0

    def test_declared_properties_write_to_the_bag(self) -> None:
        circle = Circle()
        circle.radius = 3

        assert circle.get('radius') == 3


# ========== ========== ========== ========== registry
class TestRegistry:

    def test_classes_are_registered(self) -> None:
        assert get_full_qualified_name(Circle) in OakObject
        assert Circle in OakObject
        assert OakObject[get_full_qualified_name(Circle)] is Circle

    def test_unknown_lookup_raises_key_error(self) -> None:
        with pytest.raises(KeyError):
            OakObject['nowhere.Nothing']

    def test_contains_rejects_other_types(self) -> None:
        with pytest.raises(TypeError):
            123 in OakObject

    def test_properties_are_collected_along_the_mro(self) -> None:
        assert set(Shape.oak_properties) == {'color'}
        assert set(Circle.oak_properties) == {'color', 'radius'}

    def test_resolve_through_registry(self) -> None:
        assert OakMeta.resolve(get_full_qualified_name(Circle)) is Circle

    def test_resolve_by_importing_the_module(self) -> None:
        from oak.datamodule import DataModule
        assert OakMeta.resolve('oak.datamodule.DataModule') is DataModule

    def test_resolve_non_oak_class_by_import(self) -> None:
        from collections import OrderedDict
        assert OakMeta.resolve('collections.OrderedDict') is OrderedDict

    @pytest.mark.parametrize('qualname', [
        '',
        'Nothing',
        'not_a_module_anywhere.Thing',
        'oak.object.NotThere',
        'oak.object.CLASSNAME',
    ])
    def test_resolve_failures(self, qualname: str) -> None:
        with pytest.raises(ClassNotFound):
            OakMeta.resolve(qualname)

    def test_class_not_found_is_an_import_error(self) -> None:
        with pytest.raises(ImportError):
            OakMeta.resolve('not_a_module_anywhere.Thing')


# ========== ========== ========== ========== helpers
class TestHelpers:

    def test_instance_of_by_class_and_by_name(self) -> None:
        circle = Circle()

        assert circle.instance_of(Shape)
        assert circle.instance_of(get_full_qualified_name(Shape))
        assert circle.instance_of('oak.object.OakObject')
        assert not Shape().instance_of(Circle)
        assert not circle.instance_of('oak.component.Component')

    def test_hierarchy_tree(self) -> None:
        tree = Circle().hierarchy_tree()

        assert tree[0] == 'object'
        assert tree[-1] == get_full_qualified_name(Circle)
        assert 'oak.object.OakObject' in tree

    def test_check_types(self) -> None:
        assert check_types(1, int)
        assert check_types(None, int, can_be_none=True)
        assert not check_types('x', int, raise_error=False)

        with pytest.raises(TypeError, match='Expected instance'):
            check_types('x', (int, float))

    def test_full_qualified_name_of_builtins(self) -> None:
        assert get_full_qualified_name(int) == 'int'
        assert get_full_qualified_name(OakObject) == 'oak.object.OakObject'
