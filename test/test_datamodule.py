#  -*- coding: utf-8 -*-
"""
Test suite for DataModule.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from oak.component import Component
from oak.datamodule import DataModule
from oak.errors import NotRegistered


class Connection(Component):
    ...


@pytest.fixture
def module() -> DataModule:
    module = DataModule(name='data')

    main = Connection(name='main_db', owner=module, url='sqlite://')
    Component(name='settings', owner=module)
    Connection(name='replica', owner=main, url='sqlite://')

    return module


class TestDataModule:

    def test_is_a_component(self, module: DataModule) -> None:
        assert isinstance(module, Component)
        assert module.list_children() == ['main_db', 'settings']

    def test_walk_is_depth_first(self, module: DataModule) -> None:
        assert [component.name for component in module.walk()] == ['main_db', 'replica', 'settings']

    def test_find(self, module: DataModule) -> None:
        assert module.find('replica').owner is module['main_db']

    def test_find_unknown(self, module: DataModule) -> None:
        with pytest.raises(NotRegistered):
            module.find('nowhere')

    def test_components_of_class(self, module: DataModule) -> None:
        assert [c.name for c in module.components_of(Connection)] == ['main_db', 'replica']

    def test_components_of_qualified_name(self, module: DataModule) -> None:
        names = [c.name for c in module.components_of('oak.component.Component')]

        assert names == ['main_db', 'replica', 'settings']

    def test_lifecycle_events(self) -> None:
        events = []

        module = DataModule(name='data', handlers={'ev_onCreate': lambda c: events.append('create')})
        module.bind('ev_onDestroy', lambda c: events.append('destroy'))
        module.destroy()

        assert events == ['create', 'destroy']

    def test_round_trip(self, module: DataModule, tmp_path: Path) -> None:
        module.store_all(tmp_path / 'data.xml')

        restored = DataModule(location=tmp_path / 'data.xml')

        assert type(restored.find('replica')) is Connection
        assert restored.find('replica').get('url') == 'sqlite://'
