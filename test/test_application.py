#  -*- coding: utf-8 -*-
"""
Test suite for Application and its Registry of live top-level components.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from oak.application import Application, Registry
from oak.component import Component
from oak.errors import DuplicatedTopLevel, NotRegistered, ParamsMissing, ClassNotFound, MissingFile


# ========== ========== ========== ========== Fixtures
@pytest.fixture
def documents(tmp_path: Path) -> Path:
    login = Component(name='login', caption='Login')
    Component(name='user', owner=login)
    login.store_all(tmp_path / 'login.xml')

    Component(name='data').store_all(tmp_path / 'data.xml')

    return tmp_path


@pytest.fixture
def config(documents: Path) -> Path:
    path = documents / 'app.toml'
    path.write_text(
        'default = "login"\n'
        '\n'
        '[toplevels.login]\n'
        'class = "oak.component.Component"\n'
        'location = "login.xml"\n'
        '\n'
        '[toplevels.data]\n'
        'class = "oak.datamodule.DataModule"\n'
        f'location = "{(documents / "data.xml").as_posix()}"\n',
        encoding='utf-8'
    )
    return path


@pytest.fixture
def app(documents: Path) -> Application:
    return Application(
        toplevels={
            'login': ('oak.component.Component', documents / 'login.xml'),
            'data': ('oak.datamodule.DataModule', documents / 'data.xml'),
        },
        default='login'
    )


# ========== ========== ========== ========== registry
class TestRegistry:

    def test_register_and_lookup(self) -> None:
        registry = Registry()
        component = Component(name='main')

        registry.register(component)

        assert registry['main'] is component
        assert 'main' in registry
        assert component in registry
        assert len(registry) == 1
        assert list(registry) == [component]

    def test_register_under_another_name(self) -> None:
        registry = Registry()
        component = Component(name='main')

        registry.register(component, 'alias')

        assert registry['alias'] is component
        assert 'main' not in registry

    def test_register_twice_is_harmless(self) -> None:
        registry = Registry()
        component = Component(name='main')

        registry.register(component)
        registry.register(component)

        assert len(registry) == 1

    def test_duplicated_name_keeps_the_first(self) -> None:
        registry = Registry()
        first = Component(name='main', registry=registry)

        with pytest.raises(DuplicatedTopLevel):
            Component(name='main', registry=registry)

        assert registry['main'] is first
        assert len(registry) == 1

    def test_unregister(self) -> None:
        registry = Registry()
        a = Component(name='a', registry=registry)
        Component(name='b', registry=registry)

        assert registry.unregister(a) is a
        assert registry.unregister('b').name == 'b'
        assert len(registry) == 0

    def test_unregister_unknown(self) -> None:
        registry = Registry()

        with pytest.raises(NotRegistered):
            registry.unregister('nobody')

        with pytest.raises(NotRegistered):
            registry.unregister(Component(name='loose'))

    def test_lookup_unknown(self) -> None:
        with pytest.raises(KeyError):
            Registry()['nobody']

    def test_renamed_top_level_follows(self) -> None:
        registry = Registry()
        component = Component(name='main', registry=registry)

        component.name = 'other'

        assert registry['other'] is component
        assert 'main' not in registry

    def test_clear(self) -> None:
        registry = Registry()
        Component(name='a', registry=registry)

        registry.clear()

        assert len(registry) == 0
        assert repr(registry) == 'Registry([])'


# ========== ========== ========== ========== application
class TestApplication:

    def test_run_opens_the_default(self, app: Application) -> None:
        login = app.run()

        assert login.name == 'login'
        assert login.get('caption') == 'Login'
        assert login.get_child('user').name == 'user'
        assert app.registry['login'] is login

    def test_top_levels_are_opened_once(self, app: Application) -> None:
        assert app['login'] is app['login']

    def test_top_levels_can_reach_each_other(self, app: Application) -> None:
        login = app['login']
        data = app['data']

        assert login['user'].registry['data'] is data

    def test_unknown_top_level(self, app: Application) -> None:
        with pytest.raises(KeyError):
            app['nowhere']

    def test_default_must_be_known(self, documents: Path) -> None:
        with pytest.raises(KeyError):
            Application(toplevels={}, default='login')

    def test_run_without_default(self) -> None:
        with pytest.raises(ParamsMissing):
            Application().run()

    def test_unresolvable_class(self, documents: Path) -> None:
        app = Application(toplevels={'x': ('nowhere_module.Form', documents / 'login.xml')})

        with pytest.raises(ClassNotFound):
            app['x']

    def test_class_must_be_a_component(self, documents: Path) -> None:
        app = Application(toplevels={'x': ('oak.filer.NullFiler', documents / 'login.xml')})

        with pytest.raises(ClassNotFound, match='not a component'):
            app['x']

    def test_missing_document(self, tmp_path: Path) -> None:
        app = Application(toplevels={'x': ('oak.component.Component', tmp_path / 'absent.xml')})

        with pytest.raises(MissingFile):
            app['x']

    def test_design_mode_is_propagated(self, documents: Path) -> None:
        app = Application(toplevels={'login': ('oak.component.Component', documents / 'login.xml')},
                          is_designing=True)

        login = app['login']

        assert login.is_designing
        assert login['user'].is_designing

    def test_free_all_toplevels(self, app: Application) -> None:
        login = app['login']
        app['data']

        app.free_all_toplevels()

        assert len(app.registry) == 0
        assert login.registry is None

    def test_destroyed_top_level_is_opened_again(self, app: Application) -> None:
        first = app['login']
        first.destroy()

        second = app['login']

        assert second is not first
        assert app.registry['login'] is second

    def test_context_manager(self, app: Application) -> None:
        with app as opened:
            opened.run()
            assert len(app.registry) == 1

        assert len(app.registry) == 0


# ========== ========== ========== ========== configuration
class TestFromConfig:

    def test_reads_top_levels(self, config: Path, documents: Path) -> None:
        app = Application.from_config(config)

        assert app.default == 'login'
        assert app.is_designing is False
        assert app.toplevels['login'] == ('oak.component.Component', documents / 'login.xml')

    def test_relative_locations_follow_the_file(self, config: Path) -> None:
        app = Application.from_config(config)

        assert app.run().location == str(config.parent / 'login.xml')

    def test_data_module(self, config: Path) -> None:
        from oak.datamodule import DataModule

        with Application.from_config(config) as app:
            assert isinstance(app['data'], DataModule)

    def test_missing_entries(self, tmp_path: Path) -> None:
        path = tmp_path / 'bad.toml'
        path.write_text('[toplevels.login]\nclass = "oak.component.Component"\n', encoding='utf-8')

        with pytest.raises(ParamsMissing):
            Application.from_config(path)
