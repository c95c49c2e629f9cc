#  -*- coding: utf-8 -*-
"""
Test suite for Persistent, the per-property storage router.

Tests cover:
- filer resolution: default, injected, class factories, unknown ids
- batching of loads and stores by filer
- caching, feeding and eviction
- write-through consistency
- error propagation
"""

from __future__ import annotations

from pathlib import Path

import pytest

from oak.errors import UnknownFiler
from oak.filer import Filer, NullFiler
from oak.hdf5 import HDF5Filer
from oak.persistent import Persistent, DEFAULT_FILER
from oak.properties import OakProperty


# ========== ========== ========== ========== Helpers
class MemoryFiler(Filer):
    """Dictionary-backed filer counting its calls."""

    def __init__(self, **data):
        self.data = dict(data)
        self.loads = []
        self.stores = []

    def load(self, *names):
        self.loads.append(names)
        return {name: self.data[name] for name in names if name in self.data}

    def store(self, values=None, /, **kwargs):
        values = self._merge(values, kwargs)
        self.stores.append(values)
        self.data.update(values)
        return True


class FailingFiler(Filer):

    def load(self, *names):
        raise OSError('backend down')

    def store(self, values=None, /, **kwargs):
        raise OSError('backend down')


class Account(Persistent):

    filer_routes = {
        'email': 'db',
        'name': 'db',
        'avatar': 'disk',
    }

    email = OakProperty()


class Preferences(Persistent):

    filer_routes = {'theme': 'disk'}

    filer_factories = {
        'disk': lambda obj: HDF5Filer(obj.location),
    }

    def construct(self, location=None, **params):
        self.location = location
        super().construct(**params)


class Warm(Persistent):

    filer_routes = {'a': 'db', 'b': 'db'}

    def load_initial_properties(self):
        self.get('a', 'b')


# ========== ========== ========== ========== Fixtures
@pytest.fixture
def db() -> MemoryFiler:
    return MemoryFiler(email='five@example.com', name='Five')


@pytest.fixture
def disk() -> MemoryFiler:
    return MemoryFiler(avatar='five.png')


@pytest.fixture
def account(db: MemoryFiler, disk: MemoryFiler) -> Account:
    return Account(filers={'db': db, 'disk': disk})


# ========== ========== ========== ========== filer resolution
class TestFilerResolution:

    def test_default_policy(self) -> None:
        obj = Persistent()

        assert obj.choose_filer('anything') == DEFAULT_FILER
        assert isinstance(obj.test_filer(DEFAULT_FILER), NullFiler)

    def test_routes(self, account: Account) -> None:
        assert account.choose_filer('email') == 'db'
        assert account.choose_filer('avatar') == 'disk'
        assert account.choose_filer('other') == DEFAULT_FILER

    def test_filers_are_cached(self, account: Account) -> None:
        assert account.test_filer(DEFAULT_FILER) is account.test_filer(DEFAULT_FILER)

    def test_injected_filers(self, account: Account, db: MemoryFiler) -> None:
        assert account.test_filer('db') is db
        assert account.filers['db'] is db

    def test_unknown_filer_raises(self) -> None:
        with pytest.raises(UnknownFiler):
            Account().get('email')

    def test_unknown_filer_is_a_key_error(self) -> None:
        with pytest.raises(KeyError):
            Persistent().test_filer('nowhere')

    def test_attach_filer(self, db: MemoryFiler) -> None:
        account = Account()
        account.attach_filer('db', db)

        assert account.get('email') == 'five@example.com'

    def test_attach_filer_checks_type(self) -> None:
        with pytest.raises(TypeError):
            Persistent().attach_filer('db', object())

    def test_class_factories(self, tmp_path: Path) -> None:
        path = tmp_path / 'prefs.h5'
        HDF5Filer(path).store(theme='dark')

        prefs = Preferences(location=path)

        assert prefs.get('theme') == 'dark'
        assert isinstance(prefs.filers['disk'], HDF5Filer)


# ========== ========== ========== ========== get
class TestGet:

    def test_one_load_per_filer(self, account: Account, db: MemoryFiler, disk: MemoryFiler) -> None:
        values = account.get('email', 'name', 'avatar', 'other')

        assert values == ('five@example.com', 'Five', 'five.png', None)
        assert db.loads == [('email', 'name')]
        assert disk.loads == [('avatar',)]

    def test_loaded_values_are_cached(self, account: Account, db: MemoryFiler) -> None:
        account.get('email')
        account.get('email')

        assert db.loads == [('email',)]

    def test_only_missing_names_are_loaded(self, account: Account, db: MemoryFiler) -> None:
        account.get('email')
        account.get('email', 'name')

        assert db.loads == [('email',), ('name',)]

    def test_absent_values_are_asked_again(self, account: Account, disk: MemoryFiler) -> None:
        disk.data.clear()

        assert account.get('avatar') is None
        assert account.get('avatar') is None
        assert disk.loads == [('avatar',), ('avatar',)]

    def test_duplicated_names(self, account: Account, db: MemoryFiler) -> None:
        assert account.get('email', 'email') == ('five@example.com', 'five@example.com')
        assert db.loads == [('email',)]

    def test_declared_property_reads_through_filer(self, account: Account) -> None:
        assert account.email == 'five@example.com'

    def test_initial_properties_hook(self, db: MemoryFiler) -> None:
        db.data.update(a=1, b=2)

        warm = Warm(filers={'db': db})

        assert db.loads == [('a', 'b')]
        assert warm.has_property('a') and warm.has_property('b')


# ========== ========== ========== ========== set / feed
class TestSetAndFeed:

    def test_one_store_per_filer_with_its_subset(self, account: Account, db: MemoryFiler,
                                                 disk: MemoryFiler) -> None:
        assert account.set(email='new@example.com', avatar='new.png', other=1) is True

        assert db.stores == [{'email': 'new@example.com'}]
        assert disk.stores == [{'avatar': 'new.png'}]
        assert account.get('other') == 1

    def test_write_through_consistency(self, account: Account, db: MemoryFiler) -> None:
        account.set(email='new@example.com')

        cached = account.get('email')
        account.forget('email')
        fetched = account.get('email')

        assert cached == fetched == 'new@example.com'
        assert db.loads == [('email',)]

    def test_feed_does_not_touch_filers(self, account: Account, db: MemoryFiler) -> None:
        assert account.feed(email='fed@example.com') is True

        assert account.get('email') == 'fed@example.com'
        assert db.loads == []
        assert db.stores == []

    def test_construction_params_are_fed(self, db: MemoryFiler) -> None:
        account = Account(filers={'db': db}, email='given@example.com')

        assert account.get('email') == 'given@example.com'
        assert db.stores == [] and db.loads == []

    def test_forget_everything(self, account: Account, db: MemoryFiler) -> None:
        account.get('email', 'name')
        account.forget()

        assert account.classname.endswith('Account')

        account.get('email', 'name')
        assert db.loads == [('email', 'name'), ('email', 'name')]


# ========== ========== ========== ========== errors
class TestErrors:

    def test_load_errors_propagate(self) -> None:
        account = Account(filers={'db': FailingFiler()})

        with pytest.raises(OSError, match='backend down'):
            account.get('email')

    def test_store_errors_propagate_and_leave_bag_untouched(self) -> None:
        account = Account(filers={'db': FailingFiler()})

        with pytest.raises(OSError, match='backend down'):
            account.set(email='x@example.com')

        assert not account.has_property('email')
