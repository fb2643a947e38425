import unittest

import pytest

from scopebind import Container, Lifetime, TokenNotFoundError, singleton


class TestChildContainer(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_child_knows_its_parent(self):
        child = self.cont.create_child_container()
        grandchild = child.create_child_container()

        assert child.parent is self.cont
        assert grandchild.root is self.cont
        assert self.cont.parent is None
        assert self.cont.root is self.cont

    def test_child_falls_back_to_parent_registrations(self):
        self.cont.register_instance("test", "parent")
        child = self.cont.create_child_container()

        assert child.resolve("test") == "parent"

    def test_child_registration_shadows_parent(self):
        self.cont.register_instance("test", "parent")
        child = self.cont.create_child_container()
        child.register_instance("test", "child")

        assert child.resolve("test") == "child"
        assert self.cont.resolve("test") == "parent"

    def test_parent_does_not_see_child_registrations(self):
        child = self.cont.create_child_container()
        child.register_instance("test", "child")

        with pytest.raises(TokenNotFoundError):
            self.cont.resolve("test")

    def test_singleton_registered_on_parent_is_shared(self):
        class Config: ...

        self.cont.register(Config, Config, lifetime=Lifetime.SINGLETON)
        child = self.cont.create_child_container()

        assert child.resolve(Config) is self.cont.resolve(Config)

    def test_singleton_registered_on_child_is_not_shared(self):
        class Config: ...

        self.cont.register(Config, Config, lifetime=Lifetime.SINGLETON)
        child = self.cont.create_child_container()
        child.register(Config, Config, lifetime=Lifetime.SINGLETON)

        assert child.resolve(Config) is child.resolve(Config)
        assert child.resolve(Config) is not self.cont.resolve(Config)

    def test_unregistered_singleton_is_shared_through_the_root(self):
        @singleton()
        class Clock: ...

        child = self.cont.create_child_container()

        assert child.resolve(Clock) is self.cont.resolve(Clock)

    def test_resolve_all_uses_the_closest_container_with_registrations(self):
        self.cont.register_instance("plugin", "parent-1")
        self.cont.register_instance("plugin", "parent-2")
        child = self.cont.create_child_container()

        assert child.resolve_all("plugin") == ["parent-1", "parent-2"]

        child.register_instance("plugin", "child-1")
        assert child.resolve_all("plugin") == ["child-1"]

    def test_dependencies_of_parent_registration_resolve_from_the_child(self):
        class Repo:
            __inject__ = ["db"]

            def __init__(self, db):
                self.db = db

        self.cont.register("repo", Repo)
        self.cont.register_instance("db", "parent-db")
        child = self.cont.create_child_container()
        child.register_instance("db", "child-db")

        assert child.resolve("repo").db == "child-db"
        assert self.cont.resolve("repo").db == "parent-db"

    def test_reset_of_child_keeps_parent_registrations(self):
        self.cont.register_instance("test", "parent")
        child = self.cont.create_child_container()
        child.register_instance("other", "child")

        child.reset()

        assert not child.is_registered("other")
        assert child.resolve("test") == "parent"
