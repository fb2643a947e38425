import unittest

from scopebind import ClassProvider, Container, Lifetime, singleton


class TestLifetimeControl(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_resolve_register_singleton_returns_same_instance(self):
        class A: ...

        self.cont.register(A, A, lifetime=Lifetime.SINGLETON)
        a1 = self.cont.resolve(A)
        a2 = self.cont.resolve(A)
        assert a2 is a1, "SINGLETON should return the cached instance"

    def test_resolve_register_transient_returns_new_instances(self):
        class A: ...

        self.cont.register(A, A, lifetime=Lifetime.TRANSIENT)
        a1 = self.cont.resolve(A)
        a2 = self.cont.resolve(A)
        assert a2 is not a1, "TRANSIENT should return new instances"

    def test_register_defaults_to_transient(self):
        class A: ...

        self.cont.register("a", A)
        assert self.cont.resolve("a") is not self.cont.resolve("a")

    def test_register_instance_always_returns_the_instance(self):
        class A: ...

        inst = A()
        self.cont.register_instance(A, inst)
        assert self.cont.resolve(A) is inst
        assert self.cont.resolve(A) is inst

    def test_singleton_keeps_mutations(self):
        class TestClass:
            def __init__(self):
                self.property_a = "test"

        self.cont.register("test", ClassProvider(TestClass), lifetime=Lifetime.SINGLETON)

        value = self.cont.resolve("test")
        value.property_a = "test2"
        value2 = self.cont.resolve("test")

        assert value2 is value
        assert value2.property_a == "test2"

    def test_transient_instances_are_independent(self):
        class TestClass:
            def __init__(self):
                self.property_a = "test"

        self.cont.register("test", ClassProvider(TestClass), lifetime=Lifetime.TRANSIENT)

        value = self.cont.resolve("test")
        value.property_a = "test2"
        value2 = self.cont.resolve("test")

        assert value2 is not value
        assert value2.property_a == "test"

    def test_unregistered_class_is_transient(self):
        class Test:
            def __init__(self):
                self.property_a = "test"

        test1 = self.cont.resolve(Test)
        test2 = self.cont.resolve(Test)
        assert test1 is not test2
        assert vars(test1) == vars(test2)

    def test_unregistered_class_uses_declared_lifetime(self):
        class TestClass:
            __lifetime__ = Lifetime.SINGLETON

        assert self.cont.resolve(TestClass) is self.cont.resolve(TestClass)
        assert not self.cont.is_registered(TestClass)

    def test_register_without_lifetime_uses_declared_lifetime(self):
        @singleton()
        class Service: ...

        self.cont.register("service", Service)
        assert self.cont.resolve("service") is self.cont.resolve("service")

    def test_explicit_lifetime_overrides_declared_lifetime(self):
        @singleton()
        class Service: ...

        self.cont.register("service", Service, lifetime=Lifetime.TRANSIENT)
        assert self.cont.resolve("service") is not self.cont.resolve("service")

    def test_singleton_factory_is_invoked_once(self):
        calls = []

        def factory(_):
            calls.append(1)
            return object()

        self.cont.register("thing", factory=factory, lifetime=Lifetime.SINGLETON)

        assert self.cont.resolve("thing") is self.cont.resolve("thing")
        assert len(calls) == 1

    def test_singleton_factory_returning_none_is_invoked_once(self):
        calls = []

        self.cont.register("nothing", factory=lambda _: calls.append(1), lifetime=Lifetime.SINGLETON)

        assert self.cont.resolve("nothing") is None
        assert self.cont.resolve("nothing") is None
        assert len(calls) == 1

        self.cont.clear_instances()
        self.cont.resolve("nothing")
        assert len(calls) == 2

    def test_clear_instances_keeps_registrations(self):
        class Foo: ...

        self.cont.register(Foo, Foo, lifetime=Lifetime.SINGLETON)
        instance1 = self.cont.resolve(Foo)

        self.cont.clear_instances()

        instance2 = self.cont.resolve(Foo)
        instance3 = self.cont.resolve(Foo)
        assert instance1 is not instance2
        assert instance2 is instance3

    def test_clear_instances_drops_implicit_singletons(self):
        @singleton()
        class Foo: ...

        instance1 = self.cont.resolve(Foo)
        self.cont.clear_instances()
        assert self.cont.resolve(Foo) is not instance1

    def test_clear_instances_keeps_registered_values(self):
        value = object()
        self.cont.register_instance("value", value)

        self.cont.clear_instances()

        assert self.cont.resolve("value") is value
