"""Tests for the DI container implementation."""

import threading
import time
from typing import Annotated, Optional

import pytest

from honorer.di import (
    ClassProvider,
    Container,
    FactoryProvider,
    Inject,
    InjectProperty,
    Token,
    ValueProvider,
    injectable,
)
from honorer.errors import (
    CircularDependencyError,
    MissingInjectionTokenError,
    ProviderNotFoundError,
)


class TestResolution:
    """Registration and lazy singleton resolution."""

    def test_resolve_same_instance_twice(self, container):
        """Test singleton-per-container resolution."""
        class Service:
            pass

        container.register(Service)

        assert container.resolve(Service) is container.resolve(Service)

    def test_zero_argument_construction(self, container):
        class Service:
            def __init__(self):
                self.ready = True

        container.register(Service)

        assert container.resolve(Service).ready

    def test_constructor_injection_by_annotation(self, container):
        class Repository:
            pass

        class Service:
            def __init__(self, repository: Repository):
                self.repository = repository

        container.register(Repository)
        container.register(Service)

        service = container.resolve(Service)
        assert service.repository is container.resolve(Repository)

    def test_constructor_injection_by_explicit_token(self, container):
        DB_URL = Token("DB_URL")

        class Database:
            def __init__(self, url: Annotated[str, Inject(DB_URL)]):
                self.url = url

        container.register_value(DB_URL, "sqlite://")
        container.register(Database)

        assert container.resolve(Database).url == "sqlite://"

    def test_class_provider_under_another_token(self, container):
        class Base:
            pass

        class Implementation(Base):
            pass

        container.register(Base, Implementation)

        assert isinstance(container.resolve(Base), Implementation)

    def test_factory_provider_with_inject(self, container):
        class Config:
            name = "app"

        container.register(Config)
        container.register_factory("greeting", lambda config: f"hello {config.name}", inject=[Config])

        assert container.resolve("greeting") == "hello app"

    def test_factory_called_once(self, container):
        calls = []

        def build():
            calls.append(1)
            return object()

        container.register("thing", FactoryProvider(build, provide="thing"))

        assert container.resolve("thing") is container.resolve("thing")
        assert len(calls) == 1

    def test_value_provider_returned_unchanged(self, container):
        value = {"key": "value"}
        container.register("settings", ValueProvider(value, provide="settings"))

        assert container.resolve("settings") is value

    def test_function_registered_as_value(self, container):
        def handler():
            return "called"

        container.register("handler", handler)

        assert container.resolve("handler") is handler

    def test_tokens_are_identity_based(self, container):
        first = Token("same")
        second = Token("same")
        container.register_value(first, 1)
        container.register_value(second, 2)

        assert container.resolve(first) == 1
        assert container.resolve(second) == 2

    def test_missing_provider(self, container):
        with pytest.raises(ProviderNotFoundError) as exc_info:
            container.resolve("unknown")

        assert exc_info.value.error_code == "PROVIDER_NOT_FOUND"
        assert isinstance(exc_info.value, LookupError)

    def test_async_factory_rejected_at_resolution(self, container):
        async def build():
            return 1

        container.register_factory("async", build)

        with pytest.raises(TypeError, match="asynchronous"):
            container.resolve("async")

    def test_reregistration_replaces_provider(self, container):
        container.register_value("name", "first")
        assert container.resolve("name") == "first"

        container.register_value("name", "second")
        assert container.resolve("name") == "second"


class TestHierarchy:
    """Parent delegation and child isolation."""

    def test_parent_inheritance(self, container):
        class Service:
            pass

        container.register(Service)
        child = container.child()

        assert child.has(Service)
        assert child.resolve(Service) is container.resolve(Service)
        assert not child.has_local(Service)

    def test_child_override_isolation(self, container):
        class Service:
            pass

        class Override(Service):
            pass

        container.register(Service)
        child = container.child()
        sibling = container.child()

        child.register(Service, Override)

        assert isinstance(child.resolve(Service), Override)
        assert type(container.resolve(Service)) is Service
        assert type(sibling.resolve(Service)) is Service

    def test_parent_instance_not_cached_in_child(self, container):
        class Service:
            pass

        container.register(Service)
        child = container.child()
        child.resolve(Service)

        assert Service not in child.tokens()

    def test_child_inherits_strict_mode(self):
        assert Container(strict=True).child()._strict


class TestOverrideAndClear:
    def test_override_with_instance(self, container):
        class Service:
            pass

        container.register(Service)
        fake = object()
        container.override(Service, fake)

        assert container.resolve(Service) is fake

    def test_override_with_provider(self, container):
        container.register_value("name", "real")
        container.override("name", ValueProvider("fake", provide="name"))

        assert container.resolve("name") == "fake"

    def test_override_does_not_reach_child_cache(self, container):
        class Service:
            pass

        container.register(Service)
        child = container.child()
        child.register(Service)
        cached = child.resolve(Service)

        container.override(Service, object())

        assert child.resolve(Service) is cached

    def test_clear_keeps_parent(self, container):
        container.register_value("root", 1)
        child = container.child()
        child.register_value("local", 2)

        child.clear()

        assert not child.has_local("local")
        assert child.resolve("root") == 1

    def test_tokens_in_registration_order(self, container):
        container.register_value("b", 1)
        container.register_value("a", 2)
        container.override("c", 3)

        assert container.tokens() == ["b", "a", "c"]


class TestCircularDependencies:
    def test_mutual_constructor_dependency(self, container):
        class A:
            pass

        class B:
            pass

        def a_init(self, b: B):
            self.b = b

        def b_init(self, a: A):
            self.a = a

        A.__init__ = a_init
        B.__init__ = b_init
        container.register(A)
        container.register(B)

        with pytest.raises(CircularDependencyError) as exc_info:
            container.resolve(A)

        assert "A -> B -> A" in str(exc_info.value)
        assert not exc_info.value.recoverable

    def test_self_dependency_through_explicit_token(self, container):
        @injectable(inject=["loop"])
        class Loop:
            def __init__(self, itself):
                self.itself = itself

        container.register("loop", Loop)

        with pytest.raises(CircularDependencyError):
            container.resolve("loop")

    def test_mutual_factory_dependency(self, container):
        container.register_factory("a", lambda b: ("a", b), inject=["b"])
        container.register_factory("b", lambda a: ("b", a), inject=["a"])

        with pytest.raises(CircularDependencyError) as exc_info:
            container.resolve("a")

        assert str(exc_info.value) == "Circular dependency detected: 'a' -> 'b' -> 'a'"

    def test_failed_resolution_can_be_retried(self, container):
        class Service:
            def __init__(self, name: Annotated[str, Inject("name")]):
                self.name = name

        container.register(Service)
        with pytest.raises(ProviderNotFoundError):
            container.resolve(Service)

        container.register_value("name", "ok")
        assert container.resolve(Service).name == "ok"


class TestInjectionPolicy:
    def test_auto_register_injectable(self, container):
        @injectable
        class Clock:
            pass

        class Service:
            def __init__(self, clock: Clock):
                self.clock = clock

        container.register(Service)

        assert isinstance(container.resolve(Service).clock, Clock)
        assert container.has_local(Clock)

    def test_property_injection(self, container):
        class Clock:
            pass

        class Service:
            clock = InjectProperty(Clock)

        container.register(Clock)
        container.register(Service)

        assert container.resolve(Service).clock is container.resolve(Clock)

    def test_property_not_injected_raises_attribute_error(self):
        class Clock:
            pass

        class Service:
            clock = InjectProperty(Clock)

        with pytest.raises(AttributeError):
            Service().clock

    def test_missing_token_is_none_by_default(self, container):
        class Service:
            def __init__(self, anything):
                self.anything = anything

        container.register(Service)

        assert container.resolve(Service).anything is None

    def test_missing_token_uses_default(self, container):
        class Service:
            def __init__(self, retries=3):
                self.retries = retries

        container.register(Service)

        assert container.resolve(Service).retries == 3

    def test_missing_token_strict(self):
        container = Container(strict=True)

        class Service:
            def __init__(self, anything):
                self.anything = anything

        container.register(Service)

        with pytest.raises(MissingInjectionTokenError):
            container.resolve(Service)

    def test_optional_dependency(self, container):
        class Cache:
            pass

        class Service:
            def __init__(self, cache: Optional[Cache]):
                self.cache = cache

        container.register(Service)

        assert container.resolve(Service).cache is None

    def test_keyword_only_parameter(self, container):
        class Repository:
            pass

        class Service:
            def __init__(self, *, repository: Repository):
                self.repository = repository

        container.register(Repository)
        container.register(Service)

        assert isinstance(container.resolve(Service).repository, Repository)


class TestConcurrency:
    def test_concurrent_first_resolution_builds_once(self, container):
        built = []

        class Slow:
            def __init__(self):
                time.sleep(0.01)
                built.append(self)

        container.register(Slow)
        results = []

        def resolve():
            results.append(container.resolve(Slow))

        threads = [threading.Thread(target=resolve) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(built) == 1
        assert all(result is built[0] for result in results)


class TestProviders:
    def test_class_provider_token(self):
        class Service:
            pass

        assert ClassProvider(Service).token is Service
        assert ClassProvider(Service, provide="svc").token == "svc"

    def test_factory_provider_requires_token(self):
        with pytest.raises(ValueError):
            FactoryProvider(lambda: 1).token
