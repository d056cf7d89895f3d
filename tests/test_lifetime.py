import unittest

import pytest

from scopebind import (
    Lifetime,
    ServiceCollection,
    ServiceDescriptor,
    ServiceProvider,
    UnknownLifetimeError,
    create_service_identifier,
)


class TestLifetimeControl(unittest.TestCase):
    services: ServiceCollection

    def setUp(self):
        self.services = ServiceCollection()

    def test_get_service_singleton_returns_same_instance(self):
        class A: ...

        a_id = create_service_identifier("A")
        provider = self.services.add_singleton(a_id, A).build()

        a1 = provider.get_service(a_id)
        a2 = provider.get_service(a_id)
        assert a2 is a1, "SINGLETON should return the cached instance"

    def test_get_service_singleton_factory_returns_same_instance(self):
        a_id = create_service_identifier()
        provider = self.services.add_singleton(a_id, lambda _: object()).build()

        assert provider.get_service(a_id) is provider.get_service(a_id)

    def test_get_service_scoped_returns_same_instance_within_provider(self):
        class A: ...

        a_id = create_service_identifier("A")
        provider = self.services.add_scoped(a_id, A).build()

        assert provider.get_service(a_id) is provider.get_service(a_id)

    def test_get_service_transient_returns_new_instances(self):
        class A: ...

        a_id = create_service_identifier("A")
        provider = self.services.add_transient(a_id, A).build()

        a1 = provider.get_service(a_id)
        a2 = provider.get_service(a_id)
        assert a2 is not a1, "TRANSIENT should return new instances"

    def test_transient_factory_widget_yields_distinct_objects(self):
        class Widget: ...

        widget_id = create_service_identifier("Widget")
        provider = self.services.add_transient(widget_id, lambda _: Widget()).build()

        w1 = provider.get_service(widget_id)
        w2 = provider.get_service(widget_id)
        assert isinstance(w1, Widget)
        assert isinstance(w2, Widget)
        assert w1 is not w2

    def test_transient_within_same_scope_yields_distinct_instances(self):
        class A: ...

        a_id = create_service_identifier("A")
        provider = self.services.add_transient(a_id, A).build()
        scope = provider.create_scope()

        assert scope.service_provider.get_service(a_id) is not scope.service_provider.get_service(a_id)


def test_singletons_are_constructed_when_provider_is_built():
    built = []

    def make(_):
        built.append(object())
        return built[-1]

    a_id = create_service_identifier()
    provider = ServiceCollection().add_singleton(a_id, make).build()

    assert len(built) == 1
    assert provider.get_service(a_id) is built[0]
    assert len(built) == 1


def test_scoped_and_transient_services_are_constructed_lazily():
    calls = []
    scoped_id = create_service_identifier()
    transient_id = create_service_identifier()

    ServiceCollection().add_scoped(scoped_id, lambda _: calls.append("scoped")).add_transient(
        transient_id, lambda _: calls.append("transient")
    ).build()

    assert calls == []


def test_singleton_depending_on_singleton_shares_instance_regardless_of_order():
    repo_id = create_service_identifier("Repo")
    service_id = create_service_identifier("Service")
    repo_calls = []

    class Repo: ...

    class Service:
        def __init__(self, repo):
            self.repo = repo

    def make_repo(_):
        repo_calls.append(1)
        return Repo()

    # dependent registered first so eager resolution reaches Repo through Service
    provider = (
        ServiceCollection()
        .add_singleton(service_id, lambda p: Service(p.get_service(repo_id)))
        .add_singleton(repo_id, make_repo)
        .build()
    )

    assert len(repo_calls) == 1
    assert provider.get_service(service_id).repo is provider.get_service(repo_id)


def test_lifetime_given_as_string_is_accepted():
    a_id = create_service_identifier()
    descriptor = ServiceDescriptor(a_id, "scoped", factory=lambda _: object())
    provider = ServiceProvider({a_id: descriptor})

    assert provider.get_service(a_id) is provider.get_service(a_id)


def test_unknown_lifetime_raises():
    a_id = create_service_identifier("A")
    descriptor = ServiceDescriptor(a_id, "per-thread", implementation_type=object)
    provider = ServiceProvider({a_id: descriptor})

    with pytest.raises(UnknownLifetimeError) as ctx:
        provider.get_service(a_id)
    assert ctx.value.descriptor is descriptor
    assert "per-thread" in str(ctx.value)


def test_unknown_lifetime_raises_through_collection_add():
    a_id = create_service_identifier()
    provider = ServiceCollection().add(ServiceDescriptor(a_id, object(), factory=lambda _: 1)).build()

    with pytest.raises(UnknownLifetimeError):
        provider.get_service(a_id)


def test_lifetime_values():
    assert Lifetime("singleton") is Lifetime.SINGLETON
    assert Lifetime("scoped") is Lifetime.SCOPED
    assert Lifetime("transient") is Lifetime.TRANSIENT
