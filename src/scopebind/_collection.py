from __future__ import annotations

import inspect
import logging
from types import MappingProxyType
from typing import (
    TYPE_CHECKING,
    Any,
    TypeVar,
    overload,
)

from ._provider import ServiceProvider
from ._types import Lifetime, ServiceDescriptor, ServiceIdentifier


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ._metadata import DependencyMetadataProvider
    from ._types import ServiceFactory

    T = TypeVar("T")

    Registrable = type[T] | ServiceFactory[T]


class ServiceCollection:
    """Accumulates service descriptors and builds a root `ServiceProvider` from them.

    - a class registers an implementation type, resolved by constructor injection
    - any other callable registers a factory taking the resolving provider
    - registering an identifier again replaces the earlier descriptor
    """

    def __init__(self) -> None:
        self._descriptors: dict[ServiceIdentifier[Any], ServiceDescriptor[Any]] = {}

    @overload
    def add_singleton(self, identifier: ServiceIdentifier[T], implementation: type[T]) -> ServiceCollection: ...

    @overload
    def add_singleton(self, identifier: ServiceIdentifier[T], factory: ServiceFactory[T]) -> ServiceCollection: ...

    def add_singleton(
        self, identifier: ServiceIdentifier[T], implementation_or_factory: Registrable[T]
    ) -> ServiceCollection:
        """Register a service shared by the root provider and every scope created from it."""
        return self._add(identifier, implementation_or_factory, Lifetime.SINGLETON)

    @overload
    def add_scoped(self, identifier: ServiceIdentifier[T], implementation: type[T]) -> ServiceCollection: ...

    @overload
    def add_scoped(self, identifier: ServiceIdentifier[T], factory: ServiceFactory[T]) -> ServiceCollection: ...

    def add_scoped(
        self, identifier: ServiceIdentifier[T], implementation_or_factory: Registrable[T]
    ) -> ServiceCollection:
        """Register a service created once per provider (and so once per scope)."""
        return self._add(identifier, implementation_or_factory, Lifetime.SCOPED)

    @overload
    def add_transient(self, identifier: ServiceIdentifier[T], implementation: type[T]) -> ServiceCollection: ...

    @overload
    def add_transient(self, identifier: ServiceIdentifier[T], factory: ServiceFactory[T]) -> ServiceCollection: ...

    def add_transient(
        self, identifier: ServiceIdentifier[T], implementation_or_factory: Registrable[T]
    ) -> ServiceCollection:
        """Register a service created anew on every request."""
        return self._add(identifier, implementation_or_factory, Lifetime.TRANSIENT)

    def add(self, descriptor: ServiceDescriptor[Any]) -> ServiceCollection:
        """Store a descriptor built elsewhere, as is."""
        self._descriptors[descriptor.identifier] = descriptor
        return self

    def build(self, metadata: DependencyMetadataProvider | None = None) -> ServiceProvider:
        """Freeze the registrations and return a root provider over them.

        Every singleton is constructed before this returns, so a broken
        singleton registration fails here.
        """
        frozen = MappingProxyType(dict(self._descriptors))
        logger.debug("Building service provider from %d descriptors", len(frozen))
        return ServiceProvider(frozen, metadata)

    def __len__(self) -> int:
        return len(self._descriptors)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._descriptors

    def __iter__(self) -> Iterator[ServiceDescriptor[Any]]:
        return iter(list(self._descriptors.values()))

    def _add(
        self,
        identifier: ServiceIdentifier[T],
        implementation_or_factory: Registrable[T],
        lifetime: Lifetime,
    ) -> ServiceCollection:
        if not isinstance(identifier, ServiceIdentifier):
            msg = f"Services are registered under a ServiceIdentifier, got {identifier!r}"
            raise TypeError(msg)

        if inspect.isclass(implementation_or_factory):
            descriptor = ServiceDescriptor(identifier, lifetime, implementation_type=implementation_or_factory)
        elif callable(implementation_or_factory):
            descriptor = ServiceDescriptor(identifier, lifetime, factory=implementation_or_factory)
        else:
            msg = f"Expected a class or a factory callable for {identifier!r}, got {implementation_or_factory!r}"
            raise TypeError(msg)

        if identifier in self._descriptors:
            logger.debug("Replacing registration for %r", identifier)

        self._descriptors[identifier] = descriptor
        return self
