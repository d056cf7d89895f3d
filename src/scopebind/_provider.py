from __future__ import annotations

import logging
import threading
from types import MappingProxyType
from typing import (
    TYPE_CHECKING,
    Any,
    TypeVar,
)

from ._errors import CircularDependencyError, ServiceNotRegisteredError, UnknownLifetimeError
from ._metadata import AnnotatedDependencies
from ._types import Lifetime


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from ._metadata import DependencyMetadataProvider
    from ._types import ServiceDescriptor, ServiceIdentifier

    T = TypeVar("T")


class ServiceScope:
    """A unit of work with its own scoped instances.

    Singletons already built by the parent provider are shared; scoped
    services are created once per scope and dropped by `dispose()`.

    Example:
      with provider.create_scope() as scope:
          handler = scope.service_provider.get_service(REQUEST_HANDLER)

    """

    def __init__(self, service_provider: ServiceProvider) -> None:
        self._service_provider = service_provider

    @property
    def service_provider(self) -> ServiceProvider:
        return self._service_provider

    def dispose(self) -> None:
        self._service_provider.dispose()

    def __enter__(self) -> ServiceScope:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.dispose()


class ServiceProvider:
    """Resolves services from a frozen set of descriptors.

    - singleton: one instance per provider, copied into scopes created later
    - scoped: one instance per provider, never shared with scopes
    - transient: a new instance on every request
    All singletons are constructed when the provider is created.
    """

    def __init__(
        self,
        descriptors: Mapping[ServiceIdentifier[Any], ServiceDescriptor[Any]],
        metadata: DependencyMetadataProvider | None = None,
        *,
        _parent: ServiceProvider | None = None,
    ) -> None:
        if not isinstance(descriptors, MappingProxyType):
            descriptors = MappingProxyType(dict(descriptors))

        self._descriptors = descriptors
        self._metadata = metadata if metadata is not None else AnnotatedDependencies()
        self._singleton_instances: dict[ServiceIdentifier[Any], Any] = {}
        self._scoped_instances: dict[ServiceIdentifier[Any], Any] = {}
        self._entry_locks: dict[ServiceIdentifier[Any], threading.RLock] = {}
        self._local = threading.local()
        self._lock = threading.RLock()

        if _parent is not None:
            self._singleton_instances.update(_parent._snapshot_singletons())  # noqa: SLF001

        self._resolve_singletons()

    def get_service(self, identifier: ServiceIdentifier[T]) -> T:
        """Resolve `identifier` to an instance according to its lifetime.

        Raises `ServiceNotRegisteredError` when nothing is registered for it,
        also when it is reached as a constructor dependency.
        """
        descriptor = self._descriptors.get(identifier)

        if descriptor is None:
            raise ServiceNotRegisteredError(identifier)

        return self._resolve(descriptor)

    def is_registered(self, identifier: ServiceIdentifier[Any]) -> bool:
        return identifier in self._descriptors

    def create_scope(self) -> ServiceScope:
        """Create a scope whose provider starts with this provider's current singletons."""
        scoped_provider = ServiceProvider(self._descriptors, self._metadata, _parent=self)
        logger.debug(
            "Created scope inheriting %d singletons",
            len(scoped_provider._singleton_instances),  # noqa: SLF001
        )
        return ServiceScope(scoped_provider)

    def dispose(self) -> None:
        """Drop this provider's scoped instances; singletons, parents and scopes are untouched."""
        with self._lock:
            cleared = len(self._scoped_instances)
            self._scoped_instances.clear()

        logger.debug("Disposed provider, cleared %d scoped instances", cleared)

    def _snapshot_singletons(self) -> dict[ServiceIdentifier[Any], Any]:
        with self._lock:
            return dict(self._singleton_instances)

    def _resolve_singletons(self) -> None:
        singletons = [d for d in self._descriptors.values() if _lifetime_of(d) is Lifetime.SINGLETON]

        for descriptor in singletons:
            self._resolve(descriptor)

        logger.debug(
            "Provider ready: %d descriptors, %d singletons resolved",
            len(self._descriptors),
            len(singletons),
        )

    def _resolve(self, descriptor: ServiceDescriptor[T]) -> T:
        lifetime = _lifetime_of(descriptor)

        if lifetime is None:
            raise UnknownLifetimeError(descriptor)

        if lifetime is Lifetime.TRANSIENT:
            return self._construct(descriptor)

        cache = self._singleton_instances if lifetime is Lifetime.SINGLETON else self._scoped_instances
        identifier = descriptor.identifier

        with self._lock:
            if identifier in cache:
                return cache[identifier]
            entry_lock = self._entry_locks.setdefault(identifier, threading.RLock())

        # only requests for the same identifier wait on each other while user code runs
        with entry_lock:
            with self._lock:
                if identifier in cache:
                    return cache[identifier]

            instance = self._construct(descriptor)

            with self._lock:
                cache[identifier] = instance
            return instance

    def _construct(self, descriptor: ServiceDescriptor[T]) -> T:
        identifier = descriptor.identifier
        stack = self._construction_stack()

        if identifier in stack:
            start = stack.index(identifier)
            raise CircularDependencyError([*stack[start:], identifier])

        stack.append(identifier)
        try:
            if descriptor.factory is not None:
                return descriptor.factory(self)

            if descriptor.implementation_type is None:
                msg = f"Descriptor for {identifier!r} has neither an implementation type nor a factory"
                raise ValueError(msg)

            return self._create_instance(descriptor.implementation_type)
        finally:
            stack.pop()

    def _construction_stack(self) -> list[ServiceIdentifier[Any]]:
        stack = getattr(self._local, "stack", None)
        if stack is None:
            stack = self._local.stack = []
        return stack

    def _create_instance(self, cls: type[T]) -> T:
        dependencies = self._metadata.get_constructor_dependencies(cls)
        args = [self.get_service(dependency) for dependency in dependencies]
        logger.debug("Constructing %s with %d dependencies", cls.__qualname__, len(args))
        return cls(*args)


def _lifetime_of(descriptor: ServiceDescriptor[Any]) -> Lifetime | None:
    try:
        return Lifetime(descriptor.lifetime)
    except (ValueError, TypeError):
        return None
