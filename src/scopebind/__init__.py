"""Scoped dependency injection container.

This package resolves object graphs from a registry of service descriptors,
sharing instances according to their lifetime and isolating per-unit-of-work
instances in scopes.

Exports:
- `ServiceCollection`: Registry builder; `build()` returns the root provider.
- `ServiceProvider`: Resolution engine with singleton and scoped caches.
- `ServiceScope`: Child provider for a unit of work, disposable and usable as a
  context manager.
- `Lifetime`: Enum of the singleton / scoped / transient lifetimes.
- `create_service_identifier`: Creates the opaque tokens services are keyed by.
- `inject`, `AnnotatedDependencies`, `ExplicitDependencies`: Ways of telling the
  provider which services a constructor needs.
"""

from ._collection import ServiceCollection
from ._errors import (
    CircularDependencyError,
    DependencyMetadataError,
    ResolutionError,
    ServiceNotRegisteredError,
    UnknownLifetimeError,
)
from ._metadata import AnnotatedDependencies, DependencyMetadataProvider, ExplicitDependencies, Inject, inject
from ._provider import ServiceProvider, ServiceScope
from ._types import (
    Lifetime,
    ServiceDescriptor,
    ServiceFactory,
    ServiceIdentifier,
    ServiceProviderProtocol,
    ServiceScopeProtocol,
    create_service_identifier,
)


__all__ = [
    "AnnotatedDependencies",
    "CircularDependencyError",
    "DependencyMetadataError",
    "DependencyMetadataProvider",
    "ExplicitDependencies",
    "Inject",
    "Lifetime",
    "ResolutionError",
    "ServiceCollection",
    "ServiceDescriptor",
    "ServiceFactory",
    "ServiceIdentifier",
    "ServiceNotRegisteredError",
    "ServiceProvider",
    "ServiceProviderProtocol",
    "ServiceScope",
    "ServiceScopeProtocol",
    "UnknownLifetimeError",
    "create_service_identifier",
    "inject",
]
