from __future__ import annotations

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    import inspect
    from collections.abc import Sequence

    from ._types import ServiceDescriptor, ServiceIdentifier


class ResolutionError(RuntimeError):
    """Base class for every failure raised while resolving services."""


class ServiceNotRegisteredError(ResolutionError):
    def __init__(self, identifier: ServiceIdentifier[Any]) -> None:
        self.identifier = identifier
        super().__init__(f"Service {identifier!r} is not registered.")


class UnknownLifetimeError(ResolutionError):
    def __init__(self, descriptor: ServiceDescriptor[Any]) -> None:
        self.descriptor = descriptor
        super().__init__(f"Unknown service lifetime {descriptor.lifetime!r} for {descriptor.identifier!r}.")


class CircularDependencyError(ResolutionError):
    """Raised when an identifier is requested while it is still being constructed.

    `chain` lists the identifiers from the first occurrence of the repeated
    identifier down to the request that closed the cycle.
    """

    def __init__(self, chain: Sequence[ServiceIdentifier[Any]]) -> None:
        self.chain = tuple(chain)
        path = " -> ".join(repr(identifier) for identifier in self.chain)
        super().__init__(f"Circular dependency detected: {path}")


class DependencyMetadataError(ResolutionError):
    def __init__(self, implementation_type: type, parameter: inspect.Parameter) -> None:
        self.implementation_type = implementation_type
        self.parameter = parameter
        super().__init__(
            f"Cannot satisfy constructor parameter '{parameter.name}' for {implementation_type.__name__}. "
            "No inject() marker and no default value found."
        )
