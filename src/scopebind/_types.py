from __future__ import annotations

import inspect
import itertools
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import (
    Any,
    Generic,
    Protocol,
    TypeVar,
)


T = TypeVar("T")

_identifier_counter = itertools.count(1)


class ServiceIdentifier(Generic[T]):
    """Opaque token naming the contract for a service of type ``T``.

    Identifiers compare and hash by identity only. Two tokens created with the
    same name are still different services.
    """

    __slots__ = ("_name", "_serial")

    def __init__(self, name: str | None, serial: int) -> None:
        self._name = name
        self._serial = serial

    @property
    def name(self) -> str | None:
        return self._name

    def __repr__(self) -> str:
        label = self._name if self._name is not None else "anonymous"
        return f"ServiceIdentifier({label}#{self._serial})"

    def __copy__(self) -> ServiceIdentifier[T]:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> ServiceIdentifier[T]:
        return self

    def __reduce__(self) -> Any:
        msg = "ServiceIdentifier tokens cannot be pickled"
        raise TypeError(msg)


def create_service_identifier(name: str | None = None) -> ServiceIdentifier[Any]:
    """Create a new, unique service identifier.

    Example:
      USER_REPOSITORY: ServiceIdentifier[UserRepository] = create_service_identifier("UserRepository")

    """
    return ServiceIdentifier(name, next(_identifier_counter))


class Lifetime(Enum):
    SINGLETON = "singleton"
    SCOPED = "scoped"
    TRANSIENT = "transient"


class ServiceProviderProtocol(Protocol):
    def get_service(self, identifier: ServiceIdentifier[T]) -> T: ...

    def create_scope(self) -> ServiceScopeProtocol: ...

    def dispose(self) -> None: ...


class ServiceScopeProtocol(Protocol):
    @property
    def service_provider(self) -> ServiceProviderProtocol: ...

    def dispose(self) -> None: ...


ServiceFactory = Callable[[ServiceProviderProtocol], T]


@dataclass(frozen=True)
class ServiceDescriptor(Generic[T]):
    """Registration record binding an identifier to a construction strategy and a lifetime.

    The lifetime is not checked here; an unrecognised value raises
    `UnknownLifetimeError` when the descriptor is resolved.
    """

    identifier: ServiceIdentifier[T]
    lifetime: Lifetime
    implementation_type: type[T] | None = None
    factory: ServiceFactory[T] | None = None

    def __post_init__(self) -> None:
        if self.implementation_type is not None and self.factory is not None:
            msg = "Provide either `implementation_type` or `factory`, not both."
            raise ValueError(msg)

        if self.implementation_type is None and self.factory is None:
            msg = "Either `implementation_type` or `factory` must be provided."
            raise ValueError(msg)

        if self.implementation_type is not None and not inspect.isclass(self.implementation_type):
            msg = f"implementation_type must be a class, got {self.implementation_type!r}"
            raise TypeError(msg)
