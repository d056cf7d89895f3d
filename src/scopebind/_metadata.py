from __future__ import annotations

import inspect
import logging
import threading
from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    Annotated,
    Any,
    Protocol,
    TypeVar,
    get_args,
    get_origin,
    get_type_hints,
)

from ._errors import DependencyMetadataError
from ._types import ServiceIdentifier


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

T = TypeVar("T")


class DependencyMetadataProvider(Protocol):
    """Supplies the ordered service identifiers an implementation type's constructor takes.

    The returned sequence must match the constructor's positional parameters in
    length and order. Types the provider knows nothing about have no
    dependencies.
    """

    def get_constructor_dependencies(self, implementation_type: type) -> Sequence[ServiceIdentifier[Any]]: ...


@dataclass(frozen=True)
class Inject:
    identifier: ServiceIdentifier[Any]


def inject(identifier: ServiceIdentifier[Any]) -> Inject:
    """Mark a constructor parameter as requiring `identifier`.

    Example:
      class OrderService:
          def __init__(self, repo: Annotated[OrderRepository, inject(ORDER_REPOSITORY)]) -> None: ...

    """
    if not isinstance(identifier, ServiceIdentifier):
        msg = f"inject() expects a ServiceIdentifier, got {identifier!r}"
        raise TypeError(msg)
    return Inject(identifier)


class AnnotatedDependencies:
    """Read dependencies from `Annotated[..., inject(ID)]` constructor hints.

    A bare `ServiceIdentifier` in the `Annotated` metadata is accepted as well.
    Positional parameters are collected in order until the first unmarked
    parameter that has a default; that parameter and the rest keep their
    defaults.
    """

    def get_constructor_dependencies(self, implementation_type: type) -> Sequence[ServiceIdentifier[Any]]:
        if _defining_init(implementation_type) is object.__init__:
            return ()

        try:
            sig = inspect.signature(implementation_type)
        except (TypeError, ValueError):
            # builtins without an introspectable signature
            return ()

        hints = _get_init_type_hints(implementation_type)
        identifiers: list[ServiceIdentifier[Any]] = []
        defaulted: inspect.Parameter | None = None

        for name, p in sig.parameters.items():
            if p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD):
                continue

            if p.kind is p.KEYWORD_ONLY:
                if p.default is p.empty:
                    raise DependencyMetadataError(implementation_type, p)
                continue

            identifier = _find_identifier(hints.get(name))

            if identifier is None:
                if p.default is p.empty:
                    raise DependencyMetadataError(implementation_type, p)
                defaulted = defaulted or p
                continue

            if defaulted is not None:
                # a marked parameter cannot be reached positionally past a defaulted one
                raise DependencyMetadataError(implementation_type, defaulted)

            identifiers.append(identifier)

        return tuple(identifiers)


class ExplicitDependencies:
    """Side table of dependencies declared at registration time.

    Types that were never declared are delegated to `fallback`, or have no
    dependencies when there is none.
    """

    def __init__(self, fallback: DependencyMetadataProvider | None = None) -> None:
        self._declared: dict[type, tuple[ServiceIdentifier[Any], ...]] = {}
        self._fallback = fallback
        self._lock = threading.Lock()

    def declare(self, implementation_type: type[T], *identifiers: ServiceIdentifier[Any]) -> type[T]:
        for identifier in identifiers:
            if not isinstance(identifier, ServiceIdentifier):
                msg = f"Dependencies of {implementation_type.__name__} must be ServiceIdentifiers, got {identifier!r}"
                raise TypeError(msg)

        with self._lock:
            self._declared[implementation_type] = tuple(identifiers)
        return implementation_type

    def dependencies(self, *identifiers: ServiceIdentifier[Any]) -> Callable[[type[T]], type[T]]:
        """Class decorator form of `declare`."""

        def decorator(implementation_type: type[T]) -> type[T]:
            return self.declare(implementation_type, *identifiers)

        return decorator

    def __contains__(self, implementation_type: object) -> bool:
        return implementation_type in self._declared

    def get_constructor_dependencies(self, implementation_type: type) -> Sequence[ServiceIdentifier[Any]]:
        with self._lock:
            declared = self._declared.get(implementation_type)

        if declared is not None:
            return declared

        if self._fallback is not None:
            return self._fallback.get_constructor_dependencies(implementation_type)

        return ()


def _defining_init(cls: type) -> Any:
    for klass in cls.__mro__:
        if "__init__" in klass.__dict__:
            return klass.__dict__["__init__"]
    return object.__init__


def _find_identifier(annotation: Any) -> ServiceIdentifier[Any] | None:
    if get_origin(annotation) is not Annotated:
        return None

    for extra in get_args(annotation)[1:]:
        if isinstance(extra, Inject):
            return extra.identifier
        if isinstance(extra, ServiceIdentifier):
            return extra

    return None


def _get_init_type_hints(cls: type) -> dict[str, Any]:
    try:
        init = inspect.getattr_static(cls, "__init__")
        hints = get_type_hints(init, include_extras=True)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s (%s) type hints", exc.name, cls.__name__, cls.__qualname__)
        hints = {}

    return hints
