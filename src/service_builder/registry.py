"""Registration and introspection utilities for service definitions."""

import dataclasses
import inspect
import logging
from typing import Any, Callable, Mapping, Optional

from service_builder.domain import RESERVED_NAME, ServiceDefinition
from service_builder.errors import DuplicateServiceError, ReservedNameError

__all__ = [
    "ServiceRegistry",
    "inject",
    "inferred_name",
    "make_definition",
]

logger = logging.getLogger(__name__)


def inject(*names: str) -> Callable:
    """Decorator declaring the dependency names of a provider explicitly.

    The names take precedence over the provider's parameter names, which lets a
    provider depend on names that are not valid identifiers, such as ``"$"``.

    Example:
        >>> @inject("meat", "egg")
        ... def solids(m, e):
        ...     return f"{m} {e}"
    """

    def decorator(func: Callable) -> Callable:
        func.__inject__ = list(names)
        return func

    return decorator


def inferred_name(target: Any) -> str:
    """Derive a service name from a class or function name, removing any 'make_' prefix.

    Example:
        >>> inferred_name(Database)       # Returns "Database"
        >>> inferred_name(make_database)  # Returns "database"
    """
    if inspect.isclass(target):
        return target.__name__

    if target.__name__.startswith("make_"):
        return target.__name__[5:]
    else:
        return target.__name__


def make_definition(name: str, entry: Any) -> ServiceDefinition:
    """Normalise a service entry into a :class:`ServiceDefinition`.

    An entry may be given in any of these shapes:

    - a list or tuple whose last element is the provider and whose other elements
      are the dependency names, in order;
    - a callable carrying an ``__inject__`` list of dependency names;
    - a plain callable, whose positional parameter names are its dependencies;
    - any other value, which becomes a constant with no dependencies.

    Args:
        name: The name the definition is registered under.
        entry: The entry to normalise.

    Returns:
        The normalised definition.
    """
    if isinstance(entry, (list, tuple)) and entry and callable(entry[-1]):
        return ServiceDefinition(name, tuple(entry[:-1]), entry[-1])

    if not callable(entry):
        return ServiceDefinition(name, (), _constant(entry))

    injected = getattr(entry, "__inject__", None)
    if injected is not None:
        return ServiceDefinition(name, tuple(injected), entry)

    return ServiceDefinition(name, _get_dependencies(entry), entry)


class ServiceRegistry:
    """Registry of named service definitions.

    Names are unique and definitions are never replaced or removed.
    """

    def __init__(self):
        self._definitions: dict[str, ServiceDefinition] = {}

    def define(self, services: Mapping[str, Any]) -> "ServiceRegistry":
        """Normalise and register a batch of services.

        The whole batch is checked before anything is registered, so a batch
        containing a bad name leaves the registry unchanged.

        Args:
            services: Mapping of service names to entries in any shape accepted by
                :func:`make_definition`.

        Returns:
            This registry, for chaining.

        Raises:
            ReservedNameError: If any name is ``"$"``.
            DuplicateServiceError: If any name is already registered.
        """
        if RESERVED_NAME in services:
            raise ReservedNameError(RESERVED_NAME)

        definitions = [make_definition(name, entry) for name, entry in services.items()]
        for definition in definitions:
            self._check_available(definition.name)

        for definition in definitions:
            self.register(definition)
        return self

    def register(self, definition: ServiceDefinition) -> "ServiceRegistry":
        """Register a definition explicitly.

        A definition whose provider is not callable is registered as a constant.

        Raises:
            ReservedNameError: If the definition is named ``"$"``.
            DuplicateServiceError: If the name is already registered.
        """
        self._check_available(definition.name)
        if not callable(definition.provider):
            definition = dataclasses.replace(
                definition, provider=_constant(definition.provider)
            )
        self._definitions[definition.name] = definition
        logger.debug(
            "Registered service %s with dependencies %s",
            definition.name,
            list(definition.dependencies),
        )
        return self

    def provides(self, name: Optional[str] = None) -> Callable:
        """Decorator to register a function or class as a service provider.

        Args:
            name: Optional service name; defaults to the function name with any
                'make_' prefix removed, or the class name.

        Example:
            @registry.provides()
            def make_greeting(greeter, audience):
                return greeter(audience)
        """

        def decorator(obj):
            self.register(make_definition(name or inferred_name(obj), obj))
            return obj

        return decorator

    def get(self, name: str) -> Optional[ServiceDefinition]:
        return self._definitions.get(name)

    def names(self) -> list[str]:
        """Registered service names, in registration order."""
        return list(self._definitions)

    def dependency_closure(self) -> frozenset[str]:
        """Every distinct dependency name referenced by any registered service."""
        return frozenset(
            dependency
            for definition in self._definitions.values()
            for dependency in definition.dependencies
        )

    def __contains__(self, name: str) -> bool:
        return name in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    def _check_available(self, name: str):
        if name == RESERVED_NAME:
            raise ReservedNameError(name)
        if name in self._definitions:
            raise DuplicateServiceError(name)


def _constant(value: Any) -> Callable[..., Any]:
    def provide(*_dependencies):
        return value

    return provide


def _get_dependencies(func: Callable) -> tuple[str, ...]:
    """Extract dependency names from a callable's positional parameters.

    Example:
        >>> def breakfast(meat, egg, juice, *extras, style="full"): ...
        >>> _get_dependencies(breakfast)
        ('meat', 'egg', 'juice')
    """
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        return ()
    return tuple(
        name
        for name, param in sig.parameters.items()
        if param.kind
        in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    )
