"""
The incremental builder exposed by :meth:`ServiceFactory.construct`.

A :class:`Builder` presents a construction context through named members:

- ``with_<name>(value)`` for every dependency some registered service needs that
  has not been supplied yet. It supplies the value and returns a new builder.
- ``get_<name>()`` for every registered service, returning the resolved value.
- ``<name>`` for every registered service, the same value read as an attribute.

Members can be read as attributes or by key, and the builder enumerates them like
the keys of a mapping. The ad-hoc resolver is available as ``builder["$"]`` and
``builder.resolve``; it is not enumerated.

Every builder derived from the same root shares one context, so a value supplied
through any of them is visible to all.

A service whose dependencies are pending stays marked as loading until they have
settled. Requesting it again in that window, from another builder or through a
service that depends on it, raises :class:`CircularDependencyError`. Await the
first result before asking for services that depend on it.
"""

import logging
from typing import Any, Callable

from service_builder.domain import RESERVED_NAME
from service_builder.registry import ServiceRegistry
from service_builder.resolver import Resolver, make_adhoc_resolver

__all__ = ["Builder", "getter_name", "setter_name"]

logger = logging.getLogger(__name__)


def setter_name(name: str) -> str:
    return f"with_{name}"


def getter_name(name: str) -> str:
    return f"get_{name}"


class Builder:
    """A step in the progressive construction of a context."""

    def __init__(self, registry: ServiceRegistry, context: dict[str, Any]):
        self._registry = registry
        self._context = context
        self._resolve = make_adhoc_resolver(registry, context)

        remaining = registry.dependency_closure() - context.keys() - {RESERVED_NAME}
        self._setters: dict[str, Callable] = {
            setter_name(name): self._make_setter(name) for name in sorted(remaining)
        }
        self._getters: dict[str, Resolver] = {
            name: Resolver(registry, context, name, (name,), registry.get(name))
            for name in registry.names()
        }
        self._methods: dict[str, Callable] = {
            **self._setters,
            **{getter_name(name): getter for name, getter in self._getters.items()},
        }
        logger.debug(
            "Built builder with setters %s and services %s",
            list(self._setters),
            list(self._getters),
        )

    def resolve(self, entry: Any) -> Any:
        """Resolve an unregistered provider against this builder's context."""
        return self._resolve(entry)

    def keys(self) -> list[str]:
        return list(dict.fromkeys([*self._methods, *self._getters]))

    def _make_setter(self, name: str) -> Callable[..., "Builder"]:
        def supply(value: Any = None) -> "Builder":
            self._context[name] = value
            return Builder(self._registry, self._context)

        supply.__name__ = setter_name(name)
        return supply

    def __getitem__(self, key: str) -> Any:
        if key == RESERVED_NAME:
            return self._resolve
        if key in self._getters:
            return self._getters[key]()
        return self._methods[key]

    def __getattr__(self, item: str) -> Any:
        if item.startswith("_") or (item not in self._getters and item not in self._methods):
            raise AttributeError(
                f"{type(self).__name__!r} object has no attribute {item!r}"
            )
        return self[item]

    def __iter__(self):
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self.keys())

    def __contains__(self, key: str) -> bool:
        return key in self._getters or key in self._methods

    def __dir__(self):
        return [*super().__dir__(), *self.keys()]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.keys()!r})"
