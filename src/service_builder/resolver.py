"""
Lazy resolution of services against a construction context.

A construction context is a plain dictionary mapping dependency names to values.
Resolving a service looks each of its dependencies up in the context; a missing
dependency that is itself a registered service is resolved recursively and
written back into the context, so that every later consumer sees the same value.

Values may be asynchronous. When any argument of a provider is pending, the
provider is deferred until all of them have settled. Inside a running event loop
the resolution result is an :class:`asyncio.Task`. Outside one, the pending work is
held by a :class:`Deferred`, which starts the task on its first await, and callers
receive a coroutine awaiting it, so that
``asyncio.run(builder.get_meal())`` works. Either can be awaited any number of
times.
"""

import asyncio
import inspect
import logging
from typing import Any, Callable

from service_builder.domain import RESERVED_NAME, ServiceDefinition
from service_builder.errors import CircularDependencyError, UnresolvedDependencyError
from service_builder.registry import ServiceRegistry, make_definition

__all__ = ["Deferred", "Resolver", "is_pending", "make_adhoc_resolver"]

logger = logging.getLogger(__name__)

_UNSET = object()


class Deferred:
    """An awaitable that starts its coroutine as a task on the first await.

    Every later await, from any event loop, waits for that same task.
    """

    def __init__(self, coroutine):
        self._coroutine = coroutine
        self._future = None

    def __await__(self):
        if self._future is None:
            self._future = asyncio.ensure_future(self._coroutine)
        return self._future.__await__()

    async def result(self) -> Any:
        return await self


def is_pending(value: Any) -> bool:
    """True if the value is a future, a deferred value or an unawaited coroutine."""
    return (
        asyncio.isfuture(value)
        or isinstance(value, Deferred)
        or inspect.iscoroutine(value)
    )


def _shareable(value: Any) -> Any:
    # A coroutine can only be awaited once; a task can be awaited by every consumer.
    if not inspect.iscoroutine(value):
        return value
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return Deferred(value)
    return asyncio.ensure_future(value)


class Resolver:
    """Resolves one service against one construction context, memoising the result.

    Args:
        registry: Registry consulted for dependencies missing from the context.
        context: The construction context, read and written in place.
        name: The name the service is being resolved as.
        chain: The names currently being loaded, most recently entered first.
        definition: The definition being resolved.
    """

    def __init__(
        self,
        registry: ServiceRegistry,
        context: dict[str, Any],
        name: str,
        chain: tuple[str, ...],
        definition: ServiceDefinition,
    ):
        self._registry = registry
        self._context = context
        self._name = name
        self._chain = chain
        self._definition = definition
        self._singleton = _UNSET

    def __call__(self) -> Any:
        value = self.memoised()
        if isinstance(value, Deferred):
            return value.result()
        return value

    def memoised(self) -> Any:
        """The memoised value, with pending work outside an event loop left deferred."""
        if self._singleton is _UNSET:
            self._singleton = self._resolve()
        return self._singleton

    def _resolve(self) -> Any:
        definition = self._definition
        if definition.loading:
            raise CircularDependencyError(self._name, self._chain)

        definition.loading = True
        try:
            args = [self._argument(dependency) for dependency in definition.dependencies]
        except Exception:
            definition.loading = False
            raise

        if any(is_pending(arg) for arg in args):
            logger.debug("Deferring %s until its dependencies settle", self._name)
            return _shareable(self._settle(args))

        definition.loading = False
        logger.debug("Resolving %s", self._name)
        return _shareable(definition.provider(*args))

    async def _settle(self, args: list[Any]) -> Any:
        definition = self._definition
        try:
            settled = iter(await asyncio.gather(*(arg for arg in args if is_pending(arg))))
        finally:
            definition.loading = False

        resolved = [next(settled) if is_pending(arg) else arg for arg in args]
        logger.debug("Resolving %s", self._name)
        result = definition.provider(*resolved)
        if is_pending(result):
            result = await result
        return result

    def _argument(self, dependency: str) -> Any:
        context = self._context
        if dependency not in context:
            definition = self._registry.get(dependency)
            if definition is not None:
                context[dependency] = Resolver(
                    self._registry,
                    context,
                    dependency,
                    (dependency, *self._chain),
                    definition,
                ).memoised()

        if dependency not in context:
            if dependency == RESERVED_NAME:
                return make_adhoc_resolver(self._registry, context)
            raise UnresolvedDependencyError(dependency, tuple(context), self._chain)

        value = context[dependency]
        if inspect.iscoroutine(value):
            value = context[dependency] = _shareable(value)
        return value


def make_adhoc_resolver(
    registry: ServiceRegistry, context: dict[str, Any]
) -> Callable[[Any], Any]:
    """Create the ``"$"`` resolver for a construction context.

    The returned function accepts a provider in any shape the registry accepts and
    resolves it against the context without registering it. Services defined after
    the context was created are visible to it.

    Example:
        >>> resolve = make_adhoc_resolver(registry, {"meat": "ham"})
        >>> resolve(lambda meat: meat.upper())
        'HAM'
    """

    def resolve(entry: Any) -> Any:
        definition = make_definition(RESERVED_NAME, entry)
        return Resolver(registry, context, RESERVED_NAME, (RESERVED_NAME,), definition)()

    return resolve
