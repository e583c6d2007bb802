"""Domain models used throughout the framework."""

from dataclasses import dataclass, field
from typing import Callable

RESERVED_NAME = "$"


@dataclass(eq=False)
class ServiceDefinition:
    """A named service and the dependencies its provider is called with.

    Attributes:
        name: The unique name of the service.
        dependencies: Names whose values are passed to the provider, positionally and
            in this order.
        provider: The callable building the service. It may return a plain value or
            an awaitable.
        loading: Set while the service is being resolved, so that a request for it
            from one of its own dependencies can be reported as a cycle.
    """

    name: str
    dependencies: tuple[str, ...]
    provider: Callable
    loading: bool = field(default=False, repr=False)
