"""High level entry points for defining services and constructing builders."""

import dataclasses
import logging
import warnings
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Union

from service_builder.builder import Builder
from service_builder.domain import ServiceDefinition
from service_builder.registry import ServiceRegistry
from service_builder.resolver import make_adhoc_resolver

__all__ = ["FactoryOptions", "ServiceFactory", "config", "factory"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FactoryOptions:
    """Options controlling what :meth:`ServiceFactory.construct` returns.

    Attributes:
        dsl: When true, construct a :class:`Builder` exposing setters and accessors.
            When false, construct returns the ad-hoc resolver function alone.
    """

    dsl: bool = True


_defaults = FactoryOptions()


def config(**options: Any) -> FactoryOptions:
    """Merge options into the defaults used by factories without explicit options.

    Returns:
        The new default options.

    Raises:
        TypeError: If an option name is unknown.
    """
    global _defaults
    _defaults = dataclasses.replace(_defaults, **options)
    logger.debug("Default factory options are now %s", _defaults)
    return _defaults


class ServiceFactory:
    """Owns a service registry and constructs builders over it.

    Args:
        registry: The registry to define services in; a new one if omitted.
        options: Options for this factory; the process-wide defaults set with
            :func:`config` apply at construction time if omitted.
    """

    def __init__(
        self,
        registry: Optional[ServiceRegistry] = None,
        options: Optional[FactoryOptions] = None,
    ):
        self.registry = registry if registry is not None else ServiceRegistry()
        self._options = options

    @property
    def options(self) -> FactoryOptions:
        return self._options if self._options is not None else _defaults

    def define(self, services: Mapping[str, Any]) -> "ServiceFactory":
        """Register services; see :meth:`ServiceRegistry.define`."""
        self.registry.define(services)
        return self

    def service(self, definition: ServiceDefinition) -> "ServiceFactory":
        """Register a single normalised definition."""
        self.registry.register(definition)
        return self

    def construct(
        self, context: Optional[dict[str, Any]] = None
    ) -> Union[Builder, Callable[[Any], Any]]:
        """Start constructing from the given context.

        The context is used in place: values supplied through the returned builder,
        and dependencies resolved by it, are written into the same dictionary.

        Args:
            context: Initially supplied dependency values, if any.

        Returns:
            A :class:`Builder`, or the ad-hoc resolver if the ``dsl`` option is off.
        """
        context = context if context is not None else {}
        if self.options.dsl:
            return Builder(self.registry, context)
        return make_adhoc_resolver(self.registry, context)

    def dsl(
        self, context: Optional[dict[str, Any]] = None
    ) -> Union[Builder, Callable[[Any], Any]]:
        """Deprecated alias of :meth:`construct`."""
        warnings.warn(
            "ServiceFactory.dsl is deprecated. Use construct instead",
            DeprecationWarning,
            stacklevel=2,
        )
        return self.construct(context)


def factory(
    services: Optional[Mapping[str, Any]] = None,
    options: Optional[FactoryOptions] = None,
) -> ServiceFactory:
    """Create a :class:`ServiceFactory` and define the given services in it.

    Example:
        >>> breakfast = factory({"breakfast": lambda meat, egg: f"{meat} and {egg}"})
        >>> breakfast.construct().with_meat("ham").with_egg("eggs").get_breakfast()
        'ham and eggs'
    """
    return ServiceFactory(options=options).define(services or {})
