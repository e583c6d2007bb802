"""Service builder: lazy composition of services from their dependency names.

Services are functions of the names of their dependencies. A factory registers
them, and a builder constructed from it resolves them on demand, supplying each
service's dependencies from a construction context or, where a dependency is
itself a service, by resolving that first. Missing inputs can be supplied one at
a time through generated ``with_<name>`` setters.

Key Features:
    - Dependencies declared by parameter name, by explicit list, or with @inject
    - Lazy, memoised resolution with cycle detection
    - Transparent support for asynchronous dependency values
    - Progressive supply of inputs through an incremental builder

Basic Usage:
    >>> from service_builder.factory import factory
    >>>
    >>> f = factory({
    ...     "breakfast": lambda meat, egg, juice: f"{meat} {egg} eggs {juice} juice",
    ... })
    >>> builder = f.construct().with_meat("bacon").with_egg("scrambled")
    >>> builder.with_juice("orange").get_breakfast()
    'bacon scrambled eggs orange juice'

The framework consists of several core modules:
    - registry: Service registration and dependency introspection
    - factory: High-level entry points and options
    - builder: The incremental builder
    - resolver: Lazy resolution, cycle detection and async coalescing
    - domain: Core domain model (ServiceDefinition)
    - errors: Framework-specific exceptions
"""
