__all__ = [
    "DependencyError",
    "ReservedNameError",
    "DuplicateServiceError",
    "CircularDependencyError",
    "UnresolvedDependencyError",
]


class DependencyError(Exception):
    """Raised when a service cannot be defined or its dependencies cannot be resolved."""

    pass


class ReservedNameError(DependencyError):
    """Raised when a definition uses the name reserved for the ad-hoc resolver."""

    def __init__(self, name: str):
        super().__init__(f"{name} is a reserved internal dependency for factory functions")
        self.name = name


class DuplicateServiceError(DependencyError):
    """Raised when a service name is registered twice."""

    def __init__(self, name: str):
        super().__init__(f"Already have {name} registered")
        self.name = name


class CircularDependencyError(DependencyError):
    """Raised when a service is requested again while it is still being resolved.

    Attributes:
        name: The service that was re-entered.
        chain: The names being loaded, most recently entered first.
    """

    def __init__(self, name: str, chain: tuple[str, ...]):
        super().__init__(
            f"Circular dependency error with {name} at {' => '.join(chain)}"
        )
        self.name = name
        self.chain = chain


class UnresolvedDependencyError(DependencyError):
    """Raised when a dependency is neither registered nor supplied in the context.

    Attributes:
        name: The missing dependency.
        available: The names present in the construction context.
        chain: The names being loaded when the dependency was requested.
    """

    def __init__(self, name: str, available: tuple[str, ...], chain: tuple[str, ...]):
        super().__init__(
            f"Failed to resolve {name} from {', '.join(available)} "
            f"at {' => '.join(chain)}"
        )
        self.name = name
        self.available = available
        self.chain = chain
