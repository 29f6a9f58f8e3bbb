from __future__ import annotations

__all__ = [
    "CompoundError",
    "HostSetupError",
    "ComponentNotLoadedError",
    "InvalidTransitionError",
    "BindingError",
]


class CompoundError(Exception):
    """Base class for errors raised by the component framework."""


class HostSetupError(CompoundError):
    """Raised when the host folders needed before discovery cannot be prepared."""


class ComponentNotLoadedError(CompoundError, LookupError):
    """Raised when a component is looked up that is unknown or not loaded."""

    def __init__(self, name: str, state: str | None = None):
        self.name = name
        self.state = state
        detail = f"state={state}" if state else "unknown component"
        super().__init__(f"component '{name}' is not loaded ({detail})")


class InvalidTransitionError(CompoundError):
    """Raised when a component record would leave a terminal state."""


class BindingError(CompoundError):
    """A required configuration field could not be satisfied."""

    def __init__(self, message: str, trace: str | None = None):
        super().__init__(message)
        self.trace = trace
