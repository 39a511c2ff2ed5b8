from __future__ import annotations


class ContainerError(RuntimeError):
    """Base class for every error raised by the container."""


class BindingError(ContainerError):
    """Raised when a binding is invalid, or cannot be found for an abstract."""


class BuildError(ContainerError):
    """Raised when resolving an instance is not possible."""
