"""Runtime IoC service container.

This package provides a process-wide service registry: abstract identifiers are
bound to factory callbacks, classes or plain values, and resolved back into
fresh or shared (singleton) instances.

Exports:
- `get_container`: Returns the one `Container` of the process.
- `Container`: Binding registry and resolution engine.
- `Binding`, `ConcreteKind`: The stored association and its producer kind.
- `Literal`, `Reference`, `NestedType`: Tagged dependency declaration elements.
- `HasDependencies`: Base for classes that declare their own dependencies.
- `ContainerError`, `BindingError`, `BuildError`: Error hierarchy.
"""

from ._binding import Binding, ConcreteKind
from ._container import Container, get_container
from ._dependencies import REFERENCE_PREFIX, HasDependencies, Literal, NestedType, Reference
from ._errors import BindingError, BuildError, ContainerError


__all__ = [
    "REFERENCE_PREFIX",
    "Binding",
    "BindingError",
    "BuildError",
    "ConcreteKind",
    "Container",
    "ContainerError",
    "HasDependencies",
    "Literal",
    "NestedType",
    "Reference",
    "get_container",
]
