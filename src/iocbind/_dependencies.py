from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Callable, Sequence


REFERENCE_PREFIX = "@ref:"


@dataclass(frozen=True)
class Literal:
    """Dependency passed to the constructor as-is."""

    value: Any


@dataclass(frozen=True)
class Reference:
    """Dependency resolved from the container by abstract or alias."""

    identifier: str


@dataclass(frozen=True)
class NestedType:
    """Dependency built by the container from a class, without parameters."""

    target: Callable[..., Any]


Dependency = Literal | Reference | NestedType


class HasDependencies:
    """Classes that declare their own constructor dependencies.

    Example:
      class Mailer(HasDependencies):
          @classmethod
          def dependencies(cls):
              return ["@ref:transport", Literal("noreply@example.com")]

    """

    @classmethod
    def dependencies(cls) -> Sequence[object]:
        """Return the ordered dependency declaration for this class."""
        msg = f"{cls.__name__}.dependencies() must be implemented in sub-class"
        raise NotImplementedError(msg)


def classify(element: object) -> Dependency:
    """Turn a raw declaration element into a tagged dependency.

    Tagged elements are returned unchanged. Strings carrying `REFERENCE_PREFIX`
    become references, everything else (other strings, callables, containers,
    sentinels...) is a literal.
    """
    if isinstance(element, (Literal, Reference, NestedType)):
        return element

    if isinstance(element, str) and element.startswith(REFERENCE_PREFIX):
        return Reference(element[len(REFERENCE_PREFIX) :])

    return Literal(element)
