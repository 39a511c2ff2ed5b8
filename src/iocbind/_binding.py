from __future__ import annotations

from enum import Enum
from numbers import Number
from typing import Any

from ._errors import BindingError


class ConcreteKind(Enum):
    CALLBACK = "callback"
    TYPE = "type"
    VALUE = "value"


# Scalars are rejected as concretes; a binding must point at something buildable.
_SCALAR_TYPES = (str, bytes, bytearray, bool, Number)


class Binding:
    """Association between an abstract identifier and its concrete.

    - `abstract`: the identifier the binding is registered under
    - `concrete`: a callback, a class, an object or None
    - `kind`: how the container turns the concrete into an instance
    - `shared`: cache the first resolved instance

    Bindings are mutable for flexibility, but should be treated as value objects
    once registered in a container.
    """

    def __init__(
        self,
        abstract: str,
        concrete: Any = None,
        shared: bool = False,  # noqa: FBT001, FBT002
        is_callback: bool = True,  # noqa: FBT001, FBT002
        *,
        kind: ConcreteKind | None = None,
    ) -> None:
        self._kind = kind if kind is not None else self._derive_kind(concrete, is_callback=is_callback)
        self.abstract = abstract
        self.concrete = concrete
        self.shared = shared

    @property
    def abstract(self) -> str:
        return self._abstract

    @abstract.setter
    def abstract(self, identifier: str) -> None:
        self._abstract = identifier

    @property
    def concrete(self) -> Any:
        return self._concrete

    @concrete.setter
    def concrete(self, concrete: Any) -> None:
        if isinstance(concrete, _SCALAR_TYPES):
            msg = f"Concrete for {self._abstract!r} must be a callback, an object or None, got {type(concrete).__name__}"
            raise BindingError(msg)

        if self._kind is ConcreteKind.CALLBACK and concrete is not None and not callable(concrete):
            msg = f"Callback concrete for {self._abstract!r} is not callable: {concrete!r}"
            raise BindingError(msg)

        if self._kind is ConcreteKind.TYPE and concrete is not None and not callable(concrete):
            msg = f"Type concrete for {self._abstract!r} cannot be instantiated: {concrete!r}"
            raise BindingError(msg)

        self._concrete = concrete

    @property
    def shared(self) -> bool:
        return self._shared

    @shared.setter
    def shared(self, is_shared: bool) -> None:
        self._shared = bool(is_shared)

    @property
    def kind(self) -> ConcreteKind:
        return self._kind

    @property
    def is_callback(self) -> bool:
        return self._kind is ConcreteKind.CALLBACK

    @is_callback.setter
    def is_callback(self, value: bool) -> None:
        if value and self._concrete is not None and not callable(self._concrete):
            msg = f"Callback concrete for {self._abstract!r} is not callable: {self._concrete!r}"
            raise BindingError(msg)
        self._kind = self._derive_kind(self._concrete, is_callback=value)

    @staticmethod
    def _derive_kind(concrete: Any, *, is_callback: bool) -> ConcreteKind:
        if is_callback:
            return ConcreteKind.CALLBACK
        if concrete is None or callable(concrete):
            return ConcreteKind.TYPE
        return ConcreteKind.VALUE

    def __repr__(self) -> str:
        return (
            f"Binding(abstract={self._abstract!r}, concrete={self._concrete!r}, "
            f"shared={self._shared!r}, kind={self._kind.name})"
        )
