from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from ._binding import Binding, ConcreteKind
from ._dependencies import HasDependencies, Literal, Reference, classify
from ._errors import BindingError, BuildError, ContainerError


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable, Sequence

    Parameters = Sequence[Any] | Mapping[Any, Any] | None


class Container:
    """IoC service container.

    - bind callbacks, classes or plain values to string abstracts
    - shared (singleton) bindings are built once and cached
    - aliases, followed until they reach a registered abstract
    - explicit dependency declarations for class bindings

    There is exactly one container per process, obtained through
    `get_container()`. All state is guarded by a single re-entrant lock,
    held for the whole `make` -> `build` -> `make` call chain.
    """

    def __init__(self, *, _from_factory: bool = False) -> None:
        if not _from_factory or _container is not None:
            msg = "Container instances must be obtained via iocbind.get_container()"
            raise ContainerError(msg)

        self._bindings: dict[str, Binding] = {}
        self._aliases: dict[str, str] = {}
        self._instances: dict[str, Any] = {}
        self._dependencies: dict[Hashable, tuple[object, ...]] = {}
        # Abstracts and types currently being resolved, outermost first
        self._resolving: list[object] = []
        self._lock = threading.RLock()

    @property
    def bindings(self) -> Mapping[str, Binding]:
        return MappingProxyType(self._bindings)

    @property
    def aliases(self) -> Mapping[str, str]:
        return MappingProxyType(self._aliases)

    @property
    def instances(self) -> Mapping[str, Any]:
        return MappingProxyType(self._instances)

    @property
    def dependencies(self) -> Mapping[Hashable, tuple[object, ...]]:
        return MappingProxyType(self._dependencies)

    def bind(
        self,
        abstract: str,
        callback: Callable[[Container, Any], Any] | None = None,
        shared: bool = False,  # noqa: FBT001, FBT002
    ) -> None:
        """Bind a callback to an abstract.

        The callback receives this container and the parameters given to `make`:
          container.bind("db", lambda c, params: Database(*params))

        """
        self._bind(Binding(abstract, callback, shared, is_callback=True))

    def bind_instance(
        self,
        abstract: str,
        concrete: Any = None,
        shared: bool = False,  # noqa: FBT001, FBT002
        dependencies: Sequence[object] | None = None,
        *,
        kind: ConcreteKind | None = None,
    ) -> None:
        """Bind a class (or a plain object) to an abstract.

        Classes are instantiated on every resolution, using the positional
        `dependencies` declaration when `make` is given no parameters.
        Non-callable objects are handed back unchanged. Pass
        `kind=ConcreteKind.VALUE` to hand back a callable unchanged as well:
          container.bind_instance("handler", on_message, kind=ConcreteKind.VALUE)

        """
        if kind is ConcreteKind.CALLBACK:
            msg = f"Cannot bind {abstract!r} as a callback through bind_instance(), use bind()"
            raise BindingError(msg)

        binding = Binding(abstract, concrete, shared, is_callback=False, kind=kind)

        with self._lock:
            if dependencies:
                if binding.kind is not ConcreteKind.TYPE:
                    msg = f"Dependencies can only be declared for classes, {abstract!r} is bound as a value"
                    raise BindingError(msg)
                self._declare(concrete, dependencies)
            self._bind(binding)

    def singleton(self, abstract: str, callback: Callable[[Container, Any], Any] | None = None) -> None:
        self.bind(abstract, callback, shared=True)

    def singleton_instance(
        self,
        abstract: str,
        concrete: Any = None,
        dependencies: Sequence[object] | None = None,
        *,
        kind: ConcreteKind | None = None,
    ) -> None:
        self.bind_instance(abstract, concrete, shared=True, dependencies=dependencies, kind=kind)

    def instance(self, abstract: str, value: Any) -> None:
        """Register an already built value as the shared instance of `abstract`."""
        with self._lock:
            self._instances[abstract] = value
        logger.debug("Registered shared instance for %r", abstract)

    def bound(self, abstract: str) -> bool:
        with self._lock:
            return abstract in self._bindings or abstract in self._instances or abstract in self._aliases

    def alias(self, abstract: str, alias: str) -> None:
        """Assign an alias for the abstract.

        Raises `BindingError` when the abstract is not bound, or when the alias
        would point back at itself.
        """
        with self._lock:
            if not self.bound(abstract):
                msg = f'Cannot assign alias for abstract "{abstract}". Abstract has no binding.'
                raise BindingError(msg)

            name = abstract
            while True:
                if name == alias:
                    msg = f'Cannot alias "{abstract}" as "{alias}": alias would refer to itself.'
                    raise BindingError(msg)
                if name not in self._aliases:
                    break
                name = self._aliases[name]

            self._aliases[alias] = abstract
        logger.debug("Aliased %r -> %r", alias, abstract)

    def get_abstract(self, name: str) -> str:
        """Return the abstract an alias (chain) points at, or `name` itself."""
        with self._lock:
            seen = {name}
            while name in self._aliases:
                name = self._aliases[name]
                if name in seen:
                    msg = f"Alias loop detected while resolving {name!r}"
                    raise BindingError(msg)
                seen.add(name)
            return name

    def get_binding(self, abstract: str) -> Binding:
        """Return the binding registered for `abstract`. Aliases are NOT followed."""
        with self._lock:
            binding = self._bindings.get(abstract)
        if binding is None:
            msg = f'No binding found for abstract "{abstract}"'
            raise BindingError(msg)
        return binding

    def make(self, abstract: str, parameters: Parameters = None) -> Any:
        """Resolve the abstract (or alias) to an instance.

        - Shared instances are returned from the cache; `parameters` are ignored then.
        - Otherwise the binding is built, and cached when it is shared.
        """
        with self._lock:
            abstract = self.get_abstract(abstract)

            if abstract in self._instances:
                logger.debug("Returning shared instance for %r", abstract)
                return self._instances[abstract]

            binding = self.get_binding(abstract)

            with self._guard(abstract):
                instance = self.build(binding, parameters)

            if binding.shared:
                self._instances[abstract] = instance

            return instance

    resolve = make

    def build(self, concrete: Binding | Any, parameters: Parameters = None) -> Any:
        """Build an instance from a binding, or directly from a class.

        Callback bindings are invoked with this container and the parameters;
        their return value is not inspected. Class bindings are instantiated
        with positional arguments taken from `parameters`, or from the class's
        dependency declaration when no parameters are given.
        """
        with self._lock:
            if isinstance(concrete, Binding):
                binding = concrete
                if binding.kind is ConcreteKind.CALLBACK:
                    if binding.concrete is None:
                        return None
                    return binding.concrete(self, parameters if parameters is not None else [])

                if binding.kind is ConcreteKind.VALUE:
                    return binding.concrete

                concrete = binding.concrete

            if concrete is None:
                return None

            if not parameters:
                declaration = self._declaration_for(concrete)
                if declaration is not None:
                    with self._guard(concrete):
                        args = self._expand(concrete, declaration)
                    logger.debug("Building %s with %d declared dependencies", _describe(concrete), len(args))
                    return concrete(*args)
                return concrete()

            if isinstance(parameters, Mapping):
                return concrete(*parameters.values())
            return concrete(*parameters)

    def forget(self, abstract: str) -> None:
        """Remove the binding, alias and shared instance registered under `abstract`.

        Aliases that lead to `abstract`, directly or through other aliases, are
        removed as well.
        """
        with self._lock:
            binding = self._bindings.pop(abstract, None)
            self._aliases.pop(abstract, None)
            self._instances.pop(abstract, None)

            targets = {abstract}
            while dangling := [name for name, target in self._aliases.items() if target in targets]:
                for name in dangling:
                    del self._aliases[name]
                targets.update(dangling)

            if binding is not None and not binding.is_callback:
                self._discard_declaration(binding.concrete)
        logger.debug("Forgot %r", abstract)

    def flush(self) -> None:
        """Remove all bindings, aliases, shared instances and dependency declarations."""
        with self._lock:
            self._bindings.clear()
            self._aliases.clear()
            self._instances.clear()
            self._dependencies.clear()
        logger.debug("Flushed container")

    def _bind(self, binding: Binding) -> None:
        with self._lock:
            self._bindings[binding.abstract] = binding
        logger.debug("Bound %r", binding)

    def _declare(self, concrete: Any, dependencies: Sequence[object]) -> None:
        if not callable(concrete):
            msg = f"Dependencies can only be declared for classes, got {concrete!r}"
            raise BindingError(msg)
        try:
            self._dependencies[concrete] = tuple(dependencies)
        except TypeError as e:
            msg = f"Cannot declare dependencies for unhashable concrete {concrete!r}"
            raise BindingError(msg) from e

    def _discard_declaration(self, concrete: Any) -> None:
        try:
            declared = concrete in self._dependencies
        except TypeError:
            return
        if not declared:
            return
        if any(b.concrete is concrete for b in self._bindings.values()):
            return
        del self._dependencies[concrete]

    def _declaration_for(self, concrete: Any) -> Sequence[object] | None:
        try:
            declared = self._dependencies.get(concrete)
        except TypeError:
            declared = None
        if declared is not None:
            return declared

        if isinstance(concrete, type) and issubclass(concrete, HasDependencies):
            try:
                return concrete.dependencies()
            except NotImplementedError as e:
                msg = f"Cannot build {_describe(concrete)}: {e}"
                raise BuildError(msg) from e

        return None

    def _expand(self, concrete: Any, declaration: Sequence[object]) -> list[Any]:
        return [self._resolve_dependency(concrete, element) for element in declaration]

    def _resolve_dependency(self, concrete: Any, element: object) -> Any:
        dependency = classify(element)

        if isinstance(dependency, Literal):
            return dependency.value

        if isinstance(dependency, Reference):
            if not isinstance(dependency.identifier, str):
                msg = f"Cannot resolve reference {dependency.identifier!r} for {_describe(concrete)}: not a string"
                raise BuildError(msg)
            try:
                return self.make(dependency.identifier)
            except BindingError as e:
                msg = f"Cannot resolve dependency {element!r} for {_describe(concrete)}: {e}"
                raise BuildError(msg) from e

        if not callable(dependency.target):
            msg = f"Cannot build dependency {element!r} for {_describe(concrete)}: not a class"
            raise BuildError(msg)
        return self.build(dependency.target)

    def _guard(self, key: object) -> _ResolutionGuard:
        return _ResolutionGuard(self._resolving, key)


class _ResolutionGuard:
    """Tracks an abstract or type for the duration of its resolution, failing on re-entry."""

    def __init__(self, stack: list[object], key: object) -> None:
        self._stack = stack
        self._key = key

    def __enter__(self) -> None:
        if any(_same_key(self._key, entry) for entry in self._stack):
            chain = " -> ".join(_describe(entry) for entry in [*self._stack, self._key])
            logger.warning("Circular dependency detected: %s", chain)
            msg = f"Circular dependency detected: {chain}"
            raise BuildError(msg)
        self._stack.append(self._key)

    def __exit__(self, *exc_info: object) -> None:
        self._stack.pop()


def _same_key(key: object, entry: object) -> bool:
    return key is entry or (isinstance(key, str) and key == entry)


def _describe(target: object) -> str:
    if isinstance(target, str):
        return repr(target)
    return getattr(target, "__qualname__", repr(target))


_container: Container | None = None
_container_lock = threading.Lock()


def get_container() -> Container:
    """Return the process-wide container, creating it on first use."""
    global _container  # noqa: PLW0603
    with _container_lock:
        if _container is None:
            _container = Container(_from_factory=True)
        return _container
