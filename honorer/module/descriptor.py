"""Module descriptors and the store that associates them with module classes.

A module bundles controllers, providers, imports, exports, middleware and
a route prefix. The descriptor is built once, when the module class is
declared, and never changes afterwards; deferred imports are resolved by
the registration factory without rewriting the descriptor.
"""

from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Callable, Dict, Optional, Sequence, Tuple, Type, TypeVar

from loguru import logger

T = TypeVar("T")

_module_registry: Dict[type, "ModuleDescriptor"] = {}
_registry_lock = Lock()


class ForwardRef:
    """Deferred reference to a module class, resolved at registration time.

    Wraps either a zero-argument loader (sync or async) returning the module
    class, or a ``"package.module:ClassName"`` import path.
    """

    __slots__ = ("target",)

    def __init__(self, target: Any):
        self.target = target

    def __repr__(self) -> str:
        return f"ForwardRef({self.target!r})"


def forward_ref(target: Any) -> ForwardRef:
    """Defer an import, e.g. ``forward_ref(lambda: UsersModule)``."""
    return ForwardRef(target)


@dataclass(frozen=True)
class ModuleDescriptor:
    """Declared metadata of a module."""

    controllers: Tuple[type, ...] = ()
    providers: Tuple[Any, ...] = ()
    imports: Tuple[Any, ...] = ()
    exports: Tuple[Any, ...] = ()
    middleware: Tuple[Callable[..., Any], ...] = ()
    prefix: str = ""

    def __post_init__(self):
        for name in ("controllers", "providers", "imports", "exports", "middleware"):
            object.__setattr__(self, name, tuple(getattr(self, name)))


def define_module(module_class: Type[T], descriptor: ModuleDescriptor) -> Type[T]:
    """Associate a descriptor with a module class.

    Raises:
        ValueError: If the class already has a descriptor
    """
    with _registry_lock:
        if module_class in _module_registry:
            raise ValueError(f"Module {module_class.__name__} is already declared")
        _module_registry[module_class] = descriptor

    logger.debug(
        f"Declared module {module_class.__name__} "
        f"(controllers={len(descriptor.controllers)}, providers={len(descriptor.providers)}, "
        f"imports={len(descriptor.imports)}, prefix={descriptor.prefix!r})"
    )
    return module_class


def module(
    *,
    controllers: Sequence[type] = (),
    providers: Sequence[Any] = (),
    imports: Sequence[Any] = (),
    exports: Sequence[Any] = (),
    middleware: Sequence[Callable[..., Any]] = (),
    prefix: str = "",
) -> Callable[[Type[T]], Type[T]]:
    """
    Decorator that declares a class as a module.

    ```python
    @module(
        controllers=[UserController],
        providers=[UserService],
        imports=[DatabaseModule],
        exports=[UserService],
        prefix="/api",
    )
    class UsersModule:
        pass
    ```
    """
    descriptor = ModuleDescriptor(
        controllers=controllers,
        providers=providers,
        imports=imports,
        exports=exports,
        middleware=middleware,
        prefix=prefix,
    )

    def decorator(cls: Type[T]) -> Type[T]:
        return define_module(cls, descriptor)

    return decorator


def get_module_descriptor(module_class: Any) -> Optional[ModuleDescriptor]:
    """Get the descriptor of a module class, or None if it was never declared."""
    try:
        return _module_registry.get(module_class)
    except TypeError:
        return None


def is_module(obj: Any) -> bool:
    return get_module_descriptor(obj) is not None


def clear_registry() -> None:
    """Forget all declared modules (mainly for testing)."""
    with _registry_lock:
        _module_registry.clear()
