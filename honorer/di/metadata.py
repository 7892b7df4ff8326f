"""Injection metadata for classes.

Classes declare their dependencies the same way they are written:
constructor parameters are injected by their annotated type, or by an
explicit token given with ``Annotated[T, Inject(token)]``; properties are
injected through :class:`InjectProperty` class attributes. The
:func:`injectable` decorator marks a class as safe to auto-register on
first use and can pin the constructor tokens explicitly.
"""

import inspect
from dataclasses import dataclass
from threading import Lock
from typing import (
    Annotated, Any, Callable, Dict, List, Optional, Sequence, Set, Tuple, Type,
    TypeVar, Union, get_args, get_origin, get_type_hints,
)

from loguru import logger

from .tokens import token_name

T = TypeVar("T")

_injectable_registry: Set[type] = set()
_explicit_tokens: Dict[type, Tuple[Any, ...]] = {}
_property_registry: Dict[type, List["PropertyInjection"]] = {}
_registry_lock = Lock()

_EMPTY = inspect.Parameter.empty


class Inject:
    """Explicit injection token for a constructor parameter.

    Used with Annotated::

        def __init__(self, db: Annotated[Database, Inject(DB_TOKEN)]):
            ...
    """

    __slots__ = ("token",)

    def __init__(self, token: Any):
        self.token = token

    def __repr__(self) -> str:
        return f"Inject({token_name(self.token)})"


@dataclass(frozen=True)
class PropertyInjection:
    """Property on a class to be assigned from a resolved token."""

    name: str
    token: Any


@dataclass(frozen=True)
class ConstructorParameter:
    """One constructor parameter and the token that fills it."""

    name: str
    token: Any
    kind: Any
    default: Any = _EMPTY
    optional: bool = False

    @property
    def has_default(self) -> bool:
        return self.default is not _EMPTY

    @property
    def keyword_only(self) -> bool:
        return self.kind is inspect.Parameter.KEYWORD_ONLY


class InjectProperty:
    """Class attribute that is filled with a resolved provider after construction.

    ::

        class ReportService:
            clock = InjectProperty(Clock)
    """

    def __init__(self, token: Any):
        self.token = token
        self.name: Optional[str] = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name
        with _registry_lock:
            _property_registry.setdefault(owner, []).append(PropertyInjection(name, self.token))

    def __get__(self, instance: Any, owner: Optional[type] = None) -> Any:
        if instance is None:
            return self
        raise AttributeError(
            f"{type(instance).__name__}.{self.name} has not been injected yet"
        )


def injectable(
    cls: Optional[Type[T]] = None,
    *,
    inject: Optional[Sequence[Any]] = None,
) -> Union[Type[T], Callable[[Type[T]], Type[T]]]:
    """Mark a class as injectable.

    Injectable classes are auto-registered by a container the first time
    another provider depends on them.

    Args:
        cls: The class (when used as ``@injectable``)
        inject: Explicit constructor tokens by position; overrides annotations

    Returns:
        The class, or a decorator when called with options
    """
    def decorator(cls: Type[T]) -> Type[T]:
        with _registry_lock:
            _injectable_registry.add(cls)
            if inject is not None:
                _explicit_tokens[cls] = tuple(inject)
        logger.debug(f"Marked {cls.__name__} as injectable")
        return cls

    if cls is None:
        return decorator
    return decorator(cls)


def is_injectable(token: Any) -> bool:
    """Check if a token is a class marked with :func:`injectable`."""
    return inspect.isclass(token) and token in _injectable_registry


def _token_from_annotation(annotation: Any) -> Tuple[Any, bool]:
    """Return ``(token, optional)`` for a parameter annotation."""
    if annotation is _EMPTY or isinstance(annotation, str):
        return None, False

    if get_origin(annotation) is Annotated:
        base, *extras = get_args(annotation)
        for extra in extras:
            if isinstance(extra, Inject):
                return extra.token, False
        return _token_from_annotation(base)

    if get_origin(annotation) is Union:
        args = get_args(annotation)
        non_none = [arg for arg in args if arg is not type(None)]
        if len(non_none) == 1 and len(args) == 2:
            token, _ = _token_from_annotation(non_none[0])
            return token, True

    return annotation, False


def resolved_type_hints(func: Callable) -> Dict[str, Any]:
    try:
        return get_type_hints(func, include_extras=True)
    except (NameError, TypeError):
        # Forward references that cannot be evaluated fall back to raw annotations.
        return {}


def get_constructor_tokens(cls: type) -> List[ConstructorParameter]:
    """Ordered constructor parameters of a class with their injection tokens.

    Each parameter's token is, in order of precedence: the explicit token
    given to :func:`injectable`, an ``Inject`` marker in its annotation, or
    its annotated type. Parameters with none of those get a ``None`` token.
    """
    init = cls.__init__
    if init is object.__init__:
        return []

    try:
        signature = inspect.signature(init)
    except (TypeError, ValueError):
        return []

    hints = resolved_type_hints(init)
    explicit = _explicit_tokens.get(cls, ())

    parameters = []
    position = 0
    for name, param in list(signature.parameters.items())[1:]:
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue

        token, optional = _token_from_annotation(hints.get(name, param.annotation))
        if position < len(explicit) and explicit[position] is not None:
            token = explicit[position]

        parameters.append(ConstructorParameter(
            name=name,
            token=token,
            kind=param.kind,
            default=param.default,
            optional=optional,
        ))
        position += 1

    return parameters


def get_property_injections(cls: type) -> List[PropertyInjection]:
    """Property injections declared on a class and its bases, base first."""
    injections: Dict[str, PropertyInjection] = {}
    for klass in reversed(cls.__mro__):
        for injection in _property_registry.get(klass, ()):
            injections[injection.name] = injection
    return list(injections.values())


def clear_registry() -> None:
    """Clear injectable markers and explicit tokens (mainly for testing)."""
    with _registry_lock:
        _injectable_registry.clear()
        _explicit_tokens.clear()
