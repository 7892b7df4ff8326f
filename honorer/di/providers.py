"""Provider definitions.

A provider is the recipe a container uses to produce the value for a
token. The kind is chosen where the provider is declared, never guessed
from the shape of the object at resolution time:

- :class:`ClassProvider` constructs a class with constructor and property injection
- :class:`FactoryProvider` calls a function with its resolved ``inject`` tokens
- :class:`ValueProvider` returns a precomputed value unchanged
"""

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Tuple, Union


@dataclass(frozen=True)
class ClassProvider:
    """Build ``use_class`` through constructor/property injection."""

    use_class: type
    provide: Any = None

    @property
    def token(self) -> Any:
        return self.use_class if self.provide is None else self.provide


@dataclass(frozen=True)
class FactoryProvider:
    """Call ``use_factory`` with the resolved ``inject`` tokens, in order."""

    use_factory: Callable[..., Any]
    provide: Any = None
    inject: Tuple[Any, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "inject", tuple(self.inject))

    @property
    def token(self) -> Any:
        if self.provide is None:
            raise ValueError("FactoryProvider needs an explicit 'provide' token")
        return self.provide

    @property
    def is_async(self) -> bool:
        return inspect.iscoroutinefunction(self.use_factory)


@dataclass(frozen=True)
class ValueProvider:
    """Return ``use_value`` unchanged."""

    use_value: Any
    provide: Any = None

    @property
    def token(self) -> Any:
        if self.provide is None:
            raise ValueError("ValueProvider needs an explicit 'provide' token")
        return self.provide


Provider = Union[ClassProvider, FactoryProvider, ValueProvider]


def is_provider(obj: Any) -> bool:
    return isinstance(obj, (ClassProvider, FactoryProvider, ValueProvider))


def as_provider(token: Any, provider: Optional[Any] = None) -> Provider:
    """Normalize a ``register(token, provider)`` call into a provider.

    Args:
        token: Token being registered
        provider: A provider, a class, or a plain value. Omitted means
            ``token`` is a self-registering class.

    Returns:
        The provider definition

    Raises:
        TypeError: If ``provider`` is omitted and ``token`` is not a class
    """
    if provider is None:
        if not inspect.isclass(token):
            raise TypeError(f"Cannot self-register non-class token {token!r}")
        return ClassProvider(token)
    if is_provider(provider):
        return provider
    if inspect.isclass(provider):
        return ClassProvider(provider, provide=token)
    # Functions are values unless wrapped in FactoryProvider.
    return ValueProvider(provider, provide=token)


def module_provider(declared: Any) -> Provider:
    """Normalize an entry of a module's ``providers`` list."""
    if is_provider(declared):
        return declared
    if inspect.isclass(declared):
        return ClassProvider(declared)
    raise TypeError(
        f"Module providers must be classes or provider definitions, got {declared!r}"
    )
