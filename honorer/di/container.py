"""Hierarchical dependency injection container.

Each container owns its registrations and the instances it has built.
Tokens it does not know are delegated to its parent, so a module-scoped
child container sees everything registered on the root while its own
overrides stay invisible to the root and to sibling containers.
"""

import inspect
from contextlib import contextmanager
from threading import RLock
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, TypeVar

from loguru import logger

from ..errors import (
    CircularDependencyError,
    MissingInjectionTokenError,
    ProviderNotFoundError,
)
from .metadata import (
    ConstructorParameter,
    get_constructor_tokens,
    get_property_injections,
    is_injectable,
)
from .providers import (
    ClassProvider,
    FactoryProvider,
    Provider,
    ValueProvider,
    as_provider,
    is_provider,
)
from .tokens import token_name

T = TypeVar("T")


class Container:
    """Dependency injection container with parent delegation.

    Provides:
    - Class, factory and value providers
    - Lazy singleton-per-container resolution
    - Constructor and property injection
    - Circular dependency detection
    """

    def __init__(self, parent: Optional["Container"] = None, *, strict: bool = False):
        """Initialize the container.

        Args:
            parent: Container to delegate unknown tokens to
            strict: Raise instead of passing ``None`` for constructor
                parameters that have no injection token and no default
        """
        self._parent = parent
        self._strict = strict
        self._providers: Dict[Any, Provider] = {}
        self._instances: Dict[Any, Any] = {}
        self._lock = RLock()

    @property
    def parent(self) -> Optional["Container"]:
        return self._parent

    def register(self, token: Any, provider: Any = None) -> None:
        """Register a provider for a token in this container.

        Args:
            token: Class, string, or ``Token``
            provider: A provider definition, a class (class provider) or a
                plain value (value provider). Omitted registers ``token``
                as a self-constructing class.

        Re-registering a token replaces its provider and drops any instance
        this container already built for it.
        """
        definition = as_provider(token, provider)
        with self._lock:
            self._providers[token] = definition
            self._instances.pop(token, None)
        logger.debug(f"Registered {type(definition).__name__} for {token_name(token)}")

    def register_factory(
        self,
        token: Any,
        factory: Callable[..., Any],
        inject: Sequence[Any] = (),
    ) -> None:
        """Register a factory function, called with the resolved ``inject`` tokens."""
        self.register(token, FactoryProvider(factory, provide=token, inject=tuple(inject)))

    def register_value(self, token: Any, value: Any) -> None:
        """Register a precomputed value."""
        self.register(token, ValueProvider(value, provide=token))

    def resolve(self, token: Any) -> Any:
        """Resolve a token to its instance, building it on first use.

        Args:
            token: The token to resolve

        Returns:
            The instance cached in the container that owns the registration

        Raises:
            ProviderNotFoundError: If no container in the chain knows the token
            CircularDependencyError: If the token depends on itself
        """
        return self._resolve(token, [])

    def has(self, token: Any) -> bool:
        """Check if a token is resolvable here or in any ancestor."""
        if token in self._providers or token in self._instances:
            return True
        return self._parent is not None and self._parent.has(token)

    def has_local(self, token: Any) -> bool:
        """Check if a token is registered in this container itself."""
        return token in self._providers or token in self._instances

    def child(self) -> "Container":
        """Create a child container that delegates to this one."""
        return Container(self, strict=self._strict)

    def override(self, token: Any, provider_or_instance: Any) -> None:
        """Force-replace the provider or instance for a token in this container.

        A provider definition replaces the registration; anything else is
        used as the already-built instance. Children that already cached
        their own instance of the token are not affected.
        """
        with self._lock:
            self._instances.pop(token, None)
            if is_provider(provider_or_instance):
                self._providers[token] = provider_or_instance
            else:
                self._providers.pop(token, None)
                self._instances[token] = provider_or_instance
        logger.debug(f"Overrode {token_name(token)}")

    def clear(self) -> None:
        """Drop all local registrations and instances. Parents are untouched."""
        with self._lock:
            self._providers.clear()
            self._instances.clear()

    def tokens(self) -> List[Any]:
        """Tokens registered in this container (not parents), in registration order."""
        tokens = list(self._providers)
        tokens.extend(token for token in self._instances if token not in self._providers)
        return tokens

    def _resolve(self, token: Any, stack: List[Any]) -> Any:
        if token in self._instances:
            return self._instances[token]

        if token in self._providers:
            with self._lock:
                if token in self._instances:
                    return self._instances[token]
                provider = self._providers.get(token)
                if provider is not None:
                    instance = self._build(token, provider, stack)
                    self._instances[token] = instance
                    return instance

        # Not cached locally so the parent keeps the one true singleton.
        if self._parent is not None and self._parent.has(token):
            return self._parent.resolve(token)

        raise ProviderNotFoundError(token)

    def _build(self, token: Any, provider: Provider, stack: List[Any]) -> Any:
        if isinstance(provider, ValueProvider):
            return provider.use_value

        if isinstance(provider, FactoryProvider):
            with self._entering(token, stack):
                args = [self._resolve(dep, stack) for dep in provider.inject]
            result = provider.use_factory(*args)
            if inspect.isawaitable(result):
                close = getattr(result, "close", None)
                if close is not None:
                    close()
                raise TypeError(
                    f"Factory for {token_name(token)} is asynchronous; "
                    "async factories must be awaited at module registration"
                )
            return result

        if isinstance(provider, ClassProvider):
            return self._construct(token, provider.use_class, stack)

        raise TypeError(f"Unknown provider type: {type(provider).__name__}")

    @staticmethod
    @contextmanager
    def _entering(token: Any, stack: List[Any]) -> Iterator[None]:
        if token in stack:
            raise CircularDependencyError(token, stack[stack.index(token):])
        stack.append(token)
        try:
            yield
        finally:
            stack.pop()

    def _construct(self, token: Any, cls: type, stack: List[Any]) -> Any:
        with self._entering(token, stack):
            args = []
            kwargs = {}
            for parameter in get_constructor_tokens(cls):
                value = self._resolve_parameter(cls, parameter, stack)
                if parameter.keyword_only:
                    kwargs[parameter.name] = value
                else:
                    args.append(value)

            instance = cls(*args, **kwargs)

            for injection in get_property_injections(cls):
                self._auto_register(injection.token)
                setattr(instance, injection.name, self._resolve(injection.token, stack))

            return instance

    def _resolve_parameter(self, owner: type, parameter: ConstructorParameter, stack: List[Any]) -> Any:
        token = parameter.token
        if token is None:
            if parameter.has_default:
                return parameter.default
            if self._strict:
                raise MissingInjectionTokenError(owner, parameter.name)
            return None

        self._auto_register(token)
        if not self.has(token):
            if parameter.has_default:
                return parameter.default
            if parameter.optional:
                return None
        return self._resolve(token, stack)

    def _auto_register(self, token: Any) -> None:
        if not self.has(token) and is_injectable(token):
            self.register(token)

    def __repr__(self) -> str:
        return f"Container(tokens={len(self.tokens())}, parent={'yes' if self._parent else 'no'})"
