"""Dependency injection for honorer.

This module provides:
- A hierarchical container with lazy per-container singletons
- Class, factory and value providers declared explicitly
- Constructor and property injection metadata
"""

from .container import Container
from .metadata import (
    ConstructorParameter,
    Inject,
    InjectProperty,
    PropertyInjection,
    clear_registry,
    get_constructor_tokens,
    get_property_injections,
    injectable,
    is_injectable,
)
from .providers import (
    ClassProvider,
    FactoryProvider,
    Provider,
    ValueProvider,
    as_provider,
    is_provider,
    module_provider,
)
from .tokens import Token, token_name

__all__ = [
    # Container
    "Container",

    # Providers
    "Provider",
    "ClassProvider",
    "FactoryProvider",
    "ValueProvider",
    "as_provider",
    "is_provider",
    "module_provider",

    # Tokens
    "Token",
    "token_name",

    # Injection metadata
    "Inject",
    "InjectProperty",
    "injectable",
    "is_injectable",
    "ConstructorParameter",
    "PropertyInjection",
    "get_constructor_tokens",
    "get_property_injections",
    "clear_registry",
]
