"""Error types for honorer.

This module provides:
- A rich error base with context, error codes and suggestions
- One error type per failure mode of the container, module factory and routes
"""

from .base import ErrorContext, HonorerError
from .types import (
    CircularDependencyError,
    ConfigurationError,
    LifecycleHookError,
    MissingInjectionTokenError,
    MissingModuleDescriptorError,
    ModuleRegistrationError,
    ProviderNotFoundError,
    RequestValidationError,
)

__all__ = [
    "HonorerError",
    "ErrorContext",
    "ProviderNotFoundError",
    "CircularDependencyError",
    "MissingInjectionTokenError",
    "MissingModuleDescriptorError",
    "ModuleRegistrationError",
    "LifecycleHookError",
    "RequestValidationError",
    "ConfigurationError",
]
