"""Error types of the container, the module factory, routes and configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .base import HonorerError


def _describe(target: Any) -> str:
    from ..di.tokens import token_name

    return token_name(target)


# Container


class ProviderNotFoundError(HonorerError, LookupError):
    """No provider registered for a token anywhere in the container chain."""

    code = "PROVIDER_NOT_FOUND"

    def __init__(self, token: Any, **kwargs: Any):
        super().__init__(f"No provider found for token: {_describe(token)}", **kwargs)
        self.token = token
        self.with_suggestion(
            f"Register {_describe(token)} in a module's providers or export it from an imported module"
        )


class CircularDependencyError(HonorerError):
    """A token reappeared on its own resolution stack."""

    code = "CIRCULAR_DEPENDENCY"
    recoverable = False

    def __init__(self, token: Any, path: Sequence[Any] = (), **kwargs: Any):
        chain = [_describe(t) for t in path] + [_describe(token)]
        super().__init__(f"Circular dependency detected: {' -> '.join(chain)}", **kwargs)
        self.token = token
        self.path = list(path)


class MissingInjectionTokenError(HonorerError):
    """Strict injection: a constructor parameter has no token and no default."""

    code = "MISSING_INJECTION_TOKEN"

    def __init__(self, owner: Any, parameter: str, **kwargs: Any):
        super().__init__(
            f"Cannot determine injection token for parameter '{parameter}' of {_describe(owner)}",
            **kwargs,
        )
        self.owner = owner
        self.parameter = parameter
        self.with_suggestion("Annotate the parameter with a type or Annotated[T, Inject(token)]")


# Modules


class MissingModuleDescriptorError(HonorerError):
    """A class passed to module registration was never declared as a module."""

    code = "MISSING_MODULE_DESCRIPTOR"
    recoverable = False

    def __init__(self, module_class: Any, **kwargs: Any):
        name = getattr(module_class, "__name__", repr(module_class))
        super().__init__(f"Module {name} is missing a module descriptor", **kwargs)
        self.module_class = module_class
        self.with_suggestion(f"Decorate {name} with @module(...) or call define_module({name}, ...)")


class ModuleRegistrationError(HonorerError):
    """Any failure raised while registering a module, wrapped with the module's name."""

    code = "MODULE_REGISTRATION_FAILED"

    def __init__(self, module_name: str, cause: BaseException, **kwargs: Any):
        super().__init__(f"[{module_name}] Registration failed -> {cause}", cause=cause, **kwargs)
        self.module_name = module_name
        self.context.module_name = module_name
        if isinstance(cause, HonorerError):
            for suggestion in cause.context.suggestions:
                self.with_suggestion(suggestion)


class LifecycleHookError(HonorerError):
    """An init or destroy hook raised."""

    code = "LIFECYCLE_HOOK_FAILED"

    def __init__(self, hook: str, target: str, module_name: str, cause: BaseException, **kwargs: Any):
        super().__init__(f"{hook} failed for {target} in {module_name}: {cause}", cause=cause, **kwargs)
        self.hook = hook
        self.target = target
        self.module_name = module_name
        self.context.module_name = module_name


# Requests


class RequestValidationError(HonorerError):
    """Route parameters, query or body failed schema validation."""

    code = "VALIDATION_ERROR"

    def __init__(self, location: str, issues: Optional[List[Dict[str, Any]]] = None, **kwargs: Any):
        super().__init__(f"Invalid request {location}", **kwargs)
        self.location = location
        self.issues = issues or []


# Configuration


class ConfigurationError(HonorerError):
    """Unreadable configuration file or invalid settings."""

    code = "CONFIG_ERROR"

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[Path] = None,
        field_path: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        if config_path:
            self.with_context(config_path=str(config_path))
        if field_path:
            self.with_context(field_path=field_path)

    @classmethod
    def invalid_file(cls, config_path: Path, reason: str) -> "ConfigurationError":
        error = cls(
            f"Invalid configuration file {config_path}: {reason}",
            config_path=config_path,
            error_code="CONFIG_INVALID_FILE",
        )
        return error.with_suggestion("Configuration files must contain a mapping at the top level")
