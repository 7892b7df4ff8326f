"""honorer: declarative modules, dependency injection and validated routes."""

from ._version import __version__
from .config import HonorerSettings
from .di import (
    ClassProvider,
    Container,
    FactoryProvider,
    Inject,
    InjectProperty,
    Token,
    ValueProvider,
    injectable,
)
from .errors import (
    CircularDependencyError,
    HonorerError,
    MissingModuleDescriptorError,
    ModuleRegistrationError,
    ProviderNotFoundError,
)
from .http.app import HonorerApp, create_app
from .http.response import ApiResponse
from .module import (
    ModuleRegistrationFactory,
    OnModuleDestroy,
    OnModuleInit,
    forward_ref,
    module,
    post_construct,
    pre_destroy,
)
from .routing import (
    Body,
    Param,
    Params,
    Query,
    QueryParam,
    RequestContext,
    controller,
    delete,
    get,
    patch,
    post,
    put,
    use,
)

__all__ = [
    "__version__",
    "create_app",
    "HonorerApp",
    "HonorerSettings",
    "Container",
    "ClassProvider",
    "FactoryProvider",
    "ValueProvider",
    "Token",
    "Inject",
    "InjectProperty",
    "injectable",
    "module",
    "forward_ref",
    "ModuleRegistrationFactory",
    "OnModuleInit",
    "OnModuleDestroy",
    "post_construct",
    "pre_destroy",
    "controller",
    "get",
    "post",
    "put",
    "patch",
    "delete",
    "use",
    "Params",
    "Query",
    "Body",
    "Param",
    "QueryParam",
    "RequestContext",
    "ApiResponse",
    "HonorerError",
    "ProviderNotFoundError",
    "CircularDependencyError",
    "MissingModuleDescriptorError",
    "ModuleRegistrationError",
]
