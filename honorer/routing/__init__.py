"""Controllers, routes and handler chains."""

from .composer import RouteComposer, RouteRegistration, normalize_route_path
from .context import RequestContext
from .decorators import (
    Body,
    Param,
    Params,
    Query,
    QueryParam,
    clear_registry,
    controller,
    define_controller,
    delete,
    get,
    get_controller_metadata,
    get_route_bindings,
    get_routes,
    is_controller,
    patch,
    post,
    put,
    use,
)
from .pipeline import Handler, Middleware, compose
from .records import BindingKind, ControllerMetadata, ParameterBinding, RouteRecord
from .router import RecordingRouter, Router, StarletteRouter, path_matches, to_starlette_path
from .validators import (
    create_body_validator,
    create_param_validator,
    create_query_validator,
    parse_with_schema,
)

__all__ = [
    # Declaration
    "controller",
    "define_controller",
    "is_controller",
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
    "get_routes",
    "get_route_bindings",
    "get_controller_metadata",
    "clear_registry",

    # Records
    "RouteRecord",
    "ParameterBinding",
    "BindingKind",
    "ControllerMetadata",

    # Chains
    "compose",
    "Middleware",
    "Handler",
    "RequestContext",
    "create_param_validator",
    "create_query_validator",
    "create_body_validator",
    "parse_with_schema",

    # Composition and routers
    "RouteComposer",
    "RouteRegistration",
    "normalize_route_path",
    "Router",
    "RecordingRouter",
    "StarletteRouter",
    "path_matches",
    "to_starlette_path",
]
