"""Controller and route declaration.

```python
@controller("/users")
@use(require_auth)
class UserController:
    def __init__(self, users: UserService):
        self.users = users

    @get("/:id")
    @use(audit)
    def show(self, params: Annotated[UserId, Params()], ctx):
        return self.users.find(params.id)
```

Handler arguments are bound by position: ``Params()``, ``Query()`` and
``Body()`` validate the path parameters, query string or JSON body
against the annotated type (or an explicit ``schema``); ``Param("id")``
and ``QueryParam("q")`` inject a single raw value. The request context
is always passed after the last bound argument.
"""

import inspect
from threading import Lock
from typing import (
    Annotated, Any, Callable, Dict, List, Mapping, Optional, Tuple, Type, TypeVar,
    get_args, get_origin,
)

from loguru import logger

from ..di.metadata import resolved_type_hints
from .records import BindingKind, ControllerMetadata, ParameterBinding, RouteRecord

T = TypeVar("T")
F = TypeVar("F", bound=Callable[..., Any])

_controller_registry: Dict[type, Tuple[str, Tuple[Callable[..., Any], ...]]] = {}
_controller_middleware: Dict[type, List[Callable[..., Any]]] = {}
_explicit_metadata: Dict[type, ControllerMetadata] = {}
_registry_lock = Lock()

_ROUTES_ATTR = "_honorer_routes"
_MIDDLEWARE_ATTR = "_honorer_middleware"

# Annotations that mean "inject the raw value".
_RAW_TYPES = (dict, Dict, Mapping, Any, object, inspect.Parameter.empty)


class _SchemaBinding:
    kind: BindingKind

    def __init__(self, schema: Any = None):
        self.schema = schema

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.schema!r})" if self.schema is not None else f"{type(self).__name__}()"


class Params(_SchemaBinding):
    """Bind the path parameters, validated against the annotated type or ``schema``."""
    kind = BindingKind.PARAM


class Query(_SchemaBinding):
    """Bind the query parameters, validated against the annotated type or ``schema``."""
    kind = BindingKind.QUERY


class Body(_SchemaBinding):
    """Bind the JSON body, validated against the annotated type or ``schema``."""
    kind = BindingKind.BODY


class Param:
    """Bind one raw path parameter by name."""
    kind = BindingKind.PARAM

    def __init__(self, name: str):
        self.name = name


class QueryParam:
    """Bind one raw query parameter by name."""
    kind = BindingKind.QUERY

    def __init__(self, name: str):
        self.name = name


def _route(method: str, path: str) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        routes = list(getattr(func, _ROUTES_ATTR, []))
        routes.append((method.upper(), path))
        setattr(func, _ROUTES_ATTR, routes)
        return func

    return decorator


def get(path: str = "") -> Callable[[F], F]:
    """Declare a GET route on a controller method."""
    return _route("GET", path)


def post(path: str = "") -> Callable[[F], F]:
    """Declare a POST route on a controller method."""
    return _route("POST", path)


def put(path: str = "") -> Callable[[F], F]:
    return _route("PUT", path)


def patch(path: str = "") -> Callable[[F], F]:
    return _route("PATCH", path)


def delete(path: str = "") -> Callable[[F], F]:
    return _route("DELETE", path)


def use(*middleware: Callable[..., Any]) -> Callable[[T], T]:
    """Attach middleware to a controller class or a route method.

    Stacked ``@use`` decorators run top to bottom.
    """
    def decorator(target: T) -> T:
        if inspect.isclass(target):
            with _registry_lock:
                existing = _controller_middleware.setdefault(target, [])
                existing[:0] = middleware
        else:
            setattr(target, _MIDDLEWARE_ATTR, list(middleware) + list(getattr(target, _MIDDLEWARE_ATTR, [])))
        return target

    return decorator


def controller(
    prefix: str = "",
    *,
    middleware: Tuple[Callable[..., Any], ...] = (),
) -> Callable[[Type[T]], Type[T]]:
    """Declare a class as a controller mounted under ``prefix``."""
    def decorator(cls: Type[T]) -> Type[T]:
        with _registry_lock:
            _controller_registry[cls] = (prefix, tuple(middleware))
        logger.debug(f"Declared controller {cls.__name__} at {prefix or '/'}")
        return cls

    return decorator


def define_controller(cls: Type[T], metadata: ControllerMetadata) -> Type[T]:
    """Declare a controller from explicit metadata instead of decorators."""
    with _registry_lock:
        _explicit_metadata[cls] = metadata
    return cls


def is_controller(cls: Any) -> bool:
    return cls in _controller_registry or cls in _explicit_metadata


def _binding_for(index: int, annotation: Any) -> Optional[ParameterBinding]:
    if get_origin(annotation) is not Annotated:
        return None

    base, *extras = get_args(annotation)
    for marker in extras:
        if isinstance(marker, (Param, QueryParam)):
            return ParameterBinding(index=index, kind=marker.kind, name=marker.name)
        if isinstance(marker, _SchemaBinding):
            schema = marker.schema
            if schema is None and base not in _RAW_TYPES and get_origin(base) not in (dict, Mapping):
                schema = base
            return ParameterBinding(index=index, kind=marker.kind, schema=schema)
    return None


def get_route_bindings(func: Callable[..., Any]) -> List[ParameterBinding]:
    """Parameter bindings declared on a handler, by position (``self`` excluded)."""
    hints = resolved_type_hints(func)
    parameters = list(inspect.signature(func).parameters.values())
    if parameters and parameters[0].name == "self":
        parameters = parameters[1:]

    bindings = []
    for index, parameter in enumerate(parameters):
        binding = _binding_for(index, hints.get(parameter.name, parameter.annotation))
        if binding is not None:
            bindings.append(binding)
    return bindings


def get_routes(cls: type) -> List[RouteRecord]:
    """Route records of a controller class, in definition order."""
    if cls in _explicit_metadata:
        return list(_explicit_metadata[cls].routes)

    routes = []
    seen = set()
    for klass in cls.__mro__:
        for name, member in vars(klass).items():
            if name in seen or not callable(member):
                continue
            seen.add(name)
            for method, path in getattr(member, _ROUTES_ATTR, ()):
                routes.append(RouteRecord(
                    http_method=method,
                    path=path,
                    handler_name=name,
                    bindings=tuple(get_route_bindings(member)),
                    middleware=tuple(getattr(member, _MIDDLEWARE_ATTR, ())),
                ))
    return routes


def get_controller_metadata(cls: type) -> ControllerMetadata:
    """Prefix, middleware and routes of a controller class."""
    if cls in _explicit_metadata:
        return _explicit_metadata[cls]

    prefix, middleware = _controller_registry.get(cls, ("", ()))
    return ControllerMetadata(
        prefix=prefix,
        middleware=tuple(middleware) + tuple(_controller_middleware.get(cls, ())),
        routes=tuple(get_routes(cls)),
    )


def clear_registry() -> None:
    """Forget all declared controllers (mainly for testing)."""
    with _registry_lock:
        _controller_registry.clear()
        _controller_middleware.clear()
        _explicit_metadata.clear()
