"""Route chain composition.

Each declared route becomes one router registration whose handler chain
is always, in this order::

    module middleware -> controller middleware -> route middleware
        -> param validator -> query validator -> body validator -> handler
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Tuple

from loguru import logger

from .context import RequestContext
from .decorators import get_controller_metadata
from .pipeline import Middleware, resolve_result
from .records import BINDING_ORDER, BindingKind, ParameterBinding, RouteRecord
from .router import Router
from .validators import VALIDATED_KEYS, VALIDATOR_FACTORIES, raw_value

_DUPLICATE_SLASHES = re.compile(r"/{2,}")


def normalize_route_path(*parts: str) -> str:
    """Join path parts, collapsing duplicate slashes.

    A single trailing slash is stripped unless the path is the root.
    """
    path = _DUPLICATE_SLASHES.sub("/", "/".join(part for part in parts if part))
    if not path.startswith("/"):
        path = "/" + path
    if len(path) > 1 and path.endswith("/"):
        path = path[:-1]
    return path


@dataclass(frozen=True)
class RouteRegistration:
    """One registration handed to the router."""

    method: str
    path: str
    handlers: Tuple[Callable[..., Any], ...]
    controller: type
    handler_name: str

    @property
    def middleware(self) -> Tuple[Callable[..., Any], ...]:
        return self.handlers[:-1]

    @property
    def handler(self) -> Callable[..., Any]:
        return self.handlers[-1]


async def _bound_value(ctx: RequestContext, binding: ParameterBinding) -> Any:
    if binding.validated:
        return ctx.get(VALIDATED_KEYS[binding.kind], {}).get(binding.index)
    if binding.name is not None:
        if binding.kind is BindingKind.PARAM:
            return ctx.param(binding.name)
        return ctx.query(binding.name)
    return await raw_value(ctx, binding.kind)


def _handler_step(instance: Any, controller_class: type, route: RouteRecord) -> Callable[[RequestContext], Any]:
    method = getattr(instance, route.handler_name)
    bindings = route.bindings
    arity = max((b.index for b in bindings), default=-1) + 1

    async def handler(ctx: RequestContext) -> Any:
        if not bindings:
            return await resolve_result(method(ctx))

        args: List[Any] = [None] * arity
        for binding in bindings:
            args[binding.index] = await _bound_value(ctx, binding)
        return await resolve_result(method(*args, ctx))

    handler.__name__ = route.handler_name
    handler.__qualname__ = f"{controller_class.__name__}.{route.handler_name}"
    return handler


class RouteComposer:
    """Builds handler chains for controller routes and registers them on a router."""

    def __init__(self, router: Router):
        self.router = router
        self.registrations: List[RouteRegistration] = []

    def compose_route(
        self,
        instance: Any,
        controller_class: type,
        route: RouteRecord,
        *,
        prefix: str = "",
        controller_prefix: str = "",
        module_middleware: Sequence[Middleware] = (),
        controller_middleware: Sequence[Middleware] = (),
    ) -> RouteRegistration:
        """Build the registration of one route without registering it."""
        chain: List[Callable[..., Any]] = []
        chain.extend(module_middleware)
        chain.extend(controller_middleware)
        chain.extend(route.middleware)

        for kind in BINDING_ORDER:
            if any(b.validated for b in route.bindings_of(kind)):
                chain.append(VALIDATOR_FACTORIES[kind](route.bindings))

        chain.append(_handler_step(instance, controller_class, route))

        return RouteRegistration(
            method=route.http_method,
            path=normalize_route_path(prefix, controller_prefix, route.path),
            handlers=tuple(chain),
            controller=controller_class,
            handler_name=route.handler_name,
        )

    def compose_controller(
        self,
        instance: Any,
        controller_class: Optional[type] = None,
        *,
        prefix: str = "",
        middleware: Sequence[Middleware] = (),
    ) -> List[RouteRegistration]:
        """Build the registrations of every route of a controller instance.

        Nothing is handed to the router; see :meth:`emit`.

        Args:
            instance: The resolved controller
            controller_class: Class holding the route metadata (defaults to
                the instance's class)
            prefix: Module prefix, joined before the controller prefix
            middleware: Module middleware prepended to every chain

        Returns:
            The registrations, in route order
        """
        controller_class = controller_class or type(instance)
        metadata = get_controller_metadata(controller_class)

        return [
            self.compose_route(
                instance,
                controller_class,
                route,
                prefix=prefix,
                controller_prefix=metadata.prefix,
                module_middleware=middleware,
                controller_middleware=metadata.middleware,
            )
            for route in metadata.routes
        ]

    def emit(self, registrations: Sequence[RouteRegistration]) -> None:
        """Hand registrations to the router, in order."""
        for registration in registrations:
            self.router.add_route(registration.method, registration.path, registration.handlers)
            logger.debug(
                f"Mapped {registration.method} {registration.path} -> "
                f"{registration.controller.__name__}.{registration.handler_name} "
                f"({len(registration.handlers)} handlers)"
            )
            self.registrations.append(registration)

    def register_controller(
        self,
        instance: Any,
        controller_class: Optional[type] = None,
        *,
        prefix: str = "",
        middleware: Sequence[Middleware] = (),
    ) -> List[RouteRegistration]:
        """Compose every route of a controller and register it on the router."""
        registrations = self.compose_controller(
            instance, controller_class, prefix=prefix, middleware=middleware
        )
        self.emit(registrations)
        return registrations
