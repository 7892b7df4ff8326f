"""Routers the composer registers handler chains on.

A router receives ``(method, path, handlers)`` registrations, where the
last handler is the endpoint and the others are middleware, and
``use(pattern, middleware)`` mounts that run ahead of every matching
route. Paths use ``:name`` placeholders.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

from loguru import logger
from starlette.requests import Request
from starlette.responses import Response

from ..http.errors import handle_exception
from ..http.response import format_return, render_plain
from .context import RequestContext
from .pipeline import Middleware, compose, resolve_result

_PLACEHOLDER = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")

ErrorHandler = Callable[[Exception, RequestContext], Any]


@runtime_checkable
class Router(Protocol):
    def add_route(self, method: str, path: str, handlers: Sequence[Callable[..., Any]]) -> None: ...

    def use(self, path: str, middleware: Middleware) -> None: ...


def to_starlette_path(path: str) -> str:
    """``/users/:id`` -> ``/users/{id}``."""
    return _PLACEHOLDER.sub(r"{\1}", path)


def path_matches(pattern: str, path: str) -> bool:
    """Match a mount pattern: ``*``, ``/prefix/*`` or an exact path."""
    if pattern in ("*", "/*"):
        return True
    if pattern.endswith("/*"):
        base = pattern[:-2]
        return path == base or path.startswith(base + "/")
    return path == pattern


class _MountedMiddleware:
    """Middleware mounted with ``use``, kept in mount order."""

    def __init__(self):
        self.mounts: List[Tuple[str, Middleware]] = []

    def use(self, path: str, middleware: Middleware) -> None:
        self.mounts.append((path, middleware))
        logger.debug(f"Mounted middleware {getattr(middleware, '__name__', middleware)!s} on {path}")

    def matching(self, path: str) -> List[Middleware]:
        return [middleware for pattern, middleware in self.mounts if path_matches(pattern, path)]


@dataclass
class RecordedRoute:
    method: str
    path: str
    handlers: Tuple[Callable[..., Any], ...]
    pattern: "re.Pattern[str]" = field(init=False, repr=False)

    def __post_init__(self):
        regex = _PLACEHOLDER.sub(r"(?P<\1>[^/]+)", re.escape(self.path).replace(r"\:", ":"))
        self.pattern = re.compile(f"^{regex}$")

    def match(self, method: str, path: str) -> Optional[Dict[str, str]]:
        if method.upper() != self.method:
            return None
        found = self.pattern.match(path)
        return found.groupdict() if found else None


class RecordingRouter(_MountedMiddleware):
    """In-memory router that records registrations and can dispatch them.

    Used to inspect the routes of a module graph and to run handler
    chains without an HTTP server.
    """

    def __init__(self):
        super().__init__()
        self.routes: List[RecordedRoute] = []

    def add_route(self, method: str, path: str, handlers: Sequence[Callable[..., Any]]) -> None:
        self.routes.append(RecordedRoute(method.upper(), path, tuple(handlers)))

    def find(self, method: str, path: str) -> Optional[Tuple[RecordedRoute, Dict[str, str]]]:
        for route in self.routes:
            params = route.match(method, path)
            if params is not None:
                return route, params
        return None

    async def dispatch(
        self,
        method: str,
        path: str,
        *,
        query: Optional[Dict[str, Any]] = None,
        body: Any = None,
    ) -> Any:
        """Run the chain of the first route matching ``method`` and ``path``.

        Returns:
            Whatever the chain returns, unrendered

        Raises:
            LookupError: If no route matches
        """
        found = self.find(method, path)
        if found is None:
            raise LookupError(f"No route for {method.upper()} {path}")
        route, params = found

        ctx = RequestContext(
            method=method.upper(),
            path=path,
            path_params=params,
            query_params=dict(query or {}),
            body_loader=lambda: body,
        )
        chain = compose(self.matching(path) + list(route.handlers[:-1]), route.handlers[-1])
        return await chain(ctx)


class StarletteRouter(_MountedMiddleware):
    """Registers handler chains as routes of a Starlette (FastAPI) application.

    Results are rendered into the response envelope when ``format_response``
    is on. Exceptions escaping a chain go to ``error_handler`` when given,
    otherwise to the default exception mapping.
    """

    def __init__(
        self,
        app: Any,
        *,
        format_response: bool = True,
        error_handler: Optional[ErrorHandler] = None,
        debug: bool = False,
    ):
        super().__init__()
        self.app = app
        self.format_response = format_response
        self.error_handler = error_handler
        self.debug = debug

    def render(self, result: Any) -> Response:
        return format_return(result) if self.format_response else render_plain(result)

    async def handle_error(self, exc: Exception, ctx: RequestContext) -> Response:
        if self.error_handler is not None:
            return self.render(await resolve_result(self.error_handler(exc, ctx)))
        return handle_exception(exc, debug=self.debug)

    def add_route(self, method: str, path: str, handlers: Sequence[Callable[..., Any]]) -> None:
        handlers = tuple(handlers)
        chain_middleware = list(handlers[:-1])
        endpoint_handler = handlers[-1]

        async def endpoint(request: Request) -> Response:
            ctx = RequestContext.from_request(request)
            chain = compose(self.matching(ctx.path) + chain_middleware, endpoint_handler)
            try:
                result = await chain(ctx)
            except Exception as e:
                return await self.handle_error(e, ctx)
            return self.render(result)

        self.app.router.add_route(
            to_starlette_path(path),
            endpoint,
            methods=[method.upper()],
            name=f"{method.lower()}:{path}",
            include_in_schema=False,
        )
