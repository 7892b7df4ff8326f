"""Request-scoped context passed through a route's handler chain."""

import inspect
import json
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from starlette.requests import Request

_UNSET = object()

BodyLoader = Callable[[], Union[Any, Awaitable[Any]]]


@dataclass
class RequestContext:
    """Context of one request.

    Holds the path and query parameters, a lazily parsed JSON body and a
    variable store shared by the middleware, validators and handler of
    the request. Never shared across requests.
    """

    method: str
    path: str
    path_params: Dict[str, Any] = field(default_factory=dict)
    query_params: Dict[str, Any] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    variables: Dict[str, Any] = field(default_factory=dict)
    request: Optional[Request] = None
    body_loader: Optional[BodyLoader] = None
    _body: Any = field(default=_UNSET, repr=False)

    @classmethod
    def from_request(cls, request: Request) -> "RequestContext":
        """Build a context from a Starlette request."""
        return cls(
            method=request.method,
            path=request.url.path,
            path_params=dict(request.path_params),
            query_params=dict(request.query_params),
            headers=dict(request.headers),
            request=request,
            body_loader=request.body,
        )

    def param(self, name: Optional[str] = None) -> Any:
        """All path parameters, or the one called ``name``."""
        if name is None:
            return dict(self.path_params)
        return self.path_params.get(name)

    def query(self, name: Optional[str] = None) -> Any:
        """All query parameters, or the one called ``name``."""
        if name is None:
            return dict(self.query_params)
        return self.query_params.get(name)

    async def json(self) -> Any:
        """The parsed JSON body, parsed at most once per request.

        Raises:
            json.JSONDecodeError: If the body is not valid JSON
        """
        if self._body is _UNSET:
            if self.body_loader is None:
                self._body = None
            else:
                body = self.body_loader()
                if inspect.isawaitable(body):
                    body = await body
                if isinstance(body, (bytes, str)):
                    body = json.loads(body) if body else None
                self._body = body
        return self._body

    def get(self, key: str, default: Any = None) -> Any:
        """Get a request variable."""
        return self.variables.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a request variable."""
        self.variables[key] = value

    def has(self, key: str) -> bool:
        return key in self.variables

    def update(self, **kwargs) -> None:
        """Update request variables."""
        self.variables.update(kwargs)
