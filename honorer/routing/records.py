"""Declarative route and controller metadata."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Tuple


class BindingKind(Enum):
    """Where a bound handler argument comes from."""
    PARAM = "param"
    QUERY = "query"
    BODY = "body"


# Validators always run in this order, whatever the declaration order.
BINDING_ORDER = (BindingKind.PARAM, BindingKind.QUERY, BindingKind.BODY)


@dataclass(frozen=True)
class ParameterBinding:
    """One positional handler argument filled from the request.

    ``schema`` validates the raw value; without a schema the raw value is
    injected as is. ``name`` picks a single path/query parameter instead
    of the whole mapping (only for unschemed bindings).
    """

    index: int
    kind: BindingKind
    schema: Any = None
    name: Optional[str] = None

    @property
    def validated(self) -> bool:
        return self.schema is not None


@dataclass(frozen=True)
class RouteRecord:
    """One HTTP route declared on a controller."""

    http_method: str
    path: str
    handler_name: str
    bindings: Tuple[ParameterBinding, ...] = ()
    middleware: Tuple[Callable[..., Any], ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "http_method", self.http_method.upper())
        object.__setattr__(self, "bindings", tuple(sorted(self.bindings, key=lambda b: b.index)))
        object.__setattr__(self, "middleware", tuple(self.middleware))

    def bindings_of(self, kind: BindingKind) -> Tuple[ParameterBinding, ...]:
        return tuple(b for b in self.bindings if b.kind is kind)


@dataclass(frozen=True)
class ControllerMetadata:
    """Route prefix, middleware and routes of a controller class."""

    prefix: str = ""
    middleware: Tuple[Callable[..., Any], ...] = ()
    routes: Tuple[RouteRecord, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "middleware", tuple(self.middleware))
        object.__setattr__(self, "routes", tuple(self.routes))
