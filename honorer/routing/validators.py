"""Schema validators for route parameters, query strings and bodies.

Each validator is a chain middleware. On success it stores the parsed
value on the request context and continues; on failure it answers with
a 400 ``VALIDATION_ERROR`` envelope and the handler is never reached.
"""

import json
from functools import lru_cache
from typing import Any, Dict, List, Sequence

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from ..http.response import ApiResponse
from .context import RequestContext
from .pipeline import CallNext, Middleware
from .records import BindingKind, ParameterBinding

# Request variables holding validated values, keyed by binding index.
VALIDATED_KEYS = {
    BindingKind.PARAM: "validated_params",
    BindingKind.QUERY: "validated_query",
    BindingKind.BODY: "validated_body",
}

# Request variables holding the last validated value of each kind.
VALUE_KEYS = {
    BindingKind.PARAM: "params",
    BindingKind.QUERY: "query",
    BindingKind.BODY: "body",
}

_LOCATIONS = {
    BindingKind.PARAM: "parameters",
    BindingKind.QUERY: "query parameters",
    BindingKind.BODY: "body",
}


@lru_cache(maxsize=256)
def _cached_adapter(schema: Any) -> TypeAdapter:
    return TypeAdapter(schema)


def _adapter(schema: Any) -> TypeAdapter:
    try:
        return _cached_adapter(schema)
    except TypeError:
        # Unhashable schema
        return TypeAdapter(schema)


def parse_with_schema(schema: Any, raw: Any) -> Any:
    """Validate ``raw`` against a pydantic model or any type pydantic understands.

    Raises:
        pydantic.ValidationError: If validation fails
    """
    return _adapter(schema).validate_python(raw)


def validation_issues(error: ValidationError) -> List[Dict[str, Any]]:
    """JSON-safe issue list of a pydantic validation error."""
    return json.loads(error.json(include_url=False))


def validation_failed(kind: BindingKind, issues: List[Dict[str, Any]]) -> ApiResponse:
    """The terminal 400 response of a failed validator."""
    return ApiResponse.error(
        f"Invalid {_LOCATIONS[kind]}",
        status=400,
        code="VALIDATION_ERROR",
        meta={"location": kind.value, "issues": issues},
    )


async def raw_value(ctx: RequestContext, kind: BindingKind) -> Any:
    """The unvalidated value of a binding kind."""
    if kind is BindingKind.PARAM:
        return ctx.param()
    if kind is BindingKind.QUERY:
        return ctx.query()
    return await ctx.json()


def _create_validator(kind: BindingKind, bindings: Sequence[ParameterBinding]) -> Middleware:
    bindings = tuple(b for b in bindings if b.kind is kind and b.validated)
    if not bindings:
        raise ValueError(f"No validated {kind.value} bindings given")

    async def validator(ctx: RequestContext, call_next: CallNext) -> Any:
        raw = await raw_value(ctx, kind)
        validated = ctx.get(VALIDATED_KEYS[kind])
        if validated is None:
            validated = {}
            ctx.set(VALIDATED_KEYS[kind], validated)

        for binding in bindings:
            if binding.index in validated:
                continue
            try:
                parsed = parse_with_schema(binding.schema, raw)
            except ValidationError as e:
                logger.debug(f"Rejected {ctx.method} {ctx.path}: invalid {_LOCATIONS[kind]}")
                return validation_failed(kind, validation_issues(e))
            validated[binding.index] = parsed
            ctx.set(VALUE_KEYS[kind], parsed)

        return await call_next()

    validator.__name__ = f"{kind.value}_validator"
    validator.__qualname__ = validator.__name__
    return validator


def create_param_validator(bindings: Sequence[ParameterBinding]) -> Middleware:
    """Validator for the path-parameter bindings of a route."""
    return _create_validator(BindingKind.PARAM, bindings)


def create_query_validator(bindings: Sequence[ParameterBinding]) -> Middleware:
    """Validator for the query-string bindings of a route."""
    return _create_validator(BindingKind.QUERY, bindings)


def create_body_validator(bindings: Sequence[ParameterBinding]) -> Middleware:
    """Validator for the JSON-body bindings of a route."""
    return _create_validator(BindingKind.BODY, bindings)


VALIDATOR_FACTORIES = {
    BindingKind.PARAM: create_param_validator,
    BindingKind.QUERY: create_query_validator,
    BindingKind.BODY: create_body_validator,
}
