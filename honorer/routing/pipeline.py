"""Handler chain composition.

A middleware is called as ``middleware(ctx, call_next)`` and may be a
plain function or a coroutine function. It either returns a response
without calling ``call_next`` (short-circuit) or awaits ``call_next()``;
when it returns ``None`` after calling the next step, the downstream
result is used. Sync middleware continue the chain with
``return call_next()``.
"""

import inspect
from typing import Any, Awaitable, Callable, List, Sequence

from .context import RequestContext

CallNext = Callable[[], Awaitable[Any]]
Middleware = Callable[[RequestContext, CallNext], Any]
Handler = Callable[[RequestContext], Any]


async def resolve_result(result: Any) -> Any:
    """Await a result if it is awaitable."""
    while inspect.isawaitable(result):
        result = await result
    return result


def compose(middleware: Sequence[Middleware], handler: Handler) -> Callable[[RequestContext], Awaitable[Any]]:
    """Compose middleware and a final handler into one coroutine function.

    Middleware run in sequence order, each wrapping the rest of the chain.
    """
    chain = tuple(middleware)

    async def run(ctx: RequestContext) -> Any:
        last_index = -1

        async def dispatch(index: int) -> Any:
            nonlocal last_index
            if index <= last_index:
                raise RuntimeError("call_next() called multiple times")
            last_index = index

            if index == len(chain):
                return await resolve_result(handler(ctx))

            downstream: List[Any] = []

            async def call_next() -> Any:
                result = await dispatch(index + 1)
                downstream.append(result)
                return result

            result = await resolve_result(chain[index](ctx, call_next))
            if result is None and downstream:
                return downstream[0]
            return result

        return await dispatch(0)

    return run
